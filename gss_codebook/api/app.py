"""FastAPI application for querying parsed codebook variables."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .dependencies import close_mongodb_client
from .routes import general_router, variables_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_mongodb_client()


app = FastAPI(
    title="GSS Codebook API",
    description="API for querying variables parsed from survey codebook pages",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(general_router)
app.include_router(variables_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
