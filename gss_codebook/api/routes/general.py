"""General endpoints: root, stats."""

from fastapi import APIRouter, Depends

from ...database.load_variables import VARIABLES_COLLECTION
from ...database.mongodb_client import MongoDBClient
from ...models.records import TEXT_SENTINEL
from ..dependencies import get_mongodb_client
from ..models import StatsResponse

router = APIRouter(tags=["General"])


@router.get("/")
async def root():
    """API info."""
    return {
        "message": "GSS Codebook API",
        "version": "0.1.0",
        "endpoints": {
            "stats": "/stats",
            "variables": "/variables",
            "variable": "/variables/{variable_id}",
            "marginals": "/variables/{variable_id}/marginals",
            "properties": "/variables/{variable_id}/properties",
        },
    }


@router.get("/stats", response_model=StatsResponse)
async def get_stats(client: MongoDBClient = Depends(get_mongodb_client)):
    """Count stored variables by layout."""
    collection = client.get_collection(VARIABLES_COLLECTION)
    short_form = collection.count_documents({"text": TEXT_SENTINEL})
    total = collection.count_documents({})
    return StatsResponse(
        total_variables=total,
        standard_form=total - short_form,
        short_form=short_form,
    )
