"""Variable endpoints: list/search, detail, and the unnested nested tables."""

import re
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Path as PathParam, Query

from ...database.load_variables import VARIABLES_COLLECTION
from ...database.mongodb_client import MongoDBClient
from ..dependencies import get_mongodb_client
from ..models import (
    MarginalsResponse,
    PropertiesResponse,
    VariableDetail,
    VariableListResponse,
    VariableSummary,
)

router = APIRouter(tags=["Variables"])


def _find_variable(client: MongoDBClient, variable_id: str) -> Dict[str, Any]:
    collection = client.get_collection(VARIABLES_COLLECTION)
    variable = collection.find_one({"id": variable_id.lower()}, {"_id": 0}, sort=[("_row", 1)])
    if not variable:
        raise HTTPException(status_code=404, detail=f"Variable '{variable_id}' not found")
    return variable


@router.get("/variables", response_model=VariableListResponse)
async def list_variables(
    q: str = Query("", description="Substring of the id or description"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of results"),
    client: MongoDBClient = Depends(get_mongodb_client),
):
    """List variables, optionally filtered by id/description substring."""
    collection = client.get_collection(VARIABLES_COLLECTION)
    query: Dict[str, Any] = {}
    if q:
        pattern = {"$regex": re.escape(q), "$options": "i"}
        query = {"$or": [{"id": pattern}, {"description": pattern}]}
    total = collection.count_documents(query)
    docs = collection.find(query, {"_id": 0, "id": 1, "description": 1}).sort("id", 1).limit(limit)
    results = [VariableSummary(id=d["id"], description=d.get("description", "")) for d in docs]
    return VariableListResponse(query=q, total=total, results=results, limit=limit)


@router.get("/variables/{variable_id}", response_model=VariableDetail)
async def get_variable(
    variable_id: str = PathParam(..., description="Variable id (case-insensitive)"),
    client: MongoDBClient = Depends(get_mongodb_client),
):
    """Full record of one variable."""
    return VariableDetail(**_find_variable(client, variable_id))


@router.get("/variables/{variable_id}/marginals", response_model=MarginalsResponse)
async def get_marginals(
    variable_id: str = PathParam(..., description="Variable id (case-insensitive)"),
    client: MongoDBClient = Depends(get_mongodb_client),
):
    """Marginals table of one variable as flat rows."""
    variable = _find_variable(client, variable_id)
    rows = variable.get("marginals") or []
    columns = []
    for row in rows:
        columns.extend(c for c in row if c not in columns)
    return MarginalsResponse(id=variable["id"], columns=columns, rows=rows)


@router.get("/variables/{variable_id}/properties", response_model=PropertiesResponse)
async def get_properties(
    variable_id: str = PathParam(..., description="Variable id (case-insensitive)"),
    client: MongoDBClient = Depends(get_mongodb_client),
):
    """Properties table of one variable as flat rows."""
    variable = _find_variable(client, variable_id)
    return PropertiesResponse(id=variable["id"], rows=variable.get("properties") or [])
