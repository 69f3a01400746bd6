"""API response models."""

from typing import Any, Dict, List

from pydantic import BaseModel

from ...models.records import PropertyRow, VariableRecord


class VariableSummary(BaseModel):
    """Summary of a variable for list/search results."""
    id: str
    description: str


class VariableDetail(VariableRecord):
    """Full variable record."""
    pass


class VariableListResponse(BaseModel):
    """List/search response model."""
    query: str
    total: int
    results: List[VariableSummary]
    limit: int


class MarginalsResponse(BaseModel):
    """Unnested marginals of one variable."""
    id: str
    columns: List[str]
    rows: List[Dict[str, Any]]


class PropertiesResponse(BaseModel):
    """Unnested properties of one variable."""
    id: str
    rows: List[PropertyRow]


class StatsResponse(BaseModel):
    """Counts over the stored variables."""
    total_variables: int
    standard_form: int
    short_form: int
