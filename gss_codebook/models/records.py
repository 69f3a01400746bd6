"""Pydantic models for parsed codebook variables.

A codebook page holds one block per survey variable. Each block becomes a
`VariableRecord`: identity, question wording and two nested tables
(response marginals and variable properties).
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

# Question text for blocks that carry none (identifiers, recodes).
TEXT_SENTINEL = "None"


class Variant(str, Enum):
    """Table layout of a variable block."""
    SHORT_FORM = "ShortForm"
    STANDARD_FORM = "StandardForm"


# Number of data tables in a block -> its layout.
VARIANT_BY_TABLE_COUNT: Dict[int, Variant] = {
    3: Variant.SHORT_FORM,
    4: Variant.STANDARD_FORM,
}

# Which table of a block holds which field.
TABLE_OFFSETS: Dict[Variant, Dict[str, int]] = {
    Variant.SHORT_FORM: {"id": 0, "marginals": 1, "properties": 2},
    Variant.STANDARD_FORM: {"id": 0, "text": 1, "marginals": 2, "properties": 3},
}


class PropertyRow(BaseModel):
    """One metadata pair of a variable (e.g. 'Data type' / 'numeric')."""
    property: Optional[str] = Field(None, description="Property name, trailing colon removed")
    value: Optional[str] = Field(None, description="Property value as printed")
    id: str = Field(..., description="Id of the owning variable")


class VariableRecord(BaseModel):
    """One surveyed variable, as assembled from a codebook block."""
    id: str = Field(..., description="Short variable name (e.g. 'sex')")
    description: str = Field("", description="One-line label")
    text: Optional[str] = Field(None, description="Question wording, or 'None' for short-form blocks")
    properties: List[PropertyRow] = Field(default_factory=list, description="Variable metadata table")
    marginals: List[Dict[str, Any]] = Field(default_factory=list, description="Response frequency table")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "sex",
                "description": "Respondents sex",
                "text": "Code respondent's sex",
                "properties": [
                    {"property": "Data type", "value": "numeric", "id": "sex"},
                    {"property": "Missing-data codes", "value": "0,8,9", "id": "sex"},
                ],
                "marginals": [
                    {"cases": "1,207", "range": "Male", "id": "sex"},
                    {"cases": "1,393", "range": "Female", "id": "sex"},
                ],
            }
        }
