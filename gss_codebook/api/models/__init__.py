"""API models (response/summary schemas)."""

from .responses import (
    VariableSummary,
    VariableDetail,
    VariableListResponse,
    MarginalsResponse,
    PropertiesResponse,
    StatsResponse,
)

__all__ = [
    "VariableSummary",
    "VariableDetail",
    "VariableListResponse",
    "MarginalsResponse",
    "PropertiesResponse",
    "StatsResponse",
]
