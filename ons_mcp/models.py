"""Pydantic models describing ONS API payloads and adapter results.

The upstream models allow extra fields so that a dataset or an
observation response round-trips through the adapter without losing
anything the API sent.  The result models at the bottom of the module
describe the composite payloads built by
:class:`~ons_mcp.dataset_service.ONSDatasetService`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Upstream(BaseModel):
    model_config = ConfigDict(extra="allow")


class Dimension(_Upstream):
    """A categorical axis declared on a dataset."""

    id: str
    name: Optional[str] = None
    label: Optional[str] = None
    links: Dict[str, Any] = Field(default_factory=dict)


class Dataset(_Upstream):
    """Metadata of a single ONS dataset.

    Attributes
    ----------
    id : str
        Identifier used in every dataset URL, e.g. ``cpih01``.
    title, description : str
        Human readable text; empty strings when the API omits them.
    state, type : str, optional
        Publication state (``published``...) and dataset type
        (``cantabular_flexible_table``, ``filterable``...).
    dimensions : list of Dimension, optional
        Present only when the API embeds the dimension list.
    """

    id: str
    title: str = ""
    description: str = ""
    state: Optional[str] = None
    type: Optional[str] = None
    uri: Optional[str] = None
    links: Dict[str, Any] = Field(default_factory=dict)
    qmi: Optional[Dict[str, Any]] = None
    methodology: Optional[Dict[str, Any]] = None
    contacts: Optional[List[Dict[str, Any]]] = None
    dimensions: Optional[List[Dimension]] = None

    def has_dimension(self, dimension_id: str) -> bool:
        return any(dim.id == dimension_id for dim in self.dimensions or [])


class DatasetList(_Upstream):
    count: int = 0
    items: List[Dataset] = Field(default_factory=list)
    limit: int = 0
    offset: int = 0
    total_count: int = 0


class Observation(_Upstream):
    """One measured value tagged with its dimension selection."""

    dimensions: Dict[str, Any] = Field(default_factory=dict)
    observation: Any = None
    metadata: Optional[Dict[str, Any]] = None

    def dimension_value(self, name: str) -> str:
        """Return the selected value of dimension ``name`` as a string.

        The API sometimes nests the selection as ``{"id": ..., "label": ...}``;
        in that case the ``id`` is used.  Missing dimensions yield ``""``.
        """
        value = self.dimensions.get(name)
        if isinstance(value, dict):
            value = value.get("id", "")
        if value is None:
            return ""
        return str(value)


class ObservationResponse(_Upstream):
    observations: List[Observation] = Field(default_factory=list)
    dimensions: Dict[str, Any] = Field(default_factory=dict)
    links: Dict[str, Any] = Field(default_factory=dict)
    total_observations: int = 0


class FiltersApplied(BaseModel):
    geography: Optional[str] = None
    time_period: Optional[str] = None


class LatestDataMetadata(BaseModel):
    dimensions: Dict[str, Any] = Field(default_factory=dict)
    links: Dict[str, Any] = Field(default_factory=dict)


class LatestData(BaseModel):
    """Result of ``get_latest_data``."""

    dataset_id: str
    dataset_title: str
    dataset_description: str
    filters_applied: FiltersApplied
    dimensions_used: Dict[str, str]
    total_observations: int
    observations: List[Observation]
    metadata: LatestDataMetadata


class TimeSeries(BaseModel):
    dataset_id: str
    geography: str
    time_series: List[Observation]
    total_observations: int


class RegionalData(BaseModel):
    dataset_id: str
    time_period: Optional[str] = None
    regional_data: List[Observation]
    total_observations: int


class DimensionDetail(BaseModel):
    """A declared dimension together with its available options.

    ``error`` is set, and ``options`` left empty, when the options could
    not be fetched.
    """

    id: str
    name: Optional[str] = None
    label: Optional[str] = None
    options: List[Any] = Field(default_factory=list)
    error: Optional[str] = None


class DatasetDimensions(BaseModel):
    dataset_id: str
    dataset_title: str
    dimensions: List[DimensionDetail]


class HealthStatus(BaseModel):
    status: str
    api_accessible: bool


__all__ = [
    "Dimension",
    "Dataset",
    "DatasetList",
    "Observation",
    "ObservationResponse",
    "FiltersApplied",
    "LatestDataMetadata",
    "LatestData",
    "TimeSeries",
    "RegionalData",
    "DimensionDetail",
    "DatasetDimensions",
    "HealthStatus",
]
