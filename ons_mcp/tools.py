"""Tool and resource surface of the ONS adapter.

:class:`ToolAdapter` validates the arguments of a tool call against a
fixed pydantic schema, dispatches it to :class:`ONSDatasetService` and
serialises the result as indented JSON text.  It also serves two static
JSON resources.  The adapter is transport agnostic: both the MCP stdio
server and the FastAPI façade sit on top of it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import API_BASE_URL
from .dataset_service import ONSDatasetService
from .errors import ErrorKind

logger = logging.getLogger(__name__)

JSON_MIME_TYPE = "application/json"


class ToolError(Exception):
    """Base class for failures detected by the adapter itself."""

    kind: ErrorKind = ErrorKind.VALIDATION


class InvalidParamsError(ToolError):
    kind = ErrorKind.VALIDATION


class UnknownToolError(ToolError):
    kind = ErrorKind.UNKNOWN_OPERATION


class UnknownResourceError(ToolError):
    kind = ErrorKind.UNKNOWN_OPERATION


class _Args(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")


class ListDatasetsArgs(_Args):
    limit: int = Field(default=20, description="Maximum number of datasets to return")
    offset: int = Field(default=0, description="Offset for pagination")


class GetDatasetArgs(_Args):
    dataset_id: str = Field(description="The ID of the dataset to retrieve")


class SearchDatasetsArgs(_Args):
    query: str = Field(description="Search query for datasets")
    limit: int = Field(default=10, description="Maximum number of results")


class GetObservationArgs(_Args):
    dataset_id: str = Field(description="The ID of the dataset")
    edition: str = Field(default="time-series", description="Dataset edition")
    version: str = Field(default="latest", description="Dataset version")
    dimensions: Dict[str, str] = Field(
        description=(
            "Dimension filters as key-value pairs "
            '(e.g., {"geography": "K02000001", "time": "2023"})'
        )
    )


class GetLatestDataArgs(_Args):
    dataset_id: str = Field(description="The ID of the dataset")
    geography: Optional[str] = Field(
        default=None, description="Geographic filter (e.g., K02000001 for UK)"
    )
    time_period: Optional[str] = Field(
        default=None, description="Time period filter (e.g., 2023, Q1-2023)"
    )


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_schema: Dict[str, Any]


@dataclass(frozen=True)
class ResourceSpec:
    uri: str
    name: str
    description: str
    mime_type: str = JSON_MIME_TYPE


POPULAR_DATASETS_RESOURCE = {
    "popular_datasets": [
        {
            "id": "cpih01",
            "title": "Consumer Price Index including Housing",
            "description": "UK inflation data",
        },
        {
            "id": "regional-gdp-by-year",
            "title": "Regional GDP by Year",
            "description": "GDP data by UK regions",
        },
        {
            "id": "wellbeing-local-authority",
            "title": "Personal Wellbeing by Local Authority",
            "description": "Wellbeing statistics by local area",
        },
        {
            "id": "uk-spending-on-cards",
            "title": "UK Spending on Cards",
            "description": "Card spending data",
        },
    ]
}

API_INFO_RESOURCE = {
    "api_info": {
        "base_url": API_BASE_URL,
        "authentication": "None required",
        "rate_limits": "Standard fair use policy",
        "data_format": "JSON",
        "documentation": "https://developer.ons.gov.uk/",
    }
}

RESOURCES: Dict[str, tuple] = {
    "ons://popular_datasets": (
        ResourceSpec(
            uri="ons://popular_datasets",
            name="Popular ONS Datasets",
            description="List of commonly used ONS datasets",
        ),
        POPULAR_DATASETS_RESOURCE,
    ),
    "ons://api_info": (
        ResourceSpec(
            uri="ons://api_info",
            name="ONS API Information",
            description="Information about the ONS API endpoints and capabilities",
        ),
        API_INFO_RESOURCE,
    ),
}


def to_json(payload: Any) -> str:
    """Serialise ``payload`` as JSON indented by two spaces.

    Pydantic models are dumped in JSON mode with unset fields left out,
    so upstream payloads come back with exactly the keys the API sent.
    """
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json", exclude_unset=True)
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "arguments"
        problems.append(f"{location}: {error.get('msg')}")
    return "; ".join(problems)


class ToolAdapter:
    """Dispatch named tool calls to the dataset service.

    Examples
    --------
    >>> adapter = ToolAdapter(service)
    >>> text = adapter.call_tool("list_datasets", {"limit": 1})
    >>> json.loads(text)["limit"]
    1
    """

    def __init__(self, service: ONSDatasetService) -> None:
        self.service = service
        self._tools: Dict[str, tuple] = {
            "list_datasets": (
                "List available ONS datasets with metadata",
                ListDatasetsArgs,
                self._list_datasets,
            ),
            "get_dataset": (
                "Get detailed information about a specific dataset",
                GetDatasetArgs,
                self._get_dataset,
            ),
            "search_datasets": (
                "Search for datasets by name or description "
                "(only the first 100 datasets of the catalogue are searched)",
                SearchDatasetsArgs,
                self._search_datasets,
            ),
            "get_observation": (
                "Get specific data observations with dimension filters",
                GetObservationArgs,
                self._get_observation,
            ),
            "get_latest_data": (
                "Get the latest available data for a dataset with optional filters",
                GetLatestDataArgs,
                self._get_latest_data,
            ),
        }

    @property
    def tool_names(self) -> List[str]:
        return list(self._tools)

    def list_tools(self) -> List[ToolSpec]:
        return [
            ToolSpec(name=name, description=description, input_schema=schema.model_json_schema())
            for name, (description, schema, _) in self._tools.items()
        ]

    def call_tool(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> str:
        """Validate ``arguments``, run tool ``name`` and return its JSON text.

        Raises
        ------
        UnknownToolError
            If ``name`` is not one of :attr:`tool_names`.
        InvalidParamsError
            If the arguments do not satisfy the tool's schema.
        ONSAPIError
            Upstream failures, passed through unchanged.
        """
        if name not in self._tools:
            raise UnknownToolError(f"Unknown tool: {name}")
        _, schema, handler = self._tools[name]
        try:
            args = schema.model_validate(dict(arguments or {}))
        except ValidationError as exc:
            raise InvalidParamsError(
                f"Invalid parameters: {_format_validation_error(exc)}"
            ) from exc

        logger.info("Calling tool %s with %s", name, args.model_dump())
        return to_json(handler(args))

    def _list_datasets(self, args: ListDatasetsArgs) -> Dict[str, Any]:
        datasets = self.service.list_datasets(args.limit, args.offset)
        return {
            "datasets": [ds.model_dump(mode="json", exclude_unset=True) for ds in datasets.items],
            "total": datasets.total_count,
            "limit": args.limit,
            "offset": args.offset,
        }

    def _get_dataset(self, args: GetDatasetArgs) -> BaseModel:
        return self.service.get_dataset(args.dataset_id)

    def _search_datasets(self, args: SearchDatasetsArgs) -> Dict[str, Any]:
        results = self.service.search_datasets(args.query, args.limit)
        return {
            "query": args.query,
            "results": [ds.model_dump(mode="json", exclude_unset=True) for ds in results.items],
            "total": results.total_count,
        }

    def _get_observation(self, args: GetObservationArgs) -> BaseModel:
        return self.service.get_observations(
            args.dataset_id, args.edition, args.version, args.dimensions
        )

    def _get_latest_data(self, args: GetLatestDataArgs) -> BaseModel:
        return self.service.get_latest_data(args.dataset_id, args.geography, args.time_period)

    def list_resources(self) -> List[ResourceSpec]:
        return [spec for spec, _ in RESOURCES.values()]

    def read_resource(self, uri: str) -> str:
        """Return the JSON text of a static resource; no request is made."""
        if uri not in RESOURCES:
            raise UnknownResourceError(f"Unknown resource: {uri}")
        _, payload = RESOURCES[uri]
        return to_json(payload)


__all__ = [
    "ToolAdapter",
    "ToolSpec",
    "ResourceSpec",
    "ToolError",
    "InvalidParamsError",
    "UnknownToolError",
    "UnknownResourceError",
    "ListDatasetsArgs",
    "GetDatasetArgs",
    "SearchDatasetsArgs",
    "GetObservationArgs",
    "GetLatestDataArgs",
    "to_json",
    "JSON_MIME_TYPE",
]
