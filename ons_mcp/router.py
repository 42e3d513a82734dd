"""
router.py
---------

HTTP routes of the ONS adapter façade.  The routes expose the same tool
and resource surface as the MCP server, plus the dataset service
operations that have no tool of their own (health, popular datasets,
dimensions, time series, regional data, download link).

The adapter, and through it the service, are read from
``request.app.state`` where :func:`ons_mcp.main.create_app` stores them.
Errors raised below the router are translated into HTTP statuses by
:func:`_to_http_exception`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Query, Request, Response, status
from pydantic import BaseModel

from .dataset_service import ONSDatasetService
from .errors import ErrorKind, ONSAPIError
from .models import Dataset, DatasetDimensions, HealthStatus, RegionalData, TimeSeries
from .ons_api import DEFAULT_EDITION
from .tools import JSON_MIME_TYPE, ToolAdapter, ToolError

logger = logging.getLogger(__name__)


class ToolInfo(BaseModel):
    name: str
    description: str
    input_schema: Dict[str, Any]


class ResourceInfo(BaseModel):
    uri: str
    name: str
    description: str
    mime_type: str


class DownloadLink(BaseModel):
    dataset_id: str
    edition: str
    csv_url: str


_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNKNOWN_OPERATION: status.HTTP_404_NOT_FOUND,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
}


def _to_http_exception(exc: Exception) -> HTTPException:
    """Translate an adapter or upstream error into an :class:`HTTPException`.

    Upstream failures without a dedicated status are reported as
    ``502 Bad Gateway``.
    """
    if isinstance(exc, (ToolError, ONSAPIError)):
        code = _STATUS_BY_KIND.get(exc.kind, status.HTTP_502_BAD_GATEWAY)
        return HTTPException(status_code=code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _adapter(request: Request) -> ToolAdapter:
    return request.app.state.adapter


def _service(request: Request) -> ONSDatasetService:
    return request.app.state.adapter.service


api_router = APIRouter(prefix="")


@api_router.get("/health", response_model=HealthStatus, tags=["health"], summary="Upstream health")
def health(request: Request) -> HealthStatus:
    return _service(request).health_check()


@api_router.get("/tools", response_model=List[ToolInfo], tags=["tools"], summary="List tools")
def list_tools(request: Request) -> List[ToolInfo]:
    return [
        ToolInfo(name=spec.name, description=spec.description, input_schema=spec.input_schema)
        for spec in _adapter(request).list_tools()
    ]


@api_router.post("/tools/{name}", tags=["tools"], summary="Call a tool")
def call_tool(
    name: str,
    request: Request,
    arguments: Optional[Dict[str, Any]] = Body(None),
) -> Response:
    """Run tool ``name`` with the JSON object in the request body.

    The response body is the tool's JSON envelope, exactly as an MCP
    client would receive it.
    """
    try:
        text = _adapter(request).call_tool(name, arguments or {})
    except (ToolError, ONSAPIError) as exc:
        logger.warning("Tool %s failed: %s", name, exc)
        raise _to_http_exception(exc) from exc
    return Response(content=text, media_type=JSON_MIME_TYPE)


@api_router.get(
    "/resources", response_model=List[ResourceInfo], tags=["resources"], summary="List resources"
)
def list_resources(request: Request) -> List[ResourceInfo]:
    return [
        ResourceInfo(
            uri=spec.uri, name=spec.name, description=spec.description, mime_type=spec.mime_type
        )
        for spec in _adapter(request).list_resources()
    ]


@api_router.get("/resources/read", tags=["resources"], summary="Read a resource")
def read_resource(request: Request, uri: str = Query(..., min_length=1)) -> Response:
    try:
        text = _adapter(request).read_resource(uri)
    except ToolError as exc:
        raise _to_http_exception(exc) from exc
    return Response(content=text, media_type=JSON_MIME_TYPE)


@api_router.get(
    "/datasets/popular",
    response_model=List[Dataset],
    tags=["datasets"],
    summary="Metadata of the popular datasets",
)
def popular_datasets(request: Request) -> List[Dataset]:
    return _service(request).get_popular_datasets()


@api_router.get(
    "/datasets/{dataset_id}/dimensions",
    response_model=DatasetDimensions,
    tags=["datasets"],
    summary="Dimensions of a dataset with their options",
)
def dataset_dimensions(dataset_id: str, request: Request) -> DatasetDimensions:
    try:
        return _service(request).get_dataset_dimensions(dataset_id)
    except ONSAPIError as exc:
        raise _to_http_exception(exc) from exc


@api_router.get(
    "/datasets/{dataset_id}/time-series",
    response_model=TimeSeries,
    tags=["datasets"],
    summary="All time periods for one geography",
)
def time_series(
    dataset_id: str,
    request: Request,
    geography: Optional[str] = Query(None, min_length=1),
) -> TimeSeries:
    service = _service(request)
    try:
        if geography:
            return service.get_time_series_data(dataset_id, geography)
        return service.get_time_series_data(dataset_id)
    except ONSAPIError as exc:
        raise _to_http_exception(exc) from exc


@api_router.get(
    "/datasets/{dataset_id}/regional",
    response_model=RegionalData,
    tags=["datasets"],
    summary="All geographies, optionally for one time period",
)
def regional(
    dataset_id: str,
    request: Request,
    time_period: Optional[str] = Query(None, min_length=1),
) -> RegionalData:
    try:
        return _service(request).get_regional_data(dataset_id, time_period)
    except ONSAPIError as exc:
        raise _to_http_exception(exc) from exc


@api_router.get(
    "/datasets/{dataset_id}/download-url",
    response_model=DownloadLink,
    tags=["datasets"],
    summary="CSV download link of the latest version",
)
def download_url(
    dataset_id: str,
    request: Request,
    edition: str = Query(DEFAULT_EDITION, min_length=1),
) -> DownloadLink:
    try:
        url = _service(request).get_download_url(dataset_id, edition)
    except ONSAPIError as exc:
        raise _to_http_exception(exc) from exc
    return DownloadLink(dataset_id=dataset_id, edition=edition, csv_url=url)


__all__ = ["api_router"]
