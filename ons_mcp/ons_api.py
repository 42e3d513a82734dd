"""Interface to the UK Office for National Statistics Beta API.

The classes defined in this module provide a thin abstraction over
the public API exposed at https://api.beta.ons.gov.uk/v1.  Each method
of :class:`ONSApiClient` performs a single request/response round trip
and returns the payload as a pydantic model.  Failures are raised as
the typed exceptions of :mod:`ons_mcp.errors`; nothing is retried.

Examples
--------
>>> from ons_mcp.ons_api import ONSApiClient
>>> client = ONSApiClient()
>>> cpih = client.get_dataset("cpih01")
>>> cpih.id
'cpih01'
>>> obs = client.get_observations(
...     "cpih01", dimensions={"geography": "K02000001", "time": "*", "aggregate": "cpih1dim1A0"}
... )

Note
----
The ONS API offers no search endpoint.  :meth:`ONSApiClient.search_datasets`
therefore filters the first :data:`SEARCH_WINDOW` datasets of the
listing locally.  Datasets further down the catalogue are never
matched; this is a known limitation and is kept as is.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import HTTPStatusError
from .http_client import ONSHttpClient
from .models import Dataset, DatasetList, Dimension, ObservationResponse

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

DEFAULT_EDITION = "time-series"
DEFAULT_VERSION = "latest"

# Size of the listing scanned by ``search_datasets``.
SEARCH_WINDOW = 100

POPULAR_DATASETS = (
    "cpih01",
    "regional-gdp-by-year",
    "wellbeing-local-authority",
    "uk-spending-on-cards",
    "weekly-deaths-region",
    "trade",
    "ageing-population-estimates",
    "wellbeing-quarterly",
    "traffic-camera-activity",
    "tax-benefits-statistics",
)


def build_dimension_query(dimensions: Mapping[str, str]) -> str:
    """Serialise dimension filters as ``key=value&key2=value2``.

    Keys and values are joined verbatim, in insertion order.  No URL
    escaping is applied, so wildcards such as ``*`` reach the API as is.
    """
    return "&".join(f"{key}={value}" for key, value in dimensions.items())


def _parse(model: Type[ModelT], data: Any, path: str) -> ModelT:
    """Validate an upstream body, reporting a malformed one as an HTTP error."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.error("Unexpected payload from %s: %s", path, exc)
        raise HTTPStatusError(
            f"ONS API: Unexpected response shape from {path} - {exc.error_count()} invalid field(s)"
        ) from exc


def _matches(dataset: Dataset, term: str) -> bool:
    return (
        term in (dataset.title or "").lower()
        or term in (dataset.description or "").lower()
        or term in dataset.id.lower()
    )


class ONSApiClient:
    """Client for the ONS Beta API.

    This class wraps an :class:`~ons_mcp.http_client.ONSHttpClient` and
    exposes one method per upstream endpoint.  It holds no state besides
    the HTTP client and is safe to share across calls.
    """

    def __init__(self, http: Optional[ONSHttpClient] = None) -> None:
        self.http = http or ONSHttpClient()

    def list_datasets(self, limit: int = 20, offset: int = 0) -> DatasetList:
        """Return one page of the dataset catalogue.

        ``limit`` and ``offset`` are passed through unchecked; the API
        enforces its own bounds.
        """
        data = self.http.get("/datasets", params={"limit": limit, "offset": offset})
        return _parse(DatasetList, data, "/datasets")

    def get_dataset(self, dataset_id: str) -> Dataset:
        """Return the metadata of ``dataset_id``.

        Raises
        ------
        NotFoundError
            If the API does not know the dataset.
        """
        path = f"/datasets/{dataset_id}"
        return _parse(Dataset, self.http.get(path), path)

    def get_latest_version(self, dataset_id: str, edition: str = DEFAULT_EDITION) -> Dict[str, Any]:
        """Return the raw payload of the latest version of ``edition``."""
        return self.http.get(f"/datasets/{dataset_id}/editions/{edition}/versions/{DEFAULT_VERSION}")

    def get_download_url(self, dataset_id: str, edition: str = DEFAULT_EDITION) -> str:
        """Return the CSV download link of the latest version, or ``""``."""
        latest = self.get_latest_version(dataset_id, edition)
        csv = (latest.get("downloads") or {}).get("csv") or {}
        return csv.get("href") or ""

    def search_datasets(self, query: str, limit: int = 10) -> DatasetList:
        """Search dataset titles, descriptions and ids for ``query``.

        Parameters
        ----------
        query : str
            Case-insensitive substring looked up in the title, the
            description and the id of each dataset.
        limit : int, default 10
            Maximum number of datasets returned.

        Returns
        -------
        DatasetList
            Matching datasets in listing order.  ``count`` and
            ``total_count`` both equal the number of returned items and
            ``offset`` is always 0.

        Note
        ----
        Only the first :data:`SEARCH_WINDOW` datasets of the catalogue
        are fetched and filtered, so this is not a full-corpus search.
        """
        if not query:
            logger.info("Empty search query submitted to search_datasets")
        catalogue = self.list_datasets(SEARCH_WINDOW, 0)
        term = query.lower()
        items = [ds for ds in catalogue.items if _matches(ds, term)][: max(limit, 0)]
        return DatasetList(
            count=len(items),
            items=items,
            limit=limit,
            offset=0,
            total_count=len(items),
        )

    def get_observations(
        self,
        dataset_id: str,
        edition: str = DEFAULT_EDITION,
        version: str = DEFAULT_VERSION,
        dimensions: Optional[Mapping[str, str]] = None,
    ) -> ObservationResponse:
        """Return observations of one dataset version filtered by ``dimensions``.

        The filters are appended to the observations path unescaped, see
        :func:`build_dimension_query`.
        """
        query = build_dimension_query(dimensions or {})
        path = f"/datasets/{dataset_id}/editions/{edition}/versions/{version}/observations?{query}"
        return _parse(ObservationResponse, self.http.get(path), path)

    def get_dataset_dimensions(self, dataset_id: str) -> List[Dimension]:
        """Return the dimensions declared on ``dataset_id`` (possibly empty)."""
        return list(self.get_dataset(dataset_id).dimensions or [])

    def get_dimension_options(self, dataset_id: str, dimension_id: str) -> Dict[str, Any]:
        """Return the raw options payload of one dimension."""
        return self.http.get(f"/datasets/{dataset_id}/dimensions/{dimension_id}/options")

    def get_popular_datasets(self) -> List[str]:
        """Return the identifiers of ten commonly used datasets.

        The list is static; no request is made.
        """
        return list(POPULAR_DATASETS)

    def health_check(self) -> bool:
        """Return ``True`` if a one-item listing succeeds, ``False`` otherwise."""
        try:
            self.http.get("/datasets?limit=1")
        except Exception as exc:
            logger.info("ONS API health check failed: %s", exc)
            return False
        return True


__all__ = [
    "ONSApiClient",
    "build_dimension_query",
    "POPULAR_DATASETS",
    "SEARCH_WINDOW",
    "DEFAULT_EDITION",
    "DEFAULT_VERSION",
]
