"""Higher level dataset operations built on :class:`ONSApiClient`.

The service composes several API calls into the payloads handed to
tool callers: the latest data of a dataset with sensible default
filters, a chronologically ordered time series, a regional comparison,
the popular dataset catalogue and the options of every dimension.  It
never talks HTTP directly.

Default filters
---------------
When ``get_latest_data`` receives neither a geography nor a time
period it looks at the dimensions declared by the dataset:

* a ``time`` dimension is filtered with the wildcard ``*`` (all periods);
* a ``geography`` dimension defaults to :data:`UK_GEOGRAPHY`.

When at least one filter is given the defaults are not applied at all.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Mapping, Optional

from .errors import ONSAPIError
from .models import (
    Dataset,
    DatasetDimensions,
    DatasetList,
    Dimension,
    DimensionDetail,
    FiltersApplied,
    HealthStatus,
    LatestData,
    LatestDataMetadata,
    ObservationResponse,
    RegionalData,
    TimeSeries,
)
from .ons_api import DEFAULT_EDITION, DEFAULT_VERSION, ONSApiClient

logger = logging.getLogger(__name__)

# ONS code for the United Kingdom as a whole.
UK_GEOGRAPHY = "K02000001"
WILDCARD = "*"

MAX_OPTION_WORKERS = 8


class ONSDatasetService:
    """Dataset level operations for the tool adapter.

    Parameters
    ----------
    api_client : ONSApiClient
        Client used for every upstream call.
    """

    def __init__(self, api_client: ONSApiClient) -> None:
        self.api_client = api_client

    def list_datasets(self, limit: int = 20, offset: int = 0) -> DatasetList:
        return self.api_client.list_datasets(limit, offset)

    def get_dataset(self, dataset_id: str) -> Dataset:
        return self.api_client.get_dataset(dataset_id)

    def search_datasets(self, query: str, limit: int = 10) -> DatasetList:
        return self.api_client.search_datasets(query, limit)

    def get_observations(
        self,
        dataset_id: str,
        edition: str = DEFAULT_EDITION,
        version: str = DEFAULT_VERSION,
        dimensions: Optional[Mapping[str, str]] = None,
    ) -> ObservationResponse:
        return self.api_client.get_observations(dataset_id, edition, version, dimensions or {})

    def get_download_url(self, dataset_id: str, edition: str = DEFAULT_EDITION) -> str:
        return self.api_client.get_download_url(dataset_id, edition)

    def get_latest_data(
        self,
        dataset_id: str,
        geography: Optional[str] = None,
        time_period: Optional[str] = None,
    ) -> LatestData:
        """Return the most recent observations of a dataset.

        Parameters
        ----------
        dataset_id : str
            Dataset to query.
        geography : str, optional
            Geography code, e.g. ``K02000001`` for the UK.
        time_period : str, optional
            Time period, e.g. ``2023`` or ``Q1-2023``.

        Returns
        -------
        LatestData
            Dataset title and description, the filters the caller passed,
            the dimension filters actually sent and the observations.

        Raises
        ------
        ONSAPIError
            Any upstream failure, re-raised with the same kind and a
            message naming the dataset.
        """
        try:
            dataset = self.get_dataset(dataset_id)

            dimensions: Dict[str, str] = {}
            if geography:
                dimensions["geography"] = geography
            if time_period:
                dimensions["time"] = time_period

            if not dimensions:
                if dataset.has_dimension("time"):
                    dimensions["time"] = WILDCARD
                if dataset.has_dimension("geography"):
                    dimensions["geography"] = UK_GEOGRAPHY

            observations = self.get_observations(
                dataset_id, DEFAULT_EDITION, DEFAULT_VERSION, dimensions
            )
        except ONSAPIError as exc:
            raise exc.with_context(f"Failed to get latest data for {dataset_id}") from exc

        return LatestData(
            dataset_id=dataset_id,
            dataset_title=dataset.title,
            dataset_description=dataset.description,
            filters_applied=FiltersApplied(geography=geography, time_period=time_period),
            dimensions_used=dimensions,
            total_observations=observations.total_observations,
            observations=observations.observations,
            metadata=LatestDataMetadata(
                dimensions=observations.dimensions,
                links=observations.links,
            ),
        )

    def get_time_series_data(self, dataset_id: str, geography: str = UK_GEOGRAPHY) -> TimeSeries:
        """Return every time period of ``dataset_id`` for one geography.

        Observations are ordered by their ``time`` value compared as
        plain strings, so ``"2023 Q1"`` sorts after ``"2023"`` and month
        names sort alphabetically.  Periods are not parsed as dates.
        """
        observations = self.get_observations(
            dataset_id,
            DEFAULT_EDITION,
            DEFAULT_VERSION,
            {"geography": geography, "time": WILDCARD},
        )
        series = sorted(observations.observations, key=lambda obs: obs.dimension_value("time"))
        return TimeSeries(
            dataset_id=dataset_id,
            geography=geography,
            time_series=series,
            total_observations=observations.total_observations,
        )

    def get_regional_data(self, dataset_id: str, time_period: Optional[str] = None) -> RegionalData:
        """Return observations for every geography, optionally for one period."""
        dimensions = {"geography": WILDCARD}
        if time_period:
            dimensions["time"] = time_period

        observations = self.get_observations(dataset_id, DEFAULT_EDITION, DEFAULT_VERSION, dimensions)
        return RegionalData(
            dataset_id=dataset_id,
            time_period=time_period,
            regional_data=observations.observations,
            total_observations=observations.total_observations,
        )

    def get_popular_datasets(self) -> List[Dataset]:
        """Resolve the popular dataset ids to full metadata.

        A dataset that cannot be fetched is logged and left out, so the
        result may be shorter than the static list.
        """
        datasets: List[Dataset] = []
        for dataset_id in self.api_client.get_popular_datasets():
            try:
                datasets.append(self.get_dataset(dataset_id))
            except ONSAPIError as exc:
                logger.warning("Failed to fetch popular dataset %s: %s", dataset_id, exc)
        return datasets

    def _dimension_detail(self, dataset_id: str, dimension: Dimension) -> DimensionDetail:
        try:
            options = self.api_client.get_dimension_options(dataset_id, dimension.id)
        except ONSAPIError as exc:
            logger.warning(
                "Failed to fetch options of dimension %s for %s: %s", dimension.id, dataset_id, exc
            )
            return DimensionDetail(
                id=dimension.id,
                name=dimension.name,
                label=dimension.label,
                options=[],
                error=str(exc),
            )
        items = options.get("items") if isinstance(options, dict) else None
        return DimensionDetail(
            id=dimension.id,
            name=dimension.name,
            label=dimension.label,
            options=items or [],
        )

    def get_dataset_dimensions(self, dataset_id: str) -> DatasetDimensions:
        """Return each declared dimension of a dataset with its options.

        Options are fetched concurrently, one request per dimension.  A
        failed request does not fail the call: the matching entry gets
        an empty option list and an ``error`` message.
        """
        dataset = self.get_dataset(dataset_id)
        dimensions = dataset.dimensions or []

        details: List[DimensionDetail] = []
        if dimensions:
            workers = min(MAX_OPTION_WORKERS, len(dimensions))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                details = list(
                    pool.map(lambda dim: self._dimension_detail(dataset_id, dim), dimensions)
                )

        return DatasetDimensions(
            dataset_id=dataset_id,
            dataset_title=dataset.title,
            dimensions=details,
        )

    def health_check(self) -> HealthStatus:
        accessible = self.api_client.health_check()
        return HealthStatus(
            status="healthy" if accessible else "unhealthy",
            api_accessible=accessible,
        )


__all__ = ["ONSDatasetService", "UK_GEOGRAPHY", "WILDCARD"]
