"""Unit tests for the ONS API client."""

from __future__ import annotations

import pytest
import requests

from conftest import BASE_URL, FakeSession, dataset_payload, observation
from ons_mcp.errors import HTTPStatusError, NotFoundError
from ons_mcp.models import DatasetList, ObservationResponse
from ons_mcp.ons_api import POPULAR_DATASETS, ONSApiClient, build_dimension_query


def _catalogue(session: FakeSession, items) -> None:
    session.add(
        "/datasets?limit=100&offset=0",
        {"count": len(items), "items": items, "limit": 100, "offset": 0, "total_count": 250},
    )


def test_list_datasets_passes_limit_and_offset(api: ONSApiClient, session: FakeSession) -> None:
    session.add(
        "/datasets?limit=1&offset=0",
        {"count": 1, "items": [dataset_payload("cpih01")], "limit": 1, "offset": 0, "total_count": 300},
    )

    result = api.list_datasets(1, 0)

    assert isinstance(result, DatasetList)
    assert [ds.id for ds in result.items] == ["cpih01"]
    assert result.total_count == 300


def test_get_dataset_returns_dataset_with_matching_id(api: ONSApiClient, session: FakeSession) -> None:
    session.add("/datasets/cpih01", dataset_payload("cpih01", "CPIH", dimensions=["time", "geography"]))

    dataset = api.get_dataset("cpih01")

    assert dataset.id == "cpih01"
    assert dataset.has_dimension("time")
    assert not dataset.has_dimension("aggregate")


def test_get_dataset_keeps_unmodelled_fields(api: ONSApiClient, session: FakeSession) -> None:
    payload = dataset_payload("cpih01")
    payload["release_frequency"] = "Monthly"
    session.add("/datasets/cpih01", payload)

    dumped = api.get_dataset("cpih01").model_dump()

    assert dumped["release_frequency"] == "Monthly"


def test_get_dataset_unknown_id_raises_not_found(api: ONSApiClient) -> None:
    with pytest.raises(NotFoundError):
        api.get_dataset("does-not-exist")


def test_malformed_dataset_body_raises_http_error(api: ONSApiClient, session: FakeSession) -> None:
    session.add("/datasets/cpih01", {"title": "no id here"})

    with pytest.raises(HTTPStatusError, match="Unexpected response shape from /datasets/cpih01"):
        api.get_dataset("cpih01")


def test_build_dimension_query_is_unescaped_and_ordered() -> None:
    assert build_dimension_query({"geography": "K02000001", "time": "2023"}) == "geography=K02000001&time=2023"
    assert build_dimension_query({"time": "*", "aggregate": "cpih1dim1A0"}) == "time=*&aggregate=cpih1dim1A0"
    assert build_dimension_query({}) == ""


def test_get_observations_appends_unescaped_query(api: ONSApiClient, session: FakeSession) -> None:
    path = "/datasets/cpih01/editions/time-series/versions/latest/observations?geography=K02000001&time=2023"
    session.add(path, {"observations": [observation("2023")], "total_observations": 1})

    result = api.get_observations("cpih01", "time-series", "latest", {"geography": "K02000001", "time": "2023"})

    assert isinstance(result, ObservationResponse)
    assert session.calls == [BASE_URL + path]
    assert "geography=K02000001&time=2023" in session.calls[0]
    assert result.observations[0].observation == "1.0"


def test_search_filters_first_hundred_case_insensitively(api: ONSApiClient, session: FakeSession) -> None:
    _catalogue(
        session,
        [
            dataset_payload("cpih01", "Consumer Prices Index"),
            dataset_payload("trade", "UK trade", "Imports and exports of goods"),
            dataset_payload("weekly-deaths-region", "Deaths registered weekly"),
            dataset_payload("mid-year-pop-est", "Population estimates", "Mid-year PRICES estimates"),
        ],
    )

    result = api.search_datasets("PRICES", limit=10)

    assert [ds.id for ds in result.items] == ["cpih01", "mid-year-pop-est"]
    assert result.count == result.total_count == 2
    assert result.offset == 0
    assert result.limit == 10
    assert session.calls == [f"{BASE_URL}/datasets?limit=100&offset=0"]


def test_search_matches_ids_and_truncates_to_limit(api: ONSApiClient, session: FakeSession) -> None:
    _catalogue(session, [dataset_payload(f"wellbeing-{n}", f"Set {n}") for n in range(5)])

    result = api.search_datasets("wellbeing", limit=3)

    assert len(result.items) == 3
    for ds in result.items:
        assert "wellbeing" in (ds.title + ds.description + ds.id).lower()


def test_search_with_no_match_is_empty(api: ONSApiClient, session: FakeSession) -> None:
    _catalogue(session, [dataset_payload("cpih01", "Consumer Prices Index")])

    assert api.search_datasets("fishing").items == []


def test_get_dimension_options_returns_raw_payload(api: ONSApiClient, session: FakeSession) -> None:
    session.add("/datasets/cpih01/dimensions/time/options", {"items": [{"option": "Jan-23"}], "total_count": 1})

    assert api.get_dimension_options("cpih01", "time") == {"items": [{"option": "Jan-23"}], "total_count": 1}


def test_get_dataset_dimensions_defaults_to_empty(api: ONSApiClient, session: FakeSession) -> None:
    session.add("/datasets/a", dataset_payload("a"))
    session.add("/datasets/b", dataset_payload("b", dimensions=["time"]))

    assert api.get_dataset_dimensions("a") == []
    assert [dim.id for dim in api.get_dataset_dimensions("b")] == ["time"]


def test_get_download_url_reads_csv_link(api: ONSApiClient, session: FakeSession) -> None:
    session.add(
        "/datasets/cpih01/editions/time-series/versions/latest",
        {"downloads": {"csv": {"href": "https://download.ons.gov.uk/cpih01.csv"}}},
    )
    session.add("/datasets/bare/editions/time-series/versions/latest", {"version": 3})

    assert api.get_download_url("cpih01") == "https://download.ons.gov.uk/cpih01.csv"
    assert api.get_download_url("bare") == ""


def test_popular_datasets_are_static(api: ONSApiClient, session: FakeSession) -> None:
    popular = api.get_popular_datasets()

    assert popular == list(POPULAR_DATASETS)
    assert len(popular) == 10
    assert popular[0] == "cpih01"
    assert session.calls == []


def test_health_check_reports_success(api: ONSApiClient, session: FakeSession) -> None:
    session.add("/datasets?limit=1", {"items": []})

    assert api.health_check() is True


def test_health_check_swallows_errors(api: ONSApiClient, session: FakeSession) -> None:
    session.fail("/datasets?limit=1", requests.Timeout("timed out"))

    assert api.health_check() is False


def test_health_check_swallows_http_errors(api: ONSApiClient, session: FakeSession) -> None:
    session.add("/datasets?limit=1", {"message": "down"}, status=500)

    assert api.health_check() is False
