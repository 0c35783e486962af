from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests

from busmap.data.directions_client import (
    DirectionsClient,
    RouteFetchError,
    RouteResult,
    ThreadedRouteProvider,
)
from busmap.data.schedule_feed import PlaceRef

ORIGIN = PlaceRef("Ludhiana Bus Stand")
DESTINATION = PlaceRef("ISBT Sector 43", lat=30.7225, lng=76.7516)

OK_BODY = {
    "status": "OK",
    "routes": [
        {
            "overview_polyline": {"points": "_p~iF~ps|U_ulLnnqC_mqNvxq`@"},
            "legs": [
                {
                    "start_location": {"lat": 38.5, "lng": -120.2},
                    "end_location": {"lat": 43.252, "lng": -126.453},
                    "start_address": "Start Rd",
                    "end_address": "End Ave",
                }
            ],
        }
    ],
}


@pytest.fixture()
def directions_client() -> DirectionsClient:
    return DirectionsClient("test-key")


def _mock_response(status_code: int, json_data: Any = None, text: str = "") -> Mock:
    response = Mock()
    response.status_code = status_code
    response.text = text
    if json_data is not None:
        response.json.return_value = json_data
    else:
        response.json.side_effect = ValueError("Invalid JSON")
    return response


def test_get_route_returns_polyline_and_legs(directions_client: DirectionsClient) -> None:
    response = _mock_response(200, OK_BODY)
    with patch("requests.get", return_value=response) as mock_get:
        result = directions_client.get_route(ORIGIN, DESTINATION)

    assert result.encoded_polyline == "_p~iF~ps|U_ulLnnqC_mqNvxq`@"
    assert len(result.legs) == 1
    assert result.legs[0].start_location == (38.5, -120.2)
    assert result.legs[0].end_address == "End Ave"
    params = mock_get.call_args.kwargs["params"]
    assert params["origin"] == "Ludhiana Bus Stand"
    assert params["destination"] == "30.7225,76.7516"
    assert params["avoid"] == "tolls"
    assert params["traffic_model"] == "pessimistic"
    assert params["key"] == "test-key"


def test_avoid_tolls_can_be_disabled() -> None:
    client = DirectionsClient("test-key", avoid_tolls=False)
    with patch("requests.get", return_value=_mock_response(200, OK_BODY)) as mock_get:
        client.get_route(ORIGIN, DESTINATION)

    assert "avoid" not in mock_get.call_args.kwargs["params"]


def test_zero_results_raises(directions_client: DirectionsClient) -> None:
    response = _mock_response(200, {"status": "ZERO_RESULTS", "routes": []})
    with patch("requests.get", return_value=response):
        with pytest.raises(RouteFetchError) as exc_info:
            directions_client.get_route(ORIGIN, DESTINATION)

    assert "ZERO_RESULTS" in str(exc_info.value)


def test_route_without_legs_raises(directions_client: DirectionsClient) -> None:
    body = {"status": "OK", "routes": [{"overview_polyline": {"points": "??"}, "legs": []}]}
    with patch("requests.get", return_value=_mock_response(200, body)):
        with pytest.raises(RouteFetchError):
            directions_client.get_route(ORIGIN, DESTINATION)


def test_non_200_raises_route_fetch_error(directions_client: DirectionsClient) -> None:
    response = _mock_response(500, {"error": "server"}, text="server error")
    with patch("requests.get", return_value=response):
        with pytest.raises(RouteFetchError) as exc_info:
            directions_client.get_route(ORIGIN, DESTINATION)

    assert "500" in str(exc_info.value)


def test_network_error_raises_route_fetch_error(directions_client: DirectionsClient) -> None:
    with patch("requests.get", side_effect=requests.exceptions.ConnectionError("boom")):
        with pytest.raises(RouteFetchError):
            directions_client.get_route(ORIGIN, DESTINATION)


def test_invalid_json_raises_route_fetch_error(directions_client: DirectionsClient) -> None:
    with patch("requests.get", return_value=_mock_response(200, None)):
        with pytest.raises(RouteFetchError):
            directions_client.get_route(ORIGIN, DESTINATION)


def test_non_object_json_raises_route_fetch_error(directions_client: DirectionsClient) -> None:
    with patch("requests.get", return_value=_mock_response(200, ["OK"])):
        with pytest.raises(RouteFetchError):
            directions_client.get_route(ORIGIN, DESTINATION)


@pytest.mark.parametrize(
    "leg",
    [
        "not a leg",
        {"start_location": {"lat": "north", "lng": 1.0}, "end_location": {"lat": 2.0, "lng": 3.0}},
        {"start_location": {"lat": None, "lng": 1.0}, "end_location": {"lat": 2.0, "lng": 3.0}},
    ],
)
def test_malformed_leg_raises_route_fetch_error(directions_client: DirectionsClient, leg: Any) -> None:
    body = {"status": "OK", "routes": [{"overview_polyline": {"points": "??"}, "legs": [leg]}]}
    with patch("requests.get", return_value=_mock_response(200, body)):
        with pytest.raises(RouteFetchError):
            directions_client.get_route(ORIGIN, DESTINATION)


def test_threaded_provider_returns_future() -> None:
    client = MagicMock()
    expected = RouteResult(encoded_polyline="??", legs=[])
    client.get_route.return_value = expected
    provider = ThreadedRouteProvider(client, max_workers=1)

    try:
        future = provider.request_route(ORIGIN, DESTINATION)
        assert future.result(timeout=2) is expected
    finally:
        provider.shutdown()

    client.get_route.assert_called_once_with(ORIGIN, DESTINATION)


def test_threaded_provider_propagates_errors() -> None:
    client = MagicMock()
    client.get_route.side_effect = RouteFetchError("boom")
    provider = ThreadedRouteProvider(client, max_workers=1)

    try:
        future = provider.request_route(ORIGIN, DESTINATION)
        with pytest.raises(RouteFetchError):
            future.result(timeout=2)
    finally:
        provider.shutdown()
