"""Tests for the slip-extraction boundary."""

import pytest
import requests
from unittest.mock import MagicMock, patch

from crossed_ev.services.slip_parser import (
    SlipParserClient,
    SlipParserError,
    assign_sides,
    harvest_odds,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _slip(*odds):
    return {
        "source": "prizepicks",
        "entries": [
            {"player": f"Player {i}", "market": "points", "line": 24.5,
             "selection": "over", "odds": o, "book": "FD"}
            for i, o in enumerate(odds)
        ],
    }


def _response(status_code=200, json_data=None, json_error=False):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = status_code < 400
    if json_error:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = json_data
    return resp


# ---------------------------------------------------------------------------
# harvest_odds
# ---------------------------------------------------------------------------

def test_harvest_in_order():
    """Odds are harvested in slip order."""
    assert harvest_odds(_slip("-119", " +105 ", "1.91")) == ["-119", "+105", "1.91"]


def test_harvest_skips_missing_odds():
    """Entries without odds are skipped."""
    assert harvest_odds(_slip("-119", None, "", "-110")) == ["-119", "-110"]


def test_harvest_numeric_odds_become_text():
    """Numeric odds are returned as text."""
    assert harvest_odds(_slip(-110, 2.5)) == ["-110", "2.5"]


@pytest.mark.parametrize("payload", [None, "text", [], {}, {"entries": "nope"}, {"entries": [1, "x"]}])
def test_harvest_malformed(payload):
    """Malformed payloads harvest nothing."""
    assert harvest_odds(payload) == []


# ---------------------------------------------------------------------------
# assign_sides
# ---------------------------------------------------------------------------

def test_assign_two_or_more():
    """First two odds fill both sides."""
    assert assign_sides(["-110", "+100", "3.2"]) == ("-110", "+100", ["-110", "+100", "3.2"])


def test_assign_single_fills_both_sides():
    """A single price fills both sides."""
    assert assign_sides(["-110"]) == ("-110", "-110", ["-110"])


def test_assign_empty():
    """No odds leaves both sides empty."""
    assert assign_sides([]) == (None, None, [])


# ---------------------------------------------------------------------------
# SlipParserClient
# ---------------------------------------------------------------------------

def test_client_requires_url():
    """Client needs a base URL."""
    with pytest.raises(ValueError):
        SlipParserClient("")


@patch("crossed_ev.services.slip_parser.requests.post")
def test_client_success(mock_post):
    """Successful parse posts the image."""
    mock_post.return_value = _response(json_data=_slip("-110"))
    client = SlipParserClient("http://parser.local/", timeout=5)

    data = client.parse_image(b"\x89PNG", filename="a.png", content_type="image/png")

    assert data["entries"][0]["odds"] == "-110"
    args, kwargs = mock_post.call_args
    assert args[0] == "http://parser.local/api/parse-slip"
    assert kwargs["timeout"] == 5
    assert kwargs["files"]["image"][0] == "a.png"


@patch("crossed_ev.services.slip_parser.requests.post")
def test_client_error_payload(mock_post):
    """Error payload raises SlipParserError."""
    mock_post.return_value = _response(status_code=400, json_data={"error": "No image provided"})
    with pytest.raises(SlipParserError, match="No image provided"):
        SlipParserClient("http://parser.local").parse_image(b"")


@patch("crossed_ev.services.slip_parser.requests.post")
def test_client_error_field_on_200(mock_post):
    """Error field on a 200 still raises."""
    mock_post.return_value = _response(json_data={"error": "Parse error", "raw": "..."})
    with pytest.raises(SlipParserError):
        SlipParserClient("http://parser.local").parse_image(b"img")


@patch("crossed_ev.services.slip_parser.requests.post")
def test_client_non_json(mock_post):
    """Non-JSON response raises with the status."""
    mock_post.return_value = _response(status_code=502, json_error=True)
    with pytest.raises(SlipParserError, match="502"):
        SlipParserClient("http://parser.local").parse_image(b"img")


@patch("crossed_ev.services.slip_parser.requests.post")
def test_client_transport_error(mock_post):
    """Transport errors raise SlipParserError."""
    mock_post.side_effect = requests.exceptions.ConnectionError("refused")
    with pytest.raises(SlipParserError):
        SlipParserClient("http://parser.local").parse_image(b"img")
