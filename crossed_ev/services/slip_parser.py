"""
Slip-extraction service boundary.

The extraction service (external) turns a bet-slip screenshot into JSON of
the form::

    {"source": "prizepicks", "entries": [{"player": ..., "market": ...,
      "line": 24.5, "selection": "over", "odds": "-119", "book": ...}]}

The only thing the engine takes from it is each entry's ``odds`` text,
which is fed to the odds parser like any other user input.  Entries
without odds are skipped.
"""

import logging
from typing import Any, List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)


class SlipParserError(RuntimeError):
    """The extraction service failed or returned an error payload."""


def harvest_odds(parsed: Any) -> List[str]:
    """
    Collect the non-empty ``odds`` strings from a parsed slip, in order.

    Anything that is not a mapping with an ``entries`` list yields ``[]``.
    """
    if not isinstance(parsed, dict):
        return []
    entries = parsed.get("entries")
    if not isinstance(entries, list):
        return []

    odds = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("odds"):
            continue
        text = str(entry["odds"]).strip()
        if text:
            odds.append(text)
    return odds


def assign_sides(odds: List[str]) -> Tuple[Optional[str], Optional[str], List[str]]:
    """
    Map harvested odds onto the calculator inputs.

    Side A takes the first price, side B the second (or the first again
    when there is only one), and the multi-outcome table takes all of them.
    """
    if not odds:
        return None, None, []
    side_a = odds[0]
    side_b = odds[1] if len(odds) > 1 else odds[0]
    return side_a, side_b, list(odds)


class SlipParserClient:
    """Client for the screenshot-to-slip extraction service"""

    def __init__(self, base_url: str, timeout: float = 30.0):
        if not base_url:
            raise ValueError("Slip parser base_url not configured (SLIP_PARSER_URL)")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def parse_image(
        self,
        image: bytes,
        filename: str = "slip.png",
        content_type: str = "image/png",
    ) -> dict:
        """
        Upload a screenshot and return the structured slip.

        Raises:
            SlipParserError: On transport failure, a non-JSON body, or an
                ``error`` field in the response.
        """
        url = f"{self.base_url}/api/parse-slip"
        files = {"image": (filename, image, content_type)}

        try:
            response = requests.post(url, files=files, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error("Slip parser request failed: %s", e)
            raise SlipParserError(str(e)) from e

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Slip parser returned non-JSON (HTTP %d)", response.status_code)
            raise SlipParserError(f"Non-JSON response (HTTP {response.status_code})") from e

        if not isinstance(data, dict):
            raise SlipParserError(f"Unexpected payload type {type(data).__name__}")
        if not response.ok or data.get("error"):
            message = data.get("error")
            logger.error("Slip parser error (HTTP %d): %s", response.status_code, message)
            raise SlipParserError(message or f"HTTP {response.status_code}")

        logger.info("Slip parsed: %d entries", len(data.get("entries") or []))
        return data
