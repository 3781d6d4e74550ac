"""
Destination address screening.

Asks an external sanctions screening service about the payout address.
The service answers `GET /{address}` with 403 for a sanctioned address
and 2xx for a clear one. Every other outcome, including transport
errors, is reported as FAILED; the caller must refuse the withdrawal.
"""

import logging
from enum import Enum
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class ScreeningResult(str, Enum):
    """Outcome of a screening lookup."""
    ALLOWED = "ALLOWED"
    SANCTIONED = "SANCTIONED"
    FAILED = "FAILED"


class ScreeningClient:
    """HTTP client for the screening service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def screen(self, address: str) -> ScreeningResult:
        url = f"{self.base_url}/{address}"
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Screening request for %s failed: %s", address, e)
            return ScreeningResult.FAILED

        if response.status_code == 403:
            return ScreeningResult.SANCTIONED
        if 200 <= response.status_code < 300:
            return ScreeningResult.ALLOWED

        logger.warning(
            "Screening service returned %s for %s", response.status_code, address
        )
        return ScreeningResult.FAILED

    def close(self) -> None:
        self._session.close()
