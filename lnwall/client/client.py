"""
HTTP client for the lnwall service.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from lnwall.common.config import Config
from lnwall.common.exceptions import LnwallError, SettlementTimeout
from lnwall.common.logging_utils import setup_logger
from lnwall.common.models import (
    InvoiceStatus,
    SettlementState,
    SettlementStatusResponse,
    SplitInvoices,
    VerificationReport,
)


class LnwallClient:
    """Client for issuing links and polling split settlement."""

    def __init__(
        self,
        server_url: str | None = None,
        log_level: int | None = None,
        poll_interval: float | None = None,
        request_timeout: float = 10.0,
    ):
        config = Config()
        self.server_url = (server_url or config.SERVER_URL).rstrip("/")
        self.poll_interval = (
            poll_interval if poll_interval is not None else config.POLL_INTERVAL
        )
        self.request_timeout = request_timeout

        self.logger = logging.getLogger(__name__)
        setup_logger(
            self.logger, log_level if log_level is not None else config.LOG_LEVEL
        )

    def _get(self, path: str, params: dict[str, str]) -> requests.Response:
        try:
            return requests.get(
                f"{self.server_url}{path}", params=params, timeout=self.request_timeout
            )
        except requests.RequestException as err:
            self.logger.warning("Request to %s failed: %s", path, err)
            msg = f"lnwall server unreachable: {err}"
            raise LnwallError(msg, 503) from err

    @staticmethod
    def _json_or_raise(response: requests.Response) -> Any:
        if response.status_code >= 400:  # noqa: PLR2004
            try:
                detail = response.json().get("detail", "request failed")
            except ValueError:
                detail = "request failed"
            raise LnwallError(str(detail), response.status_code)
        return response.json()

    def create_referral_link(self, event_id: str, public_key: str) -> str:
        response = self._get(
            "/ref/create", {"eventID": event_id, "publicKey": public_key}
        )
        return self._json_or_raise(response)["referral_url"]

    def check_referral_link(
        self, event_id: str, public_key: str, signature: str
    ) -> VerificationReport:
        """Return the verification report; an invalid link is not an error here."""
        response = self._get(
            "/ref/check",
            {"eventID": event_id, "publicKey": public_key, "signature": signature},
        )
        return VerificationReport.model_validate(response.json())

    def create_split_link(
        self, address_a: str, address_b: str, price: int, split: int
    ) -> str:
        response = self._get(
            "/split/create",
            {
                "address1": address_a,
                "address2": address_b,
                "price": str(price),
                "split": str(split),
            },
        )
        return self._json_or_raise(response)["referral_url"]

    def open_split_invoices(self, split_url: str) -> SplitInvoices:
        """Follow a signed split link and return both invoices."""
        try:
            response = requests.get(split_url, timeout=self.request_timeout)
        except requests.RequestException as err:
            msg = f"lnwall server unreachable: {err}"
            raise LnwallError(msg, 503) from err
        return SplitInvoices.model_validate(self._json_or_raise(response))

    def settlement_status(
        self, verify_a: str, verify_b: str, signature: str
    ) -> SettlementStatusResponse:
        """One poll; ``signature`` is the invoices' ``status_signature``."""
        response = self._get(
            "/split/status",
            {"verifyA": verify_a, "verifyB": verify_b, "signature": signature},
        )
        return SettlementStatusResponse.model_validate(self._json_or_raise(response))

    def wait_for_settlement(
        self,
        verify_a: str,
        verify_b: str,
        signature: str,
        interval: float | None = None,
        timeout: float | None = None,
    ) -> SettlementStatusResponse:
        """Poll until both invoices have settled.

        Each tick is an independent request. Once an invoice is seen settled
        it stays settled for the rest of the wait.
        """
        interval = self.poll_interval if interval is None else interval
        deadline = None if timeout is None else time.monotonic() + timeout
        state = SettlementState()
        while True:
            status = self.settlement_status(verify_a, verify_b, signature)
            state = state.observe(
                status.status_a is InvoiceStatus.SETTLED,
                status.status_b is InvoiceStatus.SETTLED,
            )
            if state.jointly_settled:
                self.logger.info("Split payment settled")
                return SettlementStatusResponse(
                    status_a=state.status_a,
                    status_b=state.status_b,
                    jointly_settled=True,
                )
            if deadline is None:
                time.sleep(interval)
                continue
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise SettlementTimeout
            time.sleep(min(interval, remaining))
