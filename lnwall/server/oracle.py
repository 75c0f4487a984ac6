"""
HTTP client for the Lightning invoicing oracle.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from lnwall.common.exceptions import InvoiceGenerationError, OracleUnavailableError
from lnwall.common.models import Invoice

logger = logging.getLogger(__name__)


class AlbyInvoiceOracle:
    """LNURL invoice generation and settlement checks over plain GET requests."""

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _get_json(
        self,
        url: str,
        params: dict[str, str] | None = None,
        error: type[Exception] = InvoiceGenerationError,
    ) -> Any:
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as err:
            logger.warning("Oracle request to %s failed: %s", url, err)
            raise OracleUnavailableError from err
        if response.status_code >= 400:  # noqa: PLR2004
            logger.warning("Oracle returned %s for %s", response.status_code, url)
            raise error
        try:
            return response.json()
        except ValueError as err:
            logger.warning("Oracle returned malformed JSON for %s", url)
            raise error from err

    def generate_invoice(self, address: str, amount_msats: int) -> Invoice:
        """Request an invoice paying ``amount_msats`` to a lightning address."""
        data = self._get_json(
            f"{self.base_url}/generate-invoice",
            params={"ln": address, "amount": str(amount_msats)},
        )
        invoice = data.get("invoice") if isinstance(data, dict) else None
        if (
            not isinstance(invoice, dict)
            or not invoice.get("pr")
            or not invoice.get("verify")
        ):
            logger.warning("Oracle returned no payment request for %s", address)
            raise InvoiceGenerationError
        logger.debug("Invoice created for %s (%d msats)", address, amount_msats)
        return Invoice(
            payment_request=invoice["pr"],
            verify_handle=invoice["verify"],
            amount=amount_msats,
        )

    def check_settlement(self, verify_handle: str) -> bool:
        """Return the oracle's ``settled`` flag for an invoice."""
        data = self._get_json(verify_handle, error=OracleUnavailableError)
        return bool(isinstance(data, dict) and data.get("settled") is True)
