"""
Interfaces and protocols for dependency injection.
"""

from __future__ import annotations

from typing import Protocol

from lnwall.common.models import Invoice


class IInvoiceOracle(Protocol):
    """External Lightning invoicing service.

    Both calls are blocking network requests that may fail or time out.
    """

    def generate_invoice(self, address: str, amount_msats: int) -> Invoice: ...

    def check_settlement(self, verify_handle: str) -> bool: ...
