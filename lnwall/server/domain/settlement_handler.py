"""
Split payment handler: two invoices from one request, settled jointly.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from lnwall.common.exceptions import (
    InvoiceGenerationError,
    SettlementTimeout,
    ValidationError,
)
from lnwall.common.models import SettlementState, SplitAmounts, SplitInvoices

if TYPE_CHECKING:
    from lnwall.common.interfaces import IInvoiceOracle
    from lnwall.common.models import Invoice

logger = logging.getLogger(__name__)

MAX_PERCENT = 100


def compute_split(total_amount: int, split_percent: int) -> SplitAmounts:
    """Split ``total_amount`` so that A gets ``floor(total * pct / 100)``.

    B takes the remainder, so rounding never loses or creates value and
    always falls on B's side.
    """
    if total_amount < 0:
        msg = "total amount must not be negative"
        raise ValidationError(msg)
    if not 0 <= split_percent <= MAX_PERCENT:
        msg = "split percentage must be between 0 and 100"
        raise ValidationError(msg)
    amount_a = total_amount * split_percent // MAX_PERCENT
    return SplitAmounts(amount_a=amount_a, amount_b=total_amount - amount_a)


class SplitSettlementCoordinator:
    """Creates split invoices and AND-combines their settlement."""

    def __init__(self, oracle: IInvoiceOracle):
        self.oracle = oracle

    async def create_split_invoices(
        self,
        address_a: str,
        address_b: str,
        total_amount: int,
        split_percent: int,
    ) -> SplitInvoices:
        if not address_a or not address_b:
            msg = "both payment addresses are required"
            raise ValidationError(msg)
        if total_amount <= 0:
            msg = "total amount must be positive"
            raise ValidationError(msg)
        amounts = compute_split(total_amount, split_percent)

        invoice_a, invoice_b = await asyncio.gather(
            asyncio.to_thread(
                self.oracle.generate_invoice, address_a, amounts.amount_a
            ),
            asyncio.to_thread(
                self.oracle.generate_invoice, address_b, amounts.amount_b
            ),
        )
        self._require_payment_request(invoice_a)
        self._require_payment_request(invoice_b)
        logger.info(
            "Split invoices created: %d to %s, %d to %s",
            amounts.amount_a,
            address_a,
            amounts.amount_b,
            address_b,
        )
        return SplitInvoices(invoice_a=invoice_a, invoice_b=invoice_b)

    @staticmethod
    def _require_payment_request(invoice: Invoice | None) -> None:
        if invoice is None or not invoice.payment_request:
            raise InvoiceGenerationError

    async def poll(
        self,
        verify_a: str,
        verify_b: str,
        previous: SettlementState | None = None,
    ) -> SettlementState:
        """One poll tick: check both invoices and fold them into the state."""
        if not verify_a or not verify_b:
            msg = "both verify handles are required"
            raise ValidationError(msg)
        settled_a, settled_b = await asyncio.gather(
            asyncio.to_thread(self.oracle.check_settlement, verify_a),
            asyncio.to_thread(self.oracle.check_settlement, verify_b),
        )
        state = (previous or SettlementState()).observe(settled_a, settled_b)
        logger.debug(
            "Settlement poll: a=%s b=%s joint=%s",
            state.status_a.value,
            state.status_b.value,
            state.jointly_settled,
        )
        return state

    async def wait_for_settlement(
        self,
        verify_a: str,
        verify_b: str,
        interval: float = 5.0,
        timeout: float | None = None,
    ) -> SettlementState:
        """Poll until both invoices settle.

        Without ``timeout`` this polls indefinitely; with one it raises
        ``SettlementTimeout`` once the deadline passes.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        state: SettlementState | None = None
        while True:
            state = await self.poll(verify_a, verify_b, state)
            if state.jointly_settled:
                logger.info("Both invoices settled")
                return state
            if deadline is None:
                await asyncio.sleep(interval)
                continue
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise SettlementTimeout
            await asyncio.sleep(min(interval, remaining))
