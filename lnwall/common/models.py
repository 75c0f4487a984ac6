"""
Pydantic models for request/response validation.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class StepOutcome(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class VerificationStep(BaseModel):
    name: str
    outcome: StepOutcome
    duration_ms: float


class VerificationReport(BaseModel):
    """Trace of a signature check; timings are informational only."""

    event_id: str
    public_key: str
    signature: str
    steps: list[VerificationStep] = Field(default_factory=list)
    total_duration_ms: float = 0.0
    is_valid: bool = False


class ReferralLinkResponse(BaseModel):
    referral_url: str


class Invoice(BaseModel):
    payment_request: str
    verify_handle: str
    amount: int
    settled: bool = False


class SplitAmounts(BaseModel):
    amount_a: int
    amount_b: int

    @property
    def total(self) -> int:
        return self.amount_a + self.amount_b


class SplitInvoices(BaseModel):
    invoice_a: Invoice
    invoice_b: Invoice
    # Authorizes /split/status polls for these two verify handles
    status_signature: str = ""


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    SETTLED = "settled"

    def advance(self, settled: bool) -> InvoiceStatus:  # noqa: FBT001
        """Next status given the latest observation; never leaves SETTLED."""
        if self is InvoiceStatus.SETTLED or settled:
            return InvoiceStatus.SETTLED
        return InvoiceStatus.PENDING


class SettlementState(BaseModel):
    status_a: InvoiceStatus = InvoiceStatus.PENDING
    status_b: InvoiceStatus = InvoiceStatus.PENDING

    @property
    def jointly_settled(self) -> bool:
        return (
            self.status_a is InvoiceStatus.SETTLED
            and self.status_b is InvoiceStatus.SETTLED
        )

    def observe(self, settled_a: bool, settled_b: bool) -> SettlementState:  # noqa: FBT001
        return SettlementState(
            status_a=self.status_a.advance(settled_a),
            status_b=self.status_b.advance(settled_b),
        )


class SettlementStatusResponse(BaseModel):
    status_a: InvoiceStatus
    status_b: InvoiceStatus
    jointly_settled: bool


class EncryptedContent(BaseModel):
    id: str
    event_hash: str
    iv: str
    encrypted: str
    version: int


class DecryptedContent(BaseModel):
    id: str
    event_hash: str
    decrypted: str


class PaywallInvoice(BaseModel):
    payment_request: str
    verify_handle: str
    amount: int
    settled: bool
    release_url: str


class ReleasedContent(BaseModel):
    decrypted: str
