"""
Referral link issuing and verification.
"""

from __future__ import annotations

import hmac
import logging
import time
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from lnwall.common.exceptions import ValidationError
from lnwall.common.models import StepOutcome, VerificationReport, VerificationStep

if TYPE_CHECKING:
    from lnwall.common.crypto import Signer

logger = logging.getLogger(__name__)

MISSING_REFERRAL_PARAMS = "Missing required parameters: eventID or publicKey"
MISSING_SPLIT_PARAMS = (
    "Missing required parameters: lightning addresses, price, or split percentage."
)
URL_TOO_LONG = "Generated URL exceeds maximum length"
MISSING_STATUS_PARAMS = "Missing required parameters: verifyA, verifyB or signature"

SPLIT_PURPOSE = "split"
STATUS_PURPOSE = "split-status"


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class ReferralLinkService:
    """Builds and validates signed referral URLs."""

    def __init__(self, signer: Signer, base_url: str, max_url_length: int = 2048):
        self.signer = signer
        self.split_signer = signer.for_purpose(SPLIT_PURPOSE)
        self.status_signer = signer.for_purpose(STATUS_PURPOSE)
        self.base_url = base_url.rstrip("/")
        self.max_url_length = max_url_length

    def _build_url(self, path: str, params: dict[str, str]) -> str:
        url = f"{self.base_url}{path}?{urlencode(params)}"
        if len(url) > self.max_url_length:
            raise ValidationError(URL_TOO_LONG)
        return url

    def create_link(self, event_id: str, public_key: str) -> str:
        """Sign ``(event_id, public_key)`` and embed both with the signature."""
        if not event_id or not public_key:
            raise ValidationError(MISSING_REFERRAL_PARAMS)
        signature = self.signer.sign([event_id, public_key])
        logger.debug("Issued referral link for event %s", event_id)
        return self._build_url(
            "/ref/check",
            {"eventID": event_id, "publicKey": public_key, "signature": signature},
        )

    def validate_link(
        self, event_id: str, public_key: str, signature: str
    ) -> VerificationReport:
        """Recompute the signature and trace each step with its duration."""
        started = time.perf_counter()
        report = VerificationReport(
            event_id=event_id, public_key=public_key, signature=signature
        )

        step_start = time.perf_counter()
        params_ok = bool(event_id and public_key and signature)
        report.steps.append(
            VerificationStep(
                name="parameter_validation",
                outcome=StepOutcome.SUCCESS if params_ok else StepOutcome.FAILED,
                duration_ms=_elapsed_ms(step_start),
            )
        )
        if not params_ok:
            report.total_duration_ms = _elapsed_ms(started)
            return report

        step_start = time.perf_counter()
        message = self.signer.canonicalize([event_id, public_key])
        report.steps.append(
            VerificationStep(
                name="canonicalization",
                outcome=StepOutcome.SUCCESS,
                duration_ms=_elapsed_ms(step_start),
            )
        )

        step_start = time.perf_counter()
        expected = self.signer.sign_message(message)
        report.steps.append(
            VerificationStep(
                name="signature_computation",
                outcome=StepOutcome.SUCCESS,
                duration_ms=_elapsed_ms(step_start),
            )
        )

        step_start = time.perf_counter()
        is_valid = hmac.compare_digest(
            expected.encode("ascii"), signature.encode("utf-8")
        )
        report.steps.append(
            VerificationStep(
                name="signature_comparison",
                outcome=StepOutcome.SUCCESS if is_valid else StepOutcome.FAILED,
                duration_ms=_elapsed_ms(step_start),
            )
        )

        report.is_valid = is_valid
        report.total_duration_ms = _elapsed_ms(started)
        logger.info(
            "Referral link for event %s %s", event_id, "valid" if is_valid else "invalid"
        )
        return report

    @staticmethod
    def _split_fields(
        address_a: str, address_b: str, price: str, split: str
    ) -> list[str]:
        if not (address_a and address_b and price and split):
            raise ValidationError(MISSING_SPLIT_PARAMS)
        return [address_a, address_b, price, split]

    def create_split_link(
        self, address_a: str, address_b: str, price: str, split: str
    ) -> str:
        """Signed link that later opens the two split invoices."""
        fields = self._split_fields(address_a, address_b, price, split)
        return self._build_url(
            "/split/invoices",
            {
                "address1": address_a,
                "address2": address_b,
                "price": price,
                "split": split,
                "signature": self.split_signer.sign(fields),
            },
        )

    def verify_split_link(
        self, address_a: str, address_b: str, price: str, split: str, signature: str
    ) -> None:
        fields = self._split_fields(address_a, address_b, price, split)
        self.split_signer.require(fields, signature)

    def sign_status(self, verify_a: str, verify_b: str) -> str:
        """Signature authorizing settlement polls of exactly these two handles."""
        return self.status_signer.sign([verify_a, verify_b])

    def verify_status(self, verify_a: str, verify_b: str, signature: str) -> None:
        if not (verify_a and verify_b and signature):
            raise ValidationError(MISSING_STATUS_PARAMS)
        self.status_signer.require([verify_a, verify_b], signature)
