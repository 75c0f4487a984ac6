"""Business logic services for the lnwall server.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from lnwall.common.exceptions import ValidationError
from lnwall.common.models import (
    ReferralLinkResponse,
    ReleasedContent,
    SettlementStatusResponse,
)
from lnwall.server.domain.content_handler import (
    ContentService,
    PaywallService,
    parse_version,
)
from lnwall.server.domain.referral_handler import ReferralLinkService
from lnwall.server.domain.settlement_handler import SplitSettlementCoordinator

if TYPE_CHECKING:
    import logging

    from lnwall.common.crypto import Cipher, KeyDeriver, Signer
    from lnwall.common.interfaces import IInvoiceOracle
    from lnwall.common.models import (
        DecryptedContent,
        EncryptedContent,
        PaywallInvoice,
        SplitInvoices,
        VerificationReport,
    )


def _parse_int(value: str, message: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as err:
        raise ValidationError(message) from err


class LnwallService:
    """Handles business logic for the lnwall server."""

    def __init__(  # noqa: PLR0913
        self,
        signer: Signer,
        key_deriver: KeyDeriver,
        cipher: Cipher,
        oracle: IInvoiceOracle,
        base_url: str,
        key_version: int,
        max_url_length: int,
        msats_per_sat: int,
        logger: logging.Logger,
    ):
        self.msats_per_sat = msats_per_sat
        self.logger = logger

        self.referral_handler = ReferralLinkService(
            signer=signer, base_url=base_url, max_url_length=max_url_length
        )
        self.settlement_handler = SplitSettlementCoordinator(oracle=oracle)
        self.content_handler = ContentService(
            key_deriver=key_deriver,
            cipher=cipher,
            base_url=base_url,
            current_version=key_version,
        )
        self.paywall_handler = PaywallService(
            signer=signer,
            key_deriver=key_deriver,
            cipher=cipher,
            oracle=oracle,
            base_url=base_url,
            current_version=key_version,
            msats_per_sat=msats_per_sat,
        )

    def health(self) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "timestamp": int(time.time())}

    def create_referral_link(
        self, event_id: str, public_key: str
    ) -> ReferralLinkResponse:
        url = self.referral_handler.create_link(event_id, public_key)
        return ReferralLinkResponse(referral_url=url)

    def check_referral_link(
        self, event_id: str, public_key: str, signature: str
    ) -> VerificationReport:
        return self.referral_handler.validate_link(event_id, public_key, signature)

    def create_split_link(
        self, address_a: str, address_b: str, price: str, split: str
    ) -> ReferralLinkResponse:
        url = self.referral_handler.create_split_link(
            address_a, address_b, price, split
        )
        return ReferralLinkResponse(referral_url=url)

    async def open_split_invoices(  # noqa: PLR0913
        self,
        address_a: str,
        address_b: str,
        price: str,
        split: str,
        signature: str,
    ) -> SplitInvoices:
        """Verify a split link, then create both invoices in millisats."""
        self.referral_handler.verify_split_link(
            address_a, address_b, price, split, signature
        )
        message = "Invalid price or split percentage."
        total_msats = _parse_int(price, message) * self.msats_per_sat
        split_percent = _parse_int(split, message)
        invoices = await self.settlement_handler.create_split_invoices(
            address_a, address_b, total_msats, split_percent
        )
        invoices.status_signature = self.referral_handler.sign_status(
            invoices.invoice_a.verify_handle, invoices.invoice_b.verify_handle
        )
        return invoices

    async def settlement_status(
        self, verify_a: str, verify_b: str, signature: str
    ) -> SettlementStatusResponse:
        """One poll of a pair of handles this service issued."""
        self.referral_handler.verify_status(verify_a, verify_b, signature)
        state = await self.settlement_handler.poll(verify_a, verify_b)
        return SettlementStatusResponse(
            status_a=state.status_a,
            status_b=state.status_b,
            jointly_settled=state.jointly_settled,
        )

    def encrypt_content(
        self, event_id: str, content: str, version: str | None
    ) -> EncryptedContent:
        key_version = parse_version(version) if version else None
        return self.content_handler.encrypt(event_id, content, key_version)

    def decrypt_content(
        self, event_id: str, encrypted_hex: str, iv_hex: str, version: str
    ) -> DecryptedContent:
        return self.content_handler.decrypt(
            event_id, encrypted_hex, iv_hex, parse_version(version)
        )

    def create_pay_link(
        self, event_id: str, content: str, address: str, price: str
    ) -> ReferralLinkResponse:
        url = self.paywall_handler.create_pay_link(event_id, content, address, price)
        return ReferralLinkResponse(referral_url=url)

    async def open_pay_invoice(  # noqa: PLR0913
        self,
        event_id: str,
        version: str,
        address: str,
        price: str,
        token: str,
        signature: str,
    ) -> PaywallInvoice:
        return await self.paywall_handler.open_invoice(
            event_id, version, address, price, token, signature
        )

    async def release_content(
        self,
        verify_handle: str,
        token: str,
        event_id: str,
        version: str,
        signature: str,
    ) -> ReleasedContent:
        plaintext = await self.paywall_handler.release(
            verify_handle, token, event_id, version, signature
        )
        return ReleasedContent(decrypted=plaintext)
