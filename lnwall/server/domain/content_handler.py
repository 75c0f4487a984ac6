"""
Database-free content encryption and pay-to-decrypt release.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from lnwall.common.exceptions import (
    DecryptionError,
    InvoiceGenerationError,
    PaymentRequiredError,
    ValidationError,
)
from lnwall.common.models import DecryptedContent, EncryptedContent, PaywallInvoice

if TYPE_CHECKING:
    from lnwall.common.crypto import Cipher, KeyDeriver, Signer
    from lnwall.common.interfaces import IInvoiceOracle

logger = logging.getLogger(__name__)

PAY_PURPOSE = "pay"
RELEASE_PURPOSE = "release"


def parse_version(value: str | int) -> int:
    """Parse a key version from a query value."""
    try:
        version = int(value)
    except (TypeError, ValueError) as err:
        msg = "Invalid key version"
        raise ValidationError(msg) from err
    if version < 1:
        msg = "Invalid key version"
        raise ValidationError(msg)
    return version


class ContentService:
    """Encrypts content under a key re-derivable from the event id alone."""

    def __init__(
        self,
        key_deriver: KeyDeriver,
        cipher: Cipher,
        base_url: str,
        current_version: int = 1,
    ):
        self.key_deriver = key_deriver
        self.cipher = cipher
        self.base_url = base_url.rstrip("/")
        self.current_version = current_version

    def encrypt(
        self, event_id: str, content: str, version: int | None = None
    ) -> EncryptedContent:
        if not event_id or not content:
            msg = "Both Event Data (ID) and Data to Encrypt (CN) are required!"
            raise ValidationError(msg)
        version = version or self.current_version
        key = self.key_deriver.derive_key(event_id, version)
        ciphertext, iv = self.cipher.encrypt(content.encode("utf-8"), key)
        logger.debug("Encrypted content for event %s (v%d)", event_id, version)
        return EncryptedContent(
            id=event_id,
            event_hash=self.key_deriver.event_hash(event_id),
            iv=iv.hex(),
            encrypted=ciphertext.hex(),
            version=version,
        )

    def decrypt(
        self, event_id: str, encrypted_hex: str, iv_hex: str, version: int
    ) -> DecryptedContent:
        if not event_id or not encrypted_hex or not iv_hex:
            msg = "Missing required parameters for decryption!"
            raise ValidationError(msg)
        try:
            ciphertext = bytes.fromhex(encrypted_hex)
            iv = bytes.fromhex(iv_hex)
        except ValueError as err:
            raise DecryptionError from err
        key = self.key_deriver.derive_key(event_id, version)
        plaintext = self.cipher.decrypt_text(ciphertext, key, iv)
        return DecryptedContent(
            id=event_id,
            event_hash=self.key_deriver.event_hash(event_id),
            decrypted=plaintext,
        )

    def create_link(self, content: EncryptedContent) -> str:
        """Link that carries everything needed to decrypt ``content``."""
        params = {
            "id": content.id,
            "encryptedCN": content.encrypted,
            "iv": content.iv,
            "version": str(content.version),
        }
        return f"{self.base_url}/content/decrypt?{urlencode(params)}"


class PaywallService:
    """Releases encrypted content once a single invoice settles.

    Pay links and release links are signed under their own derived keys, so
    no other link the service issues can stand in for them.
    """

    def __init__(  # noqa: PLR0913
        self,
        signer: Signer,
        key_deriver: KeyDeriver,
        cipher: Cipher,
        oracle: IInvoiceOracle,
        base_url: str,
        current_version: int = 1,
        msats_per_sat: int = 1000,
    ):
        self.pay_signer = signer.for_purpose(PAY_PURPOSE)
        self.release_signer = signer.for_purpose(RELEASE_PURPOSE)
        self.key_deriver = key_deriver
        self.cipher = cipher
        self.oracle = oracle
        self.base_url = base_url.rstrip("/")
        self.current_version = current_version
        self.msats_per_sat = msats_per_sat

    def create_pay_link(
        self, event_id: str, content: str, address: str, price: str
    ) -> str:
        """Seal ``content`` and sign a link that opens an invoice for it."""
        if not (event_id and content and address and price):
            msg = "Missing required parameters: id, cn, ln, or price"
            raise ValidationError(msg)
        version = self.current_version
        token = self.cipher.seal(
            content.encode("utf-8"), self.key_deriver.derive_key(event_id, version)
        )
        signature = self.pay_signer.sign(
            [address, price, event_id, str(version), token]
        )
        params = {
            "id": event_id,
            "version": str(version),
            "ln": address,
            "price": price,
            "ct": token,
            "signature": signature,
        }
        return f"{self.base_url}/pay/invoice?{urlencode(params)}"

    async def open_invoice(  # noqa: PLR0913
        self,
        event_id: str,
        version: str,
        address: str,
        price: str,
        token: str,
        signature: str,
    ) -> PaywallInvoice:
        if not (event_id and version and address and price and token and signature):
            msg = "Missing required parameters"
            raise ValidationError(msg)
        self.pay_signer.require(
            [address, price, event_id, version, token], signature
        )
        try:
            amount = int(price) * self.msats_per_sat
        except ValueError as err:
            msg = "Invalid price"
            raise ValidationError(msg) from err
        if amount <= 0:
            msg = "Invalid price"
            raise ValidationError(msg)

        invoice = await asyncio.to_thread(self.oracle.generate_invoice, address, amount)
        if not invoice.payment_request:
            raise InvoiceGenerationError
        settled = await asyncio.to_thread(
            self.oracle.check_settlement, invoice.verify_handle
        )
        release_signature = self.release_signer.sign(
            [invoice.verify_handle, token, event_id, version]
        )
        params = {
            "verifyURL": invoice.verify_handle,
            "id": event_id,
            "version": version,
            "ct": token,
            "signature": release_signature,
        }
        return PaywallInvoice(
            payment_request=invoice.payment_request,
            verify_handle=invoice.verify_handle,
            amount=amount,
            settled=settled,
            release_url=f"{self.base_url}/pay/release?{urlencode(params)}",
        )

    async def release(
        self,
        verify_handle: str,
        token: str,
        event_id: str,
        version: str,
        signature: str,
    ) -> str:
        """Decrypt the content if, and only if, its invoice has settled."""
        if not (verify_handle and token and event_id and version and signature):
            msg = "Missing required parameters"
            raise ValidationError(msg)
        self.release_signer.require(
            [verify_handle, token, event_id, version], signature
        )
        key_version = parse_version(version)

        settled = await asyncio.to_thread(self.oracle.check_settlement, verify_handle)
        if not settled:
            raise PaymentRequiredError
        key = self.key_deriver.derive_key(event_id, key_version)
        try:
            plaintext = self.cipher.open(token, key)
        except DecryptionError:
            logger.warning("Settled content for event %s failed to decrypt", event_id)
            raise
        logger.info("Released paid content for event %s", event_id)
        return plaintext
