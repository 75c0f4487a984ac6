"""
Routes for the lnwall server.
"""

from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from lnwall.common.exceptions import LnwallError
from lnwall.common.models import (
    DecryptedContent,
    EncryptedContent,
    PaywallInvoice,
    ReferralLinkResponse,
    ReleasedContent,
    SettlementStatusResponse,
    SplitInvoices,
)

from .services import LnwallService


class LnwallRoutes:
    """Handles FastAPI routes for the lnwall server."""

    def __init__(self, service: LnwallService):
        self.service = service

    def setup_routes(self, app: FastAPI) -> None:
        """Setup API routes on the FastAPI app."""

        app.get("/health")(self.health)
        app.get("/ref/create")(self.create_referral)
        app.get("/ref/check")(self.check_referral)
        app.get("/split/create")(self.create_split)
        app.get("/split/invoices")(self.split_invoices)
        app.get("/split/status")(self.split_status)
        app.get("/content/encrypt")(self.encrypt_content)
        app.get("/content/decrypt")(self.decrypt_content)
        app.get("/pay/create")(self.create_pay_link)
        app.get("/pay/invoice")(self.pay_invoice)
        app.get("/pay/release")(self.pay_release)

    async def health(self) -> dict[str, Any]:
        """Handle /health endpoint."""
        return self.service.health()

    async def create_referral(
        self,
        event_id: str = Query("", alias="eventID"),
        public_key: str = Query("", alias="publicKey"),
    ) -> ReferralLinkResponse:
        """Handle /ref/create endpoint."""
        try:
            return self.service.create_referral_link(event_id, public_key)
        except LnwallError as e:
            raise HTTPException(e.status_code, str(e))

    async def check_referral(
        self,
        event_id: str = Query("", alias="eventID"),
        public_key: str = Query("", alias="publicKey"),
        signature: str = "",
    ) -> JSONResponse:
        """Handle /ref/check endpoint; 200 when valid, 400 otherwise."""
        report = self.service.check_referral_link(event_id, public_key, signature)
        return JSONResponse(
            content=report.model_dump(mode="json"),
            status_code=200 if report.is_valid else 400,
        )

    async def create_split(
        self,
        address1: str = "",
        address2: str = "",
        price: str = "",
        split: str = "",
    ) -> ReferralLinkResponse:
        """Handle /split/create endpoint."""
        try:
            return self.service.create_split_link(address1, address2, price, split)
        except LnwallError as e:
            raise HTTPException(e.status_code, str(e))

    async def split_invoices(
        self,
        address1: str = "",
        address2: str = "",
        price: str = "",
        split: str = "",
        signature: str = "",
    ) -> SplitInvoices:
        """Handle /split/invoices endpoint."""
        try:
            return await self.service.open_split_invoices(
                address1, address2, price, split, signature
            )
        except LnwallError as e:
            raise HTTPException(e.status_code, str(e))

    async def split_status(
        self,
        verify_a: str = Query("", alias="verifyA"),
        verify_b: str = Query("", alias="verifyB"),
        signature: str = "",
    ) -> SettlementStatusResponse:
        """Handle /split/status endpoint."""
        try:
            return await self.service.settlement_status(verify_a, verify_b, signature)
        except LnwallError as e:
            raise HTTPException(e.status_code, str(e))

    async def encrypt_content(
        self,
        id: str = "",  # noqa: A002
        cn: str = "",
        version: str | None = None,
    ) -> EncryptedContent:
        """Handle /content/encrypt endpoint."""
        try:
            return self.service.encrypt_content(id, cn, version)
        except LnwallError as e:
            raise HTTPException(e.status_code, str(e))

    async def decrypt_content(
        self,
        id: str = "",  # noqa: A002
        encrypted_cn: str = Query("", alias="encryptedCN"),
        iv: str = "",
        version: str = "1",
    ) -> DecryptedContent:
        """Handle /content/decrypt endpoint."""
        try:
            return self.service.decrypt_content(id, encrypted_cn, iv, version)
        except LnwallError as e:
            raise HTTPException(e.status_code, str(e))

    async def create_pay_link(
        self,
        id: str = "",  # noqa: A002
        cn: str = "",
        ln: str = "",
        price: str = "",
    ) -> ReferralLinkResponse:
        """Handle /pay/create endpoint."""
        try:
            return self.service.create_pay_link(id, cn, ln, price)
        except LnwallError as e:
            raise HTTPException(e.status_code, str(e))

    async def pay_invoice(  # noqa: PLR0913
        self,
        id: str = "",  # noqa: A002
        version: str = "",
        ln: str = "",
        price: str = "",
        ct: str = "",
        signature: str = "",
    ) -> PaywallInvoice:
        """Handle /pay/invoice endpoint."""
        try:
            return await self.service.open_pay_invoice(
                id, version, ln, price, ct, signature
            )
        except LnwallError as e:
            raise HTTPException(e.status_code, str(e))

    async def pay_release(  # noqa: PLR0913
        self,
        verify_url: str = Query("", alias="verifyURL"),
        id: str = "",  # noqa: A002
        version: str = "",
        ct: str = "",
        signature: str = "",
    ) -> ReleasedContent:
        """Handle /pay/release endpoint."""
        try:
            return await self.service.release_content(
                verify_url, ct, id, version, signature
            )
        except LnwallError as e:
            raise HTTPException(e.status_code, str(e))
