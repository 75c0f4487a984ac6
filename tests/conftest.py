from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from lnwall.common.config import Config
from lnwall.common.exceptions import InvoiceGenerationError
from lnwall.common.models import Invoice
from lnwall.server.core import LnwallServer

SIGNING_SECRET = b"test-signing-secret"
MASTER_SECRET = b"test-master-secret"
BASE_URL = "http://testserver"


class FakeOracle:
    """In-memory invoice oracle."""

    def __init__(self) -> None:
        self.settled: dict[str, bool] = {}
        self.generated: list[tuple[str, int]] = []
        self.checks: list[str] = []
        self.fail_for: set[str] = set()

    def generate_invoice(self, address: str, amount_msats: int) -> Invoice:
        if address in self.fail_for:
            raise InvoiceGenerationError
        self.generated.append((address, amount_msats))
        handle = f"https://oracle.test/verify/{address}/{len(self.generated)}"
        self.settled.setdefault(handle, False)
        return Invoice(
            payment_request=f"lnbc{amount_msats}n1{address}",
            verify_handle=handle,
            amount=amount_msats,
        )

    def check_settlement(self, verify_handle: str) -> bool:
        self.checks.append(verify_handle)
        return self.settled.get(verify_handle, False)

    def settle(self, verify_handle: str) -> None:
        self.settled[verify_handle] = True


@pytest.fixture
def fake_oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def server(fake_oracle: FakeOracle) -> LnwallServer:
    """LnwallServer with fixed secrets and the in-memory oracle."""
    return LnwallServer(
        config=Config(),
        oracle=fake_oracle,
        signing_secret=SIGNING_SECRET,
        master_secret=MASTER_SECRET,
        base_url=BASE_URL,
    )


@pytest.fixture
def test_client(server: LnwallServer) -> TestClient:
    return TestClient(server.app)
