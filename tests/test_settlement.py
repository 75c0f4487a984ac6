import asyncio
import threading

import pytest

from lnwall.common.exceptions import (
    InvoiceGenerationError,
    OracleUnavailableError,
    SettlementTimeout,
    ValidationError,
)
from lnwall.common.models import Invoice, InvoiceStatus, SettlementState
from lnwall.server.domain.settlement_handler import (
    SplitSettlementCoordinator,
    compute_split,
)


def test_compute_split_example() -> None:
    amounts = compute_split(500, 70)
    assert amounts.amount_a == 350
    assert amounts.amount_b == 150


def test_compute_split_remainder_goes_to_b() -> None:
    amounts = compute_split(101, 50)
    assert amounts.amount_a == 50
    assert amounts.amount_b == 51
    amounts = compute_split(7, 33)
    assert amounts.amount_a == 2
    assert amounts.amount_b == 5


def test_compute_split_conserves_total() -> None:
    for total in [0, 1, 2, 3, 99, 100, 101, 999, 12345, 10**12 + 7]:
        for percent in range(101):
            amounts = compute_split(total, percent)
            assert amounts.amount_a + amounts.amount_b == total
            assert amounts.amount_a == total * percent // 100


@pytest.mark.parametrize(("total", "percent"), [(100, -1), (100, 101), (-1, 50)])
def test_compute_split_rejects_out_of_range(total: int, percent: int) -> None:
    with pytest.raises(ValidationError):
        compute_split(total, percent)


def test_create_split_invoices(fake_oracle) -> None:
    coordinator = SplitSettlementCoordinator(fake_oracle)
    invoices = asyncio.run(
        coordinator.create_split_invoices("alice@x.com", "bob@x.com", 500, 70)
    )
    assert invoices.invoice_a.amount == 350
    assert invoices.invoice_b.amount == 150
    assert sorted(fake_oracle.generated) == [("alice@x.com", 350), ("bob@x.com", 150)]
    assert invoices.invoice_a.payment_request
    assert invoices.invoice_b.verify_handle


@pytest.mark.parametrize(("total", "percent"), [(0, 50), (-10, 50), (100, 150)])
def test_create_split_invoices_validates_before_calling_oracle(
    fake_oracle, total: int, percent: int
) -> None:
    coordinator = SplitSettlementCoordinator(fake_oracle)
    with pytest.raises(ValidationError):
        asyncio.run(coordinator.create_split_invoices("a@x.com", "b@x.com", total, percent))
    assert fake_oracle.generated == []


def test_create_split_invoices_runs_requests_concurrently() -> None:
    barrier = threading.Barrier(2, timeout=5)

    class BarrierOracle:
        def generate_invoice(self, address: str, amount_msats: int) -> Invoice:
            # Both calls must be in flight at once to pass the barrier.
            barrier.wait()
            return Invoice(
                payment_request=f"pr-{address}",
                verify_handle=f"verify-{address}",
                amount=amount_msats,
            )

        def check_settlement(self, verify_handle: str) -> bool:
            return False

    coordinator = SplitSettlementCoordinator(BarrierOracle())
    invoices = asyncio.run(coordinator.create_split_invoices("a", "b", 10, 50))
    assert invoices.invoice_a.payment_request == "pr-a"
    assert invoices.invoice_b.payment_request == "pr-b"


def test_create_split_invoices_fails_whole_on_partial_failure(fake_oracle) -> None:
    fake_oracle.fail_for.add("bob@x.com")
    coordinator = SplitSettlementCoordinator(fake_oracle)
    with pytest.raises(InvoiceGenerationError):
        asyncio.run(coordinator.create_split_invoices("alice@x.com", "bob@x.com", 500, 70))


def test_create_split_invoices_rejects_empty_payment_request() -> None:
    class EmptyOracle:
        def generate_invoice(self, address: str, amount_msats: int) -> Invoice:
            return Invoice(payment_request="", verify_handle="v", amount=amount_msats)

        def check_settlement(self, verify_handle: str) -> bool:
            return False

    coordinator = SplitSettlementCoordinator(EmptyOracle())
    with pytest.raises(InvoiceGenerationError):
        asyncio.run(coordinator.create_split_invoices("a", "b", 10, 50))


def test_create_split_invoices_propagates_unavailable_oracle() -> None:
    class DownOracle:
        def generate_invoice(self, address: str, amount_msats: int) -> Invoice:
            raise OracleUnavailableError

        def check_settlement(self, verify_handle: str) -> bool:
            raise OracleUnavailableError

    coordinator = SplitSettlementCoordinator(DownOracle())
    with pytest.raises(OracleUnavailableError):
        asyncio.run(coordinator.create_split_invoices("a", "b", 10, 50))


def _invoices(fake_oracle):
    coordinator = SplitSettlementCoordinator(fake_oracle)
    invoices = asyncio.run(coordinator.create_split_invoices("a@x.com", "b@x.com", 10, 50))
    return coordinator, invoices.invoice_a.verify_handle, invoices.invoice_b.verify_handle


def test_poll_requires_both_settled(fake_oracle) -> None:
    coordinator, verify_a, verify_b = _invoices(fake_oracle)

    state = asyncio.run(coordinator.poll(verify_a, verify_b))
    assert state.status_a is InvoiceStatus.PENDING
    assert not state.jointly_settled

    fake_oracle.settle(verify_b)
    state = asyncio.run(coordinator.poll(verify_a, verify_b, state))
    assert state.status_b is InvoiceStatus.SETTLED
    assert not state.jointly_settled

    fake_oracle.settle(verify_a)
    state = asyncio.run(coordinator.poll(verify_a, verify_b, state))
    assert state.jointly_settled


def test_poll_is_order_independent(fake_oracle) -> None:
    coordinator, verify_a, verify_b = _invoices(fake_oracle)
    fake_oracle.settle(verify_a)
    assert not asyncio.run(coordinator.poll(verify_a, verify_b)).jointly_settled
    fake_oracle.settle(verify_b)
    assert asyncio.run(coordinator.poll(verify_a, verify_b)).jointly_settled


def test_poll_never_unsettles(fake_oracle) -> None:
    coordinator, verify_a, verify_b = _invoices(fake_oracle)
    previous = SettlementState(status_a=InvoiceStatus.SETTLED)
    state = asyncio.run(coordinator.poll(verify_a, verify_b, previous))
    assert state.status_a is InvoiceStatus.SETTLED
    assert state.status_b is InvoiceStatus.PENDING


def test_poll_requires_handles(fake_oracle) -> None:
    coordinator = SplitSettlementCoordinator(fake_oracle)
    with pytest.raises(ValidationError):
        asyncio.run(coordinator.poll("", "verify-b"))


def test_wait_for_settlement_returns_once_both_settle(fake_oracle) -> None:
    coordinator, verify_a, verify_b = _invoices(fake_oracle)
    original_check = fake_oracle.check_settlement

    def settle_after_a_few_checks(handle: str) -> bool:
        if len(fake_oracle.checks) >= 4:
            fake_oracle.settle(handle)
        return original_check(handle)

    fake_oracle.check_settlement = settle_after_a_few_checks
    state = asyncio.run(
        coordinator.wait_for_settlement(verify_a, verify_b, interval=0, timeout=5)
    )
    assert state.jointly_settled
    assert len(fake_oracle.checks) >= 6


def test_wait_for_settlement_times_out(fake_oracle) -> None:
    coordinator, verify_a, verify_b = _invoices(fake_oracle)
    with pytest.raises(SettlementTimeout):
        asyncio.run(
            coordinator.wait_for_settlement(
                verify_a, verify_b, interval=0.01, timeout=0.05
            )
        )
    assert len(fake_oracle.checks) >= 2
