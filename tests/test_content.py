import asyncio
from urllib.parse import parse_qs, urlsplit

import pytest

from lnwall.common.crypto import Cipher, KeyDeriver, Signer
from lnwall.common.exceptions import (
    DecryptionError,
    PaymentRequiredError,
    SignatureMismatchError,
    ValidationError,
)
from lnwall.server.domain.content_handler import (
    ContentService,
    PaywallService,
    parse_version,
)


def _query(url: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}


@pytest.fixture
def content_service() -> ContentService:
    return ContentService(KeyDeriver(b"master"), Cipher(), "https://lnwall.test")


@pytest.fixture
def paywall(fake_oracle) -> PaywallService:
    return PaywallService(
        Signer(b"k"),
        KeyDeriver(b"master"),
        Cipher(),
        fake_oracle,
        "https://lnwall.test",
    )


def test_encrypt_then_decrypt(content_service: ContentService) -> None:
    encrypted = content_service.encrypt("evt123", "hello")
    assert encrypted.version == 1
    assert encrypted.event_hash == KeyDeriver(b"master").event_hash("evt123")
    assert len(bytes.fromhex(encrypted.iv)) == 16

    decrypted = content_service.decrypt(
        "evt123", encrypted.encrypted, encrypted.iv, encrypted.version
    )
    assert decrypted.decrypted == "hello"
    assert decrypted.event_hash == encrypted.event_hash


def test_decrypt_with_other_event_fails(content_service: ContentService) -> None:
    encrypted = content_service.encrypt("evt123", "hello")
    with pytest.raises(DecryptionError):
        content_service.decrypt("evt124", encrypted.encrypted, encrypted.iv, 1)


def test_decrypt_with_other_version_fails(content_service: ContentService) -> None:
    encrypted = content_service.encrypt("evt123", "hello", version=2)
    assert encrypted.version == 2
    with pytest.raises(DecryptionError):
        content_service.decrypt("evt123", encrypted.encrypted, encrypted.iv, 1)
    assert (
        content_service.decrypt("evt123", encrypted.encrypted, encrypted.iv, 2).decrypted
        == "hello"
    )


def test_old_versions_stay_decryptable() -> None:
    old = ContentService(KeyDeriver(b"master"), Cipher(), "https://x", current_version=1)
    new = ContentService(KeyDeriver(b"master"), Cipher(), "https://x", current_version=2)
    encrypted = old.encrypt("evt123", "legacy")
    assert new.decrypt("evt123", encrypted.encrypted, encrypted.iv, 1).decrypted == "legacy"


def test_decrypt_rejects_bad_hex(content_service: ContentService) -> None:
    with pytest.raises(DecryptionError):
        content_service.decrypt("evt123", "zz", "00" * 16, 1)


def test_encrypt_requires_inputs(content_service: ContentService) -> None:
    with pytest.raises(ValidationError):
        content_service.encrypt("", "hello")
    with pytest.raises(ValidationError):
        content_service.decrypt("evt123", "", "", 1)


def test_create_link_carries_decryption_inputs(content_service: ContentService) -> None:
    encrypted = content_service.encrypt("evt123", "hello")
    query = _query(content_service.create_link(encrypted))
    assert query == {
        "id": "evt123",
        "encryptedCN": encrypted.encrypted,
        "iv": encrypted.iv,
        "version": "1",
    }


@pytest.mark.parametrize("value", ["0", "-2", "abc", ""])
def test_parse_version_rejects_invalid(value: str) -> None:
    with pytest.raises(ValidationError):
        parse_version(value)


def _open_invoice(paywall: PaywallService, price: str = "21"):
    query = _query(paywall.create_pay_link("evt123", "secret text", "alice@x.com", price))
    return asyncio.run(
        paywall.open_invoice(
            query["id"],
            query["version"],
            query["ln"],
            query["price"],
            query["ct"],
            query["signature"],
        )
    )


def test_pay_link_opens_invoice_in_msats(paywall: PaywallService, fake_oracle) -> None:
    invoice = _open_invoice(paywall)
    assert invoice.amount == 21_000
    assert fake_oracle.generated == [("alice@x.com", 21_000)]
    assert not invoice.settled
    assert urlsplit(invoice.release_url).path == "/pay/release"


def test_pay_link_rejects_tampered_price(paywall: PaywallService) -> None:
    query = _query(paywall.create_pay_link("evt123", "secret", "alice@x.com", "21"))
    with pytest.raises(SignatureMismatchError):
        asyncio.run(
            paywall.open_invoice(
                query["id"], query["version"], query["ln"], "1", query["ct"], query["signature"]
            )
        )


def test_release_requires_settlement(paywall: PaywallService, fake_oracle) -> None:
    invoice = _open_invoice(paywall)
    query = _query(invoice.release_url)
    args = (query["verifyURL"], query["ct"], query["id"], query["version"], query["signature"])

    with pytest.raises(PaymentRequiredError):
        asyncio.run(paywall.release(*args))

    fake_oracle.settle(invoice.verify_handle)
    assert asyncio.run(paywall.release(*args)) == "secret text"


def test_release_rejects_swapped_verify_handle(
    paywall: PaywallService, fake_oracle
) -> None:
    invoice = _open_invoice(paywall)
    other = _open_invoice(paywall)
    fake_oracle.settle(other.verify_handle)
    query = _query(invoice.release_url)
    with pytest.raises(SignatureMismatchError):
        asyncio.run(
            paywall.release(
                other.verify_handle,
                query["ct"],
                query["id"],
                query["version"],
                query["signature"],
            )
        )
