"""Cryptographic primitives: link signing, key derivation and content encryption.

All three are pure functions of their inputs and a secret that is read once at
startup, so instances can be shared across concurrent requests without locks.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import os
from functools import lru_cache
from typing import TYPE_CHECKING

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher as _AESCipher
from cryptography.hazmat.primitives.ciphers import algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from lnwall.common.exceptions import (
    DecryptionError,
    SignatureMismatchError,
    ValidationError,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = "|"
DEFAULT_ITERATIONS = 100_000
KEY_LENGTH = 32
IV_LENGTH = 16
BLOCK_SIZE_BITS = 128


def b64url_encode(data: bytes) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(text: str) -> bytes:
    """Inverse of :func:`b64url_encode`; tolerates missing padding."""
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


class Signer:
    """HMAC-SHA256 signatures over an ordered tuple of string fields.

    Fields are joined with ``|`` before hashing. No escaping is applied, so two
    tuples whose values contain the delimiter can canonicalize to the same
    string (``("a|b", "c")`` and ``("a", "b|c")``). Callers must keep the
    delimiter out of signed identifiers; escaping it here would invalidate
    every link already issued.
    """

    def __init__(self, secret: bytes, delimiter: str = DEFAULT_DELIMITER):
        self._secret = secret
        self.delimiter = delimiter

    def for_purpose(self, purpose: str) -> Signer:
        """Signer keyed by ``HMAC(secret, purpose)``.

        Signatures made for one purpose never verify under another, whatever
        the fields contain.
        """
        subkey = hmac.new(self._secret, purpose.encode("utf-8"), hashlib.sha256)
        return Signer(subkey.digest(), self.delimiter)

    def canonicalize(self, fields: Sequence[str]) -> bytes:
        return self.delimiter.join(fields).encode("utf-8")

    def sign_message(self, message: bytes) -> str:
        digest = hmac.new(self._secret, message, hashlib.sha256).digest()
        return b64url_encode(digest)

    def sign(self, fields: Sequence[str]) -> str:
        """Sign the fields in their given order."""
        return self.sign_message(self.canonicalize(fields))

    def verify(self, fields: Sequence[str], candidate: str) -> bool:
        """Recompute the signature and compare it in constant time."""
        expected = self.sign(fields).encode("ascii")
        return hmac.compare_digest(expected, candidate.encode("utf-8"))

    def require(self, fields: Sequence[str], candidate: str) -> None:
        """Like :meth:`verify` but raises on mismatch."""
        if not self.verify(fields, candidate):
            logger.info("Signature mismatch for %d-field message", len(fields))
            raise SignatureMismatchError


@lru_cache(maxsize=256)
def _pbkdf2(password: bytes, salt: bytes, iterations: int, length: int) -> bytes:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=length,
        salt=salt,
        iterations=iterations,
    ).derive(password)


class KeyDeriver:
    """Deterministic, versioned AES keys derived from an event identifier.

    Nothing is stored: the same (master secret, event id, version) always
    produces the same key, so decryption only needs the caller to resupply the
    event id and version.
    """

    def __init__(
        self,
        master_secret: bytes,
        iterations: int = DEFAULT_ITERATIONS,
        key_length: int = KEY_LENGTH,
    ):
        self._master_secret = master_secret
        self.iterations = iterations
        self.key_length = key_length

    def event_hash(self, event_id: str) -> str:
        """Hex HMAC-SHA256 of the event id under the master secret."""
        return hmac.new(
            self._master_secret, event_id.encode("utf-8"), hashlib.sha256
        ).hexdigest()

    def derive_key(self, event_id: str, version: int) -> bytes:
        """PBKDF2 key for ``event_id`` at ``version``; the event hash is the salt."""
        if isinstance(version, bool) or not isinstance(version, int) or version < 1:
            msg = "key version must be a positive integer"
            raise ValidationError(msg)
        password = self._master_secret + f"-{version}".encode()
        salt = self.event_hash(event_id).encode("ascii")
        return _pbkdf2(password, salt, self.iterations, self.key_length)


class Cipher:
    """AES-256-CBC with PKCS#7 padding and a fresh random IV per message.

    Provides confidentiality only. Tamper evidence comes from the signed link
    that carries the ciphertext and from binding the key to the event id.
    """

    @staticmethod
    def encrypt(plaintext: bytes, key: bytes) -> tuple[bytes, bytes]:
        """Return ``(ciphertext, iv)``."""
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = _AESCipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        return encryptor.update(padded) + encryptor.finalize(), iv

    @staticmethod
    def decrypt(ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
        try:
            decryptor = _AESCipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as err:
            raise DecryptionError from err

    @classmethod
    def decrypt_text(cls, ciphertext: bytes, key: bytes, iv: bytes) -> str:
        """Decrypt and decode as UTF-8; undecodable output counts as a wrong key."""
        plaintext = cls.decrypt(ciphertext, key, iv)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as err:
            raise DecryptionError from err

    @classmethod
    def seal(cls, plaintext: bytes, key: bytes) -> str:
        """Encrypt into a single ``base64url(iv || ciphertext)`` token."""
        ciphertext, iv = cls.encrypt(plaintext, key)
        return b64url_encode(iv + ciphertext)

    @classmethod
    def open(cls, token: str, key: bytes) -> str:
        """Inverse of :meth:`seal`, returning text."""
        try:
            raw = b64url_decode(token)
        except (binascii.Error, ValueError) as err:
            raise DecryptionError from err
        if len(raw) <= IV_LENGTH:
            raise DecryptionError
        return cls.decrypt_text(raw[IV_LENGTH:], key, raw[:IV_LENGTH])
