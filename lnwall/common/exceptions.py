"""
Custom exceptions for the link signing and settlement system.
"""

from __future__ import annotations


class LnwallError(Exception):
    """Base exception carrying the HTTP status it maps to."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class ValidationError(LnwallError):
    """Exception for missing or malformed parameters."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class SignatureMismatchError(LnwallError):
    """Recomputed signature differs from the supplied one."""

    def __init__(self, message: str = "Invalid URL or tampered data") -> None:
        super().__init__(message, 400)


class DecryptionError(LnwallError):
    """Wrong key, wrong IV or corrupt ciphertext."""

    def __init__(self) -> None:
        super().__init__("decryption failed", 400)


class PaymentRequiredError(LnwallError):
    """Content requested before its invoice settled."""

    def __init__(
        self,
        message: str = (
            "Content is currently encrypted. "
            "Please complete your payment to decrypt and access the content."
        ),
    ) -> None:
        super().__init__(message, 402)


class InvoiceGenerationError(LnwallError):
    """Oracle answered but produced no usable invoice."""

    def __init__(
        self, message: str = "Failed to generate invoice. Please try again."
    ) -> None:
        super().__init__(message, 502)


class OracleUnavailableError(LnwallError):
    """Oracle could not be reached."""

    def __init__(self, message: str = "Invoice oracle unavailable") -> None:
        super().__init__(message, 503)


class SettlementTimeout(LnwallError):
    """Polling exceeded its ceiling before both invoices settled."""

    def __init__(self, message: str = "Settlement not completed in time") -> None:
        super().__init__(message, 504)
