"""
Configuration settings for the link signing and settlement service.
"""

from __future__ import annotations

import os
from pathlib import Path

from lnwall.common.logging_utils import parse_log_level

SIGNING_KEY_FILE = "signing.key"
MASTER_KEY_FILE = "master.key"


def _optional_float(value: str | None) -> float | None:
    return float(value) if value else None


class Config:
    """Central configuration class for all system settings."""

    def __init__(self) -> None:
        # Key derivation and cipher parameters
        self.KEY_VERSION: int = int(os.getenv("LNWALL_KEY_VERSION", "1"))
        self.PBKDF2_ITERATIONS: int = 100_000
        self.KEY_LENGTH: int = 32  # AES-256
        self.IV_LENGTH: int = 16  # AES block size
        self.SIGNATURE_DELIMITER: str = "|"

        # Issued links
        self.MAX_URL_LENGTH: int = 2048
        self.SERVER_HOST: str = os.getenv("LNWALL_SERVER_HOST", "127.0.0.1")
        self.SERVER_PORT: int = int(os.getenv("LNWALL_SERVER_PORT", "8000"))
        self.SERVER_URL: str = f"http://{self.SERVER_HOST}:{self.SERVER_PORT}"
        self.BASE_URL: str = os.getenv("LNWALL_BASE_URL", self.SERVER_URL).rstrip(
            "/"
        )

        # Invoice oracle
        self.ORACLE_BASE_URL: str = os.getenv(
            "LNWALL_ORACLE_URL", "https://api.getalby.com/lnurl"
        ).rstrip("/")
        self.ORACLE_TIMEOUT: float = float(os.getenv("LNWALL_ORACLE_TIMEOUT", "10"))
        self.MSATS_PER_SAT: int = 1000

        # Settlement polling; no timeout means poll until both settle
        self.POLL_INTERVAL: float = float(os.getenv("LNWALL_POLL_INTERVAL", "5"))
        self.SETTLEMENT_TIMEOUT: float | None = _optional_float(
            os.getenv("LNWALL_SETTLEMENT_TIMEOUT")
        )

        # Secrets
        self.BASE_DIR: Path = Path(__file__).parent.parent
        self.SECRETS_DIR: Path = Path(
            os.getenv("LNWALL_SECRETS_DIR", str(self.BASE_DIR / "secrets"))
        )
        self.SIGNING_KEY_PATH: Path = self.SECRETS_DIR / SIGNING_KEY_FILE
        self.MASTER_KEY_PATH: Path = self.SECRETS_DIR / MASTER_KEY_FILE

        # Logging
        self.LOG_LEVEL: int = parse_log_level(os.getenv("LNWALL_LOG_LEVEL"))

    @staticmethod
    def _read_secret(env_var: str, path: Path) -> bytes | None:
        value = os.getenv(env_var)
        if value:
            return value.encode()
        try:
            data = path.read_bytes().strip()
        except FileNotFoundError:
            return None
        return data or None

    def get_secrets(self) -> tuple[bytes, bytes]:
        """Load the signing secret and the master encryption secret."""
        signing = self._read_secret("LNWALL_SIGNING_SECRET", self.SIGNING_KEY_PATH)
        master = self._read_secret("LNWALL_MASTER_SECRET", self.MASTER_KEY_PATH)
        if signing is None or master is None:
            msg = (
                "Secrets not found in LNWALL_SIGNING_SECRET/LNWALL_MASTER_SECRET or at "
                f"{self.SIGNING_KEY_PATH} and {self.MASTER_KEY_PATH}. "
                "Run 'lnwall keygen' to generate them."
            )
            raise ValueError(msg)
        return signing, master
