"""
Generator for the service signing secret and master encryption secret.
"""

from __future__ import annotations

import logging
import os
import secrets
from typing import TYPE_CHECKING

from lnwall.common.config import MASTER_KEY_FILE, SIGNING_KEY_FILE, Config

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

SECRET_BYTES = 32


class SecretGenerator:
    """Creates the two long-lived secrets the service is started with."""

    def __init__(self, secrets_dir: Path | None = None):
        config = Config()
        self.secrets_dir = secrets_dir or config.SECRETS_DIR

    def generate_secrets(self, *, overwrite: bool = False) -> None:
        """Write fresh ``signing.key`` and ``master.key`` files.

        Replacing existing secrets invalidates every issued link and makes
        all previously encrypted content unrecoverable, so existing files are
        kept unless ``overwrite`` is set.
        """
        signing_path = self.secrets_dir / SIGNING_KEY_FILE
        master_path = self.secrets_dir / MASTER_KEY_FILE
        if not overwrite and (signing_path.exists() or master_path.exists()):
            msg = f"Secrets already exist in {self.secrets_dir}"
            raise FileExistsError(msg)

        logger.info("Generating service secrets...")
        self.secrets_dir.mkdir(parents=True, exist_ok=True)

        for path in (signing_path, master_path):
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                f.write(secrets.token_urlsafe(SECRET_BYTES) + "\n")
            # O_CREAT modes do not apply to files that already existed
            path.chmod(0o600)

        logger.info("Secrets generated and saved:")
        logger.info("  Signing: %s", signing_path)
        logger.info("  Master: %s", master_path)
        logger.info("Keep these files secret!")
