"""
Link signing and split settlement server using FastAPI.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI

from lnwall.common import Cipher, Configurable, KeyDeriver, Signer, setup_logger
from lnwall.common.config import Config
from lnwall.server.oracle import AlbyInvoiceOracle
from lnwall.server.routes import LnwallRoutes
from lnwall.server.services import LnwallService

if TYPE_CHECKING:
    from lnwall.common.interfaces import IInvoiceOracle

OVERRIDABLE = [
    "log_level",
    "server_host",
    "server_port",
    "base_url",
    "key_version",
    "max_url_length",
    "msats_per_sat",
    "pbkdf2_iterations",
    "oracle_base_url",
    "oracle_timeout",
]


class LnwallServer(Configurable):
    """Wires secrets, crypto primitives, services and routes into one app.

    Secrets are loaded once here and never change for the life of the
    process. Keyword overrides take precedence over ``Config`` values.
    """

    log_level: int
    server_host: str
    server_port: int
    base_url: str
    key_version: int
    max_url_length: int
    msats_per_sat: int
    pbkdf2_iterations: int
    oracle_base_url: str
    oracle_timeout: float

    def __init__(
        self,
        config: Config | None = None,
        oracle: IInvoiceOracle | None = None,
        signing_secret: bytes | None = None,
        master_secret: bytes | None = None,
        **overrides: Any,
    ):
        self.config = config or Config()
        self.apply_overrides(overrides, self.config, OVERRIDABLE)

        self.logger = logging.getLogger(__name__)
        setup_logger(self.logger, self.log_level)

        if signing_secret is None or master_secret is None:
            loaded_signing, loaded_master = self.config.get_secrets()
            signing_secret = signing_secret or loaded_signing
            master_secret = master_secret or loaded_master

        self.signer = Signer(signing_secret, self.config.SIGNATURE_DELIMITER)
        self.key_deriver = KeyDeriver(
            master_secret,
            iterations=self.pbkdf2_iterations,
            key_length=self.config.KEY_LENGTH,
        )
        self.cipher = Cipher()
        self.oracle = oracle or AlbyInvoiceOracle(
            self.oracle_base_url, timeout=self.oracle_timeout
        )

        self.service = LnwallService(
            signer=self.signer,
            key_deriver=self.key_deriver,
            cipher=self.cipher,
            oracle=self.oracle,
            base_url=self.base_url,
            key_version=self.key_version,
            max_url_length=self.max_url_length,
            msats_per_sat=self.msats_per_sat,
            logger=self.logger,
        )
        self.app = FastAPI(title="lnwall")
        LnwallRoutes(self.service).setup_routes(self.app)

        self.logger.info(
            "Server configured for http://%s:%s (links issued under %s, key v%d)",
            self.server_host,
            self.server_port,
            self.base_url,
            self.key_version,
        )
