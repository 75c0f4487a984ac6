# lnwall: signed links, derived-key encryption and split payments

from lnwall.client.client import LnwallClient
from lnwall.common.crypto import Cipher, KeyDeriver, Signer
from lnwall.server.domain.settlement_handler import (
    SplitSettlementCoordinator,
    compute_split,
)

__all__ = [
    "Cipher",
    "KeyDeriver",
    "LnwallClient",
    "Signer",
    "SplitSettlementCoordinator",
    "compute_split",
]
