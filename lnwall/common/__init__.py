# Common utilities
from lnwall.common.crypto import Cipher as Cipher
from lnwall.common.crypto import KeyDeriver as KeyDeriver
from lnwall.common.crypto import Signer as Signer
from lnwall.common.logging_utils import setup_logger as setup_logger
from lnwall.common.mixins import Configurable as Configurable

__all__ = ["Cipher", "Configurable", "KeyDeriver", "Signer", "setup_logger"]
