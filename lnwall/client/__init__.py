from lnwall.client.client import LnwallClient

__all__ = ["LnwallClient"]
