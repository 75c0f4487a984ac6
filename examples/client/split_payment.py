"""
Split payment example using LnwallClient.

Issues a signed split link, opens both invoices through it and waits until
both recipients have been paid.
"""

import logging
import sys

from lnwall.client.client import LnwallClient
from lnwall.common.exceptions import LnwallError


def main() -> None:
    # Configure logging
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    try:
        client = LnwallClient(log_level=logging.INFO)

        split_url = client.create_split_link(
            "alice@getalby.com", "bob@getalby.com", price=500, split=70
        )
        logger.info("Split link: %s", split_url)

        invoices = client.open_split_invoices(split_url)
        logger.info("Pay A: %s", invoices.invoice_a.payment_request)
        logger.info("Pay B: %s", invoices.invoice_b.payment_request)

        client.wait_for_settlement(
            invoices.invoice_a.verify_handle,
            invoices.invoice_b.verify_handle,
            invoices.status_signature,
            timeout=600,
        )
        logger.info("Both invoices settled")
    except LnwallError:
        logger.exception("Split payment failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
