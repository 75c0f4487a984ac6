"""
Referral link example using LnwallClient.

Creates a referral link for an event and verifies it, printing the timing of
each verification step.
"""

import logging
import sys
from urllib.parse import parse_qs, urlsplit

from lnwall.client.client import LnwallClient
from lnwall.common.exceptions import LnwallError


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    event_id = sys.argv[1] if len(sys.argv) > 1 else "event-1"
    public_key = sys.argv[2] if len(sys.argv) > 2 else "npub-example"  # noqa: PLR2004

    try:
        client = LnwallClient()
        url = client.create_referral_link(event_id, public_key)
        logger.info("Referral link: %s", url)

        query = {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}
        report = client.check_referral_link(
            query["eventID"], query["publicKey"], query["signature"]
        )
        for step in report.steps:
            logger.info(
                "%-22s %-8s %.3f ms", step.name, step.outcome.value, step.duration_ms
            )
        logger.info("Valid: %s (%.3f ms)", report.is_valid, report.total_duration_ms)
    except LnwallError:
        logger.exception("Referral check failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
