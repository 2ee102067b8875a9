"""
Basic usage example of BadgeClient.

This example logs in through the identity provider, mints a badge if the
caller has none, and lists the badges it holds. Start a development replica
first with ``earlybadge keygen && earlybadge serve`` and export
EARLYBADGE_NETWORK_URL, EARLYBADGE_REGISTRY_ID and EARLYBADGE_IDENTITY_PROVIDER.
"""

import logging
import sys

from earlybadge import BadgeClient
from earlybadge.common.exceptions import BadgeClientError


def main() -> None:
    # Configure logging
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    try:
        client = BadgeClient(log_level=logging.INFO, anchor="10000")

        session = client.login()
        logger.info("Logged in as %s", session.principal)

        if client.owns_any_badge():
            logger.info("Already holding badges: %s", client.get_owned_badges())
        else:
            badge_id = client.claim_or_mint()
            logger.info("Minted badge #%s", badge_id)

        logger.info("Remaining supply: %s", client.remaining_supply())
        client.logout()
    except BadgeClientError:
        logger.exception("Error")
        sys.exit(1)


if __name__ == "__main__":
    main()
