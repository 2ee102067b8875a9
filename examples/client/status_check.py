"""
Supply status example.

Polls the public counters the way a landing page refreshes them, without
logging in. Counters read as zero while the registry is unreachable.
"""

import logging
import sys
import time

from earlybadge import BadgeClient
from earlybadge.common.exceptions import ConfigurationError


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    try:
        client = BadgeClient(log_level=logging.INFO)
    except ConfigurationError:
        logger.exception("Error")
        sys.exit(1)

    for _i in range(6):
        supply = client.supply()
        logger.info(
            "Issued %s/%s, remaining %s", supply.issued, supply.cap, supply.remaining
        )
        time.sleep(10)

    logger.info("Status check example completed")


if __name__ == "__main__":
    main()
