# SPDX-License-Identifier: Apache-2.0

"""
Tracking ID generation.

A tracking ID is the 6-digit number a citizen uses to follow a report.
Generation is a pure draw from an injected random source; uniqueness is
enforced by the store's unique index and handled by ``mint_with_retry``.
"""

import logging
import random
import re
from typing import Callable, TypeVar

from ..middleware.error_handler import DuplicateKeyException, ServiceUnavailableException

logger = logging.getLogger(__name__)

T = TypeVar('T')

TRACKING_ID_MIN = 100000
TRACKING_ID_MAX = 999999
TRACKING_ID_FIELD = "trackingId"
DEFAULT_MAX_ATTEMPTS = 5

_TRACKING_ID_RE = re.compile(r'^\d{6}$')


def generate_tracking_id(rng: random.Random) -> str:
    """Draw a tracking ID uniformly from [100000, 999999]."""
    return str(rng.randint(TRACKING_ID_MIN, TRACKING_ID_MAX))


def is_valid_tracking_id(value: str) -> bool:
    """Check that a value has the tracking ID shape (exactly 6 digits)."""
    return bool(value) and bool(_TRACKING_ID_RE.match(value))


def mint_with_retry(
    insert: Callable[[str], T],
    rng: random.Random,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
) -> T:
    """
    Insert a record under a freshly drawn tracking ID, redrawing on collision.

    Args:
        insert: Persists the record under the given tracking ID. Must raise
            DuplicateKeyException when the ID is already taken.
        rng: Random source for the draws
        max_attempts: Upper bound on draws before giving up

    Returns:
        Whatever ``insert`` returns for the first accepted ID

    Raises:
        ServiceUnavailableException: If every attempt collided
        DuplicateKeyException: If a different unique key was violated
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        tracking_id = generate_tracking_id(rng)
        try:
            return insert(tracking_id)
        except DuplicateKeyException as e:
            if e.key not in (None, TRACKING_ID_FIELD):
                raise
            logger.warning(
                "Tracking ID collision, drawing again",
                extra={
                    "extra_fields": {
                        "tracking_id": tracking_id,
                        "attempt": attempt,
                        "max_attempts": max_attempts
                    }
                }
            )

    raise ServiceUnavailableException(
        f"Could not allocate a unique tracking ID after {max_attempts} attempts"
    )
