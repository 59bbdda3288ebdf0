"""Order number and verification code minting"""

import asyncio
import random
import secrets
import string
from datetime import datetime
from typing import Callable, Optional

import structlog
from sqlalchemy import select

from storefront.models.order import Order
from storefront.services.store import Store

logger = structlog.get_logger()

ALPHABET = string.digits + string.ascii_uppercase
VERIFICATION_CODE_LENGTH = 6


def format_order_number(prefix: str, moment: datetime, tail: Optional[str] = None) -> str:
    """
    PREFIX + YYYYMMDDHHMMSS + two trailing characters.

    The tail defaults to the centiseconds of `moment`, which keeps numbers
    sortable by creation time.
    """
    if tail is None:
        tail = f"{moment.microsecond // 10000:02d}"
    return f"{prefix}{moment:%Y%m%d%H%M%S}{tail}"


def generate_verification_code(length: int = VERIFICATION_CODE_LENGTH) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


class OrderNumberGenerator:
    """
    Time-derived order numbers, checked against the orders table.

    Check-then-insert can still race under extreme concurrency; the unique
    constraint on orders.order_number catches that and the coordinator
    regenerates once.
    """

    def __init__(
        self,
        store: Store,
        prefix: str = "ORD",
        max_attempts: int = 10,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.prefix = prefix
        self.max_attempts = max_attempts
        self.clock = clock

    async def generate(self) -> str:
        for attempt in range(1, self.max_attempts + 1):
            candidate = format_order_number(self.prefix, self.clock())
            if not await self._exists(candidate):
                return candidate

            logger.debug("Order number collision", order_number=candidate, attempt=attempt)
            await asyncio.sleep(random.uniform(0.001, 0.011))

        # give up on the clock and randomise the tail
        tail = "".join(secrets.choice(ALPHABET) for _ in range(2))
        candidate = format_order_number(self.prefix, self.clock(), tail)
        logger.warning("Using fallback order number", order_number=candidate, attempts=self.max_attempts)
        return candidate

    async def _exists(self, order_number: str) -> bool:
        existing = await self.store.scalar(
            select(Order.id).where(Order.order_number == order_number)
        )
        return existing is not None
