"""
Stock ledger.

A conditional UPDATE is the only way stock is taken. The affected row count
decides success; stock is never read and then written back, so two checkouts
racing for the last unit cannot both win.
"""

from typing import NamedTuple
from uuid import UUID

import structlog
from sqlalchemy import select, update

from storefront.models.catalog import Flavor, UpsellProduct
from storefront.services.errors import InsufficientStockError, StockCorruptionError
from storefront.services.store import Store
from storefront.services.validator import PricedLine

logger = structlog.get_logger()


class Decrement(NamedTuple):
    ok: bool
    remaining: int


class StockLedger:
    """Per-SKU quantity on hand"""

    def __init__(self, store: Store):
        self.store = store

    async def try_decrement_flavor(self, product_id: UUID, flavor_name: str, amount: int) -> Decrement:
        """Take `amount` units of a flavor if at least that many are on hand"""
        match = (Flavor.product_id == product_id, Flavor.name == flavor_name)
        result = await self.store.run(
            update(Flavor)
            .where(*match, Flavor.is_active == True, Flavor.stock >= amount)
            .values(stock=Flavor.stock - amount)
            .execution_options(synchronize_session=False)
        )
        remaining = await self.store.scalar(select(Flavor.stock).where(*match))
        return Decrement(result.rowcount == 1, remaining or 0)

    async def try_decrement_upsell(self, upsell_product_id: UUID, amount: int) -> Decrement:
        """Take `amount` units of an up-sell product if at least that many are on hand"""
        result = await self.store.run(
            update(UpsellProduct)
            .where(
                UpsellProduct.id == upsell_product_id,
                UpsellProduct.is_active == True,
                UpsellProduct.stock >= amount,
            )
            .values(stock=UpsellProduct.stock - amount)
            .execution_options(synchronize_session=False)
        )
        remaining = await self.store.scalar(
            select(UpsellProduct.stock).where(UpsellProduct.id == upsell_product_id)
        )
        return Decrement(result.rowcount == 1, remaining or 0)

    async def reserve(self, line: PricedLine) -> int:
        """
        Take the stock a priced line needs.

        Raises InsufficientStockError when the conditional update matched no
        row, and StockCorruptionError if the value read back is negative. The
        caller's transaction rollback undoes the decrement in both cases.
        """
        if line.is_upsell:
            decrement = await self.try_decrement_upsell(line.upsell_product_id, line.quantity)
            label = line.product_name
        else:
            decrement = await self.try_decrement_flavor(line.product_id, line.flavor_name, line.quantity)
            label = f"{line.product_name} ({line.flavor_name})"

        if not decrement.ok:
            logger.info(
                "Insufficient stock",
                item=label,
                requested=line.quantity,
                available=decrement.remaining,
            )
            raise InsufficientStockError(label, line.quantity, decrement.remaining)

        if decrement.remaining < 0:
            logger.error("Negative stock after decrement", item=label, stock=decrement.remaining)
            raise StockCorruptionError(label, decrement.remaining)

        logger.debug("Stock reserved", item=label, quantity=line.quantity, remaining=decrement.remaining)
        return decrement.remaining
