"""
Cart validation and server-side pricing.

Resolves each submitted cart line against the live catalog and prices it
from the database. Client-submitted prices are never read.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence
from uuid import UUID

import structlog
from sqlalchemy import select

from storefront.models.catalog import Product, Flavor, UpsellProduct
from storefront.services.errors import (
    EmptyCartError,
    FlavorNotFoundError,
    InvalidLineFormatError,
    InvalidQuantityError,
    ProductNotFoundError,
)
from storefront.services.store import Store

logger = structlog.get_logger()


@dataclass
class CartLine:
    """A line as submitted by the customer"""
    quantity: int
    product_id: Optional[UUID] = None
    flavor: Optional[str] = None
    upsell_product_id: Optional[UUID] = None
    is_upsell: bool = False


@dataclass
class PricedLine:
    """A cart line resolved to a catalog SKU with its frozen price"""
    product_name: str
    unit_price: int
    quantity: int
    subtotal: int
    product_id: Optional[UUID] = None
    flavor_name: Optional[str] = None
    upsell_product_id: Optional[UUID] = None

    @property
    def is_upsell(self) -> bool:
        return self.upsell_product_id is not None


class OrderValidator:
    """Walks the cart and resolves every line or fails on the first bad one"""

    def __init__(self, store: Store, default_flavor_name: str = "standard"):
        self.store = store
        self.default_flavor_name = default_flavor_name

    async def validate(self, lines: Sequence[CartLine]) -> List[PricedLine]:
        if not lines:
            raise EmptyCartError()

        priced = []
        for index, line in enumerate(lines):
            _check_quantity(index, line.quantity)

            if line.is_upsell:
                if line.upsell_product_id is None or line.product_id is not None:
                    raise InvalidLineFormatError(index, "an up-sell line needs upsell_product_id and no product_id")
                if line.flavor:
                    raise InvalidLineFormatError(index, "up-sell products have no flavors")
                priced.append(await self._resolve_upsell(line))
            else:
                if line.product_id is None or line.upsell_product_id is not None:
                    raise InvalidLineFormatError(index, "a product line needs product_id and no upsell_product_id")
                priced.append(await self._resolve_product(line))

        logger.debug("Cart validated", line_count=len(priced))
        return priced

    async def _resolve_upsell(self, line: CartLine) -> PricedLine:
        upsell = await self.store.get(
            select(UpsellProduct).where(
                UpsellProduct.id == line.upsell_product_id,
                UpsellProduct.is_active == True,
            )
        )
        if upsell is None:
            raise ProductNotFoundError(line.upsell_product_id, upsell=True)

        return PricedLine(
            upsell_product_id=upsell.id,
            product_name=upsell.name,
            unit_price=upsell.price,
            quantity=line.quantity,
            subtotal=upsell.price * line.quantity,
        )

    async def _resolve_product(self, line: CartLine) -> PricedLine:
        product = await self.store.get(
            select(Product).where(Product.id == line.product_id, Product.is_active == True)
        )
        if product is None:
            raise ProductNotFoundError(line.product_id)

        flavor_name = (line.flavor or "").strip() or self.default_flavor_name
        flavor = await self.store.get(
            select(Flavor).where(
                Flavor.product_id == product.id,
                Flavor.name == flavor_name,
                Flavor.is_active == True,
            )
        )
        if flavor is None:
            available = await self.store.all(
                select(Flavor.name)
                .where(Flavor.product_id == product.id, Flavor.is_active == True)
                .order_by(Flavor.sort_order, Flavor.name)
            )
            logger.info(
                "Flavor not available",
                product_id=str(product.id),
                flavor=flavor_name,
                available=available,
            )
            raise FlavorNotFoundError(product.id, flavor_name, available)

        unit_price = flavor.price if flavor.price is not None else product.price

        return PricedLine(
            product_id=product.id,
            flavor_name=flavor.name,
            product_name=product.name,
            unit_price=unit_price,
            quantity=line.quantity,
            subtotal=unit_price * line.quantity,
        )


def _check_quantity(index: int, quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(index, quantity)
