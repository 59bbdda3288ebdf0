"""Tests for the stock ledger"""

import pytest

from storefront.services import Store
from storefront.services.errors import InsufficientStockError, StockCorruptionError
from storefront.services.stock import Decrement, StockLedger
from storefront.services.validator import PricedLine


def _red_line(catalog, quantity):
    return PricedLine(
        product_id=catalog.widget_id,
        flavor_name="Red",
        product_name="Widget",
        unit_price=100,
        quantity=quantity,
        subtotal=100 * quantity,
    )


@pytest.mark.asyncio
async def test_try_decrement_flavor(session_factory, catalog, db_reader):
    async with session_factory() as session:
        ledger = StockLedger(Store(session))
        result = await ledger.try_decrement_flavor(catalog.widget_id, "Red", 2)
        await session.commit()

    assert result == Decrement(ok=True, remaining=3)
    assert await db_reader.stock(catalog.widget_id, "Red") == 3


@pytest.mark.asyncio
async def test_try_decrement_more_than_on_hand(session_factory, catalog, db_reader):
    async with session_factory() as session:
        ledger = StockLedger(Store(session))
        result = await ledger.try_decrement_flavor(catalog.widget_id, "Red", 6)
        await session.commit()

    assert result == Decrement(ok=False, remaining=5)
    assert await db_reader.stock(catalog.widget_id, "Red") == 5


@pytest.mark.asyncio
async def test_try_decrement_exact_stock_reaches_zero(session_factory, catalog):
    async with session_factory() as session:
        ledger = StockLedger(Store(session))
        result = await ledger.try_decrement_flavor(catalog.widget_id, "Red", 5)

    assert result == Decrement(ok=True, remaining=0)


@pytest.mark.asyncio
async def test_try_decrement_unknown_flavor(session_factory, catalog):
    async with session_factory() as session:
        ledger = StockLedger(Store(session))
        result = await ledger.try_decrement_flavor(catalog.widget_id, "Purple", 1)

    assert result == Decrement(ok=False, remaining=0)


@pytest.mark.asyncio
async def test_try_decrement_upsell(session_factory, catalog, db_reader):
    async with session_factory() as session:
        ledger = StockLedger(Store(session))
        first = await ledger.try_decrement_upsell(catalog.case_id, 2)
        second = await ledger.try_decrement_upsell(catalog.case_id, 1)
        await session.commit()

    assert first == Decrement(ok=True, remaining=0)
    assert second == Decrement(ok=False, remaining=0)
    assert await db_reader.upsell_stock(catalog.case_id) == 0


@pytest.mark.asyncio
async def test_reserve_raises_when_short(session_factory, catalog):
    async with session_factory() as session:
        ledger = StockLedger(Store(session))

        with pytest.raises(InsufficientStockError) as exc_info:
            await ledger.reserve(_red_line(catalog, 7))

    assert exc_info.value.context == {"item_name": "Widget (Red)", "requested": 7, "available": 5}


@pytest.mark.asyncio
async def test_reserve_returns_remaining(session_factory, catalog):
    async with session_factory() as session:
        ledger = StockLedger(Store(session))

        assert await ledger.reserve(_red_line(catalog, 1)) == 4


@pytest.mark.asyncio
async def test_reserve_flags_negative_stock(session_factory, catalog, monkeypatch):
    async with session_factory() as session:
        ledger = StockLedger(Store(session))

        async def corrupted(*args):
            return Decrement(ok=True, remaining=-1)

        monkeypatch.setattr(ledger, "try_decrement_flavor", corrupted)

        with pytest.raises(StockCorruptionError):
            await ledger.reserve(_red_line(catalog, 1))
