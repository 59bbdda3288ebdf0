"""Test configuration and fixtures"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./storefront-test.db")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import timedelta
from types import SimpleNamespace

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.main import app
from storefront.api.deps import get_notifier
from storefront.config import Settings
from storefront.database import Base, build_engine, get_db, utcnow
from storefront.models import Coupon, CouponType, Flavor, Order, Product, UpsellProduct
from storefront.services import CheckoutRequest, CheckoutService, Store


class RecordingNotifier:
    """Collects the order numbers it is called with"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def __call__(self, order_number: str):
        self.calls.append(order_number)
        if self.fail:
            raise RuntimeError("notification backend down")


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite so concurrent sessions get separate connections"""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def checkout_settings():
    """Checkout settings with the shop defaults"""
    return Settings(
        shipping_fee=60,
        free_shipping_threshold=3000,
        default_flavor_name="standard",
        checkout_timeout_seconds=10.0,
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
async def catalog(session_factory):
    """
    Widget (100): Red stock 5, Blue stock 0 priced 150, Green inactive.
    Plain Box (200): default flavor only, stock 10.
    Retired (80): inactive product.
    Carry Case: up-sell priced 50, stock 2.
    """
    async with session_factory() as db:
        widget = Product(name="Widget", price=100)
        plain = Product(name="Plain Box", price=200)
        retired = Product(name="Retired", price=80, is_active=False)
        db.add_all([widget, plain, retired])
        await db.flush()

        db.add_all([
            Flavor(product_id=widget.id, name="Red", stock=5, sort_order=0),
            Flavor(product_id=widget.id, name="Blue", stock=0, price=150, sort_order=1),
            Flavor(product_id=widget.id, name="Green", stock=9, is_active=False, sort_order=2),
            Flavor(product_id=plain.id, name="standard", stock=10),
            Flavor(product_id=retired.id, name="standard", stock=10),
        ])

        case = UpsellProduct(name="Carry Case", price=50, stock=2)
        db.add(case)
        await db.commit()

        return SimpleNamespace(
            widget_id=widget.id,
            plain_id=plain.id,
            retired_id=retired.id,
            case_id=case.id,
        )


@pytest.fixture
async def coupons(session_factory):
    """Coupons valid from yesterday until next month unless noted"""
    now = utcnow()
    window = {"valid_from": now - timedelta(days=1), "valid_until": now + timedelta(days=30)}

    async with session_factory() as db:
        db.add_all([
            Coupon(
                code="SAVE50", name="50 off 1000", type=CouponType.FIXED_AMOUNT,
                value=50, min_order_amount=1000, per_user_limit=1, **window,
            ),
            Coupon(
                code="WELCOME10", name="Welcome", type=CouponType.PERCENTAGE,
                value=10, min_order_amount=500, max_discount=200, per_user_limit=1, **window,
            ),
            Coupon(
                code="FREESHIP", name="Free shipping", type=CouponType.FREE_SHIPPING,
                value=0, min_order_amount=0, per_user_limit=None, **window,
            ),
            Coupon(
                code="LASTONE", name="Last slot", type=CouponType.FIXED_AMOUNT,
                value=10, min_order_amount=0, usage_limit=1, per_user_limit=None, **window,
            ),
            Coupon(
                code="OLD", name="Expired", type=CouponType.FIXED_AMOUNT,
                value=10, min_order_amount=0,
                valid_from=now - timedelta(days=60), valid_until=now - timedelta(days=30),
            ),
            Coupon(
                code="PAUSED", name="Inactive", type=CouponType.FIXED_AMOUNT,
                value=10, min_order_amount=0, is_active=False, **window,
            ),
        ])
        await db.commit()


@pytest.fixture
def place_order(session_factory, checkout_settings, notifier):
    """Run one checkout in its own session, like a request would"""
    async def _place(request: CheckoutRequest, settings: Settings = None, service_hook=None):
        async with session_factory() as session:
            service = CheckoutService(Store(session), settings=settings or checkout_settings, notifier=notifier)
            if service_hook:
                service_hook(service)
            return await service.place_order(request)

    return _place


@pytest.fixture
def db_reader(session_factory):
    """Read helpers that open and close their own session"""
    async def stock(product_id, flavor_name):
        async with session_factory() as db:
            return await db.scalar(
                select(Flavor.stock).where(Flavor.product_id == product_id, Flavor.name == flavor_name)
            )

    async def upsell_stock(upsell_id):
        async with session_factory() as db:
            return await db.scalar(select(UpsellProduct.stock).where(UpsellProduct.id == upsell_id))

    async def order_count():
        async with session_factory() as db:
            return await db.scalar(select(func.count(Order.id)))

    async def coupon(code):
        async with session_factory() as db:
            return await db.scalar(select(Coupon).where(Coupon.code == code))

    return SimpleNamespace(stock=stock, upsell_stock=upsell_stock, order_count=order_count, coupon=coupon)


@pytest.fixture
async def client(session_factory, notifier):
    """Create test client with overridden database and notifier"""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
