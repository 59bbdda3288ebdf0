#!/usr/bin/env python3
"""
Seed script to create a demo catalog and coupons
"""

import asyncio
from datetime import datetime


async def seed_demo_data():
    """Seed demo data for development"""
    from sqlalchemy import select

    from storefront.database import SessionLocal, engine, Base
    from storefront.models.catalog import Product, Flavor, UpsellProduct
    from storefront.models.coupon import Coupon, CouponType

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo catalog already exists
        result = await db.execute(
            select(Product).where(Product.name == "Classic Pod Kit")
        )
        existing = result.scalar_one_or_none()

        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo catalog...")

        catalog = [
            {
                "name": "Classic Pod Kit",
                "description": "Starter kit with a refillable pod",
                "price": 450,
                "flavors": [
                    ("standard", 40, None),
                ],
            },
            {
                "name": "Fruit Pods",
                "description": "Pre-filled pods, pack of three",
                "price": 300,
                "flavors": [
                    ("Mango", 25, None),
                    ("Grape", 18, None),
                    ("Watermelon", 12, None),
                    ("Lychee Ice", 8, 320),
                ],
            },
            {
                "name": "Dessert Pods",
                "description": "Pre-filled pods, pack of three",
                "price": 320,
                "flavors": [
                    ("Vanilla Custard", 10, None),
                    ("Caramel", 0, None),
                ],
            },
        ]

        for sort_order, entry in enumerate(catalog):
            product = Product(
                name=entry["name"],
                description=entry["description"],
                price=entry["price"],
                sort_order=sort_order,
            )
            db.add(product)
            await db.flush()

            for flavor_order, (name, stock, price) in enumerate(entry["flavors"]):
                db.add(
                    Flavor(
                        product_id=product.id,
                        name=name,
                        stock=stock,
                        price=price,
                        sort_order=flavor_order,
                    )
                )

            print(f"Created product: {product.name} ({len(entry['flavors'])} flavors)")

        upsells = [
            UpsellProduct(name="Lanyard", description="Neck strap", price=50, stock=100),
            UpsellProduct(name="Carry Case", description="Zip case for kit and pods", price=120, stock=30),
        ]
        for upsell in upsells:
            db.add(upsell)

        coupons = [
            Coupon(
                code="WELCOME10",
                name="Welcome discount",
                description="10% off your first order",
                type=CouponType.PERCENTAGE,
                value=10,
                min_order_amount=500,
                max_discount=200,
                per_user_limit=1,
                valid_from=datetime(2026, 1, 1),
                valid_until=datetime(2027, 12, 31, 23, 59, 59),
            ),
            Coupon(
                code="SAVE50",
                name="50 off 1000",
                description="50 off orders of 1000 or more",
                type=CouponType.FIXED_AMOUNT,
                value=50,
                min_order_amount=1000,
                usage_limit=100,
                per_user_limit=1,
                valid_from=datetime(2026, 1, 1),
                valid_until=datetime(2027, 12, 31, 23, 59, 59),
            ),
            Coupon(
                code="FREESHIP",
                name="Free shipping",
                description="Shipping on us",
                type=CouponType.FREE_SHIPPING,
                value=0,
                min_order_amount=300,
                per_user_limit=3,
                valid_from=datetime(2026, 1, 1),
                valid_until=datetime(2027, 12, 31, 23, 59, 59),
            ),
        ]
        for coupon in coupons:
            db.add(coupon)

        await db.commit()

        print(f"""
Demo data created successfully!

Catalog: {len(catalog)} products, {len(upsells)} up-sell products
Coupons: {", ".join(coupon.code for coupon in coupons)}
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
