"""
Database seeding script.

Creates the first system administrator and, with --demo, a small catalog
(principals, products, a blog post and an announcement) for development.

    python -m backend.seed
    python -m backend.seed --demo
"""

import argparse
import asyncio
import os

from sqlalchemy import select, func

from backend.app.db.session import AsyncSessionLocal, Base, engine
from backend.app.models.announcement import Announcement
from backend.app.models.blog import Blog
from backend.app.models.customer_registration import CustomerRegistration  # noqa: F401
from backend.app.models.enums import ProductType, UserRole
from backend.app.models.hero_background import HeroBackground  # noqa: F401
from backend.app.models.invitation import Invitation  # noqa: F401
from backend.app.models.newsletter_subscription import NewsletterSubscription  # noqa: F401
from backend.app.models.principal import Principal
from backend.app.models.product import Product
from backend.app.models.user import User
from backend.app.core.security import get_password_hash

ADMIN_NAME = os.getenv("SEED_ADMIN_NAME", "System Administrator")
ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "sysadmin@mhrhci.ph")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "change-me-now")

DEMO_PRINCIPALS = [
    ("Medline", "Manufacturer and distributor of medical supplies.", True),
    ("B. Braun", "Infusion therapy and surgical instruments.", True),
    ("Omron Healthcare", "Home blood pressure monitors and nebulizers.", False),
]

DEMO_PRODUCTS = [
    ("Sterile Gauze Pads", ProductType.MEDICAL_SUPPLIES, "Medline", ["Latex free", "Individually packed"], True),
    ("Infusion Pump", ProductType.MEDICAL_EQUIPMENT, "B. Braun", ["Volumetric", "Drug library"], True),
    ("Digital BP Monitor", ProductType.MEDICAL_EQUIPMENT, "Omron Healthcare", ["Irregular heartbeat detection"], False),
    ("Disposable Syringes", ProductType.MEDICAL_SUPPLIES, "B. Braun", ["Luer lock"], False),
]


async def seed_admin(db) -> None:
    result = await db.execute(select(User).where(User.role == UserRole.SYSTEM_ADMIN))
    if result.scalars().first():
        print("ℹ️  A system administrator already exists, skipping")
        return

    db.add(User(
        name=ADMIN_NAME,
        email=ADMIN_EMAIL.strip().lower(),
        hashed_password=get_password_hash(ADMIN_PASSWORD),
        role=UserRole.SYSTEM_ADMIN,
    ))
    await db.commit()
    print(f"✅ Created SYSTEM_ADMIN user ({ADMIN_EMAIL})")


async def seed_demo_catalog(db) -> None:
    product_count = (await db.execute(select(func.count(Product.id)))).scalar() or 0
    if product_count:
        print("ℹ️  Catalog already has products, skipping demo data")
        return

    principals = {}
    for name, description, is_featured in DEMO_PRINCIPALS:
        principal = Principal(name=name, description=description, is_featured=is_featured)
        db.add(principal)
        principals[name] = principal
    await db.flush()

    for name, product_type, principal_name, features, is_featured in DEMO_PRODUCTS:
        db.add(Product(
            name=name,
            product_type=product_type,
            description=f"{name} from {principal_name}.",
            features=features,
            images=[],
            is_featured=is_featured,
            principal_id=principals[principal_name].id,
        ))

    db.add(Blog(
        title="Choosing the right infusion pump",
        content="<p>Volumetric or syringe driver? A short guide for ward managers.</p>",
        images=[],
    ))
    db.add(Announcement(
        title="Now serving Visayas and Mindanao",
        description="Orders from our new regional warehouses ship within two days.",
    ))
    await db.commit()
    print(f"✅ Created {len(DEMO_PRINCIPALS)} principals, {len(DEMO_PRODUCTS)} products, 1 blog, 1 announcement")


async def main(demo: bool) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")
        await seed_admin(db)
        if demo:
            await seed_demo_catalog(db)

    await engine.dispose()
    print("\n🎉 Seeding completed")
    print("Change the seeded administrator password after the first login.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the database")
    parser.add_argument("--demo", action="store_true", help="also create a demo catalog")
    args = parser.parse_args()
    asyncio.run(main(args.demo))
