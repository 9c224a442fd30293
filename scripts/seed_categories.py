"""Seed the categories table with a starter auto-parts hierarchy."""

import asyncio

from sqlalchemy import select

from partsmarket.core.logging import configure_logging
from partsmarket.db.session import async_session_factory, engine
from partsmarket.models import Base, Category
from partsmarket.services.category_service import CategoryService

CATEGORIES = [
    {
        "name": "Engine",
        "description": "Internal engine components and gaskets",
        "subcategories": [
            {"name": "Filters", "description": "Oil, air, fuel and cabin filters"},
            {"name": "Ignition", "description": "Spark plugs, coils and glow plugs"},
            {"name": "Timing", "description": "Timing belts, chains and tensioners"},
        ],
    },
    {
        "name": "Brakes",
        "description": "Braking system components",
        "subcategories": [
            {"name": "Brake Pads", "description": "Ceramic and semi-metallic friction pads"},
            {"name": "Brake Discs", "description": "Vented, drilled and slotted rotors"},
            {"name": "Calipers", "description": "New and remanufactured brake calipers"},
        ],
    },
    {
        "name": "Suspension",
        "description": "Steering and suspension parts",
        "subcategories": [
            {"name": "Shock Absorbers", "description": "Gas and hydraulic dampers"},
            {"name": "Control Arms", "description": "Wishbones, bushings and ball joints"},
        ],
    },
    {
        "name": "Electrical",
        "description": "Starting, charging and lighting",
        "subcategories": [
            {"name": "Batteries", "description": "Lead-acid and AGM starter batteries"},
            {"name": "Lighting", "description": "Headlamps, tail lights and bulbs"},
        ],
    },
    {
        "name": "Body",
        "description": "Exterior panels, mirrors and trim",
    },
]


async def _get_existing(session, name, parent_id):
    stmt = select(Category).where(Category.name == name)
    if parent_id is None:
        stmt = stmt.where(Category.parent_id.is_(None))
    else:
        stmt = stmt.where(Category.parent_id == parent_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def seed_categories():
    """Seed all categories into the database.

    This function is idempotent - running it multiple times will not
    create duplicate categories. Categories are identified by name and parent.
    """
    print(f"\n{'='*60}")
    print("  Seeding Categories Database")
    print(f"{'='*60}\n")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    added_count = 0
    skipped_count = 0

    async with async_session_factory() as session:
        service = CategoryService(session)

        async def ensure(data, parent=None):
            nonlocal added_count, skipped_count
            parent_id = parent.id if parent else None
            category = await _get_existing(session, data["name"], parent_id)
            if category:
                print(f"  - Category '{data['name']}' ({category.slug}) already exists, skipping")
                skipped_count += 1
                return category

            category = await service.create_category(
                name=data["name"],
                description=data["description"],
                parent_id=parent_id,
            )
            print(f"  + Added category: {category.name} ({category.slug})")
            added_count += 1
            return category

        for root_data in CATEGORIES:
            root = await ensure(root_data)
            for child_data in root_data.get("subcategories", []):
                await ensure(child_data, parent=root)

        total = await service.count_categories()

    await engine.dispose()

    print(f"\n{'='*60}")
    print("  Seeding Complete")
    print(f"{'='*60}")
    print(f"  Added: {added_count} categories")
    print(f"  Skipped: {skipped_count} categories (already exist)")
    print(f"  Total: {total} categories in database\n")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(seed_categories())
