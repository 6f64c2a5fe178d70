"""
Demo Data Seeder

Fills the commerce and analytics stores with Faker-generated categories,
products, users, reviews, orders and visitor events. Everything goes
through the same services the API uses, so averages are recomputed and
catalog writes are broadcast exactly as they would be over HTTP.

Usage:
    python -m commerce_hub.ingestion.seed_db --products 50 --users 20
"""

import argparse
import asyncio
import random
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List

import structlog
from faker import Faker

from commerce_hub.broadcast import EntityType
from commerce_hub.config import Settings, get_settings
from commerce_hub.config.logging import configure_logging
from commerce_hub.container import Services
from commerce_hub.database.models import utcnow

logger = structlog.get_logger(__name__)

fake = Faker()

CATEGORY_NAMES = [
    "Electronics",
    "Books",
    "Home & Garden",
    "Sports",
    "Toys",
    "Clothing",
    "Beauty",
    "Grocery",
]

PAGES = ["/", "/products", "/cart", "/checkout", "/account"]
ACTIONS = ["click", "scroll", "add_to_cart", "search"]
GOALS = ["signup", "purchase", "newsletter"]


async def seed_catalog(services: Services, products: int) -> List[Dict[str, Any]]:
    """Create every category and `products` products spread over them."""
    categories = [
        await services.catalog.create(EntityType.CATEGORY, {"name": name})
        for name in CATEGORY_NAMES
    ]

    created = []
    for _ in range(products):
        picked = random.sample(categories, k=random.randint(1, 3))
        created.append(await services.catalog.create(
            EntityType.PRODUCT,
            {
                "name": fake.catch_phrase(),
                "about": fake.paragraph(nb_sentences=3),
                "price": Decimal(str(round(random.uniform(2, 500), 2))),
                "category_ids": [category["id"] for category in picked],
            },
        ))
    logger.info("Catalog seeded", categories=len(categories), products=len(created))
    return created


async def seed_users(services: Services, users: int) -> List[Dict[str, Any]]:
    created = []
    for _ in range(users):
        created.append(await services.users.create({
            "username": fake.unique.user_name(),
            "email": fake.unique.email(),
            "password": fake.password(length=12),
        }))
    logger.info("Users seeded", users=len(created))
    return created


async def seed_activity(
    services: Services,
    products: List[Dict[str, Any]],
    users: List[Dict[str, Any]],
    reviews_per_product: int,
    orders: int,
) -> None:
    """Reviews and orders on the commerce store."""
    reviews = 0
    for product in products:
        for user in random.sample(users, k=min(reviews_per_product, len(users))):
            outcome = await services.reviews.create_review({
                "user_id": user["id"],
                "product_id": product["id"],
                "score": random.randint(1, 5),
                "content": fake.sentence(nb_words=12),
            })
            reviews += 1
            if outcome.aggregate_stale:
                logger.warning("Average score left stale while seeding", product_id=product["id"])

    for _ in range(orders):
        basket = random.choices(products, k=random.randint(1, 4))
        await services.orders.create_order(
            random.choice(users)["id"],
            [product["id"] for product in basket],
        )
    logger.info("Activity seeded", reviews=reviews, orders=orders)


async def seed_analytics(services: Services, visitors: int) -> None:
    """A few views and actions per visitor, and a goal for some of them."""
    events = 0
    for _ in range(visitors):
        visitor = fake.uuid4()
        source = random.choice(["web", "mobile", "email"])
        started = utcnow() - timedelta(days=random.randint(0, 30))

        for step in range(random.randint(1, 5)):
            common = {
                "source": source,
                "url": fake.url().rstrip("/") + random.choice(PAGES),
                "visitor": visitor,
                "created_at": started + timedelta(minutes=step),
                "meta": {"user_agent": fake.user_agent()},
            }
            await services.events.record("views", common)
            await services.events.record("actions", {**common, "action": random.choice(ACTIONS)})
            events += 2

        if random.random() < 0.4:
            await services.events.record("goals", {
                "source": source,
                "url": fake.url(),
                "visitor": visitor,
                "created_at": started + timedelta(minutes=10),
                "meta": {},
                "goal": random.choice(GOALS),
            })
            events += 1
    logger.info("Analytics seeded", visitors=visitors, events=events)


async def seed(
    settings: Settings,
    products: int = 30,
    users: int = 10,
    reviews_per_product: int = 3,
    orders: int = 20,
    visitors: int = 25,
) -> None:
    services = await Services.start(settings)
    try:
        catalog = await seed_catalog(services, products)
        accounts = await seed_users(services, users)
        await seed_activity(services, catalog, accounts, reviews_per_product, orders)
        await seed_analytics(services, visitors)
        logger.info("Database seeding completed successfully!")
    except Exception as e:
        logger.error("Seeding failed", error=str(e), error_type=type(e).__name__)
        raise
    finally:
        await services.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed Commerce Hub with demo data")
    parser.add_argument("--products", type=int, default=30)
    parser.add_argument("--users", type=int, default=10)
    parser.add_argument("--reviews-per-product", type=int, default=3)
    parser.add_argument("--orders", type=int, default=20)
    parser.add_argument("--visitors", type=int, default=25)
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducible data")
    args = parser.parse_args()

    Faker.seed(args.seed)
    random.seed(args.seed)

    settings = get_settings()
    configure_logging(settings)
    asyncio.run(seed(
        settings,
        products=args.products,
        users=args.users,
        reviews_per_product=args.reviews_per_product,
        orders=args.orders,
        visitors=args.visitors,
    ))


if __name__ == "__main__":
    main()
