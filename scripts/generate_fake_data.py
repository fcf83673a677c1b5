"""Generate a fake marketplace snapshot for testing and development.

Writes ``products.csv`` and ``activity.csv`` in the layout of the Supabase
``products`` and ``user_activity`` tables, so the API can be run against them
with ``DATA_BACKEND=csv``. Product images are small synthetic pictures whose
average color and aHash are computed with the real feature extractor.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_catalog
        products = generate_fake_catalog(num_products=200)
"""

import argparse
import random
import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

import pandas as pd
from PIL import Image, ImageDraw

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.recommender.features import extract_image_features

# Default configuration constants
DEFAULT_NUM_USERS = 50
DEFAULT_NUM_SELLERS = 10
DEFAULT_NUM_PRODUCTS = 100
DEFAULT_NUM_EVENTS = 1000
DEFAULT_DAYS_BACK = 45
SECONDS_PER_DAY = 86400
FEATURE_FAILURE_RATE = 0.1

CATEGORIES = {
    "pottery": ["Clay", "Terracotta", "Glazed", "Blue Pottery"],
    "textiles": ["Handmade", "Silk", "Woven", "Block Print"],
    "woodwork": ["Carved", "Teak", "Sheesham", "Painted"],
    "jewelry": ["Silver", "Beaded", "Brass", "Tribal"],
    "paintings": ["Madhubani", "Warli", "Pattachitra", "Miniature"],
}
NOUNS = {
    "pottery": ["Vase", "Pot", "Jar", "Bowl", "Lamp"],
    "textiles": ["Scarf", "Saree", "Shawl", "Cushion Cover", "Stole"],
    "woodwork": ["Spoon", "Box", "Elephant", "Wall Panel", "Tray"],
    "jewelry": ["Necklace", "Earrings", "Bangle", "Anklet", "Ring"],
    "paintings": ["Canvas", "Scroll", "Panel", "Portrait", "Mural"],
}
SEARCH_TERMS = ["vase", "scarf", "silver", "wood", "painting", "clay", "handmade", "brass"]


def _synthetic_image(rng: random.Random) -> Image.Image:
    """A 32x32 picture: random background with a random rectangle."""
    background = tuple(rng.randrange(256) for _ in range(3))
    foreground = tuple(rng.randrange(256) for _ in range(3))
    image = Image.new("RGB", (32, 32), background)
    x0, y0 = rng.randrange(16), rng.randrange(16)
    ImageDraw.Draw(image).rectangle(
        [x0, y0, x0 + rng.randrange(8, 16), y0 + rng.randrange(8, 16)], fill=foreground
    )
    return image


def generate_fake_catalog(
    num_products: int = DEFAULT_NUM_PRODUCTS,
    num_sellers: int = DEFAULT_NUM_SELLERS,
    end_date: Optional[datetime] = None,
    seed: int = 42,
) -> pd.DataFrame:
    """Generate synthetic product listings.

    Roughly one listing in ten has no image features, as happens in
    production when extraction fails at upload time.

    Raises:
        ValueError: If any count is non-positive.
    """
    if num_products <= 0 or num_sellers <= 0:
        raise ValueError("num_products and num_sellers must be positive")

    rng = random.Random(seed)
    end_date = end_date or datetime.now(timezone.utc)
    seller_ids = [str(uuid.UUID(int=rng.getrandbits(128))) for _ in range(num_sellers)]

    products = []
    for _ in range(num_products):
        category = rng.choice(list(CATEGORIES))
        title = f"{rng.choice(CATEGORIES[category])} {rng.choice(NOUNS[category])}"
        created_at = end_date - timedelta(seconds=rng.randrange(DEFAULT_DAYS_BACK * 2 * SECONDS_PER_DAY))

        row = {
            "id": str(uuid.UUID(int=rng.getrandbits(128))),
            "seller_id": rng.choice(seller_ids),
            "title": title,
            "category": category,
            "description": f"{title} crafted by hand in small batches.",
            "price": round(rng.uniform(5, 500), 2),
            "image_url": None,
            "created_at": created_at.isoformat(),
            "image_avg_r": None,
            "image_avg_g": None,
            "image_avg_b": None,
            "image_ahash": None,
        }
        if rng.random() >= FEATURE_FAILURE_RATE:
            features = extract_image_features(_synthetic_image(rng))
            if features is not None:
                row.update(features.to_row())
        products.append(row)

    return pd.DataFrame(products)


def generate_fake_activity(
    catalog: pd.DataFrame,
    num_users: int = DEFAULT_NUM_USERS,
    num_events: int = DEFAULT_NUM_EVENTS,
    end_date: Optional[datetime] = None,
    days_back: int = DEFAULT_DAYS_BACK,
    seed: int = 42,
) -> pd.DataFrame:
    """Generate views, searches and stall views for random users.

    Timestamps span ``days_back`` days, so part of the log deliberately falls
    outside the 30-day recommendation window.

    Raises:
        ValueError: If any count is non-positive or the catalog is empty.
    """
    if num_users <= 0 or num_events <= 0 or days_back <= 0:
        raise ValueError("num_users, num_events and days_back must be positive")
    if catalog.empty:
        raise ValueError("Cannot generate activity for an empty catalog")

    rng = random.Random(seed)
    end_date = end_date or datetime.now(timezone.utc)
    user_ids: List[str] = [f"user-{i}" for i in range(1, num_users + 1)]
    product_rows = catalog[["id", "seller_id"]].to_dict(orient="records")

    events = []
    for _ in range(num_events):
        timestamp = end_date - timedelta(seconds=rng.randrange(days_back * SECONDS_PER_DAY))
        event = {
            "user_id": rng.choice(user_ids),
            "activity_type": "view",
            "product_id": None,
            "query": None,
            "stall_id": None,
            "timestamp": timestamp.isoformat(),
        }
        roll = rng.random()
        if roll < 0.7:
            event["product_id"] = rng.choice(product_rows)["id"]
        elif roll < 0.9:
            event["activity_type"] = "search"
            event["query"] = rng.choice(SEARCH_TERMS)
        else:
            event["activity_type"] = "stall_view"
            event["stall_id"] = rng.choice(product_rows)["seller_id"]
        events.append(event)

    df = pd.DataFrame(events)
    return df.sort_values("timestamp").reset_index(drop=True)


def main() -> None:
    """Generate a snapshot and save it to the data directory."""
    parser = argparse.ArgumentParser(description="Generate a fake marketplace snapshot")
    parser.add_argument("--output-dir", default=str(project_root / "data"))
    parser.add_argument("--num-products", type=int, default=DEFAULT_NUM_PRODUCTS)
    parser.add_argument("--num-sellers", type=int, default=DEFAULT_NUM_SELLERS)
    parser.add_argument("--num-users", type=int, default=DEFAULT_NUM_USERS)
    parser.add_argument("--num-events", type=int, default=DEFAULT_NUM_EVENTS)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    print(f"Generating {args.num_products} products and {args.num_events} events...")

    try:
        catalog = generate_fake_catalog(args.num_products, args.num_sellers, seed=args.seed)
        activity = generate_fake_activity(
            catalog, num_users=args.num_users, num_events=args.num_events, seed=args.seed
        )
    except ValueError as e:
        print(f"Error generating data: {e}")
        sys.exit(1)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    catalog.to_csv(output_dir / "products.csv", index=False)
    activity.to_csv(output_dir / "activity.csv", index=False)

    print(f"\nData generated successfully!")
    print(f"Saved to: {output_dir}")
    print(f"\nData summary:")
    print(f"  Products: {len(catalog)} ({catalog['image_ahash'].notna().sum()} with image features)")
    print(f"  Events: {len(activity)}")
    print(f"  Event types: {activity['activity_type'].value_counts().to_dict()}")
    print(f"  Date range: {activity['timestamp'].min()} to {activity['timestamp'].max()}")


if __name__ == '__main__':
    main()
