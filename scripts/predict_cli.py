"""CLI script for getting product recommendations.

Useful for testing and evaluation. Reads a CSV snapshot of the marketplace,
ranks products for a user and prints them to the console.
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.recommender.engine import generate_recommendations
from src.recommender.exceptions import DataUnavailableError
from src.recommender.models import Product
from src.recommender.ranker import DEFAULT_TOP_N
from src.recommender.sources import CsvDataSource

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)


def get_recommendations(
    user_id: str,
    data_dir: str = "data",
    top_n: int = DEFAULT_TOP_N,
    now: Optional[datetime] = None,
    explain: bool = False,
) -> Tuple[List[Product], Optional[Dict]]:
    """Get recommendations for a user.

    Args:
        user_id: User ID to get recommendations for
        data_dir: Directory with activity.csv and products.csv
        top_n: Number of recommendations to return
        now: Reference time for the 30-day window (default: now)
        explain: If True, also return score breakdown

    Returns:
        Tuple of (recommended products, optional scores dict)
    """
    source = CsvDataSource(data_dir)
    try:
        if explain:
            return generate_recommendations(user_id, source, now=now, top_n=top_n, return_scores=True)
        return generate_recommendations(user_id, source, now=now, top_n=top_n), None
    except DataUnavailableError as e:
        print(f"Error: snapshot not readable in {data_dir}", file=sys.stderr)
        print(f"  {e.message}", file=sys.stderr)
        sys.exit(1)


def main() -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Get product recommendations for a user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/predict_cli.py user-7
  python scripts/predict_cli.py user-7 --top-n 5
  python scripts/predict_cli.py user-7 --explain
  python scripts/predict_cli.py user-7 --now 2026-10-01T00:00:00+00:00
        """
    )

    parser.add_argument(
        "user_id",
        type=str,
        help="User ID to get recommendations for"
    )

    parser.add_argument(
        "--top-n",
        type=int,
        choices=range(1, DEFAULT_TOP_N + 1),
        metavar="N",
        default=DEFAULT_TOP_N,
        help=f"Number of recommendations to return, 1 to {DEFAULT_TOP_N} (default: {DEFAULT_TOP_N})"
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default="data",
        help="Directory containing activity.csv and products.csv (default: data)"
    )

    parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        default=None,
        help="ISO-8601 reference time for the activity window (default: now)"
    )

    parser.add_argument(
        "--explain",
        action="store_true",
        help="Show score breakdown for recommendations"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    products, scores = get_recommendations(
        user_id=args.user_id,
        data_dir=args.data_dir,
        top_n=args.top_n,
        now=args.now,
        explain=args.explain,
    )

    print(f"\nRecommendations for user {args.user_id}:")
    if not products:
        print("  Nothing to recommend yet.")
    for rank, product in enumerate(products, start=1):
        line = f"  {rank:2d}. {product.title} [{product.category}] {product.price:.2f} ({product.id})"
        if scores:
            line += f"  score={scores['scores'][product.id]:.3f}"
        print(line)

    if args.explain and scores and scores["signals"]:
        print(f"\nScore breakdown:")
        for signal, points in scores["signals"].items():
            if points:
                print(f"  {signal}: {points}")

    print()


if __name__ == "__main__":
    main()
