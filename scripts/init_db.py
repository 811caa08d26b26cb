"""
Evo Store - Database Setup
===========================
Creates any missing tables and prints a row count per table.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --seed          # also load demo catalog & deals
    python scripts/init_db.py --drop --yes    # wipe and recreate (no prompt)
"""

import argparse
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import inspect, select, func, table

from config.database import Base, engine
from config.settings import DATABASE_URL

from modules.admin.models import HomepageSetting  # noqa
from modules.catalog.models import ProductCategory, Product, CuratedBundle  # noqa
from modules.cart.models import CartSession  # noqa
from modules.coupon.models import Coupon  # noqa
from modules.order.models import Order  # noqa
from modules.pricing.models import PricingRule  # noqa


def table_counts():
    with engine.connect() as conn:
        return {
            name: conn.execute(select(func.count()).select_from(table(name))).scalar()
            for name in sorted(inspect(conn).get_table_names())
        }


def init_db(drop_first=False):
    if drop_first:
        Base.metadata.drop_all(bind=engine)
        print("Dropped all tables")
    Base.metadata.create_all(bind=engine)

    print(f"Database: {DATABASE_URL}")
    for name, rows in table_counts().items():
        print(f"  {name:<20} {rows:>6} rows")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create the Evo Store tables")
    parser.add_argument("--drop", action="store_true", help="drop every table first")
    parser.add_argument("--yes", action="store_true", help="skip the --drop confirmation")
    parser.add_argument("--seed", action="store_true", help="load demo data afterwards")
    args = parser.parse_args(argv)

    if args.drop and not args.yes:
        if input("This will DROP all tables. Type 'yes': ").strip().lower() != "yes":
            print("Aborted.")
            return 1

    init_db(drop_first=args.drop)
    if args.seed:
        from scripts.seed import seed
        seed()
    return 0


if __name__ == "__main__":
    sys.exit(main())
