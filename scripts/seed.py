"""
Evo Store - Database Seeder
=============================
Seeds a fresh store with demo data.

Usage:
    python scripts/seed.py          # Seed (skips rows that already exist)
    python scripts/seed.py --reset  # Drop all data and reseed

Seeded:
  1. Categories
  2. Posters
  3. Curated bundles + trending picks
  4. Pricing rules
  5. Coupons
  6. Homepage content
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.database import SessionLocal, Base, engine
from modules.admin.service import homepage_service, HERO, MEGA_DEALS
from modules.catalog.models import ProductCategory, Product, CuratedBundle
from modules.catalog.service import product_service, category_service, curated_bundle_service
from modules.cart.models import CartSession  # noqa: F401
from modules.order.models import Order  # noqa: F401
from modules.coupon.models import Coupon
from modules.coupon.service import coupon_service
from modules.pricing.models import PricingRule
from modules.pricing.service import pricing_service


CATEGORIES = [
    {"name": "Movies", "description": "Iconic scenes and film art", "sort_order": 1},
    {"name": "Cars", "description": "Supercars, classics and motorsport", "sort_order": 2},
    {"name": "Anime", "description": "Characters and key art", "sort_order": 3},
    {"name": "Landscapes", "description": "Mountains, coasts and cities", "sort_order": 4},
]

POSTERS = [
    ("Interstellar Docking", "movies", ["space", "nolan"]),
    ("Blade Runner Skyline", "movies", ["neon", "sci-fi"]),
    ("The Godfather Study", "movies", ["classic"]),
    ("Porsche 911 GT3", "cars", ["porsche", "track"]),
    ("Skyline R34", "cars", ["jdm"]),
    ("Le Mans Night", "cars", ["motorsport"]),
    ("Spirited Away Bathhouse", "anime", ["ghibli"]),
    ("Akira Neo Tokyo", "anime", ["cyberpunk"]),
    ("Naruto Hokage Rock", "anime", ["naruto"]),
    ("Himalayan Dawn", "landscapes", ["mountains"]),
    ("Kerala Backwaters", "landscapes", ["india", "water"]),
    ("Tokyo Rain", "landscapes", ["city", "night"]),
]

RULES = [
    {
        "name": "Festive 5% off",
        "description": "Five percent off every order over Rs 999",
        "rule_type": "percentage_discount",
        "value": "5",
        "min_order_value": "999",
        "sort_order": 1,
    },
    {
        "name": "Free shipping",
        "rule_type": "free_shipping",
        "value": None,
        "min_order_value": "499",
        "sort_order": 2,
    },
]

COUPONS = [
    {"code": "WELCOME10", "description": "10% off your first order", "discount_type": "percentage", "discount_value": "10"},
    {"code": "FLAT100", "description": "Rs 100 off orders over Rs 799", "discount_type": "fixed_amount",
     "discount_value": "100", "min_order_value": "799"},
    {"code": "LIMITED50", "description": "First 50 shoppers get 20% off", "discount_type": "percentage",
     "discount_value": "20", "usage_limit": 50},
]


def ensure_tables():
    print("[0/6] Ensuring all tables exist...")
    Base.metadata.create_all(bind=engine)
    print("  + All tables OK\n")


def seed():
    db = SessionLocal()
    try:
        print("=" * 50)
        print("  Evo Store - Seeder")
        print("=" * 50)

        ensure_tables()

        # ==========================================
        # 1. Categories
        # ==========================================
        print("\n[1/6] Categories")
        for data in CATEGORIES:
            if db.query(ProductCategory).filter(ProductCategory.name == data["name"]).first():
                print(f"  = exists: {data['name']}")
                continue
            category_service.create(db, data)
            print(f"  + {data['name']}")
        db.flush()

        # ==========================================
        # 2. Posters
        # ==========================================
        print("\n[2/6] Posters")
        for name, category_slug, tags in POSTERS:
            if db.query(Product).filter(Product.name == name).first():
                print(f"  = exists: {name}")
                continue
            category = category_service.get_by_slug(db, category_slug)
            product_service.create(db, {
                "name": name,
                "description": f"{name} printed on 250 GSM matte paper.",
                "price": "299",
                "category_id": category.id if category else None,
                "stock": 100,
                "tags": tags,
                "images": [f"/media/posters/{name.lower().replace(' ', '-')}.jpg"],
            })
            print(f"  + {name}")
        db.flush()

        # ==========================================
        # 3. Curated bundles + trending
        # ==========================================
        print("\n[3/6] Curated Bundles")
        products = product_service.list_all(db)
        if not db.query(CuratedBundle).first() and len(products) >= 6:
            curated_bundle_service.create(db, {
                "name": "Petrolhead Starter Pack",
                "description": "Three cars, one wall.",
                "product_ids": [p.id for p in products if p.category and p.category.slug == "cars"],
                "sort_order": 1,
            })
            curated_bundle_service.create(db, {
                "name": "Cinema Wall",
                "description": "Movie classics for the living room.",
                "product_ids": [p.id for p in products if p.category and p.category.slug == "movies"],
                "sort_order": 2,
            })
            print("  + 2 curated bundles")
        else:
            print("  = skipped")
        count = product_service.set_trending(db, [p.id for p in products[:6]])
        print(f"  ~ {count} trending products")

        # ==========================================
        # 4. Pricing rules
        # ==========================================
        print("\n[4/6] Pricing Rules")
        for data in RULES:
            if db.query(PricingRule).filter(PricingRule.name == data["name"]).first():
                print(f"  = exists: {data['name']}")
                continue
            pricing_service.create_rule(db, data)
            print(f"  + {data['name']}")

        # ==========================================
        # 5. Coupons
        # ==========================================
        print("\n[5/6] Coupons")
        for data in COUPONS:
            if db.query(Coupon).filter(Coupon.code == data["code"]).first():
                print(f"  = exists: {data['code']}")
                continue
            coupon_service.create_coupon(db, data)
            print(f"  + {data['code']}: {data['description']}")

        # ==========================================
        # 6. Homepage
        # ==========================================
        print("\n[6/6] Homepage")
        homepage_service.set_hero(db, homepage_service.get(db, HERO))
        if not homepage_service.get(db, MEGA_DEALS):
            homepage_service.set_mega_deals(db, [
                {"buy": 10, "get": 4, "total": 14, "active": True},
                {"buy": 12, "get": 6, "total": 18, "active": True},
                {"buy": 15, "get": 8, "total": 23, "active": True},
            ])
        print("  + hero & mega deals")

        db.commit()
        print("\nSeed complete.")

    except Exception as e:
        db.rollback()
        print(f"\nSeed failed: {e}")
        import traceback
        traceback.print_exc()
        raise
    finally:
        db.close()


def reset_and_seed():
    """Drop all tables and recreate + seed."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    print("All tables recreated")
    seed()


if __name__ == "__main__":
    if "--reset" in sys.argv:
        confirm = input("This will DELETE ALL DATA. Type 'yes' to confirm: ")
        if confirm.strip().lower() == "yes":
            reset_and_seed()
        else:
            print("Aborted.")
    else:
        seed()
