"""
Evo Store - Centralized Configuration
======================================
All environment variables and constants are loaded here.
No other module should call os.getenv() directly.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ==========================================
# 🗄️ Database
# ==========================================
# Embedded SQLite by default; any SQLAlchemy URL works.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./evo_store.db")


# ==========================================
# 🛒 Cart & Pricing
# ==========================================
CART_COOKIE_NAME = os.getenv("CART_COOKIE_NAME", "cart_session")
CART_COOKIE_MAX_AGE_DAYS = int(os.getenv("CART_COOKIE_MAX_AGE_DAYS") or "30")

# "whole_item" marks a chosen item free for its full quantity,
# "split_units" frees exactly deal.get units.
FREE_UNIT_POLICY = os.getenv("FREE_UNIT_POLICY", "whole_item")

CURRENCY = "INR"


# ==========================================
# 💳 Payment Gateways
# ==========================================
ENABLED_GATEWAYS = os.getenv("ENABLED_GATEWAYS", "razorpay,phonepe")

RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID", "rzp_test_placeholder")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "placeholder_secret")

PHONEPE_MERCHANT_ID = os.getenv("PHONEPE_MERCHANT_ID", "PGTESTPAYUAT")
PHONEPE_SALT_KEY = os.getenv("PHONEPE_SALT_KEY", "")
PHONEPE_SALT_INDEX = os.getenv("PHONEPE_SALT_INDEX", "1")
PHONEPE_HOST = os.getenv("PHONEPE_HOST", "https://api-preprod.phonepe.com/apis/pg-sandbox")

# Unpaid orders are cancelled after this window
PAYMENT_WINDOW_MINUTES = int(os.getenv("PAYMENT_WINDOW_MINUTES") or "30")


# ==========================================
# 🔧 App
# ==========================================
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
MAINTENANCE_MODE = os.getenv("MAINTENANCE_MODE", "false").lower() == "true"

# Base URL for callbacks
BASE_URL = os.getenv("BASE_URL", "http://127.0.0.1:8000")
# Cookie value that lets staff through while maintenance mode is on
MAINTENANCE_SECRET = os.getenv("MAINTENANCE_SECRET", "")
