"""
Runtime configuration from environment variables.

A local .env file is loaded first so development setups don't need exported
variables. Values are read once at import.
"""

import os

from dotenv import load_dotenv

load_dotenv()


# Supabase (public anon key, the catalog is read-only)
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY", "")

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Cart persistence: memory | file | redis
CART_STORAGE_BACKEND = os.environ.get("CART_STORAGE_BACKEND", "file").lower()
CART_STORAGE_DIR = os.environ.get("CART_STORAGE_DIR", ".storefront")
CART_STORAGE_KEY = "cart"


def _get_int(name: str, default: int) -> int:
    """Read an integer variable, falling back to default on bad values."""
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


# 0 disables expiry for the redis backend
CART_TTL_SECONDS = _get_int("CART_TTL_SECONDS", 86400)

# Checkout (flat rate shipping, sales tax)
SHIPPING_FLAT_RATE = os.environ.get("SHIPPING_FLAT_RATE", "9.99")
SALES_TAX_PERCENT = os.environ.get("SALES_TAX_PERCENT", "8")
