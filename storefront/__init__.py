"""
Storefront Package

Client-side storefront components:
- cart: cart state engine (reducer, persistence, hydration)
- db: Supabase and Upstash Redis clients
- services: catalog repository, money helpers, simulated checkout

Note: Imports are lazy so that importing the cart engine never requires
Supabase or Redis credentials.
"""

__all__ = [
    "CartEngine",
    "create_cart_engine",
    "get_supabase",
    "get_redis",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name == "CartEngine":
        from storefront.cart import CartEngine
        return CartEngine
    elif name == "create_cart_engine":
        from storefront.cart import create_cart_engine
        return create_cart_engine
    elif name == "get_supabase":
        from storefront.db import get_supabase
        return get_supabase
    elif name == "get_redis":
        from storefront.db import get_redis
        return get_redis
    raise AttributeError(f"module 'storefront' has no attribute '{name}'")
