"""Cart package: models, reducer, storage, and the cart engine."""
from .actions import AddItem, CartAction, ClearCart, LoadFromStorage, RemoveItem, SetQuantity, reduce
from .models import CartState, LineItem
from .service import CartEngine, CartStatus, create_cart_engine, parse_cart_record
from .storage import (
    CartStorage,
    FileCartStorage,
    MemoryCartStorage,
    RedisCartStorage,
    create_cart_storage,
)

__all__ = [
    "AddItem",
    "CartAction",
    "CartEngine",
    "CartState",
    "CartStatus",
    "CartStorage",
    "ClearCart",
    "FileCartStorage",
    "LineItem",
    "LoadFromStorage",
    "MemoryCartStorage",
    "RedisCartStorage",
    "RemoveItem",
    "SetQuantity",
    "create_cart_engine",
    "create_cart_storage",
    "parse_cart_record",
    "reduce",
]
