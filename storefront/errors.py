"""
Storefront errors.

Message constants live here so the same text isn't repeated across modules.
"""

# Cart errors
ERROR_PRODUCT_ID_REQUIRED = "Product must have a non-empty id"
ERROR_PRODUCT_PRICE_REQUIRED = "Product must have a price"
ERROR_PRODUCT_PRICE_INVALID = "Product price must be a non-negative number"
ERROR_PRODUCT_FIELDS_INVALID = "Product fields must be JSON-serializable"
ERROR_QUANTITY_INVALID = "quantity must be an integer"
ERROR_CART_EMPTY = "Cart is empty"
ERROR_STORAGE_UNAVAILABLE = "Cart storage unavailable"

# Catalog errors
ERROR_CATALOG_UNAVAILABLE = "Catalog unavailable"


class StorefrontError(Exception):
    """Base class for storefront errors."""


class CartError(StorefrontError):
    """Cart engine error."""


class InvalidProductError(CartError, ValueError):
    """Product record can't become a line item."""


class CartStorageError(CartError):
    """Durable cart storage failed to read, write or delete."""


class EmptyCartError(CartError):
    """Operation needs at least one line item."""


class CatalogError(StorefrontError):
    """Catalog query failed."""
