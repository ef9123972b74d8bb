# Services Module
# checkout is imported directly (storefront.services.checkout): it depends on the cart package
from .models import Product
from .repositories import ProductRepository

__all__ = ["Product", "ProductRepository"]
