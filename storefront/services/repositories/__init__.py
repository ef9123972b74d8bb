"""
Repository Pattern for Database Operations

- ProductRepository: read-only product catalog
"""
from .product_repo import ProductRepository, get_product_repository

__all__ = ["ProductRepository", "get_product_repository"]
