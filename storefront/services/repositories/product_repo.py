"""Product Repository - Read-only product catalog queries.

All methods use async/await with supabase-py v2.
"""
from decimal import Decimal
from typing import Optional, Union

from storefront.errors import ERROR_CATALOG_UNAVAILABLE, CatalogError
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.models import Product
from storefront.services.money import to_float

from .base import BaseRepository

logger = get_logger(__name__)

PRODUCTS_TABLE = "products"


class ProductRepository(BaseRepository):
    """Product catalog operations."""

    async def _fetch(self, query, action: str) -> list[dict]:
        """Run a query and return its rows, wrapping client failures."""
        try:
            result = await query.execute()
        except Exception as e:
            logger.error(f"Catalog query failed ({action}): {e}")
            raise CatalogError(f"{ERROR_CATALOG_UNAVAILABLE}: {action}") from e
        return result.data or []

    def _select(self, columns: str = "*"):
        return self.client.table(PRODUCTS_TABLE).select(columns)

    async def get_all(self) -> list[Product]:
        """Get every product."""
        rows = await self._fetch(self._select(), "get_all")
        return [Product(**row) for row in rows]

    async def get_featured(self, limit: int = 4) -> list[Product]:
        """First products of the catalog, shown on the home page."""
        rows = await self._fetch(self._select().limit(limit), "get_featured")
        return [Product(**row) for row in rows]

    async def get_by_id(self, product_id: Union[int, str]) -> Optional[Product]:
        """Get product by ID."""
        rows = await self._fetch(
            self._select().eq("id", product_id).limit(1),
            f"get_by_id {sanitize_id_for_logging(product_id)}",
        )
        return Product(**rows[0]) if rows else None

    async def get_by_category(self, category: str) -> list[Product]:
        """Get products in one category."""
        rows = await self._fetch(self._select().eq("category", category), "get_by_category")
        return [Product(**row) for row in rows]

    async def get_related(self, product: Product, limit: int = 4) -> list[Product]:
        """Other products from the same category."""
        if not product.category:
            return []
        rows = await self._fetch(
            self._select().eq("category", product.category).neq("id", product.id).limit(limit),
            "get_related",
        )
        return [Product(**row) for row in rows]

    async def get_by_price_range(
        self,
        min_price: Optional[Union[int, float, Decimal]] = None,
        max_price: Optional[Union[int, float, Decimal]] = None,
    ) -> list[Product]:
        """Products priced within [min_price, max_price], cheapest first."""
        query = self._select()
        if min_price is not None:
            query = query.gte("price", to_float(min_price))
        if max_price is not None:
            query = query.lte("price", to_float(max_price))
        rows = await self._fetch(query.order("price"), "get_by_price_range")
        return [Product(**row) for row in rows]

    async def get_categories(self) -> list[str]:
        """Distinct non-empty categories, sorted."""
        rows = await self._fetch(self._select("category"), "get_categories")
        return sorted({row["category"] for row in rows if row.get("category")})


async def get_product_repository() -> ProductRepository:
    """ProductRepository on the shared async Supabase client."""
    from storefront.db import get_supabase

    return ProductRepository(await get_supabase())
