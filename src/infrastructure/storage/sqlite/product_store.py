"""SQLite implementation of the product catalog."""

import aiosqlite

from src.config import get_logger
from src.core.entities.product import Product
from src.core.exceptions import DuplicateProductError, ProductNotFoundError
from src.core.interfaces.product_store import IProductStore
from src.core.timestamps import normalize_timestamp, utc_now
from src.infrastructure.storage.sqlite.connection import (
    db_timestamp,
    get_connection,
    get_transaction,
    next_sequence,
)

logger = get_logger(__name__)


class SQLiteProductStore(IProductStore):
    """SQLite implementation of product storage."""

    async def create_product(self, product: Product) -> Product:
        """Create a new product with a generated ``PROD`` id and zero stock."""
        now = utc_now()
        async with get_transaction() as conn:
            existing = await self._find_by_name(conn, product.name)
            if existing is not None:
                raise DuplicateProductError(product.name, existing.id)

            seq = await next_sequence(conn, "product")
            created = product.model_copy(
                update={
                    "id": f"PROD{seq:06d}",
                    "quantity": 0.0,
                    "created_at": now,
                    "updated_at": now,
                }
            )
            await conn.execute(
                """
                INSERT INTO products (
                    id, name, unit, quantity, unit_price, category,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    created.id,
                    created.name,
                    created.unit,
                    created.quantity,
                    created.unit_price,
                    created.category,
                    db_timestamp(created.created_at),
                    db_timestamp(created.updated_at),
                ),
            )
        logger.info("product_created", product_id=created.id, name=created.name)
        return created

    async def get_product(self, product_id: str) -> Product | None:
        """Get product by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM products WHERE id = ?", (product_id,))
            row = await cursor.fetchone()
            return self._row_to_product(row) if row else None

    async def get_products(self, product_ids: list[str]) -> dict[str, Product]:
        """Get several products keyed by ID."""
        if not product_ids:
            return {}
        placeholders = ",".join("?" * len(product_ids))
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM products WHERE id IN ({placeholders})",
                tuple(product_ids),
            )
            rows = await cursor.fetchall()
            return {row["id"]: self._row_to_product(row) for row in rows}

    async def update_product(self, product: Product) -> Product:
        """Update catalog fields. Stock is left untouched."""
        now = utc_now()
        async with get_transaction() as conn:
            existing = await self._find_by_name(conn, product.name)
            if existing is not None and existing.id != product.id:
                raise DuplicateProductError(product.name, existing.id)

            cursor = await conn.execute(
                """
                UPDATE products SET
                    name = ?, unit = ?, unit_price = ?, category = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    product.name,
                    product.unit,
                    product.unit_price,
                    product.category,
                    db_timestamp(now),
                    product.id,
                ),
            )
            if cursor.rowcount == 0:
                raise ProductNotFoundError(product.id)

            cursor = await conn.execute("SELECT * FROM products WHERE id = ?", (product.id,))
            updated = self._row_to_product(await cursor.fetchone())

        logger.info("product_updated", product_id=product.id)
        return updated

    async def list_products(
        self, limit: int = 100, offset: int = 0, search: str | None = None
    ) -> list[Product]:
        """List products ordered by name."""
        query = "SELECT * FROM products"
        params: list = []
        if search:
            query += " WHERE name LIKE ? OR category LIKE ?"
            pattern = f"%{search.strip()}%"
            params.extend([pattern, pattern])
        query += " ORDER BY name COLLATE NOCASE LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        async with get_connection() as conn:
            cursor = await conn.execute(query, tuple(params))
            rows = await cursor.fetchall()
            return [self._row_to_product(row) for row in rows]

    async def list_low_stock(
        self, threshold: float = 10.0, limit: int = 100
    ) -> list[Product]:
        """Products at or below the threshold, lowest stock first."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM products
                WHERE quantity <= ?
                ORDER BY quantity ASC, name COLLATE NOCASE
                LIMIT ?
                """,
                (threshold, limit),
            )
            rows = await cursor.fetchall()
            return [self._row_to_product(row) for row in rows]

    async def _find_by_name(self, conn: aiosqlite.Connection, name: str) -> Product | None:
        cursor = await conn.execute(
            "SELECT * FROM products WHERE name = ? COLLATE NOCASE",
            (name.strip(),),
        )
        row = await cursor.fetchone()
        return self._row_to_product(row) if row else None

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> Product:
        """Convert a database row to a Product entity."""
        return Product(
            id=row["id"],
            name=row["name"],
            unit=row["unit"],
            quantity=float(row["quantity"]),
            unit_price=float(row["unit_price"]),
            category=row["category"],
            created_at=normalize_timestamp(row["created_at"]),
            updated_at=normalize_timestamp(row["updated_at"]),
        )
