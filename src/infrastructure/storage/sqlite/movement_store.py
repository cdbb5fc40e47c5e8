"""SQLite implementation of the stock movement ledger."""

from collections import defaultdict
from datetime import datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.movement import DistributionMovement, stock_movement_adapter
from src.core.exceptions import ConcurrencyConflictError, MovementNotFoundError
from src.core.interfaces.movement_store import (
    AnyMovement,
    IMovementStore,
    MovementFilter,
    MovementPage,
    ReversalPlan,
    StockUpdate,
)
from src.core.timestamps import utc_now
from src.infrastructure.storage.sqlite.connection import (
    db_timestamp,
    get_connection,
    get_transaction,
    next_sequence,
)

logger = get_logger(__name__)

# Stock is kept to two decimals; compare within half a cent
_STOCK_EPSILON = 0.005


class SQLiteMovementStore(IMovementStore):
    """SQLite implementation of movement storage with conditional stock writes."""

    async def create_movement(self, movement: AnyMovement) -> AnyMovement:
        """Insert the movement and apply each line's stock snapshot atomically."""
        now = utc_now()
        async with get_transaction() as conn:
            seq = await next_sequence(conn, "movement")
            stored = movement.model_copy(update={"id": f"MOV{seq:06d}"})

            # Lines for the same product chain, so each write checks the previous one
            updates = [
                StockUpdate(
                    product_id=line.product_id,
                    expected=line.previous_stock,
                    new=line.new_stock,
                )
                for line in stored.products
            ]
            await self._apply_stock_updates(conn, updates, now)

            await conn.execute(
                """
                INSERT INTO stock_movements (
                    id, seq, type, supplier, department, stock_manager, notes,
                    timestamp, total_items, total_value, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    stored.id,
                    seq,
                    stored.type,
                    getattr(stored, "supplier", None),
                    getattr(stored, "department", None),
                    stored.stock_manager,
                    stored.notes,
                    db_timestamp(stored.timestamp),
                    stored.total_items,
                    stored.total_value,
                    db_timestamp(now),
                ),
            )
            await conn.executemany(
                """
                INSERT INTO movement_lines (
                    movement_id, line_no, product_id, product_name, quantity,
                    unit, unit_price, previous_stock, new_stock
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        stored.id,
                        line_no,
                        line.product_id,
                        line.product_name,
                        line.quantity,
                        line.unit,
                        line.unit_price,
                        line.previous_stock,
                        line.new_stock,
                    )
                    for line_no, line in enumerate(stored.products, start=1)
                ],
            )

        logger.info(
            "movement_created",
            movement_id=stored.id,
            type=stored.type,
            lines=len(stored.products),
        )
        return stored

    async def get_movement(self, movement_id: str) -> AnyMovement | None:
        """Get movement by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM stock_movements WHERE id = ?", (movement_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            movements = await self._hydrate(conn, [row])
            return movements[0]

    async def list_movements(self, movement_filter: MovementFilter) -> MovementPage:
        """List movements matching the filter, newest first."""
        where, params = self._build_where(movement_filter)

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM stock_movements m{where}", tuple(params)
            )
            total = (await cursor.fetchone())[0]

            cursor = await conn.execute(
                f"""
                SELECT m.* FROM stock_movements m{where}
                ORDER BY m.timestamp DESC, m.seq DESC
                LIMIT ? OFFSET ?
                """,
                (*params, movement_filter.limit, movement_filter.offset),
            )
            rows = await cursor.fetchall()
            items = await self._hydrate(conn, rows)

        return MovementPage(
            items=items,
            page=movement_filter.page,
            limit=movement_filter.limit,
            total=total,
        )

    async def delete_movement(self, plan: ReversalPlan) -> None:
        """Remove a movement and apply its reversal writes atomically."""
        async with get_transaction() as conn:
            await self._apply_stock_updates(conn, plan.updates, utc_now())

            await conn.execute(
                "DELETE FROM movement_lines WHERE movement_id = ?", (plan.movement_id,)
            )
            cursor = await conn.execute(
                "DELETE FROM stock_movements WHERE id = ?", (plan.movement_id,)
            )
            if cursor.rowcount == 0:
                raise MovementNotFoundError(plan.movement_id)

        logger.info(
            "movement_deleted",
            movement_id=plan.movement_id,
            stock_updates=len(plan.updates),
        )

    async def list_distributions(
        self, product_id: str, start: datetime, end: datetime
    ) -> list[DistributionMovement]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT m.* FROM stock_movements m
                WHERE m.type = 'distribution'
                  AND m.timestamp >= ? AND m.timestamp < ?
                  AND EXISTS (
                      SELECT 1 FROM movement_lines l
                      WHERE l.movement_id = m.id AND l.product_id = ?
                  )
                ORDER BY m.timestamp ASC, m.seq ASC
                """,
                (db_timestamp(start), db_timestamp(end), product_id),
            )
            rows = await cursor.fetchall()
            return await self._hydrate(conn, rows)  # type: ignore[return-value]

    async def list_movements_after(
        self, movement_id: str, product_ids: list[str]
    ) -> list[AnyMovement]:
        if not product_ids:
            return []
        placeholders = ",".join("?" * len(product_ids))
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT m.* FROM stock_movements m
                WHERE m.seq > (SELECT seq FROM stock_movements WHERE id = ?)
                  AND EXISTS (
                      SELECT 1 FROM movement_lines l
                      WHERE l.movement_id = m.id AND l.product_id IN ({placeholders})
                  )
                ORDER BY m.seq ASC
                """,
                (movement_id, *product_ids),
            )
            rows = await cursor.fetchall()
            return await self._hydrate(conn, rows)

    async def has_movements(self, product_id: str) -> bool:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT 1 FROM movement_lines WHERE product_id = ? LIMIT 1",
                (product_id,),
            )
            return await cursor.fetchone() is not None

    async def list_between(
        self, start: datetime | None, end: datetime
    ) -> list[AnyMovement]:
        query = "SELECT * FROM stock_movements WHERE timestamp <= ?"
        params: list = [db_timestamp(end)]
        if start is not None:
            query += " AND timestamp >= ?"
            params.append(db_timestamp(start))
        query += " ORDER BY timestamp DESC, seq DESC"

        async with get_connection() as conn:
            cursor = await conn.execute(query, tuple(params))
            rows = await cursor.fetchall()
            return await self._hydrate(conn, rows)

    async def _apply_stock_updates(
        self,
        conn: aiosqlite.Connection,
        updates: list[StockUpdate],
        now: datetime,
    ) -> None:
        conflicts: list[str] = []
        for update in updates:
            cursor = await conn.execute(
                """
                UPDATE products SET quantity = ?, updated_at = ?
                WHERE id = ? AND ABS(quantity - ?) < ?
                """,
                (update.new, db_timestamp(now), update.product_id, update.expected, _STOCK_EPSILON),
            )
            if cursor.rowcount != 1:
                conflicts.append(update.product_id)

        if conflicts:
            logger.warning("stock_conflict", product_ids=conflicts)
            raise ConcurrencyConflictError(conflicts)

    @staticmethod
    def _build_where(movement_filter: MovementFilter) -> tuple[str, list]:
        clauses: list[str] = []
        params: list = []

        if movement_filter.type is not None:
            clauses.append("m.type = ?")
            params.append(movement_filter.type.value)
        if movement_filter.department:
            clauses.append("m.department = ?")
            params.append(movement_filter.department)
        if movement_filter.start is not None:
            clauses.append("m.timestamp >= ?")
            params.append(db_timestamp(movement_filter.start))
        if movement_filter.end is not None:
            clauses.append("m.timestamp <= ?")
            params.append(db_timestamp(movement_filter.end))
        if movement_filter.product_id:
            clauses.append(
                "EXISTS (SELECT 1 FROM movement_lines l "
                "WHERE l.movement_id = m.id AND l.product_id = ?)"
            )
            params.append(movement_filter.product_id)
        if movement_filter.search:
            pattern = f"%{movement_filter.search.strip()}%"
            clauses.append(
                "(m.id LIKE ? OR m.supplier LIKE ? OR m.department LIKE ? "
                "OR m.stock_manager LIKE ? OR m.notes LIKE ? "
                "OR EXISTS (SELECT 1 FROM movement_lines l "
                "WHERE l.movement_id = m.id AND l.product_name LIKE ?))"
            )
            params.extend([pattern] * 6)

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    async def _hydrate(
        self, conn: aiosqlite.Connection, rows: list[aiosqlite.Row]
    ) -> list[AnyMovement]:
        """Load the lines of the given movement rows and build entities."""
        if not rows:
            return []

        ids = [row["id"] for row in rows]
        placeholders = ",".join("?" * len(ids))
        cursor = await conn.execute(
            f"""
            SELECT * FROM movement_lines
            WHERE movement_id IN ({placeholders})
            ORDER BY movement_id, line_no
            """,
            tuple(ids),
        )
        lines_by_movement: dict[str, list[dict]] = defaultdict(list)
        for line in await cursor.fetchall():
            lines_by_movement[line["movement_id"]].append(
                {
                    "product_id": line["product_id"],
                    "product_name": line["product_name"],
                    "quantity": line["quantity"],
                    "unit": line["unit"],
                    "unit_price": line["unit_price"],
                    "previous_stock": line["previous_stock"],
                    "new_stock": line["new_stock"],
                }
            )

        return [self._row_to_movement(row, lines_by_movement[row["id"]]) for row in rows]

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row, lines: list[dict]) -> AnyMovement:
        """Convert a movement row and its lines to the matching variant."""
        data = {
            "id": row["id"],
            "type": row["type"],
            "timestamp": row["timestamp"],
            "stock_manager": row["stock_manager"],
            "notes": row["notes"],
            "products": lines,
        }
        if row["type"] == "stock_in":
            data["supplier"] = row["supplier"]
        else:
            data["department"] = row["department"]
        return stock_movement_adapter.validate_python(data)
