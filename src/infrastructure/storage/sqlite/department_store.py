"""SQLite implementation of department storage."""

import aiosqlite

from src.config import get_logger
from src.core.entities.department import Department
from src.core.exceptions import DuplicateDepartmentError
from src.core.interfaces.department_store import IDepartmentStore
from src.core.timestamps import normalize_timestamp, utc_now
from src.infrastructure.storage.sqlite.connection import (
    db_timestamp,
    get_connection,
    get_transaction,
    next_sequence,
)

logger = get_logger(__name__)


class SQLiteDepartmentStore(IDepartmentStore):
    """SQLite implementation of department storage."""

    async def create_department(self, department: Department) -> Department:
        """Create a department, keeping a caller supplied id such as ``pastry``."""
        async with get_transaction() as conn:
            department_id = (department.id or "").strip()
            if department_id:
                cursor = await conn.execute(
                    "SELECT 1 FROM departments WHERE id = ?", (department_id,)
                )
                if await cursor.fetchone():
                    raise DuplicateDepartmentError(department_id)
            else:
                seq = await next_sequence(conn, "department")
                department_id = f"DEPT{seq:06d}"

            created = department.model_copy(
                update={"id": department_id, "created_at": utc_now()}
            )
            await conn.execute(
                """
                INSERT INTO departments (id, name, description, icon, color, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    created.id,
                    created.name,
                    created.description,
                    created.icon,
                    created.color,
                    db_timestamp(created.created_at),
                ),
            )
        logger.info("department_created", department_id=created.id, name=created.name)
        return created

    async def get_department(self, department_id: str) -> Department | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM departments WHERE id = ?", (department_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_department(row) if row else None

    async def list_departments(self) -> list[Department]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM departments ORDER BY name COLLATE NOCASE, id"
            )
            rows = await cursor.fetchall()
            return [self._row_to_department(row) for row in rows]

    @staticmethod
    def _row_to_department(row: aiosqlite.Row) -> Department:
        return Department(
            id=row["id"],
            name=row["name"],
            description=row["description"] or "",
            icon=row["icon"],
            color=row["color"],
            created_at=normalize_timestamp(row["created_at"]),
        )
