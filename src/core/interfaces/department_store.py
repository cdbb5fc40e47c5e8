"""Abstract interface for department storage."""

from abc import ABC, abstractmethod

from src.core.entities.department import Department


class IDepartmentStore(ABC):
    """Interface for department persistence."""

    @abstractmethod
    async def create_department(self, department: Department) -> Department:
        """Create a department; a generated ID is assigned when none is given."""
        pass

    @abstractmethod
    async def get_department(self, department_id: str) -> Department | None:
        """Get department by ID."""
        pass

    @abstractmethod
    async def list_departments(self) -> list[Department]:
        """List all departments ordered by name."""
        pass
