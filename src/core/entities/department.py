"""Department entity."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.core.timestamps import utc_now


class Department(BaseModel):
    """A department that receives distributed stock (pastry, bakery, ...).

    Icon and color are display metadata only.
    """

    id: str | None = None
    name: str
    description: str = ""
    icon: str | None = None
    color: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
