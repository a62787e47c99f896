from enum import Enum

from pydantic import BaseModel, Field


class ViewerRole(str, Enum):
    ADMIN = "ADMIN"
    FUEL_AGENT = "FUEL_AGENT"
    COAL_ENTRY = "COAL_ENTRY"
    MINING_ENTRY = "MINING_ENTRY"


class Viewer(BaseModel):
    """The agent on whose behalf a query or write runs."""

    username: str = Field(..., min_length=1)
    role: ViewerRole = ViewerRole.FUEL_AGENT

    @property
    def is_admin(self) -> bool:
        return self.role == ViewerRole.ADMIN

    def can_see(self, agent_id: str | None) -> bool:
        return self.is_admin or agent_id == self.username
