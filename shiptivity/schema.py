"""
Client record schema and lane names.

A client sits in exactly one lane (its status) and holds a zero-based
priority within that lane:

  backlog → in-progress → complete

Priority 0 is the top of a lane. Lanes are ranked independently.
"""
from enum import Enum
from dataclasses import dataclass
from typing import Optional, Dict, Any

from .errors import InvalidStatusError


class ClientStatus(Enum):
    """Valid lanes on the board."""
    BACKLOG = "backlog"
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"

    @classmethod
    def parse(cls, value: Any) -> "ClientStatus":
        """Coerce a lane name (or member); anything else is InvalidStatusError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidStatusError(
                "Invalid status provided.",
                "Status can only be one of the following: "
                "[backlog | in-progress | complete].",
            ) from None

    @classmethod
    def names(cls):
        return [s.value for s in cls]


@dataclass
class Client:
    """One work item on the board."""

    id: int
    name: str = ""
    description: Optional[str] = None
    status: ClientStatus = ClientStatus.BACKLOG
    priority: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Client":
        """Deserialize from dict (or a sqlite3.Row converted with dict())."""
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            description=data.get("description"),
            status=ClientStatus(data.get("status", "backlog")),
            priority=int(data.get("priority", 0)),
        )
