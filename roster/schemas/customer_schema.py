"""Customer record model and workflow enums."""

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CustomerStatus(str, Enum):
    """Workflow status of a roster entry."""

    PENDING = "pending"
    NOT_CALLED = "not_called"
    FOLLOW_UP = "follow_up"
    VOICE_MAIL = "voice_mail"
    W2_RECEIVED = "w2_received"
    CALL_BACK = "call_back"
    NOT_IN_SERVICE = "not_in_service"
    CITIZEN = "citizen"
    DND = "dnd"
    INTERESTED = "interested"
    POTENTIAL = "potential"
    OLD_CLIENTS = "old_clients"
    ARCHIVED = "archived"


class CallStatus(str, Enum):
    NOT_CALLED = "not_called"
    CALLED = "called"
    VOICE_MAIL = "voice_mail"


# Not stored on records; computed from createdAt by the backend.
PSEUDO_STATUSES: frozenset[CustomerStatus] = frozenset({CustomerStatus.OLD_CLIENTS})


class CustomerRecord(BaseModel):
    """A roster entry as seen by the presentation layer and sent to bulk-create."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[Union[int, str]] = None
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    phone: str = ""
    email: str = ""
    address: str = ""
    status: CustomerStatus = CustomerStatus.PENDING
    call_status: CallStatus = Field(default=CallStatus.NOT_CALLED, alias="callStatus")
    comments: str = ""
    assigned_to: str = Field(default="", alias="assignedTo")
    archived: bool = False
    previous_status: Optional[CustomerStatus] = Field(default=None, alias="previousStatus")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @property
    def name(self) -> str:
        """Display name derived from first/last name."""
        return f"{self.first_name} {self.last_name}".strip()

    def is_blank(self) -> bool:
        """True when the record carries no identifying contact data."""
        return not any((self.first_name, self.last_name, self.email, self.phone))

    def archive(self) -> "CustomerRecord":
        """Return an archived copy remembering the status held before archiving."""
        if self.archived:
            return self.model_copy()
        return self.model_copy(update={
            "archived": True,
            "previous_status": self.status,
            "status": CustomerStatus.ARCHIVED,
            "assigned_to": "",
        })

    def restore(self) -> "CustomerRecord":
        """Return an un-archived copy with its previous status reinstated."""
        previous = self.previous_status
        if previous is None or previous == CustomerStatus.ARCHIVED:
            previous = CustomerStatus.PENDING
        return self.model_copy(update={"archived": False, "status": previous})

    def to_wire(self) -> dict:
        """Serialize with camelCase keys plus the derived ``name``."""
        data = self.model_dump(by_alias=True, mode="json")
        data["name"] = self.name
        return data
