"""The authenticated caller, handed in by the external auth layer."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SessionUser:
    """
    Identity of the user acting in the current session.

    The engine never authenticates anyone itself; it only compares this id
    against the trainer_id / client_id of the records it touches.
    """
    id: str
    display_name: str = ""
    email: Optional[str] = None
    is_trainer: bool = False
