from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Principal:
    """Authenticated caller handed to every operation by the identity service."""

    user_id: str
    role: Role
    name: str
    email: Optional[str] = None


@dataclass(frozen=True)
class UserProfile:
    user_id: str
    name: str
    email: Optional[str] = None
