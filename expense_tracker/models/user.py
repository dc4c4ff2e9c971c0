"""
User Model.

The authenticated identity every query is scoped by.  Populated from the
Supabase Auth user on sign-in, or from configuration for the local store.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    """Represents the signed-in account."""

    id: str  # Supabase UUID
    email: str
    full_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email.split("@")[0]

    model_config = {"from_attributes": True}
