"""
Event model for custom Drip events
"""
from pydantic import Field

from models.base import DripBaseModel


class Event(DripBaseModel):
    """A custom event recorded against a subscriber."""

    email: str = Field(..., description="Subscriber email address")
    action: str = Field(..., description="Event name")
