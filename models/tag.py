"""
Tag association model
"""
from pydantic import Field

from models.base import DripBaseModel


class TagAssociation(DripBaseModel):
    """Pairs a subscriber email with a tag for tag/untag requests."""

    email: str = Field(..., description="Subscriber email address")
    tag: str = Field(..., description="Tag name")
