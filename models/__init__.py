"""
Data models for the Drip API client

Pydantic models for the payloads sent to Drip.
"""

from models.base import DripBaseModel
from models.subscriber import Subscriber, normalize_key, normalized_fields
from models.event import Event
from models.tag import TagAssociation

__all__ = [
    'DripBaseModel',
    'Subscriber',
    'Event',
    'TagAssociation',
    'normalize_key',
    'normalized_fields',
]
