"""
Subscriber model and custom field key normalization

Drip rejects custom field keys containing reserved characters, so every key
is normalized before it is stored on a Subscriber or sent over the wire.
"""
import copy
import threading
from typing import Any, Dict, List, Mapping, Optional

from pydantic import Field, PrivateAttr, field_validator

from models.base import DripBaseModel


def normalize_key(key: str) -> str:
    """
    Normalize a custom field key for Drip.

    Strips every ``$``, replaces spaces with underscores and lower-cases the
    result. Idempotent: ``normalize_key(normalize_key(k)) == normalize_key(k)``.
    """
    return key.replace("$", "").replace(" ", "_").lower()


def normalized_fields(custom_fields: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return a copy of ``custom_fields`` with every key normalized. Values are untouched."""
    if not custom_fields:
        return {}
    return {normalize_key(key): value for key, value in custom_fields.items()}


class Subscriber(DripBaseModel):
    """A Drip subscriber identified by email."""

    email: str = Field(..., description="Subscriber email address")
    custom_fields: Dict[str, Any] = Field(default_factory=dict, description="Normalized custom fields")
    tags: List[str] = Field(default_factory=list, description="Tags applied to the subscriber")

    _custom_field_lock: Any = PrivateAttr(default_factory=threading.Lock)

    @field_validator('custom_fields', mode='before')
    @classmethod
    def normalize_custom_fields(cls, value):
        """Normalize keys regardless of how the fields arrive."""
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            return value
        return normalized_fields(value)

    @classmethod
    def new(cls, email: str) -> 'Subscriber':
        """Create a subscriber with no custom fields or tags."""
        return cls(email=email)

    def add_custom_field(self, key: str, value: Any) -> None:
        """Set a single custom field. Safe to call from several threads at once."""
        with self._custom_field_lock:
            self.custom_fields[normalize_key(key)] = value

    def __deepcopy__(self, memo: Optional[Dict[int, Any]] = None) -> 'Subscriber':
        """Deep copy with its own lock; fields are copied under this instance's lock."""
        with self._custom_field_lock:
            fields = copy.deepcopy(self.custom_fields, memo)
        return type(self)(email=self.email, custom_fields=fields, tags=list(self.tags))

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation; empty custom fields and tags are omitted."""
        with self._custom_field_lock:
            fields = dict(self.custom_fields)

        payload: Dict[str, Any] = {'email': self.email}
        if fields:
            payload['custom_fields'] = fields
        if self.tags:
            payload['tags'] = list(self.tags)
        return payload
