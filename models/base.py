"""
Base model for all Drip payload entities

Provides common functionality for validation and wire serialization.
"""
from pydantic import BaseModel
from typing import Dict, Any


class DripBaseModel(BaseModel):
    """Base model for all Drip entities with common functionality."""
    
    model_config = {
        "validate_assignment": True,
    }
    
    def __repr__(self):
        fields = ', '.join(f'{k}={v!r}' for k, v in self.model_dump(exclude_none=True).items())
        return f"{self.__class__.__name__}({fields})"
    
    def to_dict(self, exclude_none: bool = True) -> Dict[str, Any]:
        """Convert model to dictionary, optionally excluding None values."""
        return self.model_dump(exclude_none=exclude_none)
    
    def to_payload(self) -> Dict[str, Any]:
        """Wire representation sent to the Drip API."""
        return self.to_dict()
