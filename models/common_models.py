"""
Shared pydantic building blocks: camelCase serialization and the response envelope.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class CamelModel(BaseModel):
    """Serializes field names as camelCase while accepting either form on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """Envelope returned by every successful endpoint."""
    success: bool = True
    message: Optional[str] = None
    data: T
