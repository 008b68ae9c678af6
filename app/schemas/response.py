from dataclasses import dataclass, field
from pydantic import BaseModel, Field
from typing import Any, Generic, List, Optional, TypeVar
import uuid

from app.core.errors import ServiceError

T = TypeVar("T")


def _rid():
    return uuid.uuid4().hex

class SuccessResponse(BaseModel):
    """Simple success response wrapper with just data, success, and request_id"""
    success: Optional[bool] = Field(default=True)
    request_id: str = Field(default_factory=_rid)
    data: Optional[Any] = None


@dataclass
class PagedResult(Generic[T]):
    """One page of an ordered listing plus the total number of matches."""
    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service call. Failures carry a ServiceError instead of raising it,
    so callers branch on is_success.
    """
    value: Optional[T] = None
    error: Optional[ServiceError] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "ServiceResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ServiceError) -> "ServiceResult[T]":
        return cls(error=error)
