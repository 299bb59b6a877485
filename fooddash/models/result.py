"""Discriminated result types returned by components instead of raising."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

T = TypeVar("T")


class FailureReason(str, Enum):
    """Why a component call failed."""

    UPSTREAM_ERROR = "upstream_error"
    TRANSPORT_ERROR = "transport_error"
    QUERY_FAILED = "query_failed"


class Failure(BaseModel):
    """Typed failure surfaced by the gateway and aggregator."""

    model_config = ConfigDict(frozen=True)

    reason: FailureReason
    status_code: int | None = Field(None, description="Upstream HTTP status")
    message: str = Field(..., description="Human readable description")


class Result(BaseModel, Generic[T]):
    """Either ``data`` or ``error`` - never both, never neither."""

    data: T | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _data_xor_error(self) -> "Result[T]":
        if (self.data is None) == (self.error is None):
            msg = "Result must carry exactly one of data or error"
            raise ValueError(msg)
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T) -> "Result[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, error: str) -> "Result[T]":
        return cls(error=error)
