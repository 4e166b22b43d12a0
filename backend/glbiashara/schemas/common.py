from pydantic import BaseModel
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ServiceResult(BaseModel, Generic[T]):
    """
    Envelope returned by every public service operation.

    - success=True, not_found=False: `data` holds the result.
    - success=True, not_found=True: the referenced user/entity does not exist;
      `data` is an empty value and `error` says what was missing.
    - success=False, invalid=True: the input was rejected (unknown entity
      type, e-mail already taken, ...).
    - success=False, invalid=False: the operation failed (database error);
      `error` holds a message safe to show to clients.
    """
    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    not_found: bool = False
    invalid: bool = False

    @classmethod
    def ok(cls, data: T) -> "ServiceResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def missing(cls, error: str, data: Optional[T] = None) -> "ServiceResult[T]":
        return cls(success=True, data=data, error=error, not_found=True)

    @classmethod
    def rejected(cls, error: str) -> "ServiceResult[T]":
        return cls(success=False, error=error, invalid=True)

    @classmethod
    def failure(cls, error: str) -> "ServiceResult[T]":
        return cls(success=False, error=error)
