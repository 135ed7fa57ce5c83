# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from typing import Any, ClassVar

__all__ = (
    "AspectError",
    "ValidationError",
    "ConfigurationError",
    "TargetAlreadySetError",
    "SchedulerError",
    "DeferredError",
    "DeferredNotReadyError",
    "DeferredCancelledError",
)


class AspectError(Exception):
    default_message: ClassVar[str] = "aspectweave error"
    status_code: ClassVar[int] = 500
    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message or self.default_message)
        if cause:
            self.__cause__ = cause
        self.message = message or self.default_message
        self.details = details or {}
        self.status_code = status_code or self.status_code

    def to_dict(self, *, include_cause: bool = False) -> dict[str, Any]:
        data = {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            **({"details": self.details} if self.details else {}),
        }
        if include_cause and (cause := self.get_cause()):
            data["cause"] = repr(cause)
        return data

    def get_cause(self) -> Exception | None:
        """Get the cause of this error, if any."""
        return self.__cause__ if hasattr(self, "__cause__") else None


class ValidationError(AspectError):
    """Raised when a call, plan or policy value is not acceptable."""

    default_message = "Validation failed"
    status_code = 422
    __slots__ = ()

    @classmethod
    def from_value(
        cls,
        value: Any,
        *,
        expected: str | None = None,
        message: str | None = None,
        cause: Exception | None = None,
        **extra: Any,
    ):
        """Create a ValidationError from a value with optional expected type and message."""
        details = {
            "value": value,
            "type": type(value).__name__,
            **({"expected": expected} if expected else {}),
            **extra,
        }
        return cls(message=message, details=details, cause=cause)


class ConfigurationError(AspectError):
    default_message = "Invalid composer configuration"
    status_code = 409
    __slots__ = ()


class TargetAlreadySetError(ConfigurationError):
    """Raised when a composer is given a second target function."""

    default_message = "A target function is already set"
    __slots__ = ()


class SchedulerError(AspectError):
    default_message = "Deferred execution could not be scheduled"
    __slots__ = ()


class DeferredError(AspectError):
    default_message = "Deferred result unavailable"
    __slots__ = ()


class DeferredNotReadyError(DeferredError):
    default_message = "Deferred execution has not completed yet"
    __slots__ = ()


class DeferredCancelledError(DeferredError):
    default_message = "Deferred execution was cancelled"
    __slots__ = ()
