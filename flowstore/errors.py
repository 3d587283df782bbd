"""Errors raised by the storage layer and by transaction execution."""

from __future__ import annotations


class StorageError(Exception):
    """Base class for errors raised by a store."""


class NotFoundError(StorageError, LookupError):
    """Raised when an entity cannot be found in a store."""

    def __init__(self, message: str = "could not find entity") -> None:
        super().__init__(message)


class FlowError(Exception):
    """Wraps an error reported by the execution environment."""

    def __init__(self, flow_error: BaseException) -> None:
        super().__init__(str(flow_error))
        self.flow_error = flow_error
        self.__cause__ = flow_error

    def __str__(self) -> str:
        return str(self.flow_error)