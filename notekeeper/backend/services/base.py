"""
Base Service.

Base class for all services providing common patterns for business logic.
Services own a store, run its blocking I/O off the event loop, and
implement business rules.

Usage:
    from notekeeper.backend.services.base import BaseService

    class TagService(BaseService):
        async def list_tags(self) -> list[Tag]:
            return await self._execute_store_operation("list_tags", self.store.load)
"""

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from notekeeper.backend.core.concurrency import run_blocking
from notekeeper.backend.core.exceptions import StorageError, ValidationError
from notekeeper.backend.core.logging import get_logger
from notekeeper.backend.repositories.base import JsonArrayStore

T = TypeVar("T")
SchemaT = TypeVar("SchemaT", bound=BaseModel)


class BaseService:
    """
    Base class for all services.

    Provides:
    - Store access
    - Logging context
    - Error wrapping for store operations
    - Common validation patterns

    Subclasses should:
    - Call super().__init__(store) in their __init__
    - Implement business logic methods
    """

    def __init__(self, store: JsonArrayStore) -> None:
        """
        Initialize the service with a store.

        Args:
            store: File-backed store for the service's records
        """
        self._store = store
        self._logger = get_logger(self.__class__.__module__)

    @property
    def store(self) -> JsonArrayStore:
        """Get the backing store."""
        return self._store

    async def _execute_store_operation(
        self,
        operation: str,
        fn: Callable[..., T],
        *args: Any,
    ) -> T:
        """
        Execute a blocking store call with error handling.

        Runs the call in the I/O thread pool and converts filesystem
        errors to application-specific exceptions.

        Args:
            operation: Description of the operation for logging
            fn: Store method to call
            *args: Arguments passed to fn

        Returns:
            Result of the call

        Raises:
            StorageError: If the store raised an OSError
        """
        try:
            return await run_blocking(fn, *args)
        except OSError as e:
            self._logger.error(
                "Store error",
                extra={"operation": operation, "error": str(e)},
            )
            raise StorageError(f"Storage operation failed: {operation}") from e

    def _coerce(self, schema: type[SchemaT], data: SchemaT | Mapping[str, Any]) -> SchemaT:
        """
        Accept either a schema instance or a plain mapping.

        Raises:
            ValidationError: If the mapping does not match the schema
        """
        if isinstance(data, schema):
            return data
        try:
            return schema.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid input",
                details={
                    "validation_errors": [
                        {
                            "field": ".".join(str(loc) for loc in err.get("loc", [])),
                            "message": err.get("msg", "Validation error"),
                        }
                        for err in e.errors()
                    ]
                },
            ) from e

    def _validate_required(
        self,
        fields: Mapping[str, Any],
        field_names: list[str],
    ) -> None:
        """
        Validate that required fields are present and not empty.

        Args:
            fields: Mapping of field names to values
            field_names: List of required field names

        Raises:
            ValidationError: If any required field is missing or empty
        """
        missing = []
        for name in field_names:
            value = fields.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)

        if missing:
            raise ValidationError(
                "Required fields missing",
                details={"missing_fields": missing},
            )

    def _log_operation(
        self,
        operation: str,
        **context: Any,
    ) -> None:
        """
        Log a service operation with context.

        Args:
            operation: Description of the operation
            **context: Additional context to include in log
        """
        self._logger.info(
            operation,
            extra={"service": self.__class__.__name__, **context},
        )

    def _log_debug(
        self,
        message: str,
        **context: Any,
    ) -> None:
        """
        Log debug information.

        Args:
            message: Debug message
            **context: Additional context to include in log
        """
        self._logger.debug(
            message,
            extra={"service": self.__class__.__name__, **context},
        )
