"""
Base Service.

Base class for all services providing common patterns for business logic.
Services orchestrate repositories, handle transactions, and implement
business rules.

Usage:
    from clinic.backend.services.base import BaseService

    class GoalService(BaseService):
        def __init__(self, session: AsyncSession) -> None:
            super().__init__(session)
            self.goal_repo = GoalRepository(session)

        async def create_goal(self, client_id: str, data: GoalCreate) -> Goal:
            await self.client_repo.get_by_id(client_id)
            return await self._execute_db_operation(
                "create_goal",
                self.goal_repo.create(client_id=client_id, **data.model_dump()),
            )
"""

from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.backend.core.exceptions import (
    ConflictError,
    DatabaseError,
    ValidationError,
)
from clinic.backend.core.logging import get_logger

T = TypeVar("T")


class BaseService:
    """
    Base class for all services.

    Provides:
    - Database session management
    - Logging context
    - Error wrapping for database operations
    - Partial-update payload checks

    Subclasses should:
    - Call super().__init__(session) in their __init__
    - Initialize repositories in __init__
    - Implement business logic methods
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize the service with a database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self._session = session
        self._logger = get_logger(self.__class__.__module__)

    @property
    def session(self) -> AsyncSession:
        """Get the database session."""
        return self._session

    async def _execute_db_operation(
        self,
        operation: str,
        coro: Any,
        conflict_message: str = "Resource already exists",
    ) -> T:
        """
        Execute a database operation with error handling.

        Wraps database operations to convert SQLAlchemy exceptions
        to application-specific exceptions.

        Args:
            operation: Description of the operation for logging
            coro: Coroutine to execute
            conflict_message: Message for unique constraint violations

        Returns:
            Result of the coroutine

        Raises:
            ConflictError: For unique constraint violations
            DatabaseError: For other database errors
        """
        try:
            return await coro
        except IntegrityError as e:
            self._logger.warning(
                "Database integrity error",
                extra={"operation": operation, "error": str(e)},
            )
            error_str = str(e).lower()
            if "unique" in error_str or "duplicate" in error_str:
                raise ConflictError(conflict_message)
            raise DatabaseError(f"Database constraint violation: {operation}")
        except SQLAlchemyError as e:
            self._logger.error(
                "Database error",
                extra={"operation": operation, "error": str(e)},
            )
            raise DatabaseError(f"Database operation failed: {operation}")

    def _update_payload(
        self,
        data: BaseModel,
        required: tuple[str, ...] = (),
    ) -> dict[str, Any]:
        """
        Fields explicitly supplied in an update request.

        Omitted fields are left out so they keep their stored value; an
        explicit null clears an optional field.

        Args:
            data: Update schema instance
            required: Fields that cannot be cleared

        Raises:
            ValidationError: If a required field is explicitly null
        """
        payload = data.model_dump(exclude_unset=True)
        null_fields = [name for name in required if name in payload and payload[name] is None]
        if null_fields:
            raise ValidationError(
                "Required fields cannot be null",
                details={"null_fields": null_fields},
            )
        return payload

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
