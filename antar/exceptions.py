"""
Exception hierarchy for the habit tracker

Every error carries a request id and the operation that failed, logs itself
once on creation, and knows the message the API shows the user. The API layer
maps validation, missing records and duplicates to 422, 404 and 409.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

import psycopg

logger = logging.getLogger(__name__)


class AntarError(Exception):
    """
    Base exception for all habit tracker errors

    Example:
        raise AntarError(
            message="Failed to save completion",
            user_id="7f3c...",
            operation="complete_habit",
            context={"habit_id": "abc-123"}
        )
    """

    log_level = logging.ERROR

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        self._log_error()

    def _log_error(self) -> None:
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # 'message' is reserved by logging
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
        }
        if self.cause:
            log_data["cause"] = str(self.cause)

        logger.log(
            self.log_level,
            f"{self.__class__.__name__}: {self.message}",
            extra=log_data,
            exc_info=self.cause
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


class ValidationError(AntarError):
    """
    Input outside the domain a function accepts: a negative XP total, an
    unknown difficulty or leaderboard period, an empty habit name.
    """

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


class ConflictError(AntarError):
    """A write would duplicate an existing record (second completion on a day)"""

    log_level = logging.WARNING

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("user_message", message)
        super().__init__(message=message, **kwargs)


# ==========================================
# Database Errors
# ==========================================

class DatabaseError(AntarError):
    pass


class ConnectionError(DatabaseError):
    """Pool missing or the server unreachable"""

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble connecting to the database. Please try again in a moment.",
            **kwargs
        )


class QueryError(DatabaseError):
    """A statement failed on a live connection"""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        self.query = query
        super().__init__(
            message=message,
            user_message="We couldn't save your progress. Please try again.",
            context={**(context or {}), "query": query},
            **kwargs
        )


class RecordNotFoundError(DatabaseError):
    """A habit, completion or profile the caller named does not exist for that user"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


class AIProviderError(AntarError):
    """The text provider answered with nothing usable (motivation, suggestions, reports)"""

    def __init__(self, message: str, model: Optional[str] = None, **kwargs):
        self.model = model
        super().__init__(
            message=message,
            user_message="AI suggestions are unavailable right now. Showing defaults instead.",
            context={"model": model},
            **kwargs
        )


class ConfigurationError(AntarError):
    """A required setting is missing or malformed at startup"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


def wrap_database_error(
    error: psycopg.Error,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> DatabaseError:
    """
    Translate a psycopg error into the hierarchy above

    Unique violations that a query wants to report as a ConflictError are
    caught at the query itself; anything reaching here is unexpected.

    Example:
        try:
            ...
        except psycopg.Error as e:
            raise wrap_database_error(e, operation="db.connection") from e
    """
    if isinstance(error, psycopg.OperationalError):
        return ConnectionError(
            message=f"Database connection failed: {error}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    return QueryError(
        message=f"Database query failed: {error}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
