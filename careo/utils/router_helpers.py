# careo/utils/router_helpers.py
"""
Router Helper Functions

Common functions and decorators for FastAPI routers to reduce code duplication.
Provides standardized error handling and response patterns.
"""

from functools import wraps
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar, Union

from fastapi import HTTPException

from ..database.exceptions import RepositoryUnavailableError
from ..enums import LoggerName, LogSource
from ..exceptions import IntakeGenerationError
from ..services.logger import get_service_logger

logger = get_service_logger(LoggerName.ERROR_HANDLER, LogSource.API)

T = TypeVar("T")


def handle_exceptions(operation_name: str):
    """
    Decorator for standardized exception handling in router endpoints.

    Provides consistent error logging and HTTP response patterns across all routers.

    Args:
        operation_name: Human-readable description of the operation for error messages

    Usage:
        @handle_exceptions("fetch intake records")
        async def get_intake_records():
            # endpoint logic here
            pass
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                # Re-raise HTTP exceptions as-is
                raise
            except IntakeGenerationError as e:
                raise HTTPException(status_code=400, detail=str(e))
            except RepositoryUnavailableError as e:
                logger.error(f"Database unavailable while trying to {operation_name}", exception=e)
                raise HTTPException(
                    status_code=503, detail="Database temporarily unavailable"
                )
            except Exception as e:
                logger.error(f"Error {operation_name}: {e}", exception=e)
                raise HTTPException(
                    status_code=500, detail=f"Failed to {operation_name}"
                )

        return wrapper

    return decorator


async def validate_entity_exists(
    db_method: Callable[..., Awaitable[Optional[T]]],
    entity_id: str,
    entity_name: str = "entity",
) -> T:
    """
    Fetch an entity or fail with 404.

    Usage:
        order = await validate_entity_exists(
            order_ops.get_order_by_id, order_id, "medication order"
        )
    """
    entity = await db_method(entity_id)
    if not entity:
        raise HTTPException(
            status_code=404, detail=f"{entity_name.capitalize()} not found"
        )
    return entity

class ResponseFormatter:
    """
    Helper class for creating standardized API responses.
    """

    @staticmethod
    def success(
        message: str, data: Optional[Union[Dict[str, Any], List]] = None, **kwargs
    ) -> Dict[str, Any]:
        """
        Create a standardized success response.

        Args:
            message: Success message
            data: Optional data payload
            **kwargs: Additional fields to include

        Returns:
            Standardized success response
        """
        response: Dict[str, Any] = {"success": True, "message": message}

        if data is not None:
            response["data"] = data

        response.update(kwargs)
        return response
