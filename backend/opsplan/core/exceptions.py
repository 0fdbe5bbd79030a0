"""
Domain exception hierarchy.

Services raise these; the global handler in ``opsplan.main`` turns them into
structured HTTP responses, so routers never catch domain errors themselves.
"""
from typing import Any, Optional

from fastapi import HTTPException


class OpsPlanException(Exception):
    """Base class for every domain error."""

    code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class EntityNotFoundException(OpsPlanException):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} with id '{entity_id}' not found")
        self.entity = entity
        self.entity_id = entity_id


class InsufficientStockException(OpsPlanException):
    code = "INSUFFICIENT_STOCK"
    status_code = 409

    def __init__(self, requested, available):
        super().__init__(f"Requested {requested} but only {available} available")
        self.requested = requested
        self.available = available


class AlreadyConvertedException(OpsPlanException):
    code = "ALREADY_CONVERTED"
    status_code = 409

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} has already been converted")
        self.entity = entity
        self.entity_id = entity_id


class InvalidStateTransitionException(OpsPlanException):
    code = "INVALID_STATE_TRANSITION"
    status_code = 409

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(f"{entity} cannot move from '{current}' to '{target}'")
        self.entity = entity
        self.current = current
        self.target = target


class ExternalServiceUnavailableException(OpsPlanException):
    code = "EXTERNAL_SERVICE_UNAVAILABLE"
    status_code = 503

    def __init__(self, service: str, reason: str):
        super().__init__(f"{service} unavailable: {reason}")
        self.service = service
        self.reason = reason


class ValidationException(OpsPlanException):
    code = "VALIDATION_ERROR"
    status_code = 422


def to_http_exception(exc: OpsPlanException) -> HTTPException:
    return HTTPException(
        status_code=exc.status_code,
        detail={"code": exc.code, "message": exc.message},
    )
