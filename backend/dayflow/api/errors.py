"""Translate engine errors into HTTP responses."""
from __future__ import annotations

from fastapi import HTTPException, status

from dayflow.core.errors import AuthRequired, DayFlowError, GenerationFailure, ParseError, ValidationError


def http_error(exc: DayFlowError) -> HTTPException:
    if isinstance(exc, ValidationError):
        detail = {"message": exc.message, "field": exc.field} if exc.field else exc.message
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)
    if isinstance(exc, ParseError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message)
    if isinstance(exc, AuthRequired):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(exc, GenerationFailure):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)
