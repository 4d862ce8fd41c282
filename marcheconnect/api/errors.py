"""Mapping of domain errors to HTTP errors."""
from typing import NoReturn

from fastapi import HTTPException, status

from marcheconnect.domain.entities import (
    ApplicationNotFoundError,
    DomainError,
    InvalidInput,
    InvalidTransition,
)
from marcheconnect.domain.value_objects import ApplicationId


def parse_application_id(value: str) -> ApplicationId:
    """Malformed IDs cannot exist, so they are reported as not found"""
    try:
        return ApplicationId(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Application {value} not found"
        )


def raise_for_domain_error(error: DomainError) -> NoReturn:
    """
    InvalidTransition → 409 Conflict
    InvalidInput → 422 Unprocessable Entity
    ApplicationNotFoundError → 404 Not Found
    """
    if isinstance(error, ApplicationNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error)) from error
    if isinstance(error, InvalidTransition):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error)) from error
    if isinstance(error, InvalidInput):
        raise HTTPException(status_code=422, detail=str(error)) from error
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error)) from error
