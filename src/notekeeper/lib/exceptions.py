from __future__ import annotations

import enum
import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, cast

from litestar import Response, status_codes
from litestar.exceptions import InternalServerException, ValidationException

if TYPE_CHECKING:
    from typing import Any, ClassVar, Final

    from litestar import Request
    from litestar.exceptions import HTTPException


__all__ = (
    "ApplicationError",
    "ClientError",
    "ErrorKind",
    "HTTPError",
    "ImproperlyConfiguredError",
    "InternalServerError",
    "InvalidTokenError",
    "NoFieldsToUpdateError",
    "NotAuthorizedError",
    "NotFoundError",
    "PermissionDeniedError",
    "TooManyRequestsError",
    "ValidationError",
    "http_error_to_http_response",
    "litestar_http_exc_to_http_response",
    "unexpected_exc_to_http_response",
)


LOGGER: Final = logging.getLogger(__name__)


class ErrorKind(enum.StrEnum):
    """Machine readable tag carried by every application error.

    Clients and callers branch on this value instead of parsing the
    human readable ``detail``.
    """

    VALIDATION = "validation"
    DUPLICATE_USERNAME = "duplicate_username"
    INVALID_CREDENTIALS = "invalid_credentials"
    NOT_AUTHENTICATED = "not_authenticated"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_SESSION = "expired_session"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"


class ApplicationError(Exception):
    """Base error class for all application errors."""


class HTTPError(ApplicationError):
    """HTTP error based on RFC 9457 Problem Details.

    Subclasses only override the class level defaults, the constructor is
    shared by the whole hierarchy.

    Parameters
    ----------
    *args : Any
        Positional arguments passed to the base ``ApplicationError``.
        If ``detail`` is not provided first arg should be error detail.
    type_ : str, optional
        A URI reference that identifies the problem type.
    status_code : int, optional
        The HTTP status code, defaults to the class ``default_status_code``.
    title : str, optional
        A short, human-readable summary of the problem type.
    detail : str, optional
        A human-readable explanation specific to this occurrence. Defaults
        to the first positional argument, then to ``default_detail``.
    instance : str, optional
        A URI reference that identifies the specific occurrence of the problem.
    headers : dict[str, str], optional
        HTTP headers to include in the response.
    **extension : Any
        Additional extension members to include in the problem details object.
    """

    _PROBLEM_DETAILS_MEDIA_TYPE: ClassVar[str] = "application/problem+json"

    default_status_code: ClassVar[int | None] = None
    default_detail: ClassVar[str | None] = None
    kind: ClassVar[ErrorKind | None] = None

    type_: str | None
    status_code: int | None
    title: str | None
    detail: str | None
    instance: str | None
    headers: dict[str, str] | None
    extension: dict[str, Any]

    def __init__(
        self,
        *args: Any,
        type_: str | None = None,
        status_code: int | None = None,
        title: str | None = None,
        detail: str | None = None,
        instance: str | None = None,
        headers: dict[str, str] | None = None,
        **extension: Any,
    ) -> None:
        self.type_ = type_
        self.status_code = status_code or self.default_status_code
        self.title = title
        self.detail = detail or (args[0] if args else None) or self.default_detail
        self.instance = instance
        self.headers = headers
        self.extension = extension

        super().__init__(*args)

    def to_response(self, request: Request[Any, Any, Any]) -> Response[dict[str, Any]]:
        """Convert Api Error to response."""
        problem_details: dict[str, Any] = {}

        if self.type_ is not None:
            problem_details["type"] = self.type_

        if self.status_code is not None:
            problem_details["status"] = self.status_code

        if self.title is not None:
            problem_details["title"] = self.title
        elif self.status_code is not None:
            problem_details["title"] = HTTPStatus(self.status_code).phrase

        if self.detail is not None:
            problem_details["detail"] = self.detail

        if self.kind is not None:
            problem_details["kind"] = self.kind.value

        problem_details["instance"] = self.instance or str(request.url)

        if self.extension:
            problem_details.update(self.extension)

        return Response(
            content=problem_details,
            headers=self.headers,
            media_type=self._PROBLEM_DETAILS_MEDIA_TYPE,
            status_code=self.status_code,
        )

    def __repr__(self) -> str:
        return f"{self.status_code} - {self.__class__.__name__} - {self.detail}"


class ImproperlyConfiguredError(HTTPError):
    """Improper configuration error."""

    default_status_code = status_codes.HTTP_500_INTERNAL_SERVER_ERROR
    kind = ErrorKind.INTERNAL


class InternalServerError(HTTPError):
    """Raised when the server encountered an unexpected condition that prevented it from fulfilling the request."""

    default_status_code = status_codes.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = (
        "Something went wrong on our end. Please contact support if the issue persists."
    )
    kind = ErrorKind.INTERNAL


class ClientError(HTTPError):
    """Raised when a client side error occurs."""

    default_status_code = status_codes.HTTP_400_BAD_REQUEST


class ValidationError(ClientError):
    """Raised when a client data validation error occurs."""

    kind = ErrorKind.VALIDATION


class NoFieldsToUpdateError(ValidationError):
    """Raised when there are no fields to update."""

    default_detail = "No fields provided to update."

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault(
            "invalid_parameters",
            [
                {
                    "field": "body",
                    "message": "At least one field must be provided for update.",
                }
            ],
        )
        super().__init__(*args, **kwargs)


class NotAuthorizedError(ClientError):
    """Raised when the request lacks valid authentication credentials for the requested resource."""

    default_status_code = status_codes.HTTP_401_UNAUTHORIZED
    kind = ErrorKind.NOT_AUTHENTICATED


class PermissionDeniedError(ClientError):
    """Raised when the request understood, but not authorized."""

    default_status_code = status_codes.HTTP_403_FORBIDDEN


class InvalidTokenError(PermissionDeniedError):
    """Raised when a bearer token is malformed, forged or expired."""

    default_detail = "Invalid or expired token."
    kind = ErrorKind.INVALID_TOKEN


class NotFoundError(ClientError):
    """Raised when we cannot find the requested resource."""

    default_status_code = status_codes.HTTP_404_NOT_FOUND
    kind = ErrorKind.NOT_FOUND


class TooManyRequestsError(ClientError):
    """Raised when request limits have been exceeded."""

    default_status_code = status_codes.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Too many requests."
    kind = ErrorKind.RATE_LIMITED


def http_error_to_http_response(
    request: Request[Any, Any, Any], error: HTTPError
) -> Response[dict[str, Any]]:
    """Convert HTTP error to HTTP response.

    Parameters
    ----------
    request : Request[Any, Any, Any]
        The incoming request.
    error: HTTPError
        The HTTP error that needs to be converted.
    """
    return error.to_response(request)


def litestar_http_exc_to_http_response(
    request: Request[Any, Any, Any], exception: HTTPException
) -> Response[Any]:
    """Convert Litestar HTTP exception to HTTP response.

    Parameters
    ----------
    request : Request[Any, Any, Any]
        The incoming request.
    exception: HTTPException
        The HTTP exception that needs to be converted.
    """
    if isinstance(exception, ValidationException):
        kwargs: dict[str, Any] = {
            "headers": exception.headers,
            "status_code": exception.status_code,
        }
        extra = exception.extra
        invalid_parameters: list[dict[str, Any]] = []

        if isinstance(extra, list):
            for data in extra:
                if not isinstance(data, dict):
                    continue

                data = cast("dict[str, Any]", data)
                params: dict[str, Any] = {}

                if message := data.get("message"):
                    params["message"] = message

                if field := data.get("key"):
                    params["field"] = field

                if params:
                    invalid_parameters.append(params)

        if invalid_parameters:
            kwargs["invalid_parameters"] = invalid_parameters
            kwargs["detail"] = "Validation failed for one or more fields."
        else:
            kwargs["detail"] = exception.detail

        exc: HTTPError = ValidationError(**kwargs)

    elif isinstance(exception, InternalServerException):
        exc = InternalServerError(
            status_code=exception.status_code, headers=exception.headers
        )

    else:
        exc = HTTPError(
            detail=exception.detail,
            status_code=exception.status_code,
            headers=exception.headers,
        )

    return exc.to_response(request)


def unexpected_exc_to_http_response(
    request: Request[Any, Any, Any], exception: Exception
) -> Response[Any]:
    """Log an unexpected exception and answer with a generic internal error.

    The exception detail never reaches the client.

    Parameters
    ----------
    request : Request[Any, Any, Any]
        The incoming request.
    exception: Exception
        The exception that escaped the route handler.
    """
    LOGGER.error(
        "Unhandled error method=%s path=%s",
        request.method,
        request.url.path,
        exc_info=exception,
    )
    return InternalServerError().to_response(request)
