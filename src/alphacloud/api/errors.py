"""Request status, error codes and human readable error texts.

Every failed request resolves to a single ``ErrorCode`` plus an optional
message, regardless of where it failed:

* transport errors (connection, TLS, timeout, HTTP status) in the 1..499 range,
* errors raised locally while decoding the response in the 1xxx range,
* errors returned by the API through the envelope's ``code`` field in the 6xxx range.
"""

import asyncio
import socket
import ssl
from collections.abc import Iterator
from enum import Enum, IntEnum
from typing import Any

import httpx


class RequestStatus(Enum):
    """Request status of an entity controller."""

    NO_REQUEST = 0
    LOADING = 1
    FINISHED = 2
    ERROR = 3


class ErrorDomain(Enum):
    """Where an error originated."""

    NONE = "none"
    TRANSPORT = "transport"
    LIBRARY = "library"
    APPLICATION = "application"
    UNKNOWN = "unknown"


class ErrorCode(IntEnum):
    """Error codes.

    Integers without a named member (e.g. undocumented API codes) still
    construct an ``ErrorCode``; the result is an unnamed pseudo-member.
    """

    UNKNOWN_ERROR = -1
    NO_ERROR = 0

    # Transport
    CONNECTION_REFUSED_ERROR = 1
    REMOTE_HOST_CLOSED_ERROR = 2
    HOST_NOT_FOUND_ERROR = 3
    TIMEOUT_ERROR = 4
    OPERATION_CANCELED_ERROR = 5
    SSL_HANDSHAKE_FAILED_ERROR = 6
    TEMPORARY_NETWORK_FAILURE_ERROR = 7
    TOO_MANY_REDIRECTS_ERROR = 10
    UNKNOWN_NETWORK_ERROR = 99
    PROXY_CONNECTION_REFUSED_ERROR = 101
    PROXY_TIMEOUT_ERROR = 105
    UNKNOWN_PROXY_ERROR = 199
    CONTENT_ACCESS_DENIED = 201
    CONTENT_OPERATION_NOT_PERMITTED_ERROR = 202
    CONTENT_NOT_FOUND_ERROR = 203
    AUTHENTICATION_REQUIRED_ERROR = 204
    CONTENT_CONFLICT_ERROR = 206
    CONTENT_GONE_ERROR = 207
    UNKNOWN_CONTENT_ERROR = 299
    PROTOCOL_UNKNOWN_ERROR = 301
    PROTOCOL_INVALID_OPERATION_ERROR = 302
    PROTOCOL_FAILURE = 399
    INTERNAL_SERVER_ERROR = 401
    OPERATION_NOT_IMPLEMENTED_ERROR = 402
    SERVICE_UNAVAILABLE_ERROR = 403
    UNKNOWN_SERVER_ERROR = 499

    # Library
    JSON_PARSE_ERROR = 1001
    UNEXPECTED_JSON_DATA_ERROR = 1002
    EMPTY_JSON_OBJECT_ERROR = 1003

    # API
    PARAMETER_ERROR = 6001
    SN_NOT_BOUND_TO_USER = 6002
    SN_ALREADY_BOUND = 6003
    CHECK_CODE_ERROR = 6004
    APP_ID_NOT_BOUND_TO_SN = 6005
    TIMESTAMP_ERROR = 6006
    SIGN_VERIFICATION_ERROR = 6007
    SET_FAILED = 6008
    WHITELIST_VERIFICATION_FAILED = 6009
    SIGN_EMPTY = 6010
    TIMESTAMP_EMPTY = 6011
    APP_ID_EMPTY = 6012
    DATA_DOES_NOT_EXIST = 6016
    INVALID_DATE = 6026
    OPERATION_FAILED = 6029
    SYSTEM_SN_DOES_NOT_EXIST = 6038
    SYSTEM_OFFLINE = 6042
    VERIFICATION_CODE_ERROR = 6046
    TOO_MANY_REQUESTS = 6053

    @classmethod
    def _missing_(cls, value: object) -> "ErrorCode | None":
        if isinstance(value, int) and not isinstance(value, bool):
            pseudo_member = int.__new__(cls, value)
            pseudo_member._name_ = None
            pseudo_member._value_ = value
            return pseudo_member
        return None

    @property
    def known(self) -> bool:
        """Whether this is a named member."""
        return self._name_ is not None

    @property
    def domain(self) -> ErrorDomain:
        """The failure domain of this code."""
        value = int(self)
        if value == 0:
            return ErrorDomain.NONE
        if 0 < value < 1000:
            return ErrorDomain.TRANSPORT
        if 1000 <= value < 2000:
            return ErrorDomain.LIBRARY
        if 6000 <= value < 7000:
            return ErrorDomain.APPLICATION
        return ErrorDomain.UNKNOWN


_FIXED_TEXTS: dict[ErrorCode, str] = {
    ErrorCode.UNKNOWN_ERROR: "An unknown error occurred.",
    ErrorCode.NO_ERROR: "The operation completed successfully.",
    ErrorCode.TIMEOUT_ERROR: "Operation timed out.",
    ErrorCode.OPERATION_CANCELED_ERROR: "Operation was canceled.",
    ErrorCode.EMPTY_JSON_OBJECT_ERROR: "Empty JSON object received.",
}

# Only used when the API did not send a message of its own.
_API_TEMPLATES: dict[ErrorCode, str] = {
    ErrorCode.PARAMETER_ERROR: "Invalid parameter provided.",
    ErrorCode.SN_NOT_BOUND_TO_USER: "The provided serial number is not associated with this user.",
    ErrorCode.SN_ALREADY_BOUND: "The provided serial number is already bound.",
    ErrorCode.CHECK_CODE_ERROR: "Check code error.",
    ErrorCode.APP_ID_NOT_BOUND_TO_SN: (
        "The provided application ID is not associated with this serial number."
    ),
    ErrorCode.TIMESTAMP_ERROR: "The provided time stamp is either invalid, or too far in the past.",
    ErrorCode.SIGN_VERIFICATION_ERROR: "API secret verification error.",
    ErrorCode.SET_FAILED: "Failed to set requested configuration.",
    ErrorCode.WHITELIST_VERIFICATION_FAILED: "Whitelist verification failed.",
    ErrorCode.SIGN_EMPTY: "API secret was not provided.",
    ErrorCode.TIMESTAMP_EMPTY: "Request time stamp was not provided.",
    ErrorCode.APP_ID_EMPTY: "Application ID was not provided.",
    ErrorCode.DATA_DOES_NOT_EXIST: "Data does not exist or has been deleted.",
    ErrorCode.INVALID_DATE: "Invalid date provided.",
    ErrorCode.OPERATION_FAILED: "Operation failed.",
    ErrorCode.SYSTEM_SN_DOES_NOT_EXIST: "System serial number does not exist.",
    ErrorCode.SYSTEM_OFFLINE: "System is offline.",
    ErrorCode.VERIFICATION_CODE_ERROR: "Verification code error.",
    ErrorCode.TOO_MANY_REQUESTS: "Too many requests, try again later.",
}


def error_text(code: ErrorCode | int, details: Any = None) -> str:
    """Get a human readable error description.

    Args:
        code: The error code.
        details: Additional details, e.g. the JSON parser message, the
            message returned by the API, or the JSON value that was
            received when something else was expected.

    Returns:
        The error description. Falls back to the details, then to the
        symbolic name of the code, then to an empty string.
    """
    code = ErrorCode(code)
    details_string = details if isinstance(details, str) else ""

    if code in _FIXED_TEXTS:
        return _FIXED_TEXTS[code]

    if code == ErrorCode.JSON_PARSE_ERROR:
        if details_string:
            return f"Failed to parse JSON: {details_string}"
        return "Failed to parse JSON."

    if code == ErrorCode.UNEXPECTED_JSON_DATA_ERROR:
        if isinstance(details, list):
            return "Unexpected JSON Array received."
        return "Unexpected JSON content received."

    if not details_string and code in _API_TEMPLATES:
        return _API_TEMPLATES[code]

    if details_string:
        return details_string

    return code.name or ""


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def transport_error_code(exc: BaseException) -> ErrorCode:
    """Map an exception raised by the transport to an error code."""
    if isinstance(exc, asyncio.CancelledError):
        return ErrorCode.OPERATION_CANCELED_ERROR
    if isinstance(exc, httpx.ProxyError):
        return ErrorCode.UNKNOWN_PROXY_ERROR
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ErrorCode.TIMEOUT_ERROR
    if isinstance(exc, httpx.TooManyRedirects):
        return ErrorCode.TOO_MANY_REDIRECTS_ERROR
    if isinstance(exc, httpx.UnsupportedProtocol):
        return ErrorCode.PROTOCOL_UNKNOWN_ERROR
    if isinstance(exc, httpx.ConnectError):
        for cause in _exception_chain(exc):
            if isinstance(cause, ssl.SSLError):
                return ErrorCode.SSL_HANDSHAKE_FAILED_ERROR
            if isinstance(cause, socket.gaierror):
                return ErrorCode.HOST_NOT_FOUND_ERROR
            if isinstance(cause, ConnectionRefusedError):
                return ErrorCode.CONNECTION_REFUSED_ERROR
        return ErrorCode.UNKNOWN_NETWORK_ERROR
    if isinstance(exc, httpx.RemoteProtocolError):
        return ErrorCode.REMOTE_HOST_CLOSED_ERROR
    if isinstance(exc, httpx.LocalProtocolError):
        return ErrorCode.PROTOCOL_INVALID_OPERATION_ERROR
    if isinstance(exc, httpx.ProtocolError):
        return ErrorCode.PROTOCOL_FAILURE
    if isinstance(exc, httpx.ReadError):
        return ErrorCode.REMOTE_HOST_CLOSED_ERROR
    if isinstance(exc, httpx.NetworkError):
        return ErrorCode.TEMPORARY_NETWORK_FAILURE_ERROR
    if isinstance(exc, (httpx.HTTPError, httpx.InvalidURL)):
        return ErrorCode.UNKNOWN_NETWORK_ERROR
    return ErrorCode.UNKNOWN_ERROR


_HTTP_STATUS_CODES: dict[int, ErrorCode] = {
    401: ErrorCode.AUTHENTICATION_REQUIRED_ERROR,
    403: ErrorCode.CONTENT_ACCESS_DENIED,
    404: ErrorCode.CONTENT_NOT_FOUND_ERROR,
    405: ErrorCode.CONTENT_OPERATION_NOT_PERMITTED_ERROR,
    409: ErrorCode.CONTENT_CONFLICT_ERROR,
    410: ErrorCode.CONTENT_GONE_ERROR,
    500: ErrorCode.INTERNAL_SERVER_ERROR,
    501: ErrorCode.OPERATION_NOT_IMPLEMENTED_ERROR,
    503: ErrorCode.SERVICE_UNAVAILABLE_ERROR,
}


def http_status_error_code(status_code: int) -> ErrorCode:
    """Map an HTTP error status to an error code.

    Args:
        status_code: HTTP status code, expected to be >= 400.

    Returns:
        The matching transport error code.
    """
    if status_code in _HTTP_STATUS_CODES:
        return _HTTP_STATUS_CODES[status_code]
    if 400 <= status_code < 500:
        return ErrorCode.UNKNOWN_CONTENT_ERROR
    if status_code >= 500:
        return ErrorCode.UNKNOWN_SERVER_ERROR
    return ErrorCode.NO_ERROR
