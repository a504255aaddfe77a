"""AlphaCloud open API access."""

from alphacloud.api.connector import Connector
from alphacloud.api.errors import ErrorCode, ErrorDomain, RequestStatus, error_text
from alphacloud.api.request import ApiRequest, EndPoint, RequestState
from alphacloud.api.signer import current_timestamp, sign

__all__ = [
    "ApiRequest",
    "Connector",
    "EndPoint",
    "ErrorCode",
    "ErrorDomain",
    "RequestState",
    "RequestStatus",
    "current_timestamp",
    "error_text",
    "sign",
]
