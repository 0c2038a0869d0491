"""Error code registry and type URIs for Problem Details.

Codes are kebab-case and stay stable across releases so that tooling which
consumes ``crossdoc`` problem payloads can match on them.

Examples
--------
>>> from crossdoc.errors.codes import ErrorCode, get_type_uri
>>> get_type_uri(ErrorCode.CONFIGURATION_ERROR)
'https://crossdoc.dev/problems/configuration-error'
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

__all__ = [
    "BASE_TYPE_URI",
    "ErrorCode",
    "get_type_uri",
]


BASE_TYPE_URI: Final[str] = "https://crossdoc.dev/problems"


class ErrorCode(StrEnum):
    """Stable error codes for crossdoc exceptions.

    Attributes
    ----------
    CONFIGURATION_ERROR
        Project configuration is missing or invalid.
    UNMATCHED_MODULE
        A native module lies outside the configured entry point and the
        synthesis policy rejects it.
    MODEL_LOAD_ERROR
        An item tree or doc model payload could not be decoded.
    SERIALIZATION_ERROR
        A doc model could not be encoded.
    FILE_OPERATION_ERROR
        Reading or writing a file failed.
    RUNTIME_ERROR
        Unclassified runtime failure.
    """

    CONFIGURATION_ERROR = "configuration-error"
    UNMATCHED_MODULE = "unmatched-module"
    MODEL_LOAD_ERROR = "model-load-error"
    SERIALIZATION_ERROR = "serialization-error"
    FILE_OPERATION_ERROR = "file-operation-error"
    RUNTIME_ERROR = "runtime-error"


def get_type_uri(code: ErrorCode) -> str:
    """Get the RFC 9457 type URI for an error code.

    Parameters
    ----------
    code : ErrorCode
        Error code enum value.

    Returns
    -------
    str
        Complete type URI (e.g., "https://crossdoc.dev/problems/model-load-error").
    """
    return f"{BASE_TYPE_URI}/{code.value}"
