"""Exception hierarchy and Problem Details support.

Examples
--------
>>> from crossdoc.errors import CrossDocError, ErrorCode
>>> try:
...     raise CrossDocError("Operation failed", code=ErrorCode.RUNTIME_ERROR)
... except CrossDocError as e:
...     details = e.to_problem_details(instance="urn:crossdoc:build")
...     assert details["type"] == "https://crossdoc.dev/problems/runtime-error"
"""

from __future__ import annotations

from crossdoc.errors.codes import BASE_TYPE_URI, ErrorCode, get_type_uri
from crossdoc.errors.exceptions import (
    ConfigurationError,
    CrossDocError,
    FileOperationError,
    ModelLoadError,
    SerializationError,
    UnmatchedModuleError,
)
from crossdoc.errors.problem_details import ProblemDetails, build_problem_details, render_problem

__all__ = [
    "BASE_TYPE_URI",
    "ConfigurationError",
    "CrossDocError",
    "ErrorCode",
    "FileOperationError",
    "ModelLoadError",
    "ProblemDetails",
    "SerializationError",
    "UnmatchedModuleError",
    "build_problem_details",
    "get_type_uri",
    "render_problem",
]
