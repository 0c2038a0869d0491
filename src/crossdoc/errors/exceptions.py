"""Typed exception hierarchy with Problem Details support.

All crossdoc exceptions inherit from :class:`CrossDocError`, which carries a
stable :class:`~crossdoc.errors.codes.ErrorCode`, a structured context mapping
and an RFC 9457 rendering.

Examples
--------
>>> from crossdoc.errors import ConfigurationError, ErrorCode
>>> try:
...     raise ConfigurationError("python.package is required")
... except ConfigurationError as e:
...     assert e.code == ErrorCode.CONFIGURATION_ERROR
...     details = e.to_problem_details(instance="urn:crossdoc:config")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from crossdoc.errors.codes import ErrorCode, get_type_uri
from crossdoc.errors.problem_details import build_problem_details

if TYPE_CHECKING:
    from collections.abc import Mapping

    from crossdoc.errors.problem_details import ProblemDetails

__all__ = [
    "ConfigurationError",
    "CrossDocError",
    "FileOperationError",
    "ModelLoadError",
    "SerializationError",
    "UnmatchedModuleError",
]


class CrossDocError(Exception):
    """Base exception for all crossdoc errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode, optional
        Stable error code. Defaults to ``ErrorCode.RUNTIME_ERROR``.
    http_status : int, optional
        Status used in Problem Details payloads. Defaults to 500.
    log_level : int, optional
        Level the CLI uses when logging the error. Defaults to ``logging.ERROR``.
    cause : Exception | None, optional
        Underlying exception, exposed as ``__cause__``. Defaults to None.
    context : Mapping[str, object] | None, optional
        Structured details copied into ``context``. Defaults to None.

    Attributes
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode
        Error code enum value.
    http_status : int
        Status code for Problem Details responses.
    log_level : int
        Logging level for error logging.
    context : dict[str, object]
        Additional context for error details.
    """

    def __init__(  # noqa: PLR0913
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.RUNTIME_ERROR,
        http_status: int = 500,
        log_level: int = logging.ERROR,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status
        self.log_level = log_level
        self.context: dict[str, object] = dict(context) if context else {}
        if cause is not None:
            self.__cause__ = cause

    def to_problem_details(
        self,
        instance: str | None = None,
        title: str | None = None,
    ) -> ProblemDetails:
        """Convert to RFC 9457 Problem Details JSON.

        Parameters
        ----------
        instance : str | None, optional
            URI identifying the specific occurrence. Defaults to None.
        title : str | None, optional
            Short summary. Defaults to the exception class name.

        Returns
        -------
        ProblemDetails
            Problem Details object with type, title, status, detail, code,
            instance, and optional extensions.
        """
        return build_problem_details(
            get_type_uri(self.code),
            title or self.__class__.__name__,
            self.http_status,
            self.message,
            instance or "urn:crossdoc:error",
            code=self.code.value,
            extensions=self.context or None,
        )

    def __str__(self) -> str:
        """Return ``ClassName[code]: message`` with the cause type when chained."""
        base = f"{self.__class__.__name__}[{self.code.value}]: {self.message}"
        if self.__cause__:
            base += f" (caused by: {type(self.__cause__).__name__})"
        return base


class ConfigurationError(CrossDocError):
    """Error during configuration validation or loading.

    Parameters
    ----------
    message : str
        Human-readable error message describing the configuration failure.
    cause : Exception | None, optional
        Underlying exception. Defaults to None.
    context : Mapping[str, object] | None, optional
        Additional context for error details. Defaults to None.

    Examples
    --------
    >>> str(ConfigurationError("Missing [python] package"))
    'ConfigurationError[configuration-error]: Missing [python] package'
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
        *,
        code: ErrorCode = ErrorCode.CONFIGURATION_ERROR,
    ) -> None:
        super().__init__(
            message,
            code=code,
            http_status=500,
            log_level=logging.CRITICAL,
            cause=cause,
            context=context,
        )

    @classmethod
    def with_details(
        cls,
        *,
        field: str,
        issue: str,
        hint: str | None = None,
    ) -> ConfigurationError:
        """Create a ConfigurationError with structured validation details.

        Parameters
        ----------
        field : str
            Name of the configuration field that failed validation.
        issue : str
            Description of the validation issue.
        hint : str | None, optional
            Hint for resolving the issue. Defaults to ``None``.

        Returns
        -------
        ConfigurationError
            New instance with details captured in context.

        Examples
        --------
        >>> error = ConfigurationError.with_details(
        ...     field="output.layout",
        ...     issue="Unknown layout 'flat'",
        ...     hint="Use 'module' or 'item'",
        ... )
        >>> error.context["field"]
        'output.layout'
        """
        details: dict[str, object] = {
            "field": field,
            "issue": issue,
        }
        if hint is not None:
            details["hint"] = hint
        return cls(f"Configuration error in '{field}': {issue}", context=details)


class UnmatchedModuleError(ConfigurationError):
    """A native module does not live under the configured entry point.

    Raised only when synthesis runs with the ``reject`` unmatched-module
    policy.

    Parameters
    ----------
    module_path : str
        Native module path that failed to match.
    entry_point : str
        Configured native entry point.
    """

    def __init__(self, module_path: str, entry_point: str) -> None:
        super().__init__(
            f"Module '{module_path}' is outside entry point '{entry_point}'",
            context={"module": module_path, "entry_point": entry_point},
            code=ErrorCode.UNMATCHED_MODULE,
        )
        self.module_path = module_path
        self.entry_point = entry_point


class ModelLoadError(CrossDocError):
    """An item tree or doc model payload could not be decoded.

    Parameters
    ----------
    message : str
        Human-readable error message.
    cause : Exception | None, optional
        Underlying decoder exception. Defaults to None.
    context : Mapping[str, object] | None, optional
        Additional context (for example the source path). Defaults to None.
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.MODEL_LOAD_ERROR,
            http_status=422,
            cause=cause,
            context=context,
        )


class SerializationError(CrossDocError):
    """A doc model could not be encoded."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.SERIALIZATION_ERROR,
            cause=cause,
            context=context,
        )


class FileOperationError(CrossDocError):
    """Reading or writing an input or output file failed."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.FILE_OPERATION_ERROR,
            cause=cause,
            context=context,
        )
