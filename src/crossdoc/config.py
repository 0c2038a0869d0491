"""Project configuration loaded from ``crossdoc.toml``.

The project file is validated into :class:`CrossDocConfig`. Runtime knobs
that operators tune per invocation (log level, layout, synthesis policy) come
from ``CROSSDOC_*`` environment variables through :class:`RuntimeSettings`
and override the file.

Example ``crossdoc.toml``::

    [project]
    name = "hybrid"

    [python]
    package = "hybrid"

    [python.modules]
    "hybrid._native" = "pyo3"
    "hybrid.helpers" = "python"

    [rust]
    entry_point = "hybrid_core"

    [output]
    layout = "module"
"""

from __future__ import annotations

import tomllib
from enum import StrEnum
from pathlib import Path
from typing import Final, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from crossdoc.errors import ConfigurationError
from crossdoc.links import PageLayout
from crossdoc.logging import get_logger
from crossdoc.synthesize import UnmatchedModulePolicy

__all__ = [
    "DEFAULT_CONFIG_FILENAME",
    "CrossDocConfig",
    "ModuleSource",
    "OutputConfig",
    "ProjectConfig",
    "PythonConfig",
    "RuntimeSettings",
    "RustConfig",
    "SynthesisConfig",
    "load_config",
    "load_settings",
    "parse_config",
]

logger = get_logger(__name__)

DEFAULT_CONFIG_FILENAME: Final = "crossdoc.toml"


class ModuleSource(StrEnum):
    """How an authored Python module is produced."""

    PYO3 = "pyo3"
    PYTHON = "python"


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ProjectConfig(_Section):
    """``[project]`` table."""

    name: str = Field(min_length=1, description="Project name shown in titles")
    version: str | None = Field(default=None, description="Project version")
    description: str | None = Field(default=None, description="One-line project summary")


class PythonConfig(_Section):
    """``[python]`` table."""

    package: str = Field(min_length=1, description="Top-level Python package name")
    modules: dict[str, ModuleSource] = Field(
        default_factory=dict,
        description="Module path to 'pyo3' (binding) or 'python' (pure Python)",
    )


class RustConfig(_Section):
    """``[rust]`` table."""

    entry_point: str | None = Field(
        default=None,
        description="Rust module exposed as the Python package root",
    )


class OutputConfig(_Section):
    """``[output]`` table."""

    layout: PageLayout = Field(default=PageLayout.MODULE, description="'module' or 'item' pages")


class SynthesisConfig(_Section):
    """``[synthesis]`` table."""

    unmatched_modules: UnmatchedModulePolicy = Field(
        default=UnmatchedModulePolicy.PASSTHROUGH,
        description="Handling of Rust modules outside the entry point",
    )


class CrossDocConfig(_Section):
    """Validated contents of ``crossdoc.toml``."""

    project: ProjectConfig
    python: PythonConfig | None = None
    rust: RustConfig | None = None
    output: OutputConfig = Field(default_factory=OutputConfig)
    synthesis: SynthesisConfig = Field(default_factory=SynthesisConfig)

    @model_validator(mode="after")
    def require_language(self) -> Self:
        if self.python is None and self.rust is None:
            message = "at least one of [python] or [rust] must be configured"
            raise ValueError(message)
        return self

    @property
    def entry_point(self) -> str | None:
        """Rust entry point, defaulting to the package name with ``-`` as ``_``."""
        if self.rust is not None and self.rust.entry_point:
            return self.rust.entry_point
        if self.python is not None:
            return self.python.package.replace("-", "_")
        return None

    @property
    def module_sources(self) -> dict[str, str]:
        """Module path to source kind, as plain strings."""
        if self.python is None:
            return {}
        return {path: source.value for path, source in self.python.modules.items()}

    def with_settings(self, settings: RuntimeSettings) -> CrossDocConfig:
        """Return a copy with environment overrides applied."""
        output = self.output
        synthesis = self.synthesis
        if settings.layout is not None:
            output = output.model_copy(update={"layout": settings.layout})
        if settings.unmatched_modules is not None:
            synthesis = synthesis.model_copy(
                update={"unmatched_modules": settings.unmatched_modules}
            )
        return self.model_copy(update={"output": output, "synthesis": synthesis})


class RuntimeSettings(BaseSettings):
    """Per-invocation overrides from ``CROSSDOC_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="CROSSDOC_", extra="ignore", case_sensitive=False)

    log_level: str = Field(default="WARNING", description="Logging level (DEBUG, INFO, ...)")
    log_json: bool = Field(default=True, description="Emit JSON log lines")
    layout: PageLayout | None = Field(default=None, description="Override [output] layout")
    unmatched_modules: UnmatchedModulePolicy | None = Field(
        default=None, description="Override [synthesis] unmatched_modules"
    )


def load_settings(**overrides: object) -> RuntimeSettings:
    """Load :class:`RuntimeSettings`, converting validation failures.

    Raises
    ------
    ConfigurationError
        If an environment variable holds an invalid value.
    """
    try:
        return RuntimeSettings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        logger.exception(
            "Settings validation failed",
            extra={"operation": "load_settings", "error_type": type(exc).__name__},
        )
        message = f"Invalid CROSSDOC_* environment settings: {exc.error_count()} error(s)"
        raise ConfigurationError(
            message,
            cause=exc,
            context={"errors": _format_errors(exc)},
        ) from exc


def _format_errors(exc: ValidationError) -> list[dict[str, str]]:
    return [
        {"field": ".".join(str(part) for part in error["loc"]), "issue": error["msg"]}
        for error in exc.errors()
    ]


def load_config(path: str | Path) -> CrossDocConfig:
    """Read and validate a ``crossdoc.toml`` file.

    Parameters
    ----------
    path : str | Path
        Path to the TOML file.

    Returns
    -------
    CrossDocConfig
        Validated configuration.

    Raises
    ------
    ConfigurationError
        If the file is missing, is not valid TOML or fails validation.
    """
    config_path = Path(path)
    try:
        raw = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError.with_details(
            field="path",
            issue=f"{config_path} does not exist",
            hint=f"Create a {DEFAULT_CONFIG_FILENAME} with a [project] table",
        ) from exc
    except tomllib.TOMLDecodeError as exc:
        message = f"{config_path} is not valid TOML: {exc}"
        raise ConfigurationError(message, cause=exc, context={"path": str(config_path)}) from exc
    return parse_config(raw, source=str(config_path))


def parse_config(raw: dict[str, object], *, source: str = "<memory>") -> CrossDocConfig:
    """Validate an already-decoded configuration mapping.

    Raises
    ------
    ConfigurationError
        If the mapping fails validation. ``context["errors"]`` lists each
        failing field.
    """
    try:
        config = CrossDocConfig.model_validate(raw)
    except ValidationError as exc:
        message = f"Invalid configuration in {source}: {exc.error_count()} error(s)"
        raise ConfigurationError(
            message,
            cause=exc,
            context={"path": source, "errors": _format_errors(exc)},
        ) from exc
    logger.debug(
        "Loaded configuration",
        extra={"operation": "load_config", "path": source, "project": config.project.name},
    )
    return config
