"""Tests for the crossdoc error hierarchy and Problem Details rendering."""

from __future__ import annotations

import json
import logging

import pytest

from crossdoc.errors import (
    BASE_TYPE_URI,
    ConfigurationError,
    CrossDocError,
    ErrorCode,
    FileOperationError,
    ModelLoadError,
    SerializationError,
    UnmatchedModuleError,
    build_problem_details,
    get_type_uri,
    render_problem,
)


class TestCrossDocError:
    """Test the base exception."""

    def test_defaults(self) -> None:
        """Test default code, status and level."""
        error = CrossDocError("boom")
        assert error.code == ErrorCode.RUNTIME_ERROR
        assert error.http_status == 500
        assert error.log_level == logging.ERROR
        assert error.context == {}
        assert str(error) == "CrossDocError[runtime-error]: boom"

    def test_cause_is_chained(self) -> None:
        """Test the cause is exposed and named in the string form."""
        cause = ValueError("bad")
        error = CrossDocError("boom", cause=cause)
        assert error.__cause__ is cause
        assert str(error).endswith("(caused by: ValueError)")

    def test_problem_details(self) -> None:
        """Test the RFC 9457 payload."""
        error = ModelLoadError("Invalid model", context={"source": "model.json"})
        problem = error.to_problem_details(instance="urn:crossdoc:links:1")
        assert problem["type"] == f"{BASE_TYPE_URI}/model-load-error"
        assert problem["title"] == "ModelLoadError"
        assert problem["status"] == 422
        assert problem["detail"] == "Invalid model"
        assert problem["instance"] == "urn:crossdoc:links:1"
        assert problem["code"] == "model-load-error"
        assert problem["extensions"] == {"source": "model.json"}

    def test_problem_details_defaults(self) -> None:
        """Test the default instance and the absence of empty extensions."""
        problem = SerializationError("cannot encode").to_problem_details(title="Encoding failed")
        assert problem["instance"] == "urn:crossdoc:error"
        assert problem["title"] == "Encoding failed"
        assert "extensions" not in problem


class TestSubclasses:
    """Test the concrete error types."""

    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (ConfigurationError("x"), ErrorCode.CONFIGURATION_ERROR),
            (ModelLoadError("x"), ErrorCode.MODEL_LOAD_ERROR),
            (SerializationError("x"), ErrorCode.SERIALIZATION_ERROR),
            (FileOperationError("x"), ErrorCode.FILE_OPERATION_ERROR),
        ],
    )
    def test_codes(self, error: CrossDocError, code: ErrorCode) -> None:
        """Test each subclass carries its stable code."""
        assert isinstance(error, CrossDocError)
        assert error.code == code

    def test_configuration_error_is_critical(self) -> None:
        """Test configuration errors log at CRITICAL."""
        assert ConfigurationError("x").log_level == logging.CRITICAL

    def test_with_details(self) -> None:
        """Test structured configuration details."""
        error = ConfigurationError.with_details(
            field="output.layout", issue="Unknown layout", hint="Use 'module'"
        )
        assert error.message == "Configuration error in 'output.layout': Unknown layout"
        assert error.context == {
            "field": "output.layout",
            "issue": "Unknown layout",
            "hint": "Use 'module'",
        }

    def test_with_details_without_hint(self) -> None:
        """Test the hint key is omitted when not given."""
        error = ConfigurationError.with_details(field="path", issue="missing")
        assert "hint" not in error.context

    def test_unmatched_module(self) -> None:
        """Test the unmatched module error is a configuration error."""
        error = UnmatchedModuleError("other::util", "my_crate")
        assert isinstance(error, ConfigurationError)
        assert error.code == ErrorCode.UNMATCHED_MODULE
        assert error.module_path == "other::util"
        assert error.entry_point == "my_crate"
        assert "other::util" in error.message


class TestProblemDetailsHelpers:
    """Test the Problem Details builders."""

    def test_type_uri(self) -> None:
        """Test type URIs are rooted at the base URI."""
        assert get_type_uri(ErrorCode.UNMATCHED_MODULE) == f"{BASE_TYPE_URI}/unmatched-module"

    def test_rejects_success_status(self) -> None:
        """Test non-error statuses are refused."""
        with pytest.raises(ValueError, match="4xx or 5xx"):
            build_problem_details("about:blank", "OK", 200, "fine", "urn:x")

    def test_render_is_sorted_json(self) -> None:
        """Test rendered payloads are stable JSON."""
        problem = build_problem_details(
            "about:blank", "Bad", 400, "detail", "urn:x", code="configuration-error"
        )
        rendered = render_problem(problem)
        assert json.loads(rendered) == problem
        assert rendered.index('"code"') < rendered.index('"detail"')
