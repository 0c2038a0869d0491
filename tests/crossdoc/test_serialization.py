"""Tests for crossdoc.serialization."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from crossdoc.errors import FileOperationError, ModelLoadError
from crossdoc.model import (
    CrossRef,
    DocModel,
    ParsedDocstring,
    ProjectMetadata,
    PythonClass,
    PythonFunction,
    PythonModule,
    RustFunction,
    RustImpl,
    RustItemRef,
    RustModule,
    RustStruct,
    SourceType,
)
from crossdoc.serialization import (
    SourceTrees,
    decode_doc_model,
    decode_source_trees,
    dump_doc_model,
    encode_cross_refs,
    encode_doc_model,
    load_doc_model,
    load_source_trees,
    to_builtins,
)

if TYPE_CHECKING:
    from pathlib import Path


class TestSourceTrees:
    """Test decoding extractor output."""

    def test_fixture_decodes(self, source_trees: SourceTrees) -> None:
        """Test the fixture tree decodes into tagged item classes."""
        assert source_trees.metadata == ProjectMetadata(name="hybrid", version="0.3.0")
        core = source_trees.rust_modules[0]
        assert [type(item) for item in core.items] == [
            RustStruct,
            RustImpl,
            RustFunction,
            RustStruct,
        ]
        task = core.items[0]
        assert isinstance(task, RustStruct)
        assert task.pyclass is not None
        assert task.pyclass.name is None
        impl = core.items[1]
        assert isinstance(impl, RustImpl)
        assert impl.trait_ is None
        assert [method.name for method in impl.methods] == ["new", "run"]
        native = source_trees.python_modules[1]
        assert native.source_type is SourceType.PYTHON
        assert isinstance(native.items[0], PythonClass)

    def test_trait_field_name(self) -> None:
        """Test ``trait`` in JSON maps onto ``RustImpl.trait_``."""
        trees = decode_source_trees(
            '{"metadata": {"name": "x"}, "rust_modules": [{"path": "m", "items": '
            '[{"kind": "impl", "target": "Task", "trait": "Display"}]}]}'
        )
        impl = trees.rust_modules[0].items[0]
        assert isinstance(impl, RustImpl)
        assert impl.trait_ == "Display"

    def test_malformed_json(self) -> None:
        """Test broken JSON is a model load error."""
        with pytest.raises(ModelLoadError, match="Malformed JSON in <memory>"):
            decode_source_trees("{not json")

    def test_schema_mismatch(self) -> None:
        """Test a payload missing required fields names the problem."""
        with pytest.raises(ModelLoadError) as exc_info:
            decode_source_trees('{"rust_modules": []}', source="trees.json")
        assert "metadata" in exc_info.value.message
        assert exc_info.value.context == {"source": "trees.json"}

    def test_unknown_item_kind(self) -> None:
        """Test an unknown ``kind`` tag is rejected."""
        with pytest.raises(ModelLoadError):
            decode_source_trees(
                '{"metadata": {"name": "x"}, "rust_modules": '
                '[{"path": "m", "items": [{"kind": "macro", "name": "m"}]}]}'
            )

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test an unreadable path is a file operation error."""
        with pytest.raises(FileOperationError) as exc_info:
            load_source_trees(tmp_path / "missing.json")
        assert exc_info.value.context["path"] == str(tmp_path / "missing.json")


class TestDocModel:
    """Test encoding and decoding built models."""

    @staticmethod
    def _model() -> DocModel:
        return DocModel(
            metadata=ProjectMetadata(name="pkg"),
            rust_modules=(
                RustModule(
                    path="core",
                    items=(RustStruct(name="Task", parsed_doc=ParsedDocstring(summary="Task.")),),
                ),
            ),
            python_modules=(
                PythonModule(
                    path="pkg",
                    items=(
                        PythonClass(
                            name="Task", rust_impl=RustItemRef(path="core::Task", name="Task")
                        ),
                    ),
                    source_type=SourceType.PYO3_BINDING,
                ),
            ),
            cross_refs=(CrossRef(python_path="pkg.Task", rust_path="core::Task"),),
        )

    def test_encoded_items_carry_kind(self) -> None:
        """Test item unions are tagged on ``kind``."""
        payload = json.loads(encode_doc_model(self._model()))
        assert payload["rust_modules"][0]["items"][0]["kind"] == "struct"
        assert payload["cross_refs"] == [
            {"python_path": "pkg.Task", "rust_path": "core::Task", "relationship": "binding"}
        ]

    def test_dump_and_load(self, tmp_path: Path) -> None:
        """Test a dumped model loads back unchanged."""
        model = self._model()
        target = tmp_path / "out" / "model.json"
        dump_doc_model(model, target)
        assert target.read_text(encoding="utf-8").startswith("{\n")
        assert load_doc_model(target) == model

    def test_decode_rejects_wrong_shape(self) -> None:
        """Test a model with a wrongly typed field fails to load."""
        with pytest.raises(ModelLoadError):
            decode_doc_model('{"metadata": {"name": "x"}, "cross_refs": {}}')

    def test_cross_refs_and_builtins(self) -> None:
        """Test helper encoders."""
        refs = [CrossRef(python_path="pkg.f", rust_path="core::f")]
        assert json.loads(encode_cross_refs(refs)) == [
            {"python_path": "pkg.f", "rust_path": "core::f", "relationship": "binding"}
        ]
        builtins = to_builtins(PythonFunction(name="f"))
        assert builtins["kind"] == "function"
        assert builtins["name"] == "f"
