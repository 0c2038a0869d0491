"""Tests for crossdoc.pipeline against the fixture project."""

from __future__ import annotations

import posixpath

import pytest

from crossdoc.config import CrossDocConfig, parse_config
from crossdoc.errors import UnmatchedModuleError
from crossdoc.links import PageLayout
from crossdoc.model import (
    CrossRef,
    DocModel,
    ParamDoc,
    ProjectMetadata,
    PythonClass,
    PythonFunction,
    PythonModule,
    RaisesDoc,
    ReturnDoc,
    RustFunction,
    RustImpl,
    RustItemRef,
    SourceType,
)
from crossdoc.pipeline import build_doc_model, collect_links
from crossdoc.serialization import SourceTrees


def _build(config: CrossDocConfig, trees: SourceTrees) -> DocModel:
    return build_doc_model(config, trees.rust_modules, trees.python_modules, trees.metadata)


def _config(**synthesis: str) -> CrossDocConfig:
    return parse_config(
        {
            "project": {"name": "hybrid"},
            "python": {
                "package": "hybrid",
                "modules": {"hybrid": "python", "hybrid._native": "pyo3"},
            },
            "rust": {"entry_point": "hybrid_core"},
            "synthesis": synthesis,
        }
    )


class TestBuildDocModel:
    """Test assembling the cross-linked model."""

    def test_python_modules(self, config: CrossDocConfig, source_trees: SourceTrees) -> None:
        """Test synthesized modules merge into and follow the authored ones."""
        model = _build(config, source_trees)
        assert [module.path for module in model.python_modules] == [
            "hybrid",
            "hybrid._native",
            "hybrid.io",
            "other_crate.util",
        ]
        root = model.python_modules[0]
        assert [item.name for item in root.items] == ["version", "Task", "schedule_all"]
        assert root.source_type is SourceType.PYTHON

    def test_cross_refs(self, config: CrossDocConfig, source_trees: SourceTrees) -> None:
        """Test synthesized references come first, then authored bindings."""
        model = _build(config, source_trees)
        assert [(ref.python_path, ref.rust_path) for ref in model.cross_refs] == [
            ("hybrid.Task", "hybrid_core::Task"),
            ("hybrid.schedule_all", "hybrid_core::schedule"),
            ("hybrid.io.PyReader", "hybrid_core::io::Reader"),
            ("other_crate.util.helper", "other_crate::util::helper"),
            ("hybrid._native.Task", "hybrid_core::Task"),
            ("hybrid._native.Task.run", "hybrid_core::Task::run"),
        ]
        assert len(set(model.cross_refs)) == len(model.cross_refs)

    def test_authored_binding_module(
        self, config: CrossDocConfig, source_trees: SourceTrees
    ) -> None:
        """Test the ``pyo3`` module is linked to the Rust items it wraps."""
        native = _build(config, source_trees).python_modules[1]
        assert native.source_type is SourceType.PYO3_BINDING
        task = native.items[0]
        assert isinstance(task, PythonClass)
        assert task.rust_impl == RustItemRef(path="hybrid_core::Task", name="Task")
        assert task.methods[0].rust_impl == RustItemRef(
            path="hybrid_core::Task::run", name="run"
        )

    def test_rust_docs_are_parsed(self, config: CrossDocConfig, source_trees: SourceTrees) -> None:
        """Test native doc comments get structured sections."""
        core = _build(config, source_trees).rust_modules[0]
        assert core.parsed_doc is not None
        assert core.parsed_doc.summary == "Core scheduling primitives."
        schedule = core.items[2]
        assert isinstance(schedule, RustFunction)
        assert schedule.parsed_doc is not None
        assert schedule.parsed_doc.params == (ParamDoc(name="tasks", description="tasks to run"),)
        assert schedule.parsed_doc.returns == ReturnDoc(description="number of scheduled tasks")
        impl = core.items[1]
        assert isinstance(impl, RustImpl)
        run = impl.methods[1].parsed_doc
        assert run is not None
        assert run.raises == (RaisesDoc(type="RuntimeError", description="when the task fails"),)

    def test_python_docs_are_parsed(
        self, config: CrossDocConfig, source_trees: SourceTrees
    ) -> None:
        """Test authored docstrings get structured sections."""
        version = _build(config, source_trees).python_modules[0].items[0]
        assert isinstance(version, PythonFunction)
        assert version.parsed_doc is not None
        assert version.parsed_doc.summary == "Return the version."
        assert version.parsed_doc.returns == ReturnDoc(type="str", description="The version string")

    def test_metadata(self, config: CrossDocConfig, source_trees: SourceTrees) -> None:
        """Test metadata comes from the trees or falls back to the config."""
        assert _build(config, source_trees).metadata == source_trees.metadata
        model = build_doc_model(config, source_trees.rust_modules, source_trees.python_modules)
        assert model.metadata == ProjectMetadata(name="hybrid", version="0.3.0")

    def test_flat_synthesis(self, config: CrossDocConfig, source_trees: SourceTrees) -> None:
        """Test bindings flatten into the package without authored modules."""
        model = build_doc_model(config, source_trees.rust_modules, [])
        assert [module.path for module in model.python_modules] == ["hybrid"]
        module = model.python_modules[0]
        assert module.source_type is SourceType.PYO3_BINDING
        assert [item.name for item in module.items] == [
            "Task",
            "schedule_all",
            "PyReader",
            "helper",
        ]
        assert CrossRef(
            python_path="hybrid.PyReader", rust_path="hybrid_core::io::Reader"
        ) in model.cross_refs
        assert len(model.cross_refs) == 4

    def test_cross_refs_are_concatenated(self, source_trees: SourceTrees) -> None:
        """Test a binding found by both synthesis and linking is listed twice."""
        config = parse_config(
            {
                "project": {"name": "hybrid"},
                "python": {"package": "hybrid", "modules": {"hybrid": "pyo3"}},
                "rust": {"entry_point": "hybrid_core"},
            }
        )
        authored = [PythonModule(path="hybrid", items=(PythonClass(name="Task"),))]
        model = build_doc_model(config, source_trees.rust_modules, authored)
        task = CrossRef(python_path="hybrid.Task", rust_path="hybrid_core::Task")
        assert model.cross_refs.count(task) == 2
        assert model.cross_refs[-1] == task

    def test_drop_policy(self, source_trees: SourceTrees) -> None:
        """Test modules outside the entry point can be dropped."""
        model = _build(_config(unmatched_modules="drop"), source_trees)
        assert "other_crate.util" not in [module.path for module in model.python_modules]
        assert all(not ref.rust_path.startswith("other_crate") for ref in model.cross_refs)

    def test_reject_policy(self, source_trees: SourceTrees) -> None:
        """Test modules outside the entry point can be rejected."""
        with pytest.raises(UnmatchedModuleError) as exc_info:
            _build(_config(unmatched_modules="reject"), source_trees)
        assert exc_info.value.module_path == "other_crate::util"
        assert exc_info.value.entry_point == "hybrid_core"

    def test_rust_only(self, source_trees: SourceTrees) -> None:
        """Test a Rust-only project has no Python side and no references."""
        config = parse_config({"project": {"name": "hybrid"}, "rust": {}})
        model = build_doc_model(config, source_trees.rust_modules, [])
        assert model.python_modules == ()
        assert model.cross_refs == ()
        assert model.rust_modules[0].parsed_doc is not None


class TestCollectLinks:
    """Test resolving both directions of every reference."""

    def test_module_layout(self, config: CrossDocConfig, source_trees: SourceTrees) -> None:
        """Test class links point at the owning module pages."""
        links = collect_links(_build(config, source_trees))
        task = links[0]
        assert task.python_page.path == "python/hybrid.md"
        assert task.rust_page.path == "rust/hybrid_core.md"
        assert task.to_rust.url == "../rust/hybrid_core.md#struct-task"
        assert task.to_python.url == "../python/hybrid.md#class-task"
        assert task.to_rust.to_markdown_with_badge() == (
            "[binding] [Task](../rust/hybrid_core.md#struct-task)"
        )

    def test_methods_link_to_owner_page(
        self, config: CrossDocConfig, source_trees: SourceTrees
    ) -> None:
        """Test a bound method resolves to its owner's page under both layouts."""
        model = _build(config, source_trees)
        run = collect_links(model)[-1]
        assert run.rust_page.path == "rust/hybrid_core.md"
        assert run.rust_page.anchor == "method-run"
        run = collect_links(model, PageLayout.ITEM)[-1]
        assert run.rust_page.path == "rust/hybrid_core/Task.md"
        assert run.python_page.path == "python/hybrid/_native/Task.md"
        assert run.to_rust.url == "../../../rust/hybrid_core/Task.md#method-run"

    @pytest.mark.parametrize("layout", list(PageLayout))
    def test_links_resolve_to_target_pages(
        self, layout: PageLayout, config: CrossDocConfig, source_trees: SourceTrees
    ) -> None:
        """Test every link, resolved against its page, lands on the other page."""
        for link in collect_links(_build(config, source_trees), layout):
            for from_page, url, target in (
                (link.python_page.path, link.to_rust.url, link.rust_page),
                (link.rust_page.path, link.to_python.url, link.python_page),
            ):
                path, _, anchor = url.partition("#")
                resolved = posixpath.normpath(posixpath.join(posixpath.dirname(from_page), path))
                assert resolved == target.path
                assert (anchor or None) == target.anchor
