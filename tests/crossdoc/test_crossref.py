"""Tests for crossdoc.crossref merging and authored binding links."""

from __future__ import annotations

from crossdoc.crossref import (
    CrossRefIndex,
    link_authored_bindings,
    merge_python_module,
    merge_synthesized_modules,
)
from crossdoc.model import (
    CrossRef,
    CrossRefKind,
    PyClassMeta,
    PyFunctionMeta,
    PythonClass,
    PythonFunction,
    PythonModule,
    PythonVariable,
    RustFunction,
    RustImpl,
    RustItemRef,
    RustModule,
    RustStruct,
    SourceType,
)
from crossdoc.synthesize import synthesize_python_module


def _rust_core() -> RustModule:
    return RustModule(
        path="core",
        items=(
            RustStruct(name="Task", doc_comment="Synthesized docs.", pyclass=PyClassMeta()),
            RustImpl(
                target="Task",
                pymethods=True,
                methods=(RustFunction(name="run"), RustFunction(name="cancel")),
            ),
            RustFunction(name="helper", pyfunction=PyFunctionMeta()),
            RustFunction(name="spawn_all", pyfunction=PyFunctionMeta(name="spawn")),
        ),
    )


def _authored() -> PythonModule:
    return PythonModule(
        path="pkg",
        docstring="Authored package.",
        items=(PythonClass(name="Task", docstring="Authored docs."),),
    )


class TestMergePythonModule:
    """Test merging a synthesized module into an authored one."""

    def test_authored_item_wins(self) -> None:
        """Test an authored ``Task`` is kept untouched and not duplicated."""
        synthesized, _ = synthesize_python_module([_rust_core()], "pkg")
        authored = _authored()
        merged = merge_python_module(authored, synthesized)
        assert [item.name for item in merged.items] == ["Task", "helper", "spawn"]
        assert merged.items[0] == authored.items[0]
        assert merged.docstring == "Authored package."

    def test_merge_is_idempotent(self) -> None:
        """Test merging the same synthesized module twice changes nothing."""
        synthesized, _ = synthesize_python_module([_rust_core()], "pkg")
        once = merge_python_module(_authored(), synthesized)
        twice = merge_python_module(once, synthesized)
        assert twice == once
        assert twice is once

    def test_nothing_to_add_returns_authored(self) -> None:
        """Test the authored module itself comes back when nothing is new."""
        authored = _authored()
        synthesized = PythonModule(path="pkg", items=(PythonClass(name="Task"),))
        assert merge_python_module(authored, synthesized) is authored

    def test_kind_is_part_of_the_key(self) -> None:
        """Test items sharing a name but not a kind are both kept."""
        authored = PythonModule(path="pkg", items=(PythonVariable(name="Task"),))
        synthesized = PythonModule(path="pkg", items=(PythonClass(name="Task"),))
        merged = merge_python_module(authored, synthesized)
        assert [type(item) for item in merged.items] == [PythonVariable, PythonClass]


class TestMergeSynthesizedModules:
    """Test folding synthesized modules into the authored set."""

    def test_merge_and_append(self) -> None:
        """Test matching paths merge and new paths are appended."""
        refs_pkg = [CrossRef(python_path="pkg.helper", rust_path="core::helper")]
        refs_io = [CrossRef(python_path="pkg.io.Reader", rust_path="core::io::Reader")]
        synthesized = [
            (PythonModule(path="pkg", items=(PythonFunction(name="helper"),)), refs_pkg),
            (PythonModule(path="pkg.io", items=(PythonClass(name="Reader"),)), refs_io),
        ]
        modules, refs = merge_synthesized_modules([_authored()], synthesized)
        assert [module.path for module in modules] == ["pkg", "pkg.io"]
        assert [item.name for item in modules[0].items] == ["Task", "helper"]
        assert refs == [*refs_pkg, *refs_io]

    def test_no_authored_modules(self) -> None:
        """Test synthesized modules pass through when nothing is authored."""
        module = PythonModule(path="pkg", items=(PythonFunction(name="helper"),))
        modules, refs = merge_synthesized_modules([], [(module, [])])
        assert modules == [module]
        assert refs == []


class TestLinkAuthoredBindings:
    """Test linking hand-written binding modules to Rust items."""

    @staticmethod
    def _native_module() -> PythonModule:
        return PythonModule(
            path="pkg._native",
            items=(
                PythonClass(
                    name="Task",
                    methods=(PythonFunction(name="run"), PythonFunction(name="describe")),
                ),
                PythonFunction(name="spawn"),
                PythonFunction(name="pure_python"),
            ),
        )

    def test_links_classes_methods_and_functions(self) -> None:
        """Test matching names gain ``rust_impl`` and binding references."""
        modules, refs = link_authored_bindings(
            [_rust_core()], [self._native_module()], {"pkg._native": "pyo3"}
        )
        assert [(ref.python_path, ref.rust_path) for ref in refs] == [
            ("pkg._native.Task", "core::Task"),
            ("pkg._native.Task.run", "core::Task::run"),
            ("pkg._native.spawn", "core::spawn_all"),
        ]
        assert all(ref.relationship is CrossRefKind.BINDING for ref in refs)
        module = modules[0]
        assert module.source_type is SourceType.PYO3_BINDING
        task = module.items[0]
        assert isinstance(task, PythonClass)
        assert task.rust_impl == RustItemRef(path="core::Task", name="Task")
        assert task.methods[0].rust_impl == RustItemRef(path="core::Task::run", name="run")
        assert task.methods[1].rust_impl is None
        spawn = module.items[1]
        assert isinstance(spawn, PythonFunction)
        assert spawn.rust_impl == RustItemRef(path="core::spawn_all", name="spawn_all")
        pure = module.items[2]
        assert isinstance(pure, PythonFunction)
        assert pure.rust_impl is None

    def test_python_modules_are_left_alone(self) -> None:
        """Test modules marked ``python`` are not linked."""
        native = self._native_module()
        modules, refs = link_authored_bindings(
            [_rust_core()], [native], {"pkg._native": "python"}
        )
        assert modules == [native]
        assert refs == []

    def test_unlisted_modules_are_left_alone(self) -> None:
        """Test only listed binding modules are linked."""
        authored = _authored()
        modules, refs = link_authored_bindings(
            [_rust_core()], [authored, self._native_module()], {"pkg._native": "pyo3"}
        )
        assert modules[0] is authored
        assert len(refs) == 3


class TestCrossRefIndex:
    """Test cross reference lookups."""

    def test_lookup_both_sides(self) -> None:
        """Test references are found from either path."""
        refs = [
            CrossRef(python_path="pkg.Task", rust_path="core::Task"),
            CrossRef(python_path="pkg._native.Task", rust_path="core::Task"),
        ]
        index = CrossRefIndex(refs)
        assert len(index) == 2
        assert list(index) == refs
        assert index.for_python("pkg.Task") == [refs[0]]
        assert index.for_rust("core::Task") == refs
        assert index.for_python("pkg.Missing") == []
