"""Merge synthesized and authored Python views and record cross references."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field

import msgspec

from crossdoc.logging import get_logger
from crossdoc.model import (
    CrossRef,
    CrossRefKind,
    ItemKind,
    PythonClass,
    PythonFunction,
    PythonItem,
    PythonModule,
    RustFunction,
    RustImpl,
    RustItemRef,
    RustModule,
    RustStruct,
    SourceType,
)
from crossdoc.synthesize import python_name

__all__ = [
    "CrossRefIndex",
    "link_authored_bindings",
    "merge_python_module",
    "merge_synthesized_modules",
]

logger = get_logger(__name__)


def _item_key(item: PythonItem) -> tuple[ItemKind, str]:
    return item.kind, item.name


def merge_python_module(authored: PythonModule, synthesized: PythonModule) -> PythonModule:
    """Add synthesized items missing from an authored module.

    Items are matched by ``(kind, name)``. The authored item always wins and
    keeps its position; unmatched synthesized items are appended in order.
    Merging the same synthesized module twice changes nothing.

    Parameters
    ----------
    authored : PythonModule
        Module parsed from Python source.
    synthesized : PythonModule
        Module synthesized from bindings for the same path.

    Returns
    -------
    PythonModule
        ``authored`` itself when nothing is added, otherwise a copy with the
        extra items.
    """
    seen = {_item_key(item) for item in authored.items}
    additions: list[PythonItem] = []
    for item in synthesized.items:
        key = _item_key(item)
        if key not in seen:
            seen.add(key)
            additions.append(item)
    if not additions:
        return authored
    return msgspec.structs.replace(authored, items=(*authored.items, *additions))


def merge_synthesized_modules(
    authored_modules: Sequence[PythonModule],
    synthesized: Iterable[tuple[PythonModule, Sequence[CrossRef]]],
) -> tuple[list[PythonModule], list[CrossRef]]:
    """Fold synthesized modules into the authored module list.

    A synthesized module is merged into the authored module with the same
    path, or appended when there is none.

    Returns
    -------
    tuple[list[PythonModule], list[CrossRef]]
        The merged modules (authored order first) and every synthesized
        cross reference in order.
    """
    modules: dict[str, PythonModule] = {}
    for module in authored_modules:
        modules[module.path] = module
    cross_refs: list[CrossRef] = []
    for module, refs in synthesized:
        existing = modules.get(module.path)
        modules[module.path] = module if existing is None else merge_python_module(existing, module)
        cross_refs.extend(refs)
    logger.debug(
        "Merged synthesized modules",
        extra={"operation": "merge", "modules": len(modules), "cross_refs": len(cross_refs)},
    )
    return list(modules.values()), cross_refs


@dataclass(slots=True)
class _BindingIndex:
    classes: dict[str, tuple[str, str]] = field(default_factory=dict)
    functions: dict[str, tuple[str, str]] = field(default_factory=dict)
    methods: dict[str, dict[str, str]] = field(default_factory=dict)

    @classmethod
    def build(cls, rust_modules: Iterable[RustModule]) -> _BindingIndex:
        index = cls()
        for module in rust_modules:
            for item in module.items:
                if isinstance(item, RustStruct) and item.pyclass is not None:
                    index.classes[python_name(item)] = (module.path, item.name)
                elif isinstance(item, RustFunction) and item.pyfunction is not None:
                    index.functions[python_name(item)] = (module.path, item.name)
                elif isinstance(item, RustImpl) and item.pymethods:
                    target = item.target.split("<", 1)[0].rsplit("::", 1)[-1].strip()
                    methods = index.methods.setdefault(target, {})
                    for method in item.methods:
                        methods[python_name(method)] = method.name
        return index


def _link_class(
    cls: PythonClass,
    module_path: str,
    index: _BindingIndex,
    cross_refs: list[CrossRef],
) -> PythonClass:
    rust_module, struct_name = index.classes[cls.name]
    rust_path = f"{rust_module}::{struct_name}"
    cross_refs.append(CrossRef(python_path=f"{module_path}.{cls.name}", rust_path=rust_path))
    rust_methods = index.methods.get(struct_name, {})
    methods: list[PythonFunction] = []
    for method in cls.methods:
        rust_method = rust_methods.get(method.name)
        if rust_method is None:
            methods.append(method)
            continue
        method_path = f"{rust_path}::{rust_method}"
        cross_refs.append(
            CrossRef(
                python_path=f"{module_path}.{cls.name}.{method.name}",
                rust_path=method_path,
                relationship=CrossRefKind.BINDING,
            )
        )
        methods.append(
            msgspec.structs.replace(
                method, rust_impl=RustItemRef(path=method_path, name=rust_method)
            )
        )
    return msgspec.structs.replace(
        cls,
        methods=tuple(methods),
        rust_impl=RustItemRef(path=rust_path, name=struct_name),
    )


def link_authored_bindings(
    rust_modules: Sequence[RustModule],
    python_modules: Sequence[PythonModule],
    module_sources: Mapping[str, str],
) -> tuple[list[PythonModule], list[CrossRef]]:
    """Link hand-written binding modules to the Rust items they wrap.

    Only modules whose entry in ``module_sources`` is ``"pyo3"`` are
    considered. Classes, their methods and functions whose Python name
    matches a ``#[pyclass]``, ``#[pymethods]`` method or ``#[pyfunction]``
    get ``rust_impl`` set and a ``binding`` cross reference. Linked modules
    are marked as :attr:`SourceType.PYO3_BINDING`.

    Parameters
    ----------
    rust_modules : Sequence[RustModule]
        Rust modules carrying the binding annotations.
    python_modules : Sequence[PythonModule]
        Authored Python modules.
    module_sources : Mapping[str, str]
        Module path to ``"pyo3"`` or ``"python"``.

    Returns
    -------
    tuple[list[PythonModule], list[CrossRef]]
        Modules with links applied, in input order, and the new references.
    """
    binding_paths = {path for path, source in module_sources.items() if source == "pyo3"}
    if not binding_paths:
        return list(python_modules), []
    index = _BindingIndex.build(rust_modules)
    cross_refs: list[CrossRef] = []
    linked: list[PythonModule] = []
    for module in python_modules:
        if module.path not in binding_paths:
            linked.append(module)
            continue
        items: list[PythonItem] = []
        for item in module.items:
            if isinstance(item, PythonClass) and item.name in index.classes:
                items.append(_link_class(item, module.path, index, cross_refs))
            elif isinstance(item, PythonFunction) and item.name in index.functions:
                rust_module, function_name = index.functions[item.name]
                rust_path = f"{rust_module}::{function_name}"
                cross_refs.append(
                    CrossRef(python_path=f"{module.path}.{item.name}", rust_path=rust_path)
                )
                items.append(
                    msgspec.structs.replace(
                        item, rust_impl=RustItemRef(path=rust_path, name=function_name)
                    )
                )
            else:
                items.append(item)
        linked.append(
            msgspec.structs.replace(
                module, items=tuple(items), source_type=SourceType.PYO3_BINDING
            )
        )
    logger.debug(
        "Linked authored binding modules",
        extra={"operation": "link", "modules": len(binding_paths), "cross_refs": len(cross_refs)},
    )
    return linked, cross_refs


class CrossRefIndex:
    """Lookup of cross references by either side's path.

    Examples
    --------
    >>> from crossdoc.model import CrossRef
    >>> index = CrossRefIndex([CrossRef(python_path="pkg.Task", rust_path="core::Task")])
    >>> [ref.rust_path for ref in index.for_python("pkg.Task")]
    ['core::Task']
    """

    def __init__(self, cross_refs: Iterable[CrossRef]) -> None:
        self._refs = tuple(cross_refs)
        self._by_python: dict[str, list[CrossRef]] = {}
        self._by_rust: dict[str, list[CrossRef]] = {}
        for ref in self._refs:
            self._by_python.setdefault(ref.python_path, []).append(ref)
            self._by_rust.setdefault(ref.rust_path, []).append(ref)

    def __len__(self) -> int:
        return len(self._refs)

    def __iter__(self) -> Iterator[CrossRef]:
        return iter(self._refs)

    def for_python(self, python_path: str) -> list[CrossRef]:
        """Return references whose Python side is ``python_path``."""
        return list(self._by_python.get(python_path, ()))

    def for_rust(self, rust_path: str) -> list[CrossRef]:
        """Return references whose Rust side is ``rust_path``."""
        return list(self._by_rust.get(rust_path, ()))
