"""Synthesize Python module views from PyO3-annotated Rust items.

A Rust struct carrying ``#[pyclass]`` becomes a Python class, a function
carrying ``#[pyfunction]`` becomes a Python function, and the methods of
``#[pymethods]`` impl blocks are attached to the class of their target type.
Every synthesized class and function yields one ``binding`` cross reference.

Doc comments are copied raw; parsing happens later in the pipeline.
"""

from __future__ import annotations

from collections import defaultdict
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from crossdoc.errors import UnmatchedModuleError
from crossdoc.logging import get_logger
from crossdoc.model import (
    CrossRef,
    CrossRefKind,
    PythonClass,
    PythonFunction,
    PythonFunctionSig,
    PythonItem,
    PythonModule,
    PythonParam,
    RustFunction,
    RustImpl,
    RustItemRef,
    RustModule,
    RustStruct,
    SourceType,
)
from crossdoc.typemap import rust_type_to_python

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

__all__ = [
    "UnmatchedModulePolicy",
    "collect_pymethods",
    "map_module_path",
    "python_name",
    "synthesize_python_module",
    "synthesize_python_modules",
]

logger = get_logger(__name__)

_RECEIVER_PARAMS: Final[frozenset[str]] = frozenset({"self", "&self", "&mut self", "mut self"})
# Receiver and interpreter-token parameters never appear in Python signatures.
_IMPLICIT_PARAMS: Final[frozenset[str]] = _RECEIVER_PARAMS | {"py", "_py"}


class UnmatchedModulePolicy(StrEnum):
    """What to do with a Rust module outside the configured entry point."""

    PASSTHROUGH = "passthrough"
    DROP = "drop"
    REJECT = "reject"


SynthesizedModule = tuple[PythonModule, list[CrossRef]]
MethodKey = tuple[str, str]


def python_name(item: RustStruct | RustFunction) -> str:
    """Return the Python-visible name of a bound item.

    The ``name = "..."`` argument of ``#[pyclass]``/``#[pyfunction]`` wins
    over the Rust identifier.
    """
    if isinstance(item, RustStruct) and item.pyclass is not None and item.pyclass.name:
        return item.pyclass.name
    if isinstance(item, RustFunction) and item.pyfunction is not None and item.pyfunction.name:
        return item.pyfunction.name
    return item.name


def _impl_target(impl: RustImpl) -> str:
    return impl.target.split("<", 1)[0].rsplit("::", 1)[-1].strip()


def collect_pymethods(rust_modules: Iterable[RustModule]) -> dict[MethodKey, list[RustFunction]]:
    """Collect methods of every ``#[pymethods]`` impl keyed by ``(module path, type name)``."""
    methods: dict[MethodKey, list[RustFunction]] = defaultdict(list)
    for module in rust_modules:
        for item in module.items:
            if isinstance(item, RustImpl) and item.pymethods:
                methods[module.path, _impl_target(item)].extend(item.methods)
    return dict(methods)


def _class_methods(rust_modules: Sequence[RustModule]) -> dict[MethodKey, list[RustFunction]]:
    """Map each ``#[pyclass]`` struct, keyed like :func:`collect_pymethods`, to its methods.

    Impl blocks in the struct's own module always apply. Impl blocks in other
    modules apply only when no other module defines a struct of that name.
    """
    impls = collect_pymethods(rust_modules)
    owners: dict[str, set[str]] = defaultdict(set)
    for module in rust_modules:
        for item in module.items:
            if isinstance(item, RustStruct):
                owners[item.name].add(module.path)
    resolved: dict[MethodKey, list[RustFunction]] = {}
    for module in rust_modules:
        for item in module.items:
            if not isinstance(item, RustStruct) or item.pyclass is None:
                continue
            if len(owners[item.name]) == 1:
                resolved[module.path, item.name] = [
                    method
                    for (_, target), methods in impls.items()
                    if target == item.name
                    for method in methods
                ]
            else:
                resolved[module.path, item.name] = impls.get((module.path, item.name), [])
    return resolved


def _is_implicit(name: str, rust_type: str) -> bool:
    return name in _IMPLICIT_PARAMS or rust_type_to_python(rust_type) == ""


def _synthesize_function(
    function: RustFunction,
    rust_path: str,
    *,
    owner: str | None = None,
) -> PythonFunction:
    name = python_name(function)
    has_receiver = any(param.name in _RECEIVER_PARAMS for param in function.signature.params)
    params = tuple(
        PythonParam(
            name=param.name,
            type=rust_type_to_python(param.type, self_type=owner) or None,
            default=param.default,
        )
        for param in function.signature.params
        if not _is_implicit(param.name, param.type)
    )
    return_type = (
        rust_type_to_python(function.signature.return_type, self_type=owner)
        if function.signature.return_type
        else "None"
    )
    if function.pyfunction is not None and function.pyfunction.signature:
        rendered = function.pyfunction.signature.strip()
        if not rendered.startswith("("):
            rendered = f"({rendered})"
        if owner is not None and has_receiver and not rendered.startswith("(self"):
            rendered = f"(self, {rendered[1:]}" if rendered != "()" else "(self)"
    else:
        rendered_params = [
            f"{param.name}: {param.type}" if param.type else param.name for param in params
        ]
        rendered_params = [
            f"{text} = {param.default}" if param.default is not None else text
            for text, param in zip(rendered_params, params, strict=True)
        ]
        if owner is not None and has_receiver:
            rendered_params.insert(0, "self")
        rendered = f"({', '.join(rendered_params)})"
    return PythonFunction(
        name=name,
        docstring=function.doc_comment,
        signature_str=f"def {name}{rendered} -> {return_type}:",
        signature=PythonFunctionSig(params=params, return_type=return_type),
        is_async=function.is_async,
        is_staticmethod=owner is not None and not has_receiver and function.name != "new",
        rust_impl=RustItemRef(path=rust_path, name=function.name),
        source=function.source,
    )


def _synthesize_class(
    struct: RustStruct,
    module_path: str,
    methods: Sequence[RustFunction],
) -> PythonClass:
    rust_path = f"{module_path}::{struct.name}"
    name = python_name(struct)
    return PythonClass(
        name=name,
        docstring=struct.doc_comment,
        methods=tuple(
            _synthesize_function(method, f"{rust_path}::{method.name}", owner=name)
            for method in methods
        ),
        rust_impl=RustItemRef(path=rust_path, name=struct.name),
        source=struct.source,
    )


def _synthesize_items(
    module: RustModule,
    python_path: str,
    methods: Mapping[MethodKey, Sequence[RustFunction]],
) -> tuple[list[PythonItem], list[CrossRef]]:
    items: list[PythonItem] = []
    cross_refs: list[CrossRef] = []
    for item in module.items:
        if isinstance(item, RustStruct) and item.pyclass is not None:
            synthesized: PythonItem = _synthesize_class(
                item, module.path, methods.get((module.path, item.name), ())
            )
        elif isinstance(item, RustFunction) and item.pyfunction is not None:
            synthesized = _synthesize_function(item, f"{module.path}::{item.name}")
        else:
            continue
        items.append(synthesized)
        cross_refs.append(
            CrossRef(
                python_path=f"{python_path}.{synthesized.name}",
                rust_path=f"{module.path}::{item.name}",
                relationship=CrossRefKind.BINDING,
            )
        )
    return items, cross_refs


def synthesize_python_module(
    rust_modules: Sequence[RustModule],
    module_name: str,
) -> SynthesizedModule:
    """Flatten every bound Rust item into one Python module.

    Parameters
    ----------
    rust_modules : Sequence[RustModule]
        Rust modules in source order.
    module_name : str
        Dotted path of the Python module to produce.

    Returns
    -------
    tuple[PythonModule, list[CrossRef]]
        The synthesized module and one ``binding`` reference per class and
        function. The module docstring is the first Rust module's doc
        comment.
    """
    methods = _class_methods(rust_modules)
    items: list[PythonItem] = []
    cross_refs: list[CrossRef] = []
    for module in rust_modules:
        module_items, module_refs = _synthesize_items(module, module_name, methods)
        items.extend(module_items)
        cross_refs.extend(module_refs)
    logger.debug(
        "Synthesized flat Python module",
        extra={"operation": "synthesize", "module_path": module_name, "items": len(items)},
    )
    return (
        PythonModule(
            path=module_name,
            docstring=rust_modules[0].doc_comment if rust_modules else None,
            items=tuple(items),
            source_type=SourceType.PYO3_BINDING,
        ),
        cross_refs,
    )


def map_module_path(
    rust_path: str,
    entry_point: str,
    package: str,
    policy: UnmatchedModulePolicy = UnmatchedModulePolicy.PASSTHROUGH,
) -> str | None:
    """Map a Rust module path onto the Python package.

    Parameters
    ----------
    rust_path : str
        Scoped Rust module path (``my_crate::core``).
    entry_point : str
        Rust module exposed as the package root; ``::`` or ``.`` separated.
    package : str
        Python package name replacing the entry point.
    policy : UnmatchedModulePolicy, optional
        Behaviour for paths outside the entry point. Defaults to
        ``PASSTHROUGH``.

    Returns
    -------
    str | None
        Dotted Python module path, or None when ``policy`` is ``DROP`` and the
        path does not match.

    Raises
    ------
    UnmatchedModuleError
        If the path does not match and ``policy`` is ``REJECT``.

    Examples
    --------
    >>> map_module_path("my_crate::core::tasks", "my_crate", "mypkg")
    'mypkg.core.tasks'
    >>> map_module_path("other::util", "my_crate", "mypkg")
    'other.util'
    """
    dotted = rust_path.replace("::", ".")
    root = entry_point.replace("::", ".")
    if dotted == root:
        return package
    if dotted.startswith(f"{root}."):
        return f"{package}{dotted[len(root) :]}"
    if policy is UnmatchedModulePolicy.REJECT:
        raise UnmatchedModuleError(rust_path, entry_point)
    if policy is UnmatchedModulePolicy.DROP:
        return None
    return dotted


def synthesize_python_modules(
    rust_modules: Sequence[RustModule],
    package: str,
    entry_point: str,
    policy: UnmatchedModulePolicy = UnmatchedModulePolicy.PASSTHROUGH,
) -> list[SynthesizedModule]:
    """Synthesize one Python module per Rust module with bound items.

    Parameters
    ----------
    rust_modules : Sequence[RustModule]
        Rust modules in source order.
    package : str
        Python package name.
    entry_point : str
        Rust module that maps onto ``package``.
    policy : UnmatchedModulePolicy, optional
        Behaviour for modules outside ``entry_point``. Defaults to
        ``PASSTHROUGH``.

    Returns
    -------
    list[tuple[PythonModule, list[CrossRef]]]
        Synthesized modules with their cross references, in source order.
        Modules without bound items are skipped.

    Raises
    ------
    UnmatchedModuleError
        If ``policy`` is ``REJECT`` and a module with bound items lies
        outside ``entry_point``.
    """
    methods = _class_methods(rust_modules)
    synthesized: list[SynthesizedModule] = []
    for module in rust_modules:
        if not any(
            (isinstance(item, RustStruct) and item.pyclass is not None)
            or (isinstance(item, RustFunction) and item.pyfunction is not None)
            for item in module.items
        ):
            continue
        python_path = map_module_path(module.path, entry_point, package, policy)
        if python_path is None:
            logger.debug(
                "Dropped module outside entry point",
                extra={"operation": "synthesize", "module_path": module.path},
            )
            continue
        items, cross_refs = _synthesize_items(module, python_path, methods)
        synthesized.append(
            (
                PythonModule(
                    path=python_path,
                    docstring=module.doc_comment,
                    items=tuple(items),
                    source_type=SourceType.PYO3_BINDING,
                ),
                cross_refs,
            )
        )
    logger.debug(
        "Synthesized Python modules",
        extra={"operation": "synthesize", "modules": len(synthesized)},
    )
    return synthesized
