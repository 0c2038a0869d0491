"""Assemble a :class:`~crossdoc.model.DocModel` from extracted item trees.

The pipeline is a pure function of its inputs:

1. parse every Rust doc comment with the native parser;
2. link authored ``pyo3`` modules to the Rust items they wrap;
3. synthesize Python views of the bindings and merge them into the authored
   modules (flattened into the package when there are no authored modules);
4. parse every Python docstring;
5. resolve links in both directions for each cross reference on demand.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import msgspec

from crossdoc.crossref import link_authored_bindings, merge_synthesized_modules
from crossdoc.docstring import parse_any_doc, parse_native_doc
from crossdoc.links import CrossRefLink, Language, PageLayout, PageRef, crossref_link, item_page
from crossdoc.logging import get_logger, with_fields
from crossdoc.model import (
    CrossRef,
    DocModel,
    ItemKind,
    ProjectMetadata,
    PythonClass,
    PythonFunction,
    PythonModule,
    RustFunction,
    RustImpl,
    RustModule,
    RustTrait,
    SourceType,
)
from crossdoc.synthesize import synthesize_python_module, synthesize_python_modules

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from crossdoc.config import CrossDocConfig
    from crossdoc.model import PythonItem, RustItem

__all__ = [
    "ResolvedLink",
    "attach_python_docs",
    "attach_rust_docs",
    "build_doc_model",
    "collect_links",
]

logger = get_logger(__name__)


def _parse_rust_function(function: RustFunction) -> RustFunction:
    return msgspec.structs.replace(function, parsed_doc=parse_native_doc(function.doc_comment))


def _parse_rust_item(item: RustItem) -> RustItem:
    if isinstance(item, RustImpl):
        return msgspec.structs.replace(
            item, methods=tuple(_parse_rust_function(method) for method in item.methods)
        )
    if isinstance(item, RustTrait):
        return msgspec.structs.replace(
            item,
            parsed_doc=parse_native_doc(item.doc_comment),
            methods=tuple(_parse_rust_function(method) for method in item.methods),
        )
    return msgspec.structs.replace(item, parsed_doc=parse_native_doc(item.doc_comment))


def attach_rust_docs(module: RustModule) -> RustModule:
    """Return ``module`` with ``parsed_doc`` filled on the module and its items."""
    return msgspec.structs.replace(
        module,
        parsed_doc=parse_native_doc(module.doc_comment),
        items=tuple(_parse_rust_item(item) for item in module.items),
    )


def _parse_python_item(item: PythonItem, *, native: bool) -> PythonItem:
    if isinstance(item, PythonClass):
        return msgspec.structs.replace(
            item,
            parsed_doc=parse_any_doc(item.docstring, native=native),
            methods=tuple(
                msgspec.structs.replace(
                    method, parsed_doc=parse_any_doc(method.docstring, native=native)
                )
                for method in item.methods
            ),
        )
    if isinstance(item, PythonFunction):
        return msgspec.structs.replace(
            item, parsed_doc=parse_any_doc(item.docstring, native=native)
        )
    return item


def attach_python_docs(module: PythonModule) -> PythonModule:
    """Return ``module`` with ``parsed_doc`` filled on the module and its items.

    Binding modules carry Rust doc comments, which may use either the native
    ATX convention or a Python convention; both are accepted.
    """
    native = module.source_type is not SourceType.PYTHON
    return msgspec.structs.replace(
        module,
        parsed_doc=parse_any_doc(module.docstring, native=native),
        items=tuple(_parse_python_item(item, native=native) for item in module.items),
    )


def build_doc_model(
    config: CrossDocConfig,
    rust_modules: Sequence[RustModule],
    python_modules: Sequence[PythonModule],
    metadata: ProjectMetadata | None = None,
) -> DocModel:
    """Build the cross-linked documentation model.

    Parameters
    ----------
    config : CrossDocConfig
        Validated project configuration.
    rust_modules : Sequence[RustModule]
        Extracted Rust modules in source order.
    python_modules : Sequence[PythonModule]
        Extracted (authored) Python modules.
    metadata : ProjectMetadata | None, optional
        Project metadata; derived from ``config.project`` when None.

    Returns
    -------
    DocModel
        Model with parsed docs, merged Python modules and every cross
        reference (synthesized first, then authored bindings), concatenated
        without deduplication.

    Raises
    ------
    UnmatchedModuleError
        If the synthesis policy is ``reject`` and a bound Rust module lies
        outside the entry point.
    """
    with with_fields(logger, operation="build_doc_model", project=config.project.name) as log:
        rust = [attach_rust_docs(module) for module in rust_modules]
        python: list[PythonModule] = list(python_modules)
        cross_refs: list[CrossRef] = []

        if config.python is not None:
            python, linked_refs = link_authored_bindings(rust, python, config.module_sources)
            if python_modules:
                synthesized = synthesize_python_modules(
                    rust,
                    config.python.package,
                    config.entry_point or config.python.package,
                    config.synthesis.unmatched_modules,
                )
            else:
                flat, flat_refs = synthesize_python_module(rust, config.python.package)
                synthesized = [(flat, flat_refs)] if flat.items else []
            python, synthesized_refs = merge_synthesized_modules(python, synthesized)
            cross_refs = [*synthesized_refs, *linked_refs]

        python = [attach_python_docs(module) for module in python]
        log.info(
            "Built documentation model",
            extra={
                "rust_modules": len(rust),
                "python_modules": len(python),
                "cross_refs": len(cross_refs),
            },
        )

    if metadata is None:
        metadata = ProjectMetadata(
            name=config.project.name,
            version=config.project.version,
            description=config.project.description,
        )
    return DocModel(
        metadata=metadata,
        rust_modules=tuple(rust),
        python_modules=tuple(python),
        cross_refs=tuple(cross_refs),
    )


@dataclass(slots=True, frozen=True)
class ResolvedLink:
    """Both pages of a cross reference and the links between them."""

    cross_ref: CrossRef
    python_page: PageRef
    rust_page: PageRef
    to_rust: CrossRefLink
    to_python: CrossRefLink


def _python_kinds(modules: Iterable[PythonModule]) -> dict[str, ItemKind]:
    kinds: dict[str, ItemKind] = {}
    for module in modules:
        kinds[module.path] = ItemKind.MODULE
        for item in module.items:
            path = f"{module.path}.{item.name}"
            kinds[path] = item.kind
            if isinstance(item, PythonClass):
                for method in item.methods:
                    kinds[f"{path}.{method.name}"] = ItemKind.METHOD
    return kinds


def _rust_kinds(modules: Iterable[RustModule]) -> dict[str, ItemKind]:
    kinds: dict[str, ItemKind] = {}
    for module in modules:
        kinds[module.path] = ItemKind.MODULE
        for item in module.items:
            if isinstance(item, RustImpl):
                target = item.target.split("<", 1)[0].rsplit("::", 1)[-1].strip()
                for method in item.methods:
                    kinds[f"{module.path}::{target}::{method.name}"] = ItemKind.METHOD
            else:
                kinds[f"{module.path}::{item.name}"] = item.kind
    return kinds


def collect_links(model: DocModel, layout: PageLayout = PageLayout.MODULE) -> list[ResolvedLink]:
    """Resolve every cross reference of ``model`` in both directions.

    Parameters
    ----------
    model : DocModel
        Built documentation model.
    layout : PageLayout, optional
        Active page layout. Defaults to ``PageLayout.MODULE``.

    Returns
    -------
    list[ResolvedLink]
        One entry per cross reference, in model order.
    """
    python_kinds = _python_kinds(model.python_modules)
    rust_kinds = _rust_kinds(model.rust_modules)
    resolved: list[ResolvedLink] = []
    for ref in model.cross_refs:
        python_kind = python_kinds.get(ref.python_path, ItemKind.FUNCTION)
        default_rust = {ItemKind.CLASS: ItemKind.STRUCT}.get(python_kind, python_kind)
        rust_kind = rust_kinds.get(ref.rust_path, default_rust)
        python_page = item_page(Language.PYTHON, ref.python_path, python_kind, layout)
        rust_page = item_page(Language.RUST, ref.rust_path, rust_kind, layout)
        resolved.append(
            ResolvedLink(
                cross_ref=ref,
                python_page=python_page,
                rust_page=rust_page,
                to_rust=crossref_link(
                    ref, python_page.path, Language.PYTHON, layout, target_kind=rust_kind
                ),
                to_python=crossref_link(
                    ref, rust_page.path, Language.RUST, layout, target_kind=python_kind
                ),
            )
        )
    return resolved
