"""Shared documentation model.

Every record is a frozen :class:`msgspec.Struct`. Item unions are tagged on
``kind`` so a serialized item tree decodes back into the right classes, and
collections are tuples so a decoded model stays immutable end to end.
Transformations build new records with :func:`msgspec.structs.replace`.
"""

from __future__ import annotations

from enum import StrEnum
from typing import ClassVar

import msgspec

__all__ = [
    "CrossRef",
    "CrossRefKind",
    "DocModel",
    "ItemKind",
    "ParamDoc",
    "ParsedDocstring",
    "ProjectMetadata",
    "PyClassMeta",
    "PyFunctionMeta",
    "PythonClass",
    "PythonFunction",
    "PythonFunctionSig",
    "PythonItem",
    "PythonModule",
    "PythonParam",
    "PythonVariable",
    "RaisesDoc",
    "ReturnDoc",
    "RustConst",
    "RustEnum",
    "RustField",
    "RustFunction",
    "RustFunctionSig",
    "RustImpl",
    "RustItem",
    "RustItemRef",
    "RustModule",
    "RustParam",
    "RustStruct",
    "RustTrait",
    "RustTypeAlias",
    "RustVariant",
    "SourceLocation",
    "SourceSpan",
    "SourceType",
]


class ItemKind(StrEnum):
    """Documented item kinds; values double as anchor prefixes."""

    MODULE = "module"
    STRUCT = "struct"
    ENUM = "enum"
    FUNCTION = "function"
    TRAIT = "trait"
    IMPL = "impl"
    CONST = "const"
    TYPE_ALIAS = "type"
    CLASS = "class"
    METHOD = "method"
    VARIABLE = "variable"


class SourceType(StrEnum):
    """Where a Python module's documentation comes from."""

    PYTHON = "python"
    PYO3_BINDING = "pyo3_binding"
    RUST = "rust"


class CrossRefKind(StrEnum):
    """Relationship between a Python symbol and its Rust counterpart."""

    BINDING = "binding"
    WRAPS = "wraps"
    DELEGATES = "delegates"


# ---------------------------------------------------------------------------
# Parsed docstrings


class ParamDoc(msgspec.Struct, frozen=True, kw_only=True):
    """One documented parameter."""

    name: str
    type: str | None = None
    description: str = ""


class ReturnDoc(msgspec.Struct, frozen=True, kw_only=True):
    """Documented return value."""

    type: str | None = None
    description: str = ""


class RaisesDoc(msgspec.Struct, frozen=True, kw_only=True):
    """One documented exception, error or panic."""

    type: str
    description: str = ""


class ParsedDocstring(msgspec.Struct, frozen=True, kw_only=True):
    """Structured view of one raw documentation string.

    Optional scalars are ``None`` when absent and collections are empty
    tuples, never ``None``.
    """

    summary: str | None = None
    description: str | None = None
    params: tuple[ParamDoc, ...] = ()
    returns: ReturnDoc | None = None
    raises: tuple[RaisesDoc, ...] = ()
    examples: tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> ParsedDocstring:
        """Return a docstring with no content."""
        return cls()

    @property
    def is_empty(self) -> bool:
        """True when no section carries any content."""
        return (
            not self.summary
            and not self.description
            and not self.params
            and self.returns is None
            and not self.raises
            and not self.examples
        )


# ---------------------------------------------------------------------------
# Source locations


class SourceLocation(msgspec.Struct, frozen=True, kw_only=True):
    """File and inclusive line range of an item."""

    file: str
    line_start: int
    line_end: int


class SourceSpan(msgspec.Struct, frozen=True, kw_only=True):
    """Location plus the verbatim source text of an item."""

    location: SourceLocation
    source: str = ""


# ---------------------------------------------------------------------------
# Rust item tree


class PyClassMeta(msgspec.Struct, frozen=True, kw_only=True):
    """``#[pyclass]`` arguments."""

    name: str | None = None
    module: str | None = None


class PyFunctionMeta(msgspec.Struct, frozen=True, kw_only=True):
    """``#[pyfunction]`` / ``#[pyo3]`` arguments."""

    name: str | None = None
    signature: str | None = None


class RustParam(msgspec.Struct, frozen=True, kw_only=True):
    name: str
    type: str
    default: str | None = None


class RustFunctionSig(msgspec.Struct, frozen=True, kw_only=True):
    params: tuple[RustParam, ...] = ()
    return_type: str | None = None


class RustField(msgspec.Struct, frozen=True, kw_only=True):
    name: str
    type: str
    visibility: str = "private"
    doc_comment: str | None = None


class RustVariant(msgspec.Struct, frozen=True, kw_only=True):
    name: str
    doc_comment: str | None = None
    fields: tuple[RustField, ...] = ()


class _RustItemBase(msgspec.Struct, frozen=True, kw_only=True, tag_field="kind"):
    kind: ClassVar[ItemKind]


class RustStruct(_RustItemBase, tag="struct"):
    kind: ClassVar[ItemKind] = ItemKind.STRUCT

    name: str
    visibility: str = "pub"
    doc_comment: str | None = None
    parsed_doc: ParsedDocstring | None = None
    generics: str | None = None
    fields: tuple[RustField, ...] = ()
    derives: tuple[str, ...] = ()
    pyclass: PyClassMeta | None = None
    source: SourceSpan | None = None


class RustEnum(_RustItemBase, tag="enum"):
    kind: ClassVar[ItemKind] = ItemKind.ENUM

    name: str
    visibility: str = "pub"
    doc_comment: str | None = None
    parsed_doc: ParsedDocstring | None = None
    generics: str | None = None
    variants: tuple[RustVariant, ...] = ()
    source: SourceSpan | None = None


class RustFunction(_RustItemBase, tag="function"):
    kind: ClassVar[ItemKind] = ItemKind.FUNCTION

    name: str
    visibility: str = "pub"
    doc_comment: str | None = None
    parsed_doc: ParsedDocstring | None = None
    generics: str | None = None
    signature_str: str = ""
    signature: RustFunctionSig = msgspec.field(default_factory=RustFunctionSig)
    is_async: bool = False
    is_unsafe: bool = False
    is_const: bool = False
    pyfunction: PyFunctionMeta | None = None
    source: SourceSpan | None = None


class RustImpl(_RustItemBase, tag="impl"):
    kind: ClassVar[ItemKind] = ItemKind.IMPL

    target: str
    trait_: str | None = msgspec.field(default=None, name="trait")
    generics: str | None = None
    methods: tuple[RustFunction, ...] = ()
    pymethods: bool = False
    source: SourceSpan | None = None


class RustTrait(_RustItemBase, tag="trait"):
    kind: ClassVar[ItemKind] = ItemKind.TRAIT

    name: str
    visibility: str = "pub"
    doc_comment: str | None = None
    parsed_doc: ParsedDocstring | None = None
    generics: str | None = None
    methods: tuple[RustFunction, ...] = ()
    source: SourceSpan | None = None


class RustConst(_RustItemBase, tag="const"):
    kind: ClassVar[ItemKind] = ItemKind.CONST

    name: str
    type: str
    value: str | None = None
    visibility: str = "pub"
    doc_comment: str | None = None
    parsed_doc: ParsedDocstring | None = None
    source: SourceSpan | None = None


class RustTypeAlias(_RustItemBase, tag="type"):
    kind: ClassVar[ItemKind] = ItemKind.TYPE_ALIAS

    name: str
    target: str
    visibility: str = "pub"
    doc_comment: str | None = None
    parsed_doc: ParsedDocstring | None = None
    generics: str | None = None
    source: SourceSpan | None = None


RustItem = RustStruct | RustEnum | RustFunction | RustImpl | RustTrait | RustConst | RustTypeAlias


class RustModule(msgspec.Struct, frozen=True, kw_only=True):
    """One Rust module with its items in source order."""

    path: str
    doc_comment: str | None = None
    parsed_doc: ParsedDocstring | None = None
    items: tuple[RustItem, ...] = ()
    source: SourceSpan | None = None


# ---------------------------------------------------------------------------
# Python item tree


class RustItemRef(msgspec.Struct, frozen=True, kw_only=True):
    """Pointer from a Python item to the Rust item implementing it."""

    path: str
    name: str


class PythonParam(msgspec.Struct, frozen=True, kw_only=True):
    name: str
    type: str | None = None
    default: str | None = None


class PythonFunctionSig(msgspec.Struct, frozen=True, kw_only=True):
    params: tuple[PythonParam, ...] = ()
    return_type: str | None = None


class _PythonItemBase(msgspec.Struct, frozen=True, kw_only=True, tag_field="kind"):
    kind: ClassVar[ItemKind]


class PythonFunction(_PythonItemBase, tag="function"):
    kind: ClassVar[ItemKind] = ItemKind.FUNCTION

    name: str
    docstring: str | None = None
    parsed_doc: ParsedDocstring | None = None
    signature_str: str = ""
    signature: PythonFunctionSig = msgspec.field(default_factory=PythonFunctionSig)
    decorators: tuple[str, ...] = ()
    is_async: bool = False
    is_staticmethod: bool = False
    is_classmethod: bool = False
    is_property: bool = False
    rust_impl: RustItemRef | None = None
    source: SourceSpan | None = None


class PythonVariable(_PythonItemBase, tag="variable"):
    kind: ClassVar[ItemKind] = ItemKind.VARIABLE

    name: str
    type: str | None = None
    value: str | None = None
    docstring: str | None = None
    source: SourceSpan | None = None


class PythonClass(_PythonItemBase, tag="class"):
    kind: ClassVar[ItemKind] = ItemKind.CLASS

    name: str
    docstring: str | None = None
    parsed_doc: ParsedDocstring | None = None
    bases: tuple[str, ...] = ()
    methods: tuple[PythonFunction, ...] = ()
    attributes: tuple[PythonVariable, ...] = ()
    decorators: tuple[str, ...] = ()
    rust_impl: RustItemRef | None = None
    source: SourceSpan | None = None


PythonItem = PythonClass | PythonFunction | PythonVariable


class PythonModule(msgspec.Struct, frozen=True, kw_only=True):
    """One Python module, authored or synthesized from bindings."""

    path: str
    docstring: str | None = None
    parsed_doc: ParsedDocstring | None = None
    items: tuple[PythonItem, ...] = ()
    source_type: SourceType = SourceType.PYTHON
    source: SourceSpan | None = None


# ---------------------------------------------------------------------------
# Cross references and the assembled model


class CrossRef(msgspec.Struct, frozen=True, kw_only=True):
    """A Python symbol and the Rust symbol implementing it.

    ``python_path`` is dotted (``pkg.mod.Name``); ``rust_path`` is scoped
    (``crate::mod::Name``).
    """

    python_path: str
    rust_path: str
    relationship: CrossRefKind = CrossRefKind.BINDING


class ProjectMetadata(msgspec.Struct, frozen=True, kw_only=True):
    name: str
    version: str | None = None
    description: str | None = None
    git_ref: str | None = None
    git_commit: str | None = None
    generated_at: str | None = None


class DocModel(msgspec.Struct, frozen=True, kw_only=True):
    """Everything a renderer needs for one project."""

    metadata: ProjectMetadata
    rust_modules: tuple[RustModule, ...] = ()
    python_modules: tuple[PythonModule, ...] = ()
    cross_refs: tuple[CrossRef, ...] = ()
