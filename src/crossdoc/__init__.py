"""Cross-language API documentation for Rust/Python (PyO3) projects.

The public surface re-exports the operations most callers need: docstring
parsing, binding synthesis, module merging and link resolution.
"""

from __future__ import annotations

from crossdoc.crossref import (
    CrossRefIndex,
    link_authored_bindings,
    merge_python_module,
    merge_synthesized_modules,
)
from crossdoc.docstring import DocstringStyle, detect_style, parse_docstring, parse_native_doc
from crossdoc.links import PageLayout, crossref_link, item_page, relative_path
from crossdoc.model import CrossRef, CrossRefKind, DocModel, ParsedDocstring
from crossdoc.pipeline import build_doc_model, collect_links
from crossdoc.synthesize import (
    UnmatchedModulePolicy,
    synthesize_python_module,
    synthesize_python_modules,
)

__all__ = [
    "CrossRef",
    "CrossRefIndex",
    "CrossRefKind",
    "DocModel",
    "DocstringStyle",
    "PageLayout",
    "ParsedDocstring",
    "UnmatchedModulePolicy",
    "build_doc_model",
    "collect_links",
    "crossref_link",
    "detect_style",
    "item_page",
    "link_authored_bindings",
    "merge_python_module",
    "merge_synthesized_modules",
    "parse_docstring",
    "parse_native_doc",
    "relative_path",
    "synthesize_python_module",
    "synthesize_python_modules",
]

__version__ = "0.1.0"
