"""Page paths, anchors and relative links between documentation pages.

Pages live under ``rust/`` and ``python/``. With the ``module`` layout each
module is one page and items are anchors on it. With the ``item`` layout each
item gets its own page and modules get an ``index.md``, which adds exactly
one directory level per item page.

All relative links are produced by :func:`relative_path`, so a link from
page ``A`` resolved against ``A``'s directory always lands on the target
page:

>>> link = relative_path("python/pkg/core.md", "rust/my_crate/core.md")
>>> link
'../../rust/my_crate/core.md'
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from crossdoc.model import CrossRefKind, ItemKind

if TYPE_CHECKING:
    from crossdoc.model import CrossRef

__all__ = [
    "CrossRefLink",
    "Language",
    "PageLayout",
    "PageRef",
    "crossref_link",
    "item_anchor",
    "item_page",
    "module_page",
    "relative_path",
    "render_python_exposure_details",
    "render_rust_impl_details",
]


class PageLayout(StrEnum):
    """How items are distributed over pages."""

    MODULE = "module"
    ITEM = "item"


class Language(StrEnum):
    """Language side of a documented symbol; also its top-level directory."""

    PYTHON = "python"
    RUST = "rust"

    @property
    def separator(self) -> str:
        """Path separator used by symbols of this language."""
        return "::" if self is Language.RUST else "."


@dataclass(slots=True, frozen=True)
class PageRef:
    """A page path relative to the documentation root plus optional anchor."""

    path: str
    anchor: str | None = None

    def link_from(self, from_page: str) -> str:
        """Return the relative URL of this page as seen from ``from_page``."""
        url = relative_path(from_page, self.path)
        return f"{url}#{self.anchor}" if self.anchor else url


@dataclass(slots=True, frozen=True)
class CrossRefLink:
    """A resolved link between the two sides of a cross reference."""

    text: str
    url: str
    relationship: CrossRefKind

    def to_markdown(self) -> str:
        """Render as ``[text](url)``."""
        return f"[{self.text}]({self.url})"

    def to_markdown_with_badge(self) -> str:
        """Render with a relationship badge, e.g. ``[binding] [Task](...)``."""
        return f"[{self.relationship.value}] {self.to_markdown()}"


def relative_path(from_page: str, to_page: str) -> str:
    """Return the link from ``from_page`` to ``to_page``.

    Both paths are relative to the documentation root. The link climbs one
    ``../`` per ``/`` in ``from_page`` and then descends into ``to_page``;
    pages at the root use ``./``.

    Examples
    --------
    >>> relative_path("index.md", "rust/a.md")
    './rust/a.md'
    >>> relative_path("python/a/b.md", "python/a/c.md")
    '../../python/a/c.md'
    """
    depth = from_page.count("/")
    prefix = "../" * depth if depth else "./"
    return f"{prefix}{to_page}"


def item_anchor(kind: ItemKind | str, name: str) -> str:
    """Return the in-page anchor for an item.

    >>> item_anchor(ItemKind.CLASS, "Task Runner")
    'class-task-runner'
    """
    return f"{str(kind).lower()}-{name.lower().replace(' ', '-')}"


def _split(language: Language, path: str) -> list[str]:
    return [part for part in path.split(language.separator) if part]


def module_page(language: Language, module_path: str, layout: PageLayout) -> str:
    """Return the page documenting a module.

    Examples
    --------
    >>> module_page(Language.RUST, "my_crate::core", PageLayout.MODULE)
    'rust/my_crate/core.md'
    >>> module_page(Language.PYTHON, "pkg.core", PageLayout.ITEM)
    'python/pkg/core/index.md'
    """
    parts = _split(language, module_path)
    base = "/".join([language.value, *parts])
    if layout is PageLayout.ITEM or not parts:
        return f"{base}/index.md"
    return f"{base}.md"


def item_page(
    language: Language,
    item_path: str,
    kind: ItemKind | str,
    layout: PageLayout,
) -> PageRef:
    """Return the page (and anchor) documenting an item.

    Methods are documented on their owner's page, so their path resolves to
    the owner page with a ``method-<name>`` anchor under both layouts.

    Parameters
    ----------
    language : Language
        Side the item belongs to.
    item_path : str
        Full item path (``crate::mod::Name`` or ``pkg.mod.Name``).
    kind : ItemKind | str
        Item kind, used as the anchor prefix.
    layout : PageLayout
        Active page layout.

    Returns
    -------
    PageRef
        Page path relative to the documentation root plus anchor.

    Examples
    --------
    >>> item_page(Language.RUST, "a::b::C", ItemKind.STRUCT, PageLayout.ITEM)
    PageRef(path='rust/a/b/C.md', anchor=None)
    >>> item_page(Language.RUST, "a::b::C", ItemKind.STRUCT, PageLayout.MODULE)
    PageRef(path='rust/a/b.md', anchor='struct-c')
    """
    *owner_parts, name = _split(language, item_path) or [item_path]
    if str(kind) == ItemKind.METHOD and owner_parts:
        owner_path = language.separator.join(owner_parts)
        owner = item_page(language, owner_path, ItemKind.CLASS, layout)
        return PageRef(owner.path, item_anchor(ItemKind.METHOD, name))
    if layout is PageLayout.ITEM:
        return PageRef("/".join([language.value, *owner_parts, name]) + ".md")
    module_path = language.separator.join(owner_parts)
    return PageRef(module_page(language, module_path, layout), item_anchor(kind, name))


def crossref_link(
    cross_ref: CrossRef,
    from_page: str,
    from_language: Language,
    layout: PageLayout,
    *,
    target_kind: ItemKind | str,
) -> CrossRefLink:
    """Link from a page on one side of ``cross_ref`` to the other side.

    Parameters
    ----------
    cross_ref : CrossRef
        Relationship to follow.
    from_page : str
        Page the link is rendered on, relative to the documentation root.
    from_language : Language
        Side ``from_page`` documents; the link points at the other side.
    layout : PageLayout
        Active page layout.
    target_kind : ItemKind | str
        Kind of the target item.

    Returns
    -------
    CrossRefLink
        Link text is the target's last path segment.
    """
    if from_language is Language.PYTHON:
        target_language, target_path = Language.RUST, cross_ref.rust_path
    else:
        target_language, target_path = Language.PYTHON, cross_ref.python_path
    target = item_page(target_language, target_path, target_kind, layout)
    text = _split(target_language, target_path)[-1] if target_path else target_path
    return CrossRefLink(
        text=text,
        url=target.link_from(from_page),
        relationship=cross_ref.relationship,
    )


def render_rust_impl_details(link: CrossRefLink, rust_path: str) -> str:
    """Render the collapsible "Rust Implementation" callout for a Python page."""
    return (
        "<details>\n"
        "<summary>Rust Implementation</summary>\n\n"
        f"Implemented by {link.to_markdown()} in `{rust_path}`\n\n"
        "</details>\n"
    )


def render_python_exposure_details(link: CrossRefLink, python_path: str) -> str:
    """Render the collapsible "Python API" callout for a Rust page."""
    return (
        "<details>\n"
        "<summary>Python API</summary>\n\n"
        f"Exposed to Python as {link.to_markdown()} (`{python_path}`)\n\n"
        "</details>\n"
    )
