"""Structural docstring parsing.

Two entry points turn raw documentation text into a
:class:`~crossdoc.model.ParsedDocstring`:

* :func:`parse_docstring` for Python docstrings. The style (Google, NumPy or
  plain) is auto-detected with :func:`detect_style`.
* :func:`parse_native_doc` for Rust doc comments, which use Markdown ATX
  headers (``# Arguments``, ``# Errors`` ...).

Neither entry point raises. Text without recognisable structure degrades to
a summary and description, and malformed entries inside a section are
dropped.

Examples
--------
>>> doc = parse_docstring("Add numbers.\\n\\nArgs:\\n    a (int): First")
>>> doc.summary, doc.params[0].type
('Add numbers.', 'int')
"""

from __future__ import annotations

import inspect
import re
import textwrap
from collections.abc import Callable, Iterable, Mapping, Sequence
from enum import StrEnum
from types import MappingProxyType
from typing import Final

from crossdoc.model import ParamDoc, ParsedDocstring, RaisesDoc, ReturnDoc

__all__ = [
    "DocstringStyle",
    "detect_style",
    "looks_like_native_doc",
    "parse_any_doc",
    "parse_docstring",
    "parse_native_doc",
]


class DocstringStyle(StrEnum):
    """Docstring conventions understood by :func:`parse_docstring`."""

    GOOGLE = "google"
    NUMPY = "numpy"
    PLAIN = "plain"


# Section titles that end the summary/description block.
SECTION_NAMES: Final[frozenset[str]] = frozenset(
    {
        "args",
        "arguments",
        "parameters",
        "params",
        "returns",
        "return",
        "raises",
        "raise",
        "exceptions",
        "except",
        "example",
        "examples",
        "attributes",
        "note",
        "notes",
        "yields",
        "yield",
        "see also",
        "references",
        "warnings",
        "warning",
    }
)

# Standalone ``Marker:`` lines that identify a Google-style docstring.
GOOGLE_MARKERS: Final[frozenset[str]] = frozenset(
    {
        "Args:",
        "Arguments:",
        "Parameters:",
        "Returns:",
        "Raises:",
        "Example:",
        "Examples:",
        "Attributes:",
        "Note:",
        "Notes:",
        "Yields:",
    }
)

_PARAM_SECTIONS: Final[frozenset[str]] = frozenset({"args", "arguments", "parameters", "params"})
_RETURN_SECTIONS: Final[frozenset[str]] = frozenset({"returns", "return"})
_RAISE_SECTIONS: Final[frozenset[str]] = frozenset({"raises", "raise", "exceptions", "except"})
_EXAMPLE_SECTIONS: Final[frozenset[str]] = frozenset({"example", "examples"})

_NATIVE_HEADER_PREFIXES: Final[tuple[str, ...]] = ("# ", "## ", "### ")
_NATIVE_ERROR_LABELS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "errors": "Error",
        "error": "Error",
        "panics": "Panic",
        "panic": "Panic",
    }
)
_NATIVE_MARKERS: Final[tuple[str, ...]] = (
    "# Arguments",
    "# Parameters",
    "# Returns",
    "# Errors",
    "# Panics",
    "# Safety",
    "# Examples",
)

_GOOGLE_PARAM_MAX_INDENT: Final = 4
_UNDERLINE_MIN_LENGTH: Final = 3

_IDENTIFIER_RE = re.compile(r"^\*{0,2}[A-Za-z_][\w.]*$")
_TYPED_NAME_RE = re.compile(r"^(\*{0,2}[A-Za-z_][\w.]*)\s*\((.*)\)$")
_BACKTICK_ITEM_RE = re.compile(r"^`([^`]+)`\s*(?:[-:]\s*)?(.*)$")

Section = tuple[str, list[str]]


# ---------------------------------------------------------------------------
# Public entry points


def detect_style(text: str) -> DocstringStyle:
    """Classify ``text`` as NumPy, Google or plain.

    NumPy wins when a line of three or more dashes directly follows a title
    line. Google wins when any line, once stripped, is a known marker such
    as ``Args:``. Everything else is plain.
    """
    lines = text.splitlines()
    for current, following in zip(lines, lines[1:], strict=False):
        if current.strip() and _is_underline(following):
            return DocstringStyle.NUMPY
    if any(line.strip() in GOOGLE_MARKERS for line in lines):
        return DocstringStyle.GOOGLE
    return DocstringStyle.PLAIN


def parse_docstring(text: str | None) -> ParsedDocstring:
    """Parse a Python docstring in Google, NumPy or plain style.

    Parameters
    ----------
    text : str | None
        Raw docstring. Common indentation is removed the way
        :func:`inspect.cleandoc` does it.

    Returns
    -------
    ParsedDocstring
        Structured record; empty when ``text`` is empty or blank.
    """
    cleaned = inspect.cleandoc(text) if text else ""
    if not cleaned.strip():
        return ParsedDocstring.empty()

    style = detect_style(cleaned)
    lines = cleaned.splitlines()
    if style is DocstringStyle.NUMPY:
        summary, description, sections = _split_numpy(lines)
        return _assemble_numpy(summary, description, sections)
    if style is DocstringStyle.GOOGLE:
        summary, description, sections = _split_google(lines)
        return _assemble_google(summary, description, sections)
    summary, description = _summary_and_description(lines)
    return ParsedDocstring(summary=summary, description=description)


def parse_native_doc(text: str | None) -> ParsedDocstring:
    """Parse a Rust doc comment with ATX ``#`` section headers.

    Recognised sections are ``Arguments``/``Parameters``/``Args``/``Params``,
    ``Returns``, ``Errors``, ``Panics``, ``Safety`` and ``Examples``. Other
    headed sections are skipped. Headers inside fenced code blocks are
    treated as code.

    Parameters
    ----------
    text : str | None
        Doc comment text with the ``///`` markers already removed.

    Returns
    -------
    ParsedDocstring
        Structured record; empty when ``text`` is empty or blank.
    """
    cleaned = textwrap.dedent(text).strip() if text else ""
    if not cleaned:
        return ParsedDocstring.empty()

    lines = cleaned.splitlines()
    preamble, sections = _split_native(lines)
    summary, description = _summary_and_description(preamble)

    params: dict[str, ParamDoc] = {}
    returns: ReturnDoc | None = None
    raises: list[RaisesDoc] = []
    examples: list[str] = []
    safety: list[str] = []

    for name, body in sections:
        if name in _PARAM_SECTIONS:
            _merge_params(params, _parse_native_params(body))
        elif name in _RETURN_SECTIONS:
            text_body = _join_words(body)
            if text_body:
                returns = ReturnDoc(type=None, description=text_body)
        elif name in _NATIVE_ERROR_LABELS:
            raises.extend(_parse_native_errors(body, _NATIVE_ERROR_LABELS[name]))
        elif name == "safety":
            block = "\n".join(body).strip()
            if block:
                safety.append(block)
        elif name in _EXAMPLE_SECTIONS:
            examples.extend(_split_examples(body))

    for block in safety:
        heading = f"# Safety\n{block}"
        description = f"{description}\n\n{heading}" if description else heading

    return ParsedDocstring(
        summary=summary,
        description=description,
        params=tuple(params.values()),
        returns=returns,
        raises=tuple(raises),
        examples=tuple(examples),
    )


def looks_like_native_doc(text: str | None) -> bool:
    """Return True when ``text`` carries a Rust-style ``# Section`` header."""
    if not text:
        return False
    return any(line.strip().startswith(_NATIVE_MARKERS) for line in text.splitlines())


def parse_any_doc(text: str | None, *, native: bool = False) -> ParsedDocstring:
    """Parse ``text`` with the parser matching its convention.

    Parameters
    ----------
    text : str | None
        Raw documentation text.
    native : bool, optional
        Whether the text comes from Rust source. Binding docstrings written
        on Rust items may still use Python conventions, so native text is
        only routed to :func:`parse_native_doc` when it has native headers
        or no Python-style structure. Defaults to False.

    Returns
    -------
    ParsedDocstring
        Parsed record.
    """
    if native and (looks_like_native_doc(text) or detect_style(text or "") is DocstringStyle.PLAIN):
        return parse_native_doc(text)
    return parse_docstring(text)


# ---------------------------------------------------------------------------
# Block splitting


def _is_underline(line: str) -> bool:
    stripped = line.strip()
    return len(stripped) >= _UNDERLINE_MIN_LENGTH and set(stripped) == {"-"}


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def _is_google_header(line: str) -> bool:
    stripped = line.strip()
    return stripped.endswith(":") and stripped[:-1].strip().lower() in SECTION_NAMES


def _summary_and_description(lines: Sequence[str]) -> tuple[str | None, str | None]:
    """Split the preamble into a first paragraph and the remaining text."""
    index = 0
    while index < len(lines) and not lines[index].strip():
        index += 1
    summary_lines: list[str] = []
    while index < len(lines) and lines[index].strip():
        summary_lines.append(lines[index].strip())
        index += 1
    description = "\n".join(lines[index:]).strip()
    summary = " ".join(summary_lines)
    return summary or None, textwrap.dedent(description).strip() or None


def _preamble_end(lines: Sequence[str], is_header: Callable[[int], bool]) -> int:
    for index in range(len(lines)):
        if is_header(index):
            return index
    return len(lines)


def _split_google(lines: list[str]) -> tuple[str | None, str | None, list[Section]]:
    end = _preamble_end(lines, lambda i: _is_google_header(lines[i]))
    summary, description = _summary_and_description(lines[:end])
    sections: list[Section] = []
    for line in lines[end:]:
        if _is_google_header(line):
            sections.append((line.strip()[:-1].strip().lower(), []))
        else:
            sections[-1][1].append(line)
    return summary, description, sections


def _split_numpy(lines: list[str]) -> tuple[str | None, str | None, list[Section]]:
    def is_header(index: int) -> bool:
        return (
            bool(lines[index].strip())
            and index + 1 < len(lines)
            and _is_underline(lines[index + 1])
        )

    end = _preamble_end(lines, is_header)
    summary, description = _summary_and_description(lines[:end])
    sections: list[Section] = []
    index = end
    while index < len(lines):
        if is_header(index):
            sections.append((lines[index].strip().lower(), []))
            index += 2
            continue
        sections[-1][1].append(lines[index])
        index += 1
    return summary, description, sections


def _native_header(line: str) -> str | None:
    stripped = line.strip()
    for prefix in _NATIVE_HEADER_PREFIXES:
        if stripped.startswith(prefix):
            return stripped[len(prefix) :].strip().lower()
    return None


def _split_native(lines: list[str]) -> tuple[list[str], list[Section]]:
    preamble: list[str] = []
    sections: list[Section] = []
    in_fence = False
    for line in lines:
        if line.strip().startswith("```"):
            in_fence = not in_fence
        header = None if in_fence else _native_header(line)
        if header is not None:
            sections.append((header, []))
        elif sections:
            sections[-1][1].append(line)
        else:
            preamble.append(line)
    return preamble, sections


# ---------------------------------------------------------------------------
# Shared section helpers


def _join_words(lines: Iterable[str]) -> str:
    return " ".join(line.strip() for line in lines if line.strip())


def _merge_params(target: dict[str, ParamDoc], params: Iterable[ParamDoc]) -> None:
    # Later duplicates replace earlier ones but keep the first position.
    for param in params:
        target[param.name] = param


def _split_examples(body: Sequence[str]) -> list[str]:
    """Split an examples body into blank-line separated groups.

    Blank lines inside fenced code blocks do not split a group.
    """
    groups: list[str] = []
    current: list[str] = []
    in_fence = False
    for line in body:
        if line.strip().startswith("```"):
            in_fence = not in_fence
        if not line.strip() and not in_fence:
            if current:
                groups.append(textwrap.dedent("\n".join(current)).strip("\n"))
                current = []
            continue
        current.append(line)
    if current:
        groups.append(textwrap.dedent("\n".join(current)).strip("\n"))
    return groups


# ---------------------------------------------------------------------------
# Google sections


def _split_entry_head(head: str) -> tuple[str, str | None] | None:
    head = head.strip()
    match = _TYPED_NAME_RE.match(head)
    if match:
        return match.group(1), match.group(2).strip() or None
    if _IDENTIFIER_RE.match(head):
        return head, None
    return None


def _parse_google_entries(body: Sequence[str]) -> list[tuple[str, str | None, str]]:
    """Parse ``name (type): description`` entries with continuation lines."""
    entries: list[tuple[str, str | None, str]] = []
    current: tuple[str, str | None] | None = None
    words: list[str] = []

    def flush() -> None:
        nonlocal current, words
        if current is not None:
            entries.append((current[0], current[1], " ".join(words)))
        current, words = None, []

    for line in body:
        stripped = line.strip()
        if not stripped:
            flush()
            continue
        if _indent(line) <= _GOOGLE_PARAM_MAX_INDENT and ":" in stripped:
            head, _, rest = stripped.partition(":")
            parsed = _split_entry_head(head)
            if parsed is not None:
                flush()
                current = parsed
                words = [rest.strip()] if rest.strip() else []
                continue
        if current is not None:
            words.append(stripped)
    flush()
    return entries


def _parse_google_returns(body: Sequence[str]) -> ReturnDoc | None:
    lines = [line.strip() for line in body if line.strip()]
    if not lines:
        return None
    first = lines[0]
    if ":" in first:
        before, _, after = first.partition(":")
        before = before.strip()
        if before and (" " not in before or "[" in before):
            description = " ".join([after.strip(), *lines[1:]]).strip()
            return ReturnDoc(type=before, description=description)
    return ReturnDoc(type=None, description=" ".join(lines))


def _assemble_google(
    summary: str | None, description: str | None, sections: list[Section]
) -> ParsedDocstring:
    params: dict[str, ParamDoc] = {}
    returns: ReturnDoc | None = None
    raises: list[RaisesDoc] = []
    examples: list[str] = []
    for name, body in sections:
        if name in _PARAM_SECTIONS:
            _merge_params(
                params,
                (
                    ParamDoc(name=entry, type=kind, description=text)
                    for entry, kind, text in _parse_google_entries(body)
                ),
            )
        elif name in _RETURN_SECTIONS:
            returns = _parse_google_returns(body) or returns
        elif name in _RAISE_SECTIONS:
            raises.extend(
                RaisesDoc(type=entry, description=text)
                for entry, _, text in _parse_google_entries(body)
            )
        elif name in _EXAMPLE_SECTIONS:
            examples.extend(_split_examples(body))
    return ParsedDocstring(
        summary=summary,
        description=description,
        params=tuple(params.values()),
        returns=returns,
        raises=tuple(raises),
        examples=tuple(examples),
    )


# ---------------------------------------------------------------------------
# NumPy sections


def _numpy_entries(body: Sequence[str]) -> list[tuple[str, str]]:
    """Group a NumPy section into (header line, description) pairs.

    Entry headers sit at the section's base indentation; deeper lines are
    descriptions.
    """
    content = [line for line in body if line.strip()]
    if not content:
        return []
    base = min(_indent(line) for line in content)
    entries: list[tuple[str, list[str]]] = []
    for line in content:
        if _indent(line) <= base:
            entries.append((line.strip(), []))
        elif entries:
            entries[-1][1].append(line.strip())
    return [(head, " ".join(words)) for head, words in entries]


def _assemble_numpy(
    summary: str | None, description: str | None, sections: list[Section]
) -> ParsedDocstring:
    params: dict[str, ParamDoc] = {}
    returns: ReturnDoc | None = None
    raises: list[RaisesDoc] = []
    examples: list[str] = []
    for name, body in sections:
        if name in _PARAM_SECTIONS:
            for head, text in _numpy_entries(body):
                entry, _, kind = head.partition(":")
                entry = entry.strip()
                if _IDENTIFIER_RE.match(entry):
                    _merge_params(
                        params,
                        [ParamDoc(name=entry, type=kind.strip() or None, description=text)],
                    )
        elif name in _RETURN_SECTIONS:
            entries = _numpy_entries(body)
            if entries:
                head, text = entries[0]
                _, colon, kind = head.partition(":")
                return_type = (kind if colon else head).strip() or None
                returns = ReturnDoc(type=return_type, description=text)
        elif name in _RAISE_SECTIONS:
            raises.extend(
                RaisesDoc(type=head, description=text) for head, text in _numpy_entries(body)
            )
        elif name in _EXAMPLE_SECTIONS:
            examples.extend(_split_examples(body))
    return ParsedDocstring(
        summary=summary,
        description=description,
        params=tuple(params.values()),
        returns=returns,
        raises=tuple(raises),
        examples=tuple(examples),
    )


# ---------------------------------------------------------------------------
# Native (Rust) sections


def _list_item(line: str) -> str | None:
    stripped = line.strip()
    if stripped.startswith(("* ", "- ")):
        return stripped[2:].strip()
    return None


def _parse_native_params(body: Sequence[str]) -> list[ParamDoc]:
    params: list[ParamDoc] = []
    current: list[str] | None = None
    name = ""

    def flush() -> None:
        nonlocal current
        if current is not None:
            params.append(ParamDoc(name=name, type=None, description=" ".join(current)))
        current = None

    for line in body:
        item = _list_item(line)
        if item is not None:
            flush()
            parsed = _native_param_item(item)
            if parsed is not None:
                name, first = parsed
                current = [first] if first else []
        elif not line.strip():
            flush()
        elif current is not None:
            current.append(line.strip())
    flush()
    return params


def _native_param_item(item: str) -> tuple[str, str] | None:
    match = _BACKTICK_ITEM_RE.match(item)
    if match:
        return match.group(1).strip(), match.group(2).strip()
    for separator in (" - ", ":"):
        head, found, rest = item.partition(separator)
        if found and _IDENTIFIER_RE.match(head.strip()):
            return head.strip(), rest.strip()
    return None


def _parse_native_errors(body: Sequence[str], label: str) -> list[RaisesDoc]:
    # Entries keep source order; a blank line ends the current entry.
    entries: list[list[str]] = []
    current: list[str] | None = None
    for line in body:
        item = _list_item(line)
        if item is not None:
            match = _BACKTICK_ITEM_RE.match(item)
            if match:
                current = [match.group(1).strip(), match.group(2).strip()]
            else:
                current = [label, item]
            entries.append(current)
        elif not line.strip():
            current = None
        elif current is None:
            current = [label, line.strip()]
            entries.append(current)
        else:
            current.append(line.strip())
    return [
        RaisesDoc(type=entry[0], description=" ".join(part for part in entry[1:] if part))
        for entry in entries
    ]
