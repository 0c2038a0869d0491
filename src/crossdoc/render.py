"""Render parsed docstrings into Markdown fragments.

Each section is a small Jinja2 template; non-empty sections are joined with
blank lines. Tables escape ``|`` and flatten newlines so a description never
breaks the row it sits in.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Final

from jinja2 import Environment, StrictUndefined

from crossdoc.model import ParamDoc

if TYPE_CHECKING:
    from jinja2 import Template

    from crossdoc.model import ParsedDocstring, PythonParam

__all__ = [
    "detect_example_language",
    "escape_table_cell",
    "fence_example",
    "merge_signature_params",
    "render_docstring",
]

_PYTHON_EXAMPLE_PREFIXES: Final = (">>>", "...", "def ", "class ", "import ", "from ", "print(")
_RUST_EXAMPLE_PREFIXES: Final = (
    "fn ",
    "let ",
    "use ",
    "println!",
    "assert!",
    "assert_eq!",
    "impl ",
    "struct ",
    "pub ",
    "#[",
)

_PARAMS_TEMPLATE: Final = """**Parameters:**

| Name | Type | Description |
|------|------|-------------|
{% for param in params -%}
| `{{ param.name }}` | {{ param.type | code_or_dash }} | {{ param.description | cell }} |
{% endfor %}"""

_RETURNS_TEMPLATE: Final = (
    "**Returns:**{% if returns.type %} `{{ returns.type }}`{% endif %}"
    "{% if returns.description %}\n\n{{ returns.description }}{% endif %}"
)

_RAISES_TEMPLATE: Final = """**Raises:**

| Exception | Description |
|-----------|-------------|
{% for entry in raises -%}
| `{{ entry.type | cell }}` | {{ entry.description | cell }} |
{% endfor %}"""

_EXAMPLES_TEMPLATE: Final = (
    "**Examples:**{% for example in examples %}\n\n{{ example | fence }}{% endfor %}"
)


def escape_table_cell(text: str | None) -> str:
    """Escape ``|`` and collapse newlines for a Markdown table cell."""
    if not text:
        return ""
    return " ".join(text.replace("|", "\\|").split())


def detect_example_language(code: str) -> str:
    """Guess the fence language of an example block.

    Returns ``"python"`` for doctest prompts or Python statements, ``"rust"``
    for Rust statements and ``""`` when neither is recognisable.
    """
    lines = [line.strip() for line in code.splitlines() if line.strip()]
    if any(line.startswith(_PYTHON_EXAMPLE_PREFIXES) for line in lines):
        return "python"
    if any(line.startswith(_RUST_EXAMPLE_PREFIXES) for line in lines):
        return "rust"
    return ""


def fence_example(example: str) -> str:
    """Wrap an example in a code fence unless it already is one."""
    if example.lstrip().startswith("```"):
        return example
    return f"```{detect_example_language(example)}\n{example}\n```"


def _code_or_dash(value: str | None) -> str:
    return f"`{escape_table_cell(value)}`" if value else "-"


def _build_environment() -> Environment:
    """Build the Jinja2 environment used for Markdown fragments.

    Returns
    -------
    Environment
        Environment with strict undefined handling and the table filters.
    """
    environment = Environment(
        undefined=StrictUndefined,
        trim_blocks=False,
        lstrip_blocks=True,
        keep_trailing_newline=False,
        autoescape=False,  # noqa: S701 - Markdown output, not HTML
    )
    environment.filters["cell"] = escape_table_cell
    environment.filters["code_or_dash"] = _code_or_dash
    environment.filters["fence"] = fence_example
    return environment


_ENV = _build_environment()
_PARAMS: Template = _ENV.from_string(_PARAMS_TEMPLATE)
_RETURNS: Template = _ENV.from_string(_RETURNS_TEMPLATE)
_RAISES: Template = _ENV.from_string(_RAISES_TEMPLATE)
_EXAMPLES: Template = _ENV.from_string(_EXAMPLES_TEMPLATE)


def merge_signature_params(
    signature_params: Sequence[PythonParam],
    doc_params: Sequence[ParamDoc],
) -> list[ParamDoc]:
    """Combine signature parameters with their documentation.

    The signature decides which parameters exist and their order. A type from
    the signature wins over a documented type; descriptions come from the
    docstring.

    Parameters
    ----------
    signature_params : Sequence[PythonParam]
        Parameters from the function signature.
    doc_params : Sequence[ParamDoc]
        Parameters parsed from the docstring.

    Returns
    -------
    list[ParamDoc]
        One entry per signature parameter.
    """
    documented = {param.name: param for param in doc_params}
    merged: list[ParamDoc] = []
    for param in signature_params:
        doc = documented.get(param.name)
        merged.append(
            ParamDoc(
                name=param.name,
                type=param.type or (doc.type if doc else None),
                description=doc.description if doc else "",
            )
        )
    return merged


def render_docstring(
    parsed: ParsedDocstring,
    *,
    params: Sequence[ParamDoc] | None = None,
) -> str:
    """Render a parsed docstring as Markdown.

    Parameters
    ----------
    parsed : ParsedDocstring
        Docstring to render.
    params : Sequence[ParamDoc] | None, optional
        Parameters to tabulate instead of ``parsed.params``, typically the
        output of :func:`merge_signature_params`. Defaults to None.

    Returns
    -------
    str
        Markdown text; empty for an empty docstring.
    """
    table_params = parsed.params if params is None else params
    sections: list[str] = []
    if parsed.summary:
        sections.append(parsed.summary)
    if parsed.description:
        sections.append(parsed.description)
    if table_params:
        sections.append(_PARAMS.render(params=table_params))
    if parsed.returns is not None:
        sections.append(_RETURNS.render(returns=parsed.returns))
    if parsed.raises:
        sections.append(_RAISES.render(raises=parsed.raises))
    if parsed.examples:
        sections.append(_EXAMPLES.render(examples=parsed.examples))
    return "\n\n".join(section.strip() for section in sections if section.strip())
