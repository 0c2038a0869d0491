"""Best-effort conversion of Rust type strings into Python type hints.

The conversion is textual: it knows the primitive, container and PyO3 smart
pointer names and recurses into generic arguments. Unknown names pass
through as their last path segment.

Examples
--------
>>> rust_type_to_python("PyResult<Vec<Option<u32>>>")
'list[int]'
>>> rust_type_to_python("HashMap<String, f64>")
'dict[str, float]'
>>> rust_type_to_python("(i32, &str)")
'tuple[int, str]'
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Final

__all__ = [
    "SCALAR_TYPES",
    "rust_type_to_python",
    "split_generic_args",
]


SCALAR_TYPES: Final[Mapping[str, str]] = MappingProxyType(
    {
        **dict.fromkeys(
            (
                "i8",
                "i16",
                "i32",
                "i64",
                "i128",
                "isize",
                "u8",
                "u16",
                "u32",
                "u64",
                "u128",
                "usize",
                "PyInt",
                "PyLong",
            ),
            "int",
        ),
        "f32": "float",
        "f64": "float",
        "PyFloat": "float",
        "bool": "bool",
        "PyBool": "bool",
        "String": "str",
        "str": "str",
        "char": "str",
        "PyString": "str",
        "PathBuf": "str",
        "Path": "str",
        "PyBytes": "bytes",
        "PyDict": "dict",
        "PyList": "list",
        "PyTuple": "tuple",
        "PySet": "set",
        "PyType": "type",
        "PyNone": "None",
        "PyObject": "Any",
        "PyAny": "Any",
    }
)

_LIST_TYPES: Final[frozenset[str]] = frozenset({"Vec", "VecDeque", "LinkedList"})
_DICT_TYPES: Final[frozenset[str]] = frozenset({"HashMap", "BTreeMap", "IndexMap"})
_SET_TYPES: Final[frozenset[str]] = frozenset({"HashSet", "BTreeSet", "IndexSet"})

# Wrappers whose first generic argument is the Python-visible type.
_TRANSPARENT_TYPES: Final[frozenset[str]] = frozenset(
    {
        "Option",
        "Result",
        "PyResult",
        "Py",
        "Bound",
        "Borrowed",
        "PyRef",
        "PyRefMut",
        "Box",
        "Arc",
        "Rc",
        "Cow",
    }
)

_LIFETIME_RE = re.compile(r"'[A-Za-z_]\w*\s*(?:,\s*)?")


def split_generic_args(text: str) -> list[str]:
    """Split ``text`` on top-level commas.

    Commas nested inside ``<>``, ``()`` or ``[]`` do not split.

    Examples
    --------
    >>> split_generic_args("String, Vec<(i32, u8)>")
    ['String', 'Vec<(i32, u8)>']
    """
    parts: list[str] = []
    depth = 0
    start = 0
    for index, char in enumerate(text):
        if char in "<([":
            depth += 1
        elif char in ">)]":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append(text[start:index].strip())
            start = index + 1
    tail = text[start:].strip()
    if tail:
        parts.append(tail)
    return [part for part in parts if part]


def rust_type_to_python(rust_type: str, *, self_type: str | None = None) -> str:
    """Convert a Rust type expression into a Python type hint.

    Parameters
    ----------
    rust_type : str
        Rust type as written in the signature.
    self_type : str | None, optional
        Python class name substituted for ``Self``. Defaults to None, which
        keeps ``Self`` as is.

    Returns
    -------
    str
        Python type hint. ``"None"`` for the unit type and ``""`` for the
        implicit ``Python<'_>`` token.
    """
    text = _LIFETIME_RE.sub("", rust_type).strip()
    while text.startswith("&"):
        text = text[1:].strip()
        if text.startswith("mut "):
            text = text[4:].strip()
    if text.startswith("dyn "):
        text = text[4:].strip()

    if text in {"", "()"}:
        return "None"
    if text == "Python" or text.startswith("Python<"):
        return ""
    if text == "Self":
        return self_type or "Self"

    if text.startswith("(") and text.endswith(")"):
        elements = [
            rust_type_to_python(part, self_type=self_type)
            for part in split_generic_args(text[1:-1])
        ]
        return f"tuple[{', '.join(elements)}]"

    if text.startswith("[") and text.endswith("]"):
        inner = text[1:-1].split(";", 1)[0].strip()
        if inner == "u8":
            return "bytes"
        return f"list[{rust_type_to_python(inner, self_type=self_type)}]"

    if "<" in text and text.endswith(">"):
        head, _, rest = text.partition("<")
        base = head.strip().rsplit("::", 1)[-1]
        args = [
            rust_type_to_python(arg, self_type=self_type) for arg in split_generic_args(rest[:-1])
        ]
        return _generic_to_python(base, args)

    base = text.rsplit("::", 1)[-1]
    return SCALAR_TYPES.get(base, base)


def _generic_to_python(base: str, args: list[str]) -> str:
    if base in _TRANSPARENT_TYPES:
        return args[0] if args else "Any"
    if base in _LIST_TYPES:
        return f"list[{args[0] if args else 'Any'}]"
    if base in _SET_TYPES:
        return f"set[{args[0] if args else 'Any'}]"
    if base in _DICT_TYPES:
        key, value = (args + ["Any", "Any"])[:2]
        return f"dict[{key}, {value}]"
    return SCALAR_TYPES.get(base, base)
