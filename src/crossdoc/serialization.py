"""JSON encoding and decoding of the documentation model.

Item trees produced by the source extractors arrive as JSON and the built
:class:`~crossdoc.model.DocModel` leaves as JSON. Both directions go through
typed :mod:`msgspec` encoders so a malformed payload fails with the path of
the offending field.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import msgspec

from crossdoc.errors import FileOperationError, ModelLoadError, SerializationError
from crossdoc.model import CrossRef, DocModel, ProjectMetadata, PythonModule, RustModule

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "SourceTrees",
    "decode_doc_model",
    "decode_source_trees",
    "dump_doc_model",
    "encode_cross_refs",
    "encode_doc_model",
    "load_doc_model",
    "load_source_trees",
    "to_builtins",
]

T = TypeVar("T")

_ENCODER = msgspec.json.Encoder()


class SourceTrees(msgspec.Struct, frozen=True, kw_only=True):
    """Extractor output: both item trees plus project metadata."""

    metadata: ProjectMetadata
    rust_modules: tuple[RustModule, ...] = ()
    python_modules: tuple[PythonModule, ...] = ()


_DOC_MODEL_DECODER = msgspec.json.Decoder(DocModel)
_SOURCE_TREES_DECODER = msgspec.json.Decoder(SourceTrees)


def _decode(decoder: msgspec.json.Decoder[T], payload: bytes | str, source: str) -> T:
    try:
        return decoder.decode(payload)
    except msgspec.ValidationError as exc:
        message = f"Invalid model in {source}: {exc}"
        raise ModelLoadError(message, cause=exc, context={"source": source}) from exc
    except msgspec.DecodeError as exc:
        message = f"Malformed JSON in {source}: {exc}"
        raise ModelLoadError(message, cause=exc, context={"source": source}) from exc


def _read(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        message = f"Cannot read {path}: {exc.strerror or exc}"
        raise FileOperationError(message, cause=exc, context={"path": str(path)}) from exc


def decode_source_trees(payload: bytes | str, *, source: str = "<memory>") -> SourceTrees:
    """Decode extractor output.

    Raises
    ------
    ModelLoadError
        If the payload is not valid JSON or does not match the model.
    """
    return _decode(_SOURCE_TREES_DECODER, payload, source)


def load_source_trees(path: str | Path) -> SourceTrees:
    """Read and decode extractor output from ``path``."""
    source = Path(path)
    return decode_source_trees(_read(source), source=str(source))


def decode_doc_model(payload: bytes | str, *, source: str = "<memory>") -> DocModel:
    """Decode a serialized :class:`DocModel`.

    Raises
    ------
    ModelLoadError
        If the payload is not valid JSON or does not match the model.
    """
    return _decode(_DOC_MODEL_DECODER, payload, source)


def load_doc_model(path: str | Path) -> DocModel:
    """Read and decode a :class:`DocModel` from ``path``."""
    source = Path(path)
    return decode_doc_model(_read(source), source=str(source))


def encode_doc_model(model: DocModel) -> bytes:
    """Encode a :class:`DocModel` as compact JSON.

    Raises
    ------
    SerializationError
        If the model holds a value msgspec cannot encode.
    """
    try:
        return _ENCODER.encode(model)
    except (TypeError, msgspec.EncodeError) as exc:
        message = f"Cannot encode doc model: {exc}"
        raise SerializationError(message, cause=exc) from exc


def dump_doc_model(model: DocModel, path: str | Path) -> None:
    """Write ``model`` as indented JSON to ``path``, creating parent directories."""
    target = Path(path)
    payload = msgspec.json.format(encode_doc_model(model), indent=2)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload + b"\n")
    except OSError as exc:
        message = f"Cannot write {target}: {exc.strerror or exc}"
        raise FileOperationError(message, cause=exc, context={"path": str(target)}) from exc


def encode_cross_refs(cross_refs: Sequence[CrossRef]) -> bytes:
    """Encode a cross reference list as JSON."""
    return _ENCODER.encode(list(cross_refs))


def to_builtins(value: object) -> Any:  # noqa: ANN401
    """Convert model records into plain dicts, lists and strings."""
    return msgspec.to_builtins(value)
