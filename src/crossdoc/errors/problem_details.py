"""RFC 9457 Problem Details helpers.

Examples
--------
>>> from crossdoc.errors.problem_details import build_problem_details, render_problem
>>> problem = build_problem_details(
...     problem_type="https://crossdoc.dev/problems/model-load-error",
...     title="ModelLoadError",
...     status=422,
...     detail="Expected object, got array",
...     instance="urn:crossdoc:model:model.json",
... )
>>> "model-load-error" in render_problem(problem)
True
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, NotRequired, TypedDict

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__ = [
    "ProblemDetails",
    "build_problem_details",
    "render_problem",
]


class ProblemDetails(TypedDict):
    """RFC 9457 Problem Details payload."""

    type: str
    title: str
    status: int
    detail: str
    instance: str
    code: NotRequired[str]
    extensions: NotRequired[dict[str, object]]


def build_problem_details(  # noqa: PLR0913
    problem_type: str,
    title: str,
    status: int,
    detail: str,
    instance: str,
    *,
    code: str | None = None,
    extensions: Mapping[str, object] | None = None,
) -> ProblemDetails:
    """Build an RFC 9457 Problem Details payload.

    Parameters
    ----------
    problem_type : str
        Type URI identifying the problem class.
    title : str
        Short human-readable summary.
    status : int
        Status code associated with the problem.
    detail : str
        Human-readable explanation of this occurrence.
    instance : str
        URI identifying this occurrence.
    code : str | None, optional
        Machine-readable error code. Defaults to None.
    extensions : Mapping[str, object] | None, optional
        Extra members merged under ``extensions``. Defaults to None.

    Returns
    -------
    ProblemDetails
        Payload with the required members and any optional ones provided.

    Raises
    ------
    ValueError
        If ``status`` is outside the 4xx/5xx range.
    """
    if not 400 <= status <= 599:  # noqa: PLR2004
        message = f"Problem Details status must be 4xx or 5xx, got {status}"
        raise ValueError(message)
    payload = ProblemDetails(
        type=problem_type,
        title=title,
        status=status,
        detail=detail,
        instance=instance,
    )
    if code is not None:
        payload["code"] = code
    if extensions:
        payload["extensions"] = dict(extensions)
    return payload


def render_problem(problem: ProblemDetails, *, indent: int | None = 2) -> str:
    """Render a Problem Details payload as JSON text."""
    return json.dumps(problem, indent=indent, sort_keys=True, default=str)
