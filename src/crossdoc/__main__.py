"""Allow ``python -m crossdoc``."""

from __future__ import annotations

from crossdoc.cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
