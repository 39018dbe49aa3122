"""Module entry point: python -m fishing_watch ..."""

from __future__ import annotations

from fishing_watch.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
