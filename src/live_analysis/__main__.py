"""Module entrypoint for ``python -m live_analysis``."""

from __future__ import annotations

from live_analysis.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
