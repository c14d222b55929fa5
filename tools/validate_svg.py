#!/usr/bin/env python3
from __future__ import annotations

import sys
from pathlib import Path

import typer

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from rapport_mcp.cli import validate  # noqa: E402

app = typer.Typer(add_completion=False, help="Validate and sanitize a canvas SVG before upload.")
app.command()(validate)


if __name__ == "__main__":
    app(prog_name="validate")
