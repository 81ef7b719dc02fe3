"""convotree CLI bootstrap."""

from __future__ import annotations

from convotree.cli import app

if __name__ == "__main__":
    app()
