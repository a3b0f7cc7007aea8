"""palaver CLI bootstrap."""

from __future__ import annotations

from palaver.cli import app

if __name__ == "__main__":
    app()
