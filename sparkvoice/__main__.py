"""Module entrypoint for running Sparkvoice as ``python -m sparkvoice``."""

from __future__ import annotations

from sparkvoice.cli import main


if __name__ == "__main__":
    main()
