"""Command-line interface package for the clinic console.

The function :func:`main` is exposed via attribute access
(``from clinic_console.cli import main``) and imported lazily so that the
submodule :mod:`clinic_console.cli.main` is not shadowed.
"""

from importlib import import_module
from typing import Any


def __getattr__(name: str) -> Any:
    if name == "main":
        return import_module(".main", __name__).main
    raise AttributeError(f"module {__name__!r} has no attribute {name}")


__all__ = ["main"]
