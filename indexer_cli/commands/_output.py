"""Shared output helpers for CLI commands."""

from __future__ import annotations

import json
from argparse import Namespace
from typing import Any, Iterable


def emit(args: Namespace, data: Any, lines: Iterable[str] = ()) -> None:
    """Print `data` as JSON under --json, otherwise the human-readable lines."""
    if getattr(args, "json", False):
        print(json.dumps(data, indent=2))
        return
    for line in lines:
        print(line)
