"""
Operator-facing status lines for the updater CLI.

These are what a person running the tool by hand (or reading a cron mail)
sees; diagnostic detail goes through logging instead.
"""

import sys
from typing import Any, Iterable


def separator(width: int = 60) -> str:
    return "=" * width


def print_header(title: str, width: int = 60) -> None:
    print(f"\n{separator(width)}")
    print(title)
    print(separator(width))


def print_success(message: str) -> None:
    print(f"✓ {message}")


def print_warning(message: str) -> None:
    print(f"⚠ {message}", file=sys.stderr)


def print_error(message: str) -> None:
    print(f"✗ {message}", file=sys.stderr)


def print_info(message: str) -> None:
    print(message)


def print_detail(label: str, value: Any) -> None:
    """Print one aligned ``label : value`` line; empty values are skipped."""
    if value in (None, "", [], ()):
        return
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value)
    print(f"  {label:<18}: {value}")


def print_run_details(data: dict[str, Any], keys: Iterable[tuple[str, str]]) -> None:
    """Print the ``(label, key)`` pairs of a run's result data that are set."""
    for label, key in keys:
        print_detail(label, data.get(key))
