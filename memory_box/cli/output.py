"""Terminal output helpers for the memory-box CLI.

ANSI styling is switched off when stdout is not a terminal or ``NO_COLOR``
is set, so piped output stays plain.
"""

from __future__ import annotations

import os
import sys
import textwrap

_CODES = {
    "bold": "1",
    "dim": "2",
    "red": "31",
    "green": "32",
    "yellow": "33",
    "rose": "38;5;174",
}


def _color_enabled() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


_ENABLED = _color_enabled()


def _style(name: str, text: str) -> str:
    if not _ENABLED:
        return text
    return f"\033[{_CODES[name]}m{text}\033[0m"


def bold(text: str) -> str:
    return _style("bold", text)


def dim(text: str) -> str:
    return _style("dim", text)


def rose(text: str) -> str:
    return _style("rose", text)


# ── Messages ────────────────────────────────────────────────────────


def header(title: str) -> None:
    print()
    print(bold(title))


def success(msg: str) -> None:
    print("  " + _style("green", "✓"), msg)


def warn(msg: str) -> None:
    print("  " + _style("yellow", "!"), msg)


def error(msg: str) -> None:
    print("  " + _style("red", "✗"), msg, file=sys.stderr)


def info(msg: str) -> None:
    print("  " + msg)


def kv(key: str, value: object, indent: int = 2) -> None:
    label = dim(f"{key}:")
    print(" " * indent + f"{label}  {value}")


def diary(text: str, width: int = 36) -> None:
    """Print diary text indented; CJK text is wrapped by character count."""
    for paragraph in text.splitlines() or [""]:
        for line in textwrap.wrap(paragraph, width=width) or [""]:
            print("    " + rose(line))


def next_step(command: str, description: str = "") -> None:
    line = "    " + bold(command)
    if description:
        line += "  " + dim(description)
    print(line)


def banner() -> None:
    print(bold("memory-box") + dim(" · 把孩子的闪光时刻写进成长手账"))
