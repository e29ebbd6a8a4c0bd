"""Utility functions and helpers."""

from .helpers import StrictOptionGroup, ordered_group
from .menu import select_menu
from .output import (
    confirm,
    console,
    create_table,
    print_cancelled,
    print_error,
    print_info,
    print_success,
    print_url,
    print_warning,
    prompt,
    spinner,
)

__all__ = [
    "StrictOptionGroup",
    "confirm",
    "console",
    "create_table",
    "ordered_group",
    "print_cancelled",
    "print_error",
    "print_info",
    "print_success",
    "print_url",
    "print_warning",
    "prompt",
    "select_menu",
    "spinner",
]
