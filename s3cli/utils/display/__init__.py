"""Display utilities sub-package.

Contains the final report helpers and the polled status line.
"""
from .display_utils import (
    format_bytes,
    print_error,
    print_outcome,
)
from .status_renderer import StatusRenderer, render_line

__all__ = [
    'format_bytes',
    'print_error',
    'print_outcome',
    'StatusRenderer',
    'render_line',
]
