"""Terminal size detection utilities."""

from __future__ import annotations

import shutil


def get_terminal_size(
    fallback_width: int = 80,
    fallback_height: int = 24,
) -> tuple[int, int]:
    """Get current terminal size in columns and rows.

    Returns (width, height). Falls back to provided defaults
    if terminal size cannot be determined.
    """
    try:
        size = shutil.get_terminal_size(fallback=(fallback_width, fallback_height))
        return size.columns, size.lines
    except (ValueError, OSError):
        return fallback_width, fallback_height


def default_target_size(
    max_width: int | None = None,
    max_height: int | None = None,
) -> tuple[int, int]:
    """Target grid size for the CLI when width/height flags are omitted.

    Width defaults to the terminal's columns (minus one so a full row does
    not wrap); height defaults to a generous bound since the downscaler
    derives it from the width and aspect ratio anyway.
    """
    if max_width is None or max_height is None:
        tw, _ = get_terminal_size()
        if max_width is None:
            max_width = max(tw - 1, 1)
        if max_height is None:
            max_height = 100
    return max_width, max_height
