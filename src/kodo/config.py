"""Centralized configuration constants for the content engine.

This module provides a single source of truth for:
- Nesting limits applied to adversarial or deeply nested input
- Preview lengths used by document structure summaries
- Rendering constants for Markdown export

Constants can be overridden via environment variables where noted.
Limits have hard minimums that cannot be bypassed.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


# =============================================================================
# Helper functions
# =============================================================================


def _env_int(name: str, default: int, min_val: int | None = None) -> int:
    """Get integer from environment with optional minimum enforcement."""
    val = int(os.environ.get(name, str(default)))
    if min_val is not None and val < min_val:
        return min_val
    return val


# =============================================================================
# Content Limits
# =============================================================================


@dataclass(frozen=True)
class ContentLimits:
    """Limits for tree construction, parsing and rendering.

    Nesting depth bounds recursion on blockquotes, lists, columns and
    accordions. Content nested deeper than this is truncated or kept as
    literal text, never rendered recursively.
    """

    # Maximum container nesting depth below the document root
    MAX_NESTING_DEPTH: int = _env_int("KODO_MAX_NESTING_DEPTH", 32, min_val=4)

    # Characters of extracted text kept in block previews
    PREVIEW_LENGTH: int = _env_int("KODO_PREVIEW_LENGTH", 120, min_val=20)

    # Markdown tables never render narrower columns than this
    TABLE_MIN_COLUMN_WIDTH: int = 3

    @property
    def MAX_TREE_DEPTH(self) -> int:
        """Node depth bound for trees read from dictionaries.

        One nesting level spans at most three nodes (accordionGroup,
        accordionItem, accordionContent). Below the last level a table adds
        at most five (table, row, cell, paragraph, text).
        """
        return 3 * self.MAX_NESTING_DEPTH + 5


LIMITS = ContentLimits()
