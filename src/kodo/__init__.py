"""Kodo document content engine.

Canonical block trees for rich-text documents: normalization of arbitrary
input, Markdown parsing and export, and structural edits.
"""

__version__ = "0.4.0"
