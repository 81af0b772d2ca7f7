"""
Suppression of findings.

Line and file scope markers are written into the source file; global
scope goes to the project exclusion config.
"""

from grepwarden.suppression.editor import (
    SuppressionEditor,
    SuppressionResult,
    SourceDocument,
    SUPPRESSION_MARKER,
)
from grepwarden.suppression.languages import comment_token, detect_language

__all__ = [
    "SuppressionEditor",
    "SuppressionResult",
    "SourceDocument",
    "SUPPRESSION_MARKER",
    "comment_token",
    "detect_language",
]
