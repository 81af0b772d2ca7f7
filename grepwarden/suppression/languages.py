"""
Language tables used by the suppression editor.

Both tables are checked when the module is imported: every language that
can be detected from a file extension must have a single-line comment
token, so detection never produces a language the editor cannot annotate
by accident.
"""

import os
from typing import Dict, List, Optional

from grepwarden.errors import UnsupportedLanguage


# Language detection by file extension
LANGUAGE_EXTENSIONS: Dict[str, List[str]] = {
    "python": [".py", ".pyw", ".pyi"],
    "javascript": [".js", ".mjs", ".cjs", ".jsx"],
    "typescript": [".ts", ".tsx", ".mts", ".cts"],
    "java": [".java"],
    "kotlin": [".kt", ".kts"],
    "go": [".go"],
    "ruby": [".rb", ".erb", ".rake"],
    "rust": [".rs"],
    "swift": [".swift"],
    "c": [".c"],
    "cpp": [".cpp", ".cc", ".cxx", ".hpp", ".hh", ".hxx", ".h"],
    "csharp": [".cs"],
    "php": [".php"],
    "scala": [".scala"],
}

# Single-line comment token per language
COMMENT_TOKENS: Dict[str, str] = {
    "python": "#",
    "javascript": "//",
    "typescript": "//",
    "java": "//",
    "go": "//",
    "c": "//",
    "cpp": "//",
    "csharp": "//",
    "ruby": "#",
    "php": "//",
    "rust": "//",
    "kotlin": "//",
    "scala": "//",
    "swift": "//",
}


def _validate_tables() -> Dict[str, str]:
    extension_map: Dict[str, str] = {}
    for language, token in COMMENT_TOKENS.items():
        if language != language.lower() or not token.strip():
            raise ValueError(f"Invalid comment token entry: {language!r} -> {token!r}")
    for language, extensions in LANGUAGE_EXTENSIONS.items():
        if language not in COMMENT_TOKENS:
            raise ValueError(f"No comment token for detectable language {language!r}")
        for ext in extensions:
            if ext in extension_map:
                raise ValueError(f"Extension {ext} mapped to both {extension_map[ext]} and {language}")
            extension_map[ext] = language
    return extension_map


# Reverse mapping for quick lookup
EXTENSION_TO_LANGUAGE: Dict[str, str] = _validate_tables()


def detect_language(file_path: str) -> Optional[str]:
    """Detect the language of a file from its extension."""
    ext = os.path.splitext(file_path)[1].lower()
    return EXTENSION_TO_LANGUAGE.get(ext)


def comment_token(language: str) -> str:
    """Return the single-line comment token, or raise UnsupportedLanguage."""
    token = COMMENT_TOKENS.get((language or "").lower())
    if token is None:
        raise UnsupportedLanguage(language)
    return token


def supported_languages() -> List[str]:
    return sorted(COMMENT_TOKENS)
