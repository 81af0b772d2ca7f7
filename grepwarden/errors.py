"""
Exception hierarchy for grepwarden.

Scan-side errors are caught by the invoker and coordinator and degrade to
an empty result. Suppression errors are raised to the caller, since the
user asked for a specific text change and must see why it did not happen.
"""


class GrepwardenError(Exception):
    """Base class for all grepwarden errors."""


class ConfigError(GrepwardenError):
    """Invalid or unreadable grepwarden configuration."""


# Scanning

class ScanError(GrepwardenError):
    """Base class for errors raised while invoking the scanner."""


class RulesNotFound(ScanError):
    """The configured rules directory does not exist."""

    def __init__(self, rules_path: str):
        super().__init__(f"No OpenGrep rules found at {rules_path}")
        self.rules_path = rules_path


class BinaryNotFound(ScanError):
    """No scanner binary could be located."""


class ProcessFailure(ScanError):
    """The scanner could not be started or crashed without usable output."""


class ScanParseError(ScanError):
    """Scanner output is not valid JSON, even after line-scan recovery."""


class UnknownSeverity(ScanError, ValueError):
    """A severity name outside INFO/WARNING/ERROR."""

    def __init__(self, value):
        super().__init__(f"Unknown severity: {value!r}")
        self.value = value


# Suppression

class SuppressionError(GrepwardenError):
    """Base class for suppression edit failures."""


class UnsupportedLanguage(SuppressionError):
    """The document's language has no known single-line comment syntax."""

    def __init__(self, language: str):
        super().__init__(f"Suppression not supported for {language}")
        self.language = language


class LineOutOfRange(SuppressionError):
    """The requested line does not exist in the document."""

    def __init__(self, line_index: int, line_count: int):
        super().__init__(
            f"Line {line_index + 1} is out of range (document has {line_count} lines)"
        )
        self.line_index = line_index
        self.line_count = line_count


class ConfigParseError(SuppressionError):
    """The global exclusion config exists but cannot be used."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to parse {path}: {reason}")
        self.path = path
        self.reason = reason
