"""Security findings."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import Any

SNIPPET_LIMIT = 100


@total_ordering
class Severity(Enum):
    """Finding severity, most severe first."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"

    @property
    def rank(self) -> int:
        """0 for CRITICAL up to 4 for INFO."""
        return list(Severity).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank


class FindingCategory(Enum):
    """Kind of weakness a finding reports."""

    HARDCODED_SECRET = "HARDCODED_SECRET"
    SQL_INJECTION = "SQL_INJECTION"
    COMMAND_INJECTION = "COMMAND_INJECTION"
    WEAK_CRYPTO = "WEAK_CRYPTO"
    MISSING_AUTH = "MISSING_AUTH"
    CORS_MISCONFIGURATION = "CORS_MISCONFIGURATION"
    DEBUG_ENABLED = "DEBUG_ENABLED"
    SENSITIVE_DATA_EXPOSURE = "SENSITIVE_DATA_EXPOSURE"


def truncate_snippet(text: str | None) -> str | None:
    """Trim a snippet to SNIPPET_LIMIT characters plus an ellipsis."""
    if text is None:
        return None
    text = text.strip()
    if len(text) > SNIPPET_LIMIT:
        return text[:SNIPPET_LIMIT] + "..."
    return text


@dataclass
class SecurityFinding:
    """One potential weakness found by textual inspection.

    Attributes:
        severity: How serious the weakness is
        category: Kind of weakness
        title: Short headline
        description: What was detected
        file_name: Corpus-relative path of the file
        recommendation: Suggested fix
        line_number: 1-based line of the match, when known
        snippet: Matched text, truncated
    """

    severity: Severity
    category: FindingCategory
    title: str
    description: str
    file_name: str
    recommendation: str = ""
    line_number: int | None = None
    snippet: str | None = None

    def __post_init__(self) -> None:
        self.snippet = truncate_snippet(self.snippet)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "severity": self.severity.value,
            "category": self.category.value,
            "title": self.title,
            "description": self.description,
            "file_name": self.file_name,
            "line_number": self.line_number,
            "snippet": self.snippet,
            "recommendation": self.recommendation,
        }


def top_findings(findings: Iterable[SecurityFinding], limit: int = 10) -> list[SecurityFinding]:
    """Most severe findings first, keeping detection order within a severity."""
    return sorted(findings, key=lambda f: f.severity.rank)[:limit]
