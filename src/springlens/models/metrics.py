"""Size and shape metrics for a corpus."""

from dataclasses import dataclass
from typing import Any


@dataclass
class CodeMetrics:
    """Aggregated line, package and class statistics.

    Attributes:
        total_files: Java files scanned
        total_lines: All lines of those files
        code_lines: Lines holding code
        comment_lines: Lines inside or starting a comment
        blank_lines: Whitespace-only lines
        total_packages: Distinct declared packages
        max_package_depth: Largest number of dots in a package name
        avg_fields_per_class: Mean field count over all class facts
        avg_methods_per_class: Mean method count over all class facts
        max_fields_in_class: Largest field count
        max_methods_in_class: Largest method count
        package_structure: Indented package tree
    """

    total_files: int = 0
    total_lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    total_packages: int = 0
    max_package_depth: int = 0
    avg_fields_per_class: float = 0.0
    avg_methods_per_class: float = 0.0
    max_fields_in_class: int = 0
    max_methods_in_class: int = 0
    package_structure: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total_files": self.total_files,
            "total_lines": self.total_lines,
            "code_lines": self.code_lines,
            "comment_lines": self.comment_lines,
            "blank_lines": self.blank_lines,
            "total_packages": self.total_packages,
            "max_package_depth": self.max_package_depth,
            "avg_fields_per_class": self.avg_fields_per_class,
            "avg_methods_per_class": self.avg_methods_per_class,
            "max_fields_in_class": self.max_fields_in_class,
            "max_methods_in_class": self.max_methods_in_class,
            "package_structure": self.package_structure,
        }
