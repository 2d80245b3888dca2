"""Line, package and class statistics for a corpus."""

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from springlens.analyzers.base import AnalysisComponent, parallel_map
from springlens.models.corpus import FileCorpus, SourceFile
from springlens.models.facts import ClassFact
from springlens.models.metrics import CodeMetrics

logger = logging.getLogger(__name__)


@dataclass
class LineCounts:
    """Line classification of one file."""

    total: int = 0
    code: int = 0
    comment: int = 0
    blank: int = 0
    packages: list[str] = field(default_factory=list)


def classify_lines(text: str) -> LineCounts:
    """Count blank, comment and code lines with a two-state block comment scanner.

    Blank lines count as blank even inside a block comment. A line opening a
    block comment that does not close on the same line switches the scanner
    into the in-comment state until a line containing the terminator.
    """
    counts = LineCounts()
    in_block_comment = False

    for line in text.splitlines():
        counts.total += 1
        trimmed = line.strip()

        if not trimmed:
            counts.blank += 1
        elif in_block_comment:
            counts.comment += 1
            if "*/" in trimmed:
                in_block_comment = False
        elif trimmed.startswith("/*"):
            counts.comment += 1
            if "*/" not in trimmed[2:]:
                in_block_comment = True
        elif trimmed.startswith("//"):
            counts.comment += 1
        else:
            counts.code += 1

        if trimmed.startswith("package "):
            package = trimmed[len("package ") :].replace(";", "").strip()
            if package:
                counts.packages.append(package)

    return counts


def round2(value: float) -> float:
    """Round half up to two decimal places."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def build_package_tree(packages: set[str]) -> str:
    """Render packages as a sorted prefix tree, two spaces of indent per level.

    Example:
        {"com.acme.orders", "com.acme.users"} renders as
        "com\\n  acme\\n    orders\\n    users\\n"
    """
    tree: dict[str, set[str]] = {}
    for package in packages:
        parent = ""
        for segment in package.split("."):
            tree.setdefault(parent, set()).add(segment)
            parent = f"{parent}.{segment}" if parent else segment

    lines: list[str] = []

    def render(node: str, depth: int) -> None:
        for child in sorted(tree.get(node, ())):
            lines.append("  " * depth + child + "\n")
            render(f"{node}.{child}" if node else child, depth + 1)

    render("", 0)
    return "".join(lines)


class MetricsAggregator(AnalysisComponent):
    """Aggregates line, package and class statistics."""

    def __init__(self, workers: int = 1, cancel: threading.Event | None = None) -> None:
        super().__init__("metrics", cancel)
        self.workers = workers

    def aggregate(self, corpus: FileCorpus, classes: Sequence[ClassFact]) -> CodeMetrics:
        """Compute metrics over the Java files of a corpus and the class fact table.

        Args:
            corpus: Source corpus
            classes: Class facts of the run

        Returns:
            CodeMetrics record
        """
        java_files = corpus.java_files()
        per_file = parallel_map(self._count, java_files, self.workers, self.cancel)

        metrics = CodeMetrics(total_files=len(java_files))
        packages: set[str] = set()
        for counts in per_file:
            metrics.total_lines += counts.total
            metrics.code_lines += counts.code
            metrics.comment_lines += counts.comment
            metrics.blank_lines += counts.blank
            packages.update(counts.packages)

        metrics.total_packages = len(packages)
        metrics.max_package_depth = max((p.count(".") for p in packages), default=0)
        metrics.package_structure = build_package_tree(packages)

        if classes:
            fields = [c.field_count for c in classes]
            methods = [c.method_count for c in classes]
            metrics.avg_fields_per_class = round2(sum(fields) / len(fields))
            metrics.avg_methods_per_class = round2(sum(methods) / len(methods))
            metrics.max_fields_in_class = max(fields)
            metrics.max_methods_in_class = max(methods)

        logger.info(
            f"Metrics: {metrics.total_files} file(s), {metrics.total_lines} line(s), "
            f"{metrics.total_packages} package(s)"
        )
        return metrics

    def _count(self, source_file: SourceFile) -> LineCounts:
        return classify_lines(source_file.text)
