"""Analysis result entities.

This module contains entities related to a single analysis run:
- AnalysisStatus: Lifecycle state of a run
- AnalysisError: Non-fatal errors encountered during analysis
- Dependency: Dependency declared in a build descriptor
- AnalysisSummary: Counts aggregated over the emitted collections
- AnalysisResult: Everything one run produced
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from springlens.models.dataflow import DataFlowGraph
from springlens.models.facts import ClassFact, EndpointFact
from springlens.models.metrics import CodeMetrics
from springlens.models.relationships import RelationshipEdge
from springlens.models.security import SecurityFinding, top_findings
from springlens.models.services import CommunicationEdge, ModuleDescriptor


class AnalysisStatus(Enum):
    """Status of an analysis operation."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class AnalysisError:
    """Non-fatal error encountered during analysis.

    Attributes:
        component: Component that failed (extraction, relationships, security, ...)
        message: Error description
        file_path: File that caused the error (if applicable)
        recoverable: Whether analysis continued after this error
    """

    component: str
    message: str
    file_path: str | None = None
    recoverable: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "component": self.component,
            "message": self.message,
            "file_path": self.file_path,
            "recoverable": self.recoverable,
        }


@dataclass
class Dependency:
    """Dependency declared in a build descriptor.

    Attributes:
        group_id: Maven group / Gradle group
        artifact_id: Artifact name
        version: Declared version (None when managed elsewhere)
        scope: compile, test, runtime, provided
        source_file: Descriptor the dependency was declared in
    """

    group_id: str | None
    artifact_id: str
    version: str | None = None
    scope: str = "compile"
    source_file: str | None = None

    @property
    def coordinates(self) -> str:
        """group:artifact[:version]."""
        parts = [self.group_id or "", self.artifact_id]
        if self.version:
            parts.append(self.version)
        return ":".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "group_id": self.group_id,
            "artifact_id": self.artifact_id,
            "version": self.version,
            "scope": self.scope,
            "source_file": self.source_file,
        }


@dataclass
class AnalysisSummary:
    """Counts aggregated over the collections of a run."""

    by_stereotype: dict[str, int] = field(default_factory=dict)
    by_http_method: dict[str, int] = field(default_factory=dict)
    by_relationship_type: dict[str, int] = field(default_factory=dict)
    by_severity: dict[str, int] = field(default_factory=dict)
    by_category: dict[str, int] = field(default_factory=dict)
    by_module: dict[str, int] = field(default_factory=dict)
    top_packages: list[tuple[str, int]] = field(default_factory=list)
    top_findings: list[SecurityFinding] = field(default_factory=list)

    @classmethod
    def from_result(cls, result: "AnalysisResult", finding_limit: int = 10) -> "AnalysisSummary":
        """Aggregate the collections of a result.

        Args:
            result: Completed analysis result
            finding_limit: Number of findings kept in the top-N view

        Returns:
            AnalysisSummary instance
        """
        packages = Counter(c.package_name or "(default)" for c in result.classes)
        return cls(
            by_stereotype=dict(Counter(c.stereotype.value for c in result.classes)),
            by_http_method=dict(Counter(e.http_method.value for e in result.endpoints)),
            by_relationship_type=dict(Counter(r.type.value for r in result.relationships)),
            by_severity=dict(Counter(f.severity.value for f in result.findings)),
            by_category=dict(Counter(f.category.value for f in result.findings)),
            by_module=dict(Counter(c.module_name for c in result.classes if c.module_name)),
            top_packages=packages.most_common(10),
            top_findings=top_findings(result.findings, finding_limit),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "by_stereotype": self.by_stereotype,
            "by_http_method": self.by_http_method,
            "by_relationship_type": self.by_relationship_type,
            "by_severity": self.by_severity,
            "by_category": self.by_category,
            "by_module": self.by_module,
            "top_packages": [{"package": p, "classes": n} for p, n in self.top_packages],
            "top_findings": [f.to_dict() for f in self.top_findings],
        }


@dataclass
class AnalysisResult:
    """Everything one analysis run produced.

    Attributes:
        run_id: Identifier every collection is keyed to
        corpus_name: Name of the analyzed corpus
        timestamp: Analysis execution timestamp (UTC)
        status: Current analysis status
        classes: One fact per declared type
        relationships: Typed class-to-class edges
        modules: Build modules
        communications: Inter-module links
        findings: Security findings
        metrics: Code metrics
        data_flow: Layered data-flow graph
        dependencies: Dependencies declared in build descriptors
        errors: Non-fatal errors encountered during analysis
    """

    run_id: str
    corpus_name: str = "root"
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: AnalysisStatus = AnalysisStatus.PENDING
    classes: list[ClassFact] = field(default_factory=list)
    relationships: list[RelationshipEdge] = field(default_factory=list)
    modules: list[ModuleDescriptor] = field(default_factory=list)
    communications: list[CommunicationEdge] = field(default_factory=list)
    findings: list[SecurityFinding] = field(default_factory=list)
    metrics: CodeMetrics = field(default_factory=CodeMetrics)
    data_flow: DataFlowGraph = field(default_factory=DataFlowGraph)
    dependencies: list[Dependency] = field(default_factory=list)
    errors: list[AnalysisError] = field(default_factory=list)
    top_finding_limit: int = 10

    @property
    def endpoints(self) -> list[EndpointFact]:
        """All endpoints, in class order."""
        return [e for c in self.classes for e in c.endpoints]

    @property
    def summary(self) -> AnalysisSummary:
        return AnalysisSummary.from_result(self, self.top_finding_limit)

    def add_error(self, error: AnalysisError) -> None:
        """Add an analysis error."""
        self.errors.append(error)

    def has_errors(self) -> bool:
        """Check if any errors were recorded."""
        return len(self.errors) > 0

    def get_errors_by_component(self, component: str) -> list[AnalysisError]:
        """Get errors for a specific component."""
        return [e for e in self.errors if e.component == component]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "run_id": self.run_id,
            "corpus_name": self.corpus_name,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
            "classes": [c.to_dict() for c in self.classes],
            "endpoints": [e.to_dict() for e in self.endpoints],
            "relationships": [r.to_dict() for r in self.relationships],
            "modules": [m.to_dict() for m in self.modules],
            "communications": [c.to_dict() for c in self.communications],
            "findings": [f.to_dict() for f in self.findings],
            "metrics": self.metrics.to_dict(),
            "data_flow": self.data_flow.to_dict(),
            "dependencies": [d.to_dict() for d in self.dependencies],
            "errors": [e.to_dict() for e in self.errors],
            "summary": self.summary.to_dict(),
        }
