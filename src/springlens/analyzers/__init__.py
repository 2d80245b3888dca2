"""SpringLens analyzers - deterministic, text-based analysis passes.

Analyzers:
- ClassFactExtractor: per-file class facts and REST endpoints
- NameIndex: run-scoped simple name lookup
- RelationshipBuilder: inheritance, injection, persistence and usage edges
- MicroserviceMapper: build modules, roles and inter-service communication
- SecurityScanner: file-local security findings
- MetricsAggregator: line, package and class size metrics
- DataFlowGrapher: layered API -> service -> repository -> entity graph
"""

from springlens.analyzers.base import (
    AnalysisCancelledError,
    AnalysisComponent,
    CorpusUnavailableError,
    ModuleDiscoveryError,
    SpringLensError,
)
from springlens.analyzers.class_facts import ClassFactExtractor
from springlens.analyzers.communications import CommunicationScanner, service_name_from_url
from springlens.analyzers.dataflow import DataFlowGrapher
from springlens.analyzers.metrics import MetricsAggregator
from springlens.analyzers.microservices import MicroserviceMapper, ServiceMap
from springlens.analyzers.module_detector import ModuleDetector, ModuleIndex
from springlens.analyzers.name_index import NameIndex
from springlens.analyzers.relationships import RelationshipBuilder
from springlens.analyzers.rules import Rule, RuleTable
from springlens.analyzers.security import SecurityScanner

__all__ = [
    "AnalysisCancelledError",
    "AnalysisComponent",
    "ClassFactExtractor",
    "CommunicationScanner",
    "CorpusUnavailableError",
    "DataFlowGrapher",
    "MetricsAggregator",
    "MicroserviceMapper",
    "ModuleDetector",
    "ModuleDiscoveryError",
    "ModuleIndex",
    "NameIndex",
    "RelationshipBuilder",
    "Rule",
    "RuleTable",
    "SecurityScanner",
    "ServiceMap",
    "SpringLensError",
    "service_name_from_url",
]
