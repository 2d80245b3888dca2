"""SpringLens data models.

This module exports the core entities used throughout the application:
- FileCorpus, SourceFile, BuildDescriptor: analysis input
- ClassFact, EndpointFact: per-file facts
- RelationshipEdge: class-to-class edges
- ModuleDescriptor, CommunicationEdge: modules and their links
- SecurityFinding, CodeMetrics, DataFlowGraph: derived views
- AnalysisResult, AnalysisError: aggregated run output
"""

from springlens.models.analysis import (
    AnalysisError,
    AnalysisResult,
    AnalysisStatus,
    AnalysisSummary,
    Dependency,
)
from springlens.models.corpus import BuildDescriptor, FileCorpus, SourceFile
from springlens.models.dataflow import (
    DataFlowEdge,
    DataFlowGraph,
    DataFlowNode,
    DataFlowSummary,
    FlowPath,
    Layer,
    LayerInfo,
)
from springlens.models.facts import ClassFact, EndpointFact, HttpMethod, Stereotype
from springlens.models.metrics import CodeMetrics
from springlens.models.relationships import RelationshipEdge, RelationshipType
from springlens.models.security import FindingCategory, SecurityFinding, Severity
from springlens.models.services import (
    CommunicationEdge,
    CommunicationType,
    GatewayRoute,
    ModuleDescriptor,
    ServiceType,
)

__all__ = [
    "AnalysisError",
    "AnalysisResult",
    "AnalysisStatus",
    "AnalysisSummary",
    "BuildDescriptor",
    "ClassFact",
    "CodeMetrics",
    "CommunicationEdge",
    "CommunicationType",
    "DataFlowEdge",
    "DataFlowGraph",
    "DataFlowNode",
    "DataFlowSummary",
    "Dependency",
    "EndpointFact",
    "FileCorpus",
    "FindingCategory",
    "FlowPath",
    "GatewayRoute",
    "HttpMethod",
    "Layer",
    "LayerInfo",
    "ModuleDescriptor",
    "RelationshipEdge",
    "RelationshipType",
    "SecurityFinding",
    "ServiceType",
    "Severity",
    "SourceFile",
    "Stereotype",
]
