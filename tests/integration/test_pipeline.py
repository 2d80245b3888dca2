"""Integration tests for the analysis pipeline against the sample Spring tree."""

import threading
from pathlib import Path

import pytest

from springlens.analyzers import AnalysisCancelledError, ClassFactExtractor
from springlens.config import AnalyzerConfig, SpringLensConfig
from springlens.loader import load_corpus
from springlens.models import (
    AnalysisResult,
    AnalysisStatus,
    CommunicationType,
    FileCorpus,
    FindingCategory,
    RelationshipType,
    ServiceType,
    SourceFile,
)
from springlens.pipeline import AnalysisPipeline


@pytest.fixture
def spring_result(spring_repo: Path) -> AnalysisResult:
    """Run the pipeline over the multi-module sample."""
    return AnalysisPipeline().run(load_corpus(spring_repo), run_id="sample")


class TestSampleRepository:
    """End-to-end expectations for the spring_microservices sample."""

    def test_completes_without_errors(self, spring_result: AnalysisResult) -> None:
        """Test run status and identifiers."""
        assert spring_result.status == AnalysisStatus.COMPLETED
        assert spring_result.run_id == "sample"
        assert spring_result.corpus_name == "spring_microservices"
        assert spring_result.errors == []

    def test_classes_and_endpoints(self, spring_result: AnalysisResult) -> None:
        """Test class facts and the controller endpoints."""
        assert len(spring_result.classes) == 10
        assert [e.signature for e in spring_result.endpoints] == [
            "GET /api/orders",
            "GET /api/orders/{id}",
            "POST /api/orders",
        ]
        assert {e.module_name for e in spring_result.endpoints} == {"orders"}

    def test_modules(self, spring_result: AnalysisResult) -> None:
        """Test module roles and settings."""
        modules = {m.name: m for m in spring_result.modules}
        assert [m.name for m in spring_result.modules] == ["gateway", "inventory", "orders"]

        assert modules["gateway"].service_type == ServiceType.API_GATEWAY
        assert modules["gateway"].has_discovery_client
        assert modules["gateway"].application_name == "api-gateway"
        assert modules["inventory"].service_type == ServiceType.MESSAGING_SERVICE

        orders = modules["orders"]
        assert orders.service_type == ServiceType.BUSINESS_SERVICE
        assert orders.application_name == "orders-service"
        assert orders.server_port == "8081"
        assert orders.database_type == "POSTGRESQL"
        assert orders.base_package == "com.example.orders"
        assert orders.endpoint_count == 3
        assert orders.has_feign_clients
        assert orders.has_kafka

    def test_communications(self, spring_result: AnalysisResult) -> None:
        """Test Feign, Kafka and gateway edges between the modules."""
        edges = spring_result.communications

        assert [e.communication_type for e in edges] == [
            CommunicationType.KAFKA,
            CommunicationType.FEIGN_CLIENT,
            CommunicationType.KAFKA,
            CommunicationType.GATEWAY_ROUTE,
        ]
        consumer, feign, producer, route = edges
        assert consumer.source_service == "inventory"
        assert consumer.channel == "order-events (consumer)"
        assert feign.source_service == "orders"
        assert feign.target_service == "inventory-service"
        assert producer.channel == "order-events (producer)"
        assert producer.target_service == "inventory"
        assert route.source_service == "gateway"
        assert route.target_service == "orders-service"
        assert route.endpoint_path == "/api/orders/**"
        assert route.is_load_balanced

    def test_relationships(self, spring_result: AnalysisResult) -> None:
        """Test injection and persistence edges."""
        edges = {(r.source, r.type, r.target) for r in spring_result.relationships}

        assert edges == {
            ("OrderController", RelationshipType.INJECTS, "OrderService"),
            ("OrderService", RelationshipType.INJECTS, "OrderRepository"),
            ("OrderService", RelationshipType.INJECTS, "InventoryClient"),
            ("Order", RelationshipType.ONE_TO_MANY, "Item"),
            ("Item", RelationshipType.MANY_TO_ONE, "Order"),
        }

    def test_findings(self, spring_result: AnalysisResult) -> None:
        """Test the debug flag and the unauthenticated POST endpoint."""
        categories = sorted(f.category.value for f in spring_result.findings)

        assert categories == [
            FindingCategory.DEBUG_ENABLED.value,
            FindingCategory.MISSING_AUTH.value,
        ]

    def test_data_flow(self, spring_result: AnalysisResult) -> None:
        """Test the layered graph over the orders module."""
        graph = spring_result.data_flow

        assert [layer.name for layer in graph.layers] == [
            "API Layer",
            "Service Layer",
            "Repository Layer",
            "Entity Layer",
        ]
        assert len(graph.flow_paths) == 3
        assert graph.summary.total_entities == 2

    def test_dependencies(self, spring_result: AnalysisResult) -> None:
        """Test dependency records from the module descriptors."""
        postgres = [d for d in spring_result.dependencies if d.artifact_id == "postgresql"]

        assert len(postgres) == 1
        assert postgres[0].coordinates == "org.postgresql:postgresql:42.7.3"
        assert postgres[0].scope == "runtime"
        assert postgres[0].source_file == "orders/pom.xml"

    def test_workers_do_not_change_output(self, spring_repo: Path) -> None:
        """Test that a threaded run produces the same collections."""
        corpus = load_corpus(spring_repo)
        threaded = SpringLensConfig(analyzer=AnalyzerConfig(workers=4))

        serial = AnalysisPipeline().run(corpus).to_dict()
        parallel = AnalysisPipeline(threaded).run(corpus).to_dict()

        for key in ("classes", "relationships", "modules", "communications", "findings"):
            assert serial[key] == parallel[key]


class TestPipelineEdgeCases:
    """Tests for empty corpora, errors and cancellation."""

    def test_empty_corpus(self) -> None:
        """Test that an empty corpus completes with empty collections."""
        result = AnalysisPipeline().run(FileCorpus(name="empty"))

        assert result.status == AnalysisStatus.COMPLETED
        assert result.classes == []
        assert result.modules == []
        assert result.communications == []
        assert result.findings == []
        assert result.data_flow.layers == []
        assert result.metrics.total_files == 0

    def test_skipped_files_become_errors(self) -> None:
        """Test that unreadable files are reported as loader errors."""
        corpus = FileCorpus(
            files=[SourceFile("A.java", "public class A {}")],
            skipped=["Broken.java"],
        )

        result = AnalysisPipeline().run(corpus)

        assert result.status == AnalysisStatus.COMPLETED
        errors = result.get_errors_by_component("loader")
        assert [e.file_path for e in errors] == ["Broken.java"]

    def test_extractor_failure_is_recoverable(
        self, spring_repo: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that a failing extraction is recorded and the run continues."""

        def boom(self: ClassFactExtractor, path: str, text: str) -> None:
            raise RuntimeError("parser exploded")

        monkeypatch.setattr(ClassFactExtractor, "extract", boom)

        result = AnalysisPipeline().run(load_corpus(spring_repo))

        assert result.status == AnalysisStatus.COMPLETED
        assert result.classes == []
        errors = result.get_errors_by_component("extraction")
        assert len(errors) == 10
        assert "parser exploded" in errors[0].message
        assert [m.name for m in result.modules] == ["gateway", "inventory", "orders"]

    def test_cancelled_run(self, spring_repo: Path) -> None:
        """Test that a set cancellation event aborts the run."""
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(AnalysisCancelledError):
            AnalysisPipeline().run(load_corpus(spring_repo), cancel=cancel)
