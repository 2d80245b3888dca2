"""Unit tests for data models."""

import json
from datetime import UTC, datetime

import pytest

from springlens.models import (
    AnalysisError,
    AnalysisResult,
    AnalysisStatus,
    BuildDescriptor,
    ClassFact,
    CommunicationEdge,
    CommunicationType,
    Dependency,
    EndpointFact,
    FileCorpus,
    FindingCategory,
    GatewayRoute,
    HttpMethod,
    ModuleDescriptor,
    RelationshipEdge,
    RelationshipType,
    SecurityFinding,
    Severity,
    SourceFile,
    Stereotype,
)
from springlens.models.corpus import is_test_source, normalize_path
from springlens.models.security import top_findings


def finding(severity: Severity, title: str = "t") -> SecurityFinding:
    """Build a finding with the given severity."""
    return SecurityFinding(
        severity=severity,
        category=FindingCategory.HARDCODED_SECRET,
        title=title,
        description="d",
        file_name="A.java",
    )


class TestCorpus:
    """Tests for corpus models."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("src\\main\\A.java", "src/main/A.java"),
            ("./src/A.java", "src/A.java"),
            ("/src/A.java", "src/A.java"),
        ],
    )
    def test_normalize_path(self, path: str, expected: str) -> None:
        """Test path normalization."""
        assert normalize_path(path) == expected

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("orders/src/test/java/OrderTest.java", True),
            ("tests/Fixture.java", True),
            ("src/main/java/TestData.java", False),
            ("src/main/java/testing/Helper.java", False),
        ],
    )
    def test_is_test_source(self, path: str, expected: bool) -> None:
        """Test that only test source set directories count."""
        assert is_test_source(path) is expected

    def test_first_duplicate_wins(self) -> None:
        """Test that duplicate paths keep the first file."""
        corpus = FileCorpus.from_texts(
            files=[("./A.java", "first"), ("A.java", "second"), ("b/application.yml", "")]
        )

        assert len(corpus) == 2
        assert corpus.get("A.java").text == "first"
        assert [f.relative_path for f in corpus.java_files()] == ["A.java"]
        assert [f.relative_path for f in corpus.config_files()] == ["b/application.yml"]

    def test_empty(self) -> None:
        """Test the empty corpus."""
        assert FileCorpus().is_empty
        assert not FileCorpus.from_texts([], [("pom.xml", "<project/>")]).is_empty

    def test_source_file_properties(self) -> None:
        """Test suffix and type checks."""
        source = SourceFile("src/main/resources/Application.YML", "")

        assert source.name == "Application.YML"
        assert source.suffix == ".yml"
        assert source.is_config
        assert not source.is_java

    @pytest.mark.parametrize(
        "path,kind,directory,depth",
        [
            ("pom.xml", "maven", "", 1),
            ("orders/build.gradle.kts", "gradle", "orders", 2),
            ("settings.gradle", "gradle-settings", "", 1),
            ("a/b/pom.xml", "maven", "a/b", 3),
        ],
    )
    def test_build_descriptor(self, path: str, kind: str, directory: str, depth: int) -> None:
        """Test descriptor dialect, directory and depth."""
        descriptor = BuildDescriptor(path, "")

        assert descriptor.kind == kind
        assert descriptor.directory == directory
        assert descriptor.depth == depth


class TestFacts:
    """Tests for class and endpoint facts."""

    def test_empty_name_rejected(self) -> None:
        """Test that a class fact needs a name."""
        with pytest.raises(ValueError, match="must not be empty"):
            ClassFact(name="")

    def test_annotations_deduplicated(self) -> None:
        """Test ordered-set semantics of annotations."""
        fact = ClassFact(name="A", annotations=["Service", "Transactional", "Service"])

        assert fact.annotations == ["Service", "Transactional"]
        assert fact.has_annotation("Transactional")

    def test_assign_module(self) -> None:
        """Test that module assignment reaches the endpoints."""
        endpoint = EndpointFact(HttpMethod.GET, "/a", "list", "List<A>")
        fact = ClassFact(name="AController", endpoints=[endpoint])

        fact.assign_module("orders")

        assert fact.module_name == "orders"
        assert endpoint.module_name == "orders"
        assert fact.to_dict()["endpoints"][0]["module_name"] == "orders"

    def test_controller_stereotypes(self) -> None:
        """Test the controller helper."""
        assert Stereotype.REST_CONTROLLER.is_controller
        assert not Stereotype.SERVICE.is_controller


class TestSecurityModels:
    """Tests for finding models."""

    def test_severity_order(self) -> None:
        """Test that CRITICAL sorts before INFO."""
        assert sorted([Severity.INFO, Severity.CRITICAL, Severity.MEDIUM]) == [
            Severity.CRITICAL,
            Severity.MEDIUM,
            Severity.INFO,
        ]
        assert Severity.HIGH.rank == 1

    def test_severity_comparisons(self) -> None:
        """Test the full set of comparison operators."""
        assert Severity.CRITICAL <= Severity.HIGH
        assert Severity.HIGH <= Severity.HIGH
        assert Severity.INFO >= Severity.LOW
        assert Severity.LOW > Severity.MEDIUM
        assert not Severity.CRITICAL >= Severity.HIGH
        assert max([Severity.MEDIUM, Severity.INFO, Severity.HIGH]) == Severity.INFO

    def test_snippet_truncated(self) -> None:
        """Test that long snippets are cut at 100 characters."""
        item = SecurityFinding(
            severity=Severity.LOW,
            category=FindingCategory.DEBUG_ENABLED,
            title="t",
            description="d",
            file_name="a.properties",
            snippet="x" * 150,
        )

        assert item.snippet == "x" * 100 + "..."

    def test_top_findings_stable(self) -> None:
        """Test severity ordering with detection order kept within a severity."""
        findings = [
            finding(Severity.LOW, "a"),
            finding(Severity.HIGH, "b"),
            finding(Severity.LOW, "c"),
            finding(Severity.HIGH, "d"),
        ]

        assert [f.title for f in top_findings(findings, 3)] == ["b", "d", "a"]


class TestServiceModels:
    """Tests for module and communication models."""

    def test_gateway_route_path(self) -> None:
        """Test the first Path predicate value."""
        route = GatewayRoute(
            id="users", predicates=["Method=GET", "Path=/api/users/**,/api/me"]
        )

        assert route.path == "/api/users/**"
        assert GatewayRoute(id="x").path is None

    def test_module_owns(self) -> None:
        """Test path ownership by module root."""
        module = ModuleDescriptor(name="orders", root_path="orders")

        assert module.owns("orders/src/A.java")
        assert not module.owns("orders-api/src/A.java")
        assert ModuleDescriptor(name="root").owns("anything/A.java")

    def test_communication_flags(self) -> None:
        """Test derived sync and async flags."""
        module = ModuleDescriptor(name="m", has_feign_clients=True, messaging_types=["JMS"])

        assert module.has_sync_communication
        assert module.has_async_communication
        assert module.to_dict()["has_async_communication"] is True

    def test_channel_helpers(self) -> None:
        """Test channel name and role parsing."""
        edge = CommunicationEdge(
            source_service="orders",
            communication_type=CommunicationType.KAFKA,
            channel="order (v2) events (producer)",
        )

        assert edge.channel_name == "order (v2) events"
        assert edge.is_producer
        assert not edge.is_consumer
        assert CommunicationType.KAFKA.is_messaging
        assert not CommunicationType.FEIGN_CLIENT.is_messaging


class TestAnalysisResult:
    """Tests for AnalysisResult."""

    @pytest.fixture
    def result(self) -> AnalysisResult:
        """Create a small result."""
        controller = ClassFact(
            name="OrderController",
            package_name="com.example.web",
            stereotype=Stereotype.REST_CONTROLLER,
            endpoints=[
                EndpointFact(HttpMethod.GET, "/orders", "list", "List<Order>"),
                EndpointFact(HttpMethod.POST, "/orders", "create", "Order"),
            ],
            module_name="orders",
        )
        service = ClassFact(
            name="OrderService", package_name="com.example.service", stereotype=Stereotype.SERVICE
        )
        return AnalysisResult(
            run_id="run-1",
            corpus_name="shop",
            timestamp=datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC),
            status=AnalysisStatus.COMPLETED,
            classes=[controller, service],
            relationships=[
                RelationshipEdge("OrderController", "OrderService", RelationshipType.INJECTS)
            ],
            findings=[finding(Severity.LOW), finding(Severity.HIGH)],
            dependencies=[Dependency("org.postgresql", "postgresql", "42.7.3", "runtime")],
            top_finding_limit=1,
        )

    def test_endpoints_in_class_order(self, result: AnalysisResult) -> None:
        """Test the flattened endpoint view."""
        assert [e.signature for e in result.endpoints] == ["GET /orders", "POST /orders"]

    def test_summary(self, result: AnalysisResult) -> None:
        """Test aggregated counts."""
        summary = result.summary

        assert summary.by_stereotype == {"RestController": 1, "Service": 1}
        assert summary.by_http_method == {"GET": 1, "POST": 1}
        assert summary.by_relationship_type == {"INJECTS": 1}
        assert summary.by_severity == {"LOW": 1, "HIGH": 1}
        assert summary.by_module == {"orders": 1}
        assert [f.severity for f in summary.top_findings] == [Severity.HIGH]

    def test_errors(self, result: AnalysisResult) -> None:
        """Test error bookkeeping."""
        assert not result.has_errors()

        result.add_error(AnalysisError(component="security", message="boom"))

        assert result.has_errors()
        assert len(result.get_errors_by_component("security")) == 1
        assert result.get_errors_by_component("metrics") == []

    def test_to_dict_is_json_serializable(self, result: AnalysisResult) -> None:
        """Test that the serialized form round-trips through JSON."""
        data = json.loads(json.dumps(result.to_dict()))

        assert data["run_id"] == "run-1"
        assert data["status"] == "completed"
        assert data["timestamp"] == "2026-01-15T12:00:00+00:00"
        assert len(data["endpoints"]) == 2
        assert data["dependencies"][0]["scope"] == "runtime"
        assert data["summary"]["top_packages"][0] == {"package": "com.example.web", "classes": 1}

    def test_dependency_coordinates(self) -> None:
        """Test group:artifact[:version] formatting."""
        assert Dependency("org.a", "b", "1.0").coordinates == "org.a:b:1.0"
        assert Dependency("org.a", "b").coordinates == "org.a:b"
        assert Dependency(None, "b").coordinates == ":b"
