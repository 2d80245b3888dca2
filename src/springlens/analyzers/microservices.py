"""Microservice mapping.

Partitions the corpus into build modules, profiles each module (entry point,
configuration, dependencies, role and capabilities) and collects the
communication edges between modules.
"""

import logging
import re
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field

from springlens.analyzers.base import AnalysisComponent, parallel_map
from springlens.analyzers.build_descriptors import artifact_ids, parse_dependencies
from springlens.analyzers.communications import (
    LOAD_BALANCED_SCHEME,
    CommunicationScanner,
    SourceContext,
    service_name_from_url,
)
from springlens.analyzers.java_text import PACKAGE_PATTERN, mask_source
from springlens.analyzers.module_detector import ModuleDetector, ModuleIndex
from springlens.analyzers.rules import Rule, RuleTable
from springlens.analyzers.service_config import (
    SpringProperties,
    read_module_settings,
    select_config_files,
)
from springlens.models.analysis import Dependency
from springlens.models.corpus import BuildDescriptor, FileCorpus, SourceFile, is_test_source
from springlens.models.facts import ClassFact
from springlens.models.services import (
    CommunicationEdge,
    CommunicationType,
    ModuleDescriptor,
    ServiceType,
)

logger = logging.getLogger(__name__)

WEB_STARTERS = ("spring-boot-starter-web", "spring-boot-starter-webflux")

ENTRY_POINT_RULES: RuleTable[str, bool] = RuleTable(
    [
        Rule("spring-boot-application", lambda s: "@SpringBootApplication" in s, True),
        Rule(
            "auto-configuration",
            lambda s: "@EnableAutoConfiguration" in s and "main(" in s,
            True,
        ),
        Rule(
            "main-method",
            lambda s: re.search(r"\bpublic\s+static\s+void\s+main\s*\(", s) is not None,
            True,
        ),
    ],
    default=False,
)

# Source markers that complement declared dependencies
SOURCE_MARKERS = {
    "discovery": re.compile(r"@Enable(?:Discovery|Eureka)Client\b"),
    "feign": re.compile(r"@(?:FeignClient|EnableFeignClients)\b"),
    "rest_template": re.compile(r"\bRestTemplate\b"),
    "web_client": re.compile(r"\bWebClient\b"),
    "kafka": re.compile(r"@KafkaListener\b|\bKafkaTemplate\b"),
    "rabbitmq": re.compile(r"@RabbitListener\b|\bRabbitTemplate\b"),
    "jms": re.compile(r"@JmsListener\b|\bJmsTemplate\b"),
    "grpc": re.compile(r"@Grpc(?:Service|Client)\b|\bio\.grpc\."),
    "load_balancer": re.compile(r"@LoadBalanced\b"),
    "circuit_breaker": re.compile(r"@(?:CircuitBreaker|HystrixCommand)\b"),
    "scheduled": re.compile(r"@(?:Scheduled|EnableScheduling)\b"),
}

# Artifact prefix -> datastore, used when configuration names none
DEPENDENCY_DATABASES = (
    ("postgresql", "POSTGRESQL"),
    ("mysql-connector", "MYSQL"),
    ("mariadb", "MARIADB"),
    ("ojdbc", "ORACLE"),
    ("mssql-jdbc", "SQL_SERVER"),
    ("h2", "H2"),
    ("hsqldb", "HSQLDB"),
    ("derby", "DERBY"),
    ("spring-boot-starter-data-mongodb", "MONGODB"),
    ("spring-boot-starter-data-cassandra", "CASSANDRA"),
)


@dataclass
class ModuleProfile:
    """What a module declares and what its sources mention."""

    artifacts: list[str] = field(default_factory=list)
    markers: set[str] = field(default_factory=set)

    def declares(self, *fragments: str) -> bool:
        """Whether any artifact identifier contains one of the fragments."""
        return any(f in artifact for artifact in self.artifacts for f in fragments)

    @property
    def has_web_starter(self) -> bool:
        return any(artifact in WEB_STARTERS for artifact in self.artifacts)


SERVICE_TYPE_RULES: RuleTable[ModuleProfile, ServiceType] = RuleTable(
    [
        Rule(
            "gateway",
            lambda p: p.declares(
                "spring-cloud-starter-gateway", "spring-cloud-starter-netflix-zuul"
            ),
            ServiceType.API_GATEWAY,
        ),
        Rule(
            "config-server",
            lambda p: p.declares("spring-cloud-config-server"),
            ServiceType.CONFIG_SERVER,
        ),
        Rule(
            "discovery-server",
            lambda p: p.declares("eureka-server"),
            ServiceType.DISCOVERY_SERVER,
        ),
        Rule(
            "admin-server",
            lambda p: p.declares("spring-boot-admin-starter-server"),
            ServiceType.ADMIN_SERVICE,
        ),
        Rule("batch", lambda p: p.declares("spring-boot-starter-batch"), ServiceType.BATCH_SERVICE),
        Rule(
            "messaging-only",
            lambda p: (
                p.declares("kafka", "rabbitmq", "amqp")
                and "spring-boot-starter-web" not in p.artifacts
            ),
            ServiceType.MESSAGING_SERVICE,
        ),
        Rule("web", lambda p: p.has_web_starter, ServiceType.BUSINESS_SERVICE),
        Rule("scheduled", lambda p: "scheduled" in p.markers, ServiceType.SCHEDULED_SERVICE),
    ],
    default=ServiceType.UNKNOWN,
)


@dataclass
class ServiceMap:
    """Output of the microservice mapping pass."""

    modules: list[ModuleDescriptor] = field(default_factory=list)
    communications: list[CommunicationEdge] = field(default_factory=list)
    dependencies: list[Dependency] = field(default_factory=list)


class MicroserviceMapper(AnalysisComponent):
    """Maps build modules and the communication between them.

    Every detector runs independently: a malformed configuration file or a
    failing source scan is recorded as an error and the remaining detectors
    still contribute to the module.
    """

    def __init__(
        self,
        max_walk_depth: int = 3,
        workers: int = 1,
        cancel: threading.Event | None = None,
    ) -> None:
        """Initialize the mapper.

        Args:
            max_walk_depth: Deepest directory level searched for descriptors
            workers: Thread count for the per-file communication scan
            cancel: Optional cancellation event
        """
        super().__init__("microservices", cancel)
        self.detector = ModuleDetector(max_walk_depth)
        self.scanner = CommunicationScanner()
        self.workers = workers

    def map(self, corpus: FileCorpus, classes: Sequence[ClassFact] = ()) -> ServiceMap:
        """Map modules and communications for a corpus.

        Args:
            corpus: Corpus to analyze
            classes: Facts from the extraction pass; their module is back-filled

        Returns:
            ServiceMap with modules, communication edges and dependency records

        Raises:
            ModuleDiscoveryError: If module partitioning fails
            AnalysisCancelledError: If the run is cancelled
        """
        self.errors = []
        modules = self.detector.detect_modules(corpus)
        index = ModuleIndex(modules)

        owned: dict[str, list[SourceFile]] = {m.root_path: [] for m in modules}
        for source_file in corpus:
            owner = index.owner_of(source_file.relative_path)
            if owner is not None:
                owned[owner.root_path].append(source_file)

        descriptors = {d.module_hint_path: d for d in corpus.build_descriptors}
        for module in modules:
            self.check_cancelled()
            self._profile_module(
                module,
                owned[module.root_path],
                descriptors.get(module.build_descriptor_path or ""),
                classes,
                index,
            )

        for fact in classes:
            owner = index.owner_of(fact.file_path)
            fact.assign_module(owner.name if owner else None)

        communications = self._scan_communications(corpus, index)
        for module in modules:
            communications.extend(self._gateway_edges(module))
        resolve_messaging_peers(communications)

        dependencies: list[Dependency] = []
        for descriptor in corpus.build_descriptors:
            found = self.guarded(
                "dependencies",
                parse_dependencies,
                descriptor,
                file_path=descriptor.module_hint_path,
            )
            dependencies.extend(found or [])

        logger.info(f"Mapped {len(modules)} modules, {len(communications)} communication edges")
        return ServiceMap(modules=modules, communications=communications, dependencies=dependencies)

    def _profile_module(
        self,
        module: ModuleDescriptor,
        files: list[SourceFile],
        descriptor: BuildDescriptor | None,
        classes: Sequence[ClassFact],
        index: ModuleIndex,
    ) -> None:
        sources = [f for f in files if f.is_java and not is_test_source(f.relative_path)]
        masked = {f.relative_path: mask_source(f.text) for f in sources}

        entry_point = self.guarded("entry-point", find_entry_point, sources, masked)
        if entry_point is not None:
            package = PACKAGE_PATTERN.search(masked[entry_point.relative_path])
            module.base_package = package.group(1) if package else None

        properties = SpringProperties()
        for config_file in select_config_files(files):
            self.guarded(
                "configuration", properties.load, config_file, file_path=config_file.relative_path
            )
        settings = read_module_settings(properties)
        module.application_name = settings.application_name or module.name
        module.server_port = settings.server_port or "8080"
        module.profiles = settings.profiles
        module.discovery_url = settings.discovery_url
        module.gateway_routes = settings.gateway_routes

        profile = ModuleProfile()
        if descriptor is not None:
            profile.artifacts = self.guarded(
                "artifacts", artifact_ids, descriptor, file_path=descriptor.module_hint_path
            ) or []
        for text in masked.values():
            profile.markers.update(name for name, p in SOURCE_MARKERS.items() if p.search(text))

        module.dependencies = list(profile.artifacts)
        module.service_type = SERVICE_TYPE_RULES.classify(profile)
        apply_capabilities(module, profile)
        module.database_type = settings.database_type or database_from_artifacts(profile.artifacts)

        owned_facts = [
            c for c in classes
            if not is_test_source(c.file_path) and index.owner_of(c.file_path) is module
        ]
        module.class_count = len(owned_facts)
        module.endpoint_count = sum(len(c.endpoints) for c in owned_facts)

        logger.debug(
            f"Module {module.name}: {module.service_type.value}, "
            f"{module.class_count} classes, {module.endpoint_count} endpoints"
        )

    def _scan_communications(
        self, corpus: FileCorpus, index: ModuleIndex
    ) -> list[CommunicationEdge]:
        sources = [f for f in corpus.java_files() if not is_test_source(f.relative_path)]

        def scan(source_file: SourceFile) -> list[CommunicationEdge]:
            return self.scan_file(source_file, index.source_name(source_file.relative_path))

        per_file = parallel_map(scan, sources, self.workers, self.cancel)
        return [edge for edges in per_file for edge in edges]

    def scan_file(self, source_file: SourceFile, source_service: str) -> list[CommunicationEdge]:
        """Run every communication detector over one file.

        A failing detector is recorded as an error; the others still run.

        Args:
            source_file: Java source to scan
            source_service: Module name the edges originate from

        Returns:
            Edges in detector order
        """
        context = SourceContext(source_file, source_service)
        edges: list[CommunicationEdge] = []
        for label, detector in self.scanner.detectors():
            found = self.guarded(label, detector, context, file_path=source_file.relative_path)
            edges.extend(found or [])
        return edges

    @staticmethod
    def _gateway_edges(module: ModuleDescriptor) -> list[CommunicationEdge]:
        if not (module.has_gateway or module.service_type == ServiceType.API_GATEWAY):
            return []
        return [
            CommunicationEdge(
                source_service=module.name,
                communication_type=CommunicationType.GATEWAY_ROUTE,
                target_service=service_name_from_url(route.uri),
                target_url=route.uri,
                is_load_balanced=bool(route.uri and route.uri.startswith(LOAD_BALANCED_SCHEME)),
                description=f"Gateway route {route.id}",
                endpoint_path=route.path,
            )
            for route in module.gateway_routes
        ]


def find_entry_point(sources: Sequence[SourceFile], masked: dict[str, str]) -> SourceFile | None:
    """Application entry point among a module's sources.

    Rules are tried in order over all files, so a @SpringBootApplication class
    wins over an earlier file that merely has a main method.
    """
    for rule in ENTRY_POINT_RULES:
        for source_file in sources:
            if rule.predicate(masked[source_file.relative_path]):
                return source_file
    return None


def apply_capabilities(module: ModuleDescriptor, profile: ModuleProfile) -> None:
    """Set capability flags, messaging types and communication methods."""
    markers = profile.markers
    module.has_discovery_client = (
        profile.declares("eureka-client", "consul-discovery", "zookeeper-discovery")
        or "discovery" in markers
    )
    module.has_config_client = profile.declares(
        "spring-cloud-starter-config", "spring-cloud-config-client"
    )
    module.has_gateway = profile.declares(
        "spring-cloud-starter-gateway", "spring-cloud-starter-netflix-zuul"
    )
    module.has_feign_clients = profile.declares("openfeign") or "feign" in markers
    module.has_rest_template = "rest_template" in markers
    module.has_web_client = "web_client" in markers
    module.has_kafka = profile.declares("kafka") or "kafka" in markers
    module.has_rabbitmq = profile.declares("rabbitmq", "amqp") or "rabbitmq" in markers
    module.has_grpc = profile.declares("grpc") or "grpc" in markers
    module.has_load_balancer = (
        profile.declares("loadbalancer", "ribbon") or "load_balancer" in markers
    )
    module.has_circuit_breaker = (
        profile.declares("resilience4j", "hystrix", "circuitbreaker")
        or "circuit_breaker" in markers
    )

    messaging = []
    if module.has_kafka:
        messaging.append(CommunicationType.KAFKA.value)
    if module.has_rabbitmq:
        messaging.append(CommunicationType.RABBITMQ.value)
    if profile.declares("jms", "activemq", "artemis") or "jms" in markers:
        messaging.append(CommunicationType.JMS.value)
    module.messaging_types = messaging

    methods = [
        communication_type.value
        for communication_type, present in (
            (CommunicationType.REST_TEMPLATE, module.has_rest_template),
            (CommunicationType.WEB_CLIENT, module.has_web_client),
            (CommunicationType.FEIGN_CLIENT, module.has_feign_clients),
            (CommunicationType.KAFKA, module.has_kafka),
            (CommunicationType.RABBITMQ, module.has_rabbitmq),
            (CommunicationType.GRPC, module.has_grpc),
            (CommunicationType.GATEWAY_ROUTE, bool(module.gateway_routes)),
        )
        if present
    ]
    module.communication_methods = methods


def database_from_artifacts(artifacts: Sequence[str]) -> str | None:
    """Datastore implied by a driver or Spring Data starter artifact."""
    for prefix, name in DEPENDENCY_DATABASES:
        if any(artifact.startswith(prefix) for artifact in artifacts):
            return name
    return None


def resolve_messaging_peers(communications: list[CommunicationEdge]) -> None:
    """Point each producer at the first other module consuming the same channel."""
    consumers: dict[tuple[CommunicationType, str], list[str]] = {}
    for edge in communications:
        if edge.is_consumer and edge.channel_name:
            key = (edge.communication_type, edge.channel_name)
            consumers.setdefault(key, []).append(edge.source_service)

    for edge in communications:
        if not edge.is_producer or not edge.channel_name or edge.target_service:
            continue
        peers = consumers.get((edge.communication_type, edge.channel_name), [])
        edge.target_service = next((s for s in peers if s != edge.source_service), None)
