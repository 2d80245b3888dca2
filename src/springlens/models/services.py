"""Build modules and the communication links between them.

- ServiceType: role of a deployable module
- CommunicationType: technology of an inter-module link
- GatewayRoute: one route declared in a gateway module's configuration
- ModuleDescriptor: one build module
- CommunicationEdge: one detected link from a module to a peer
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ServiceType(Enum):
    """Role of a module, decided from its declared dependencies."""

    API_GATEWAY = "API_GATEWAY"
    CONFIG_SERVER = "CONFIG_SERVER"
    DISCOVERY_SERVER = "DISCOVERY_SERVER"
    ADMIN_SERVICE = "ADMIN_SERVICE"
    BATCH_SERVICE = "BATCH_SERVICE"
    MESSAGING_SERVICE = "MESSAGING_SERVICE"
    BUSINESS_SERVICE = "BUSINESS_SERVICE"
    SCHEDULED_SERVICE = "SCHEDULED_SERVICE"
    UNKNOWN = "UNKNOWN"


class CommunicationType(Enum):
    """Technology used by a communication edge."""

    REST_TEMPLATE = "REST_TEMPLATE"
    WEB_CLIENT = "WEB_CLIENT"
    FEIGN_CLIENT = "FEIGN_CLIENT"
    KAFKA = "KAFKA"
    RABBITMQ = "RABBITMQ"
    JMS = "JMS"
    GRPC = "GRPC"
    GATEWAY_ROUTE = "GATEWAY_ROUTE"
    UNKNOWN = "UNKNOWN"

    @property
    def is_messaging(self) -> bool:
        return self in (CommunicationType.KAFKA, CommunicationType.RABBITMQ, CommunicationType.JMS)


@dataclass
class GatewayRoute:
    """Route declared under spring.cloud.gateway.routes.

    Attributes:
        id: Route identifier
        uri: Route target URI (often lb://service-name)
        predicates: Predicate expressions such as "Path=/api/orders/**"
    """

    id: str
    uri: str | None = None
    predicates: list[str] = field(default_factory=list)

    @property
    def path(self) -> str | None:
        """Value of the first Path= predicate."""
        for predicate in self.predicates:
            name, _, value = predicate.partition("=")
            if name.strip() == "Path" and value:
                return value.split(",")[0].strip()
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"id": self.id, "uri": self.uri, "predicates": list(self.predicates)}


@dataclass
class ModuleDescriptor:
    """One build module of the corpus.

    Attributes:
        name: Module name (descriptor directory name, corpus name for the root)
        root_path: Corpus-relative directory ("" for the corpus root)
        build_descriptor_path: Descriptor that defined the module
        service_type: Role decided from dependencies
        application_name: spring.application.name
        server_port: server.port (defaults to "8080")
        profiles: Active profiles
        base_package: Package of the application entry point
        discovery_url: Service registry URL
        gateway_routes: Routes declared in module configuration
        database_type: Datastore inferred from configuration
        dependencies: Declared artifact identifiers
        messaging_types: Messaging technologies in use
        communication_methods: Communication technologies in use
        class_count: Number of classes owned by the module
        endpoint_count: Number of endpoints owned by the module
    """

    name: str
    root_path: str = ""
    build_descriptor_path: str | None = None
    service_type: ServiceType = ServiceType.UNKNOWN
    application_name: str | None = None
    server_port: str = "8080"
    profiles: list[str] = field(default_factory=list)
    base_package: str | None = None
    discovery_url: str | None = None
    gateway_routes: list[GatewayRoute] = field(default_factory=list)
    database_type: str | None = None
    dependencies: list[str] = field(default_factory=list)
    messaging_types: list[str] = field(default_factory=list)
    communication_methods: list[str] = field(default_factory=list)

    # Capability flags
    has_discovery_client: bool = False
    has_config_client: bool = False
    has_gateway: bool = False
    has_feign_clients: bool = False
    has_rest_template: bool = False
    has_web_client: bool = False
    has_kafka: bool = False
    has_rabbitmq: bool = False
    has_grpc: bool = False
    has_load_balancer: bool = False
    has_circuit_breaker: bool = False

    class_count: int = 0
    endpoint_count: int = 0

    @property
    def has_sync_communication(self) -> bool:
        """Whether the module uses request/response technologies."""
        return (
            self.has_feign_clients or self.has_rest_template or self.has_web_client or self.has_grpc
        )

    @property
    def has_async_communication(self) -> bool:
        """Whether the module uses messaging technologies."""
        return self.has_kafka or self.has_rabbitmq or bool(self.messaging_types)

    def owns(self, path: str) -> bool:
        """Check whether a corpus-relative path lies under the module root."""
        if not self.root_path:
            return True
        return path == self.root_path or path.startswith(self.root_path + "/")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "root_path": self.root_path,
            "build_descriptor_path": self.build_descriptor_path,
            "service_type": self.service_type.value,
            "application_name": self.application_name,
            "server_port": self.server_port,
            "profiles": list(self.profiles),
            "base_package": self.base_package,
            "discovery_url": self.discovery_url,
            "gateway_routes": [r.to_dict() for r in self.gateway_routes],
            "database_type": self.database_type,
            "dependencies": list(self.dependencies),
            "messaging_types": list(self.messaging_types),
            "communication_methods": list(self.communication_methods),
            "has_discovery_client": self.has_discovery_client,
            "has_config_client": self.has_config_client,
            "has_gateway": self.has_gateway,
            "has_feign_clients": self.has_feign_clients,
            "has_rest_template": self.has_rest_template,
            "has_web_client": self.has_web_client,
            "has_kafka": self.has_kafka,
            "has_rabbitmq": self.has_rabbitmq,
            "has_grpc": self.has_grpc,
            "has_load_balancer": self.has_load_balancer,
            "has_circuit_breaker": self.has_circuit_breaker,
            "has_sync_communication": self.has_sync_communication,
            "has_async_communication": self.has_async_communication,
            "class_count": self.class_count,
            "endpoint_count": self.endpoint_count,
        }


@dataclass
class CommunicationEdge:
    """Link from a module to a peer service, URL or messaging channel.

    Attributes:
        source_service: Module the call originates from
        communication_type: Technology used
        target_service: Resolved peer service name (None when unresolved)
        target_url: Raw target URL literal
        http_method: HTTP verb for request/response links
        channel: Messaging channel tagged "(consumer)" or "(producer)"
        is_load_balanced: Resolved through service discovery
        is_async: Fire-and-forget or reactive
        description: Human-readable summary
        class_name: Declaring class
        endpoint_path: Path routed by a gateway route
    """

    source_service: str
    communication_type: CommunicationType
    target_service: str | None = None
    target_url: str | None = None
    http_method: str | None = None
    channel: str | None = None
    is_load_balanced: bool = False
    is_async: bool = False
    description: str = ""
    class_name: str | None = None
    endpoint_path: str | None = None

    @property
    def channel_name(self) -> str | None:
        """Channel without its consumer/producer tag."""
        if self.channel is None:
            return None
        return self.channel.rsplit(" (", 1)[0]

    @property
    def is_producer(self) -> bool:
        return bool(self.channel and self.channel.endswith("(producer)"))

    @property
    def is_consumer(self) -> bool:
        return bool(self.channel and self.channel.endswith("(consumer)"))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source_service": self.source_service,
            "target_service": self.target_service,
            "communication_type": self.communication_type.value,
            "target_url": self.target_url,
            "http_method": self.http_method,
            "channel": self.channel,
            "is_load_balanced": self.is_load_balanced,
            "is_async": self.is_async,
            "description": self.description,
            "class_name": self.class_name,
            "endpoint_path": self.endpoint_path,
        }
