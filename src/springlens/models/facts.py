"""Class-level facts extracted from individual source files.

- Stereotype: role of a declared type
- HttpMethod: HTTP verb of a REST endpoint
- EndpointFact: one HTTP endpoint declared on a controller
- ClassFact: one declared type per file
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Stereotype(Enum):
    """Role of a declared type, derived from its kind and annotations."""

    CONTROLLER = "Controller"
    REST_CONTROLLER = "RestController"
    SERVICE = "Service"
    REPOSITORY = "Repository"
    ENTITY = "Entity"
    COMPONENT = "Component"
    CONFIGURATION = "Configuration"
    INTERFACE = "Interface"
    ENUM = "Enum"
    OTHER = "Other"

    @property
    def is_controller(self) -> bool:
        return self in (Stereotype.CONTROLLER, Stereotype.REST_CONTROLLER)


class HttpMethod(Enum):
    """HTTP verbs recognized on mapping annotations."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


@dataclass
class EndpointFact:
    """One HTTP endpoint declared on a controller.

    Attributes:
        http_method: HTTP verb
        path: Normalized path (leading slash, no trailing slash, single slashes)
        method_name: Handler method name
        return_type: Declared return type text
        parameters: Raw parameter list text
        class_name: Declaring controller
        module_name: Owning build module (back-filled after module mapping)
    """

    http_method: HttpMethod
    path: str
    method_name: str
    return_type: str
    parameters: str = ""
    class_name: str | None = None
    module_name: str | None = None

    @property
    def signature(self) -> str:
        """Endpoint as "<METHOD> <path>"."""
        return f"{self.http_method.value} {self.path}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "http_method": self.http_method.value,
            "path": self.path,
            "method_name": self.method_name,
            "return_type": self.return_type,
            "parameters": self.parameters,
            "class_name": self.class_name,
            "module_name": self.module_name,
        }


@dataclass
class ClassFact:
    """Facts about one declared type.

    Created once per file during the extraction pass. Only module_name is
    written afterwards, when module partitioning completes.

    Attributes:
        name: Simple type name (never empty)
        package_name: Declared package, None for the default package
        stereotype: Role of the type
        annotations: Annotation identifiers found in the file, first-seen order
        superclass: Name from the first extends clause
        interfaces: Names from the implements clause
        field_count: Number of field declarations
        method_count: Number of method declarations
        file_path: Corpus-relative path of the declaring file
        endpoints: HTTP endpoints (controllers only)
        module_name: Owning build module
    """

    name: str
    package_name: str | None = None
    stereotype: Stereotype = Stereotype.OTHER
    annotations: list[str] = field(default_factory=list)
    superclass: str | None = None
    interfaces: list[str] = field(default_factory=list)
    field_count: int = 0
    method_count: int = 0
    file_path: str = ""
    endpoints: list[EndpointFact] = field(default_factory=list)
    module_name: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("ClassFact name must not be empty")
        # Ordered set semantics
        self.annotations = list(dict.fromkeys(self.annotations))

    @property
    def qualified_name(self) -> str:
        """Package-qualified name when a package was declared."""
        if self.package_name:
            return f"{self.package_name}.{self.name}"
        return self.name

    def has_annotation(self, name: str) -> bool:
        return name in self.annotations

    def assign_module(self, module_name: str | None) -> None:
        """Back-fill the owning module on the fact and its endpoints."""
        self.module_name = module_name
        for endpoint in self.endpoints:
            endpoint.module_name = module_name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "package_name": self.package_name,
            "stereotype": self.stereotype.value,
            "annotations": list(self.annotations),
            "superclass": self.superclass,
            "interfaces": list(self.interfaces),
            "field_count": self.field_count,
            "method_count": self.method_count,
            "file_path": self.file_path,
            "module_name": self.module_name,
            "endpoints": [e.to_dict() for e in self.endpoints],
        }
