"""Spring Boot configuration reading.

Reads application/bootstrap ``.properties`` and YAML files into a flat
property view with Spring's relaxed key matching, then derives the module
settings SpringLens reports: application name, port, profiles, registry URL,
gateway routes and datastore.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import yaml

from springlens.models.corpus import SourceFile, is_test_source
from springlens.models.services import GatewayRoute

logger = logging.getLogger(__name__)

CONFIG_NAME_PATTERN = re.compile(r"^(application|bootstrap)(?:-([\w.-]+))?\.(properties|ya?ml)$")

_ROUTE_KEY = re.compile(
    r"^spring\.cloud\.gateway(?:\.server\.webflux|\.server\.webmvc)?\.routes\[(\d+)\]\.(.+)$"
)
_PREDICATE_KEY = re.compile(r"^predicates\[(\d+)\](?:\.(name|args\..+))?$")
_PLACEHOLDER_DEFAULT = re.compile(r"^\$\{[^}:]+:([^}]*)\}$")

# jdbc / driver fragments -> datastore name
DATABASE_HINTS = (
    ("postgresql", "POSTGRESQL"),
    ("mysql", "MYSQL"),
    ("mariadb", "MARIADB"),
    ("oracle", "ORACLE"),
    ("sqlserver", "SQL_SERVER"),
    ("h2", "H2"),
    ("hsqldb", "HSQLDB"),
    ("derby", "DERBY"),
)


def relaxed_key(key: str) -> str:
    """Canonical form of a property key: lower case, no dashes or underscores."""
    return key.strip().lower().replace("-", "").replace("_", "")


def parse_properties(text: str) -> dict[str, str]:
    """Parse .properties text into an ordered key -> value mapping.

    Handles '#'/'!' comments, '=', ':' or whitespace separators and
    backslash line continuations. Later duplicates do not replace earlier keys.
    """
    properties: dict[str, str] = {}
    logical = ""
    for raw_line in text.splitlines():
        line = raw_line.strip() if not logical else raw_line.lstrip()
        if not logical and (not line or line[0] in "#!"):
            continue
        if line.endswith("\\") and not line.endswith("\\\\"):
            logical += line[:-1]
            continue
        logical += line

        match = re.match(r"^((?:\\.|[^=:\s])+)\s*[=:\s]\s*(.*)$", logical)
        if match:
            key, value = match.group(1), match.group(2).strip()
        else:
            key, value = logical, ""
        properties.setdefault(key.replace("\\", ""), value)
        logical = ""
    return properties


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_yaml(document: Any, prefix: str = "") -> dict[str, str]:
    """Flatten a YAML document into dotted keys with [i] list indices."""
    flat: dict[str, str] = {}
    if isinstance(document, dict):
        for key, value in document.items():
            child = f"{prefix}.{key}" if prefix else str(key)
            flat.update(flatten_yaml(value, child))
    elif isinstance(document, list):
        for index, value in enumerate(document):
            flat.update(flatten_yaml(value, f"{prefix}[{index}]"))
    elif prefix:
        flat[prefix] = _scalar(document)
    return flat


def resolve_default(value: str | None) -> str | None:
    """Default of a "${NAME:default}" placeholder, else the value itself."""
    if value is None:
        return None
    match = _PLACEHOLDER_DEFAULT.match(value.strip())
    return match.group(1) if match else value


def config_sort_key(source_file: SourceFile) -> tuple[int, int, str]:
    """Base files before profile files, properties before YAML, then by path."""
    match = CONFIG_NAME_PATTERN.match(source_file.name)
    is_profile = 1 if match and match.group(2) else 0
    is_yaml = 0 if source_file.suffix == ".properties" else 1
    return is_profile, is_yaml, source_file.relative_path


def select_config_files(files: Iterable[SourceFile]) -> list[SourceFile]:
    """Spring Boot configuration files among a module's files, in precedence order."""
    selected = [
        f
        for f in files
        if CONFIG_NAME_PATTERN.match(f.name) and not is_test_source(f.relative_path)
    ]
    return sorted(selected, key=config_sort_key)


class SpringProperties:
    """Flat property view over several configuration files.

    The first file to define a key wins. Lookups use relaxed keys, so
    ``eureka.client.service-url.defaultZone`` and
    ``eureka.client.serviceUrl.defaultZone`` are the same property.
    """

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self.profile_files: list[str] = []

    def update(self, properties: dict[str, str]) -> None:
        for key, value in properties.items():
            self._values.setdefault(relaxed_key(key), value)

    def load(self, source_file: SourceFile) -> None:
        """Add one configuration file.

        Raises:
            yaml.YAMLError: If a YAML file is malformed
        """
        if source_file.suffix == ".properties":
            self.update(parse_properties(source_file.text))
        else:
            for document in yaml.safe_load_all(source_file.text):
                self.update(flatten_yaml(document))

        match = CONFIG_NAME_PATTERN.match(source_file.name)
        if match and match.group(2):
            self.profile_files.append(match.group(2))

    def get(self, key: str, default: str | None = None) -> str | None:
        value = self._values.get(relaxed_key(key))
        if value is None or value == "":
            return default
        return value

    def items(self) -> Iterable[tuple[str, str]]:
        return self._values.items()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and relaxed_key(key) in self._values

    def __len__(self) -> int:
        return len(self._values)


@dataclass
class ModuleSettings:
    """Settings read from a module's configuration files."""

    application_name: str | None = None
    server_port: str | None = None
    profiles: list[str] = field(default_factory=list)
    discovery_url: str | None = None
    gateway_routes: list[GatewayRoute] = field(default_factory=list)
    database_type: str | None = None


def gateway_routes(properties: SpringProperties) -> list[GatewayRoute]:
    """Assemble spring.cloud.gateway.routes[i] entries in index order."""
    routes: dict[int, dict[str, Any]] = {}
    for key, value in properties.items():
        match = _ROUTE_KEY.match(key)
        if not match:
            continue
        route = routes.setdefault(int(match.group(1)), {"predicates": {}})
        attribute = match.group(2)
        predicate = _PREDICATE_KEY.match(attribute)
        if predicate:
            slot = route["predicates"].setdefault(int(predicate.group(1)), {"args": []})
            part = predicate.group(2)
            if part is None:
                slot["text"] = value
            elif part == "name":
                slot["name"] = value
            else:
                slot["args"].append(value)
        elif attribute in ("id", "uri"):
            route[attribute] = value

    result = []
    for index in sorted(routes):
        route = routes[index]
        predicates = []
        for slot_index in sorted(route["predicates"]):
            slot = route["predicates"][slot_index]
            if "text" in slot:
                predicates.append(slot["text"])
            elif "name" in slot:
                predicates.append(f"{slot['name']}={','.join(slot['args'])}")
        result.append(
            GatewayRoute(
                id=route.get("id") or f"route-{index}",
                uri=route.get("uri"),
                predicates=predicates,
            )
        )
    return result


def database_type(properties: SpringProperties) -> str | None:
    """Datastore inferred from datasource or Spring Data settings."""
    hint = " ".join(
        value
        for value in (
            properties.get("spring.datasource.url"),
            properties.get("spring.datasource.driver-class-name"),
            properties.get("spring.r2dbc.url"),
        )
        if value
    ).lower()
    for fragment, name in DATABASE_HINTS:
        if fragment in hint:
            return name

    for key, _ in properties.items():
        if key.startswith("spring.data.mongodb."):
            return "MONGODB"
        if key.startswith("spring.data.cassandra.") or key.startswith("spring.cassandra."):
            return "CASSANDRA"
    return None


def read_module_settings(properties: SpringProperties) -> ModuleSettings:
    """Derive ModuleSettings from a module's merged properties."""
    profiles_value = properties.get("spring.profiles.active") or ""
    profiles = [p.strip() for p in profiles_value.split(",") if p.strip()]
    for profile in properties.profile_files:
        if profile not in profiles:
            profiles.append(profile)

    discovery_url = properties.get("eureka.client.service-url.defaultZone") or properties.get(
        "spring.cloud.consul.host"
    )

    return ModuleSettings(
        application_name=resolve_default(properties.get("spring.application.name")),
        server_port=resolve_default(properties.get("server.port")),
        profiles=profiles,
        discovery_url=resolve_default(discovery_url),
        gateway_routes=gateway_routes(properties),
        database_type=database_type(properties),
    )
