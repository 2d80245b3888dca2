"""Maven and Gradle build descriptor parsing.

Descriptors are read textually. Two views are produced:
- the artifact identifiers a module declares, used for role classification
- Dependency records with coordinates and scope, reported on the result
"""

import logging
import re

from springlens.models.analysis import Dependency
from springlens.models.corpus import BuildDescriptor

logger = logging.getLogger(__name__)

MAVEN_ARTIFACT_PATTERN = re.compile(r"<artifactId>\s*([^<\s]+)\s*</artifactId>")
MAVEN_DEPENDENCY_PATTERN = re.compile(r"<dependency>(.*?)</dependency>", re.DOTALL)
MAVEN_MODULE_PATTERN = re.compile(r"<modules>\s*<module>", re.DOTALL)
_XML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)

GRADLE_COORDINATE_PATTERN = re.compile(r"['\"]([\w.-]+):([\w.-]+)(?::([\w.${}-]+))?['\"]")
GRADLE_DEPENDENCY_PATTERN = re.compile(
    r"\b(implementation|api|compile|compileOnly|runtimeOnly|runtime|testImplementation"
    r"|testCompile|testRuntimeOnly|annotationProcessor|kapt)\s*\(?\s*"
    r"['\"]([\w.-]+):([\w.-]+)(?::([\w.${}-]+))?['\"]"
)
GRADLE_INCLUDE_PATTERN = re.compile(r"^\s*include\s*\(?\s*['\"]", re.MULTILINE)
GRADLE_SUBPROJECTS_PATTERN = re.compile(r"^\s*subprojects\s*\{", re.MULTILINE)

# Gradle configuration -> Maven-style scope
GRADLE_SCOPES = {
    "implementation": "compile",
    "api": "compile",
    "compile": "compile",
    "compileOnly": "provided",
    "annotationProcessor": "provided",
    "kapt": "provided",
    "runtimeOnly": "runtime",
    "runtime": "runtime",
    "testImplementation": "test",
    "testCompile": "test",
    "testRuntimeOnly": "test",
}


def _xml_tag(block: str, tag: str) -> str | None:
    match = re.search(rf"<{tag}>\s*([^<]*?)\s*</{tag}>", block)
    return match.group(1) if match and match.group(1) else None


def artifact_ids(descriptor: BuildDescriptor) -> list[str]:
    """Every artifact identifier named in a descriptor, first-seen order.

    For Maven that includes the project's own and its parent's artifactId,
    for Gradle the artifact part of every quoted group:artifact coordinate.
    """
    if descriptor.kind == "maven":
        found = MAVEN_ARTIFACT_PATTERN.findall(_XML_COMMENT.sub("", descriptor.text))
    elif descriptor.kind == "gradle":
        found = [m.group(2) for m in GRADLE_COORDINATE_PATTERN.finditer(descriptor.text)]
    else:
        found = []
    return list(dict.fromkeys(found))


def parse_dependencies(descriptor: BuildDescriptor) -> list[Dependency]:
    """Dependency records declared in a descriptor.

    Args:
        descriptor: Maven or Gradle build descriptor

    Returns:
        Dependencies in declaration order
    """
    dependencies: list[Dependency] = []

    if descriptor.kind == "maven":
        text = _XML_COMMENT.sub("", descriptor.text)
        for match in MAVEN_DEPENDENCY_PATTERN.finditer(text):
            block = match.group(1)
            artifact_id = _xml_tag(block, "artifactId")
            if artifact_id is None:
                continue
            dependencies.append(
                Dependency(
                    group_id=_xml_tag(block, "groupId"),
                    artifact_id=artifact_id,
                    version=_xml_tag(block, "version"),
                    scope=_xml_tag(block, "scope") or "compile",
                    source_file=descriptor.module_hint_path,
                )
            )

    elif descriptor.kind == "gradle":
        for match in GRADLE_DEPENDENCY_PATTERN.finditer(descriptor.text):
            dependencies.append(
                Dependency(
                    group_id=match.group(2),
                    artifact_id=match.group(3),
                    version=match.group(4),
                    scope=GRADLE_SCOPES.get(match.group(1), "compile"),
                    source_file=descriptor.module_hint_path,
                )
            )

    logger.debug(f"{descriptor.module_hint_path}: {len(dependencies)} dependencies")
    return dependencies


def declares_submodules(descriptor: BuildDescriptor) -> bool:
    """Whether a descriptor aggregates sub-modules."""
    if descriptor.kind == "maven":
        return bool(MAVEN_MODULE_PATTERN.search(_XML_COMMENT.sub("", descriptor.text)))
    if descriptor.kind == "gradle-settings":
        return bool(GRADLE_INCLUDE_PATTERN.search(descriptor.text))
    if descriptor.kind == "gradle":
        return bool(GRADLE_SUBPROJECTS_PATTERN.search(descriptor.text))
    return False
