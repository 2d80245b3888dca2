"""Class-to-class relationship extraction.

Scans every Java source for inheritance clauses, dependency injection,
JPA association annotations and plain field usage. An edge is only emitted
when both ends resolve in the run's NameIndex.
"""

import logging
import re
import threading
from dataclasses import dataclass, field

from springlens.analyzers.base import AnalysisComponent, parallel_map
from springlens.analyzers.java_text import (
    ANNOTATION_WITH_ARGS,
    GENERIC,
    TypeDeclaration,
    declared_supertypes,
    find_declaration,
    generic_arguments,
    mask_source,
    simple_name,
    skip_parenthesized,
)
from springlens.analyzers.name_index import NameIndex
from springlens.models.corpus import FileCorpus, SourceFile
from springlens.models.facts import Stereotype
from springlens.models.relationships import RelationshipEdge, RelationshipType

logger = logging.getLogger(__name__)

_ANNOTATIONS = r"(?:@[\w.]+(?:\s*\((?:[^()]|\([^()]*\))*\))?\s+)*"
_VISIBILITY = r"(?:(?:private|protected|public)\s+)?"

# @Autowired / @Inject / @Resource on a field
FIELD_INJECTION_PATTERN = re.compile(
    r"@(?:Autowired|Inject|Resource)\b(?:\s*\((?:[^()]|\([^()]*\))*\))?\s+"
    + _ANNOTATIONS + _VISIBILITY + r"(?:final\s+)?"
    + r"([\w.$]+)" + GENERIC + r"\s+([\w$]+)\s*[;=]"
)

# @Autowired / @Inject on a constructor: group 1 is the constructor name
CONSTRUCTOR_INJECTION_PATTERN = re.compile(
    r"@(?:Autowired|Inject)\b(?:\s*\([^()]*\))?\s+" + _ANNOTATIONS + _VISIBILITY + r"([\w$]+)\s*\("
)

# private final Foo foo;  (constructor injection through a generated constructor)
FINAL_FIELD_PATTERN = re.compile(
    r"\b(?:private|protected|public)\s+final\s+([\w.$]+)" + GENERIC + r"\s+([\w$]+)\s*;"
)

PERSISTENCE_PATTERN = re.compile(r"@(OneToOne|OneToMany|ManyToOne|ManyToMany)\b")

# Field declaration with optional visibility, type in group 1, generics in group 2
PERSISTENT_FIELD_PATTERN = re.compile(
    r"^\s*" + _VISIBILITY + r"(?:(?:static|final|transient)\s+)*"
    + r"([\w.$]+)\s*(" + GENERIC + r")\s+([\w$]+)\s*[;=]"
)

FIELD_TYPE_PATTERN = re.compile(
    r"\b(?:private|protected|public)\s+(?:(?:static|final|transient|volatile)\s+)*"
    r"(?!(?:class|interface|enum|abstract)\b)"
    r"([\w.$]+)" + GENERIC + r"(?:\s*\[\])*\s+([\w$]+)\s*[;=]"
)

_PARAMETER_PATTERN = re.compile(
    r"\s*([\w.$]+\s*" + GENERIC + r"(?:\s*\[\])*(?:\.\.\.)?)\s+([\w$]+)\s*$"
)

PERSISTENCE_TYPES = {
    "OneToOne": RelationshipType.ONE_TO_ONE,
    "OneToMany": RelationshipType.ONE_TO_MANY,
    "ManyToOne": RelationshipType.MANY_TO_ONE,
    "ManyToMany": RelationshipType.MANY_TO_MANY,
}

DEFAULT_LOOKAHEAD = 4


@dataclass
class _FileEdges:
    """Candidate edges of one file, merged later in corpus order."""

    source: str
    edges: list[RelationshipEdge] = field(default_factory=list)
    field_uses: list[tuple[str, str]] = field(default_factory=list)


def split_parameters(parameters: str) -> list[tuple[str, str]]:
    """Parse a parameter list into (type, name) pairs, ignoring annotations."""
    parts: list[str] = []
    depth = 0
    current = ""
    for ch in parameters:
        if ch in "<(":
            depth += 1
        elif ch in ">)":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += ch
    parts.append(current)

    pairs = []
    for part in parts:
        cleaned = ANNOTATION_WITH_ARGS.sub(" ", part)
        cleaned = re.sub(r"\bfinal\b", " ", cleaned)
        match = _PARAMETER_PATTERN.match(cleaned)
        if match:
            pairs.append((match.group(1), match.group(2)))
    return pairs


def element_type(type_name: str, generic: str | None) -> str:
    """Element type of a single-argument generic container, else the type itself."""
    arguments = generic_arguments(generic)
    if len(arguments) == 1:
        return simple_name(arguments[0])
    return simple_name(type_name)


class RelationshipBuilder(AnalysisComponent):
    """Builds typed relationship edges over a corpus."""

    def __init__(
        self,
        index: NameIndex,
        lookahead_lines: int = DEFAULT_LOOKAHEAD,
        workers: int = 1,
        cancel: threading.Event | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            index: Run-scoped NameIndex used to resolve both ends of an edge
            lookahead_lines: Lines searched after a JPA annotation for its field
            workers: Threads used for the per-file scan
            cancel: Optional cancellation event
        """
        super().__init__("relationships", cancel)
        self.index = index
        self.lookahead_lines = lookahead_lines
        self.workers = workers

    def build(self, corpus: FileCorpus) -> list[RelationshipEdge]:
        """Scan all Java files and return deduplicated edges.

        Args:
            corpus: Source corpus

        Returns:
            Edges in corpus order; within a file inheritance, injection,
            persistence and usage edges in that order
        """
        per_file = parallel_map(self._scan_guarded, corpus.java_files(), self.workers, self.cancel)

        edges: list[RelationshipEdge] = []
        seen: set[tuple[str, str, RelationshipType]] = set()
        linked: set[tuple[str, str]] = set()

        for file_edges in per_file:
            if file_edges is None:
                continue
            for edge in file_edges.edges:
                key = (edge.source, edge.target, edge.type)
                if key in seen:
                    continue
                seen.add(key)
                linked.add((edge.source, edge.target))
                edges.append(edge)

            # USES only where nothing else already links the pair
            for target, field_name in file_edges.field_uses:
                if (file_edges.source, target) in linked:
                    continue
                linked.add((file_edges.source, target))
                edges.append(
                    RelationshipEdge(file_edges.source, target, RelationshipType.USES, field_name)
                )

        logger.info(f"Built {len(edges)} relationship(s)")
        return edges

    def _scan_guarded(self, source_file: SourceFile) -> _FileEdges | None:
        return self.guarded(
            "relationship scan",
            self.scan_file,
            source_file,
            file_path=source_file.relative_path,
        )

    def _resolved(self, name: str | None, source: str) -> str | None:
        fact = self.index.resolve(name)
        if fact is None or fact.name == source:
            return None
        return fact.name

    def scan_file(self, source_file: SourceFile) -> _FileEdges | None:
        """Candidate edges of one file, or None when its class is unknown."""
        masked = mask_source(source_file.text)
        declaration = find_declaration(masked)
        if declaration is None:
            return None
        owner = self.index.resolve(declaration.name)
        if owner is None:
            return None

        result = _FileEdges(source=owner.name)
        self._inheritance(declaration, result)
        self._injection(masked, declaration.name, result)
        if owner.stereotype is Stereotype.ENTITY or owner.has_annotation("Entity"):
            self._persistence(masked, result)
        self._field_usage(masked, result)
        return result

    def _add(
        self,
        result: _FileEdges,
        target: str | None,
        kind: RelationshipType,
        name: str | None = None,
    ) -> None:
        resolved = self._resolved(target, result.source)
        if resolved is not None:
            result.edges.append(RelationshipEdge(result.source, resolved, kind, name))

    def _inheritance(self, declaration: TypeDeclaration, result: _FileEdges) -> None:
        superclass, interfaces = declared_supertypes(declaration)
        self._add(result, superclass, RelationshipType.EXTENDS)
        for interface in interfaces:
            self._add(result, interface, RelationshipType.IMPLEMENTS)

    def _injection(self, masked: str, class_name: str, result: _FileEdges) -> None:
        for match in FIELD_INJECTION_PATTERN.finditer(masked):
            self._add(result, simple_name(match.group(1)), RelationshipType.INJECTS, match.group(2))

        for match in CONSTRUCTOR_INJECTION_PATTERN.finditer(masked):
            if match.group(1) != class_name:
                continue
            params_end = skip_parenthesized(masked, match.end() - 1)
            parameters = masked[match.end() : params_end - 1]
            for type_name, name in split_parameters(parameters):
                self._add(result, simple_name(type_name), RelationshipType.INJECTS, name)

        for match in FINAL_FIELD_PATTERN.finditer(masked):
            self._add(result, simple_name(match.group(1)), RelationshipType.INJECTS, match.group(2))

    def _persistence(self, masked: str, result: _FileEdges) -> None:
        lines = masked.split("\n")
        for index, line in enumerate(lines):
            for marker in PERSISTENCE_PATTERN.finditer(line):
                kind = PERSISTENCE_TYPES[marker.group(1)]
                rest = line[skip_parenthesized(line, marker.end()) :]
                window = [rest, *lines[index + 1 : index + 1 + self.lookahead_lines]]
                for candidate in window:
                    field_match = PERSISTENT_FIELD_PATTERN.match(
                        ANNOTATION_WITH_ARGS.sub(" ", candidate)
                    )
                    if field_match:
                        target = element_type(field_match.group(1), field_match.group(2))
                        self._add(result, target, kind, field_match.group(3))
                        break

    def _field_usage(self, masked: str, result: _FileEdges) -> None:
        for match in FIELD_TYPE_PATTERN.finditer(masked):
            target = self._resolved(simple_name(match.group(1)), result.source)
            if target is not None:
                result.field_uses.append((target, match.group(2)))
