"""Per-file class fact extraction.

Parses one Java source into a ClassFact: package, first declared type,
annotations, stereotype, supertypes, field/method counts and, for
controllers, the REST endpoints it declares.
"""

import logging
import re

from springlens.analyzers.java_text import (
    ANNOTATION_PATTERN,
    GENERIC,
    PACKAGE_PATTERN,
    TypeDeclaration,
    declared_supertypes,
    find_declaration,
    mask_source,
    simple_name,
    skip_parenthesized,
)
from springlens.analyzers.rules import Rule, RuleTable
from springlens.models.facts import ClassFact, EndpointFact, HttpMethod, Stereotype

logger = logging.getLogger(__name__)

DEFAULT_MAX_PATH_LENGTH = 200
DEFAULT_LOOKAHEAD = 4

# Annotation-driven stereotypes, highest priority first
STEREOTYPE_RULES: RuleTable[list[str], Stereotype] = RuleTable(
    [
        Rule("rest-controller", lambda a: "RestController" in a, Stereotype.REST_CONTROLLER),
        Rule("controller", lambda a: "Controller" in a, Stereotype.CONTROLLER),
        Rule("service", lambda a: "Service" in a, Stereotype.SERVICE),
        Rule("repository", lambda a: "Repository" in a, Stereotype.REPOSITORY),
        Rule("entity", lambda a: "Entity" in a, Stereotype.ENTITY),
        Rule("component", lambda a: "Component" in a, Stereotype.COMPONENT),
        Rule("configuration", lambda a: "Configuration" in a, Stereotype.CONFIGURATION),
    ],
    default=Stereotype.OTHER,
)

# Declaration kinds that decide the stereotype on their own
KIND_STEREOTYPES = {
    "interface": Stereotype.INTERFACE,
    "enum": Stereotype.ENUM,
}

_MODIFIERS = r"(?:(?:static|final|transient|volatile|synchronized|abstract|native|default)\s+)*"
_NOT_KEYWORD = r"(?!(?:class|interface|enum|record|static|final|abstract|new|return)\b)"

FIELD_PATTERN = re.compile(
    r"\b(?:public|protected|private)\s+" + _MODIFIERS + _NOT_KEYWORD
    + r"[\w.$]+" + GENERIC + r"(?:\s*\[\])*\s+[\w$]+\s*[;=]"
)
METHOD_PATTERN = re.compile(
    r"\b(?:public|protected|private)\s+" + _MODIFIERS + r"(?:<[^>]*>\s*)?" + _NOT_KEYWORD
    + r"[\w.$]+" + GENERIC + r"(?:\s*\[\])*\s+[\w$]+\s*\("
)

MAPPING_PATTERN = re.compile(r"@(Get|Post|Put|Delete|Patch)Mapping\b")
REQUEST_MAPPING_PATTERN = re.compile(r"@RequestMapping\b")
REQUEST_METHOD_PATTERN = re.compile(r"RequestMethod\s*\.\s*(\w+)")

# First path literal of a mapping annotation argument list
_LEADING_PATH = re.compile(r"^\s*\(\s*(?:(?:value|path)\s*=\s*)?\{?\s*\"([^\"\n]*)\"")
_NAMED_PATH = re.compile(r"\b(?:value|path)\s*=\s*\{?\s*\"([^\"\n]*)\"")

SIGNATURE_PATTERN = re.compile(
    r"(?<![\w.$@])(?:(?:public|protected|private)\s+)?" + _MODIFIERS
    + r"(?:<[^>]*>\s*)?"
    + r"(?!(?:return|new|throw|else|case|public|protected|private|class|interface|enum)\b)"
    + r"([\w.$]+" + GENERIC + r"(?:\s*\[\])*)\s+([\w$]+)\s*\(((?:[^()]|\([^()]*\))*)\)"
)


def normalize_endpoint_path(prefix: str, path: str) -> str:
    """Join a class-level prefix and a method path into a normalized path.

    The result has exactly one leading slash, no trailing slash and no
    repeated slashes; joining two empty parts yields "/".
    """
    joined = re.sub(r"/+", "/", f"{prefix}/{path}").strip("/")
    return "/" + joined


def mapping_path(raw_line: str, args_start: int) -> str | None:
    """Path literal of a mapping annotation whose arguments start at args_start.

    Returns "" when the annotation has no arguments and None when it has
    arguments but no path.
    """
    args_end = skip_parenthesized(raw_line, args_start)
    if args_end == args_start:
        return ""
    arguments = raw_line[args_start:args_end]
    match = _LEADING_PATH.search(arguments) or _NAMED_PATH.search(arguments)
    if match:
        return match.group(1)
    if re.search(r"[\"]", arguments):
        return None
    return ""


class ClassFactExtractor:
    """Extracts one ClassFact per Java source file."""

    def __init__(
        self,
        max_path_length: int = DEFAULT_MAX_PATH_LENGTH,
        lookahead_lines: int = DEFAULT_LOOKAHEAD,
    ) -> None:
        """Initialize the extractor.

        Args:
            max_path_length: Endpoint paths longer than this are dropped
            lookahead_lines: Lines searched after a mapping for the handler method
        """
        self.max_path_length = max_path_length
        self.lookahead_lines = lookahead_lines

    def extract(self, relative_path: str, text: str) -> ClassFact | None:
        """Parse a source file into a ClassFact.

        Args:
            relative_path: Corpus-relative path of the file
            text: Full file text

        Returns:
            ClassFact, or None if the file declares no recognizable type
        """
        masked = mask_source(text)
        declaration = find_declaration(masked)
        if declaration is None:
            logger.debug(f"No type declaration in {relative_path}")
            return None

        annotations = [
            simple_name(name)
            for name in ANNOTATION_PATTERN.findall(masked)
            if name != "interface"
        ]
        stereotype = KIND_STEREOTYPES.get(declaration.kind) or STEREOTYPE_RULES.classify(
            annotations
        )
        superclass, interfaces = declared_supertypes(declaration)

        package_match = PACKAGE_PATTERN.search(masked)

        fact = ClassFact(
            name=declaration.name,
            package_name=package_match.group(1) if package_match else None,
            stereotype=stereotype,
            annotations=annotations,
            superclass=superclass,
            interfaces=interfaces,
            field_count=len(FIELD_PATTERN.findall(masked)),
            method_count=len(METHOD_PATTERN.findall(masked)),
            file_path=relative_path,
        )

        if stereotype.is_controller:
            fact.endpoints = self.extract_endpoints(text, masked, declaration)
            logger.debug(f"{fact.name}: {len(fact.endpoints)} endpoint(s)")

        return fact

    def extract_endpoints(
        self,
        text: str,
        masked: str,
        declaration: TypeDeclaration,
    ) -> list[EndpointFact]:
        """Pair mapping annotations with the handler methods that follow them.

        Args:
            text: Original source text
            masked: Masked source text (same length as text)
            declaration: First type declaration of the file

        Returns:
            Endpoints in source order
        """
        prefix = self._class_prefix(text, masked, declaration)
        raw_lines = text.split("\n")
        masked_lines = masked.split("\n")
        declaration_line = masked.count("\n", 0, declaration.start)

        endpoints: list[EndpointFact] = []
        for index, masked_line in enumerate(masked_lines):
            mapping = self._method_mapping(
                raw_lines[index], masked_line, index > declaration_line
            )
            if mapping is None:
                continue
            http_method, path, args_end = mapping

            if len(path) > self.max_path_length:
                logger.debug(f"Skipping endpoint path longer than {self.max_path_length}")
                continue

            signature = self._find_signature(raw_lines, masked_lines, index, args_end)
            if signature is None:
                continue
            return_type, method_name, parameters = signature

            endpoints.append(
                EndpointFact(
                    http_method=http_method,
                    path=normalize_endpoint_path(prefix, path),
                    method_name=method_name,
                    return_type=return_type,
                    parameters=" ".join(parameters.split()),
                    class_name=declaration.name,
                )
            )
        return endpoints

    def _class_prefix(self, text: str, masked: str, declaration: TypeDeclaration) -> str:
        """Path of the type-level @RequestMapping, or ""."""
        match = REQUEST_MAPPING_PATTERN.search(masked, 0, declaration.start)
        if match is None:
            return ""
        line_start = text.rfind("\n", 0, match.start()) + 1
        line_end = text.find("\n", match.end())
        raw_line = text[line_start : line_end if line_end != -1 else len(text)]
        return mapping_path(raw_line, match.end() - line_start) or ""

    def _method_mapping(
        self,
        raw_line: str,
        masked_line: str,
        inside_type: bool,
    ) -> tuple[HttpMethod, str, int] | None:
        """Mapping annotation on one line as (method, path, end offset of its arguments)."""
        match = MAPPING_PATTERN.search(masked_line)
        if match:
            http_method = HttpMethod(match.group(1).upper())
        elif inside_type:
            match = REQUEST_MAPPING_PATTERN.search(masked_line)
            if match is None:
                return None
            args_end = skip_parenthesized(masked_line, match.end())
            verb = REQUEST_METHOD_PATTERN.search(masked_line, match.end(), args_end)
            try:
                http_method = HttpMethod(verb.group(1).upper()) if verb else HttpMethod.GET
            except ValueError:
                return None
        else:
            return None

        path = mapping_path(raw_line, match.end())
        if path is None:
            return None
        return http_method, path, skip_parenthesized(masked_line, match.end())

    def _find_signature(
        self,
        raw_lines: list[str],
        masked_lines: list[str],
        index: int,
        args_end: int,
    ) -> tuple[str, str, str] | None:
        """Search the rest of the annotation line, then the look-ahead window."""
        candidates = [(index, args_end)]
        last = min(index + self.lookahead_lines, len(masked_lines) - 1)
        candidates.extend((j, 0) for j in range(index + 1, last + 1))

        for line_index, start in candidates:
            masked_line = masked_lines[line_index]
            match = SIGNATURE_PATTERN.search(masked_line, start)
            if match is None:
                continue
            raw_line = raw_lines[line_index]
            return (
                " ".join(match.group(1).split()),
                match.group(2),
                raw_line[match.start(3) : match.end(3)].strip(),
            )
        return None
