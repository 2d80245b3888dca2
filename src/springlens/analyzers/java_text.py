"""Textual helpers for Java sources.

Analysis is regex based. To keep comments and string literals from producing
false matches, patterns run against a masked copy of the source in which
comment bodies and string contents are blanked out. Masking preserves length
and line breaks, so offsets and line numbers stay valid for the original text.
"""

import re
from dataclasses import dataclass

# Generic argument list with up to three levels of nesting
GENERIC = r"(?:<(?:[^<>]|<(?:[^<>]|<[^<>]*>)*>)*>)?"

_MASK_PATTERN = re.compile(
    r"//[^\n]*"
    r"|/\*.*?(?:\*/|\Z)"
    r"|\"(?:\\.|[^\"\\\n])*\""
    r"|'(?:\\.|[^'\\\n])*'",
    re.DOTALL,
)

DECLARATION_PATTERN = re.compile(r"(?<![@\w.$])\b(class|interface|enum)\s+([A-Za-z_$][\w$]*)")
ANNOTATION_PATTERN = re.compile(r"@\s*([A-Za-z_$][\w$.]*)")
PACKAGE_PATTERN = re.compile(r"^\s*package\s+([\w.]+)\s*;", re.MULTILINE)

# Annotation with an optional, possibly nested, argument list
ANNOTATION_WITH_ARGS = re.compile(r"@[\w.]+(?:\s*\((?:[^()]|\([^()]*\))*\))?")

_GENERIC_SECTION = re.compile(r"<[^<>]*>")


def _blank(match: re.Match[str]) -> str:
    token = match.group(0)
    if token[0] in "\"'":
        quote = token[0]
        return quote + " " * (len(token) - 2) + quote
    return "".join(ch if ch == "\n" else " " for ch in token)


def mask_source(text: str) -> str:
    """Blank out comments and string literal contents, preserving offsets."""
    return _MASK_PATTERN.sub(_blank, text)


def strip_generics(text: str) -> str:
    """Remove every <...> section, innermost first."""
    previous = None
    while previous != text:
        previous = text
        text = _GENERIC_SECTION.sub("", text)
    return text


def simple_name(type_name: str) -> str:
    """Last segment of a possibly qualified type name, without generics or arrays."""
    base = strip_generics(type_name).replace("[]", "").strip()
    return base.rsplit(".", 1)[-1]


def split_type_list(text: str) -> list[str]:
    """Split "A, B<C, D>, pkg.E" into simple names ["A", "B", "E"]."""
    names = []
    for part in strip_generics(text).split(","):
        name = simple_name(part)
        if name and re.fullmatch(r"[A-Za-z_$][\w$]*", name):
            names.append(name)
    return names


def skip_parenthesized(text: str, pos: int) -> int:
    """Offset just after a balanced (...) group starting at pos (whitespace allowed).

    Returns pos unchanged when no group starts there.
    """
    index = pos
    while index < len(text) and text[index] in " \t":
        index += 1
    if index >= len(text) or text[index] != "(":
        return pos
    depth = 0
    for offset in range(index, len(text)):
        if text[offset] == "(":
            depth += 1
        elif text[offset] == ")":
            depth -= 1
            if depth == 0:
                return offset + 1
    return len(text)


def first_string_literal(text: str) -> str | None:
    """Contents of the first double-quoted literal in text."""
    match = re.search(r"\"([^\"\n]*)\"", text)
    return match.group(1) if match else None


@dataclass(frozen=True)
class TypeDeclaration:
    """First type declared in a source file.

    Attributes:
        kind: "class", "interface" or "enum"
        name: Simple type name
        start: Offset of the declaration keyword
        header: Declaration text up to the opening brace, generics removed
    """

    kind: str
    name: str
    start: int
    header: str


def find_declaration(masked: str) -> TypeDeclaration | None:
    """Locate the first class/interface/enum declaration in masked source."""
    match = DECLARATION_PATTERN.search(masked)
    if match is None:
        return None
    brace = masked.find("{", match.end())
    header = masked[match.start() : brace if brace != -1 else len(masked)]
    return TypeDeclaration(
        kind=match.group(1),
        name=match.group(2),
        start=match.start(),
        header=" ".join(strip_generics(header).split()),
    )


def string_constants(text: str) -> dict[str, str]:
    """Map NAME -> value for `static final String NAME = "value";` constants."""
    pattern = re.compile(
        r"\bstatic\s+final\s+String\s+(\w+)\s*=\s*\"([^\"\n]*)\"\s*;"
        r"|\bfinal\s+static\s+String\s+(\w+)\s*=\s*\"([^\"\n]*)\"\s*;"
    )
    constants: dict[str, str] = {}
    for match in pattern.finditer(text):
        name = match.group(1) or match.group(3)
        value = match.group(2) if match.group(1) else match.group(4)
        constants.setdefault(name, value)
    return constants


_EXTENDS_PATTERN = re.compile(r"\bextends\s+([\w.$]+)")
_IMPLEMENTS_PATTERN = re.compile(r"\bimplements\s+([\w.$,\s]+)")


def declared_supertypes(declaration: TypeDeclaration) -> tuple[str | None, list[str]]:
    """Superclass and interfaces named in a declaration header.

    Only the first extends clause is read; for an interface extending
    several others that means the first one.
    """
    extends = _EXTENDS_PATTERN.search(declaration.header)
    superclass = simple_name(extends.group(1)) if extends else None

    interfaces: list[str] = []
    implements = _IMPLEMENTS_PATTERN.search(declaration.header)
    if implements:
        interfaces = split_type_list(implements.group(1))
    return superclass, interfaces


def generic_arguments(generic: str | None) -> list[str]:
    """Top-level arguments of a "<...>" section."""
    if not generic or not generic.startswith("<"):
        return []
    inner = generic[1:-1]
    arguments: list[str] = []
    depth = 0
    current = ""
    for ch in inner:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        if ch == "," and depth == 0:
            arguments.append(current.strip())
            current = ""
        else:
            current += ch
    if current.strip():
        arguments.append(current.strip())
    return arguments
