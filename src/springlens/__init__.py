"""SpringLens - architecture intelligence for Java/Spring source trees.

SpringLens reads an extracted source corpus and derives a structured model of
the system it contains:
- Class facts and REST endpoints per source file
- Typed relationships between classes (inheritance, injection, persistence)
- Build modules, their roles and the links between them
- Security findings, code metrics and a layered data-flow graph

The analysis is purely textual and deterministic: the same corpus always
produces the same result.
"""

__version__ = "0.1.0"
__author__ = "SpringLens Contributors"
