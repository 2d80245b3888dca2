"""Run-scoped lookup from simple class name to ClassFact."""

import logging
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from springlens.models.facts import ClassFact

logger = logging.getLogger(__name__)


class NameIndex(Mapping[str, ClassFact]):
    """Immutable snapshot mapping simple class names to facts.

    Built once per run after extraction. When two facts share a simple
    name the first one in corpus order wins; later ones are reported in
    ``duplicates``.
    """

    def __init__(self, facts: Iterable[ClassFact]) -> None:
        entries: dict[str, ClassFact] = {}
        duplicates: list[str] = []
        for fact in facts:
            if fact.name in entries:
                duplicates.append(fact.name)
                logger.debug(
                    f"Duplicate class name {fact.name} in {fact.file_path}, "
                    f"keeping {entries[fact.name].file_path}"
                )
                continue
            entries[fact.name] = fact
        self._entries = MappingProxyType(entries)
        self.duplicates: tuple[str, ...] = tuple(duplicates)

    def __getitem__(self, name: str) -> ClassFact:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def resolve(self, name: str | None) -> ClassFact | None:
        """Fact for a simple name, or None when the name is not a known class."""
        if not name:
            return None
        return self._entries.get(name)
