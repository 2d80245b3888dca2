"""Build module detection.

A module is the directory holding a build descriptor (pom.xml, build.gradle,
build.gradle.kts). Descriptors deeper than the configured walk depth are
ignored. The corpus root is excluded as an aggregator when its descriptor
declares sub-modules; a non-empty corpus without any usable descriptor
becomes one implicit module named after the corpus.
"""

import logging
from collections.abc import Iterable
from pathlib import PurePosixPath

from springlens.analyzers.base import ModuleDiscoveryError
from springlens.analyzers.build_descriptors import declares_submodules
from springlens.models.corpus import BuildDescriptor, FileCorpus
from springlens.models.services import ModuleDescriptor

logger = logging.getLogger(__name__)

MODULE_DESCRIPTOR_KINDS = ("maven", "gradle")


def module_name(directory: str, corpus_name: str) -> str:
    """Module name for a descriptor directory ("" is the corpus root)."""
    return PurePosixPath(directory).name if directory else corpus_name


class ModuleDetector:
    """Detects build modules from a corpus's build descriptors."""

    def __init__(self, max_walk_depth: int = 3) -> None:
        """Initialize the module detector.

        Args:
            max_walk_depth: Deepest directory level searched for descriptors
        """
        self.max_walk_depth = max_walk_depth

    def detect_modules(self, corpus: FileCorpus) -> list[ModuleDescriptor]:
        """Detect modules in discovery order.

        Args:
            corpus: Corpus to partition

        Returns:
            Modules in descriptor order; empty only for an empty corpus

        Raises:
            ModuleDiscoveryError: If the descriptors cannot be processed
        """
        try:
            modules = self._detect(corpus)
        except ModuleDiscoveryError:
            raise
        except Exception as e:
            raise ModuleDiscoveryError(f"Module discovery failed: {e}") from e

        logger.info(f"Detected {len(modules)} modules")
        return modules

    def _detect(self, corpus: FileCorpus) -> list[ModuleDescriptor]:
        if corpus.is_empty:
            return []
        descriptors = corpus.build_descriptors
        root_aggregates = any(d.directory == "" and declares_submodules(d) for d in descriptors)
        if root_aggregates:
            logger.debug("Root descriptor declares sub-modules, excluding root module")

        modules: dict[str, ModuleDescriptor] = {}
        for descriptor in descriptors:
            if not self._is_module_descriptor(descriptor):
                continue
            directory = descriptor.directory
            if directory in modules or (directory == "" and root_aggregates):
                continue
            modules[directory] = ModuleDescriptor(
                name=module_name(directory, corpus.name),
                root_path=directory,
                build_descriptor_path=descriptor.module_hint_path,
            )

        if not modules:
            logger.debug("No build modules found, using implicit root module")
            root = next((d for d in descriptors if d.directory == ""), None)
            return [
                ModuleDescriptor(
                    name=corpus.name,
                    root_path="",
                    build_descriptor_path=root.module_hint_path if root else None,
                )
            ]
        return list(modules.values())

    def _is_module_descriptor(self, descriptor: BuildDescriptor) -> bool:
        if descriptor.kind not in MODULE_DESCRIPTOR_KINDS:
            return False
        if descriptor.depth > self.max_walk_depth:
            logger.debug(f"Skipping descriptor beyond walk depth: {descriptor.module_hint_path}")
            return False
        return True


class ModuleIndex:
    """Longest-prefix ownership lookup over module root paths.

    Roots are kept sorted by decreasing length; the sort is stable, so equal
    length roots keep discovery order.
    """

    def __init__(self, modules: Iterable[ModuleDescriptor]) -> None:
        self.modules = list(modules)
        self._by_length = sorted(self.modules, key=lambda m: len(m.root_path), reverse=True)

    def owner_of(self, path: str) -> ModuleDescriptor | None:
        """Module whose root is the longest prefix of path."""
        for module in self._by_length:
            if module.owns(path):
                return module
        return None

    def source_name(self, path: str) -> str:
        """Owning module name, falling back to the first module."""
        owner = self.owner_of(path)
        if owner is not None:
            return owner.name
        return self.modules[0].name if self.modules else "unknown"
