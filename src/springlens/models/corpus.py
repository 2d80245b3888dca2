"""Source corpus entities.

The analysis core never touches the filesystem. Callers hand it a FileCorpus:
an ordered collection of decoded source files plus the build descriptors that
delimit modules.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import PurePosixPath

JAVA_SUFFIX = ".java"
CONFIG_SUFFIXES = (".properties", ".yml", ".yaml")

# Build descriptor file name -> dialect
DESCRIPTOR_KINDS = {
    "pom.xml": "maven",
    "build.gradle": "gradle",
    "build.gradle.kts": "gradle",
    "settings.gradle": "gradle-settings",
    "settings.gradle.kts": "gradle-settings",
}


def normalize_path(path: str) -> str:
    """Normalize a corpus-relative path to forward slashes without a leading './'."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.lstrip("/")


def is_test_source(path: str) -> bool:
    """Check whether a path belongs to a test source set."""
    parts = PurePosixPath(normalize_path(path)).parts
    return "test" in parts or "tests" in parts


@dataclass(frozen=True)
class SourceFile:
    """One decoded file of the corpus.

    Attributes:
        relative_path: Path relative to the corpus root, forward slashes
        text: Full decoded file text
    """

    relative_path: str
    text: str

    @property
    def name(self) -> str:
        """File name without directories."""
        return PurePosixPath(self.relative_path).name

    @property
    def suffix(self) -> str:
        """Lower-cased file extension."""
        return PurePosixPath(self.relative_path).suffix.lower()

    @property
    def is_java(self) -> bool:
        return self.suffix == JAVA_SUFFIX

    @property
    def is_config(self) -> bool:
        return self.suffix in CONFIG_SUFFIXES


@dataclass(frozen=True)
class BuildDescriptor:
    """A build descriptor (pom.xml, build.gradle) found in the corpus.

    Attributes:
        module_hint_path: Descriptor path relative to the corpus root
        text: Full descriptor text
        kind: Dialect ("maven", "gradle", "gradle-settings")
    """

    module_hint_path: str
    text: str
    kind: str = ""

    def __post_init__(self) -> None:
        if not self.kind:
            name = PurePosixPath(self.module_hint_path).name
            object.__setattr__(self, "kind", DESCRIPTOR_KINDS.get(name, "unknown"))

    @property
    def directory(self) -> str:
        """Directory holding the descriptor ("" for the corpus root)."""
        parent = str(PurePosixPath(normalize_path(self.module_hint_path)).parent)
        return "" if parent == "." else parent

    @property
    def depth(self) -> int:
        """Number of path components, 1 for a root-level descriptor."""
        return len(PurePosixPath(normalize_path(self.module_hint_path)).parts)


@dataclass
class FileCorpus:
    """Ordered, de-duplicated set of source files and build descriptors.

    Attributes:
        files: Source files in corpus order (first occurrence of a path wins)
        build_descriptors: Build descriptors in discovery order
        name: Corpus name, used for the implicit root module
        skipped: Paths the loader could not read or decode
    """

    files: list[SourceFile] = field(default_factory=list)
    build_descriptors: list[BuildDescriptor] = field(default_factory=list)
    name: str = "root"
    skipped: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        files: dict[str, SourceFile] = {}
        for source in self.files:
            path = normalize_path(source.relative_path)
            if path not in files:
                files[path] = SourceFile(path, source.text)
        self.files = list(files.values())

        descriptors: dict[str, BuildDescriptor] = {}
        for descriptor in self.build_descriptors:
            path = normalize_path(descriptor.module_hint_path)
            if path not in descriptors:
                descriptors[path] = BuildDescriptor(path, descriptor.text, descriptor.kind)
        self.build_descriptors = list(descriptors.values())

        self._by_path = files

    @classmethod
    def from_texts(
        cls,
        files: Iterable[tuple[str, str]],
        build_descriptors: Iterable[tuple[str, str]] = (),
        name: str = "root",
    ) -> "FileCorpus":
        """Create a corpus from (path, text) pairs.

        Args:
            files: (relative path, text) for every source file
            build_descriptors: (descriptor path, text) for every build descriptor
            name: Corpus name

        Returns:
            FileCorpus instance
        """
        return cls(
            files=[SourceFile(path, text) for path, text in files],
            build_descriptors=[BuildDescriptor(path, text) for path, text in build_descriptors],
            name=name,
        )

    def __iter__(self) -> Iterator[SourceFile]:
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def get(self, path: str) -> SourceFile | None:
        """Look up a file by its corpus-relative path."""
        return self._by_path.get(normalize_path(path))

    def java_files(self) -> list[SourceFile]:
        """Java sources in corpus order."""
        return [f for f in self.files if f.is_java]

    def config_files(self) -> list[SourceFile]:
        """Properties and YAML files in corpus order."""
        return [f for f in self.files if f.is_config]

    @property
    def is_empty(self) -> bool:
        return not self.files and not self.build_descriptors

