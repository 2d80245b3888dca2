"""Corpus loading from an extracted source tree.

Walks a directory in sorted order, skipping excluded directories, and loads
Java sources, Spring configuration files and build descriptors as UTF-8 text.
Files that cannot be read or decoded are skipped and logged; a single read
failure is final for that file.
"""

import logging
import os
from pathlib import Path

from springlens.analyzers.base import CorpusUnavailableError
from springlens.config import AnalyzerConfig
from springlens.models.corpus import DESCRIPTOR_KINDS, BuildDescriptor, FileCorpus, SourceFile

logger = logging.getLogger(__name__)


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def load_corpus(
    root: Path,
    config: AnalyzerConfig | None = None,
    name: str | None = None,
) -> FileCorpus:
    """Load a corpus from a directory.

    Args:
        root: Root of the extracted source tree
        config: Analyzer configuration (extensions and excluded directories)
        name: Corpus name (defaults to the directory name)

    Returns:
        FileCorpus with every readable file

    Raises:
        CorpusUnavailableError: If root does not exist or is not a directory
    """
    config = config or AnalyzerConfig()
    root = Path(root)
    if not root.exists():
        raise CorpusUnavailableError(f"Corpus root does not exist: {root}")
    if not root.is_dir():
        raise CorpusUnavailableError(f"Corpus root is not a directory: {root}")

    extensions = config.corpus_extensions
    excluded = set(config.exclude_dirs)
    files: list[SourceFile] = []
    descriptors: list[BuildDescriptor] = []
    skipped: list[str] = []

    def on_walk_error(error: OSError) -> None:
        logger.warning(f"Skipping unreadable directory {error.filename}: {error.strerror}")

    for dir_path, dir_names, file_names in os.walk(root, onerror=on_walk_error):
        dir_names[:] = sorted(d for d in dir_names if d not in excluded)
        for file_name in sorted(file_names):
            path = Path(dir_path) / file_name
            relative = path.relative_to(root).as_posix()
            is_descriptor = file_name in DESCRIPTOR_KINDS
            if not is_descriptor and path.suffix.lower() not in extensions:
                continue

            try:
                text = _read_text(path)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable file {relative}: {e}")
                skipped.append(relative)
                continue

            if is_descriptor:
                descriptors.append(BuildDescriptor(relative, text))
            else:
                files.append(SourceFile(relative, text))

    corpus = FileCorpus(
        files=files,
        build_descriptors=descriptors,
        name=name or root.resolve().name,
        skipped=skipped,
    )
    logger.info(
        f"Loaded {len(corpus.files)} files and {len(corpus.build_descriptors)} build descriptors"
    )
    return corpus
