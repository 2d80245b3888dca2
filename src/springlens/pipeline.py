"""Analysis pipeline orchestrator.

Runs the analyzers over one corpus in dependency order and collects their
output into a single AnalysisResult:

1. Class fact extraction (per file)
2. NameIndex snapshot
3. Relationships, security findings, metrics, microservice map
4. Data-flow graph (needs module names back-filled into the facts)
"""

import logging
import threading
import uuid

from springlens.analyzers import (
    AnalysisCancelledError,
    AnalysisComponent,
    ClassFactExtractor,
    DataFlowGrapher,
    MetricsAggregator,
    MicroserviceMapper,
    NameIndex,
    RelationshipBuilder,
    SecurityScanner,
    SpringLensError,
)
from springlens.analyzers.base import parallel_map
from springlens.config import SpringLensConfig
from springlens.models import AnalysisError, AnalysisResult, AnalysisStatus, FileCorpus
from springlens.models.corpus import SourceFile
from springlens.models.facts import ClassFact
from springlens.utils.logging import get_logger

logger = get_logger(__name__)


class AnalysisPipeline:
    """Orchestrates all analyzers for one run.

    The pipeline is all-or-nothing: per-file failures are recorded on the
    result as recoverable errors, while a run-level failure or cancellation
    propagates to the caller and no completed result is returned.
    """

    def __init__(self, config: SpringLensConfig | None = None) -> None:
        """Initialize the analysis pipeline.

        Args:
            config: SpringLens configuration (uses defaults if None)
        """
        self.config = config or SpringLensConfig()

    def run(
        self,
        corpus: FileCorpus,
        run_id: str | None = None,
        cancel: threading.Event | None = None,
    ) -> AnalysisResult:
        """Execute the full analysis pipeline.

        Args:
            corpus: Corpus to analyze
            run_id: Identifier for the run (generated if None)
            cancel: Event polled between file units; setting it aborts the run

        Returns:
            AnalysisResult with status COMPLETED

        Raises:
            AnalysisCancelledError: If cancel is set during the run
            CorpusUnavailableError: If the corpus cannot be read
            ModuleDiscoveryError: If module partitioning fails
        """
        settings = self.config.analyzer
        result = AnalysisResult(
            run_id=run_id or uuid.uuid4().hex[:12],
            corpus_name=corpus.name,
            status=AnalysisStatus.RUNNING,
            top_finding_limit=settings.top_findings,
        )
        logger.structured(
            logging.INFO,
            f"Starting analysis of {corpus.name}",
            run_id=result.run_id,
            files=len(corpus),
            build_descriptors=len(corpus.build_descriptors),
        )

        for path in corpus.skipped:
            result.add_error(
                AnalysisError(
                    component="loader",
                    message="File could not be read or decoded",
                    file_path=path,
                )
            )

        try:
            self._run_extraction(corpus, result, cancel)
            index = NameIndex(result.classes)
            if index.duplicates:
                logger.debug(f"{len(index.duplicates)} duplicate class name(s) ignored")

            self._run_relationships(corpus, index, result, cancel)
            self._run_security(corpus, result, cancel)
            self._run_metrics(corpus, result, cancel)
            self._run_microservices(corpus, result, cancel)
            self._run_dataflow(result)

        except AnalysisCancelledError:
            logger.warning(f"Analysis {result.run_id} cancelled")
            raise
        except SpringLensError as e:
            logger.error(f"Analysis {result.run_id} failed: {e}")
            raise

        result.status = AnalysisStatus.COMPLETED
        logger.structured(
            logging.INFO,
            f"Analysis complete: {result.status.value} ({len(result.errors)} errors)",
            run_id=result.run_id,
            classes=len(result.classes),
            endpoints=len(result.endpoints),
            relationships=len(result.relationships),
            modules=len(result.modules),
            communications=len(result.communications),
            findings=len(result.findings),
            errors=len(result.errors),
        )
        return result

    def _run_extraction(
        self,
        corpus: FileCorpus,
        result: AnalysisResult,
        cancel: threading.Event | None,
    ) -> None:
        """Extract one ClassFact per Java file."""
        logger.info("Stage 1: Extracting class facts")
        settings = self.config.analyzer
        extractor = ClassFactExtractor(
            max_path_length=settings.max_endpoint_path_length,
            lookahead_lines=settings.lookahead_lines,
        )
        stage = AnalysisComponent("extraction", cancel)

        def extract(source_file: SourceFile) -> ClassFact | None:
            return stage.guarded(
                "class fact extraction",
                extractor.extract,
                source_file.relative_path,
                source_file.text,
                file_path=source_file.relative_path,
            )

        facts = parallel_map(extract, corpus.java_files(), settings.workers, cancel)
        result.classes = [fact for fact in facts if fact is not None]
        result.errors.extend(stage.errors)
        logger.info(
            f"Extracted {len(result.classes)} classes, {len(result.endpoints)} endpoints"
        )

    def _run_relationships(
        self,
        corpus: FileCorpus,
        index: NameIndex,
        result: AnalysisResult,
        cancel: threading.Event | None,
    ) -> None:
        logger.info("Stage 2: Building relationships")
        builder = RelationshipBuilder(
            index,
            lookahead_lines=self.config.analyzer.lookahead_lines,
            workers=self.config.analyzer.workers,
            cancel=cancel,
        )
        result.relationships = builder.build(corpus)
        result.errors.extend(builder.errors)

    def _run_security(
        self,
        corpus: FileCorpus,
        result: AnalysisResult,
        cancel: threading.Event | None,
    ) -> None:
        logger.info("Stage 3: Scanning for security issues")
        scanner = SecurityScanner(workers=self.config.analyzer.workers, cancel=cancel)
        result.findings = scanner.scan(corpus)
        result.errors.extend(scanner.errors)

    def _run_metrics(
        self,
        corpus: FileCorpus,
        result: AnalysisResult,
        cancel: threading.Event | None,
    ) -> None:
        logger.info("Stage 4: Aggregating metrics")
        aggregator = MetricsAggregator(workers=self.config.analyzer.workers, cancel=cancel)
        result.metrics = aggregator.aggregate(corpus, result.classes)
        result.errors.extend(aggregator.errors)

    def _run_microservices(
        self,
        corpus: FileCorpus,
        result: AnalysisResult,
        cancel: threading.Event | None,
    ) -> None:
        """Map modules and communications; back-fills module names into facts."""
        logger.info("Stage 5: Mapping microservices")
        mapper = MicroserviceMapper(
            max_walk_depth=self.config.analyzer.max_walk_depth,
            workers=self.config.analyzer.workers,
            cancel=cancel,
        )
        service_map = mapper.map(corpus, result.classes)
        result.modules = service_map.modules
        result.communications = service_map.communications
        result.dependencies = service_map.dependencies
        result.errors.extend(mapper.errors)

    def _run_dataflow(self, result: AnalysisResult) -> None:
        logger.info("Stage 6: Building data-flow graph")
        grapher = DataFlowGrapher(max_flow_paths=self.config.analyzer.max_flow_paths)
        result.data_flow = grapher.build(result.classes)
