"""
Content Build Pipeline
======================

Turns a folder-per-unit source tree into a staged output tree with a
manifest per unit and a global index:

    INIT -> CLEAN_OUTPUT -> DISCOVER_UNITS -> (PROCESS_UNIT)*
         -> WRITE_GLOBAL_MANIFEST -> COMPRESS_GLOBAL_MANIFEST -> DONE

Every stage function takes a BuildState and returns the next one. Any
failure aborts the run; the next run starts by wiping the output root.
"""

import logging
import os
import shutil
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Any

from tqdm import tqdm

from base_classes import Unit, UnitMetadata, CompressionReport, Compressor
from build_errors import BuildError, FilesystemError
from pipeline_configs import PipelineConfig
from pipeline_monitoring import PipelineMonitor
from security_validation import PathValidator, SecurityConfig
from pipeline.stages.discovery import UnitDiscoverer
from pipeline.stages.metadata import MetadataLoader
from pipeline.stages.staging import StagingCopier
from pipeline.stages.manifest import ManifestWriter
from pipeline.stages.compression import CompressionPass, create_compressor

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    """Driver stages, including the PROCESS_UNIT sub-sequence"""
    INIT = "INIT"
    CLEAN_OUTPUT = "CLEAN_OUTPUT"
    DISCOVER_UNITS = "DISCOVER_UNITS"
    PROCESS_UNIT = "PROCESS_UNIT"
    LOAD_METADATA = "LOAD_METADATA"
    STAGE_COPY = "STAGE_COPY"
    WRITE_UNIT_MANIFEST = "WRITE_UNIT_MANIFEST"
    COMPRESS_UNIT_OUTPUT = "COMPRESS_UNIT_OUTPUT"
    WRITE_GLOBAL_MANIFEST = "WRITE_GLOBAL_MANIFEST"
    COMPRESS_GLOBAL_MANIFEST = "COMPRESS_GLOBAL_MANIFEST"
    DONE = "DONE"
    ABORTED = "ABORTED"


def iso_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix"""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime('%Y-%m-%dT%H:%M:%S.') + f"{moment.microsecond // 1000:03d}Z"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BuildState:
    """Accumulator threaded through the stage functions"""
    stage: PipelineStage = PipelineStage.INIT
    started_at: Optional[str] = None
    candidates: List[str] = field(default_factory=list)
    units: Dict[str, Unit] = field(default_factory=dict)
    contents: List[UnitMetadata] = field(default_factory=list)
    compression: CompressionReport = field(default_factory=CompressionReport)
    manifest_path: Optional[Path] = None
    failed_stage: Optional[str] = None
    failed_unit: Optional[str] = None

    def advance(self, stage: PipelineStage, **changes: Any) -> 'BuildState':
        return replace(self, stage=stage, **changes)


@dataclass
class BuildResult:
    """Summary of a successful build"""
    output_root: Path
    manifest_path: Path
    contents: List[UnitMetadata]
    compression: CompressionReport
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def unit_count(self) -> int:
        return len(self.contents)


def _tree_size(path: Path) -> int:
    total = 0
    for dirpath, _, filenames in os.walk(path):
        for filename in filenames:
            try:
                total += os.lstat(os.path.join(dirpath, filename)).st_size
            except OSError:
                continue
    return total


class ContentBuildPipeline:
    """Main orchestrator for the content build"""

    def __init__(self,
                 config: PipelineConfig,
                 compressor: Optional[Compressor] = None,
                 monitor: Optional[PipelineMonitor] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 security_config: Optional[SecurityConfig] = None):
        self.config = config
        self.clock = clock or _utc_now
        self.monitor = monitor or PipelineMonitor()
        self.path_validator = PathValidator(security_config)

        self.discoverer = UnitDiscoverer(
            config.source_root,
            metadata_filenames=config.metadata_filenames,
            reserved_prefix=config.reserved_prefix,
            sort_units=config.sort_units,
            manifest_filename=config.manifest_filename,
        )
        self.loader = MetadataLoader()
        self.copier = StagingCopier()
        self.writer = ManifestWriter(config.manifest_filename)
        self.compression = CompressionPass(
            compressor if compressor is not None else create_compressor(config)
        )
        self.last_state: Optional[BuildState] = None

    @property
    def output_root(self) -> Path:
        return self.config.output_root

    @contextmanager
    def _stage(self, stage: PipelineStage, unit: Optional[str] = None) -> Iterator[str]:
        """Time a stage and tag any escaping error with stage and unit"""
        stage_id = self.monitor.stage_start(stage.value, unit=unit)
        try:
            yield stage_id
        except BuildError as e:
            e.stage = e.stage or stage.value
            e.unit = e.unit or unit
            self.monitor.record_error(stage_id, e)
            raise
        except OSError as e:
            error = FilesystemError(str(e), unit=unit, stage=stage.value)
            self.monitor.record_error(stage_id, error)
            raise error from e
        except Exception as e:
            error = BuildError(f"{type(e).__name__}: {e}", unit=unit, stage=stage.value)
            self.monitor.record_error(stage_id, error)
            raise error from e
        finally:
            self.monitor.stage_end(stage_id)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def init_state(self) -> BuildState:
        started_at = iso_timestamp(self.clock()) if self.config.include_timestamps else None
        return BuildState(stage=PipelineStage.INIT, started_at=started_at)

    def clean_output(self, state: BuildState) -> BuildState:
        logger.info(f"Stage 1: Cleaning output root {self.output_root}")
        with self._stage(PipelineStage.CLEAN_OUTPUT):
            source = self.path_validator.validate_source_root(self.config.source_root)
            output = self.path_validator.validate_output_root(
                source, self.output_root, self.config.reserved_prefix
            )
            if self.config.report_path is not None:
                self.path_validator.validate_report_path(self.config.report_path, output)

            if output.exists():
                logger.debug(f"rm -rf {output}")
                shutil.rmtree(output)
            output.mkdir(parents=True)
        return state.advance(PipelineStage.CLEAN_OUTPUT)

    def discover_units(self, state: BuildState) -> BuildState:
        logger.info("Stage 2: Discovering content units...")
        with self._stage(PipelineStage.DISCOVER_UNITS) as stage_id:
            candidates = self.discoverer.list_candidates()
            units: Dict[str, Unit] = {}
            if self.config.validate_all_units_first:
                for name in candidates:
                    units[name] = self.discoverer.make_unit(name)
            self.monitor.update_stage_progress(stage_id, items=len(candidates))
        logger.info(f"Found {len(candidates)} content units")
        return state.advance(PipelineStage.DISCOVER_UNITS, candidates=candidates, units=units)

    def _resolve_unit(self, state: BuildState, folder_name: str) -> Unit:
        unit = state.units.get(folder_name)
        if unit is None:
            with self._stage(PipelineStage.DISCOVER_UNITS, unit=folder_name):
                unit = self.discoverer.make_unit(folder_name)
        return unit

    def process_unit(self, state: BuildState, folder_name: str) -> BuildState:
        """LOAD_METADATA -> STAGE_COPY -> WRITE_UNIT_MANIFEST -> COMPRESS_UNIT_OUTPUT"""
        logger.info(f"Stage 3: Processing unit {folder_name}")
        unit = self._resolve_unit(state, folder_name)
        destination = self.output_root / unit.folder_name

        with self._stage(PipelineStage.LOAD_METADATA, unit=folder_name):
            document = self.loader.load(unit.metadata_path, unit=folder_name)
            metadata = UnitMetadata.for_unit(
                unit,
                document,
                url_prefix=self.config.url_prefix,
                index_document=self.config.index_document,
                timestamp=state.started_at,
            )

        with self._stage(PipelineStage.STAGE_COPY, unit=folder_name) as stage_id:
            self.copier.stage(unit, destination)
            self.monitor.update_stage_progress(stage_id, items=1, bytes_count=_tree_size(destination))

        with self._stage(PipelineStage.WRITE_UNIT_MANIFEST, unit=folder_name):
            self.writer.write_unit_manifest(metadata, destination)

        with self._stage(PipelineStage.COMPRESS_UNIT_OUTPUT, unit=folder_name) as stage_id:
            report = self.compression.run_directory(destination)
            self.monitor.update_stage_progress(
                stage_id, items=report.files_compressed, bytes_count=report.bytes_in
            )

        return state.advance(
            PipelineStage.PROCESS_UNIT,
            units={**state.units, folder_name: unit},
            contents=state.contents + [metadata],
            compression=state.compression.merge(report),
        )

    def write_global_manifest(self, state: BuildState) -> BuildState:
        logger.info("Stage 4: Writing global manifest...")
        with self._stage(PipelineStage.WRITE_GLOBAL_MANIFEST) as stage_id:
            path = self.writer.write_global_manifest(state.contents, self.output_root)
            self.monitor.update_stage_progress(stage_id, items=len(state.contents))
        return state.advance(PipelineStage.WRITE_GLOBAL_MANIFEST, manifest_path=path)

    def compress_global_manifest(self, state: BuildState) -> BuildState:
        logger.info("Stage 5: Compressing global manifest...")
        with self._stage(PipelineStage.COMPRESS_GLOBAL_MANIFEST):
            report = self.compression.run_file(state.manifest_path)
        return state.advance(
            PipelineStage.COMPRESS_GLOBAL_MANIFEST,
            compression=state.compression.merge(report),
        )

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def _abort(self, state: BuildState, error: BuildError) -> BuildState:
        return state.advance(
            PipelineStage.ABORTED,
            failed_stage=error.stage,
            failed_unit=error.unit,
        )

    def run(self) -> BuildResult:
        """Run every stage in order; raises BuildError on the first failure"""
        logger.info(f"Building {self.config.source_root} -> {self.output_root}")
        logger.debug(f"Configuration: {self.config.to_dict()}")
        state = self.init_state()
        self.last_state = state
        try:
            state = self.clean_output(state)
            self.last_state = state
            state = self.discover_units(state)
            self.last_state = state

            for folder_name in tqdm(state.candidates,
                                    desc="Building units",
                                    unit="unit",
                                    disable=not self.config.show_progress):
                state = self.process_unit(state, folder_name)
                self.last_state = state

            state = self.write_global_manifest(state)
            self.last_state = state
            state = self.compress_global_manifest(state)
        except BuildError as e:
            self.last_state = self._abort(state, e)
            logger.error(f"Build aborted: {e}")
            raise
        finally:
            report_path = self.config.report_path
            if report_path is not None and not report_path.is_relative_to(self.output_root):
                try:
                    self.monitor.write_report(report_path)
                except OSError as e:
                    logger.warning(f"Could not write build report: {e}")

        state = state.advance(PipelineStage.DONE)
        self.last_state = state
        logger.info(f"Build complete: {len(state.contents)} units, "
                    f"{state.compression.files_compressed} files compressed")

        return BuildResult(
            output_root=self.output_root,
            manifest_path=state.manifest_path,
            contents=list(state.contents),
            compression=state.compression,
            metrics=self.monitor.get_report()['stages'],
        )


def build_content(config: Optional[PipelineConfig] = None, **kwargs) -> BuildResult:
    """
    Convenience function for a one-shot build.

    Args:
        config: Pipeline configuration (defaults to the current directory)
        **kwargs: Additional arguments passed to ContentBuildPipeline

    Returns:
        BuildResult for the finished run
    """
    pipeline = ContentBuildPipeline(config or PipelineConfig(), **kwargs)
    return pipeline.run()
