"""
Pipeline Monitoring
===================

Per-stage timing, item/byte counters and memory sampling for a build run.
"""

import json
import statistics
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Any
import logging

import psutil

logger = logging.getLogger(__name__)


@dataclass
class StageMetrics:
    """Metrics for a pipeline stage"""
    stage_name: str
    start_time: float
    end_time: Optional[float] = None
    unit: Optional[str] = None
    items_processed: int = 0
    bytes_processed: int = 0
    errors: int = 0
    memory_start: int = 0
    memory_end: int = 0

    @property
    def duration(self) -> float:
        if self.end_time:
            return self.end_time - self.start_time
        return time.time() - self.start_time

    @property
    def throughput_items_per_sec(self) -> float:
        if self.duration > 0:
            return self.items_processed / self.duration
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'stage': self.stage_name,
            'unit': self.unit,
            'duration': self.duration,
            'items_processed': self.items_processed,
            'bytes_processed': self.bytes_processed,
            'errors': self.errors,
            'memory_start': self.memory_start,
            'memory_end': self.memory_end,
        }


class PipelineMonitor:
    """Collects stage metrics for one build"""

    def __init__(self):
        self.stage_metrics: Dict[str, StageMetrics] = {}
        self.active_stages: Dict[str, StageMetrics] = {}
        self.errors: List[Dict[str, Any]] = []
        self.process = psutil.Process()
        self._counter = 0

    def _memory_usage(self) -> int:
        return self.process.memory_info().rss

    def stage_start(self, stage_name: str, unit: Optional[str] = None) -> str:
        """Mark stage start"""
        self._counter += 1
        stage_id = f"{stage_name}_{self._counter}"

        stage_metrics = StageMetrics(
            stage_name=stage_name,
            start_time=time.time(),
            unit=unit,
            memory_start=self._memory_usage()
        )

        self.active_stages[stage_id] = stage_metrics
        self.stage_metrics[stage_id] = stage_metrics
        return stage_id

    def stage_end(self, stage_id: str):
        """Mark stage completion"""
        stage = self.active_stages.pop(stage_id, None)
        if stage is None:
            return
        stage.end_time = time.time()
        stage.memory_end = self._memory_usage()
        logger.debug(f"{stage.stage_name} finished in {stage.duration:.3f}s "
                     f"({stage.items_processed} items, {stage.bytes_processed} bytes)")

    def update_stage_progress(self,
                              stage_id: str,
                              items: int = 0,
                              bytes_count: int = 0) -> None:
        """Update stage progress counters"""
        stage = self.active_stages.get(stage_id)
        if stage:
            stage.items_processed += items
            stage.bytes_processed += bytes_count

    def record_error(self, stage_id: str, error: Exception):
        """Record stage error"""
        stage = self.active_stages.get(stage_id)
        if stage:
            stage.errors += 1
        self.errors.append({
            'stage_id': stage_id,
            'error_type': type(error).__name__,
            'error_msg': str(error)
        })

    def get_stage_summary(self, stage_name: Optional[str] = None) -> Dict[str, Any]:
        """Get summary statistics for stages"""
        stages = [s for s in self.stage_metrics.values()
                  if stage_name is None or s.stage_name == stage_name]

        if not stages:
            return {}

        durations = [s.duration for s in stages if s.end_time]

        return {
            'count': len(stages),
            'avg_duration': statistics.mean(durations) if durations else 0,
            'min_duration': min(durations) if durations else 0,
            'max_duration': max(durations) if durations else 0,
            'total_duration': sum(durations),
            'total_items': sum(s.items_processed for s in stages),
            'total_bytes': sum(s.bytes_processed for s in stages),
            'total_errors': sum(s.errors for s in stages)
        }

    def get_report(self) -> Dict[str, Any]:
        stage_names = sorted({s.stage_name for s in self.stage_metrics.values()})
        return {
            'stages': {name: self.get_stage_summary(name) for name in stage_names},
            'timeline': [s.to_dict() for s in self.stage_metrics.values()],
            'errors': list(self.errors),
        }

    def write_report(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.get_report(), f, indent=2)
        logger.info(f"Wrote build report to {path}")
        return path
