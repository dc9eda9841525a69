"""
Skill Metric Sampling.

Running accuracy/latency statistics per skill, overall and split by learner
segment (gender, grade). Sums and sums of squares only, so memory stays
constant per segment.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field

from pathfinder.engine.memory import round_half_up
from pathfinder.engine.models import StudentProfile


@dataclass
class MetricAccumulator:
    count: int = 0
    accuracy_sum: float = 0.0
    accuracy_sq_sum: float = 0.0
    latency_sum: float = 0.0
    latency_sq_sum: float = 0.0

    def add(self, accuracy: float, latency_ms: float) -> None:
        self.count += 1
        self.accuracy_sum += accuracy
        self.accuracy_sq_sum += accuracy * accuracy
        self.latency_sum += latency_ms
        self.latency_sq_sum += latency_ms * latency_ms

    def snapshot(self) -> MetricSnapshot:
        if self.count == 0:
            return MetricSnapshot(count=0, mean_accuracy=0.0, std_accuracy=0.0, mean_latency=0, std_latency=0)

        mean_accuracy = self.accuracy_sum / self.count
        var_accuracy = max(0.0, self.accuracy_sq_sum / self.count - mean_accuracy**2)
        mean_latency = self.latency_sum / self.count
        var_latency = max(0.0, self.latency_sq_sum / self.count - mean_latency**2)

        return MetricSnapshot(
            count=self.count,
            mean_accuracy=round(mean_accuracy, 3),
            std_accuracy=round(math.sqrt(var_accuracy), 3),
            mean_latency=round_half_up(mean_latency),
            std_latency=round_half_up(math.sqrt(var_latency)),
        )


@dataclass
class MetricSnapshot:
    count: int
    mean_accuracy: float
    std_accuracy: float
    mean_latency: int
    std_latency: int


@dataclass
class SkillMetrics:
    overall: MetricAccumulator = field(default_factory=MetricAccumulator)
    by_gender: dict[str, MetricAccumulator] = field(default_factory=dict)
    by_grade: dict[str, MetricAccumulator] = field(default_factory=dict)


@dataclass
class SkillMetricReport:
    overall: MetricSnapshot
    by_gender: dict[str, MetricSnapshot]
    by_grade: dict[str, MetricSnapshot]


class SkillMetricsRecorder:
    """Process-local metric accumulators keyed by skill id."""

    def __init__(self):
        self._metrics: dict[str, SkillMetrics] = {}

    def record(
        self,
        skill_id: str,
        success: float,
        latency_ms: int,
        profile: StudentProfile | None = None,
    ) -> None:
        metrics = self._metrics.setdefault(skill_id, SkillMetrics())
        metrics.overall.add(success, latency_ms)

        if profile is None:
            return
        if profile.gender:
            metrics.by_gender.setdefault(profile.gender, MetricAccumulator()).add(success, latency_ms)
        if profile.grade:
            metrics.by_grade.setdefault(profile.grade, MetricAccumulator()).add(success, latency_ms)

    def snapshot(self, skill_id: str) -> SkillMetricReport | None:
        metrics = self._metrics.get(skill_id)
        if metrics is None:
            return None
        return SkillMetricReport(
            overall=metrics.overall.snapshot(),
            by_gender={key: acc.snapshot() for key, acc in metrics.by_gender.items()},
            by_grade={key: acc.snapshot() for key, acc in metrics.by_grade.items()},
        )

    def skill_ids(self) -> list[str]:
        return list(self._metrics)
