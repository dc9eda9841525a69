"""
Unit tests for running skill metrics.
"""

import pytest

from pathfinder.engine.metrics import MetricAccumulator, SkillMetricsRecorder
from pathfinder.engine.models import StudentProfile


class TestMetricAccumulator:
    def test_empty_snapshot(self):
        snapshot = MetricAccumulator().snapshot()
        assert snapshot.count == 0
        assert snapshot.mean_accuracy == 0.0
        assert snapshot.mean_latency == 0

    def test_mean_and_std(self):
        acc = MetricAccumulator()
        acc.add(1.0, 2000)
        acc.add(0.0, 4000)
        snapshot = acc.snapshot()

        assert snapshot.count == 2
        assert snapshot.mean_accuracy == 0.5
        assert snapshot.std_accuracy == 0.5
        assert snapshot.mean_latency == 3000
        assert snapshot.std_latency == 1000

    def test_constant_samples_have_zero_spread(self):
        acc = MetricAccumulator()
        for _ in range(3):
            acc.add(0.6, 1500)
        snapshot = acc.snapshot()

        assert snapshot.std_accuracy == pytest.approx(0.0)
        assert snapshot.std_latency == 0


class TestSkillMetricsRecorder:
    def test_segments(self):
        recorder = SkillMetricsRecorder()
        girl = StudentProfile(id="a", grade="1", gender="female")
        boy = StudentProfile(id="b", grade="K", gender="male")

        recorder.record("s1", 1.0, 2000, girl)
        recorder.record("s1", 0.6, 3000, boy)
        recorder.record("s1", 0.0, 4000)
        report = recorder.snapshot("s1")

        assert report.overall.count == 3
        assert report.by_gender["female"].count == 1
        assert report.by_gender["male"].mean_latency == 3000
        assert set(report.by_grade) == {"1", "K"}

    def test_missing_segment_fields_are_ignored(self):
        recorder = SkillMetricsRecorder()
        recorder.record("s1", 1.0, 2000, StudentProfile(id="a", grade=None))

        report = recorder.snapshot("s1")
        assert report.by_gender == {}
        assert report.by_grade == {}

    def test_unknown_skill(self):
        recorder = SkillMetricsRecorder()
        assert recorder.snapshot("nope") is None
        recorder.record("s2", 1.0, 100)
        assert recorder.skill_ids() == ["s2"]
