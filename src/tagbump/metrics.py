"""Prometheus metrics helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from prometheus_client import CollectorRegistry, Counter, Histogram, write_to_textfile


@dataclass
class ReleaseMetrics:
    """Encapsulate Prometheus metrics with deterministic registry usage."""

    registry: CollectorRegistry = field(default_factory=CollectorRegistry)

    def __post_init__(self) -> None:
        self.release_attempts_total = Counter(
            "release_attempts_total",
            "Total release attempts.",
            registry=self.registry,
        )
        self.release_failures_total = Counter(
            "release_failures_total",
            "Aborted releases by state and error kind.",
            labelnames=("state", "kind"),
            registry=self.registry,
        )
        self.release_commands_total = Counter(
            "release_commands_total",
            "External commands run during releases.",
            labelnames=("program", "outcome"),
            registry=self.registry,
        )
        self.release_duration_seconds = Histogram(
            "release_duration_seconds",
            "Release duration in seconds.",
            registry=self.registry,
            buckets=(0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0),
        )

    def record_attempt(self) -> None:
        """Increment attempt counter."""
        self.release_attempts_total.inc()

    def record_failure(self, state: str, kind: str) -> None:
        self.release_failures_total.labels(state=state, kind=kind).inc()

    def record_command(self, program: str, outcome: str) -> None:
        self.release_commands_total.labels(program=program, outcome=outcome).inc()

    def observe_duration(self, seconds: float) -> None:
        """Observe duration."""
        self.release_duration_seconds.observe(seconds)

    def value(self, name: str, labels: dict[str, str] | None = None) -> float:
        """Return a sample value from the registry, 0.0 when absent."""
        sample = self.registry.get_sample_value(name, labels or {})
        return sample or 0.0

    def write(self, path: Path) -> None:
        """Dump the registry in the Prometheus text format."""
        path.parent.mkdir(parents=True, exist_ok=True)
        write_to_textfile(str(path), self.registry)


__all__ = ["ReleaseMetrics"]
