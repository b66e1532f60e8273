"""Confidence-based duration buffers."""

from ..config import SchedulingConfig
from ..core import BufferedDuration, Task


class DurationBufferPreProcessor:
    """Pads task durations according to estimate confidence and risk tolerance.

    A task estimated with low confidence gets a larger buffer. The buffer from
    the confidence table is scaled by the risk tolerance multiplier, so a
    conservative plan pads more than an aggressive one.
    """

    def __init__(self, config: SchedulingConfig | None = None):
        self.config = config or SchedulingConfig()

    def buffer_fraction(self, confidence: float | None) -> float:
        """Get the fractional buffer for a confidence value (before risk scaling)."""
        buffers = self.config.buffers
        value = buffers.default_confidence if confidence is None else confidence
        for threshold in sorted(buffers.thresholds, reverse=True):
            if value >= threshold:
                return buffers.thresholds[threshold]
        return 0.0

    def process(self, tasks: list[Task]) -> dict[str, BufferedDuration]:
        """Compute buffered durations.

        Args:
            tasks: Tasks to pad

        Returns:
            Mapping of task id to buffered duration
        """
        if not self.config.buffers.enabled:
            return {task.id: BufferedDuration(task.duration_hours, 0.0) for task in tasks}

        multiplier = self.config.buffers.risk_multipliers.get(self.config.risk_tolerance, 1.0)
        result: dict[str, BufferedDuration] = {}
        for task in tasks:
            fraction = self.buffer_fraction(task.confidence) * multiplier
            result[task.id] = BufferedDuration(
                hours=task.duration_hours * (1 + fraction),
                buffer_percent=fraction * 100,
            )
        return result
