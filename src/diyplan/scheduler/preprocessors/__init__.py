"""Pre-processors run before worker assignment."""

from .buffers import DurationBufferPreProcessor
from .critical_path import CriticalPathAnalyzer

__all__ = ["CriticalPathAnalyzer", "DurationBufferPreProcessor"]
