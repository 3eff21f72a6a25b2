"""Stage profiling for the knockout pipeline."""

import time
import threading
from contextlib import contextmanager
from typing import Dict, Any, Iterator

import psutil


class StageProfiler:
    """Record wall time and resident memory change per pipeline stage."""

    def __init__(self):
        self.metrics: Dict[str, Dict[str, Any]] = {}
        self.process = psutil.Process()
        self._lock = threading.Lock()

    @contextmanager
    def measure(self, name: str) -> Iterator[None]:
        """Time the enclosed block and accumulate it under ``name``."""
        start_time = time.perf_counter()
        start_memory = self.process.memory_info().rss
        try:
            yield
        finally:
            duration = time.perf_counter() - start_time
            end_memory = self.process.memory_info().rss
            self._record(name, duration, end_memory - start_memory, end_memory)

    def _record(self, name: str, duration: float, memory_delta: int, end_memory: int) -> None:
        with self._lock:
            existing = self.metrics.get(name, {
                'total_duration': 0.0,
                'peak_memory': end_memory,
                'calls': 0
            })
            self.metrics[name] = {
                'duration': duration,
                'total_duration': existing['total_duration'] + duration,
                'memory_delta': memory_delta,
                'peak_memory': max(existing['peak_memory'], end_memory),
                'calls': existing['calls'] + 1
            }

    def get_summary(self) -> Dict[str, Any]:
        """Get performance summary."""
        if not self.metrics:
            return {
                'total_time': 0.0,
                'peak_memory_mb': 0.0,
                'by_stage': {}
            }

        return {
            'total_time': sum(m['total_duration'] for m in self.metrics.values()),
            'peak_memory_mb': max(m['peak_memory'] for m in self.metrics.values()) / (1024 * 1024),
            'by_stage': dict(self.metrics)
        }

    def print_summary(self, title: str = "Stage Timings"):
        """Print formatted performance summary."""
        summary = self.get_summary()

        print(f"\n📊 {title}")
        print("=" * len(title) + "===")
        print(f"Total Time: {summary['total_time']:.3f}s")
        print(f"Peak Memory: {summary['peak_memory_mb']:.1f}MB")

        if summary['by_stage']:
            print("By Stage:")
            for name, metrics in summary['by_stage'].items():
                print(f"  {name}: {metrics['total_duration'] * 1000:.1f}ms"
                      f" ({metrics['calls']} calls,"
                      f" {metrics['memory_delta'] / (1024 * 1024):+.1f}MB)")
