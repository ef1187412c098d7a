import time
from contextlib import contextmanager
from typing import Dict, List, Optional
from core.logger import get_logger

logger = get_logger(__name__)


class PerformanceMonitor:
    """Times the phases of a single run and logs a summary at the end"""

    def __init__(self):
        self.phases: Dict[str, List[float]] = {}
        self.failures: Dict[str, int] = {}

    @contextmanager
    def measure(self, phase: str, context: Optional[Dict] = None):
        """
        Context manager to measure a phase.

        Usage:
            with monitor.measure("listing_fetch", {"url": url}):
                html = await fetcher.fetch(session, url)
        """
        start_time = time.monotonic()
        failed = False

        try:
            yield
        except Exception:
            failed = True
            self.failures[phase] = self.failures.get(phase, 0) + 1
            raise
        finally:
            duration = time.monotonic() - start_time
            self.phases.setdefault(phase, []).append(duration)

            if failed:
                logger.warning(f"{phase} failed", duration=duration, context=context or {})
            else:
                logger.debug(
                    f"{phase} completed",
                    duration_ms=duration * 1000,
                    context=context or {},
                )

    def get_stats(self, phase: str) -> Dict:
        durations = self.phases.get(phase)
        if not durations:
            return {}

        return {
            "phase": phase,
            "count": len(durations),
            "failure_count": self.failures.get(phase, 0),
            "total_ms": sum(durations) * 1000,
            "max_ms": max(durations) * 1000,
        }

    def log_summary(self):
        if not self.phases:
            return

        summary = ", ".join(
            f"{stats['phase']}={stats['total_ms']:.0f}ms"
            + (f" ({stats['failure_count']} failed)" if stats["failure_count"] else "")
            for stats in (self.get_stats(phase) for phase in self.phases)
        )
        logger.info(f"[RUNNER] Timings: {summary}")
