"""
AI call budget shared by extraction, classification and narrative drafting.

Every chat-completion request counts against one combined ceiling; the
per-service breakdown is only reported, never enforced separately.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from threading import Lock
from typing import Dict, List, Optional, Tuple

from casepacket.config import Config

logger = logging.getLogger(__name__)

WINDOWS = {
    'calls_last_minute': timedelta(minutes=1),
    'calls_last_hour': timedelta(hours=1),
    'calls_last_day': timedelta(days=1),
}


@dataclass(frozen=True)
class CallRecord:
    service: str
    at: datetime = field(default_factory=datetime.now)


class RateLimiter:
    """Combined call ceiling with a rolling log of recorded calls."""

    def __init__(self, max_total_calls: Optional[int] = None):
        self.max_total_calls = Config.MAX_TOTAL_CALLS if max_total_calls is None else max_total_calls
        self._calls: List[CallRecord] = []
        self._counts: Counter = Counter()
        self._lock = Lock()
        self.started_at = datetime.now()

    @property
    def used(self) -> int:
        return sum(self._counts.values())

    def can_make_call(self, service: str) -> Tuple[bool, str]:
        """
        Returns:
            (allowed, reason). Always allowed when ENABLE_RATE_LIMITING is off.
        """
        if not Config.ENABLE_RATE_LIMITING:
            return True, "OK"
        with self._lock:
            used = self.used
        if used >= self.max_total_calls:
            logger.warning(f"Refusing {service} call: budget of {self.max_total_calls} spent")
            return False, f"AI call limit reached: {used}/{self.max_total_calls} calls used this session"
        return True, "OK"

    def record_call(self, service: str):
        with self._lock:
            self._calls.append(CallRecord(service))
            self._counts[service] += 1
            used = self.used
        logger.info(f"AI call #{used}/{self.max_total_calls} ({service})")

    def get_stats(self, service: Optional[str] = None) -> Dict:
        """Combined usage, or windowed counts for one service when ``service`` is given."""
        now = datetime.now()
        with self._lock:
            # Older than the widest window is never reported again
            horizon = now - max(WINDOWS.values())
            self._calls = [c for c in self._calls if c.at > horizon]

            if service:
                stamps = [c.at for c in self._calls if c.service == service]
                stats = {'service': service, 'total_calls': self._counts[service]}
                for key, span in WINDOWS.items():
                    stats[key] = sum(1 for at in stamps if at > now - span)
                return stats

            used = self.used
            return {
                'total_calls': used,
                'max_calls': self.max_total_calls,
                'remaining_calls': max(0, self.max_total_calls - used),
                'calls_by_service': dict(self._counts),
                'rate_limiting_enabled': Config.ENABLE_RATE_LIMITING,
                'session_duration': (now - self.started_at).total_seconds(),
            }

    def reset(self):
        with self._lock:
            self._calls.clear()
            self._counts.clear()
            self.started_at = datetime.now()
        logger.info("AI call budget reset")
