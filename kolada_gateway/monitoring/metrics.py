"""Metrics dataclasses for observability.

Provides dataclasses for tracking:
- Upstream request outcomes (requests, retries, failures)
- Cache performance (hits, misses, coalesced misses)

Usage:
    from kolada_gateway.monitoring.metrics import CacheMetrics

    cm = CacheMetrics(hits=80, misses=20)
    print(f"Hit rate: {cm.hit_rate}%")  # 80.0%
"""

from dataclasses import dataclass


@dataclass
class RequestMetrics:
    """Counters for requests sent to the Kolada API.

    Attributes:
        requests: HTTP attempts issued (retries included)
        retries: Attempts that were retries of a failed attempt
        not_found: Requests normalized from 404 to an empty envelope
        failures: Logical requests that ended in a raised error
    """

    requests: int = 0
    retries: int = 0
    not_found: int = 0
    failures: int = 0

    def to_dict(self) -> dict:
        return {
            "requests": self.requests,
            "retries": self.retries,
            "not_found": self.not_found,
            "failures": self.failures,
        }


@dataclass
class CacheMetrics:
    """Track read-through cache performance.

    Attributes:
        hits: Lookups served from a live entry
        misses: Lookups that invoked the producer
        coalesced: Misses that joined an in-flight producer call instead of
            starting their own
    """

    hits: int = 0
    misses: int = 0
    coalesced: int = 0

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage; coalesced misses count as hits.

        Returns 0.0 if no cache operations have occurred.
        """
        total = self.hits + self.misses + self.coalesced
        return round((self.hits + self.coalesced) / total * 100, 1) if total > 0 else 0.0

    def to_dict(self) -> dict:
        """Export metrics as dictionary for tool responses."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "coalesced": self.coalesced,
            "hit_rate": self.hit_rate,
        }
