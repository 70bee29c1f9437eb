"""Suggestion engine metrics tracking."""

from collections import Counter, deque

from models.metrics import MetricsSnapshot

# Maximum evaluation times to keep for averaging
MAX_RESPONSE_TIMES = 1000


def _ratio(part: int, whole: int) -> float:
    """Ratio rounded to two decimals, 0 for an empty whole."""
    return round((part / whole) * 100) / 100 if whole > 0 else 0


class SuggestionMetrics:
    """
    Tracks the suggestion lifecycle for one or more coordinators.

    Evaluations are counted by the source that decided their outcome;
    published suggestions are later resolved by the user as accepted or
    dismissed, which gives the acceptance rate per source.
    """

    def __init__(self):
        self.reset()

    def record_evaluation(
        self,
        source: str,
        response_time_ms: float,
        cache_hit: bool,
        error: bool,
    ) -> None:
        """
        Record a finished evaluation.

        Args:
            source: What decided the outcome ("cache", "heuristic", "generative" or "none")
            response_time_ms: How long the evaluation took in milliseconds
            cache_hit: Whether the suggestion was served from cache
            error: Whether the evaluation ended with a backend error
        """
        self._evaluations[source] += 1
        if cache_hit:
            self._cache_hits += 1
        if error:
            self._error_count += 1
        self._response_times.append(response_time_ms)

    def record_discarded(self) -> None:
        """Record a result dropped because its request was superseded."""
        self._discarded_count += 1

    def record_accepted(self, source: str) -> None:
        """Record that the user took a suggestion produced by `source`."""
        self._accepted[source] += 1

    def record_dismissed(self) -> None:
        """Record that the user dismissed a visible suggestion."""
        self._dismissed_count += 1

    def get_metrics(self) -> MetricsSnapshot:
        """Get a snapshot of current metrics."""
        total = sum(self._evaluations.values())
        accepted = sum(self._accepted.values())
        avg_response_time_ms = (
            round(sum(self._response_times) / len(self._response_times))
            if self._response_times
            else 0
        )

        return MetricsSnapshot(
            totalEvaluations=total,
            cacheHits=self._cache_hits,
            cacheHitRate=_ratio(self._cache_hits, total),
            avgResponseTimeMs=avg_response_time_ms,
            evaluationsBySource=dict(self._evaluations),
            errorCount=self._error_count,
            discardedCount=self._discarded_count,
            acceptedCount=accepted,
            dismissedCount=self._dismissed_count,
            acceptanceRate=_ratio(accepted, accepted + self._dismissed_count),
            acceptedBySource=dict(self._accepted),
        )

    def reset(self) -> None:
        """Reset all metrics."""
        self._evaluations: Counter[str] = Counter()
        self._accepted: Counter[str] = Counter()
        self._response_times: deque[float] = deque(maxlen=MAX_RESPONSE_TIMES)
        self._cache_hits = 0
        self._error_count = 0
        self._discarded_count = 0
        self._dismissed_count = 0
