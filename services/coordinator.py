"""Suggestion coordinator: debouncing, caching, source selection and stale-result handling."""

import asyncio
import random
import time
from typing import Callable, Optional, Sequence

from config import settings
from models.message import ConversationMessage
from models.metrics import MetricsSnapshot
from models.suggestion import Suggestion, SuggestionOptions, SuggestionState
from services.cancellation import CancellationToken
from services.claude_client import ClaudeBackend, SuggestionBackend, describe_backend_error
from services.generative import GenerativeSource
from services.heuristic import Chooser, HeuristicSource
from services.sources import SuggestionRequest, SuggestionSource
from utils.cache import SuggestionCache, make_fingerprint
from utils.logger import log
from utils.metrics import SuggestionMetrics

StateListener = Callable[[SuggestionState], None]


def _matches_input(suggestion: Suggestion, current_input: str) -> bool:
    return suggestion.text.lower().startswith(current_input.lower())


class SuggestionCoordinator:
    """
    Predicts the user's next input for one chat pane.

    Call update() whenever the history, the typed input or the enabled flag
    changes. Evaluation runs after the debounce delay on the running event
    loop. Each evaluation that misses the cache gets a new request epoch;
    results from older epochs are dropped.
    """

    def __init__(
        self,
        options: Optional[SuggestionOptions] = None,
        backend: Optional[SuggestionBackend] = None,
        metrics: Optional[SuggestionMetrics] = None,
        choose: Chooser = random.choice,
        max_input_length: int = settings.suggestion_max_input_length,
    ):
        self._options = options or SuggestionOptions()
        self._backend = backend or ClaudeBackend()
        self._metrics = metrics or SuggestionMetrics()
        self._max_input_length = max_input_length
        self._cache = SuggestionCache(
            max_size=self._options.max_cache_size,
            expiry_ms=self._options.cache_expiry_ms,
        )
        # Consulted in order; the first suggestion wins
        self._sources: list[SuggestionSource] = [
            HeuristicSource(choose),
            GenerativeSource(self._backend, self._options.model, self._is_current),
        ]

        self._epoch = 0
        self._token: Optional[CancellationToken] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[StateListener] = []
        self._closed = False

        self._messages: tuple[ConversationMessage, ...] = ()
        self._current_input = ""
        self._enabled = True
        self._state = SuggestionState()

    # ------------------------------------------------------------------
    # Observable state

    @property
    def state(self) -> SuggestionState:
        return self._state

    @property
    def suggestion(self) -> Optional[Suggestion]:
        return self._state.suggestion

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def epoch(self) -> int:
        return self._epoch

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a callback invoked with every new state.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, **changes) -> None:
        new_state = self._state.model_copy(update=changes)
        suggestion = new_state.suggestion
        if suggestion is not None and not _matches_input(suggestion, self._current_input):
            new_state = new_state.model_copy(update={"suggestion": None})

        if new_state == self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)

    # ------------------------------------------------------------------
    # Input events

    def update(
        self,
        messages: Sequence[ConversationMessage],
        current_input: str,
        enabled: bool = True,
    ) -> None:
        """
        Record a new observation of the conversation and the typed input.

        A published suggestion that no longer extends the input is cleared
        immediately; a new evaluation is scheduled after the debounce delay.
        Must be called from within a running event loop.
        """
        if self._closed:
            raise RuntimeError("SuggestionCoordinator is closed")

        observation = (tuple(messages), current_input, enabled)
        if observation == (self._messages, self._current_input, self._enabled):
            return
        self._messages, self._current_input, self._enabled = observation

        suggestion = self._state.suggestion
        if suggestion is not None and not _matches_input(suggestion, current_input):
            self._publish(suggestion=None)

        self._schedule()

    def _schedule(self) -> None:
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self._options.debounce_ms / 1000, self._fire)

    def _fire(self) -> None:
        self._timer = None
        task = asyncio.ensure_future(self.evaluate())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # ------------------------------------------------------------------
    # Evaluation

    def _is_current(self, epoch: int) -> bool:
        return epoch == self._epoch

    def _supersede(self) -> None:
        """Cancel the in-flight request and invalidate its epoch."""
        if self._token is not None:
            self._token.cancel()
            self._token = None
        self._epoch += 1

    async def evaluate(self) -> None:
        """Evaluate the latest observation and publish the outcome."""
        if self._closed:
            return

        start_time = time.time() * 1000
        messages = self._messages
        current_input = self._current_input

        if not self._enabled or not messages or len(current_input) > self._max_input_length:
            self._supersede()
            self._publish(suggestion=None, is_loading=False, error=None)
            return

        self._cache.cleanup()
        fingerprint = make_fingerprint(messages, current_input)
        cached = self._cache.get(fingerprint)
        if cached is not None:
            self._supersede()
            elapsed = time.time() * 1000 - start_time
            log.debug("Cache hit", {"epoch": self._epoch, "source": cached.source})
            self._metrics.record_evaluation("cache", elapsed, cache_hit=True, error=False)
            self._publish(suggestion=cached, is_loading=False, error=None)
            return

        self._supersede()
        token = CancellationToken()
        self._token = token
        epoch = self._epoch
        self._publish(is_loading=True, error=None)

        request = SuggestionRequest(
            messages=messages,
            current_input=current_input,
            epoch=epoch,
            token=token,
        )

        try:
            suggestion, source_name = await self._produce(request)
        except Exception as e:
            elapsed = time.time() * 1000 - start_time
            if not self._is_current(epoch):
                self._metrics.record_discarded()
                return
            error_msg = describe_backend_error(e)
            log.error(
                "Suggestion generation failed",
                {"epoch": epoch, "elapsed": elapsed, "error": error_msg},
            )
            self._metrics.record_evaluation("none", elapsed, cache_hit=False, error=True)
            self._token = None
            self._publish(suggestion=None, is_loading=False, error=error_msg)
            return

        if not self._is_current(epoch):
            self._metrics.record_discarded()
            return

        self._token = None
        elapsed = time.time() * 1000 - start_time
        self._metrics.record_evaluation(source_name, elapsed, cache_hit=False, error=False)

        if suggestion is not None:
            self._cache.put(fingerprint, suggestion)
        self._publish(suggestion=suggestion, is_loading=False)

    async def _produce(self, request: SuggestionRequest) -> tuple[Optional[Suggestion], str]:
        for source in self._sources:
            if not source.applies(request):
                continue
            suggestion = await source.produce(request)
            if suggestion is not None:
                return suggestion, source.name
        return None, "none"

    # ------------------------------------------------------------------
    # User operations

    def accept(self) -> Optional[str]:
        """
        Consume the published suggestion.

        Returns:
            The suggestion text, or None when nothing is published
        """
        suggestion = self._state.suggestion
        if suggestion is None:
            return None
        self._publish(suggestion=None)
        self._metrics.record_accepted(suggestion.source)
        log.debug("Suggestion accepted", {"source": suggestion.source})
        return suggestion.text

    def dismiss(self) -> None:
        """Hide the suggestion and drop the result of any in-flight request."""
        if self._state.suggestion is not None:
            self._metrics.record_dismissed()
        self._epoch += 1
        self._publish(suggestion=None, is_loading=False, error=None)

    def clear_cache(self) -> None:
        """Forget all cached suggestions. The published state is kept."""
        self._cache.clear()

    def cache_size(self) -> int:
        return self._cache.size()

    def get_metrics(self) -> MetricsSnapshot:
        return self._metrics.get_metrics()

    # ------------------------------------------------------------------
    # Teardown

    def close(self) -> None:
        """Stop the debounce timer and cancel in-flight work. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._supersede()
        for task in list(self._tasks):
            task.cancel()
        self._listeners.clear()

    async def aclose(self) -> None:
        """Close and wait for cancelled evaluations to unwind."""
        tasks = list(self._tasks)
        self.close()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> "SuggestionCoordinator":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
