"""
Sequential batch writer for every pending episode.

States: idle -> running -> (awaiting_decision -> running)* -> idle.

Episodes go strictly one at a time in ascending number order: each prompt
embeds episode (n - 1)'s committed text, so nothing is dispatched in
parallel. Every success is written to the store before the next episode's
first attempt. A failed attempt is retried with a growing backoff; when the
retry budget is spent the caller's `decide` is awaited and must answer
CONTINUE (skip this episode) or ABORT (stop, keep what was written).
Re-running picks up only what is still missing.
"""
import asyncio
import enum
import inspect
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple, Union

from core.config import StudioSettings
from core.data_models import BatchProgress, EpisodePlanEntry
from core.episodes import episode_request
from core.errors import GenerationError
from core.gemini_helpers import GenerationClient
from core.project_store import ProjectStore

logger = logging.getLogger(__name__)


class BatchState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    AWAITING_DECISION = "awaiting_decision"


class BatchDecision(str, enum.Enum):
    CONTINUE = "continue"
    ABORT = "abort"


class BatchStatus(str, enum.Enum):
    COMPLETED = "completed"
    NOTHING_PENDING = "nothing_pending"
    ALREADY_RUNNING = "already_running"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass(frozen=True)
class DecisionRequest:
    number: int
    title: str
    attempts: int
    # entries after this one still waiting in this run
    remaining: int
    error_kind: str
    message: str


@dataclass
class BatchResult:
    status: BatchStatus
    pending: List[int] = field(default_factory=list)
    generated: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    failed_number: Optional[int] = None
    error: Optional[BaseException] = None
    progress: Optional[BatchProgress] = None


Decide = Callable[[DecisionRequest], Union[BatchDecision, Awaitable[BatchDecision]]]
ProgressCallback = Callable[[BatchProgress], None]


def always(decision: BatchDecision) -> Decide:
    """A decide callback that gives the same answer every time."""

    def decide(request: DecisionRequest) -> BatchDecision:
        return decision

    return decide


class BatchOrchestrator:
    def __init__(
        self,
        client: GenerationClient,
        store: ProjectStore,
        settings: Optional[StudioSettings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.store = store
        self.settings = settings or client.settings
        self._sleep = sleep
        self.state = BatchState.IDLE

    async def run(
        self,
        decide: Decide,
        on_progress: Optional[ProgressCallback] = None,
        exclude: Iterable[int] = (),
    ) -> BatchResult:
        if self.store.batch_progress is not None:
            logger.info("batch already running; ignoring start request")
            return BatchResult(status=BatchStatus.ALREADY_RUNNING)

        # ConfigurationError propagates: no call is made without a key
        self.client.ensure_credentials()

        pending = self.store.pending_numbers(exclude)
        if not pending:
            logger.info("all planned episodes are already written")
            return BatchResult(status=BatchStatus.NOTHING_PENDING)

        total = len(pending)
        result = BatchResult(status=BatchStatus.COMPLETED, pending=list(pending))
        self._publish(self.store.start_batch(total), on_progress)
        self.state = BatchState.RUNNING
        logger.info("batch started: %d pending episode(s) %s", total, pending)

        processed = 0
        try:
            for number in pending:
                entry = self.store.project.plan_entry(number)
                if entry is None:
                    logger.warning("episode %d left the plan during the batch; skipping", number)
                    result.skipped.append(number)
                    processed += 1
                    self._publish(self.store.advance_batch(processed), on_progress)
                    continue

                text, attempts, error = await self._generate_with_retry(entry)
                remaining = total - processed - 1

                if self.store.project.plan_entry(number) is None:
                    # replaced out of the plan while its call was in flight
                    logger.warning("episode %d left the plan while being written; result dropped", number)
                    result.skipped.append(number)
                    processed += 1
                    self._publish(self.store.advance_batch(processed), on_progress)
                    continue

                if text is not None:
                    self.store.set_episode(number, text)
                    result.generated.append(number)
                    processed += 1
                    self._publish(self.store.advance_batch(processed), on_progress)
                    if remaining:
                        await self._sleep(self.settings.pacing_delay)
                    continue

                request = DecisionRequest(
                    number=number,
                    title=entry.title,
                    attempts=attempts,
                    remaining=remaining,
                    error_kind=error.kind,
                    message=str(error),
                )
                decision = await self._ask(decide, request)
                if decision is BatchDecision.ABORT:
                    logger.info("batch aborted at episode %d", number)
                    result.status = BatchStatus.ABORTED
                    result.failed_number = number
                    break

                logger.info("episode %d skipped; %d remaining", number, remaining)
                result.skipped.append(number)
                processed += 1
                self._publish(self.store.advance_batch(processed), on_progress)
        except Exception as e:
            logger.exception("batch stopped by an unexpected error")
            result.status = BatchStatus.FAILED
            result.error = e
        finally:
            result.progress = self.store.batch_progress
            self.store.end_batch()
            self.state = BatchState.IDLE

        logger.info(
            "batch %s: generated=%s skipped=%s", result.status.value, result.generated, result.skipped
        )
        return result

    async def _generate_with_retry(self, entry: EpisodePlanEntry) -> Tuple[Optional[str], int, Optional[GenerationError]]:
        max_attempts = self.settings.max_retries + 1
        attempts = 0
        last_error = None
        while attempts < max_attempts:
            attempts += 1
            # summary edits and the previous episode's text are read fresh each attempt
            current = self.store.project.plan_entry(entry.number)
            if current is None:
                break
            entry = current
            request = episode_request(self.store.project, entry, self.settings)
            try:
                return await self.client.complete(request), attempts, None
            except GenerationError as e:
                last_error = e
                logger.warning(
                    "episode %d attempt %d/%d failed [%s]: %s",
                    entry.number, attempts, max_attempts, e.kind, e,
                )
            if attempts < max_attempts:
                await self._sleep(self.settings.retry_base_delay * attempts)
        return None, attempts, last_error

    async def _ask(self, decide: Decide, request: DecisionRequest) -> BatchDecision:
        self.state = BatchState.AWAITING_DECISION
        try:
            answer = decide(request)
            if inspect.isawaitable(answer):
                answer = await answer
        finally:
            self.state = BatchState.RUNNING
        return BatchDecision(answer)

    @staticmethod
    def _publish(progress: BatchProgress, on_progress: Optional[ProgressCallback]):
        if on_progress is not None:
            on_progress(progress)


async def run_batch(
    client: GenerationClient,
    store: ProjectStore,
    decide: Decide,
    settings: Optional[StudioSettings] = None,
    on_progress: Optional[ProgressCallback] = None,
    exclude: Iterable[int] = (),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> BatchResult:
    orchestrator = BatchOrchestrator(client, store, settings=settings, sleep=sleep)
    return await orchestrator.run(decide, on_progress=on_progress, exclude=exclude)
