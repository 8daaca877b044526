"""Upload orchestration: cache lookup, extraction, normalization, reconciliation.

State machine per upload::

    IDLE → CACHE_CHECKING ─┬→ CACHE_HIT_EXACT → DONE
                           ├→ DISPLAYING_PROVISIONAL → EXTRACTING
                           └→ EXTRACTING → EXTRACTED → RECONCILING → DONE
    (any) → FAILED

Extraction is a bounded two-pass refinement: the free-form variant runs first
unless the document is already believed to follow the household schema; a
free-form result that classifies as household earns exactly one canonical
attempt, abandoned silently if it fails.

Each process_file() call bumps a generation counter. Results of a call that
was overtaken by a newer call or by reset() are ignored: it raises
SupersededError and writes neither the cache nor ``current``. Concurrent calls
for the same fingerprint share one in-flight task.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Literal

from tablecast.analysis.analyzer import DatasetMetadata, SchemaDetector, analyze_dataset
from tablecast.cache.fingerprint import SourceFile, compute_fingerprint
from tablecast.cache.store import CacheLookup, CacheStore
from tablecast.errors import (
    InvalidInputError,
    NoDataExtractedError,
    PipelineError,
    SupersededError,
)
from tablecast.extract.base import ExtractionOracle
from tablecast.normalize.rows import clean_records, normalize_rows

logger = logging.getLogger(__name__)

Strategy = Literal["auto", "canonical", "generic"]
STRATEGIES: tuple[str, ...] = ("auto", "canonical", "generic")

Dataset = list[dict[str, Any]]


class PipelineState(str, Enum):
    IDLE = "idle"
    CACHE_CHECKING = "cache_checking"
    CACHE_HIT_EXACT = "cache_hit_exact"
    DISPLAYING_PROVISIONAL = "displaying_provisional"
    EXTRACTING = "extracting"
    EXTRACTED = "extracted"
    RECONCILING = "reconciling"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ProcessResult:
    """A dataset ready for presentation.

    Attributes:
        dataset: Canonical records or cleaned generic records.
        metadata: Fresh analysis of *dataset*.
        source: "cache" (exact hit or a longer cached dataset won),
            "provisional" (name-matched placeholder) or "extraction".
        state: Pipeline state the result was produced in.
        file_name: Name of the uploaded file.
        cache_updated: True if this run wrote the cache.
    """

    dataset: Dataset
    metadata: DatasetMetadata
    source: Literal["cache", "provisional", "extraction"]
    state: PipelineState
    file_name: str
    cache_updated: bool = False


class Orchestrator:
    """Sequence one upload from cache lookup to a delivered dataset.

    Args:
        oracle: Extraction service.
        cache: Dataset cache; None disables caching.
        strategy: "auto" (free-form first, refine if household-like),
            "canonical" (canonical first) or "generic" (free-form only).
        detector: Schema detection strategy for the default analyzer.
        analyze: Override the dataset analyzer entirely.
        on_state: Called with every state transition.
        on_provisional: Called with the name-matched cached result while
            fresh extraction is still running.
    """

    def __init__(
        self,
        oracle: ExtractionOracle,
        cache: CacheStore | None = None,
        *,
        strategy: Strategy = "auto",
        detector: SchemaDetector | None = None,
        analyze: Callable[[Sequence[dict[str, Any]]], DatasetMetadata] | None = None,
        on_state: Callable[[PipelineState], None] | None = None,
        on_provisional: Callable[[ProcessResult], None] | None = None,
    ) -> None:
        if strategy not in STRATEGIES:
            raise ValueError(f"strategy must be one of {STRATEGIES}, got {strategy!r}")
        self._oracle = oracle
        self._cache = cache
        self.strategy = strategy
        self._analyze = analyze or partial(analyze_dataset, detector=detector)
        self._on_state = on_state
        self._on_provisional = on_provisional

        self.state = PipelineState.IDLE
        self.current: ProcessResult | None = None
        self._generation = 0
        self._inflight: dict[str, asyncio.Task[ProcessResult]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_file(self, file: SourceFile) -> ProcessResult:
        """Turn *file* into a normalized dataset plus metadata.

        Raises:
            PipelineError: When no valid dataset can be delivered.
            SupersededError: When a newer call or reset() overtook this one.
        """
        key = compute_fingerprint(file)
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._process(file))
            self._inflight[key] = task
            task.add_done_callback(partial(self._forget, key))
        else:
            logger.info("Joining in-flight processing of %s", file.name)
        return await asyncio.shield(task)

    def reset(self) -> None:
        """Drop the current dataset and supersede any in-flight processing."""
        self._generation += 1
        self.current = None
        self._set_state(self._generation, PipelineState.IDLE)

    def clear_cache(self) -> int:
        """Remove every cache entry. Returns the number removed."""
        return self._cache.clear_all() if self._cache is not None else 0

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _process(self, file: SourceFile) -> ProcessResult:
        self._generation += 1
        gen = self._generation
        try:
            self._set_state(gen, PipelineState.CACHE_CHECKING)
            lookup = self._lookup(file)

            if lookup.data is not None and not lookup.should_update:
                self._set_state(gen, PipelineState.CACHE_HIT_EXACT)
                return self._deliver(gen, self._result(lookup.data, "cache", file))

            previous = lookup.data
            believed_canonical = self.strategy == "canonical"
            if previous is not None:
                provisional = self._result(
                    previous, "provisional", file, state=PipelineState.DISPLAYING_PROVISIONAL
                )
                self._set_state(gen, PipelineState.DISPLAYING_PROVISIONAL)
                if self._on_provisional is not None:
                    self._on_provisional(provisional)
                if self.strategy == "auto" and provisional.metadata.data_type == "household":
                    believed_canonical = True

            self._set_state(gen, PipelineState.EXTRACTING)
            dataset = await self._extract(file, gen, believed_canonical)
            self._set_state(gen, PipelineState.EXTRACTED)

            self._set_state(gen, PipelineState.RECONCILING)
            updated = (
                self._cache.reconcile(file, dataset, previous) if self._cache is not None else False
            )
            source: Literal["cache", "extraction"] = "extraction"
            if previous is not None and len(previous) > len(dataset):
                dataset, source = previous, "cache"
            return self._deliver(gen, self._result(dataset, source, file, cache_updated=updated))
        except SupersededError:
            logger.info("Ignoring superseded result for %s", file.name)
            raise
        except Exception:
            self._set_state(gen, PipelineState.FAILED)
            raise

    def _lookup(self, file: SourceFile) -> CacheLookup:
        if self._cache is None:
            return CacheLookup(data=None, should_update=True, reason="Cache disabled")
        lookup = self._cache.lookup(file)
        logger.debug("Cache lookup for %s: %s", file.name, lookup.reason)
        return lookup

    async def _extract(self, file: SourceFile, gen: int, believed_canonical: bool) -> Dataset:
        if believed_canonical:
            rows = await self._try_canonical(file, gen)
            if rows:
                return rows
            logger.info("Canonical extraction unusable for %s; trying free-form", file.name)

        raw = await self._oracle.extract_generic(file)
        self._ensure_current(gen, file)
        records = clean_records(raw)
        if not records:
            raise NoDataExtractedError(file.name)

        if self.strategy != "generic" and not believed_canonical:
            if self._analyze(records).data_type == "household":
                logger.info("%s looks like household data; refining with canonical extraction", file.name)
                rows = await self._try_canonical(file, gen)
                if rows:
                    return rows
        return records

    async def _try_canonical(self, file: SourceFile, gen: int) -> Dataset | None:
        """One canonical attempt; None if it fails or yields no rows."""
        try:
            raw = await self._oracle.extract_canonical(file)
        except PipelineError as exc:
            self._ensure_current(gen, file)
            logger.info("Canonical extraction failed for %s: %s", file.name, exc)
            return None
        self._ensure_current(gen, file)
        try:
            rows = normalize_rows(raw)
        except InvalidInputError as exc:
            logger.info("Canonical extraction returned bad rows for %s: %s", file.name, exc)
            return None
        return rows or None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _result(
        self,
        dataset: Dataset,
        source: Literal["cache", "provisional", "extraction"],
        file: SourceFile,
        *,
        state: PipelineState = PipelineState.DONE,
        cache_updated: bool = False,
    ) -> ProcessResult:
        return ProcessResult(
            dataset=dataset,
            metadata=self._analyze(dataset),
            source=source,
            state=state,
            file_name=file.name,
            cache_updated=cache_updated,
        )

    def _deliver(self, gen: int, result: ProcessResult) -> ProcessResult:
        if gen != self._generation:
            raise SupersededError(result.file_name)
        self.current = result
        self._set_state(gen, PipelineState.DONE)
        return result

    def _ensure_current(self, gen: int, file: SourceFile) -> None:
        if gen != self._generation:
            raise SupersededError(file.name)

    def _set_state(self, gen: int, state: PipelineState) -> None:
        if gen != self._generation:
            return
        self.state = state
        logger.debug("State → %s", state.value)
        if self._on_state is not None:
            self._on_state(state)

    def _forget(self, key: str, task: asyncio.Task[ProcessResult]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
