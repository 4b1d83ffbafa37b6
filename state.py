# Session state and the Session Coordinator.
#
# One SessionCoordinator per user session. It reconciles three entry points
# (manual search, candidate selection, background pre-fetch) against the
# session detail cache and the saved-word list, and drives an explicit
# Phase state machine: IDLE -> LOADING -> CANDIDATE_LIST / DETAIL_SHOWN.

import enum
import logging
import threading
from dataclasses import dataclass, field
from functools import partial
from typing import Dict, List, Optional, Set, Tuple

import constants
from client import Gateway
from errors import (
    BackgroundFetchError,
    CoachError,
    ErrorHandler,
    InvalidInputError,
    PersistenceError,
    ResponseShapeError,
)
from prefetch import Scheduler, TimerScheduler, plan_prefetch
from schema import CandidateList, CandidateRecord, DetailRecord, GenerationResult, normalize_detail, parse_generation_response
from store import SavedEntry, VocabularyStore

logger = logging.getLogger(__name__)


class Phase(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    CANDIDATE_LIST = "candidate_list"
    DETAIL_SHOWN = "detail_shown"


class Event(enum.Enum):
    SUBMIT = "submit"
    CANDIDATES_RECEIVED = "candidates_received"
    DETAIL_RECEIVED = "detail_received"
    SELECT_CACHED = "select_cached"
    SELECT_UNCACHED = "select_uncached"
    SEARCH_FAILED = "search_failed"
    SELECT_FAILED = "select_failed"
    OPEN_SAVED = "open_saved"


_TRANSITIONS: Dict[Tuple[Phase, Event], Phase] = {
    (Phase.IDLE, Event.SUBMIT): Phase.LOADING,
    (Phase.CANDIDATE_LIST, Event.SUBMIT): Phase.LOADING,
    (Phase.DETAIL_SHOWN, Event.SUBMIT): Phase.LOADING,
    (Phase.LOADING, Event.CANDIDATES_RECEIVED): Phase.CANDIDATE_LIST,
    (Phase.LOADING, Event.DETAIL_RECEIVED): Phase.DETAIL_SHOWN,
    (Phase.LOADING, Event.SEARCH_FAILED): Phase.IDLE,
    (Phase.LOADING, Event.SELECT_FAILED): Phase.CANDIDATE_LIST,
    (Phase.CANDIDATE_LIST, Event.SELECT_CACHED): Phase.DETAIL_SHOWN,
    (Phase.CANDIDATE_LIST, Event.SELECT_UNCACHED): Phase.LOADING,
    (Phase.DETAIL_SHOWN, Event.SELECT_CACHED): Phase.DETAIL_SHOWN,
    (Phase.DETAIL_SHOWN, Event.SELECT_UNCACHED): Phase.LOADING,
    (Phase.IDLE, Event.OPEN_SAVED): Phase.DETAIL_SHOWN,
    (Phase.CANDIDATE_LIST, Event.OPEN_SAVED): Phase.DETAIL_SHOWN,
    (Phase.DETAIL_SHOWN, Event.OPEN_SAVED): Phase.DETAIL_SHOWN,
}


class InvalidTransition(ValueError):
    pass


def transition(phase: Phase, event: Event) -> Phase:
    """Next phase for *event*, or InvalidTransition if the machine forbids it."""
    try:
        return _TRANSITIONS[(phase, event)]
    except KeyError:
        raise InvalidTransition(f"{event.value} is not allowed while {phase.value}") from None


@dataclass
class Notice:
    level: str  # "error" | "warning" | "success"
    message: str


@dataclass
class SessionState:
    phase: Phase = Phase.IDLE
    term: str = ""
    candidates: List[CandidateRecord] = field(default_factory=list)
    selected_word: Optional[str] = None
    detail: Optional[DetailRecord] = None
    cache: Dict[str, DetailRecord] = field(default_factory=dict)
    saved: List[SavedEntry] = field(default_factory=list)
    notice: Optional[Notice] = None
    expanded_meanings: Set[int] = field(default_factory=set)
    # Bumped on every manual search; background writes from older searches are dropped.
    generation: int = 0

    def candidate_words(self) -> List[str]:
        return [c.zh for c in self.candidates]


class SessionCoordinator:
    """Owns one SessionState and every operation that changes it."""

    def __init__(
        self,
        gateway: Gateway,
        store: VocabularyStore,
        scheduler: Optional[Scheduler] = None,
        user_id: Optional[str] = None,
        prefetch_interval: float = constants.PREFETCH_INTERVAL_SECONDS,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.scheduler = scheduler or TimerScheduler()
        self.user_id = user_id
        self.prefetch_interval = prefetch_interval
        self.state = SessionState()
        self._scheduled: Set[str] = set()
        self._lock = threading.RLock()

    # ---------- queries ----------

    @property
    def phase(self) -> Phase:
        return self.state.phase

    def cached(self, word: str) -> Optional[DetailRecord]:
        with self._lock:
            return self.state.cache.get(word)

    def find_saved(self, word: str) -> Optional[SavedEntry]:
        for entry in self.state.saved:
            if entry.word == word:
                return entry
        return None

    # ---------- helpers ----------

    def _move(self, event: Event) -> None:
        new_phase = transition(self.state.phase, event)
        logger.debug("%s --%s--> %s", self.state.phase.value, event.value, new_phase.value)
        self.state.phase = new_phase

    def _notify(self, level: str, message: str) -> None:
        self.state.notice = Notice(level, message)

    def _remember(self, surface: str, detail: DetailRecord) -> None:
        with self._lock:
            self.state.cache[detail.word] = detail
            if surface != detail.word:
                self.state.cache[surface] = detail

    def _show_detail(self, detail: DetailRecord) -> None:
        self.state.detail = detail
        self.state.expanded_meanings = set()

    def _fail(self, event: Event, error: Exception) -> None:
        """Leave LOADING with one notice, whatever the lookup raised."""
        if isinstance(error, InvalidInputError):
            self._notify("warning", constants.NOTICE_INVALID_INPUT)
        elif isinstance(error, CoachError):
            logger.error("Lookup failed: %s", error)
            self._notify("error", constants.NOTICE_GENERATION_FAILED)
        else:
            logger.error("Lookup failed unexpectedly: %r", error, exc_info=error)
            self._notify("error", constants.NOTICE_GENERATION_FAILED)
        self._move(event)

    def _resolve(self, word: str) -> GenerationResult:
        """Session cache, then saved words, then the gateway."""
        hit = self.cached(word)
        if hit is not None:
            logger.info("Cache hit for %r", word)
            return hit

        saved = self.find_saved(word)
        if saved is not None:
            logger.info("Using saved entry for %r", word)
            detail = normalize_detail(saved.data)
            self._remember(word, detail)
            return detail

        result = parse_generation_response(self.gateway.generate(word))
        if isinstance(result, DetailRecord):
            self._remember(word, result)
        return result

    # ---------- manual search ----------

    def search(self, term: str) -> Phase:
        """Fresh manual search: reset the session, then resolve *term*."""
        with self._lock:
            if self.state.phase is Phase.LOADING:
                logger.info("Search for %r ignored: a lookup is already in flight", term)
                self._notify("warning", constants.NOTICE_BUSY)
                return self.state.phase

            word = (term or "").strip()
            if not word:
                self._notify("warning", constants.NOTICE_INVALID_INPUT)
                return self.state.phase

            self.scheduler.cancel_all()
            self._scheduled = set()
            self.state.generation += 1
            self.state.cache = {}
            self.state.candidates = []
            self.state.selected_word = None
            self.state.detail = None
            self.state.notice = None
            self.state.term = word
            self._move(Event.SUBMIT)
            generation = self.state.generation

        try:
            result = self._resolve(word)
        except Exception as e:
            with self._lock:
                if generation == self.state.generation:
                    self._fail(Event.SEARCH_FAILED, e)
            return self.state.phase

        with self._lock:
            if generation != self.state.generation:
                return self.state.phase
            if isinstance(result, CandidateList):
                self.state.candidates = list(result.candidates)
                self._move(Event.CANDIDATES_RECEIVED)
            else:
                self._show_detail(result)
                self._move(Event.DETAIL_RECEIVED)
            return self.state.phase

    # ---------- candidate selection ----------

    def select_candidate(self, word: str) -> Phase:
        """Show one candidate's detail and queue background fetches for the rest."""
        with self._lock:
            if self.state.phase not in (Phase.CANDIDATE_LIST, Phase.DETAIL_SHOWN):
                logger.info("Selection of %r ignored while %s", word, self.state.phase.value)
                if self.state.phase is Phase.LOADING:
                    self._notify("warning", constants.NOTICE_BUSY)
                return self.state.phase
            words = self.state.candidate_words()
            if word not in words:
                logger.warning("Selection of %r ignored: not a current candidate", word)
                return self.state.phase

            self.state.selected_word = word
            self.state.notice = None
            generation = self.state.generation
            self._schedule_prefetch(words, word, generation)

            hit = self.state.cache.get(word)
            if hit is not None:
                self._show_detail(hit)
                self._move(Event.SELECT_CACHED)
                return self.state.phase

            self.state.detail = None
            self._move(Event.SELECT_UNCACHED)

        try:
            result = self._resolve(word)
            if not isinstance(result, DetailRecord):
                raise ResponseShapeError(f"Expected a detail record for candidate {word!r}")
        except Exception as e:
            with self._lock:
                if generation == self.state.generation:
                    self._fail(Event.SELECT_FAILED, e)
            return self.state.phase

        with self._lock:
            if generation == self.state.generation:
                self._show_detail(result)
                self._move(Event.DETAIL_RECEIVED)
            return self.state.phase

    def _schedule_prefetch(self, words: List[str], selected: str, generation: int) -> None:
        for candidate, delay in plan_prefetch(words, selected, self.state.cache, self.prefetch_interval):
            if candidate in self._scheduled:
                continue
            self._scheduled.add(candidate)
            self.scheduler.schedule(delay, partial(self._prefetch, candidate, generation))
            logger.debug("Pre-fetch of %r scheduled in %.1fs", candidate, delay)

    def _prefetch(self, word: str, generation: int) -> None:
        with self._lock:
            if generation != self.state.generation or word in self.state.cache:
                return
        try:
            result = parse_generation_response(self.gateway.generate(word))
            if not isinstance(result, DetailRecord):
                raise ResponseShapeError(f"Expected a detail record for candidate {word!r}")
        except Exception as e:
            ErrorHandler.log_background(BackgroundFetchError(f"{word!r}: {e}"), "Background pre-fetch failed")
            return
        with self._lock:
            if generation == self.state.generation:
                self._remember(word, result)
                logger.info("Pre-fetched %r", word)

    # ---------- saved words ----------

    def load_saved(self) -> bool:
        """Re-read the saved-word list (newest first)."""
        try:
            entries = self.store.list()
        except PersistenceError as e:
            logger.error("Loading saved words failed: %s", e)
            self._notify("error", constants.NOTICE_LIST_FAILED)
            return False
        self.state.saved = entries
        return True

    def save_current(self) -> Optional[SavedEntry]:
        detail = self.state.detail
        if detail is None:
            self._notify("warning", constants.NOTICE_NOTHING_TO_SAVE)
            return None
        try:
            entry = self.store.insert(detail.word, detail.source_data(), user_id=self.user_id)
        except PersistenceError as e:
            logger.error("Saving %r failed: %s", detail.word, e)
            self._notify("error", constants.NOTICE_SAVE_FAILED)
            return None
        self._notify("success", constants.NOTICE_SAVED)
        self.load_saved()
        return entry

    def delete_saved(self, entry_id: str) -> bool:
        try:
            self.store.delete(entry_id)
        except PersistenceError as e:
            logger.error("Deleting %r failed: %s", entry_id, e)
            self._notify("error", constants.NOTICE_DELETE_FAILED)
            return False
        return self.load_saved()

    def open_saved(self, entry_id: str) -> Phase:
        """Show a saved entry's data (either schema) as the current detail."""
        with self._lock:
            if self.state.phase is Phase.LOADING:
                return self.state.phase
            entry = next((e for e in self.state.saved if e.id == entry_id), None)
            if entry is None:
                logger.warning("Saved entry %r not found", entry_id)
                return self.state.phase
            try:
                detail = normalize_detail(entry.data)
            except ResponseShapeError as e:
                logger.error("Saved entry %r is unreadable: %s", entry_id, e.details)
                self._notify("error", constants.NOTICE_GENERATION_FAILED)
                return self.state.phase
            self.state.term = entry.word
            self.state.candidates = []
            self.state.selected_word = None
            self._show_detail(detail)
            self._move(Event.OPEN_SAVED)
            return self.state.phase

    # ---------- view flags ----------

    def toggle_meaning(self, index: int) -> bool:
        """Flip the expanded flag of meaning *index*; returns the new flag."""
        expanded = self.state.expanded_meanings
        if index in expanded:
            expanded.discard(index)
            return False
        expanded.add(index)
        return True

    def clear_notice(self) -> None:
        self.state.notice = None
