# SPDX-License-Identifier: MIT
"""Background fetch orchestration.

TaskManager owns at most one asyncio.Task per concern (primary load,
pagination, game info, price history). The app polls it on a timer:
check_tasks() turns finished tasks into messages and starts whatever loads
the current state calls for. Results only reach AppState through those
messages; the manager itself touches nothing but loading flags.
"""
import asyncio
import time
from enum import Enum
from typing import Any, List, Optional, Tuple

from dealve.debug_logger import get_logger
from dealve.errors import DealveError
from dealve.models import MAX_SEARCH_RESULTS
from dealve.tui import messages as m
from dealve.tui.app_state import AppState


class LoadTaskKind(Enum):
    STANDARD = "standard"
    SEARCH = "search"


def _outcome(task: "asyncio.Task[Any]") -> Tuple[Any, Optional[BaseException]]:
    """Result and exception of a finished task. Cancellation counts as an exception."""
    if task.cancelled():
        return None, asyncio.CancelledError()
    exc = task.exception()
    if exc is not None:
        return None, exc
    return task.result(), None


def _discard(task: Optional["asyncio.Task[Any]"]) -> bool:
    """Drop a task we no longer want. Returns True if it was still running."""
    if task is None:
        return False
    if not task.done():
        task.cancel()
        return True
    if not task.cancelled():
        # Mark a finished task's exception as retrieved
        task.exception()
    return False


class TaskManager:
    """Spawns and collects fetches against a gateway.

    The gateway is anything with the ItadClient coroutine methods
    (get_deals, search_deals, get_game_info, get_price_history).
    """

    def __init__(self, client: Any) -> None:
        self.client = client
        self.load_task: Optional[asyncio.Task] = None
        self.load_task_kind: Optional[LoadTaskKind] = None
        self.load_more_task: Optional[asyncio.Task] = None
        self.game_info_task: Optional[asyncio.Task] = None
        self.price_history_task: Optional[asyncio.Task] = None
        self.last_selection_change = time.monotonic()
        self.pending_game_info_load = False
        # Page size each deals request was issued with
        self._load_page_size = 0
        self._load_more_page_size = 0
        self._game_info_id: Optional[str] = None
        self._price_history_id: Optional[str] = None

    # -- Starting loads -------------------------------------------------------

    def _spawn_deals_page(self, state: AppState, offset: int) -> "asyncio.Task[Any]":
        return asyncio.create_task(
            self.client.get_deals(
                state.region.code,
                state.deals_page_size,
                offset,
                state.platform_filter.shop_id,
                state.sort_state.api_param(),
            )
        )

    def start_load(self, state: AppState) -> None:
        """Start a fresh primary load, superseding any primary or pagination load."""
        logger = get_logger()
        for task, kind in ((self.load_task, "deals"), (self.load_more_task, "more_deals")):
            if _discard(task):
                logger.task_cancelled(kind)
        self.load_task = None
        self.load_task_kind = None
        self.load_more_task = None

        state.reset_pagination()
        state.set_loading(True)
        self._load_page_size = state.deals_page_size

        if state.active_search_query is not None:
            limit = min(state.deals_page_size, MAX_SEARCH_RESULTS)
            self.load_task_kind = LoadTaskKind.SEARCH
            self.load_task = asyncio.create_task(
                self.client.search_deals(
                    state.active_search_query,
                    state.region.code,
                    state.platform_filter.shop_id,
                    limit,
                )
            )
            logger.load_started(
                "search", state.region.code, 0, limit, query=state.active_search_query
            )
        else:
            self.load_task_kind = LoadTaskKind.STANDARD
            self.load_task = self._spawn_deals_page(state, 0)
            logger.load_started(
                "deals", state.region.code, 0, state.deals_page_size,
                platform=state.platform_filter.display_name,
                sort=state.sort_state.api_param(),
            )

    def mark_selection_changed(self, now: Optional[float] = None) -> None:
        """Restart the game info debounce timer."""
        self.last_selection_change = time.monotonic() if now is None else now
        self.pending_game_info_load = True

    def debounce_elapsed(self, state: AppState, now: Optional[float] = None) -> bool:
        now = time.monotonic() if now is None else now
        return (now - self.last_selection_change) * 1000 >= state.game_info_delay_ms

    # -- Polling --------------------------------------------------------------

    def check_tasks(
        self,
        state: AppState,
        now: Optional[float] = None,
        animating: bool = False,
    ) -> List[m.Message]:
        """Collect finished tasks as messages, then start any loads now due."""
        messages: List[m.Message] = []
        self._collect_load(messages)
        self._collect_load_more(messages)
        self._collect_game_info(messages)
        self._collect_price_history(messages)

        self._maybe_load_more(state)
        self._maybe_load_game_info(state, now, animating)
        self._maybe_load_price_history(state, animating)
        return messages

    def _collect_load(self, messages: List[m.Message]) -> None:
        task = self.load_task
        if task is None or not task.done():
            return
        kind = self.load_task_kind or LoadTaskKind.STANDARD
        self.load_task = None
        self.load_task_kind = None
        logger = get_logger()

        deals, exc = _outcome(task)
        if exc is None:
            if kind is LoadTaskKind.SEARCH:
                messages.append(m.DealsLoaded(deals=deals, is_more=False, page_size=len(deals)))
                logger.load_finished("search", len(deals), False)
            else:
                is_more = len(deals) >= self._load_page_size
                messages.append(
                    m.DealsLoaded(deals=deals, is_more=is_more, page_size=self._load_page_size)
                )
                logger.load_finished("deals", len(deals), is_more)
            return

        if isinstance(exc, DealveError):
            error = f"Search failed: {exc}" if kind is LoadTaskKind.SEARCH else str(exc)
        else:
            error = "Search task failed" if kind is LoadTaskKind.SEARCH else "Task failed"
        logger.load_failed(kind.value, f"{type(exc).__name__}: {exc}")
        messages.append(m.DealsLoadFailed(error))

    def _collect_load_more(self, messages: List[m.Message]) -> None:
        task = self.load_more_task
        if task is None or not task.done():
            return
        self.load_more_task = None
        logger = get_logger()

        deals, exc = _outcome(task)
        if exc is None:
            is_more = len(deals) >= self._load_more_page_size
            messages.append(
                m.MoreDealsLoaded(deals=deals, is_more=is_more, page_size=self._load_more_page_size)
            )
            logger.load_finished("more_deals", len(deals), is_more)
            return

        error = str(exc) if isinstance(exc, DealveError) else "Task failed"
        logger.load_failed("more_deals", f"{type(exc).__name__}: {exc}")
        messages.append(m.DealsLoadFailed(error))

    def _collect_game_info(self, messages: List[m.Message]) -> None:
        task = self.game_info_task
        if task is None or not task.done():
            return
        game_id = self._game_info_id or ""
        self.game_info_task = None
        self._game_info_id = None

        info, exc = _outcome(task)
        if exc is not None:
            get_logger().debug("game_info_failed", game_id=game_id, err=str(exc))
        messages.append(m.GameInfoLoaded(game_id=game_id, info=info))

    def _collect_price_history(self, messages: List[m.Message]) -> None:
        task = self.price_history_task
        if task is None or not task.done():
            return
        game_id = self._price_history_id or ""
        self.price_history_task = None
        self._price_history_id = None

        history, exc = _outcome(task)
        if exc is not None:
            get_logger().debug("price_history_failed", game_id=game_id, err=str(exc))
        messages.append(m.PriceHistoryLoaded(game_id=game_id, history=history or []))

    def _maybe_load_more(self, state: AppState) -> None:
        if (
            state.is_search_mode()
            or not state.should_load_more()
            or self.load_task is not None
            or self.load_more_task is not None
        ):
            return
        state.pagination.loading_more = True
        self._load_more_page_size = state.deals_page_size
        self.load_more_task = self._spawn_deals_page(state, state.pagination.offset)
        get_logger().load_started(
            "more_deals", state.region.code, state.pagination.offset, state.deals_page_size
        )

    def _maybe_load_game_info(self, state: AppState, now: Optional[float], animating: bool) -> None:
        if (
            not self.pending_game_info_load
            or state.loading.deals
            or animating
            or self.game_info_task is not None
            or not self.debounce_elapsed(state, now)
        ):
            return
        # The selection has settled; whatever happens below, this wait is over
        self.pending_game_info_load = False
        game_id = state.needs_game_info_load()
        if game_id is None:
            return
        state.loading.game_info = game_id
        self._game_info_id = game_id
        self.game_info_task = asyncio.create_task(self.client.get_game_info(game_id))
        get_logger().debug("game_info_started", game_id=game_id)

    def _maybe_load_price_history(self, state: AppState, animating: bool) -> None:
        if (
            self.price_history_task is not None
            or state.loading.deals
            or animating
            or self.pending_game_info_load
        ):
            return
        game_id = state.needs_price_history_load()
        if game_id is None:
            return
        state.loading.price_history = game_id
        self._price_history_id = game_id
        self.price_history_task = asyncio.create_task(
            self.client.get_price_history(game_id, state.region.code)
        )
        get_logger().debug("price_history_started", game_id=game_id)

    # -- Teardown -------------------------------------------------------------

    def shutdown(self) -> None:
        """Cancel every in-flight task."""
        for task in (self.load_task, self.load_more_task, self.game_info_task, self.price_history_task):
            _discard(task)
        self.load_task = None
        self.load_task_kind = None
        self.load_more_task = None
        self.game_info_task = None
        self.price_history_task = None
