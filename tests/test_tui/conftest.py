"""
Fixtures shared by the TUI tests: app state builders and a fake gateway.
"""

import asyncio
from typing import Dict, List, Optional

import pytest

from dealve.config import Config
from dealve.errors import ApiError
from dealve.models import Deal, GameInfo, PriceHistoryPoint
from dealve.tui.app_state import AppState


class FakeClient:
    """Stands in for ItadClient. Records calls; results are set per test.

    Each call returns the next queued page (or raises the queued error).
    Set `gate` to an asyncio.Event to hold calls until the test releases them.
    """

    def __init__(self) -> None:
        self.pages: List[object] = []
        self.search_results: object = []
        self.game_info: Dict[str, GameInfo] = {}
        self.history: Dict[str, List[PriceHistoryPoint]] = {}
        self.history_error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[tuple] = []
        self.closed = False

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()

    async def get_deals(self, country, limit, offset, shop_id=None, sort=None):
        self.calls.append(("get_deals", country, limit, offset, shop_id, sort))
        await self._wait()
        result = self.pages.pop(0) if self.pages else []
        if isinstance(result, Exception):
            raise result
        return result

    async def search_deals(self, query, country, shop_id=None, limit=50):
        self.calls.append(("search_deals", query, country, shop_id, limit))
        await self._wait()
        if isinstance(self.search_results, Exception):
            raise self.search_results
        return self.search_results

    async def get_game_info(self, game_id):
        self.calls.append(("get_game_info", game_id))
        await self._wait()
        if game_id not in self.game_info:
            raise ApiError(f"API returned status 404: {game_id}")
        return self.game_info[game_id]

    async def get_price_history(self, game_id, country):
        self.calls.append(("get_price_history", game_id, country))
        await self._wait()
        if self.history_error is not None:
            raise self.history_error
        return self.history.get(game_id, [])

    async def aclose(self):
        self.closed = True

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def state() -> AppState:
    """Fresh state built from default settings (config path isolated by conftest)."""
    return AppState.from_config(Config(), api_key="test-key")


@pytest.fixture
def make_deals(make_deal):
    """Build n deals with distinct ids, prices and cuts."""

    def _make(n: int, prefix: str = "game", **overrides) -> List[Deal]:
        return [
            make_deal(
                deal_id=f"{prefix}-{i}",
                title=f"{prefix.title()} {i}",
                amount=overrides.get("amount", 10.0 + i),
                discount=overrides.get("discount", (i * 10) % 100),
                shop_id=overrides.get("shop_id", "61"),
                shop_name=overrides.get("shop_name", "Steam"),
            )
            for i in range(n)
        ]

    return _make


@pytest.fixture
def loaded_state(state: AppState, make_deals) -> AppState:
    """State with five deals loaded and nothing in flight."""
    state.deals = make_deals(5)
    state.pagination.offset = 5
    return state
