"""
Pytest configuration and fixtures for dealve tests.
"""

import sys
from pathlib import Path

# Ensure project root is in sys.path for 'dealve' imports without installing
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from typing import Callable

import pytest

from dealve.models import Deal, Price, Shop


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "tui: marks TUI tests")


@pytest.fixture
def temp_state_dir(tmp_path: Path, monkeypatch) -> Path:
    """Create and return a temporary state directory.

    Sets DEALVE_STATE and resets the debug logger so it picks up the new path.
    """
    state_dir = tmp_path / ".local" / "state" / "dealve"
    state_dir.mkdir(parents=True)
    monkeypatch.setenv("DEALVE_STATE", str(state_dir))

    from dealve.debug_logger import reset_logger
    reset_logger()

    return state_dir


@pytest.fixture
def temp_config_path(tmp_path: Path, monkeypatch) -> Path:
    """Settings file path inside tmp_path (not created). Sets DEALVE_CONFIG."""
    config_path = tmp_path / ".config" / "dealve" / "config.json"
    monkeypatch.setenv("DEALVE_CONFIG", str(config_path))
    return config_path


@pytest.fixture(autouse=True)
def isolate_environment(temp_state_dir: Path, temp_config_path: Path, monkeypatch):
    """Autouse fixture keeping every test away from the real config, state and key."""
    monkeypatch.delenv("ITAD_API_KEY", raising=False)
    monkeypatch.delenv("DEALVE_DEBUG", raising=False)
    yield temp_state_dir

    from dealve.debug_logger import reset_logger
    reset_logger()


@pytest.fixture
def make_deal() -> Callable[..., Deal]:
    """Factory for Deal records with sensible defaults."""

    def _make(
        deal_id: str = "game-1",
        title: str = "Test Game",
        amount: float = 9.99,
        discount: int = 50,
        shop_id: str = "61",
        shop_name: str = "Steam",
        regular_price: float = 19.99,
        history_low=None,
        currency: str = "USD",
    ) -> Deal:
        return Deal(
            id=deal_id,
            title=title,
            shop=Shop(id=shop_id, name=shop_name),
            price=Price(amount=amount, currency=currency, discount=discount),
            regular_price=regular_price,
            url=f"https://example.com/{deal_id}",
            history_low=history_low,
        )

    return _make
