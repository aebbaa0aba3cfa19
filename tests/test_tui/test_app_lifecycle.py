#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Tests for DealveApp lifecycle behavior.

Tests cover the initial load on mount, key routing through the focused deals
list and the overlay screen, load failures and shutdown.
"""

import pytest

pytest.importorskip("textual")

# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)

from dealve.errors import ApiError
from dealve.tui.app import DealveApp, DealsList, OverlayScreen
from dealve.tui.app_state import AppState, Popup


# --- Fixtures ---


@pytest.fixture
def app(state: AppState, fake_client, make_deals) -> DealveApp:
    """App wired to the fake gateway with one short page queued."""
    fake_client.pages = [make_deals(5)]
    return DealveApp(state, fake_client)


async def _wait_for_deals(pilot, app: DealveApp) -> None:
    for _ in range(20):
        if app.state.deals:
            return
        await pilot.pause(0.05)


# --- Mount Tests ---


@pytest.mark.asyncio
async def test_mount_starts_primary_load(app: DealveApp, fake_client):
    """
    Verify the first page is requested on mount and delivered by the tick timer.
    """
    async with app.run_test(size=(120, 40)) as pilot:
        await _wait_for_deals(pilot, app)

        assert fake_client.calls[0][0] == "get_deals"
        assert len(app.state.deals) == 5
        assert not app.state.loading.deals
        # A page shorter than the page size ends pagination
        assert not app.state.pagination.has_more


@pytest.mark.asyncio
async def test_deals_list_has_focus(app: DealveApp):
    """Key presses must land on the deals list, not on screen bindings."""
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        assert isinstance(app.focused, DealsList)


@pytest.mark.asyncio
async def test_rendered_rows(app: DealveApp):
    async with app.run_test(size=(120, 40)) as pilot:
        await _wait_for_deals(pilot, app)
        await pilot.pause(0.1)
        assert "Game 0" in app._rendered["deals-list"]
        assert "5 deals" in app._rendered["status-line"]


# --- Key Routing Tests ---


@pytest.mark.asyncio
async def test_navigation_keys(app: DealveApp):
    async with app.run_test(size=(120, 40)) as pilot:
        await _wait_for_deals(pilot, app)

        await pilot.press("j", "j")
        assert app.state.ui.selected == 2

        await pilot.press("k")
        assert app.state.ui.selected == 1

        await pilot.press("up", "up")
        assert app.state.ui.selected == 4


@pytest.mark.asyncio
async def test_menu_overlay_opens_and_closes(app: DealveApp):
    """
    Verify the menu is drawn on an OverlayScreen and removed on escape.
    """
    async with app.run_test(size=(120, 40)) as pilot:
        await _wait_for_deals(pilot, app)

        await pilot.press("q")
        await pilot.pause()
        assert app.state.ui.show_menu
        assert isinstance(app.screen, OverlayScreen)

        await pilot.press("escape")
        await pilot.pause()
        assert not app.state.ui.show_menu
        assert not isinstance(app.screen, OverlayScreen)
        assert isinstance(app.focused, DealsList)


@pytest.mark.asyncio
async def test_options_popup_from_menu(app: DealveApp):
    async with app.run_test(size=(120, 40)) as pilot:
        await _wait_for_deals(pilot, app)

        await pilot.press("q", "j", "enter")
        await pilot.pause()
        assert app.state.ui.popup is Popup.OPTIONS
        assert isinstance(app.screen, OverlayScreen)

        # Tab is routed to the options tabs, not to focus navigation
        await pilot.press("tab")
        assert app.state.options.current_tab == 1

        await pilot.press("escape")
        await pilot.pause()
        assert app.state.ui.popup is Popup.NONE
        assert app.state.ui.show_menu


@pytest.mark.asyncio
async def test_refresh_key_reloads(app: DealveApp, fake_client, make_deals):
    async with app.run_test(size=(120, 40)) as pilot:
        await _wait_for_deals(pilot, app)
        fake_client.pages = [make_deals(3, prefix="fresh")]

        await pilot.press("r")
        for _ in range(20):
            if app.state.deals and app.state.deals[0].id == "fresh-0":
                break
            await pilot.pause(0.05)

        assert [d.id for d in app.state.deals] == ["fresh-0", "fresh-1", "fresh-2"]
        assert fake_client.call_names().count("get_deals") == 2


# --- Failure and Shutdown Tests ---


@pytest.mark.asyncio
async def test_load_failure_shows_error(state: AppState, fake_client):
    fake_client.pages = [ApiError("API returned status 503: unavailable")]
    app = DealveApp(state, fake_client)

    async with app.run_test(size=(120, 40)) as pilot:
        for _ in range(20):
            if app.state.error:
                break
            await pilot.pause(0.05)
        await pilot.pause(0.1)

        assert app.state.error == "API error: API returned status 503: unavailable"
        assert not app.state.loading.deals
        assert "Press r to retry" in app._rendered["deals-list"]


@pytest.mark.asyncio
async def test_quit_from_menu_closes_client(app: DealveApp, fake_client):
    """
    Verify choosing QUIT exits the app and the gateway is closed on unmount.
    """
    async with app.run_test(size=(120, 40)) as pilot:
        await _wait_for_deals(pilot, app)
        # k wraps the menu cursor from BROWSE DEALS to QUIT
        await pilot.press("q", "k", "enter")
        await pilot.pause()
        assert app.state.should_quit

    assert fake_client.closed
    assert app.tasks.load_task is None


@pytest.mark.asyncio
async def test_failed_load_is_not_retried_by_ticks(state: AppState, fake_client, make_deals):
    """A failed page stays failed until the user presses r."""
    fake_client.pages = [ApiError("API returned status 503: unavailable"), make_deals(5)]
    app = DealveApp(state, fake_client)

    async with app.run_test(size=(120, 40)) as pilot:
        for _ in range(20):
            if app.state.error:
                break
            await pilot.pause(0.05)
        # Several tick intervals
        await pilot.pause(0.5)

        assert fake_client.call_names() == ["get_deals"]
        assert app.state.error is not None
        assert app.state.deals == []


@pytest.mark.asyncio
async def test_unmount_stops_tick_timer(app: DealveApp):
    """Ticks and redraws after teardown are no-ops, not widget lookups."""
    async with app.run_test(size=(120, 40)) as pilot:
        await _wait_for_deals(pilot, app)
        assert app._tick_timer is not None

    assert app._tick_timer is None
    app._on_tick()
    app.refresh_view()
