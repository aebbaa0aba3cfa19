#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Tests for the render helpers in dealve.tui.formatting.
"""

from rich.text import Text

from dealve.models import GameInfo, PriceHistoryPoint, Region
from dealve.tui.app_state import AppState
from dealve.tui.formatting import (
    KEYBINDS,
    format_cut,
    format_deal_row,
    format_regular_price,
    history_series,
    render_deals,
    render_details,
    render_filter_bar,
    render_keybinds,
    render_menu,
    render_options,
    render_platform_popup,
    render_price_filter,
    render_status_line,
    truncate,
    visible_range,
)


def plain(markup: str) -> str:
    """Strip Rich markup, failing loudly on malformed tags."""
    return Text.from_markup(markup).plain


class TestHelpers:
    def test_truncate(self):
        assert truncate("Hades", 10) == "Hades"
        assert truncate("Hollow Knight", 6) == "Hollo…"
        assert truncate("Hades", 1) == "…"
        assert truncate("Hades", 0) == ""

    def test_visible_range_keeps_selection_centered(self):
        assert visible_range(5, 2, 10) == (0, 5)
        assert visible_range(100, 0, 10) == (0, 10)
        assert visible_range(100, 50, 10) == (45, 55)
        assert visible_range(100, 99, 10) == (90, 100)
        assert visible_range(0, 0, 10) == (0, 0)

    def test_format_cut(self):
        assert format_cut(75) == "-75%"
        assert format_cut(0) == ""

    def test_regular_price_uses_currency_symbol(self, make_deal):
        deal = make_deal(currency="EUR", regular_price=29.99)
        assert format_regular_price(deal) == "€29.99"

    def test_deal_row(self, make_deal):
        deal = make_deal(title="[Hades]", amount=4.99, discount=75, history_low=4.99)
        text = plain(format_deal_row(deal, selected=True))
        assert "▶ [Hades]" in text
        assert "$4.99" in text
        assert "-75%" in text
        assert "ATL" in text
        assert "ATL" not in plain(format_deal_row(make_deal(), selected=False))


class TestDealsView:
    def test_rows(self, loaded_state: AppState):
        loaded_state.ui.selected = 1
        lines = plain(render_deals(loaded_state)).splitlines()
        assert len(lines) == 5
        assert "▶" in lines[1]
        assert "Game 0" in lines[0]

    def test_window_is_limited_to_height(self, loaded_state: AppState):
        assert len(plain(render_deals(loaded_state, height=3)).splitlines()) == 3

    def test_loading_placeholder(self, state: AppState):
        state.set_loading(True)
        assert "Loading deals..." in plain(render_deals(state))

    def test_empty_placeholder(self, state: AppState):
        assert "No deals found" in plain(render_deals(state))

    def test_filtered_placeholder(self, loaded_state: AppState):
        loaded_state.price_filter.active_max = 1.0
        assert "No deals match" in plain(render_deals(loaded_state))

    def test_error_offers_retry(self, loaded_state: AppState):
        loaded_state.error = "Network error: [Errno 111] refused"
        text = plain(render_deals(loaded_state))
        assert "Error: Network error: [Errno 111] refused" in text
        assert "Press r to retry" in text

    def test_loading_more_footer(self, loaded_state: AppState):
        loaded_state.pagination.loading_more = True
        assert "Loading more..." in plain(render_deals(loaded_state))


class TestStatusAndFilterBar:
    def test_status_line(self, loaded_state: AppState):
        loaded_state.region = Region.GB
        loaded_state.price_filter.active_min = 11.0
        loaded_state.active_search_query = "game"
        text = plain(render_status_line(loaded_state))
        assert "All Platforms" in text
        assert "GB" in text
        assert "Sort: Price ↑" in text
        assert "Price: >11" in text
        assert 'Search: "game"' in text
        assert "4 deals" in text

    def test_filter_bar_modes(self, state: AppState):
        assert "f search" in plain(render_filter_bar(state))
        state.filter.active = True
        state.filter.text = "hal"
        assert "Search: hal" in plain(render_filter_bar(state))
        state.filter.active = False
        state.active_search_query = "halo"
        assert "(f edit, c clear)" in plain(render_filter_bar(state))


class TestDetails:
    def test_nothing_selected(self, state: AppState):
        assert "No deal selected" in plain(render_details(state))

    def test_deal_fields(self, state: AppState, make_deal):
        state.deals = [make_deal(title="Hades", amount=4.99, discount=75, history_low=4.99)]
        text = plain(render_details(state))
        assert "Hades" in text
        assert "Price:      $4.99  -75%" in text
        assert "Regular:    $19.99" in text
        assert "All-time low!" in text

    def test_game_info_and_history(self, loaded_state: AppState):
        loaded_state.game_info_cache["game-0"] = GameInfo(
            id="game-0",
            title="Game 0",
            release_date="2020-09-17",
            developers=["Supergiant Games"],
            tags=["Roguelike"],
        )
        loaded_state.price_history_cache["game-0"] = [
            PriceHistoryPoint(timestamp=1_700_000_000, price=24.99, shop_name="Steam"),
            PriceHistoryPoint(timestamp=1_710_000_000, price=9.99, shop_name="Steam"),
        ]
        text = plain(render_details(loaded_state))
        assert "Released:   2020-09-17" in text
        assert "Developer:  Supergiant Games" in text
        assert "Tags:       Roguelike" in text
        assert "1y range:   $9.99 - $24.99 (2 changes)" in text

    def test_loading_markers(self, loaded_state: AppState):
        loaded_state.loading.game_info = "game-0"
        loaded_state.loading.price_history = "game-0"
        text = plain(render_details(loaded_state))
        assert "Loading info..." in text
        assert "Loading price history..." in text


class TestHistorySeries:
    def test_empty(self):
        assert history_series([]) == ([], [], [])

    def test_step_function_extends_to_now(self):
        day = 86400
        points = [
            PriceHistoryPoint(timestamp=1_700_000_000, price=20.0, shop_name="Steam"),
            PriceHistoryPoint(timestamp=1_700_000_000 + 10 * day, price=5.0, shop_name="Steam"),
        ]
        xs, ys, labels = history_series(points)
        assert xs[:3] == [0.0, 10.0, 10.0]
        assert ys[:3] == [20.0, 20.0, 5.0]
        assert xs[-1] > 10.0
        assert ys[-1] == 5.0
        assert len(labels) == len(xs)
        assert labels[0] == "Nov 14"


class TestPopups:
    def test_menu_marks_cursor(self, state: AppState):
        state.ui.menu_selected = 2
        lines = plain(render_menu(state)).splitlines()
        assert lines[2].strip() == "▶ KEYBINDS"
        assert lines[0].strip() == "BROWSE DEALS"

    def test_keybinds_lists_every_binding(self):
        text = plain(render_keybinds())
        for key, action in KEYBINDS:
            assert key in text
            assert action in text

    def test_platform_popup(self, state: AppState):
        from dealve.models import Platform

        state.options.enabled_platforms = {Platform.ALL, Platform.STEAM}
        state.ui.platform_popup_index = 1
        lines = plain(render_platform_popup(state)).splitlines()
        assert lines[0].strip() == "All Platforms (current)"
        assert lines[1].strip() == "▶ Steam"

        state.options.enabled_platforms = set()
        assert "No platforms enabled" in plain(render_platform_popup(state))

    def test_price_filter_popup(self, loaded_state: AppState):
        loaded_state.price_filter.min_input = "5"
        loaded_state.price_filter.selected_field = 1
        text = plain(render_price_filter(loaded_state))
        assert "Min: $5" in text
        assert "Max: $▏" in text

    def test_options_region_tab_groups_by_continent(self, state: AppState):
        text = plain(render_options(state, height=50))
        assert "North America" in text
        assert "▶ ● United States (US)" in text

    def test_options_platforms_tab(self, state: AppState):
        state.options.current_tab = 1
        text = plain(render_options(state))
        assert "Default platform: All Platforms" in text
        assert "☑ AllYouPlay" in text

    def test_options_advanced_tab(self, state: AppState):
        state.options.current_tab = 2
        state.options.advanced_list_index = 1
        text = plain(render_options(state))
        assert "Default sort: Price ↑" in text
        assert "▶ Deals per page: 50" in text
        assert "Info load delay: 200 ms" in text
