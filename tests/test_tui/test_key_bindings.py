#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Tests for the key to message mapping in dealve.tui.events.
"""

import pytest

from dealve.tui import messages as m
from dealve.tui.app_state import AppState, Popup
from dealve.tui.events import handle_key


class TestMainMode:
    @pytest.mark.parametrize("key,character,expected", [
        ("j", "j", m.SelectNext),
        ("down", None, m.SelectNext),
        ("k", "k", m.SelectPrevious),
        ("up", None, m.SelectPrevious),
        ("enter", None, m.OpenSelectedDeal),
        ("q", "q", m.ToggleMenu),
        ("escape", None, m.ToggleMenu),
        ("p", "p", m.OpenPlatformPopup),
        ("f", "f", m.StartFilter),
        ("r", "r", m.RequestRefresh),
        ("s", "s", m.ToggleSortDirection),
        ("c", "c", m.ClearFilters),
        ("dollar_sign", "$", m.OpenPriceFilter),
        ("left", None, m.PrevSortCriteria),
        ("right", None, m.NextSortCriteria),
    ])
    def test_bindings(self, state: AppState, key, character, expected):
        assert isinstance(handle_key(state, key, character), expected)

    def test_unbound_key(self, state: AppState):
        assert handle_key(state, "x", "x") is None
        assert handle_key(state, "f5", None) is None


class TestFilterMode:
    @pytest.fixture
    def typing(self, state: AppState) -> AppState:
        state.filter.active = True
        return state

    def test_printable_characters_are_typed(self, typing: AppState):
        # Browse bindings are plain text while typing
        for char in "qjkf $":
            assert handle_key(typing, char, char) == m.FilterPush(char)

    def test_editing_keys(self, typing: AppState):
        assert isinstance(handle_key(typing, "backspace"), m.FilterPop)
        assert isinstance(handle_key(typing, "enter"), m.ConfirmFilter)
        assert isinstance(handle_key(typing, "escape"), m.CancelFilter)

    def test_non_printable_ignored(self, typing: AppState):
        assert handle_key(typing, "down", None) is None


class TestMenuMode:
    @pytest.fixture
    def menu(self, state: AppState) -> AppState:
        state.ui.show_menu = True
        return state

    def test_bindings(self, menu: AppState):
        assert isinstance(handle_key(menu, "j", "j"), m.MenuNext)
        assert isinstance(handle_key(menu, "up", None), m.MenuPrevious)
        assert isinstance(handle_key(menu, "enter"), m.MenuSelect)
        assert isinstance(handle_key(menu, "escape"), m.ToggleMenu)
        assert isinstance(handle_key(menu, "q", "q"), m.Quit)

    def test_menu_wins_over_filter(self, menu: AppState):
        menu.filter.active = True
        assert isinstance(handle_key(menu, "q", "q"), m.Quit)


class TestPopupModes:
    def test_popup_wins_over_menu(self, state: AppState):
        state.ui.show_menu = True
        state.ui.popup = Popup.KEYBINDS
        assert handle_key(state, "q", "q") is None
        assert isinstance(handle_key(state, "escape"), m.ClosePopup)

    def test_platform_popup(self, state: AppState):
        state.ui.popup = Popup.PLATFORM
        assert isinstance(handle_key(state, "j", "j"), m.PlatformPopupNext)
        assert isinstance(handle_key(state, "up"), m.PlatformPopupPrev)
        assert isinstance(handle_key(state, "enter"), m.PlatformPopupSelect)
        assert isinstance(handle_key(state, "escape"), m.ClosePopup)

    @pytest.mark.parametrize("key,character,expected", [
        ("tab", None, m.OptionsNextTab),
        ("right", None, m.OptionsNextTab),
        ("shift+tab", None, m.OptionsPrevTab),
        ("left", None, m.OptionsPrevTab),
        ("j", "j", m.OptionsNextItem),
        ("k", "k", m.OptionsPrevItem),
        ("enter", None, m.OptionsToggleItem),
        ("space", " ", m.OptionsToggleItem),
        ("s", "s", m.OptionsToggleSortDirection),
        ("escape", None, m.ClosePopup),
    ])
    def test_options_popup(self, state: AppState, key, character, expected):
        state.ui.popup = Popup.OPTIONS
        assert isinstance(handle_key(state, key, character), expected)

    def test_price_filter_popup(self, state: AppState):
        state.ui.popup = Popup.PRICE_FILTER
        assert handle_key(state, "5", "5") == m.PriceFilterPush("5")
        assert handle_key(state, "full_stop", ".") == m.PriceFilterPush(".")
        assert isinstance(handle_key(state, "c", "c"), m.PriceFilterClear)
        assert isinstance(handle_key(state, "tab"), m.PriceFilterSwitchField)
        assert isinstance(handle_key(state, "backspace"), m.PriceFilterPop)
        assert isinstance(handle_key(state, "enter"), m.PriceFilterApply)
        assert isinstance(handle_key(state, "escape"), m.ClosePopup)
