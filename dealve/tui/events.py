# SPDX-License-Identifier: MIT
"""Key to message mapping.

Keys are Textual key names ("escape", "enter", "shift+tab", ...) plus the
printable character, if any. The first matching mode wins: open popup, then
menu, then filter typing, then browsing.
"""
from typing import Optional

from dealve.tui import messages as m
from dealve.tui.app_state import AppState, Popup


def _is_down(key: str, character: Optional[str]) -> bool:
    return key == "down" or character == "j"


def _is_up(key: str, character: Optional[str]) -> bool:
    return key == "up" or character == "k"


def _printable(character: Optional[str]) -> Optional[str]:
    if character and len(character) == 1 and character.isprintable():
        return character
    return None


def handle_platform_key(key: str, character: Optional[str]) -> Optional[m.Message]:
    if key == "escape":
        return m.ClosePopup()
    if _is_down(key, character):
        return m.PlatformPopupNext()
    if _is_up(key, character):
        return m.PlatformPopupPrev()
    if key == "enter":
        return m.PlatformPopupSelect()
    return None


def handle_options_key(key: str, character: Optional[str]) -> Optional[m.Message]:
    if key == "escape":
        return m.ClosePopup()
    if key in ("tab", "right"):
        return m.OptionsNextTab()
    if key in ("shift+tab", "left"):
        return m.OptionsPrevTab()
    if _is_down(key, character):
        return m.OptionsNextItem()
    if _is_up(key, character):
        return m.OptionsPrevItem()
    if character == "s":
        return m.OptionsToggleSortDirection()
    if key in ("enter", "space"):
        return m.OptionsToggleItem()
    return None


def handle_keybinds_key(key: str, character: Optional[str]) -> Optional[m.Message]:
    if key == "escape":
        return m.ClosePopup()
    return None


def handle_price_filter_key(key: str, character: Optional[str]) -> Optional[m.Message]:
    if key == "escape":
        return m.ClosePopup()
    if key == "tab":
        return m.PriceFilterSwitchField()
    if key == "enter":
        return m.PriceFilterApply()
    if key == "backspace":
        return m.PriceFilterPop()
    char = _printable(character)
    if char == "c":
        return m.PriceFilterClear()
    if char is not None:
        return m.PriceFilterPush(char)
    return None


def handle_menu_key(key: str, character: Optional[str]) -> Optional[m.Message]:
    if key == "escape":
        return m.ToggleMenu()
    if character == "q":
        return m.Quit()
    if _is_down(key, character):
        return m.MenuNext()
    if _is_up(key, character):
        return m.MenuPrevious()
    if key == "enter":
        return m.MenuSelect()
    return None


def handle_filter_key(key: str, character: Optional[str]) -> Optional[m.Message]:
    if key == "escape":
        return m.CancelFilter()
    if key == "enter":
        return m.ConfirmFilter()
    if key == "backspace":
        return m.FilterPop()
    char = _printable(character)
    if char is not None:
        return m.FilterPush(char)
    return None


_MAIN_CHARS = {
    "q": m.ToggleMenu,
    "j": m.SelectNext,
    "k": m.SelectPrevious,
    "p": m.OpenPlatformPopup,
    "f": m.StartFilter,
    "r": m.RequestRefresh,
    "s": m.ToggleSortDirection,
    "c": m.ClearFilters,
    "$": m.OpenPriceFilter,
}

_MAIN_KEYS = {
    "escape": m.ToggleMenu,
    "down": m.SelectNext,
    "up": m.SelectPrevious,
    "enter": m.OpenSelectedDeal,
    "left": m.PrevSortCriteria,
    "right": m.NextSortCriteria,
}


def handle_main_key(key: str, character: Optional[str]) -> Optional[m.Message]:
    factory = _MAIN_KEYS.get(key)
    if factory is None and character:
        factory = _MAIN_CHARS.get(character)
    return factory() if factory is not None else None


def handle_key(state: AppState, key: str, character: Optional[str] = None) -> Optional[m.Message]:
    """Map a key press to a message for the current mode, or None."""
    popup = state.ui.popup
    if popup is Popup.PLATFORM:
        return handle_platform_key(key, character)
    if popup is Popup.OPTIONS:
        return handle_options_key(key, character)
    if popup is Popup.KEYBINDS:
        return handle_keybinds_key(key, character)
    if popup is Popup.PRICE_FILTER:
        return handle_price_filter_key(key, character)
    if state.ui.show_menu:
        return handle_menu_key(key, character)
    if state.filter.active:
        return handle_filter_key(key, character)
    return handle_main_key(key, character)
