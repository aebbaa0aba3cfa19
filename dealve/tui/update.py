# SPDX-License-Identifier: MIT
"""State transitions for the deals browser.

update(state, msg) applies one message to AppState in place and returns an
UpdateResult describing the follow-up work the driver must do:

- needs_reload: start a fresh primary load (TaskManager.start_load)
- selection_changed: restart the game info debounce timer
- msg: a chained message to apply next (see dispatch)

update() never performs I/O except OpenSelectedDeal (browser) and the
settings saves triggered from the options popup.
"""
import webbrowser
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Type

from dealve.debug_logger import get_logger
from dealve.models import Platform, Region, SortCriteria
from dealve.tui import messages as m
from dealve.tui.app_state import (
    ADVANCED_ITEM_COUNT,
    GAME_INFO_DELAY_CYCLE,
    PAGE_SIZE_CYCLE,
    PRICE_INPUT_MAX_LEN,
    AppState,
    MenuItem,
    OptionsTab,
    Popup,
    next_in_cycle,
)

MAX_CHAIN_DEPTH = 8
SPINNER_FRAME_COUNT = 10
PRICE_INPUT_CHARS = set("0123456789.")


@dataclass
class UpdateResult:
    msg: Optional[m.Message] = None
    needs_reload: bool = False
    selection_changed: bool = False

    @classmethod
    def none(cls) -> "UpdateResult":
        return cls()

    @classmethod
    def with_selection_changed(cls) -> "UpdateResult":
        return cls(selection_changed=True)

    @classmethod
    def with_reload(cls) -> "UpdateResult":
        return cls(needs_reload=True, selection_changed=True)

    @classmethod
    def with_msg(cls, msg: m.Message) -> "UpdateResult":
        return cls(msg=msg)


Handler = Callable[[AppState, m.Message], UpdateResult]
_HANDLERS: Dict[Type[m.Message], Handler] = {}


def _handles(*message_types: Type[m.Message]):
    def register(fn: Handler) -> Handler:
        for message_type in message_types:
            _HANDLERS[message_type] = fn
        return fn
    return register


def update(state: AppState, msg: m.Message) -> UpdateResult:
    """Apply one message. Unknown message types are ignored."""
    handler = _HANDLERS.get(type(msg))
    if handler is None:
        return UpdateResult.none()
    return handler(state, msg)


def dispatch(state: AppState, msg: m.Message) -> UpdateResult:
    """Apply msg and every message it chains, merging their effect flags.

    Raises:
        RuntimeError: if the chain is longer than MAX_CHAIN_DEPTH
    """
    merged = UpdateResult()
    current: Optional[m.Message] = msg
    applied = 0
    while current is not None:
        if applied >= MAX_CHAIN_DEPTH:
            raise RuntimeError(
                f"Message chain exceeded {MAX_CHAIN_DEPTH} steps at {type(current).__name__}"
            )
        result = update(state, current)
        merged.needs_reload = merged.needs_reload or result.needs_reload
        merged.selection_changed = merged.selection_changed or result.selection_changed
        current = result.msg
        applied += 1
    return merged


# =============================================================================
# Navigation
# =============================================================================


@_handles(m.SelectNext)
def _select_next(state: AppState, msg: m.Message) -> UpdateResult:
    count = len(state.filtered_deals())
    if count > 0:
        state.select(state.ui.selected + 1 if state.ui.selected < count - 1 else 0)
    return UpdateResult.with_selection_changed()


@_handles(m.SelectPrevious)
def _select_previous(state: AppState, msg: m.Message) -> UpdateResult:
    count = len(state.filtered_deals())
    if count > 0:
        selected = state.ui.selected
        state.select(selected - 1 if 0 < selected < count else count - 1)
    return UpdateResult.with_selection_changed()


@_handles(m.OpenSelectedDeal)
def _open_selected_deal(state: AppState, msg: m.Message) -> UpdateResult:
    deal = state.selected_deal()
    if deal is not None and deal.url:
        try:
            webbrowser.open(deal.url)
        except webbrowser.Error as e:
            get_logger().error("open_browser_failed", url=deal.url, err=str(e))
    return UpdateResult.none()


# =============================================================================
# Menu
# =============================================================================


@_handles(m.ToggleMenu)
def _toggle_menu(state: AppState, msg: m.Message) -> UpdateResult:
    state.ui.show_menu = not state.ui.show_menu
    if state.ui.show_menu:
        state.ui.menu_selected = 0
    return UpdateResult.none()


@_handles(m.MenuNext)
def _menu_next(state: AppState, msg: m.Message) -> UpdateResult:
    state.ui.menu_selected = (state.ui.menu_selected + 1) % len(MenuItem)
    return UpdateResult.none()


@_handles(m.MenuPrevious)
def _menu_previous(state: AppState, msg: m.Message) -> UpdateResult:
    state.ui.menu_selected = (state.ui.menu_selected - 1) % len(MenuItem)
    return UpdateResult.none()


@_handles(m.MenuSelect)
def _menu_select(state: AppState, msg: m.Message) -> UpdateResult:
    item = list(MenuItem)[state.ui.menu_selected]
    if item is MenuItem.BROWSE:
        state.ui.show_menu = False
    elif item is MenuItem.OPTIONS:
        state.ui.popup = Popup.OPTIONS
    elif item is MenuItem.KEYBINDS:
        state.ui.popup = Popup.KEYBINDS
    elif item is MenuItem.QUIT:
        return UpdateResult.with_msg(m.Quit())
    return UpdateResult.none()


# =============================================================================
# Text filter
# =============================================================================


@_handles(m.StartFilter)
def _start_filter(state: AppState, msg: m.Message) -> UpdateResult:
    state.filter.active = True
    state.filter.text = state.active_search_query or ""
    return UpdateResult.none()


@_handles(m.CancelFilter)
def _cancel_filter(state: AppState, msg: m.Message) -> UpdateResult:
    state.filter.active = False
    state.filter.text = state.active_search_query or ""
    state.select(0)
    return UpdateResult.with_selection_changed()


@_handles(m.ConfirmFilter)
def _confirm_filter(state: AppState, msg: m.Message) -> UpdateResult:
    state.filter.active = False
    normalized = state.filter.text.strip()
    next_query = normalized or None
    changed = state.active_search_query != next_query
    state.active_search_query = next_query
    if state.is_search_mode() and not state.is_search_sort_supported():
        state.sort_state.criteria = SortCriteria.PRICE
    state.filter.text = state.active_search_query or ""
    state.select(0)
    if changed:
        return UpdateResult.with_reload()
    return UpdateResult.with_selection_changed()


@_handles(m.FilterPush)
def _filter_push(state: AppState, msg: m.FilterPush) -> UpdateResult:
    state.filter.text += msg.char
    state.select(0)
    return UpdateResult.with_selection_changed()


@_handles(m.FilterPop)
def _filter_pop(state: AppState, msg: m.Message) -> UpdateResult:
    state.filter.text = state.filter.text[:-1]
    state.select(0)
    return UpdateResult.with_selection_changed()


@_handles(m.ClearFilters)
def _clear_filters(state: AppState, msg: m.Message) -> UpdateResult:
    if not (state.filter.text or state.price_filter.is_active() or state.active_search_query is not None):
        return UpdateResult.none()
    had_search_query = state.active_search_query is not None
    state.active_search_query = None
    state.filter.text = ""
    state.filter.active = False
    state.price_filter.clear()
    state.select(0)
    if had_search_query:
        return UpdateResult.with_reload()
    return UpdateResult.with_selection_changed()


# =============================================================================
# Price filter
# =============================================================================


def _format_bound(value: Optional[float]) -> str:
    return "" if value is None else f"{value:.0f}"


@_handles(m.OpenPriceFilter)
def _open_price_filter(state: AppState, msg: m.Message) -> UpdateResult:
    pf = state.price_filter
    pf.min_input = _format_bound(pf.active_min)
    pf.max_input = _format_bound(pf.active_max)
    pf.selected_field = 0
    state.ui.popup = Popup.PRICE_FILTER
    return UpdateResult.none()


@_handles(m.PriceFilterSwitchField)
def _price_filter_switch_field(state: AppState, msg: m.Message) -> UpdateResult:
    state.price_filter.selected_field = 1 - state.price_filter.selected_field
    return UpdateResult.none()


@_handles(m.PriceFilterPush)
def _price_filter_push(state: AppState, msg: m.PriceFilterPush) -> UpdateResult:
    pf = state.price_filter
    if msg.char not in PRICE_INPUT_CHARS:
        return UpdateResult.none()
    if pf.selected_field == 0:
        if len(pf.min_input) < PRICE_INPUT_MAX_LEN:
            pf.min_input += msg.char
    elif len(pf.max_input) < PRICE_INPUT_MAX_LEN:
        pf.max_input += msg.char
    return UpdateResult.none()


@_handles(m.PriceFilterPop)
def _price_filter_pop(state: AppState, msg: m.Message) -> UpdateResult:
    pf = state.price_filter
    if pf.selected_field == 0:
        pf.min_input = pf.min_input[:-1]
    else:
        pf.max_input = pf.max_input[:-1]
    return UpdateResult.none()


@_handles(m.PriceFilterApply)
def _price_filter_apply(state: AppState, msg: m.Message) -> UpdateResult:
    state.price_filter.apply()
    state.ui.popup = Popup.NONE
    state.select(0)
    return UpdateResult.with_selection_changed()


@_handles(m.PriceFilterClear)
def _price_filter_clear(state: AppState, msg: m.Message) -> UpdateResult:
    state.price_filter.clear()
    state.ui.popup = Popup.NONE
    state.select(0)
    return UpdateResult.with_selection_changed()


# =============================================================================
# Platform popup
# =============================================================================


@_handles(m.OpenPlatformPopup)
def _open_platform_popup(state: AppState, msg: m.Message) -> UpdateResult:
    enabled = state.enabled_platforms()
    if state.platform_filter in enabled:
        state.ui.platform_popup_index = enabled.index(state.platform_filter)
    else:
        state.ui.platform_popup_index = 0
    state.ui.popup = Popup.PLATFORM
    return UpdateResult.none()


@_handles(m.PlatformPopupNext)
def _platform_popup_next(state: AppState, msg: m.Message) -> UpdateResult:
    count = len(state.enabled_platforms())
    if count:
        state.ui.platform_popup_index = (state.ui.platform_popup_index + 1) % count
    return UpdateResult.none()


@_handles(m.PlatformPopupPrev)
def _platform_popup_prev(state: AppState, msg: m.Message) -> UpdateResult:
    count = len(state.enabled_platforms())
    if count:
        state.ui.platform_popup_index = (state.ui.platform_popup_index - 1) % count
    return UpdateResult.none()


@_handles(m.PlatformPopupSelect)
def _platform_popup_select(state: AppState, msg: m.Message) -> UpdateResult:
    enabled = state.enabled_platforms()
    state.ui.popup = Popup.NONE
    if 0 <= state.ui.platform_popup_index < len(enabled):
        platform = enabled[state.ui.platform_popup_index]
        if platform is not state.platform_filter:
            state.platform_filter = platform
            state.select(0)
            return UpdateResult.with_reload()
    return UpdateResult.none()


# =============================================================================
# Sort
# =============================================================================


def _sort_changed(state: AppState) -> UpdateResult:
    state.select(0)
    # Search results are sorted locally; the API order only matters for listings
    if state.is_search_mode():
        return UpdateResult.with_selection_changed()
    return UpdateResult.with_reload()


@_handles(m.ToggleSortDirection)
def _toggle_sort_direction(state: AppState, msg: m.Message) -> UpdateResult:
    state.sort_state.direction = state.sort_state.direction.toggle()
    return _sort_changed(state)


@_handles(m.NextSortCriteria)
def _next_sort_criteria(state: AppState, msg: m.Message) -> UpdateResult:
    criteria = state.sort_state.criteria
    state.sort_state.criteria = criteria.toggle_search() if state.is_search_mode() else criteria.next()
    return _sort_changed(state)


@_handles(m.PrevSortCriteria)
def _prev_sort_criteria(state: AppState, msg: m.Message) -> UpdateResult:
    criteria = state.sort_state.criteria
    state.sort_state.criteria = criteria.toggle_search() if state.is_search_mode() else criteria.prev()
    return _sort_changed(state)


# =============================================================================
# Popups and options
# =============================================================================


@_handles(m.ClosePopup)
def _close_popup(state: AppState, msg: m.Message) -> UpdateResult:
    state.ui.popup = Popup.NONE
    state.options.reset_cursors()
    return UpdateResult.none()


@_handles(m.OptionsNextTab)
def _options_next_tab(state: AppState, msg: m.Message) -> UpdateResult:
    state.options.current_tab = (state.options.current_tab + 1) % len(OptionsTab)
    state.options.reset_cursors()
    return UpdateResult.none()


@_handles(m.OptionsPrevTab)
def _options_prev_tab(state: AppState, msg: m.Message) -> UpdateResult:
    state.options.current_tab = (state.options.current_tab - 1) % len(OptionsTab)
    state.options.reset_cursors()
    return UpdateResult.none()


def _platform_list_len() -> int:
    # Row 0 is the default platform selector, then one checkbox per shop
    return 1 + len(Platform.without_all())


def _move_options_cursor(state: AppState, step: int) -> None:
    opts = state.options
    tab = opts.tab
    if tab is OptionsTab.REGION:
        opts.region_list_index = (opts.region_list_index + step) % len(Region)
    elif tab is OptionsTab.PLATFORMS:
        opts.platform_list_index = (opts.platform_list_index + step) % _platform_list_len()
    else:
        opts.advanced_list_index = (opts.advanced_list_index + step) % ADVANCED_ITEM_COUNT


@_handles(m.OptionsNextItem)
def _options_next_item(state: AppState, msg: m.Message) -> UpdateResult:
    _move_options_cursor(state, 1)
    return UpdateResult.none()


@_handles(m.OptionsPrevItem)
def _options_prev_item(state: AppState, msg: m.Message) -> UpdateResult:
    _move_options_cursor(state, -1)
    return UpdateResult.none()


def cycle_default_platform(state: AppState) -> None:
    """Advance the default platform to the next enabled one, wrapping.

    The active platform filter follows the new default. Does nothing when no
    platform is enabled.
    """
    platforms = list(Platform)
    current = platforms.index(state.options.default_platform)
    for step in range(1, len(platforms) + 1):
        candidate = platforms[(current + step) % len(platforms)]
        if candidate in state.options.enabled_platforms:
            state.options.default_platform = candidate
            state.platform_filter = candidate
            return


@_handles(m.OptionsToggleItem)
def _options_toggle_item(state: AppState, msg: m.Message) -> UpdateResult:
    opts = state.options
    tab = opts.tab
    region_changed = False

    if tab is OptionsTab.REGION:
        regions = list(Region)
        if 0 <= opts.region_list_index < len(regions):
            region = regions[opts.region_list_index]
            if region is not opts.region:
                opts.region = region
                state.region = region
                region_changed = True
    elif tab is OptionsTab.PLATFORMS:
        if opts.platform_list_index == 0:
            cycle_default_platform(state)
        else:
            shops = Platform.without_all()
            index = opts.platform_list_index - 1
            if index < len(shops):
                opts.enabled_platforms ^= {shops[index]}
    else:
        if opts.advanced_list_index == 0:
            opts.default_sort.criteria = opts.default_sort.criteria.next()
        elif opts.advanced_list_index == 1:
            opts.deals_page_size = next_in_cycle(PAGE_SIZE_CYCLE, opts.deals_page_size)
            state.deals_page_size = opts.deals_page_size
        elif opts.advanced_list_index == 2:
            opts.game_info_delay_ms = next_in_cycle(GAME_INFO_DELAY_CYCLE, opts.game_info_delay_ms)
            state.game_info_delay_ms = opts.game_info_delay_ms

    opts.save_to_config()

    if region_changed:
        state.ui.popup = Popup.NONE
        return UpdateResult.with_reload()
    return UpdateResult.none()


@_handles(m.OptionsToggleSortDirection)
def _options_toggle_sort_direction(state: AppState, msg: m.Message) -> UpdateResult:
    opts = state.options
    if opts.tab is OptionsTab.ADVANCED and opts.advanced_list_index == 0:
        opts.default_sort.direction = opts.default_sort.direction.toggle()
        opts.save_to_config()
    return UpdateResult.none()


# =============================================================================
# Data delivery
# =============================================================================


@_handles(m.DealsLoaded)
def _deals_loaded(state: AppState, msg: m.DealsLoaded) -> UpdateResult:
    if not msg.is_more:
        state.pagination.has_more = False
    state.deals = list(msg.deals)
    state.pagination.offset = msg.page_size
    state.select(0)
    state.loading.deals = False
    state.error = None
    return UpdateResult.with_selection_changed()


@_handles(m.MoreDealsLoaded)
def _more_deals_loaded(state: AppState, msg: m.MoreDealsLoaded) -> UpdateResult:
    if not msg.is_more:
        state.pagination.has_more = False
    state.deals.extend(msg.deals)
    state.pagination.offset += msg.page_size
    state.pagination.loading_more = False
    state.error = None
    return UpdateResult.none()


@_handles(m.DealsLoadFailed)
def _deals_load_failed(state: AppState, msg: m.DealsLoadFailed) -> UpdateResult:
    state.error = msg.error
    state.loading.deals = False
    state.pagination.loading_more = False
    return UpdateResult.none()


@_handles(m.GameInfoLoaded)
def _game_info_loaded(state: AppState, msg: m.GameInfoLoaded) -> UpdateResult:
    if msg.info is not None:
        state.game_info_cache[msg.game_id] = msg.info
    if state.loading.game_info == msg.game_id:
        state.loading.game_info = None
    return UpdateResult.none()


@_handles(m.PriceHistoryLoaded)
def _price_history_loaded(state: AppState, msg: m.PriceHistoryLoaded) -> UpdateResult:
    state.price_history_cache[msg.game_id] = list(msg.history)
    if state.loading.price_history == msg.game_id:
        state.loading.price_history = None
    return UpdateResult.none()


# =============================================================================
# System
# =============================================================================


@_handles(m.RequestRefresh)
def _request_refresh(state: AppState, msg: m.Message) -> UpdateResult:
    return UpdateResult.with_reload()


@_handles(m.Tick)
def _tick(state: AppState, msg: m.Message) -> UpdateResult:
    if state.is_busy():
        state.ui.spinner_frame = (state.ui.spinner_frame + 1) % SPINNER_FRAME_COUNT
    return UpdateResult.none()


@_handles(m.Quit)
def _quit(state: AppState, msg: m.Message) -> UpdateResult:
    state.should_quit = True
    return UpdateResult.none()
