# SPDX-License-Identifier: MIT
"""State containers for the deals browser.

The dataclasses group related state together semantically:

- PriceFilterState: min/max inputs being edited plus the applied bounds
- OptionsState: the options popup cursor and the settings it edits
- FilterState: text filter edit buffer
- PaginationState: offset cursor for infinite scroll
- LoadingState: per-concern in-flight markers (never one busy flag)
- UiState: menu, popup, selection and spinner
- AppState: top-level container, plus the read-only queries the view and
  the task manager need

AppState is only mutated by dealve.tui.update.update() and, for loading
flags, by the TaskManager right before it spawns a fetch.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set

from dealve.config import DEFAULT_GAME_INFO_DELAY_MS, DEFAULT_PAGE_SIZE, Config
from dealve.debug_logger import get_logger
from dealve.models import (
    Deal,
    GameInfo,
    Platform,
    PriceHistoryPoint,
    Region,
    SortCriteria,
    SortDirection,
    SortState,
)

SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
PRICE_INPUT_MAX_LEN = 8
PAGE_SIZE_CYCLE = (25, 50, 100, 200)
GAME_INFO_DELAY_CYCLE = (100, 200, 300, 500)
# Default sort, page size, game info delay
ADVANCED_ITEM_COUNT = 3


class MenuItem(str, Enum):
    BROWSE = "BROWSE DEALS"
    OPTIONS = "OPTIONS"
    KEYBINDS = "KEYBINDS"
    QUIT = "QUIT"


class Popup(Enum):
    NONE = "none"
    OPTIONS = "options"
    KEYBINDS = "keybinds"
    PLATFORM = "platform"
    PRICE_FILTER = "price_filter"


class OptionsTab(str, Enum):
    REGION = "Region"
    PLATFORMS = "Platforms"
    ADVANCED = "Advanced"


def next_in_cycle(values, current):
    """Next value after current, wrapping. Unknown values restart the cycle."""
    if current in values:
        return values[(values.index(current) + 1) % len(values)]
    return values[0]


@dataclass
class PriceFilterState:
    """Price range filter.

    Inputs are free text while the popup is open; they are parsed only on
    apply. Bounds are inclusive.
    """

    min_input: str = ""
    max_input: str = ""
    selected_field: int = 0  # 0 = min, 1 = max
    active_min: Optional[float] = None
    active_max: Optional[float] = None

    def clear(self) -> None:
        self.min_input = ""
        self.max_input = ""
        self.active_min = None
        self.active_max = None

    def apply(self) -> None:
        self.active_min = _parse_bound(self.min_input)
        self.active_max = _parse_bound(self.max_input)

    def is_active(self) -> bool:
        return self.active_min is not None or self.active_max is not None

    def label(self) -> str:
        if self.active_min is not None and self.active_max is not None:
            return f"{self.active_min:.0f}-{self.active_max:.0f}"
        if self.active_min is not None:
            return f">{self.active_min:.0f}"
        if self.active_max is not None:
            return f"<{self.active_max:.0f}"
        return "-"

    def matches(self, amount: float) -> bool:
        if self.active_min is not None and amount < self.active_min:
            return False
        if self.active_max is not None and amount > self.active_max:
            return False
        return True


def _parse_bound(text: str) -> Optional[float]:
    try:
        return float(text)
    except ValueError:
        return None


@dataclass
class OptionsState:
    """Options popup: list cursors plus the settings being edited."""

    current_tab: int = 0
    platform_list_index: int = 0
    region_list_index: int = 0
    advanced_list_index: int = 0
    default_platform: Platform = Platform.ALL
    enabled_platforms: Set[Platform] = field(default_factory=lambda: set(Platform))
    region: Region = field(default_factory=Region.default)
    deals_page_size: int = DEFAULT_PAGE_SIZE
    game_info_delay_ms: int = DEFAULT_GAME_INFO_DELAY_MS
    default_sort: SortState = field(default_factory=SortState)
    # Settings file written by save_to_config (None = default location)
    config_path: Optional[Path] = None

    @classmethod
    def from_config(cls, config: Config, config_path: Optional[Path] = None) -> "OptionsState":
        enabled = config.get_enabled_platforms()
        default_platform = config.get_default_platform()
        if default_platform not in enabled:
            default_platform = Platform.ALL
        return cls(
            default_platform=default_platform,
            enabled_platforms=enabled,
            region=config.get_region(),
            deals_page_size=config.deals_page_size,
            game_info_delay_ms=config.game_info_delay_ms,
            default_sort=config.get_default_sort(),
            config_path=config_path,
        )

    @property
    def tab(self) -> OptionsTab:
        return list(OptionsTab)[self.current_tab]

    def reset_cursors(self) -> None:
        self.platform_list_index = 0
        self.region_list_index = 0
        self.advanced_list_index = 0

    def save_to_config(self) -> bool:
        """Merge these options into the settings file.

        Re-reads the file first so fields this popup doesn't edit (api_key)
        survive. Failures are logged and reported via the return value only.
        """
        logger = get_logger()
        config = Config.load(self.config_path)
        config.update_from_options(
            self.default_platform,
            self.enabled_platforms,
            self.region,
            self.default_sort,
        )
        config.deals_page_size = self.deals_page_size
        config.game_info_delay_ms = self.game_info_delay_ms
        try:
            path = config.save(self.config_path)
        except OSError as e:
            logger.settings_error("save", str(e))
            return False
        logger.settings_saved(path)
        return True


@dataclass
class FilterState:
    """Text filter. active means the user is typing into the buffer."""

    active: bool = False
    text: str = ""


@dataclass
class PaginationState:
    offset: int = 0
    has_more: bool = True
    loading_more: bool = False


@dataclass
class LoadingState:
    deals: bool = False
    game_info: Optional[str] = None  # Deal id being fetched
    price_history: Optional[str] = None  # Deal id being fetched


@dataclass
class UiState:
    show_menu: bool = False
    menu_selected: int = 0
    popup: Popup = Popup.NONE
    selected: int = 0
    spinner_frame: int = 0
    platform_popup_index: int = 0


@dataclass
class AppState:
    """Top-level state container.

    Aggregates loaded data, caches, sub-states and the active request
    parameters (platform, region, sort).
    """

    # Data
    deals: List[Deal] = field(default_factory=list)
    game_info_cache: Dict[str, GameInfo] = field(default_factory=dict)
    price_history_cache: Dict[str, List[PriceHistoryPoint]] = field(default_factory=dict)

    ui: UiState = field(default_factory=UiState)

    # Filters
    filter: FilterState = field(default_factory=FilterState)
    active_search_query: Optional[str] = None
    price_filter: PriceFilterState = field(default_factory=PriceFilterState)

    sort_state: SortState = field(default_factory=SortState)
    platform_filter: Platform = Platform.ALL
    region: Region = field(default_factory=Region.default)

    pagination: PaginationState = field(default_factory=PaginationState)
    loading: LoadingState = field(default_factory=LoadingState)
    options: OptionsState = field(default_factory=OptionsState)

    api_key: Optional[str] = None
    deals_page_size: int = DEFAULT_PAGE_SIZE
    game_info_delay_ms: int = DEFAULT_GAME_INFO_DELAY_MS

    error: Optional[str] = None
    should_quit: bool = False

    @classmethod
    def from_config(
        cls,
        config: Config,
        api_key: Optional[str] = None,
        config_path: Optional[Path] = None,
    ) -> "AppState":
        """Initial state: platform, region and sort come from saved options."""
        options = OptionsState.from_config(config, config_path)
        return cls(
            sort_state=SortState(options.default_sort.criteria, options.default_sort.direction),
            platform_filter=options.default_platform,
            region=options.region,
            options=options,
            api_key=api_key,
            deals_page_size=options.deals_page_size,
            game_info_delay_ms=options.game_info_delay_ms,
        )

    # -- Mutators used by update() and the task manager -----------------------

    def set_loading(self, loading: bool) -> None:
        self.loading.deals = loading
        if loading:
            self.ui.spinner_frame = 0

    def reset_pagination(self) -> None:
        self.deals = []
        self.pagination = PaginationState()
        self.ui.selected = 0

    def select(self, index: int) -> None:
        self.ui.selected = index

    # -- Queries --------------------------------------------------------------

    def filtered_deals(self) -> List[Deal]:
        """Deals as displayed: shop, text and price predicates, then local sort.

        The text predicate only applies while the user is typing; a confirmed
        query switches to search mode instead.
        """
        shop_id = self.platform_filter.shop_id
        if shop_id is None:
            deals = list(self.deals)
        else:
            deals = [d for d in self.deals if d.shop.id == str(shop_id)]

        if self.filter.active and self.filter.text:
            needle = self.filter.text.lower()
            deals = [d for d in deals if needle in d.title.lower()]

        if self.price_filter.is_active():
            deals = [d for d in deals if self.price_filter.matches(d.price.amount)]

        if self.is_search_mode():
            deals = self._sort_search_results(deals)
        return deals

    def _sort_search_results(self, deals: List[Deal]) -> List[Deal]:
        criteria = self.sort_state.criteria
        if criteria is SortCriteria.PRICE:
            deals = sorted(deals, key=lambda d: d.price.amount)
        elif criteria is SortCriteria.CUT:
            deals = sorted(deals, key=lambda d: d.price.discount)
        else:
            return deals
        if self.sort_state.direction is SortDirection.DESCENDING:
            deals.reverse()
        return deals

    def is_search_mode(self) -> bool:
        return self.active_search_query is not None

    def is_search_sort_supported(self) -> bool:
        return self.sort_state.criteria.is_search_supported()

    def selected_deal(self) -> Optional[Deal]:
        deals = self.filtered_deals()
        if 0 <= self.ui.selected < len(deals):
            return deals[self.ui.selected]
        return None

    def selected_game_info(self) -> Optional[GameInfo]:
        deal = self.selected_deal()
        if deal is None:
            return None
        return self.game_info_cache.get(deal.id)

    def selected_price_history(self) -> Optional[List[PriceHistoryPoint]]:
        deal = self.selected_deal()
        if deal is None:
            return None
        return self.price_history_cache.get(deal.id)

    def enabled_platforms(self) -> List[Platform]:
        """Enabled platforms in declaration order (ALL first when enabled)."""
        return [p for p in Platform if p in self.options.enabled_platforms]

    def should_load_more(self) -> bool:
        # A failed load stays failed until the user refreshes
        return (
            not self.loading.deals
            and not self.pagination.loading_more
            and self.pagination.has_more
            and self.error is None
        )

    def needs_game_info_load(self) -> Optional[str]:
        """Id of the selected deal if its metadata is neither cached nor in flight."""
        deal = self.selected_deal()
        if deal is None:
            return None
        if deal.id in self.game_info_cache or self.loading.game_info == deal.id:
            return None
        return deal.id

    def needs_price_history_load(self) -> Optional[str]:
        deal = self.selected_deal()
        if deal is None:
            return None
        if deal.id in self.price_history_cache or self.loading.price_history == deal.id:
            return None
        return deal.id

    def is_busy(self) -> bool:
        return self.loading.deals or self.pagination.loading_more

    def spinner_char(self) -> str:
        return SPINNER_FRAMES[self.ui.spinner_frame % len(SPINNER_FRAMES)]
