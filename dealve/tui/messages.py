# SPDX-License-Identifier: MIT
"""Messages fed into update().

Two sources produce these: the key handler (user intents) and the task
manager (completed fetches). Both go through the same reducer.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from dealve.models import Deal, GameInfo, PriceHistoryPoint


@dataclass(frozen=True)
class Message:
    """Base class for every message."""


# -- Navigation --------------------------------------------------------------

@dataclass(frozen=True)
class SelectNext(Message):
    pass


@dataclass(frozen=True)
class SelectPrevious(Message):
    pass


@dataclass(frozen=True)
class OpenSelectedDeal(Message):
    pass


# -- Menu --------------------------------------------------------------------

@dataclass(frozen=True)
class ToggleMenu(Message):
    pass


@dataclass(frozen=True)
class MenuNext(Message):
    pass


@dataclass(frozen=True)
class MenuPrevious(Message):
    pass


@dataclass(frozen=True)
class MenuSelect(Message):
    pass


# -- Text filter -------------------------------------------------------------

@dataclass(frozen=True)
class StartFilter(Message):
    pass


@dataclass(frozen=True)
class CancelFilter(Message):
    pass


@dataclass(frozen=True)
class ConfirmFilter(Message):
    pass


@dataclass(frozen=True)
class FilterPush(Message):
    char: str


@dataclass(frozen=True)
class FilterPop(Message):
    pass


@dataclass(frozen=True)
class ClearFilters(Message):
    pass


# -- Price filter ------------------------------------------------------------

@dataclass(frozen=True)
class OpenPriceFilter(Message):
    pass


@dataclass(frozen=True)
class PriceFilterSwitchField(Message):
    pass


@dataclass(frozen=True)
class PriceFilterPush(Message):
    char: str


@dataclass(frozen=True)
class PriceFilterPop(Message):
    pass


@dataclass(frozen=True)
class PriceFilterApply(Message):
    pass


@dataclass(frozen=True)
class PriceFilterClear(Message):
    pass


# -- Platform popup ----------------------------------------------------------

@dataclass(frozen=True)
class OpenPlatformPopup(Message):
    pass


@dataclass(frozen=True)
class PlatformPopupNext(Message):
    pass


@dataclass(frozen=True)
class PlatformPopupPrev(Message):
    pass


@dataclass(frozen=True)
class PlatformPopupSelect(Message):
    pass


# -- Sort --------------------------------------------------------------------

@dataclass(frozen=True)
class ToggleSortDirection(Message):
    pass


@dataclass(frozen=True)
class NextSortCriteria(Message):
    pass


@dataclass(frozen=True)
class PrevSortCriteria(Message):
    pass


# -- Popups and options ------------------------------------------------------

@dataclass(frozen=True)
class ClosePopup(Message):
    pass


@dataclass(frozen=True)
class OptionsNextTab(Message):
    pass


@dataclass(frozen=True)
class OptionsPrevTab(Message):
    pass


@dataclass(frozen=True)
class OptionsNextItem(Message):
    pass


@dataclass(frozen=True)
class OptionsPrevItem(Message):
    pass


@dataclass(frozen=True)
class OptionsToggleItem(Message):
    pass


@dataclass(frozen=True)
class OptionsToggleSortDirection(Message):
    pass


# -- Data delivery -----------------------------------------------------------

@dataclass(frozen=True)
class RequestRefresh(Message):
    pass


@dataclass(frozen=True)
class DealsLoaded(Message):
    """First page (or full search result) replacing the current list."""

    deals: List[Deal] = field(default_factory=list)
    is_more: bool = False
    page_size: int = 0


@dataclass(frozen=True)
class MoreDealsLoaded(Message):
    """Next page appended to the current list."""

    deals: List[Deal] = field(default_factory=list)
    is_more: bool = False
    page_size: int = 0


@dataclass(frozen=True)
class DealsLoadFailed(Message):
    error: str


@dataclass(frozen=True)
class GameInfoLoaded(Message):
    """Metadata fetch finished. info is None when the fetch failed."""

    game_id: str
    info: Optional[GameInfo] = None


@dataclass(frozen=True)
class PriceHistoryLoaded(Message):
    """History fetch finished. A failed fetch delivers an empty list."""

    game_id: str
    history: List[PriceHistoryPoint] = field(default_factory=list)


# -- System ------------------------------------------------------------------

@dataclass(frozen=True)
class Tick(Message):
    pass


@dataclass(frozen=True)
class Quit(Message):
    pass
