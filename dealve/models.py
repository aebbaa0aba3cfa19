# SPDX-License-Identifier: MIT
"""
Data models for dealve.

Contains the deal records returned by the IsThereAnyDeal gateway and the
closed enumerations (shops and regions) used to parameterize requests.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


# =============================================================================
# Constants
# =============================================================================

API_BASE_URL = "https://api.isthereanydeal.com"
MAX_SEARCH_RESULTS = 100  # /games/search/v1 accepts results in [1..100]
ATL_TOLERANCE = 0.01  # Price difference still counted as "all-time low"
HISTORY_WINDOW_DAYS = 365

CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "CA$",
    "AUD": "A$",
    "NZD": "NZ$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "¥",
    "KRW": "₩",
    "INR": "₹",
    "BRL": "R$",
    "PLN": "zł",
    "TRY": "₺",
    "UAH": "₴",
    "CHF": "CHF ",
}


# =============================================================================
# Enums
# =============================================================================


class Platform(str, Enum):
    """Shop filter. ALL is the sentinel for "no shop filter"."""
    ALL = "All Platforms"
    ALL_YOU_PLAY = "AllYouPlay"
    BLIZZARD = "Blizzard"
    DL_GAMER = "DLGamer"
    DREAMGAME = "Dreamgame"
    EA_STORE = "EA Store"
    EPIC_GAMES = "Epic Game Store"
    FANATICAL = "Fanatical"
    FIRE_FLOWER = "FireFlower"
    GAME_BILLET = "GameBillet"
    GAMERS_GATE = "GamersGate"
    GAMESLOAD = "Gamesload"
    GAMES_PLANET_DE = "GamesPlanet DE"
    GAMES_PLANET_FR = "GamesPlanet FR"
    GAMES_PLANET_UK = "GamesPlanet UK"
    GAMES_PLANET_US = "GamesPlanet US"
    GOG = "GOG"
    GREEN_MAN_GAMING = "GreenManGaming"
    HUMBLE_STORE = "Humble Store"
    INDIE_GALA = "IndieGala Store"
    JOY_BUGGY = "JoyBuggy"
    MAC_GAME_STORE = "MacGameStore"
    MICROSOFT_STORE = "Microsoft Store"
    NEWEGG = "Newegg"
    NUUVEM = "Nuuvem"
    PLANET_PLAY = "PlanetPlay"
    PLAYER_LAND = "PlayerLand"
    PLAYSUM = "Playsum"
    STEAM = "Steam"
    UBISOFT_STORE = "Ubisoft Store"
    WIN_GAME_STORE = "WinGameStore"
    ZOOM_PLATFORM = "ZOOM Platform"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def shop_id(self) -> Optional[int]:
        """ITAD numeric shop id, or None for ALL."""
        return _SHOP_IDS.get(self)

    @classmethod
    def from_name(cls, name: str) -> Optional["Platform"]:
        """Look up a platform by display name (as stored in config)."""
        for platform in cls:
            if platform.value == name:
                return platform
        return None

    @classmethod
    def without_all(cls) -> List["Platform"]:
        """Real shops, in declaration order (for the options checkbox list)."""
        return [p for p in cls if p is not cls.ALL]


_SHOP_IDS: Dict[Platform, int] = {
    Platform.ALL_YOU_PLAY: 2,
    Platform.BLIZZARD: 4,
    Platform.DL_GAMER: 13,
    Platform.DREAMGAME: 15,
    Platform.EA_STORE: 52,
    Platform.EPIC_GAMES: 16,
    Platform.FANATICAL: 6,
    Platform.FIRE_FLOWER: 17,
    Platform.GAME_BILLET: 20,
    Platform.GAMERS_GATE: 24,
    Platform.GAMESLOAD: 25,
    Platform.GAMES_PLANET_DE: 27,
    Platform.GAMES_PLANET_FR: 28,
    Platform.GAMES_PLANET_UK: 26,
    Platform.GAMES_PLANET_US: 29,
    Platform.GOG: 35,
    Platform.GREEN_MAN_GAMING: 36,
    Platform.HUMBLE_STORE: 37,
    Platform.INDIE_GALA: 42,
    Platform.JOY_BUGGY: 65,
    Platform.MAC_GAME_STORE: 47,
    Platform.MICROSOFT_STORE: 48,
    Platform.NEWEGG: 49,
    Platform.NUUVEM: 50,
    Platform.PLANET_PLAY: 73,
    Platform.PLAYER_LAND: 74,
    Platform.PLAYSUM: 70,
    Platform.STEAM: 61,
    Platform.UBISOFT_STORE: 62,
    Platform.WIN_GAME_STORE: 64,
    Platform.ZOOM_PLATFORM: 72,
}


class Region(str, Enum):
    """Country used for prices and currency. Values are ISO 3166-1 alpha-2."""
    # North America
    US = "US"
    CA = "CA"
    MX = "MX"
    # South America
    BR = "BR"
    AR = "AR"
    CL = "CL"
    CO = "CO"
    PE = "PE"
    # Europe
    GB = "GB"
    DE = "DE"
    FR = "FR"
    ES = "ES"
    IT = "IT"
    NL = "NL"
    BE = "BE"
    AT = "AT"
    CH = "CH"
    IE = "IE"
    PT = "PT"
    SE = "SE"
    NO = "NO"
    DK = "DK"
    FI = "FI"
    PL = "PL"
    CZ = "CZ"
    GR = "GR"
    TR = "TR"
    UA = "UA"
    # Asia
    JP = "JP"
    KR = "KR"
    CN = "CN"
    IN = "IN"
    SG = "SG"
    HK = "HK"
    TW = "TW"
    TH = "TH"
    ID = "ID"
    PH = "PH"
    MY = "MY"
    # Oceania
    AU = "AU"
    NZ = "NZ"
    # Africa & Middle East
    ZA = "ZA"
    AE = "AE"
    SA = "SA"
    IL = "IL"

    @property
    def code(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        return _REGION_INFO[self][0]

    @property
    def continent(self) -> str:
        return _REGION_INFO[self][1]

    @classmethod
    def default(cls) -> "Region":
        return cls.US

    @classmethod
    def from_code(cls, code: str) -> Optional["Region"]:
        """Resolve an ISO code (case-insensitive) or a legacy alias.

        Returns None for unknown codes.
        """
        if not code:
            return None
        normalized = code.strip().upper()
        normalized = LEGACY_REGION_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            return None


# Codes written by older config files
LEGACY_REGION_ALIASES = {
    "UK": "GB",
    "EU": "DE",
    "EL": "GR",
}

_REGION_INFO: Dict[Region, Tuple[str, str]] = {
    Region.US: ("United States", "North America"),
    Region.CA: ("Canada", "North America"),
    Region.MX: ("Mexico", "North America"),
    Region.BR: ("Brazil", "South America"),
    Region.AR: ("Argentina", "South America"),
    Region.CL: ("Chile", "South America"),
    Region.CO: ("Colombia", "South America"),
    Region.PE: ("Peru", "South America"),
    Region.GB: ("United Kingdom", "Europe"),
    Region.DE: ("Germany", "Europe"),
    Region.FR: ("France", "Europe"),
    Region.ES: ("Spain", "Europe"),
    Region.IT: ("Italy", "Europe"),
    Region.NL: ("Netherlands", "Europe"),
    Region.BE: ("Belgium", "Europe"),
    Region.AT: ("Austria", "Europe"),
    Region.CH: ("Switzerland", "Europe"),
    Region.IE: ("Ireland", "Europe"),
    Region.PT: ("Portugal", "Europe"),
    Region.SE: ("Sweden", "Europe"),
    Region.NO: ("Norway", "Europe"),
    Region.DK: ("Denmark", "Europe"),
    Region.FI: ("Finland", "Europe"),
    Region.PL: ("Poland", "Europe"),
    Region.CZ: ("Czechia", "Europe"),
    Region.GR: ("Greece", "Europe"),
    Region.TR: ("Turkey", "Europe"),
    Region.UA: ("Ukraine", "Europe"),
    Region.JP: ("Japan", "Asia"),
    Region.KR: ("South Korea", "Asia"),
    Region.CN: ("China", "Asia"),
    Region.IN: ("India", "Asia"),
    Region.SG: ("Singapore", "Asia"),
    Region.HK: ("Hong Kong", "Asia"),
    Region.TW: ("Taiwan", "Asia"),
    Region.TH: ("Thailand", "Asia"),
    Region.ID: ("Indonesia", "Asia"),
    Region.PH: ("Philippines", "Asia"),
    Region.MY: ("Malaysia", "Asia"),
    Region.AU: ("Australia", "Oceania"),
    Region.NZ: ("New Zealand", "Oceania"),
    Region.ZA: ("South Africa", "Africa & Middle East"),
    Region.AE: ("United Arab Emirates", "Africa & Middle East"),
    Region.SA: ("Saudi Arabia", "Africa & Middle East"),
    Region.IL: ("Israel", "Africa & Middle East"),
}


class SortCriteria(str, Enum):
    """Deal ordering. Values are the names written to config."""
    PRICE = "Price"
    CUT = "Cut"
    HOTTEST = "Hottest"
    RELEASE_DATE = "Release"
    EXPIRING = "Expiring"
    POPULAR = "Popular"

    @property
    def display_name(self) -> str:
        return self.value

    def next(self) -> "SortCriteria":
        members = list(SortCriteria)
        return members[(members.index(self) + 1) % len(members)]

    def prev(self) -> "SortCriteria":
        members = list(SortCriteria)
        return members[(members.index(self) - 1) % len(members)]

    def toggle_search(self) -> "SortCriteria":
        """Step within the criteria that can be sorted locally (Price, Cut)."""
        if self is SortCriteria.PRICE:
            return SortCriteria.CUT
        return SortCriteria.PRICE

    def is_search_supported(self) -> bool:
        return self in (SortCriteria.PRICE, SortCriteria.CUT)

    def api_param(self, ascending: bool) -> str:
        base = _SORT_TOKENS[self]
        return base if ascending else f"-{base}"

    @classmethod
    def from_name(cls, name: str) -> Optional["SortCriteria"]:
        try:
            return cls(name)
        except ValueError:
            return None


_SORT_TOKENS: Dict[SortCriteria, str] = {
    SortCriteria.PRICE: "price",
    SortCriteria.CUT: "cut",
    SortCriteria.HOTTEST: "hot",
    SortCriteria.RELEASE_DATE: "release-date",
    SortCriteria.EXPIRING: "expiry",
    SortCriteria.POPULAR: "rank",
}


class SortDirection(str, Enum):
    """Sort direction. Values are the names written to config."""
    ASCENDING = "Ascending"
    DESCENDING = "Descending"

    def toggle(self) -> "SortDirection":
        if self is SortDirection.ASCENDING:
            return SortDirection.DESCENDING
        return SortDirection.ASCENDING

    @property
    def arrow(self) -> str:
        return "↑" if self is SortDirection.ASCENDING else "↓"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class Shop:
    """Store a deal is offered at."""
    id: str = ""
    name: str = ""


@dataclass(frozen=True)
class Price:
    """Current price with discount percentage (the "cut")."""
    amount: float = 0.0
    currency: str = "USD"
    discount: int = 0

    def currency_symbol(self) -> str:
        return CURRENCY_SYMBOLS.get(self.currency, f"{self.currency} ")

    def format(self) -> str:
        return f"{self.currency_symbol()}{self.amount:.2f}"


@dataclass(frozen=True)
class Deal:
    """A single game deal. Immutable once fetched."""
    id: str
    title: str
    shop: Shop = field(default_factory=Shop)
    price: Price = field(default_factory=Price)
    regular_price: float = 0.0
    url: str = ""
    history_low: Optional[float] = None

    def is_all_time_low(self) -> bool:
        """True when the current price matches the lowest recorded price."""
        if self.history_low is None:
            return False
        return abs(self.history_low - self.price.amount) < ATL_TOLERANCE


@dataclass(frozen=True)
class GameInfo:
    """Metadata for a title, keyed by deal id in the model's cache."""
    id: str
    title: str
    release_date: Optional[str] = None
    developers: List[str] = field(default_factory=list)
    publishers: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)


@dataclass
class SortState:
    """Current sort: criteria plus direction."""
    criteria: SortCriteria = SortCriteria.PRICE
    direction: SortDirection = SortDirection.ASCENDING

    def api_param(self) -> str:
        return self.criteria.api_param(self.direction is SortDirection.ASCENDING)

    def label(self) -> str:
        return f"{self.criteria.display_name} {self.direction.arrow}"


@dataclass(frozen=True)
class PriceHistoryPoint:
    """One historical price, timestamp in unix seconds."""
    timestamp: int
    price: float
    shop_name: str
