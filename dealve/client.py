# SPDX-License-Identifier: MIT
"""
Async client for the IsThereAnyDeal API.

Pure request/response: no retries, no caching. Every failure is raised as a
DealveError subclass so callers (the task orchestrator) can turn it into a
message instead of letting it escape into the UI loop.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import httpx

from dealve.debug_logger import get_logger
from dealve.errors import ApiError, ConfigError, NetworkError, ParseError
from dealve.models import (
    API_BASE_URL,
    HISTORY_WINDOW_DAYS,
    Deal,
    GameInfo,
    Price,
    PriceHistoryPoint,
    Shop,
)

DEFAULT_TIMEOUT = 15.0
USER_AGENT = "dealve/0.3"


# =============================================================================
# Response parsing
# =============================================================================


def _parse_deal(game_id: str, title: str, deal: Dict[str, Any], history_low: Optional[float] = None) -> Deal:
    """Build a Deal from an ITAD deal object.

    history_low overrides the deal's own historyLow when given (the prices
    endpoint reports an all-shops low next to the per-shop deals).
    """
    if history_low is None:
        own_low = deal.get("historyLow")
        if isinstance(own_low, dict) and own_low.get("amount") is not None:
            history_low = float(own_low["amount"])
    regular = deal.get("regular") or {}
    price = deal["price"]
    return Deal(
        id=game_id,
        title=title,
        shop=Shop(id=str(deal["shop"]["id"]), name=deal["shop"]["name"]),
        price=Price(
            amount=float(price["amount"]),
            currency=price.get("currency", "USD"),
            discount=int(deal.get("cut", 0)),
        ),
        regular_price=float(regular.get("amount", price["amount"])),
        url=deal.get("url", ""),
        history_low=history_low,
    )


def _parse_deals_page(payload: Any) -> List[Deal]:
    try:
        return [
            _parse_deal(item["id"], item["title"], item["deal"])
            for item in payload["list"]
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise ParseError(f"Unexpected deals payload: {e!r}") from e


def _names(entries: Any) -> List[str]:
    """Extract names from [{"id": .., "name": ..}] lists (or plain strings)."""
    names = []
    for entry in entries or []:
        if isinstance(entry, dict) and entry.get("name"):
            names.append(str(entry["name"]))
        elif isinstance(entry, str):
            names.append(entry)
    return names


def _parse_game_info(payload: Any) -> GameInfo:
    try:
        return GameInfo(
            id=payload["id"],
            title=payload["title"],
            release_date=payload.get("releaseDate"),
            developers=_names(payload.get("developers")),
            publishers=_names(payload.get("publishers")),
            tags=[str(tag) for tag in payload.get("tags") or []],
        )
    except (KeyError, TypeError) as e:
        raise ParseError(f"Unexpected game info payload: {e!r}") from e


def _parse_timestamp(value: str) -> Optional[int]:
    """Convert an RFC 3339 timestamp to unix seconds, None if unparseable."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def _parse_history(payload: Any) -> List[PriceHistoryPoint]:
    """Convert history entries, dropping entries without a deal.

    Points are returned oldest first for charting.
    """
    if not isinstance(payload, list):
        raise ParseError("Expected a list of history entries")
    points = []
    try:
        for item in payload:
            deal = item.get("deal")
            if not deal:
                continue
            timestamp = _parse_timestamp(item.get("timestamp"))
            if timestamp is None:
                continue
            points.append(
                PriceHistoryPoint(
                    timestamp=timestamp,
                    price=float(deal["price"]["amount"]),
                    shop_name=(item.get("shop") or {}).get("name", ""),
                )
            )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ParseError(f"Unexpected history payload: {e!r}") from e
    points.sort(key=lambda p: p.timestamp)
    return points


def select_best_deal(deals: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Pick the representative offer for a title.

    Lowest price wins; equal prices are broken by the larger cut.
    Returns None when there are no offers.
    """
    best = None
    best_key: Optional[Tuple[float, int]] = None
    for deal in deals:
        key = (float(deal["price"]["amount"]), -int(deal.get("cut", 0)))
        if best_key is None or key < best_key:
            best, best_key = deal, key
    return best


# =============================================================================
# Client
# =============================================================================


class ItadClient:
    """Typed access to the four ITAD endpoints dealve needs.

    An httpx.AsyncClient can be shared in; otherwise one is created lazily and
    closed by aclose().
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._http = http_client
        self._owns_http = http_client is None

    async def __aenter__(self) -> "ItadClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"User-Agent": USER_AGENT},
            )
        return self._http

    def _require_key(self) -> str:
        if not self.api_key:
            raise ConfigError("API key is required")
        return self.api_key

    async def _request(
        self,
        method: str,
        path: str,
        params: Sequence[Tuple[str, str]],
        json_body: Any = None,
    ) -> Any:
        """Send a request and decode the JSON body.

        Raises:
            NetworkError: transport failure
            ApiError: non-2xx status
            ParseError: body is not JSON
        """
        url = f"{self.base_url}{path}"
        logger = get_logger()
        logger.debug("api_request", method=method, path=path)
        try:
            response = await self._client().request(method, url, params=list(params), json=json_body)
        except httpx.HTTPError as e:
            raise NetworkError(str(e) or e.__class__.__name__) from e

        if not response.is_success:
            raise ApiError(f"API returned status {response.status_code}: {response.text}")

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Invalid JSON from {path}: {e}") from e

    # -- Endpoints ------------------------------------------------------------

    async def get_deals(
        self,
        country: str,
        limit: int,
        offset: int,
        shop_id: Optional[int] = None,
        sort: Optional[str] = None,
    ) -> List[Deal]:
        """One page of current deals (GET /deals/v2)."""
        params = [
            ("key", self._require_key()),
            ("country", country),
            ("limit", str(limit)),
            ("offset", str(offset)),
        ]
        if shop_id is not None:
            params.append(("shops", str(shop_id)))
        if sort:
            params.append(("sort", sort))

        payload = await self._request("GET", "/deals/v2", params)
        return _parse_deals_page(payload)

    async def get_game_info(self, game_id: str) -> GameInfo:
        """Metadata for one title (GET /games/info/v2)."""
        params = [("key", self._require_key()), ("id", game_id)]
        payload = await self._request("GET", "/games/info/v2", params)
        return _parse_game_info(payload)

    async def search_games(self, title: str, results: int) -> List[Dict[str, Any]]:
        """Title search (GET /games/search/v1). Returns raw [{id, title, ...}]."""
        key = self._require_key()
        if not title.strip() or results <= 0:
            return []

        params = [("key", key), ("title", title), ("results", str(results))]
        payload = await self._request("GET", "/games/search/v1", params)
        if not isinstance(payload, list):
            raise ParseError("Expected a list of search results")
        return payload

    async def get_prices_for_games(
        self,
        ids: Sequence[str],
        country: str,
        shop_id: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Current offers for a batch of titles (POST /games/prices/v3)."""
        key = self._require_key()
        if not ids:
            return []

        params = [("key", key), ("country", country), ("deals", "true")]
        if shop_id is not None:
            # Single shop: one deal per game is enough
            params.append(("capacity", "1"))
            params.append(("shops", str(shop_id)))

        payload = await self._request("POST", "/games/prices/v3", params, json_body=list(ids))
        if not isinstance(payload, list):
            raise ParseError("Expected a list of price entries")
        return payload

    async def search_deals(
        self,
        query: str,
        country: str,
        shop_id: Optional[int] = None,
        limit: int = 50,
    ) -> List[Deal]:
        """Search titles, then resolve each one's best current offer.

        Results keep search-relevance order. Titles with no offer are dropped.
        """
        query = query.strip()
        if not query or limit <= 0:
            return []

        search_results = await self.search_games(query, limit)
        if not search_results:
            return []

        ids: List[str] = []
        titles_by_id: Dict[str, str] = {}
        try:
            for result in search_results:
                game_id = result["id"]
                if game_id in titles_by_id:
                    continue
                ids.append(game_id)
                titles_by_id[game_id] = result.get("title") or game_id
        except (KeyError, TypeError) as e:
            raise ParseError(f"Unexpected search payload: {e!r}") from e

        prices = await self.get_prices_for_games(ids, country, shop_id)

        deals_by_id: Dict[str, Deal] = {}
        try:
            for item in prices:
                best = select_best_deal(item.get("deals") or [])
                if best is None:
                    continue
                history_low = None
                all_low = (item.get("historyLow") or {}).get("all")
                if isinstance(all_low, dict) and all_low.get("amount") is not None:
                    history_low = float(all_low["amount"])
                game_id = item["id"]
                deals_by_id[game_id] = _parse_deal(
                    game_id, titles_by_id.get(game_id, game_id), best, history_low
                )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ParseError(f"Unexpected prices payload: {e!r}") from e

        return [deals_by_id[game_id] for game_id in ids if game_id in deals_by_id]

    async def get_price_history(self, game_id: str, country: str) -> List[PriceHistoryPoint]:
        """Up to one year of price history, oldest first (GET /games/history/v2)."""
        key = self._require_key()
        since = datetime.now(timezone.utc) - timedelta(days=HISTORY_WINDOW_DAYS)
        params = [
            ("key", key),
            ("id", game_id),
            ("country", country),
            ("since", since.strftime("%Y-%m-%dT%H:%M:%SZ")),
        ]
        payload = await self._request("GET", "/games/history/v2", params)
        return _parse_history(payload)

    @staticmethod
    async def validate_api_key(
        api_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = API_BASE_URL,
    ) -> None:
        """Check a key with a one-deal request.

        Raises:
            ApiError: invalid key, rate limit, or other API failure
            NetworkError: transport failure
        """
        params = [("key", api_key), ("limit", "1"), ("country", "US")]
        client = http_client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)
        try:
            response = await client.get(f"{base_url.rstrip('/')}/deals/v2", params=params)
        except httpx.HTTPError as e:
            raise NetworkError(str(e) or e.__class__.__name__) from e
        finally:
            if http_client is None:
                await client.aclose()

        status = response.status_code
        if 200 <= status < 300:
            return
        if status in (401, 403):
            raise ApiError("Invalid API key")
        if status == 429:
            raise ApiError("Rate limited - please wait and try again")
        raise ApiError(f"API returned status {status}: {response.text}")
