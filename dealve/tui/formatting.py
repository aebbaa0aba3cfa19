# SPDX-License-Identifier: MIT
"""
Render helpers for the deals browser.

Every function takes state and returns Rich markup (or plain data for the
chart). Nothing here touches widgets, so the view can be tested without a
running app.
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from rich.markup import escape

from dealve.models import Deal, GameInfo, Platform, PriceHistoryPoint, Region
from dealve.tui.app_state import AppState, MenuItem, OptionsTab

# Semantic colors (Rich color names)
ACCENT = "magenta"
PRICE_COLOR = "green"
CUT_COLOR = "bold yellow"
ATL_COLOR = "bold cyan"
MUTED = "dim"
ERROR_COLOR = "bold red"

TITLE_WIDTH = 40
SHOP_WIDTH = 16

KEYBINDS: List[Tuple[str, str]] = [
    ("j / ↓", "Next deal"),
    ("k / ↑", "Previous deal"),
    ("enter", "Open deal in browser"),
    ("f", "Search / filter by title"),
    ("$", "Price range filter"),
    ("c", "Clear all filters"),
    ("p", "Choose platform"),
    ("s", "Toggle sort direction"),
    ("← / →", "Change sort criteria"),
    ("r", "Refresh"),
    ("q / esc", "Menu"),
]

ADVANCED_LABELS = ("Default sort", "Deals per page", "Info load delay")


def truncate(text: str, width: int) -> str:
    """Cut text to width characters, marking the cut with an ellipsis."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width == 1:
        return "…"
    return text[: width - 1] + "…"


def visible_range(total: int, selected: int, height: int) -> Tuple[int, int]:
    """Start/end indices of a window of height rows that keeps selected visible."""
    if total <= 0 or height <= 0:
        return 0, 0
    if total <= height:
        return 0, total
    selected = max(0, min(selected, total - 1))
    start = max(0, selected - height // 2)
    start = min(start, total - height)
    return start, start + height


def format_price(deal: Deal) -> str:
    return deal.price.format()


def format_regular_price(deal: Deal) -> str:
    return f"{deal.price.currency_symbol()}{deal.regular_price:.2f}"


def format_cut(discount: int) -> str:
    return f"-{discount}%" if discount > 0 else ""


def format_deal_row(deal: Deal, selected: bool) -> str:
    title = escape(truncate(deal.title, TITLE_WIDTH)).ljust(TITLE_WIDTH)
    shop = escape(truncate(deal.shop.name, SHOP_WIDTH)).ljust(SHOP_WIDTH)
    price = format_price(deal).rjust(10)
    cut = format_cut(deal.price.discount).rjust(5)
    atl = f" [{ATL_COLOR}]ATL[/]" if deal.is_all_time_low() else ""
    marker = f"[{ACCENT}]▶[/] " if selected else "  "
    line = f"{marker}{title} [{MUTED}]{shop}[/] [{PRICE_COLOR}]{price}[/] [{CUT_COLOR}]{cut}[/]{atl}"
    if selected:
        return f"[reverse]{line}[/reverse]"
    return line


def render_deals(state: AppState, height: int = 30) -> str:
    """Deal list markup: a window of rows around the selection, or a placeholder."""
    if state.error:
        return (
            f"[{ERROR_COLOR}]Error:[/] {escape(state.error)}\n\n"
            f"[{MUTED}]Press r to retry[/]"
        )

    deals = state.filtered_deals()
    if not deals:
        if state.loading.deals:
            return f"{state.spinner_char()} Loading deals..."
        if state.filter.active or state.price_filter.is_active():
            return f"[{MUTED}]No deals match the current filters[/]"
        return f"[{MUTED}]No deals found[/]"

    start, end = visible_range(len(deals), state.ui.selected, height)
    lines = [
        format_deal_row(deal, index == state.ui.selected)
        for index, deal in enumerate(deals[start:end], start=start)
    ]
    if state.pagination.loading_more:
        lines.append(f"[{MUTED}]{state.spinner_char()} Loading more...[/]")
    return "\n".join(lines)


def render_status_line(state: AppState) -> str:
    """One-line summary of the active request parameters and filters."""
    parts = [
        f"[{ACCENT}]{escape(state.platform_filter.display_name)}[/]",
        state.region.code,
        f"Sort: {state.sort_state.label()}",
    ]
    if state.price_filter.is_active():
        parts.append(f"Price: {state.price_filter.label()}")
    if state.active_search_query is not None:
        parts.append(f"Search: \"{escape(state.active_search_query)}\"")
    count = len(state.filtered_deals())
    parts.append(f"{count} deals")
    if state.is_busy():
        parts.append(state.spinner_char())
    return " │ ".join(parts)


def render_filter_bar(state: AppState) -> str:
    if state.filter.active:
        return f"[{ACCENT}]Search:[/] {escape(state.filter.text)}▏"
    if state.active_search_query is not None:
        return f"[{MUTED}]Search:[/] {escape(state.active_search_query)}  [{MUTED}](f edit, c clear)[/]"
    return f"[{MUTED}]f search  $ price  p platform  s sort  q menu[/]"


def _format_release_date(value: Optional[str]) -> str:
    return value if value else "Unknown"


def render_game_info(info: Optional[GameInfo], loading: bool) -> List[str]:
    if info is None:
        if loading:
            return [f"[{MUTED}]Loading info...[/]"]
        return []
    lines = [f"Released:   {escape(_format_release_date(info.release_date))}"]
    if info.developers:
        lines.append(f"Developer:  {escape(', '.join(info.developers))}")
    if info.publishers:
        lines.append(f"Publisher:  {escape(', '.join(info.publishers))}")
    if info.tags:
        lines.append(f"Tags:       {escape(', '.join(info.tags[:6]))}")
    return lines


def render_details(state: AppState) -> str:
    """Details panel for the selected deal."""
    deal = state.selected_deal()
    if deal is None:
        return f"[{MUTED}]No deal selected[/]"

    lines = [
        f"[bold]{escape(deal.title)}[/bold]",
        "",
        f"Shop:       {escape(deal.shop.name)}",
        f"Price:      [{PRICE_COLOR}]{format_price(deal)}[/]"
        + (f"  [{CUT_COLOR}]{format_cut(deal.price.discount)}[/]" if deal.price.discount else ""),
        f"Regular:    {format_regular_price(deal)}",
    ]
    if deal.history_low is not None:
        low = f"{deal.price.currency_symbol()}{deal.history_low:.2f}"
        suffix = f"  [{ATL_COLOR}]All-time low![/]" if deal.is_all_time_low() else ""
        lines.append(f"Lowest:     {low}{suffix}")

    info_lines = render_game_info(
        state.selected_game_info(), state.loading.game_info == deal.id
    )
    if info_lines:
        lines.append("")
        lines.extend(info_lines)

    history = state.selected_price_history()
    if history:
        prices = [p.price for p in history]
        symbol = deal.price.currency_symbol()
        lines.append("")
        lines.append(
            f"1y range:   {symbol}{min(prices):.2f} - {symbol}{max(prices):.2f}"
            f" [{MUTED}]({len(history)} changes)[/]"
        )
    elif state.loading.price_history == deal.id:
        lines.append("")
        lines.append(f"[{MUTED}]Loading price history...[/]")
    return "\n".join(lines)


def history_series(points: Sequence[PriceHistoryPoint]) -> Tuple[List[float], List[float], List[str]]:
    """Chart data: x (days since first point), y (price), x tick labels (dates).

    History is a step function, so each point is repeated just before the
    next change to draw flat segments.
    """
    if not points:
        return [], [], []
    origin = points[0].timestamp
    xs: List[float] = []
    ys: List[float] = []
    for index, point in enumerate(points):
        day = (point.timestamp - origin) / 86400
        if index > 0:
            xs.append(day)
            ys.append(points[index - 1].price)
        xs.append(day)
        ys.append(point.price)
    now_day = max(xs[-1], (datetime.now(timezone.utc).timestamp() - origin) / 86400)
    if now_day > xs[-1]:
        xs.append(now_day)
        ys.append(points[-1].price)
    labels = [
        datetime.fromtimestamp(origin + x * 86400, tz=timezone.utc).strftime("%b %d")
        for x in xs
    ]
    return xs, ys, labels


# =============================================================================
# Menu and popups
# =============================================================================


def render_menu(state: AppState) -> str:
    lines = []
    for index, item in enumerate(MenuItem):
        if index == state.ui.menu_selected:
            lines.append(f"[reverse] ▶ {item.value} [/reverse]")
        else:
            lines.append(f"   {item.value}")
    return "\n".join(lines)


def render_keybinds() -> str:
    width = max(len(key) for key, _ in KEYBINDS)
    lines = [f"[{ACCENT}]{escape(key).ljust(width)}[/]  {action}" for key, action in KEYBINDS]
    lines.append("")
    lines.append(f"[{MUTED}]esc to close[/]")
    return "\n".join(lines)


def render_platform_popup(state: AppState) -> str:
    lines = []
    for index, platform in enumerate(state.enabled_platforms()):
        current = " [dim](current)[/dim]" if platform is state.platform_filter else ""
        label = escape(platform.display_name)
        if index == state.ui.platform_popup_index:
            lines.append(f"[reverse] ▶ {label} [/reverse]{current}")
        else:
            lines.append(f"   {label}{current}")
    if not lines:
        lines.append(f"[{MUTED}]No platforms enabled[/]")
    return "\n".join(lines)


def render_price_filter(state: AppState) -> str:
    pf = state.price_filter
    symbol = state.deals[0].price.currency_symbol() if state.deals else ""

    def field(label: str, value: str, active: bool) -> str:
        cursor = "▏" if active else ""
        text = f"{label}: {symbol}{escape(value)}{cursor}"
        return f"[reverse] {text} [/reverse]" if active else f" {text}"

    return "\n".join([
        field("Min", pf.min_input, pf.selected_field == 0),
        field("Max", pf.max_input, pf.selected_field == 1),
        "",
        f"[{MUTED}]tab switch  enter apply  c clear  esc cancel[/]",
    ])


def _cursor_line(text: str, is_cursor: bool) -> str:
    return f"[reverse] ▶ {text} [/reverse]" if is_cursor else f"   {text}"


def _render_region_tab(state: AppState, height: int) -> List[str]:
    opts = state.options
    rows: List[Tuple[int, str]] = []  # (region index or -1 for headers, text)
    continent = None
    for index, region in enumerate(Region):
        if region.continent != continent:
            continent = region.continent
            rows.append((-1, f"[bold]{escape(continent)}[/bold]"))
        check = "●" if region is opts.region else "○"
        rows.append((index, f"{check} {escape(region.display_name)} ({region.code})"))

    cursor_row = next(
        (row for row, (index, _) in enumerate(rows) if index == opts.region_list_index), 0
    )
    start, end = visible_range(len(rows), cursor_row, height)
    return [
        text if index < 0 else _cursor_line(text, index == opts.region_list_index)
        for index, text in rows[start:end]
    ]


def _render_platforms_tab(state: AppState, height: int) -> List[str]:
    opts = state.options
    rows = [f"Default platform: [{ACCENT}]{escape(opts.default_platform.display_name)}[/]"]
    for platform in Platform.without_all():
        check = "☑" if platform in opts.enabled_platforms else "☐"
        rows.append(f"{check} {escape(platform.display_name)}")
    start, end = visible_range(len(rows), opts.platform_list_index, height)
    return [
        _cursor_line(text, index == opts.platform_list_index)
        for index, text in enumerate(rows[start:end], start=start)
    ]


def _render_advanced_tab(state: AppState) -> List[str]:
    opts = state.options
    values = (
        opts.default_sort.label(),
        str(opts.deals_page_size),
        f"{opts.game_info_delay_ms} ms",
    )
    lines = [
        _cursor_line(f"{label}: [{ACCENT}]{value}[/]", index == opts.advanced_list_index)
        for index, (label, value) in enumerate(zip(ADVANCED_LABELS, values))
    ]
    lines.append("")
    lines.append(f"[{MUTED}]enter cycle value  s toggle sort direction[/]")
    return lines


def render_options(state: AppState, height: int = 16) -> str:
    opts = state.options
    tabs = "  ".join(
        f"[reverse] {tab.value} [/reverse]" if tab is opts.tab else f" {tab.value} "
        for tab in OptionsTab
    )
    if opts.tab is OptionsTab.REGION:
        body = _render_region_tab(state, height)
    elif opts.tab is OptionsTab.PLATFORMS:
        body = _render_platforms_tab(state, height)
    else:
        body = _render_advanced_tab(state)
    return "\n".join([tabs, ""] + body + ["", f"[{MUTED}]tab/←→ switch tab  esc close[/]"])
