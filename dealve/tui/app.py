# SPDX-License-Identifier: MIT
"""
Main TUI application for dealve.

The app is a thin driver around the state machine:
- key presses are mapped to messages (events.handle_key)
- a timer polls the TaskManager and feeds finished fetches back as messages
- every message goes through dispatch(); its effects start loads or restart
  the game info debounce
- widgets are redrawn from state via the formatting helpers
"""

import time
from pathlib import Path
from typing import Any, Dict, Optional

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.screen import ModalScreen, Screen
from textual.widgets import Footer, Header, Static
from textual_plotext import PlotextPlot

from dealve.client import ItadClient
from dealve.config import Config
from dealve.tui import messages as m
from dealve.tui.app_state import AppState, Popup
from dealve.tui.events import handle_key
from dealve.tui.formatting import (
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
)
from dealve.tui.tasks import TaskManager
from dealve.tui.update import dispatch

TICK_INTERVAL = 0.05
ANIMATION_TICK_INTERVAL = 0.016
ANIMATION_SECONDS = 0.4
CHART_TICKS = 5

POPUP_TITLES = {
    Popup.OPTIONS: "Options",
    Popup.KEYBINDS: "Keybinds",
    Popup.PLATFORM: "Platform",
    Popup.PRICE_FILTER: "Price filter",
}


def _forward_key(widget, event: events.Key) -> None:
    """Send a key press to the state machine, consuming it if it was bound."""
    app = widget.app
    if isinstance(app, DealveApp) and app.handle_key_press(event.key, event.character):
        event.stop()
        event.prevent_default()


class DealsList(Static):
    """Deal rows. Holds focus so every key press reaches the state machine."""

    can_focus = True

    def on_key(self, event: events.Key) -> None:
        _forward_key(self, event)


class OverlayScreen(ModalScreen):
    """Menu and popups, drawn over the deals view.

    Its content is pushed by the app from state; keys are forwarded to the
    state machine like on the main screen.
    """

    def __init__(self) -> None:
        super().__init__()
        self._title = ""
        self._markup = ""

    def compose(self) -> ComposeResult:
        yield Static(id="popup")

    def on_mount(self) -> None:
        self._apply()

    def on_key(self, event: events.Key) -> None:
        _forward_key(self, event)

    def show(self, title: str, markup: str) -> None:
        if (title, markup) == (self._title, self._markup):
            return
        self._title, self._markup = title, markup
        if self.is_mounted:
            self._apply()

    def _apply(self) -> None:
        popup = self.query_one("#popup", Static)
        popup.border_title = self._title
        popup.update(self._markup)


class DealveApp(App):
    """
    Textual application for browsing deals.

    Holds the AppState and the TaskManager; owns no other state.
    """

    TITLE = "Dealve"
    CSS_PATH = "styles/app.tcss"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(self, state: AppState, client: Any) -> None:
        """
        Initialize the app.

        Args:
            state: Initial state (usually AppState.from_config)
            client: Gateway used by the TaskManager (ItadClient or a fake)
        """
        super().__init__()
        self.state = state
        self.client = client
        self.tasks = TaskManager(client)
        self._tick_timer = None
        self._tick_interval = TICK_INTERVAL
        self._animating_until = 0.0
        self._main: Optional[Screen] = None
        self._overlay: Optional[OverlayScreen] = None
        # Last markup pushed per widget id, to skip redundant updates
        self._rendered: Dict[str, str] = {}
        self._chart_key: Optional[tuple] = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main"):
            with Vertical(id="deals-panel"):
                yield Static(id="filter-bar")
                yield DealsList(id="deals-list")
                yield Static(id="status-line")
            with Vertical(id="details-panel"):
                yield Static(id="details")
                yield PlotextPlot(id="price-chart")
        yield Footer()

    def on_mount(self) -> None:
        self._main = self.screen
        self._main.query_one("#deals-list", DealsList).focus()
        self.tasks.start_load(self.state)
        self._tick_timer = self.set_interval(self._tick_interval, self._on_tick)
        self.refresh_view()

    async def on_unmount(self) -> None:
        if self._tick_timer is not None:
            self._tick_timer.stop()
            self._tick_timer = None
        self._main = None
        self.tasks.shutdown()
        aclose = getattr(self.client, "aclose", None)
        if aclose is not None:
            await aclose()

    # -- Driving loop ---------------------------------------------------------

    def is_animating(self, now: Optional[float] = None) -> bool:
        now = time.monotonic() if now is None else now
        return now < self._animating_until

    def apply_message(self, msg: m.Message) -> None:
        """Run one message through dispatch() and carry out its effects."""
        result = dispatch(self.state, msg)

        if isinstance(msg, m.DealsLoaded):
            self._start_list_animation()
        elif isinstance(msg, m.DealsLoadFailed):
            self.notify(msg.error, title="Load failed", severity="error")

        if result.needs_reload:
            self.tasks.start_load(self.state)
        if result.selection_changed:
            self.tasks.mark_selection_changed()

        if self.state.should_quit:
            self.exit()

    def handle_key_press(self, key: str, character: Optional[str]) -> bool:
        """Apply the message for a key. Returns False if the key is unbound here."""
        msg = handle_key(self.state, key, character)
        if msg is None:
            return False
        self.apply_message(msg)
        if not self.state.should_quit:
            self.refresh_view()
        return True

    def _on_tick(self) -> None:
        if not self._view_attached():
            return
        now = time.monotonic()
        animating = self.is_animating(now)
        self.apply_message(m.Tick())
        for msg in self.tasks.check_tasks(self.state, now=now, animating=animating):
            self.apply_message(msg)
        if self.state.should_quit:
            return

        wanted = ANIMATION_TICK_INTERVAL if self.is_animating() else TICK_INTERVAL
        if wanted != self._tick_interval:
            self._set_tick_interval(wanted)
        self.refresh_view()

    def _set_tick_interval(self, seconds: float) -> None:
        if self._tick_timer is not None:
            self._tick_timer.stop()
        self._tick_interval = seconds
        self._tick_timer = self.set_interval(seconds, self._on_tick)

    def _start_list_animation(self) -> None:
        if not self._view_attached():
            return
        try:
            deals_list = self._main.query_one("#deals-list", DealsList)
        except NoMatches:
            return
        deals_list.styles.opacity = 0.0
        deals_list.styles.animate("opacity", value=1.0, duration=ANIMATION_SECONDS)
        self._animating_until = time.monotonic() + ANIMATION_SECONDS

    # -- Rendering ------------------------------------------------------------

    def _set_markup(self, widget_id: str, markup: str) -> None:
        if self._rendered.get(widget_id) == markup:
            return
        self._rendered[widget_id] = markup
        self._main.query_one(f"#{widget_id}", Static).update(markup)

    def _view_attached(self) -> bool:
        return self._main is not None and self._main.is_attached

    def refresh_view(self) -> None:
        """Redraw every widget from state. Does nothing once the view is torn down."""
        if not self._view_attached():
            return
        state = self.state
        self.sub_title = f"{state.region.display_name} | {state.platform_filter.display_name}"

        try:
            deals_list = self._main.query_one("#deals-list", DealsList)
        except NoMatches:
            return
        height = deals_list.size.height or 30
        self._set_markup("filter-bar", render_filter_bar(state))
        self._set_markup("deals-list", render_deals(state, height))
        self._set_markup("status-line", render_status_line(state))
        self._set_markup("details", render_details(state))
        self._refresh_overlay()
        self._refresh_chart()

    def _overlay_content(self) -> Optional[tuple]:
        """(title, markup) for the menu or open popup, None when neither is shown."""
        state = self.state
        popup = state.ui.popup
        if popup is Popup.OPTIONS:
            markup = render_options(state)
        elif popup is Popup.KEYBINDS:
            markup = render_keybinds()
        elif popup is Popup.PLATFORM:
            markup = render_platform_popup(state)
        elif popup is Popup.PRICE_FILTER:
            markup = render_price_filter(state)
        elif state.ui.show_menu:
            return "Menu", render_menu(state)
        else:
            return None
        return POPUP_TITLES[popup], markup

    def _refresh_overlay(self) -> None:
        content = self._overlay_content()
        if content is None:
            if self._overlay is not None:
                if self.screen is self._overlay:
                    self.pop_screen()
                self._overlay = None
                self._main.query_one("#deals-list", DealsList).focus()
            return
        if self._overlay is None:
            self._overlay = OverlayScreen()
            self.push_screen(self._overlay)
        self._overlay.show(*content)

    def _refresh_chart(self) -> None:
        deal = self.state.selected_deal()
        history = self.state.selected_price_history()
        key = (deal.id if deal else None, len(history) if history else 0)
        if key == self._chart_key:
            return
        self._chart_key = key

        chart = self._main.query_one("#price-chart", PlotextPlot)
        plt = chart.plt
        plt.clear_figure()
        if deal is None or not history:
            plt.title("Price history" if deal is None else "Price history (no data)")
            chart.refresh()
            return

        xs, ys, labels = history_series(history)
        plt.title("Price history (1 year)")
        plt.plot(xs, ys, marker="braille")
        step = max(1, len(xs) // CHART_TICKS)
        plt.xticks(xs[::step], labels[::step])
        plt.ylim(0, max(ys) * 1.1 or 1)
        chart.refresh()


def run_app(api_key: str, config_path: Optional[Path] = None) -> None:
    """
    Run the TUI application.

    Args:
        api_key: ITAD API key
        config_path: Override settings file path (optional)
    """
    config = Config.load(config_path)
    state = AppState.from_config(config, api_key=api_key, config_path=config_path)
    app = DealveApp(state, ItadClient(api_key=api_key))
    app.run()
