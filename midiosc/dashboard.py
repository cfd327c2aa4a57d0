"""
Dashboard

Textual front end. It is a collaborator of the bridge, not its owner:
- key presses are published to the bus as KeyInput
- the bridge thread pushes DashboardSnapshot in via render_from_thread()
"""

import logging
from collections import deque
from typing import Deque, Iterable, Optional, Tuple

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Footer, Header, Static
from rich.markup import escape

from .bus import EventBus, APP_TITLE
from .cache import format_value
from .config import BridgeConfig
from .model import DashboardSnapshot, RecentEvent

logger = logging.getLogger(__name__)

MAX_LOG_LINES = 200
VISIBLE_LOG_LINES = 20


# =============================================================================
# PURE FUNCTIONS - Formatting for UI
# =============================================================================

def format_address_rows(rows: Iterable[Tuple[str, str]]) -> str:
    """Live addresses as aligned markup lines."""
    lines = [f"[cyan]{address:<18s}[/] [bold]{value:>7s}[/]" for address, value in rows]
    if not lines:
        return "[dim](no recent MIDI activity)[/dim]"
    return "\n".join(lines)


def format_recent_event(event: RecentEvent) -> str:
    return (
        f"[bold]{event.description}[/] "
        f"[yellow]→[/] {event.address} {format_value(event.value)}"
    )


def format_port_line(port_name: str, osc_target: str) -> str:
    port = f"[green]●[/] {escape(port_name)}" if port_name else "[red]○[/] waiting for MIDI port"
    return f"MIDI: {port}    OSC: [cyan]{osc_target}[/]"


# =============================================================================
# LOG CAPTURE
# =============================================================================

class ListHandler(logging.Handler):
    """Keeps the most recent formatted records in memory for the log panel."""

    def __init__(self, maxlen: int = MAX_LOG_LINES):
        super().__init__()
        self.lines: Deque[str] = deque(maxlen=maxlen)
        self.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

    def emit(self, record):
        try:
            self.lines.append(self.format(record))
        except Exception:
            self.handleError(record)


# =============================================================================
# PANELS
# =============================================================================

class AddressPanel(Static):
    """One row per address seen within the TTL."""

    rows = reactive(tuple)

    def render(self) -> str:
        return format_address_rows(self.rows)


class RecentPanel(Static):
    """Most recent decoded events, newest first."""

    events = reactive(tuple)

    def render(self) -> str:
        lines = ["[bold]═══ Recent Events ═══[/]\n"]
        if not self.events:
            lines.append("[dim](no MIDI events yet)[/dim]")
        else:
            lines.extend(format_recent_event(event) for event in self.events)
        return "\n".join(lines)


class StatusPanel(Static):
    """Port, OSC target and counters."""

    port_line = reactive("")
    counters = reactive("")

    def render(self) -> str:
        return f"{self.port_line}\n[dim]{self.counters}[/]"


class LogPanel(Static):
    """Tail of the captured log."""

    lines = reactive(tuple)

    def render(self) -> str:
        if not self.lines:
            return "[dim](no log output)[/dim]"
        return "\n".join(escape(line) for line in self.lines[-VISIBLE_LOG_LINES:])


# =============================================================================
# MESSAGES - Posted from the bridge thread, never waited on
# =============================================================================

class SnapshotReady(Message):
    """A new snapshot from the bridge."""

    def __init__(self, snapshot: DashboardSnapshot):
        super().__init__()
        self.snapshot = snapshot


class BridgeStopped(Message):
    """The bridge loop has finished its cleanup."""


# =============================================================================
# MAIN APPLICATION
# =============================================================================

class DashboardApp(App):
    """Live view of the liveness cache. Owns the terminal while running."""

    CSS = """
    #status_container {
        height: 4;
        border: solid cyan;
        padding: 0 1;
    }

    #address_container {
        width: 1fr;
        border: solid green;
        padding: 0 1;
    }

    #recent_container {
        width: 2fr;
        border: solid yellow;
        padding: 0 1;
    }

    #log_container {
        height: 8;
        border: solid blue;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        bus: EventBus,
        config: BridgeConfig,
        log_handler: Optional[ListHandler] = None,
    ):
        super().__init__()
        self.bus = bus
        self.bridge_config = config
        self.log_handler = log_handler
        self._ready = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="status_container"):
            yield StatusPanel(id="status_panel")
        with Horizontal():
            with Container(id="address_container"):
                yield AddressPanel(id="address_panel")
            with Container(id="recent_container"):
                yield RecentPanel(id="recent_panel")
        with Container(id="log_container"):
            yield LogPanel(id="log_panel")
        yield Footer()

    def on_mount(self) -> None:
        self.title = APP_TITLE
        self.query_one(StatusPanel).port_line = format_port_line("", self.bridge_config.osc_target)
        self._ready = True

    async def action_quit(self) -> None:
        """Quitting goes through the bus so the bridge can clean up first."""
        logger.debug("Quit key pressed")
        self.bus.request_quit()

    # -------------------------------------------------------------------------
    # Render collaborator
    # -------------------------------------------------------------------------

    def show_snapshot(self, snapshot: DashboardSnapshot) -> None:
        """Apply a snapshot. Must run on the UI thread."""
        self.title = snapshot.title
        self.sub_title = snapshot.port_name

        status = self.query_one(StatusPanel)
        status.port_line = format_port_line(snapshot.port_name, self.bridge_config.osc_target)
        status.counters = snapshot.status

        self.query_one(AddressPanel).rows = snapshot.rows
        self.query_one(RecentPanel).events = snapshot.recent

        if self.log_handler:
            self.query_one(LogPanel).lines = tuple(self.log_handler.lines)

    def exit(self, *args, **kwargs) -> None:
        self._ready = False
        super().exit(*args, **kwargs)

    def on_snapshot_ready(self, message: SnapshotReady) -> None:
        if self._ready:
            self.show_snapshot(message.snapshot)

    def on_bridge_stopped(self, message: BridgeStopped) -> None:
        self.exit()

    def render_from_thread(self, snapshot: DashboardSnapshot) -> None:
        """
        Renderer handed to MidiBridge; called on the bridge thread.

        Only posts a message, so the bridge never waits on the UI. Snapshots
        arriving before the panels are mounted or after exit are dropped.
        """
        if self._ready and self.is_running:
            self.post_message(SnapshotReady(snapshot))

    def exit_from_thread(self) -> None:
        if self._ready and self.is_running:
            self.post_message(BridgeStopped())
