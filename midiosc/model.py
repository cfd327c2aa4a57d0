"""
Domain Models

Immutable data structures shared by the decoder, translator, cache and bus.
No I/O happens here.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import Tuple, Union


# =============================================================================
# MIDI STATUS NIBBLES
# =============================================================================

class MidiStatus(IntEnum):
    """High nibble of the status byte for the message kinds we forward."""
    NOTE_OFF = 0x80
    NOTE_ON = 0x90
    CONTROL_CHANGE = 0xB0


# =============================================================================
# MIDI EVENTS - Tagged variant
# =============================================================================

@dataclass(frozen=True)
class NoteOn:
    """Note pressed. Immutable."""
    channel: int
    note: int
    velocity: int


@dataclass(frozen=True)
class NoteOff:
    """Note released. Carries no velocity, it always encodes to zero."""
    channel: int
    note: int


@dataclass(frozen=True)
class ControlChange:
    """Controller moved. Immutable."""
    channel: int
    controller: int
    value: int


MidiEvent = Union[NoteOn, NoteOff, ControlChange]

# Raw integer or normalized float, depending on BridgeConfig.normalize
EncodedValue = Union[int, float]


# =============================================================================
# EVENT ENVELOPES - What travels on the bus
# =============================================================================

@dataclass(frozen=True)
class Tick:
    """Periodic timer beat. `timestamp` is informational only."""
    timestamp: float = 0.0


@dataclass(frozen=True)
class KeyInput:
    """A key pressed on the dashboard."""
    key: str


@dataclass(frozen=True)
class MidiFrame:
    """Raw bytes exactly as delivered by the input port callback."""
    data: Tuple[int, ...]

    @classmethod
    def from_message(cls, message) -> "MidiFrame":
        """Copy an rtmidi message list into an immutable frame."""
        return cls(data=tuple(int(b) for b in message))


EventEnvelope = Union[Tick, KeyInput, MidiFrame]

QUIT_KEY = "q"


# =============================================================================
# CACHE / DISPLAY RECORDS
# =============================================================================

@dataclass(frozen=True)
class CacheEntry:
    """
    Last value seen on an address. Immutable.

    timestamp: monotonic time of the most recent write
    value: encoded value as sent over OSC
    """
    timestamp: float
    value: EncodedValue


@dataclass(frozen=True)
class RecentEvent:
    """A decoded event together with where it was sent."""
    timestamp: float
    description: str
    address: str
    value: EncodedValue


# =============================================================================
# BRIDGE STATE
# =============================================================================

class BridgePhase(Enum):
    """Lifecycle of the consumer loop. Transitions only move forward."""
    AWAITING_PORT = auto()
    RUNNING = auto()
    STOPPED = auto()


@dataclass
class BridgeStats:
    """Counters shown in the dashboard status line. Owned by the consumer."""
    frames_received: int = 0
    frames_dropped: int = 0
    events_forwarded: int = 0
    send_failures: int = 0
    ticks: int = 0

    def summary(self) -> str:
        return (
            f"rx={self.frames_received} fwd={self.events_forwarded} "
            f"drop={self.frames_dropped} fail={self.send_failures} "
            f"ticks={self.ticks}"
        )


@dataclass(frozen=True)
class DashboardSnapshot:
    """Everything the dashboard needs for one refresh."""
    title: str
    port_name: str
    rows: Tuple[Tuple[str, str], ...]
    recent: Tuple[RecentEvent, ...] = field(default_factory=tuple)
    status: str = ""
