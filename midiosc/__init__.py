"""
midiosc - MIDI to OSC bridge with a live terminal dashboard

Notes and controllers from one MIDI input port are forwarded as OSC
messages (/note/<channel>/<note>, /cc/<channel>/<controller>) while a
dashboard shows which addresses were active recently.

Usage:
    from midiosc import EventBus, MidiBridge, MidiFrame, Tick, BridgeConfig

    bus = EventBus()
    bridge = MidiBridge(BridgeConfig(normalize=False), bus,
                        sender=lambda address, value: True,
                        renderer=print)
    bridge.attach_port("Virtual Keyboard")
    bridge.step(MidiFrame((0x90, 60, 100)))
    bridge.cache.snapshot()   # [("/note/0/60", 100)]
"""

__version__ = "0.1.0"

from .model import (
    NoteOn,
    NoteOff,
    ControlChange,
    MidiEvent,
    MidiStatus,
    EncodedValue,
    Tick,
    KeyInput,
    MidiFrame,
    EventEnvelope,
    QUIT_KEY,
    CacheEntry,
    RecentEvent,
    BridgePhase,
    BridgeStats,
    DashboardSnapshot,
)
from .decoder import decode, describe_event
from .translator import translate, address_for, encode_value
from .cache import LivenessCache, format_value
from .config import BridgeConfig, load_config, config_from_dict
from .bus import EventBus, TickTimer, MidiBridge
from .errors import (
    MidiOscError,
    ConfigError,
    NoInputPortsError,
    PortSelectionError,
    PortOpenError,
    OscSocketError,
)
