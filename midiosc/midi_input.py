"""
MIDI Input

Port discovery and the input port wrapper. Wraps python-rtmidi.

The rtmidi callback runs on rtmidi's own thread and must not block: it only
copies the bytes into a MidiFrame and hands it to the bus.
"""

import logging
from typing import Callable, List, Optional, Tuple

import rtmidi

from .errors import NoInputPortsError, PortSelectionError, PortOpenError
from .model import MidiFrame

logger = logging.getLogger(__name__)

CLIENT_NAME = "midiosc"

PortInfo = Tuple[int, str]


# =============================================================================
# DEVICE DISCOVERY
# =============================================================================

def list_input_ports() -> List[PortInfo]:
    """
    List MIDI input ports as (index, name) pairs.

    A MIDI backend that cannot be initialised counts as no ports.
    """
    try:
        midi_in = rtmidi.MidiIn(name=CLIENT_NAME)
    except rtmidi.RtMidiError as e:
        logger.error(f"Failed to initialise MIDI backend: {e}")
        return []

    try:
        return list(enumerate(midi_in.get_ports()))
    finally:
        midi_in.delete()


def find_port_by_pattern(ports: List[PortInfo], pattern: str) -> Optional[PortInfo]:
    """First port whose name contains `pattern`, case-insensitive. Pure function."""
    pattern_lower = pattern.lower()
    for index, name in ports:
        if pattern_lower in name.lower():
            return (index, name)
    return None


def select_port(
    ports: List[PortInfo],
    index: Optional[int] = None,
    pattern: Optional[str] = None,
) -> Optional[PortInfo]:
    """
    Pick the input port to open. Pure function.

    Returns None when the choice is ambiguous (several ports, no index or
    pattern), so the caller can ask the user.

    Raises:
        NoInputPortsError: `ports` is empty
        PortSelectionError: index out of range or pattern matches nothing
    """
    if not ports:
        raise NoInputPortsError("No MIDI input ports found")

    if index is not None:
        for port in ports:
            if port[0] == index:
                return port
        raise PortSelectionError(
            f"MIDI input index {index} out of range (0-{len(ports) - 1})"
        )

    if pattern:
        port = find_port_by_pattern(ports, pattern)
        if port is None:
            raise PortSelectionError(f"No MIDI input port matching '{pattern}'")
        return port

    if len(ports) == 1:
        return ports[0]
    return None


# =============================================================================
# INPUT PORT
# =============================================================================

class MidiInputSource:
    """
    An open MIDI input port that forwards every raw message to a sink.

    The sink is normally EventBus.publish.
    """

    def __init__(self, index: int, name: str):
        self.index = index
        self.name = name
        self._midi_in = None
        self._sink: Optional[Callable[[MidiFrame], object]] = None

    @property
    def is_open(self) -> bool:
        return self._midi_in is not None

    def open(self, sink: Callable[[MidiFrame], object]) -> None:
        """
        Open the port and start delivering frames to `sink`.

        Raises:
            PortOpenError: the backend refused to open the port
        """
        self._sink = sink
        try:
            midi_in = rtmidi.MidiIn(name=CLIENT_NAME)
        except rtmidi.RtMidiError as e:
            raise PortOpenError(f"Failed to initialise MIDI backend: {e}") from e

        try:
            midi_in.open_port(self.index)
        except rtmidi.RtMidiError as e:
            midi_in.delete()
            raise PortOpenError(f"Failed to open MIDI input {self.name}: {e}") from e

        # SysEx, clock and active sensing never reach the decoder
        midi_in.ignore_types(sysex=True, timing=True, active_sense=True)
        midi_in.set_callback(self._on_midi_message)
        self._midi_in = midi_in
        logger.info(f"Opened MIDI input: {self.name}")

    def _on_midi_message(self, event, data=None):
        """rtmidi callback: event is (message bytes, delta time)."""
        message, _delta = event
        self._sink(MidiFrame.from_message(message))

    def close(self) -> None:
        if self._midi_in is None:
            return
        try:
            self._midi_in.cancel_callback()
            self._midi_in.close_port()
        except rtmidi.RtMidiError as e:
            logger.error(f"Error closing MIDI input: {e}")
        finally:
            self._midi_in.delete()
            self._midi_in = None
        logger.info(f"Closed MIDI input: {self.name}")
