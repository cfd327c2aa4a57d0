"""
Address Translator

Maps typed MIDI events onto OSC addresses and values. Pure functions,
the normalize flag is passed in rather than read from global state.
"""

from typing import Tuple

from .model import MidiEvent, EncodedValue, NoteOn, NoteOff, ControlChange

MIDI_MAX = 127.0

NOTE_PREFIX = "/note"
CC_PREFIX = "/cc"


def address_for(event: MidiEvent) -> str:
    """
    OSC address for an event. Depends only on channel and note/controller,
    so note on and note off for the same key share one address.
    """
    if isinstance(event, ControlChange):
        return f"{CC_PREFIX}/{event.channel}/{event.controller}"
    return f"{NOTE_PREFIX}/{event.channel}/{event.note}"


def raw_value(event: MidiEvent) -> int:
    """Velocity for note on, 0 for note off, controller value for CC."""
    if isinstance(event, NoteOn):
        return event.velocity
    if isinstance(event, NoteOff):
        return 0
    return event.value


def encode_value(raw: int, normalize: bool) -> EncodedValue:
    """Pass the 0-127 value through, or scale it to 0.0-1.0."""
    if normalize:
        return raw / MIDI_MAX
    return raw


def translate(event: MidiEvent, normalize: bool) -> Tuple[str, EncodedValue]:
    """
    Translate an event into an (address, value) pair. Pure function.

    Examples:
        translate(NoteOn(0, 60, 127), normalize=False) -> ("/note/0/60", 127)
        translate(ControlChange(1, 7, 64), normalize=True) -> ("/cc/1/7", 0.5039...)
    """
    return address_for(event), encode_value(raw_value(event), normalize)
