"""
MIDI Message Decoder

Pure functions turning raw byte frames into typed MIDI events.
Anything that is not a 3-byte note on / note off / control change frame
is not an error, it simply yields no event.
"""

from typing import Optional, Sequence

from .model import MidiEvent, MidiStatus, NoteOn, NoteOff, ControlChange

FRAME_LENGTH = 3


def decode(frame: Sequence[int]) -> Optional[MidiEvent]:
    """
    Decode a raw MIDI frame. Pure function.

    Args:
        frame: Bytes as delivered by the input port callback

    Returns:
        NoteOn, NoteOff or ControlChange, or None for any other frame
        (system / real-time messages, running status, malformed lengths)
    """
    if len(frame) != FRAME_LENGTH:
        return None

    status, data1, data2 = frame
    kind = status & 0xF0
    channel = status & 0x0F

    if kind == MidiStatus.NOTE_OFF:
        return NoteOff(channel=channel, note=data1)
    if kind == MidiStatus.NOTE_ON:
        return NoteOn(channel=channel, note=data1, velocity=data2)
    if kind == MidiStatus.CONTROL_CHANGE:
        return ControlChange(channel=channel, controller=data1, value=data2)
    return None


def describe_event(event: MidiEvent) -> str:
    """Human-readable one-liner for the recent events panel."""
    if isinstance(event, NoteOn):
        return f"Note On  ch{event.channel} #{event.note:3d} vel={event.velocity:3d}"
    if isinstance(event, NoteOff):
        return f"Note Off ch{event.channel} #{event.note:3d}"
    return f"CC       ch{event.channel} #{event.controller:3d} val={event.value:3d}"
