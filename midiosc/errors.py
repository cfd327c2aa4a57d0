"""
Exceptions

Only startup problems are errors. Bad MIDI frames and lost OSC packets are
expected at runtime and never raise.
"""


class MidiOscError(Exception):
    """Base class. The CLI reports these once and exits non-zero."""


class ConfigError(MidiOscError):
    """Invalid configuration value or unreadable config file."""


class NoInputPortsError(MidiOscError):
    """No MIDI input ports are available."""


class PortSelectionError(MidiOscError):
    """Requested input index or name does not match an available port."""


class PortOpenError(MidiOscError):
    """The selected MIDI input port could not be opened."""


class OscSocketError(MidiOscError):
    """The UDP socket for OSC output could not be created."""
