"""
Configuration

BridgeConfig is built once at startup from defaults, an optional YAML file
and command-line flags (in that order of precedence), then never changes.
"""

import argparse
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "midiosc" / "config.yaml"
DEFAULT_LOG_PATH = Path.home() / ".config" / "midiosc" / "midiosc.log"

MIN_TICK_INTERVAL = 0.06
MAX_TICK_INTERVAL = 0.2


@dataclass(frozen=True)
class BridgeConfig:
    """
    Process configuration. Immutable.

    osc_host / osc_port: where OSC messages are sent
    input_index: MIDI input port index, None to auto-select or prompt
    port_pattern: case-insensitive substring to pick the input port by name
    normalize: send 0.0-1.0 floats instead of raw 0-127 integers
    ttl: seconds an address stays on the dashboard after its last event
    tick_interval: dashboard refresh period in seconds
    recent_events: how many decoded events the recent events panel keeps
    """
    osc_host: str = "127.0.0.1"
    osc_port: int = 9000
    input_index: Optional[int] = None
    port_pattern: Optional[str] = None
    normalize: bool = True
    ttl: float = 10.0
    tick_interval: float = 0.1
    recent_events: int = 5

    def __post_init__(self):
        if not 1 <= self.osc_port <= 65535:
            raise ConfigError(f"OSC port out of range: {self.osc_port}")
        if self.input_index is not None and self.input_index < 0:
            raise ConfigError(f"MIDI input index must be >= 0: {self.input_index}")
        if self.ttl <= 0:
            raise ConfigError(f"TTL must be positive: {self.ttl}")
        if not MIN_TICK_INTERVAL <= self.tick_interval <= MAX_TICK_INTERVAL:
            raise ConfigError(
                f"Tick interval must be between {MIN_TICK_INTERVAL} and "
                f"{MAX_TICK_INTERVAL} seconds: {self.tick_interval}"
            )
        if self.tick_interval >= self.ttl:
            raise ConfigError("Tick interval must be shorter than the TTL")
        if self.recent_events < 0:
            raise ConfigError(f"recent_events must be >= 0: {self.recent_events}")

    @property
    def osc_target(self) -> str:
        return f"{self.osc_host}:{self.osc_port}"


# =============================================================================
# YAML FILE
# =============================================================================

def config_from_dict(data: Dict[str, Any], base: Optional[BridgeConfig] = None) -> BridgeConfig:
    """
    Build a config from the nested YAML layout:

        osc: {host, port}
        midi: {input_index, port_pattern}
        normalize: bool
        display: {ttl, tick_interval, recent_events}
    """
    base = base or BridgeConfig()
    osc = data.get("osc") or {}
    midi = data.get("midi") or {}
    display = data.get("display") or {}

    try:
        return replace(
            base,
            osc_host=str(osc.get("host", base.osc_host)),
            osc_port=int(osc.get("port", base.osc_port)),
            input_index=_optional_int(midi.get("input_index", base.input_index)),
            port_pattern=midi.get("port_pattern", base.port_pattern),
            normalize=bool(data.get("normalize", base.normalize)),
            ttl=float(display.get("ttl", base.ttl)),
            tick_interval=float(display.get("tick_interval", base.tick_interval)),
            recent_events=int(display.get("recent_events", base.recent_events)),
        )
    except (TypeError, ValueError, AttributeError) as e:
        raise ConfigError(f"Invalid config value: {e}") from e


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def load_config(path: Optional[Path] = None) -> BridgeConfig:
    """
    Load configuration from YAML. A missing file yields the defaults,
    an unreadable one raises ConfigError.
    """
    path = path or DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.info(f"No config file at {path}, using defaults")
        return BridgeConfig()

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read config {path}: {e}") from e

    if data is None:
        return BridgeConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping")

    config = config_from_dict(data)
    logger.info(f"Loaded config from {path}")
    return config


# =============================================================================
# COMMAND LINE
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="midiosc",
        description="Forward MIDI notes and controllers to OSC with a live dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List MIDI input ports
  %(prog)s --list

  # Forward port 1 to localhost:9000 as normalized floats
  %(prog)s --input 1

  # Forward the first port containing "nanoKONTROL" as raw 0-127 ints
  %(prog)s --match nanoKONTROL --raw --port 8000
        """
    )
    parser.add_argument('--config', type=Path, default=DEFAULT_CONFIG_PATH,
                        help=f'YAML config file (default: {DEFAULT_CONFIG_PATH})')
    parser.add_argument('--list', action='store_true',
                        help='List MIDI input ports and exit')
    parser.add_argument('-i', '--input', type=int, dest='input_index',
                        help='MIDI input port index')
    parser.add_argument('-m', '--match', dest='port_pattern',
                        help='Pick the first input port whose name contains this text')
    parser.add_argument('--host', dest='osc_host', help='OSC destination host')
    parser.add_argument('-p', '--port', type=int, dest='osc_port',
                        help='OSC destination port (default: 9000)')
    parser.add_argument('--ttl', type=float,
                        help='Seconds an address stays on screen after its last event')

    values = parser.add_mutually_exclusive_group()
    values.add_argument('--raw', dest='normalize', action='store_false', default=None,
                        help='Send raw 0-127 integers')
    values.add_argument('--normalize', dest='normalize', action='store_true', default=None,
                        help='Send 0.0-1.0 floats (default)')

    parser.add_argument('--log-file', type=Path, default=DEFAULT_LOG_PATH,
                        help=f'Where log records go while the dashboard runs (default: {DEFAULT_LOG_PATH})')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    return parser


def apply_args(config: BridgeConfig, args: argparse.Namespace) -> BridgeConfig:
    """Override config fields with any flags given on the command line."""
    names = {f.name for f in fields(BridgeConfig)}
    overrides = {
        name: value for name, value in vars(args).items()
        if name in names and value is not None
    }
    if not overrides:
        return config
    return replace(config, **overrides)


def resolve_config(args: argparse.Namespace) -> BridgeConfig:
    """Defaults < YAML file < command line."""
    return apply_args(load_config(args.config), args)
