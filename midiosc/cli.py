"""
Command-line entry point.

Startup order: config -> port selection -> OSC socket -> open MIDI input
-> dashboard. Every fatal error is raised before the dashboard takes over
the terminal.
"""

import logging
import sys
import threading
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.prompt import IntPrompt
from rich.table import Table

from .bus import EventBus, MidiBridge, TickTimer
from .config import BridgeConfig, build_parser, resolve_config
from .dashboard import DashboardApp, ListHandler
from .errors import ConfigError, MidiOscError, PortSelectionError
from .midi_input import MidiInputSource, PortInfo, list_input_ports, select_port
from .osc_sender import OscSender

logger = logging.getLogger(__name__)

console = Console(stderr=True)


def setup_logging(log_file: Path, verbose: bool) -> ListHandler:
    """
    Send log records to a file plus an in-memory handler for the log panel.
    Nothing is written to the terminal the dashboard draws on.
    """
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            filename=str(log_file),
        )
    except OSError as e:
        raise ConfigError(f"Cannot write log file {log_file}: {e}") from e
    handler = ListHandler()
    logging.getLogger().addHandler(handler)
    return handler


def print_ports(ports: List[PortInfo]) -> None:
    table = Table(title="MIDI input ports")
    table.add_column("Index", justify="right", style="cyan")
    table.add_column("Name")
    for index, name in ports:
        table.add_row(str(index), name)
    Console().print(table)


def choose_port(ports: List[PortInfo], config: BridgeConfig) -> PortInfo:
    """Use the configured index/pattern, otherwise ask."""
    port = select_port(ports, index=config.input_index, pattern=config.port_pattern)
    if port is not None:
        return port

    print_ports(ports)
    try:
        choice = IntPrompt.ask(
            "Select MIDI input",
            choices=[str(index) for index, _ in ports],
            console=console,
        )
    except EOFError as e:
        raise PortSelectionError("No MIDI input selected (stdin closed)") from e
    return select_port(ports, index=choice)


def run_bridge(config: BridgeConfig, log_handler: Optional[ListHandler] = None) -> int:
    """Wire producers, consumer and dashboard together and block until quit."""
    index, port_name = choose_port(list_input_ports(), config)
    sender = OscSender(config.osc_host, config.osc_port)

    bus = EventBus()
    app = DashboardApp(bus, config, log_handler=log_handler)
    source = MidiInputSource(index, port_name)
    timer = TickTimer(bus, config.tick_interval)

    def cleanup():
        timer.stop()
        source.close()
        app.exit_from_thread()

    bridge = MidiBridge(
        config,
        bus,
        sender=sender.send,
        renderer=app.render_from_thread,
        on_cleanup=cleanup,
    )

    source.open(bus.publish)
    bridge.attach_port(port_name)
    timer.start()

    errors: List[BaseException] = []

    def consume():
        try:
            bridge.run()
        except Exception as e:
            logger.exception("Bridge loop failed")
            errors.append(e)
            app.exit_from_thread()

    worker = threading.Thread(target=consume, name="midiosc-bridge", daemon=True)
    worker.start()

    try:
        app.run()
    finally:
        # The dashboard may have gone away on its own; make sure the loop ends
        bus.request_quit()
        worker.join(timeout=2.0)

    if errors:
        console.print(f"[red]Error:[/] {errors[0]}")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        if args.list:
            ports = list_input_ports()
            if not ports:
                console.print("[yellow]No MIDI input ports found[/]")
            else:
                print_ports(ports)
            return 0

        log_handler = setup_logging(args.log_file, args.verbose)
        config = resolve_config(args)
        logger.info(f"Starting with OSC target {config.osc_target}, normalize={config.normalize}")
        return run_bridge(config, log_handler)

    except MidiOscError as e:
        logger.error(str(e))
        console.print(f"[red]Error:[/] {e}")
        return 1
    except KeyboardInterrupt:
        console.print("\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
