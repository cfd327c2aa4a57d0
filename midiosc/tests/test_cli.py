"""
Tests for the command-line entry point.

Devices, sockets and the Textual app are replaced with fakes; what is
tested is the startup order, exit codes and wiring.
"""

import threading

import pytest

pytest.importorskip("textual", reason="textual is not installed")

from midiosc import cli
from midiosc.config import BridgeConfig
from midiosc.errors import ConfigError, PortOpenError, PortSelectionError
from midiosc.model import MidiFrame

PORTS = [(0, "Midi Through Port-0"), (1, "nanoKONTROL2 MIDI 1")]
SETUP_LOGGING = cli.setup_logging


class FakeSource:
    instances = []
    fail_open = False

    def __init__(self, index, name):
        self.index = index
        self.name = name
        self.sink = None
        self.close_calls = 0
        FakeSource.instances.append(self)

    def open(self, sink):
        if self.fail_open:
            raise PortOpenError("busy")
        self.sink = sink

    def close(self):
        self.close_calls += 1


class FakeSender:
    instances = []

    def __init__(self, host, port):
        self.sent = []
        FakeSender.instances.append(self)

    def send(self, address, value):
        self.sent.append((address, value))
        return True


class FakeApp:
    """Stands in for DashboardApp: plays a short session, then presses q."""

    instances = []

    def __init__(self, bus, config, log_handler=None):
        self.bus = bus
        self.snapshots = []
        self.exited = threading.Event()
        FakeApp.instances.append(self)

    def render_from_thread(self, snapshot):
        self.snapshots.append(snapshot)

    def exit_from_thread(self):
        self.exited.set()

    def run(self):
        source = FakeSource.instances[-1]
        source.sink(MidiFrame((0x90, 60, 100)))
        source.sink(MidiFrame((0xB0, 7, 127)))
        self.bus.request_quit()
        assert self.exited.wait(timeout=2.0)


@pytest.fixture
def fakes(monkeypatch, tmp_path):
    FakeSource.instances = []
    FakeSource.fail_open = False
    FakeApp.instances = []
    FakeSender.instances = []
    monkeypatch.setattr(cli, "list_input_ports", lambda: list(PORTS))
    monkeypatch.setattr(cli, "MidiInputSource", FakeSource)
    monkeypatch.setattr(cli, "OscSender", FakeSender)
    monkeypatch.setattr(cli, "DashboardApp", FakeApp)
    monkeypatch.setattr(cli, "setup_logging", lambda log_file, verbose: None)
    return tmp_path


def base_args(tmp_path, *extra):
    return ["--config", str(tmp_path / "missing.yaml"), *extra]


class TestListPorts:

    def test_list(self, fakes, capsys):
        assert cli.main(["--list"]) == 0
        out = capsys.readouterr().out
        assert "nanoKONTROL2 MIDI 1" in out

    def test_list_without_ports(self, fakes, monkeypatch):
        monkeypatch.setattr(cli, "list_input_ports", lambda: [])
        assert cli.main(["--list"]) == 0


class TestStartupErrors:
    """Fatal errors exit 1 before the dashboard is created."""

    def test_no_ports(self, fakes, monkeypatch):
        monkeypatch.setattr(cli, "list_input_ports", lambda: [])
        assert cli.main(base_args(fakes)) == 1
        assert FakeApp.instances == []

    def test_index_out_of_range(self, fakes):
        assert cli.main(base_args(fakes, "--input", "5")) == 1
        assert FakeApp.instances == []

    def test_port_open_failure(self, fakes):
        FakeSource.fail_open = True
        assert cli.main(base_args(fakes, "--input", "1")) == 1

    def test_bad_config_file(self, fakes):
        path = fakes / "config.yaml"
        path.write_text("osc:\n  port: 0\n")
        assert cli.main(["--config", str(path), "--input", "1"]) == 1


class TestChoosePort:

    def test_configured_index(self):
        assert cli.choose_port(PORTS, BridgeConfig(input_index=0)) == PORTS[0]

    def test_prompt_when_ambiguous(self, monkeypatch):
        asked = []

        def fake_ask(prompt, choices, console):
            asked.append(choices)
            return 1

        monkeypatch.setattr(cli.IntPrompt, "ask", fake_ask)

        assert cli.choose_port(PORTS, BridgeConfig()) == PORTS[1]
        assert asked == [["0", "1"]]


class TestRunBridge:

    def test_session_forwards_and_cleans_up(self, fakes):
        """Frames reach the sender, quit closes the port exactly once."""
        code = cli.main(base_args(fakes, "--input", "1", "--raw"))

        assert code == 0
        assert FakeSender.instances[-1].sent == [("/note/0/60", 100), ("/cc/0/7", 127)]
        source = FakeSource.instances[-1]
        assert source.index == 1
        assert source.close_calls == 1
        assert FakeApp.instances[-1].exited.is_set()


class TestFatalEnvironmentErrors:
    """Environment problems are reported as one-line errors with exit 1."""

    def test_unwritable_log_file(self, fakes, monkeypatch):
        monkeypatch.setattr(cli, "setup_logging", SETUP_LOGGING)
        blocker = fakes / "not-a-dir"
        blocker.write_text("")
        log_file = blocker / "midiosc.log"

        assert cli.main(base_args(fakes, "--input", "1", "--log-file", str(log_file))) == 1
        assert FakeApp.instances == []

    def test_setup_logging_raises_config_error(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        with pytest.raises(ConfigError):
            SETUP_LOGGING(blocker / "midiosc.log", False)

    def test_closed_stdin_at_prompt(self, fakes, monkeypatch):
        def closed_stdin(prompt, choices, console):
            raise EOFError

        monkeypatch.setattr(cli.IntPrompt, "ask", closed_stdin)

        with pytest.raises(PortSelectionError):
            cli.choose_port(PORTS, BridgeConfig())
        assert cli.main(base_args(fakes)) == 1
        assert FakeApp.instances == []
