"""
Pytest configuration and fixtures for midiosc tests.

No MIDI hardware or network is needed: the bridge talks to fake
collaborators that record what they were asked to do.
"""

import pytest

from midiosc.bus import EventBus, MidiBridge
from midiosc.config import BridgeConfig


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSender:
    """Records (address, value) pairs; can be told to fail."""

    def __init__(self, succeed: bool = True):
        self.sent = []
        self.succeed = succeed

    def __call__(self, address, value) -> bool:
        self.sent.append((address, value))
        return self.succeed


class FakeRenderer:
    """Records every snapshot passed to it."""

    def __init__(self):
        self.snapshots = []

    def __call__(self, snapshot) -> None:
        self.snapshots.append(snapshot)

    @property
    def last(self):
        return self.snapshots[-1]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def raw_config():
    return BridgeConfig(normalize=False, ttl=10.0)


@pytest.fixture
def cleanup_calls():
    return []


@pytest.fixture
def bridge(raw_config, bus, sender, renderer, clock, cleanup_calls):
    """A bridge in RUNNING phase sending raw integer values."""
    b = MidiBridge(
        raw_config,
        bus,
        sender=sender,
        renderer=renderer,
        clock=clock,
        on_cleanup=lambda: cleanup_calls.append(True),
    )
    b.attach_port("Test Port")
    return b
