"""
Event Bus and Bridge Loop

Three producers feed one queue:
- the MIDI input callback publishes MidiFrame (rtmidi's own thread)
- TickTimer publishes Tick (its own thread)
- the dashboard publishes KeyInput (the UI thread)

MidiBridge is the single consumer. It owns the cache, the stats and the
recent events ring, so none of them need a lock. Producers never decode,
translate, render or touch the network.
"""

import logging
import queue
import threading
import time
from collections import deque
from typing import Callable, Deque, Optional

from .cache import LivenessCache
from .config import BridgeConfig
from .decoder import decode, describe_event
from .model import (
    EventEnvelope, EncodedValue, Tick, KeyInput, MidiFrame, QUIT_KEY,
    BridgePhase, BridgeStats, DashboardSnapshot, RecentEvent,
)
from .translator import translate

logger = logging.getLogger(__name__)

Sender = Callable[[str, EncodedValue], bool]
Renderer = Callable[[DashboardSnapshot], None]
Clock = Callable[[], float]

APP_TITLE = "midiosc"


# =============================================================================
# EVENT BUS - Multiple producers, single consumer
# =============================================================================

class EventBus:
    """
    Thin wrapper around queue.Queue.

    Unbounded by default. With a maxsize, publish() drops the envelope when
    the queue is full instead of blocking the producer.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: "queue.Queue[EventEnvelope]" = queue.Queue(maxsize=maxsize)
        self._dropped = 0
        self._dropped_lock = threading.Lock()

    def publish(self, envelope: EventEnvelope) -> bool:
        """Enqueue without blocking. Safe to call from any thread."""
        try:
            self._queue.put_nowait(envelope)
            return True
        except queue.Full:
            with self._dropped_lock:
                self._dropped += 1
            return False

    def receive(self) -> EventEnvelope:
        """Block until the next envelope arrives."""
        return self._queue.get()

    def request_quit(self) -> None:
        self.publish(KeyInput(QUIT_KEY))

    @property
    def dropped(self) -> int:
        with self._dropped_lock:
            return self._dropped

    def pending(self) -> int:
        return self._queue.qsize()


# =============================================================================
# TICK PRODUCER
# =============================================================================

class TickTimer:
    """Publishes a Tick every `interval` seconds on a daemon thread."""

    def __init__(self, bus: EventBus, interval: float, clock: Clock = time.monotonic):
        self._bus = bus
        self._interval = interval
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="tick-timer", daemon=True)
        self._thread.start()
        logger.debug(f"Tick timer started ({self._interval * 1000:.0f} ms)")

    def stop(self, timeout: float = 1.0) -> None:
        self._stop_event.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
        self._thread = None

    def _run(self) -> None:
        # wait() doubles as the sleep so stop() is picked up immediately
        while not self._stop_event.wait(self._interval):
            self._bus.publish(Tick(self._clock()))


# =============================================================================
# BRIDGE - The consumer loop
# =============================================================================

class MidiBridge:
    """
    Consumes the bus in arrival order and drives decode -> translate ->
    send -> cache update, plus sweep + render on every tick.

    Phases:
        AWAITING_PORT  no input yet; ticks render, quit works, frames dropped
        RUNNING        entered once via attach_port(), full dispatch
        STOPPED        quit received; cleanup has run exactly once
    """

    def __init__(
        self,
        config: BridgeConfig,
        bus: EventBus,
        sender: Sender,
        renderer: Renderer,
        clock: Clock = time.monotonic,
        on_cleanup: Optional[Callable[[], None]] = None,
    ):
        self.config = config
        self.bus = bus
        self._send = sender
        self._render = renderer
        self._clock = clock
        self._on_cleanup = on_cleanup

        self.phase = BridgePhase.AWAITING_PORT
        self.port_name = ""
        self.cache = LivenessCache()
        self.stats = BridgeStats()
        self.recent: Deque[RecentEvent] = deque(maxlen=config.recent_events)
        self._cleaned_up = False

    @property
    def is_running(self) -> bool:
        return self.phase == BridgePhase.RUNNING

    def attach_port(self, port_name: str) -> None:
        """One-shot AWAITING_PORT -> RUNNING transition."""
        if self.phase != BridgePhase.AWAITING_PORT:
            raise RuntimeError(f"Cannot attach a port while {self.phase.name}")
        self.port_name = port_name
        self.phase = BridgePhase.RUNNING
        logger.info(f"Bridge running: {port_name} -> {self.config.osc_target}")

    def run(self) -> None:
        """
        Block on the bus and dispatch until the quit key arrives.

        Cleanup runs exactly once, also when a renderer error escapes.
        """
        try:
            while self.phase != BridgePhase.STOPPED:
                self.step(self.bus.receive())
        finally:
            self._shutdown()

    def step(self, envelope: EventEnvelope) -> None:
        """Dispatch a single envelope."""
        if self.phase == BridgePhase.STOPPED:
            return

        if isinstance(envelope, KeyInput):
            self._on_key(envelope.key)
        elif isinstance(envelope, Tick):
            self._on_tick()
        elif isinstance(envelope, MidiFrame):
            self._on_frame(envelope.data)
        else:
            logger.warning(f"Unknown envelope on bus: {envelope!r}")

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _on_key(self, key: str) -> None:
        if key != QUIT_KEY:
            return
        logger.info("Quit requested")
        self._shutdown()

    def _on_tick(self) -> None:
        now = self._clock()
        self.cache.sweep(now, self.config.ttl)
        self.stats.ticks += 1
        self._render(self.snapshot())

    def _on_frame(self, data) -> None:
        self.stats.frames_received += 1

        if self.phase != BridgePhase.RUNNING:
            self.stats.frames_dropped += 1
            return

        event = decode(data)
        if event is None:
            self.stats.frames_dropped += 1
            return

        address, value = translate(event, self.config.normalize)
        now = self._clock()

        try:
            sent = self._send(address, value)
        except OSError as e:
            logger.debug(f"OSC send to {address} failed: {e}")
            sent = False

        if sent:
            self.stats.events_forwarded += 1
        else:
            self.stats.send_failures += 1

        self.cache.upsert(address, value, now)
        self.recent.appendleft(RecentEvent(
            timestamp=now,
            description=describe_event(event),
            address=address,
            value=value,
        ))
        logger.debug(f"{describe_event(event)} -> {address} {value}")

    # -------------------------------------------------------------------------
    # Snapshot / shutdown
    # -------------------------------------------------------------------------

    def snapshot(self) -> DashboardSnapshot:
        return DashboardSnapshot(
            title=APP_TITLE,
            port_name=self.port_name,
            rows=self.cache.rows(),
            recent=tuple(self.recent),
            status=self.stats.summary(),
        )

    def _shutdown(self) -> None:
        self.phase = BridgePhase.STOPPED
        if self._cleaned_up:
            return
        self._cleaned_up = True
        if self._on_cleanup:
            self._on_cleanup()
        logger.info(f"Bridge stopped ({self.stats.summary()})")
