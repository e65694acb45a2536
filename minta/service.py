"""
service.py — Mailbox loop shared by actors, and the event listener bridge.

A service owns three queue ends: ``receiver`` (its mailbox), ``loopback``
(the same mailbox, handed to background workers) and ``sender`` (events for
the controller). One thread consumes the mailbox, one message at a time.
"""

import logging
import queue
import threading

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.05  # seconds


class Service:
    poll_interval = POLL_INTERVAL

    def __init__(self, sender: queue.Queue, receiver: queue.Queue):
        self.sender = sender
        self.receiver = receiver
        self.loopback = receiver
        self._shutdown = threading.Event()
        self._thread: threading.Thread | None = None

    def handle_message(self, msg):
        raise NotImplementedError

    def send_to_gui(self, message):
        """Post an event for the controller."""
        self.sender.put(message)

    def poll(self, timeout: float | None = 0) -> bool:
        """Handle one mailbox message if one arrives within ``timeout``.

        Returns False when the mailbox stayed empty.
        """
        try:
            if timeout:
                msg = self.receiver.get(timeout=timeout)
            else:
                msg = self.receiver.get_nowait()
        except queue.Empty:
            return False

        try:
            self.handle_message(msg)
        except Exception:
            logger.exception("%s: unhandled failure on %r", type(self).__name__, msg)
        return True

    def run(self):
        while not self._shutdown.is_set():
            self.poll(timeout=self.poll_interval)

    def start(self) -> threading.Thread:
        self._shutdown.clear()
        self._thread = threading.Thread(target=self.run, name=type(self).__name__, daemon=True)
        self._thread.start()
        return self._thread

    def shutdown(self, timeout: float | None = None):
        self._shutdown.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None


class EventListener:
    """Forward every event of a queue to ``callback``, on its own thread."""

    def __init__(self, receiver: queue.Queue, callback, poll_interval: float = POLL_INTERVAL):
        self.receiver = receiver
        self.callback = callback
        self.poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="EventListener", daemon=True)

    def _run(self):
        while not self._stop.is_set():
            try:
                event = self.receiver.get(timeout=self.poll_interval)
            except queue.Empty:
                continue
            try:
                self.callback(event)
            except Exception:
                logger.exception("Event callback failed on %r", event)

    def start(self):
        self._thread.start()
        return self

    def stop(self, timeout: float | None = None):
        self._stop.set()
        self._thread.join(timeout)
