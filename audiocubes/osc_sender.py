"""Asynchronous OSC transmission of cube colour commands."""

from __future__ import annotations

import json
import logging
import threading
from collections import deque
from typing import Any, Deque, List, Optional, Tuple

from pythonosc.udp_client import SimpleUDPClient

from .state import DEVICE_COUNT

LOGGER = logging.getLogger(__name__)

BRIDGE_ADDRESS = "/audiocubes"
CHANGE_COLOUR_TAG = "change_color"


def _log_event(event: str, **fields: object) -> None:
    LOGGER.info(json.dumps({"event": event, **fields}))


def encode_colour_message(device: int, red: int, green: int, blue: int) -> List[object]:
    """Build the argument list for a ``change_color`` bridge command."""
    device = int(device)
    if not 0 <= device < DEVICE_COUNT:
        raise ValueError(f"cube id must be 0-{DEVICE_COUNT - 1}, got {device}")
    channels = [int(red), int(green), int(blue)]
    for channel in channels:
        if not 0 <= channel <= 255:
            raise ValueError(f"colour channel must be 0-255, got {channel}")
    return [CHANGE_COLOUR_TAG, device, *channels]


class ColourTx:
    """Non-blocking colour command transmitter with a bounded queue.

    Works for cubes on USB and on the IR mesh alike; the bridge sends no
    acknowledgement.
    """

    def __init__(
        self,
        ip: str,
        port: int,
        address: str = BRIDGE_ADDRESS,
        queue_size: int = 64,
        client: Optional[Any] = None,
    ) -> None:
        self._client = client if client is not None else SimpleUDPClient(ip, port)
        self._address = address
        self._queue_size = max(1, queue_size)
        self._queue: Deque[Tuple[str, List[object]]] = deque()
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._closed = False
        self._thread = threading.Thread(target=self._run, name="colour-tx", daemon=True)
        self._thread.start()
        _log_event("colour_tx_started", ip=ip, port=port, queue_size=self._queue_size)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._not_empty.notify_all()
        self._thread.join(timeout=1.0)
        _log_event("colour_tx_stopped")

    def set_colour(self, device: int, red: int, green: int, blue: int) -> bool:
        """Queue a colour change; returns False if it was dropped."""
        args = encode_colour_message(device, red, green, blue)
        if not self._enqueue(self._address, args):
            _log_event("colour_drop", cube=device)
            return False
        return True

    # Internal -----------------------------------------------------------------

    def _enqueue(self, address: str, args: List[object]) -> bool:
        with self._lock:
            if self._closed or len(self._queue) >= self._queue_size:
                return False
            self._queue.append((address, args))
            self._not_empty.notify()
            return True

    def _run(self) -> None:
        while True:
            with self._lock:
                while not self._queue and not self._closed:
                    self._not_empty.wait()
                if self._closed and not self._queue:
                    return
                address, args = self._queue.popleft()
            try:
                self._client.send_message(address, args)
            except Exception as exc:  # pragma: no cover
                _log_event("colour_send_error", address=address, error=str(exc))


__all__ = ["BRIDGE_ADDRESS", "CHANGE_COLOUR_TAG", "ColourTx", "encode_colour_message"]
