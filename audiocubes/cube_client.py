"""OSC server receiving messages from the AudioCube bridge."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

from pythonosc import dispatcher
from pythonosc.osc_server import AsyncIOOSCUDPServer

from .osc_sender import BRIDGE_ADDRESS
from .router import CubeRouter

LOGGER = logging.getLogger(__name__)


class CubeClient:
    """Listens for bridge messages and feeds them to a ``CubeRouter`` in arrival order."""

    def __init__(
        self,
        host: str,
        port: int,
        router: CubeRouter,
        address: str = BRIDGE_ADDRESS,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._loop = loop or asyncio.get_event_loop()
        self._address = (host, port)
        self._router = router
        self._dispatcher = dispatcher.Dispatcher()
        self._dispatcher.map(address, router.handle_osc)
        self._dispatcher.set_default_handler(self._on_unmapped)
        self._server = AsyncIOOSCUDPServer(self._address, self._dispatcher, self._loop)
        self._transport: Optional[asyncio.BaseTransport] = None
        self._protocol = None

    async def start(self) -> None:
        """Start listening for OSC messages."""
        if self._transport is not None:
            return
        self._transport, self._protocol = await self._server.create_serve_endpoint()
        LOGGER.info("CubeClient listening on %s:%s", *self.address)

    async def stop(self) -> None:
        """Stop the OSC server."""
        if self._transport is None:
            return
        self._transport.close()
        self._transport = None
        self._protocol = None

    @property
    def address(self) -> Tuple[str, int]:
        """Return the configured OSC address tuple."""
        return self._address

    def inject(self, tag: str, *payload: object) -> None:
        """Testing helper to feed a message straight to the router."""
        self._router.dispatch(tag, payload)

    def _on_unmapped(self, addr: str, *args: object) -> None:
        LOGGER.debug("Ignoring OSC message on unmapped address %s", addr)


__all__ = ["CubeClient"]
