"""Entrypoint for the AudioCube bridge monitor."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from .configuration import AppConfig, load_config, load_default_config
from .cube_client import CubeClient
from .osc_sender import ColourTx
from .router import CubeHandlers, CubeRouter
from .topology import Edge, SubTopology, describe_topology

LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Monitor events from the AudioCube OSC bridge.")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration YAML. Defaults to bundled config.yaml if omitted.",
    )
    parser.add_argument(
        "--debounce-ms",
        type=float,
        help="Override router.debounce_ms from the configuration.",
    )
    return parser.parse_args(argv)


def build_handlers(config: AppConfig, colour_tx: Optional[ColourTx]) -> CubeHandlers:
    """Handlers that log every event and light up cubes as they join."""

    def on_topology(edges: List[Edge]) -> None:
        LOGGER.info(describe_topology(edges))

    def on_topology2d(groups: List[SubTopology]) -> None:
        for group in groups:
            placements = ", ".join(
                f"{cube.device}@({cube.x},{cube.y})r{cube.rotation}" for cube in group.cubes
            )
            LOGGER.info("Group %dx%d: %s", group.width, group.height, placements)

    def on_attached(device: int) -> None:
        LOGGER.info("Cube %d attached", device)
        if colour_tx is not None and config.colours.attached is not None:
            colour_tx.set_colour(device, *config.colours.attached)

    def on_added(device: int) -> None:
        LOGGER.info("Cube %d added to network", device)
        if colour_tx is not None and config.colours.added is not None:
            colour_tx.set_colour(device, *config.colours.added)

    def on_detached(device: int) -> None:
        LOGGER.info("Cube %d detached", device)

    def on_sensor(device: int, face: int, value: float) -> None:
        # Sensors update fast enough to drown out everything else at INFO
        LOGGER.debug("Cube %d face %d sensor=%.3f", device, face, value)

    def on_colour(device: int, red: int, green: int, blue: int) -> None:
        LOGGER.info("Cube %d set to r=%d g=%d b=%d", device, red, green, blue)

    def on_sensor_mode(device: int, enabled: bool) -> None:
        LOGGER.info("Cube %d sensor-only mode=%s", device, enabled)

    return CubeHandlers(
        on_topology=on_topology,
        on_topology2d=on_topology2d,
        on_attached=on_attached,
        on_detached=on_detached,
        on_added=on_added,
        on_sensor=on_sensor,
        on_colour=on_colour,
        on_sensor_mode=on_sensor_mode,
    )


async def async_main(args: argparse.Namespace) -> None:
    config = load_config(args.config) if args.config else load_default_config()
    logging.basicConfig(level=getattr(logging, config.logging.level.upper(), logging.INFO))

    debounce_ms = args.debounce_ms if args.debounce_ms is not None else config.router.debounce_ms
    if debounce_ms < 0:
        raise ValueError("--debounce-ms must be non-negative")

    colour_tx = ColourTx(
        config.bridge.host,
        config.bridge.port,
        address=config.bridge.address,
        queue_size=config.bridge.queue_size,
    )
    router = CubeRouter(
        build_handlers(config, colour_tx),
        debounce_ms=debounce_ms,
        clip_low=config.calibration.clip_low,
        clip_high=config.calibration.clip_high,
    )
    client = CubeClient(config.osc.host, config.osc.port, router, address=config.osc.address)
    try:
        await client.start()
        await asyncio.Event().wait()
    finally:
        await client.stop()
        colour_tx.close()


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    try:
        asyncio.run(async_main(args))
    except KeyboardInterrupt:
        LOGGER.info("Interrupted by user")


if __name__ == "__main__":
    main()
