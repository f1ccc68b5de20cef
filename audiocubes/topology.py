"""Decoders for the bridge's flat and grouped topology messages.

The flat ``topology_update`` message has the form::

    count, [cube_a, face_a, cube_b, face_b] * count

and the grouped ``topology_2D`` message::

    group_count, [entry_count, width, height, [cube, x, y, rotation] * entry_count] * group_count

All values are integers. Cubes are 0-15, faces and rotations 0-3. The bridge
can report flat topologies that are not physically possible; they are decoded
as received.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .errors import MalformedMessage
from .state import DEVICE_COUNT, FACE_COUNT

TOPOLOGY_TAG = "topology_update"
TOPOLOGY_2D_TAG = "topology_2D"

FACE_NAMES = ("north", "east", "south", "west")


@dataclass(frozen=True)
class Edge:
    """Adjacency between two cube faces, with ``device_a < device_b``."""

    device_a: int
    face_a: int
    device_b: int
    face_b: int

    @property
    def sort_key(self) -> Tuple[int, int, int, int]:
        return (self.device_a, self.face_a, self.device_b, self.face_b)


@dataclass(frozen=True)
class CubePlacement:
    """Grid position and rotation of a cube relative to its group origin."""

    device: int
    x: int
    y: int
    rotation: int


@dataclass(frozen=True)
class SubTopology:
    """One connected group of cubes and the bounding box containing it."""

    width: int
    height: int
    cubes: Tuple[CubePlacement, ...]


def require_int(value: object, what: str, tag: str = "") -> int:
    # bool is an int subclass but never a valid payload value
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedMessage(f"{what} must be an integer, got {value!r}", tag=tag)
    return value


def require_device(value: object, tag: str = "") -> int:
    device = require_int(value, "cube id", tag)
    if not 0 <= device < DEVICE_COUNT:
        raise MalformedMessage(f"cube id {device} outside 0-{DEVICE_COUNT - 1}", tag=tag)
    return device


def require_face(value: object, tag: str = "", what: str = "face") -> int:
    face = require_int(value, what, tag)
    if not 0 <= face < FACE_COUNT:
        raise MalformedMessage(f"{what} {face} outside 0-{FACE_COUNT - 1}", tag=tag)
    return face


def _require_count(value: object, what: str, tag: str) -> int:
    count = require_int(value, what, tag)
    if count < 0:
        raise MalformedMessage(f"{what} must be non-negative, got {count}", tag=tag)
    return count


def parse_topology(values: Sequence[object]) -> List[Edge]:
    """Decode a flat topology payload into a sorted list of edges.

    Each edge is stored with the lower cube id first, swapping the face along
    with its cube. The result is sorted by cube a, face a, cube b, face b so
    that the output does not depend on the bridge's ordering.
    """
    if not values:
        raise MalformedMessage("missing edge count", tag=TOPOLOGY_TAG)
    count = _require_count(values[0], "edge count", TOPOLOGY_TAG)
    body = values[1:]
    if len(body) != 4 * count:
        raise MalformedMessage(
            f"expected {4 * count} values for {count} edges, got {len(body)}",
            tag=TOPOLOGY_TAG,
        )

    edges: List[Edge] = []
    for offset in range(0, len(body), 4):
        cube_a = require_device(body[offset], TOPOLOGY_TAG)
        face_a = require_face(body[offset + 1], TOPOLOGY_TAG)
        cube_b = require_device(body[offset + 2], TOPOLOGY_TAG)
        face_b = require_face(body[offset + 3], TOPOLOGY_TAG)
        if cube_a < cube_b:
            edges.append(Edge(cube_a, face_a, cube_b, face_b))
        else:
            edges.append(Edge(cube_b, face_b, cube_a, face_a))

    # Lexicographic on (cube a, face a, cube b, face b). A packed key weighting
    # face b highest would order edges by face b first.
    edges.sort(key=lambda edge: edge.sort_key)
    return edges


def parse_topology_2d(values: Sequence[object]) -> List[SubTopology]:
    """Decode a grouped topology payload.

    Groups and the cubes within them keep the order the bridge sent them in.
    Coordinates may be negative.
    """
    if not values:
        raise MalformedMessage("missing group count", tag=TOPOLOGY_2D_TAG)
    group_count = _require_count(values[0], "group count", TOPOLOGY_2D_TAG)

    groups: List[SubTopology] = []
    pos = 1
    for index in range(group_count):
        header = values[pos : pos + 3]
        if len(header) < 3:
            raise MalformedMessage(
                f"group {index} header truncated", tag=TOPOLOGY_2D_TAG
            )
        entry_count = _require_count(header[0], "cube count", TOPOLOGY_2D_TAG)
        width = _require_count(header[1], "width", TOPOLOGY_2D_TAG)
        height = _require_count(header[2], "height", TOPOLOGY_2D_TAG)
        pos += 3

        entries = values[pos : pos + 4 * entry_count]
        if len(entries) != 4 * entry_count:
            raise MalformedMessage(
                f"group {index} expected {4 * entry_count} values, got {len(entries)}",
                tag=TOPOLOGY_2D_TAG,
            )
        cubes = tuple(
            CubePlacement(
                device=require_device(entries[i], TOPOLOGY_2D_TAG),
                x=require_int(entries[i + 1], "x", TOPOLOGY_2D_TAG),
                y=require_int(entries[i + 2], "y", TOPOLOGY_2D_TAG),
                rotation=require_face(entries[i + 3], TOPOLOGY_2D_TAG, what="rotation"),
            )
            for i in range(0, len(entries), 4)
        )
        groups.append(SubTopology(width=width, height=height, cubes=cubes))
        pos += 4 * entry_count

    if pos != len(values):
        raise MalformedMessage(
            f"{len(values) - pos} trailing values after {group_count} groups",
            tag=TOPOLOGY_2D_TAG,
        )
    return groups


def describe_topology(edges: Sequence[Edge]) -> str:
    """Return a human readable summary of ``parse_topology`` output."""
    if not edges:
        return "Topology : empty"
    parts = [
        f"{edge.device_a}{FACE_NAMES[edge.face_a]}=>{edge.device_b}{FACE_NAMES[edge.face_b]} "
        for edge in edges
    ]
    return "Topology : " + "".join(parts)


__all__ = [
    "CubePlacement",
    "Edge",
    "FACE_NAMES",
    "SubTopology",
    "TOPOLOGY_2D_TAG",
    "TOPOLOGY_TAG",
    "describe_topology",
    "parse_topology",
    "parse_topology_2d",
    "require_device",
    "require_face",
    "require_int",
]
