"""Exceptions raised while decoding AudioCube bridge messages."""

from __future__ import annotations


class MalformedMessage(ValueError):
    """A message payload does not match the shape declared for its tag."""

    def __init__(self, message: str, *, tag: str = "") -> None:
        self.tag = tag
        super().__init__(message)


__all__ = ["MalformedMessage"]
