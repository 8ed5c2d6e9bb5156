"""Supported upstream platforms."""

from __future__ import annotations

from enum import Enum


class Platform(str, Enum):
    """Platform kind of a registered source."""

    YOUTUBE = "youtube"  # video channel
    REDDIT = "reddit"  # forum community
    TIKTOK = "tiktok"  # short-video profile


def parse_platform(value: str) -> Platform:
    """Look up a Platform by its string value. Raises ValueError if unknown."""
    try:
        return Platform(value.strip().lower())
    except ValueError:
        valid = ", ".join(p.value for p in Platform)
        raise ValueError(f"Unknown platform '{value}'; must be one of: {valid}") from None
