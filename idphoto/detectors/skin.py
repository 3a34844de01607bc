"""RGB skin-tone rule table.

Each rule is an independent predicate over red, green and blue values. The
predicates are written with numpy operators so the same function classifies a
single pixel or a whole sample buffer at once. A pixel is skin if any rule
holds.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Tuple

import numpy as np


@dataclass(frozen=True)
class SkinRule:
    """Named skin-tone predicate.

    Attributes:
        name: Short rule identifier ("R1".."R6")
        description: What range of tones the rule targets
        predicate: Function (r, g, b) -> bool or boolean array
    """

    name: str
    description: str
    predicate: Callable[..., "np.ndarray | bool"]

    def matches(self, r, g, b):
        return self.predicate(r, g, b)


def _r1(r, g, b):
    spread = np.maximum(np.maximum(r, g), b) - np.minimum(np.minimum(r, g), b)
    return (
        (r > 95) & (g > 40) & (b > 20)
        & (spread > 15)
        & (np.abs(r - g) > 15)
        & (r > g) & (r > b)
    )


def _r2(r, g, b):
    return (
        (r > 220) & (g > 210) & (b > 170)
        & (np.abs(r - g) <= 15)
        & (r >= g) & (g >= b)
    )


def _r3(r, g, b):
    return (
        (r >= 60) & (g >= 40) & (b >= 20)
        & (r >= 1.15 * g) & (r > b)
        & (r + g + b >= 80)
    )


def _r4(r, g, b):
    return (
        (r > 80) & (g > 50) & (b > 30)
        & (r > g) & (g > b)
        & (r - g >= 10) & (g - b >= 5)
    )


def _r5(r, g, b):
    return (
        (r > 120) & (g > 80) & (b > 50)
        & (np.abs(r - g) < 50)
        & (r >= g) & (g >= b)
    )


def _r6(r, g, b):
    luminance = 0.299 * r + 0.587 * g + 0.114 * b
    return (
        (luminance > 50) & (luminance < 230)
        & (r > 0.8 * g) & (r > 0.8 * b)
    )


SKIN_RULES: Tuple[SkinRule, ...] = (
    SkinRule("R1", "fair skin", _r1),
    SkinRule("R2", "very light skin", _r2),
    SkinRule("R3", "darker skin, broad range", _r3),
    SkinRule("R4", "medium skin", _r4),
    SkinRule("R5", "yellow-undertone skin", _r5),
    SkinRule("R6", "mid luminance, red-leaning", _r6),
)


def _as_signed(value):
    # uint8 arithmetic wraps around; work in int32 instead
    if isinstance(value, np.ndarray):
        return value.astype(np.int32)
    return int(value)


def matching_rules(r: int, g: int, b: int) -> List[str]:
    """Return the names of every rule a single pixel satisfies."""
    r, g, b = _as_signed(r), _as_signed(g), _as_signed(b)
    return [rule.name for rule in SKIN_RULES if bool(rule.matches(r, g, b))]


def is_skin(r: int, g: int, b: int) -> bool:
    """Classify a single pixel."""
    r, g, b = _as_signed(r), _as_signed(g), _as_signed(b)
    return any(bool(rule.matches(r, g, b)) for rule in SKIN_RULES)


def skin_mask(pixels: np.ndarray) -> np.ndarray:
    """Classify every pixel of an [H, W, 3+] buffer.

    Returns:
        Boolean array of shape [H, W].
    """
    r = _as_signed(pixels[..., 0])
    g = _as_signed(pixels[..., 1])
    b = _as_signed(pixels[..., 2])

    mask = np.zeros(r.shape, dtype=bool)
    for rule in SKIN_RULES:
        mask |= rule.matches(r, g, b)
    return mask
