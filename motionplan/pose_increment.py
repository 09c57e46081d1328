"""
Orientation-vector increment correction.

A pose record whose orientation vector points straight along +Z or -Z has no
well-defined longitude, so nudging ox or oy away from the pole makes theta
jump. When a requested pose is exactly such a nudge of the previous pose,
theta is adjusted so the motion follows the short rotation instead.
"""

import logging

from dataclasses import replace

from .spatial import PoseComponents, float_almost_equal

logger = logging.getLogger(__name__)

OV_EPSILON = 1e-4


def fix_ov_increment(pos: PoseComponents, seed: PoseComponents) -> PoseComponents:
    """
    Correct theta of ``pos`` if it is an ox/oy increment away from a pole.

    Args:
        pos: Requested pose record (theta in degrees)
        seed: Previous pose record

    Returns:
        ``pos`` unchanged, or a copy with theta adjusted by +/-90 or +/-180
    """
    eps = OV_EPSILON
    # Translations and theta changes are never corrected
    if not (float_almost_equal(pos.x, seed.x, eps) and float_almost_equal(pos.y, seed.y, eps)
            and float_almost_equal(pos.z, seed.z, eps)
            and float_almost_equal(pos.theta, seed.theta, eps)):
        return pos
    # Only applies when starting on a pole and staying on the same hemisphere
    if 1.0 - abs(seed.oz) > eps or not float_almost_equal(pos.oz, seed.oz, eps):
        return pos

    ox_moved = not float_almost_equal(pos.ox, seed.ox, eps)
    oy_moved = not float_almost_equal(pos.oy, seed.oy, eps)
    if ox_moved == oy_moved:
        return pos

    if ox_moved:
        adj = 180.0 if pos.ox < seed.ox else -180.0
    else:
        adj = 90.0 if pos.oy > seed.oy else -90.0
    if seed.oz > 0:
        adj = -adj

    logger.debug(f"Adjusting theta by {adj:+.0f} deg for orientation increment off the pole")
    return replace(pos, theta=pos.theta + adj)
