"""
Tests for orientation-vector increment correction.
"""

from dataclasses import replace

from motionplan.pose_increment import fix_ov_increment
from motionplan.spatial import PoseComponents


class TestFixOvIncrement:
    """Walk through increments around the poles."""

    def test_increment_sequence(self):
        seed = PoseComponents(x=-66, y=-133, z=372, theta=15, ox=0, oy=1, oz=0)
        pos = replace(seed, ox=-0.1)

        # Not pointing along Z, nothing to fix
        assert fix_ov_increment(pos, seed) == pos

        # Pointing at +Z, decrementing OX subtracts 180
        seed = replace(seed, oz=1, oy=0)
        pos = replace(pos, oz=1, oy=0)
        assert fix_ov_increment(pos, seed).theta == -165

        # Translation changed, nothing to fix
        pos = replace(pos, x=pos.x - 0.1)
        assert fix_ov_increment(pos, seed) == pos

        # Pointing at -Z, incrementing OY adds 90
        pos = replace(pos, x=pos.x + 0.1, ox=pos.ox + 0.1, oz=-1, oy=0.1)
        seed = replace(seed, oz=-1)
        assert fix_ov_increment(pos, seed).theta == 105

        # Both OX and OY changed, nothing to fix
        pos = replace(pos, ox=pos.ox + 0.1)
        assert fix_ov_increment(pos, seed) == pos

    def test_increment_ox_at_negative_pole(self):
        seed = PoseComponents(oz=-1, theta=0)
        assert fix_ov_increment(replace(seed, ox=0.1), seed).theta == -180
        assert fix_ov_increment(replace(seed, ox=-0.1), seed).theta == 180

    def test_decrement_oy_at_positive_pole(self):
        seed = PoseComponents(oz=1, theta=10)
        assert fix_ov_increment(replace(seed, oy=-0.1), seed).theta == 100

    def test_theta_change_not_corrected(self):
        seed = PoseComponents(oz=1, theta=10)
        pos = replace(seed, oy=0.1, theta=20)
        assert fix_ov_increment(pos, seed) == pos

    def test_leaving_pole_hemisphere_not_corrected(self):
        seed = PoseComponents(oz=1)
        pos = replace(seed, ox=0.1, oz=0.99)
        assert fix_ov_increment(pos, seed) == pos

    def test_same_inputs_same_output(self):
        seed = PoseComponents(oz=1, theta=15)
        pos = replace(seed, ox=-0.1)
        assert fix_ov_increment(pos, seed) == fix_ov_increment(pos, seed)
        unchanged = replace(seed, x=1.0, ox=-0.1)
        assert fix_ov_increment(fix_ov_increment(unchanged, seed), seed) == unchanged
