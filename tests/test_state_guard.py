"""
Tests for scene and animator state preservation.
"""

import numpy as np
import pytest

from bvhdump.core.errors import StateRestoreMismatch
from bvhdump.core.state_guard import TransformStateGuard, restore_transforms, save_transforms
from bvhdump.data.animation import CullingMode, UpdateMode
from bvhdump.utils.math_utils import euler_to_quaternion


def _snapshot(root):
    return [(n.local_position.copy(), n.local_rotation.copy()) for n in root.iter_preorder()]


def _assert_identical(before, after):
    assert len(before) == len(after)
    for (pos_a, rot_a), (pos_b, rot_b) in zip(before, after):
        assert np.array_equal(pos_a, pos_b)
        assert np.array_equal(rot_a, rot_b)


def test_restore_is_bit_exact(rig):
    """Test that transforms come back bit for bit, unnormalized quaternions included."""
    spine = rig.target.find("Armature/Hips/Spine")
    spine.local_rotation = [0.1, 0.2, 0.3, 0.9000000001]
    before = _snapshot(rig.target)

    saved = save_transforms(rig.target)
    for node in rig.target.iter_preorder():
        node.local_position = [5.0, 6.0, 7.0]
        node.local_rotation = euler_to_quaternion([10.0, 20.0, 30.0])
    restore_transforms(rig.target, saved)

    _assert_identical(before, _snapshot(rig.target))
    assert not saved


def test_inactive_nodes_are_saved(rig):
    rig.target.find("Body").active = False

    assert len(save_transforms(rig.target)) == len(list(rig.target.iter_preorder()))


def test_restore_mismatch(rig):
    short = save_transforms(rig.target)
    short.pop()
    with pytest.raises(StateRestoreMismatch):
        restore_transforms(rig.target, short)

    long = save_transforms(rig.target)
    long.append((np.zeros(3), np.array([0.0, 0.0, 0.0, 1.0])))
    with pytest.raises(StateRestoreMismatch):
        restore_transforms(rig.target, long)


def test_guard_sets_sampling_playback(rig):
    animator = rig.animator
    animator.speed = 0.25
    animator.update_mode = UpdateMode.ANIMATE_PHYSICS

    with TransformStateGuard(rig.target, animator):
        assert animator.speed == 1.0
        assert animator.update_mode is UpdateMode.UNSCALED_TIME
        assert animator.apply_root_motion is True
        assert animator.culling_mode is CullingMode.ALWAYS_ANIMATE

    assert animator.speed == 0.25
    assert animator.update_mode is UpdateMode.ANIMATE_PHYSICS
    assert animator.apply_root_motion is False
    assert animator.culling_mode is CullingMode.CULL_UPDATE_TRANSFORMS


def test_guard_restores_on_exception(rig):
    """Test that an error while sampling still restores the scene."""
    before = _snapshot(rig.target)

    with pytest.raises(RuntimeError):
        with TransformStateGuard(rig.target, rig.animator):
            rig.animator.advance_to("Walk", 0.75)
            raise RuntimeError("sampling failed")

    _assert_identical(before, _snapshot(rig.target))
    assert rig.animator.apply_root_motion is False


def test_guard_without_animator(rig):
    before = _snapshot(rig.target)

    with TransformStateGuard(rig.target):
        rig.target.find("Armature/Hips").local_position = [0.0, 0.0, 0.0]

    _assert_identical(before, _snapshot(rig.target))
