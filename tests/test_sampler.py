"""
Tests for pose sampling.
"""

import pytest

from bvhdump.core.classifier import BoneClassifier
from bvhdump.core.hierarchy import HierarchyBuilder, resolve_export_root
from bvhdump.core.sampler import PoseSampler, frame_count, frame_time
from bvhdump.core.state_guard import TransformStateGuard


def _sampler(rig, dump_root_motion=False, root=None):
    classifier = BoneClassifier(rig.avatar, rig.target, dump_root_motion)
    bones = HierarchyBuilder(classifier).build(resolve_export_root(rig.target, root))
    return PoseSampler(bones, dump_root_motion=dump_root_motion)


def test_frame_count_rounds_half_to_even():
    assert frame_count(1.0, 30.0) == 30
    assert frame_count(0.5, 25.0) == 12
    assert frame_count(0.5, 27.0) == 14
    assert frame_count(0.0, 30.0) == 0


def test_frame_time():
    assert frame_time(30.0) == pytest.approx(1.0 / 30.0)


def test_bind_pose_sample(rig):
    sampler = _sampler(rig)

    values = sampler.sample()

    assert sampler.channel_count == 9
    assert values == pytest.approx([0.0, 1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0], abs=1e-9)


def test_frames_follow_animation(rig):
    """Test that each row reflects the pose at index / frame_rate."""
    sampler = _sampler(rig)

    with TransformStateGuard(rig.target, rig.animator):
        rows = list(sampler.frames(rig.animator, "Walk", 30, 30.0))

    assert len(rows) == 30
    assert rows[0] == pytest.approx([0.0, 1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0], abs=1e-6)
    # Half way: hips 1 unit forward, spine turned 45 degrees (mirrored to 315)
    assert rows[15] == pytest.approx([0.0, 1.0, 1.0, 0.0, 0.0, 0.0, 315.0, 0.0, 0.0], abs=1e-6)


def test_root_motion_ignores_joint_translation(rig):
    sampler = _sampler(rig, dump_root_motion=True)
    hips = rig.target.find("Armature/Hips")

    hips.local_position = [0.5, 1.0, 2.0]
    values = sampler.sample()

    assert sampler.channel_count == 12
    assert values[:6] == pytest.approx([0.0, 0.0, 0.0, 0.0, 0.0, 0.0], abs=1e-9)
    assert values[6:9] == pytest.approx([0.0, 0.0, 0.0], abs=1e-9)


def test_root_motion_tracks_target_displacement(rig):
    """Test that moving the armature shows up in the root channels."""
    sampler = _sampler(rig, dump_root_motion=True)

    rig.target.find("Armature").local_position = [1.0, 0.0, 3.0]
    values = sampler.sample()

    assert values[:3] == pytest.approx([-1.0, 0.0, 3.0])
