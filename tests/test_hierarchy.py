"""
Tests for bone tree construction.
"""

import numpy as np
import pytest

from bvhdump.core.classifier import BoneClassifier
from bvhdump.core.errors import (
    AmbiguousRoot,
    MisplacedEndSite,
    MissingDefaultRoot,
    RootNotDescendant,
    UnterminatedBranch,
)
from bvhdump.core.hierarchy import Bone, BoneKind, HierarchyBuilder, resolve_export_root
from bvhdump.data.scene import SceneNode
from bvhdump.data.skeleton import HumanBone
from bvhdump.utils.math_utils import euler_to_quaternion


def _build(rig, root=None, dump_root_motion=False):
    builder = HierarchyBuilder(BoneClassifier(rig.avatar, rig.target, dump_root_motion))
    return builder.build(resolve_export_root(rig.target, root))


def _shape(bone):
    return [(b.name, b.kind) for b in bone.iter_preorder()]


def test_default_root_builds_chain(rig):
    root = _build(rig)

    assert _shape(root) == [
        ("Hips", BoneKind.ROOT),
        ("Spine", BoneKind.JOINT),
        ("Spine_end", BoneKind.END_SITE),
    ]
    assert root.anchor.name == "Armature"
    assert root.parent is None
    assert root.human_bone is HumanBone.Hips
    assert root.joint_count == 1
    assert root.end_site_count == 1
    assert root.channel_total == 9


def test_root_offset_is_relative_to_anchor(rig):
    root = _build(rig)

    assert np.allclose(root.bind_offset, [0.0, 1.0, 0.0])
    assert np.allclose(root.children[0].bind_offset, [0.0, 0.5, 0.0])


def test_joint_root_without_parent(rig):
    """Test a joint root at the top of the scene, offset from the world origin."""
    hips = rig.target.find("Armature/Hips")
    rig.target.find("Armature").children.remove(hips)
    hips.parent = None
    rig.scene.add(hips)

    builder = HierarchyBuilder(BoneClassifier(rig.avatar, hips))
    root = builder.build(hips)

    assert root.name == "Hips"
    assert root.anchor.node is None
    assert np.allclose(root.bind_offset, [0.0, 1.0, 0.0])


def test_missing_default_root(rig):
    rig.target.find("Armature").name = "Rig"

    with pytest.raises(MissingDefaultRoot):
        resolve_export_root(rig.target)


def test_root_outside_target(rig):
    other = rig.scene.add(SceneNode("Other"))

    with pytest.raises(RootNotDescendant):
        resolve_export_root(rig.target, other)


def test_target_itself_is_valid_root(rig):
    assert resolve_export_root(rig.target, rig.target) is rig.target


def test_skipped_nodes_are_passed_through(rig):
    """Test that unmapped intermediate nodes do not break the chain."""
    hips = rig.target.find("Armature/Hips")
    spine = hips.find("Spine")
    twist = hips.add_child(SceneNode("HipsTwist"))
    twist.add_child(spine)

    root = _build(rig)

    assert _shape(root) == [
        ("Hips", BoneKind.ROOT),
        ("Spine", BoneKind.JOINT),
        ("Spine_end", BoneKind.END_SITE),
    ]
    assert root.children[0].parent is root


def test_inactive_subtree_is_ignored(rig):
    hips = rig.target.find("Armature/Hips")
    leg = hips.add_child(SceneNode("LeftUpperLeg", local_position=[0.1, -0.1, 0.0], active=False))
    rig.avatar.assign(HumanBone.LeftUpperLeg, leg)

    root = _build(rig)

    assert [b.name for b in root.iter_preorder()] == ["Hips", "Spine", "Spine_end"]


def test_unterminated_branch_lists_bones(rig):
    hips = rig.target.find("Armature/Hips")
    leg = hips.add_child(SceneNode("LeftUpperLeg", local_position=[0.1, -0.1, 0.0]))
    knee = leg.add_child(SceneNode("LeftLowerLeg", local_position=[0.0, -0.4, 0.0]))
    rig.avatar.assign(HumanBone.LeftUpperLeg, leg)
    rig.avatar.assign(HumanBone.LeftLowerLeg, knee)

    with pytest.raises(UnterminatedBranch) as excinfo:
        _build(rig)

    assert excinfo.value.bones == ["LeftLowerLeg"]
    assert '"LeftLowerLeg"' in str(excinfo.value)


def _add_chest(rig):
    spine = rig.target.find("Armature/Hips/Spine")
    chest = spine.add_child(SceneNode("Chest", local_position=[0.0, 0.3, 0.0]))
    chest.add_child(SceneNode("Chest_end", local_position=[0.0, 0.2, 0.0]))
    rig.avatar.assign(HumanBone.Chest, chest)
    return spine


def test_joint_after_end_site_is_attached(rig):
    """Test a joint listed after the parent's end site, like Head -> [Head_end, LeftEye]."""
    _add_chest(rig)

    root = _build(rig)

    assert _shape(root) == [
        ("Hips", BoneKind.ROOT),
        ("Spine", BoneKind.JOINT),
        ("Spine_end", BoneKind.END_SITE),
        ("Chest", BoneKind.JOINT),
        ("Chest_end", BoneKind.END_SITE),
    ]
    assert root.channel_total == 12


def test_end_site_after_joint_in_scene_is_rejected(rig):
    spine = _add_chest(rig)
    spine.add_child(spine.find("Spine_end"))

    with pytest.raises(MisplacedEndSite):
        _build(rig)


def test_end_site_after_joint_is_rejected():
    parent = Bone(SceneNode("Spine"))
    parent.add_child(Bone(SceneNode("Chest")))

    with pytest.raises(MisplacedEndSite):
        parent.add_child(Bone(SceneNode("Spine_end"), BoneKind.END_SITE))


def test_joint_after_end_site_is_accepted():
    parent = Bone(SceneNode("Head"))
    parent.add_child(Bone(SceneNode("Head_end"), BoneKind.END_SITE))

    eye = parent.add_child(Bone(SceneNode("LeftEye")))

    assert eye.parent is parent
    assert [c.name for c in parent.children] == ["Head_end", "LeftEye"]


def test_end_site_cannot_have_children():
    end = Bone(SceneNode("Spine_end"), BoneKind.END_SITE)

    with pytest.raises(MisplacedEndSite):
        end.add_child(Bone(SceneNode("Chest")))


def test_two_top_level_joints_are_ambiguous(rig):
    armature = rig.target.find("Armature")
    extra = armature.add_child(SceneNode("Prop", local_position=[1.0, 0.0, 0.0]))
    extra.add_child(SceneNode("Prop_end"))
    rig.avatar.assign(HumanBone.LeftToes, extra)

    with pytest.raises(AmbiguousRoot):
        _build(rig)


def test_no_joint_below_root_is_ambiguous(rig):
    with pytest.raises(AmbiguousRoot):
        _build(rig, rig.target.find("Body"))


def test_inactive_root_is_ambiguous(rig):
    rig.target.find("Armature").active = False

    with pytest.raises(AmbiguousRoot):
        _build(rig)


def test_root_motion_uses_armature_as_root(rig):
    """Test that the "Armature" node becomes the root joint with root motion."""
    root = _build(rig, dump_root_motion=True)

    assert _shape(root) == [
        ("Armature", BoneKind.ROOT),
        ("Hips", BoneKind.JOINT),
        ("Spine", BoneKind.JOINT),
        ("Spine_end", BoneKind.END_SITE),
    ]
    assert root.anchor.name == "Character"
    assert root.channel_total == 12


def test_root_motion_with_non_joint_root_exports_root_itself(rig):
    root = _build(rig, rig.target, dump_root_motion=True)

    assert root.name == "Character"
    assert root.kind is BoneKind.ROOT
    assert root.anchor is None
    assert [c.name for c in root.children] == ["Armature"]


def test_bind_pose_local_rotation_is_identity(rig):
    """Test that rotations are relative to the bind pose, not the scene parent."""
    hips = rig.target.find("Armature/Hips")
    hips.local_rotation = euler_to_quaternion([0.0, 90.0, 0.0])
    spine = hips.find("Spine")
    spine.local_rotation = euler_to_quaternion([20.0, 0.0, 10.0])

    root = _build(rig)

    for bone in root.iter_preorder():
        assert bone.local_rotation.magnitude() < 1e-9
