"""
Shared fixtures: a minimal humanoid rig with one animated clip.

    Character            (export target)
        Armature         (default export root)
            Hips         (0, 1, 0)
                Spine    (0, 0.5, 0)
                    Spine_end (0, 0.3, 0)
        Body             (not part of the skeleton)

Clip "Walk" (1 s at 30 fps) moves the hips forward 2 units along Z and
turns the spine 90 degrees about Y.
"""

import textwrap

import pytest

from bvhdump.data.animation import AnimationClip, AnimatorState, KeyframeAnimator, KeyframeTrack
from bvhdump.data.rig_loader import Rig
from bvhdump.data.scene import Scene, SceneNode
from bvhdump.data.skeleton import HumanBone, HumanoidAvatar
from bvhdump.utils.math_utils import euler_to_quaternion

RIG_YAML = textwrap.dedent(
    """
    target: Character
    scene:
      - name: Character
        children:
          - name: Armature
            children:
              - name: Hips
                position: [0.0, 1.0, 0.0]
                children:
                  - name: Spine
                    position: [0.0, 0.5, 0.0]
                    children:
                      - name: Spine_end
                        position: [0.0, 0.3, 0.0]
          - name: Body
    humanoid:
      Hips: Armature/Hips
      Spine: Armature/Hips/Spine
    animation:
      states:
        - {name: Walking, clip: Walk}
      clips:
        - name: Walk
          length: 1.0
          frame_rate: 30
          tracks:
            - path: Armature/Hips
              times: [0.0, 1.0]
              positions: [[0, 1, 0], [0, 1, 2]]
            - path: Armature/Hips/Spine
              times: [0.0, 1.0]
              eulers: [[0, 0, 0], [0, 90, 0]]
        - name: Unused
          length: 0.5
    """
)


@pytest.fixture
def rig() -> Rig:
    character = SceneNode("Character")
    armature = character.add_child(SceneNode("Armature"))
    hips = armature.add_child(SceneNode("Hips", local_position=[0.0, 1.0, 0.0]))
    spine = hips.add_child(SceneNode("Spine", local_position=[0.0, 0.5, 0.0]))
    spine.add_child(SceneNode("Spine_end", local_position=[0.0, 0.3, 0.0]))
    character.add_child(SceneNode("Body"))

    avatar = HumanoidAvatar({HumanBone.Hips: hips, HumanBone.Spine: spine})

    walk = AnimationClip(
        name="Walk",
        length=1.0,
        frame_rate=30.0,
        tracks=[
            KeyframeTrack("Armature/Hips", [0.0, 1.0], positions=[[0, 1, 0], [0, 1, 2]]),
            KeyframeTrack(
                "Armature/Hips/Spine",
                [0.0, 1.0],
                rotations=[euler_to_quaternion([0, 0, 0]), euler_to_quaternion([0, 90, 0])],
            ),
        ],
    )
    unused = AnimationClip(name="Unused", length=0.5)
    animator = KeyframeAnimator(character, [walk, unused], [AnimatorState("Walking", "Walk")])

    return Rig(scene=Scene([character]), target=character, avatar=avatar, animator=animator)


@pytest.fixture
def rig_file(tmp_path):
    path = tmp_path / "character.yaml"
    path.write_text(RIG_YAML, encoding="utf-8")
    return path
