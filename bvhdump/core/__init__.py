"""
Core export pipeline.

Provides:
- Bone classification and hierarchy building
- Scene/animator state preservation during sampling
- Pose sampling and coordinate conversion
- Export orchestration
"""

from bvhdump.core.classifier import BoneClassifier, BoneRole, Classification
from bvhdump.core.coordinates import CoordinateConverter
from bvhdump.core.dumper import BvhDumper, DumpResult
from bvhdump.core.errors import (
    AmbiguousRoot,
    ClipNotFound,
    DumpError,
    InvalidClip,
    MisplacedEndSite,
    MissingDefaultRoot,
    NoAnimator,
    NotHumanoid,
    RigFormatError,
    RootNotDescendant,
    StateRestoreMismatch,
    UnterminatedBranch,
)
from bvhdump.core.hierarchy import Bone, BoneKind, HierarchyBuilder, resolve_export_root
from bvhdump.core.sampler import PoseSampler, frame_count, frame_time
from bvhdump.core.state_guard import TransformStateGuard

__all__ = [
    "BoneClassifier",
    "BoneRole",
    "Classification",
    "CoordinateConverter",
    "BvhDumper",
    "DumpResult",
    "AmbiguousRoot",
    "ClipNotFound",
    "DumpError",
    "InvalidClip",
    "MisplacedEndSite",
    "MissingDefaultRoot",
    "NoAnimator",
    "NotHumanoid",
    "RigFormatError",
    "RootNotDescendant",
    "StateRestoreMismatch",
    "UnterminatedBranch",
    "Bone",
    "BoneKind",
    "HierarchyBuilder",
    "resolve_export_root",
    "PoseSampler",
    "frame_count",
    "frame_time",
    "TransformStateGuard",
]
