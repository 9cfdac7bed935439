"""
Export of a rig animation clip to a BVH file.

Ties the pipeline together: validates the rig and selection, builds the
bone tree, bakes the clip frame by frame under a TransformStateGuard and
streams the result through the BVH exporter.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List, Optional, TextIO

from bvhdump.config.settings import ExportConfig
from bvhdump.core.classifier import BoneClassifier
from bvhdump.core.coordinates import CoordinateConverter
from bvhdump.core.errors import ClipNotFound, InvalidClip, NoAnimator, NotHumanoid, RootNotDescendant
from bvhdump.core.hierarchy import Bone, HierarchyBuilder, resolve_export_root
from bvhdump.core.sampler import PoseSampler, frame_count, frame_time
from bvhdump.core.state_guard import TransformStateGuard
from bvhdump.data.exporters.bvh_exporter import BVHExporter, atomic_text_file
from bvhdump.data.rig_loader import Rig
from bvhdump.data.scene import SceneNode

logger = logging.getLogger(__name__)

# Called after each baked frame with (frames_done, frames_total)
ProgressCallback = Callable[[int, int], None]


@dataclass
class DumpResult:
    """Summary of a finished export."""
    clip: str
    root: str
    num_frames: int
    frame_time: float
    num_joints: int
    num_end_sites: int
    channels_per_frame: int
    output_path: Optional[Path] = None


class BvhDumper:
    """
    Bakes one clip of a rig into BVH.

    Example:
        dumper = BvhDumper(rig, ExportConfig(clip="Walk"))
        dumper.dump(Path("walk.bvh"))
    """

    def __init__(self, rig: Rig, config: ExportConfig):
        self.rig = rig
        self.config = config
        self.converter = CoordinateConverter(config.right_handed, config.signed_angles)
        self.exporter = BVHExporter(self.converter)

    def _check_rig(self):
        animator = self.rig.animator
        if animator is None:
            raise NoAnimator(f"{self.rig.name!r} has no animator")
        if self.rig.avatar is None or not self.rig.avatar.is_human:
            raise NotHumanoid(f"{self.rig.name!r} has no humanoid avatar")

        clip = self.config.clip
        if not animator.has_clip(clip):
            raise ClipNotFound(f"No animation clip named {clip!r}")
        if animator.state_for_clip(clip) is None:
            raise ClipNotFound(f"No animator state whose motion is {clip!r}")

        frame_rate = animator.clip_frame_rate(clip)
        if not frame_rate > 0:
            raise InvalidClip(f"Clip {clip!r} has frame rate {frame_rate}, expected a positive value")
        length = animator.clip_length(clip)
        if not length >= 0:
            raise InvalidClip(f"Clip {clip!r} has length {length}, expected zero or more")

    def _chosen_root(self) -> Optional[SceneNode]:
        path = self.config.root_path
        if path is None:
            return None
        node = self.rig.scene.find(path)
        if node is None:
            raise RootNotDescendant(f"Root transform {path!r} does not exist")
        return node

    def build_hierarchy(self) -> Bone:
        """
        Validate the rig and build its bone tree.

        Raises:
            DumpError: Any problem with the rig or the selection
        """
        self._check_rig()
        root = resolve_export_root(self.rig.target, self._chosen_root())
        classifier = BoneClassifier(self.rig.avatar, self.rig.target, self.config.dump_root_motion)
        return HierarchyBuilder(classifier).build(root)

    def _frames(
        self,
        sampler: PoseSampler,
        num_frames: int,
        frame_rate: float,
        progress: Optional[ProgressCallback],
    ) -> Iterator[List[float]]:
        frames = sampler.frames(self.rig.animator, self.config.clip, num_frames, frame_rate)
        for index, values in enumerate(frames, start=1):
            yield values
            if progress is not None:
                progress(index, num_frames)

    def write(self, stream: TextIO, progress: Optional[ProgressCallback] = None) -> DumpResult:
        """
        Bake the clip and write the BVH document to a stream.

        The scene and animator are restored afterwards, even on error.
        """
        root = self.build_hierarchy()
        animator = self.rig.animator
        clip = self.config.clip

        frame_rate = animator.clip_frame_rate(clip)
        num_frames = frame_count(animator.clip_length(clip), frame_rate)
        seconds = frame_time(frame_rate)
        sampler = PoseSampler(root, self.converter, self.config.dump_root_motion)

        logger.info(
            f"Baking {clip!r}: {num_frames} frames at {frame_rate:g} fps, "
            f"root {root.name!r}, {root.joint_count} joints"
        )
        with TransformStateGuard(self.rig.target, animator):
            self.exporter.write(
                stream, root, self._frames(sampler, num_frames, frame_rate, progress), num_frames, seconds
            )

        return DumpResult(
            clip=clip,
            root=root.name,
            num_frames=num_frames,
            frame_time=seconds,
            num_joints=root.joint_count,
            num_end_sites=root.end_site_count,
            channels_per_frame=root.channel_total,
        )

    def render(self, progress: Optional[ProgressCallback] = None) -> str:
        """Bake the clip and return the BVH document as a string."""
        buffer = io.StringIO()
        self.write(buffer, progress)
        return buffer.getvalue()

    def dump(self, output_path: Path, progress: Optional[ProgressCallback] = None) -> DumpResult:
        """
        Bake the clip into a BVH file.

        Rig and selection errors are raised before the file is created;
        on any failure no file is left at output_path.
        """
        output_path = Path(output_path)
        # Fail fast, before touching the filesystem.
        self.build_hierarchy()

        with atomic_text_file(output_path) as f:
            result = self.write(f, progress)
        result.output_path = output_path

        logger.info(f"Exported {result.num_frames} frames of {result.clip!r} to {output_path}")
        return result
