"""
BVH (Biovision Hierarchy) format exporter.

Writes a bone tree and sampled channel rows in the BVH text format,
compatible with Blender and most other animation software.
"""

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence, TextIO

import numpy as np

from bvhdump.core.coordinates import CoordinateConverter, format_value, format_values
from bvhdump.core.hierarchy import Bone, BoneKind

logger = logging.getLogger(__name__)

INDENT = "    "

ROOT_CHANNELS = ["Xposition", "Yposition", "Zposition", "Yrotation", "Xrotation", "Zrotation"]
JOINT_CHANNELS = ["Yrotation", "Xrotation", "Zrotation"]


@contextmanager
def atomic_text_file(output_path: Path) -> Iterator[TextIO]:
    """
    Open a temporary UTF-8 file that replaces output_path on success.

    If the block raises, the temporary file and any directories created
    for it are removed, and output_path is left untouched.
    """
    output_path = Path(output_path)
    # Deepest first
    created = [d for d in (output_path.parent, *output_path.parent.parents) if not d.exists()]
    output_path.parent.mkdir(parents=True, exist_ok=True)

    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{output_path.name}.", suffix=".tmp", dir=output_path.parent
        )
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            yield f
        os.replace(tmp_name, output_path)
    except BaseException:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        for directory in created:
            if directory.exists() and not any(directory.iterdir()):
                directory.rmdir()
        raise


class BVHExporter:
    """
    Exports a bone tree and its motion to BVH format.

    BVH format consists of:
    1. HIERARCHY section - Skeleton definition
    2. MOTION section - Animation data

    Both sections can be written incrementally to any text stream.
    """

    def __init__(self, converter: Optional[CoordinateConverter] = None):
        """
        Initialize BVH exporter.

        Args:
            converter: Coordinate conversion applied to offsets
        """
        self.converter = converter or CoordinateConverter()

    def _offset(self, bone: Bone) -> Sequence[float]:
        if bone.kind is BoneKind.JOINT:
            # Length only, along Y: Blender turns a full JOINT offset into a
            # rest matrix that skews the exported rotations.
            length = float(np.linalg.norm(bone.bind_offset))
            return (0.0, length, 0.0)
        return self.converter.position(bone.bind_offset)

    def _write_bone(self, stream: TextIO, bone: Bone, depth: int):
        """Write hierarchy section recursively."""
        indent = INDENT * depth

        if bone.kind is BoneKind.END_SITE:
            stream.write(f"{indent}End Site\n")
        elif bone.kind is BoneKind.ROOT:
            stream.write(f"{indent}ROOT {bone.name}\n")
        else:
            stream.write(f"{indent}JOINT {bone.name}\n")

        stream.write(f"{indent}{{\n")
        stream.write(f"{indent}{INDENT}OFFSET {format_values(self._offset(bone))}\n")

        if bone.kind is BoneKind.ROOT:
            stream.write(f"{indent}{INDENT}CHANNELS 6 {' '.join(ROOT_CHANNELS)}\n")
        elif bone.kind is BoneKind.JOINT:
            stream.write(f"{indent}{INDENT}CHANNELS 3 {' '.join(JOINT_CHANNELS)}\n")

        for child in bone.children:
            self._write_bone(stream, child, depth + 1)

        stream.write(f"{indent}}}\n")

    def write_hierarchy(self, stream: TextIO, root: Bone):
        stream.write("HIERARCHY\n")
        self._write_bone(stream, root, 0)

    def write_motion_header(self, stream: TextIO, num_frames: int, frame_time: float):
        stream.write("MOTION\n")
        stream.write(f"Frames: {num_frames}\n")
        stream.write(f"Frame Time: {format_value(frame_time)}\n")

    def write_frame(self, stream: TextIO, values: Sequence[float]):
        stream.write(format_values(values) + "\n")

    def write(
        self,
        stream: TextIO,
        root: Bone,
        frames: Iterable[Sequence[float]],
        num_frames: int,
        frame_time: float,
    ) -> int:
        """
        Write a complete BVH document.

        Args:
            stream: Text stream to write to
            root: Root bone of the hierarchy
            frames: Channel rows, consumed lazily
            num_frames: Declared frame count
            frame_time: Seconds per frame

        Returns:
            Number of rows written

        Raises:
            ValueError: If a row has the wrong number of values or the row
                count does not match num_frames
        """
        expected = root.channel_total
        self.write_hierarchy(stream, root)
        self.write_motion_header(stream, num_frames, frame_time)

        written = 0
        for values in frames:
            if len(values) != expected:
                raise ValueError(f"Frame {written} has {len(values)} values, expected {expected}")
            self.write_frame(stream, values)
            written += 1

        if written != num_frames:
            raise ValueError(f"Wrote {written} frames, declared {num_frames}")
        return written

