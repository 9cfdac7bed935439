"""
bvhdump - Humanoid rig animation to BVH exporter

Bakes an animation clip of a humanoid rig, frame by frame, into a
Biovision Hierarchy (BVH) file that Blender and other DCC tools can import.

Features:
- Humanoid bone detection with "<bone>_end" end-site convention
- Bind-pose relative joint rotations
- Optional root motion export
- Left-handed (engine) to right-handed (BVH) conversion
- Scene and animator state restored after every export
"""

__version__ = "1.0.0"
__license__ = "MIT"

from bvhdump.config.settings import ExportConfig
from bvhdump.core.dumper import BvhDumper, DumpResult
from bvhdump.core.errors import DumpError
from bvhdump.data.rig_loader import Rig, load_rig

__all__ = [
    "BvhDumper",
    "DumpResult",
    "DumpError",
    "ExportConfig",
    "Rig",
    "load_rig",
]
