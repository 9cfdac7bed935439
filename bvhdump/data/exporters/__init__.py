"""
Export modules for baked rig animation.

Supports export to:
- BVH (Biovision Hierarchy) - Standard mocap format
"""
