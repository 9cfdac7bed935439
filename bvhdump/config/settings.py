"""
Configuration for BVH dumping.

Provides dataclasses for the per-export options and the persistent
settings file (YAML) holding their defaults.
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml


@dataclass(frozen=True)
class ExportConfig:
    """
    Options for a single export.

    Attributes:
        clip: Name of the animation clip to bake
        root_path: Scene path of the export root; None looks up the
            target's "Armature" child
        dump_root_motion: Export the root's global displacement/rotation
            relative to its bind pose
        right_handed: Convert from the engine's left-handed space
        signed_angles: Report rotations in (-180, 180] instead of [0, 360)
    """
    clip: str
    root_path: Optional[str] = None
    dump_root_motion: bool = False
    right_handed: bool = True
    signed_angles: bool = False

    def with_overrides(self, **overrides: Any) -> "ExportConfig":
        """Copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


@dataclass
class ExportDefaults:
    """Default values for export options not given on the command line."""

    dump_root_motion: bool = False
    right_handed: bool = True
    signed_angles: bool = False

    def export_config(self, clip: str, root_path: Optional[str] = None) -> ExportConfig:
        return ExportConfig(
            clip=clip,
            root_path=root_path,
            dump_root_motion=self.dump_root_motion,
            right_handed=self.right_handed,
            signed_angles=self.signed_angles,
        )


@dataclass
class Settings:
    """Main application settings."""

    output_dir: Path = field(default_factory=lambda: Path("exports"))
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    export: ExportDefaults = field(default_factory=ExportDefaults)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create from dictionary, ignoring unknown keys."""
        settings = cls()

        if "output_dir" in data:
            settings.output_dir = Path(data["output_dir"])
        if "log_level" in data:
            settings.log_level = str(data["log_level"]).upper()
        if "export" in data:
            known = {f.name for f in fields(ExportDefaults)}
            settings.export = ExportDefaults(
                **{k: v for k, v in (data["export"] or {}).items() if k in known}
            )

        return settings

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""

        def to_dict(obj):
            if hasattr(obj, "__dataclass_fields__"):
                return {k: to_dict(v) for k, v in obj.__dict__.items()}
            elif isinstance(obj, Path):
                return str(obj)
            return obj

        return to_dict(self)

    def to_yaml(self, path: Path) -> None:
        """Save settings to YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
