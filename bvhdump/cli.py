"""
Command-line interface for the BVH dumper.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeRemainingColumn
from rich.table import Table

from bvhdump import __version__
from bvhdump.config.settings import Settings
from bvhdump.core.dumper import BvhDumper
from bvhdump.core.errors import DumpError
from bvhdump.data.rig_loader import load_rig

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """Configure logging for the application."""
    formatter = logging.Formatter(
        fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    # Log to stderr so a BVH written to stdout stays clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = [console_handler]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bvhdump",
        description="Bake humanoid rig animation clips into BVH files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List the clips a rig can export
  bvhdump clips character.yaml

  # Export a clip next to the configured output directory
  bvhdump dump character.yaml --clip Walk

  # Export with root motion, from an explicit root transform
  bvhdump dump character.yaml --clip Walk --root Character/Armature --root-motion

  # Write to stdout
  bvhdump dump character.yaml --clip Walk --output -
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        help="Settings file (YAML)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured log level",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    clips = subparsers.add_parser("clips", help="List exportable clips of a rig")
    clips.add_argument("rig", type=Path, help="Rig document (YAML or JSON)")

    dump = subparsers.add_parser("dump", help="Export a clip to BVH")
    dump.add_argument("rig", type=Path, help="Rig document (YAML or JSON)")
    dump.add_argument("--clip", "-c", required=True, help="Name of the clip to export")
    dump.add_argument(
        "--output", "-o",
        type=str,
        help="Output .bvh path, or - for stdout (default: <output_dir>/<clip>.bvh)",
    )
    dump.add_argument(
        "--root",
        help="Scene path of the export root (default: <target>/Armature)",
    )
    dump.add_argument(
        "--root-motion",
        action="store_true",
        default=None,
        help="Export the root's displacement relative to its bind pose",
    )
    dump.add_argument(
        "--left-handed",
        action="store_false",
        dest="right_handed",
        default=None,
        help="Keep engine (left-handed) coordinates",
    )
    dump.add_argument(
        "--signed-angles",
        action="store_true",
        default=None,
        help="Write rotations in (-180, 180] instead of [0, 360)",
    )

    return parser


def list_clips(rig_path: Path) -> int:
    rig = load_rig(rig_path)
    if rig.animator is None:
        console.print(f"[yellow]{rig.name} has no animator[/yellow]")
        return 1

    table = Table(title=f"Clips of {rig.name}")
    table.add_column("State", style="cyan")
    table.add_column("Clip", style="green")
    table.add_column("Length (s)", justify="right")
    table.add_column("FPS", justify="right")
    table.add_column("Frames", justify="right")

    for state in rig.animator.states:
        if state.clip is None or not rig.animator.has_clip(state.clip):
            continue
        clip = rig.animator.clips[state.clip]
        table.add_row(
            state.name,
            clip.name,
            f"{clip.length:.3f}",
            f"{clip.frame_rate:g}",
            str(clip.num_frames),
        )

    console.print(table)
    return 0


def dump_clip(args: argparse.Namespace, settings: Settings) -> int:
    rig = load_rig(args.rig)
    config = settings.export.export_config(args.clip, args.root).with_overrides(
        dump_root_motion=args.root_motion,
        right_handed=args.right_handed,
        signed_angles=args.signed_angles,
    )
    dumper = BvhDumper(rig, config)

    if args.output == "-":
        sys.stdout.write(dumper.render())
        return 0

    output = Path(args.output) if args.output else settings.output_dir / f"{args.clip}.bvh"

    with Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(f"Baking {args.clip}", total=None)

        def on_frame(done: int, total: int):
            progress.update(task, total=total, completed=done)

        result = dumper.dump(output, progress=on_frame)

    console.print(f"[green]✓[/green] Exported BVH: {result.output_path}")
    console.print(f"  Root: {result.root}")
    console.print(f"  Joints: {result.num_joints}, end sites: {result.num_end_sites}")
    console.print(f"  Frames: {result.num_frames} ({result.frame_time:.8f} s/frame)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_yaml(args.config) if args.config else Settings()
        setup_logging(args.log_level or settings.log_level)

        if args.command == "clips":
            return list_clips(args.rig)
        return dump_clip(args, settings)
    except (DumpError, OSError, yaml.YAMLError) as e:
        logger.debug("Export failed", exc_info=True)
        console.print(f"[red]Error:[/red] {escape(str(e))}", soft_wrap=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
