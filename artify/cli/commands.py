"""CLI commands for the Artify application."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ..app import ArtifyApp
from ..camera import FacingMode
from ..collage import RecentResultsStore
from ..config import load_config
from ..log import configure_logging
from ..styles import get_categories, get_style_preset, get_styles_by_category

logger = logging.getLogger(__name__)


def _write_output(payload: bytes, output: Optional[str], default_name: str) -> Path:
    output_path = Path(output or default_name)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(payload)
    return output_path


def _report_errors(app: ArtifyApp) -> None:
    for notification in app.notifier.drain():
        if notification.is_error:
            logger.error(f"{notification.title}: {notification.description}")


def styles_command(args: argparse.Namespace) -> int:
    """List the available art styles.

    Args:
        args: Command line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    categories = [args.category] if args.category else get_categories()
    if args.category and args.category not in get_categories():
        logger.error(f"Unknown category: {args.category}")
        return 1

    if args.json:
        listing = {
            category: [style.to_dict() for style in get_styles_by_category(category)]
            for category in categories
        }
        print(json.dumps(listing, indent=2))
        return 0

    for category in categories:
        print(category)
        for style in get_styles_by_category(category):
            print(f"  {style.id:<22} {style.name}")
    return 0


async def _transform(args: argparse.Namespace, final: bool) -> int:
    app = ArtifyApp(args.settings)

    input_path = Path(args.input)
    if not input_path.exists():
        logger.error(f"Input file does not exist: {input_path}")
        return 1

    try:
        preset = get_style_preset(args.style)
    except ValueError as e:
        logger.error(str(e))
        return 1

    photo = app.acquisition.upload_file(input_path)
    if photo is None:
        _report_errors(app)
        return 1

    logger.info(f"Transforming {input_path.name} with '{preset.name}'")
    if final:
        result = await app.orchestrator.request_final(photo, preset)
    else:
        result = await app.orchestrator.request_preview(photo, preset)
    if result is None:
        _report_errors(app)
        return 1

    kind = "artify" if final else "preview"
    output_path = _write_output(result.payload, args.output, f"{kind}_{input_path.stem}{result.extension}")
    logger.info(f"Saved {kind} image to: {output_path}")

    if getattr(args, 'save', False):
        if app.orchestrator.save_to_collage(result, preset.id) is None:
            _report_errors(app)
            return 1
    return 0


def preview_command(args: argparse.Namespace) -> int:
    """Generate a low-resolution preview of a photo in a style."""
    return asyncio.run(_transform(args, final=False))


def transform_command(args: argparse.Namespace) -> int:
    """Generate the full-resolution artwork of a photo in a style."""
    return asyncio.run(_transform(args, final=True))


async def _capture(args: argparse.Namespace) -> int:
    app = ArtifyApp(args.settings)
    facing = FacingMode.REAR if args.facing == "rear" else FacingMode.FRONT
    app.session.facing_mode = facing

    try:
        if not await app.acquisition.start_camera():
            _report_errors(app)
            return 1
        if args.switch and not await app.acquisition.switch_camera():
            _report_errors(app)
            return 1
        if args.delay > 0:
            logger.info(f"Capturing in {args.delay:.1f}s...")
            await asyncio.sleep(args.delay)

        photo = await app.acquisition.capture()
        if photo is None:
            _report_errors(app)
            return 1
    finally:
        await app.close()

    output_path = _write_output(photo.payload, args.output, "capture.jpg")
    logger.info(f"Saved captured photo to: {output_path}")
    return 0


def capture_command(args: argparse.Namespace) -> int:
    """Capture a photo with the camera."""
    return asyncio.run(_capture(args))


def collage_command(args: argparse.Namespace) -> int:
    """List the most recent saved results."""
    config = args.settings
    store = RecentResultsStore(config['collage_path'], config['max_collage_entries'])
    entries = store.list_recent(args.limit)
    if args.json:
        print(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return 0
    if not entries:
        print("The collage is empty.")
        return 0
    for entry in entries:
        print(f"{entry.id}  {entry.style_name}  ({len(entry.image_data_uri)} chars)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Turn photos into art with AI style presets."
    )
    parser.add_argument("-c", "--config", help="JSON configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    styles_parser = subparsers.add_parser("styles", help="List the available art styles")
    styles_parser.add_argument("--category", help="Only list this category")
    styles_parser.add_argument("--json", action="store_true", help="Print JSON")

    for name, help_text in (("preview", "Generate a low-resolution preview"),
                            ("transform", "Generate the full-resolution artwork")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("input", help="Input image file path (JPG, PNG or WEBP, max 4MB)")
        sub.add_argument("-s", "--style", required=True, help="Style preset id (see 'styles')")
        sub.add_argument("-o", "--output", help="Output image file path")
        if name == "transform":
            sub.add_argument("--save", action="store_true", help="Save the result to the collage")

    capture_parser = subparsers.add_parser("capture", help="Capture a photo with the camera")
    capture_parser.add_argument("-o", "--output", help="Output image file path (defaults to 'capture.jpg')")
    capture_parser.add_argument("--facing", choices=["front", "rear"], default="front", help="Camera to use")
    capture_parser.add_argument("--switch", action="store_true", help="Switch cameras once before capturing")
    capture_parser.add_argument("--delay", type=float, default=1.0, help="Seconds to wait before capturing")

    collage_parser = subparsers.add_parser("collage", help="List recent saved results")
    collage_parser.add_argument("-n", "--limit", type=int, help="Number of entries to show")
    collage_parser.add_argument("--json", action="store_true", help="Print JSON")

    return parser


COMMANDS = {
    "styles": styles_command,
    "preview": preview_command,
    "transform": transform_command,
    "capture": capture_command,
    "collage": collage_command,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        args.settings = load_config(args.config)
    except (OSError, ValueError) as e:
        configure_logging("DEBUG" if args.verbose else "INFO")
        logger.error(f"Error loading configuration: {e}")
        return 1

    # -v wins over the configured level
    configure_logging("DEBUG" if args.verbose else args.settings['log_level'])

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    try:
        return command(args)
    except Exception as e:
        logger.error(f"Error running '{args.command}': {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
