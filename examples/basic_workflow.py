"""Basic workflow example for Artify.

This example uploads a photo, previews a few styles and renders the
high-resolution artwork for the first one.
"""

import argparse
import asyncio
import logging
from pathlib import Path

from artify import ArtifyApp, get_style_preset, load_config
from artify.log import configure_logging

logger = logging.getLogger(__name__)


async def run(input_path: Path, output_dir: Path, style_ids) -> int:
    app = ArtifyApp(load_config())

    # Step 1: Upload the photo
    logger.info(f"Uploading photo: {input_path}")
    photo = app.acquisition.upload_file(input_path)
    if photo is None:
        for notification in app.notifier.drain():
            logger.error(f"{notification.title}: {notification.description}")
        return 1

    # Step 2: Preview each style
    for style_id in style_ids:
        preset = get_style_preset(style_id)
        logger.info(f"Previewing '{preset.name}'...")
        preview = await app.orchestrator.select_style(photo, preset)
        if preview is None:
            continue
        preview_path = output_dir / f"preview_{preset.id}{preview.extension}"
        preview_path.write_bytes(preview.payload)
        logger.info(f"Saved preview to: {preview_path}")

    # Step 3: Render the first style at full resolution
    preset = get_style_preset(style_ids[0])
    logger.info(f"Rendering '{preset.name}' at full resolution...")
    final = await app.orchestrator.request_final(photo, preset)
    if final is None:
        return 1
    final_path = output_dir / f"artify_{preset.id}{final.extension}"
    final_path.write_bytes(final.payload)
    logger.info(f"Saved artwork to: {final_path}")
    return 0


def main():
    """Run the basic workflow example."""
    parser = argparse.ArgumentParser(description="Artify basic workflow example")
    parser.add_argument("input", help="Input image file path")
    parser.add_argument("-o", "--output", help="Output directory (defaults to 'output')")
    parser.add_argument("-s", "--style", action="append", dest="styles",
                        help="Style id to preview (repeatable)")
    args = parser.parse_args()

    configure_logging()

    input_path = Path(args.input)
    if not input_path.exists():
        logger.error(f"Input file does not exist: {input_path}")
        return 1

    output_dir = Path(args.output or "output")
    output_dir.mkdir(parents=True, exist_ok=True)

    styles = args.styles or ["watercolor", "pixel-art", "vintage-film"]
    return asyncio.run(run(input_path, output_dir, styles))


if __name__ == "__main__":
    main()
