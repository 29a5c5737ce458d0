"""Command-line interface for document boundary detection."""

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
import cv2
from dotenv import load_dotenv
from PIL import Image

from docquad import __version__
from docquad.detection.generators import GeneratorKind
from docquad.detection.mapper import default_region
from docquad.observer import LoggingStageObserver
from docquad.pipeline import DocumentDetector
from docquad.preprocessing.loader import SUPPORTED_EXTENSIONS, load_image
from docquad.utils.debug import DETECTED_COLOR, FALLBACK_COLOR, draw_quad, save_debug_image
from docquad.utils.settings import load_config

logger = logging.getLogger(__name__)


def _collect_inputs(input_paths: tuple) -> List[Path]:
    """Expand files and directories into a sorted list of image files."""
    input_files: List[Path] = []

    for input_path_str in input_paths:
        input_path = Path(input_path_str)

        if input_path.is_file():
            input_files.append(input_path)
        elif input_path.is_dir():
            found = sorted(
                p for p in input_path.iterdir()
                if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
            )
            logger.info(f"Found {len(found)} image(s) in {input_path}")
            input_files.extend(found)

    return input_files


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def main(verbose: bool) -> None:
    """docquad - find the four corners of a document in a photo."""
    load_dotenv()

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


@main.command()
@click.argument('input_paths', nargs=-1, required=True, type=click.Path(exists=True))
@click.option('--json', 'as_json', is_flag=True, help='Print one JSON object per input')
@click.option(
    '--fallback/--no-fallback',
    default=False,
    help='Report a centered inset region when no document is found'
)
@click.option(
    '--debug',
    'debug_dir',
    type=click.Path(file_okay=False),
    help='Save a corner overlay per input into this directory'
)
@click.option(
    '--config',
    'config_path',
    type=click.Path(exists=True, dir_okay=False),
    help='JSON file with detection settings (default: ./docquad.json if present)'
)
def detect(
    input_paths: tuple,
    as_json: bool,
    fallback: bool,
    debug_dir: Optional[str],
    config_path: Optional[str],
) -> None:
    """Detect the document quadrilateral in each image.

    INPUT_PATHS: One or more image files or directories
    """
    try:
        config = load_config(config_path)
    except (ValueError, FileNotFoundError) as e:
        raise click.BadParameter(str(e), param_hint='--config')

    input_files = _collect_inputs(input_paths)
    if not input_files:
        logger.error("No input files found")
        sys.exit(1)

    detector = DocumentDetector(config, observer=LoggingStageObserver())
    failures = 0

    for input_file in input_files:
        try:
            image, metadata = load_image(input_file)
            quad = detector.detect(image)
        except (ValueError, OSError, ImportError, Image.DecompressionBombError, cv2.error) as e:
            failures += 1
            logger.error(
                f"Error processing {input_file}: {e}",
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            continue

        width, height = metadata.original_size
        is_fallback = quad is None and fallback
        if is_fallback:
            quad = default_region(width, height)

        if as_json:
            click.echo(json.dumps({
                "file": str(input_file),
                "found": quad is not None and not is_fallback,
                "fallback": is_fallback,
                "corners": quad.as_list() if quad is not None else None,
            }))
        elif quad is None:
            click.echo(f"{input_file}: no document found")
        else:
            corners = " ".join(f"({x},{y})" for x, y in quad.as_list())
            suffix = " [fallback]" if is_fallback else ""
            click.echo(f"{input_file}: {corners}{suffix}")

        if debug_dir and quad is not None:
            overlay = draw_quad(
                image,
                quad,
                color=FALLBACK_COLOR if is_fallback else DETECTED_COLOR,
                label="fallback" if is_fallback else "detected",
            )
            save_debug_image(overlay, Path(debug_dir) / f"{input_file.stem}_quad.jpg")

    logger.info(f"Processed {len(input_files) - failures}/{len(input_files)} file(s)")
    if failures:
        sys.exit(2)


@main.command()
def generators() -> None:
    """List the mask generators and how many masks each produces."""
    total = 0
    for kind in GeneratorKind:
        click.echo(f"{kind.value:<16} {kind.mask_count:>3} mask(s)")
        total += kind.mask_count
    click.echo(f"{'total':<16} {total:>3} mask(s)")


if __name__ == '__main__':
    main()
