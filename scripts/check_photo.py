#!/usr/bin/env python3
"""Check an ID photo and optionally write a fixed 600x600 version.

This script runs the compliance battery on a single image file, prints each
check result and the overall verdict, and can save the normalized photo.

Usage:
    python scripts/check_photo.py --image path/to/photo.jpg
    python scripts/check_photo.py --image photo.png --fix --save fixed.jpg
    python scripts/check_photo.py --image photo.jpg --detector cascade --margin 0.95
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from idphoto.config import Config
from idphoto.errors import PhotoComplianceError
from idphoto.interfaces import CheckStatus
from idphoto.logging_config import setup_logging
from idphoto.services import PhotoSession
from idphoto.utils import file_metadata, load_image, save_image

logger = setup_logging(__name__)

STATUS_MARKS = {
    CheckStatus.PASS: "OK  ",
    CheckStatus.WARN: "WARN",
    CheckStatus.FAIL: "FAIL",
}


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="ID photo compliance check and normalization",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--image",
        type=str,
        required=True,
        help="Path to input image file",
    )

    parser.add_argument(
        "--detector",
        type=str,
        choices=["heuristic", "cascade"],
        default=None,
        help="Face detector backend (overrides .env DETECTOR value)",
    )

    parser.add_argument(
        "--no-metadata",
        action="store_true",
        help="Skip file size and format checks",
    )

    parser.add_argument(
        "--fix",
        action="store_true",
        help="Normalize the photo to a square white-padded image",
    )

    parser.add_argument(
        "--margin",
        type=float,
        default=None,
        help="Fit margin for --fix (overrides .env MARGIN_FACTOR value)",
    )

    parser.add_argument(
        "--save",
        type=str,
        default=None,
        help="Path to save the exported photo (requires --fix)",
    )

    return parser.parse_args()


def print_section(title: str) -> None:
    """Print a section divider."""
    print()
    print("=" * 70)
    print(f"  {title}")
    print("=" * 70)


def main() -> int:
    """Main function."""
    args = parse_args()

    print_section("ID Photo Compliance Check")

    image_path = Path(args.image)
    if not image_path.exists():
        logger.error(f"Image not found: {image_path}")
        return 1

    if args.save and not args.fix:
        logger.error("--save requires --fix")
        return 1

    try:
        config = Config.from_env()
    except PhotoComplianceError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    # Package loggers (idphoto.*) share one handler set
    setup_logging(level=config.log_level)

    try:
        session = PhotoSession.from_config(config, detector=args.detector)
    except PhotoComplianceError as e:
        logger.error(f"Could not set up session: {e}")
        return 1

    try:
        image = load_image(image_path)
    except PhotoComplianceError as e:
        logger.error(str(e))
        return 1

    metadata = None if args.no_metadata else file_metadata(image_path)

    print(f"Input image:   {image_path}")
    print(f"Size:          {image.width}x{image.height}")
    if metadata is not None:
        print(f"File:          {metadata.size_kb:.1f} KB, {metadata.mime_type}")
    print(f"Detector:      {args.detector or config.detector}")

    session.load(image, metadata)
    verdict = session.analyze()

    print_section("Checks")
    for result in verdict.results:
        print(f"  [{STATUS_MARKS[result.status]}] {result.id.value:<22} {result.value}")

    detection = session.detection
    print()
    print(
        f"Face: {detection.reason.value} "
        f"(method={detection.method.value}, confidence={detection.confidence:.2f})"
    )
    if session.geometry is not None and session.geometry.issues:
        print(f"Placement issues: {', '.join(session.geometry.issues)}")

    print_section(f"Verdict: {verdict.overall.value.upper()}")
    summary = verdict.summary
    print(
        f"  {summary['passes']} passed, {summary['warnings']} warnings, "
        f"{summary['critical']} critical failures"
    )

    if args.fix:
        print_section("Fix")
        try:
            artifact = session.fix(margin_factor=args.margin)
        except PhotoComplianceError as e:
            logger.error(f"Fix failed: {e}")
            return 1

        print(f"  Canvas:      {artifact.size}x{artifact.size}")
        print(f"  Margin:      {artifact.margin_factor}")
        print(f"  Brightened:  {'Yes' if artifact.enhanced else 'No'}")

        if args.save:
            exported = session.export()
            save_path = save_image(exported, args.save)
            print(f"  Saved:       {save_path} ({exported.width}x{exported.height})")

    print()
    return 0 if verdict.overall is not CheckStatus.FAIL else 2


if __name__ == "__main__":
    sys.exit(main())
