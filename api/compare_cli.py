#!/usr/bin/env python3
"""
Compare an LCD test-pattern capture with a reference from the command line.

Prints the similarity score and its components. Exit code is 0 for a
scored comparison, 2 for a degraded one (no features, decoding error).
"""

import argparse
import json
import sys
from typing import List, Optional

from config import get_config
from lcd_vision import ComparisonResult, ImageDecodeError, load_image_from_path
from services import compare_images, shutdown_comparison_service
from utils.logger import get_logger, setup_from_config

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_DEGRADED = 2


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Score how well a capture of an LCD test pattern matches a reference.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  lcdmatch-compare capture.jpg reference.png
  lcdmatch-compare capture.jpg reference.png --json --log-level DEBUG
'''
    )
    parser.add_argument('image1', help='Captured image')
    parser.add_argument('image2', help='Reference image')
    parser.add_argument('--json', action='store_true', help='Print the full result as JSON')
    parser.add_argument('--log-level', default=None, help='Override the configured log level')

    args = parser.parse_args(argv)

    setup_from_config(get_config(), log_level=args.log_level)

    images = []
    load_errors = []
    for path in (args.image1, args.image2):
        try:
            images.append(load_image_from_path(path))
        except ImageDecodeError as e:
            logger.warning(str(e))
            load_errors.append(str(e))

    if load_errors:
        result = ComparisonResult(error='; '.join(load_errors))
    else:
        try:
            result = compare_images(images[0], images[1])
        finally:
            shutdown_comparison_service()

    if args.json:
        print(json.dumps(result.model_dump(), indent=2))
    elif result.degraded:
        print(f"Comparison failed: {result.error}")
    else:
        print(f"Score:                 {result.score:.1f}")
        print(f"Matches:               {result.match_count}")
        print(f"Structural similarity: {result.structural_similarity:.3f}")
        print(f"Spatial score:         {result.spatial_score:.3f}")
        print(f"Render verdicts:       {result.is_render1} / {result.is_render2}")

    return EXIT_DEGRADED if result.degraded else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
