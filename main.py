#!/usr/bin/env python3
"""
PDF Page Structure Analyzer - Main Entry Point
Reconstructs tables, paragraphs and column regions from a page scene dump.
"""

import sys
import json
import argparse
import logging
from pathlib import Path
import yaml
from typing import Dict, Any

from pdfstruct.parser.scene import PageScene
from pdfstruct.analyzer.layout_analyzer import build_page_layout
from pdfstruct.generator.path_rasterizer import rasterize_path_group


def setup_logging(level: str = "INFO"):
    """
    Setup logging configuration.

    Args:
        level: Logging level
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler('pdfstruct.log')
        ]
    )


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file

    Returns:
        Configuration dictionary
    """
    if config_path and Path(config_path).exists():
        with open(config_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}

    # Default config path
    default_config = Path(__file__).parent / 'config' / 'config.yaml'
    if default_config.exists():
        with open(default_config, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}

    # Fallback to minimal config
    return {
        'table_detector': {'edge_tolerance': 2.0, 'gap_bridge_tolerance': 8.0},
        'paragraph_grouper': {'paragraph_gap_factor': 1.5},
        'layout': {'path_group_tolerance': 25.0},
    }


def analyze_scene_file(scene_path: str, output_path: str, config: Dict[str, Any],
                       rasterize: bool = True) -> bool:
    """
    Analyze a JSON page scene and write the layout as JSON.

    Args:
        scene_path: Path to input scene JSON
        output_path: Path to output JSON file (stdout when None)
        config: Configuration dictionary
        rasterize: Rasterize vector path clusters into images

    Returns:
        True if successful
    """
    logger = logging.getLogger(__name__)

    try:
        with open(scene_path, 'r', encoding='utf-8') as f:
            scene = PageScene.from_dict(json.load(f))
        logger.info(f"Loaded {scene}")

        layout = build_page_layout(scene, config, rasterizer=rasterize_path_group if rasterize else None)

        summary = layout.summary()
        logger.info("=" * 60)
        logger.info(f"Tables:      {summary['table']}")
        logger.info(f"Paragraphs:  {summary['paragraph']}")
        logger.info(f"Images:      {summary['image']}")
        logger.info(f"Two-column:  {summary['two_column']}")
        logger.info("=" * 60)

        dump = json.dumps(layout.to_dict(), indent=2, ensure_ascii=False)
        if output_path:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(dump)
            logger.info(f"Layout written to {output_path}")
        else:
            print(dump)

        return True

    except Exception as e:
        logger.error(f"Failed to analyze {scene_path}: {e}")
        logger.debug("Traceback:", exc_info=True)
        return False


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Reconstruct page structure from a PDF page scene',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py scene.json
  python main.py scene.json -o layout.json
  python main.py scene.json -o layout.json --config custom_config.yaml
  python main.py scene.json --log-level DEBUG --no-raster
        """
    )

    parser.add_argument('input', help='Input page scene JSON file')
    parser.add_argument('-o', '--output', help='Output layout JSON file (default: stdout)')
    parser.add_argument('-c', '--config', help='Path to configuration file')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: INFO)')
    parser.add_argument('--no-raster', action='store_true',
                        help='Skip rasterizing vector path clusters')

    args = parser.parse_args()

    # Setup logging
    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    # Validate input file
    if not Path(args.input).exists():
        logger.error(f"Input file not found: {args.input}")
        return 1

    # Load configuration
    config = load_config(args.config)

    success = analyze_scene_file(args.input, args.output, config, rasterize=not args.no_raster)

    return 0 if success else 1


if __name__ == '__main__':
    sys.exit(main())
