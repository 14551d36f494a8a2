"""Command-line interface for skinconv."""

from typing import Iterable, Optional
import argparse
import logging

from . import __version__
from .converter import convert_files, expand_inputs
from .utils.config import ConvertConfig, load_config

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='skinconv',
        description="Convert skinned COLLADA (.dae) and Wavefront (.obj) assets to JSON snapshots.",
    )
    parser.add_argument(
        'inputs',
        nargs='+',
        metavar='INPUT',
        help="Input files or glob patterns (e.g. 'models/*.dae').",
    )
    parser.add_argument(
        '-o', '--output-dir',
        help="Write snapshots here instead of next to each input.",
    )
    parser.add_argument(
        '--config',
        help="JSON file with conversion settings.",
    )
    parser.add_argument(
        '--validate-pose',
        action='store_true',
        help="Cross-check matrix and quaternion joint positions on every frame.",
    )
    parser.add_argument(
        '--plot-skeleton',
        action='store_true',
        help="Save a skeleton plot (.png) next to each COLLADA snapshot.",
    )
    parser.add_argument(
        '--indent',
        type=int,
        help="Indent JSON output by this many spaces.",
    )
    parser.add_argument(
        '--no-progress',
        action='store_true',
        help="Hide the progress bar.",
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help="Log debug messages.",
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    return parser


def config_from_args(args: argparse.Namespace) -> ConvertConfig:
    """Settings from --config, overridden by explicit command-line flags."""
    config = load_config(args.config) if args.config else ConvertConfig()

    overrides = {}
    if args.output_dir is not None:
        overrides['output_dir'] = args.output_dir
    if args.indent is not None:
        overrides['indent'] = args.indent
    if args.validate_pose:
        overrides['validate_pose'] = True
    if args.plot_skeleton:
        overrides['plot_skeleton'] = True
    return config.update(**overrides) if overrides else config


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        config = config_from_args(args)
    except (OSError, ValueError) as exc:
        parser.error(f"Cannot read config {args.config}: {exc}")

    paths = expand_inputs(args.inputs)
    if not paths:
        logger.error("No input files")
        return 1

    result = convert_files(paths, config, show_progress=not args.no_progress)

    for path, message in result.failed.items():
        logger.error(f"{path}: {message}")

    return 0 if result.ok else 1
