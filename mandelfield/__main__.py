"""
Command-line entry point: python -m mandelfield
"""

import logging
import sys
from argparse import ArgumentParser

from .config import load_config
from .errors import MandelfieldError


def build_parser():
    parser = ArgumentParser(prog='mandelfield',
                            description='Render the Mandelbrot escape-time field in parallel.')

    parser.add_argument('--settings', type=str, dest='settings', metavar='PATH',
                        help='JSON settings file (command-line values take precedence)')
    parser.add_argument('--window', type=float, nargs=4, dest='window',
                        metavar=('X_MIN', 'X_MAX', 'Y_MIN', 'Y_MAX'),
                        help='region of the complex plane to sample (default: -2.5 1.0 -2.0 2.0)')
    parser.add_argument('--width', type=int, dest='width',
                        help='buffer width in pixels (default: 1750)')
    parser.add_argument('--height', type=int, dest='height',
                        help='buffer height in pixels (default: 2000)')
    parser.add_argument('--max-iter', type=int, dest='max_iter',
                        help='iteration budget per sample (default: 60)')
    parser.add_argument('--workers', type=int, dest='workers',
                        help='number of worker threads (default: 30)')
    parser.add_argument('--no-window', action='store_true', dest='no_window',
                        help='render and report timing without opening a window')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='enable debug logging')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        config = load_config(
            args.settings,
            window=args.window,
            width=args.width,
            height=args.height,
            max_iter=args.max_iter,
            workers=args.workers,
        ).validate()
        # Imported late so --help works without a display stack
        from .app import run
        run(config, show=not args.no_window)
    except MandelfieldError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
