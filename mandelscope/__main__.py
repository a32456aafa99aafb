"""
Allow running the package directly: python -m mandelscope
"""
import argparse
import logging
import sys

from .app import run
from .config import BACKENDS, RECT_MODES, load_config


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="mandelscope",
        description="Interactive Mandelbrot set explorer",
    )
    parser.add_argument("--width", type=int, help="window width in pixels")
    parser.add_argument("--height", type=int, help="window height in pixels")
    parser.add_argument(
        "--max-iter",
        type=int,
        help="fixed iteration budget (turns automatic iterations off)",
    )
    parser.add_argument("--backend", choices=BACKENDS, help="evaluator backend")
    parser.add_argument(
        "--supersample",
        type=int,
        choices=(1, 2),
        help="render at 2x and downscale for smoother edges",
    )
    parser.add_argument(
        "--pixel-ratio",
        type=float,
        help="device pixels per window pixel",
    )
    parser.add_argument(
        "--rect-mode",
        choices=RECT_MODES,
        help="how a right-drag rectangle maps onto the window",
    )
    parser.add_argument("--settings", help="path to a settings.json file")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(
            args.settings,
            width=args.width,
            height=args.height,
            max_iter=args.max_iter,
            auto_iterations=False if args.max_iter is not None else None,
            backend=args.backend,
            supersample=args.supersample,
            device_pixel_ratio=args.pixel_ratio,
            rect_mode=args.rect_mode,
        )
    except ValueError as exc:
        parser.error(str(exc))

    run(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
