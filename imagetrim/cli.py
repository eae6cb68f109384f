"""
Command line entry point.

    imagetrim SRC DST [-t THRESHOLD] [--allow-color | --no-allow-color]

Anything left out on the command line is taken from ImageTrim.json.
"""

import argparse
import logging
import sys

from .config import CONFIG_FILE, load_config, save_config
from .core.batch import run_batch
from .core.color import clamp_threshold


def build_parser():
    parser = argparse.ArgumentParser(
        prog="imagetrim",
        description="Trim uniform-colour borders from every image in a folder.",
    )
    parser.add_argument("src", nargs="?", help="Folder with the source images")
    parser.add_argument("dst", nargs="?", help="Folder receiving the trimmed images")
    parser.add_argument("-t", "--threshold", type=int, default=None,
                        help="Colour distance still counted as border, 0-200 (default from config, 20)")
    parser.add_argument("--allow-color", action=argparse.BooleanOptionalAction, default=None,
                        help="Use the top-left pixel as border colour instead of black")
    parser.add_argument("-c", "--config", default=CONFIG_FILE, help="Settings file")
    parser.add_argument("--save-config", action="store_true",
                        help="Write the effective settings back to the settings file")
    parser.add_argument("-j", "--workers", type=int, default=1,
                        help="Images processed in parallel (capped at the CPU count)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    conf = load_config(args.config)
    if args.src:
        conf.SrcDir = args.src
    if args.dst:
        conf.DstDir = args.dst
    if args.threshold is not None:
        conf.Threshold = clamp_threshold(args.threshold)
    if args.allow_color is not None:
        conf.AllowColor = args.allow_color

    transfer = conf.transfer_config()
    if not transfer.can_transfer:
        print("Error: source and destination folders are required and must differ.", file=sys.stderr)
        return 1

    if args.save_config:
        save_config(conf, args.config)

    try:
        result = run_batch(transfer, workers=args.workers)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130

    for line in result.log:
        print(line)

    if result.error is not None:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
