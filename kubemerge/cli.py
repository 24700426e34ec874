from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from kubemerge.config import DecodeError, EncodeError, load_kubeconfig, save_kubeconfig
from kubemerge.merge import merge_kubeconfigs, select_current_context
from kubemerge.utils import expand_path, file_digest

logger = logging.getLogger("kubemerge")

EXIT_OK = 0
EXIT_FAILURE = 1


@dataclass
class MergeOptions:
    kubeconfig1: Path
    kubeconfig2: Path
    output: Path
    keep_current_context: bool = False
    verbose: bool = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Merge two kubeconfig files; entries from the second win on name collisions",
        usage="%(prog)s [options] <kubeconfig1> <kubeconfig2> <output>",
    )
    parser.add_argument("paths", nargs="*", metavar="PATH", help="<kubeconfig1> <kubeconfig2> <output>")
    parser.add_argument("--kubeconfig1", default="", help="Path to the first kubeconfig file")
    parser.add_argument("--kubeconfig2", default="", help="Path to the second kubeconfig file")
    parser.add_argument("--output", default="", help="Path to the merged kubeconfig file")
    parser.add_argument(
        "--keep-current-context",
        action="store_true",
        help="Carry current-context over from the second file, or the first if the second has none",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> MergeOptions:
    parser = build_parser()
    args = parser.parse_args(argv)
    kubeconfig1, kubeconfig2, output = args.kubeconfig1, args.kubeconfig2, args.output
    if args.paths:
        if len(args.paths) != 3:
            parser.error("expected exactly three positional paths: <kubeconfig1> <kubeconfig2> <output>")
        kubeconfig1, kubeconfig2, output = args.paths
    if not (kubeconfig1 and kubeconfig2 and output):
        parser.error("you must specify the paths to both kubeconfig files and the output file")
    return MergeOptions(
        kubeconfig1=expand_path(kubeconfig1),
        kubeconfig2=expand_path(kubeconfig2),
        output=expand_path(output),
        keep_current_context=args.keep_current_context,
        verbose=args.verbose,
    )


def run_merge(options: MergeOptions) -> int:
    try:
        first = load_kubeconfig(options.kubeconfig1)
    except (OSError, DecodeError) as exc:
        logger.error("Error reading kubeconfig1: %s", exc)
        return EXIT_FAILURE
    try:
        second = load_kubeconfig(options.kubeconfig2)
    except (OSError, DecodeError) as exc:
        logger.error("Error reading kubeconfig2: %s", exc)
        return EXIT_FAILURE

    merged = merge_kubeconfigs(first, second)
    if options.keep_current_context:
        merged.current_context = select_current_context(first, second)
    logger.debug(
        "Merged config has %d clusters, %d users, %d contexts",
        len(merged.clusters),
        len(merged.auth_infos),
        len(merged.contexts),
    )

    try:
        save_kubeconfig(merged, options.output)
    except (OSError, EncodeError) as exc:
        logger.error("Error writing merged kubeconfig: %s", exc)
        return EXIT_FAILURE

    logger.info("Kubeconfig files successfully merged into %s (xxh64 %s)", options.output, file_digest(options.output))
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    options = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s:%(name)s: %(message)s",
    )
    return run_merge(options)


if __name__ == "__main__":
    sys.exit(main())
