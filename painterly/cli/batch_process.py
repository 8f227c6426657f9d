import argparse
import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

# --- Centralized Logging Configuration ---
# This should be the first thing to run to ensure all modules use the same config.
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)
# ───────────────────────────────────────────

from ..pipeline.batch_stylizer import stylize_folder
from ..pipeline.stylizer import StylizationPipeline
from ..services.image_service import ImageService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="painterly-batch",
        description="Stylize every JPG / PNG in a folder into a painterly picture.",
    )
    parser.add_argument("input_dir", help="folder with the source photos")
    parser.add_argument("output_dir", help="where the stylized images are written")
    parser.add_argument("--recursive", action="store_true", help="walk sub-folders too")
    parser.add_argument("--workers", type=int, default=1, help="images processed in parallel")
    parser.add_argument("--seed", type=int, default=None, help="seed for the watercolour texture")
    parser.add_argument("--format", choices=["JPEG", "PNG"], default=None, help="output format")
    parser.add_argument("--max-size", type=int, default=None, help="longest side of the output")
    parser.add_argument("--quiet", action="store_true", help="hide the progress bar")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    pipeline = StylizationPipeline(
        image_service=ImageService(max_size=args.max_size, output_format=args.format),
    )

    print(f"\nStylizing images from {args.input_dir} ...")
    try:
        outcomes = stylize_folder(
            args.input_dir,
            args.output_dir,
            pipeline=pipeline,
            recursive=args.recursive,
            workers=args.workers,
            seed=args.seed,
            show_progress=not args.quiet,
        )
    except NotADirectoryError as err:
        print(f"Input folder not found: {err}", file=sys.stderr)
        return 2

    failed = [o for o in outcomes if not o.ok]
    print(f"Stylized {len(outcomes) - len(failed)} of {len(outcomes)} images into {args.output_dir}")
    for outcome in failed:
        print(f"  failed: {outcome.source.name} ({outcome.error})")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
