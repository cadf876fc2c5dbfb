# render_streamlines.py - render wind datasets to streamline PNGs
#
#   python render_streamlines.py 20180102.json --data-dir data --out-dir out
import argparse
import logging
import sys

from windlines.constants import CANVAS_WIDTH, CANVAS_HEIGHT
from visualization.render_driver import RenderDriver


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Render gridded wind datasets as colored streamline images."
    )
    parser.add_argument("datasets", nargs="+", help="dataset file names, relative to --data-dir")
    parser.add_argument("--data-dir", default="data", help="directory holding the datasets")
    parser.add_argument("--out-dir", default="out", help="directory for the PNG files")
    parser.add_argument("--width", type=int, default=CANVAS_WIDTH, help="image width in pixels")
    parser.add_argument("--height", type=int, default=CANVAS_HEIGHT, help="image height in pixels")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    driver = RenderDriver(
        data_dir=args.data_dir,
        output_dir=args.out_dir,
        width=args.width,
        height=args.height,
    )
    results = driver.run(args.datasets)

    failed = [r for r in results if r.error is not None]
    print(f"\nRendered {len(results) - len(failed)}/{len(results)} datasets")
    for result in failed:
        print(f"  {result.dataset_id}: {result.error}")

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
