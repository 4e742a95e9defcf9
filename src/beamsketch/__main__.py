"""Command-line interface."""
import argparse
import json
import logging
from typing import Optional, Sequence

from beamsketch.config import DEFAULT_FLANGE_CELL_SIZE, DEFAULT_SCALE, DEFAULT_WEB_CELL_SIZE
from beamsketch.logging_config import setup_logging
from beamsketch.model.dimensions import DrawingView
from beamsketch.model.profiles import DEFAULT_DESIGNATION, STANDARD_BEAMS
from beamsketch.model.state import SketchState

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="beamsketch",
        description="Build a W-beam inspection sketch and print its summary.",
    )
    parser.add_argument("designation", nargs="?", default=DEFAULT_DESIGNATION,
                        choices=sorted(STANDARD_BEAMS), metavar="DESIGNATION",
                        help=f"Catalog beam, e.g. {DEFAULT_DESIGNATION}")
    parser.add_argument("--scale", type=float, default=DEFAULT_SCALE, help="Pixels per inch")
    parser.add_argument("--web-cell", type=float, default=DEFAULT_WEB_CELL_SIZE, help="Web cell size [in]")
    parser.add_argument("--flange-cell", type=float, default=DEFAULT_FLANGE_CELL_SIZE, help="Flange cell size [in]")
    parser.add_argument("--zoom", type=float, default=1.0)
    parser.add_argument("--debug", action="store_true")
    parser.add_argument("--log-file", default=None, help="Also write the log to this file")
    args = parser.parse_args(argv)

    setup_logging(level=logging.DEBUG if args.debug else logging.INFO, log_file=args.log_file)

    sketch = SketchState(
        beam=STANDARD_BEAMS[args.designation],
        scale=args.scale,
        web_cell_size=args.web_cell,
        flange_cell_size=args.flange_cell,
    )
    if args.zoom != 1.0:
        sketch.set_zoom(args.zoom)

    for view in DrawingView:
        layout = sketch.dimension_layout(view)
        for dim in layout.dimensions:
            logger.info(f"[{view.value}] {dim.label:>8} offset {dim.offset_distance:7.2f}")

    print(json.dumps(sketch.summary(), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
