"""Command-line interface: ``wcs-resample``."""

import argparse
import logging
import sys

from .files import ResampleError, resample_wcs_files

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog='wcs-resample',
        description="Resample a FITS image onto the pixel grid of a target WCS"
    )
    parser.add_argument('input', help='Input FITS image')
    parser.add_argument('target_wcs', help='FITS or ASDF file holding the target WCS')
    parser.add_argument('output', help='Output FITS image')

    parser.add_argument('-E', '--input-ext', type=int, default=0,
                        help='FITS extension of the input image (default: 0)')
    parser.add_argument('-w', '--input-wcs',
                        help='File holding the input WCS (default: the input image)')
    parser.add_argument('-x', '--input-wcs-ext', type=int,
                        help='FITS extension of the input WCS (default: --input-ext)')
    parser.add_argument('-e', '--target-ext', type=int, default=0,
                        help='FITS extension of the target WCS (default: 0)')

    parser.add_argument('-L', '--order', type=int, default=3,
                        help='Lanczos order (default: 3)')
    parser.add_argument('-z', '--nearest', action='store_true',
                        help='Nearest-neighbour resampling (same as --order 0)')
    parser.add_argument('--no-overlap-grid', action='store_true',
                        help='Test every output pixel instead of pruning by blocks')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(name)s %(levelname)s: %(message)s'
    )

    order = 0 if args.nearest else args.order
    input_wcs = args.input_wcs or args.input
    input_wcs_ext = args.input_wcs_ext if args.input_wcs_ext is not None else args.input_ext

    try:
        resample_wcs_files(args.input, args.input_ext, input_wcs, input_wcs_ext,
                           args.target_wcs, args.target_ext, args.output, order,
                           overlap_grid=not args.no_overlap_grid)
    except (ResampleError, ValueError) as e:
        logger.error("Failed to resample: %s", e)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
