"""
Resample an image from one celestial mapping onto the pixel grid of another.

For each output pixel: output pixel -> unit vector (output mapping) ->
input pixel (input mapping) -> sample. Output pixels that have no sky
position, or whose input position falls off the input image, are left
untouched, so the caller decides what "no data" looks like by how it
initialises the output array.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial

import numpy as np

from .lanczos import lanczos_resample_sep
from .overlap import DEFAULT_BLOCK_SIZE, find_overlap_grid, grid_shape


def _round_half_away(v):
    # C round(): halves go away from zero, unlike np.rint.
    return np.copysign(np.floor(np.abs(v) + 0.5), v)


def _check_output(out_mapping, out_img, channels=None):
    if not isinstance(out_img, np.ndarray):
        raise TypeError(f"Output image must be a numpy array, got {type(out_img).__name__}")
    expected = (out_mapping.image_height, out_mapping.image_width)
    if channels is not None:
        expected += (channels,)
    if out_img.shape != expected:
        raise ValueError(
            f"Output image has shape {out_img.shape}, but the output mapping "
            f"describes {expected}")


def _source_coords(in_mapping, out_mapping, rows, cols):
    """0-based input coordinates of the output pixels in out[rows, cols]; NaN where undefined."""
    jj, ii = np.mgrid[rows, cols]
    origin = out_mapping.origin
    xyz = out_mapping.pixel_to_xyz(ii + origin, jj + origin)
    inx, iny = in_mapping.xyz_to_pixel(*xyz)
    return (np.asarray(inx, dtype=float) - in_mapping.origin,
            np.asarray(iny, dtype=float) - in_mapping.origin)


def _sample_nearest(in_img, out_view, inx, iny):
    h, w = in_img.shape[:2]
    x = _round_half_away(inx)
    y = _round_half_away(iny)
    ok = (x >= 0) & (x < w) & (y >= 0) & (y < h)
    out_view[ok] = in_img[y[ok].astype(np.intp), x[ok].astype(np.intp)]


def _sample_lanczos(in_img, order, out_view, inx, iny):
    h, w = in_img.shape
    ok = (inx >= -order) & (inx < w + order) & (iny >= -order) & (iny < h + order)
    out_view[ok] = lanczos_resample_sep(inx[ok], iny[ok], in_img, order)


def _block_slices(mask, block_size, out_w, out_h):
    for bj, bi in zip(*np.nonzero(mask)):
        yield (slice(bj * block_size, min(out_h, (bj + 1) * block_size)),
               slice(bi * block_size, min(out_w, (bi + 1) * block_size)))


def _resample_blocks(in_mapping, in_img, out_mapping, out_img, sample, pad,
                     overlap_grid, block_size, workers, logger):
    out_h, out_w = out_img.shape[:2]
    if overlap_grid:
        mask, bw, bh = find_overlap_grid(
            block_size, out_w, out_h, out_mapping, in_mapping, logger=logger,
            pad=pad, in_size=(in_img.shape[1], in_img.shape[0]))
    else:
        bw, bh = grid_shape(block_size, out_w, out_h)
        mask = np.ones((bh, bw), dtype=bool)

    blocks = list(_block_slices(mask, block_size, out_w, out_h))

    # Blocks write disjoint slices of out_img and only read everything else.
    def process(block):
        rows, cols = block
        inx, iny = _source_coords(in_mapping, out_mapping, rows, cols)
        sample(out_img[rows, cols], inx, iny)

    if workers is not None and workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            list(executor.map(process, blocks))
    else:
        for block in blocks:
            process(block)

    logger.debug("Resampled %d of %d blocks", len(blocks), bw * bh)


def resample(in_mapping, in_img, out_mapping, out_img, overlap_grid=True, order=0,
             block_size=DEFAULT_BLOCK_SIZE, workers=None, logger=None):
    """
    Resample ``in_img`` (described by ``in_mapping``) into ``out_img``
    (described by ``out_mapping``), in place.

    Args:
        in_mapping: CelestialMapping of the input image.
        in_img: 2D array of shape (H_in, W_in).
        out_mapping: CelestialMapping of the output image.
        out_img: Pre-initialised 2D array of shape
            (out_mapping.image_height, out_mapping.image_width).
        overlap_grid: Skip output blocks that cannot overlap the input.
            Changes speed only, never the result.
        order: 0 for nearest-neighbour, k > 0 for Lanczos-k.
        block_size: Block edge length for the overlap grid and the work units.
        workers: Number of threads to spread blocks over; None or 1 runs
            sequentially.
        logger: Optional logging.Logger for diagnostics.

    Returns:
        out_img.

    Raises:
        ValueError: For an empty input, inconsistent shapes or an invalid
            order/block size.
        TypeError: If out_img is not a numpy array.
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    in_img = np.asarray(in_img)
    if in_img.ndim != 2:
        raise ValueError(f"Input image must be 2D, got shape {in_img.shape}")
    if in_img.size == 0:
        raise ValueError(f"Input image is empty, shape {in_img.shape}")
    if int(order) != order or order < 0:
        raise ValueError(f"Interpolation order must be a non-negative integer, got {order}")
    _check_output(out_mapping, out_img)

    if order == 0:
        sample = partial(_sample_nearest, in_img)
    else:
        sample = partial(_sample_lanczos, in_img, int(order))

    _resample_blocks(in_mapping, in_img, out_mapping, out_img, sample, int(order),
                     overlap_grid, block_size, workers, logger)
    return out_img


def resample_rgba(in_mapping, in_img, out_mapping, out_img,
                  block_size=DEFAULT_BLOCK_SIZE, workers=None, logger=None):
    """
    Nearest-neighbour resampling of interleaved 4-channel (RGBA) images.

    Channels are copied verbatim from the nearest input pixel; there is no
    interpolating variant since blending would mix channel semantics. The
    overlap grid is always used.

    Args:
        in_img: Array of shape (H_in, W_in, 4), typically uint8.
        out_img: Pre-initialised array of shape (H_out, W_out, 4).

    Returns:
        out_img.
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    in_img = np.asarray(in_img)
    if in_img.ndim != 3 or in_img.shape[2] != 4:
        raise ValueError(f"Input image must have shape (H, W, 4), got {in_img.shape}")
    if in_img.size == 0:
        raise ValueError(f"Input image is empty, shape {in_img.shape}")
    _check_output(out_mapping, out_img, channels=4)

    _resample_blocks(in_mapping, in_img, out_mapping, out_img, partial(_sample_nearest, in_img),
                     0, True, block_size, workers, logger)
    return out_img
