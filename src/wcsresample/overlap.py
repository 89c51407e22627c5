"""Coarse overlap test between a destination raster and a source mapping.

Testing every destination pixel against the source footprint costs as much
as resampling itself, so the destination is cut into B x B blocks. A block
is kept when the pixel sampled at its corner maps inside the source, or when
the outline of the source (widened by the interpolation reach) passes
through it. The result is then grown by one block in every direction.

If the outline does not cross a block, the block lies wholly inside or
wholly outside the footprint, and its corner sample tells which. Small
sources that fall between corner samples are caught by their outline.
"""
import logging

import numpy as np

DEFAULT_BLOCK_SIZE = 20
MAX_OUTLINE_REFINE = 64


def grid_shape(block_size, out_w, out_h):
    """Number of blocks (bw, bh) covering an out_w x out_h raster."""
    if block_size <= 0:
        raise ValueError(f"block_size must be positive, got {block_size}")
    return -(-out_w // block_size), -(-out_h // block_size)


def dilate_mask(mask):
    """
    Grow a boolean grid by its 8-connected neighbourhood.

    Written into a fresh array so that growth never propagates further than
    one cell, whatever the scan order.
    """
    mask = np.asarray(mask, dtype=bool)
    h, w = mask.shape
    padded = np.pad(mask, 1)
    grown = np.zeros_like(mask)
    for di in range(3):
        for dj in range(3):
            grown |= padded[di:di + h, dj:dj + w]
    return grown


def format_mask(mask):
    """Render a block grid as rows of '*' (overlap) and '.' (none)."""
    return '\n'.join(''.join('*' if flag else '.' for flag in row) for row in mask)


def _lands_inside(in_mapping, xyz, in_size, pad):
    if pad == 0 and in_size == (in_mapping.image_width, in_mapping.image_height):
        return np.asarray(in_mapping.is_inside(*xyz), dtype=bool)
    px, py = in_mapping.xyz_to_pixel(*xyz)
    lo = in_mapping.origin - 0.5 - pad
    return np.asarray((px >= lo) & (px <= lo + in_size[0] + 2 * pad) &
                      (py >= lo) & (py <= lo + in_size[1] + 2 * pad), dtype=bool)


def _outline(in_size, pad, n):
    """n points per edge along the source rectangle widened by pad, 0-based."""
    w, h = in_size
    x0, y0 = -0.5 - pad, -0.5 - pad
    x1, y1 = w - 0.5 + pad, h - 0.5 + pad
    tx = np.linspace(x0, x1, n[0])
    ty = np.linspace(y0, y1, n[1])
    xs = np.concatenate([tx, np.full_like(ty, x1), tx[::-1], np.full_like(ty, x0)])
    ys = np.concatenate([np.full_like(tx, y0), ty, np.full_like(tx, y1), ty[::-1]])
    return xs, ys


def _outline_to_output(out_mapping, in_mapping, xs, ys):
    origin = in_mapping.origin
    xyz = in_mapping.pixel_to_xyz(xs + origin, ys + origin)
    ox, oy = out_mapping.xyz_to_pixel(*xyz)
    return (np.asarray(ox, dtype=float) - out_mapping.origin,
            np.asarray(oy, dtype=float) - out_mapping.origin)


def _max_step(ox, oy, width, height, margin):
    # Only segments touching the (slightly enlarged) output raster matter.
    near = ((ox >= -margin) & (ox <= width + margin) &
            (oy >= -margin) & (oy <= height + margin))
    step = np.hypot(np.diff(ox), np.diff(oy))
    step = step[(near[:-1] | near[1:]) & np.isfinite(step)]
    return step.max() if step.size else 0.0


def mark_outline(block_size, bw, bh, out_mapping, in_mapping, in_size, pad=0):
    """
    Blocks of the output grid crossed by the outline of the source image.

    The outline is the source pixel area widened by ``pad`` pixels on every
    side, mapped into output pixels. It is traced densely enough that
    consecutive points are at most half a block apart.

    Returns:
        bool array of shape (bh, bw).
    """
    n = [int(np.ceil(in_size[0] + 2 * pad)) + 1, int(np.ceil(in_size[1] + 2 * pad)) + 1]
    ox, oy = _outline_to_output(out_mapping, in_mapping, *_outline(in_size, pad, n))
    step = _max_step(ox, oy, bw * block_size, bh * block_size, block_size)
    if step > block_size / 2:
        factor = min(int(np.ceil(2 * step / block_size)), MAX_OUTLINE_REFINE)
        n = [k * factor for k in n]
        ox, oy = _outline_to_output(out_mapping, in_mapping, *_outline(in_size, pad, n))

    marked = np.zeros((bh, bw), dtype=bool)
    # Points up to a block off the raster still flag the edge block they border.
    ok = ((ox >= -block_size) & (ox < (bw + 1) * block_size) &
          (oy >= -block_size) & (oy < (bh + 1) * block_size))
    bx = np.floor(np.floor(ox[ok] + 0.5) / block_size).astype(np.intp)
    by = np.floor(np.floor(oy[ok] + 0.5) / block_size).astype(np.intp)
    marked[np.clip(by, 0, bh - 1), np.clip(bx, 0, bw - 1)] = True
    return marked


def find_overlap_grid(block_size, out_w, out_h, out_mapping, in_mapping, logger=None,
                      pad=0, in_size=None):
    """
    Flag the blocks of the output raster that may map inside the input image.

    Args:
        block_size: Block edge length B in output pixels.
        out_w, out_h: Output raster size.
        out_mapping: CelestialMapping of the output raster.
        in_mapping: CelestialMapping of the input raster.
        logger: Optional logging.Logger for the grid diagnostics.
        pad: Input pixels beyond the image edge that still influence the
            output (the Lanczos order; 0 for nearest-neighbour).
        in_size: (width, height) of the input raster; defaults to the size
            declared by in_mapping.

    Returns:
        (mask, bw, bh): bool array of shape (bh, bw) after dilation, and the
        grid dimensions.
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    if in_size is None:
        in_size = (in_mapping.image_width, in_mapping.image_height)
    in_size = tuple(int(n) for n in in_size)
    bw, bh = grid_shape(block_size, out_w, out_h)

    # One sample per block, at its lowest corner, clamped onto the raster.
    ys = np.minimum(out_h - 1, block_size * np.arange(bh))
    xs = np.minimum(out_w - 1, block_size * np.arange(bw))
    y, x = np.meshgrid(ys, xs, indexing='ij')

    origin = out_mapping.origin
    xyz = [np.asarray(c, dtype=float) for c in out_mapping.pixel_to_xyz(x + origin, y + origin)]
    valid = np.isfinite(xyz[0]) & np.isfinite(xyz[1]) & np.isfinite(xyz[2])

    inside = np.zeros((bh, bw), dtype=bool)
    if valid.any():
        inside[valid] = _lands_inside(in_mapping, [c[valid] for c in xyz], in_size, pad)

    inside |= mark_outline(block_size, bw, bh, out_mapping, in_mapping, in_size, pad)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Input image overlaps output image:\n%s", format_mask(inside))

    grown = dilate_mask(inside)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("After growing:\n%s", format_mask(grown))
    logger.debug("Overlap grid: %d of %d blocks of %dpx kept", grown.sum(), grown.size, block_size)

    return grown, bw, bh
