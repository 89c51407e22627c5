"""
File-level driver: read a FITS image and two WCS descriptions, resample,
and write the result with the target WCS and its pixel range.
"""
import logging

import numpy as np
from astropy.io import fits

from .resample import resample
from .wcs_utils import mapping_from_header, mapping_to_header

logger = logging.getLogger(__name__)


class ResampleError(RuntimeError):
    """A file could not be read, parsed or written."""


def load_mapping(path, ext=0):
    """
    Load a celestial mapping from a FITS header (HDU ``ext``) or, for
    ``.asdf`` files, from the ``wcs`` entry of the tree.
    """
    path = str(path)
    try:
        if path.endswith('.asdf'):
            from .io.asdf import read_mapping
            return read_mapping(path)
        with fits.open(path) as hdul:
            return mapping_from_header(hdul[ext].header)
    except (OSError, KeyError, IndexError, ValueError) as e:
        raise ResampleError(f"Failed to parse WCS header from {path} extension {ext}: {e}") from e


def load_image(path, ext=0):
    """First image plane of HDU ``ext`` as a float32 array of shape (H, W)."""
    try:
        with fits.open(path) as hdul:
            data = hdul[ext].data
            if data is None or data.ndim < 2:
                raise ValueError(f"HDU {ext} holds no image")
            # Leading axes index planes; keep the first one.
            while data.ndim > 2:
                data = data[0]
            return np.array(data, dtype=np.float32)
    except (OSError, IndexError, ValueError) as e:
        raise ResampleError(f"Failed to read pixels from input FITS image \"{path}\": {e}") from e


def resample_wcs_files(in_fits, in_ext, in_wcs, in_wcs_ext, out_wcs, out_wcs_ext,
                       out_fits, order, overlap_grid=True):
    """
    Resample image ``in_fits[in_ext]`` described by the WCS in
    ``in_wcs[in_wcs_ext]`` onto the WCS in ``out_wcs[out_wcs_ext]`` and
    write it to ``out_fits``.

    The output is sized by the target WCS, starts at zero, and carries the
    target WCS plus DATAMIN/DATAMAX cards.

    Returns:
        (pixmin, pixmax) of the output image.

    Raises:
        ResampleError: If any input cannot be read or the output cannot be written.
    """
    in_mapping = load_mapping(in_wcs, in_wcs_ext)
    out_mapping = load_mapping(out_wcs, out_wcs_ext)
    in_img = load_image(in_fits, in_ext)

    in_h, in_w = in_img.shape
    out_w, out_h = out_mapping.image_width, out_mapping.image_height
    logger.info("Input  image is %i x %i pixels.", in_w, in_h)
    logger.info("Output image is %i x %i pixels.", out_w, out_h)

    out_img = np.zeros((out_h, out_w), dtype=np.float32)
    resample(in_mapping, in_img, out_mapping, out_img, overlap_grid=overlap_grid, order=order)

    pixmin, pixmax = float(out_img.min()), float(out_img.max())
    logger.info("Output image bounds: %g to %g", pixmin, pixmax)

    header = mapping_to_header(out_mapping)
    header['DATAMIN'] = (pixmin, 'min pixel value')
    header['DATAMAX'] = (pixmax, 'max pixel value')
    header['HISTORY'] = f"Resampled by wcsresample, order {order}"
    try:
        fits.PrimaryHDU(data=out_img, header=header).writeto(out_fits, overwrite=True)
    except OSError as e:
        raise ResampleError(f"Failed to write image to file \"{out_fits}\": {e}") from e

    return pixmin, pixmax
