"""
Adapter exposing an astropy.wcs.WCS through the CelestialMapping interface.

Pixel coordinates follow the FITS convention (first pixel is 1), so callers
see ``origin == 1``. Useful for projections that are not implemented
natively here.
"""
import numpy as np

from .base import CelestialMapping
from .utils import radec_to_xyz, xyz_to_radec


class AstropyMapping(CelestialMapping):
    origin = 1

    def __init__(self, wcs, image_size=None):
        if image_size is None:
            image_size = wcs.pixel_shape
        if image_size is None:
            raise ValueError("Image size is unknown: the WCS has no pixel_shape")
        self.wcs = wcs.celestial
        self.image_size = tuple(int(n) for n in image_size)

    @classmethod
    def from_header(cls, header):
        from astropy.wcs import WCS
        return cls(WCS(header))

    @property
    def image_width(self):
        return self.image_size[0]

    @property
    def image_height(self):
        return self.image_size[1]

    def pixel_to_xyz(self, x, y):
        x, y = np.broadcast_arrays(np.asarray(x, dtype=float), np.asarray(y, dtype=float))
        ra, dec = self.wcs.all_pix2world(x, y, self.origin)
        return radec_to_xyz(np.radians(ra), np.radians(dec))

    def xyz_to_pixel(self, x, y, z):
        ra, dec = xyz_to_radec(*np.broadcast_arrays(
            np.asarray(x, dtype=float), np.asarray(y, dtype=float), np.asarray(z, dtype=float)))
        return self.wcs.all_world2pix(np.degrees(ra), np.degrees(dec), self.origin, quiet=True)
