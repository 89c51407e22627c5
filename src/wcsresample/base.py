from abc import ABC, abstractmethod
import numpy as np
from .sip import Sip
from .utils import radec_to_xyz, xyz_to_radec, rotation_matrix, apply_rotation, apply_rotation_transpose


class CelestialMapping(ABC):
    """
    Bidirectional mapping between the pixels of one raster and directions
    on the celestial sphere.

    Directions are unit vectors (x, y, z) rather than RA/Dec so that no
    caller has to deal with RA wraparound. All methods are element-wise over
    arrays. A pixel or direction with no valid counterpart maps to NaN.

    `origin` is the coordinate of the first pixel in this mapping's own
    convention (0 for C-style, 1 for FITS-style mappings).
    """
    origin = 0

    @property
    @abstractmethod
    def image_width(self):
        pass

    @property
    @abstractmethod
    def image_height(self):
        pass

    @abstractmethod
    def pixel_to_xyz(self, x, y):
        """Pixel (x, y) -> unit vector (x, y, z); NaN where undefined."""
        pass

    @abstractmethod
    def xyz_to_pixel(self, x, y, z):
        """Unit vector -> pixel (x, y); NaN where the direction cannot be projected."""
        pass

    def is_inside(self, x, y, z):
        """
        True where the direction lands on the image area, i.e. within half a
        pixel of the outermost pixel centres. Round-off on a direction taken
        from an edge pixel therefore never reads as outside.
        """
        px, py = self.xyz_to_pixel(x, y, z)
        lo = self.origin - 0.5
        return ((px >= lo) & (px <= lo + self.image_width) &
                (py >= lo) & (py <= lo + self.image_height))

    def unproj(self, x, y):
        """
        Inverse projection: pixel coordinates -> celestial (radians).
        """
        return xyz_to_radec(*self.pixel_to_xyz(x, y), xp=np)

    def proj(self, ra, dec):
        """
        Forward projection: celestial (radians) -> pixel coordinates.
        """
        return self.xyz_to_pixel(*radec_to_xyz(ra, dec, xp=np))


class WCSBase(CelestialMapping):
    """
    Linear WCS plus a zenithal projection.

    crpix is 0-based, cd is in degrees per pixel and crval (lon, lat) is in
    degrees. image_size is (width, height).

        pixel -(CRPIX, SIP)-> (u, v) -(CD)-> plane (X, Y)
              -(projection)-> native vector -(M.T)-> celestial vector
    """
    xp = np

    def __init__(self, crpix, cd, crval, image_size, sip=None):
        cd = np.array(cd, dtype=float)
        if cd.shape != (2, 2):
            raise ValueError(f"CD matrix must be 2x2, got shape {cd.shape}")
        try:
            cd_inv = np.linalg.inv(cd)
        except np.linalg.LinAlgError:
            raise ValueError("CD matrix is singular/non-invertible")

        width, height = (int(n) for n in image_size)
        if width <= 0 or height <= 0:
            raise ValueError(f"Image size must be positive, got {width}x{height}")
        self.image_size = (width, height)

        self.crpix = self.xp.array(crpix, dtype=float)
        self.cd = self.xp.array(cd)
        self.cd_inv = self.xp.array(cd_inv)
        self.crval = self.xp.array(crval, dtype=float)
        self.sip = sip

        # crval is (lon, lat)
        self.r_matrix = rotation_matrix(
            self.xp.radians(self.crval[0]), self.xp.radians(self.crval[1]), xp=self.xp)

    @property
    def image_width(self):
        return self.image_size[0]

    @property
    def image_height(self):
        return self.image_size[1]

    @abstractmethod
    def _native_to_plane(self, xn, yn, zn):
        """Map native unit vector (xn, yn, zn) to projection plane (X, Y), radians."""
        pass

    @abstractmethod
    def _plane_to_native(self, X, Y):
        """Map projection plane (X, Y), radians, to native unit vector (xn, yn, zn)."""
        pass

    def pix_to_native(self, x, y):
        xp = self.xp
        u = xp.asarray(x, dtype=float) - self.crpix[0]
        v = xp.asarray(y, dtype=float) - self.crpix[1]
        if self.sip is not None:
            u, v = self.sip.pix_to_foc(u, v, xp=xp)

        X = self.cd[0, 0] * u + self.cd[0, 1] * v
        Y = self.cd[1, 0] * u + self.cd[1, 1] * v
        return self._plane_to_native(xp.radians(X), xp.radians(Y))

    def native_to_pix(self, xn, yn, zn):
        xp = self.xp
        X, Y = self._native_to_plane(xn, yn, zn)
        X = xp.degrees(X)
        Y = xp.degrees(Y)

        u = self.cd_inv[0, 0] * X + self.cd_inv[0, 1] * Y
        v = self.cd_inv[1, 0] * X + self.cd_inv[1, 1] * Y
        if self.sip is not None:
            u, v = self.sip.foc_to_pix(u, v, xp=xp)
        return u + self.crpix[0], v + self.crpix[1]

    def pixel_to_xyz(self, x, y):
        return apply_rotation_transpose(self.r_matrix, *self.pix_to_native(x, y))

    def xyz_to_pixel(self, x, y, z):
        xp = self.xp
        xyz = (xp.asarray(x, dtype=float), xp.asarray(y, dtype=float), xp.asarray(z, dtype=float))
        return self.native_to_pix(*apply_rotation(self.r_matrix, *xyz))

    def unproj(self, x, y):
        return xyz_to_radec(*self.pixel_to_xyz(x, y), xp=self.xp)

    def proj(self, ra, dec):
        return self.xyz_to_pixel(*radec_to_xyz(ra, dec, xp=self.xp))

    def to_dict(self):
        """Basic serialization helper."""
        return {
            'type': self.__class__.__name__,
            'crpix': np.asarray(self.crpix).tolist(),
            'cd': np.asarray(self.cd).tolist(),
            'crval': np.asarray(self.crval).tolist(),
            'image_size': list(self.image_size),
            'sip': self.sip.to_dict() if self.sip is not None else None,
        }

    @classmethod
    def from_dict(cls, data):
        sip = Sip.from_dict(data['sip']) if data.get('sip') is not None else None
        return cls(data['crpix'], data['cd'], data['crval'], data['image_size'], sip=sip)

    def __repr__(self):
        return (f"{self.__class__.__name__}(crpix={np.asarray(self.crpix).tolist()}, "
                f"crval={np.asarray(self.crval).tolist()}, image_size={self.image_size})")
