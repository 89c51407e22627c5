import numpy as np
from .base import WCSBase


class TanMixin:
    """Gnomonic Projection Logic"""
    ctype = 'TAN'

    def _native_to_plane(self, x, y, z):
        # Only the hemisphere facing the tangent point projects.
        front = x > 0
        safe_x = self.xp.where(front, x, 1.0)
        return (self.xp.where(front, y / safe_x, np.nan),
                self.xp.where(front, z / safe_x, np.nan))

    def _plane_to_native(self, X, Y):
        r = self.xp.sqrt(1 + X**2 + Y**2)
        return 1.0/r, X/r, Y/r


class SinMixin:
    """Orthographic Projection Logic"""
    ctype = 'SIN'

    def _native_to_plane(self, x, y, z):
        front = x >= 0
        return self.xp.where(front, y, np.nan), self.xp.where(front, z, np.nan)

    def _plane_to_native(self, X, Y):
        # Points outside the unit disc have no sky position.
        r2 = X**2 + Y**2
        inside = r2 <= 1.0
        x = self.xp.sqrt(self.xp.where(inside, 1.0 - r2, 0.0))
        return (self.xp.where(inside, x, np.nan),
                self.xp.where(inside, X, np.nan),
                self.xp.where(inside, Y, np.nan))


class Tan(TanMixin, WCSBase):
    pass


class Sin(SinMixin, WCSBase):
    pass


PROJECTIONS = {cls.ctype: cls for cls in (Tan, Sin)}
