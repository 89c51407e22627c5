import numpy as np


def radec_to_xyz(ra, dec, xp=np):
    """
    Convert RA/Dec (radians) to a unit vector (x, y, z).
    """
    cos_dec = xp.cos(dec)
    return cos_dec * xp.cos(ra), cos_dec * xp.sin(ra), xp.sin(dec)


def xyz_to_radec(x, y, z, xp=np):
    """
    Convert a direction vector (x, y, z) to RA/Dec (radians).

    The vector does not need to be normalised. RA is wrapped into [0, 2*pi).
    """
    norm = xp.sqrt(x*x + y*y + z*z)
    dec = xp.arcsin(z / norm)
    ra = xp.arctan2(y, x) % (2 * np.pi)
    return ra, dec


def rotation_matrix(lon, lat, xp=np):
    """
    Rotation M taking a celestial unit vector into the native frame of a
    zenithal projection centred on (lon, lat), both in radians.

    M * v(lon, lat) = (1, 0, 0); native +y points east, native +z north.

        M = [
          [ cosP cosL,  cosP sinL, sinP],
          [-sinL,       cosL,      0   ],
          [-sinP cosL, -sinP sinL, cosP]
        ]
    """
    cos_l, sin_l = xp.cos(lon), xp.sin(lon)
    cos_p, sin_p = xp.cos(lat), xp.sin(lat)

    return xp.array([
        [cos_p * cos_l, cos_p * sin_l, sin_p],
        [-sin_l, cos_l, 0.0],
        [-sin_p * cos_l, -sin_p * sin_l, cos_p],
    ])


def apply_rotation(matrix, x, y, z):
    """
    v_new = M * v, element-wise over array components.
    """
    xn = matrix[0, 0]*x + matrix[0, 1]*y + matrix[0, 2]*z
    yn = matrix[1, 0]*x + matrix[1, 1]*y + matrix[1, 2]*z
    zn = matrix[2, 0]*x + matrix[2, 1]*y + matrix[2, 2]*z
    return xn, yn, zn


def apply_rotation_transpose(matrix, x, y, z):
    """
    v_new = M.T * v. M is orthogonal so this undoes apply_rotation.
    """
    xn = matrix[0, 0]*x + matrix[1, 0]*y + matrix[2, 0]*z
    yn = matrix[0, 1]*x + matrix[1, 1]*y + matrix[2, 1]*z
    zn = matrix[0, 2]*x + matrix[1, 2]*y + matrix[2, 2]*z
    return xn, yn, zn
