import numpy as np
from .astropy_wcs import AstropyMapping
from .projections import PROJECTIONS
from .sip import Sip, SIP_POLYNOMIALS


def parse_sip_matrix(header, prefix):
    """
    Parse SIP coefficients from a FITS header.

    Args:
        header: dict-like object (e.g. astropy.io.fits.Header)
        prefix: str, e.g., 'A', 'B', 'AP', 'BP'

    Returns:
        np.ndarray or None: The (order + 1, order + 1) coefficient matrix.
    """
    order_key = f"{prefix}_ORDER"
    if order_key not in header:
        return None

    order = int(header[order_key])
    matrix = np.zeros((order + 1, order + 1))
    for i in range(order + 1):
        for j in range(order + 1 - i):
            matrix[i, j] = header.get(f"{prefix}_{i}_{j}", 0.0)
    return matrix


def projection_code(header):
    """
    Return the projection code ('TAN', 'SIN', ...) from CTYPE1, or raise
    ValueError if the axis is not a celestial longitude.
    """
    ctype = str(header.get('CTYPE1', '')).strip().upper()
    parts = [p for p in ctype.split('-') if p]
    if len(parts) < 2:
        raise ValueError(f"CTYPE1 {ctype!r} does not name a celestial projection")
    return parts[1]


def load_wcs_params_from_header(header):
    """
    Extract WCS parameters (CRPIX, CD, CRVAL, SIP) from a FITS header.
    Converts 1-based FITS pixel coordinates (CRPIX) to 0-based Python coordinates.

    Args:
        header: dict-like object containing FITS keywords.

    Returns:
        tuple: (crpix, cd, crval, sip)
            crpix: list [x, y] (0-based)
            cd: list [[cd1_1, cd1_2], [cd2_1, cd2_2]]
            crval: list [lon, lat]
            sip: wcsresample.sip.Sip object or None
    """
    matrices = {name: parse_sip_matrix(header, name.upper()) for name in SIP_POLYNOMIALS}
    sip = Sip(**matrices) if any(m is not None for m in matrices.values()) else None

    try:
        crpix = [header['CRPIX1'] - 1.0, header['CRPIX2'] - 1.0]
        crval = [header['CRVAL1'], header['CRVAL2']]
    except KeyError as e:
        raise ValueError(f"Missing WCS keyword {e.args[0]}") from e

    # Use CDi_j if present, otherwise PCi_j * CDELTi
    if any(key in header for key in ('CD1_1', 'CD1_2', 'CD2_1', 'CD2_2')):
        cd = [
            [header.get('CD1_1', 0.0), header.get('CD1_2', 0.0)],
            [header.get('CD2_1', 0.0), header.get('CD2_2', 0.0)]
        ]
    else:
        cdelt1 = header.get('CDELT1', 1.0)
        cdelt2 = header.get('CDELT2', 1.0)
        cd = [
            [cdelt1 * header.get('PC1_1', 1.0), cdelt1 * header.get('PC1_2', 0.0)],
            [cdelt2 * header.get('PC2_1', 0.0), cdelt2 * header.get('PC2_2', 1.0)]
        ]

    return crpix, cd, crval, sip


def image_size_from_header(header):
    """(width, height) from IMAGEW/IMAGEH, falling back to NAXIS1/NAXIS2."""
    for wkey, hkey in (('IMAGEW', 'IMAGEH'), ('NAXIS1', 'NAXIS2')):
        if wkey in header and hkey in header:
            return int(header[wkey]), int(header[hkey])
    raise ValueError("Header has neither IMAGEW/IMAGEH nor NAXIS1/NAXIS2")


def mapping_from_header(header):
    """
    Build a mapping from a FITS header.

    TAN and SIN (with SIP when present) get a native Tan or Sin mapping; any
    other celestial projection is handed to astropy.wcs through
    AstropyMapping.
    """
    code = projection_code(header)
    cls = PROJECTIONS.get(code)
    if cls is None:
        from astropy.io import fits
        from astropy.wcs import WCS
        return AstropyMapping(WCS(fits.Header(header)), image_size=image_size_from_header(header))

    crpix, cd, crval, sip = load_wcs_params_from_header(header)
    return cls(crpix, cd, crval, image_size_from_header(header), sip=sip)


def mapping_to_header(mapping, header=None):
    """
    Write the WCS keywords of a mapping into ``header`` (a new
    astropy Header when omitted) and return it. CRPIX is written 1-based.
    """
    if header is None:
        from astropy.io import fits
        header = fits.Header()

    if isinstance(mapping, AstropyMapping):
        header.update(mapping.wcs.to_header(relax=True))
        header['IMAGEW'] = mapping.image_width
        header['IMAGEH'] = mapping.image_height
        return header

    suffix = '-SIP' if mapping.sip is not None else ''
    header['CTYPE1'] = f"RA---{mapping.ctype}{suffix}"
    header['CTYPE2'] = f"DEC--{mapping.ctype}{suffix}"
    header['WCSAXES'] = 2
    header['EQUINOX'] = 2000.0

    crpix = np.asarray(mapping.crpix)
    crval = np.asarray(mapping.crval)
    cd = np.asarray(mapping.cd)
    for i in range(2):
        header[f'CRVAL{i + 1}'] = float(crval[i])
        header[f'CRPIX{i + 1}'] = float(crpix[i]) + 1.0
    for i in range(2):
        for j in range(2):
            header[f'CD{i + 1}_{j + 1}'] = float(cd[i, j])
    header['IMAGEW'] = mapping.image_width
    header['IMAGEH'] = mapping.image_height

    if mapping.sip is not None:
        for name in SIP_POLYNOMIALS:
            coeffs = getattr(mapping.sip, name)
            if coeffs is None:
                continue
            coeffs = np.asarray(coeffs)
            prefix = name.upper()
            header[f'{prefix}_ORDER'] = coeffs.shape[0] - 1
            for (i, j), value in np.ndenumerate(coeffs):
                if value != 0.0:
                    header[f'{prefix}_{i}_{j}'] = float(value)
    return header
