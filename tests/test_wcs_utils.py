import numpy as np
import pytest
from astropy.io import fits
from astropy.wcs import WCS as AstroWCS

from wcsresample import Tan, Sin, Sip
from wcsresample.astropy_wcs import AstropyMapping
from wcsresample.wcs_utils import (
    image_size_from_header, load_wcs_params_from_header, mapping_from_header,
    mapping_to_header, parse_sip_matrix, projection_code,
)


def _header(**extra):
    header = {
        'CTYPE1': 'RA---TAN', 'CTYPE2': 'DEC--TAN',
        'CRPIX1': 50.0, 'CRPIX2': 40.0,
        'CRVAL1': 180.0, 'CRVAL2': 45.0,
        'CD1_1': -0.00028, 'CD1_2': 0.0,
        'CD2_1': 0.0, 'CD2_2': 0.00028,
        'NAXIS1': 100, 'NAXIS2': 80,
    }
    header.update(extra)
    return header


def test_parse_sip_matrix():
    header = {'A_ORDER': 2, 'A_2_0': 1.5e-6, 'A_0_2': 2.5e-6, 'A_1_1': -1e-7}
    m = parse_sip_matrix(header, 'A')
    assert m.shape == (3, 3)
    assert m[2, 0] == 1.5e-6
    assert m[0, 2] == 2.5e-6
    assert m[1, 1] == -1e-7
    assert m[0, 0] == 0.0
    assert parse_sip_matrix(header, 'B') is None


@pytest.mark.parametrize("ctype, code", [
    ('RA---TAN', 'TAN'), ('RA---TAN-SIP', 'TAN'), ('RA---SIN', 'SIN'), ('GLON-ZEA', 'ZEA'),
])
def test_projection_code(ctype, code):
    assert projection_code({'CTYPE1': ctype}) == code


def test_projection_code_missing():
    with pytest.raises(ValueError):
        projection_code({})
    with pytest.raises(ValueError):
        projection_code({'CTYPE1': 'LINEAR'})


def test_load_params_is_zero_based():
    crpix, cd, crval, sip = load_wcs_params_from_header(_header())
    assert crpix == [49.0, 39.0]
    assert cd == [[-0.00028, 0.0], [0.0, 0.00028]]
    assert crval == [180.0, 45.0]
    assert sip is None


def test_load_params_pc_cdelt():
    header = _header()
    for key in ('CD1_1', 'CD1_2', 'CD2_1', 'CD2_2'):
        del header[key]
    header.update(CDELT1=-0.5, CDELT2=0.25, PC1_2=0.1)
    crpix, cd, crval, sip = load_wcs_params_from_header(header)
    assert cd == [[-0.5, -0.05], [0.0, 0.25]]


def test_load_params_with_sip():
    crpix, cd, crval, sip = load_wcs_params_from_header(
        _header(A_ORDER=2, A_2_0=1e-6, B_ORDER=2, B_1_1=2e-6))
    assert isinstance(sip, Sip)
    assert sip.a[2, 0] == 1e-6
    assert sip.b[1, 1] == 2e-6
    assert sip.ap is None and not sip.has_reverse


def test_load_params_missing_keyword():
    header = _header()
    del header['CRVAL2']
    with pytest.raises(ValueError, match='CRVAL2'):
        load_wcs_params_from_header(header)


def test_image_size_prefers_imagew():
    assert image_size_from_header(_header()) == (100, 80)
    assert image_size_from_header(_header(IMAGEW=30, IMAGEH=20)) == (30, 20)
    with pytest.raises(ValueError):
        image_size_from_header({'CTYPE1': 'RA---TAN'})


def test_mapping_from_header():
    wcs = mapping_from_header(_header(CTYPE1='RA---SIN', CTYPE2='DEC--SIN'))
    assert isinstance(wcs, Sin)
    assert wcs.image_size == (100, 80)
    np.testing.assert_allclose(wcs.crpix, [49.0, 39.0])


def test_mapping_from_header_falls_back_to_astropy():
    wcs = mapping_from_header(_header(CTYPE1='RA---ZEA', CTYPE2='DEC--ZEA'))
    assert isinstance(wcs, AstropyMapping)
    assert wcs.image_size == (100, 80)
    assert wcs.origin == 1

    # CRPIX is the reference pixel in its own FITS convention
    ra, dec = wcs.unproj(50.0, 40.0)
    assert np.degrees(ra) == pytest.approx(180.0)
    assert np.degrees(dec) == pytest.approx(45.0)


def test_mapping_from_header_not_celestial():
    with pytest.raises(ValueError):
        mapping_from_header(_header(CTYPE1='LINEAR', CTYPE2='LINEAR'))


def test_astropy_mapping_header_roundtrip():
    wcs = mapping_from_header(_header(CTYPE1='RA---ZEA', CTYPE2='DEC--ZEA', IMAGEW=30, IMAGEH=20))
    header = mapping_to_header(wcs)
    assert header['CTYPE1'] == 'RA---ZEA'
    assert (header['IMAGEW'], header['IMAGEH']) == (30, 20)

    back = mapping_from_header(header)
    assert isinstance(back, AstropyMapping)
    assert back.image_size == (30, 20)
    x = np.array([1.0, 15.0, 30.0])
    y = np.array([1.0, 10.0, 20.0])
    np.testing.assert_allclose(np.array(back.pixel_to_xyz(x, y)),
                               np.array(wcs.pixel_to_xyz(x, y)), atol=1e-12)


def test_header_roundtrip():
    a = np.zeros((3, 3))
    a[2, 0] = 1.5e-6
    bp = np.zeros((2, 2))
    bp[0, 1] = -3e-6
    wcs = Tan([31.5, 23.5], [[-0.002, 0.0005], [0.0004, 0.002]], [150.0, 2.0], (64, 48),
              sip=Sip(a=a, bp=bp))

    header = mapping_to_header(wcs)
    assert isinstance(header, fits.Header)
    assert header['CTYPE1'] == 'RA---TAN-SIP'
    assert header['CRPIX1'] == 32.5
    assert header['IMAGEW'] == 64
    assert header['A_ORDER'] == 2
    assert header['BP_ORDER'] == 1
    assert 'B_ORDER' not in header

    back = mapping_from_header(header)
    assert isinstance(back, Tan)
    np.testing.assert_allclose(back.crpix, wcs.crpix)
    np.testing.assert_allclose(back.cd, wcs.cd)
    np.testing.assert_allclose(back.crval, wcs.crval)
    assert back.image_size == (64, 48)
    np.testing.assert_array_equal(back.sip.a, a)
    np.testing.assert_array_equal(back.sip.bp, bp)
    assert back.sip.b is None


def test_header_matches_astropy():
    wcs = Sin([31.5, 23.5], [[-0.002, 0.0005], [0.0004, 0.002]], [150.0, 2.0], (64, 48))
    awcs = AstroWCS(mapping_to_header(wcs))

    y, x = np.mgrid[0:48:6, 0:64:9].astype(float)
    ra, dec = awcs.all_pix2world(x, y, 0)
    ra_m, dec_m = wcs.unproj(x, y)
    np.testing.assert_allclose(np.degrees(ra_m), ra, atol=1e-9)
    np.testing.assert_allclose(np.degrees(dec_m), dec, atol=1e-9)
