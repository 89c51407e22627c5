import asdf
import numpy as np
import pytest

from wcsresample import Tan, Sin, Sip, load_mapping
from wcsresample.io.asdf import get_extensions, mapping_extension, read_mapping, write_mapping
from wcsresample.io.asdf.converters import MAPPING_TAG


def _assert_same(a, b):
    assert type(a) is type(b)
    np.testing.assert_allclose(a.crpix, b.crpix)
    np.testing.assert_allclose(a.cd, b.cd)
    np.testing.assert_allclose(a.crval, b.crval)
    assert a.image_size == b.image_size


@pytest.mark.parametrize("cls", [Tan, Sin])
def test_roundtrip(tmp_path, cls):
    wcs = cls([31.5, 23.5], [[-0.002, 0.0005], [0.0004, 0.002]], [150.0, 2.0], (64, 48))
    path = tmp_path / "wcs.asdf"

    write_mapping(path, wcs)
    back = read_mapping(path)

    _assert_same(back, wcs)
    assert back.sip is None


def test_roundtrip_with_sip(tmp_path):
    a = np.zeros((3, 3))
    a[2, 0] = 1.5e-6
    wcs = Tan([49.0, 49.0], [[-0.00028, 0.0], [0.0, 0.00028]], [180.0, 45.0], (100, 100),
              sip=Sip(a=a))
    path = tmp_path / "wcs.asdf"

    write_mapping(path, wcs)
    back = read_mapping(path)

    _assert_same(back, wcs)
    np.testing.assert_array_equal(back.sip.a, a)
    assert back.sip.b is None


def test_extra_tree_entries(tmp_path):
    wcs = Sin([3.0, 4.0], [[-0.1, 0.0], [0.0, 0.1]], [12.0, -5.0], (8, 9))
    path = tmp_path / "wcs.asdf"
    write_mapping(path, wcs, note="target grid")

    with mapping_extension():
        with asdf.open(path) as af:
            assert af["note"] == "target grid"
            assert isinstance(af["wcs"], Sin)
            assert af["wcs"].image_size == (8, 9)


def test_load_mapping_dispatches_on_suffix(tmp_path):
    wcs = Tan([4.5, 4.5], [[-0.001, 0.0], [0.0, 0.001]], [45.0, 30.0], (10, 10))
    path = tmp_path / "target.asdf"
    write_mapping(path, wcs)

    _assert_same(load_mapping(path), wcs)


def test_extension_context_is_idempotent():
    with mapping_extension() as outer:
        n = len(outer.extensions)
        with mapping_extension() as inner:
            assert len(inner.extensions) == n


def test_entry_point_function():
    (ext,) = get_extensions()
    assert MAPPING_TAG in [tag.tag_uri if hasattr(tag, 'tag_uri') else tag for tag in ext.tags]
