from contextlib import contextmanager

import asdf
from asdf.extension import Extension

from .converters import MappingConverter, MAPPING_TAG

EXTENSION_URI = "asdf://wcsresample.org/extensions/wcsresample-1.0.0"


class WCSResampleExtension(Extension):
    extension_uri = EXTENSION_URI
    converters = [MappingConverter()]
    tags = [MAPPING_TAG]


def get_extensions():
    """Entry point for the ``asdf.extensions`` group."""
    return [WCSResampleExtension()]


@contextmanager
def mapping_extension():
    """
    asdf config context with the mapping extension enabled, whether or not
    the package entry point has been registered.
    """
    with asdf.config_context() as cfg:
        if not any(ext.extension_uri == EXTENSION_URI for ext in cfg.extensions):
            cfg.add_extension(WCSResampleExtension())
        yield cfg


def write_mapping(path, mapping, **extra):
    """Write ``mapping`` to an ASDF file under the ``wcs`` key."""
    with mapping_extension():
        asdf.AsdfFile({'wcs': mapping, **extra}).write_to(path)


def read_mapping(path):
    """Read the mapping stored under the ``wcs`` key of an ASDF file."""
    with mapping_extension():
        with asdf.open(path) as af:
            return af['wcs']
