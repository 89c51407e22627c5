import jax
import warnings

if not jax.config.jax_enable_x64:
    warnings.warn(
        "JAX 64-bit precision is not enabled. The JAX mappings (TanJax, SinJax) "
        "will lose precision. Consider running `jax.config.update('jax_enable_x64', True)` "
        "before importing wcsresample.",
        UserWarning
    )

from .base import CelestialMapping, WCSBase
from .projections import Tan, Sin
from .jax_projections import TanJax, SinJax
from .sip import Sip
from .overlap import find_overlap_grid, dilate_mask
from .lanczos import lanczos_kernel, lanczos_resample_sep
from .resample import resample, resample_rgba
from .files import ResampleError, load_mapping, resample_wcs_files

__all__ = [
    'CelestialMapping', 'WCSBase',
    'Tan', 'Sin', 'TanJax', 'SinJax', 'Sip',
    'find_overlap_grid', 'dilate_mask',
    'lanczos_kernel', 'lanczos_resample_sep',
    'resample', 'resample_rgba',
    'ResampleError', 'load_mapping', 'resample_wcs_files',
]
