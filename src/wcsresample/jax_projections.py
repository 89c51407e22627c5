import jax.numpy as jnp
from jax.tree_util import register_pytree_node, register_pytree_node_class

from .base import WCSBase
from .projections import TanMixin, SinMixin
from .sip import Sip


# Register Sip as a PyTree node so that mappings carrying distortion can be
# passed through jax.jit.
def _sip_flatten(sip):
    return (sip.a, sip.b, sip.ap, sip.bp), None


def _sip_unflatten(aux_data, children):
    return Sip(*children)


register_pytree_node(Sip, _sip_flatten, _sip_unflatten)


class WCSJax(WCSBase):
    """
    WCSBase evaluated with jax.numpy.

    Leaves are the arrays of the linear WCS and the rotation matrix;
    image_size is static. Unflattening bypasses __init__ because the leaves
    may be tracers, which cannot go through the numpy validation there.
    """
    xp = jnp

    def tree_flatten(self):
        children = (self.crpix, self.cd, self.cd_inv, self.crval, self.r_matrix, self.sip)
        return children, self.image_size

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        obj = object.__new__(cls)
        obj.crpix, obj.cd, obj.cd_inv, obj.crval, obj.r_matrix, obj.sip = children
        obj.image_size = aux_data
        return obj


# We must register each leaf class as a PyTree node because
# JAX requires explicit registration for subclasses.

@register_pytree_node_class
class TanJax(TanMixin, WCSJax):
    pass


@register_pytree_node_class
class SinJax(SinMixin, WCSJax):
    pass
