import numpy as np
from dataclasses import dataclass
from typing import Optional, Any

SIP_POLYNOMIALS = ('a', 'b', 'ap', 'bp')


@dataclass
class Sip:
    """
    SIP (Simple Imaging Polynomial) distortion.

    Each matrix holds coefficients c[p, q] of sum(c[p, q] * u^p * v^q), where
    (u, v) are pixel offsets from CRPIX.

    Attributes:
        a (Any): forward correction f(u, v) added to u. Shape (M, M).
        b (Any): forward correction g(u, v) added to v.
        ap (Any): reverse correction F(U, V) added to U.
        bp (Any): reverse correction G(U, V) added to V.
    """
    a: Optional[Any] = None
    b: Optional[Any] = None
    ap: Optional[Any] = None
    bp: Optional[Any] = None

    @staticmethod
    def _evaluate(u, v, coeffs, xp):
        if coeffs is None:
            return xp.zeros_like(u)
        coeffs = xp.asarray(coeffs)
        m, n = coeffs.shape
        u_pow = u[..., None] ** xp.arange(m)
        v_pow = v[..., None] ** xp.arange(n)
        return xp.einsum('pq,...p,...q->...', coeffs, u_pow, v_pow)

    def pix_to_foc(self, u, v, xp=np):
        """
        Forward distortion: (u, v) -> (u + f(u, v), v + g(u, v)).
        """
        u = xp.asarray(u, dtype=float)
        v = xp.asarray(v, dtype=float)
        return u + self._evaluate(u, v, self.a, xp), v + self._evaluate(u, v, self.b, xp)

    def foc_to_pix(self, u, v, xp=np):
        """
        Reverse distortion: (U, V) -> (U + F(U, V), V + G(U, V)).

        Without AP/BP the forward polynomials are inverted by fixed-point
        iteration instead.
        """
        u = xp.asarray(u, dtype=float)
        v = xp.asarray(v, dtype=float)
        if not self.has_reverse:
            return self._invert_forward(u, v, xp)
        return u + self._evaluate(u, v, self.ap, xp), v + self._evaluate(u, v, self.bp, xp)

    def _invert_forward(self, U, V, xp, iterations=20):
        # Solves U = u + f(u, v), V = v + g(u, v); converges for the small
        # distortions SIP describes.
        u, v = U, V
        for _ in range(iterations):
            u, v = U - self._evaluate(u, v, self.a, xp), V - self._evaluate(u, v, self.b, xp)
        return u, v

    @property
    def has_reverse(self):
        return self.ap is not None or self.bp is not None

    def to_dict(self):
        return {
            name: (np.asarray(getattr(self, name)).tolist()
                   if getattr(self, name) is not None else None)
            for name in SIP_POLYNOMIALS
        }

    @classmethod
    def from_dict(cls, data):
        return cls(**{
            name: np.array(data[name], dtype=float) if data.get(name) is not None else None
            for name in SIP_POLYNOMIALS
        })
