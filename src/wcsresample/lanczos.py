import numpy as np


def lanczos_kernel(d, order):
    """
    Lanczos window L(d) = sinc(d) * sinc(d / order) for |d| < order, else 0.

    Uses the normalised sinc, sin(pi x) / (pi x).
    """
    d = np.asarray(d, dtype=float)
    return np.where(np.abs(d) < order, np.sinc(d) * np.sinc(d / order), 0.0)


def lanczos_resample_sep(px, py, img, order):
    """
    Separable Lanczos interpolation of ``img`` at points (px, py).

    Each point is evaluated over the 2*order x 2*order integer samples around
    it. Samples outside the image contribute nothing and the weights are not
    renormalised, so the result fades towards zero within ``order`` pixels
    of the edge.

    Args:
        px, py: Arrays of 0-based column/row coordinates (same shape).
        img: 2D array of shape (H, W).
        order: Positive integer kernel radius.

    Returns:
        Array of interpolated values with the shape of px.
    """
    if order < 1:
        raise ValueError(f"Lanczos order must be a positive integer, got {order}")
    img = np.asarray(img)
    if img.size == 0:
        raise ValueError(f"Cannot interpolate an empty image of shape {img.shape}")
    h, w = img.shape
    px = np.asarray(px, dtype=float)
    py = np.asarray(py, dtype=float)

    taps = np.arange(1 - order, order + 1)
    ix = np.floor(px).astype(np.intp)[..., None] + taps
    iy = np.floor(py).astype(np.intp)[..., None] + taps

    in_x = (ix >= 0) & (ix < w)
    in_y = (iy >= 0) & (iy < h)
    kx = np.where(in_x, lanczos_kernel(px[..., None] - ix, order), 0.0)
    ky = np.where(in_y, lanczos_kernel(py[..., None] - iy, order), 0.0)

    window = img[np.clip(iy, 0, h - 1)[..., :, None], np.clip(ix, 0, w - 1)[..., None, :]]
    window = np.where(in_y[..., :, None] & in_x[..., None, :], window, 0.0)

    return np.einsum('...a,...b,...ab->...', ky, kx, window)
