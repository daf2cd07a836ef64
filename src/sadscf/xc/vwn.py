from __future__ import annotations

import numpy as np

from .constants import VWN5_PARAMS
from .lda import _interpolate

__all__ = ["lda_c_vwn"]


def _vwn_eps(rs: np.ndarray, polarized: bool) -> tuple[np.ndarray, np.ndarray]:
    r"""VWN5 的 :math:`\varepsilon_c(r_s)` 及其对 :math:`r_s` 的解析导数。

    以 :math:`x=\sqrt{r_s}`、:math:`X(x)=x^2+bx+c`、:math:`Q=\sqrt{4c-b^2}` 记：

    .. math::
        \varepsilon_c = A\left[\ln\frac{x^2}{X} + \frac{2b}{Q}\arctan\frac{Q}{2x+b}
        - \frac{b x_0}{X(x_0)}\left(\ln\frac{(x-x_0)^2}{X}
        + \frac{2(b+2x_0)}{Q}\arctan\frac{Q}{2x+b}\right)\right].
    """
    A, x0, b, c = VWN5_PARAMS["polarized" if polarized else "unpolarized"]
    x = np.sqrt(rs)
    X = x * x + b * x + c
    Q = np.sqrt(4.0 * c - b * b)
    pref = b * x0 / (x0 * x0 + b * x0 + c)
    atan = np.arctan(Q / (2.0 * x + b))

    eps = A * (
        np.log(x * x / X)
        + 2.0 * b / Q * atan
        - pref * (np.log((x - x0) ** 2 / X) + 2.0 * (b + 2.0 * x0) / Q * atan)
    )

    dX = (2.0 * x + b) / X
    datan = -4.0 / ((2.0 * x + b) ** 2 + Q * Q)
    deps_dx = A * (
        2.0 / x - dX + b * datan
        - pref * (2.0 / (x - x0) - dX + (b + 2.0 * x0) * datan)
    )
    return eps, deps_dx / (2.0 * x)


def lda_c_vwn(n_up: np.ndarray, n_dn: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """VWN5 关联，返回 ``(e_c, v_c^↑, v_c^↓)``；自旋插值方式与 :func:`sadscf.xc.lda.lda_c_pz81` 相同。"""
    return _interpolate(np.asarray(n_up, dtype=float), np.asarray(n_dn, dtype=float), _vwn_eps)
