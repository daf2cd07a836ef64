from __future__ import annotations

import numpy as np

from .constants import DIRAC_SPIN_PREFACTOR, FZETA_DENOM, PZ81_PARAMS

__all__ = [
    "lda_x_dirac",
    "lda_c_pz81",
    "spin_interpolation",
]

_DENS_FLOOR = 1e-30


def lda_x_dirac(n_up: np.ndarray, n_dn: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    r"""自旋分辨 Dirac 交换，返回 ``(e_x, v_x^↑, v_x^↓)``。

    .. math::
        e_x = -\frac34\left(\frac6\pi\right)^{1/3}\left(n_\uparrow^{4/3}+n_\downarrow^{4/3}\right),\qquad
        v_x^\sigma = -\left(\frac6\pi\right)^{1/3} n_\sigma^{1/3}.

    :math:`e_x` 为体能量密度（Hartree/:math:`a_0^3`），负密度按 0 处理。
    """
    up = np.clip(n_up, 0.0, None)
    dn = np.clip(n_dn, 0.0, None)
    vxu = -DIRAC_SPIN_PREFACTOR * np.cbrt(up)
    vxd = -DIRAC_SPIN_PREFACTOR * np.cbrt(dn)
    e_x = 0.75 * (up * vxu + dn * vxd)
    return e_x, vxu, vxd


def spin_interpolation(zeta: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    r""":math:`f(\zeta)=\frac{(1+\zeta)^{4/3}+(1-\zeta)^{4/3}-2}{2^{4/3}-2}` 及其导数。"""
    f = ((1.0 + zeta) ** (4.0 / 3.0) + (1.0 - zeta) ** (4.0 / 3.0) - 2.0) / FZETA_DENOM
    fp = (4.0 / 3.0) * (np.cbrt(1.0 + zeta) - np.cbrt(1.0 - zeta)) / FZETA_DENOM
    return f, fp


def _pz81_eps(rs: np.ndarray, polarized: bool) -> tuple[np.ndarray, np.ndarray]:
    r"""PZ81 的 :math:`\varepsilon_c(r_s)` 与 :math:`\mathrm{d}\varepsilon_c/\mathrm{d}r_s`。

    .. math::
        \varepsilon_c(r_s) = \begin{cases}
        A\ln r_s + B + C r_s\ln r_s + D r_s, & r_s < 1,\\
        \dfrac{\gamma}{1+\beta_1\sqrt{r_s}+\beta_2 r_s}, & r_s \ge 1.\end{cases}
    """
    A, B, C, D, gamma, beta1, beta2 = PZ81_PARAMS["polarized" if polarized else "unpolarized"]
    eps = np.empty_like(rs)
    deps = np.empty_like(rs)

    hi = rs < 1.0
    x = rs[hi]
    lnx = np.log(x)
    eps[hi] = A * lnx + B + C * x * lnx + D * x
    deps[hi] = A / x + C * (lnx + 1.0) + D

    x = rs[~hi]
    sq = np.sqrt(x)
    den = 1.0 + beta1 * sq + beta2 * x
    eps[~hi] = gamma / den
    deps[~hi] = -gamma * (0.5 * beta1 / sq + beta2) / (den * den)
    return eps, deps


def _interpolate(n_up, n_dn, eps_fn):
    """按 :math:`\\zeta` 插值顺磁/铁磁两极限，返回 ``(e_c, v_c^↑, v_c^↓)``。"""
    up = np.clip(n_up, 0.0, None)
    dn = np.clip(n_dn, 0.0, None)
    n = up + dn
    n_safe = np.maximum(n, _DENS_FLOOR)
    rs = np.cbrt(3.0 / (4.0 * np.pi * n_safe))
    zeta = np.clip((up - dn) / n_safe, -1.0, 1.0)

    eps0, deps0 = eps_fn(rs, False)
    eps1, deps1 = eps_fn(rs, True)
    f, fp = spin_interpolation(zeta)

    eps = eps0 + (eps1 - eps0) * f
    # n d(eps)/dn = -rs/3 d(eps)/drs
    n_deps_dn = -rs / 3.0 * (deps0 + (deps1 - deps0) * f)
    deps_dz = (eps1 - eps0) * fp

    vcu = eps + n_deps_dn + deps_dz * (1.0 - zeta)
    vcd = eps + n_deps_dn - deps_dz * (1.0 + zeta)
    zero = n < _DENS_FLOOR
    vcu[zero] = 0.0
    vcd[zero] = 0.0
    return n * eps, vcu, vcd


def lda_c_pz81(n_up: np.ndarray, n_dn: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    r"""PZ81 关联，返回 ``(e_c, v_c^↑, v_c^↓)``，:math:`e_c = n\varepsilon_c(n,\zeta)`。

    自旋插值 :math:`\varepsilon_c = \varepsilon_c^0 + (\varepsilon_c^1-\varepsilon_c^0) f(\zeta)`，
    势由链式法则给出：

    .. math::
        v_c^\sigma = \varepsilon_c - \frac{r_s}{3}\frac{\partial\varepsilon_c}{\partial r_s}
        \pm \frac{\partial\varepsilon_c}{\partial\zeta}(1\mp\zeta).
    """
    return _interpolate(np.asarray(n_up, dtype=float), np.asarray(n_dn, dtype=float), _pz81_eps)
