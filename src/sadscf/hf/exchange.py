r"""球平均非局域交换
===================

在节点表示下（系数即 :math:`u(r_i)`），通道 :math:`\ell` 的交换矩阵为

.. math::

    K^\ell_{ij} = -\,w_i w_j \sum_{\ell'} \sum_k a_k(\ell,\ell')\,
    D^{\ell'}_{ij}\, g_k(r_i, r_j),

其中 :math:`D^{\ell'}` 为按每个 m 分量占据数加权的角向密度矩阵
（:meth:`sadscf.orbitals.OrbitalChannel.angular_density`），:math:`g_k` 为径向多极核：

- Coulomb：:math:`g_k = r_<^k / r_>^{k+1}`
- Yukawa（短程）：:math:`g_k = (2k+1)\,\frac{2\omega}{\pi}\, i_k(\omega r_<)\, k_k(\omega r_>)`，
  即 :math:`e^{-\omega r_{12}}/r_{12}` 的多极展开；:math:`\omega\to0` 时退化为 Coulomb 核。

核矩阵按 ``(k, omega)`` 缓存，同一基组的所有 SCF 迭代共享。
"""

from __future__ import annotations

import numpy as np
from scipy.special import spherical_in, spherical_kn

from .angular import allowed_k_values, coupling_factor_ak

__all__ = [
    "KernelCache",
    "exchange_cube",
    "slater_kernel",
    "yukawa_kernel",
]


def slater_kernel(r: np.ndarray, k: int) -> np.ndarray:
    r"""Coulomb 多极核矩阵 :math:`r_<^k / r_>^{k+1}`。"""
    if k < 0:
        raise ValueError(f"多极指标必须非负: k={k}")
    rl = np.minimum.outer(r, r)
    rg = np.maximum.outer(r, r)
    return rl**k / rg ** (k + 1)


def yukawa_kernel(r: np.ndarray, k: int, omega: float) -> np.ndarray:
    r"""Yukawa 屏蔽多极核矩阵。

    .. math::
        g_k(r, r') = (2k+1)\,\frac{2\omega}{\pi}\, i_k(\omega r_<)\, k_k(\omega r_>),

    其中 :math:`i_k`、:math:`k_k` 为修正球 Bessel 函数（``scipy.special.spherical_in/kn``）。
    """
    if k < 0:
        raise ValueError(f"多极指标必须非负: k={k}")
    if omega <= 0:
        raise ValueError(f"屏蔽参数必须为正: omega={omega}")
    rl = np.minimum.outer(r, r)
    rg = np.maximum.outer(r, r)
    return (2 * k + 1) * (2.0 * omega / np.pi) * spherical_in(k, omega * rl) * spherical_kn(k, omega * rg)


class KernelCache:
    """按 ``(k, omega)`` 缓存径向核矩阵；``omega=None`` 表示 Coulomb 核。"""

    def __init__(self, r: np.ndarray):
        self.r = np.asarray(r, dtype=float)
        self._cache: dict[tuple[int, float | None], np.ndarray] = {}

    def get(self, k: int, omega: float | None = None) -> np.ndarray:
        key = (k, omega)
        if key not in self._cache:
            if omega is None:
                self._cache[key] = slater_kernel(self.r, k)
            else:
                self._cache[key] = yukawa_kernel(self.r, k, omega)
        return self._cache[key]

    def clear(self):
        self._cache.clear()

    def __len__(self):
        return len(self._cache)


def exchange_cube(
    Pang: np.ndarray,
    w: np.ndarray,
    kernels: KernelCache,
    omega: float | None = None,
) -> np.ndarray:
    r"""由角向密度 cube 组装各 :math:`\ell` 通道的交换矩阵。

    Parameters
    ----------
    Pang : numpy.ndarray
        ``(lmax+1, n, n)``，每个 m 分量的占据加权密度矩阵。
    w : numpy.ndarray
        节点积分权重。
    kernels : KernelCache
        径向核缓存。
    omega : float, optional
        给出时使用 Yukawa 核（短程交换），否则使用 Coulomb 核。

    Returns
    -------
    K : numpy.ndarray
        ``(lmax+1, n, n)`` 交换矩阵（负半定）。
    """
    nl = Pang.shape[0]
    ww = np.outer(w, w)
    K = np.zeros_like(Pang)
    # 先把占据通道与核相乘，按 (l', k) 复用
    occupied = [lp for lp in range(nl) if np.any(Pang[lp])]
    for lp in occupied:
        Dw = ww * Pang[lp]
        for l in range(nl):
            for k in allowed_k_values(l, lp):
                ak = coupling_factor_ak(l, k, lp)
                if ak == 0.0:
                    continue
                K[l] -= ak * Dw * kernels.get(k, omega)
    return K
