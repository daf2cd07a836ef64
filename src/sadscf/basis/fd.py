r"""集总线性有限元径向基
=======================

在网格 :math:`r_0 < r_1 < \dots < r_{N-1}` 上取线性帽函数，两端施加 Dirichlet 条件
:math:`u(r_0)=u(r_{N-1})=0`，内部 :math:`N-2` 个节点即为基函数。系数就是
:math:`u(r_i)`，质量矩阵用梯形规则集总为对角阵：

.. math::

    S = \mathrm{diag}(w),\qquad
    T = \tfrac12 D^T \mathrm{diag}(1/h) D,\qquad
    T_\ell = \mathrm{diag}\!\left(\frac{w}{2r^2}\right),\qquad
    V = \mathrm{diag}\!\left(-\frac{Z w}{r}\right),

其中 :math:`h_i = r_{i+1}-r_i`，:math:`D` 为相邻节点差分。:math:`S^{-1}T` 与非均匀网格上的
三点差分 :math:`-\tfrac12 u''` 完全相同，因此本基组等价于经对称化的有限差分离散。

径向密度 :math:`\rho(r) = 4\pi r^2 n(r)` 在节点上即为 :math:`P_{ii}`；
局域势 :math:`v(r)` 的矩阵为 :math:`\mathrm{diag}(w v)`。
"""

from __future__ import annotations

import logging

import numpy as np
import scipy.linalg

from .. import functionals
from ..grid import trapezoid_weights
from ..hartree import screening_charge, v_hartree
from ..hf.exchange import KernelCache, exchange_cube
from ..linalg import angular_basis, half_inverse, mini_mat
from ..xc import evaluate_kernel
from .base import BasisProvider

__all__ = ["FDRadialBasis"]

_LOGGER = logging.getLogger(__name__)


class FDRadialBasis(BasisProvider):
    """建立在给定径向网格上的集总线性有限元基组。

    Parameters
    ----------
    r : numpy.ndarray
        完整网格（含两个 Dirichlet 端点），通常来自 :func:`sadscf.grid.radial_grid_exp`。
    Z : float
        核电荷。
    lmax : int
        最大角动量。
    logger : logging.Logger, optional
        条件数等诊断信息的日志器。
    """

    def __init__(self, r: np.ndarray, Z: float, lmax: int, logger: logging.Logger | None = None):
        r = np.asarray(r, dtype=float)
        if r.ndim != 1 or r.size < 3:
            raise ValueError("网格至少需要 3 个点（含两个端点）")
        if lmax < 0:
            raise ValueError(f"lmax 必须非负: {lmax}")
        w_full = trapezoid_weights(r)
        if r[1] <= 0:
            raise ValueError("内部节点必须位于 r > 0")

        self.lmax = int(lmax)
        self.Z = float(Z)
        self.r_full = r
        self._r = r[1:-1]
        self._w = w_full[1:-1]

        h = np.diff(r)
        self._S = np.diag(self._w)
        self._T = 0.5 * (
            np.diag(1.0 / h[:-1] + 1.0 / h[1:])
            - np.diag(1.0 / h[1:-1], 1)
            - np.diag(1.0 / h[1:-1], -1)
        )
        self._Tl = np.diag(self._w / (2.0 * self._r**2))
        self._Vnuc = np.diag(-self.Z * self._w / self._r)
        self._Sinvh = half_inverse(self._S, logger=logger or _LOGGER)
        self._kernels = KernelCache(self._r)

    @property
    def nbf(self) -> int:
        return self._r.size

    def overlap(self):
        return self._S

    def overlap_half_inverse(self):
        return self._Sinvh

    def kinetic(self):
        return self._T

    def kinetic_l(self):
        return self._Tl

    def nuclear(self):
        return self._Vnuc

    def radii(self):
        return self._r

    def quadrature_weights(self):
        return self._w

    # ------------------------------------------------------------------
    # 密度相关的算子
    # ------------------------------------------------------------------
    def radial_density(self, P: np.ndarray) -> np.ndarray:
        r""":math:`\rho(r_i) = 4\pi r_i^2 n(r_i) = P_{ii}`。"""
        return np.diag(P).copy()

    def coulomb(self, P):
        vH = v_hartree(self.radial_density(P), self._r, self._w)
        return np.diag(self._w * vH)

    def exchange(self, Pang):
        return exchange_cube(Pang, self._w, self._kernels)

    def rs_exchange(self, Pang, omega):
        return exchange_cube(Pang, self._w, self._kernels, omega=omega)

    def _xc_on_nodes(self, x_func, x_pars, c_func, c_pars, rhos, dftthr):
        """节点上的 XC 能量密度 ``e`` 与各通道势（受限时只有一个）。"""
        volume = 4.0 * np.pi * self._r**2
        if len(rhos) == 1:
            n_up = n_dn = 0.5 * rhos[0] / volume
        elif len(rhos) == 2:
            n_up, n_dn = (rho / volume for rho in rhos)
        else:
            raise ValueError(f"密度个数必须为 1 或 2: {len(rhos)}")

        e = np.zeros_like(self._r)
        vu = np.zeros_like(self._r)
        vd = np.zeros_like(self._r)
        for name, pars in ((x_func, x_pars), (c_func, c_pars)):
            info = functionals.lookup(name)
            if not info.is_dft:
                continue
            ek, vuk, vdk = evaluate_kernel(info.kernel, n_up, n_dn, pars)
            e += info.dft_scale * ek
            vu += info.dft_scale * vuk
            vd += info.dft_scale * vdk

        small = (n_up + n_dn) < dftthr
        e[small] = 0.0
        vu[small] = 0.0
        vd[small] = 0.0
        v = [vu] if len(rhos) == 1 else [vu, vd]
        return e, v, n_up + n_dn

    def eval_fxc(self, x_func, x_pars, c_func, c_pars, densities, dftthr):
        rhos = [self.radial_density(P) for P in densities]
        e, v, n = self._xc_on_nodes(x_func, x_pars, c_func, c_pars, rhos, dftthr)
        volume = 4.0 * np.pi * self._r**2
        Exc = float(np.sum(self._w * volume * e))
        nelnum = float(np.sum(self._w * volume * n))
        return [np.diag(self._w * vs) for vs in v], Exc, nelnum

    def eval_fxc_full(self, x_func, x_pars, c_func, c_pars, densities, dftthr):
        lval, _ = angular_basis(self.lmax)
        nang = lval.size
        # 对全部 (l, m) 块求和即为径向密度；LDA 只依赖它
        radial = [mini_mat(Pfull, nang).sum(axis=0) for Pfull in densities]
        XC, Exc, nelnum = self.eval_fxc(x_func, x_pars, c_func, c_pars, radial, dftthr)

        ekin = 0.0
        for Pfull in densities:
            blocks = mini_mat(Pfull, nang)
            for iang, l in enumerate(lval):
                ekin += np.sum(blocks[iang] * (self._T + l * (l + 1) * self._Tl))
        return [scipy.linalg.block_diag(*([M] * nang)) for M in XC], Exc, nelnum, float(ekin)

    # ------------------------------------------------------------------
    # 格点量
    # ------------------------------------------------------------------
    def orbitals(self, C):
        r""":math:`R(r) = u(r)/r`，``C`` 可以是矩阵或按 :math:`\ell` 的 cube。"""
        C = np.asarray(C)
        if C.ndim == 3:
            return C / self._r[np.newaxis, :, np.newaxis]
        return C / self._r[:, np.newaxis]

    def electron_density(self, P):
        return self.radial_density(P) / (4.0 * np.pi * self._r**2)

    def electron_density_gradient(self, P):
        return np.gradient(self.electron_density(P), self._r)

    def electron_density_laplacian(self, P):
        r2g = self._r**2 * self.electron_density_gradient(P)
        return np.gradient(r2g, self._r) / self._r**2

    def coulomb_screening(self, P):
        return screening_charge(self.radial_density(P), self._r, self._w)

    def xc_screening(self, densities, x_func, x_pars, c_func, c_pars, dftthr):
        rhos = [self.radial_density(P) for P in densities]
        _, v, _ = self._xc_on_nodes(x_func, x_pars, c_func, c_pars, rhos, dftthr)
        return [self._r * vs for vs in v]

    def nuclear_density(self, P):
        # 由最内两个节点线性外推到 r = 0
        n = self.electron_density(P)
        r0, r1 = self._r[:2]
        return float(n[0] - r0 * (n[1] - n[0]) / (r1 - r0))

    def nuclear_density_gradient(self, P):
        g = self.electron_density_gradient(P)
        r0, r1 = self._r[:2]
        return float(g[0] - r0 * (g[1] - g[0]) / (r1 - r0))

    def radial_moment_matrices(self):
        return [(k, np.diag(self._w * self._r**k)) for k in (-1, 1, 2)]
