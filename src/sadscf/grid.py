r"""径向网格与积分权重
=====================

有限元径向基 :class:`sadscf.basis.FDRadialBasis` 建立在本模块生成的节点上：
首尾两点施加 Dirichlet 条件，其余内部节点即为基函数的中心。

- :func:`trapezoid_weights`：任意单调网格的梯形权重（亦即集总质量矩阵的对角元）
- :func:`radial_grid_linear`：等间距网格
- :func:`radial_grid_exp`：指数变换网格 :math:`r(j)=R_p(e^{j\delta}-1)+r_\min`，核附近加密
"""

from __future__ import annotations

import numpy as np

__all__ = [
    "trapezoid_weights",
    "radial_grid_linear",
    "radial_grid_exp",
]


def trapezoid_weights(r: np.ndarray) -> np.ndarray:
    r"""为单调递增的径向网格计算梯形积分权重。

    .. math::
        \int_{r_0}^{r_{N-1}} f(r)\,\mathrm{d}r \approx \sum_i w_i f(r_i),\qquad
        w_i = \tfrac12 (h_{i-1} + h_i),

    端点只取一侧半步长。对线性有限元，:math:`w_i` 恰为集总（lumped）质量矩阵的对角元。

    Parameters
    ----------
    r : numpy.ndarray
        严格单调递增的一维坐标数组。

    Returns
    -------
    w : numpy.ndarray
        与 ``r`` 同形状的权重。
    """
    r = np.asarray(r, dtype=float)
    if r.ndim != 1:
        raise ValueError("r 必须是一维数组")
    if np.any(np.diff(r) <= 0):
        raise ValueError("r 必须严格单调递增")
    w = np.zeros_like(r)
    if r.size == 1:
        return w
    h = np.diff(r)
    w[:-1] += 0.5 * h
    w[1:] += 0.5 * h
    return w


def radial_grid_linear(n: int, rmin: float, rmax: float) -> tuple[np.ndarray, np.ndarray]:
    r"""等间距网格 :math:`r_i = r_\min + i\,\Delta r`，返回 ``(r, w)``。"""
    if n < 3:
        raise ValueError("n 必须 >= 3（至少需要一个内部节点）")
    if rmin < 0:
        raise ValueError("rmin 必须 >= 0")
    if rmax <= rmin:
        raise ValueError("要求 rmax > rmin")
    r = np.linspace(rmin, rmax, n)
    return r, trapezoid_weights(r)


def radial_grid_exp(
    n: int,
    rmax: float,
    rmin: float = 0.0,
    total_span: float = 6.0,
) -> tuple[np.ndarray, np.ndarray]:
    r"""指数变换网格。

    .. math::
        r(j) = R_p\left(e^{j\delta}-1\right) + r_\min,\qquad j=0,\dots,n-1,

    其中 :math:`\delta = \text{total\_span}/(n-1)`，:math:`R_p` 由 :math:`r(n-1)=r_\max` 确定。
    核附近的步长约为 :math:`R_p\delta`，外层步长按 :math:`\delta(r+R_p)` 增长，
    适合同时描述核尖点与价层尾部。

    Parameters
    ----------
    n : int
        网格点数（含两端点），要求 ``n >= 3``。
    rmax : float
        径向上限（施加 Dirichlet 边界条件处）。
    rmin : float, optional
        径向下限，默认 0（原子核）。
    total_span : float, optional
        :math:`(n-1)\delta`，越大核附近越密，默认 6。

    Returns
    -------
    r : numpy.ndarray
        网格坐标，``r[0] == rmin``，``r[-1] == rmax``。
    w : numpy.ndarray
        梯形权重。
    """
    if n < 3:
        raise ValueError("n 必须 >= 3（至少需要一个内部节点）")
    if rmin < 0:
        raise ValueError("rmin 必须 >= 0")
    if rmax <= rmin:
        raise ValueError("要求 rmax > rmin")
    if total_span <= 0:
        raise ValueError("total_span 必须为正")

    delta = total_span / (n - 1)
    Rp = (rmax - rmin) / np.expm1(total_span)
    r = Rp * np.expm1(np.arange(n) * delta) + rmin
    # 消除末点的舍入误差
    r[-1] = rmax
    return r, trapezoid_weights(r)
