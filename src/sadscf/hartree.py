from __future__ import annotations

import numpy as np

__all__ = ["v_hartree", "screening_charge"]


def v_hartree(rho: np.ndarray, r: np.ndarray, w: np.ndarray) -> np.ndarray:
    r"""由径向电荷分布 :math:`\rho(r)=4\pi r^2 n(r)` 计算 Hartree 势。

    .. math::
        v_H(r_i) = \sum_j w_j \rho_j \frac{1}{\max(r_i, r_j)}
                 = \frac{1}{r_i}\sum_{j\le i} w_j\rho_j + \sum_{j>i} \frac{w_j\rho_j}{r_j}.

    两个累积和与 :func:`sadscf.hf.exchange.slater_kernel` 在 :math:`k=0` 时给出的核完全一致
    （对角项只计一次），因此单电子体系在 HF 下 Hartree 与交换严格相消。

    Parameters
    ----------
    rho : numpy.ndarray
        径向电荷分布，满足 :math:`\sum_i w_i\rho_i = N`。
    r : numpy.ndarray
        严格为正、单调递增的节点坐标。
    w : numpy.ndarray
        积分权重。

    Returns
    -------
    vH : numpy.ndarray
        Hartree 势 :math:`v_H(r_i)`（Hartree）。
    """
    if rho.shape != r.shape or w.shape != r.shape:
        raise ValueError("rho、r、w 的形状必须一致")
    if np.any(r <= 0):
        raise ValueError("Hartree 势要求 r > 0")

    q = w * rho
    # 内层电荷 Y_i = sum_{j<=i} q_j
    Y = np.cumsum(q)
    # 外层 Z_i = sum_{j>i} q_j / r_j
    Z = np.cumsum((q / r)[::-1])[::-1] - q / r
    return Y / r + Z


def screening_charge(rho: np.ndarray, r: np.ndarray, w: np.ndarray) -> np.ndarray:
    r""":math:`Q(r) = r\,v_H(r)`：核电荷被电子云屏蔽的部分，:math:`r\to\infty` 时趋于电子数。"""
    return r * v_hartree(rho, r, w)
