r"""线性代数能力层
=================

SCF 核心只依赖本模块提供的少数几个矩阵操作，所有对象都以显式形状的 numpy 数组表示：

- 矩阵：``(n, n)``
- 立方体（cube）：``(lmax+1, n, n)``，第 0 维为角动量通道 :math:`\ell`

提供的操作：

- 广义本征问题 :math:`F x = \varepsilon S x`（经半逆重叠矩阵 :math:`S^{-1/2}` 化为标准问题）
- 半逆重叠矩阵（正则正交化，带条件数诊断）
- 块对角打包/拆包（:func:`super_mat` / :func:`mini_mat`），供收敛加速器使用
- 按 :math:`\ell` 复制（:func:`replicate_cube`）
- 角向展开与 m 平均（:func:`full_density` / :func:`make_m_average`），供 meta 泛函路径使用
"""

from __future__ import annotations

import logging

import numpy as np
import scipy.linalg

__all__ = [
    "angular_basis",
    "eig_gsym",
    "full_density",
    "half_inverse",
    "make_m_average",
    "mini_mat",
    "replicate_cube",
    "super_mat",
    "total_density",
    "trace_dot",
]

_LOGGER = logging.getLogger(__name__)


def trace_dot(A: np.ndarray, B: np.ndarray) -> float:
    """:math:`\\mathrm{tr}(AB)`，不显式构造乘积。"""
    return float(np.einsum("ij,ji->", A, B))


def half_inverse(
    S: np.ndarray,
    cutoff: float = 1e-10,
    logger: logging.Logger | None = None,
) -> np.ndarray:
    r"""正则正交化得到的半逆重叠矩阵 :math:`X = U s^{-1/2}`。

    本征值低于 ``cutoff`` 的方向被舍弃，此时 ``X`` 为 ``(n, m)`` 的长方矩阵，:math:`m<n`。
    条件数与舍弃个数仅记录日志，不视为错误。

    Parameters
    ----------
    S : numpy.ndarray
        对称正定（或半正定）重叠矩阵。
    cutoff : float, optional
        本征值截断。
    logger : logging.Logger, optional
        诊断输出使用的日志器。

    Returns
    -------
    X : numpy.ndarray
        满足 :math:`X^T S X = I`。
    """
    log = logger or _LOGGER
    s, U = scipy.linalg.eigh(S)
    keep = s > cutoff
    if not np.any(keep):
        raise ValueError("重叠矩阵没有高于截断的本征值")
    log.info(
        "Smallest eigenvalue of overlap is %.2e, reciprocal condition number is %.2e",
        s[0], s[0] / s[-1],
    )
    if np.count_nonzero(~keep):
        log.info("Dropping %d linearly dependent functions", np.count_nonzero(~keep))
    return U[:, keep] / np.sqrt(s[keep])


def eig_gsym(F: np.ndarray, Sinvh: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    r"""求解 :math:`F C = S C \varepsilon`，返回升序的 ``(E, C)``。

    :math:`F' = X^T F X`，:math:`F' V = V\varepsilon`，:math:`C = X V`。
    """
    Forth = Sinvh.T @ F @ Sinvh
    Forth = 0.5 * (Forth + Forth.T)
    E, V = scipy.linalg.eigh(Forth)
    return E, Sinvh @ V


def super_mat(cube: np.ndarray) -> np.ndarray:
    """把 ``(lmax+1, n, n)`` 的 cube 打包为块对角矩阵 ``((lmax+1)n, (lmax+1)n)``。"""
    return scipy.linalg.block_diag(*cube)


def mini_mat(M: np.ndarray, nblocks: int) -> np.ndarray:
    """:func:`super_mat` 的逆操作：取出 ``nblocks`` 个对角块。"""
    n, rem = divmod(M.shape[0], nblocks)
    if rem or M.shape[0] != M.shape[1]:
        raise ValueError(f"矩阵形状 {M.shape} 不能均分为 {nblocks} 个方块")
    return np.stack([M[i * n:(i + 1) * n, i * n:(i + 1) * n] for i in range(nblocks)])


def replicate_cube(M: np.ndarray, lmax: int) -> np.ndarray:
    """把同一矩阵复制到每个 :math:`\\ell` 通道。"""
    return np.repeat(M[np.newaxis, :, :], lmax + 1, axis=0)


def total_density(Pl: np.ndarray) -> np.ndarray:
    """对 :math:`\\ell` 求和得到径向总密度矩阵。"""
    return Pl.sum(axis=0)


def angular_basis(lmax: int) -> tuple[np.ndarray, np.ndarray]:
    """全角向基的 ``(l, m)`` 列表，顺序为 l 升序、m 从 -l 到 l。"""
    lval = []
    mval = []
    for l in range(lmax + 1):
        for m in range(-l, l + 1):
            lval.append(l)
            mval.append(m)
    return np.array(lval, dtype=int), np.array(mval, dtype=int)


def full_density(Pl: np.ndarray) -> np.ndarray:
    r"""把球平均的 :math:`P_\ell` 展开到全 :math:`(\ell, m)` 表示。

    每个 m 分量分得 :math:`P_\ell/(2\ell+1)`，结果是按 :func:`angular_basis` 顺序排列的块对角矩阵。
    """
    lval, _ = angular_basis(Pl.shape[0] - 1)
    return scipy.linalg.block_diag(*[Pl[l] / (2 * l + 1) for l in lval])


def make_m_average(Mfull: np.ndarray, lmax: int) -> np.ndarray:
    """把全角向矩阵的对角块按 m 平均回 ``(lmax+1, n, n)`` 的 cube。"""
    lval, _ = angular_basis(lmax)
    blocks = mini_mat(Mfull, lval.size)
    out = np.zeros((lmax + 1,) + blocks.shape[1:])
    for iang, l in enumerate(lval):
        out[l] += blocks[iang] / (2 * l + 1)
    return out
