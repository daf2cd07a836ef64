r"""收敛加速器：Pulay DIIS 与 ADIIS
===================================

加速器在每次 SCF 迭代接收打包后的块对角 Fock 与密度矩阵（每个自旋通道一对）以及当前能量，
返回误差估计，并由历史外推出新的 Fock 矩阵。

误差
----
在正交化基下的对易子

.. math::
    e_\sigma = X^T (F_\sigma P_\sigma S - S P_\sigma F_\sigma) X,\qquad
    \mathrm{err} = \max_\sigma \max |e_\sigma| .

外推
----
- DIIS [Pulay]_：最小化 :math:`\|\sum_i c_i e_i\|^2`，约束 :math:`\sum_i c_i = 1`。
- ADIIS [HuYang]_：最小化二阶能量模型

  .. math::
      f(c) = E_n + \sum_i c_i\,\mathrm{tr}\,[(P_i-P_n)F_n]
      + \tfrac12\sum_{ij} c_i c_j\,\mathrm{tr}\,[(P_i-P_n)(F_j-F_n)],

  以 :math:`c_i = t_i^2/\sum_j t_j^2` 参数化保证凸组合。

两者按误差混合：``err > diiseps`` 时只用 ADIIS，``err < diisthr`` 时只用 DIIS，
其间线性过渡。历史长度不超过 ``order``。

References
----------
.. [Pulay] P. Pulay, Chem. Phys. Lett. 73, 393 (1980)
.. [HuYang] X. Hu and W. Yang, J. Chem. Phys. 132, 054109 (2010)
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

import numpy as np
import scipy.optimize

__all__ = ["DIIS"]

_LOGGER = logging.getLogger(__name__)


@dataclass
class _Entry:
    F: list[np.ndarray]
    P: list[np.ndarray]
    E: float
    errvec: list[np.ndarray]
    err: float


class DIIS:
    """受限（一个通道）与非受限（两个通道）通用的 DIIS/ADIIS 加速器。

    Parameters
    ----------
    S : numpy.ndarray
        打包后的重叠矩阵。
    Sinvh : numpy.ndarray
        打包后的半逆重叠矩阵。
    usediis, useadiis : bool
        是否启用 DIIS / ADIIS；两者都关闭时直接返回最新 Fock。
    diiseps : float
        误差低于此值开始混入 DIIS。
    diisthr : float
        误差低于此值只用 DIIS。
    order : int
        历史长度上限。
    logger : logging.Logger, optional
        日志器。
    """

    def __init__(
        self,
        S: np.ndarray,
        Sinvh: np.ndarray,
        usediis: bool = True,
        useadiis: bool = True,
        diiseps: float = 0.1,
        diisthr: float = 0.01,
        order: int = 10,
        logger: logging.Logger | None = None,
    ):
        if order < 1:
            raise ValueError(f"DIIS 历史长度必须 >= 1: {order}")
        if diisthr > diiseps:
            raise ValueError(f"要求 diisthr <= diiseps: {diisthr} > {diiseps}")
        self.S = S
        self.Sinvh = Sinvh
        self.usediis = usediis
        self.useadiis = useadiis
        self.diiseps = diiseps
        self.diisthr = diisthr
        self.logger = logger or _LOGGER
        self._history: deque[_Entry] = deque(maxlen=order)

    def __len__(self):
        return len(self._history)

    def clear(self):
        self._history.clear()

    def error_vectors(self, F: list[np.ndarray], P: list[np.ndarray]) -> list[np.ndarray]:
        X = self.Sinvh
        out = []
        for Fs, Ps in zip(F, P):
            FPS = Fs @ Ps @ self.S
            out.append(X.T @ (FPS - FPS.T) @ X)
        return out

    def update(self, F: list[np.ndarray], P: list[np.ndarray], E: float) -> float:
        """加入一组 ``(F, P, E)``，返回其误差。"""
        if len(F) != len(P):
            raise ValueError("Fock 与密度矩阵的通道数必须一致")
        errvec = self.error_vectors(F, P)
        err = max(float(np.max(np.abs(e))) for e in errvec)
        self._history.append(_Entry([f.copy() for f in F], [p.copy() for p in P], float(E), errvec, err))
        return err

    def solve_F(self) -> list[np.ndarray]:
        """外推得到的 Fock 矩阵（每个通道一个）。"""
        if not self._history:
            raise RuntimeError("DIIS 历史为空")
        latest = self._history[-1]
        if len(self._history) == 1 or not (self.usediis or self.useadiis):
            return [f.copy() for f in latest.F]

        err = latest.err
        if not self.useadiis:
            wdiis = 1.0
        elif not self.usediis:
            wdiis = 0.0
        elif err >= self.diiseps:
            wdiis = 0.0
        elif err <= self.diisthr:
            wdiis = 1.0
        else:
            wdiis = (self.diiseps - err) / (self.diiseps - self.diisthr)

        c = np.zeros(len(self._history))
        if wdiis > 0.0:
            c += wdiis * self._diis_weights()
        if wdiis < 1.0:
            c += (1.0 - wdiis) * self._adiis_weights()
        self.logger.debug(
            "DIIS weight %.3f, coefficients %s", wdiis, np.array2string(c, precision=4)
        )

        nch = len(latest.F)
        return [sum(ci * h.F[s] for ci, h in zip(c, self._history)) for s in range(nch)]

    def _diis_weights(self) -> np.ndarray:
        n = len(self._history)
        B = np.zeros((n, n))
        for i, hi in enumerate(self._history):
            for j in range(i + 1):
                hj = self._history[j]
                B[i, j] = B[j, i] = sum(float(np.vdot(a, b)) for a, b in zip(hi.errvec, hj.errvec))
        # 归一化以改善条件数
        scale = np.max(np.abs(np.diag(B)))
        if scale > 0.0:
            B /= scale

        A = -np.ones((n + 1, n + 1))
        A[:n, :n] = B
        A[n, n] = 0.0
        rhs = np.zeros(n + 1)
        rhs[n] = -1.0
        try:
            sol = np.linalg.solve(A, rhs)
        except np.linalg.LinAlgError:
            self.logger.debug("DIIS matrix is singular, using least squares")
            sol = np.linalg.lstsq(A, rhs, rcond=None)[0]
        return sol[:n]

    def _adiis_weights(self) -> np.ndarray:
        hist = list(self._history)
        n = len(hist)
        ref = hist[-1]
        nch = len(ref.F)

        dP = [[h.P[s] - ref.P[s] for s in range(nch)] for h in hist]
        dF = [[h.F[s] - ref.F[s] for s in range(nch)] for h in hist]
        d = np.array([sum(np.sum(dP[i][s] * ref.F[s]) for s in range(nch)) for i in range(n)])
        M = np.array(
            [[sum(np.sum(dP[i][s] * dF[j][s]) for s in range(nch)) for j in range(n)] for i in range(n)]
        )
        M = 0.5 * (M + M.T)

        def coefficients(t):
            t2 = t * t
            return t2 / np.sum(t2)

        def model(t):
            c = coefficients(t)
            return float(c @ d + 0.5 * c @ M @ c)

        x0 = np.full(n, 0.1)
        x0[-1] = 1.0
        res = scipy.optimize.minimize(model, x0, method="BFGS")
        return coefficients(res.x)
