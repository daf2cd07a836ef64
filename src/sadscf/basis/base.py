"""
ABC: 基组提供者
===============

SCF 核心通过本接口获得全部积分矩阵与算子。实现须保证矩阵在对象生命周期内不变，
多个组态可共享同一实例（只读）。

约定：

- 密度矩阵以系数表示，满足 :math:`\\mathrm{tr}(PS) = N`；
- 由 :meth:`coulomb`、:meth:`exchange`、:meth:`eval_fxc` 返回的矩阵可直接加到 Fock 上，
  角向归一化因子由实现内部处理。
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

__all__ = ["BasisProvider"]


class BasisProvider(ABC):
    """径向基组及其积分的抽象接口。"""

    lmax: int
    """最大角动量。"""

    Z: float
    """核电荷。"""

    @property
    @abstractmethod
    def nbf(self) -> int:
        """径向基函数个数。"""

    # 固定矩阵 ------------------------------------------------------------
    @abstractmethod
    def overlap(self) -> np.ndarray:
        """重叠矩阵 S。"""

    @abstractmethod
    def overlap_half_inverse(self) -> np.ndarray:
        """半逆重叠矩阵 X，满足 :math:`X^T S X = I`。"""

    @abstractmethod
    def kinetic(self) -> np.ndarray:
        """与 :math:`\\ell` 无关的动能矩阵 T。"""

    @abstractmethod
    def kinetic_l(self) -> np.ndarray:
        """离心项矩阵 :math:`T_\\ell`，通道 :math:`\\ell` 的贡献为 :math:`\\ell(\\ell+1) T_\\ell`。"""

    @abstractmethod
    def nuclear(self) -> np.ndarray:
        """核吸引矩阵。"""

    # 依赖密度的算子 -------------------------------------------------------
    @abstractmethod
    def coulomb(self, P: np.ndarray) -> np.ndarray:
        """总径向密度矩阵 P 产生的 Coulomb 矩阵 J。"""

    @abstractmethod
    def exchange(self, Pang: np.ndarray) -> np.ndarray:
        """全程交换 cube；``Pang`` 为每个 m 分量的角向密度 cube。"""

    @abstractmethod
    def rs_exchange(self, Pang: np.ndarray, omega: float) -> np.ndarray:
        """屏蔽参数为 ``omega`` 的短程交换 cube。"""

    @abstractmethod
    def eval_fxc(
        self,
        x_func: str,
        x_pars: np.ndarray | None,
        c_func: str,
        c_pars: np.ndarray | None,
        densities: list[np.ndarray],
        dftthr: float,
    ) -> tuple[list[np.ndarray], float, float]:
        """格点 XC 求值。

        ``densities`` 含一个（非极化总密度）或两个（α、β）径向密度矩阵。
        返回 ``(每个通道的 XC 矩阵, Exc, 积分电子数)``。
        """

    @abstractmethod
    def eval_fxc_full(
        self,
        x_func: str,
        x_pars: np.ndarray | None,
        c_func: str,
        c_pars: np.ndarray | None,
        densities: list[np.ndarray],
        dftthr: float,
    ) -> tuple[list[np.ndarray], float, float, float]:
        """全角向表示下的 XC 求值（meta 型泛函）。

        密度与返回的 XC 矩阵都按 :func:`sadscf.linalg.angular_basis` 排列为块对角矩阵。
        返回 ``(XC 矩阵, Exc, 积分电子数, 积分动能密度)``。
        """

    # 格点量 ----------------------------------------------------------------
    @abstractmethod
    def radii(self) -> np.ndarray:
        """径向求值点。"""

    @abstractmethod
    def quadrature_weights(self) -> np.ndarray:
        """与 :meth:`radii` 对应的径向积分权重。"""

    @abstractmethod
    def orbitals(self, C: np.ndarray) -> np.ndarray:
        """轨道系数在 :meth:`radii` 上的径向函数值 :math:`R(r)`。"""

    @abstractmethod
    def electron_density(self, P: np.ndarray) -> np.ndarray:
        """体电子密度 :math:`n(r)`。"""

    @abstractmethod
    def electron_density_gradient(self, P: np.ndarray) -> np.ndarray:
        """:math:`\\mathrm{d}n/\\mathrm{d}r`。"""

    @abstractmethod
    def electron_density_laplacian(self, P: np.ndarray) -> np.ndarray:
        """:math:`\\nabla^2 n`。"""

    @abstractmethod
    def coulomb_screening(self, P: np.ndarray) -> np.ndarray:
        """:math:`r\\,v_H(r)`。"""

    @abstractmethod
    def xc_screening(
        self,
        densities: list[np.ndarray],
        x_func: str,
        x_pars: np.ndarray | None,
        c_func: str,
        c_pars: np.ndarray | None,
        dftthr: float,
    ) -> list[np.ndarray]:
        """每个通道的 :math:`r\\,v_{xc}(r)`。"""

    @abstractmethod
    def nuclear_density(self, P: np.ndarray) -> float:
        """原子核处的电子密度 :math:`n(0)`。"""

    @abstractmethod
    def nuclear_density_gradient(self, P: np.ndarray) -> float:
        """原子核处的密度导数 :math:`n'(0)`。"""

    @abstractmethod
    def radial_moment_matrices(self) -> list[tuple[int, np.ndarray]]:
        """``(k, M_k)`` 列表，:math:`\\mathrm{tr}(P M_k) = \\langle r^k\\rangle N`。"""
