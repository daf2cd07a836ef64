r"""试探电子态
=============

:class:`Configuration` 统一表示受限（一个自旋配对通道）与非受限（α、β 两个通道）两种变体：
SCF 的 Fock 组装与迭代只依赖通道个数，不再区分两套代码路径。

排序规则：已收敛的组态排在未收敛者之前；收敛状态相同时按 :math:`E_\mathrm{conf}` 升序。
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .orbitals import OrbitalChannel

__all__ = ["Configuration"]


@dataclass(eq=False)
class Configuration:
    """一个试探电子态及其派生量。

    Attributes
    ----------
    channels : list[OrbitalChannel]
        受限时为 ``[orbs]``，非受限时为 ``[orbsa, orbsb]``。
    Pl, Fl : list[numpy.ndarray]
        每个通道的密度 cube 与 Fock cube，由 :meth:`sadscf.solver.SCFSolver.fock_build` 填写。
    Ekin, Epot, Ecoul, Exc, Econf : float
        能量分量，``Econf = Ekin + Epot + Ecoul + Exc``；尚未求值时 ``Econf`` 为 ``None``。
    converged : bool
        最近一次 ``solve`` 是否收敛。
    diis_error : float
        最近一次迭代的加速器误差。
    iterations : int
        最近一次 ``solve`` 的迭代次数。
    """

    channels: list[OrbitalChannel]
    Pl: list[np.ndarray] = field(default_factory=list)
    Fl: list[np.ndarray] = field(default_factory=list)
    Ekin: float = 0.0
    Epot: float = 0.0
    Ecoul: float = 0.0
    Exc: float = 0.0
    Econf: float | None = None
    converged: bool = False
    diis_error: float = np.inf
    iterations: int = 0

    @classmethod
    def restricted(cls, orbs: OrbitalChannel) -> "Configuration":
        return cls([orbs])

    @classmethod
    def unrestricted(cls, orbsa: OrbitalChannel, orbsb: OrbitalChannel) -> "Configuration":
        return cls([orbsa, orbsb])

    @property
    def is_restricted(self) -> bool:
        return len(self.channels) == 1

    @property
    def orbs(self) -> OrbitalChannel:
        if not self.is_restricted:
            raise AttributeError("非受限组态请使用 orbsa / orbsb")
        return self.channels[0]

    @property
    def orbsa(self) -> OrbitalChannel:
        return self.channels[0]

    @property
    def orbsb(self) -> OrbitalChannel:
        if self.is_restricted:
            raise AttributeError("受限组态只有一个通道")
        return self.channels[1]

    @property
    def total_electrons(self) -> int:
        return sum(ch.total_electrons for ch in self.channels)

    def occupation_key(self) -> tuple:
        """用于判重的占据数元组。"""
        return tuple(tuple(int(n) for n in ch.occs) for ch in self.channels)

    def sort_key(self) -> tuple:
        energy = np.inf if self.Econf is None else self.Econf
        return (not self.converged, energy)

    def spawn(self, channels: list[OrbitalChannel]) -> "Configuration":
        """以新的通道（通常来自电子迁移）创建未求值的组态。"""
        if len(channels) != len(self.channels):
            raise ValueError("通道个数必须与原组态一致")
        return Configuration(list(channels))

    def characterize(self) -> str:
        if self.is_restricted:
            return self.channels[0].characterize()
        return "alpha: {} / beta: {}".format(*(ch.characterize() for ch in self.channels))

    def __lt__(self, other: "Configuration") -> bool:
        return self.sort_key() < other.sort_key()

    def __eq__(self, other):
        if not isinstance(other, Configuration):
            return NotImplemented
        return len(self.channels) == len(other.channels) and all(
            a == b for a, b in zip(self.channels, other.channels)
        )

    __hash__ = None
