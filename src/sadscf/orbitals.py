r"""单个自旋通道的轨道与占据模型
=================================

:class:`OrbitalChannel` 持有角动量通道 :math:`\ell = 0..\ell_\max` 上的

- 占据数 ``occs[l]``：该 :math:`\ell` 通道的总电子数，与径向节点无关；
- 轨道系数 ``C[l]``：形状 ``(nbf, nmo)``，列按能量升序；
- 轨道能量 ``E[l]``：形状 ``(nmo,)``，升序。

每个径向节点（同一 :math:`\ell` 的第 ``node`` 个轨道）最多容纳
:func:`shell_capacity` 个电子，多余电子依次溢出到同一 :math:`\ell` 的下一个径向节点。

能量相同的壳层排序规则：先按能量，再按径向节点序号，最后按 :math:`\ell`（稳定的字典序）。
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import InvalidStateError
from .linalg import eig_gsym

__all__ = [
    "SHELL_TYPES",
    "OrbitalChannel",
    "Shell",
    "shell_capacity",
]

SHELL_TYPES = "spdfghik"


def shell_capacity(l: int, restricted: bool) -> int:
    r"""单个径向节点的电子容量：自旋配对时为 :math:`4\ell+2`，否则为 :math:`2\ell+1`。"""
    if l < 0:
        raise ValueError(f"角动量量子数必须非负: l={l}")
    return 4 * l + 2 if restricted else 2 * l + 1


@dataclass(frozen=True)
class Shell:
    """一个（部分）占据的壳层。"""

    l: int
    node: int
    nocc: int
    energy: float

    @property
    def n(self) -> int:
        """主量子数 :math:`n = \\ell + \\text{node} + 1`。"""
        return self.l + self.node + 1

    @property
    def label(self) -> str:
        return f"{self.n}{SHELL_TYPES[self.l]}"


class OrbitalChannel:
    """一个自旋通道（或自旋配对的受限通道）的轨道与占据。

    Parameters
    ----------
    lmax : int
        最大角动量。
    restricted : bool
        ``True`` 表示自旋配对（容量 :math:`4\\ell+2`）。
    occs : array_like, optional
        初始占据，长度须为 ``lmax+1``；默认全零。

    Notes
    -----
    新建的通道没有轨道（``C is None``），须先经 :meth:`update_orbitals` 刷新。
    占据数可在任何时候通过 :attr:`occs` 赋值修改，与轨道刷新相互独立。
    """

    def __init__(self, lmax: int, restricted: bool, occs=None):
        if lmax < 0:
            raise ValueError(f"lmax 必须非负: {lmax}")
        self.lmax = int(lmax)
        self.restricted = bool(restricted)
        self.C: np.ndarray | None = None
        self.E: np.ndarray | None = None
        self._occs = np.zeros(self.lmax + 1, dtype=int)
        if occs is not None:
            self.occs = occs

    # ------------------------------------------------------------------
    # 占据
    # ------------------------------------------------------------------
    @property
    def occs(self) -> np.ndarray:
        return self._occs

    @occs.setter
    def occs(self, value):
        arr = np.asarray(value)
        if arr.ndim != 1:
            raise ValueError("占据数必须是一维数组")
        if np.any(arr < 0):
            raise ValueError(f"占据数必须非负: {arr.tolist()}")
        if not np.all(np.equal(np.mod(arr, 1), 0)):
            raise ValueError(f"占据数必须为整数: {arr.tolist()}")
        # 长度与 lmax 的一致性由 SCFSolver.solve 检查
        self._occs = arr.astype(int)

    @property
    def total_electrons(self) -> int:
        return int(self._occs.sum())

    @property
    def has_orbitals(self) -> bool:
        return self.C is not None and self.E is not None

    def shell_capacity(self, l: int) -> int:
        return shell_capacity(l, self.restricted)

    def node_occupations(self, l: int) -> np.ndarray:
        """通道 ``l`` 各径向节点的电子数（只含被占据的节点）。"""
        cap = self.shell_capacity(l)
        nfull, rest = divmod(int(self._occs[l]), cap)
        nodes = [cap] * nfull + ([rest] if rest else [])
        if self.has_orbitals and len(nodes) > self.C.shape[2]:
            raise ValueError(
                f"l={l} 的 {self._occs[l]} 个电子超出 {self.C.shape[2]} 个径向轨道的容量"
            )
        return np.array(nodes, dtype=int)

    def count_occupied(self) -> np.ndarray:
        """每个 :math:`\\ell` 通道被占据的径向节点数。"""
        return np.array([self.node_occupations(l).size for l in range(self._occs.size)], dtype=int)

    def get_occupied(self) -> list[Shell]:
        """按能量升序列出被占据的壳层。"""
        self._require_orbitals()
        shells = []
        for l in range(self._occs.size):
            for node, nocc in enumerate(self.node_occupations(l)):
                shells.append(Shell(l, node, int(nocc), float(self.E[l, node])))
        shells.sort(key=lambda sh: (sh.energy, sh.node, sh.l))
        return shells

    def aufbau_occupations(self, numel: int):
        """按轨道能量从低到高填充 ``numel`` 个电子。

        每个 ``(l, node)`` 壳层最多装 :func:`shell_capacity` 个电子；
        电子数超过总容量时多余部分被丢弃，最后一个壳层可以部分占据。
        """
        if numel < 0:
            raise ValueError(f"电子数必须非负: {numel}")
        self._require_orbitals()
        nl, nmo = self.E.shape
        lidx = np.repeat(np.arange(nl), nmo)
        node = np.tile(np.arange(nmo), nl)
        energy = self.E.ravel()
        order = np.lexsort((lidx, node, energy))

        occs = np.zeros(nl, dtype=int)
        left = int(numel)
        for idx in order:
            if left == 0:
                break
            nput = min(self.shell_capacity(int(lidx[idx])), left)
            occs[lidx[idx]] += nput
            left -= nput
        self._occs = occs

    def move_electrons(self) -> list["OrbitalChannel"]:
        """生成所有单步电子迁移得到的候选通道。

        对每一对不同的 ``(from, to)`` 通道和每个迁移数
        ``1..min(cap(from), cap(to))``（须有足够电子），生成一个副本。
        列表首项总是未改动的副本（零迁移）；没有电子可迁移时它就是全零占据的唯一候选。
        """
        nl = self._occs.size
        moves = [self.copy()]
        for lfrom in range(nl):
            for lto in range(nl):
                if lfrom == lto:
                    continue
                nmax = min(self.shell_capacity(lfrom), self.shell_capacity(lto))
                for nmove in range(1, nmax + 1):
                    if self._occs[lfrom] < nmove:
                        break
                    trial = self.copy()
                    trial._occs[lfrom] -= nmove
                    trial._occs[lto] += nmove
                    moves.append(trial)
        return moves

    # ------------------------------------------------------------------
    # 轨道刷新
    # ------------------------------------------------------------------
    def update_orbitals(self, F: np.ndarray, Sinvh: np.ndarray):
        """对每个 :math:`\\ell` 求解 :math:`F_\\ell C = S C \\varepsilon` 并保存升序本征对。"""
        E = []
        C = []
        for Fl in F:
            El, Cl = eig_gsym(Fl, Sinvh)
            E.append(El)
            C.append(Cl)
        self.E = np.array(E)
        self.C = np.array(C)

    def update_orbitals_damped(self, F: np.ndarray, Sinvh: np.ndarray, S: np.ndarray, dampov: float):
        r"""阻尼刷新：在当前分子轨道基中把占据-虚轨道耦合块乘以 ``dampov`` 后再对角化。

        .. math::
            F^{\mathrm{MO}} = C^T F C,\qquad
            F^{\mathrm{MO}}_{ov} \to d\,F^{\mathrm{MO}}_{ov},\qquad
            F' = S C F^{\mathrm{MO}} C^T S.
        """
        if not 0.0 < dampov <= 1.0:
            raise ValueError(f"dampov 必须在 (0, 1] 内: {dampov}")
        self._require_orbitals()
        Fd = np.array(F, copy=True)
        nocc = self.count_occupied()
        for l in range(Fd.shape[0]):
            o = nocc[l]
            if o == 0:
                continue
            C = self.C[l]
            Fmo = C.T @ Fd[l] @ C
            Fmo[:o, o:] *= dampov
            Fmo[o:, :o] *= dampov
            SC = S @ C
            Fd[l] = SC @ Fmo @ SC.T
        self.update_orbitals(Fd, Sinvh)

    def update_orbitals_shifted(self, F: np.ndarray, Sinvh: np.ndarray, S: np.ndarray, shift: float):
        r"""能级移动刷新：:math:`F_\ell + \mu\, S C_v C_v^T S`，:math:`C_v` 为虚轨道列。

        没有占据轨道的 :math:`\ell` 通道不做移动。
        """
        if shift < 0:
            raise ValueError(f"能级移动必须非负: {shift}")
        self._require_orbitals()
        Fs = np.array(F, copy=True)
        nocc = self.count_occupied()
        for l in range(Fs.shape[0]):
            if nocc[l] == 0:
                continue
            SCv = S @ self.C[l][:, nocc[l]:]
            Fs[l] += shift * (SCv @ SCv.T)
        self.update_orbitals(Fs, Sinvh)

    # ------------------------------------------------------------------
    # 密度
    # ------------------------------------------------------------------
    def _weighted_density(self, per_m: bool) -> np.ndarray:
        self._require_orbitals()
        nl, nbf, _ = self.C.shape
        P = np.zeros((nl, nbf, nbf))
        for l in range(nl):
            f = self.node_occupations(l).astype(float)
            if f.size == 0:
                continue
            if per_m:
                f /= self.shell_capacity(l)
            Cocc = self.C[l][:, :f.size]
            P[l] = (Cocc * f) @ Cocc.T
        return P

    def update_density(self) -> np.ndarray:
        r"""密度 cube :math:`P_\ell = \sum_{\text{node}} n_{\text{node}}\, c\, c^T`。"""
        return self._weighted_density(per_m=False)

    def angular_density(self) -> np.ndarray:
        r"""每个 m（及自旋）分量的密度 :math:`\sum n_{\text{node}}/\mathrm{cap}(\ell)\; c\,c^T`，交换算子的输入。"""
        return self._weighted_density(per_m=True)

    # ------------------------------------------------------------------
    # 诊断
    # ------------------------------------------------------------------
    def gap(self) -> np.ndarray:
        """各 :math:`\\ell` 通道 LUMO 与 HOMO 的能隙；无占据或无虚轨道的通道为 NaN。"""
        self._require_orbitals()
        nocc = self.count_occupied()
        gaps = np.full(nocc.size, np.nan)
        for l, o in enumerate(nocc):
            if 0 < o < self.E.shape[1]:
                gaps[l] = self.E[l, o] - self.E[l, o - 1]
        return gaps

    def characterize(self) -> str:
        """电子组态字符串，例如 ``"1s^{2} 2s^{2} 2p^{6}"``。"""
        return " ".join(f"{sh.label}^{{{sh.nocc}}}" for sh in self.get_occupied())

    def copy(self) -> "OrbitalChannel":
        new = OrbitalChannel(self.lmax, self.restricted, self._occs.copy())
        if self.has_orbitals:
            new.C = self.C.copy()
            new.E = self.E.copy()
        return new

    def _require_orbitals(self):
        if not self.has_orbitals:
            raise InvalidStateError("轨道尚未初始化")

    def __eq__(self, other):
        if not isinstance(other, OrbitalChannel):
            return NotImplemented
        return self.restricted == other.restricted and np.array_equal(self._occs, other._occs)

    __hash__ = None

    def __repr__(self):
        mode = "restricted" if self.restricted else "unrestricted"
        return f"OrbitalChannel(lmax={self.lmax}, {mode}, occs={self._occs.tolist()})"
