r"""自洽场求解器
===============

:class:`SCFSolver` 针对单个 :class:`~sadscf.configuration.Configuration` 驱动不动点迭代：

1. :meth:`SCFSolver.fock_build` 由当前轨道组装密度、各能量分量与 Fock cube；
2. 把每个通道的 Fock 与密度 cube 打包为块对角矩阵交给 :class:`~sadscf.diis.DIIS`；
3. 误差与能量变化同时低于 ``convthr`` 即收敛；
4. 拆包外推后的 Fock，按误差大小选择刷新方式：

   - ``dampov < 1`` 且误差高于 ``diiseps``：阻尼刷新
   - 误差高于 ``diisthr``：能级移动刷新（稳定优先）
   - 否则：直接对角化（精度优先）

受限与非受限组态共用同一套流程，区别只在通道个数。加速器历史只在一次 :meth:`SCFSolver.solve`
调用内有效，每次调用都重新创建。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

import numpy as np

from . import functionals
from .basis.base import BasisProvider
from .configuration import Configuration
from .diis import DIIS
from .errors import InvalidStateError
from .linalg import (
    full_density,
    make_m_average,
    mini_mat,
    replicate_cube,
    super_mat,
    total_density,
    trace_dot,
)
from .orbitals import OrbitalChannel

__all__ = [
    "InvalidStateError",
    "SCFConfig",
    "SCFSolver",
]

_LOGGER = logging.getLogger(__name__)


@dataclass
class SCFConfig:
    r"""SCF 迭代参数。

    Attributes
    ----------
    maxit : int
        最大迭代次数。
    shift : float
        能级移动 :math:`\mu`（Hartree）。
    convthr : float
        收敛阈值，同时作用于 DIIS 误差与 :math:`|\Delta E|`。
    dftthr : float
        格点 XC 的密度截断。
    diiseps : float
        误差低于此值开始混入 DIIS（之上只用 ADIIS）。
    diisthr : float
        误差低于此值只用 DIIS，并改用不移动能级的刷新。
    diisorder : int
        DIIS 历史长度。
    dampov : float
        占据-虚轨道块的阻尼因子，``1.0`` 表示不阻尼。
    x_func, c_func : str
        交换、关联泛函名，见 :mod:`sadscf.functionals`。
    x_pars, c_pars : numpy.ndarray | None
        泛函参数。
    """

    maxit: int = 200
    shift: float = 1.0
    convthr: float = 1e-7
    dftthr: float = 1e-12
    diiseps: float = 0.1
    diisthr: float = 0.01
    diisorder: int = 10
    dampov: float = 1.0
    x_func: str = "hf"
    c_func: str = "none"
    x_pars: np.ndarray | None = None
    c_pars: np.ndarray | None = None

    def __post_init__(self):
        if self.maxit < 1:
            raise ValueError(f"maxit 必须 >= 1: {self.maxit}")
        for name in ("shift", "convthr", "dftthr", "diiseps", "diisthr"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} 必须非负: {getattr(self, name)}")
        if self.diisorder < 1:
            raise ValueError(f"diisorder 必须 >= 1: {self.diisorder}")
        if not 0.0 < self.dampov <= 1.0:
            raise ValueError(f"dampov 必须在 (0, 1] 内: {self.dampov}")
        if self.diisthr > self.diiseps:
            raise ValueError(f"要求 diisthr <= diiseps: {self.diisthr} > {self.diiseps}")
        functionals.lookup(self.x_func)
        functionals.lookup(self.c_func)


class SCFSolver:
    """单个组态的 SCF 求解器。

    Parameters
    ----------
    basis : BasisProvider
        提供积分矩阵与算子；在求解器生命周期内只读。
    config : SCFConfig, optional
        迭代参数，默认 :class:`SCFConfig`。
    logger : logging.Logger, optional
        默认日志器；各方法也可单独传入。
    """

    def __init__(
        self,
        basis: BasisProvider,
        config: SCFConfig | None = None,
        logger: logging.Logger | None = None,
    ):
        self.basis = basis
        # 副本：set_func 会改写其中的泛函名
        self.config = replace(config) if config is not None else SCFConfig()
        self.logger = logger or _LOGGER
        self.lmax = basis.lmax

        self.S = basis.overlap()
        self.Sinvh = basis.overlap_half_inverse()
        self.T = basis.kinetic()
        self.Tl = basis.kinetic_l()
        self.Vnuc = basis.nuclear()
        self.H0 = self.T + self.Vnuc
        self.S_super = super_mat(replicate_cube(self.S, self.lmax))
        self.Sinvh_super = super_mat(replicate_cube(self.Sinvh, self.lmax))

        self.set_func(self.config.x_func, self.config.c_func)

    # ------------------------------------------------------------------
    # 泛函
    # ------------------------------------------------------------------
    def set_func(self, x_func: str, c_func: str, logger: logging.Logger | None = None):
        """设置交换、关联泛函，并记录精确交换的混合方式。"""
        log = logger or self.logger
        xinfo = functionals.lookup(x_func)
        functionals.lookup(c_func)
        self.config.x_func = x_func
        self.config.c_func = c_func
        self.omega, self.kfrac, self.kshort = functionals.exact_exchange(x_func)

        if self.kshort != 0.0:
            log.info(
                "Range-separated exchange: %.4f full-range and %.4f short-range exact exchange, omega = %.4f",
                self.kfrac, self.kshort, self.omega,
            )
        elif self.kfrac != 0.0:
            log.info("Hybrid exchange with %.4f exact exchange", self.kfrac)
        elif xinfo.is_dft:
            log.info("Pure density-functional exchange %s", xinfo.name)
        else:
            log.info("No exchange")

    def set_params(self, x_pars: np.ndarray | None, c_pars: np.ndarray | None):
        self.config.x_pars = None if x_pars is None else np.asarray(x_pars, dtype=float)
        self.config.c_pars = None if c_pars is None else np.asarray(c_pars, dtype=float)

    # ------------------------------------------------------------------
    # 辅助
    # ------------------------------------------------------------------
    def kinetic_cube(self) -> np.ndarray:
        r""":math:`\ell(\ell+1) T_\ell`，按 :math:`\ell` 排列。"""
        return np.array([l * (l + 1) * self.Tl for l in range(self.lmax + 1)])

    def replicate_cube(self, M: np.ndarray) -> np.ndarray:
        return replicate_cube(M, self.lmax)

    def total_density(self, Pl: np.ndarray) -> np.ndarray:
        return total_density(Pl)

    def initialize(self, orbs: OrbitalChannel):
        """以裸核 Hamiltonian 的本征态初始化轨道。"""
        orbs.update_orbitals(self.replicate_cube(self.H0) + self.kinetic_cube(), self.Sinvh)

    def restricted_configuration(self, numel: int) -> Configuration:
        """按 Aufbau 占据初始化的受限组态。"""
        orbs = OrbitalChannel(self.lmax, restricted=True)
        self.initialize(orbs)
        orbs.aufbau_occupations(numel)
        return Configuration.restricted(orbs)

    def unrestricted_configuration(self, nela: int, nelb: int) -> Configuration:
        """按 Aufbau 占据初始化的非受限组态。"""
        channels = []
        for nel in (nela, nelb):
            orbs = OrbitalChannel(self.lmax, restricted=False)
            self.initialize(orbs)
            orbs.aufbau_occupations(nel)
            channels.append(orbs)
        return Configuration.unrestricted(*channels)

    # ------------------------------------------------------------------
    # Fock 组装
    # ------------------------------------------------------------------
    def fock_build(self, conf: Configuration, logger: logging.Logger | None = None) -> float:
        r"""由当前轨道组装密度、能量与 Fock cube，返回 :math:`E_\mathrm{conf}`。

        .. math::
            E_\mathrm{kin} = \mathrm{tr}(PT) + \sum_\ell \ell(\ell+1)\,\mathrm{tr}(P_\ell T_\ell),\quad
            E_\mathrm{pot} = \mathrm{tr}(PV),\quad
            E_\mathrm{coul} = \tfrac12\mathrm{tr}(PJ),

        :math:`E_\mathrm{xc}` 含格点 XC 与精确交换 :math:`\tfrac12\sum_\ell \mathrm{tr}(K_\ell P_\ell)`。
        """
        log = logger or self.logger
        cfg = self.config
        nl = self.lmax + 1

        # 1. 密度
        Pl = [ch.update_density() for ch in conf.channels]
        Ptot_l = sum(Pl)
        P = total_density(Ptot_l)

        # 2. 单电子能量
        Ekin = trace_dot(P, self.T) + sum(
            l * (l + 1) * trace_dot(Ptot_l[l], self.Tl) for l in range(nl)
        )
        Epot = trace_dot(P, self.Vnuc)

        # 3. Coulomb
        J = self.basis.coulomb(P)
        Ecoul = 0.5 * trace_dot(P, J)

        # 4. 格点 XC
        Exc = 0.0
        XC = [np.zeros_like(Ptot_l) for _ in conf.channels]
        if functionals.has_dft(cfg.x_func, cfg.c_func):
            if functionals.is_meta(cfg.x_func, cfg.c_func):
                dens = [full_density(Ptot_l)] if conf.is_restricted else [full_density(p) for p in Pl]
                XCfull, Exc, nelnum, ekin = self.basis.eval_fxc_full(
                    cfg.x_func, cfg.x_pars, cfg.c_func, cfg.c_pars, dens, cfg.dftthr
                )
                XC = [make_m_average(M, self.lmax) for M in XCfull]
                log.debug("Kinetic energy from density functional grid %.10f, from trace %.10f", ekin, Ekin)
            else:
                dens = [total_density(p) for p in Pl]
                XCm, Exc, nelnum = self.basis.eval_fxc(
                    cfg.x_func, cfg.x_pars, cfg.c_func, cfg.c_pars, dens, cfg.dftthr
                )
                XC = [self.replicate_cube(M) for M in XCm]
            log.debug(
                "Integrated %.10f electrons, error % .3e", nelnum, nelnum - conf.total_electrons
            )

        # 5. 精确交换
        if self.kfrac != 0.0 or self.kshort != 0.0:
            for s, ch in enumerate(conf.channels):
                Pang = ch.angular_density()
                K = np.zeros_like(Pang)
                if self.kfrac != 0.0:
                    K += self.kfrac * self.basis.exchange(Pang)
                if self.kshort != 0.0:
                    K += self.kshort * self.basis.rs_exchange(Pang, self.omega)
                Exc += 0.5 * sum(trace_dot(K[l], Pl[s][l]) for l in range(nl))
                XC[s] = XC[s] + K

        # 6. Fock
        base = self.replicate_cube(self.H0 + J) + self.kinetic_cube()
        conf.Pl = Pl
        conf.Fl = [base + XC[s] for s in range(len(conf.channels))]
        conf.Ekin = Ekin
        conf.Epot = Epot
        conf.Ecoul = Ecoul
        conf.Exc = Exc
        conf.Econf = Ekin + Epot + Ecoul + Exc
        return conf.Econf

    # ------------------------------------------------------------------
    # 迭代
    # ------------------------------------------------------------------
    def check_configuration(self, conf: Configuration):
        """检查 :meth:`solve` 的前提条件，不满足时抛出 :class:`InvalidStateError`。"""
        if len(conf.channels) not in (1, 2):
            raise InvalidStateError(f"组态必须含 1 或 2 个通道，实际为 {len(conf.channels)}")
        for ch in conf.channels:
            if not ch.has_orbitals:
                raise InvalidStateError("轨道尚未初始化")
            if ch.C.shape[0] != self.lmax + 1:
                raise InvalidStateError(
                    f"轨道含 {ch.C.shape[0]} 个角动量通道，基组要求 {self.lmax + 1} 个"
                )
            if ch.occs.size != self.lmax + 1:
                raise InvalidStateError(
                    f"占据数长度 {ch.occs.size} 与 lmax+1 = {self.lmax + 1} 不符"
                )
            if ch.restricted != conf.is_restricted:
                mode = "受限" if conf.is_restricted else "非受限"
                raise InvalidStateError(f"{mode}组态中的轨道通道模式不一致")

    def _refresh(self, orbs: OrbitalChannel, F: np.ndarray, err: float):
        cfg = self.config
        if cfg.dampov < 1.0 and err > cfg.diiseps:
            orbs.update_orbitals_damped(F, self.Sinvh, self.S, cfg.dampov)
        elif err > cfg.diisthr:
            orbs.update_orbitals_shifted(F, self.Sinvh, self.S, cfg.shift)
        else:
            orbs.update_orbitals(F, self.Sinvh)

    def solve(self, conf: Configuration, logger: logging.Logger | None = None) -> float:
        """迭代至自洽，返回 :math:`E_\\mathrm{conf}`。

        未收敛不视为错误：``conf.converged`` 保持 ``False``，最后的能量、Fock 与
        ``conf.diis_error`` 保留供调用方检查。

        Raises
        ------
        InvalidStateError
            轨道未初始化、占据数长度错误或受限/非受限模式不一致。
        """
        log = logger or self.logger
        cfg = self.config
        self.check_configuration(conf)
        nl = self.lmax + 1

        diis = DIIS(
            self.S_super,
            self.Sinvh_super,
            diiseps=cfg.diiseps,
            diisthr=cfg.diisthr,
            order=cfg.diisorder,
            logger=log,
        )

        Eold = conf.Econf
        conf.converged = False
        for it in range(1, cfg.maxit + 1):
            E = self.fock_build(conf, logger=log)
            dE = np.inf if Eold is None else E - Eold

            Fsuper = [super_mat(F) for F in conf.Fl]
            Psuper = [super_mat(P) for P in conf.Pl]
            err = diis.update(Fsuper, Psuper, E)
            conf.diis_error = err
            conf.iterations = it
            log.info("Iteration %3d: E = % .12f, dE = % .3e, DIIS error = %.3e", it, E, dE, err)

            if err < cfg.convthr and abs(dE) < cfg.convthr:
                conf.converged = True

            Fext = [mini_mat(F, nl) for F in diis.solve_F()]
            for orbs, F in zip(conf.channels, Fext):
                self._refresh(orbs, F, err)

            if conf.converged:
                break
            Eold = E

        if not conf.converged:
            log.warning(
                "Not converged in %d iterations; DIIS error %.3e", cfg.maxit, conf.diis_error
            )
        log.info("Evaluated energy % .16f for configuration %s", conf.Econf, conf.characterize())
        return conf.Econf

    # ------------------------------------------------------------------
    # 屏蔽势
    # ------------------------------------------------------------------
    def _densities(self, conf: Configuration) -> list[np.ndarray]:
        return [total_density(ch.update_density()) for ch in conf.channels]

    def _potential_table(self, P: np.ndarray, rvxc: np.ndarray) -> np.ndarray:
        b = self.basis
        vcoul = b.coulomb_screening(P)
        return np.column_stack(
            [
                b.radii(),
                b.electron_density(P),
                b.electron_density_gradient(P),
                b.electron_density_laplacian(P),
                vcoul,
                rvxc,
                b.quadrature_weights(),
                b.Z - (vcoul + rvxc),
            ]
        )

    def _xc_screening(self, dens: list[np.ndarray]) -> list[np.ndarray]:
        cfg = self.config
        return self.basis.xc_screening(dens, cfg.x_func, cfg.x_pars, cfg.c_func, cfg.c_pars, cfg.dftthr)

    def restricted_potential(self, conf: Configuration) -> np.ndarray:
        r"""受限组态的屏蔽势表。

        八列依次为 :math:`r`、:math:`n`、:math:`n'`、:math:`\nabla^2 n`、:math:`r v_H`、
        :math:`r v_{xc}`、积分权重、:math:`Z - r(v_H + v_{xc})`。
        """
        if not conf.is_restricted:
            raise InvalidStateError("restricted_potential 需要受限组态")
        (P,) = self._densities(conf)
        return self._potential_table(P, self._xc_screening([P])[0])

    def unrestricted_potential(self, conf: Configuration) -> np.ndarray:
        """非受限组态的屏蔽势表，XC 部分取两个自旋势的平均。"""
        if conf.is_restricted:
            raise InvalidStateError("unrestricted_potential 需要非受限组态")
        Pa, Pb = self._densities(conf)
        va, vb = self._xc_screening([Pa, Pb])
        return self._potential_table(Pa + Pb, 0.5 * (va + vb))

    def average_potential(self, conf: Configuration) -> np.ndarray:
        """XC 部分在非极化的总密度上求值；受限组态即 :meth:`restricted_potential`。"""
        if conf.is_restricted:
            return self.restricted_potential(conf)
        Pa, Pb = self._densities(conf)
        return self._potential_table(Pa + Pb, self._xc_screening([Pa + Pb])[0])

    def high_spin_potential(self, conf: Configuration) -> np.ndarray:
        r"""Coulomb 取总密度，XC 取 :math:`2P_\alpha` 上的非极化势。"""
        if conf.is_restricted:
            raise InvalidStateError("high_spin_potential 需要非受限组态")
        Pa, Pb = self._densities(conf)
        return self._potential_table(Pa + Pb, self._xc_screening([2.0 * Pa])[0])

    def low_spin_potential(self, conf: Configuration) -> np.ndarray:
        r"""Coulomb 取总密度，XC 取 :math:`2P_\beta` 上的非极化势。"""
        if conf.is_restricted:
            raise InvalidStateError("low_spin_potential 需要非受限组态")
        Pa, Pb = self._densities(conf)
        return self._potential_table(Pa + Pb, self._xc_screening([2.0 * Pb])[0])

    def weighted_potential(self, conf: Configuration) -> np.ndarray:
        """XC 部分按自旋密度加权平均；总密度低于 ``dftthr`` 处为零。"""
        if conf.is_restricted:
            return self.restricted_potential(conf)
        Pa, Pb = self._densities(conf)
        va, vb = self._xc_screening([Pa, Pb])
        na = self.basis.electron_density(Pa)
        nb = self.basis.electron_density(Pb)
        ntot = na + nb
        rvxc = np.zeros_like(ntot)
        ok = ntot > self.config.dftthr
        rvxc[ok] = (na[ok] * va[ok] + nb[ok] * vb[ok]) / ntot[ok]
        return self._potential_table(Pa + Pb, rvxc)

    def nuclear_density(self, conf: Configuration) -> float:
        """原子核处的总电子密度。"""
        return self.basis.nuclear_density(sum(self._densities(conf)))

    def nuclear_density_gradient(self, conf: Configuration) -> float:
        """原子核处总电子密度的径向导数。"""
        return self.basis.nuclear_density_gradient(sum(self._densities(conf)))
