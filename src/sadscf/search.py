r"""电子组态搜索
===============

从 Aufbau 占据出发做局部搜索：每一轮对当前最优组态的每个通道调用
:meth:`~sadscf.orbitals.OrbitalChannel.move_electrons` 生成候选（非受限时取 α、β 候选的直积），
以最优组态的轨道为初猜逐个求解，已求解过的占据方式跳过。若一轮下来没有出现更优的组态
（已收敛优先、能量更低优先），或达到 ``max_rounds``，则停止。

各候选组态只共享只读的基组矩阵；搜索按顺序执行。
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field

from .configuration import Configuration
from .solver import SCFSolver

__all__ = ["ConfigurationSearch", "SearchResult"]

_LOGGER = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """搜索结果。

    Attributes
    ----------
    best : Configuration
        排名第一的组态。
    ranked : list[Configuration]
        所有求解过的组态，按排序规则从优到劣。
    rounds : int
        执行的扩展轮数。
    """

    best: Configuration
    ranked: list[Configuration] = field(default_factory=list)
    rounds: int = 0

    @property
    def converged(self) -> list[Configuration]:
        return [conf for conf in self.ranked if conf.converged]


class ConfigurationSearch:
    """以 :class:`~sadscf.solver.SCFSolver` 为求值器的局部组态搜索。

    Parameters
    ----------
    solver : SCFSolver
        求解器，其基组在所有候选间共享。
    max_rounds : int, optional
        最多扩展轮数；``None`` 表示直到没有改进。
    logger : logging.Logger, optional
        日志器。
    """

    def __init__(
        self,
        solver: SCFSolver,
        max_rounds: int | None = None,
        logger: logging.Logger | None = None,
    ):
        if max_rounds is not None and max_rounds < 0:
            raise ValueError(f"max_rounds 必须非负: {max_rounds}")
        self.solver = solver
        self.max_rounds = max_rounds
        self.logger = logger or _LOGGER

    def run_restricted(self, numel: int) -> SearchResult:
        return self.run(self.solver.restricted_configuration(numel))

    def run_unrestricted(self, nela: int, nelb: int) -> SearchResult:
        return self.run(self.solver.unrestricted_configuration(nela, nelb))

    def run_unrestricted_multiplicity(self, numel: int, multiplicity: int) -> SearchResult:
        """按自旋多重度 :math:`2S+1` 分配 α、β 电子数后搜索。"""
        nunpaired = multiplicity - 1
        if nunpaired < 0 or nunpaired > numel or (numel - nunpaired) % 2:
            raise ValueError(f"{numel} 个电子不能构成多重度 {multiplicity}")
        nelb = (numel - nunpaired) // 2
        return self.run_unrestricted(nelb + nunpaired, nelb)

    def candidates(self, conf: Configuration) -> list[Configuration]:
        """由单步电子迁移生成的候选组态（含未改动的组态本身）。"""
        moves = [ch.move_electrons() for ch in conf.channels]
        return [conf.spawn(list(channels)) for channels in itertools.product(*moves)]

    def run(self, seed: Configuration, logger: logging.Logger | None = None) -> SearchResult:
        """从已初始化并占据的 ``seed`` 出发搜索。"""
        log = logger or self.logger
        self.solver.solve(seed, logger=log)
        evaluated = {seed.occupation_key(): seed}
        best = seed

        rounds = 0
        while self.max_rounds is None or rounds < self.max_rounds:
            rounds += 1
            for trial in self.candidates(best):
                key = trial.occupation_key()
                if key in evaluated:
                    continue
                self.solver.solve(trial, logger=log)
                evaluated[key] = trial

            leader = min(evaluated.values(), key=Configuration.sort_key)
            if not leader.sort_key() < best.sort_key():
                log.info("Round %d: no improvement over % .10f", rounds, best.Econf)
                break
            log.info(
                "Round %d: new best % .10f for configuration %s",
                rounds, leader.Econf, leader.characterize(),
            )
            best = leader

        ranked = sorted(evaluated.values(), key=Configuration.sort_key)
        return SearchResult(best=ranked[0], ranked=ranked, rounds=rounds)
