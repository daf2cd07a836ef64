"""sadscf 包
===========

球平均原子的自洽场（SCF）收敛引擎：

- 轨道占据模型（:class:`~sadscf.orbitals.OrbitalChannel`）：Aufbau 填充、电子迁移、
  普通/阻尼/能级移动的本征刷新
- 受限与非受限统一的试探态（:class:`~sadscf.configuration.Configuration`）
- Fock 组装与 DIIS/ADIIS 加速的迭代（:class:`~sadscf.solver.SCFSolver`）
- 以 SCF 为求值器的电子组态局部搜索（:class:`~sadscf.search.ConfigurationSearch`）

积分由 :class:`~sadscf.basis.BasisProvider` 提供；包内自带集总线性有限元径向基
:class:`~sadscf.basis.FDRadialBasis`，交换关联为 LDA（Dirac、PZ81、VWN5）与精确/短程精确交换。

注：本项目所有文档与注释均使用中文，Docstring 采用 Sphinx + NumPy 风格，公式使用 ``:math:`` 标记。
"""

from sadscf.basis import BasisProvider, FDRadialBasis
from sadscf.configuration import Configuration
from sadscf.errors import InvalidStateError
from sadscf.grid import radial_grid_exp, radial_grid_linear, trapezoid_weights
from sadscf.orbitals import OrbitalChannel, Shell, shell_capacity
from sadscf.search import ConfigurationSearch, SearchResult
from sadscf.solver import SCFConfig, SCFSolver

__all__ = [
    "BasisProvider",
    "Configuration",
    "ConfigurationSearch",
    "FDRadialBasis",
    "InvalidStateError",
    "OrbitalChannel",
    "SCFConfig",
    "SCFSolver",
    "SearchResult",
    "Shell",
    "radial_grid_exp",
    "radial_grid_linear",
    "shell_capacity",
    "trapezoid_weights",
]

__version__ = "0.1.0"
