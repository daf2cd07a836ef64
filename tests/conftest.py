import numpy as np
import pytest

from sadscf.basis import FDRadialBasis
from sadscf.grid import radial_grid_exp
from sadscf.solver import SCFConfig, SCFSolver


class NonInteractingBasis(FDRadialBasis):
    """关闭电子间 Coulomb 作用的有限元基：Fock 与密度无关，基态能量可由裸核本征值精确给出。"""

    def coulomb(self, P):
        return np.zeros_like(P)


def make_basis(Z, lmax, n=400, rmax=40.0, cls=FDRadialBasis):
    r, _ = radial_grid_exp(n, rmax)
    return cls(r, Z, lmax)


@pytest.fixture
def helium_basis():
    return make_basis(2, 0, n=500)


@pytest.fixture
def hydrogen_basis():
    return make_basis(1, 1, n=400)


@pytest.fixture
def free_helium_solver():
    basis = make_basis(2, 0, n=200, cls=NonInteractingBasis)
    return SCFSolver(basis, SCFConfig(x_func="none", c_func="none"))
