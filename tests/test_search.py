"""电子组态搜索。"""

import numpy as np
import pytest
from conftest import NonInteractingBasis, make_basis

from sadscf.search import ConfigurationSearch
from sadscf.solver import SCFConfig, SCFSolver


@pytest.fixture
def free_lithium_solver():
    basis = make_basis(3, 1, n=200, cls=NonInteractingBasis)
    return SCFSolver(basis, SCFConfig(x_func="none", c_func="none"))


@pytest.mark.search
@pytest.mark.quick
def test_candidate_count(free_lithium_solver):
    conf = free_lithium_solver.restricted_configuration(2)
    assert conf.orbs.occs.tolist() == [2, 0]
    search = ConfigurationSearch(free_lithium_solver)
    cands = search.candidates(conf)
    # 恒等 + (0->1) 迁移 1、2 个电子
    assert len(cands) == 3
    assert cands[0] == conf
    assert all(c.Econf is None for c in cands)

    uconf = free_lithium_solver.unrestricted_configuration(2, 1)
    na = len(uconf.orbsa.move_electrons())
    nb = len(uconf.orbsb.move_electrons())
    assert len(search.candidates(uconf)) == na * nb


@pytest.mark.search
@pytest.mark.quick
def test_search_moves_electrons_to_lower_shell(free_lithium_solver):
    seed = free_lithium_solver.restricted_configuration(2)
    seed.orbs.occs = [0, 2]
    result = ConfigurationSearch(free_lithium_solver).run(seed)

    assert result.best.orbs.occs.tolist() == [2, 0]
    assert result.rounds == 2
    assert len(result.ranked) == 3
    energies = [c.Econf for c in result.ranked]
    assert energies == sorted(energies)
    assert all(c.converged for c in result.ranked)
    assert len(result.converged) == 3


@pytest.mark.search
@pytest.mark.quick
def test_max_rounds_zero_only_solves_seed(free_lithium_solver):
    seed = free_lithium_solver.restricted_configuration(2)
    seed.orbs.occs = [0, 2]
    result = ConfigurationSearch(free_lithium_solver, max_rounds=0).run(seed)
    assert result.rounds == 0
    assert result.ranked == [seed]
    assert result.best is seed


@pytest.mark.search
def test_unrestricted_hydrogen_falls_to_1s(hydrogen_basis):
    solver = SCFSolver(hydrogen_basis)
    seed = solver.unrestricted_configuration(1, 0)
    seed.orbsa.occs = [0, 1]
    result = ConfigurationSearch(solver).run(seed)
    best = result.best
    assert best.orbsa.occs.tolist() == [1, 0]
    assert best.orbsb.occs.tolist() == [0, 0]
    assert np.isclose(best.Econf, -0.5, atol=1e-3)
    assert result.rounds == 2
    # 球平均的单个 p 电子仍有残余自相互作用
    assert result.ranked[-1].Econf > -0.125


@pytest.mark.search
def test_multiplicity_search(hydrogen_basis):
    result = ConfigurationSearch(SCFSolver(hydrogen_basis)).run_unrestricted_multiplicity(1, 2)
    assert result.best.orbsa.total_electrons == 1
    assert result.best.orbsb.total_electrons == 0


@pytest.mark.search
@pytest.mark.quick
@pytest.mark.parametrize("numel, mult", [(3, 3), (2, 0), (1, 3)])
def test_invalid_multiplicity(free_lithium_solver, numel, mult):
    with pytest.raises(ValueError):
        ConfigurationSearch(free_lithium_solver).run_unrestricted_multiplicity(numel, mult)


@pytest.mark.search
@pytest.mark.quick
def test_negative_max_rounds(free_lithium_solver):
    with pytest.raises(ValueError):
        ConfigurationSearch(free_lithium_solver, max_rounds=-1)


@pytest.mark.search
@pytest.mark.quick
def test_restricted_entry_point(free_lithium_solver):
    result = ConfigurationSearch(free_lithium_solver).run_restricted(2)
    assert result.best.orbs.occs.tolist() == [2, 0]
    assert result.best.converged
