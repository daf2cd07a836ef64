"""轨道占据模型单元测试。"""

import numpy as np
import pytest

from sadscf.errors import InvalidStateError
from sadscf.orbitals import OrbitalChannel, shell_capacity


def hydrogenic_channel(lmax, restricted, nmo=6, nbf=6):
    """能量为 -1/(2n^2) 的合成通道，系数取单位矩阵（S = I）。"""
    orbs = OrbitalChannel(lmax, restricted)
    E = np.array([[-0.5 / (l + node + 1) ** 2 for node in range(nmo)] for l in range(lmax + 1)])
    orbs.E = E
    orbs.C = np.array([np.eye(nbf)[:, :nmo] for _ in range(lmax + 1)])
    return orbs


def split_channel(lmax, restricted, nmo=6):
    """打破氢样简并：能量随 l 略微升高。"""
    orbs = hydrogenic_channel(lmax, restricted, nmo)
    orbs.E = orbs.E + 0.01 * np.arange(lmax + 1)[:, None]
    return orbs


@pytest.mark.quick
@pytest.mark.parametrize("l", range(7))
def test_shell_capacity(l):
    assert shell_capacity(l, True) == 4 * l + 2
    assert shell_capacity(l, False) == 2 * l + 1


@pytest.mark.quick
def test_shell_capacity_rejects_negative_l():
    with pytest.raises(ValueError):
        shell_capacity(-1, True)


@pytest.mark.quick
@pytest.mark.parametrize("restricted", [True, False])
@pytest.mark.parametrize("numel", [0, 1, 2, 3, 7, 10, 18, 29, 200])
def test_aufbau_electron_count(restricted, numel):
    orbs = split_channel(2, restricted, nmo=3)
    orbs.aufbau_occupations(numel)
    caps = [shell_capacity(l, restricted) for l in range(3)]
    total_capacity = 3 * sum(caps)
    assert orbs.occs.sum() == min(numel, total_capacity)
    for l in range(3):
        assert orbs.occs[l] <= 3 * caps[l]


@pytest.mark.quick
def test_aufbau_neon_like_filling():
    orbs = split_channel(2, True)
    orbs.aufbau_occupations(10)
    assert orbs.occs.tolist() == [4, 6, 0]
    assert orbs.characterize() == "1s^{2} 2s^{2} 2p^{6}"


@pytest.mark.quick
def test_aufbau_tie_break_prefers_lower_radial_node():
    # 氢样能量下 2s 与 2p 严格简并；按规则先填径向节点序号小的 2p
    orbs = hydrogenic_channel(1, True)
    orbs.aufbau_occupations(3)
    assert orbs.occs.tolist() == [2, 1]


@pytest.mark.quick
def test_aufbau_partial_shell_unrestricted():
    orbs = split_channel(1, False)
    orbs.aufbau_occupations(3)
    # 1s(1) 2s(1) 2p(1)
    assert orbs.occs.tolist() == [2, 1]


@pytest.mark.quick
def test_aufbau_requires_orbitals():
    with pytest.raises(InvalidStateError):
        OrbitalChannel(1, True).aufbau_occupations(2)


@pytest.mark.quick
def test_aufbau_rejects_negative_count():
    with pytest.raises(ValueError):
        split_channel(1, True).aufbau_occupations(-1)


@pytest.mark.quick
def test_get_occupied_spills_to_next_node():
    orbs = split_channel(1, True)
    orbs.occs = [3, 7]
    shells = orbs.get_occupied()
    assert [(sh.label, sh.nocc) for sh in shells] == [("1s", 2), ("2s", 1), ("2p", 6), ("3p", 1)]
    assert [sh.energy for sh in shells] == sorted(sh.energy for sh in shells)
    assert orbs.count_occupied().tolist() == [2, 2]


@pytest.mark.quick
def test_occs_setter_validation():
    orbs = OrbitalChannel(1, True)
    with pytest.raises(ValueError):
        orbs.occs = [-1, 0]
    with pytest.raises(ValueError):
        orbs.occs = [0.5, 0]
    orbs.occs = [2.0, 0.0]
    assert orbs.occs.dtype.kind == "i"


@pytest.mark.quick
def test_move_electrons_includes_identity_and_conserves_count():
    orbs = split_channel(2, True)
    orbs.occs = [2, 6, 0]
    moves = orbs.move_electrons()
    assert moves[0] == orbs
    assert all(m.total_electrons == 8 for m in moves)
    # 0->1: 1..2, 0->2: 1..2, 1->0: 1..2, 1->2: 1..6
    assert len(moves) == 1 + 2 + 2 + 2 + 6
    assert any(m.occs.tolist() == [0, 6, 2] for m in moves)


@pytest.mark.quick
def test_move_electrons_sentinel_when_empty():
    orbs = split_channel(1, False)
    moves = orbs.move_electrons()
    assert len(moves) == 1
    assert moves[0].occs.tolist() == [0, 0]


@pytest.mark.quick
def test_move_electrons_copies_are_independent():
    orbs = split_channel(1, True)
    orbs.occs = [2, 0]
    moves = orbs.move_electrons()
    moves[1].C[0][0, 0] = 42.0
    moves[1].occs[0] = 0
    assert orbs.C[0][0, 0] == 1.0
    assert orbs.occs.tolist() == [2, 0]


@pytest.mark.quick
def test_density_and_angular_density():
    orbs = split_channel(1, True)
    orbs.occs = [3, 2]
    P = orbs.update_density()
    assert np.isclose(np.trace(P[0]), 3.0)
    assert np.isclose(np.trace(P[1]), 2.0)
    assert np.isclose(P[0][1, 1], 1.0)
    Pang = orbs.angular_density()
    assert np.allclose(Pang[0], P[0] / 2)
    assert np.allclose(Pang[1], P[1] / 6)


@pytest.mark.quick
def test_update_orbitals_ascending():
    rng = np.random.default_rng(1)
    A = rng.normal(size=(5, 5))
    F = np.array([A + A.T, A + A.T + np.eye(5)])
    orbs = OrbitalChannel(1, True)
    orbs.update_orbitals(F, np.eye(5))
    assert np.all(np.diff(orbs.E, axis=1) >= 0)
    assert np.allclose(orbs.E[1], orbs.E[0] + 1.0)
    assert np.allclose(orbs.C[0].T @ orbs.C[0], np.eye(5))


def _fock_with_coupling():
    F0 = np.diag([-2.0, -1.0, 0.5, 1.0])
    F = F0.copy()
    F[0, 2] = F[2, 0] = 0.3
    F[1, 3] = F[3, 1] = -0.2
    return F0, F


@pytest.mark.quick
def test_damped_refresh_scales_occupied_virtual_block():
    F0, F = _fock_with_coupling()
    I = np.eye(4)
    orbs = OrbitalChannel(0, True, occs=[4])
    orbs.update_orbitals(F0[None], I)

    damped = orbs.copy()
    damped.update_orbitals_damped(F[None], I, I, 0.5)

    Fref = F.copy()
    Fref[:2, 2:] *= 0.5
    Fref[2:, :2] *= 0.5
    ref = orbs.copy()
    ref.update_orbitals(Fref[None], I)
    assert np.allclose(damped.E, ref.E)


@pytest.mark.quick
def test_damped_refresh_without_damping_matches_plain():
    F0, F = _fock_with_coupling()
    I = np.eye(4)
    orbs = OrbitalChannel(0, True, occs=[4])
    orbs.update_orbitals(F0[None], I)
    a = orbs.copy()
    a.update_orbitals_damped(F[None], I, I, 1.0)
    b = orbs.copy()
    b.update_orbitals(F[None], I)
    assert np.allclose(a.E, b.E)
    assert np.allclose(a.update_density(), b.update_density())


@pytest.mark.quick
def test_shifted_refresh_raises_virtual_levels_only():
    F0, _ = _fock_with_coupling()
    I = np.eye(4)
    orbs = OrbitalChannel(0, True, occs=[4])
    orbs.update_orbitals(F0[None], I)
    E_before = orbs.E.copy()
    orbs.update_orbitals_shifted(F0[None], I, I, 2.0)
    assert np.allclose(orbs.E[0, :2], E_before[0, :2])
    assert np.allclose(orbs.E[0, 2:], E_before[0, 2:] + 2.0)


@pytest.mark.quick
def test_shifted_refresh_skips_empty_channel():
    F0, _ = _fock_with_coupling()
    I = np.eye(4)
    orbs = OrbitalChannel(1, False, occs=[1, 0])
    orbs.update_orbitals(np.array([F0, F0]), I)
    orbs.update_orbitals_shifted(np.array([F0, F0]), I, I, 5.0)
    assert np.allclose(orbs.E[1], np.diag(F0))
    assert np.allclose(orbs.E[0], [-2.0, 4.0, 5.5, 6.0])


@pytest.mark.quick
def test_gap_and_equality():
    orbs = split_channel(1, True)
    orbs.occs = [2, 0]
    gap = orbs.gap()
    assert np.isclose(gap[0], orbs.E[0, 1] - orbs.E[0, 0])
    assert np.isnan(gap[1])

    other = orbs.copy()
    assert other == orbs
    other.occs = [1, 1]
    assert other != orbs
