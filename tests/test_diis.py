"""DIIS/ADIIS 加速器。"""

import numpy as np
import pytest

from sadscf.diis import DIIS

I3 = np.eye(3)
P = np.diag([1.0, 0.0, 0.0])
F_STAR = np.diag([-1.0, 0.5, 2.0])
A = np.zeros((3, 3))
A[0, 1] = A[1, 0] = 1.0


@pytest.mark.scf
@pytest.mark.quick
def test_commuting_pair_has_zero_error():
    diis = DIIS(I3, I3)
    assert diis.update([F_STAR], [P], -1.0) == 0.0
    assert diis.update([F_STAR + 0.1 * A], [P], -1.0) == pytest.approx(0.1)


@pytest.mark.scf
@pytest.mark.quick
def test_single_entry_returns_latest_fock():
    diis = DIIS(I3, I3)
    diis.update([F_STAR + A], [P], 0.0)
    (F,) = diis.solve_F()
    assert np.allclose(F, F_STAR + A)


@pytest.mark.scf
@pytest.mark.quick
def test_pulay_extrapolation_removes_linear_error():
    diis = DIIS(I3, I3, useadiis=False)
    diis.update([F_STAR + A], [P], 0.0)
    diis.update([F_STAR - 0.5 * A], [P], 0.0)
    (F,) = diis.solve_F()
    assert np.allclose(F, F_STAR)


@pytest.mark.scf
@pytest.mark.quick
def test_adiis_coefficients_are_convex():
    diis = DIIS(I3, I3, usediis=False)
    for t, E in ((1.0, -0.5), (0.3, -0.8), (-0.2, -0.9)):
        Pt = P + 0.1 * t * A
        diis.update([F_STAR + t * A], [Pt], E)
    c = diis._adiis_weights()
    assert np.all(c >= 0.0)
    assert np.isclose(c.sum(), 1.0)


@pytest.mark.scf
@pytest.mark.quick
def test_history_is_bounded_and_clearable():
    diis = DIIS(I3, I3, order=2)
    for t in (1.0, 0.5, 0.25):
        diis.update([F_STAR + t * A], [P], 0.0)
    assert len(diis) == 2
    diis.clear()
    assert len(diis) == 0
    with pytest.raises(RuntimeError):
        diis.solve_F()


@pytest.mark.scf
@pytest.mark.quick
def test_two_channels_use_worst_error():
    diis = DIIS(I3, I3)
    err = diis.update([F_STAR, F_STAR + 0.3 * A], [P, P], 0.0)
    assert err == pytest.approx(0.3)
    with pytest.raises(ValueError):
        diis.update([F_STAR], [P, P], 0.0)


@pytest.mark.scf
@pytest.mark.quick
def test_invalid_parameters():
    with pytest.raises(ValueError):
        DIIS(I3, I3, order=0)
    with pytest.raises(ValueError):
        DIIS(I3, I3, diiseps=0.01, diisthr=0.1)
