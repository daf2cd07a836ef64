"""径向 Hartree 势。"""

import numpy as np
import pytest

from sadscf.grid import radial_grid_exp
from sadscf.hartree import screening_charge, v_hartree


@pytest.mark.operator
@pytest.mark.quick
def test_hydrogen_density_potential():
    r, w = radial_grid_exp(2001, 40.0)
    r, w = r[1:], w[1:]
    rho = 4.0 * r**2 * np.exp(-2.0 * r)
    vH = v_hartree(rho, r, w)
    # 1s 电荷分布的解析势 1/r - (1 + 1/r) e^{-2r}
    exact = 1.0 / r - (1.0 + 1.0 / r) * np.exp(-2.0 * r)
    mask = r > 0.05
    assert np.allclose(vH[mask], exact[mask], atol=1e-4)


@pytest.mark.operator
@pytest.mark.quick
def test_screening_charge_is_monotonic_and_complete():
    r, w = radial_grid_exp(801, 30.0)
    r, w = r[1:], w[1:]
    rho = 16.0 * r**2 * np.exp(-4.0 * r)
    Q = screening_charge(rho, r, w)
    assert np.all(np.diff(Q) >= -1e-12)
    assert np.isclose(Q[-1], np.sum(w * rho))


@pytest.mark.operator
@pytest.mark.quick
def test_hartree_input_validation():
    r = np.linspace(0.0, 1.0, 5)
    with pytest.raises(ValueError):
        v_hartree(np.ones(5), r, np.ones(5))
    with pytest.raises(ValueError):
        v_hartree(np.ones(4), r, np.ones(5))
