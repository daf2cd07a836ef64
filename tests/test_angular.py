"""角动量耦合系数单元测试。"""

import pytest

from sadscf.hf.angular import allowed_k_values, coupling_factor_ak, wigner_3j_squared


@pytest.mark.operator
@pytest.mark.quick
@pytest.mark.parametrize(
    "l, lp, expected",
    [
        (0, 0, [0]),
        (0, 1, [1]),
        (1, 1, [0, 2]),
        (1, 2, [1, 3]),
        (2, 2, [0, 2, 4]),
    ],
)
def test_allowed_k(l, lp, expected):
    assert allowed_k_values(l, lp) == expected


@pytest.mark.operator
@pytest.mark.quick
def test_allowed_k_invalid_negative():
    with pytest.raises(ValueError, match="角动量量子数必须非负"):
        allowed_k_values(-1, 0)


@pytest.mark.operator
@pytest.mark.quick
@pytest.mark.parametrize(
    "l, k, lp, expected",
    [
        (0, 0, 0, 1.0),
        (0, 1, 1, 1.0),
        (1, 1, 0, 1.0 / 3.0),
        (1, 0, 1, 1.0),
        (1, 2, 1, 0.4),
    ],
)
def test_coupling_factor_values(l, k, lp, expected):
    assert coupling_factor_ak(l, k, lp) == pytest.approx(expected, abs=1e-12)


@pytest.mark.operator
def test_coupling_factor_forbidden_k_is_zero():
    assert coupling_factor_ak(0, 1, 0) == 0.0
    assert coupling_factor_ak(1, 1, 1) == 0.0


@pytest.mark.operator
@pytest.mark.parametrize("l", [0, 1, 2, 3])
@pytest.mark.parametrize("lp", [0, 1, 2])
def test_wigner_sum_rule(l, lp):
    # sum_k (2k+1) (l k l'; 0 0 0)^2 = 1
    total = sum((2 * k + 1) * wigner_3j_squared(l, k, lp) for k in allowed_k_values(l, lp))
    assert total == pytest.approx(1.0, abs=1e-12)
