"""径向多极核与交换 cube 的组装。"""

import numpy as np
import pytest

from sadscf.hf.exchange import KernelCache, exchange_cube, slater_kernel, yukawa_kernel

R = np.linspace(0.1, 10.0, 40)


@pytest.mark.operator
@pytest.mark.quick
def test_slater_kernel_k0_is_inverse_rmax():
    g = slater_kernel(R, 0)
    assert np.allclose(g, 1.0 / np.maximum.outer(R, R))
    assert np.allclose(g, g.T)


@pytest.mark.operator
@pytest.mark.quick
def test_yukawa_k0_closed_form():
    omega = 0.7
    rl = np.minimum.outer(R, R)
    rg = np.maximum.outer(R, R)
    ref = np.sinh(omega * rl) * np.exp(-omega * rg) / (omega * rl * rg)
    assert np.allclose(yukawa_kernel(R, 0, omega), ref)


@pytest.mark.operator
@pytest.mark.quick
@pytest.mark.parametrize("k", [0, 1, 2, 3])
def test_yukawa_tends_to_slater_for_small_omega(k):
    g_y = yukawa_kernel(R, k, 1e-5)
    g_s = slater_kernel(R, k)
    assert np.allclose(g_y, g_s, rtol=1e-3)
    assert np.allclose(g_y, g_y.T)


@pytest.mark.operator
@pytest.mark.quick
def test_yukawa_is_screened():
    assert np.all(yukawa_kernel(R, 0, 0.5) < slater_kernel(R, 0))


@pytest.mark.operator
@pytest.mark.quick
def test_kernels_reject_bad_arguments():
    with pytest.raises(ValueError):
        slater_kernel(R, -1)
    with pytest.raises(ValueError):
        yukawa_kernel(R, 0, 0.0)


@pytest.mark.operator
@pytest.mark.quick
def test_kernel_cache_reuses_matrices():
    cache = KernelCache(R)
    a = cache.get(0)
    assert cache.get(0) is a
    cache.get(0, 0.5)
    cache.get(2)
    assert len(cache) == 3
    cache.clear()
    assert len(cache) == 0


@pytest.mark.operator
@pytest.mark.quick
def test_exchange_cube_single_s_orbital():
    w = np.full(R.size, R[1] - R[0])
    u = R * np.exp(-R)
    u /= np.sqrt(np.sum(w * u * u))
    Pang = np.zeros((2, R.size, R.size))
    Pang[0] = np.outer(u, u)

    K = exchange_cube(Pang, w, KernelCache(R))
    ww = np.outer(w, w)
    assert np.allclose(K[0], -ww * Pang[0] * slater_kernel(R, 0))
    # 对 p 通道只有 k=1 项，a_1(1, 0) = 1/3
    assert np.allclose(K[1], -ww * Pang[0] * slater_kernel(R, 1) / 3.0)
    assert np.allclose(K[0], K[0].T)
    assert np.max(np.linalg.eigvalsh(K[0])) < 1e-12


@pytest.mark.operator
@pytest.mark.quick
def test_exchange_cube_empty_density():
    Pang = np.zeros((2, R.size, R.size))
    K = exchange_cube(Pang, np.ones(R.size), KernelCache(R))
    assert np.allclose(K, 0.0)
