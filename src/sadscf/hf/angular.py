r"""角动量耦合系数
=================

球平均交换中，目标通道 :math:`\ell` 与占据通道 :math:`\ell'` 之间的多极项权重为

.. math::

    a_k(\ell, \ell') = (2\ell'+1)
    \begin{pmatrix} \ell & k & \ell' \\ 0 & 0 & 0 \end{pmatrix}^2 ,

非零仅当 :math:`|\ell-\ell'|\le k\le \ell+\ell'` 且 :math:`\ell+\ell'+k` 为偶数。
Wigner-3j 系数由 ``sympy.physics.wigner`` 精确计算后转为浮点数。

References
----------
.. [Cowan] Cowan, R. D. (1981) "The Theory of Atomic Structure and Spectra", Chapter 7
"""

from __future__ import annotations

from functools import lru_cache

from sympy.physics.wigner import wigner_3j as _sympy_wigner_3j

__all__ = [
    "allowed_k_values",
    "coupling_factor_ak",
    "wigner_3j_squared",
]


def allowed_k_values(l: int, l_prime: int) -> list[int]:
    """满足三角条件与奇偶性的多极指标 k（升序）。

    Examples
    --------
    >>> allowed_k_values(1, 1)
    [0, 2]
    >>> allowed_k_values(1, 2)
    [1, 3]
    """
    if l < 0 or l_prime < 0:
        raise ValueError(f"角动量量子数必须非负: l={l}, l'={l_prime}")
    return [k for k in range(abs(l - l_prime), l + l_prime + 1) if (l + l_prime + k) % 2 == 0]


@lru_cache(maxsize=None)
def wigner_3j_squared(l: int, k: int, l_prime: int) -> float:
    """:math:`(l\\ k\\ l';\\ 0\\ 0\\ 0)^2`。"""
    return float(_sympy_wigner_3j(l, k, l_prime, 0, 0, 0)) ** 2


def coupling_factor_ak(l: int, k: int, l_prime: int) -> float:
    """耦合因子 :math:`a_k(l, l')`；k 不满足选择规则时返回 0。

    Examples
    --------
    >>> coupling_factor_ak(0, 0, 0)
    1.0
    >>> round(coupling_factor_ak(1, 2, 1), 6)
    0.4
    """
    if k not in allowed_k_values(l, l_prime):
        return 0.0
    return (2 * l_prime + 1) * wigner_3j_squared(l, k, l_prime)
