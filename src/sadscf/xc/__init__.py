"""局域密度近似的交换与关联核。

每个核接收自旋密度 ``(n_up, n_dn)``，返回体能量密度与两个自旋势 ``(e, v_up, v_dn)``。
:func:`evaluate_kernel` 按名字分派，供基组的格点 XC 求值调用。
"""

from __future__ import annotations

import numpy as np

from .lda import lda_c_pz81, lda_x_dirac
from .vwn import lda_c_vwn

__all__ = [
    "KERNELS",
    "evaluate_kernel",
    "lda_c_pz81",
    "lda_c_vwn",
    "lda_x_dirac",
]

KERNELS = {
    "dirac": lda_x_dirac,
    "pz81": lda_c_pz81,
    "vwn5": lda_c_vwn,
}


def evaluate_kernel(
    kernel: str,
    n_up: np.ndarray,
    n_dn: np.ndarray,
    pars: np.ndarray | None = None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """求值名为 ``kernel`` 的 LDA 核。

    ``pars`` 仅对 Dirac 交换有意义：``pars[0]`` 为前因子的缩放（X\\alpha 中的 :math:`3\\alpha/2`）。
    关联核忽略 ``pars``。
    """
    try:
        fn = KERNELS[kernel]
    except KeyError:
        raise ValueError(f"未知的 XC 核: {kernel!r}") from None
    e, vu, vd = fn(n_up, n_dn)
    if kernel == "dirac" and pars is not None and len(pars):
        scale = float(pars[0])
        e, vu, vd = scale * e, scale * vu, scale * vd
    return e, vu, vd
