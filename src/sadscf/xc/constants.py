"""LDA 参数
===========

- PZ81：Perdew & Zunger, Phys. Rev. B 23, 5048 (1981)，Ceperley–Alder 拟合
- VWN5：Vosko, Wilk, Nusair, Can. J. Phys. 58, 1200 (1980)，式 (4.4) 的 Ceperley–Alder 拟合
"""

from __future__ import annotations

# Dirac 交换自旋分辨势前因子 (6/pi)^{1/3}
DIRAC_SPIN_PREFACTOR = (6.0 / 3.141592653589793) ** (1.0 / 3.0)

# PZ81：(A, B, C, D, gamma, beta1, beta2)
PZ81_PARAMS = {
    "unpolarized": (0.0311, -0.048, 0.0020, -0.0116, -0.1423, 1.0529, 0.3334),
    "polarized": (0.01555, -0.0269, 0.0007, -0.0048, -0.0843, 1.3981, 0.2611),
}

# VWN5：(A, x0, b, c)
VWN5_PARAMS = {
    "unpolarized": (0.0310907, -0.10498, 3.72744, 12.9352),
    "polarized": (0.01554535, -0.32500, 7.06042, 18.0578),
}

# 自旋插值 f(zeta) 的分母 2^{4/3} - 2
FZETA_DENOM = 2.0 ** (4.0 / 3.0) - 2.0
