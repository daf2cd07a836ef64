"""Hartree–Fock 精确交换：角动量耦合系数与径向多极核。"""

from .angular import allowed_k_values, coupling_factor_ak, wigner_3j_squared
from .exchange import KernelCache, exchange_cube, slater_kernel, yukawa_kernel

__all__ = [
    "KernelCache",
    "allowed_k_values",
    "coupling_factor_ak",
    "exchange_cube",
    "slater_kernel",
    "wigner_3j_squared",
    "yukawa_kernel",
]
