from __future__ import annotations

import json
from pathlib import Path

import numpy as np

from .basis.base import BasisProvider
from .configuration import Configuration
from .linalg import total_density, trace_dot
from .orbitals import OrbitalChannel

__all__ = [
    "ELEMENT_SYMBOLS",
    "element_symbol",
    "export_energies_json",
    "format_report",
    "save_orbitals",
    "save_potential",
]

ELEMENT_SYMBOLS = (
    "X",
    "H", "He",
    "Li", "Be", "B", "C", "N", "O", "F", "Ne",
    "Na", "Mg", "Al", "Si", "P", "S", "Cl", "Ar",
    "K", "Ca", "Sc", "Ti", "V", "Cr", "Mn", "Fe", "Co", "Ni", "Cu", "Zn",
    "Ga", "Ge", "As", "Se", "Br", "Kr",
    "Rb", "Sr", "Y", "Zr", "Nb", "Mo", "Tc", "Ru", "Rh", "Pd", "Ag", "Cd",
    "In", "Sn", "Sb", "Te", "I", "Xe",
)

POTENTIAL_COLUMNS = ("r", "rho", "grho", "lrho", "vcoul", "vxc", "wt", "Z-Zeff")


def element_symbol(Z: float) -> str:
    iz = int(round(Z))
    if iz == Z and 0 < iz < len(ELEMENT_SYMBOLS):
        return ELEMENT_SYMBOLS[iz]
    return f"Z{Z:g}"


def _channel_table(orbs: OrbitalChannel) -> list[str]:
    lines = [f"{'nl':>5s} {'nocc':>5s} {'E':>16s}"]
    for sh in orbs.get_occupied():
        lines.append(f"{sh.label:>5s} {sh.nocc:5d} {sh.energy: 16.8f}")
    gaps = orbs.gap()
    for l, g in enumerate(gaps):
        if np.isfinite(g):
            lines.append(f"  HOMO-LUMO gap in l={l} channel {g: .6f}")
    return lines


def format_report(conf: Configuration, basis: BasisProvider | None = None) -> str:
    """文本诊断报告：占据壳层、轨道能、能隙与能量分解。

    若给出 ``basis``，还报告 :math:`\\langle r^k\\rangle^{1/k}`。
    """
    lines = []
    if conf.is_restricted:
        lines += _channel_table(conf.orbs)
    else:
        for label, orbs in zip(("Alpha", "Beta"), conf.channels):
            lines.append(f"{label} orbitals")
            lines += _channel_table(orbs)

    if conf.Econf is not None:
        lines += [
            f"{'Kinetic energy':<28s}{conf.Ekin: .12f}",
            f"{'Nuclear attraction energy':<28s}{conf.Epot: .12f}",
            f"{'Coulomb energy':<28s}{conf.Ecoul: .12f}",
            f"{'Exchange-correlation energy':<28s}{conf.Exc: .12f}",
            f"{'Total energy':<28s}{conf.Econf: .12f}",
            f"{'Virial ratio':<28s}{-conf.Econf / conf.Ekin: .12f}"
            if conf.Ekin else "",
        ]
        status = "converged" if conf.converged else "NOT converged"
        lines.append(
            f"SCF {status} after {conf.iterations} iterations, DIIS error {conf.diis_error:.3e}"
        )

    nel = conf.total_electrons
    if basis is not None and nel > 0:
        P = sum(total_density(ch.update_density()) for ch in conf.channels)
        for k, M in basis.radial_moment_matrices():
            mean = trace_dot(P, M) / nel
            lines.append(f"<r^{k}>^(1/{k}) = {mean ** (1.0 / k):.6f}")

    lines.append(f"Configuration {conf.characterize()}")
    return "\n".join(line for line in lines if line)


def save_orbitals(
    basis: BasisProvider,
    orbs: OrbitalChannel,
    symbol: str,
    directory: str | Path = ".",
) -> Path:
    """把占据轨道写入 ``<symbol>_orbs.dat``。

    格式：

    - 第 1 行：径向点数与轨道数；
    - 第 2–4 行：每个轨道的 :math:`\\ell`、占据数与能量（按 :math:`\\ell` 分组，组内按能量）；
    - 之后每行：半径，随后是各轨道在该点的径向函数值。
    """
    occlist = orbs.get_occupied()
    by_l = [[sh for sh in occlist if sh.l == l] for l in range(orbs.lmax + 1)]
    shells = [sh for group in by_l for sh in group]

    r = basis.radii()
    values = [
        basis.orbitals(orbs.C[l][:, [sh.node for sh in group]])
        for l, group in enumerate(by_l)
        if group
    ]
    orbval = np.hstack(values) if values else np.zeros((r.size, 0))

    path = Path(directory) / f"{symbol}_orbs.dat"
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write("%i %i\n" % (r.size, len(shells)))
        f.write("".join(" %i" % sh.l for sh in shells) + "\n")
        f.write("".join(" %i" % sh.nocc for sh in shells) + "\n")
        f.write("".join(" %e" % sh.energy for sh in shells) + "\n")
        for ir in range(r.size):
            f.write("%e" % r[ir] + "".join(" % e" % v for v in orbval[ir]) + "\n")
    return path


def save_potential(table: np.ndarray, path: str | Path) -> Path:
    """保存 :meth:`sadscf.solver.SCFSolver.restricted_potential` 等返回的八列势表。"""
    if table.ndim != 2 or table.shape[1] != len(POTENTIAL_COLUMNS):
        raise ValueError(f"势表必须有 {len(POTENTIAL_COLUMNS)} 列，实际形状 {table.shape}")
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    np.savetxt(p, table, fmt="% .10e", header=" ".join(POTENTIAL_COLUMNS))
    return p


def export_energies_json(conf: Configuration, out_path: str | Path) -> None:
    """导出能量分解、占据与收敛状态为 JSON。"""
    data = {
        "Ekin": conf.Ekin,
        "Epot": conf.Epot,
        "Ecoul": conf.Ecoul,
        "Exc": conf.Exc,
        "Econf": conf.Econf,
        "converged": conf.converged,
        "iterations": conf.iterations,
        "diis_error": float(conf.diis_error),
        "restricted": conf.is_restricted,
        "occs": [ch.occs.tolist() for ch in conf.channels],
        "configuration": conf.characterize(),
    }
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
