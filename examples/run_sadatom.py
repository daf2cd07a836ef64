#!/usr/bin/env python
"""球平均原子计算入口。

构建指数网格上的有限元径向基，从 Aufbau 占据出发搜索最低能电子组态，
打印诊断报告，并可导出轨道、屏蔽势与能量。

示例::

    python examples/run_sadatom.py --Z 10 --x hf
    python examples/run_sadatom.py --Z 6 --x lda_x --c lda_c_vwn --mult 3
"""

import argparse
import logging
from pathlib import Path

from sadscf import ConfigurationSearch, FDRadialBasis, SCFConfig, SCFSolver, radial_grid_exp
from sadscf.io import element_symbol, export_energies_json, format_report, save_orbitals, save_potential


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="球平均原子 SCF 与电子组态搜索")
    p.add_argument("--Z", type=int, required=True, help="核电荷")
    p.add_argument("--numel", type=int, default=None, help="电子数（默认中性原子）")
    p.add_argument("--lmax", type=int, default=None, help="最大角动量（默认按 Z 选择）")
    p.add_argument("--n", type=int, default=600, help="网格点数")
    p.add_argument("--rmax", type=float, default=40.0, help="径向上限（Bohr）")
    p.add_argument("--total-span", type=float, default=6.0, help="指数网格参数")
    p.add_argument("--x", default="hf", help="交换泛函")
    p.add_argument("--c", default="none", help="关联泛函")
    p.add_argument("--mult", type=int, default=None, help="自旋多重度；给出时做非受限计算")
    p.add_argument("--maxit", type=int, default=200)
    p.add_argument("--convthr", type=float, default=1e-7)
    p.add_argument("--shift", type=float, default=1.0)
    p.add_argument("--dampov", type=float, default=1.0)
    p.add_argument("--max-rounds", type=int, default=None, help="组态搜索的最多轮数")
    p.add_argument("--out", type=Path, default=None, help="输出目录")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def default_lmax(Z: int) -> int:
    if Z <= 4:
        return 1
    if Z <= 20:
        return 2
    return 3


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    log = logging.getLogger("sadatom")

    numel = args.Z if args.numel is None else args.numel
    lmax = default_lmax(args.Z) if args.lmax is None else args.lmax

    r, _ = radial_grid_exp(args.n, args.rmax, total_span=args.total_span)
    basis = FDRadialBasis(r, args.Z, lmax, logger=log)
    cfg = SCFConfig(
        maxit=args.maxit,
        convthr=args.convthr,
        shift=args.shift,
        dampov=args.dampov,
        x_func=args.x,
        c_func=args.c,
    )
    solver = SCFSolver(basis, cfg, logger=log)
    search = ConfigurationSearch(solver, max_rounds=args.max_rounds, logger=log)

    if args.mult is None:
        result = search.run_restricted(numel)
    else:
        result = search.run_unrestricted_multiplicity(numel, args.mult)

    best = result.best
    print(format_report(best, basis))
    print(f"\n{len(result.ranked)} configurations evaluated in {result.rounds} rounds")
    print(f"Electron density at nucleus {solver.nuclear_density(best):.6e}")

    if args.out is not None:
        symbol = element_symbol(args.Z)
        for i, orbs in enumerate(best.channels):
            tag = symbol if best.is_restricted else f"{symbol}_{'ab'[i]}"
            save_orbitals(basis, orbs, tag, args.out)
        save_potential(solver.average_potential(best), args.out / f"{symbol}_pot.dat")
        export_energies_json(best, args.out / f"{symbol}_energies.json")


if __name__ == "__main__":
    main()
