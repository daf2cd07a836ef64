r"""交换关联泛函登记表
=====================

SCF 核心只需向泛函回答四个问题：

- 是否含格点上的密度泛函部分（:func:`has_dft`）
- 是否需要全角向分辨（meta 型，:func:`is_meta`）
- 精确交换比例与短程屏蔽参数（:func:`exact_exchange`）
- 由哪个 LDA 核求值（:attr:`FunctionalInfo.kernel`，由基组使用）

交换泛函的 ``kfrac`` 为全程精确交换比例，``kshort`` 为额外的短程（Yukawa 屏蔽）精确交换比例，
``omega`` 为屏蔽参数。关联泛函这三项恒为 0。

新泛函可通过 :func:`register_functional` 加入，名字不区分大小写。
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "FunctionalInfo",
    "exact_exchange",
    "has_dft",
    "is_meta",
    "lookup",
    "register_functional",
    "registered_functionals",
]


@dataclass(frozen=True)
class FunctionalInfo:
    """单个交换或关联泛函的描述。

    Attributes
    ----------
    name : str
        登记名（小写）。
    kind : str
        ``"x"``（交换）、``"c"``（关联）或 ``"none"``。
    family : str | None
        ``"lda"``、``"mgga"`` 或 ``None``（无格点部分）。
    kernel : str | None
        :mod:`sadscf.xc` 中的核名，如 ``"dirac"``、``"pz81"``、``"vwn5"``。
    dft_scale : float
        格点部分的缩放系数。
    kfrac : float
        全程精确交换比例。
    kshort : float
        短程精确交换比例。
    omega : float
        短程屏蔽参数。
    """

    name: str
    kind: str
    family: str | None = None
    kernel: str | None = None
    dft_scale: float = 1.0
    kfrac: float = 0.0
    kshort: float = 0.0
    omega: float = 0.0

    def __post_init__(self):
        if self.kind not in ("x", "c", "none"):
            raise ValueError(f"泛函类型必须为 'x'、'c' 或 'none': {self.kind!r}")
        if self.family is not None and self.kernel is None:
            raise ValueError(f"泛函 {self.name!r} 含格点部分但未指定核")
        if self.kshort != 0.0 and self.omega <= 0.0:
            raise ValueError(f"泛函 {self.name!r} 含短程交换但 omega <= 0")

    @property
    def is_dft(self) -> bool:
        return self.family is not None and self.dft_scale != 0.0


_REGISTRY: dict[str, FunctionalInfo] = {}


def register_functional(info: FunctionalInfo, *aliases: str) -> FunctionalInfo:
    """登记泛函（重复登记会覆盖旧条目）。"""
    for name in (info.name, *aliases):
        _REGISTRY[name.lower()] = info
    return info


def registered_functionals() -> list[str]:
    return sorted(_REGISTRY)


def lookup(name: str) -> FunctionalInfo:
    """按名字查找泛函；未知名字抛出 ``ValueError``。"""
    try:
        return _REGISTRY[name.lower()]
    except KeyError:
        raise ValueError(
            f"未知泛函 {name!r}，可用: {', '.join(registered_functionals())}"
        ) from None


def has_dft(x_func: str, c_func: str) -> bool:
    return lookup(x_func).is_dft or lookup(c_func).is_dft


def is_meta(x_func: str, c_func: str) -> bool:
    """任一泛函为 meta 型时需要全角向分辨的密度。"""
    return any(lookup(f).family == "mgga" for f in (x_func, c_func))


def exact_exchange(x_func: str) -> tuple[float, float, float]:
    """``(omega, kfrac, kshort)``。"""
    info = lookup(x_func)
    return info.omega, info.kfrac, info.kshort


register_functional(FunctionalInfo("none", "none"))
register_functional(FunctionalInfo("hf", "x", kfrac=1.0))
register_functional(FunctionalInfo("lda_x", "x", family="lda", kernel="dirac"), "slater")
register_functional(FunctionalInfo("lda_c_pz", "c", family="lda", kernel="pz81"), "pz81")
register_functional(FunctionalInfo("lda_c_vwn", "c", family="lda", kernel="vwn5"), "vwn")
register_functional(FunctionalInfo("lda0", "x", family="lda", kernel="dirac", dft_scale=0.75, kfrac=0.25))
register_functional(FunctionalInfo("yukawa_hf", "x", kshort=1.0, omega=0.5))
