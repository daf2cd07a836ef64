"""径向基组：抽象接口与集总线性有限元实现。"""

from .base import BasisProvider
from .fd import FDRadialBasis

__all__ = ["BasisProvider", "FDRadialBasis"]
