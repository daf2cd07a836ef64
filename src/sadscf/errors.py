"""异常类型。"""

from __future__ import annotations

__all__ = ["InvalidStateError"]


class InvalidStateError(RuntimeError):
    """调用前提不满足：轨道未初始化、占据数长度与 ``lmax+1`` 不符、受限/非受限模式不一致。"""
