"""
Engine abstraction for ndtorch.

Engines perform the actual tensor computation. NDArray forwards to them
through opaque handles.
"""

from .base import Engine, native_call
from .pytorch import PyTorchEngine


_default_engine = None


def create_engine(backend: str = 'pytorch') -> Engine:
    """
    Factory function to create an engine.

    Args:
        backend: 'pytorch'

    Returns:
        Engine instance
    """
    if backend == 'pytorch':
        return PyTorchEngine()
    else:
        raise ValueError(f"Unknown backend: {backend}")


def get_default_engine() -> Engine:
    """Engine shared by managers that were not given one."""
    global _default_engine
    if _default_engine is None:
        _default_engine = create_engine('pytorch')
    return _default_engine


__all__ = ['Engine', 'PyTorchEngine', 'create_engine', 'get_default_engine', 'native_call']
