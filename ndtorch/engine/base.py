"""
Base Engine interface for ndtorch.

An engine is the native call interface behind NDArray. Every engine call
takes and returns opaque handles; NDArray never looks inside them.
"""

import functools
import numpy as np
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence

from ndtorch.ndarray.types import DataType, Device, Shape, SparseFormat


def native_call(func):
    """Count a call to the native engine under the method's name."""
    name = func.__name__

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        self._record(name)
        return func(self, *args, **kwargs)

    return wrapper


class Engine(ABC):
    """Abstract base class for native tensor engines."""

    name = 'base'

    def __init__(self):
        # Statistics tracking
        self.stats = {
            'operations': {
                'total': 0,
                'by_name': {},
            },
            'handles': {
                'created': 0,
                'deleted': 0,
            },
        }

    def _record(self, op_name: str):
        ops = self.stats['operations']
        ops['total'] += 1
        ops['by_name'][op_name] = ops['by_name'].get(op_name, 0) + 1

    def get_stats(self) -> Dict[str, Any]:
        """Snapshot of native call statistics."""
        return {
            'engine': self.__class__.__name__,
            'operations': {
                'total': self.stats['operations']['total'],
                'by_name': dict(self.stats['operations']['by_name']),
            },
            'handles': dict(self.stats['handles']),
        }

    def register_handle(self):
        """Count a handle that is now owned by an NDArray."""
        self.stats['handles']['created'] += 1

    def reset_stats(self):
        self.stats['operations'] = {'total': 0, 'by_name': {}}
        self.stats['handles'] = {'created': 0, 'deleted': 0}

    # Metadata

    @abstractmethod
    def get_shape(self, handle: Any) -> Shape:
        """Shape of the tensor behind a handle."""
        pass

    @abstractmethod
    def get_data_type(self, handle: Any) -> DataType:
        """Element type of the tensor behind a handle."""
        pass

    @abstractmethod
    def get_device(self, handle: Any) -> Device:
        """Device the tensor lives on."""
        pass

    @abstractmethod
    def get_sparse_format(self, handle: Any) -> SparseFormat:
        """Storage layout of the tensor."""
        pass

    # Lifecycle

    @abstractmethod
    def create(self, data: np.ndarray, device: Device) -> Any:
        """Create a tensor from a numpy array."""
        pass

    @abstractmethod
    def delete(self, handle: Any):
        """Release native memory held by a handle."""
        pass

    @abstractmethod
    def to_numpy(self, handle: Any) -> np.ndarray:
        """Copy a tensor to a host numpy array."""
        pass

    @abstractmethod
    def to(self, handle: Any, data_type: DataType, device: Device, copy: bool) -> Any:
        """Convert a tensor to another data type and/or device."""
        pass

    # Computation

    @abstractmethod
    def unary(self, op: str, handle: Any) -> Any:
        """Element-wise unary operation by name."""
        pass

    @abstractmethod
    def binary(self, op: str, left: Any, right: Any) -> Any:
        """Element-wise binary operation by name."""
        pass

    @abstractmethod
    def sum(self, handle: Any, axes: Optional[Sequence[int]] = None, keep_dims: bool = False) -> Any:
        """Sum reduction."""
        pass

    @abstractmethod
    def reshape(self, handle: Any, shape: Sequence[int]) -> Any:
        """Reshape a tensor."""
        pass

    def supports_sparse(self) -> bool:
        """Whether this engine can store sparse tensors."""
        return False
