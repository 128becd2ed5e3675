"""
Value types shared by arrays, managers and engines.

Keep this SIMPLE and READABLE.
"""

import enum
import math
import numpy as np
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple


class Shape:
    """
    Immutable shape of an NDArray.

    A shape with no dimensions describes a scalar (size 1). A shape with a
    zero-length dimension describes an empty array (size 0).
    """

    __slots__ = ('_dims',)

    def __init__(self, *dims):
        if len(dims) == 1 and not isinstance(dims[0], (int, np.integer)):
            dims = tuple(dims[0])
        self._dims: Tuple[int, ...] = tuple(int(d) for d in dims)

    def dimension(self) -> int:
        return len(self._dims)

    def size(self, axis: Optional[int] = None) -> int:
        """Number of elements, or the length of one axis when given."""
        if axis is not None:
            return self.get(axis)
        return math.prod(self._dims)

    def get(self, axis: int) -> int:
        return self._dims[axis]

    def slice(self, begin: int, end: Optional[int] = None) -> 'Shape':
        """Sub-shape of dimensions [begin, end)."""
        return Shape(self._dims[begin:end])

    def add_all(self, other) -> 'Shape':
        return Shape(self._dims + tuple(other))

    def is_scalar(self) -> bool:
        return len(self._dims) == 0

    def has_zero_dimension(self) -> bool:
        return any(d == 0 for d in self._dims)

    def reduction_shape_of_empty(self, axis: int) -> 'Shape':
        """
        Shape of reducing an empty array along one axis.

        The reduced axis is dropped. Reducing along an axis that itself has
        length zero has no defined result.
        """
        axis = axis % len(self._dims)
        if self._dims[axis] == 0:
            raise ValueError("attempt to apply reduction of an empty NDArray")
        return Shape(tuple(d for i, d in enumerate(self._dims) if i != axis))

    def to_tuple(self) -> Tuple[int, ...]:
        return self._dims

    def __iter__(self) -> Iterator[int]:
        return iter(self._dims)

    def __len__(self) -> int:
        return len(self._dims)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return Shape(self._dims[item])
        return self._dims[item]

    def __eq__(self, other) -> bool:
        if isinstance(other, Shape):
            return self._dims == other._dims
        if isinstance(other, (tuple, list)):
            return self._dims == tuple(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._dims)

    def __str__(self):
        if len(self._dims) == 1:
            return f"({self._dims[0]})"
        return str(self._dims)

    def __repr__(self):
        return f"Shape{self}"


class DataType(enum.Enum):
    """Element types understood by every engine."""

    FLOAT32 = ('float32', 4)
    FLOAT64 = ('float64', 8)
    FLOAT16 = ('float16', 2)
    UINT8 = ('uint8', 1)
    INT8 = ('int8', 1)
    INT32 = ('int32', 4)
    INT64 = ('int64', 8)
    BOOLEAN = ('bool', 1)

    def __init__(self, numpy_name: str, num_bytes: int):
        self.numpy_name = numpy_name
        self.num_bytes = num_bytes

    def is_floating(self) -> bool:
        return self in (DataType.FLOAT16, DataType.FLOAT32, DataType.FLOAT64)

    def is_integer(self) -> bool:
        return self in (DataType.UINT8, DataType.INT8, DataType.INT32, DataType.INT64)

    def as_numpy(self) -> np.dtype:
        return np.dtype(self.numpy_name)

    @classmethod
    def from_numpy(cls, dtype) -> 'DataType':
        name = np.dtype(dtype).name
        for member in cls:
            if member.numpy_name == name:
                return member
        raise ValueError(f"Unsupported numpy dtype: {name}")

    @classmethod
    def of(cls, value) -> 'DataType':
        """Accept a DataType, its numpy name ('float32') or a numpy dtype."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if value.lower() in (member.numpy_name, member.name.lower()):
                    return member
            raise ValueError(f"Unknown data type: {value}")
        return cls.from_numpy(value)

    def __str__(self):
        return self.numpy_name


class SparseFormat(enum.Enum):
    """Storage layout of an array."""
    DENSE = 'default'
    ROW_SPARSE = 'row_sparse'
    CSR = 'csr'
    COO = 'coo'


@dataclass(frozen=True)
class Device:
    """Device an array lives on: a type ('cpu' or 'gpu') and an index."""
    device_type: str
    device_id: int = -1

    CPU = 'cpu'
    GPU = 'gpu'

    @classmethod
    def cpu(cls) -> 'Device':
        return cls(cls.CPU, -1)

    @classmethod
    def gpu(cls, device_id: int = 0) -> 'Device':
        return cls(cls.GPU, device_id)

    @classmethod
    def default_device(cls) -> 'Device':
        """
        Device new managers use when none is given.

        Configured as 'auto', this is gpu(0) if CUDA is available and the
        cpu otherwise.
        """
        from ndtorch.config import get_config
        choice = get_config().engine.device
        if choice == 'cpu':
            return cls.cpu()
        if choice == 'gpu':
            return cls.gpu(0)

        import torch
        if torch.cuda.is_available():
            return cls.gpu(0)
        return cls.cpu()

    @classmethod
    def from_name(cls, name: str) -> 'Device':
        """Parse 'cpu', 'gpu', 'gpu(1)' or 'cuda:1'."""
        name = name.strip().lower()
        if name.startswith('cpu'):
            return cls.cpu()
        for prefix in ('gpu', 'cuda'):
            if name.startswith(prefix):
                rest = name[len(prefix):].strip('():')
                return cls.gpu(int(rest) if rest else 0)
        raise ValueError(f"Unknown device: {name}")

    def is_gpu(self) -> bool:
        return self.device_type == self.GPU

    def __str__(self):
        if self.device_type == self.CPU:
            return "cpu()"
        return f"{self.device_type}({self.device_id})"


def as_shape(shape: Sequence[int]) -> Shape:
    """Coerce tuples, lists and ints to Shape."""
    if isinstance(shape, Shape):
        return shape
    if isinstance(shape, int):
        return Shape(shape)
    return Shape(tuple(shape))
