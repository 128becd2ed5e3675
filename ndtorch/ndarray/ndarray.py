"""
NDArray: an n-dimensional array backed by a native engine handle.

NDArray does no math itself. Each operation validates its arguments,
normalizes the cases the engine handles differently (scalars, empty
arrays, unsupported axis combinations) and forwards to the engine.

Keep this SIMPLE and READABLE.
"""

import math
import numbers
import numpy as np
from typing import Any, Optional, Sequence, Union

from ndtorch.config import get_config
from ndtorch.debug import debug_print_array
from ndtorch.errors import (
    UnsupportedOperationError, dtype_mismatch_error, not_implemented_error, single_axis_error,
)
from ndtorch.ndarray.index import NDIndex, NDIndexBooleans
from ndtorch.ndarray.ndarray_ex import NDArrayEx
from ndtorch.ndarray.ndlist import NDList
from ndtorch.ndarray.resource import NativeResource
from ndtorch.ndarray.types import DataType, Device, Shape, SparseFormat, as_shape


def _is_number(value) -> bool:
    return isinstance(value, (numbers.Number, np.bool_)) and not isinstance(value, np.ndarray)


def _as_axes(axes) -> tuple:
    if isinstance(axes, numbers.Integral):
        return (int(axes),)
    return tuple(int(a) for a in axes)


class NDArray(NativeResource):
    """
    Array whose memory is owned by the native engine.

    Shape, data type, device and sparse format are read from the engine the
    first time they are needed and cached afterwards.
    """

    def __init__(self, manager, handle: Any, device: Optional[Device] = None,
                 shape: Optional[Shape] = None, data_type: Optional[DataType] = None):
        super().__init__(handle, 'nd')
        if shape is not None:
            shape = as_shape(shape)
            if any(d < 0 for d in shape):
                raise ValueError("The shape must be >= 0")
        self._manager = manager
        self._engine = manager.engine
        self._name: Optional[str] = None
        self._device = device
        self._shape = shape
        self._data_type = data_type
        self._sparse_format: Optional[SparseFormat] = None
        self._ex = NDArrayEx(self)
        manager.attach_internal(self.uid, self)
        debug_print_array(f"created {self.uid} in {manager.uid}")

    # Metadata

    @property
    def manager(self):
        return self._manager

    @property
    def name(self) -> Optional[str]:
        return self._name

    @name.setter
    def name(self, name: str):
        self._name = name

    @property
    def data_type(self) -> DataType:
        if self._data_type is None:
            self._data_type = self._engine.get_data_type(self.handle)
        return self._data_type

    @property
    def device(self) -> Device:
        if self._device is None:
            self._device = self._engine.get_device(self.handle)
        return self._device

    @property
    def shape(self) -> Shape:
        if self._shape is None:
            self._shape = self._engine.get_shape(self.handle)
        return self._shape

    @property
    def sparse_format(self) -> SparseFormat:
        if self._sparse_format is None:
            self._sparse_format = self._engine.get_sparse_format(self.handle)
        return self._sparse_format

    def size(self, axis: Optional[int] = None) -> int:
        return self.shape.size(axis)

    def is_scalar(self) -> bool:
        return self.shape.is_scalar()

    def is_empty(self) -> bool:
        return self.shape.size() == 0

    def is_sparse(self) -> bool:
        return self.sparse_format != SparseFormat.DENSE

    def shape_equals(self, other: 'NDArray') -> bool:
        return self.shape == other.shape

    def get_ndarray_internal(self) -> NDArrayEx:
        return self._ex

    # Helpers

    def _wrap(self, handle: Any) -> 'NDArray':
        return self._manager.from_handle(handle)

    def _operand(self, other):
        if isinstance(other, NDArray):
            return other.handle
        if _is_number(other):
            return other
        raise TypeError(f"Unsupported operand type for NDArray: {type(other).__name__}")

    def _unary(self, op: str) -> 'NDArray':
        return self._wrap(self._engine.unary(op, self.handle))

    def _binary(self, op: str, other) -> 'NDArray':
        return self._wrap(self._engine.binary(op, self.handle, self._operand(other)))

    def _inplace(self, op: str, other) -> 'NDArray':
        self._engine.binary_inplace(op, self.handle, self._operand(other))
        return self

    # Conversion

    def to_device(self, device: Device, copy: bool = False) -> 'NDArray':
        if device == self.device and not copy:
            return self
        return self._wrap(self._engine.to(self.handle, self.data_type, device, copy))

    def to_type(self, data_type, copy: bool = False) -> 'NDArray':
        data_type = DataType.of(data_type)
        if data_type == self.data_type and not copy:
            return self
        return self._wrap(self._engine.to(self.handle, data_type, self.device, copy))

    def to_numpy(self) -> np.ndarray:
        return self._engine.to_numpy(self.handle)

    def to_list(self):
        return self.to_numpy().tolist()

    def item(self):
        """Python scalar of a one-element array."""
        if self.size() != 1:
            raise ValueError(f"item() only works on arrays with 1 element, got {self.size()}")
        return self.to_numpy().reshape(-1)[0].item()

    def to_byte_buffer(self) -> bytes:
        """Raw element bytes in native byte order, row-major."""
        return self._engine.get_byte_buffer(self.handle)

    def set(self, data):
        """Overwrite every element from a buffer, numpy array or (nested) list."""
        if isinstance(data, (bytes, bytearray, memoryview)):
            array = np.frombuffer(data, dtype=self.data_type.as_numpy())
        else:
            array = np.asarray(data, dtype=self.data_type.as_numpy())
        if array.size != self.size():
            raise ValueError(f"Data size mismatch: expected {self.size()} elements, got {array.size}")
        self._engine.set_data(self.handle, array)

    def duplicate(self) -> 'NDArray':
        return self._wrap(self._engine.clone(self.handle))

    def copy_to(self, array: 'NDArray'):
        if not self.shape_equals(array):
            raise ValueError(f"shape are not the same: {self.shape} vs {array.shape}")
        self._engine.copy_into(self.handle, array.handle)

    def to_dense(self) -> 'NDArray':
        if not self.is_sparse():
            return self.duplicate()
        return self._wrap(self._engine.to_dense(self.handle))

    def to_sparse(self, fmt: SparseFormat) -> 'NDArray':
        if fmt == SparseFormat.DENSE:
            raise ValueError("Default type is not allowed")
        if fmt != SparseFormat.COO or not self._engine.supports_sparse():
            raise UnsupportedOperationError("Only COO sparse type supported for PyTorch")
        if fmt == self.sparse_format:
            return self.duplicate()
        return self._wrap(self._engine.to_sparse(self.handle))

    def attach(self, manager):
        """Move ownership to another manager."""
        if manager is self._manager:
            return
        manager.attach_internal(self.uid, self)
        self._manager.detach_internal(self.uid)
        self._manager = manager

    # Gradient

    def attach_gradient(self):
        self._engine.requires_grad(self.handle, True)

    def has_gradient(self) -> bool:
        return self._engine.is_requires_grad(self.handle)

    def get_gradient(self) -> 'NDArray':
        grad = self._engine.grad(self.handle)
        if grad is None:
            raise ValueError("No gradient attached to this NDArray, call attach_gradient() and backward() first")
        return self._wrap(grad)

    def backward(self):
        self._engine.backward(self.handle)

    # Indexing

    def get(self, *index) -> 'NDArray':
        """
        Select a region of this array.

        Accepts an NDIndex, a string ("1:3, ::2") with {} arguments, or
        Python subscripts.
        """
        if len(index) == 1:
            index = NDIndex.of(index[0])
        else:
            index = NDIndex(*index)
        if self.is_scalar():
            return self.duplicate()

        indices = index.get_indices()
        if indices and isinstance(indices[0], NDIndexBooleans):
            if len(indices) != 1:
                raise ValueError("get() currently does not support more than one boolean NDArray")
            return self.boolean_mask(indices[0].index, 0)

        full_slice = index.get_as_full_slice(self.shape)
        if full_slice is None:
            raise UnsupportedOperationError("get() currently supports all, fixed, and slices indices")

        sliced = self._wrap(self._engine.index(self.handle, full_slice.min, full_slice.max, full_slice.step))
        if not full_slice.to_squeeze:
            return sliced
        result = sliced.squeeze(full_slice.to_squeeze)
        sliced.close()
        return result

    def set_index(self, index, value):
        """Assign `value` (NDArray or number) to the region selected by `index`."""
        index = NDIndex.of(index)
        indices = index.get_indices()
        if indices and isinstance(indices[0], NDIndexBooleans):
            if len(indices) != 1:
                raise ValueError("set() currently does not support more than one boolean NDArray")
            mask = indices[0].index
            self._engine.boolean_mask_set(self.handle, self._operand(value), mask.handle)
            return

        full_slice = index.get_as_full_slice(self.shape)
        if full_slice is None:
            raise UnsupportedOperationError("set() currently supports all, fixed, and slices indices")

        original = value if isinstance(value, NDArray) else self._manager.create(value, data_type=self.data_type)
        prepare_value = [original]
        prepare_value.append(prepare_value[-1].to_device(self.device, copy=False))
        # target (1, 10, 1) with a value of 10 elements: drop leading axes until the sizes fit
        target_shape = full_slice.shape
        while target_shape.size() > original.size():
            target_shape = target_shape.slice(1)
        prepare_value.append(prepare_value[-1].reshape(target_shape))
        prepare_value.append(prepare_value[-1].broadcast(full_slice.shape))
        try:
            self._engine.index_set(
                self.handle,
                prepare_value[-1].handle,
                full_slice.min,
                full_slice.max,
                full_slice.step,
            )
        finally:
            for to_clean in prepare_value:
                if to_clean is not value and to_clean is not self:
                    to_clean.close()

    def boolean_mask(self, index: 'NDArray', axis: int = 0) -> 'NDArray':
        if index.data_type != DataType.BOOLEAN:
            raise ValueError(f"boolean_mask() requires a boolean index, got {index.data_type}")
        index_shape = index.shape
        if index_shape == self.shape:
            # Result is flattened since shape is undetermined
            return self._wrap(self._engine.boolean_mask(self.handle, index.handle))
        if index_shape == self.shape.slice(axis):
            # index will be broadcast over the leading axes
            flat = self._engine.boolean_mask(self.handle, index.handle)
            remainder = self.shape.slice(0, axis)
            selected = self._engine.get_shape(flat).size()
            if remainder.size() > 0:
                selected //= remainder.size()
            return self._wrap(self._engine.reshape(flat, remainder.add_all([selected])))
        raise UnsupportedOperationError(
            f"Not supported for shape not broadcastable {index_shape} vs {self.shape}"
        )

    def sequence_mask(self, sequence_length: 'NDArray', value: float = 0.0) -> 'NDArray':
        """Set every element at or after each row's length (along axis 1) to `value`."""
        if self.shape.dimension() < 2:
            raise ValueError(f"sequence_mask() requires at least 2 dimensions, got {self.shape}")
        if sequence_length.shape != (self.shape.get(0),):
            raise ValueError(
                f"sequence_length must have shape ({self.shape.get(0)},), got {sequence_length.shape}"
            )
        return self._wrap(self._engine.sequence_mask(self.handle, sequence_length.handle, value))

    def create_mask(self, predicate):
        raise UnsupportedOperationError(not_implemented_error('create_mask'))

    def zeros_like(self) -> 'NDArray':
        return self._wrap(self._engine.zeros_like(self.handle, self.data_type, self.device))

    def ones_like(self) -> 'NDArray':
        return self._wrap(self._engine.ones_like(self.handle, self.data_type, self.device))

    def content_equals(self, other) -> bool:
        if other is None:
            return False
        if _is_number(other):
            return self._engine.content_equal(self.handle, other)
        if not isinstance(other, NDArray):
            return False
        if not self.shape_equals(other):
            return False
        if self.data_type != other.data_type:
            return False
        return self._engine.content_equal(self.handle, other.handle)

    # Comparison

    def eq(self, other) -> 'NDArray':
        return self._binary('eq', other)

    def neq(self, other) -> 'NDArray':
        return self._binary('ne', other)

    def gt(self, other) -> 'NDArray':
        return self._binary('gt', other)

    def gte(self, other) -> 'NDArray':
        return self._binary('ge', other)

    def lt(self, other) -> 'NDArray':
        return self._binary('lt', other)

    def lte(self, other) -> 'NDArray':
        return self._binary('le', other)

    # Arithmetic

    def add(self, other) -> 'NDArray':
        return self._binary('add', other)

    def sub(self, other) -> 'NDArray':
        return self._binary('sub', other)

    def mul(self, other) -> 'NDArray':
        return self._binary('mul', other)

    def div(self, other) -> 'NDArray':
        return self._binary('div', other)

    def mod(self, other) -> 'NDArray':
        return self._binary('remainder', other)

    def pow(self, other) -> 'NDArray':
        return self._binary('pow', other)

    def addi(self, other) -> 'NDArray':
        return self._inplace('add', other)

    def subi(self, other) -> 'NDArray':
        return self._inplace('sub', other)

    def muli(self, other) -> 'NDArray':
        return self._inplace('mul', other)

    def divi(self, other) -> 'NDArray':
        return self._inplace('div', other)

    def modi(self, other) -> 'NDArray':
        return self._inplace('remainder', other)

    def powi(self, other) -> 'NDArray':
        return self._inplace('pow', other)

    def maximum(self, other) -> 'NDArray':
        return self._elementwise_extreme('maximum', other)

    def minimum(self, other) -> 'NDArray':
        return self._elementwise_extreme('minimum', other)

    def _elementwise_extreme(self, op: str, other) -> 'NDArray':
        if isinstance(other, NDArray):
            if other.data_type != self.data_type:
                raise ValueError(dtype_mismatch_error(self.data_type, other.data_type))
            return self._wrap(self._engine.binary(op, self.handle, other.handle))
        scalar = self._engine.full((), self._operand(other), self.data_type, self.device)
        return self._wrap(self._engine.binary(op, self.handle, scalar))

    # Logic

    def all(self) -> 'NDArray':
        return self._wrap(self._engine.all(self._as_boolean()))

    def any(self) -> 'NDArray':
        return self._wrap(self._engine.any(self._as_boolean()))

    def none(self) -> 'NDArray':
        return self._wrap(self._engine.none(self._as_boolean()))

    def _as_boolean(self):
        return self._engine.to(self.handle, DataType.BOOLEAN, self.device, True)

    def logical_and(self, other: 'NDArray') -> 'NDArray':
        return self._wrap(self._engine.binary('logical_and', self.handle, other.handle))

    def logical_or(self, other: 'NDArray') -> 'NDArray':
        return self._wrap(self._engine.binary('logical_or', self.handle, other.handle))

    def logical_xor(self, other: 'NDArray') -> 'NDArray':
        return self._wrap(self._engine.binary('logical_xor', self.handle, other.handle))

    def logical_not(self) -> 'NDArray':
        return self._unary('logical_not')

    # Unary math

    def neg(self) -> 'NDArray':
        return self._unary('neg')

    def negi(self) -> 'NDArray':
        self._engine.unary_inplace('neg', self.handle)
        return self

    def abs(self) -> 'NDArray':
        return self._unary('abs')

    def square(self) -> 'NDArray':
        return self._unary('square')

    def sqrt(self) -> 'NDArray':
        return self._unary('sqrt')

    def cbrt(self) -> 'NDArray':
        return self._wrap(self._engine.binary('pow', self.handle, 1.0 / 3))

    def floor(self) -> 'NDArray':
        return self._unary('floor')

    def ceil(self) -> 'NDArray':
        return self._unary('ceil')

    def round(self) -> 'NDArray':
        return self._unary('round')

    def trunc(self) -> 'NDArray':
        return self._unary('trunc')

    def exp(self) -> 'NDArray':
        return self._unary('exp')

    def log(self) -> 'NDArray':
        return self._unary('log')

    def log10(self) -> 'NDArray':
        return self._unary('log10')

    def log2(self) -> 'NDArray':
        return self._unary('log2')

    def sin(self) -> 'NDArray':
        return self._unary('sin')

    def cos(self) -> 'NDArray':
        return self._unary('cos')

    def tan(self) -> 'NDArray':
        return self._unary('tan')

    def asin(self) -> 'NDArray':
        return self._unary('asin')

    def acos(self) -> 'NDArray':
        return self._unary('acos')

    def atan(self) -> 'NDArray':
        return self._unary('atan')

    def sinh(self) -> 'NDArray':
        return self._unary('sinh')

    def cosh(self) -> 'NDArray':
        return self._unary('cosh')

    def tanh(self) -> 'NDArray':
        return self._unary('tanh')

    def asinh(self) -> 'NDArray':
        return self._unary('asinh')

    def acosh(self) -> 'NDArray':
        return self._unary('acosh')

    def atanh(self) -> 'NDArray':
        return self._unary('atanh')

    def to_degrees(self) -> 'NDArray':
        scaled = self._engine.binary('mul', self.handle, 180.0)
        return self._wrap(self._engine.binary('div', scaled, math.pi))

    def to_radians(self) -> 'NDArray':
        scaled = self._engine.binary('mul', self.handle, math.pi)
        return self._wrap(self._engine.binary('div', scaled, 180.0))

    def is_infinite(self) -> 'NDArray':
        return self._unary('is_inf')

    def is_nan(self) -> 'NDArray':
        return self._unary('is_nan')

    # Reductions

    def max(self, axes=None, keep_dims: bool = False) -> 'NDArray':
        return self._single_axis_reduce('max', self._engine.amax, axes, keep_dims)

    def min(self, axes=None, keep_dims: bool = False) -> 'NDArray':
        return self._single_axis_reduce('min', self._engine.amin, axes, keep_dims)

    def mean(self, axes=None, keep_dims: bool = False) -> 'NDArray':
        return self._single_axis_reduce('mean', self._engine.mean, axes, keep_dims)

    def _single_axis_reduce(self, op: str, native, axes, keep_dims: bool) -> 'NDArray':
        if axes is None:
            return self._wrap(native(self.handle))
        axes = _as_axes(axes)
        if len(axes) > 1:
            raise UnsupportedOperationError(single_axis_error(op, axes))
        if not axes:
            return self._wrap(native(self.handle))
        return self._wrap(native(self.handle, axes[0], keep_dims))

    def sum(self, axes=None, keep_dims: bool = False) -> 'NDArray':
        if axes is None:
            return self._wrap(self._engine.sum(self.handle))
        return self._wrap(self._engine.sum(self.handle, _as_axes(axes), keep_dims))

    def prod(self, axes=None, keep_dims: bool = False) -> 'NDArray':
        if axes is None:
            return self._wrap(self._engine.prod(self.handle))
        return self._wrap(self._engine.prod(self.handle, _as_axes(axes), keep_dims))

    def trace(self, offset: int = 0, axis1: int = 0, axis2: int = 1) -> 'NDArray':
        if self.shape.dimension() < 2:
            raise ValueError(f"trace() requires at least 2 dimensions, got {self.shape}")
        return self._wrap(self._engine.trace(self.handle, offset, axis1, axis2))

    def percentile(self, percentile, axes=None):
        raise UnsupportedOperationError(not_implemented_error('percentile'))

    def median(self, axes=None):
        raise UnsupportedOperationError(not_implemented_error('median'))

    def cumsum(self, axis: Optional[int] = None) -> 'NDArray':
        if axis is None:
            if self.is_scalar():
                return self.reshape(1)
            if self.is_empty():
                return self.reshape(0)
            axis = 0
        return self._wrap(self._engine.cumsum(self.handle, axis))

    def argmax(self, axis: Optional[int] = None) -> 'NDArray':
        return self._arg_extreme('argmax', self._engine.argmax, axis)

    def argmin(self, axis: Optional[int] = None) -> 'NDArray':
        return self._arg_extreme('argmin', self._engine.argmin, axis)

    def _arg_extreme(self, op: str, native, axis: Optional[int]) -> 'NDArray':
        if axis is None:
            if self.is_empty():
                raise ValueError(f"attempt to get {op} of an empty NDArray")
            return self._wrap(native(self.handle))
        if self.is_empty():
            shape = self.shape.reduction_shape_of_empty(axis)
            return self._manager.zeros(shape, DataType.INT64)
        # torch rejects an axis on 0-d tensors
        if self.is_scalar():
            return self._manager.create(0, data_type=DataType.INT64)
        return self._wrap(native(self.handle, axis, False))

    def nonzero(self) -> 'NDArray':
        return self._wrap(self._engine.nonzero(self.handle))

    # Shapes

    def split(self, sections_or_indices: Union[int, Sequence[int]], axis: int = 0) -> NDList:
        """
        Split along an axis.

        An int splits into that many equal sections. A sequence gives the
        positions to split at.
        """
        length = self.shape.get(axis)
        if isinstance(sections_or_indices, numbers.Integral):
            sections = int(sections_or_indices)
            if sections <= 0 or length % sections != 0:
                raise ValueError(f"array split does not result in an equal division: {length} into {sections}")
            if length == 0:
                return NDList(self.duplicate() for _ in range(sections))
            handles = self._engine.split(self.handle, length // sections, axis)
            return NDList(self._wrap(h) for h in handles)

        indices = list(sections_or_indices)
        if not indices:
            return NDList([self.duplicate()])
        sizes = [indices[0]]
        sizes.extend(indices[i] - indices[i - 1] for i in range(1, len(indices)))
        sizes.append(length - indices[-1])
        if any(s < 0 for s in sizes):
            raise ValueError(f"split indices must be ascending and within [0, {length}], got {indices}")
        handles = self._engine.split(self.handle, sizes, axis)
        return NDList(self._wrap(h) for h in handles)

    def flatten(self) -> 'NDArray':
        return self._wrap(self._engine.flatten(self.handle, 0, -1))

    def reshape(self, *shape) -> 'NDArray':
        if len(shape) == 1 and not isinstance(shape[0], numbers.Integral):
            shape = shape[0]
        target = self._infer_shape(tuple(shape))
        return self._wrap(self._engine.reshape(self.handle, target))

    def _infer_shape(self, dims: tuple) -> Shape:
        dims = [int(d) for d in dims]
        unknown = [i for i, d in enumerate(dims) if d == -1]
        if len(unknown) > 1 or any(d < -1 for d in dims):
            raise ValueError(f"Invalid shape {tuple(dims)}")
        known = math.prod(d for d in dims if d != -1)
        size = self.size()
        if unknown:
            if known == 0 or size % known != 0:
                raise ValueError(f"cannot reshape array of shape {self.shape} into {tuple(dims)}")
            dims[unknown[0]] = size // known
        elif known != size:
            raise ValueError(f"cannot reshape array of shape {self.shape} into {tuple(dims)}")
        return Shape(tuple(dims))

    def reshape_like(self, array: 'NDArray') -> 'NDArray':
        return self.reshape(array.shape)

    def expand_dims(self, axis: int) -> 'NDArray':
        return self._wrap(self._engine.unsqueeze(self.handle, axis))

    def squeeze(self, axes=None) -> 'NDArray':
        if axes is None:
            return self._wrap(self._engine.squeeze(self.handle))
        axes = _as_axes(axes)
        if self.is_scalar():
            if len(axes) > 1 or (axes and axes[0] != 0):
                raise ValueError(f"axis {axes[0]} is out of bounds for array of dimension 0")
            return self.duplicate()

        dims = self.shape.to_tuple()
        normalized = set()
        for axis in axes:
            if not -len(dims) <= axis < len(dims):
                raise ValueError(f"axis {axis} is out of bounds for array of dimension {len(dims)}")
            axis %= len(dims)
            if dims[axis] != 1:
                raise ValueError("cannot select an axis to squeeze out which has size not equal to one")
            normalized.add(axis)
        return self.reshape(tuple(d for i, d in enumerate(dims) if i not in normalized))

    def swap_axes(self, axis1: int, axis2: int) -> 'NDArray':
        return self._wrap(self._engine.transpose(self.handle, axis1, axis2))

    def transpose(self, *axes) -> 'NDArray':
        if len(axes) == 1 and not isinstance(axes[0], numbers.Integral):
            axes = tuple(axes[0])
        ndim = self.shape.dimension()
        if not axes:
            axes = tuple(reversed(range(ndim)))
        elif self.is_scalar() or len(axes) != ndim:
            raise ValueError("axes don't match NDArray")
        return self._wrap(self._engine.permute(self.handle, axes))

    def broadcast(self, *shape) -> 'NDArray':
        if len(shape) == 1 and not isinstance(shape[0], numbers.Integral):
            shape = shape[0]
        return self._wrap(self._engine.broadcast(self.handle, tuple(shape)))

    # Sorting

    def arg_sort(self, axis: int = -1, ascending: bool = True) -> 'NDArray':
        if not ascending:
            raise UnsupportedOperationError("Only support ascending!")
        return self._wrap(self._engine.argsort(self.handle, axis, False))

    def sort(self, axis: int = -1) -> 'NDArray':
        return self._wrap(self._engine.sort(self.handle, axis, False))

    def softmax(self, axes=-1, temperature: float = 1.0) -> 'NDArray':
        axis = self._softmax_axis('softmax', axes, temperature)
        return self._wrap(self._engine.softmax(self.handle, axis, self.data_type))

    def log_softmax(self, axes=-1, temperature: float = 1.0) -> 'NDArray':
        axis = self._softmax_axis('log_softmax', axes, temperature)
        return self._wrap(self._engine.log_softmax(self.handle, axis, self.data_type))

    @staticmethod
    def _softmax_axis(op: str, axes, temperature: float) -> int:
        if temperature != 1.0:
            raise UnsupportedOperationError(not_implemented_error(op, "temperature is not supported"))
        axes = _as_axes(axes)
        if len(axes) != 1:
            raise UnsupportedOperationError(not_implemented_error(op, "multiple dimensions are not supported"))
        return axes[0]

    # Repetition

    def tile(self, repeats, axis: Optional[int] = None) -> 'NDArray':
        if axis is not None:
            raise UnsupportedOperationError(not_implemented_error('tile', "tiling along a single axis"))
        if isinstance(repeats, Shape):
            raise UnsupportedOperationError(not_implemented_error('tile', "tiling to a target shape"))
        if isinstance(repeats, numbers.Integral):
            if self.is_empty():
                return self.duplicate()
            dim = 1 if self.is_scalar() else self.shape.dimension()
            repeats = [int(repeats)] * dim
        return self._wrap(self._engine.tile(self.handle, tuple(repeats)))

    def repeat(self, repeats, axis: Optional[int] = None) -> 'NDArray':
        if isinstance(repeats, Shape):
            raise UnsupportedOperationError(not_implemented_error('repeat', "repeating to a target shape"))
        if axis is not None:
            return self._wrap(self._engine.repeat(self.handle, int(repeats), axis))
        if isinstance(repeats, numbers.Integral):
            if self.is_empty():
                return self.duplicate()
            dim = 1 if self.is_scalar() else self.shape.dimension()
            repeats = [int(repeats)] * dim
        handle = self.handle
        for dim, count in enumerate(repeats):
            handle = self._engine.repeat(handle, count, dim)
        return self._wrap(handle)

    # Linear algebra

    def dot(self, other: 'NDArray') -> 'NDArray':
        self_dim = self.shape.dimension()
        other_dim = other.shape.dimension()
        if self_dim != other_dim or self_dim > 2:
            raise UnsupportedOperationError(
                "Dimension mismatch or high dimensional dot operation is not supported. Please use matmul instead."
            )
        return self._wrap(self._engine.dot(self.handle, other.handle))

    def matmul(self, other: 'NDArray') -> 'NDArray':
        if self.is_scalar() or other.is_scalar():
            raise ValueError("scalar is not allowed for matmul()")
        return self._wrap(self._engine.binary('matmul', self.handle, other.handle))

    def clip(self, min_value, max_value) -> 'NDArray':
        return self._wrap(self._engine.clip(self.handle, min_value, max_value))

    # Printing

    def to_debug_string(self, max_size: Optional[int] = None, max_depth: Optional[int] = None,
                        max_rows: Optional[int] = None, max_columns: Optional[int] = None) -> str:
        """
        Header line plus the values, summarized once there are more than
        max_size elements.

        max_rows and max_columns act as one limit: a summarized array shows
        min(max_rows, max_columns) // 2 leading and trailing items (at least
        one) along every axis. Arrays with more than max_depth dimensions
        print a placeholder instead of values.
        """
        options = get_config().print_options
        max_size = options.max_size if max_size is None else max_size
        max_depth = options.max_depth if max_depth is None else max_depth
        max_rows = options.max_rows if max_rows is None else max_rows
        max_columns = options.max_columns if max_columns is None else max_columns

        header = f"ND: {self.shape} {self.device} {self.data_type}"
        if self.is_sparse():
            header += f" {self.sparse_format.value}"
        if self.has_gradient():
            header += " hasGradient"

        if self.shape.dimension() > max_depth:
            return f"{header}\n[ Exceed max print dimension ]"

        body = np.array2string(
            self.to_numpy(),
            threshold=max_size,
            edgeitems=max(1, min(max_rows, max_columns) // 2),
            precision=4,
            suppress_small=True,
            separator=', ',
        )
        return f"{header}\n{body}"

    def __repr__(self):
        if self.is_released():
            return "This array is already closed"
        return self.to_debug_string()

    def __str__(self):
        return self.__repr__()

    # Lifecycle

    def close(self):
        handle = self._take_handle()
        if handle is not None:
            self._engine.delete(handle)
            self._manager.detach_internal(self.uid)
            debug_print_array(f"released {self.uid} from {self._manager.uid}")
            self._manager = None

    # Python protocol

    def __eq__(self, other):
        if not (isinstance(other, NDArray) or _is_number(other)):
            return NotImplemented
        return self.eq(other)

    def __ne__(self, other):
        if not (isinstance(other, NDArray) or _is_number(other)):
            return NotImplemented
        return self.neq(other)

    __hash__ = NativeResource.__hash__

    def __bool__(self):
        if self.size() != 1:
            raise ValueError("The truth value of an NDArray with more than one element is ambiguous")
        return bool(self.item())

    def __len__(self):
        if self.is_scalar():
            raise TypeError("len() of a 0-d NDArray")
        return self.shape.get(0)

    def __iter__(self):
        for i in range(len(self)):
            yield self.get(i)

    def __radd__(self, other):
        return self.add(other)

    def __rmul__(self, other):
        return self.mul(other)

    def __rsub__(self, other):
        return self._ex.rsub(other)

    def __rtruediv__(self, other):
        return self._ex.rdiv(other)

    def __rmod__(self, other):
        return self._ex.rmod(other)

    def __rpow__(self, other):
        return self._ex.rpow(other)

    def __setitem__(self, key, value):
        self.set_index(key, value)

    def __getitem__(self, key):
        return self.get(key)

    __add__ = add
    __sub__ = sub
    __mul__ = mul
    __truediv__ = div
    __mod__ = mod
    __pow__ = pow
    __matmul__ = matmul
    __iadd__ = addi
    __isub__ = subi
    __imul__ = muli
    __itruediv__ = divi
    __imod__ = modi
    __ipow__ = powi
    __neg__ = neg
    __abs__ = abs
    __invert__ = logical_not
    __and__ = logical_and
    __or__ = logical_or
    __xor__ = logical_xor
    __gt__ = gt
    __ge__ = gte
    __lt__ = lt
    __le__ = lte
