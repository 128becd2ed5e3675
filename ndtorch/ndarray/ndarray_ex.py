"""
Extended NDArray operations: reversed arithmetic, activations, pooling,
and multi-array ops (stack, concat, where).

Reached through NDArray.get_ndarray_internal().
"""

from typing import Sequence, Tuple, Union

from ndtorch.errors import dtype_mismatch_error


def _as_tuple(value: Union[int, Sequence[int]], length: int) -> Tuple[int, ...]:
    if isinstance(value, int):
        return (value,) * length
    return tuple(value)


class NDArrayEx:
    """Operations that are not part of the basic NDArray surface."""

    def __init__(self, array):
        self._array = array

    @property
    def _engine(self):
        return self._array._engine

    def _wrap(self, handle):
        return self._array._wrap(handle)

    def _reversed(self, op: str, other):
        return self._wrap(self._engine.binary(op, self._array._operand(other), self._array.handle))

    def _reversed_inplace(self, op: str, other):
        result = self._engine.binary(op, self._array._operand(other), self._array.handle)
        self._engine.copy_into(result, self._array.handle)
        return self._array

    # Reversed arithmetic: other <op> array

    def rsub(self, other):
        return self._wrap(self._engine.rsub(self._array.handle, self._array._operand(other)))

    def rdiv(self, other):
        return self._reversed('div', other)

    def rmod(self, other):
        return self._reversed('remainder', other)

    def rpow(self, other):
        return self._reversed('pow', other)

    def rsubi(self, other):
        return self._reversed_inplace('sub', other)

    def rdivi(self, other):
        return self._reversed_inplace('div', other)

    def rmodi(self, other):
        return self._reversed_inplace('remainder', other)

    def rpowi(self, other):
        return self._reversed_inplace('pow', other)

    # Activations

    def relu(self):
        return self._array._unary('relu')

    def sigmoid(self):
        return self._array._unary('sigmoid')

    def tanh(self):
        return self._array._unary('tanh')

    def soft_plus(self):
        return self._array._unary('soft_plus')

    def soft_sign(self):
        return self._array._unary('soft_sign')

    def leaky_relu(self, alpha: float = 0.01):
        return self._wrap(self._engine.leaky_relu(self._array.handle, alpha))

    def elu(self, alpha: float = 1.0):
        return self._wrap(self._engine.elu(self._array.handle, alpha))

    def selu(self):
        return self._array._unary('selu')

    def gelu(self):
        return self._array._unary('gelu')

    def swish(self, beta: float = 1.0):
        return self._wrap(self._engine.swish(self._array.handle, beta))

    def mish(self):
        return self._array._unary('mish')

    # Pooling

    def _check_pool_input(self, op: str, kernel_shape) -> Tuple[int, ...]:
        kernel_shape = tuple(kernel_shape)
        if not 1 <= len(kernel_shape) <= 3:
            raise ValueError(f"{op} supports 1, 2 or 3 spatial dimensions, got kernel {kernel_shape}")
        # (N, C, *spatial)
        expected = len(kernel_shape) + 2
        if self._array.shape.dimension() != expected:
            raise ValueError(
                f"{op} with a {len(kernel_shape)}-D kernel expects a {expected}-D input, got {self._array.shape}"
            )
        return kernel_shape

    def max_pool(self, kernel_shape, stride=None, padding=0, ceil_mode: bool = False):
        """
        Max pooling over the trailing spatial axes of an (N, C, ...) array.

        Args:
            kernel_shape: Window size per spatial axis
            stride: Step per spatial axis (defaults to the kernel size)
            padding: Implicit zero padding per spatial axis
            ceil_mode: Use ceil instead of floor to compute the output shape
        """
        kernel = self._check_pool_input('max_pool', kernel_shape)
        stride = kernel if stride is None else _as_tuple(stride, len(kernel))
        padding = _as_tuple(padding, len(kernel))
        return self._wrap(self._engine.max_pool(self._array.handle, kernel, stride, padding, ceil_mode))

    def avg_pool(self, kernel_shape, stride=None, padding=0, ceil_mode: bool = False,
                 count_include_pad: bool = True):
        """Average pooling, same arguments as max_pool plus count_include_pad."""
        kernel = self._check_pool_input('avg_pool', kernel_shape)
        stride = kernel if stride is None else _as_tuple(stride, len(kernel))
        padding = _as_tuple(padding, len(kernel))
        return self._wrap(
            self._engine.avg_pool(self._array.handle, kernel, stride, padding, ceil_mode, count_include_pad)
        )

    # Multi-array

    def stack(self, arrays, axis: int = 0):
        """Stack this array and `arrays` along a new axis."""
        arrays = [self._array] + list(arrays)
        for array in arrays[1:]:
            if array.shape != self._array.shape:
                raise ValueError(f"all input arrays must have the same shape: {self._array.shape} vs {array.shape}")
        return self._wrap(self._engine.stack([a.handle for a in arrays], axis))

    def concat(self, arrays, axis: int = 0):
        """Join this array and `arrays` along an existing axis."""
        arrays = [self._array] + list(arrays)
        if self._array.is_scalar():
            raise ValueError("zero-dimensional arrays cannot be concatenated")
        for array in arrays[1:]:
            if array.shape.dimension() != self._array.shape.dimension():
                raise ValueError(
                    f"all input arrays must have the same number of dimensions: {self._array.shape} vs {array.shape}"
                )
        return self._wrap(self._engine.concat([a.handle for a in arrays], axis))

    def where(self, condition, other):
        """Elements of this array where `condition` holds, of `other` elsewhere."""
        if hasattr(other, 'data_type') and other.data_type != self._array.data_type:
            raise ValueError(dtype_mismatch_error(self._array.data_type, other.data_type))
        return self._wrap(self._engine.where(condition.handle, self._array.handle, self._array._operand(other)))
