"""
PyTorch-based engine.

Every native call used by NDArray lives here. Handles are torch.Tensor
objects; the rest of ndtorch treats them as opaque.
"""

import numpy as np
import torch
import torch.nn.functional as F
from typing import List, Optional, Sequence, Tuple

from .base import Engine, native_call
from ndtorch.debug import debug_print_engine
from ndtorch.ndarray.types import DataType, Device, Shape, SparseFormat


_TORCH_DTYPES = {
    DataType.FLOAT32: torch.float32,
    DataType.FLOAT64: torch.float64,
    DataType.FLOAT16: torch.float16,
    DataType.UINT8: torch.uint8,
    DataType.INT8: torch.int8,
    DataType.INT32: torch.int32,
    DataType.INT64: torch.int64,
    DataType.BOOLEAN: torch.bool,
}
_FROM_TORCH_DTYPES = {v: k for k, v in _TORCH_DTYPES.items()}

_FROM_TORCH_LAYOUTS = {
    torch.strided: SparseFormat.DENSE,
    torch.sparse_coo: SparseFormat.COO,
    torch.sparse_csr: SparseFormat.CSR,
}


def to_torch_dtype(data_type: DataType) -> torch.dtype:
    return _TORCH_DTYPES[data_type]


def to_torch_device(device: Device) -> torch.device:
    if device.is_gpu():
        return torch.device('cuda', max(device.device_id, 0))
    return torch.device('cpu')


def from_torch_device(device: torch.device) -> Device:
    if device.type == 'cuda':
        return Device.gpu(device.index if device.index is not None else 0)
    return Device.cpu()


class PyTorchEngine(Engine):
    """PyTorch-based engine (CPU and CUDA)."""

    name = 'pytorch'

    UNARY_OPS = {
        'neg': torch.neg,
        'abs': torch.abs,
        'square': torch.square,
        'sqrt': torch.sqrt,
        'floor': torch.floor,
        'ceil': torch.ceil,
        'round': torch.round,
        'trunc': torch.trunc,
        'exp': torch.exp,
        'log': torch.log,
        'log10': torch.log10,
        'log2': torch.log2,
        'sin': torch.sin,
        'cos': torch.cos,
        'tan': torch.tan,
        'asin': torch.asin,
        'acos': torch.acos,
        'atan': torch.atan,
        'sinh': torch.sinh,
        'cosh': torch.cosh,
        'tanh': torch.tanh,
        'asinh': torch.asinh,
        'acosh': torch.acosh,
        'atanh': torch.atanh,
        'is_inf': torch.isinf,
        'is_nan': torch.isnan,
        'logical_not': torch.logical_not,
        # activations
        'relu': torch.relu,
        'sigmoid': torch.sigmoid,
        'soft_plus': F.softplus,
        'soft_sign': F.softsign,
        'selu': F.selu,
        'gelu': F.gelu,
        'mish': F.mish,
    }

    BINARY_OPS = {
        'add': torch.add,
        'sub': torch.sub,
        'mul': torch.mul,
        'div': torch.div,
        'remainder': torch.remainder,
        'pow': torch.pow,
        'maximum': torch.maximum,
        'minimum': torch.minimum,
        'eq': torch.eq,
        'ne': torch.ne,
        'gt': torch.gt,
        'ge': torch.ge,
        'lt': torch.lt,
        'le': torch.le,
        'logical_and': torch.logical_and,
        'logical_or': torch.logical_or,
        'logical_xor': torch.logical_xor,
        'matmul': torch.matmul,
    }

    # Ops that need both operands as tensors
    TENSOR_ONLY_OPS = {'maximum', 'minimum', 'logical_and', 'logical_or', 'logical_xor', 'matmul'}

    INPLACE_OPS = {'add', 'sub', 'mul', 'div', 'remainder', 'pow', 'neg'}

    # Metadata

    @native_call
    def get_shape(self, handle: torch.Tensor) -> Shape:
        return Shape(tuple(handle.shape))

    @native_call
    def get_data_type(self, handle: torch.Tensor) -> DataType:
        if handle.dtype not in _FROM_TORCH_DTYPES:
            raise ValueError(f"Unsupported torch dtype: {handle.dtype}")
        return _FROM_TORCH_DTYPES[handle.dtype]

    @native_call
    def get_device(self, handle: torch.Tensor) -> Device:
        return from_torch_device(handle.device)

    @native_call
    def get_sparse_format(self, handle: torch.Tensor) -> SparseFormat:
        return _FROM_TORCH_LAYOUTS.get(handle.layout, SparseFormat.DENSE)

    def supports_sparse(self) -> bool:
        return True

    # Lifecycle

    @native_call
    def create(self, data: np.ndarray, device: Device) -> torch.Tensor:
        # torch.from_numpy needs a writable, native-order buffer
        array = np.array(data, copy=True, order='C')
        if not array.dtype.isnative:
            array = array.astype(array.dtype.newbyteorder('='))
        return torch.from_numpy(array).to(to_torch_device(device))

    @native_call
    def delete(self, handle: torch.Tensor):
        # Memory is returned to the caching allocator once the last reference is dropped
        self.stats['handles']['deleted'] += 1
        del handle

    @native_call
    def zeros(self, shape: Sequence[int], data_type: DataType, device: Device) -> torch.Tensor:
        return torch.zeros(tuple(shape), dtype=to_torch_dtype(data_type), device=to_torch_device(device))

    @native_call
    def ones(self, shape: Sequence[int], data_type: DataType, device: Device) -> torch.Tensor:
        return torch.ones(tuple(shape), dtype=to_torch_dtype(data_type), device=to_torch_device(device))

    @native_call
    def full(self, shape: Sequence[int], value, data_type: DataType, device: Device) -> torch.Tensor:
        return torch.full(tuple(shape), value, dtype=to_torch_dtype(data_type), device=to_torch_device(device))

    @native_call
    def arange(self, start, stop, step, data_type: DataType, device: Device) -> torch.Tensor:
        return torch.arange(start, stop, step, dtype=to_torch_dtype(data_type), device=to_torch_device(device))

    @native_call
    def linspace(self, start, stop, num: int, endpoint: bool, data_type: DataType, device: Device) -> torch.Tensor:
        torch_dtype = to_torch_dtype(data_type)
        torch_device = to_torch_device(device)
        if endpoint:
            return torch.linspace(start, stop, num, dtype=torch_dtype, device=torch_device)
        # Without the endpoint, sample num + 1 points and drop the last one
        points = torch.linspace(start, stop, num + 1, dtype=torch.float64, device=torch_device)
        return points[:num].to(torch_dtype)

    @native_call
    def eye(self, rows: int, cols: int, k: int, data_type: DataType, device: Device) -> torch.Tensor:
        eye = torch.zeros((rows, cols), dtype=to_torch_dtype(data_type), device=to_torch_device(device))
        eye.diagonal(offset=k).fill_(1)
        return eye

    @native_call
    def random_uniform(self, low, high, shape: Sequence[int], data_type: DataType, device: Device) -> torch.Tensor:
        tensor = torch.empty(tuple(shape), dtype=to_torch_dtype(data_type), device=to_torch_device(device))
        return tensor.uniform_(low, high)

    @native_call
    def random_normal(self, loc, scale, shape: Sequence[int], data_type: DataType, device: Device) -> torch.Tensor:
        tensor = torch.empty(tuple(shape), dtype=to_torch_dtype(data_type), device=to_torch_device(device))
        return tensor.normal_(loc, scale)

    @native_call
    def zeros_like(self, handle: torch.Tensor, data_type: DataType, device: Device) -> torch.Tensor:
        return torch.zeros_like(handle, dtype=to_torch_dtype(data_type), device=to_torch_device(device))

    @native_call
    def ones_like(self, handle: torch.Tensor, data_type: DataType, device: Device) -> torch.Tensor:
        return torch.ones_like(handle, dtype=to_torch_dtype(data_type), device=to_torch_device(device))

    @native_call
    def clone(self, handle: torch.Tensor) -> torch.Tensor:
        return handle.clone()

    @native_call
    def to(self, handle: torch.Tensor, data_type: DataType, device: Device, copy: bool) -> torch.Tensor:
        target_device = to_torch_device(device) if device is not None else handle.device
        target_dtype = to_torch_dtype(data_type) if data_type is not None else handle.dtype
        debug_print_engine(f"to: {handle.dtype}@{handle.device} -> {target_dtype}@{target_device} copy={copy}")
        return handle.to(device=target_device, dtype=target_dtype, copy=copy)

    # Data

    @native_call
    def to_numpy(self, handle: torch.Tensor) -> np.ndarray:
        tensor = handle.detach()
        if tensor.layout != torch.strided:
            tensor = tensor.to_dense()
        # .numpy() shares memory with a cpu tensor
        return tensor.cpu().numpy().copy()

    @native_call
    def get_byte_buffer(self, handle: torch.Tensor) -> bytes:
        # Native byte order, C-contiguous
        return np.ascontiguousarray(self.to_numpy(handle)).tobytes()

    @native_call
    def set_data(self, handle: torch.Tensor, data: np.ndarray):
        source = torch.from_numpy(np.array(data, copy=True, order='C')).reshape(handle.shape)
        with torch.no_grad():
            handle.copy_(source)

    @native_call
    def copy_into(self, source: torch.Tensor, target: torch.Tensor):
        with torch.no_grad():
            target.copy_(source)

    # Element-wise

    def _as_tensor(self, value, like: torch.Tensor) -> torch.Tensor:
        if isinstance(value, torch.Tensor):
            return value
        return torch.as_tensor(value, device=like.device)

    def unary(self, op: str, handle: torch.Tensor) -> torch.Tensor:
        if op not in self.UNARY_OPS:
            raise ValueError(f"Unknown unary op: {op}")
        self._record(op)
        return self.UNARY_OPS[op](handle)

    def binary(self, op: str, left, right) -> torch.Tensor:
        if op not in self.BINARY_OPS:
            raise ValueError(f"Unknown binary op: {op}")
        self._record(op)
        # torch functions take a python scalar only in the second position
        if not isinstance(left, torch.Tensor):
            left = self._as_tensor(left, right)
        if op in self.TENSOR_ONLY_OPS:
            right = self._as_tensor(right, left)
        return self.BINARY_OPS[op](left, right)

    def binary_inplace(self, op: str, handle: torch.Tensor, other) -> torch.Tensor:
        if op not in self.INPLACE_OPS:
            raise ValueError(f"Unknown in-place op: {op}")
        self._record(op + '_')
        return getattr(handle, op + '_')(other)

    def unary_inplace(self, op: str, handle: torch.Tensor) -> torch.Tensor:
        if op not in self.INPLACE_OPS:
            raise ValueError(f"Unknown in-place op: {op}")
        self._record(op + '_')
        return getattr(handle, op + '_')()

    @native_call
    def rsub(self, handle: torch.Tensor, other) -> torch.Tensor:
        return torch.rsub(handle, other)

    @native_call
    def clip(self, handle: torch.Tensor, min_value, max_value) -> torch.Tensor:
        return torch.clamp(handle, min_value, max_value)

    @native_call
    def where(self, condition: torch.Tensor, x, y) -> torch.Tensor:
        return torch.where(condition, x, y)

    @native_call
    def content_equal(self, left: torch.Tensor, right) -> bool:
        if isinstance(right, torch.Tensor):
            if left.device != right.device:
                right = right.to(left.device)
            return torch.equal(left, right)
        return bool(torch.all(left == right))

    # Reductions

    @native_call
    def amax(self, handle: torch.Tensor, axis: Optional[int] = None, keep_dims: bool = False) -> torch.Tensor:
        if axis is None:
            return torch.amax(handle) if handle.dim() > 0 else handle.clone()
        return torch.amax(handle, dim=axis, keepdim=keep_dims)

    @native_call
    def amin(self, handle: torch.Tensor, axis: Optional[int] = None, keep_dims: bool = False) -> torch.Tensor:
        if axis is None:
            return torch.amin(handle) if handle.dim() > 0 else handle.clone()
        return torch.amin(handle, dim=axis, keepdim=keep_dims)

    @native_call
    def sum(self, handle: torch.Tensor, axes: Optional[Sequence[int]] = None, keep_dims: bool = False) -> torch.Tensor:
        if axes is None:
            return torch.sum(handle)
        return torch.sum(handle, dim=tuple(axes), keepdim=keep_dims)

    @native_call
    def prod(self, handle: torch.Tensor, axes: Optional[Sequence[int]] = None, keep_dims: bool = False) -> torch.Tensor:
        if axes is None:
            return torch.prod(handle)
        # torch.prod reduces one dimension at a time; go from the last axis so indices stay valid
        result = handle
        for axis in sorted((a % handle.dim() for a in axes), reverse=True):
            result = torch.prod(result, dim=axis, keepdim=keep_dims)
        return result

    @native_call
    def mean(self, handle: torch.Tensor, axis: Optional[int] = None, keep_dims: bool = False) -> torch.Tensor:
        if axis is None:
            return torch.mean(handle)
        return torch.mean(handle, dim=axis, keepdim=keep_dims)

    @native_call
    def trace(self, handle: torch.Tensor, offset: int, axis1: int, axis2: int) -> torch.Tensor:
        return torch.diagonal(handle, offset=offset, dim1=axis1, dim2=axis2).sum(-1)

    @native_call
    def cumsum(self, handle: torch.Tensor, axis: int) -> torch.Tensor:
        return torch.cumsum(handle, dim=axis)

    @native_call
    def all(self, handle: torch.Tensor) -> torch.Tensor:
        return torch.all(handle)

    @native_call
    def any(self, handle: torch.Tensor) -> torch.Tensor:
        return torch.any(handle)

    @native_call
    def none(self, handle: torch.Tensor) -> torch.Tensor:
        return torch.logical_not(torch.any(handle))

    @native_call
    def argmax(self, handle: torch.Tensor, axis: Optional[int] = None, keep_dims: bool = False) -> torch.Tensor:
        if axis is None:
            return torch.argmax(handle)
        return torch.argmax(handle, dim=axis, keepdim=keep_dims)

    @native_call
    def argmin(self, handle: torch.Tensor, axis: Optional[int] = None, keep_dims: bool = False) -> torch.Tensor:
        if axis is None:
            return torch.argmin(handle)
        return torch.argmin(handle, dim=axis, keepdim=keep_dims)

    @native_call
    def nonzero(self, handle: torch.Tensor) -> torch.Tensor:
        return torch.nonzero(handle)

    # Sorting

    @native_call
    def sort(self, handle: torch.Tensor, axis: int, descending: bool) -> torch.Tensor:
        return torch.sort(handle, dim=axis, descending=descending).values

    @native_call
    def argsort(self, handle: torch.Tensor, axis: int, descending: bool) -> torch.Tensor:
        return torch.argsort(handle, dim=axis, descending=descending)

    @native_call
    def softmax(self, handle: torch.Tensor, axis: int, data_type: DataType) -> torch.Tensor:
        return torch.softmax(handle, dim=axis, dtype=to_torch_dtype(data_type))

    @native_call
    def log_softmax(self, handle: torch.Tensor, axis: int, data_type: DataType) -> torch.Tensor:
        return torch.log_softmax(handle, dim=axis, dtype=to_torch_dtype(data_type))

    # Shapes

    @native_call
    def reshape(self, handle: torch.Tensor, shape: Sequence[int]) -> torch.Tensor:
        return torch.reshape(handle, tuple(shape))

    @native_call
    def flatten(self, handle: torch.Tensor, start_dim: int, end_dim: int) -> torch.Tensor:
        return torch.flatten(handle, start_dim, end_dim)

    @native_call
    def unsqueeze(self, handle: torch.Tensor, axis: int) -> torch.Tensor:
        return torch.unsqueeze(handle, axis)

    @native_call
    def squeeze(self, handle: torch.Tensor, axis: Optional[int] = None) -> torch.Tensor:
        if axis is None:
            return torch.squeeze(handle)
        return torch.squeeze(handle, axis)

    @native_call
    def permute(self, handle: torch.Tensor, axes: Sequence[int]) -> torch.Tensor:
        return handle.permute(tuple(axes))

    @native_call
    def transpose(self, handle: torch.Tensor, axis1: int, axis2: int) -> torch.Tensor:
        return torch.transpose(handle, axis1, axis2)

    @native_call
    def broadcast(self, handle: torch.Tensor, shape: Sequence[int]) -> torch.Tensor:
        return handle.expand(tuple(shape))

    @native_call
    def split(self, handle: torch.Tensor, split_size, axis: int) -> List[torch.Tensor]:
        """Split by a chunk size (int) or by a list of section sizes."""
        return list(torch.split(handle, split_size, dim=axis))

    @native_call
    def tile(self, handle: torch.Tensor, repeats: Sequence[int]) -> torch.Tensor:
        return torch.tile(handle, tuple(repeats))

    @native_call
    def repeat(self, handle: torch.Tensor, repeats: int, axis: int) -> torch.Tensor:
        if handle.dim() == 0:
            handle = handle.reshape(1)
        return torch.repeat_interleave(handle, repeats, dim=axis)

    @native_call
    def stack(self, handles: Sequence[torch.Tensor], axis: int) -> torch.Tensor:
        return torch.stack(list(handles), dim=axis)

    @native_call
    def concat(self, handles: Sequence[torch.Tensor], axis: int) -> torch.Tensor:
        return torch.cat(list(handles), dim=axis)

    # Linear algebra

    @native_call
    def dot(self, left: torch.Tensor, right: torch.Tensor) -> torch.Tensor:
        if left.dim() == 0:
            return left * right
        if left.dim() == 1:
            return torch.dot(left, right)
        return torch.matmul(left, right)

    # Indexing

    @staticmethod
    def _slices(mins: Sequence[int], maxs: Sequence[int], steps: Sequence[int]) -> Tuple[slice, ...]:
        return tuple(slice(lo, hi, step) for lo, hi, step in zip(mins, maxs, steps))

    @native_call
    def index(self, handle: torch.Tensor, mins, maxs, steps) -> torch.Tensor:
        return handle[self._slices(mins, maxs, steps)]

    @native_call
    def index_set(self, handle: torch.Tensor, value: torch.Tensor, mins, maxs, steps):
        handle[self._slices(mins, maxs, steps)] = value

    @native_call
    def boolean_mask(self, handle: torch.Tensor, mask: torch.Tensor) -> torch.Tensor:
        return torch.masked_select(handle, mask)

    @native_call
    def boolean_mask_set(self, handle: torch.Tensor, value, mask: torch.Tensor):
        value = self._as_tensor(value, handle).to(device=handle.device, dtype=handle.dtype)
        handle.copy_(torch.where(mask, value, handle))

    @native_call
    def sequence_mask(self, handle: torch.Tensor, lengths: torch.Tensor, value) -> torch.Tensor:
        positions = torch.arange(handle.shape[1], device=handle.device)
        mask = positions.unsqueeze(0) >= lengths.to(handle.device).unsqueeze(1)
        # (batch, seq) -> (batch, seq, 1, ...) so it broadcasts over trailing axes
        mask = mask.reshape(mask.shape + (1,) * (handle.dim() - 2))
        return handle.masked_fill(mask, value)

    # Sparse

    @native_call
    def to_sparse(self, handle: torch.Tensor) -> torch.Tensor:
        return handle.to_sparse()

    @native_call
    def to_dense(self, handle: torch.Tensor) -> torch.Tensor:
        return handle.to_dense()

    # Neural network

    @native_call
    def leaky_relu(self, handle: torch.Tensor, alpha: float) -> torch.Tensor:
        return F.leaky_relu(handle, alpha)

    @native_call
    def elu(self, handle: torch.Tensor, alpha: float) -> torch.Tensor:
        return F.elu(handle, alpha)

    @native_call
    def swish(self, handle: torch.Tensor, beta: float) -> torch.Tensor:
        return handle * torch.sigmoid(handle * beta)

    @native_call
    def max_pool(self, handle: torch.Tensor, kernel, stride, padding, ceil_mode: bool) -> torch.Tensor:
        pool = {1: F.max_pool1d, 2: F.max_pool2d, 3: F.max_pool3d}[len(kernel)]
        return pool(handle, tuple(kernel), tuple(stride), tuple(padding), ceil_mode=ceil_mode)

    @native_call
    def avg_pool(self, handle: torch.Tensor, kernel, stride, padding, ceil_mode: bool,
                 count_include_pad: bool) -> torch.Tensor:
        pool = {1: F.avg_pool1d, 2: F.avg_pool2d, 3: F.avg_pool3d}[len(kernel)]
        return pool(handle, tuple(kernel), tuple(stride), tuple(padding),
                    ceil_mode=ceil_mode, count_include_pad=count_include_pad)

    # Autograd

    @native_call
    def requires_grad(self, handle: torch.Tensor, flag: bool):
        handle.requires_grad_(flag)

    @native_call
    def is_requires_grad(self, handle: torch.Tensor) -> bool:
        return handle.requires_grad

    @native_call
    def grad(self, handle: torch.Tensor) -> Optional[torch.Tensor]:
        return handle.grad

    @native_call
    def backward(self, handle: torch.Tensor):
        if handle.dim() == 0:
            handle.backward()
        else:
            handle.backward(torch.ones_like(handle))
