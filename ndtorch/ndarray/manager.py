"""
NDManager allocates NDArrays and owns them until they are released.

Keep this SIMPLE and READABLE.
"""

import numbers
import numpy as np
from typing import Any, Dict, Optional

from ndtorch.config import get_config
from ndtorch.debug import debug_print_manager
from ndtorch.engine import Engine, get_default_engine
from ndtorch.errors import manager_closed_error
from ndtorch.ndarray.resource import _get_next_uid
from ndtorch.ndarray.types import DataType, Device, Shape, as_shape


_INT32_RANGE = np.iinfo(np.int32)


def _fits_int32(values) -> bool:
    array = np.asarray(values)
    if array.size == 0:
        return True
    return _INT32_RANGE.min <= array.min() and array.max() <= _INT32_RANGE.max


def _integer_type(*values) -> DataType:
    """INT32 for Python ints, INT64 once a value is out of the int32 range."""
    return DataType.INT32 if _fits_int32([int(v) for v in values]) else DataType.INT64


class NDManager:
    """
    Owner of a group of NDArrays.

    Every array created through a manager is attached to it. Closing the
    manager releases every array (and sub-manager) still attached.

    Example:
        with NDManager.new_base_manager() as manager:
            a = manager.create([1.0, 2.0, 3.0])
            b = a * 2
        # a and b are released here
    """

    def __init__(self, parent: Optional['NDManager'] = None, device: Optional[Device] = None,
                 engine: Optional[Engine] = None):
        self._uid = _get_next_uid('mgr')
        self._parent = parent
        self._device = device if device is not None else Device.default_device()
        self._engine = engine if engine is not None else get_default_engine()
        self._resources: Dict[str, Any] = {}
        self._closed = False

    @classmethod
    def new_base_manager(cls, device: Optional[Device] = None, engine: Optional[Engine] = None) -> 'NDManager':
        """Create a root manager."""
        manager = cls(parent=None, device=device, engine=engine)
        debug_print_manager(f"new base manager {manager.uid} on {manager.device}")
        return manager

    def new_sub_manager(self, device: Optional[Device] = None) -> 'NDManager':
        """Create a child manager; closing this manager closes the child too."""
        sub = NDManager(parent=self, device=device if device is not None else self._device, engine=self._engine)
        self.attach_internal(sub.uid, sub)
        debug_print_manager(f"new sub manager {sub.uid} under {self.uid}")
        return sub

    @property
    def uid(self) -> str:
        return self._uid

    @property
    def device(self) -> Device:
        return self._device

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def parent(self) -> Optional['NDManager']:
        return self._parent

    def is_open(self) -> bool:
        return not self._closed

    # Bookkeeping

    def attach_internal(self, uid: str, resource: Any):
        """Take ownership of a resource."""
        if self._closed:
            raise RuntimeError(manager_closed_error(self._uid))
        self._resources[uid] = resource

    def detach_internal(self, uid: str):
        """Forget a resource (it has been released or moved elsewhere)."""
        self._resources.pop(uid, None)

    def get_resources(self) -> Dict[str, Any]:
        return dict(self._resources)

    def close(self):
        """Release every attached resource, then detach from the parent."""
        if self._closed:
            return
        debug_print_manager(f"closing {self.uid} ({len(self._resources)} resources)")
        for resource in list(self._resources.values()):
            resource.close()
        self._resources.clear()
        self._closed = True
        if self._parent is not None:
            self._parent.detach_internal(self._uid)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self):
        state = "open" if not self._closed else "closed"
        return f"NDManager(uid={self._uid}, device={self._device}, {state}, resources={len(self._resources)})"

    # Creation

    def _check_open(self):
        if self._closed:
            raise RuntimeError(manager_closed_error(self._uid))

    def _default_type(self, data_type) -> DataType:
        if data_type is None:
            return DataType.of(get_config().engine.dtype)
        return DataType.of(data_type)

    def from_handle(self, handle: Any, shape: Optional[Shape] = None,
                    data_type: Optional[DataType] = None):
        """Wrap an engine handle (internal, used by NDArray)."""
        from ndtorch.ndarray.ndarray import NDArray

        self._check_open()
        array = NDArray(self, handle, shape=shape, data_type=data_type)
        self._engine.register_handle()
        return array

    def create(self, data, shape=None, data_type=None):
        """
        Create an NDArray.

        Args:
            data: A number, a (nested) list, a numpy array, or a bytes-like
                buffer (then shape and data_type are required). A Shape
                allocates a zero-filled array.
            shape: Optional target shape
            data_type: Optional element type (DataType or numpy name)

        Python numbers default to INT32 (int, INT64 when a value is out of the
        int32 range), FLOAT32 (float) and BOOLEAN (bool).
        """
        self._check_open()

        if isinstance(data, Shape):
            return self.zeros(data, data_type)

        if isinstance(data, (bytes, bytearray, memoryview)):
            if shape is None or data_type is None:
                raise ValueError("shape and data_type are required to create an NDArray from a buffer")
            data_type = DataType.of(data_type)
            shape = as_shape(shape)
            expected = shape.size() * data_type.num_bytes
            if len(data) != expected:
                raise ValueError(f"Buffer has {len(data)} bytes, expected {expected} for {shape} {data_type}")
            array = np.frombuffer(data, dtype=data_type.as_numpy()).reshape(shape.to_tuple())
            return self.from_handle(self._engine.create(array, self._device))

        array = self._to_numpy(data, data_type)
        if shape is not None:
            shape = as_shape(shape)
            if shape.size() != array.size:
                raise ValueError(f"Cannot create NDArray of shape {shape} from {array.size} elements")
            array = array.reshape(shape.to_tuple())
        return self.from_handle(self._engine.create(array, self._device))

    @staticmethod
    def _to_numpy(data, data_type) -> np.ndarray:
        if isinstance(data, np.ndarray) or isinstance(data, np.generic):
            array = np.asarray(data)
        else:
            array = np.asarray(data)
            # python defaults: int -> int32 (int64 when a value does not fit), float -> float32
            if array.dtype == np.int64 and _fits_int32(array):
                array = array.astype(np.int32)
            elif array.dtype == np.float64:
                array = array.astype(np.float32)
        if data_type is not None:
            array = array.astype(DataType.of(data_type).as_numpy())
        else:
            DataType.from_numpy(array.dtype)  # rejects unsupported element types
        return array

    def zeros(self, shape, data_type=None):
        self._check_open()
        shape = as_shape(shape)
        return self.from_handle(self._engine.zeros(shape, self._default_type(data_type), self._device))

    def ones(self, shape, data_type=None):
        self._check_open()
        shape = as_shape(shape)
        return self.from_handle(self._engine.ones(shape, self._default_type(data_type), self._device))

    def full(self, shape, value, data_type=None):
        self._check_open()
        shape = as_shape(shape)
        if data_type is None:
            if isinstance(value, bool):
                data_type = DataType.BOOLEAN
            elif isinstance(value, numbers.Integral):
                data_type = _integer_type(value)
            else:
                data_type = self._default_type(None)
        return self.from_handle(self._engine.full(shape, value, DataType.of(data_type), self._device))

    def arange(self, start, stop=None, step=1, data_type=None):
        """Values in [start, stop) spaced by step (arange(n) counts from 0)."""
        self._check_open()
        if stop is None:
            start, stop = 0, start
        if step == 0:
            raise ValueError("arange() step must not be zero")
        if data_type is None:
            integral = all(isinstance(v, numbers.Integral) for v in (start, stop, step))
            data_type = _integer_type(start, stop, step) if integral else self._default_type(None)
        return self.from_handle(self._engine.arange(start, stop, step, DataType.of(data_type), self._device))

    def linspace(self, start, stop, num: int, endpoint: bool = True, data_type=None):
        self._check_open()
        if num < 0:
            raise ValueError(f"Number of samples, {num}, must be non-negative")
        return self.from_handle(
            self._engine.linspace(start, stop, num, endpoint, self._default_type(data_type), self._device)
        )

    def eye(self, rows: int, cols: Optional[int] = None, k: int = 0, data_type=None):
        self._check_open()
        cols = rows if cols is None else cols
        return self.from_handle(self._engine.eye(rows, cols, k, self._default_type(data_type), self._device))

    def random_uniform(self, low, high, shape, data_type=None):
        self._check_open()
        data_type = self._default_type(data_type)
        if not data_type.is_floating():
            raise ValueError(f"random_uniform() requires a floating point type, got {data_type}")
        return self.from_handle(self._engine.random_uniform(low, high, as_shape(shape), data_type, self._device))

    def random_normal(self, loc=0.0, scale=1.0, shape=(1,), data_type=None):
        self._check_open()
        data_type = self._default_type(data_type)
        if not data_type.is_floating():
            raise ValueError(f"random_normal() requires a floating point type, got {data_type}")
        return self.from_handle(self._engine.random_normal(loc, scale, as_shape(shape), data_type, self._device))
