"""
NDArray, NDManager and the types they share.
"""

from .types import DataType, Device, Shape, SparseFormat
from .resource import NativeResource
from .index import NDIndex, NDIndexFullSlice
from .ndlist import NDList
from .manager import NDManager
from .ndarray import NDArray
from .ndarray_ex import NDArrayEx


__all__ = [
    'DataType', 'Device', 'Shape', 'SparseFormat', 'NativeResource', 'NDIndex', 'NDIndexFullSlice',
    'NDList', 'NDManager', 'NDArray', 'NDArrayEx',
]
