"""
ndtorch - NDArrays backed by PyTorch

Arrays are owned by a manager and released together with it:
    import ndtorch

    with ndtorch.NDManager.new_base_manager() as manager:
        a = manager.create([[1.0, 2.0], [3.0, 4.0]])
        b = a @ a.transpose()
        print(b)

    # Inspect what is still alive
    ndtorch.debug.print_live_arrays(manager)
"""

__version__ = "0.1.0"

# Dtype constants
# These are string constants accepted anywhere a DataType is
float16 = 'float16'
float32 = 'float32'
float64 = 'float64'
uint8 = 'uint8'
int8 = 'int8'
int32 = 'int32'
int64 = 'int64'
bool = 'bool'

from ndtorch.ndarray import (
    DataType, Device, Shape, SparseFormat, NDIndex, NDList, NDManager, NDArray, NDArrayEx,
)
from ndtorch.errors import UnsupportedOperationError
from ndtorch.engine import create_engine, get_default_engine

# Config loading
from ndtorch.config import load_config, get_config

# Debug utilities
from ndtorch import debug  # Import module for debug.get_live_arrays(), debug.get_engine_stats()

get_config().load_from_env()


def new_base_manager(device=None) -> NDManager:
    """Shortcut for NDManager.new_base_manager()."""
    return NDManager.new_base_manager(device=device)
