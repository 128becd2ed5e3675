"""
Common error messages for ndtorch.

Consolidates repetitive error handling to reduce code duplication.
"""


class UnsupportedOperationError(NotImplementedError):
    """Raised for operations the PyTorch binding does not provide."""


def not_implemented_error(op: str, details: str = ""):
    """Error when an NDArray operation is not available in this binding."""
    if details:
        return f"{op}() is not supported: {details}"
    return f"{op}() is not supported by the PyTorch engine"


def single_axis_error(op: str, axes):
    """Error when a reduction is asked for more than one axis."""
    return f"{op}() only supports a single axis, got {tuple(axes)}"


def dtype_mismatch_error(expected, actual):
    """Error when two operands must share a data type."""
    return f"DataType mismatch, expected {expected} Actual {actual}"


def released_error():
    """Error when a native handle is used after it was released."""
    return "Native resource has been released already."


def manager_closed_error(uid: str):
    """Error when allocating from a manager that has been closed."""
    return f"NDManager {uid} has been closed already."


def index_error(details: str):
    """Error when an NDIndex cannot be applied to an array."""
    return f"Unsupported index: {details}"
