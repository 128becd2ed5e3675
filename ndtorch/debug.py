"""
Debug utilities for ndtorch.

Provides visibility into:
- Arrays still owned by a manager
- Native call statistics of the engine
- Allocation and release flow

Environment variables for debug output:
- NDTORCH_VERBOSE: Framework status messages (config loading, engine choice)
- NDTORCH_DEBUG_ARRAY: NDArray debug prints
- NDTORCH_DEBUG_MANAGER: NDManager debug prints (attach, detach, close)
- NDTORCH_DEBUG_ENGINE: Engine debug prints (device placement, conversions)

By default, ndtorch is completely silent. Only errors are shown.
"""

import os
from typing import List, Dict, Any


# Debug flags
DEBUG_ARRAY = os.environ.get('NDTORCH_DEBUG_ARRAY', '0') == '1'
DEBUG_MANAGER = os.environ.get('NDTORCH_DEBUG_MANAGER', '0') == '1'
DEBUG_ENGINE = os.environ.get('NDTORCH_DEBUG_ENGINE', '0') == '1'
VERBOSE = os.environ.get('NDTORCH_VERBOSE', '0') == '1'


def debug_print_array(*args, **kwargs):
    """Print array debug message if NDTORCH_DEBUG_ARRAY=1."""
    if DEBUG_ARRAY:
        print("[ARRAY]", *args, **kwargs)


def debug_print_manager(*args, **kwargs):
    """Print manager debug message if NDTORCH_DEBUG_MANAGER=1."""
    if DEBUG_MANAGER:
        print("[MANAGER]", *args, **kwargs)


def debug_print_engine(*args, **kwargs):
    """Print engine debug message if NDTORCH_DEBUG_ENGINE=1."""
    if DEBUG_ENGINE:
        print("[ENGINE]", *args, **kwargs)


def verbose_print(*args, **kwargs):
    """Print verbose framework message if NDTORCH_VERBOSE=1."""
    if VERBOSE:
        print(*args, **kwargs)


def get_live_arrays(manager) -> List[Dict[str, Any]]:
    """
    List the arrays still attached to a manager and its sub-managers.

    Example:
        import ndtorch
        with ndtorch.NDManager.new_base_manager() as manager:
            a = manager.ones((2, 3))
            for entry in ndtorch.debug.get_live_arrays(manager):
                print(entry)
    """
    from ndtorch.ndarray.ndarray import NDArray
    from ndtorch.ndarray.manager import NDManager

    live = []
    pending = [manager]
    while pending:
        current = pending.pop()
        for uid, resource in current.get_resources().items():
            if isinstance(resource, NDManager):
                pending.append(resource)
            elif isinstance(resource, NDArray) and not resource.is_released():
                live.append({
                    'uid': uid,
                    'manager': current.uid,
                    'name': resource.name,
                    'shape': tuple(resource.shape),
                    'dtype': resource.data_type.name,
                    'device': str(resource.device),
                })
    return live


def print_live_arrays(manager):
    """
    Pretty-print the arrays still attached to a manager.

    Example:
        ndtorch.debug.print_live_arrays(manager)
        # Output:
        # Live arrays (1):
        # ------------------------------------------------------------
        # 0: a3f...  shape=(2, 3) float32 cpu()
    """
    live = get_live_arrays(manager)

    if not live:
        print("Live arrays: None (every array has been released)")
        return

    print(f"Live arrays ({len(live)}):")
    print("-" * 60)

    for i, entry in enumerate(live):
        name = f" name={entry['name']}" if entry['name'] else ""
        print(f"{i}: {entry['uid']}  shape={entry['shape']} {entry['dtype']} {entry['device']}{name}")


def get_engine_stats(engine=None) -> Dict[str, Any]:
    """
    Get native call statistics from an engine.

    Returns statistics including:
    - Total number of native calls
    - Calls per operation name
    - Handles created and deleted

    Example:
        import ndtorch
        stats = ndtorch.debug.get_engine_stats()
        print(f"Native calls: {stats['operations']['total']}")
    """
    if engine is None:
        from ndtorch.engine import get_default_engine
        engine = get_default_engine()
    return engine.get_stats()


def print_engine_stats(engine=None):
    """
    Pretty-print engine statistics.

    Example:
        ndtorch.debug.print_engine_stats()
        # Output:
        # Engine Statistics (PyTorchEngine):
        # Native calls: 12
        # Handles:      created=5 deleted=3
    """
    stats = get_engine_stats(engine)

    print(f"Engine Statistics ({stats['engine']}):")
    print("-" * 60)

    ops = stats['operations']
    print(f"  Native calls: {ops['total']}")
    print(f"  Handles:      created={stats['handles']['created']} deleted={stats['handles']['deleted']}")

    if ops['by_name']:
        print("  Top operations:")
        top = sorted(ops['by_name'].items(), key=lambda kv: kv[1], reverse=True)
        for name, count in top[:5]:
            print(f"    - {name}: {count}")
