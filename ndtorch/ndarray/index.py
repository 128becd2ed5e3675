"""
Indexing into NDArrays.

An NDIndex is an ordered list of index elements. Engines only understand
positive-step slices over every axis, so most indices are lowered to an
NDIndexFullSlice before reaching the engine.
"""

import numbers
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ndtorch.errors import index_error
from ndtorch.ndarray.types import Shape


@dataclass(frozen=True)
class NDIndexFixed:
    """A single position; the axis is removed from the result."""
    index: int


@dataclass(frozen=True)
class NDIndexSlice:
    """start:stop:step along one axis (None means the default)."""
    start: Optional[int] = None
    stop: Optional[int] = None
    step: Optional[int] = None


@dataclass(frozen=True)
class NDIndexEllipsis:
    """Stands for as many full slices as needed."""


@dataclass(frozen=True)
class NDIndexNewAxis:
    """Inserts an axis of length one."""


@dataclass(frozen=True, eq=False)
class NDIndexBooleans:
    """Boolean NDArray selecting elements."""
    index: object


@dataclass(frozen=True)
class NDIndexFullSlice:
    """
    An index lowered to one positive-step slice per axis.

    Attributes:
        min: Start position per axis
        max: Stop position per axis (exclusive)
        step: Step per axis
        to_squeeze: Axes that came from fixed indices
        shape: Shape of the sliced region before squeezing
    """
    min: Tuple[int, ...]
    max: Tuple[int, ...]
    step: Tuple[int, ...]
    to_squeeze: Tuple[int, ...]
    shape: Shape


class NDIndex:
    """
    Index into an NDArray.

    Can be built from Python subscripts or from a string:
        NDIndex(1, slice(None, 3))
        NDIndex("1, :3")
        NDIndex("{}:{}, ...", 1, 4)
        NDIndex(mask_array)
    """

    def __init__(self, *items):
        self._indices: List[object] = []
        if len(items) >= 1 and isinstance(items[0], str):
            self._parse_string(items[0], list(items[1:]))
        else:
            for item in items:
                self.add(item)

    @classmethod
    def of(cls, key) -> 'NDIndex':
        """Coerce a subscript key (as received by __getitem__) to NDIndex."""
        if isinstance(key, NDIndex):
            return key
        if isinstance(key, str):
            return cls(key)
        if isinstance(key, tuple):
            return cls(*key)
        return cls(key)

    def add(self, item) -> 'NDIndex':
        """Append one Python subscript element."""
        from ndtorch.ndarray.ndarray import NDArray
        from ndtorch.ndarray.types import DataType

        if isinstance(item, bool):
            raise ValueError(index_error("bool is not a valid index, use a boolean NDArray"))
        if isinstance(item, numbers.Integral):
            self._indices.append(NDIndexFixed(int(item)))
        elif isinstance(item, slice):
            self._indices.append(NDIndexSlice(item.start, item.stop, item.step))
        elif item is Ellipsis:
            self._indices.append(NDIndexEllipsis())
        elif item is None:
            self._indices.append(NDIndexNewAxis())
        elif isinstance(item, NDArray):
            if item.data_type != DataType.BOOLEAN:
                raise ValueError(index_error(f"only boolean NDArrays can index, got {item.data_type}"))
            self._indices.append(NDIndexBooleans(item))
        elif isinstance(item, (NDIndexFixed, NDIndexSlice, NDIndexEllipsis, NDIndexNewAxis, NDIndexBooleans)):
            self._indices.append(item)
        else:
            raise ValueError(index_error(f"{type(item).__name__} is not a valid index element"))
        return self

    def _parse_string(self, text: str, args: list):
        """Parse "1:3, ::2, ..." with optional {} placeholders filled from args."""
        args = list(args)

        def take(token: str):
            token = token.strip()
            if token == '':
                return None
            if token == '{}':
                if not args:
                    raise ValueError(index_error(f"not enough arguments for '{text}'"))
                return args.pop(0)
            return int(token)

        if text.strip() == '':
            return
        for part in text.split(','):
            part = part.strip()
            if part == '...':
                self.add(Ellipsis)
            elif part in ('new', 'None'):
                self.add(None)
            elif ':' in part:
                pieces = part.split(':')
                if len(pieces) > 3:
                    raise ValueError(index_error(f"bad slice '{part}'"))
                pieces += [''] * (3 - len(pieces))
                self.add(slice(*(take(p) for p in pieces)))
            else:
                value = take(part)
                if value is None:
                    raise ValueError(index_error(f"empty index element in '{text}'"))
                self.add(value)
        if args:
            raise ValueError(index_error(f"too many arguments for '{text}'"))

    def get_indices(self) -> List[object]:
        return list(self._indices)

    def get_rank(self) -> int:
        """Number of axes this index consumes."""
        return sum(1 for e in self._indices if isinstance(e, (NDIndexFixed, NDIndexSlice)))

    def get_as_full_slice(self, shape: Shape) -> Optional[NDIndexFullSlice]:
        """
        Lower this index to one slice per axis of `shape`.

        Returns None when an element can not be expressed that way
        (new axes, boolean masks, negative steps).
        """
        supported = (NDIndexFixed, NDIndexSlice, NDIndexEllipsis)
        if not all(isinstance(e, supported) for e in self._indices):
            return None

        ndim = shape.dimension()
        n_ellipsis = sum(1 for e in self._indices if isinstance(e, NDIndexEllipsis))
        if n_ellipsis > 1:
            raise ValueError(index_error("an index can only have a single ellipsis"))
        n_explicit = len(self._indices) - n_ellipsis
        if n_explicit > ndim:
            raise ValueError(f"Too many indices: {n_explicit} for array of dimension {ndim}")

        # Expand the ellipsis (or the implicit trailing one) into full slices
        fill = [NDIndexSlice()] * (ndim - n_explicit)
        if n_ellipsis:
            at = next(i for i, e in enumerate(self._indices) if isinstance(e, NDIndexEllipsis))
            elements = self._indices[:at] + fill + self._indices[at + 1:]
        else:
            elements = self._indices + fill

        mins, maxs, steps, to_squeeze, lengths = [], [], [], [], []
        for axis, (element, dim) in enumerate(zip(elements, shape)):
            if isinstance(element, NDIndexFixed):
                position = element.index + dim if element.index < 0 else element.index
                if not 0 <= position < dim:
                    raise IndexError(f"index {element.index} is out of bounds for axis {axis} with size {dim}")
                mins.append(position)
                maxs.append(position + 1)
                steps.append(1)
                to_squeeze.append(axis)
                lengths.append(1)
            else:
                step = 1 if element.step is None else element.step
                if step == 0:
                    raise ValueError("slice step cannot be zero")
                if step < 0:
                    return None
                start, stop, _ = slice(element.start, element.stop, step).indices(dim)
                stop = max(stop, start)
                mins.append(start)
                maxs.append(stop)
                steps.append(step)
                lengths.append(len(range(start, stop, step)))

        return NDIndexFullSlice(
            min=tuple(mins),
            max=tuple(maxs),
            step=tuple(steps),
            to_squeeze=tuple(to_squeeze),
            shape=Shape(tuple(lengths)),
        )

    def __len__(self):
        return len(self._indices)

    def __repr__(self):
        return f"NDIndex({self._indices!r})"
