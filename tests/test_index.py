"""
Test NDIndex parsing and lowering to full slices.
"""

import pytest

from ndtorch.ndarray import NDIndex, Shape
from ndtorch.ndarray.index import (
    NDIndexBooleans, NDIndexEllipsis, NDIndexFixed, NDIndexNewAxis, NDIndexSlice,
)


def test_python_subscripts():
    """Test building an index from subscript keys."""
    index = NDIndex.of((1, slice(None, 3), Ellipsis, None))
    assert index.get_indices() == [
        NDIndexFixed(1), NDIndexSlice(None, 3, None), NDIndexEllipsis(), NDIndexNewAxis(),
    ]
    assert index.get_rank() == 2
    assert len(index) == 4


def test_string_index():
    """Test the string form with placeholders."""
    index = NDIndex("1:3, ::2, ...")
    assert index.get_indices() == [NDIndexSlice(1, 3, None), NDIndexSlice(None, None, 2), NDIndexEllipsis()]

    index = NDIndex("{}:{}, {}", 0, 2, -1)
    assert index.get_indices() == [NDIndexSlice(0, 2, None), NDIndexFixed(-1)]


def test_string_index_argument_count():
    """Placeholders and arguments must match."""
    with pytest.raises(ValueError):
        NDIndex("{}, {}", 1)
    with pytest.raises(ValueError):
        NDIndex("{}", 1, 2)


def test_invalid_elements():
    """Python bools and arbitrary objects are not indices."""
    with pytest.raises(ValueError):
        NDIndex(True)
    with pytest.raises(ValueError):
        NDIndex(1.5)


def test_full_slice_of_slices():
    """Slices keep their bounds and steps."""
    full = NDIndex("1:3, ::2").get_as_full_slice(Shape(4, 6))
    assert full.min == (1, 0)
    assert full.max == (3, 6)
    assert full.step == (1, 2)
    assert full.to_squeeze == ()
    assert full.shape == (2, 3)


def test_full_slice_fixed_index():
    """Fixed indices wrap and are listed for squeezing."""
    full = NDIndex(-1).get_as_full_slice(Shape(5, 2))
    assert full.min == (4, 0)
    assert full.max == (5, 2)
    assert full.to_squeeze == (0,)
    assert full.shape == (1, 2)


def test_full_slice_ellipsis():
    """An ellipsis expands to the missing axes."""
    full = NDIndex(Ellipsis, 0).get_as_full_slice(Shape(2, 3, 4))
    assert full.min == (0, 0, 0)
    assert full.max == (2, 3, 1)
    assert full.to_squeeze == (2,)
    assert full.shape == (2, 3, 1)


def test_full_slice_clamps_stop():
    """Out-of-range slice bounds are clamped like Python lists."""
    full = NDIndex(slice(2, 100)).get_as_full_slice(Shape(5))
    assert full.min == (2,)
    assert full.max == (5,)
    assert full.shape == (3,)

    empty = NDIndex(slice(4, 1)).get_as_full_slice(Shape(5))
    assert empty.shape == (0,)


def test_full_slice_errors():
    """Test the index errors raised while lowering."""
    with pytest.raises(IndexError):
        NDIndex(5).get_as_full_slice(Shape(5))
    with pytest.raises(ValueError):
        NDIndex(0, 0).get_as_full_slice(Shape(5))
    with pytest.raises(ValueError):
        NDIndex(Ellipsis, Ellipsis).get_as_full_slice(Shape(2, 2))
    with pytest.raises(ValueError):
        NDIndex(slice(None, None, 0)).get_as_full_slice(Shape(5))


def test_full_slice_not_expressible():
    """New axes and negative steps can not be lowered."""
    assert NDIndex(None).get_as_full_slice(Shape(3)) is None
    assert NDIndex(slice(None, None, -1)).get_as_full_slice(Shape(3)) is None


def test_boolean_index(manager):
    """Boolean NDArrays are accepted, other arrays are not."""
    mask = manager.create([True, False])
    index = NDIndex(mask)
    assert isinstance(index.get_indices()[0], NDIndexBooleans)
    assert index.get_as_full_slice(Shape(2)) is None

    with pytest.raises(ValueError):
        NDIndex(manager.create([1, 0]))
