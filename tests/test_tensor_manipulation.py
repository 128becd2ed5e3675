"""
Test shape manipulation: reshape, squeeze, transpose, split, tile, repeat,
sorting and softmax.
"""

import numpy as np
import pytest

from ndtorch.ndarray import DataType, NDList, Shape
from ndtorch.errors import UnsupportedOperationError


def test_reshape(manager):
    """Test reshape with explicit and inferred dimensions."""
    a = manager.arange(6)
    assert a.reshape(2, 3).shape == (2, 3)
    assert a.reshape((3, 2)).shape == (3, 2)
    assert a.reshape(Shape(6, 1)).shape == (6, 1)
    assert a.reshape(-1, 2).shape == (3, 2)
    np.testing.assert_array_equal(a.reshape(2, -1).to_numpy(), [[0, 1, 2], [3, 4, 5]])


def test_reshape_errors(manager):
    """Test invalid reshapes."""
    a = manager.arange(6)
    with pytest.raises(ValueError):
        a.reshape(4)
    with pytest.raises(ValueError):
        a.reshape(-1, -1)
    with pytest.raises(ValueError):
        a.reshape(-1, 4)
    with pytest.raises(ValueError):
        a.reshape(-2, 3)


def test_reshape_like_and_flatten(manager):
    """Test reshape_like and flatten."""
    a = manager.arange(6)
    template = manager.zeros((3, 2))
    assert a.reshape_like(template).shape == (3, 2)
    assert a.reshape(2, 3).flatten().shape == (6,)
    assert manager.create(1.0).flatten().shape == (1,)


def test_expand_dims(manager):
    """Test adding a unit axis."""
    a = manager.ones(3)
    assert a.expand_dims(0).shape == (1, 3)
    assert a.expand_dims(-1).shape == (3, 1)


def test_squeeze(manager):
    """Test squeezing all or selected unit axes."""
    a = manager.zeros((1, 3, 1))
    assert a.squeeze().shape == (3,)
    assert a.squeeze(0).shape == (3, 1)
    assert a.squeeze((0, 2)).shape == (3,)
    assert a.squeeze(-1).shape == (1, 3)


def test_squeeze_errors(manager):
    """Test squeeze on non-unit axes and on scalars."""
    a = manager.zeros((1, 3, 1))
    with pytest.raises(ValueError):
        a.squeeze(1)
    with pytest.raises(ValueError):
        a.squeeze(3)

    s = manager.create(2.0)
    assert s.squeeze(0).item() == 2.0
    with pytest.raises(ValueError):
        s.squeeze(1)


def test_transpose(manager):
    """Test transpose with default and explicit axes."""
    a = manager.zeros((2, 3, 4))
    assert a.transpose().shape == (4, 3, 2)
    assert a.transpose(1, 0, 2).shape == (3, 2, 4)
    assert a.transpose((2, 0, 1)).shape == (4, 2, 3)

    m = manager.create([[1, 2], [3, 4]])
    np.testing.assert_array_equal(m.transpose().to_numpy(), [[1, 3], [2, 4]])


def test_transpose_errors(manager):
    """Axes must match the dimensions."""
    with pytest.raises(ValueError):
        manager.zeros((2, 3)).transpose(0)
    with pytest.raises(ValueError):
        manager.create(1.0).transpose(0)


def test_swap_axes(manager):
    """Test swapping two axes."""
    a = manager.zeros((2, 3, 4))
    assert a.swap_axes(0, 2).shape == (4, 3, 2)


def test_broadcast(manager):
    """Test broadcasting to a larger shape."""
    a = manager.create([1.0, 2.0, 3.0])
    b = a.broadcast((2, 3))
    assert b.shape == (2, 3)
    np.testing.assert_array_equal(b.to_numpy(), [[1, 2, 3], [1, 2, 3]])
    assert a.broadcast(2, 3).shape == (2, 3)


def test_split_sections(manager):
    """An int splits into equal sections."""
    parts = manager.arange(6).split(3)
    assert isinstance(parts, NDList)
    assert [p.to_list() for p in parts] == [[0, 1], [2, 3], [4, 5]]

    with pytest.raises(ValueError):
        manager.arange(6).split(4)


def test_split_indices(manager):
    """A sequence gives the split positions."""
    parts = manager.arange(6).split([1, 4])
    assert [p.to_list() for p in parts] == [[0], [1, 2, 3], [4, 5]]

    parts = manager.arange(6).reshape(2, 3).split([2], axis=1)
    assert parts.get_shapes() == [(2, 2), (2, 1)]

    with pytest.raises(ValueError):
        manager.arange(6).split([4, 2])


def test_sort_and_arg_sort(manager):
    """Test ascending sort and argsort."""
    a = manager.create([3.0, 1.0, 2.0])
    np.testing.assert_array_equal(a.sort().to_numpy(), [1, 2, 3])

    order = a.arg_sort()
    assert order.data_type == DataType.INT64
    np.testing.assert_array_equal(order.to_numpy(), [1, 2, 0])

    with pytest.raises(UnsupportedOperationError):
        a.arg_sort(ascending=False)


def test_softmax(manager):
    """Softmax rows sum to one."""
    a = manager.create([[1.0, 2.0, 3.0], [1.0, 1.0, 1.0]])
    s = a.softmax()
    np.testing.assert_allclose(s.to_numpy().sum(axis=1), [1.0, 1.0], rtol=1e-6)
    np.testing.assert_allclose(s.to_numpy()[1], [1 / 3] * 3, rtol=1e-6)

    log_s = a.log_softmax(axes=1)
    np.testing.assert_allclose(np.exp(log_s.to_numpy()), s.to_numpy(), rtol=1e-5)


def test_softmax_unsupported(manager):
    """Temperatures and multiple axes are not supported."""
    a = manager.ones((2, 2))
    with pytest.raises(UnsupportedOperationError):
        a.softmax(temperature=2.0)
    with pytest.raises(UnsupportedOperationError):
        a.log_softmax(axes=(0, 1))


def test_tile(manager):
    """Test tiling by an int and by per-axis counts."""
    a = manager.create([1, 2])
    np.testing.assert_array_equal(a.tile(2).to_numpy(), [1, 2, 1, 2])
    np.testing.assert_array_equal(a.reshape(1, 2).tile((2, 1)).to_numpy(), [[1, 2], [1, 2]])
    assert manager.create(3).tile(2).shape == (2,)
    assert manager.zeros((0, 2)).tile(3).shape == (0, 2)


def test_tile_unsupported(manager):
    """Tiling along one axis or to a shape is not supported."""
    a = manager.create([1, 2])
    with pytest.raises(UnsupportedOperationError):
        a.tile(2, axis=0)
    with pytest.raises(UnsupportedOperationError):
        a.tile(Shape(4))


def test_repeat(manager):
    """Test repeating elements."""
    a = manager.create([1, 2])
    np.testing.assert_array_equal(a.repeat(2).to_numpy(), [1, 1, 2, 2])
    np.testing.assert_array_equal(a.repeat(3, axis=0).to_numpy(), [1, 1, 1, 2, 2, 2])

    m = manager.create([[1, 2]])
    np.testing.assert_array_equal(m.repeat(2).to_numpy(), [[1, 1, 2, 2], [1, 1, 2, 2]])
    np.testing.assert_array_equal(m.repeat([1, 3]).to_numpy(), [[1, 1, 1, 2, 2, 2]])

    with pytest.raises(UnsupportedOperationError):
        a.repeat(Shape(4))
