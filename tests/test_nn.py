"""
Test the extended operations: activations, pooling, stack, concat, where.
"""

import numpy as np
import pytest
import torch
import torch.nn.functional as F


@pytest.fixture
def values(manager):
    return manager.create([-2.0, -0.5, 0.0, 1.5])


def _expected(fn, data):
    return fn(torch.tensor(data, dtype=torch.float32)).numpy()


def test_activations(values):
    """Activations match torch.nn.functional."""
    data = [-2.0, -0.5, 0.0, 1.5]
    ex = values.get_ndarray_internal()

    np.testing.assert_array_equal(ex.relu().to_numpy(), [0, 0, 0, 1.5])
    np.testing.assert_allclose(ex.sigmoid().to_numpy(), _expected(torch.sigmoid, data), rtol=1e-6)
    np.testing.assert_allclose(ex.tanh().to_numpy(), _expected(torch.tanh, data), rtol=1e-6)
    np.testing.assert_allclose(ex.soft_plus().to_numpy(), _expected(F.softplus, data), rtol=1e-6)
    np.testing.assert_allclose(ex.soft_sign().to_numpy(), _expected(F.softsign, data), rtol=1e-6)
    np.testing.assert_allclose(ex.selu().to_numpy(), _expected(F.selu, data), rtol=1e-6)
    np.testing.assert_allclose(ex.gelu().to_numpy(), _expected(F.gelu, data), rtol=1e-6)
    np.testing.assert_allclose(ex.mish().to_numpy(), _expected(F.mish, data), rtol=1e-6)


def test_parameterized_activations(values):
    """Test leaky_relu, elu and swish parameters."""
    ex = values.get_ndarray_internal()

    np.testing.assert_allclose(ex.leaky_relu(0.1).to_numpy(), [-0.2, -0.05, 0, 1.5], rtol=1e-6)
    np.testing.assert_allclose(
        ex.elu(1.0).to_numpy(), [np.expm1(-2.0), np.expm1(-0.5), 0, 1.5], rtol=1e-6
    )
    data = np.array([-2.0, -0.5, 0.0, 1.5], dtype=np.float32)
    swish = data / (1 + np.exp(-2.0 * data))
    np.testing.assert_allclose(ex.swish(2.0).to_numpy(), swish, rtol=1e-5)


def test_max_pool(manager):
    """2x2 max pooling over a 4x4 image."""
    image = manager.arange(16, data_type='float32').reshape(1, 1, 4, 4)
    pooled = image.get_ndarray_internal().max_pool((2, 2))
    assert pooled.shape == (1, 1, 2, 2)
    np.testing.assert_array_equal(pooled.to_numpy()[0, 0], [[5, 7], [13, 15]])


def test_avg_pool(manager):
    """Average pooling with stride and padding."""
    image = manager.arange(16, data_type='float32').reshape(1, 1, 4, 4)
    ex = image.get_ndarray_internal()

    pooled = ex.avg_pool((2, 2))
    np.testing.assert_array_equal(pooled.to_numpy()[0, 0], [[2.5, 4.5], [10.5, 12.5]])

    padded = ex.avg_pool((2, 2), stride=2, padding=1, count_include_pad=True)
    assert padded.shape == (1, 1, 3, 3)
    assert padded.to_numpy()[0, 0, 0, 0] == 0.0


def test_pool_1d(manager):
    """Pooling picks the 1-D kernel for 3-D input."""
    signal = manager.create([[[1.0, 3.0, 2.0, 4.0]]])
    pooled = signal.get_ndarray_internal().max_pool((2,))
    np.testing.assert_array_equal(pooled.to_numpy(), [[[3, 4]]])


def test_pool_errors(manager):
    """Kernel rank must match the input rank."""
    ex = manager.ones((4, 4)).get_ndarray_internal()
    with pytest.raises(ValueError):
        ex.max_pool((2, 2))
    with pytest.raises(ValueError):
        ex.avg_pool((2, 2, 2, 2))


def test_stack(manager):
    """Stacking adds an axis."""
    a = manager.create([1, 2, 3])
    b = manager.create([4, 5, 6])
    stacked = a.get_ndarray_internal().stack([b])
    assert stacked.shape == (2, 3)
    np.testing.assert_array_equal(stacked.to_numpy(), [[1, 2, 3], [4, 5, 6]])
    assert a.get_ndarray_internal().stack([b], axis=1).shape == (3, 2)

    with pytest.raises(ValueError):
        a.get_ndarray_internal().stack([manager.create([1, 2])])


def test_concat(manager):
    """Concatenation joins along an existing axis."""
    a = manager.create([[1, 2]])
    b = manager.create([[3, 4], [5, 6]])
    joined = a.get_ndarray_internal().concat([b])
    np.testing.assert_array_equal(joined.to_numpy(), [[1, 2], [3, 4], [5, 6]])

    with pytest.raises(ValueError):
        a.get_ndarray_internal().concat([manager.create([1, 2])])
    with pytest.raises(ValueError):
        manager.create(1).get_ndarray_internal().concat([manager.create(2)])


def test_where(manager):
    """where picks from self where the condition holds."""
    a = manager.create([1.0, 2.0, 3.0])
    b = manager.create([10.0, 20.0, 30.0])
    condition = a > 1.5

    result = a.get_ndarray_internal().where(condition, b)
    np.testing.assert_array_equal(result.to_numpy(), [10, 2, 3])

    filled = a.get_ndarray_internal().where(condition, 0.0)
    np.testing.assert_array_equal(filled.to_numpy(), [0, 2, 3])

    with pytest.raises(ValueError):
        a.get_ndarray_internal().where(condition, manager.create([1, 2, 3]))
