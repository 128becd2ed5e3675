"""
Test YAML configuration loading.
"""

import pytest

from ndtorch.config import Config, PrintOptions, load_config
from ndtorch.ndarray import DataType, Device, NDManager


def test_defaults():
    """A fresh config uses the built-in defaults."""
    config = Config()
    assert config.engine.device == 'auto'
    assert config.engine.dtype == 'float32'
    assert config.print_options == PrintOptions(max_size=100, max_depth=10, max_rows=10, max_columns=20)


def test_load_yaml(tmp_path):
    """Test loading every key from a file."""
    path = tmp_path / "ndtorch.yaml"
    path.write_text(
        "device: cpu\n"
        "dtype: float64\n"
        "print:\n"
        "  max_size: 5\n"
        "  max_rows: 2\n"
    )
    config = Config()
    config.load(str(path))

    assert config.engine.device == 'cpu'
    assert config.engine.dtype == 'float64'
    assert config.print_options.max_size == 5
    assert config.print_options.max_rows == 2
    # Missing keys keep their defaults
    assert config.print_options.max_depth == 10


def test_empty_file(tmp_path):
    """An empty file leaves the defaults alone."""
    path = tmp_path / "empty.yaml"
    path.write_text("")
    config = Config()
    config.load(str(path))
    assert config.engine.device == 'auto'


def test_invalid_device(tmp_path):
    """Unknown devices are rejected."""
    path = tmp_path / "bad.yaml"
    path.write_text("device: tpu\n")
    with pytest.raises(ValueError, match="Invalid device"):
        Config().load(str(path))


def test_missing_file(tmp_path):
    """Loading a missing file raises."""
    with pytest.raises(FileNotFoundError):
        Config().load(str(tmp_path / "missing.yaml"))


def test_load_from_env(tmp_path, monkeypatch):
    """NDTORCH_CONFIG names the file to load."""
    path = tmp_path / "env.yaml"
    path.write_text("device: cpu\n")
    monkeypatch.setenv('NDTORCH_CONFIG', str(path))

    config = Config()
    config.load_from_env()
    assert config.engine.device == 'cpu'


def test_load_from_env_unset(monkeypatch):
    """Nothing happens when the variable is not set."""
    monkeypatch.delenv('NDTORCH_CONFIG', raising=False)
    config = Config()
    config.load_from_env()
    assert config.engine.device == 'auto'


def test_global_config_drives_defaults(config, tmp_path, engine):
    """The global config picks the device and the default dtype."""
    path = tmp_path / "global.yaml"
    path.write_text("device: cpu\ndtype: float64\n")
    load_config(str(path))

    assert Device.default_device() == Device.cpu()
    with NDManager.new_base_manager(engine=engine) as manager:
        assert manager.device == Device.cpu()
        assert manager.zeros(2).data_type == DataType.FLOAT64
        assert manager.arange(0, 1, 0.5).data_type == DataType.FLOAT64


def test_global_print_options(config, tmp_path, manager):
    """Printing limits come from the global config."""
    path = tmp_path / "print.yaml"
    path.write_text("print:\n  max_size: 3\n")
    load_config(str(path))

    array = manager.arange(100)
    assert "..." in array.to_debug_string()
    assert "..." not in array.to_debug_string(max_size=1000)
