"""
Test debug utilities: live array listing, engine statistics, debug prints.
"""

import pytest

import ndtorch
from ndtorch import debug
from ndtorch.engine import PyTorchEngine, create_engine


def test_live_arrays(manager):
    """Live arrays of a manager and its sub-managers are listed."""
    a = manager.ones((2, 3))
    a.name = "a"
    sub = manager.new_sub_manager()
    sub.zeros(4)

    live = debug.get_live_arrays(manager)
    assert len(live) == 2

    by_uid = {entry['uid']: entry for entry in live}
    entry = by_uid[a.uid]
    assert entry['name'] == "a"
    assert entry['shape'] == (2, 3)
    assert entry['dtype'] == 'FLOAT32'
    assert entry['device'] == 'cpu()'
    assert entry['manager'] == manager.uid

    sub_entries = [e for e in live if e['manager'] == sub.uid]
    assert len(sub_entries) == 1


def test_print_live_arrays(manager, capsys):
    """Test the printed report."""
    a = manager.ones(2)
    debug.print_live_arrays(manager)
    out = capsys.readouterr().out
    assert "Live arrays (1):" in out
    assert a.uid in out

    a.close()
    debug.print_live_arrays(manager)
    assert "Live arrays: None" in capsys.readouterr().out


def test_engine_stats(manager, engine):
    """Native calls and handles are counted."""
    a = manager.zeros(3)
    b = a + 1
    b.close()

    stats = debug.get_engine_stats(engine)
    assert stats['engine'] == 'PyTorchEngine'
    assert stats['operations']['by_name']['zeros'] == 1
    assert stats['operations']['by_name']['add'] == 1
    assert stats['operations']['total'] >= 3
    assert stats['handles']['created'] == 2
    assert stats['handles']['deleted'] == 1


def test_handle_counters_match(manager, engine):
    """Every handle an array owns is counted once when created and once when released."""
    a = manager.ones(2)
    b = a + 1
    c = a.duplicate()
    for array in (a, b, c):
        array.close()

    handles = engine.get_stats()['handles']
    assert handles == {'created': 3, 'deleted': 3}


def test_reset_stats(engine, manager):
    """reset_stats starts counting from zero."""
    manager.ones(2)
    engine.reset_stats()
    stats = engine.get_stats()
    assert stats['operations']['total'] == 0
    assert stats['handles'] == {'created': 0, 'deleted': 0}


def test_print_engine_stats(manager, engine, capsys):
    """Test the printed engine report."""
    manager.ones(2)
    debug.print_engine_stats(engine)
    out = capsys.readouterr().out
    assert "Engine Statistics (PyTorchEngine):" in out
    assert "ones: 1" in out


def test_default_engine_stats():
    """Without an argument the shared engine is reported."""
    stats = debug.get_engine_stats()
    assert stats['engine'] == 'PyTorchEngine'


def test_debug_prints(manager, monkeypatch, capsys):
    """Debug prints only appear when their flag is on."""
    manager.ones(1)
    assert "[ARRAY]" not in capsys.readouterr().out

    monkeypatch.setattr(debug, 'DEBUG_ARRAY', True)
    monkeypatch.setattr(debug, 'DEBUG_MANAGER', True)
    a = manager.ones(1)
    a.close()
    manager.new_sub_manager().close()
    out = capsys.readouterr().out
    assert f"[ARRAY] created {a.uid}" in out
    assert f"[ARRAY] released {a.uid}" in out
    assert "[MANAGER] new sub manager" in out


def test_create_engine():
    """Only the pytorch backend exists."""
    assert isinstance(create_engine(), PyTorchEngine)
    assert create_engine().supports_sparse()
    assert isinstance(ndtorch.get_default_engine(), PyTorchEngine)
    with pytest.raises(ValueError):
        create_engine('numpy')
