import time

from voxelsprite.timing import timed


def test_timed_measures_duration():
    ms = timed("test", False, lambda: time.sleep(0.05))
    assert 50 <= ms <= 250


def test_timed_prints_when_asked(capsys):
    ms = timed("work", True, lambda: None)
    assert capsys.readouterr().out == f"work: {ms} ms\n"


def test_timed_silent_by_default(capsys):
    timed("work", False, lambda: None)
    assert capsys.readouterr().out == ""


def test_timed_runs_operation():
    calls = []
    timed("work", False, lambda: calls.append(1))
    assert calls == [1]