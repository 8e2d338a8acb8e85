import asyncio
import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from auth import SessionAuthProvider
from cli import demo_data, migrate, print_metrics
from db import KeyValueStore
from local_storage import LocalStorage
from remote_storage import RemoteStorage


def test_demo_data_only_once(tmp_path, capsys):
    db_path = str(tmp_path / "local.db")
    demo_data(db_path)
    local = LocalStorage(KeyValueStore(db_path))
    assert [p.name for p in local.get_profiles()] == ["Demo"]
    assert len(local.get_workouts()) == 3
    assert local.get_best_workout("bench-press", "weight").value == 72.5
    demo_data(db_path)
    assert len(local.get_workouts()) == 3
    assert "already contains workouts" in capsys.readouterr().out


def test_print_metrics(capsys):
    print_metrics([10, 5], [50.0, 70.0])
    out = capsys.readouterr().out
    assert "totalVolume: 850" in out
    assert "maxReps: 10" in out
    with pytest.raises(ValueError):
        print_metrics([10], [50.0, 70.0])


def test_migrate_command(tmp_path, capsys):
    local_db = str(tmp_path / "local.db")
    remote_db = str(tmp_path / "remote.db")
    demo_data(local_db)
    migrate(local_db, remote_db, "user-1")
    assert "Migrated 3 workouts and 0 custom exercises" in capsys.readouterr().out

    remote = RemoteStorage(remote_db, SessionAuthProvider("user-1"))
    assert len(asyncio.run(remote.get_workouts())) == 3

    migrate(local_db, remote_db, "user-1")
    assert "Migrated 0 workouts" in capsys.readouterr().out
