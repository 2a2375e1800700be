"""Tests for per-instance state files."""

import json
import os

import pytest

from osprov.state import StateFile


@pytest.mark.unit
class TestStateFile:
    """Test loading and saving the host state map."""

    def test_missing_file_is_empty_state(self, tmp_path):
        assert StateFile("default-ubuntu", str(tmp_path)).load() == {}

    def test_round_trip(self, tmp_path):
        state_file = StateFile("default-ubuntu", str(tmp_path))
        state_file.save({"server_id": "srv-1", "hostname": "10.0.0.5"})

        assert StateFile("default-ubuntu", str(tmp_path)).load() == {
            "server_id": "srv-1",
            "hostname": "10.0.0.5",
        }

    def test_empty_state_removes_file(self, tmp_path):
        state_file = StateFile("default-ubuntu", str(tmp_path))
        state_file.save({"server_id": "srv-1"})

        state_file.save({})

        assert not os.path.exists(state_file.path)

    def test_instance_name_sanitized(self, tmp_path):
        state_file = StateFile("suite/platform name", str(tmp_path))

        assert os.path.dirname(state_file.path) == str(tmp_path)
        assert os.path.basename(state_file.path) == "suite_platform_name.json"

    def test_state_dir_created(self, tmp_path):
        state_dir = tmp_path / "nested" / "state"

        StateFile("default", str(state_dir))

        assert state_dir.is_dir()

    def test_state_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("OSPROV_STATEDIR", str(tmp_path / "env-state"))

        assert StateFile("default").state_dir == str(tmp_path / "env-state")

    def test_corrupted_file_backed_up(self, tmp_path):
        state_file = StateFile("default", str(tmp_path))
        with open(state_file.path, "w") as f:
            f.write("{not json")

        assert state_file.load() == {}
        backups = [name for name in os.listdir(tmp_path) if ".backup." in name]
        assert len(backups) == 1

    def test_non_mapping_rejected(self, tmp_path):
        state_file = StateFile("default", str(tmp_path))
        with open(state_file.path, "w") as f:
            json.dump(["srv-1"], f)

        assert state_file.load() == {}
