"""Tests for the artifact stores"""

from unittest.mock import patch

import pytest

from rule_tuner.exceptions import ArtifactNotFound
from rule_tuner.infrastructure.artifact_store import (
    FileArtifactStore,
    InMemoryArtifactStore,
    atomic_write_bytes,
    check_artifact_id,
)


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryArtifactStore()
    return FileArtifactStore(tmp_path / "rules")


class TestCheckArtifactId:
    @pytest.mark.parametrize("artifact_id", ["task_verbs", "industry.keywords", "t-1"])
    def test_valid(self, artifact_id):
        assert check_artifact_id(artifact_id) == artifact_id

    @pytest.mark.parametrize("artifact_id", ["", "../etc", "a/b", ".hidden", None])
    def test_invalid(self, artifact_id):
        with pytest.raises(ValueError, match="Invalid artifact ID"):
            check_artifact_id(artifact_id)


class TestArtifactStoreContract:
    """Behaviour shared by every backend"""

    def test_write_then_read(self, store):
        store.write("task_verbs", b'{"a": 1}')
        assert store.read("task_verbs") == b'{"a": 1}'
        assert store.exists("task_verbs")

    def test_replace(self, store):
        store.write("task_verbs", b"old")
        store.write("task_verbs", b"new")
        assert store.read("task_verbs") == b"new"

    def test_missing(self, store):
        assert not store.exists("task_verbs")
        with pytest.raises(ArtifactNotFound) as exc_info:
            store.read("task_verbs")
        assert exc_info.value.artifact_id == "task_verbs"

    def test_list_artifacts(self, store):
        store.write("thresholds", b"1")
        store.write("task_verbs", b"2")
        assert store.list_artifacts() == ["task_verbs", "thresholds"]

    def test_rejects_path_traversal(self, store):
        with pytest.raises(ValueError):
            store.write("../escape", b"x")


class TestFileArtifactStore:
    def test_file_layout(self, tmp_path):
        store = FileArtifactStore(tmp_path)
        store.write("thresholds", b"{}")
        assert (tmp_path / "thresholds.json").read_bytes() == b"{}"

    def test_no_temp_files_left(self, tmp_path):
        store = FileArtifactStore(tmp_path)
        store.write("thresholds", b"{}")
        assert [p.name for p in tmp_path.iterdir()] == ["thresholds.json"]

    def test_list_on_missing_dir(self, tmp_path):
        assert FileArtifactStore(tmp_path / "absent").list_artifacts() == []


class TestAtomicWriteBytes:
    def test_failed_replace_keeps_old_content(self, tmp_path):
        """置き換えに失敗しても元の内容が残り、一時ファイルも消える"""
        target = tmp_path / "thresholds.json"
        target.write_bytes(b"old")
        with patch("rule_tuner.infrastructure.artifact_store.filesystem.os.replace",
                   side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                atomic_write_bytes(target, b"new")
        assert target.read_bytes() == b"old"
        assert [p.name for p in tmp_path.iterdir()] == ["thresholds.json"]

    def test_creates_parent_dir(self, tmp_path):
        target = tmp_path / "a" / "b.json"
        atomic_write_bytes(target, b"x")
        assert target.read_bytes() == b"x"
