"""Unit tests for deploy storage module."""

from __future__ import annotations

import os
import stat

import pytest

from ocdeploy.deploy import StoragePreparer


def recorder(chowned: list):
    def chown(path, uid, gid, follow_symlinks=True):
        chowned.append((str(path), uid, gid, follow_symlinks))

    return chown


@pytest.mark.cli_unit
class TestStoragePreparer:
    """Tests for StoragePreparer."""

    def test_creates_both_directories(self, tmp_path):
        chowned = []
        storage = tmp_path / "mnt" / "clouddata"
        config_dir = tmp_path / "opt" / "opencloud" / "config"

        result = StoragePreparer(config_dir, chown=recorder(chowned)).prepare(str(storage))

        assert result.error is None
        assert storage.is_dir()
        assert config_dir.is_dir()
        assert (str(storage), 1000, 1000, True) in chowned
        assert (str(config_dir), 1000, 1000, True) in chowned

    def test_mode_is_0750(self, tmp_path):
        storage = tmp_path / "clouddata"
        config_dir = tmp_path / "config"

        StoragePreparer(config_dir, chown=lambda *a, **kw: None).prepare(storage)

        assert stat.S_IMODE(storage.stat().st_mode) == 0o750
        assert stat.S_IMODE(config_dir.stat().st_mode) == 0o750

    def test_idempotent_and_recursive(self, tmp_path):
        storage = tmp_path / "clouddata"
        (storage / "users").mkdir(parents=True)
        (storage / "users" / "blob").write_text("x")
        config_dir = tmp_path / "config"
        chowned = []
        preparer = StoragePreparer(config_dir, chown=recorder(chowned))

        first = preparer.prepare(storage)
        second = preparer.prepare(storage)

        assert first.error is None and second.error is None
        assert (str(storage / "users" / "blob"), 1000, 1000, False) in chowned

    def test_symlinks_inside_tree_are_not_followed(self, tmp_path):
        outside = tmp_path / "etc"
        outside.mkdir()
        (outside / "shadow").write_text("root:*:")
        storage = tmp_path / "clouddata"
        storage.mkdir()
        (storage / "evil").symlink_to(outside / "shadow")
        (storage / "evil_dir").symlink_to(outside, target_is_directory=True)
        chowned = []

        result = StoragePreparer(tmp_path / "config", chown=recorder(chowned)).prepare(storage)

        assert result.error is None
        assert (str(storage / "evil"), 1000, 1000, False) in chowned
        assert (str(storage / "evil_dir"), 1000, 1000, False) in chowned
        assert not any(path.startswith(str(outside)) for path, *_ in chowned)

    @pytest.mark.skipif(os.name != "posix" or os.geteuid() != 0, reason="needs root to chown")
    def test_symlink_target_keeps_owner(self, tmp_path):
        target = tmp_path / "shadow"
        target.write_text("root:*:")
        os.chown(target, 0, 0)
        storage = tmp_path / "clouddata"
        storage.mkdir()
        (storage / "evil").symlink_to(target)

        result = StoragePreparer(tmp_path / "config").prepare(storage)

        assert result.error is None
        target_stat = target.stat()
        link_stat = (storage / "evil").lstat()
        assert (target_stat.st_uid, target_stat.st_gid) == (0, 0)
        assert (link_stat.st_uid, link_stat.st_gid) == (1000, 1000)

    def test_permission_error_is_fatal(self, tmp_path):
        def deny(path, uid, gid, follow_symlinks=True):
            raise PermissionError(1, "Operation not permitted", str(path))

        result = StoragePreparer(tmp_path / "config", chown=deny).prepare(tmp_path / "clouddata")

        assert result.error is not None
        assert "Operation not permitted" in result.error.message
