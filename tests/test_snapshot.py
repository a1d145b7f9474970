"""
Tests for the snapshot engine — backup, retire and restore.
"""

import os
import stat
import sys
from pathlib import Path

import pytest

from levain.core.models.backup import BackupResult
from levain.core.services.backup import (
    BackupRestoreError,
    BackupService,
    BackupVerificationError,
    DirectoryInUseError,
    fs_ops,
)


@pytest.fixture
def service(clock) -> BackupService:
    return BackupService(clock=clock)


def _tree(root: Path) -> dict[str, bytes]:
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


class TestBackup:
    def test_creates_timestamped_sibling(self, service, make_install, levain_home):
        install = make_install()
        result = service.backup(install)

        assert result.success
        assert result.package_name == "jdk-21"
        assert result.timestamp == "20260210-120000"
        assert result.backup_path == levain_home / "jdk-21.backup-20260210-120000"
        assert _tree(result.backup_path) == _tree(install)

    def test_reports_copied_size(self, service, make_install):
        install = make_install(files={"a.bin": b"a" * 1000, "sub/b.bin": b"b" * 24})
        result = service.backup(install)
        assert result.size_bytes == 1024

    def test_source_untouched(self, service, make_install):
        install = make_install()
        before = _tree(install)
        service.backup(install)
        assert _tree(install) == before

    def test_missing_source(self, service, levain_home):
        result = service.backup(levain_home / "nope")
        assert not result.success
        assert result.kind == "missing"
        assert result.error == "Directory does not exist"
        assert result.package_name == "nope"
        assert not result.can_restore()

    def test_source_is_a_file(self, service, levain_home):
        target = levain_home / "file.txt"
        target.write_text("hi")
        result = service.backup(target)
        assert not result.success
        assert result.kind == "not_directory"

    def test_insufficient_space(self, service, make_install, levain_home, monkeypatch):
        install = make_install(files={"big.bin": b"x" * 1000})
        monkeypatch.setattr(fs_ops, "usable_space", lambda path: 1000)

        result = service.backup(install)

        assert not result.success
        assert result.kind == "insufficient_space"
        assert result.error.startswith("Insufficient disk space:")
        assert "Required: 1100 bytes" in result.error
        assert result.cause is not None
        assert not (levain_home / "jdk-21.backup-20260210-120000").exists()

    def test_buffer_exactly_met(self, service, make_install, monkeypatch):
        install = make_install(files={"big.bin": b"x" * 1000})
        monkeypatch.setattr(fs_ops, "usable_space", lambda path: 1100)
        assert service.backup(install).success

    def test_copy_error_is_a_failure(self, service, make_install, monkeypatch):
        install = make_install()

        def broken_copy(source, target, *, total_bytes=None):
            raise PermissionError("denied")

        monkeypatch.setattr(fs_ops, "copy_tree", broken_copy)
        result = service.backup(install)
        assert not result.success
        assert result.kind == "io_error"
        assert "denied" in result.error

    def test_verification_failure_raises(self, service, make_install, monkeypatch):
        install = make_install(files={"data.bin": b"d" * 1000})

        def short_copy(source, target, *, total_bytes=None):
            target.mkdir(parents=True)
            (target / "data.bin").write_bytes(b"d" * 900)
            return 900

        monkeypatch.setattr(fs_ops, "copy_tree", short_copy)
        with pytest.raises(BackupVerificationError, match="Original: 1000 bytes"):
            service.backup(install)

    def test_verification_tolerates_small_shortfall(self, service, make_install, monkeypatch):
        install = make_install(files={"data.bin": b"d" * 1000})

        def almost_copy(source, target, *, total_bytes=None):
            target.mkdir(parents=True)
            (target / "data.bin").write_bytes(b"d" * 950)
            return 950

        monkeypatch.setattr(fs_ops, "copy_tree", almost_copy)
        assert service.backup(install).success


class TestFileAttributes:
    MTIME = 1_000_000_000

    def _stamp(self, path: Path) -> None:
        path.chmod(0o755)
        os.utime(path, (self.MTIME, self.MTIME))

    def _assert_stamped(self, path: Path) -> None:
        st = path.stat()
        assert stat.S_IMODE(st.st_mode) == 0o755
        assert int(st.st_mtime) == self.MTIME

    def test_backup_preserves_mode_and_mtime(self, service, make_install):
        install = make_install()
        self._stamp(install / "bin" / "java")

        result = service.backup(install)

        self._assert_stamped(result.backup_path / "bin" / "java")

    def test_restore_preserves_mode_and_mtime(self, service, make_install):
        install = make_install()
        self._stamp(install / "bin" / "java")
        result = service.backup(install)

        (install / "bin" / "java").chmod(0o600)
        service.restore(result, install)

        self._assert_stamped(install / "bin" / "java")


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
class TestSymlinks:
    def test_links_copied_as_links(self, service, make_install, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "huge.bin").write_bytes(b"h" * 5000)

        install = make_install(files={"bin/java": b"j" * 100})
        (install / "bin" / "current").symlink_to("java")
        (install / "shared").symlink_to(outside, target_is_directory=True)

        result = service.backup(install)

        assert result.success
        assert result.size_bytes == 100
        copied_link = result.backup_path / "bin" / "current"
        assert copied_link.is_symlink()
        assert os.readlink(copied_link) == "java"
        assert (result.backup_path / "shared").is_symlink()

    def test_size_does_not_follow_links(self, make_install, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "huge.bin").write_bytes(b"h" * 5000)

        install = make_install(files={"bin/java": b"j" * 100})
        (install / "shared").symlink_to(outside, target_is_directory=True)
        (install / "bin" / "huge").symlink_to(outside / "huge.bin")

        assert fs_ops.directory_size(install) == 100

    def test_restore_recreates_links(self, service, make_install):
        install = make_install(files={"bin/java": b"j" * 100})
        (install / "bin" / "current").symlink_to("java")
        result = service.backup(install)

        (install / "bin" / "current").unlink()
        service.restore(result, install)

        assert (install / "bin" / "current").is_symlink()
        assert (install / "bin" / "current").read_bytes() == b"j" * 100


class TestDeleteInstallationDirectory:
    def test_deletes(self, service, make_install):
        install = make_install()
        assert service.delete_installation_directory(install) is None
        assert not install.exists()

    def test_missing_is_noop(self, service, levain_home):
        assert service.delete_installation_directory(levain_home / "nope") is None

    def test_renames_when_delete_fails(self, service, make_install, levain_home, monkeypatch):
        install = make_install()

        def locked(path):
            raise PermissionError("file in use")

        monkeypatch.setattr(fs_ops, "delete_tree", locked)
        retired = service.delete_installation_directory(install)

        assert retired is not None
        assert retired.parent == levain_home
        assert retired.name.startswith(".deleted.jdk-21.")
        assert retired.name.rsplit(".", 1)[1].isdigit()
        assert retired.is_dir()
        assert not install.exists()

    def test_raises_when_rename_also_fails(self, service, make_install, monkeypatch):
        install = make_install()
        delete_error = PermissionError("file in use")

        def locked(path):
            raise delete_error

        def no_rename(self, target):
            raise PermissionError("rename denied")

        monkeypatch.setattr(fs_ops, "delete_tree", locked)
        monkeypatch.setattr(Path, "replace", no_rename)

        with pytest.raises(DirectoryInUseError, match="close any programs") as exc:
            service.delete_installation_directory(install)
        assert exc.value.__cause__ is delete_error


class TestRestore:
    def test_round_trip(self, service, make_install):
        install = make_install()
        original = _tree(install)
        result = service.backup(install)

        (install / "release").write_bytes(b"JAVA_VERSION=22\n")
        (install / "stale.txt").write_text("left over from the failed upgrade")

        copied = service.restore(result, install)

        assert _tree(install) == original
        assert copied == sum(len(b) for b in original.values())

    def test_restore_into_missing_target(self, service, make_install):
        install = make_install()
        result = service.backup(install)
        service.delete_installation_directory(install)

        service.restore(result, install)
        assert (install / "bin" / "java").is_file()

    def test_failed_result_rejected(self, service, levain_home):
        result = BackupResult.failure("jdk-21", "Directory does not exist", kind="missing")
        with pytest.raises(BackupRestoreError, match="invalid backup"):
            service.restore(result, levain_home / "jdk-21")

    def test_vanished_snapshot(self, service, make_install):
        install = make_install()
        result = service.backup(install)
        fs_ops.delete_tree(result.backup_path)

        with pytest.raises(BackupRestoreError, match="no longer exists"):
            service.restore(result, install)
        assert install.exists()

    def test_copy_error_wrapped(self, service, make_install, monkeypatch):
        install = make_install()
        result = service.backup(install)

        def broken_copy(source, target, *, total_bytes=None):
            raise OSError("disk full")

        monkeypatch.setattr(fs_ops, "copy_tree", broken_copy)
        with pytest.raises(BackupRestoreError, match="disk full"):
            service.restore(result, install)
