import logging
from pathlib import Path

import pytest

from hostguard.errors import CommandError
from hostguard.models import CommandResult, MountType
from hostguard.system.mounts import PartitionMountController


def _write_mounts(path: Path, *lines: str) -> Path:
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def read_only_mounts(tmp_path: Path) -> Path:
    return _write_mounts(
        tmp_path / "mounts",
        "rootfs / rootfs rw 0 0",
        f"/dev/block/sda3 {tmp_path.resolve()} ext4 ro,seclabel,relatime 0 0",
    )


def test_find_mount_prefers_longest_mount_point(tmp_path: Path, make_stub_runner) -> None:
    mounts = _write_mounts(
        tmp_path / "mounts",
        "rootfs / rootfs rw 0 0",
        "/dev/sda1 /system ext4 ro 0 0",
        "/dev/sda2 /system/etc ext4 rw 0 0",
    )
    controller = PartitionMountController(make_stub_runner(), str(mounts))

    assert controller.find_mount("/system/etc/hosts").mount_point == "/system/etc"
    assert controller.find_mount("/system/bin/sh").mount_point == "/system"
    assert controller.find_mount("/systemd/unit").mount_point == "/"


def test_mount_points_with_escaped_spaces_are_decoded(tmp_path: Path, make_stub_runner) -> None:
    mounts = _write_mounts(tmp_path / "mounts", r"/dev/sdc1 /mnt/usb\040stick vfat ro 0 0")
    controller = PartitionMountController(make_stub_runner(), str(mounts))

    entry = controller.find_mount("/mnt/usb stick/hosts")

    assert entry is not None
    assert entry.mount_point == "/mnt/usb stick"
    assert controller.get_mount_type("/mnt/usb stick/hosts") == MountType.READ_ONLY


def test_read_write_does_nothing_on_writable_partition(
    tmp_path: Path, mounts_file: Path, make_stub_runner
) -> None:
    runner = make_stub_runner()
    controller = PartitionMountController(runner, str(mounts_file))

    with controller.read_write(str(tmp_path / "hosts")) as remounted:
        assert remounted is False

    assert runner.batches == []


def test_read_write_remounts_and_restores(
    tmp_path: Path, read_only_mounts: Path, make_stub_runner
) -> None:
    runner = make_stub_runner()
    controller = PartitionMountController(runner, str(read_only_mounts))
    mount_point = str(tmp_path.resolve())

    with controller.read_write(str(tmp_path / "hosts")) as remounted:
        assert remounted is True
        assert runner.commands == [f"mount -o rw,remount {mount_point}"]

    assert runner.commands == [
        f"mount -o rw,remount {mount_point}",
        f"mount -o ro,remount {mount_point}",
    ]


def test_read_only_mode_is_restored_when_body_fails(
    tmp_path: Path, read_only_mounts: Path, make_stub_runner
) -> None:
    runner = make_stub_runner()
    controller = PartitionMountController(runner, str(read_only_mounts))

    with pytest.raises(RuntimeError, match="copy exploded"):
        with controller.read_write(str(tmp_path / "hosts")):
            raise RuntimeError("copy exploded")

    assert runner.commands[-1].startswith("mount -o ro,remount")


def test_failed_read_write_remount_raises_without_restore(
    tmp_path: Path, read_only_mounts: Path, make_stub_runner
) -> None:
    runner = make_stub_runner(
        {"rw,remount": CommandResult(success=False, stderr=["permission denied"], code=32)}
    )
    controller = PartitionMountController(runner, str(read_only_mounts))

    with pytest.raises(CommandError):
        with controller.read_write(str(tmp_path / "hosts")):
            pytest.fail("body must not run")

    assert len(runner.commands) == 1


def test_failed_restore_is_logged_not_raised(
    tmp_path: Path, read_only_mounts: Path, make_stub_runner, caplog
) -> None:
    runner = make_stub_runner(
        {"ro,remount": CommandResult(success=False, stderr=["device busy"], code=32)}
    )
    controller = PartitionMountController(runner, str(read_only_mounts))

    with caplog.at_level(logging.WARNING, logger="hostguard"):
        with controller.read_write(str(tmp_path / "hosts")):
            pass

    assert "left mounted read-write" in caplog.text
    assert "device busy" in caplog.text


def test_unreadable_mounts_file_falls_back_to_access_check(
    tmp_path: Path, make_stub_runner
) -> None:
    controller = PartitionMountController(make_stub_runner(), str(tmp_path / "missing"))

    assert controller.list_mounts() == []
    assert controller.is_writable(str(tmp_path / "new" / "hosts")) is True
