import pytest

from raidsetup import mdraid
from raidsetup.errors import ArrayCreateError, ArrayReadyTimeout
from raidsetup.model import ProvisioningRequest, RunConfig


def _cfg():
    return RunConfig(array_device="/dev/md0", mdadm_conf="/etc/mdadm/mdadm.conf", fstab="/etc/fstab", mount_root="/mnt")


def test_create_array_single_call(monkeypatch, recorder):
    monkeypatch.setattr(mdraid, "run", recorder)
    monkeypatch.setattr(mdraid, "udev_settle", lambda: None)
    request = ProvisioningRequest(level=5, disk_count=3, devices=["/dev/sdb", "/dev/sdc", "/dev/sdd"])

    mdraid.create_array(_cfg(), request)

    assert recorder.calls == [
        [
            "mdadm",
            "--create",
            "/dev/md0",
            "--level=5",
            "--raid-devices=3",
            "/dev/sdb",
            "/dev/sdc",
            "/dev/sdd",
            "--verbose",
            "--run",
        ]
    ]


def test_create_array_failure_is_not_retried(monkeypatch, recorder):
    monkeypatch.setattr(mdraid, "run", recorder.on("mdadm", rc=2, err="mdadm: device busy\n"))
    request = ProvisioningRequest(level=1, disk_count=2, devices=["/dev/sdb", "/dev/sdc"])
    with pytest.raises(ArrayCreateError) as exc:
        mdraid.create_array(_cfg(), request)
    assert exc.value.state == {"rc": 2, "err": "mdadm: device busy"}
    assert len(recorder.calls) == 1


def test_wait_until_ready_polls_until_detail_answers(monkeypatch):
    answers = iter([False, False, True])
    monkeypatch.setattr(mdraid, "is_ready", lambda dev: next(answers))
    sleeps = []
    assert mdraid.wait_until_ready("/dev/md0", attempts=60, interval=1.0, sleep=sleeps.append) == 3
    assert sleeps == [1.0, 1.0]


def test_wait_until_ready_times_out(monkeypatch):
    monkeypatch.setattr(mdraid, "is_ready", lambda dev: False)
    sleeps = []
    with pytest.raises(ArrayReadyTimeout) as exc:
        mdraid.wait_until_ready("/dev/md0", attempts=60, interval=1.0, sleep=sleeps.append)
    assert len(sleeps) == 60
    assert "60 seconds" in str(exc.value)
    assert not isinstance(exc.value, ArrayCreateError)
    assert exc.value.result != ArrayCreateError.result


def test_is_ready_requires_block_node(monkeypatch, recorder):
    monkeypatch.setattr(mdraid, "run", recorder)
    monkeypatch.setattr(mdraid, "is_block_device", lambda dev: False)
    assert not mdraid.is_ready("/dev/md0")
    assert recorder.calls == []

    monkeypatch.setattr(mdraid, "is_block_device", lambda dev: True)
    assert mdraid.is_ready("/dev/md0")
    recorder.on("mdadm", "--detail", rc=1)
    assert not mdraid.is_ready("/dev/md0")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("md0 : active raid1 sdc[1] sdb[0]\n      976630464 blocks super 1.2 [2/2] [UU]\n", False),
        ("md0 : active raid1 sdc[1] sdb[0]\n      976630464 blocks super 1.2 [2/1] [U_]\n"
         "      [>....................]  resync =  0.4%\n", True),
        ("md0 : active raid5 sdd[3] sdc[1] sdb[0]\n      [3/2] [UU_]\n      recovery = 1.0%\n", True),
    ],
)
def test_sync_in_progress(tmp_path, text, expected):
    mdstat = tmp_path / "mdstat"
    mdstat.write_text("Personalities : [raid1] [raid5]\n" + text + "unused devices: <none>\n", encoding="utf-8")
    assert mdraid.sync_in_progress(str(mdstat)) is expected


def test_sync_in_progress_without_mdstat(tmp_path):
    assert mdraid.sync_in_progress(str(tmp_path / "nope")) is False


def test_describe_reads_uuid_and_array_line(monkeypatch, recorder):
    recorder.on("mdadm", "--detail", "--export", out="MD_LEVEL=raid1\nMD_DEVICES=2\nMD_UUID=aa:bb:cc:dd\n")
    recorder.on(
        "mdadm",
        "--detail",
        "--brief",
        out="ARRAY /dev/md0 metadata=1.2 name=host:0 UUID=aa:bb:cc:dd\n",
    )
    monkeypatch.setattr(mdraid, "run", recorder)
    request = ProvisioningRequest(level=1, disk_count=2, devices=["/dev/sdb", "/dev/sdc"])

    descriptor = mdraid.describe(_cfg(), request)

    assert descriptor.uuid == "aa:bb:cc:dd"
    assert descriptor.registry_line == "ARRAY /dev/md0 metadata=1.2 name=host:0 UUID=aa:bb:cc:dd"
    assert (descriptor.level, descriptor.members, descriptor.device) == (1, 2, "/dev/md0")
