from collections import namedtuple

import pytest

from cloudstep.prompt import preflight
from cloudstep.prompt.preflight import (
    GIB,
    PreconditionDeclined,
    PreconditionWarning,
    confirm_warnings,
    run_preflight,
)

Usage = namedtuple("Usage", "total used free")


@pytest.fixture
def host(tmp_path, monkeypatch):
    os_release = tmp_path / "os-release"
    os_release.write_text('PRETTY_NAME="Ubuntu 24.04.1 LTS"\n')
    meminfo = tmp_path / "meminfo"
    meminfo.write_text(f"MemTotal:       {16 * 1024 * 1024} kB\n")
    monkeypatch.setattr(preflight.shutil, "disk_usage", lambda _p: Usage(0, 0, 200 * GIB))
    return {"os_release": os_release, "meminfo": meminfo, "root": tmp_path}


def test_healthy_host_has_no_warnings(host):
    assert run_preflight(**host) == []


def test_each_shortfall_is_reported(host, monkeypatch):
    host["os_release"].write_text('PRETTY_NAME="Debian GNU/Linux 12"\n')
    host["meminfo"].write_text(f"MemTotal:       {4 * 1024 * 1024} kB\n")
    monkeypatch.setattr(preflight.shutil, "disk_usage", lambda _p: Usage(0, 0, 10 * GIB))

    codes = [w.code for w in run_preflight(**host)]
    assert codes == ["os-release", "memory", "disk"]


def test_unreadable_sources_are_not_fatal(tmp_path, monkeypatch):
    def boom(_p):
        raise OSError("nope")

    monkeypatch.setattr(preflight.shutil, "disk_usage", boom)
    warnings = run_preflight(os_release=tmp_path / "missing", meminfo=tmp_path / "missing", root=tmp_path)
    assert [w.code for w in warnings] == ["os-release"]


def test_declined_warning_aborts():
    w = [PreconditionWarning("memory", "low memory")]
    with pytest.raises(PreconditionDeclined):
        confirm_warnings(w, confirm=lambda *_a, **_k: False)


def test_assume_yes_never_prompts():
    def never(*_a, **_k):
        raise AssertionError("prompted")

    confirm_warnings([PreconditionWarning("disk", "low disk")], assume_yes=True, confirm=never)
