import pytest

from cloudstep.execution import runner as runner_mod
from cloudstep.execution.runner import CommandError, CommandRunner, redact


class FakeProc:
    def __init__(self, returncode=0, stdout="", stderr=""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def test_run_success(monkeypatch):
    seen = {}

    def fake_run(argv, **kw):
        seen["argv"] = argv
        seen["env"] = kw["env"]
        return FakeProc(0, "ok\n", "")

    monkeypatch.setattr(runner_mod.subprocess, "run", fake_run)
    res = CommandRunner().run(["echo", "ok"])
    assert res.returncode == 0
    assert seen["argv"] == ["echo", "ok"]
    assert seen["env"] is None


def test_run_failure_raises_with_stderr_tail(monkeypatch):
    monkeypatch.setattr(runner_mod.subprocess, "run", lambda argv, **kw: FakeProc(2, "", "warn\nboom\n"))
    with pytest.raises(CommandError) as ei:
        CommandRunner().run(["false"])
    assert ei.value.returncode == 2
    assert str(ei.value) == "`false` exited 2: boom"


def test_run_unchecked_returns_result(monkeypatch):
    monkeypatch.setattr(runner_mod.subprocess, "run", lambda argv, **kw: FakeProc(1))
    assert CommandRunner().run(["false"], check=False).returncode == 1


def test_dry_run_skips_mutations_but_probes(monkeypatch):
    calls = []

    def fake_run(argv, **kw):
        calls.append(argv)
        return FakeProc(0, "present", "")

    monkeypatch.setattr(runner_mod.subprocess, "run", fake_run)
    r = CommandRunner(dry_run=True)
    assert r.run(["apt-get", "install", "-y", "x"]).returncode == 0
    assert r.output(["dpkg-query", "-W", "x"]) == "present"
    assert calls == [["dpkg-query", "-W", "x"]]


def test_probe_missing_tool_is_127(monkeypatch):
    def fake_run(argv, **kw):
        raise FileNotFoundError(argv[0])

    monkeypatch.setattr(runner_mod.subprocess, "run", fake_run)
    r = CommandRunner()
    assert r.probe(["crudini", "--get"]).returncode == 127
    assert not r.succeeds(["crudini"])
    with pytest.raises(CommandError):
        r.output(["crudini"])


def test_extra_env_is_merged_over_process_env(monkeypatch):
    seen = {}

    def fake_run(argv, **kw):
        seen.update(kw["env"])
        return FakeProc()

    monkeypatch.setenv("KEEP_ME", "1")
    monkeypatch.setattr(runner_mod.subprocess, "run", fake_run)
    CommandRunner(env={"A": "base"}).run(["true"], env={"A": "override", "B": "2"})
    assert seen["KEEP_ME"] == "1"
    assert (seen["A"], seen["B"]) == ("override", "2")


def test_command_error_is_runtime_error():
    err = CommandError(["x"], 1)
    assert isinstance(err, RuntimeError)
    assert str(err) == "`x` exited 1"


@pytest.mark.parametrize("argv,shown", [
    (["keystone-manage", "bootstrap", "--bootstrap-password", "s3cret", "--bootstrap-region-id", "RegionOne"],
     "keystone-manage bootstrap --bootstrap-password '***' --bootstrap-region-id RegionOne"),
    (["openstack", "user", "create", "--domain", "default", "--password", "s3cret", "demo"],
     "openstack user create --domain default --password '***' demo"),
    (["openstack", "--os-password=s3cret", "token", "issue"],
     "openstack '--os-password=***' token issue"),
    (["rabbitmqctl", "add_user", "openstack", "s3cret"],
     "rabbitmqctl add_user openstack '***'"),
])
def test_command_error_masks_passwords(argv, shown):
    err = CommandError(argv, 1)
    assert str(err) == f"`{shown}` exited 1"
    assert "s3cret" not in str(err)
    assert err.cmd == argv


def test_redact_leaves_ordinary_commands_alone():
    argv = ["rabbitmqctl", "set_permissions", "openstack", ".*", ".*", ".*"]
    assert redact(argv) == argv


def test_redact_masks_sql_passwords():
    sql = "ALTER USER 'root'@'localhost' IDENTIFIED BY 'it\\'s';"
    assert redact(["mysql", "-e", sql]) == [
        "mysql", "-e", "ALTER USER 'root'@'localhost' IDENTIFIED BY '***';",
    ]
