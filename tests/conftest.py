import json
import subprocess

import pytest

from cloudstep.config.models import RunConfiguration, ServiceSecrets
from cloudstep.execution.runner import CommandError, CommandRunner


class FakeRunner(CommandRunner):
    """
    Records every command and answers from handler(argv) -> (rc, stdout, stderr)
    instead of spawning a process.
    """

    def __init__(self, handler=None, dry_run=False):
        super().__init__(dry_run=dry_run)
        self.handler = handler or (lambda argv: (0, "", ""))
        self.calls = []

    def _answer(self, mode, cmd, env):
        argv = [str(c) for c in cmd]
        self.calls.append((mode, argv, env))
        rc, out, err = self.handler(argv)
        return subprocess.CompletedProcess(argv, rc, out, err)

    def run(self, cmd, *, check=True, env=None, input=None, cwd=None):
        if self.dry_run:
            self.calls.append(("skipped", [str(c) for c in cmd], env))
            return subprocess.CompletedProcess([str(c) for c in cmd], 0, "", "")
        cp = self._answer("run", cmd, env)
        if check and cp.returncode != 0:
            raise CommandError(cp.args, cp.returncode, cp.stdout, cp.stderr)
        return cp

    def probe(self, cmd, *, env=None):
        return self._answer("probe", cmd, env)

    @property
    def mutations(self):
        return [argv for mode, argv, _ in self.calls if mode == "run"]


class FakeCloud:
    """Just enough of the `openstack` CLI to exercise the ensure_* helpers."""

    def __init__(self):
        self.objects = set()        # (kind, name)
        self.assignments = set()    # (project, user, role)
        self.endpoints = {}         # service_type -> [interface]
        self.rules = {}             # group -> [{"IP Protocol": .., "Port Range": ..}]
        self.router_subnets = set()
        self.gateways = set()

    @staticmethod
    def _opt(args, flag):
        return args[args.index(flag) + 1]

    def __call__(self, argv):
        assert argv[0] == "openstack"
        args = [a for a in argv[1:]]
        if args[-2:] == ["-f", "json"]:
            args = args[:-2]

        if args[:3] == ["role", "assignment", "list"]:
            key = (self._opt(args, "--project"), self._opt(args, "--user"), self._opt(args, "--role"))
            rows = [{"Role": key[2]}] if key in self.assignments else []
            return 0, json.dumps(rows), ""
        if args[:2] == ["role", "add"]:
            self.assignments.add((self._opt(args, "--project"), self._opt(args, "--user"), args[-1]))
            return 0, "", ""
        if args[:2] == ["endpoint", "list"]:
            rows = [{"Interface": i} for i in self.endpoints.get(self._opt(args, "--service"), [])]
            return 0, json.dumps(rows), ""
        if args[:2] == ["endpoint", "create"]:
            self.endpoints.setdefault(args[4], []).append(args[5])
            return 0, "", ""
        if args[:4] == ["security", "group", "rule", "list"]:
            proto = self._opt(args, "--protocol")
            rows = [r for r in self.rules.get(args[4], []) if r["IP Protocol"] == proto]
            return 0, json.dumps(rows), ""
        if args[:4] == ["security", "group", "rule", "create"]:
            port = self._opt(args, "--dst-port") if "--dst-port" in args else None
            self.rules.setdefault(args[-1], []).append({
                "IP Protocol": self._opt(args, "--proto"),
                "Port Range": f"{port}:{port}" if port else "",
            })
            return 0, "", ""
        if args[:3] == ["security", "group", "list"]:
            return 0, json.dumps([{"ID": "sg-admin", "Name": "default"}]), ""
        if args[:2] == ["port", "list"]:
            subnet = self._opt(args, "--fixed-ip").split("=", 1)[1]
            found = (self._opt(args, "--router"), subnet) in self.router_subnets
            return 0, "port-1\n" if found else "", ""
        if args[:3] == ["router", "add", "subnet"]:
            self.router_subnets.add((args[3], args[4]))
            return 0, "", ""
        if args[:2] == ["router", "set"]:
            self.gateways.add(args[2])
            return 0, "", ""
        if args[:2] == ["router", "show"]:
            if ("router", args[2]) not in self.objects:
                return 1, "", "No Router found"
            info = {"external_gateway_info": {"network_id": "x"} if args[2] in self.gateways else None}
            return 0, json.dumps(info), ""

        if "show" in args:
            i = args.index("show")
            kind, name = " ".join(args[:i]), args[i + 1]
            if (kind, name) in self.objects:
                return 0, json.dumps({"name": name}), ""
            return 1, "", f"No {kind} with a name or ID of '{name}' exists."
        if "create" in args:
            i = args.index("create")
            kind = " ".join(args[:i])
            name = self._opt(args, "--name") if kind == "service" else args[-1]
            self.objects.add((kind, name))
            return 0, "", ""
        if "list" in args:
            return 0, "+----+\n| ok |\n+----+\n", ""
        return 0, "", ""


class Capture:
    def __init__(self):
        self.events = []

    def notify(self, ev):
        self.events.append(ev)

    def kinds(self):
        return [e.__class__.__name__ for e in self.events]


@pytest.fixture
def make_runner():
    return FakeRunner


@pytest.fixture
def cloud():
    return FakeCloud()


@pytest.fixture
def capture():
    return Capture()


@pytest.fixture
def service_secrets():
    return ServiceSecrets(
        admin_password="AdminPass0001",
        demo_password="DemoPass00002",
        db_password="DbPass0000003",
        rabbit_password="RabbitPass004",
        service_password="ServicePass05",
        metadata_secret="0123456789abcdef0123",
    )


@pytest.fixture
def cfg(service_secrets):
    return RunConfiguration(
        management_ip="10.0.0.11",
        provider_interface="eth1",
        secrets=service_secrets,
    )
