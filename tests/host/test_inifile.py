from cloudstep.host.inifile import IniFile


class Crudini:
    """In-memory crudini: --get / --set against a dict of sections."""

    def __init__(self, data=None):
        self.data = data or {}

    def __call__(self, argv):
        assert argv[0] == "crudini"
        op, _path, section, key = argv[1:5]
        if op == "--get":
            if key in self.data.get(section, {}):
                return 0, self.data[section][key] + "\n", ""
            return 1, "", "Parameter not found"
        self.data.setdefault(section, {})[key] = argv[5]
        return 0, "", ""


def test_set_writes_only_differing_keys(make_runner):
    crudini = Crudini({"database": {"connection": "old"}, "DEFAULT": {"debug": "False"}})
    runner = make_runner(crudini)
    ini = IniFile(runner, "/etc/glance/glance-api.conf")

    changed = ini.apply({
        "database": {"connection": "mysql+pymysql://glance"},
        "DEFAULT": {"debug": False},
    })

    assert changed == 1
    assert runner.mutations == [[
        "crudini", "--set", "/etc/glance/glance-api.conf",
        "database", "connection", "mysql+pymysql://glance",
    ]]


def test_second_apply_is_a_noop(make_runner):
    runner = make_runner(Crudini())
    ini = IniFile(runner, "/etc/nova/nova.conf")
    sections = {"api": {"auth_strategy": "keystone"}, "vnc": {"enabled": True}}

    assert ini.apply(sections) == 2
    before = len(runner.mutations)
    assert ini.apply(sections) == 0
    assert len(runner.mutations) == before


def test_get_missing_key_is_none(make_runner):
    ini = IniFile(make_runner(Crudini()), "/etc/x.conf")
    assert ini.get("DEFAULT", "nothing") is None
