from cloudstep.host.toolkit import HostToolkit
from cloudstep.openstack.registry import build_openstack_steps

EXPECTED = [
    "system_updated",
    "utilities_installed",
    "networking_configured",
    "ntp_configured",
    "mariadb_configured",
    "rabbitmq_configured",
    "memcached_configured",
    "etcd_configured",
    "openstack_repo_enabled",
    "openstack_client_installed",
    "keystone_configured",
    "env_scripts_created",
    "projects_users_created",
    "glance_configured",
    "placement_configured",
    "nova_configured",
    "neutron_configured",
    "horizon_configured",
    "cinder_configured",
    "test_image_downloaded",
    "test_networks_created",
    "test_flavor_created",
    "security_groups_configured",
]


def test_sequence_is_fixed(make_runner):
    reg = build_openstack_steps(HostToolkit(make_runner()))
    assert reg.ids() == EXPECTED
    assert [s.position for s in reg] == list(range(1, 24))


def test_every_step_has_a_description(make_runner):
    reg = build_openstack_steps(HostToolkit(make_runner()))
    assert reg.get("system_updated").description == "Update system packages"
    assert reg.get("horizon_configured").description == "Install and configure Horizon (Dashboard)"
    assert all(s.description for s in reg)


def test_building_touches_nothing(make_runner):
    runner = make_runner()
    build_openstack_steps(HostToolkit(runner))
    assert runner.calls == []
