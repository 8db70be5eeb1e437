from pathlib import Path

from cloudstep.host.openstack_cli import OpenStackClient
from cloudstep.openstack.endpoints import admin_credentials
from cloudstep.openstack.summary import VERIFY_CHECKS, final_info, render_verification, verify_installation


def test_verification_reports_failures_without_raising(make_runner, cfg):
    def handler(argv):
        if argv[1:3] == ["volume", "service"]:
            return 1, "", "Volume service unavailable"
        return 0, "| ok |\n", ""

    client = OpenStackClient(make_runner(handler), admin_credentials(cfg))
    sections = verify_installation(client)

    assert [s.title for s in sections] == [title for title, _ in VERIFY_CHECKS]
    failed = [s for s in sections if not s.ok]
    assert [s.title for s in failed] == ["Volume Service Status"]
    text = render_verification(sections)
    assert "=== Images ===" in text
    assert "[WARNING] unavailable: Volume service unavailable" in text


def test_final_info_lists_access_details(cfg):
    text = final_info(cfg, Path("/root"))
    assert "URL: http://10.0.0.11/horizon" in text
    assert f"Password: {cfg.secrets.admin_password}" in text
    assert "source /root/admin-openrc" in text
    assert "Provider Interface: eth1" in text
