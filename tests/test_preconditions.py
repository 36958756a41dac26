"""Tests for privilege, port and package preconditions."""
from types import SimpleNamespace

import pytest

from conftest import FakeRunner
from wgdeploy.core.errors import PackageInstallError, PortConflictError, PrivilegeError, UnsupportedOSError
from wgdeploy.services.packages import PackageInstaller
from wgdeploy.services.ports import PortAvailabilityCheck
from wgdeploy.services.privilege import PrivilegeGate


def _udp(port, pid=None):
    return SimpleNamespace(laddr=SimpleNamespace(ip="0.0.0.0", port=port), pid=pid)


class TestPrivilegeGate:
    def test_root_passes(self):
        PrivilegeGate(lambda: 0).check()

    def test_non_root_fails(self):
        with pytest.raises(PrivilegeError, match="UID is 1000"):
            PrivilegeGate(lambda: 1000).check()


class TestPortAvailabilityCheck:
    """UDP socket table inspection."""

    def test_free_port(self):
        PortAvailabilityCheck(lambda: [_udp(53), _udp(5353)]).check(51820)

    def test_empty_table(self):
        PortAvailabilityCheck(lambda: []).check(51820)

    def test_bound_port(self):
        with pytest.raises(PortConflictError) as exc_info:
            PortAvailabilityCheck(lambda: [_udp(51820)]).check(51820)
        assert exc_info.value.port == 51820
        assert "already in use" in str(exc_info.value)

    def test_unbound_sockets_ignored(self):
        PortAvailabilityCheck(lambda: [SimpleNamespace(laddr=(), pid=None)]).check(51820)

    def test_owner_reported(self, monkeypatch):
        monkeypatch.setattr(
            "wgdeploy.services.ports.psutil.Process",
            lambda pid: SimpleNamespace(name=lambda: "wg-quick"),
        )
        with pytest.raises(PortConflictError, match=r"wg-quick \(PID 4242\)"):
            PortAvailabilityCheck(lambda: [_udp(51820, pid=4242)]).check(51820)


class TestPackageInstaller:
    """OS-family dispatched Docker installation."""

    def test_debian_uses_apt(self):
        runner = FakeRunner(present=["docker"])
        PackageInstaller(runner).install_docker("debian")

        assert runner.calls == [
            ["apt-get", "update"],
            ["apt-get", "install", "-y", "docker.io"],
            ["systemctl", "enable", "--now", "docker"],
        ]

    def test_rhel_uses_dnf(self):
        runner = FakeRunner(present=["docker"])
        PackageInstaller(runner).install_docker("rhel")

        assert runner.calls[0] == ["dnf", "install", "-y", "docker"]

    def test_unsupported_family(self):
        runner = FakeRunner()
        with pytest.raises(UnsupportedOSError, match="alpine"):
            PackageInstaller(runner).install_docker("alpine")
        assert runner.calls == []

    def test_install_failure(self):
        runner = FakeRunner()
        runner.on("apt-get", "install", returncode=100, stderr="E: Unable to locate package docker.io")

        with pytest.raises(PackageInstallError, match="Unable to locate package"):
            PackageInstaller(runner).install_docker("debian")
        assert ["systemctl", "enable", "--now", "docker"] not in runner.calls

    def test_docker_still_missing(self):
        with pytest.raises(PackageInstallError, match="still not on PATH"):
            PackageInstaller(FakeRunner()).install_docker("debian")
