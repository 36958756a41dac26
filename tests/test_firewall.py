"""Tests for firewall rule management."""
from conftest import FakeRunner
from wgdeploy.core.runner import CommandResult
from wgdeploy.discovery.host import HostCapabilities
from wgdeploy.services.firewall import APPLIED, FAILED, SKIPPED, FirewallManager, IptablesBackend


def _stateful_iptables(runner):
    """iptables double that remembers inserted rules."""
    rules = []

    def check(args):
        return CommandResult(args, 0 if args[2:] in rules else 1)

    def insert(args):
        rules.append(args[2:])
        return CommandResult(args, 0)

    runner.on("iptables", "-C", handler=check)
    runner.on("iptables", "-I", handler=insert)
    return rules


class TestFirewallManager:
    """Backend selection and best-effort rule application."""

    def test_no_active_backend(self):
        runner = FakeRunner()
        results = FirewallManager(runner).allow(51820, HostCapabilities())
        assert results == []
        assert runner.calls == []

    def test_ufw_rule(self):
        runner = FakeRunner()
        results = FirewallManager(runner).allow(51820, HostCapabilities(ufw_active=True))

        assert runner.calls == [["ufw", "allow", "51820/udp"]]
        assert results[0].status == APPLIED

    def test_firewalld_rule_and_reload(self):
        runner = FakeRunner()
        FirewallManager(runner).allow(51820, HostCapabilities(firewalld_active=True))

        assert runner.calls == [
            ["firewall-cmd", "--permanent", "--add-port=51820/udp"],
            ["firewall-cmd", "--reload"],
        ]

    def test_iptables_insert_when_absent(self):
        runner = FakeRunner()
        rules = _stateful_iptables(runner)

        results = FirewallManager(runner).allow(51820, HostCapabilities(iptables_present=True))

        assert results[0].status == APPLIED
        assert rules == [IptablesBackend.rule(51820)]

    def test_iptables_idempotent_across_runs(self):
        runner = FakeRunner()
        rules = _stateful_iptables(runner)
        manager = FirewallManager(runner)
        caps = HostCapabilities(iptables_present=True)

        manager.allow(51820, caps)
        second = manager.allow(51820, caps)

        assert len(rules) == 1
        assert second[0].status == SKIPPED
        assert len(runner.commands("iptables", "-I")) == 1

    def test_failures_do_not_raise(self):
        runner = FakeRunner()
        runner.on("ufw", "allow", returncode=1, stderr="ERROR: Could not update running firewall")
        runner.on("firewall-cmd", "--permanent", returncode=1, stderr="FirewallD is not running")
        runner.on("iptables", "-C", returncode=1)
        runner.on("iptables", "-I", returncode=4, stderr="iptables: Permission denied")
        caps = HostCapabilities(ufw_active=True, firewalld_active=True, iptables_present=True)

        results = FirewallManager(runner).allow(51820, caps)

        assert [r.status for r in results] == [FAILED, FAILED, FAILED]
        assert "Could not update running firewall" in results[0].detail
        assert ["firewall-cmd", "--reload"] not in runner.calls

    def test_one_failure_does_not_stop_other_backends(self):
        runner = FakeRunner()
        runner.on("ufw", "allow", returncode=1, stderr="ERROR")
        _stateful_iptables(runner)
        caps = HostCapabilities(ufw_active=True, iptables_present=True)

        results = FirewallManager(runner).allow(51820, caps)

        assert [(r.backend, r.status) for r in results] == [("ufw", FAILED), ("iptables", APPLIED)]
