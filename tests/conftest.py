"""Shared test fixtures and host doubles for wgdeploy tests."""
from typing import Callable, Dict, List, Optional

import pytest
import requests

from wgdeploy.core.runner import CommandResult
from wgdeploy.core.settings import RuntimeSettings
from wgdeploy.deployment import Deployment


class FakeRunner:
    """Records commands and answers them from scripted handlers.

    Handlers are matched on the longest registered argument prefix; later
    registrations win over earlier ones with the same prefix. Unmatched
    commands succeed with empty output.
    """

    def __init__(self, present: Optional[List[str]] = None):
        self.calls: List[List[str]] = []
        self.present = set(present or [])
        self.handlers: Dict[tuple, Callable[[List[str]], CommandResult]] = {}

    def on(self, *prefix: str, returncode: int = 0, stdout: str = "", stderr: str = "", handler=None):
        if handler is None:
            def handler(args):
                return CommandResult(list(args), returncode, stdout, stderr)
        self.handlers[tuple(prefix)] = handler
        return self

    def run(self, args, timeout=None) -> CommandResult:
        self.calls.append(list(args))
        for length in range(len(args), 0, -1):
            handler = self.handlers.get(tuple(args[:length]))
            if handler:
                return handler(list(args))
        return CommandResult(list(args), 0)

    def which(self, program: str) -> bool:
        return program in self.present

    def commands(self, *prefix: str) -> List[List[str]]:
        return [call for call in self.calls if tuple(call[:len(prefix)]) == prefix]


class FakeDocker:
    """Minimal stateful docker: names are unique, like the real daemon."""

    def __init__(self, runner: FakeRunner):
        self.containers: Dict[str, bool] = {}
        runner.on("docker", "run", handler=self._run)
        runner.on("docker", "stop", handler=self._stop)
        runner.on("docker", "rm", handler=self._rm)
        runner.on("docker", "ps", handler=self._ps)
        runner.on("docker", "inspect", handler=self._inspect)
        runner.on("docker", "logs", stdout="[s6-init] starting")

    def _run(self, args):
        name = next(a.split("=", 1)[1] for a in args if a.startswith("--name="))
        if name in self.containers:
            return CommandResult(args, 125, stderr=f'Conflict. The container name "/{name}" is already in use')
        self.containers[name] = True
        return CommandResult(args, 0, stdout="4f1c2e9a7b3d0123456789abcdef\n")

    def _stop(self, args):
        if args[-1] not in self.containers:
            return CommandResult(args, 1, stderr=f"Error response from daemon: No such container: {args[-1]}")
        self.containers[args[-1]] = False
        return CommandResult(args, 0, stdout=args[-1])

    def _rm(self, args):
        if self.containers.pop(args[-1], None) is None:
            return CommandResult(args, 1, stderr=f"Error response from daemon: No such container: {args[-1]}")
        return CommandResult(args, 0, stdout=args[-1])

    def _ps(self, args):
        return CommandResult(args, 0, stdout="\n".join(self.containers))

    def _inspect(self, args):
        name = args[-1]
        if name not in self.containers:
            return CommandResult(args, 1, stderr=f"Error: No such object: {name}")
        return CommandResult(args, 0, stdout="true\n" if self.containers[name] else "false\n")


class ScriptedInteraction:
    """Interaction double with fixed answers."""

    def __init__(self, interactive: bool = True, answers: Optional[List[str]] = None, confirm: bool = True):
        self.interactive = interactive
        self.answers = list(answers or [])
        self.confirm_answer = confirm
        self.prompts: List[str] = []

    def is_interactive(self) -> bool:
        return self.interactive

    def prompt(self, message: str) -> str:
        self.prompts.append(message)
        return self.answers.pop(0)

    def confirm(self, message: str) -> bool:
        self.prompts.append(message)
        return self.confirm_answer


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """requests.Session double: url -> FakeResponse or exception."""

    def __init__(self, answers: Optional[Dict[str, object]] = None):
        self.answers = answers or {}
        self.requested: List[str] = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        answer = self.answers.get(url, requests.ConnectionError(f"cannot reach {url}"))
        if isinstance(answer, Exception):
            raise answer
        return answer


UBUNTU_OS_RELEASE = '''PRETTY_NAME="Ubuntu 22.04.4 LTS"
NAME="Ubuntu"
VERSION_ID="22.04"
ID=ubuntu
ID_LIKE=debian
'''


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Keep config discovery away from the developer's files."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("WGDEPLOY_CONFIG", raising=False)


@pytest.fixture
def os_release(tmp_path):
    path = tmp_path / "os-release"
    path.write_text(UBUNTU_OS_RELEASE)
    return path


@pytest.fixture
def settings(tmp_path, os_release):
    """Settings pointing every host path into tmp_path."""
    return RuntimeSettings(
        readiness_interval=0,
        readiness_attempts=3,
        sysctl_path=str(tmp_path / "sysctl.d" / "99-wireguard.conf"),
        os_release_path=str(os_release),
    )


@pytest.fixture
def host_runner():
    """A healthy Ubuntu host with docker, ufw and iptables."""
    runner = FakeRunner(present=["docker", "ufw", "iptables"])
    runner.on("ufw", "status", stdout="Status: active\n")
    runner.on("sysctl", "-n", "net.ipv4.ip_forward", stdout="1\n")
    runner.on("sysctl", "-n", "net.ipv4.conf.all.src_valid_mark", stdout="1\n")
    # No matching INPUT rule until one is inserted
    runner.on("iptables", "-C", returncode=1, stderr="iptables: Bad rule (does a matching rule exist in that chain?).")
    return runner


@pytest.fixture
def docker(host_runner):
    return FakeDocker(host_runner)


@pytest.fixture
def config_dir(tmp_path):
    return str(tmp_path / "wg")


@pytest.fixture
def make_deployment(host_runner, docker, settings):
    """Factory for a Deployment wired entirely to doubles."""

    def factory(**overrides):
        kwargs = dict(
            runner=host_runner,
            interaction=ScriptedInteraction(interactive=False),
            settings=settings,
            session=FakeSession({"https://api.ipify.org": FakeResponse("198.51.100.7\n")}),
            geteuid=lambda: 0,
            connections=lambda: [],
            sleep=lambda seconds: None,
            environ={},
        )
        kwargs.update(overrides)
        return Deployment(**kwargs)

    return factory
