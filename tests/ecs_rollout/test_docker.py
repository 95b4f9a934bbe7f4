import base64
import subprocess
from unittest.mock import Mock

import pytest

from ecs_rollout.config import DeployConfig
from ecs_rollout.image.docker import DockerClient, ImagePublisher, RegistryCredentials


def _recorder(calls, fail_on=None):
    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        if fail_on and cmd[:len(fail_on)] == fail_on:
            raise subprocess.CalledProcessError(1, cmd)
        return Mock(stdout="24.0.7\n", returncode=0)
    return fake_run


def _session(token=b"AWS:secret", endpoint="https://123.dkr.ecr.us-east-1.amazonaws.com"):
    session = Mock()
    ecr = session.client.return_value
    ecr.get_authorization_token.return_value = {
        "authorizationData": [
            {"authorizationToken": base64.b64encode(token).decode(), "proxyEndpoint": endpoint}
        ]
    }
    return session


def test_client_version(monkeypatch):
    calls = []
    monkeypatch.setattr("subprocess.run", _recorder(calls))
    assert DockerClient().client_version() == "24.0.7"
    assert calls[0][0] == ["docker", "version", "--format", "{{.Client.Version}}"]


def test_build_always_pulls(monkeypatch):
    calls = []
    monkeypatch.setattr("subprocess.run", _recorder(calls))
    DockerClient().build(".", "docker/Dockerfile", "name:latest")
    cmd, kwargs = calls[0]
    assert cmd == ["docker", "build", "--pull", "-f", "docker/Dockerfile", "-t", "name:latest", "."]
    assert kwargs["check"] is True


def test_login_sends_password_on_stdin(monkeypatch):
    calls = []
    monkeypatch.setattr("subprocess.run", _recorder(calls))
    DockerClient().login("registry.example", "AWS", "secret")
    cmd, kwargs = calls[0]
    assert "secret" not in cmd
    assert cmd == ["docker", "login", "-u", "AWS", "--password-stdin", "registry.example"]
    assert kwargs["input"] == "secret"


def test_registry_credentials_decodes_token():
    session = _session(token=b"AWS:pa:ss")
    username, password, endpoint = RegistryCredentials("us-east-1", session=session).get()
    assert (username, password) == ("AWS", "pa:ss")
    assert endpoint == "123.dkr.ecr.us-east-1.amazonaws.com"
    session.client.assert_called_once_with("ecr", region_name="us-east-1")


def test_image_tags():
    publisher = ImagePublisher(DeployConfig(), Mock(), Mock())
    assert publisher.image_tags("staging", 1700000000) == (
        "ecr/name:staging-1700000000",
        "ecr/name:latest-staging",
    )


def test_publish_builds_tags_logs_in_and_pushes(monkeypatch):
    calls = []
    monkeypatch.setattr("subprocess.run", _recorder(calls))
    publisher = ImagePublisher(
        DeployConfig(), DockerClient(), RegistryCredentials("us-east-1", session=_session())
    )

    image = publisher.publish("staging", 42)

    assert image == "ecr/name:staging-42"
    assert [c[0][:2] for c in calls] == [
        ["docker", "build"],
        ["docker", "tag"],
        ["docker", "tag"],
        ["docker", "login"],
        ["docker", "push"],
        ["docker", "push"],
    ]
    assert calls[1][0] == ["docker", "tag", "name:latest", "ecr/name:staging-42"]
    assert calls[2][0] == ["docker", "tag", "name:latest", "ecr/name:latest-staging"]
    assert calls[4][0] == ["docker", "push", "ecr/name:staging-42"]
    assert calls[5][0] == ["docker", "push", "ecr/name:latest-staging"]


def test_failed_push_stops_publishing(monkeypatch):
    calls = []
    monkeypatch.setattr("subprocess.run", _recorder(calls, fail_on=["docker", "push"]))
    publisher = ImagePublisher(
        DeployConfig(), DockerClient(), RegistryCredentials("us-east-1", session=_session())
    )
    with pytest.raises(subprocess.CalledProcessError):
        publisher.publish("production", 7)
    assert sum(1 for c in calls if c[0][:2] == ["docker", "push"]) == 1
