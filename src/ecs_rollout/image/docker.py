"""
Builds the service image and pushes it to ECR under per-environment tags.
"""
from __future__ import annotations

import base64
import logging
import subprocess
from typing import List, Optional, Tuple

import boto3

from ecs_rollout.config import DeployConfig

logger = logging.getLogger(__name__)


class DockerClient:
    """
    Runs docker CLI commands. Failing commands raise
    subprocess.CalledProcessError.
    """
    def __init__(self, cwd: Optional[str] = None):
        self.cwd = cwd

    def _run(self, args: List[str], **kwargs) -> subprocess.CompletedProcess:
        return subprocess.run(["docker", *args], check=True, cwd=self.cwd, **kwargs)

    def client_version(self) -> str:
        result = self._run(
            ["version", "--format", "{{.Client.Version}}"], capture_output=True, text=True
        )
        return result.stdout.strip()

    def build(self, context: str, dockerfile: str, tag: str) -> None:
        self._run(["build", "--pull", "-f", dockerfile, "-t", tag, context])

    def tag(self, source: str, target: str) -> None:
        self._run(["tag", source, target])

    def push(self, target: str) -> None:
        self._run(["push", target])

    def login(self, registry: str, username: str, password: str) -> None:
        self._run(
            ["login", "-u", username, "--password-stdin", registry],
            input=password,
            text=True,
        )


class RegistryCredentials:
    """
    Fetches short-lived docker credentials for ECR.
    """
    def __init__(self, region: str, session=None):
        self.region = region
        self.session = session or boto3.session.Session(region_name=region)

    def get(self) -> Tuple[str, str, str]:
        """
        Returns:
            (username, password, registry endpoint without scheme)
        """
        ecr = self.session.client("ecr", region_name=self.region)
        auth = ecr.get_authorization_token()["authorizationData"][0]
        username, password = base64.b64decode(auth["authorizationToken"]).decode().split(":", 1)
        endpoint = auth["proxyEndpoint"].replace("https://", "")
        return username, password, endpoint


class ImagePublisher:
    """
    Builds the local ``<image>:latest`` image and publishes it as
    ``<env>-<version>`` and ``latest-<env>``.
    """
    def __init__(self, config: DeployConfig, docker: DockerClient, credentials: RegistryCredentials):
        self.config = config
        self.docker = docker
        self.credentials = credentials

    def image_tags(self, environment: str, version: int) -> Tuple[str, str]:
        return (
            self.config.image_uri(f"{environment}-{version}"),
            self.config.image_uri(f"latest-{environment}"),
        )

    def publish(self, environment: str, version: int) -> str:
        """
        Build, tag and push the image.

        Returns:
            The immutable, timestamped image URI.
        """
        local = f"{self.config.image_name}:latest"
        versioned, latest = self.image_tags(environment, version)

        logger.info("Building %s from %s", local, self.config.build_context)
        self.docker.build(self.config.build_context, self.config.dockerfile, local)
        self.docker.tag(local, versioned)
        self.docker.tag(local, latest)

        username, password, endpoint = self.credentials.get()
        logger.info("Logging in to %s", endpoint)
        self.docker.login(endpoint, username, password)

        for target in (versioned, latest):
            logger.info("Pushing %s", target)
            self.docker.push(target)
        return versioned
