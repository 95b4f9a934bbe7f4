"""
Deployment configuration.

Values are fixed defaults for the single service this tool deploys. Each
field can be overridden with an ``ECS_ROLLOUT_<FIELD>`` environment variable.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

ENVIRONMENTS = ("staging", "production")
ENV_PREFIX = "ECS_ROLLOUT_"


@dataclass(frozen=True)
class DeployConfig:
    region: str = "us-east-1"
    cluster: str = "Cluster"
    service_name: str = "Service"
    task_definition_name: str = "TaskDef"
    registry: str = "ecr"
    image_name: str = "name"
    build_context: str = "."
    dockerfile: str = "Dockerfile"
    min_docker_version: str = "17.07"
    remote: str = "origin"

    def family(self, environment: str) -> str:
        return f"{self.task_definition_name}-{environment}"

    def service(self, environment: str) -> str:
        return f"{self.service_name}-{environment}"

    def image_uri(self, tag: str) -> str:
        return f"{self.registry}/{self.image_name}:{tag}"


def load_config(environ: Optional[Mapping[str, str]] = None) -> DeployConfig:
    """
    Return the default configuration with environment overrides applied.
    """
    if environ is None:
        environ = os.environ
    overrides = {}
    for f in fields(DeployConfig):
        value = environ.get(ENV_PREFIX + f.name.upper())
        if value:
            overrides[f.name] = value
    return replace(DeployConfig(), **overrides)
