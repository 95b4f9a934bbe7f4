"""
The deploy workflow: check out, build and push, register, update service.

Steps run in order and the first failure aborts the run. Pushed images and
registered revisions are not rolled back; the original branch is restored
on every exit path.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from ecs_rollout.config import DeployConfig
from ecs_rollout.ecs.service import ServiceUpdater
from ecs_rollout.ecs.task_definition import TaskDefinitionStore, derive_container_definitions
from ecs_rollout.image.docker import ImagePublisher
from ecs_rollout.vcs.git import GitClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Release:
    environment: str
    branch: str
    version: int
    revision: str
    image: str
    task_definition_arn: str


def run_deploy(
    config: DeployConfig,
    environment: str,
    branch: str,
    git: GitClient,
    publisher: ImagePublisher,
    task_definitions: TaskDefinitionStore,
    services: ServiceUpdater,
    clock: Callable[[], float] = time.time,
) -> Release:
    version = int(clock())
    family = config.family(environment)
    service = config.service(environment)
    logger.info("Deploying %s to %s as version %s", branch, environment, version)

    with git.on_branch(branch):
        image = publisher.publish(environment, version)
        revision = git.revision()

        previous = task_definitions.describe(family)
        containers = derive_container_definitions(
            previous,
            image=image,
            revision=revision,
            release_version=version,
            environment=environment,
        )
        arn = task_definitions.register(family, containers)
        services.update(service, family)

    return Release(
        environment=environment,
        branch=branch,
        version=version,
        revision=revision,
        image=image,
        task_definition_arn=arn,
    )
