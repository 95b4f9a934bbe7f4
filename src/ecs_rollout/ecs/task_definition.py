"""
Module for reading and registering ECS task definition revisions.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List

import boto3

logger = logging.getLogger(__name__)


def derive_container_definitions(
    previous: Dict[str, Any],
    image: str,
    revision: str,
    release_version: int,
    environment: str,
) -> List[Dict[str, Any]]:
    """
    Build the container definitions for the next revision from the previous
    task definition.

    The first container of ``previous`` gets REVISION, RELEASE_VERSION and
    ENVIRONMENT appended to its environment list and its image replaced.
    Existing entries are kept as-is, so redeploying on top of a patched
    definition repeats those keys.

    Args:
        previous: The ``taskDefinition`` object returned by DescribeTaskDefinition.
        image: Image URI for the new revision.
        revision: Commit hash being deployed.
        release_version: Version tag shared with the pushed image.
        environment: Target environment name.
    Returns:
        A single-element list of container definitions.
    """
    containers = previous.get("containerDefinitions") or []
    if not containers:
        raise ValueError("Previous task definition has no container definitions")
    container = copy.deepcopy(containers[0])
    container.setdefault("environment", [])
    container["environment"] += [
        {"name": "REVISION", "value": revision},
        {"name": "RELEASE_VERSION", "value": str(release_version)},
        {"name": "ENVIRONMENT", "value": environment},
    ]
    container["image"] = image
    return [container]


class TaskDefinitionStore:
    """
    Reads and registers task definitions in one region.
    """
    def __init__(self, region: str = "us-east-1", session=None):
        self.region = region
        self.session = session or boto3.session.Session(region_name=region)
        self.client = self.session.client("ecs", region_name=region)

    def describe(self, family: str) -> Dict[str, Any]:
        """
        Return the latest ACTIVE revision of ``family``.
        """
        resp = self.client.describe_task_definition(taskDefinition=family)
        return resp["taskDefinition"]

    def register(self, family: str, container_definitions: List[Dict[str, Any]]) -> str:
        """
        Register a new revision of ``family`` and return its ARN.
        """
        resp = self.client.register_task_definition(
            family=family,
            containerDefinitions=container_definitions,
        )
        arn = resp["taskDefinition"]["taskDefinitionArn"]
        logger.info("Registered %s", arn)
        return arn
