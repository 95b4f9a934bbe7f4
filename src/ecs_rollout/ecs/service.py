"""
Points a running ECS service at a task definition.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

import boto3

logger = logging.getLogger(__name__)


class ServiceUpdater:
    def __init__(self, cluster: str, region: str = "us-east-1", session=None):
        self.cluster = cluster
        self.region = region
        self.session = session or boto3.session.Session(region_name=region)
        self.client = self.session.client("ecs", region_name=region)

    def update(self, service: str, task_definition: str) -> Dict[str, Any]:
        """
        Update ``service`` to run ``task_definition``. A bare family name
        resolves to its latest ACTIVE revision.
        """
        logger.info("Updating service %s in %s to %s", service, self.cluster, task_definition)
        resp = self.client.update_service(
            cluster=self.cluster,
            service=service,
            taskDefinition=task_definition,
        )
        return resp["service"]
