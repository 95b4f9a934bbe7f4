
import argparse
import logging
import subprocess
import sys

from botocore.exceptions import BotoCoreError, ClientError

from ecs_rollout.config import DeployConfig, load_config
from ecs_rollout.ecs.service import ServiceUpdater
from ecs_rollout.ecs.task_definition import TaskDefinitionStore
from ecs_rollout.image.docker import DockerClient, ImagePublisher, RegistryCredentials
from ecs_rollout.pipeline import Release, run_deploy
from ecs_rollout.validate import (
    UsageError,
    check_tool_version,
    resolve_branch,
    validate_environment,
)
from ecs_rollout.vcs.git import GitClient

logger = logging.getLogger(__name__)

USAGE = "%(prog)s -e <staging|production> [-b <branch>]"


class DeployArgumentParser(argparse.ArgumentParser):
    """
    Prints usage to stdout and exits 1 on any argument error.
    """
    def error(self, message):
        self.print_usage(sys.stdout)
        sys.exit(1)


def build_parser():
    parser = DeployArgumentParser(
        prog="deploy",
        usage=USAGE,
        description="Build, push and roll out the service image",
        add_help=False,
    )
    parser.add_argument("-e", dest="environment", required=True, help="Target environment")
    parser.add_argument("-b", dest="branch", help="Branch to deploy (prompts when omitted)")
    return parser


def main_logic(args, config: DeployConfig) -> Release:
    environment = validate_environment(args.environment)

    git = GitClient(remote=config.remote)
    branch = resolve_branch(git, args.branch)

    docker = DockerClient()
    try:
        installed = docker.client_version()
    except (OSError, subprocess.CalledProcessError) as e:
        raise UsageError(f"docker is not available: {e}") from e
    check_tool_version(installed, config.min_docker_version)

    publisher = ImagePublisher(config, docker, RegistryCredentials(region=config.region))
    return run_deploy(
        config,
        environment,
        branch,
        git=git,
        publisher=publisher,
        task_definitions=TaskDefinitionStore(region=config.region),
        services=ServiceUpdater(cluster=config.cluster, region=config.region),
    )


def main(argv=None):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    config = load_config()
    try:
        release = main_logic(args, config)
    except UsageError as e:
        print(e)
        parser.print_usage(sys.stdout)
        sys.exit(1)
    except subprocess.CalledProcessError as e:
        cmd = e.cmd if isinstance(e.cmd, str) else " ".join(str(c) for c in e.cmd)
        logger.error("Command failed with exit status %s: %s", e.returncode, cmd)
        sys.exit(e.returncode or 1)
    except (ClientError, BotoCoreError) as e:
        logger.error("AWS request failed: %s", e)
        sys.exit(1)
    except OSError as e:
        # git or docker missing from PATH
        print(f"Cannot run external tool: {e}")
        parser.print_usage(sys.stdout)
        sys.exit(1)
    print(
        f"Deployed {release.branch} ({release.revision}) to {release.environment}: "
        f"{release.image} -> {release.task_definition_arn}"
    )


if __name__ == "__main__":
    main()
