"""
Validation of operator input before any deployment step runs.
"""
from __future__ import annotations

import logging
import re
from typing import Callable, Optional, Tuple

from ecs_rollout.config import ENVIRONMENTS

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^\s*v?(\d+(?:\.\d+)*)")


class UsageError(Exception):
    """Raised when command line input or the local toolchain is unusable."""


def validate_environment(name: Optional[str]) -> str:
    if name not in ENVIRONMENTS:
        raise UsageError(f"Environment must be one of: {', '.join(ENVIRONMENTS)}")
    return name


def resolve_branch(git, branch: Optional[str], prompt: Callable[[str], str] = input) -> str:
    """
    Return the branch to deploy.

    Args:
        git: GitClient used to look up and verify refs.
        branch: Value of ``-b``, or None to ask the operator.
        prompt: Input function; an empty answer selects the current branch.
    """
    if branch is None:
        current = git.current_branch()
        try:
            answer = prompt(f"Branch to deploy [{current}]: ").strip()
        except EOFError:
            raise UsageError("No branch given and no input available") from None
        if not answer:
            return current
        branch = answer
    if not git.ref_exists(branch):
        raise UsageError(f"Unknown branch: {branch}")
    return branch


def parse_version(version: str) -> Tuple[int, ...]:
    m = _VERSION_RE.match(version)
    if not m:
        raise UsageError(f"Cannot parse version: {version!r}")
    return tuple(int(part) for part in m.group(1).split("."))


def check_tool_version(installed: str, minimum: str) -> None:
    """
    Fail unless ``installed`` is at least ``minimum``.

    Versions compare numerically per component, so 1.11 is newer than 1.9.
    """
    have, need = parse_version(installed), parse_version(minimum)
    width = max(len(have), len(need))
    have += (0,) * (width - len(have))
    need += (0,) * (width - len(need))
    if have < need:
        raise UsageError(f"docker {installed} is older than the required {minimum}")
    logger.info("docker %s satisfies minimum %s (compared numerically per component)", installed, minimum)
