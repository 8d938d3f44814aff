"""
Lightweight API for programmatic linting.

This module provides simple functions for linting a repository or checking a
provisioning profile without the overhead of CLI argument parsing.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from .config import LintConfig
from .formatter import render_checklist
from .linter import ProjectLinter
from .profile import ProvisioningProfile
from .repository import GitRepository, RepositoryError
from .types import LintContext, LintResult

logger = logging.getLogger(__name__)


def lint_project(
    path: Optional[Union[str, Path]] = None,
    config: Optional[LintConfig] = None,
    repository: Optional[GitRepository] = None,
) -> LintResult:
    """
    Lint the repository rooted at ``path``.

    This is the recommended entry point for programmatic use.

    Args:
        path: Repository root. Defaults to the current directory.
        config: Settings. Read from the environment if not provided.
        repository: Git access, mainly for tests.

    Returns:
        LintResult. On success ``checklist`` holds the onboarding steps
        unless the repository tracks the opt-out marker file.

    Example:
        from ios_ci_linter import lint_project

        result = lint_project()
        if not result.is_valid:
            for issue in result.issues:
                print(f"[{issue.code}] {issue.message}")
    """
    path = Path(path) if path is not None else Path.cwd()
    config = config or LintConfig.from_env()
    linter = ProjectLinter(path, config=config, repository=repository)
    result = linter.run(LintContext())

    if result.is_valid:
        try:
            opted_out = linter.repository.is_tracked(config.marker_file)
        except RepositoryError as e:
            logger.debug(f"Could not check for {config.marker_file}: {e}")
            opted_out = False
        if not opted_out:
            result.checklist = render_checklist(result.context, config)

    return result


def check_profile(
    path: Union[str, Path],
    config: Optional[LintConfig] = None,
) -> ProvisioningProfile:
    """
    Verify and classify a single provisioning profile file.

    Args:
        path: Path to the .mobileprovision file.
        config: Settings. Read from the environment if not provided.

    Returns:
        ProvisioningProfile. ``valid`` is False for anything that isn't a
        correctly signed plist.
    """
    config = config or LintConfig.from_env()
    return ProvisioningProfile.from_file(path, openssl=config.openssl)
