"""
Runtime configuration.

Settings come from environment variables so CI jobs can adjust them without
touching the command line.
"""

import os
from dataclasses import dataclass

DEFAULT_MARKER_FILE = ".ci-lint"
DEFAULT_REMOTE_HOST = "github.com"
DEFAULT_PLATFORM = "ios"


@dataclass
class LintConfig:
    """
    Linter settings.

    Attributes:
        marker_file: Tracked file that turns off the onboarding checklist.
        remote_host: Host the upstream/origin remote must point at.
        platform: Platform the Podfile must declare.
        git: git executable.
        openssl: openssl executable used to verify provisioning profiles.
        plutil: plutil executable used for OpenStep project files.
    """
    marker_file: str = DEFAULT_MARKER_FILE
    remote_host: str = DEFAULT_REMOTE_HOST
    platform: str = DEFAULT_PLATFORM
    git: str = "git"
    openssl: str = "openssl"
    plutil: str = "plutil"

    @classmethod
    def from_env(cls) -> "LintConfig":
        """
        Build a config from IOS_CI_LINT_* environment variables.

        Unset or empty variables fall back to the defaults.
        """
        def env(name: str, default: str) -> str:
            return os.environ.get(f"IOS_CI_LINT_{name}") or default

        return cls(
            marker_file=env("MARKER", DEFAULT_MARKER_FILE),
            remote_host=env("REMOTE_HOST", DEFAULT_REMOTE_HOST),
            platform=env("PLATFORM", DEFAULT_PLATFORM).lower(),
            git=env("GIT", "git"),
            openssl=env("OPENSSL", "openssl"),
            plutil=env("PLUTIL", "plutil"),
        )
