"""
Output formatters for lint results.

Supports text (with ANSI colours) and JSON output formats, plus the
onboarding checklist shown after a first successful run.
"""

import json
import sys
from typing import List, Optional, Tuple

from .config import LintConfig
from .profile import ProvisioningProfile
from .types import DistributionMethod, LintContext, LintIssue, LintResult, Severity

CHECKLIST_TEMPLATE = """\
Additional Steps
================

1. Give the CI service read access to {company}/{repo_name}

2. Register the repository with the CI server and point its
   notifications at the `{repo_name}' room

3. Create a tester distribution list named `{name}'

4. Create `script/cibuild`

        #!/bin/bash
        exec "$(dirname $0)/build" --configuration {configuration}

5. Add the following to `.gitignore`

        /Pods/
        /bin/

6. Add and commit a `{marker_file}' file to the repository to turn off this message
"""


def render_checklist(ctx: LintContext, config: Optional[LintConfig] = None) -> str:
    """
    Render the onboarding checklist for a repository that passed linting.

    The build configuration suggested for CI is the first testing one
    (AdHoc before Enterprise) the project has.
    """
    config = config or LintConfig()
    testing = [
        method.config_name
        for method in (DistributionMethod.AD_HOC, DistributionMethod.ENTERPRISE)
        if method in (ctx.build_configurations or {})
    ]
    return CHECKLIST_TEMPLATE.format(
        company=ctx.company,
        repo_name=ctx.repo_name,
        name=ctx.name,
        configuration=testing[0] if testing else DistributionMethod.AD_HOC.config_name,
        marker_file=config.marker_file,
    )


class BaseFormatter:
    """Base class for output formatters."""

    def format_result(self, result: LintResult) -> str:
        """Format a lint result."""
        raise NotImplementedError

    def format_profile(self, path: str, profile: ProvisioningProfile) -> str:
        """Format a single provisioning profile classification."""
        raise NotImplementedError

    def format_profiles(self, profiles: List[Tuple[str, ProvisioningProfile]]) -> str:
        """Format several profile classifications, one after another."""
        return "\n".join(self.format_profile(path, profile) for path, profile in profiles)


class PlainTextFormatter(BaseFormatter):
    """
    Formats lint results for terminal output.
    Uses ANSI colours when stdout is a TTY.
    """

    COLORS = {
        Severity.ERROR: "\033[91m",    # Red
        Severity.WARNING: "\033[93m",  # Yellow
        "RESET": "\033[0m",
        "BOLD": "\033[1m",
        "GREEN": "\033[92m",
    }

    def __init__(self, color: bool = True, colour: bool = None, quiet: bool = False):
        """
        Initialise formatter.

        Args:
            color: Enable ANSI colours. Auto-detected if stdout is TTY.
            colour: Alias for color (British spelling).
            quiet: Only show errors, suppress warnings and the checklist.
        """
        if colour is not None:
            color = colour
        self.color = color and sys.stdout.isatty()
        self.quiet = quiet

    def _c(self, code) -> str:
        """Get colour code if colours enabled."""
        if not self.color:
            return ""
        return self.COLORS.get(code, "")

    def format_result(self, result: LintResult) -> str:
        lines = []
        for issue in result.issues:
            if self.quiet and issue.severity != Severity.ERROR:
                continue
            lines.append(self._format_issue(issue))

        if result.is_valid:
            lines.append(f"{self._c('GREEN')}OK to go{self._c('RESET')}")
            if result.checklist and not self.quiet:
                lines.append("")
                lines.append(result.checklist)
        else:
            lines.append(
                f"{self._c(Severity.ERROR)}FAIL{self._c('RESET')} {result.root}"
                f" (stopped at {result.failed_step})"
            )
        return "\n".join(lines)

    def _format_issue(self, issue: LintIssue) -> str:
        color = self._c(issue.severity)
        return f"{color}{issue.severity.value}{self._c('RESET')}: {issue}"

    def format_profile(self, path: str, profile: ProvisioningProfile) -> str:
        if not profile.is_valid:
            return f"{self._c(Severity.ERROR)}INVALID{self._c('RESET')} {path}"
        line = f"{self._c('GREEN')}{profile.distribution.config_name}{self._c('RESET')} {path}"
        if profile.is_ad_hoc:
            line += f" ({len(profile.devices)} devices)"
        return line


class JSONFormatter(BaseFormatter):
    """Formats lint results as JSON for CI integration."""

    def __init__(self, pretty: bool = True):
        """
        Initialize formatter.

        Args:
            pretty: Pretty-print JSON with indentation.
        """
        self.pretty = pretty

    def _dumps(self, data) -> str:
        return json.dumps(data, indent=2 if self.pretty else None)

    def format_result(self, result: LintResult) -> str:
        return self._dumps(
            {
                "root": str(result.root),
                "is_valid": result.is_valid,
                "failed_step": result.failed_step,
                "steps_run": result.steps_run,
                "error_count": result.error_count,
                "warning_count": result.warning_count,
                "issues": [self._issue_to_dict(i) for i in result.issues],
                "context": self._context_to_dict(result.context),
                "checklist": result.checklist,
            }
        )

    def format_profile(self, path: str, profile: ProvisioningProfile) -> str:
        return self._dumps(self._profile_to_dict(path, profile))

    def format_profiles(self, profiles: List[Tuple[str, ProvisioningProfile]]) -> str:
        """Format several profiles as a single JSON array."""
        return self._dumps([self._profile_to_dict(path, profile) for path, profile in profiles])

    def _profile_to_dict(self, path: str, profile: ProvisioningProfile) -> dict:
        return {
            "path": path,
            "valid": profile.is_valid,
            "distribution": profile.distribution.value if profile.distribution else None,
            "devices": profile.devices,
        }

    def _issue_to_dict(self, issue: LintIssue) -> dict:
        result = {
            "severity": issue.severity.value,
            "code": issue.code,
            "message": issue.message,
            "step": issue.step,
        }
        if issue.path is not None:
            result["path"] = issue.path
        return result

    def _context_to_dict(self, ctx: Optional[LintContext]) -> Optional[dict]:
        """Summarise the facts a successful run established."""
        if ctx is None:
            return None
        return {
            "company": ctx.company,
            "repo_name": ctx.repo_name,
            "name": ctx.name,
            "workspace": ctx.workspace,
            "project": ctx.project,
            "target": ctx.target.name if ctx.target else None,
            "build_configurations": [c.name for c in (ctx.build_configurations or {}).values()],
            "provisioning_profiles": {
                method.value: path.name
                for method, path in (ctx.provisioning_profiles or {}).items()
            },
        }


def get_formatter(format_name: str, **kwargs) -> BaseFormatter:
    """
    Get formatter by name.

    Args:
        format_name: "text" or "json"
        **kwargs: Additional arguments passed to formatter.

    Returns:
        Formatter instance.
    """
    formatters = {
        "text": PlainTextFormatter,
        "json": JSONFormatter,
    }

    formatter_class = formatters.get(format_name.lower())
    if not formatter_class:
        raise ValueError(f"Unknown format: {format_name}. Use 'text' or 'json'.")

    return formatter_class(**kwargs)
