"""
Type definitions for iOS CI convention linting.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


class Severity(Enum):
    """Lint issue severity levels."""
    ERROR = "error"      # Fatal, stops the pipeline
    WARNING = "warning"  # Advisory only


class DistributionMethod(Enum):
    """How a signed build may be installed."""
    AD_HOC = "ad_hoc"
    APP_STORE = "app_store"
    ENTERPRISE = "enterprise"

    @property
    def config_name(self) -> str:
        """Xcode build configuration name for this method, e.g. "AdHoc"."""
        return _CONFIG_NAMES[self]

    @property
    def profile_filename(self) -> str:
        """Provisioning profile file expected in the project root."""
        return f"{self.value}.mobileprovision"

    @classmethod
    def from_config_name(cls, name: str) -> Optional["DistributionMethod"]:
        """Normalize a build configuration name, or None if unrecognized."""
        for method, config_name in _CONFIG_NAMES.items():
            if config_name == name:
                return method
        return None


_CONFIG_NAMES = {
    DistributionMethod.AD_HOC: "AdHoc",
    DistributionMethod.APP_STORE: "AppStore",
    DistributionMethod.ENTERPRISE: "Enterprise",
}


class LintError(Exception):
    """Base class for collaborator failures turned into diagnostics."""


@dataclass
class LintIssue:
    """A single problem found while linting a project."""
    severity: Severity
    code: str           # e.g., "E104", "W101"
    message: str
    step: str           # pipeline step that reported it
    path: Optional[str] = None

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message}"
        if self.path:
            text += f" ({self.path})"
        return text


@dataclass
class Target:
    """A native target inside an Xcode project."""
    name: str


@dataclass
class BuildConfiguration:
    """A project-level build configuration."""
    name: str


@dataclass
class ProjectModel:
    """The parts of an Xcode project the linter looks at."""
    path: Path
    targets: List[Target] = field(default_factory=list)
    build_configurations: List[BuildConfiguration] = field(default_factory=list)


@dataclass
class DependencyManifest:
    """Facts read from a CocoaPods Podfile."""
    path: Path
    platform: Optional[str] = None
    dependency_count: int = 0


@dataclass
class LintContext:
    """
    State threaded through the pipeline.

    Starts empty and is filled in step by step. A field, once set, is never
    cleared.
    """
    root: Optional[Path] = None
    company: Optional[str] = None
    repo_name: Optional[str] = None
    projects: Optional[List[str]] = None
    workspaces: Optional[List[str]] = None
    name: Optional[str] = None
    workspace: Optional[str] = None
    project: Optional[str] = None
    project_model: Optional[ProjectModel] = None
    targets: Optional[List[Target]] = None
    target: Optional[Target] = None
    build_configurations: Optional[Dict[DistributionMethod, BuildConfiguration]] = None
    provisioning_profiles: Optional[Dict[DistributionMethod, Path]] = None


@dataclass
class LintResult:
    """Result of running the pipeline against one repository."""
    root: Path
    issues: List[LintIssue] = field(default_factory=list)
    steps_run: List[str] = field(default_factory=list)
    context: Optional[LintContext] = None  # set only when every step passed
    checklist: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        """True if every step passed (warnings don't count)."""
        return self.context is not None and self.error_count == 0

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == Severity.WARNING)

    @property
    def failed_step(self) -> Optional[str]:
        """Name of the step that stopped the pipeline, if any."""
        if self.context is not None or not self.steps_run:
            return None
        return self.steps_run[-1]
