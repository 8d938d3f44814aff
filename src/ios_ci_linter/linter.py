"""
Core lint pipeline for iOS project repositories.

Runs an ordered chain of steps over a shared LintContext. Each step reads what
earlier steps found, adds its own findings, and either hands the context on
or stops the run.
"""

import logging
import re
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .config import LintConfig
from .profile import ProvisioningProfile
from .project import PodfileReader, ProjectLoader, ProjectModelError
from .repository import GitRepository, RepositoryError, find_upstream
from .types import DistributionMethod, LintContext, LintIssue, LintResult, Severity

logger = logging.getLogger(__name__)

PROJECT_GLOB = "*.xcodeproj"
WORKSPACE_GLOB = "*.xcworkspace"
PROFILE_GLOB = "*.mobileprovision"
PODFILE_NAME = "Podfile"
SCHEME_PATH_TEMPLATE = "{name}.xcodeproj/xcshareddata/xcschemes/{name}.xcscheme"

CAMEL_CASE_PATTERN = re.compile(r"^[A-Z]\S*$")

Step = Callable[[LintContext, LintResult], Optional[LintContext]]


def list_bundles(root: Path, pattern: str) -> List[str]:
    """Base names of entries in ``root`` matching ``pattern``, sorted."""
    return sorted(p.stem for p in root.glob(pattern))


class ProjectLinter:
    """
    Checks a repository against the CI conventions.

    Checks performed, in order. The first error stops the run.

    ERRORS:
    - E101: Not inside a git repository
    - E102: Not at the root of the repository
    - E103: No upstream/origin remote on the expected host
    - E104: No Xcode project
    - E105: No Podfile
    - E106: Podfile platform is wrong
    - E107: Podfile declares no pods
    - E108: No Xcode workspace
    - E109: More than one Xcode workspace
    - E110: Workspace name contains whitespace
    - E111: The single project's name differs from the workspace's
    - E112: No project is named after the workspace
    - E113: Xcode project can't be read
    - E114: Xcode project has no targets
    - E115: The single target's name differs from the workspace's
    - E116: No target is named after the workspace
    - E117: Neither AdHoc nor Enterprise build configuration
    - E118: Build configuration has no provisioning profile
    - E119: Provisioning profile is invalid
    - E120: Provisioning profile is for another distribution method
    - E121: AdHoc provisioning profile has no devices
    - E122: No shared scheme named after the project

    WARNINGS:
    - W101: Workspace name is not CamelCase
    - W102: No AppStore build configuration
    """

    def __init__(
        self,
        path: Path,
        config: Optional[LintConfig] = None,
        repository: Optional[GitRepository] = None,
        project_loader: Optional[ProjectLoader] = None,
        podfile_reader: Optional[PodfileReader] = None,
    ):
        """
        Initialize the linter.

        Args:
            path: Directory to lint. Must be the repository root.
            config: Settings. Read from the environment if not provided.
            repository: Git access. Created for ``path`` if not provided.
            project_loader: Xcode project reader.
            podfile_reader: Podfile reader.
        """
        self.path = Path(path).resolve()
        self.config = config or LintConfig.from_env()
        self.repository = repository or GitRepository(self.path, git=self.config.git)
        self.project_loader = project_loader or ProjectLoader(plutil=self.config.plutil)
        self.podfile_reader = podfile_reader or PodfileReader()
        self._current_step = ""

        self.steps: List[Tuple[str, Step]] = [
            ("detect-repository", self._detect_repository),
            ("detect-projects", self._detect_projects),
            ("detect-workspaces", self._detect_workspaces),
            ("determine-canonical-name", self._determine_name),
            ("check-dependency-manifest", self._check_podfile),
            ("check-workspace", self._check_workspace),
            ("check-single-project", self._check_single_project),
            ("check-multiple-projects", self._check_multiple_projects),
            ("load-project-model", self._load_project),
            ("detect-targets", self._detect_targets),
            ("check-single-target", self._check_single_target),
            ("check-multiple-targets", self._check_multiple_targets),
            ("detect-build-configurations", self._detect_build_configurations),
            ("check-app-store-configuration", self._check_app_store_configuration),
            ("check-testing-configurations", self._check_testing_configurations),
            ("detect-provisioning-profiles", self._detect_provisioning_profiles),
            ("check-provisioning-profiles", self._check_provisioning_profiles),
            ("check-shared-scheme", self._check_scheme),
        ]

    @property
    def step_names(self) -> List[str]:
        return [name for name, _ in self.steps]

    def run(self, ctx: Optional[LintContext] = None) -> LintResult:
        """
        Run every step in order, stopping at the first failure.

        Args:
            ctx: Starting context. Defaults to an empty one.

        Returns:
            LintResult. ``context`` is set only if every step passed.
        """
        result = LintResult(root=self.path)
        ctx = ctx if ctx is not None else LintContext()

        for name, step in self.steps:
            result.steps_run.append(name)
            logger.debug(f"Running step {name}")
            self._current_step = name
            ctx = step(ctx, result)
            if ctx is None:
                logger.debug(f"Step {name} failed, stopping")
                return result

        result.context = ctx
        return result

    # -- reporting ---------------------------------------------------------

    def _error(self, result: LintResult, code: str, message: str, path: Optional[str] = None) -> None:
        result.issues.append(
            LintIssue(Severity.ERROR, code, message, step=self._current_step, path=path)
        )

    def _warning(self, result: LintResult, code: str, message: str, path: Optional[str] = None) -> None:
        result.issues.append(
            LintIssue(Severity.WARNING, code, message, step=self._current_step, path=path)
        )

    # -- repository --------------------------------------------------------

    def _detect_repository(self, ctx: LintContext, result: LintResult) -> Optional[LintContext]:
        try:
            root = self.repository.discover()
        except RepositoryError as e:
            logger.debug(str(e))
            self._error(result, "E101", "Must be in a git repository")
            return None

        if root != self.path:
            self._error(result, "E102", f"Must be at the root of the project at `{root}'")
            return None
        ctx.root = root

        try:
            remotes = self.repository.remotes()
        except RepositoryError as e:
            logger.debug(str(e))
            remotes = []

        upstream = find_upstream(remotes, host=self.config.remote_host)
        if not upstream:
            self._error(
                result,
                "E103",
                f"Must have `upstream' or `origin' remote on {self.config.remote_host}",
            )
            return None

        ctx.company, ctx.repo_name = upstream
        return ctx

    # -- projects and workspaces -------------------------------------------

    def _detect_projects(self, ctx: LintContext, result: LintResult) -> Optional[LintContext]:
        ctx.projects = list_bundles(self.path, PROJECT_GLOB)
        if not ctx.projects:
            self._error(result, "E104", "No Xcode project found")
            return None
        return ctx

    def _detect_workspaces(self, ctx: LintContext, result: LintResult) -> Optional[LintContext]:
        ctx.workspaces = list_bundles(self.path, WORKSPACE_GLOB)
        return ctx

    def _determine_name(self, ctx: LintContext, result: LintResult) -> Optional[LintContext]:
        if len(ctx.workspaces) == 1:
            ctx.name = ctx.workspaces[0]
        elif len(ctx.projects) == 1:
            ctx.name = ctx.projects[0]
        return ctx

    def _check_podfile(self, ctx: LintContext, result: LintResult) -> Optional[LintContext]:
        path = self.path / PODFILE_NAME
        if not path.is_file():
            self._error(result, "E105", "No CocoaPods Podfile found")
            return None

        try:
            podfile = self.podfile_reader.parse(path)
        except OSError as e:
            logger.debug(f"Could not read {path}: {e}")
            self._error(result, "E105", "CocoaPods Podfile could not be read", path=PODFILE_NAME)
            return None

        ok = True
        if podfile.platform != self.config.platform:
            self._error(
                result,
                "E106",
                f"CocoaPods platform must be {self.config.platform}",
                path=PODFILE_NAME,
            )
            ok = False
        if podfile.dependency_count == 0:
            self._error(result, "E107", "Must have at least one CocoaPods dependency", path=PODFILE_NAME)
            ok = False
        return ctx if ok else None

    def _check_workspace(self, ctx: LintContext, result: LintResult) -> Optional[LintContext]:
        if not ctx.workspaces:
            self._error(result, "E108", "No Xcode workspace found")
            return None
        if len(ctx.workspaces) > 1:
            self._error(result, "E109", "There can be only one Xcode workspace")
            return None

        ctx.workspace = workspace = ctx.workspaces[0]
        if re.search(r"\s", workspace):
            self._error(result, "E110", f"Workspace name `{workspace}' must not contain whitespace")
            return None
        if not CAMEL_CASE_PATTERN.match(workspace):
            self._warning(result, "W101", f"Workspace name `{workspace}' should be CamelCase")
        return ctx

    def _check_single_project(self, ctx: LintContext, result: LintResult) -> Optional[LintContext]:
        if len(ctx.projects) > 1:
            return ctx

        project = ctx.projects[0]
        if project != ctx.workspace:
            self._error(
                result,
                "E111",
                f"Xcode project name `{project}' must match workspace name `{ctx.workspace}'",
            )
            return None
        ctx.project = project
        return ctx

    def _check_multiple_projects(self, ctx: LintContext, result: LintResult) -> Optional[LintContext]:
        if len(ctx.projects) == 1:
            return ctx

        if ctx.workspace not in ctx.projects:
            self._error(
                result, "E112", f"One Xcode project name must match workspace name `{ctx.workspace}'"
            )
            return None
        ctx.project = ctx.workspace
        return ctx

    # -- project model -----------------------------------------------------

    def _load_project(self, ctx: LintContext, result: LintResult) -> Optional[LintContext]:
        xcodeproj = self.path / f"{ctx.project}.xcodeproj"
        try:
            ctx.project_model = self.project_loader.load(xcodeproj)
        except ProjectModelError as e:
            self._error(result, "E113", f"Unable to read Xcode project: {e}", path=xcodeproj.name)
            return None
        return ctx

    def _detect_targets(self, ctx: LintContext, result: LintResult) -> Optional[LintContext]:
        ctx.targets = list(ctx.project_model.targets)
        if not ctx.targets:
            self._error(result, "E114", "Xcode project must have at least one target")
            return None
        return ctx

    def _check_single_target(self, ctx: LintContext, result: LintResult) -> Optional[LintContext]:
        if len(ctx.targets) > 1:
            return ctx

        target = ctx.targets[0]
        if target.name != ctx.workspace:
            self._error(
                result,
                "E115",
                f"Target name `{target.name}' must match workspace name `{ctx.workspace}'",
            )
            return None
        ctx.target = target
        return ctx

    def _check_multiple_targets(self, ctx: LintContext, result: LintResult) -> Optional[LintContext]:
        if len(ctx.targets) == 1:
            return ctx

        target = next((t for t in ctx.targets if t.name == ctx.workspace), None)
        if target is None:
            self._error(
                result, "E116", f"One Xcode target name must match workspace name `{ctx.workspace}'"
            )
            return None
        ctx.target = target
        return ctx

    # -- build configurations ----------------------------------------------

    def _detect_build_configurations(
        self, ctx: LintContext, result: LintResult
    ) -> Optional[LintContext]:
        configs = {}
        for config in ctx.project_model.build_configurations:
            method = DistributionMethod.from_config_name(config.name)
            if method is not None:
                configs[method] = config
        ctx.build_configurations = configs
        return ctx

    def _check_app_store_configuration(
        self, ctx: LintContext, result: LintResult
    ) -> Optional[LintContext]:
        if DistributionMethod.APP_STORE not in ctx.build_configurations:
            self._warning(result, "W102", "Should have `AppStore' build configuration")
        return ctx

    def _check_testing_configurations(
        self, ctx: LintContext, result: LintResult
    ) -> Optional[LintContext]:
        testing = {DistributionMethod.AD_HOC, DistributionMethod.ENTERPRISE}
        if not testing.intersection(ctx.build_configurations):
            self._error(result, "E117", "Must have `AdHoc', `Enterprise', or both build configurations")
            return None
        return ctx

    # -- provisioning profiles ---------------------------------------------

    def _detect_provisioning_profiles(
        self, ctx: LintContext, result: LintResult
    ) -> Optional[LintContext]:
        profiles = {}
        for path in sorted(self.path.glob(PROFILE_GLOB)):
            try:
                method = DistributionMethod(path.stem)
            except ValueError:
                continue
            profiles[method] = path
        ctx.provisioning_profiles = profiles
        return ctx

    def _check_provisioning_profiles(
        self, ctx: LintContext, result: LintResult
    ) -> Optional[LintContext]:
        ok = True
        for method, config in ctx.build_configurations.items():
            path = ctx.provisioning_profiles.get(method)
            if path is None:
                self._error(
                    result,
                    "E118",
                    f"`{config.name}' build configuration must have an "
                    f"`{method.profile_filename}' in project root",
                )
                ok = False
                continue

            profile = ProvisioningProfile.from_file(path, openssl=self.config.openssl)
            if not profile.is_valid:
                self._error(result, "E119", f"Invalid provisioning profile `{path.name}'", path=path.name)
                ok = False
                continue

            if profile.distribution != method:
                self._error(
                    result,
                    "E120",
                    f"`{path.name}' appears to be an "
                    f"{profile.distribution.config_name} provisioning profile",
                    path=path.name,
                )
                ok = False
            if profile.is_ad_hoc and not profile.devices:
                self._error(
                    result,
                    "E121",
                    "AdHoc provisioning must have at least 1 device provisioned",
                    path=path.name,
                )
                ok = False
        return ctx if ok else None

    def _check_scheme(self, ctx: LintContext, result: LintResult) -> Optional[LintContext]:
        scheme = SCHEME_PATH_TEMPLATE.format(name=ctx.name)
        if not (self.path / scheme).is_file():
            self._error(
                result, "E122", f"Must have a shared Xcode scheme named `{ctx.name}'", path=scheme
            )
            return None
        return ctx
