"""
iOS CI Linter

Checks that an iOS project repository follows CI conventions: a single
workspace, project and target sharing one name, a Podfile, AdHoc/AppStore/
Enterprise build configurations and matching provisioning profiles.

Usage:
    ios-ci-lint
    ios-ci-lint --check-profile ad_hoc.mobileprovision
"""

__version__ = "1.0.0"

from .api import check_profile, lint_project
from .profile import ProvisioningProfile, verify_signed_document
from .types import DistributionMethod, LintContext, LintIssue, LintResult, Severity

__all__ = [
    "lint_project",
    "check_profile",
    "verify_signed_document",
    "ProvisioningProfile",
    "DistributionMethod",
    "LintContext",
    "LintIssue",
    "LintResult",
    "Severity",
]
