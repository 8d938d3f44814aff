"""Tests for environment configuration."""

from ios_ci_linter.config import LintConfig


class TestLintConfig:
    """Tests for LintConfig.from_env."""

    def test_defaults(self, monkeypatch):
        for name in ("MARKER", "REMOTE_HOST", "PLATFORM", "GIT", "OPENSSL", "PLUTIL"):
            monkeypatch.delenv(f"IOS_CI_LINT_{name}", raising=False)
        assert LintConfig.from_env() == LintConfig()

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("IOS_CI_LINT_MARKER", ".ci-skip")
        monkeypatch.setenv("IOS_CI_LINT_REMOTE_HOST", "git.example.com")
        monkeypatch.setenv("IOS_CI_LINT_PLATFORM", "IOS")
        monkeypatch.setenv("IOS_CI_LINT_OPENSSL", "/opt/openssl/bin/openssl")
        config = LintConfig.from_env()
        assert config.marker_file == ".ci-skip"
        assert config.remote_host == "git.example.com"
        assert config.platform == "ios"
        assert config.openssl == "/opt/openssl/bin/openssl"

    def test_empty_value_uses_default(self, monkeypatch):
        monkeypatch.setenv("IOS_CI_LINT_MARKER", "")
        assert LintConfig.from_env().marker_file == ".ci-lint"
