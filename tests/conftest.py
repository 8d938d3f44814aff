"""Pytest fixtures for ios-ci-linter tests."""

import datetime
import plistlib
import shutil
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from ios_ci_linter.config import LintConfig
from ios_ci_linter.repository import RepositoryError

requires_openssl = pytest.mark.skipif(
    shutil.which("openssl") is None, reason="openssl executable not available"
)
requires_git = pytest.mark.skipif(
    shutil.which("git") is None, reason="git executable not available"
)

AD_HOC_DOCUMENT = {
    "Name": "Foo AdHoc",
    "ProvisionedDevices": ["00008030-001A2B3C4D5E6F70"],
}
APP_STORE_DOCUMENT = {"Name": "Foo AppStore"}
ENTERPRISE_DOCUMENT = {"Name": "Foo Enterprise", "ProvisionsAllDevices": True}


class FakeRepository:
    """Stands in for GitRepository so pipeline tests don't need git."""

    def __init__(
        self,
        root: Optional[Path],
        remotes: Optional[List[Tuple[str, str]]] = None,
        tracked: Tuple[str, ...] = (),
    ):
        self.root = root
        self._remotes = remotes if remotes is not None else [
            ("origin", "git@github.com:acme/Foo.git"),
        ]
        self.tracked = set(tracked)

    def discover(self) -> Path:
        if self.root is None:
            raise RepositoryError("not a git repository")
        return Path(self.root).resolve()

    def remotes(self) -> List[Tuple[str, str]]:
        return list(self._remotes)

    def is_tracked(self, relpath: str) -> bool:
        return relpath in self.tracked


def pbxproj_bytes(targets: List[str], configs: List[str]) -> bytes:
    """Serialise a minimal project.pbxproj as an XML plist."""
    objects: Dict[str, dict] = {
        "ROOT": {
            "isa": "PBXProject",
            "targets": [f"T{i}" for i in range(len(targets))],
            "buildConfigurationList": "CONFIGS",
        },
        "CONFIGS": {
            "isa": "XCConfigurationList",
            "buildConfigurations": [f"C{i}" for i in range(len(configs))],
        },
    }
    for i, name in enumerate(targets):
        objects[f"T{i}"] = {"isa": "PBXNativeTarget", "name": name}
    for i, name in enumerate(configs):
        objects[f"C{i}"] = {"isa": "XCBuildConfiguration", "name": name}
    return plistlib.dumps(
        {"archiveVersion": "1", "objectVersion": "46", "objects": objects, "rootObject": "ROOT"}
    )


def build_project(
    root: Path,
    workspaces: Tuple[str, ...] = ("Foo",),
    projects: Tuple[str, ...] = ("Foo",),
    targets: Tuple[str, ...] = ("Foo",),
    configs: Tuple[str, ...] = ("Debug", "Release", "AdHoc", "AppStore"),
    profiles: Optional[Dict[str, bytes]] = None,
    podfile: Optional[str] = "platform :ios, '7.0'\n\npod 'AFNetworking'\n",
    scheme: Optional[str] = "Foo",
) -> Path:
    """Lay out an Xcode project tree under ``root``."""
    for name in workspaces:
        (root / f"{name}.xcworkspace").mkdir()
    for name in projects:
        xcodeproj = root / f"{name}.xcodeproj"
        xcodeproj.mkdir()
        (xcodeproj / "project.pbxproj").write_bytes(pbxproj_bytes(list(targets), list(configs)))
    for filename, raw in (profiles or {}).items():
        (root / filename).write_bytes(raw)
    if podfile is not None:
        (root / "Podfile").write_text(podfile)
    if scheme is not None and scheme in projects:
        schemes = root / f"{scheme}.xcodeproj" / "xcshareddata" / "xcschemes"
        schemes.mkdir(parents=True, exist_ok=True)
        (schemes / f"{scheme}.xcscheme").write_text("<Scheme/>\n")
    return root


@pytest.fixture
def config() -> LintConfig:
    """Default settings, independent of the environment."""
    return LintConfig()


@pytest.fixture
def unsigned_profiles(monkeypatch):
    """
    Treat provisioning profiles as bare plists.

    Lets pipeline tests run without openssl; the verifier itself is tested
    separately against real signatures.
    """
    def fake_verify(raw: bytes, openssl: str = "openssl") -> Optional[dict]:
        try:
            document = plistlib.loads(raw)
        except Exception:
            return None
        return document if isinstance(document, dict) else None

    monkeypatch.setattr("ios_ci_linter.profile.verify_signed_document", fake_verify)
    return lambda document: plistlib.dumps(document)


@pytest.fixture
def project_root(tmp_path: Path, unsigned_profiles) -> Path:
    """A compliant project with AdHoc and AppStore profiles."""
    root = tmp_path / "Foo"
    root.mkdir()
    return build_project(
        root,
        profiles={
            "ad_hoc.mobileprovision": unsigned_profiles(AD_HOC_DOCUMENT),
            "app_store.mobileprovision": unsigned_profiles(APP_STORE_DOCUMENT),
        },
    )


@pytest.fixture(scope="session")
def signing_identity():
    """Self-signed RSA certificate and key for signing test profiles."""
    x509 = pytest.importorskip("cryptography.x509")
    from cryptography.hazmat.primitives import hashes
    from cryptography.hazmat.primitives.asymmetric import rsa
    from cryptography.x509.oid import NameOID

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "iPhone Distribution: Acme")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=365))
        .sign(key, hashes.SHA256())
    )
    return cert, key


@pytest.fixture
def sign(signing_identity):
    """Return a function that wraps bytes in a DER CMS signed-data container."""
    from cryptography.hazmat.primitives import hashes, serialization
    from cryptography.hazmat.primitives.serialization import pkcs7

    cert, key = signing_identity

    def _sign(payload: bytes) -> bytes:
        return (
            pkcs7.PKCS7SignatureBuilder()
            .set_data(payload)
            .add_signer(cert, key, hashes.SHA256())
            .sign(serialization.Encoding.DER, [pkcs7.PKCS7Options.Binary])
        )

    return _sign


@pytest.fixture
def signed_profile(sign):
    """Return a function that signs a profile document."""
    return lambda document: sign(plistlib.dumps(document))
