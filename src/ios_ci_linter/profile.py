"""
Provisioning profile verification and classification.

A .mobileprovision file is a CMS (PKCS#7) signed container wrapping a plist.
The signature is checked with ``openssl cms`` against an empty trust store,
which confirms the container is intact and signed without caring who signed
it. The payload is then decoded with plistlib and classified.
"""

import logging
import plistlib
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union
from xml.parsers.expat import ExpatError

from .types import DistributionMethod

logger = logging.getLogger(__name__)


def verify_signed_document(raw: bytes, openssl: str = "openssl") -> Optional[dict]:
    """
    Verify a signed container and return its embedded plist.

    Args:
        raw: Contents of the signed file.
        openssl: openssl executable.

    Returns:
        The decoded mapping, or None if anything at all went wrong. Callers
        cannot tell a bad signature from a bad payload.
    """
    if not raw:
        logger.debug("Empty provisioning profile")
        return None

    try:
        proc = subprocess.run(
            [openssl, "cms", "-verify", "-noverify", "-binary", "-inform", "DER"],
            input=raw,
            capture_output=True,
        )
    except OSError as e:
        logger.debug(f"Could not run {openssl}: {e}")
        return None

    if proc.returncode != 0:
        logger.debug(
            f"Signature verification failed: {proc.stderr.decode(errors='replace').strip()}"
        )
        return None

    try:
        document = plistlib.loads(proc.stdout)
    except (plistlib.InvalidFileException, ExpatError, ValueError) as e:
        logger.debug(f"Signed payload is not a plist: {e}")
        return None

    if not isinstance(document, dict):
        logger.debug(f"Signed payload is a {type(document).__name__}, not a dictionary")
        return None

    return document


@dataclass
class ProvisioningProfile:
    """Classified provisioning profile."""
    valid: bool = False
    distribution: Optional[DistributionMethod] = None
    devices: List[str] = field(default_factory=list)

    @classmethod
    def from_document(cls, document: Optional[dict]) -> "ProvisioningProfile":
        """
        Classify a verified profile document.

        The checks run in a fixed order and the first match wins, so a profile
        that provisions all devices is enterprise even if it lists devices.
        """
        if document is None:
            return cls()

        if document.get("ProvisionsAllDevices") is True:
            return cls(valid=True, distribution=DistributionMethod.ENTERPRISE)

        devices = document.get("ProvisionedDevices")
        if devices is not None:
            if not isinstance(devices, list):
                logger.debug(f"ProvisionedDevices is a {type(devices).__name__}, not an array")
                return cls()
            return cls(
                valid=True,
                distribution=DistributionMethod.AD_HOC,
                devices=list(devices),
            )

        # FIXME: a development profile without devices also lands here
        return cls(valid=True, distribution=DistributionMethod.APP_STORE)

    @classmethod
    def from_bytes(cls, raw: bytes, openssl: str = "openssl") -> "ProvisioningProfile":
        return cls.from_document(verify_signed_document(raw, openssl=openssl))

    @classmethod
    def from_file(
        cls, path: Union[str, Path], openssl: str = "openssl"
    ) -> "ProvisioningProfile":
        """Read and classify a profile file. Unreadable files are invalid."""
        try:
            raw = Path(path).read_bytes()
        except OSError as e:
            logger.debug(f"Could not read {path}: {e}")
            return cls()
        return cls.from_bytes(raw, openssl=openssl)

    @property
    def is_valid(self) -> bool:
        return self.valid

    @property
    def is_ad_hoc(self) -> bool:
        return self.distribution == DistributionMethod.AD_HOC
