"""
Readers for the Xcode project and CocoaPods Podfile.

Only the handful of facts the linter needs are extracted: target names and
project-level build configuration names from project.pbxproj, and the
platform and pod count from the Podfile.
"""

import logging
import plistlib
import re
import subprocess
from pathlib import Path
from typing import Dict, List
from xml.parsers.expat import ExpatError

from .types import BuildConfiguration, DependencyManifest, LintError, ProjectModel, Target

logger = logging.getLogger(__name__)

PBXPROJ_NAME = "project.pbxproj"

PLATFORM_PATTERN = re.compile(r"""^\s*platform\s+:(\w+)""")
POD_PATTERN = re.compile(r"""^\s*pod\s+['"]""")


class ProjectModelError(LintError):
    """Raised when an Xcode project can't be read."""


class ProjectLoader:
    """
    Loads Xcode project models.

    XML and binary project.pbxproj files are parsed directly. Files in the
    classic OpenStep format are converted to XML with plutil first.
    """

    def __init__(self, plutil: str = "plutil"):
        self.plutil = plutil

    def load(self, xcodeproj: Path) -> ProjectModel:
        """
        Load a project model.

        Args:
            xcodeproj: Path to the ``.xcodeproj`` bundle.

        Raises:
            ProjectModelError: If the project file is missing or malformed.
        """
        pbxproj = Path(xcodeproj) / PBXPROJ_NAME
        try:
            raw = pbxproj.read_bytes()
        except OSError as e:
            raise ProjectModelError(f"Cannot read {pbxproj}: {e}") from e

        data = self._parse(pbxproj, raw)

        try:
            objects: Dict[str, dict] = data["objects"]
            root = self._object(objects, data["rootObject"])
            targets = [
                Target(name=self._object(objects, ref)["name"])
                for ref in root.get("targets", [])
            ]
            config_list = self._object(objects, root["buildConfigurationList"])
            configs = [
                BuildConfiguration(name=self._object(objects, ref)["name"])
                for ref in config_list.get("buildConfigurations", [])
            ]
        except KeyError as e:
            raise ProjectModelError(f"Malformed project file {pbxproj}: missing {e}") from e
        except TypeError as e:
            raise ProjectModelError(f"Malformed project file {pbxproj}: {e}") from e

        logger.debug(
            f"Loaded {pbxproj}: {len(targets)} targets, {len(configs)} build configurations"
        )
        return ProjectModel(path=Path(xcodeproj), targets=targets, build_configurations=configs)

    @staticmethod
    def _object(objects: Dict[str, dict], ref: str) -> dict:
        """Look up an object by reference; it must be a dictionary."""
        obj = objects[ref]
        if not isinstance(obj, dict):
            raise TypeError(f"object {ref!r} is a {type(obj).__name__}, not a dictionary")
        return obj

    def _parse(self, pbxproj: Path, raw: bytes) -> dict:
        if not raw.lstrip().startswith((b"<?xml", b"bplist")):
            raw = self._convert(pbxproj)
        try:
            data = plistlib.loads(raw)
        except (plistlib.InvalidFileException, ExpatError, ValueError) as e:
            raise ProjectModelError(f"Malformed project file {pbxproj}: {e}") from e
        if not isinstance(data, dict):
            raise ProjectModelError(f"Malformed project file {pbxproj}: root is not a dictionary")
        return data

    def _convert(self, pbxproj: Path) -> bytes:
        """Convert an OpenStep plist to XML via plutil."""
        try:
            result = subprocess.run(
                [self.plutil, "-convert", "xml1", "-o", "-", str(pbxproj)],
                capture_output=True,
                check=True,
            )
        except OSError as e:
            raise ProjectModelError(
                f"{pbxproj} is not an XML plist and {self.plutil} is unavailable: {e}"
            ) from e
        except subprocess.CalledProcessError as e:
            raise ProjectModelError(
                f"{self.plutil} could not convert {pbxproj}: "
                f"{e.stderr.decode(errors='replace').strip()}"
            ) from e
        return result.stdout


class PodfileReader:
    """Reads the declared platform and dependencies from a Podfile."""

    def parse(self, path: Path) -> DependencyManifest:
        """
        Scan a Podfile.

        The first ``platform :name`` directive sets the platform. Every
        ``pod '...'`` line counts as one dependency, whichever target block
        it sits in. Comments are ignored.
        """
        manifest = DependencyManifest(path=Path(path))
        for line in self._lines(path):
            if manifest.platform is None:
                match = PLATFORM_PATTERN.match(line)
                if match:
                    manifest.platform = match.group(1).lower()
                    continue
            if POD_PATTERN.match(line):
                manifest.dependency_count += 1
        return manifest

    def _lines(self, path: Path) -> List[str]:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
        return [line.split("#", 1)[0] for line in text.splitlines()]
