"""Tests for the Xcode project and Podfile readers."""

from pathlib import Path

import pytest
from conftest import pbxproj_bytes

from ios_ci_linter.project import PodfileReader, ProjectLoader, ProjectModelError


def write_project(tmp_path: Path, raw: bytes) -> Path:
    xcodeproj = tmp_path / "Foo.xcodeproj"
    xcodeproj.mkdir()
    (xcodeproj / "project.pbxproj").write_bytes(raw)
    return xcodeproj


class TestProjectLoader:
    """Tests for ProjectLoader."""

    def test_loads_targets_and_configurations(self, tmp_path: Path):
        xcodeproj = write_project(
            tmp_path, pbxproj_bytes(["Foo", "FooTests"], ["Debug", "Release", "AdHoc"])
        )
        model = ProjectLoader().load(xcodeproj)
        assert model.path == xcodeproj
        assert [t.name for t in model.targets] == ["Foo", "FooTests"]
        assert [c.name for c in model.build_configurations] == ["Debug", "Release", "AdHoc"]

    def test_missing_project_file(self, tmp_path: Path):
        with pytest.raises(ProjectModelError):
            ProjectLoader().load(tmp_path / "Missing.xcodeproj")

    def test_malformed_xml(self, tmp_path: Path):
        xcodeproj = write_project(tmp_path, b"<?xml version='1.0'?><plist><dict>")
        with pytest.raises(ProjectModelError):
            ProjectLoader().load(xcodeproj)

    def test_missing_root_object(self, tmp_path: Path):
        import plistlib

        xcodeproj = write_project(tmp_path, plistlib.dumps({"objects": {}}))
        with pytest.raises(ProjectModelError, match="Malformed"):
            ProjectLoader().load(xcodeproj)

    def test_objects_that_are_not_dictionaries(self, tmp_path: Path):
        import plistlib

        cases = [
            {"objects": {"R": "not-a-dict"}, "rootObject": "R"},
            {
                "objects": {"R": {"targets": [], "buildConfigurationList": "L"}, "L": "oops"},
                "rootObject": "R",
            },
            {
                "objects": {
                    "R": {"targets": ["T"], "buildConfigurationList": "L"},
                    "T": ["Foo"],
                    "L": {"buildConfigurations": []},
                },
                "rootObject": "R",
            },
        ]
        for i, data in enumerate(cases):
            case_dir = tmp_path / str(i)
            case_dir.mkdir()
            xcodeproj = write_project(case_dir, plistlib.dumps(data))
            with pytest.raises(ProjectModelError, match="Malformed"):
                ProjectLoader().load(xcodeproj)

    def test_openstep_without_plutil(self, tmp_path: Path):
        xcodeproj = write_project(tmp_path, b"// !$*UTF8*$!\n{\n\tarchiveVersion = 1;\n}\n")
        loader = ProjectLoader(plutil=str(tmp_path / "no-plutil"))
        with pytest.raises(ProjectModelError, match="unavailable"):
            loader.load(xcodeproj)


class TestPodfileReader:
    """Tests for PodfileReader."""

    def write(self, tmp_path: Path, text: str) -> Path:
        path = tmp_path / "Podfile"
        path.write_text(text)
        return path

    def test_platform_and_pods(self, tmp_path: Path):
        path = self.write(
            tmp_path,
            "platform :ios, '7.0'\n"
            "\n"
            "pod 'AFNetworking', '~> 2.0'\n"
            'pod "Mantle"\n'
            "\n"
            "target 'FooTests' do\n"
            "  pod 'Kiwi'\n"
            "end\n",
        )
        manifest = PodfileReader().parse(path)
        assert manifest.platform == "ios"
        assert manifest.dependency_count == 3

    def test_first_platform_wins(self, tmp_path: Path):
        path = self.write(tmp_path, "platform :osx\nplatform :ios\npod 'A'\n")
        assert PodfileReader().parse(path).platform == "osx"

    def test_comments_ignored(self, tmp_path: Path):
        path = self.write(tmp_path, "# platform :ios\n# pod 'A'\npod 'B' # pod 'C'\n")
        manifest = PodfileReader().parse(path)
        assert manifest.platform is None
        assert manifest.dependency_count == 1

    def test_empty_podfile(self, tmp_path: Path):
        manifest = PodfileReader().parse(self.write(tmp_path, ""))
        assert manifest.platform is None
        assert manifest.dependency_count == 0
