"""
Script: tests/test_macros.py
What: Unit tests for the publish macro table builder.
Doing: Checks snapshot/release defaults, dash prefixing, presets, and mandatory fields.
Why: Repository paths and versions for every upload come from these values.
Goal: Keep macro values stable for both snapshot and release publishes.
"""

from __future__ import annotations

import unittest
from datetime import datetime, timezone

from release_tools.branch_rules import BranchRule
from release_tools.common import ConfigError
from release_tools.macros import build_macros, format_macros, overlay_macros


NOW = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone.utc)
PACKAGE_INFO = {"version": "1.2.3", "versionTrunks": {"major": 1, "minor": 2, "patch": 3}}
MANIFEST_INFO = {"id": "org.zowe.explorer"}
MASTER_RULE = BranchRule(name="master", allow_release=True, release_tag="snapshot")


def _build(**overrides):
    kwargs = {
        "branch": "master",
        "package_info": PACKAGE_INFO,
        "manifest_info": MANIFEST_INFO,
        "matched_rule": MASTER_RULE,
        "is_release_branch": True,
        "is_performing_release": False,
        "pre_release": "rc.1",
        "build_number": "42",
        "now": NOW,
    }
    kwargs.update(overrides)
    return build_macros(**kwargs)


class SnapshotMacroTests(unittest.TestCase):
    def test_snapshot_defaults(self) -> None:
        macros = _build()
        self.assertEqual(macros["repository"], "libs-snapshot-local")
        self.assertEqual(macros["package"], "org/zowe/explorer")
        self.assertEqual(macros["subproject"], "")
        self.assertEqual(macros["version"], "1.2.3")
        self.assertEqual(macros["prerelease"], "")
        self.assertEqual(macros["branchtag"], "-snapshot")
        self.assertEqual(macros["branchtag-uc"], "-SNAPSHOT")
        self.assertEqual(macros["timestamp"], "-20240305140709")
        self.assertEqual(macros["buildnumber"], "-42")
        self.assertEqual(macros["publishversion"], "1.2.3-snapshot-42-20240305140709")

    def test_build_number_prefix_is_idempotent(self) -> None:
        self.assertEqual(_build(build_number="-42")["buildnumber"], "-42")

    def test_missing_build_number_stays_empty(self) -> None:
        macros = _build(build_number="")
        self.assertEqual(macros["buildnumber"], "")
        self.assertEqual(macros["publishversion"], "1.2.3-snapshot-20240305140709")

    def test_unmatched_branch_uses_sanitized_branch_tag(self) -> None:
        macros = _build(branch="feature/x", matched_rule=None, is_release_branch=False)
        self.assertEqual(macros["branchtag"], "-feature-x")
        self.assertEqual(macros["branchtag-uc"], "-FEATURE-X")

    def test_release_branch_without_perform_release_is_snapshot(self) -> None:
        macros = _build(is_release_branch=True, is_performing_release=False)
        self.assertEqual(macros["repository"], "libs-snapshot-local")


class ReleaseMacroTests(unittest.TestCase):
    def test_release_clears_snapshot_fields(self) -> None:
        macros = _build(is_performing_release=True, pre_release="")
        self.assertEqual(macros["repository"], "libs-release-local")
        for field in ("prerelease", "branchtag", "timestamp", "buildnumber", "branchtag-uc"):
            self.assertEqual(macros[field], "", field)
        self.assertEqual(macros["publishversion"], "1.2.3")

    def test_release_keeps_pre_release_label(self) -> None:
        macros = _build(is_performing_release=True)
        self.assertEqual(macros["prerelease"], "-rc.1")
        self.assertEqual(macros["publishversion"], "1.2.3-rc.1")

    def test_perform_release_on_non_release_branch_is_snapshot(self) -> None:
        macros = _build(is_release_branch=False, is_performing_release=True)
        self.assertEqual(macros["repository"], "libs-snapshot-local")
        self.assertEqual(macros["prerelease"], "")


class MacroValidationTests(unittest.TestCase):
    def test_missing_version_is_rejected(self) -> None:
        with self.assertRaises(ConfigError) as ctx:
            _build(package_info={})
        self.assertIn("version:>>MISSING<<", str(ctx.exception))

    def test_missing_package_is_rejected(self) -> None:
        with self.assertRaises(ConfigError) as ctx:
            _build(manifest_info=None)
        self.assertIn("package:>>MISSING<<", str(ctx.exception))


class PresetMacroTests(unittest.TestCase):
    def test_preset_values_win_and_are_normalized(self) -> None:
        preset = {"subproject": "cli", "repository": "custom-local", "branchtag": "nightly"}
        macros = _build(preset=preset)
        self.assertEqual(macros["repository"], "custom-local")
        self.assertEqual(macros["subproject"], "/cli")
        self.assertEqual(macros["branchtag"], "-nightly")
        self.assertEqual(macros["branchtag-uc"], "-NIGHTLY")
        # The caller's dict is never modified.
        self.assertEqual(preset["subproject"], "cli")

    def test_preset_publish_version_is_kept(self) -> None:
        self.assertEqual(_build(preset={"publishversion": "9.9.9"})["publishversion"], "9.9.9")

    def test_preset_can_supply_mandatory_fields(self) -> None:
        macros = _build(package_info={}, manifest_info={}, preset={"package": "a/b", "version": "2.0.0"})
        self.assertEqual(macros["package"], "a/b")
        self.assertTrue(macros["publishversion"].startswith("2.0.0-snapshot"))


class OverlayTests(unittest.TestCase):
    def test_result_is_read_only(self) -> None:
        macros = _build()
        with self.assertRaises(TypeError):
            macros["version"] = "0.0.0"  # type: ignore[index]

    def test_overlay_does_not_touch_base(self) -> None:
        base = _build()
        merged = overlay_macros(base, {"filename": "app", "version": "override"})
        self.assertEqual(merged["filename"], "app")
        self.assertEqual(merged["version"], "override")
        self.assertNotIn("filename", base)
        self.assertEqual(base["version"], "1.2.3")

    def test_format_macros_lists_every_key(self) -> None:
        text = format_macros({"a": "1", "b": ""})
        self.assertEqual(text, "  a: 1\n  b: ")


if __name__ == "__main__":
    unittest.main()
