"""
Script: release_tools/macros.py
What: Builds the macro table used to render publish paths and versions.
Doing: Combines package metadata, branch classification, and build inputs into `{name: value}` pairs.
Why: Snapshot and release publishes need different repositories, tags, and version suffixes.
Goal: Produce one read-only macro table per publish run.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping

from release_tools.branch_rules import BranchRule, derive_branch_tag
from release_tools.common import ConfigError
from release_tools.template import resolve_template


REPOSITORY_SNAPSHOT = "libs-snapshot-local"
REPOSITORY_RELEASE = "libs-release-local"
PUBLISH_VERSION_TEMPLATE = "{version}{prerelease}{branchtag}{buildnumber}{timestamp}"
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
DASH_PREFIXED_FIELDS = ("prerelease", "branchtag", "timestamp", "buildnumber")
MISSING = ">>MISSING<<"


def build_macros(
    *,
    branch: str,
    package_info: Mapping[str, object] | None,
    manifest_info: Mapping[str, object] | None,
    matched_rule: BranchRule | None,
    is_release_branch: bool,
    is_performing_release: bool,
    pre_release: str = "",
    build_number: str = "",
    preset: Mapping[str, str] | None = None,
    now: datetime | None = None,
) -> Mapping[str, str]:
    """
    Return the macro table for this publish run.

    Values in `preset` win over everything computed here (except
    `branchtag-uc`, which always follows `branchtag`). The returned mapping is
    read-only; use `overlay_macros` to add per-file values.
    """
    release = is_release_branch and is_performing_release
    package_info = package_info or {}
    manifest_info = manifest_info or {}
    macros: dict[str, str] = dict(preset or {})

    if "repository" not in macros:
        macros["repository"] = REPOSITORY_RELEASE if release else REPOSITORY_SNAPSHOT
    if "package" not in macros:
        # Manifest ids look like `org.zowe.explorer`; repository paths use `/`.
        macros["package"] = str(manifest_info.get("id") or "").replace(".", "/")
    if "subproject" not in macros:
        macros["subproject"] = ""
    if "version" not in macros:
        macros["version"] = str(package_info.get("version") or "")
    if "prerelease" not in macros:
        macros["prerelease"] = pre_release if release else ""
    if "branchtag" not in macros:
        macros["branchtag"] = "" if release else derive_branch_tag(branch, matched_rule)
    if "timestamp" not in macros:
        stamp_time = now or datetime.now(timezone.utc)
        macros["timestamp"] = "" if release else stamp_time.strftime(TIMESTAMP_FORMAT)
    if "buildnumber" not in macros:
        macros["buildnumber"] = "" if release else build_number

    if not macros["package"] or not macros["version"]:
        raise ConfigError(
            "Package name and version must be set: "
            f"package:{macros['package'] or MISSING}; version:{macros['version'] or MISSING}"
        )

    if macros["subproject"] and not macros["subproject"].startswith("/"):
        macros["subproject"] = "/" + macros["subproject"]
    for field in DASH_PREFIXED_FIELDS:
        value = macros[field]
        if value and not value.startswith("-"):
            macros[field] = "-" + value

    if "publishversion" not in macros:
        macros["publishversion"] = resolve_template(PUBLISH_VERSION_TEMPLATE, macros)
    macros["branchtag-uc"] = macros["branchtag"].upper()

    return MappingProxyType(macros)


def overlay_macros(base: Mapping[str, str], overlay: Mapping[str, str]) -> Mapping[str, str]:
    """Return a new read-only table where `overlay` keys win over `base`."""
    merged = dict(base)
    merged.update(overlay)
    return MappingProxyType(merged)


def format_macros(macros: Mapping[str, str]) -> str:
    """Render macros one per line for debug logs."""
    return "\n".join(f"  {key}: {value}" for key, value in macros.items())
