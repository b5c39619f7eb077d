"""
Script: release_tools/artifacts.py
What: Builds the artifact upload spec handed to the JFrog CLI.
Doing: Expands artifact glob patterns, derives per-file macros, and renders each upload target path.
Why: Artifact names and repository paths follow templates that depend on branch and version.
Goal: Produce a complete `{files: [{pattern, target}]}` spec or fail before anything is written.
"""

from __future__ import annotations

import glob
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from release_tools.common import ArtifactNotFoundError
from release_tools.macros import overlay_macros
from release_tools.template import find_unresolved, resolve_template


DEFAULT_TARGET_PATH = "{repository}/{package}{subproject}/{version}{branchtag-uc}/"
UPLOAD_FILE_TEMPLATE = "{filename}-{publishversion}{fileext}"
UPLOAD_SPEC_FILE_NAME = ".tmp-pipeline-publish-spec.json"

# Longest first so `.tar.gz` wins over `.gz`.
DOUBLE_EXTENSIONS = (".tar.gz", ".tar.Z", ".pax.Z")
VERSIONED_NAME_RE = re.compile(r"^(.+)-([0-9]+\.[0-9]+\.[0-9]+)(-[0-9a-zA-Z+.-]+)?$")
SEMVER_PREFIX_RE = re.compile(r"^([0-9]+)\.([0-9]+)\.([0-9]+)")


@dataclass(frozen=True)
class UploadSpecFile:
    pattern: str
    target: str


@dataclass
class UploadSpec:
    files: list[UploadSpecFile] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[dict[str, str]]]:
        return {"files": [{"pattern": item.pattern, "target": item.target} for item in self.files]}


def parse_file_extension(file_path: str) -> tuple[str, str]:
    """
    Split a file path into base name and extension.

    The extension keeps its leading dot (`app.zip` -> `("app", ".zip")`) so the
    upload template can place it right after the version.
    """
    base_name = Path(file_path).name
    for double_ext in DOUBLE_EXTENSIONS:
        if base_name.endswith(double_ext) and len(base_name) > len(double_ext):
            return base_name[: -len(double_ext)], double_ext
    index = base_name.rfind(".")
    if index <= 0:
        return base_name, ""
    return base_name[:index], base_name[index:]


def package_semver(package_info: Mapping[str, object] | None) -> str:
    """
    Return `major.minor.patch` for the package.

    Prefers the parsed `versionTrunks` object; falls back to the leading
    numeric triple of `version`.
    """
    if not package_info:
        return ""
    trunks = package_info.get("versionTrunks")
    if isinstance(trunks, Mapping) and all(
        trunks.get(part) is not None for part in ("major", "minor", "patch")
    ):
        return f"{trunks['major']}.{trunks['minor']}.{trunks['patch']}"
    match = SEMVER_PREFIX_RE.match(str(package_info.get("version") or ""))
    return ".".join(match.groups()) if match else ""


def strip_embedded_version(filename: str, semver: str) -> str:
    """
    Drop a `-<semver>[-label]` suffix when it is this package's own version.

    `my-project-1.2.3-snapshot` with semver `1.2.3` becomes `my-project`;
    any other version in the name is left alone.
    """
    if not semver:
        return filename
    match = VERSIONED_NAME_RE.match(filename)
    if match and match.group(2) == semver:
        print(f'Version in artifact "{filename}" name is extracted as "{match.group(1)}".')
        return match.group(1)
    return filename


def file_macros(file_path: str, semver: str) -> dict[str, str]:
    name, ext = parse_file_extension(file_path)
    return {"filename": strip_embedded_version(name, semver), "fileext": ext}


def normalize_target_path(target_path: str | None) -> str:
    path = target_path or DEFAULT_TARGET_PATH
    if not path.endswith("/"):
        path += "/"
    return path


def expand_artifact(root_path: Path, pattern: str) -> list[str]:
    """
    Expand one artifact pattern relative to the workspace root.

    Sorting keeps the order stable across runs. A literal path that exists but
    does not glob (for example a name with `[` in it) is still accepted.
    """
    full_pattern = str(root_path / pattern)
    matches = sorted(glob.glob(full_pattern, recursive=True))
    if matches:
        return matches
    if Path(full_pattern).exists():
        return [full_pattern]
    raise ArtifactNotFoundError(
        f"Artifact pattern {pattern} does not match any file under {root_path}"
    ) from FileNotFoundError(full_pattern)


def build_upload_spec(
    artifacts: Iterable[str],
    root_path: Path,
    macros: Mapping[str, str],
    target_path_template: str | None = None,
    semver: str = "",
) -> UploadSpec:
    """Render one upload entry per matched artifact file."""
    target_template = normalize_target_path(target_path_template) + UPLOAD_FILE_TEMPLATE
    spec = UploadSpec()
    for artifact in artifacts:
        pattern = artifact.strip()
        if not pattern:
            continue
        print(f"- pattern {pattern}")
        for file_path in expand_artifact(root_path, pattern):
            merged = overlay_macros(macros, file_macros(file_path, semver))
            target = resolve_template(target_template, merged)
            print(f"- + found {file_path} -> {target}")
            unresolved = find_unresolved(target)
            if unresolved:
                names = ", ".join(f"{{{name}}}" for name in unresolved)
                print(f"Warning: unresolved placeholders {names} in {target}")
            spec.files.append(UploadSpecFile(pattern=file_path, target=target))
    return spec


def write_upload_spec(spec: UploadSpec, output_path: Path) -> Path:
    output_path.write_text(json.dumps(spec.to_dict()), encoding="utf-8")
    return output_path
