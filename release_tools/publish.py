"""
Script: release_tools/publish.py
What: Prepares artifact publishing for the current branch and run.
Doing: Classifies the branch, builds the macro table, guards release tags, and writes the JFrog upload spec.
Why: Snapshot and release uploads share one pipeline but land in different repositories and paths.
Goal: Hand later workflow steps a ready upload spec plus the release-branch flag.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping

from release_tools.artifacts import (
    UPLOAD_SPEC_FILE_NAME,
    UploadSpec,
    build_upload_spec,
    package_semver,
    write_upload_spec,
)
from release_tools.branch_rules import BranchClassification, classify_branch, parse_branch_rules
from release_tools.common import (
    ConfigError,
    DuplicateTagError,
    bool_text,
    env_flag,
    export_github_env,
    git_tag_exists_remote,
    load_json_env,
    optional_env,
    write_github_outputs,
)
from release_tools.macros import build_macros, format_macros


@dataclass(frozen=True)
class PublishInputs:
    branch: str
    branch_rules_json: str
    package_info: Mapping[str, object]
    manifest_info: Mapping[str, object]
    artifacts: list[str]
    perform_release: bool
    pre_release: str
    build_number: str
    target_path: str
    workspace: Path
    debug: bool


def _json_object(name: str) -> Mapping[str, object]:
    value = load_json_env(name, default={})
    if not isinstance(value, dict):
        raise ConfigError(f"Environment variable {name} must hold a JSON object")
    return value


def split_artifacts(text: str) -> list[str]:
    """Split the multiline `artifacts` input, dropping blank lines."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def read_inputs() -> PublishInputs:
    return PublishInputs(
        branch=optional_env("CURRENT_BRANCH").strip(),
        branch_rules_json=optional_env("DEFAULT_BRANCHES_JSON_TEXT"),
        package_info=_json_object("PACKAGE_INFO"),
        manifest_info=_json_object("MANIFEST_INFO"),
        artifacts=split_artifacts(optional_env("ARTIFACTS")),
        perform_release=env_flag("PERFORM_RELEASE"),
        pre_release=optional_env("PRE_RELEASE_STRING").strip(),
        build_number=optional_env("JFROG_CLI_BUILD_NUMBER").strip(),
        target_path=optional_env("PUBLISH_TARGET_PATH").strip(),
        workspace=Path(optional_env("GITHUB_WORKSPACE", ".")),
        debug=bool(optional_env("DEBUG")),
    )


def release_tag(macros: Mapping[str, str]) -> str:
    # In release mode `publishversion` is just the version (plus pre-release label).
    return "v" + macros["publishversion"]


def ensure_release_tag_is_new(tag: str, tag_exists: Callable[[str], bool]) -> None:
    if tag_exists(tag):
        raise DuplicateTagError(f"Github tag {tag} already exists, publish abandoned.")


def prepare_publish(
    inputs: PublishInputs,
    *,
    tag_exists: Callable[[str], bool] = git_tag_exists_remote,
) -> tuple[BranchClassification, Mapping[str, str], UploadSpec | None]:
    """
    Run every publish decision without touching GitHub env files.

    Returns the branch classification, the macro table, and the upload spec
    (None when no artifacts were declared).
    """
    rules = parse_branch_rules(inputs.branch_rules_json)
    classification = classify_branch(rules, inputs.branch)

    print(f"Current branch {inputs.branch} is release branch? {bool_text(classification.is_release_branch)}")
    print(
        f"Current branch {inputs.branch} is formal release branch? "
        f"{bool_text(classification.is_formal_release_branch)}"
    )
    print(f"Are we performing a release? {bool_text(inputs.perform_release)}")

    macros = build_macros(
        branch=inputs.branch,
        package_info=inputs.package_info,
        manifest_info=inputs.manifest_info,
        matched_rule=classification.rule,
        is_release_branch=classification.is_release_branch,
        is_performing_release=inputs.perform_release,
        pre_release=inputs.pre_release,
        build_number=inputs.build_number,
    )
    if inputs.debug:
        print("Macros is built as follows:")
        print(format_macros(macros))

    # Tag check runs before any upload work.
    if inputs.perform_release:
        ensure_release_tag_is_new(release_tag(macros), tag_exists)

    if not inputs.artifacts:
        return classification, macros, None

    spec = build_upload_spec(
        inputs.artifacts,
        inputs.workspace,
        macros,
        target_path_template=inputs.target_path or None,
        semver=package_semver(inputs.package_info),
    )
    return classification, macros, spec


def publish(inputs: PublishInputs, *, tag_exists: Callable[[str], bool] = git_tag_exists_remote) -> None:
    classification, macros, spec = prepare_publish(inputs, tag_exists=tag_exists)

    if spec is not None:
        print(f"Spec of uploading artifact: {json.dumps(spec.to_dict(), indent=2)}")
        write_upload_spec(spec, Path(UPLOAD_SPEC_FILE_NAME))
        export_github_env({"JFROG_UPLOAD_SPEC_JSON": UPLOAD_SPEC_FILE_NAME})
    else:
        print("Warning: No artifacts to publish.")

    export_github_env({"IS_RELEASE_BRANCH": bool_text(classification.is_release_branch)})
    write_github_outputs(
        {
            "is_release_branch": bool_text(classification.is_release_branch),
            "is_formal_release_branch": bool_text(classification.is_formal_release_branch),
            "publish_version": macros["publishversion"],
        }
    )


def main() -> None:
    publish(read_inputs())


if __name__ == "__main__":
    main()
