"""
Script: release_tools/branch_rules.py
What: Classifies the current branch against the configured release branch rules.
Doing: Parses the branch rules JSON, finds the first matching rule, and derives a sanitized branch tag.
Why: Release permissions and snapshot tags both depend on which rule a branch falls under.
Goal: Give the publish step one predictable answer for "what kind of branch is this?".
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Sequence

from release_tools.common import ConfigError


DEFAULT_BRANCH_TAG = "snapshot"
UNSAFE_CHARS_RE = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class BranchRule:
    name: str
    allow_release: bool = False
    allow_formal_release: bool = False
    release_tag: str = ""

    def matches(self, branch: str) -> bool:
        """Exact name match first, then the name as an unanchored regex."""
        if not branch:
            return False
        if branch == self.name:
            return True
        return re.search(self.name, branch) is not None


@dataclass(frozen=True)
class BranchClassification:
    rule: BranchRule | None
    is_release_branch: bool
    is_formal_release_branch: bool


def parse_branch_rules(json_text: str) -> list[BranchRule]:
    """
    Parse the branch rules JSON array.

    Example entry:
    `{"name": "v[0-9].x/master", "allowRelease": true, "releaseTag": "snapshot"}`
    """
    if not json_text or not json_text.strip():
        return []
    try:
        raw_rules = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Branch rules are not valid JSON: {exc}") from exc
    if not isinstance(raw_rules, list):
        raise ConfigError("Branch rules must be a JSON array")

    rules: list[BranchRule] = []
    for index, entry in enumerate(raw_rules):
        if not isinstance(entry, dict):
            raise ConfigError(f"Branch rule #{index} must be a JSON object")
        name = str(entry.get("name") or "")
        if not name:
            raise ConfigError(f"Branch rule #{index} is missing 'name'")
        try:
            re.compile(name)
        except re.error as exc:
            raise ConfigError(f"Branch rule #{index} has an invalid pattern {name!r}: {exc}") from exc
        rules.append(
            BranchRule(
                name=name,
                allow_release=bool(entry.get("allowRelease", False)),
                allow_formal_release=bool(entry.get("allowFormalRelease", False)),
                release_tag=str(entry.get("releaseTag") or ""),
            )
        )
    return rules


def match_branch(rules: Sequence[BranchRule], branch: str) -> BranchRule | None:
    """Return the first rule (in list order) that matches `branch`."""
    for rule in rules:
        if rule.matches(branch):
            return rule
    return None


def classify_branch(rules: Sequence[BranchRule], branch: str) -> BranchClassification:
    rule = match_branch(rules, branch)
    return BranchClassification(
        rule=rule,
        is_release_branch=bool(rule and rule.allow_release),
        is_formal_release_branch=bool(rule and rule.allow_formal_release),
    )


def sanitize_branch_name(branch: str) -> str:
    """Convert a branch name into a tag/path-safe identifier."""
    if branch.startswith("origin/"):
        branch = branch[len("origin/"):]
    # Lowercase + collapse every unsupported run into one '-'.
    return UNSAFE_CHARS_RE.sub("-", branch.lower())


def derive_branch_tag(branch: str, rule: BranchRule | None) -> str:
    """
    Work out the snapshot tag for a branch.

    Rules:
    - No branch name at all falls back to `snapshot`.
    - A matched rule with `releaseTag` swaps the rule name inside the branch
      name for that tag, e.g. `master` -> `snapshot`.
    - If the swap did not change anything (regex rules usually don't), the raw
      branch name is used.
    """
    final_tag = branch or DEFAULT_BRANCH_TAG
    if branch and rule is not None and rule.release_tag:
        replaced = branch.replace(rule.name, rule.release_tag)
        if replaced != branch:
            final_tag = replaced
    return sanitize_branch_name(final_tag)
