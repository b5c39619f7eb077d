"""
Script: release_tools/merge_by.py
What: Collects review and merge-by status for every open pull request.
Doing: Fans out comment, review, and timeline requests per pull request and joins them into one list.
Why: The merge-by reminder workflow needs to know which PRs are ready, approved, and overdue.
Goal: Produce a JSON list of pull request status records for later workflow steps.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, TypeVar

from release_tools.common import env_flag, optional_env, require_env, write_github_outputs
from release_tools.github_api import GitHubClient


BOT_LOGIN = "github-actions[bot]"
MERGE_BY_MARKER = "**📅 Suggested merge-by date:"
REQUIRED_APPROVALS = 2
DEFAULT_OUTPUT_PATH = "artifacts/merge-by.json"

T = TypeVar("T")


@dataclass
class PullInfo:
    number: int
    title: str
    author: str
    has_reviews: bool
    mergeable: bool | None
    reviewers: list[str] = field(default_factory=list)
    days_since_ready: int = 0
    merge_by: str | None = None


def parse_github_time(value: str) -> datetime:
    """Parse GitHub timestamps such as `2024-05-01T12:00:00Z`."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from `start` to `end`, truncated toward zero."""
    seconds = (end - start).total_seconds()
    return int(seconds / 86400)


def find_merge_by_date(comments: list[dict]) -> str | None:
    # The bot comment ends with "...merge-by date:** <date>"; the date is after the last '*'.
    for comment in comments:
        login = (comment.get("user") or {}).get("login")
        body = comment.get("body") or ""
        if login == BOT_LOGIN and MERGE_BY_MARKER in body:
            return body[body.rfind("*") + 1:].strip()
    return None


def count_approvals(reviews: list[dict]) -> int:
    return sum(1 for review in reviews if review.get("state") == "APPROVED")


def pending_reviewers(pull: dict, reviews: list[dict]) -> list[str]:
    """Requested reviewers who have not approved yet."""
    approved = {
        (review.get("user") or {}).get("login")
        for review in reviews
        if review.get("state") == "APPROVED"
    }
    return [
        reviewer["login"]
        for reviewer in pull.get("requested_reviewers") or []
        if reviewer.get("login") not in approved
    ]


def compute_days_since_ready(pull: dict, timeline: list[dict], now: datetime) -> int:
    """
    Days since the pull request became ready for review.

    Drafts report -1. A PR that was never a draft counts from creation.
    """
    if pull.get("draft"):
        return -1
    ready_events = [event for event in timeline if event.get("event") == "ready_for_review"]
    if ready_events:
        ready_at = parse_github_time(ready_events[-1]["created_at"])
    else:
        ready_at = parse_github_time(pull["created_at"])
    return days_between(ready_at, now)


async def gather_all(*aws: Awaitable[T]) -> list[T]:
    """Await all of `aws`; on the first failure cancel the others and re-raise."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        # Wait for the cancelled tasks so no request outlives the client.
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def describe_pull_request(
    client: GitHubClient,
    owner: str,
    repo: str,
    pull: dict,
    now: datetime,
) -> PullInfo:
    number = pull["number"]
    comments, reviews, timeline = await gather_all(
        client.list_issue_comments(owner, repo, number),
        client.list_reviews(owner, repo, number),
        client.list_timeline_events(owner, repo, number),
    )
    return PullInfo(
        number=number,
        title=pull.get("title") or "",
        author=(pull.get("user") or {}).get("login") or "",
        has_reviews=count_approvals(reviews) >= REQUIRED_APPROVALS,
        mergeable=pull.get("mergeable"),
        reviewers=pending_reviewers(pull, reviews),
        days_since_ready=compute_days_since_ready(pull, timeline, now),
        merge_by=find_merge_by_date(comments),
    )


async def get_pull_requests(
    client: GitHubClient,
    owner: str,
    repo: str,
    *,
    reverse: bool = False,
    now: datetime | None = None,
) -> list[PullInfo]:
    """
    Describe every open pull request.

    All pull requests are scanned concurrently. The call returns only when
    every request succeeded; the first failure cancels the rest and is raised
    with no partial result.
    """
    now = now or datetime.now(timezone.utc)
    pulls = await client.list_pull_requests(owner, repo, state="open")
    infos = await gather_all(*(describe_pull_request(client, owner, repo, pull, now) for pull in pulls))
    if reverse:
        infos.reverse()
    return infos


def pull_infos_to_json(infos: list[PullInfo]) -> list[dict[str, Any]]:
    return [asdict(info) for info in infos]


async def _scan(repository: str, token: str, reverse: bool) -> list[PullInfo]:
    owner, repo = repository.split("/", 1)
    async with GitHubClient(token) as client:
        return await get_pull_requests(client, owner, repo, reverse=reverse)


def main() -> None:
    # GitHub sets GITHUB_REPOSITORY to `owner/name`.
    repository = require_env("GITHUB_REPOSITORY")
    token = require_env("GITHUB_TOKEN")
    reverse = env_flag("REVERSE")
    output_path = Path(optional_env("MERGE_BY_OUTPUT", DEFAULT_OUTPUT_PATH))

    infos = asyncio.run(_scan(repository, token, reverse))
    document = pull_infos_to_json(infos)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    write_github_outputs({"pull_requests": json.dumps(document)})

    for info in infos:
        state = "draft" if info.days_since_ready < 0 else f"ready {info.days_since_ready}d"
        print(f"#{info.number} {info.title} ({state}, merge-by: {info.merge_by or 'n/a'})")
    print(f"Wrote {len(infos)} pull request record(s) to {output_path}")


if __name__ == "__main__":
    main()
