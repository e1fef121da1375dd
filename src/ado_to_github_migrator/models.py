"""Data models for migration between Azure DevOps and GitHub.

Source records are read-only snapshots of Azure DevOps REST payloads, built once per
invocation with ``from_api``. The target record is the branch protection descriptor
applied to a single GitHub branch; a field left as ``None`` is not sent to GitHub.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from enum import Enum, StrEnum
from typing import Any, Final

_REFS_HEADS_PREFIX: Final[str] = "refs/heads/"

# ADO emits up to 7 fractional digits, datetime accepts at most 6
_EXTRA_FRACTION_RE: Final[re.Pattern[str]] = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value: str | None) -> dt.datetime | None:
    """Parse an Azure DevOps ISO 8601 timestamp into an aware datetime.

    Returns None for empty or unparseable values.
    """
    if not value:
        return None

    try:
        parsed = dt.datetime.fromisoformat(_EXTRA_FRACTION_RE.sub(r"\1", value.replace("Z", "+00:00")))
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return parsed


def strip_refs_heads(ref_name: str) -> str:
    """Remove a leading ``refs/heads/`` (any case) from a ref name."""
    if ref_name.lower().startswith(_REFS_HEADS_PREFIX):
        return ref_name[len(_REFS_HEADS_PREFIX) :]
    return ref_name


class PolicyKind(Enum):
    """Azure DevOps branch policy kinds, keyed by their fixed type GUIDs."""

    MINIMUM_REVIEWERS = "fa4e907d-c16b-4a4c-9dfa-4906e5d171dd"
    BUILD_VALIDATION = "0609b952-1397-4640-95ec-e00a01b2c241"
    COMMENT_REQUIREMENTS = "c6a1889d-b943-4856-b76f-9e46bb6b0df2"
    WORK_ITEM_LINKING = "40e92b44-2fe1-4dd6-b3d8-74a9c21d0c6e"
    MERGE_STRATEGY = "fa4e907d-c16b-4a4c-9dfa-4916e5d171ab"
    UNKNOWN = "unknown"

    @classmethod
    def from_type_id(cls, type_id: str | None) -> PolicyKind:
        if not type_id:
            return cls.UNKNOWN
        try:
            return cls(type_id.lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class PolicyScope:
    """One branch (or branch pattern) a policy applies to."""

    ref_name: str | None
    match_kind: str | None = None
    repository_id: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PolicyScope:
        return cls(
            ref_name=data.get("refName"),
            match_kind=data.get("matchKind"),
            repository_id=data.get("repositoryId"),
        )


@dataclass(frozen=True)
class PolicySettings:
    """Settings bag of a branch policy. Which fields are meaningful depends on the kind."""

    build_definition_id: str | None = None
    display_name: str | None = None
    queue_on_source_update_only: bool = False
    manual_queue_only: bool = False
    valid_duration: float = 0.0
    minimum_approver_count: int | None = None
    creator_vote_counts: bool | None = None
    allow_downvotes: bool | None = None
    reset_on_source_push: bool | None = None
    require_vote_on_last_iteration: bool | None = None
    block_last_pusher_vote: bool | None = None
    scope: list[PolicyScope] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PolicySettings:
        build_definition_id = data.get("buildDefinitionId")
        return cls(
            build_definition_id=str(build_definition_id) if build_definition_id is not None else None,
            display_name=data.get("displayName"),
            queue_on_source_update_only=bool(data.get("queueOnSourceUpdateOnly", False)),
            manual_queue_only=bool(data.get("manualQueueOnly", False)),
            valid_duration=float(data.get("validDuration") or 0.0),
            minimum_approver_count=data.get("minimumApproverCount"),
            creator_vote_counts=data.get("creatorVoteCounts"),
            allow_downvotes=data.get("allowDownvotes"),
            reset_on_source_push=data.get("resetOnSourcePush"),
            require_vote_on_last_iteration=data.get("requireVoteOnLastIteration"),
            block_last_pusher_vote=data.get("blockLastPusherVote"),
            scope=[PolicyScope.from_api(s) for s in data.get("scope") or []],
        )


@dataclass(frozen=True)
class BranchPolicy:
    """An Azure DevOps branch policy configuration."""

    id: str
    kind: PolicyKind
    type_id: str
    type_display_name: str = ""
    enabled: bool = True
    settings: PolicySettings = field(default_factory=PolicySettings)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> BranchPolicy:
        policy_type: dict[str, Any] = data.get("type") or {}
        type_id = policy_type.get("id") or ""
        return cls(
            id=str(data.get("id", "")),
            kind=PolicyKind.from_type_id(type_id),
            type_id=type_id,
            type_display_name=policy_type.get("displayName") or "",
            enabled=bool(data.get("isEnabled", False)),
            settings=PolicySettings.from_api(data.get("settings") or {}),
        )


class PullRequestStatus(StrEnum):
    """Pull request statuses known to Azure DevOps."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class Identity:
    """An Azure DevOps user."""

    display_name: str | None = None
    unique_name: str | None = None
    id: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> Identity | None:
        if not data:
            return None
        return cls(
            display_name=data.get("displayName"),
            unique_name=data.get("uniqueName"),
            id=data.get("id"),
        )


@dataclass(frozen=True)
class PullRequest:
    """An Azure DevOps pull request."""

    id: int
    title: str
    status: str
    description: str | None = None
    created_by: Identity | None = None
    creation_date: dt.datetime | None = None
    closed_date: dt.datetime | None = None
    source_ref_name: str | None = None
    target_ref_name: str | None = None
    merge_status: str | None = None
    url: str = ""
    repository_name: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PullRequest:
        repository: dict[str, Any] = data.get("repository") or {}
        return cls(
            id=int(data["pullRequestId"]),
            title=data.get("title") or "",
            status=data.get("status") or "",
            description=data.get("description"),
            created_by=Identity.from_api(data.get("createdBy")),
            creation_date=parse_timestamp(data.get("creationDate")),
            closed_date=parse_timestamp(data.get("closedDate")),
            source_ref_name=data.get("sourceRefName"),
            target_ref_name=data.get("targetRefName"),
            merge_status=data.get("mergeStatus"),
            url=data.get("url") or "",
            repository_name=repository.get("name"),
        )


@dataclass(frozen=True)
class Comment:
    """A comment inside a pull request thread."""

    id: int
    content: str | None
    author: Identity | None = None
    published_date: dt.datetime | None = None
    comment_type: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Comment:
        return cls(
            id=int(data.get("id", 0)),
            content=data.get("content"),
            author=Identity.from_api(data.get("author")),
            published_date=parse_timestamp(data.get("publishedDate")),
            comment_type=data.get("commentType"),
        )


@dataclass(frozen=True)
class CommentThread:
    """A pull request discussion thread: an ordered list of comments."""

    id: int
    comments: list[Comment] = field(default_factory=list)
    status: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CommentThread:
        return cls(
            id=int(data.get("id", 0)),
            comments=[Comment.from_api(c) for c in data.get("comments") or []],
            status=data.get("status"),
        )


@dataclass(frozen=True)
class RequiredStatusChecks:
    """Status checks that must pass before merging."""

    contexts: list[str]
    strict: bool = True


@dataclass(frozen=True)
class RequiredPullRequestReviews:
    """Pull request review requirements."""

    required_approving_review_count: int
    require_code_owner_reviews: bool = False
    dismiss_stale_reviews: bool | None = None
    require_last_push_approval: bool | None = None


@dataclass(frozen=True)
class BranchProtection:
    """GitHub branch protection descriptor. ``None`` fields are omitted on apply."""

    required_status_checks: RequiredStatusChecks | None = None
    required_pull_request_reviews: RequiredPullRequestReviews | None = None
    required_linear_history: bool | None = None
    allow_force_pushes: bool | None = None
    allow_deletions: bool | None = None
    required_conversation_resolution: bool | None = None

    def to_protection_kwargs(self) -> dict[str, Any]:
        """Render as keyword arguments for PyGithub's ``Branch.edit_protection``."""
        kwargs: dict[str, Any] = {}

        if self.required_status_checks is not None:
            kwargs["strict"] = self.required_status_checks.strict
            kwargs["contexts"] = list(self.required_status_checks.contexts)

        reviews = self.required_pull_request_reviews
        if reviews is not None:
            kwargs["required_approving_review_count"] = reviews.required_approving_review_count
            kwargs["require_code_owner_reviews"] = reviews.require_code_owner_reviews
            if reviews.dismiss_stale_reviews is not None:
                kwargs["dismiss_stale_reviews"] = reviews.dismiss_stale_reviews
            if reviews.require_last_push_approval is not None:
                kwargs["require_last_push_approval"] = reviews.require_last_push_approval

        for name in (
            "required_linear_history",
            "allow_force_pushes",
            "allow_deletions",
            "required_conversation_resolution",
        ):
            value: bool | None = getattr(self, name)
            if value is not None:
                kwargs[name] = value

        return kwargs


@dataclass(frozen=True)
class SourceRepository:
    """Coordinates of the Azure DevOps repository."""

    org: str
    project: str
    name: str

    def __str__(self) -> str:
        return f"{self.org}/{self.project}/{self.name}"


@dataclass(frozen=True)
class TargetRepository:
    """Coordinates of the GitHub repository."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name
