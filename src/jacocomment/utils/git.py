"""Git and GitHub API utilities for jacocomment.

This module provides utilities for interacting with Git repositories and the
GitHub API, used to locate the current pull request and upsert the coverage
comment on it.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
import shutil
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import requests

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

# GitHub API constants
GITHUB_API_BASE = "https://api.github.com"
_GITHUB_AUTH_ENV_KEY = "GITHUB_" + "TOKEN"
_REQUEST_TIMEOUT = 30
_COMMENTS_PER_PAGE = 100

# Expected number of parts when splitting "owner/repo"
_OWNER_REPO_PARTS = 2


def git_executable() -> str:
    """Resolve the full path to the ``git`` executable."""
    return shutil.which("git") or "git"


@dataclass
class GitHubPRInfo:
    """Information about a GitHub pull request."""

    owner: str
    """Repository owner (username or organization)."""

    repo: str
    """Repository name."""

    pr_number: int
    """Pull request number."""


class GitHubAPIError(Exception):
    """Exception raised when GitHub API operations fail."""


class GitHubAPI:
    """Client for the issue-comment endpoints the coverage comment lives on."""

    def __init__(self, token: str | None = None, api_base: str = GITHUB_API_BASE) -> None:
        """Create a client.

        Args:
            token: API token; falls back to ``GITHUB_TOKEN``.
            api_base: API root, for GitHub Enterprise installations.

        Raises:
            GitHubAPIError: If no token is available.
        """
        self._token = token or os.environ.get(_GITHUB_AUTH_ENV_KEY)
        if not self._token:
            raise GitHubAPIError(
                f"No GitHub token: set {_GITHUB_AUTH_ENV_KEY} or github.token in the config"
            )

        self._api_base = api_base.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _comments_url(self, pr_info: GitHubPRInfo) -> str:
        return (
            f"{self._api_base}/repos/{pr_info.owner}/{pr_info.repo}/"
            f"issues/{pr_info.pr_number}/comments"
        )

    def create_comment(self, pr_info: GitHubPRInfo, body: str) -> dict[str, Any]:
        """Post a new comment on the pull request."""
        result: dict[str, Any] = self._request(
            "POST", self._comments_url(pr_info), body={"body": body}
        ).json()
        return result

    def update_comment(self, pr_info: GitHubPRInfo, comment_id: int, body: str) -> dict[str, Any]:
        """Replace the body of an existing comment."""
        url = f"{self._api_base}/repos/{pr_info.owner}/{pr_info.repo}/issues/comments/{comment_id}"
        result: dict[str, Any] = self._request("PATCH", url, body={"body": body}).json()
        return result

    def iter_comments(self, pr_info: GitHubPRInfo) -> Iterator[dict[str, Any]]:
        """Yield every comment on the pull request, following ``Link: next`` pages.

        Raises:
            GitHubAPIError: If a page cannot be fetched.
        """
        url: str | None = f"{self._comments_url(pr_info)}?per_page={_COMMENTS_PER_PAGE}"
        while url:
            response = self._request("GET", url)
            yield from response.json()
            url = response.links.get("next", {}).get("url")

    def find_comment_by_marker(self, pr_info: GitHubPRInfo, marker: str) -> dict[str, Any] | None:
        """Return the first comment whose body contains ``marker``, or None."""
        for comment in self.iter_comments(pr_info):
            if marker in (comment.get("body") or ""):
                return comment
        return None

    def upsert_comment(self, pr_info: GitHubPRInfo, body: str, marker: str) -> dict[str, Any]:
        """Update the comment carrying ``marker``, or create it.

        The marker is prepended to ``body`` when missing so the next run finds
        the comment again.

        Raises:
            GitHubAPIError: If an API request fails.
        """
        if marker not in body:
            logger.warning("Marker '%s' not found in comment body. Adding it.", marker)
            body = f"{marker}\n{body}"

        existing = self.find_comment_by_marker(pr_info, marker)
        if existing:
            logger.info("Updating existing comment %d", existing["id"])
            return self.update_comment(pr_info, existing["id"], body)

        logger.info("Creating new comment")
        return self.create_comment(pr_info, body)

    def _request(
        self, method: str, url: str, *, body: dict[str, Any] | None = None
    ) -> requests.Response:
        try:
            response = requests.request(
                method, url, json=body, headers=self._headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise GitHubAPIError(f"{method} request failed: {exc}") from exc
        return response


def get_pr_info_from_env() -> GitHubPRInfo | None:
    """Get PR information from GitHub Actions environment variables.

    Returns:
        GitHubPRInfo if running in a PR context, None otherwise.
    """
    github_repository = os.environ.get("GITHUB_REPOSITORY")
    github_event_name = os.environ.get("GITHUB_EVENT_NAME")
    github_ref = os.environ.get("GITHUB_REF")

    if not github_repository or github_event_name not in {"pull_request", "pull_request_target"}:
        return None

    parts = github_repository.split("/")
    if len(parts) != _OWNER_REPO_PARTS:
        return None

    owner, repo = parts

    # GITHUB_REF format: refs/pull/<number>/merge
    if not github_ref or not github_ref.startswith("refs/pull/"):
        return None

    try:
        pr_number = int(github_ref.split("/")[2])
    except (IndexError, ValueError):
        return None

    return GitHubPRInfo(owner=owner, repo=repo, pr_number=pr_number)


def compute_comment_marker(prefix: str) -> str:
    """Generate a hidden HTML marker identifying a comment across updates.

    Args:
        prefix: Prefix for the marker (e.g., "jacocomment:coverage").

    Returns:
        HTML comment marker string.
    """
    hash_str = hashlib.sha256(prefix.encode()).hexdigest()[:8]
    return f"<!-- {prefix}:{hash_str} -->"


class GitOperationError(Exception):
    """Exception raised when git operations fail."""


_GIT_REF_MAX_LENGTH = 255
_GIT_REF_UNSAFE = re.compile(r"[\x00-\x1f\x7f :\?\*\[\]\\;|&$`()<>{}!#'\"]")


def validate_git_ref(ref: str) -> None:
    """Validate a git ref to prevent injection and malformed inputs.

    Raises:
        GitOperationError: If the ref is invalid.
    """
    if not ref:
        raise GitOperationError("Git ref must not be empty")
    if len(ref) > _GIT_REF_MAX_LENGTH:
        raise GitOperationError(f"Git ref exceeds {_GIT_REF_MAX_LENGTH} characters")
    if _GIT_REF_UNSAFE.search(ref):
        raise GitOperationError(f"Git ref contains unsafe characters: {ref!r}")
    if ref.startswith("-"):
        raise GitOperationError("Git ref must not start with a dash")
    if ".." in ref:
        raise GitOperationError("Git ref must not contain '..'")
