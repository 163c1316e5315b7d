"""GitHub comment reporter for posting the coverage table to a pull request.

The comment carries a hidden marker so that later runs on the same pull
request update it instead of adding a new one.
"""

from __future__ import annotations

import logging

from jacocomment.utils.git import (
    GitHubAPI,
    GitHubAPIError,
    GitHubPRInfo,
    compute_comment_marker,
    get_pr_info_from_env,
)

logger = logging.getLogger(__name__)

COMMENT_MARKER_PREFIX = "jacocomment:coverage"


class GitHubCommentReporter:
    """Posts the rendered coverage comment on a GitHub pull request."""

    def __init__(self, pr_info: GitHubPRInfo, github_token: str | None = None) -> None:
        """Initialize the GitHub comment reporter.

        Args:
            pr_info: Pull request to comment on.
            github_token: GitHub personal access token. If not provided,
                will try to read from GITHUB_TOKEN environment variable.

        Raises:
            GitHubAPIError: If no token is available.
        """
        self._pr_info = pr_info
        self._api = GitHubAPI(token=github_token)
        self.marker = compute_comment_marker(COMMENT_MARKER_PREFIX)

    @property
    def pr_info(self) -> GitHubPRInfo:
        return self._pr_info

    def publish(self, body: str) -> dict[str, str]:
        """Create or update the coverage comment.

        Returns:
            Dict with status and comment URL.

        Raises:
            GitHubAPIError: If posting the comment fails.
        """
        logger.info(
            "Posting coverage table to PR #%d in %s/%s",
            self._pr_info.pr_number,
            self._pr_info.owner,
            self._pr_info.repo,
        )

        result = self._api.upsert_comment(self._pr_info, body, self.marker)

        logger.info("Successfully posted comment: %s", result.get("html_url"))
        return {
            "status": "success",
            "comment_url": result.get("html_url", ""),
        }


def create_reporter_from_env(github_token: str | None = None) -> GitHubCommentReporter:
    """Create a reporter for the pull request described by GitHub Actions variables.

    Raises:
        GitHubAPIError: If not running for a pull request or no token is available.
    """
    pr_info = get_pr_info_from_env()
    if pr_info is None:
        raise GitHubAPIError(
            "Not running in a GitHub Actions pull request context "
            "(GITHUB_REPOSITORY, GITHUB_EVENT_NAME, GITHUB_REF)"
        )
    return GitHubCommentReporter(pr_info, github_token=github_token)
