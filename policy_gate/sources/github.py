"""Policy lists fetched from a GitHub repository."""

import logging
from typing import Callable, Iterable, List, Optional, Set

import requests

from ..models import FetchResult
from .base import PolicySource, parse_policy_text, policy_filename

logger = logging.getLogger(__name__)

RAW_CONTENT_HOST = "https://raw.githubusercontent.com"

# Remote directories cannot be listed, so discovery probes these names
COMMON_ECOSYSTEMS = [
    "maven",
    "npm",
    "pip",
    "go",
    "gradle",
    "cargo",
    "composer",
    "nuget",
    "rubygems",
]


class GitHubPolicySource(PolicySource):
    """Fetches ``<path>/<ecosystem>.txt`` from a repository at a given ref."""

    kind = "github"

    def __init__(
        self,
        repo: str,
        ref: str = "main",
        path: str = ".github/policies",
        token: str = "",
        timeout: float = 10.0,
        extra_ecosystems: Optional[Iterable[str]] = None,
    ):
        self.repo = repo.strip("/")
        self.ref = ref
        self.path = path.strip("/")
        self.timeout = timeout
        self.headers = {}
        if token:
            self.headers["Authorization"] = f"token {token}"
        self.candidates = self._candidates(extra_ecosystems or [])

    @staticmethod
    def _candidates(extra: Iterable[str]) -> List[str]:
        candidates = []
        for ecosystem in list(COMMON_ECOSYSTEMS) + [e.lower() for e in extra]:
            if ecosystem not in candidates:
                candidates.append(ecosystem)
        return candidates

    def url_for(self, ecosystem: str) -> str:
        return f"{RAW_CONTENT_HOST}/{self.repo}/{self.ref}/{self.path}/{policy_filename(ecosystem)}"

    def exists(self, ecosystem: str) -> bool:
        """Probe whether a policy file exists for ``ecosystem``."""
        url = self.url_for(ecosystem)
        try:
            response = requests.head(url, headers=self.headers, timeout=self.timeout, allow_redirects=True)
        except requests.exceptions.RequestException as e:
            logger.debug(f"Probe failed for {ecosystem}: {e}")
            return False
        return response.status_code == 200

    def discover(self, map_fn: Callable = map) -> Set[str]:
        found = map_fn(self.exists, self.candidates)
        ecosystems = {ecosystem for ecosystem, ok in zip(self.candidates, found) if ok}
        logger.info(f"Discovered {len(ecosystems)} ecosystem policy files from GitHub")
        return ecosystems

    def fetch(self, ecosystem: str) -> FetchResult:
        url = self.url_for(ecosystem)
        logger.debug(f"Fetching policy for {ecosystem} from {url}")

        try:
            response = requests.get(url, headers=self.headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            message = f"Error fetching {policy_filename(ecosystem)}: {e}"
            logger.error(message)
            return FetchResult(ecosystem=ecosystem, error=message)

        if response.status_code != 200:
            message = f"Failed to fetch {policy_filename(ecosystem)} from GitHub: {response.status_code}"
            logger.error(message)
            return FetchResult(ecosystem=ecosystem, error=message)

        return FetchResult(ecosystem=ecosystem, packages=parse_policy_text(response.text))
