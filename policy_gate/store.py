"""Discovery and loading of per-ecosystem policy lists."""

import logging
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set

from .config import Settings
from .models import FetchResult
from .sources.base import PolicySource
from .sources.github import GitHubPolicySource
from .sources.local import LocalPolicySource

logger = logging.getLogger(__name__)


def build_source(settings: Settings) -> PolicySource:
    """Create the policy source selected by ``policy_source``."""
    if settings.policy_source == "github":
        if not settings.policy_repo:
            logger.warning("POLICY_SOURCE is github but POLICY_REPO is empty")
        return GitHubPolicySource(
            repo=settings.policy_repo,
            ref=settings.policy_ref,
            path=settings.policy_path,
            token=settings.policy_token,
            timeout=settings.policy_fetch_timeout,
            extra_ecosystems=settings.extra_ecosystems,
        )
    return LocalPolicySource(settings.local_policy_dir)


class PolicyStore:
    """Holds every ecosystem's policy list for one run.

    Ecosystems without a discovered policy file are absent from the mapping,
    which is not the same as being present with an empty list.
    """

    def __init__(self, source: Optional[PolicySource] = None, workers: int = 1):
        self.source = source
        self.workers = max(1, workers)
        self._policies: Dict[str, List[str]] = {}
        self._failures: Dict[str, str] = {}
        self._loaded = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "PolicyStore":
        return cls(build_source(settings), workers=settings.policy_fetch_workers)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[str]]) -> "PolicyStore":
        """Build an already-loaded store from in-memory policy lists."""
        store = cls()
        store._policies = {eco.lower(): list(packages) for eco, packages in mapping.items()}
        store._loaded = True
        return store

    @property
    def policies(self) -> Mapping[str, List[str]]:
        return MappingProxyType(self._policies)

    @property
    def failures(self) -> Mapping[str, str]:
        """Ecosystems whose policy could not be retrieved, with the reason."""
        return MappingProxyType(self._failures)

    def _map(self, fn: Callable, items: List[str]) -> List:
        if self.workers == 1 or len(items) < 2:
            return [fn(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            return list(executor.map(fn, items))

    def discover(self) -> Set[str]:
        if self.source is None:
            return set(self._policies)
        return self.source.discover(map_fn=self._map)

    def load_all(self) -> Mapping[str, List[str]]:
        """Fetch the policy list of every discovered ecosystem, once."""
        if self._loaded:
            return self.policies
        if self.source is None:
            self._loaded = True
            return self.policies

        logger.debug(f"Loading policies from {self.source.kind} source with {self.workers} worker(s)")
        ecosystems = sorted(self.discover())
        results: List[FetchResult] = self._map(self.source.fetch, ecosystems)

        # Results come back in ecosystem order whatever order the fetches finished in
        for result in results:
            self._policies[result.ecosystem] = result.packages
            if not result.ok:
                self._failures[result.ecosystem] = result.error
            logger.info(f"Loaded {len(result.packages)} packages for {result.ecosystem}")

        self._loaded = True
        return self.policies

    def __contains__(self, ecosystem: str) -> bool:
        return ecosystem in self._policies

    def __len__(self) -> int:
        return len(self._policies)
