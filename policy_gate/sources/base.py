"""Shared pieces of the policy sources."""

from typing import Callable, List, Set

from ..models import FetchResult

POLICY_EXTENSION = ".txt"
# Reserved for gate settings, never an ecosystem
RESERVED_CONFIG_FILE = "config.txt"


def parse_policy_text(text: str) -> List[str]:
    """Split policy file content into package identities, dropping blanks and comments."""
    packages = []
    text = text.lstrip("\ufeff")
    for line in text.split("\n"):
        line = line.strip()
        if line and not line.startswith("#"):
            packages.append(line)
    return packages


def policy_filename(ecosystem: str) -> str:
    return f"{ecosystem}{POLICY_EXTENSION}"


class PolicySource:
    """Where policy lists come from.

    ``fetch`` must never raise for retrieval problems: it reports them in the
    returned FetchResult with an empty package list.
    """

    kind = "base"

    def discover(self, map_fn: Callable = map) -> Set[str]:
        raise NotImplementedError

    def fetch(self, ecosystem: str) -> FetchResult:
        raise NotImplementedError
