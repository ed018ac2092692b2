"""Policy lists read from a local directory."""

import logging
from pathlib import Path
from typing import Callable, Set, Union

from ..models import FetchResult
from .base import POLICY_EXTENSION, RESERVED_CONFIG_FILE, PolicySource, parse_policy_text, policy_filename

logger = logging.getLogger(__name__)


class LocalPolicySource(PolicySource):
    """Reads ``<ecosystem>.txt`` files from a policy directory."""

    kind = "local"

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def discover(self, map_fn: Callable = map) -> Set[str]:
        """List ecosystems that have a policy file in the directory."""
        if not self.directory.is_dir():
            logger.error(f"Policy directory not found: {self.directory}")
            return set()

        ecosystems = {
            path.name[: -len(POLICY_EXTENSION)]
            for path in self.directory.iterdir()
            if path.is_file()
            and path.name.endswith(POLICY_EXTENSION)
            and path.name != RESERVED_CONFIG_FILE
        }
        logger.info(
            f"Discovered {len(ecosystems)} ecosystem policy files from local directory: "
            f"{', '.join(sorted(ecosystems))}"
        )
        return ecosystems

    def fetch(self, ecosystem: str) -> FetchResult:
        file_path = self.directory / policy_filename(ecosystem)

        if not file_path.exists():
            message = f"Policy file not found: {file_path}"
            logger.error(message)
            return FetchResult(ecosystem=ecosystem, error=message)

        try:
            content = file_path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            message = f"Error reading {file_path}: {e}"
            logger.error(message)
            return FetchResult(ecosystem=ecosystem, error=message)

        return FetchResult(ecosystem=ecosystem, packages=parse_policy_text(content))
