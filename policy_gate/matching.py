"""Package identity matching against policy lists."""

from typing import Iterable

NAMESPACE_SEPARATOR = ":"


def _identity_matches(package_name: str, policy_entry: str) -> bool:
    if package_name == policy_entry:
        return True

    # group:artifact[:version] identities (Maven, Gradle) match on group and artifact
    if NAMESPACE_SEPARATOR in package_name and NAMESPACE_SEPARATOR in policy_entry:
        pkg_parts = package_name.split(NAMESPACE_SEPARATOR)
        policy_parts = policy_entry.split(NAMESPACE_SEPARATOR)
        return pkg_parts[:2] == policy_parts[:2]

    return False


def matches_policy(package_name: str, policy_packages: Iterable[str]) -> bool:
    """
    Check whether a reported package is listed in a policy.

    Args:
        package_name: Package identity as reported by the dependency scan
        policy_packages: Entries of one ecosystem's policy list

    Returns:
        True if any entry matches
    """
    return any(_identity_matches(package_name, entry) for entry in policy_packages)
