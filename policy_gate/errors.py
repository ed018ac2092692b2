"""Exceptions raised by the policy gate."""


class PolicyGateError(Exception):
    """Base class for policy gate errors."""


class InputError(PolicyGateError):
    """The vulnerable-changes input is not valid JSON or has the wrong shape."""


class ConfigError(PolicyGateError):
    """A settings file is missing or cannot be parsed."""
