"""Fatal conditions that stop a finalisation run, each with a stable exit code."""

from __future__ import annotations


class FinaliseError(Exception):
    """Base class for errors that abort the run."""

    exit_code = 1


class NotRootError(FinaliseError):
    exit_code = 1


class ConfigError(FinaliseError):
    exit_code = 1


class NoPackageManager(FinaliseError):
    exit_code = 2


class AmbiguousPackageManager(FinaliseError):
    exit_code = 3


class MissingInstallDir(FinaliseError):
    exit_code = 4


class MissingBinary(FinaliseError):
    exit_code = 5


class MissingUnit(FinaliseError):
    exit_code = 6


class UnresolvedUnit(FinaliseError):
    exit_code = 7


class MissingInitScript(FinaliseError):
    exit_code = 8


class MissingProfileScript(FinaliseError):
    exit_code = 9


class NoCaLocation(FinaliseError):
    exit_code = 10
