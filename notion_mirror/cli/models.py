"""Data models for CLI operations."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes of the notion-mirror command.

    - SUCCESS (0): Run completed, including runs where some objects failed
      (those are reported in the summary)
    - GENERAL_ERROR (1): Configuration, filesystem or usage error
    - AUTH_ERROR (3): Missing or rejected integration token
    - NETWORK_ERROR (4): Notion API unreachable or failing while enumerating

    Code 2 is left to the argument parser for usage errors.
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 3
    NETWORK_ERROR = 4
