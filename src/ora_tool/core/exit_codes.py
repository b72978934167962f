"""Standard exit codes for ORA Tool.

Exit codes follow Unix conventions. Values match the ones used by the
other SQL tools in this family so wrappers can share handling.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for ORA Tool commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    USAGE_ERROR = 2
    INPUT_ERROR = 3
    NETWORK_ERROR = 5
    CONFIG_ERROR = 7
