#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your full rights.
#
"""Package wunderfill, which fills gaps in a Weather Underground station's record
using the archive of a local weather station logger."""

__version__ = "1.0.0"

# Set to true for extra debug information:
debug = False

# Exit return codes
CMD_ERROR = 2
CONFIG_ERROR = 3
IO_ERROR = 4


# =============================================================================
#           Define possible exceptions that could get thrown.
# =============================================================================

class ViolatedPrecondition(ValueError):
    """Exception thrown when a function is called with violated
    preconditions."""


class MalformedResponse(ValueError):
    """Exception thrown when a server returns a body that cannot be interpreted."""
