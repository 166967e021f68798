#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your full rights.
#
"""General utilities used by wunderfill."""
