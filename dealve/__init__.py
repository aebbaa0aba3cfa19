# SPDX-License-Identifier: MIT
"""dealve: browse IsThereAnyDeal game deals from the terminal."""

from dealve._version import __version__

__all__ = ["__version__"]
