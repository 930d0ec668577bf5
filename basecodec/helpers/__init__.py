# Licensed under the GPLv3 - see LICENSE
"""Helpers that can be used around codec streams."""
