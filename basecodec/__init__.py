# Licensed under the GPLv3 - see LICENSE
"""Streaming binary-to-text codecs (RFC 4648 base64, base32 and variants)."""

from importlib import metadata

from .core import file_info, open  # noqa
from .base.encoding import MalformedStreamError  # noqa

try:
    __version__ = metadata.version('basecodec')
except metadata.PackageNotFoundError:  # Not installed, e.g., source checkout.
    __version__ = ''

# Define minima for the documentation, but do not bother to explicitly check.
__minimum_python_version__ = '3.10'
__minimum_astropy_version__ = '5.1'
__minimum_numpy_version__ = '1.24'
