# Licensed under the GPLv3 - see LICENSE
"""Basecodec format registry.

A format is a module that defines an ``ALPHABET`` (an instance of
`~basecodec.base.alphabet.Alphabet`), as well as ``open`` and ``info``
functions, like those created with
:meth:`~basecodec.base.base.FileOpener.create` and
:meth:`~basecodec.base.base.FileInfo.create`.  The built-in formats are
registered on import.  Other packages can provide formats through
'basecodec.io' entry points pointing to such a module (e.g.,
'base32crockford = mypackage.crockford'); these are looked for the first
time a format is not found, and can be looked for again with `refresh`.
Entry points that cannot be loaded, or do not point to a usable format,
are skipped with a warning.

Registered formats are available as attributes of this module.

Attributes
----------
FORMATS : list
    Available encodings, in the order in which they are tried when
    determining the format of a file.  Alphabets that are subsets of
    others come first.
"""
import importlib
import warnings

import entrypoints

from ..base.alphabet import Alphabet


__all__ = ['BUILTIN_FORMATS', 'ENTRY_POINT_GROUP', 'check_format',
           'register', 'unregister', 'refresh', 'get_format']

BUILTIN_FORMATS = ('base32', 'base32hex', 'base64', 'base64url')
"""Formats provided by basecodec itself, in order of strictness."""

ENTRY_POINT_GROUP = 'basecodec.io'

_formats = {}
"""Registered format modules, in the order they will be tried."""
_rejected = {}
"""Entry points that could not be used, with the reason why."""
_discovered = False


def check_format(module):
    """Check that a module can be used as an encoding format.

    Raises
    ------
    TypeError
        If ``ALPHABET`` is not an `~basecodec.base.alphabet.Alphabet`, or
        ``open`` or ``info`` is missing or not callable.
    """
    name = getattr(module, '__name__', repr(module))
    alphabet = getattr(module, 'ALPHABET', None)
    if not isinstance(alphabet, Alphabet):
        raise TypeError(f"{name} does not define an Alphabet as ALPHABET.")

    for attr in ('open', 'info'):
        if not callable(getattr(module, attr, None)):
            raise TypeError(f"{name} does not define an '{attr}' function.")


def register(name, module):
    """Add a format module under the given name.

    The module is checked with `check_format`, and will be tried after all
    formats registered before it.
    """
    if name in _formats:
        raise ValueError(f"format {name!r} is already registered.")
    check_format(module)
    _formats[name] = module


def unregister(name):
    """Remove a format, returning its module."""
    try:
        return _formats.pop(name)
    except KeyError:
        raise ValueError(f"format {name!r} is not registered.") from None


def refresh():
    """Register any new formats from 'basecodec.io' entry points.

    Entry points rejected before are tried again.
    """
    global _discovered
    _discovered = True
    _rejected.clear()
    for name, entry in entrypoints.get_group_named(ENTRY_POINT_GROUP).items():
        if name in _formats:
            continue

        try:
            register(name, entry.load())
        except Exception as exc:
            _rejected[name] = exc
            warnings.warn(f"entry point {name!r} ({entry.module_name}) cannot "
                          f"be used as a format and is skipped: {exc}")


def get_format(name):
    """Get the module for the given format.

    Raises
    ------
    ValueError
        If no format of that name is registered or can be found among the
        entry points.
    """
    if name not in _formats and not _discovered:
        refresh()
    try:
        return _formats[name]
    except KeyError:
        raise ValueError(f"unknown format {name!r}; available are "
                         f"{list(_formats)}.") from None


def __getattr__(attr):
    """Get the list of formats, or a format module, by name."""
    if not attr.startswith('_'):
        if not _discovered:
            refresh()
        if attr == 'FORMATS':
            return list(_formats)
        if attr in _formats:
            return _formats[attr]

    raise AttributeError(f"module {__name__!r} has no attribute {attr!r}")


def __dir__():
    if not _discovered:
        refresh()
    return sorted(set(globals()).union(_formats, ['FORMATS']))


for _name in BUILTIN_FORMATS:
    register(_name, importlib.import_module('basecodec.' + _name))
del _name
