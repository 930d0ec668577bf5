# Licensed under the GPLv3 - see LICENSE
"""Provide a base class for "info" properties.

Loosely based on `~astropy.utils.data_info.DataInfo`.
"""
import copy
import operator

import numpy as np

from .alphabet import FOREIGN, PADDING
from .encoding import MalformedStreamError, byte_array, check_groups


__all__ = ['info_item', 'InfoBase', 'FileReaderInfo', 'NoInfo']


SCAN_CHUNK_SIZE = 1 << 16
"""Number of characters read at a time when gathering file information."""


class info_item:
    """Like a lazy property, evaluated only once.

    Can be used as a decorator.

    It replaces itself with the evaluation of the function, i.e.,
    it is not a data descriptor.

    Any errors encountered during the evaluation are stored in the
    instances ``errors`` dict.

    Parameters
    ----------
    attr : str or callable, optional
        If a string, assumes we will get that attribute from ``needs``.
        If a callable, it will be called with the instance as its
        argument to calculate the value (i.e., it will behave like a
        property). If ``attr`` is not given, its is set after the fact
        by applying the instance to a function (i.e., using it as a
        decorator), or by defining it as an attribute of a class.
    needs : str or tuple of str
        The attributes that need to be present to get or calculate
        ``attr``.  If ``attr`` is a string, this should be where the
        attribute should be gotten from (e.g., '_parent'); if not given,
        the attribute will simply be set to ``default``.
    default : value, optional
        The value to return if the needs are not met.  Default: `None`.
    doc : str, optional
        Docstring of the descriptor.  If not given will be taken from
        ``attr`` if a function, otherwise constructed.
    copy : bool
        Whether the copy the value if it is retrieved.  This can be
        useful, e.g., if the value is expected to be a `dict` and an
        independent copy should be made.
    """
    _fget = None

    def __init__(self, attr=None, *, needs=(), default=None, doc=None,
                 copy=False):
        needs = tuple(needs) if isinstance(needs, (tuple, list)) else (needs,)
        self.needs = needs
        self.default = default
        self.copy = copy
        self._init_wrapup(attr, doc)

    def _init_wrapup(self, attr, doc=None):
        # Finish initialization, or update from __set_name__ or __call__
        if callable(attr):
            self._fget = attr
            self.name = attr.__name__
            doc = attr.__doc__
        elif attr is not None:
            self.name = attr
            if self._fget is None and self.needs:
                full_attr = '.'.join(self.needs+(attr,))
                self._fget = operator.attrgetter(full_attr)
                doc = "Link to " + full_attr.replace('_parent', 'parent')
        if doc and self.__doc__ is self.__class__.__doc__:
            self.__doc__ = doc

    def __set_name__(self, owner, name):
        self._init_wrapup(name)

    def __call__(self, func):
        """For use as a decorator when not yet fully initialized."""
        if hasattr(self, 'name'):
            raise TypeError(f"assigned {self.__class__.__name__!r}"
                            f"is not callable")
        self._init_wrapup(func)
        return self

    def __get__(self, instance, cls=None):
        if instance is None:
            return self

        if self._fget and all(getattr(instance, need, None) is not None
                              for need in self.needs):
            try:
                value = self._fget(instance)
            except Exception as exc:
                instance.errors[self.name] = exc
                value = self.default
            else:
                if value is None:
                    value = self.default

        else:
            value = self.default

        if self.copy:
            value = copy.copy(value)

        setattr(instance, self.name, value)
        return value

    def __str__(self):
        short_doc = self.__doc__.split('\n')[0]
        return f"{self.name}: {short_doc}"

    def __repr__(self):
        return f"<{self.__class__.__name__} {str(self)}>"


class InfoBase:
    """Container providing a standardized interface to file information.

    In order to ensure that information is always returned, all access
    to the parent should be via `~basecodec.base.file_info.info_item`,
    which ensures that any errors are stored in ``self.errors``.

    The instance evaluates as `True` if the underlying file is of the right
    format, and can thus be decoded.

    Parameters
    ----------
    parent : instance, optional
        Instance of the file reader the ``info`` instance is attached too.
        `None` if it is the class version.
    """

    attr_names = ()
    """Attributes that the container provides."""

    _parent = None
    closed = info_item(needs='_parent', doc='Whether parent is closed')

    def __init__(self, parent=None):
        if parent is not None:
            self._parent = parent
            if not self.closed:
                for attr in self.attr_names:
                    getattr(self, attr)

    def _up_to_date(self):
        """Determine whether the information we have stored is up to date."""
        if not hasattr(self, '_parent_attrs'):
            # Set it on the class since it cannot change.
            cls = self.__class__
            cls._parent_attrs = tuple(
                attr for attr in dir(cls)
                if not attr.startswith('_')
                and getattr(getattr(cls, attr), 'needs', ()) == ('_parent',))

        return all(getattr(self, attr) == getattr(self._parent, attr, None)
                   for attr in self._parent_attrs)

    def __get__(self, instance, owner_cls):
        if instance is None:
            return self

        info = instance.__dict__.get('info')
        if info is None or not info._up_to_date():
            info = instance.__dict__['info'] = self.__class__(parent=instance)

        return info

    def __delete__(self, instance):
        # Defining __delete__ makes us a data descriptor, so that __get__
        # is called even if "info" is present in instance.__dict__.
        instance.__dict__.pop('info', None)

    def __bool__(self):
        return self.format is not None

    def __call__(self):
        """Create a dict with file information.

        This includes information about checks done, as well as possible
        warnings and errors.
        """
        info = {}
        for attr in self.attr_names:
            value = getattr(self, attr)
            if not (value is None or (isinstance(value, dict)
                                      and value == {})):
                info[attr] = value

        return info

    def __repr__(self):
        if self._parent is None:
            return '\n'.join(
                [f"{self.__class__.__name__} (unbound) with attributes:"]
                + [f"  {getattr(self.__class__, attr)}"
                   for attr in self.attr_names])

        if self.closed:
            return "File closed. Not parsable."

        result = [self._parent.__class__.__name__.replace('Reader', '')
                  + ' information:']
        for attr in self.attr_names:
            value = getattr(self, attr)
            if isinstance(value, dict):
                prefix = f"\n{attr}: "
                spaces = ' ' * (len(attr)+2)
                for key, val in value.items():
                    str_val = str(val) or repr(val)
                    result.append(f"{prefix} {key}: {str_val}")
                    prefix = spaces

            elif value is not None:
                result.append(f"{attr} = {value}")

        if not self:
            result.append('\nNot parsable. Wrong format?')

        return '\n'.join(result)


class FileReaderInfo(InfoBase):
    """Standardized information on codec file readers.

    The file is scanned once, in chunks, counting symbols, padding and
    foreign characters and checking the padding of every complete group.
    The file position is restored afterwards.

    Examples
    --------
    The most common use is simply to print information::

        >>> import io
        >>> from basecodec import base64
        >>> fh = base64.open(io.BytesIO(b'SGVsbG8=\\n'), 'rb')
        >>> fh.info
        CodecFile information:
        format = base64
        number_of_symbols = 7
        number_of_padding = 1
        number_of_foreign = 1
        number_of_groups = 2
        decoded_nbytes = 5
        readable = True
        <BLANKLINE>
        checks:  decodable: True
                 clean: True
        >>> fh.close()
    """
    attr_names = ('format', 'number_of_symbols', 'number_of_padding',
                  'number_of_foreign', 'number_of_groups', 'decoded_nbytes',
                  'readable', 'checks', 'errors', 'warnings')
    """Attributes that the container provides."""

    alphabet = info_item(needs='_parent', doc='Alphabet of the reader.')

    checks = info_item(default={}, copy=True,
                       doc='dict of checks for readability.')
    errors = info_item(default={}, copy=True,
                       doc='dict of attributes that raised errors.')
    warnings = info_item(default={}, copy=True,
                         doc='dict of attributes that gave warnings.')

    @info_item(needs='alphabet')
    def scan(self):
        """Counts gathered in one pass over the file, read in chunks.

        Complete groups are checked as they are found, but not decoded.
        """
        alphabet = self.alphabet
        nsymbols = alphabet.group_nsymbols
        scan = {'symbols': 0, 'padding': 0, 'foreign': 0,
                'nbytes': 0, 'error': None}
        foreign = np.empty(0, dtype=np.uint8)
        pending = np.empty(0, dtype=np.int8)
        ngroup = 0
        with self._parent.temporary_offset(0) as fh:
            while True:
                raw = fh.read(SCAN_CHUNK_SIZE)
                if not raw:
                    break
                if isinstance(raw, str):
                    raw = raw.encode('latin-1', errors='replace')
                raw = byte_array(raw)
                values = alphabet.decode_table[raw]
                is_foreign = values == FOREIGN
                scan['symbols'] += int((values >= 0).sum())
                scan['padding'] += int((values == PADDING).sum())
                scan['foreign'] += int(is_foreign.sum())
                foreign = np.union1d(foreign, raw[is_foreign])
                if scan['error'] is not None:
                    continue

                values = np.concatenate((pending, values[~is_foreign]))
                nvalue = len(values) - len(values) % nsymbols
                try:
                    nbytes = check_groups(
                        values[:nvalue].reshape(-1, nsymbols), alphabet,
                        first_group=ngroup)
                except MalformedStreamError as exc:
                    scan['error'] = exc
                else:
                    scan['nbytes'] += int(nbytes.sum())
                pending = values[nvalue:]
                ngroup += nvalue // nsymbols

        scan['unexpected'] = np.setdiff1d(foreign, _WHITESPACE).tobytes()
        return scan

    @info_item(needs='scan')
    def number_of_symbols(self):
        """Number of symbols from the alphabet, excluding padding."""
        return self.scan['symbols']

    @info_item(needs='scan')
    def number_of_padding(self):
        """Number of padding characters."""
        return self.scan['padding']

    @info_item(needs='scan')
    def number_of_foreign(self):
        """Number of characters ignored when decoding."""
        return self.scan['foreign']

    @info_item(needs='scan')
    def number_of_groups(self):
        """Number of groups of symbols, including padding."""
        nslot = self.number_of_symbols + self.number_of_padding
        number_of_groups, extra = divmod(nslot, self.alphabet.group_nsymbols)
        if extra:
            self.warnings['number_of_groups'] = (
                f"file ends with an incomplete group of {extra} symbols")
            return None
        return number_of_groups

    @info_item(needs='number_of_groups')
    def decoded_nbytes(self):
        """Number of bytes the file decodes to."""
        if self.scan['error'] is not None:
            raise self.scan['error']
        return self.scan['nbytes']

    @info_item(needs='scan', default=False)
    def clean(self):
        """Whether the only foreign characters are whitespace."""
        unexpected = self.scan['unexpected']
        if unexpected:
            self.warnings['clean'] = (
                "file contains characters outside of the {0} alphabet: {1!r}"
                .format(self.alphabet.name, unexpected))
            return False
        return True

    @info_item(needs='decoded_nbytes')
    def format(self):
        """The encoding of the file."""
        return self.alphabet.name if self.clean else None

    @info_item(needs='scan', default=False)
    def readable(self):
        """Whether the file can be decoded completely."""
        self.checks['decodable'] = self.decoded_nbytes is not None
        self.checks['clean'] = self.clean
        return all(bool(v) for v in self.checks.values())


_WHITESPACE = np.frombuffer(b' \t\n\r\x0b\x0c', dtype=np.uint8)


class NoInfo:
    """Info class for cases where no useful information was returned.

    Any instance evaluates as `False`, to indicate a file for which
    the information is given is not readable.

    Parameters
    ----------
    info : str
        Information that will be displayed using ``repr``.
    """
    def __init__(self, info=None):
        self.info = info

    def __bool__(self):
        return False

    def __repr__(self):
        return f"No Info: {self.info}"
