# Licensed under the GPLv3 - see LICENSE
"""Common classes for accessing encoded data as binary files and streams.

For access as binary files, the `~basecodec.base.base.CodecFileReader` and
`~basecodec.base.base.CodecFileWriter` classes wrap a raw filehandle and add
methods to read and write one group of symbols at a time.

For access as streams, the `~basecodec.base.base.CodecStreamReader` decodes
the raw file, giving access to the bytes it encodes via ``read``, while the
`~basecodec.base.base.CodecStreamWriter` encodes any bytes passed to its
``write`` method.  Both deal with the data in terms of groups, but any
number of bytes can be read or written.

The `~basecodec.base.base.FileOpener` and `~basecodec.base.base.FileInfo`
classes are to help create the ``open`` and ``info`` functions that are
expected to exist for each format.
"""
import io
import functools
import operator
import textwrap
import warnings
from contextlib import contextmanager

import numpy as np

from .alphabet import FOREIGN, Alphabet
from .encoding import (MalformedStreamError, byte_array,
                       encode_groups, encode_final, decode_groups)
from .group import EncodeGroup, DecodeGroup
from .file_info import FileReaderInfo, NoInfo


__all__ = ['MalformedStreamError', 'FileBase',
           'CodecFileReader', 'CodecFileWriter',
           'StreamBase', 'CodecStreamReader', 'CodecStreamWriter',
           'FileInfo', 'FileOpener']


DEFAULT_CHUNK_SIZE = 1 << 16
"""Number of bytes decoded at a time when reading a stream to its end."""


class FileBase:
    """File wrapper, used to add group methods to a file of encoded text.

    The underlying file is stored in ``fh_raw`` and all attributes that do not
    exist on the class itself are looked up on it.

    Parameters
    ----------
    fh_raw : filehandle
        Filehandle of the raw encoded file.
    alphabet : `~basecodec.base.alphabet.Alphabet`
        Alphabet the file is encoded with.
    """
    fh_raw = None

    def __init__(self, fh_raw, alphabet):
        if not isinstance(alphabet, Alphabet):
            raise TypeError("alphabet should be an Alphabet instance, not {0}."
                            .format(type(alphabet).__name__))
        self.fh_raw = fh_raw
        self.alphabet = alphabet

    def __getattr__(self, attr):
        """Try to get things on the current open file if it is not on self."""
        if not attr.startswith('_'):
            try:
                return getattr(self.fh_raw, attr)
            except AttributeError:
                pass
        #  __getattribute__ to raise appropriate error.
        return self.__getattribute__(attr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.fh_raw.close()

    @contextmanager
    def temporary_offset(self, offset=None, whence=0):
        """Context manager for temporarily seeking to another file position.

        To be used as part of a ``with`` statement::

            with fh_raw.temporary_offset() [as fh_raw]:
                with-block

        On exiting the ``with-block``, the file pointer is moved back to its
        original position.  As a convenience, one can pass on the offset
        to seek to when entering the context manager.  Parameters are as
        for :meth:`io.IOBase.seek`.
        """
        oldpos = self.tell()
        try:
            if offset is not None:
                self.seek(offset, whence)
            yield self
        finally:
            self.seek(oldpos)

    def __repr__(self):
        return ("{0}(fh_raw={1}, alphabet={2})"
                .format(self.__class__.__name__, self.fh_raw,
                        self.alphabet.name))


class CodecFileReader(FileBase):
    """Reader of encoded text, one group of symbols at a time.

    Parameters
    ----------
    fh_raw : filehandle
        Filehandle of the raw encoded file, opened in binary mode.
    alphabet : `~basecodec.base.alphabet.Alphabet`
        Alphabet the file is encoded with.
    """

    info = FileReaderInfo()

    def read_group(self, verify=True):
        """Read a single group of symbols.

        Characters that are not part of the alphabet (nor padding) are
        skipped.

        Parameters
        ----------
        verify : bool, optional
            Whether to check that the padding in the group is valid.
            Default: `True`.

        Returns
        -------
        group : `~basecodec.base.group.DecodeGroup`
            With its ``data`` attribute holding the decoded bytes.

        Raises
        ------
        EOFError
            If the end of the file was reached before the group started.
        ~basecodec.base.encoding.MalformedStreamError
            If the file ended in the middle of a group, or if the group
            is invalid (and ``verify`` is `True`).
        """
        return DecodeGroup.fromfile(self.fh_raw, self.alphabet,
                                    verify=verify)

    def __iter__(self):
        """Iterate over groups until the end of the file."""
        while True:
            try:
                yield self.read_group()
            except EOFError:
                return


class CodecFileWriter(FileBase):
    """Writer of encoded text, one group of symbols at a time.

    Parameters
    ----------
    fh_raw : filehandle
        Filehandle of the raw encoded file, opened in binary mode.
    alphabet : `~basecodec.base.alphabet.Alphabet`
        Alphabet with which to encode.
    """

    def write_group(self, group):
        """Write a single group of symbols.

        Parameters
        ----------
        group : `~basecodec.base.group.DecodeGroup` or bytes
            Group to write.  If bytes, it should hold at most a full group's
            worth of data, which will be encoded (with padding if needed).
        """
        if not isinstance(group, DecodeGroup):
            group = DecodeGroup.fromdata(group, self.alphabet)
        elif group.alphabet != self.alphabet:
            raise ValueError("cannot write {0} group to {1} file."
                             .format(group.alphabet.name, self.alphabet.name))
        return group.tofile(self.fh_raw)


class StreamBase:
    """Encoded file wrapper, allowing access as a stream of bytes.

    Common methods between stream readers and writers.  The raw file can
    be binary, or text (in which case symbols are read or written as
    `str`).

    Parameters
    ----------
    fh_raw : filehandle
        Raw file holding the encoded text.
    alphabet : `~basecodec.base.alphabet.Alphabet`
        Alphabet of the encoded text.
    """

    def __init__(self, fh_raw, alphabet):
        if not isinstance(alphabet, Alphabet):
            raise TypeError("alphabet should be an Alphabet instance, not {0}."
                            .format(type(alphabet).__name__))
        self.fh_raw = fh_raw
        self.alphabet = alphabet
        # Text files, and wrappers around them, have an encoding.
        self._text = hasattr(fh_raw, 'encoding')
        self.offset = 0

    def tell(self):
        """Number of decoded bytes read or written so far."""
        return self.offset

    def seekable(self):
        return False

    def __getattr__(self, attr):
        """Try to get things on the current open file if it is not on self."""
        if attr in {'closed', 'name'}:
            return getattr(self.fh_raw, attr)
        #  __getattribute__ to raise appropriate error.
        return self.__getattribute__(attr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.fh_raw.close()

    def __repr__(self):
        return ("<{s.__class__.__name__} name={name} alphabet={s.alphabet.name}"
                " offset={s.offset}>"
                .format(s=self, name=getattr(self.fh_raw, 'name', None)))


class CodecStreamReader(StreamBase):
    """Decoder of encoded text, giving access to the underlying bytes.

    Parameters
    ----------
    fh_raw : filehandle
        Raw file holding the encoded text.
    alphabet : `~basecodec.base.alphabet.Alphabet`
        Alphabet of the encoded text.
    chunk_size : int, optional
        Number of bytes to decode at a time when reading to the end.

    Notes
    -----
    Characters that are neither part of the alphabet nor the padding
    character are ignored, so that, e.g., line breaks can be present.

    The reader never reads further in the raw file than needed to complete
    the groups required to satisfy a given request, so the raw file can be
    used further once the encoded data are exhausted.  For a raw file which
    contains nothing but the encoded text, it is the padding at the end of
    the last group that determines the number of bytes.
    """

    def __init__(self, fh_raw, alphabet, *, chunk_size=DEFAULT_CHUNK_SIZE):
        super().__init__(fh_raw, alphabet)
        self.chunk_size = operator.index(chunk_size)
        if self.chunk_size <= 0:
            raise ValueError("chunk_size should be positive.")
        self._values = np.empty(0, dtype=np.int8)
        self._buffer = b''
        self._ngroup = 0
        self._eof = False

    def readable(self):
        return True

    def writable(self):
        return False

    def read(self, count=None):
        """Read up to ``count`` decoded bytes.

        Parameters
        ----------
        count : int or None, optional
            Number of bytes to read.  If `None` (default) or negative,
            read until the end of the encoded data.

        Returns
        -------
        data : bytes
            Fewer than ``count`` bytes only if the end of the encoded data
            was reached, or if a non-blocking raw file had no more data
            available.  Empty if the end was reached before, and `None` if
            the raw file had no data available at all.

        Raises
        ------
        ~basecodec.base.encoding.MalformedStreamError
            If the encoded data are invalid.
        """
        if self.closed:
            raise ValueError("I/O operation on closed stream.")

        if count is not None and count < 0:
            count = None

        chunks = []
        nread = 0
        blocked = False
        while count is None or nread < count:
            if not self._buffer:
                if self._eof:
                    break
                blocked = not self._load(self.chunk_size if count is None
                                         else count - nread)
                if blocked:
                    break
                continue

            nbytes = len(self._buffer)
            if count is not None:
                nbytes = min(nbytes, count - nread)
            chunks.append(self._buffer[:nbytes])
            self._buffer = self._buffer[nbytes:]
            nread += nbytes

        self.offset += nread
        if blocked and not nread:
            return None
        return b''.join(chunks)

    def read_byte(self):
        """Read a single decoded byte.

        Returns
        -------
        value : int or None
            `None` if the end of the encoded data was reached, or if a
            non-blocking raw file had no data available.
        """
        data = self.read(1)
        return data[0] if data else None

    def readinto(self, buffer):
        """Read decoded bytes into a pre-allocated, writable buffer.

        Returns
        -------
        count : int or None
            Number of bytes read, or `None` if a non-blocking raw file had
            no data available.
        """
        view = memoryview(buffer).cast('B')
        data = self.read(len(view))
        if data is None:
            return None
        view[:len(data)] = data
        return len(data)

    def _load(self, count):
        """Decode the groups needed to provide ``count`` bytes.

        Reads only as many characters as could possibly be needed, so that
        fewer groups will be decoded if characters are skipped or groups
        are padded.  Sets the end-of-file flag if nothing could be read.

        Returns
        -------
        available : bool
            `False` if the raw file is non-blocking and had no data ready.
        """
        alphabet = self.alphabet
        ngroup = -(-count // alphabet.group_nbytes)
        raw = self.fh_raw.read(ngroup * alphabet.group_nsymbols
                               - len(self._values))
        if raw is None:
            return False

        if not raw:
            if len(self._values):
                raise MalformedStreamError(
                    "invalid {0} stream: ended in the middle of group {1}."
                    .format(alphabet.name, self._ngroup))
            self._eof = True
            return True

        if isinstance(raw, str):
            # Non-latin characters become '?', which is never a symbol.
            raw = raw.encode('latin-1', errors='replace')
        values = alphabet.decode_table[byte_array(raw)]
        values = np.concatenate((self._values, values[values != FOREIGN]))
        nvalue = len(values) - len(values) % alphabet.group_nsymbols
        data = decode_groups(values[:nvalue], alphabet,
                             first_group=self._ngroup)
        self._values = values[nvalue:]
        self._ngroup += nvalue // alphabet.group_nsymbols
        self._buffer = data.tobytes()
        return True

    def close(self):
        if len(self._values) and not self.closed:
            warnings.warn("closing with a partial group of {0} symbols "
                          "remaining.".format(len(self._values)))
        return super().close()


class CodecStreamWriter(StreamBase):
    """Encoder writing any bytes passed in as encoded text.

    Parameters
    ----------
    fh_raw : filehandle
        Raw file to write the encoded text to.
    alphabet : `~basecodec.base.alphabet.Alphabet`
        Alphabet to encode with.

    Notes
    -----
    Bytes are encoded as soon as a full group is available; any remaining
    bytes are held until more are written, or until ``finalize`` or
    ``close`` is called, at which point they are written as a padded group.
    The output is never wrapped into lines.  Large amounts of data are
    encoded in slices, so memory use stays bounded.  If writing to the raw
    file fails, ``tell`` includes only the bytes whose encoded text was
    written before the failure.
    """

    def __init__(self, fh_raw, alphabet):
        super().__init__(fh_raw, alphabet)
        self._group = EncodeGroup(alphabet)

    def readable(self):
        return False

    def writable(self):
        return True

    def write(self, data):
        """Encode data, buffering any incomplete group.

        Parameters
        ----------
        data : bytes-like or `~numpy.ndarray`
            Data to encode.

        Returns
        -------
        count : int
            Number of bytes consumed, i.e., the length of ``data``.
        """
        if self.closed:
            raise ValueError("I/O operation on closed stream.")

        data = byte_array(data)
        count = len(data)
        group = self._group
        start = 0
        if group.nbytes:
            nfill = min(group.capacity - group.nbytes, count)
            if group.nbytes + nfill < group.capacity:
                group.extend(data)
                self.offset += count
                return count
            self._write_symbols(encode_groups(
                np.concatenate((byte_array(group.data), data[:nfill])),
                self.alphabet))
            group.reset()
            self.offset += nfill
            start = nfill

        # Encode in slices of whole groups, to limit memory use.
        nfull = count - (count - start) % group.capacity
        step = group.capacity * max(DEFAULT_CHUNK_SIZE // group.capacity, 1)
        for start in range(start, nfull, step):
            stop = min(start + step, nfull)
            self._write_symbols(encode_groups(data[start:stop], self.alphabet))
            self.offset += stop - start

        group.extend(data[nfull:])
        self.offset += count - nfull
        return count

    def write_byte(self, value):
        """Encode a single byte."""
        value = operator.index(value)
        if not 0 <= value < 256:
            raise ValueError("byte value should be in range(256), not {0}."
                             .format(value))
        self.write(bytes((value,)))

    def finalize(self):
        """Write any remaining bytes as a padded group and flush.

        Calling it again without writing more bytes in between has no effect.
        """
        group = self._group
        if group.nbytes:
            self._write_symbols(encode_final(byte_array(group.data),
                                             self.alphabet))
            group.reset()
            self.fh_raw.flush()

    def flush(self):
        """Flush the raw file, without finalizing the encoding."""
        self.fh_raw.flush()

    def _write_symbols(self, symbols):
        symbols = symbols.tobytes()
        self.fh_raw.write(symbols.decode('ascii') if self._text else symbols)

    def close(self):
        if self.closed:
            return
        try:
            self.finalize()
        finally:
            super().close()


class FileInfo:
    """File information collector.

    The instance can be used as a function on a file name to get
    information from that file, by opening it and retrieving ``info``.

    Parameters
    ----------
    opener : callable
        The function to use to open files

    Notes
    -----
    The class is perhaps most easily used via the class method
    `~basecodec.base.base.FileInfo.create`.
    """

    def __init__(self, opener):
        self.open = opener

    def _get_info(self, name, mode, **kwargs):
        """Open a file in the given mode and retrieve info."""
        try:
            with self.open(name, mode=mode, **kwargs) as fh:
                return fh.info
        except Exception as exc:
            return exc

    def __call__(self, name):
        """Collect encoded file information.

        The file is opened in binary mode and scanned completely, counting
        symbols and checking it can be decoded.  If ``name`` is a
        filehandle, its position is restored afterwards.

        Parameters
        ----------
        name : str or filehandle
            File name or filehandle.

        Returns
        -------
        info
            :class:`~basecodec.base.file_info.FileReaderInfo`, which
            evaluates as `False` if the file could not be decoded, or
            :class:`~basecodec.base.file_info.NoInfo` if it could not be
            opened.
        """
        # If we are passed a filehandle, do not close it.
        if hasattr(name, 'read'):
            fh = self.open(name, mode='rb')
            return fh.info

        info = self._get_info(name, 'rb')
        if isinstance(info, Exception):
            return NoInfo(f"opening {name} raised {info!r}.")
        return info

    def wrapped(self, module=None, doc=None):
        """Wrap as a function named info, replacing docstring and module."""

        @functools.wraps(self.__call__)
        def info(*args, **kwargs):
            return self(*args, **kwargs)

        if doc:
            info.__doc__ = doc

        # This ensures the function becomes visible to sphinx.
        if module:
            info.__module__ = module

        return info

    @classmethod
    def create(cls, ns):
        """Create an info getter for the given namespace.

        This assumes that the namespace contains an ``open`` function, which
        is used to create an instance of the info class that is wrapped in a
        function with ``__module__`` set to the calling module (inferred
        from the namespace), as well as an ``ALPHABET``.

        Parameters
        ----------
        ns : dict
            Namespace to look in.  Generally, pass in ``globals()`` at the
            call site.
        """
        module = ns.get('__name__', None)
        info = cls(ns['open'])
        doc = textwrap.dedent(info.__call__.__doc__).replace(
            'Collect encoded file information.',
            f"Collect {ns['ALPHABET'].name} file information.")
        return info.wrapped(module=module, doc=doc)


class FileOpener:
    """File opener for an encoding.

    Each instance can be used as a function to open an encoded file.
    It is probably best used inside a wrapper, so that the documentation
    can reflect the docstring of ``__call__`` rather than of this class.

    Parameters
    ----------
    alphabet : `~basecodec.base.alphabet.Alphabet`
        Alphabet of the encoding.
    classes : dict, optional
        With the file/stream reader/writer classes keyed by mode ('rb',
        'wb', 'rs', 'ws').  By default, the generic codec classes.
    """

    def __init__(self, alphabet, classes=None):
        self.alphabet = alphabet
        self.fmt = alphabet.name
        if classes is None:
            classes = {'rb': CodecFileReader,
                       'wb': CodecFileWriter,
                       'rs': CodecStreamReader,
                       'ws': CodecStreamWriter}
        self.classes = classes

    def normalize_mode(self, mode):
        if mode in self.classes:
            return mode
        if mode[::-1] in self.classes:
            return mode[::-1]
        if mode in {'r', 'w'}:
            return mode + 's'

        raise ValueError(f'invalid mode: {mode} '
                         f'({self.fmt} supports {set(self.classes)}).')

    def is_fh(self, name):
        """Whether name is a filehandle."""
        return hasattr(name, 'read') or hasattr(name, 'write')

    def get_fh(self, name, mode):
        """Ensure name is a filehandle, opening it if necessary."""
        if self.is_fh(name):
            return name

        return io.open(name, mode=mode[0] + 'b')

    def __call__(self, name, mode='rs', **kwargs):
        """
        Open encoded file for reading or writing.

        Opened as a binary file, one gets a wrapped filehandle that adds
        methods to read/write a group of symbols.  Opened as a stream, the
        handle is wrapped further, and reading and writing to the file is
        done as if it contained the decoded bytes.

        Parameters
        ----------
        name : str or filehandle
            File name or filehandle.
        mode : {'rb', 'wb', 'rs', or 'ws'}, optional
            Whether to open for reading or writing, and as a regular binary
            file or as a stream. Default: 'rs', for reading a stream.
        **kwargs
            Additional arguments when opening the file as a stream.
        """
        mode = self.normalize_mode(mode)
        fh = self.get_fh(name, mode)
        try:
            return self.classes[mode](fh, self.alphabet, **kwargs)
        except Exception:
            if fh is not name:
                fh.close()
            raise

    def wrapped(self, module=None, doc=None):
        """Wrap as a function named open, replacing docstring and module."""

        @functools.wraps(self.__call__)
        def open(*args, **kwargs):
            return self(*args, **kwargs)

        if doc:
            open.__doc__ = doc

        # This ensures the function becomes visible to sphinx.
        if module:
            open.__module__ = module

        return open

    @classmethod
    def create(cls, ns, doc=None):
        """Create a standard opener for the given namespace.

        This assumes that the namespace contains an ``ALPHABET``, for which
        the opener is instantiated with the generic codec classes.  A
        wrapping function is then created with ``__module__`` set to the
        ``__name__`` of the namespace, and with the documentation of its
        ``__call__`` method extended with ``doc``.

        Parameters
        ----------
        ns : dict
            Namespace to look in.  Generally, pass in ``globals()`` at the
            call site.
        doc : str, optional
            Extra documentation to add to that of the opener's ``__call__``
            method.
        """
        module = ns.get('__name__', None)
        try:
            alphabet = ns['ALPHABET']
        except KeyError:
            raise ValueError('namespace does not contain an ALPHABET, '
                             'so fmt cannot be guessed.') from None

        opener = cls(alphabet)
        doc = (textwrap.dedent(opener.__call__.__doc__)
               .replace('Open encoded file for reading or writing.',
                        f'Open {opener.fmt} file for reading or writing.')
               + (doc or ''))
        return opener.wrapped(module=module, doc=doc)
