# Licensed under the GPLv3 - see LICENSE
"""Wrappers that count the bytes passing through a file.

These can be put on either side of a codec stream, e.g., to count the
number of symbols an encoder produces::

    >>> import io
    >>> from basecodec import base64
    >>> from basecodec.helpers.counter import ByteCounterWriter
    >>> counter = ByteCounterWriter(io.BytesIO())
    >>> with base64.open(counter, 'ws') as fw:
    ...     fw.write(b'Hello')
    5
    >>> counter.count
    8
"""
import io
import threading


__all__ = ['ByteCounterBase', 'ByteCounterReader', 'ByteCounterWriter']


class ByteCounterBase:
    """Keep track of the number of bytes passing through a filehandle.

    For details, see `ByteCounterReader` and `ByteCounterWriter`.
    """
    def __init__(self, fh, count=0):
        self.fh = fh
        self._lock = threading.Lock()
        self._count = count

    def __getattr__(self, attr):
        """Try to get things on the wrapped file if it is not on self."""
        if not attr.startswith('_'):
            try:
                return getattr(self.fh, attr)
            except AttributeError:
                pass
        return self.__getattribute__(attr)

    @property
    def count(self):
        """Number of bytes counted so far."""
        with self._lock:
            return self._count

    @count.setter
    def count(self, count):
        if count < 0:
            raise ValueError('count cannot be negative.')
        with self._lock:
            self._count = count

    def reset(self):
        """Reset the count to zero."""
        self.count = 0

    def close(self):
        self.fh.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        return ('{0}(fh={1}, count={2})'
                .format(self.__class__.__name__, self.fh, self.count))


class ByteCounterReader(ByteCounterBase):
    """Count the bytes read from a filehandle.

    Parameters
    ----------
    fh : filehandle
        File to read from.
    count : int, optional
        Initial count.  Default: 0.
    """

    def read(self, count=None):
        with self._lock:
            data = self.fh.read(count)
            if data:
                self._count += len(data)
        return data
    read.__doc__ = io.BufferedIOBase.read.__doc__

    def readinto(self, buffer):
        with self._lock:
            nbytes = self.fh.readinto(buffer)
            if nbytes:
                self._count += nbytes
        return nbytes

    def skip(self, count):
        """Skip up to ``count`` bytes, returning the number skipped.

        Skipped bytes are counted as read.
        """
        with self._lock:
            offset = self.fh.tell()
            end = self.fh.seek(0, 2)
            skipped = max(min(count, end - offset), 0)
            self.fh.seek(offset + skipped)
            self._count += skipped
        return skipped


class ByteCounterWriter(ByteCounterBase):
    """Count the bytes written to a filehandle.

    Bytes are only counted once the underlying file has accepted them.

    Parameters
    ----------
    fh : filehandle
        File to write to.
    count : int, optional
        Initial count.  Default: 0.
    """

    def write(self, data):
        with self._lock:
            nbytes = self.fh.write(data)
            if nbytes is None:
                nbytes = len(data)
            self._count += nbytes
        return nbytes
    write.__doc__ = io.BufferedIOBase.write.__doc__

    def flush(self):
        self.fh.flush()
