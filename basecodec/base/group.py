# Licensed under the GPLv3 - see LICENSE
"""Groups: the units in which bytes and symbols are converted.

An `~basecodec.base.group.EncodeGroup` accumulates raw bytes until it holds
a full group (3 bytes for base64, 5 for base32), and a
`~basecodec.base.group.DecodeGroup` holds the symbol values of one group of
encoded text (4 or 8 symbols), in which each slot is either a value from
the alphabet or the padding marker.
"""
import numpy as np

from .alphabet import FOREIGN, PADDING
from .encoding import (MalformedStreamError, byte_array,
                       encode_groups, encode_final, check_groups,
                       decode_groups)


__all__ = ['EncodeGroup', 'DecodeGroup']


class EncodeGroup:
    """Accumulator of raw bytes to be encoded.

    Parameters
    ----------
    alphabet : `~basecodec.base.alphabet.Alphabet`
        Alphabet with which the group will be encoded.
    """

    def __init__(self, alphabet):
        self.alphabet = alphabet
        self._words = np.zeros(alphabet.group_nbytes, dtype=np.uint8)
        self.nbytes = 0

    @property
    def capacity(self):
        """Number of bytes in a full group."""
        return self.alphabet.group_nbytes

    @property
    def full(self):
        return self.nbytes == self.capacity

    def __len__(self):
        return self.nbytes

    @property
    def data(self):
        """Bytes currently held."""
        return self._words[:self.nbytes].tobytes()

    def append(self, value):
        """Add a byte to the group.

        Returns
        -------
        full : bool
            Whether the group is now full.
        """
        if self.full:
            raise ValueError("cannot append to a full group.")
        if not 0 <= value < 256:
            raise ValueError("byte value should be in range(256), not {0}."
                             .format(value))
        self._words[self.nbytes] = value
        self.nbytes += 1
        return self.full

    def extend(self, data):
        """Add bytes until the group is full.

        Returns
        -------
        nbytes : int
            Number of bytes used from ``data``.
        """
        data = byte_array(data)
        count = min(len(data), self.capacity - self.nbytes)
        self._words[self.nbytes:self.nbytes + count] = data[:count]
        self.nbytes += count
        return count

    def tosymbols(self):
        """Encode the bytes held, with padding as needed, and reset.

        Returns
        -------
        symbols : bytes
            Empty if no bytes were held.
        """
        if self.nbytes == 0:
            return b''
        if self.full:
            symbols = encode_groups(self._words, self.alphabet)
        else:
            symbols = encode_final(self._words[:self.nbytes], self.alphabet)
        self.reset()
        return symbols.tobytes()

    def reset(self):
        self.nbytes = 0

    def __repr__(self):
        return ("<{0} alphabet={1} data={2!r}>"
                .format(self.__class__.__name__, self.alphabet.name,
                        self.data))


class DecodeGroup:
    """Symbol values of one group of encoded text.

    Parameters
    ----------
    values : `~numpy.ndarray` of int8
        Values of the symbols, with padding indicated by
        `~basecodec.base.alphabet.PADDING`.  Should have as many entries
        as there are symbols in a group for the alphabet.
    alphabet : `~basecodec.base.alphabet.Alphabet`
        Alphabet used to encode the group.
    verify : bool, optional
        Whether to check the padding is valid.  Default: `True`.
    """

    def __init__(self, values, alphabet, verify=True):
        values = np.asarray(values, dtype=np.int8)
        if values.shape != (alphabet.group_nsymbols,):
            raise ValueError("{0} group should have {1} symbols."
                             .format(alphabet.name, alphabet.group_nsymbols))
        self.values = values
        self.alphabet = alphabet
        if verify:
            self.verify()

    def verify(self):
        """Check that the padding is valid, returning the number of bytes.

        Raises
        ------
        ~basecodec.base.encoding.MalformedStreamError
            If the padding is misplaced or leaves an invalid number of
            symbols.
        """
        return int(check_groups(self.values[np.newaxis], self.alphabet)[0])

    @classmethod
    def fromfile(cls, fh, alphabet, verify=True):
        """Read a group from a filehandle.

        Characters are read one at a time, ignoring any that are neither
        part of the alphabet nor the padding character, until the group is
        complete.

        Parameters
        ----------
        fh : filehandle
            Binary file to read from.
        alphabet : `~basecodec.base.alphabet.Alphabet`
            Alphabet used to encode the group.
        verify : bool, optional
            Whether to check the padding is valid.  Default: `True`.

        Raises
        ------
        EOFError
            If the file ended before any symbol of the group was read.
        ~basecodec.base.encoding.MalformedStreamError
            If the file ended in the middle of the group.
        """
        values = np.empty(alphabet.group_nsymbols, dtype=np.int8)
        nvalue = 0
        while nvalue < alphabet.group_nsymbols:
            char = fh.read(1)
            if not char:
                if nvalue == 0:
                    raise EOFError("reached end of {0} stream."
                                   .format(alphabet.name))
                raise MalformedStreamError(
                    "invalid {0} stream: ended in the middle of a group."
                    .format(alphabet.name))

            code = ord(char)
            value = alphabet.decode_table[code] if code < 256 else FOREIGN
            if value != FOREIGN:
                values[nvalue] = value
                nvalue += 1

        return cls(values, alphabet, verify=verify)

    def tofile(self, fh):
        """Write the group's symbols to a filehandle."""
        return fh.write(self.symbols)

    @classmethod
    def fromdata(cls, data, alphabet):
        """Encode up to a full group's worth of bytes."""
        group = EncodeGroup(alphabet)
        if group.extend(data) != len(data):
            raise ValueError("{0} group can hold at most {1} bytes."
                             .format(alphabet.name, alphabet.group_nbytes))
        return cls.fromsymbols(group.tosymbols(), alphabet)

    @classmethod
    def fromsymbols(cls, symbols, alphabet, verify=True):
        """Create a group from its symbols.

        Characters that are not part of the alphabet are skipped.
        """
        if isinstance(symbols, str):
            symbols = symbols.encode('ascii')
        values = alphabet.decode_table[byte_array(symbols)]
        return cls(values[values != FOREIGN], alphabet, verify=verify)

    @property
    def padding(self):
        """Whether each slot holds padding."""
        return self.values == PADDING

    @property
    def symbols(self):
        """Symbols of the group, including any padding."""
        symbols = np.full(self.values.shape, self.alphabet.pad_code,
                          dtype=np.uint8)
        real = ~self.padding
        symbols[real] = self.alphabet.encode_table[self.values[real]]
        return symbols.tobytes()

    @property
    def nbytes(self):
        """Number of bytes held in the group."""
        return self.verify()

    @property
    def data(self):
        """Decoded bytes."""
        return decode_groups(self.values, self.alphabet).tobytes()

    def __len__(self):
        return len(self.values)

    def __eq__(self, other):
        return (type(self) is type(other)
                and self.alphabet == other.alphabet
                and np.all(self.values == other.values))

    def __repr__(self):
        return ("<{0} alphabet={1} symbols={2!r}>"
                .format(self.__class__.__name__, self.alphabet.name,
                        self.symbols.decode('ascii')))
