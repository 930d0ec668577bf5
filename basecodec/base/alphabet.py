# Licensed under the GPLv3 - see LICENSE
"""Symbol tables for the RFC 4648 binary-to-text encodings.

An `~basecodec.base.alphabet.Alphabet` holds the ordered symbols of an
encoding, with the index of a symbol being the value it encodes, as well
as the padding character used to complete the last group of a stream.
All alphabets share the same generic encoders and decoders; only the
tables differ.

For the definitions, see https://www.rfc-editor.org/rfc/rfc4648
"""
import operator

import numpy as np
from astropy.utils import lazyproperty


__all__ = ['FOREIGN', 'PADDING', 'Alphabet',
           'BASE64', 'BASE64URL', 'BASE32', 'BASE32HEX']


FOREIGN = -1
"""Decode table value for characters that are not part of the alphabet."""
PADDING = -2
"""Decode table value (and group slot value) for the padding character."""

_FAMILIES = {64: ('byte', 6, 3, 4),
             32: ('quintet', 5, 5, 8)}


class Alphabet:
    """Symbol table of a binary-to-text encoding.

    Parameters
    ----------
    name : str
        Name of the encoding, e.g., 'base64'.
    symbols : str
        The 32 or 64 distinct ASCII characters of the alphabet, ordered by
        the value they represent.
    pad : str, optional
        Padding character.  Default: '='.

    Notes
    -----
    The number of symbols determines the family: 64 symbols carry 6 bits
    each, so that groups of 3 bytes are encoded in 4 symbols; 32 symbols
    carry 5 bits each, so that 5 bytes are encoded in 8 symbols.
    """

    def __init__(self, name, symbols, pad='='):
        if len(symbols) not in _FAMILIES:
            raise ValueError("alphabet should have 32 or 64 symbols, "
                             "not {0}.".format(len(symbols)))
        if len(set(symbols)) != len(symbols):
            raise ValueError("alphabet symbols should be distinct.")
        if len(pad) != 1:
            raise ValueError("padding should be a single character.")
        if pad in symbols:
            raise ValueError("padding character {0!r} cannot be part of "
                             "the alphabet.".format(pad))
        if not (symbols + pad).isascii():
            raise ValueError("alphabet and padding should be ASCII.")

        self.name = name
        self.symbols = symbols
        self.pad = pad
        (self.family, self.bps,
         self.group_nbytes, self.group_nsymbols) = _FAMILIES[len(symbols)]

    def __len__(self):
        return len(self.symbols)

    @lazyproperty
    def encode_table(self):
        """ASCII codes of the symbols, indexed by value."""
        return np.frombuffer(self.symbols.encode('ascii'), dtype=np.uint8)

    @lazyproperty
    def decode_table(self):
        """Value of each of the 256 possible input bytes.

        Alphabet members map to their value, the padding character to
        `~basecodec.base.alphabet.PADDING`, and anything else to
        `~basecodec.base.alphabet.FOREIGN`.
        """
        table = np.full(256, FOREIGN, dtype=np.int8)
        table[self.encode_table] = np.arange(len(self), dtype=np.int8)
        table[ord(self.pad)] = PADDING
        return table

    @lazyproperty
    def pad_code(self):
        """ASCII code of the padding character."""
        return ord(self.pad)

    def lookup(self, symbol):
        """Value of a symbol, or `None` if it is not in the alphabet.

        Parameters
        ----------
        symbol : str, bytes, or int
            Single character, single byte, or character code.
        """
        if not isinstance(symbol, int):
            if len(symbol) != 1:
                raise ValueError("can only look up a single symbol.")
            symbol = ord(symbol)

        if not 0 <= symbol < 256:
            return None
        value = int(self.decode_table[symbol])
        return value if value >= 0 else None

    def symbol(self, value):
        """Symbol representing a given value."""
        value = operator.index(value)
        if not 0 <= value < len(self):
            raise IndexError("value {0} out of range for {1} alphabet."
                             .format(value, self.name))
        return self.symbols[value]

    def __eq__(self, other):
        return (isinstance(other, Alphabet)
                and self.symbols == other.symbols and self.pad == other.pad)

    def __hash__(self):
        return hash((self.symbols, self.pad))

    def __repr__(self):
        return ("{0}(name={1!r}, symbols={2!r}, pad={3!r})"
                .format(self.__class__.__name__, self.name,
                        self.symbols, self.pad))


_UPPER = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ'
_DIGITS = '0123456789'

BASE64 = Alphabet('base64',
                  _UPPER + _UPPER.lower() + _DIGITS + '+/')
"""Standard base64 alphabet (RFC 4648, section 4)."""
BASE64URL = Alphabet('base64url',
                     _UPPER + _UPPER.lower() + _DIGITS + '-_')
"""URL and filename safe base64 alphabet (RFC 4648, section 5)."""
BASE32 = Alphabet('base32', _UPPER + '234567')
"""Standard base32 alphabet (RFC 4648, section 6)."""
BASE32HEX = Alphabet('base32hex', _DIGITS + _UPPER[:22])
"""Extended hex base32 alphabet (RFC 4648, section 7)."""
