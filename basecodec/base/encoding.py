# Licensed under the GPLv3 - see LICENSE
"""Encoders and decoders for groups of bytes and symbols.

Bytes are packed into symbols group by group: for the byte family, 3 bytes
become 4 symbols of 6 bits each, i.e.,

    [AAAAAAAA][BBBBBBBB][CCCCCCCC] -> [AAAAAA][AABBBB][BBBBCC][CCCCCC],

while for the quintet family, 5 bytes become 8 symbols of 5 bits each,

    [AAAAAAAA][BBBBBBBB][CCCCCCCC][DDDDDDDD][EEEEEEEE] ->
    [AAAAA][AAABB][BBBBB][BCCCC][CCCCD][DDDDD][DDEEE][EEEEE].

In both cases, the bits are taken most significant first, so the
conversion amounts to regrouping a bit stream, which is done for many
groups at once with `~numpy.unpackbits` and `~numpy.packbits`.

A final group with fewer bytes is completed with padding characters, and
on decoding the number of non-padding symbols of each group determines
how many bytes it holds.
"""
import numpy as np

from .alphabet import PADDING


__all__ = ['MalformedStreamError', 'REAL_SYMBOLS', 'DECODED_BYTES',
           'byte_array', 'encode_groups', 'encode_final',
           'check_groups', 'decode_groups']


class MalformedStreamError(ValueError):
    """Error raised when encoded data do not form valid groups."""
    pass


REAL_SYMBOLS = {
    'byte': {1: 2, 2: 3, 3: 4},
    'quintet': {1: 2, 2: 4, 3: 5, 4: 7, 5: 8}}
"""Number of non-padding symbols needed to encode a number of bytes."""

DECODED_BYTES = {
    'byte': {2: 1, 3: 2, 4: 3},
    'quintet': {2: 1, 4: 2, 5: 3, 7: 4, 8: 5}}
"""Number of bytes held by a group with a number of non-padding symbols.

Any number of non-padding symbols not in the table is invalid.
"""


def _init_luts():
    """Turn the symbol count tables into look-up arrays.

    Invalid counts are marked with -1.
    """
    luts = {}
    for family, counts in DECODED_BYTES.items():
        lut = np.full(max(counts) + 1, -1, dtype=np.int8)
        lut[list(counts.keys())] = list(counts.values())
        luts[family] = lut
    return luts


_decoded_bytes_luts = _init_luts()


def byte_array(data):
    """Get a view of bytes-like data as an array of unsigned bytes.

    Parameters
    ----------
    data : bytes, bytearray, memoryview, or `~numpy.ndarray`
        Data to view.  Arrays should have an integer type.
    """
    if isinstance(data, np.ndarray):
        if data.dtype.kind not in 'ui':
            raise TypeError("can only encode integer arrays, not {0}."
                            .format(data.dtype))
        if data.dtype.itemsize == 1:
            return data.ravel().view(np.uint8)
        if data.size and (data.min() < 0 or data.max() > 255):
            raise ValueError("array values do not fit in a byte.")
        return data.ravel().astype(np.uint8)

    return np.frombuffer(data, dtype=np.uint8)


def encode_groups(data, alphabet):
    """Encode whole groups of bytes into symbols.

    Parameters
    ----------
    data : `~numpy.ndarray` of uint8
        Bytes to encode.  The length should be a multiple of the number of
        bytes in a group for the alphabet.
    alphabet : `~basecodec.base.alphabet.Alphabet`
        Alphabet to use.

    Returns
    -------
    symbols : `~numpy.ndarray` of uint8
        ASCII codes of the symbols.
    """
    if len(data) % alphabet.group_nbytes:
        raise ValueError("can only encode whole groups of {0} bytes."
                         .format(alphabet.group_nbytes))
    bits = np.unpackbits(data).reshape(-1, alphabet.bps)
    # packbits pads each row to 8 bits at the low end.
    values = np.packbits(bits, axis=-1)[:, 0] >> (8 - alphabet.bps)
    return alphabet.encode_table[values]


def encode_final(data, alphabet):
    """Encode an incomplete last group, adding padding.

    Parameters
    ----------
    data : `~numpy.ndarray` of uint8
        Remaining bytes; at least one and fewer than in a full group.
    alphabet : `~basecodec.base.alphabet.Alphabet`
        Alphabet to use.

    Returns
    -------
    symbols : `~numpy.ndarray` of uint8
        ASCII codes of the symbols, including padding.
    """
    nbytes = len(data)
    if not 0 < nbytes < alphabet.group_nbytes:
        raise ValueError("final group should have between 1 and {0} bytes."
                         .format(alphabet.group_nbytes - 1))
    group = np.zeros(alphabet.group_nbytes, dtype=np.uint8)
    group[:nbytes] = data
    symbols = encode_groups(group, alphabet)
    symbols[REAL_SYMBOLS[alphabet.family][nbytes]:] = alphabet.pad_code
    return symbols


def check_groups(values, alphabet, first_group=0):
    """Validate padding placement in groups of symbol values.

    Parameters
    ----------
    values : `~numpy.ndarray`
        Symbol values, with shape ``(ngroup, group_nsymbols)``, in which
        padding is indicated by `~basecodec.base.alphabet.PADDING`.
    alphabet : `~basecodec.base.alphabet.Alphabet`
        Alphabet the values were decoded with.
    first_group : int, optional
        Index of the first group in the stream, used in error messages.

    Returns
    -------
    nbytes : `~numpy.ndarray` of int
        Number of bytes held by each group.

    Raises
    ------
    MalformedStreamError
        If the first or second symbol of a group is padding, if padding is
        followed by a symbol, or if the number of symbols is not valid.
    """
    def fail(bad, msg):
        index = first_group + int(np.nonzero(bad)[0][0])
        raise MalformedStreamError("invalid {0} stream: {1} in group {2}."
                                   .format(alphabet.name, msg, index))

    pad = values == PADDING
    bad = pad[:, :2].any(-1)
    if bad.any():
        fail(bad, "padding in first two symbols")

    bad = (pad[:, :-1] & ~pad[:, 1:]).any(-1)
    if bad.any():
        fail(bad, "padding followed by a symbol")

    nsymbols = alphabet.group_nsymbols - pad.sum(-1)
    nbytes = _decoded_bytes_luts[alphabet.family][nsymbols]
    bad = nbytes < 0
    if bad.any():
        fail(bad, "invalid number of symbols before padding")

    return nbytes


def decode_groups(values, alphabet, first_group=0):
    """Decode groups of symbol values into bytes.

    Parameters
    ----------
    values : `~numpy.ndarray`
        Symbol values, with a size that is a multiple of the number of
        symbols in a group.  Padding is indicated by
        `~basecodec.base.alphabet.PADDING`.
    alphabet : `~basecodec.base.alphabet.Alphabet`
        Alphabet the values were decoded with.
    first_group : int, optional
        Index of the first group in the stream, used in error messages.

    Returns
    -------
    data : `~numpy.ndarray` of uint8
        Decoded bytes of all groups, concatenated.
    """
    values = np.asarray(values).reshape(-1, alphabet.group_nsymbols)
    nbytes = check_groups(values, alphabet, first_group)
    shift = np.arange(alphabet.bps - 1, -1, -1, dtype=np.uint8)
    words = np.maximum(values, 0).astype(np.uint8)
    bits = (words[..., np.newaxis] >> shift) & 1
    bits = bits.reshape(len(values), alphabet.group_nsymbols * alphabet.bps)
    decoded = np.packbits(bits, axis=-1)
    keep = np.arange(alphabet.group_nbytes) < nbytes[:, np.newaxis]
    return decoded[keep]
