# Licensed under the GPLv3 - see LICENSE
"""Base32 reader/writer.

Groups of 5 bytes are encoded as 8 symbols from 'A-Z2-7', with the last
group padded with '='.  Lower case letters are not part of the alphabet.

For the definition, see https://www.rfc-editor.org/rfc/rfc4648#section-6
"""
from ..base.alphabet import BASE32 as ALPHABET
from ..base.base import FileOpener, FileInfo


__all__ = ['ALPHABET', 'open', 'info']


open = FileOpener.create(globals(), doc="""
--- For reading a stream : (see :class:`~basecodec.base.base.CodecStreamReader`)

chunk_size : int, optional
    Number of bytes to decode at a time when reading to the end.

--- For writing a stream : (see :class:`~basecodec.base.base.CodecStreamWriter`)

No additional arguments.  Any incomplete group is written, with padding,
when the stream is finalized or closed.

Returns
-------
Filehandle
    :class:`~basecodec.base.base.CodecFileReader` or
    :class:`~basecodec.base.base.CodecFileWriter` (binary), or
    :class:`~basecodec.base.base.CodecStreamReader` or
    :class:`~basecodec.base.base.CodecStreamWriter` (stream).
""")

info = FileInfo.create(globals())
