# Licensed under the GPLv3 - see LICENSE
"""URL and filename safe Base64 reader/writer.

As standard base64, but with '-' and '_' replacing '+' and '/', so that
the encoded text can be used in URLs and file names.

For the definition, see https://www.rfc-editor.org/rfc/rfc4648#section-5
"""
from ..base.alphabet import BASE64URL as ALPHABET
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
