# Licensed under the GPLv3 - see LICENSE
"""Base implementations shared between all encodings.

Encoded text is considered as composed of groups of symbols, each of which
encodes a fixed number of bytes.  The symbols and padding character of an
encoding are defined by an `~basecodec.base.alphabet.Alphabet`, and the
conversion between groups of bytes and symbols is done by the functions in
`~basecodec.base.encoding`, with `~basecodec.base.group` providing objects
representing single groups.

The `~basecodec.base.base` module defines file and stream readers and
writers that read or write the groups.  Each file reader has an ``info``
property, defined in `~basecodec.base.file_info`, that provides
standardized information.
"""
