# Licensed under the GPLv3 - see LICENSE
"""Routines to open encoded files and obtain information on them."""
# We do not import basecodec.io on top, since it imports all formats.

__all__ = ['file_info', 'open']


def file_info(name, format=None):
    """Get format and other information from an encoded file.

    Parameters
    ----------
    name : str or filehandle
        Raw file for which to obtain information.
    format : str, tuple of str, optional
        Formats to try.  If not given, try all formats in
        `basecodec.io.FORMATS`, in order.

    Returns
    -------
    info
        The information on the file.  This will be an instance of
        `~basecodec.base.file_info.FileReaderInfo` for the first format
        for which the whole file could be decoded, or of
        `~basecodec.base.file_info.NoInfo` if none could.

    Raises
    ------
    ValueError
        If a format is not known.

    Notes
    -----
    Encodings can be ambiguous: any text that is valid base32 is also
    valid base64, apart from the number of symbols in padded groups.  The
    first matching format is returned, so the order matters.
    """
    from . import io as basecodec_io
    from .base.file_info import NoInfo

    # If we're looking at one file but multiple formats, cycle through formats.
    if format is None:
        format = tuple(basecodec_io.FORMATS)

    if isinstance(format, tuple):
        no_info = set()
        for format_ in format:
            info = file_info(name, format_)
            if info:
                return info

            if isinstance(info, NoInfo):
                no_info.add(format_)

        return NoInfo(f"{name} does not seem formatted as any of {set(format)}"
                      + (f" (could not be opened as {no_info})."
                         if no_info else "."))

    return basecodec_io.get_format(format).info(name)


def open(name, mode='rs', format=None, **kwargs):
    """Open an encoded file for reading or writing.

    Opened as a binary file, one gets a wrapped filehandle that adds
    methods to read/write a group of symbols.  Opened as a stream, the
    handle is wrapped further, and reading and writing to the file is
    done as if the file contained the decoded bytes.

    Parameters
    ----------
    name : str or filehandle
        File name or filehandle.
    mode : {'rb', 'wb', 'rs', or 'ws'}, optional
        Whether to open for reading or writing, and as a regular binary
        file or as a stream. Default: 'rs', for reading a stream.
    format : str or tuple of str
        The encoding of the file. For reading, if a tuple of possible
        formats, all will be tried in turn. By default, all supported
        formats are tried.  For writing, an explicit format must be passed
        in.
    **kwargs
        Additional arguments for opening the file as a stream.
    """
    from . import io as basecodec_io

    if format is None or isinstance(format, tuple):
        if 'w' in mode:
            raise ValueError("cannot specify multiple formats for writing.")

        info = file_info(name, format)
        if not info:
            raise ValueError("format of file could not be auto-determined")

        format = info.format

    return basecodec_io.get_format(format).open(name, mode=mode, **kwargs)
