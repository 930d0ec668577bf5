# Licensed under the GPLv3 - see LICENSE
import io
import tracemalloc

import pytest
import numpy as np

from ..alphabet import BASE64, BASE64URL, BASE32, BASE32HEX
from ..group import DecodeGroup
from ..base import (MalformedStreamError,
                    CodecFileReader, CodecFileWriter,
                    CodecStreamReader, CodecStreamWriter)


ALPHABETS = (BASE64, BASE64URL, BASE32, BASE32HEX)


class FlakySink(io.BytesIO):
    """BytesIO that can be told to fail on writing."""
    fail = False

    def write(self, data):
        if self.fail:
            raise OSError('disk full')
        return super().write(data)


class DiscardingSink:
    """Sink that only counts what is written to it."""
    closed = False

    def __init__(self):
        self.nbytes = 0

    def write(self, data):
        self.nbytes += len(data)
        return len(data)

    def flush(self):
        pass


class TrickleSource(io.BytesIO):
    """Non-blocking source, with only ``available`` bytes ready to read."""
    available = 0

    def read(self, count=-1):
        if self.available == 0 and self.tell() < len(self.getvalue()):
            return None
        if count is None or count < 0 or count > self.available:
            count = self.available
        data = super().read(count)
        self.available -= len(data)
        return data


class KeepingSink(io.BytesIO):
    """BytesIO that keeps its value when closed."""
    value = None

    def close(self):
        if not self.closed:
            self.value = self.getvalue()
        super().close()


class TestStreamWriter:
    def test_write_in_pieces(self):
        fh = io.BytesIO()
        fw = CodecStreamWriter(fh, BASE64)
        assert fw.writable()
        assert not fw.readable()
        assert not fw.seekable()
        assert fw.write(b'M') == 1
        assert fw.write(b'a') == 1
        assert fh.getvalue() == b''
        assert fw.tell() == 2
        fw.write_byte(ord('n'))
        assert fh.getvalue() == b'TWFu'
        assert fw.tell() == 3
        fw.close()
        assert fw.closed

    def test_finalize(self):
        fh = io.BytesIO()
        fw = CodecStreamWriter(fh, BASE64)
        fw.write(b'Ma')
        fw.flush()
        assert fh.getvalue() == b''
        fw.finalize()
        assert fh.getvalue() == b'TWE='
        fw.finalize()
        assert fh.getvalue() == b'TWE='
        # Writing after finalizing starts a new padded sequence.
        fw.write(b'M')
        fw.finalize()
        assert fh.getvalue() == b'TWE=TQ=='

    def test_close_finalizes(self):
        fh = KeepingSink()
        with CodecStreamWriter(fh, BASE32) as fw:
            fw.write(b'foo')
            assert fh.getvalue() == b''
        assert fh.closed
        assert fh.value == b'MZXW6==='
        # Closing twice is fine.
        fw.close()

    def test_write_after_close(self):
        fw = CodecStreamWriter(io.BytesIO(), BASE64)
        fw.close()
        with pytest.raises(ValueError, match='closed'):
            fw.write(b'abc')

    def test_write_byte_out_of_range(self):
        fw = CodecStreamWriter(io.BytesIO(), BASE64)
        for value in (-1, 256):
            with pytest.raises(ValueError, match='range'):
                fw.write_byte(value)
        assert fw.tell() == 0

    def test_write_array(self):
        fh = io.BytesIO()
        fw = CodecStreamWriter(fh, BASE64)
        data = np.frombuffer(b'Hello', dtype=np.uint8)
        assert fw.write(data) == 5
        assert fw.write(memoryview(b'!')) == 1
        fw.finalize()
        assert fh.getvalue() == b'SGVsbG8h'

    def test_text_sink(self):
        fh = io.StringIO()
        fw = CodecStreamWriter(fh, BASE64)
        fw.write(b'Hello')
        fw.finalize()
        assert fh.getvalue() == 'SGVsbG8='

    def test_failing_sink(self):
        fh = FlakySink()
        fw = CodecStreamWriter(fh, BASE64)
        fw.write(b'Ma')
        fh.fail = True
        with pytest.raises(OSError):
            fw.write(b'n')
        assert fw.tell() == 2
        fh.fail = False
        fw.finalize()
        assert fh.getvalue() == b'TWE='

    def test_failing_sink_large_write(self):
        fh = FlakySink()
        fw = CodecStreamWriter(fh, BASE64)
        data = bytes(range(256)) * 1024
        fh.fail = True
        with pytest.raises(OSError):
            fw.write(data)
        assert fw.tell() == 0
        assert fh.getvalue() == b''

    @pytest.mark.parametrize('alphabet', ALPHABETS)
    def test_write_spanning_slices(self, alphabet):
        rng = np.random.default_rng(42)
        data = rng.integers(0, 256, size=300001, dtype=np.uint8).tobytes()
        fh = io.BytesIO()
        fw = CodecStreamWriter(fh, alphabet)
        fw.write(data[:2])
        assert fw.write(data[2:]) == len(data) - 2
        assert fw.tell() == len(data)
        fw.finalize()
        fh.seek(0)
        assert CodecStreamReader(fh, alphabet).read() == data

    def test_large_write_memory(self):
        data = bytes(range(256)) * (1 << 15)
        sink = DiscardingSink()
        fw = CodecStreamWriter(sink, BASE64)
        fw.write(b'x')
        tracemalloc.start()
        try:
            fw.write(data)
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()
        # Far less than the 8 MiB of input.
        assert peak < 2 << 20
        fw.finalize()
        assert sink.nbytes == -(-(len(data) + 1) // 3) * 4

    def test_bad_alphabet(self):
        with pytest.raises(TypeError):
            CodecStreamWriter(io.BytesIO(), 'base64')


class TestStreamReader:
    def test_read(self):
        fh = io.BytesIO(b'TWFu')
        fr = CodecStreamReader(fh, BASE64)
        assert fr.readable()
        assert not fr.writable()
        assert fr.read(2) == b'Ma'
        assert fr.tell() == 2
        assert fr.read() == b'n'
        assert fr.read() == b''
        assert fr.read(10) == b''
        assert fr.tell() == 3

    def test_read_byte(self):
        fr = CodecStreamReader(io.BytesIO(b'TWE='), BASE64)
        assert fr.read_byte() == ord('M')
        assert fr.read_byte() == ord('a')
        assert fr.read_byte() is None
        assert fr.read_byte() is None

    def test_readinto(self):
        fr = CodecStreamReader(io.BytesIO(b'SGVsbG8='), BASE64)
        buffer = bytearray(3)
        assert fr.readinto(buffer) == 3
        assert buffer == b'Hel'
        array = np.zeros(4, dtype=np.uint8)
        assert fr.readinto(array) == 2
        assert array.tobytes() == b'lo\x00\x00'

    def test_foreign_characters(self):
        plain = CodecStreamReader(io.BytesIO(b'SGVsbG8='), BASE64).read()
        fr = CodecStreamReader(io.BytesIO(b'SGVsbG8=\n'), BASE64)
        assert fr.read() == plain == b'Hello'
        fr = CodecStreamReader(io.BytesIO(b' SG\r\nVs\tbG8=\n'), BASE64)
        assert fr.read() == b'Hello'

    def test_does_not_overread(self):
        fh = io.BytesIO(b'TW\nFu|trailer')
        fr = CodecStreamReader(fh, BASE64)
        assert fr.read(3) == b'Man'
        assert fh.tell() == 5
        assert fh.read() == b'|trailer'

    def test_concatenated(self):
        fr = CodecStreamReader(io.BytesIO(b'TWE=TQ==TWFu'), BASE64)
        assert fr.read() == b'MaMMan'

    def test_base32hex(self):
        fr = CodecStreamReader(io.BytesIO(b'CPNMUOJ1E8======'), BASE32HEX)
        assert fr.read() == b'foobar'

    def test_non_blocking_source(self):
        fh = TrickleSource(b'TWFu\nTWFu\nTQ==')
        fr = CodecStreamReader(fh, BASE64)
        assert fr.read() is None
        assert fr.readinto(bytearray(3)) is None
        fh.available = 6
        assert fr.read() == b'Man'
        assert fr.tell() == 3
        # Half a group is kept until the rest arrives.
        assert fr.read(3) is None
        fh.available = 4
        assert fr.read(3) == b'Man'
        fh.available = 5
        assert fr.read() == b'M'
        assert fr.read() == b''
        assert fr.read_byte() is None

    def test_text_source(self):
        fr = CodecStreamReader(io.StringIO('SGVs\nbG8='), BASE64)
        assert fr.read() == b'Hello'

    @pytest.mark.parametrize('chunk_size', (1, 4, 1000))
    def test_chunk_size(self, chunk_size):
        data = bytes(range(256)) * 3
        fh = io.BytesIO()
        fw = CodecStreamWriter(fh, BASE32)
        fw.write(data)
        fw.finalize()
        fh.seek(0)
        fr = CodecStreamReader(fh, BASE32, chunk_size=chunk_size)
        assert fr.read() == data

    def test_bad_chunk_size(self):
        with pytest.raises(ValueError):
            CodecStreamReader(io.BytesIO(), BASE64, chunk_size=0)

    def test_padding_in_second_slot(self):
        fr = CodecStreamReader(io.BytesIO(b'A==='), BASE64)
        with pytest.raises(MalformedStreamError, match='first two'):
            fr.read()

    def test_truncated(self):
        fr = CodecStreamReader(io.BytesIO(b'AB'), BASE64)
        with pytest.raises(MalformedStreamError, match='middle of group 0'):
            fr.read()
        with pytest.warns(UserWarning, match='partial group'):
            fr.close()

    def test_truncated_after_groups(self):
        fr = CodecStreamReader(io.BytesIO(b'TWFuTWFu\nTWF'), BASE64)
        assert fr.read(6) == b'ManMan'
        with pytest.raises(MalformedStreamError, match='middle of group 2'):
            fr.read(1)

    def test_read_after_close(self):
        fr = CodecStreamReader(io.BytesIO(b'TWFu'), BASE64)
        fr.close()
        with pytest.raises(ValueError, match='closed'):
            fr.read()

    @pytest.mark.parametrize('alphabet', ALPHABETS)
    def test_round_trip(self, alphabet):
        rng = np.random.default_rng(1234)
        data = rng.integers(0, 256, size=1000, dtype=np.uint8).tobytes()
        for nbytes in (0, 1, 2, 3, 4, 5, 6, 7, 999, 1000):
            fh = io.BytesIO()
            fw = CodecStreamWriter(fh, alphabet)
            fw.write(data[:nbytes])
            fw.finalize()
            fh.seek(0)
            assert CodecStreamReader(fh, alphabet).read() == data[:nbytes]

    def test_repr(self):
        fr = CodecStreamReader(io.BytesIO(b'TWFu'), BASE64)
        assert repr(fr).startswith('<CodecStreamReader')
        assert 'alphabet=base64' in repr(fr)


class TestFileReaderWriter:
    def test_read_groups(self):
        fh = CodecFileReader(io.BytesIO(b'TWFu\nTWE=\n'), BASE64)
        group = fh.read_group()
        assert isinstance(group, DecodeGroup)
        assert group.data == b'Man'
        assert fh.read_group().data == b'Ma'
        with pytest.raises(EOFError):
            fh.read_group()

    def test_iterate(self):
        fh = CodecFileReader(io.BytesIO(b'MZXW6YTBOI======'), BASE32)
        assert [group.data for group in fh] == [b'fooba', b'r']

    def test_read_bad_group(self):
        fh = CodecFileReader(io.BytesIO(b'TW=u'), BASE64)
        with pytest.raises(MalformedStreamError):
            fh.read_group()
        fh.seek(0)
        assert fh.read_group(verify=False).symbols == b'TW=u'

    def test_write_groups(self):
        raw = io.BytesIO()
        fh = CodecFileWriter(raw, BASE64)
        fh.write_group(b'Man')
        fh.write_group(DecodeGroup.fromdata(b'Ma', BASE64))
        assert raw.getvalue() == b'TWFuTWE='
        with pytest.raises(ValueError, match='base32 group'):
            fh.write_group(DecodeGroup.fromdata(b'foo', BASE32))

    def test_attribute_lookup(self):
        raw = io.BytesIO(b'TWFu')
        fh = CodecFileReader(raw, BASE64)
        assert fh.tell() == 0
        assert fh.read(2) == b'TW'
        with fh.temporary_offset(0):
            assert fh.read() == b'TWFu'
        assert fh.tell() == 2
        with pytest.raises(AttributeError):
            fh.does_not_exist
        assert 'alphabet=base64' in repr(fh)
        fh.close()
        assert raw.closed
