# Licensed under the GPLv3 - see LICENSE
import io
import threading

import pytest

from ... import base64, base32
from ..counter import ByteCounterReader, ByteCounterWriter


class FailingFile(io.BytesIO):
    def write(self, data):
        raise OSError('cannot write')


class TestByteCounterReader:
    def test_read(self):
        fh = ByteCounterReader(io.BytesIO(b'abcdefgh'))
        assert fh.count == 0
        assert fh.read(3) == b'abc'
        assert fh.count == 3
        assert fh.read() == b'defgh'
        assert fh.count == 8
        assert fh.read(10) == b''
        assert fh.count == 8

    def test_readinto(self):
        fh = ByteCounterReader(io.BytesIO(b'abcdefgh'))
        buffer = bytearray(5)
        assert fh.readinto(buffer) == 5
        assert fh.count == 5
        assert fh.readinto(buffer) == 3
        assert fh.count == 8

    def test_skip(self):
        fh = ByteCounterReader(io.BytesIO(b'abcdefgh'))
        assert fh.skip(3) == 3
        assert fh.read(2) == b'de'
        assert fh.skip(10) == 3
        assert fh.count == 8

    def test_reset(self):
        fh = ByteCounterReader(io.BytesIO(b'abcdefgh'), count=10)
        fh.read(2)
        assert fh.count == 12
        fh.reset()
        assert fh.count == 0
        fh.count = 5
        assert fh.count == 5
        with pytest.raises(ValueError):
            fh.count = -1

    def test_attribute_lookup(self):
        raw = io.BytesIO(b'abc')
        with ByteCounterReader(raw) as fh:
            assert fh.seekable()
            assert not fh.closed
            assert 'count=0' in repr(fh)
        assert raw.closed

    def test_nothing_available(self):
        class NonBlocking(io.BytesIO):
            def read(self, count=-1):
                return None

        fh = ByteCounterReader(NonBlocking(b'abc'))
        assert fh.read(2) is None
        assert fh.count == 0

    def test_count_symbols_read_by_decoder(self):
        counter = ByteCounterReader(io.BytesIO(b'TWFu\nTWFu|rest'))
        fh = base64.open(counter)
        assert fh.read(6) == b'ManMan'
        assert counter.count == 9


class TestByteCounterWriter:
    def test_write(self):
        raw = io.BytesIO()
        fh = ByteCounterWriter(raw)
        assert fh.write(b'abc') == 3
        assert fh.write(memoryview(b'de')) == 2
        assert fh.count == 5
        fh.flush()
        assert raw.getvalue() == b'abcde'

    def test_failed_write_not_counted(self):
        fh = ByteCounterWriter(FailingFile(), count=2)
        with pytest.raises(OSError):
            fh.write(b'abc')
        assert fh.count == 2

    def test_count_symbols_written_by_encoder(self):
        counter = ByteCounterWriter(io.BytesIO())
        fw = base32.open(counter, 'ws')
        fw.write(b'foob')
        assert counter.count == 0
        fw.finalize()
        assert counter.count == 8
        fw.write(b'fooba')
        assert counter.count == 16

    def test_text_file_for_encoder(self):
        raw = io.StringIO()
        counter = ByteCounterWriter(raw)
        fw = base64.open(counter, 'ws')
        fw.write(b'Hello')
        fw.finalize()
        assert raw.getvalue() == 'SGVsbG8='
        assert counter.count == 8

    def test_threads(self):
        fh = ByteCounterWriter(io.BytesIO())

        def write():
            for i in range(100):
                fh.write(b'abc')

        threads = [threading.Thread(target=write) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert fh.count == 8 * 100 * 3
        assert len(fh.getvalue()) == fh.count
