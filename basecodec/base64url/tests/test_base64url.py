# Licensed under the GPLv3 - see LICENSE
import io

import pytest

from ... import base64, base64url


class TestBase64URL:
    def test_alphabet(self):
        assert base64url.ALPHABET.name == 'base64url'
        assert base64url.ALPHABET.symbols.endswith('-_')

    @pytest.mark.parametrize(('data', 'standard', 'url'), (
        (b'\xfb\xff\xbf', b'+/+/', b'-_-_'),
        (b'\xfb\xf0', b'+/A=', b'-_A='),
        (b'Man', b'TWFu', b'TWFu')))
    def test_encode(self, data, standard, url):
        for module, expected in ((base64, standard), (base64url, url)):
            fh = io.BytesIO()
            with module.open(fh, 'ws') as fw:
                fw.write(data)
                fw.finalize()
                assert fh.getvalue() == expected

    def test_decode(self):
        with base64url.open(io.BytesIO(b'-_-_\n')) as fh:
            assert fh.read() == b'\xfb\xff\xbf'

    def test_standard_symbols_are_foreign(self):
        fh = base64url.open(io.BytesIO(b'+/-_-_'))
        assert fh.read() == b'\xfb\xff\xbf'
        info = base64url.info(io.BytesIO(b'+/-_-_'))
        assert not info
        assert info.number_of_foreign == 2
        assert info.checks['clean'] is False
        assert 'clean' in info.warnings

    def test_group_reading(self):
        fh = base64url.open(io.BytesIO(b'-_-_TWE='), 'rb')
        assert [group.data for group in fh] == [b'\xfb\xff\xbf', b'Ma']
