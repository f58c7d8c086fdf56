"""
Tests for content sniffing
"""
import pytest


class TestDetectExtension:
    """Magic-number and text detection."""

    @pytest.mark.parametrize("data,ext", [
        (b'\x89PNG\x00', 'png'),
        (b'MOC3\x00', 'moc3'),
        (b'moc\x00\x00', 'moc'),
        (b'RIFF\x24\x00\x00\x00WAVE', 'wav'),
        (b'OggS\x00\x02', 'ogg'),
        (b'\xff\xfb\x90\x64', 'mp3'),
        (b'ID3\x04\x00', 'mp3'),
        (b'\xff\xd8\xff\xe0', 'jpg'),
    ])
    def test_binary_magic(self, data, ext):
        from rive2d.packaging.sniff import detect_extension
        assert detect_extension(data) == ext

    def test_json_text(self):
        from rive2d.packaging.sniff import detect_extension

        assert detect_extension(b'{"Version":3}') == 'json'
        assert detect_extension(b'  \n[1, 2]') == 'json'

    def test_motion_text(self):
        from rive2d.packaging.sniff import detect_extension
        assert detect_extension(b'# Live2D Animator Motion Data\n$fps=30') == 'mtn'

    def test_unknown_bytes(self):
        from rive2d.packaging.sniff import detect_extension

        assert detect_extension(bytes([0x00, 0x01, 0x02, 0x03])) == 'bin'
        assert detect_extension(b'') == 'bin'
        assert detect_extension(b'plain text') == 'bin'

    def test_invalid_utf8_is_binary(self):
        from rive2d.packaging.sniff import detect_extension
        assert detect_extension(b'{\xff\xfe\xfd') == 'bin'

    def test_magic_wins_over_text(self):
        """'moc' is also valid UTF-8 text"""
        from rive2d.packaging.sniff import detect_extension
        assert detect_extension(b'moc {"a": 1}') == 'moc'

    def test_jpeg_is_not_mp3(self):
        """FF D8 does not carry the MPEG frame sync bits"""
        from rive2d.packaging.sniff import detect_extension
        assert detect_extension(b'\xff\xd8\xff\xdb\x00') == 'jpg'


class TestClassify:

    def test_kinds(self):
        from rive2d.packaging.sniff import AssetKind, classify

        assert classify("0123.png") == AssetKind.IMAGE
        assert classify("0123.moc3") == AssetKind.MODEL
        assert classify("voice/01.OGG") == AssetKind.AUDIO
        assert classify("physics.json") == AssetKind.TEXT
        assert classify("idle.mtn") == AssetKind.MOTION
        assert classify("0123.bin") == AssetKind.BINARY
        assert classify("README") == AssetKind.BINARY
