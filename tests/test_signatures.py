from services.imaging.signatures import format_for_mime, matches_signature, sniff_format
from services.imaging.verdict import ImageFormat

from gen_test_images import make_gif, make_jpeg, make_png, make_webp_vp8x


def test_each_format_matches_its_own_mime():
    assert matches_signature(make_png(100, 100), "image/png")
    assert matches_signature(make_jpeg(100, 100), "image/jpeg")
    assert matches_signature(make_jpeg(100, 100), "image/jpg")
    assert matches_signature(make_gif(100, 100), "image/gif")
    assert matches_signature(make_gif(100, 100, version=b"87a"), "image/gif")
    assert matches_signature(make_webp_vp8x(100, 100), "image/webp")


def test_cross_format_does_not_match():
    assert not matches_signature(make_jpeg(100, 100), "image/png")
    assert not matches_signature(make_png(100, 100), "image/gif")


def test_unknown_mime_fails_closed():
    assert not matches_signature(make_png(100, 100), "image/bmp")
    assert not matches_signature(make_png(100, 100), "")


def test_short_buffer_never_matches():
    assert not matches_signature(b"\xff\xd8\xff\xe0", "image/jpeg")


def test_riff_only_passes_unless_strict():
    wav = b"RIFF" + b"\x24\x00\x00\x00" + b"WAVEfmt " + b"\x00" * 100
    assert matches_signature(wav, "image/webp")
    assert not matches_signature(wav, "image/webp", strict_webp=True)
    assert matches_signature(make_webp_vp8x(100, 100), "image/webp", strict_webp=True)


def test_sniff_format():
    assert sniff_format(make_png(100, 100)) is ImageFormat.PNG
    assert sniff_format(make_webp_vp8x(100, 100)) is ImageFormat.WEBP
    assert sniff_format(b"RIFF\x00\x00\x00\x00WAVEfmt ") is None
    assert sniff_format(b"hello") is None


def test_format_for_mime_normalises_case():
    assert format_for_mime("IMAGE/PNG") is ImageFormat.PNG
    assert format_for_mime("image/jpg") is ImageFormat.JPEG
    assert format_for_mime("text/plain") is None
    assert format_for_mime(None) is None
