from io import BytesIO

import pytest
from PIL import Image

from filesdk.compression import ImageCompressor, encode_quality, target_size


def _size(data: bytes) -> tuple[int, int]:
    return Image.open(BytesIO(data)).size


class TestTargetSize:
    def test_absolute_width_keeps_aspect(self):
        assert target_size(400, 300, 200) == (200, 150)

    def test_scale_factor(self):
        assert target_size(400, 300, 0.5) == (200, 150)

    def test_never_zero(self):
        assert target_size(10, 10, 0.01) == (1, 1)

    def test_encode_quality(self):
        assert encode_quality(0.5) == 50
        assert encode_quality(0.001) == 1
        assert encode_quality(200) is None


class TestImageCompressor:
    def setup_method(self):
        self.compressor = ImageCompressor(max_workers=2)

    def test_scenario_half_and_absolute_width(self, make_image):
        data = make_image(400, 300)
        result = self.compressor.expand(data, [0.5, 200])

        assert not result.skipped
        assert result.mime_type == "image/jpeg"
        assert result.qualities == [1, 0.5, 200]
        by_quality = {image.quality: image.data for image in result.images}
        assert by_quality[1] is data
        assert _size(by_quality[0.5]) == (200, 150)
        assert _size(by_quality[200]) == (200, 150)

    def test_original_is_untouched_bytes(self, make_image):
        data = make_image(64, 48)
        result = self.compressor.expand(data, [0.5])
        assert result.images[0].quality == 1
        assert result.images[0].data == data

    def test_one_entry_per_distinct_value(self, make_image):
        data = make_image(100, 100)
        result = self.compressor.expand(data, [0.5, 0.5, 1, 1.0, 50, 50.0])
        assert result.qualities == [1, 0.5, 50]

    def test_compress_never_sees_original(self, make_image):
        result = self.compressor.compress(make_image(50, 50), [1, 0.5])
        assert result.qualities == [0.5]

    def test_png_is_resized(self, make_image):
        data = make_image(80, 40, fmt="PNG")
        result = self.compressor.expand(data, [0.25])
        assert result.mime_type == "image/png"
        assert _size(result.images[1].data) == (20, 10)
        assert Image.open(BytesIO(result.images[1].data)).format == "PNG"

    def test_lower_quality_shrinks_jpeg(self, make_image):
        img = Image.effect_noise((256, 256), 64).convert("RGB")
        buf = BytesIO()
        img.save(buf, format="JPEG", quality=95)
        result = self.compressor.expand(buf.getvalue(), [0.99, 0.1])
        sizes = {image.quality: len(image.data) for image in result.images}
        assert sizes[0.1] < sizes[0.99]

    @pytest.mark.parametrize(
        "payload",
        [b"", b"%PDF-1.4 not an image", b"\x00\x01\x02\x03" * 100],
    )
    def test_non_image_returns_only_original(self, payload):
        result = self.compressor.expand(payload, [0.5, 200])
        assert result.skipped
        assert result.mime_type is None
        assert result.qualities == [1]
        assert result.images[0].data == payload

    def test_truncated_image_degrades(self, make_image):
        data = make_image(400, 300)
        truncated = data[: len(data) // 2]
        result = self.compressor.expand(truncated, [0.5])
        assert result.skipped
        assert result.qualities == [1]

    def test_encoding_failure_degrades(self, make_image, monkeypatch):
        def boom(*args, **kwargs):
            raise OSError("encoder exploded")

        monkeypatch.setattr("filesdk.compression._render", boom)
        result = self.compressor.expand(make_image(40, 40), [0.5])
        assert result.skipped
        assert "encoder exploded" in result.skipped_reason
        assert result.mime_type == "image/jpeg"
        assert result.qualities == [1]

    def test_read_only_format_returns_only_original(self):
        data = b'/* XPM */\nstatic char *x[] = {\n"4 2 1 1",\n"a c #ff0000",\n"aaaa",\n"aaaa"\n};\n'
        result = self.compressor.expand(data, [0.5, 2])
        assert result.skipped
        assert "XPM" in result.skipped_reason
        assert result.mime_type == "image/xpm"
        assert result.qualities == [1]
        assert result.images[0].data == data

    def test_encoder_key_error_degrades(self, make_image, monkeypatch):
        def boom(*args, **kwargs):
            raise KeyError("JPEG")

        monkeypatch.setattr("filesdk.compression._render", boom)
        result = self.compressor.expand(make_image(40, 40), [0.5])
        assert result.skipped
        assert result.qualities == [1]

    def test_no_qualities_requested(self, make_image):
        result = self.compressor.expand(make_image(40, 40), [])
        assert not result.skipped
        assert result.qualities == [1]
        assert result.mime_type == "image/jpeg"
