"""
Unit tests for the fluent Brilliance builder.
"""
from unittest.mock import patch

import numpy as np
import pytest

from brilliance import Brilliance, ExtractionConfig, RasterImage, RGB
from brilliance.config import config as app_config
from brilliance.services.reliability import CancellationToken, ExtractionCancelled, InvalidInput


class TestBuilderSettings:
    """Test setter chaining and defaults"""

    def test_defaults(self):
        builder = Brilliance()
        assert builder.raster is None
        assert builder.requested_quality == 1
        assert builder.requested_gray_tolerance == 15
        assert builder.requested_speed == 2
        assert builder.scaling is False
        assert builder.allow_gray is False
        assert builder.logging is False
        assert builder.result is None
        assert builder.benchmark == 0

    def test_setters_chain(self, two_tone_pixels):
        builder = Brilliance()
        returned = (builder.image(two_tone_pixels).quality(3).include_gray(True)
                    .gray_tolerance(40).speed(5).scale(True).log(True))

        assert returned is builder
        assert builder.raster.width == 20
        assert (builder.requested_quality, builder.requested_gray_tolerance, builder.requested_speed) == (3, 40, 5)
        assert builder.scaling and builder.allow_gray and builder.logging

    def test_config_snapshot(self):
        config = Brilliance().quality(7).gray_tolerance(99).config()
        assert config.quality == 7
        assert config.gray_tolerance == 99
        assert config.max_passes is None
        assert config.table == app_config.FREQUENCY_TABLE

    def test_config_defaults_fill_unset_fields(self):
        config = ExtractionConfig.from_defaults(quality=None, speed=6)
        assert config.quality == app_config.DEFAULT_QUALITY
        assert config.speed == 6

    def test_invalid_image_fails_on_set(self):
        with pytest.raises(InvalidInput):
            Brilliance().image("")


class TestBuild:
    """Test build() results"""

    def test_build_returns_dominant_rgb(self, two_tone_pixels):
        builder = Brilliance().image(two_tone_pixels)
        color = builder.build()

        assert color == RGB(220, 30, 40)
        assert builder.result.hex == "#DC1E28"
        assert builder.benchmark == builder.result.elapsed_ms

    def test_build_without_image(self):
        with pytest.raises(InvalidInput, match="null"):
            Brilliance().build()

    def test_out_of_range_settings_fail_on_build(self, two_tone_pixels):
        builder = Brilliance().image(two_tone_pixels).quality(501)
        with pytest.raises(InvalidInput, match="quality"):
            builder.build()

    def test_effective_values_on_result_only(self):
        """Scaling and tolerance decay never overwrite the requested settings"""
        pixels = np.zeros((1000, 1000, 3), dtype=np.uint8)
        builder = Brilliance().image(pixels).quality(37).scale(True)
        assert builder.build() == RGB(0, 0, 0)

        assert builder.result.effective_quality == 4
        assert builder.requested_quality == 37
        assert builder.result.effective_tolerance < 0
        assert builder.requested_gray_tolerance == 15

    def test_retry_reported_on_result(self):
        builder = Brilliance().image(np.array([[[255, 0, 0]]], dtype=np.uint8))
        assert builder.build() == RGB(255, 0, 0)
        assert builder.result.passes == 2
        assert builder.result.effective_tolerance == 13

    def test_rebuild_is_stable(self, two_tone_pixels):
        builder = Brilliance().image(two_tone_pixels).quality(2)
        assert builder.build() == builder.build()

    def test_cancel_token_passed_through(self):
        token = CancellationToken()
        token.cancel("shutdown")
        builder = Brilliance().image(np.array([[[255, 0, 0]]], dtype=np.uint8))
        with pytest.raises(ExtractionCancelled, match="shutdown"):
            builder.build(cancel_token=token)


class TestImageSources:
    """Test the sources accepted by image()"""

    def test_file_path(self, tmp_path, two_tone_png):
        path = tmp_path / "two_tone.png"
        path.write_bytes(two_tone_png)
        assert Brilliance().image(str(path)).build() == RGB(220, 30, 40)

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidInput, match="does not exist"):
            Brilliance().image(str(tmp_path / "nope.png"))

    def test_encoded_bytes(self, two_tone_png):
        assert Brilliance().image(two_tone_png).build() == RGB(220, 30, 40)

    def test_url(self, two_tone_pixels):
        raster = RasterImage.from_array(two_tone_pixels)
        with patch("brilliance.services.imaging.fetch_image", return_value=raster) as fetch:
            color = Brilliance().image("https://example.com/photo.png").build()

        fetch.assert_called_once_with("https://example.com/photo.png")
        assert color == RGB(220, 30, 40)


class TestCopyFrom:
    """Test copy_from semantics"""

    def test_copies_image_and_core_settings(self, two_tone_pixels):
        source = (Brilliance().image(two_tone_pixels).quality(4).include_gray(True)
                  .gray_tolerance(60).speed(9).scale(True).log(True))
        target = Brilliance().copy_from(source)

        assert target.raster is source.raster
        assert target.requested_quality == 4
        assert target.allow_gray is True
        assert target.requested_gray_tolerance == 60
        assert target.requested_speed == 9

    def test_scale_and_log_not_copied(self, two_tone_pixels):
        source = Brilliance().image(two_tone_pixels).scale(True).log(True)
        target = Brilliance().copy_from(source)

        assert target.scaling is False
        assert target.logging is False

    def test_copy_from_none_is_noop(self, two_tone_pixels):
        builder = Brilliance().image(two_tone_pixels).quality(3)
        assert builder.copy_from(None) is builder
        assert builder.requested_quality == 3
        assert builder.raster is not None

    def test_copies_are_independent(self, two_tone_pixels):
        source = Brilliance().image(two_tone_pixels)
        target = Brilliance().copy_from(source).quality(2)
        assert source.requested_quality == 1
        assert target.build() == source.build()
