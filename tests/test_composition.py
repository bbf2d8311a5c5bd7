"""
Tests for the composition builder and clip request validation.
"""
import pytest
from pydantic import ValidationError

from services.clip_export import (
    CaptionLayer,
    ClipRequest,
    OutputSpec,
    Platform,
    PLATFORM_FORMATS,
    TitleLayer,
    VideoLayer,
    build_composition,
)
from services.clip_export.composition import (
    TITLE_DISPLAY_SECONDS,
    resolve_source_url,
)


class TestClipRequest:
    def test_valid_range(self, make_clip):
        clip = make_clip(start_offset_seconds=5, end_offset_seconds=20)
        assert clip.duration_seconds == 15

    def test_start_must_precede_end(self):
        with pytest.raises(ValidationError):
            ClipRequest(source_video_ref="abc", start_offset_seconds=30, end_offset_seconds=30)

    def test_negative_start_rejected(self):
        with pytest.raises(ValidationError):
            ClipRequest(source_video_ref="abc", start_offset_seconds=-1, end_offset_seconds=10)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            ClipRequest(source_video_ref="abc", start_offset_seconds=20, end_offset_seconds=10)

    def test_clip_id_generated(self):
        a = ClipRequest(source_video_ref="abc", start_offset_seconds=0, end_offset_seconds=10)
        b = ClipRequest(source_video_ref="abc", start_offset_seconds=0, end_offset_seconds=10)
        assert a.clip_id and b.clip_id
        assert a.clip_id != b.clip_id


class TestPlatformFormats:
    def test_every_platform_is_vertical_1080p(self):
        for platform in Platform:
            fmt = PLATFORM_FORMATS[platform]
            assert (fmt.width, fmt.height) == (1080, 1920)

    def test_display_names(self):
        assert Platform.INSTAGRAM_REELS.display_name == "Instagram Reels"
        assert Platform.YOUTUBE_SHORTS.display_name == "YouTube Shorts"
        assert Platform.TIKTOK.display_name == "TikTok"

    def test_output_spec_for_platform(self):
        spec = OutputSpec.for_platform(Platform.TIKTOK)
        assert spec.width == 1080
        assert spec.height == 1920
        assert spec.frame_rate == 30
        assert spec.output_format == "mp4"


class TestBuildComposition:
    def test_all_layers(self, make_clip):
        clip = make_clip(captions_enabled=True, title="Big moment")
        descriptor = build_composition(clip, Platform.TIKTOK)

        assert [type(l) for l in descriptor.layers] == [VideoLayer, CaptionLayer, TitleLayer]

    def test_video_layer_is_trimmed_source(self, make_clip):
        clip = make_clip(source_video_ref="dQw4w9WgXcQ", start_offset_seconds=12, end_offset_seconds=42)
        video = build_composition(clip, Platform.TIKTOK).video_layer

        assert video.source_ref == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
        assert video.trim_start == 12
        assert video.trim_end == 42
        assert video.fit == "cover"

    def test_no_captions_when_disabled(self, make_clip):
        descriptor = build_composition(make_clip(captions_enabled=False), Platform.TIKTOK)
        assert descriptor.caption_layer is None
        assert isinstance(descriptor.layers[0], VideoLayer)

    def test_captions_reference_video_audio(self, make_clip):
        descriptor = build_composition(make_clip(), Platform.YOUTUBE_SHORTS)
        captions = descriptor.caption_layer

        assert captions.transcript_source == descriptor.video_layer.name
        assert captions.effect == "karaoke"

    @pytest.mark.parametrize("title", ["", "   "])
    def test_no_title_layer_for_blank_title(self, make_clip, title):
        descriptor = build_composition(make_clip(title=title), Platform.TIKTOK)
        assert descriptor.title_layer is None

    def test_title_window(self, make_clip):
        title = build_composition(make_clip(title="  Watch this  "), Platform.TIKTOK).title_layer

        assert title.text == "Watch this"
        assert title.time == 0
        assert title.duration == TITLE_DISPLAY_SECONDS == 3.0
        assert title.fade_out_duration == 0.5

    def test_deterministic(self, make_clip):
        clip = make_clip()
        first = build_composition(clip, Platform.INSTAGRAM_REELS)
        second = build_composition(clip, Platform.INSTAGRAM_REELS)

        assert first == second
        assert first is not second

    def test_does_not_share_style_dicts(self, make_clip):
        clip = make_clip()
        first = build_composition(clip, Platform.TIKTOK)
        first.caption_layer.style["font_size"] = "99 vmin"

        assert build_composition(clip, Platform.TIKTOK).caption_layer.style["font_size"] == "6 vmin"


class TestResolveSourceUrl:
    def test_bare_id(self):
        assert resolve_source_url("abc123") == "https://www.youtube.com/watch?v=abc123"

    def test_url_passthrough(self):
        url = "https://cdn.example.com/source.mp4"
        assert resolve_source_url(url) == url
