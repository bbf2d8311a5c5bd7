"""
Composition Builder
===================
Turns a clip request into the layered composition sent to the render engine.

The result depends only on (clip, platform), so a failed submission can be
retried with an identical composition.

Layers, in order:
    1. video    trimmed source, scaled to cover the vertical frame
    2. captions karaoke-style words transcribed from the video's own audio
    3. title    top banner for the first 3 seconds, fading out
"""

from typing import List

from config.settings import YOUTUBE_WATCH_URL

from .models import (
    CaptionLayer,
    ClipRequest,
    CompositionDescriptor,
    Layer,
    Platform,
    TitleLayer,
    VideoLayer,
    VIDEO_LAYER_NAME,
)

TITLE_DISPLAY_SECONDS = 3.0
TITLE_FADE_OUT_SECONDS = 0.5

CAPTION_STYLE = {
    "transcript_color": "#FFD700",
    "width": "90%",
    "height": "25%",
    "x_alignment": "50%",
    "y_alignment": "85%",
    "font_family": "Montserrat",
    "font_weight": "800",
    "font_size": "6 vmin",
    "fill_color": "#ffffff",
    "stroke_color": "#000000",
    "stroke_width": "0.8 vmin",
    "background_color": "rgba(0,0,0,0.6)",
    "background_x_padding": "5%",
    "background_y_padding": "3%",
    "background_border_radius": "10%",
    "text_align": "center",
}

TITLE_STYLE = {
    "width": "90%",
    "x_alignment": "50%",
    "y_alignment": "8%",
    "font_family": "Montserrat",
    "font_weight": "700",
    "font_size": "4.5 vmin",
    "fill_color": "#ffffff",
    "stroke_color": "#000000",
    "stroke_width": "0.5 vmin",
    "background_color": "rgba(0,0,0,0.7)",
    "background_x_padding": "4%",
    "background_y_padding": "2%",
    "background_border_radius": "8%",
    "text_align": "center",
}


def resolve_source_url(source_video_ref: str) -> str:
    """Expand a bare YouTube id to a watch URL; pass URLs through."""
    if source_video_ref.startswith(("http://", "https://")):
        return source_video_ref
    return YOUTUBE_WATCH_URL.format(video_id=source_video_ref)


def build_composition(clip: ClipRequest, platform: Platform) -> CompositionDescriptor:
    """
    Build the composition for one clip on one platform.

    All supported platforms share the 1080x1920 frame, so the layers are
    currently the same for every platform.
    """
    layers: List[Layer] = [
        VideoLayer(
            source_ref=resolve_source_url(clip.source_video_ref),
            trim_start=clip.start_offset_seconds,
            trim_end=clip.end_offset_seconds,
            fit="cover",
            name=VIDEO_LAYER_NAME,
        )
    ]

    if clip.captions_enabled:
        layers.append(
            CaptionLayer(
                transcript_source=VIDEO_LAYER_NAME,
                effect="karaoke",
                style=dict(CAPTION_STYLE),
            )
        )

    title = clip.title.strip()
    if title:
        layers.append(
            TitleLayer(
                text=title,
                time=0.0,
                duration=TITLE_DISPLAY_SECONDS,
                fade_out_duration=TITLE_FADE_OUT_SECONDS,
                style=dict(TITLE_STYLE),
            )
        )

    return CompositionDescriptor(layers=tuple(layers))
