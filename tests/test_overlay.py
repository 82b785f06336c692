import pytest

from dualsub.exceptions import ConfigurationError
from dualsub.overlay import OverlayLayout, approximate_text_width, compose_overlay, find_active
from dualsub.timeline import SubtitleTrack


def half_em(text, size, bold):
    return len(text) * size * 0.5


def test_find_active_boundaries_are_inclusive(make_subtitle):
    sub = make_subtitle(2.0, 4.0, "x")
    subs = [sub]
    assert find_active(subs, 1.999) is None
    assert find_active(subs, 2.0) is sub
    assert find_active(subs, 4.0) is sub
    assert find_active(subs, 4.001) is None


def test_find_active_overlap_tie_break(make_subtitle):
    a = make_subtitle(0, 5, "A")
    b = make_subtitle(3, 8, "B")
    assert find_active([a, b], 4.0) is a
    assert find_active(SubtitleTrack([a, b]), 4.0) is a


def test_find_active_gaps_and_empty(make_subtitle):
    subs = [make_subtitle(1, 2), make_subtitle(3, 4)]
    assert find_active(subs, 2.5) is None
    assert find_active(subs, 0.0) is None
    assert find_active(subs, 10.0) is None
    assert find_active([], 1.0) is None
    assert find_active(SubtitleTrack(), 1.0) is None


def test_compose_overlay_without_subtitle():
    assert compose_overlay(None, 1920, 1080) is None


def test_compose_overlay_geometry(make_subtitle):
    sub = make_subtitle(0, 1, "Hello there", "你好")
    instruction = compose_overlay(sub, 1920, 1080, measure=half_em)

    source_size = 1080 * 0.04
    target_size = 1080 * 0.035
    padding = 1080 * 0.0185
    source_width = len("Hello there") * source_size * 0.5

    panel = instruction.panel
    assert panel.width == pytest.approx(source_width + 2 * padding)
    assert panel.height == pytest.approx(source_size + target_size + 2 * padding)
    assert panel.x + panel.width / 2 == pytest.approx(960)
    assert panel.y + panel.height + 1080 * 0.08 == pytest.approx(1080)

    source, target = instruction.lines
    assert (source.text, target.text) == ("Hello there", "你好")
    assert source.bold and not target.bold
    assert source.x == target.x == pytest.approx(960)
    assert source.font_size == pytest.approx(source_size)
    assert target.font_size == pytest.approx(target_size)
    assert source.y < target.y < panel.y + panel.height
    assert instruction.subtitle is sub


def test_panel_uses_wider_line(make_subtitle):
    sub = make_subtitle(0, 1, "Hi", "这是一段比较长的中文翻译")
    instruction = compose_overlay(sub, 1280, 720, measure=half_em)
    target_width = instruction.lines[1].width
    assert target_width > instruction.lines[0].width
    assert instruction.panel.width == pytest.approx(target_width + 2 * 720 * 0.0185)


def test_overlay_scales_with_frame_size(make_subtitle):
    sub = make_subtitle(0, 1, "Scale me", "缩放")
    small = compose_overlay(sub, 1920, 1080, measure=half_em)
    large = compose_overlay(sub, 3840, 2160, measure=half_em)
    assert large.panel.width == pytest.approx(small.panel.width * 2)
    assert large.panel.height == pytest.approx(small.panel.height * 2)
    assert large.panel.y == pytest.approx(small.panel.y * 2)
    assert large.lines[0].font_size == pytest.approx(small.lines[0].font_size * 2)


def test_empty_texts_are_not_measured(make_subtitle):
    def refuse_empty(text, size, bold):
        assert text
        return 10.0

    sub = make_subtitle(0, 1, "", "")
    instruction = compose_overlay(sub, 100, 100, measure=refuse_empty)
    assert instruction.panel.width == pytest.approx(2 * 100 * 0.0185)
    assert [line.width for line in instruction.lines] == [0.0, 0.0]


def test_approximate_text_width():
    assert approximate_text_width("", 40) == 0.0
    assert approximate_text_width("嗨", 40) == pytest.approx(40)
    assert approximate_text_width("ab", 40) == pytest.approx(2 * 0.55 * 40)
    assert approximate_text_width("ab", 40, bold=True) > approximate_text_width("ab", 40)


def test_layout_from_config():
    layout = OverlayLayout.from_config({
        "source_font_ratio": 0.05,
        "panel_color": "#000000b2",
        "source_color": "#facc15",
        "target_color": [10, 20, 30],
    })
    assert layout.source_font_ratio == 0.05
    assert layout.target_font_ratio == OverlayLayout().target_font_ratio
    assert layout.panel_color == (0, 0, 0, 178)
    assert layout.source_color == (250, 204, 21, 255)
    assert layout.target_color == (10, 20, 30, 255)
    assert OverlayLayout.from_config(None) == OverlayLayout()


@pytest.mark.parametrize(
    "section",
    [
        {"source_font_ratio": 0},
        {"padding_ratio": 1.5},
        {"bottom_offset_ratio": "big"},
        {"panel_color": "#zzzzzz"},
        {"panel_color": [0, 0]},
        {"font": "Arial"},
    ],
)
def test_layout_from_config_rejects_invalid(section):
    with pytest.raises(ConfigurationError):
        OverlayLayout.from_config(section)
