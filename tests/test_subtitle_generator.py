import json
import os

import pytest

from dualsub.config_loader import merge_config
from dualsub.exceptions import DualSubError, TranscriptionError
from dualsub.models import Segment, SRTMode, TranscriptionResult
from dualsub.segment_source import BilingualSegmentSource
from dualsub.srt_codec import read_srt_file
from dualsub.subtitle_generator import SubtitleGenerator
from dualsub.transcriber import Transcriber
from dualsub.translator import Translator

SEGMENTS = [
    {"index": 1, "startTime": "00:00:03,000", "endTime": "00:00:04,000", "originalText": "Second", "translatedText": "第二"},
    {"index": 2, "startTime": "00:00:01,000", "endTime": "00:00:02,000", "originalText": "First", "translatedText": "第一"},
]


class FakeAudioExtractor:
    def __init__(self):
        self.paths = []

    def extract_audio(self, video_filepath, output_audio_dir, output_filename=None):
        path = os.path.join(output_audio_dir, f"{output_filename}.wav")
        with open(path, "wb") as f:
            f.write(b"RIFF")
        self.paths.append(path)
        return path


class FakeTranscriber(Transcriber):
    def __init__(self, fail=False):
        self.fail = fail

    def transcribe(self, audio_path):
        assert os.path.isfile(audio_path)
        if self.fail:
            raise TranscriptionError("model exploded")
        return TranscriptionResult(language="en", segments=[Segment(0.0, 1.25, "Hi there")])


class UpperTranslator(Translator):
    def translate(self, text):
        return text.upper()


class FakeRenderer:
    def __init__(self):
        self.calls = []

    def render(self, video_path, track, output_path, progress=None, cancel_event=None):
        self.calls.append((video_path, list(track), output_path))
        with open(output_path, "wb") as f:
            f.write(b"video")
        return output_path


@pytest.fixture
def video(tmp_path):
    path = tmp_path / "My Talk.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    return str(path)


@pytest.fixture
def config(tmp_path):
    return merge_config({'temp_dir': str(tmp_path / "temp"), 'device': 'cpu'})


@pytest.fixture
def segments_json(tmp_path):
    path = tmp_path / "segments.json"
    path.write_text(json.dumps(SEGMENTS, ensure_ascii=False), encoding="utf-8")
    return str(path)


def test_generate_from_segments_json(tmp_path, config, video, segments_json):
    out = tmp_path / "out"
    result = SubtitleGenerator(config).generate(video, str(out), segments_json=segments_json)

    assert [s.original_text for s in result.subtitles] == ["First", "Second"]
    assert set(result.srt_paths) == set(SRTMode)
    assert os.path.basename(result.srt_paths[SRTMode.SOURCE_ONLY]) == "My Talk_en.srt"
    assert os.path.basename(result.srt_paths[SRTMode.TARGET_ONLY]) == "My Talk_zh.srt"
    bilingual = (out / "My Talk_bilingual.srt").read_text(encoding="utf-8")
    assert bilingual.startswith("1\n00:00:01,000 --> 00:00:02,000\nFirst\n第一\n\n2\n")
    assert result.burned_video_path is None
    assert result.video.name == "My Talk.mp4"
    assert result.video.type == "video/mp4"


def test_generate_with_local_backend_cleans_up_audio(tmp_path, config, video):
    extractor = FakeAudioExtractor()
    generator = SubtitleGenerator(
        config,
        audio_extractor=extractor,
        segment_source=BilingualSegmentSource(FakeTranscriber(), UpperTranslator()),
    )
    result = generator.generate(video, str(tmp_path / "out"), modes=[SRTMode.BILINGUAL])

    assert list(result.srt_paths) == [SRTMode.BILINGUAL]
    (sub,) = read_srt_file(result.srt_paths[SRTMode.BILINGUAL])
    assert (sub.original_text, sub.translated_text) == ("Hi there", "HI THERE")
    assert sub.end_time == "00:00:01,250"
    assert extractor.paths and not any(os.path.exists(p) for p in extractor.paths)


def test_transcription_failure_cleans_up_audio(tmp_path, config, video):
    extractor = FakeAudioExtractor()
    generator = SubtitleGenerator(
        config,
        audio_extractor=extractor,
        segment_source=BilingualSegmentSource(FakeTranscriber(fail=True), UpperTranslator()),
    )
    with pytest.raises(TranscriptionError):
        generator.generate(video, str(tmp_path / "out"))
    assert not any(os.path.exists(p) for p in extractor.paths)


def test_generate_from_srt_with_burn_in(tmp_path, config, video):
    srt = tmp_path / "input.srt"
    srt.write_text("1\n00:00:00,000 --> 00:00:01,000\nHello\n你好\n", encoding="utf-8")
    renderer = FakeRenderer()
    generator = SubtitleGenerator(config, renderer=renderer)

    result = generator.generate(video, str(tmp_path / "out"), srt_input=str(srt), burn_in=True, modes=[SRTMode.TARGET_ONLY])

    assert os.path.basename(result.burned_video_path) == "My Talk_bilingual.mp4"
    (video_path, track, output_path) = renderer.calls[0]
    assert video_path == video
    assert [s.translated_text for s in track] == ["你好"]
    assert output_path == result.burned_video_path


def test_burn_in_without_renderer(tmp_path, config, video, segments_json):
    with pytest.raises(DualSubError):
        SubtitleGenerator(config).generate(video, str(tmp_path / "out"), segments_json=segments_json, burn_in=True)


def test_no_backend_and_no_input(tmp_path, config, video):
    with pytest.raises(DualSubError):
        SubtitleGenerator(config).generate(video, str(tmp_path / "out"))


def test_empty_segments_are_an_error(tmp_path, config, video):
    path = tmp_path / "empty.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(DualSubError, match="No subtitle segments"):
        SubtitleGenerator(config).generate(video, str(tmp_path / "out"), segments_json=str(path))


def test_missing_video(tmp_path, config, segments_json):
    with pytest.raises(FileNotFoundError):
        SubtitleGenerator(config).generate(str(tmp_path / "nope.mp4"), str(tmp_path / "out"), segments_json=segments_json)


def test_custom_suffixes(tmp_path, video, segments_json):
    config = merge_config({'temp_dir': str(tmp_path / "temp"), 'mode_suffixes': {'target': 'cn'}})
    result = SubtitleGenerator(config).generate(video, str(tmp_path / "out"), segments_json=segments_json, modes=[SRTMode.TARGET_ONLY])
    assert result.srt_paths[SRTMode.TARGET_ONLY].endswith("My Talk_cn.srt")


def test_unwritable_temp_dir(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(DualSubError):
        SubtitleGenerator(merge_config({'temp_dir': str(blocker)}))
