import json

import pytest

from dualsub.cli import CLIHandler

SEGMENTS = [
    {"index": 1, "startTime": "00:00:00,000", "endTime": "00:00:01,500", "originalText": "Hi", "translatedText": "嗨"},
]


@pytest.fixture
def workspace(tmp_path, monkeypatch, restore_root_logging):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "talk.mp4").write_bytes(b"\x00")
    (tmp_path / "segments.json").write_text(json.dumps(SEGMENTS, ensure_ascii=False), encoding="utf-8")
    (tmp_path / "config.yaml").write_text("temp_dir: temp\ndevice: cpu\nlog_dir: logs\n", encoding="utf-8")
    return tmp_path


def run(argv):
    with pytest.raises(SystemExit) as excinfo:
        CLIHandler().run(argv)
    return excinfo.value.code


def test_run_from_segments_json(workspace):
    code = run(["-v", "talk.mp4", "-o", "out", "--segments-json", "segments.json", "--modes", "bilingual", "target"])
    assert code == 0
    assert (workspace / "out" / "talk_bilingual.srt").read_text(encoding="utf-8") == (
        "1\n00:00:00,000 --> 00:00:01,500\nHi\n嗨\n\n"
    )
    assert (workspace / "out" / "talk_zh.srt").exists()
    assert not (workspace / "out" / "talk_en.srt").exists()
    assert (workspace / "logs" / "dualsub.log").exists()


def test_missing_config_exits_with_error(workspace):
    assert run(["-v", "talk.mp4", "-o", "out", "-c", "missing.yaml", "--segments-json", "segments.json"]) == 1


def test_missing_video_exits_with_error(workspace):
    assert run(["-v", "nope.mp4", "-o", "out", "--segments-json", "segments.json"]) == 1


def test_bad_segments_exit_with_error(workspace):
    (workspace / "segments.json").write_text("not json", encoding="utf-8")
    assert run(["-v", "talk.mp4", "-o", "out", "--segments-json", "segments.json"]) == 1


def test_segments_and_srt_are_mutually_exclusive(workspace):
    assert run(["-v", "talk.mp4", "-o", "out", "--segments-json", "a.json", "--srt-input", "b.srt"]) == 2


def test_local_backend_uses_configured_batch_size(tmp_path, monkeypatch):
    from dualsub import transcriber, translator
    from dualsub.config_loader import merge_config

    class StubModel:
        def __init__(self, **kwargs):
            self.kwargs = kwargs

    monkeypatch.setattr(transcriber, "WhisperTranscriber", StubModel)
    monkeypatch.setattr(translator, "HuggingFaceTranslator", StubModel)
    config = merge_config({'temp_dir': str(tmp_path / "temp"), 'device': 'cpu', 'translation_batch_size': 8})

    generator = CLIHandler()._build_generator(config, needs_transcription=True, burn_in=False)

    assert generator.segment_source.batch_size == 8
    assert generator.segment_source.translator.kwargs['batch_size'] == 8
