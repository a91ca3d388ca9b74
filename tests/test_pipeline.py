"""Tests for the storage-triggered pipeline."""

import asyncio

import pytest

from srt_cloud_translator import pipeline
from srt_cloud_translator.config import TranslatorConfig
from srt_cloud_translator.errors import (
    ConfigurationError,
    EmptyContentError,
    TranslationFailedError,
)
from srt_cloud_translator.pipeline import (
    PipelineDependencies,
    decode_content,
    handle_event,
    output_filename,
)

from fakes import FakeBackend, FakeStorage

SRT = "1\n00:00:01,000 --> 00:00:02,000\nHello\n\n"


@pytest.fixture
def config(tmp_path):
    return TranslatorConfig(
        api_key="test-key",
        target_bucket="target",
        temp_dir=str(tmp_path),
        max_batch_size=128,
    )


def make_deps(config, storage, backend=None):
    backend = backend or FakeBackend({"Hello": "Hallo"})
    return PipelineDependencies(config=config, storage=storage, backend=backend)


def event_for(name, **extra):
    data = {"bucket": "source", "name": name, "resourceState": "exists", "contentType": "text/plain"}
    data.update(extra)
    return data


class TestOutputFilename:

    @pytest.mark.parametrize("name, expected", [
        ("sample-en.txt", "sample-nl.txt"),
        ("dir/sub/movie-en.srt", "movie-nl.srt"),
        ("movie.srt", "movie.srt"),
        ("a-en-en.srt", "a-nl-en.srt"),
    ])
    def test_rule(self, name, expected):
        assert output_filename(name, "en", "nl") == expected


class TestDecodeContent:

    def test_utf8_with_bom(self):
        assert decode_content("\ufeff1\n".encode("utf-8")) == "1\n"

    @pytest.mark.parametrize("data", [None, b""])
    def test_empty(self, data):
        with pytest.raises(EmptyContentError):
            decode_content(data)

    def test_undecodable(self):
        with pytest.raises(EmptyContentError):
            decode_content(b"\xff\xfe\xfa")


class TestHandleEvent:

    def test_translates_and_uploads(self, config, tmp_path):
        storage = FakeStorage({("source", "sample-en.txt"): SRT.encode("utf-8")})

        destination = asyncio.run(handle_event(event_for("sample-en.txt"), make_deps(config, storage)))

        assert destination == "sample-nl.txt"
        assert storage.uploads == [("target", "sample-nl.txt")]
        assert storage.objects[("target", "sample-nl.txt")].decode("utf-8") == (
            "1\n00:00:01,000 --> 00:00:02,000\nHallo\n\n"
        )
        # Temporary file removed
        assert list(tmp_path.iterdir()) == []

    def test_deletion_event_ignored(self, config):
        storage = FakeStorage()
        result = asyncio.run(handle_event(
            event_for("sample-en.txt", resourceState="not_exists"), make_deps(config, storage)
        ))
        assert result is None
        assert storage.downloads == []

    def test_deploy_event_ignored(self, config):
        storage = FakeStorage()
        result = asyncio.run(handle_event({"bucket": "source"}, make_deps(config, storage)))
        assert result is None
        assert storage.downloads == []

    def test_empty_download_aborts_before_translation(self, config):
        storage = FakeStorage()
        backend = FakeBackend()

        with pytest.raises(EmptyContentError):
            asyncio.run(handle_event(event_for("sample-en.txt"), make_deps(config, storage, backend)))

        assert backend.calls == []
        assert storage.uploads == []

    def test_translation_failure_produces_no_output(self, config, tmp_path):
        storage = FakeStorage({("source", "sample-en.txt"): SRT.encode("utf-8")})
        backend = FakeBackend(fail_on="Hello")

        with pytest.raises(TranslationFailedError):
            asyncio.run(handle_event(event_for("sample-en.txt"), make_deps(config, storage, backend)))

        assert storage.uploads == []
        assert list(tmp_path.iterdir()) == []

    def test_upload_failure_propagates_and_cleans_up(self, config, tmp_path):
        storage = FakeStorage({("source", "sample-en.txt"): SRT.encode("utf-8")}, fail_upload=True)

        with pytest.raises(ConnectionError):
            asyncio.run(handle_event(event_for("sample-en.txt"), make_deps(config, storage)))

        assert list(tmp_path.iterdir()) == []

    def test_missing_target_bucket(self, config):
        config.target_bucket = None
        storage = FakeStorage({("source", "sample-en.txt"): SRT.encode("utf-8")})

        with pytest.raises(ConfigurationError):
            asyncio.run(handle_event(event_for("sample-en.txt"), make_deps(config, storage)))

    def test_cleanup_failure_does_not_mask_upload_error(self, config, monkeypatch):
        storage = FakeStorage({("source", "sample-en.txt"): SRT.encode("utf-8")}, fail_upload=True)

        async def vanished(path):
            raise FileNotFoundError(path)

        monkeypatch.setattr(pipeline, "delete_file", vanished)

        with pytest.raises(ConnectionError):
            asyncio.run(handle_event(event_for("sample-en.txt"), make_deps(config, storage)))


class LoopBoundBackend(FakeBackend):
    """Fails like a pooled HTTP client when reused from a different event loop."""

    def __init__(self, mapping=None):
        super().__init__(mapping)
        self.loop = None

    async def translate(self, texts, source_language, target_language):
        loop = asyncio.get_running_loop()
        if self.loop is None:
            self.loop = loop
        elif self.loop is not loop:
            raise RuntimeError("Event loop is closed")
        return await super().translate(texts, source_language, target_language)


@pytest.fixture
def fresh_entry_point(monkeypatch):
    monkeypatch.setattr(pipeline, "_dependencies", None)
    monkeypatch.setattr(pipeline, "_loop", None)
    yield
    if pipeline._loop is not None:
        pipeline._loop.close()


class TestTranslateSrtFiles:

    def test_repeated_invocations_share_clients(self, config, monkeypatch, fresh_entry_point):
        storage = FakeStorage({
            ("source", "a-en.srt"): SRT.encode("utf-8"),
            ("source", "b-en.srt"): SRT.encode("utf-8"),
            ("source", "c-en.srt"): SRT.encode("utf-8"),
        })
        backend = LoopBoundBackend({"Hello": "Hallo"})
        monkeypatch.setattr(pipeline, "_dependencies", make_deps(config, storage, backend))

        results = [pipeline.translate_srt_files(event_for(name)) for name in ("a-en.srt", "b-en.srt", "c-en.srt")]

        assert results == ["a-nl.srt", "b-nl.srt", "c-nl.srt"]
        assert len(backend.calls) == 3
        assert storage.objects[("target", "c-nl.srt")].decode("utf-8").count("Hallo") == 1

    def test_dependencies_built_once_from_env(self, config, monkeypatch, fresh_entry_point):
        storage = FakeStorage({("source", "a-en.srt"): SRT.encode("utf-8")})
        built = []

        def fake_build(env_config):
            built.append(env_config)
            return make_deps(config, storage)

        monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")
        monkeypatch.setenv("TARGET_BUCKET", "target")
        monkeypatch.setattr(pipeline, "build_dependencies", fake_build)

        assert pipeline.translate_srt_files(event_for("a-en.srt")) == "a-nl.srt"
        assert pipeline.translate_srt_files({"bucket": "source"}) is None

        assert len(built) == 1
        assert built[0].target_bucket == "target"

    def test_invalid_env_config_raises(self, monkeypatch, fresh_entry_point):
        monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
        monkeypatch.setenv("TARGET_BUCKET", "target")

        with pytest.raises(ConfigurationError, match="API key"):
            pipeline.translate_srt_files(event_for("a-en.srt"))
