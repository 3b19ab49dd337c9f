"""Tests for recognition.py — the OpenAI adapter, client creation, and pacing."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from tubescribe.shared import ConfigurationError, TranscribeConfig

from tubescribe.recognition import Pacer, SpeechRecognizer, create_asr_client


class TestSpeechRecognizer:
    def test_returns_trimmed_text(self, make_asr_client):
        client = make_asr_client("  hello world \n")
        recognizer = SpeechRecognizer(client)
        assert recognizer.recognize(b"audio") == "hello world"

    def test_request_shape(self, make_asr_client):
        client = make_asr_client("text")
        SpeechRecognizer(client, model="whisper-1").recognize(
            b"\x00\x01", media_type="audio/webm", index=3)
        kwargs = client.audio.transcriptions.create.call_args.kwargs
        assert kwargs["model"] == "whisper-1"
        assert kwargs["file"] == ("chunk-3.webm", b"\x00\x01", "audio/webm")
        assert kwargs["response_format"] == "text"
        assert kwargs["temperature"] == 0

    def test_no_language_means_auto_detect(self, make_asr_client):
        client = make_asr_client("text")
        SpeechRecognizer(client).recognize(b"a")
        assert "language" not in client.audio.transcriptions.create.call_args.kwargs

    def test_forced_language_passed(self, make_asr_client):
        client = make_asr_client("text")
        SpeechRecognizer(client).recognize(b"a", language="de")
        assert client.audio.transcriptions.create.call_args.kwargs["language"] == "de"

    def test_filename_follows_media_type(self, make_asr_client):
        client = make_asr_client("text")
        SpeechRecognizer(client).recognize(b"a", media_type="audio/mp4")
        filename = client.audio.transcriptions.create.call_args.kwargs["file"][0]
        assert filename == "chunk-0.m4a"

    def test_none_response_is_empty_text(self, make_asr_client):
        client = make_asr_client(None)
        assert SpeechRecognizer(client).recognize(b"a") == ""

    def test_object_response_with_text(self, make_asr_client):
        client = make_asr_client(SimpleNamespace(text=" from object "))
        assert SpeechRecognizer(client).recognize(b"a") == "from object"

    def test_service_errors_propagate(self, make_asr_client):
        client = make_asr_client(RuntimeError("rate limited"))
        with pytest.raises(RuntimeError, match="rate limited"):
            SpeechRecognizer(client).recognize(b"a")


class TestCreateAsrClient:
    def test_missing_key_raises(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ConfigurationError, match="API key"):
            create_asr_client(TranscribeConfig())

    @patch("openai.OpenAI")
    def test_uses_config_key(self, mock_openai, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        create_asr_client(TranscribeConfig(openai_api_key="sk-test"))
        mock_openai.assert_called_once_with(api_key="sk-test")

    @patch("openai.OpenAI")
    def test_env_key_and_base_url(self, mock_openai, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        create_asr_client(TranscribeConfig(openai_base_url="http://localhost:8000/v1"))
        mock_openai.assert_called_once_with(api_key="sk-env", base_url="http://localhost:8000/v1")


class TestPacer:
    def test_pause_sleeps_interval(self, sleeps):
        pacer = Pacer(0.8, sleep=sleeps.append)
        pacer.pause()
        pacer.pause()
        assert sleeps == [0.8, 0.8]

    def test_zero_interval_does_not_sleep(self):
        sleep = MagicMock()
        Pacer(0, sleep=sleep).pause()
        sleep.assert_not_called()
