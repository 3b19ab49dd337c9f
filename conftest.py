"""Shared test fixtures and utilities."""

from unittest.mock import MagicMock

import pytest


def _make_asr_client(*texts):
    """Build a mock OpenAI client whose transcription calls return ``texts`` in order.

    An Exception instance in ``texts`` is raised by that call instead.
    """
    client = MagicMock()
    client.audio.transcriptions.create.side_effect = list(texts)
    return client


@pytest.fixture
def make_asr_client():
    return _make_asr_client


@pytest.fixture
def sleeps():
    """Records pacing delays; pass ``sleeps.append`` as the sleep function."""
    return []
