"""Shared fixtures: transcripts and fake generation clients."""

import asyncio

import pytest

from disputatio.transcript import TopicConfig, create_empty


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def config():
    return TopicConfig(topic="X", round_topics=("R1",), side_a_name="Pro", side_b_name="Con")


@pytest.fixture
def transcript(config):
    return create_empty(config)


class RecordingClient:
    """Stands in for GenerationClient; answers instantly and keeps every call."""

    def __init__(self):
        self.calls = []

    async def generate(self, prompt, context=None):
        self.calls.append((prompt, context))
        return f"{context.speaker_name} turn {len(self.calls)}"


class GatedClient(RecordingClient):
    """Blocks inside generate() until the test opens the gate."""

    def __init__(self):
        super().__init__()
        self.started = asyncio.Event()
        self.gate = asyncio.Event()

    async def generate(self, prompt, context=None):
        self.started.set()
        await self.gate.wait()
        return await super().generate(prompt, context)


@pytest.fixture
def recording_client():
    return RecordingClient()
