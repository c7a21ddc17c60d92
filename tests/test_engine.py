"""Tests for the debate engine state machine."""

import asyncio

import httpx
import pytest

from conftest import GatedClient
from disputatio.engine import DebateEngine, GenerationResult, SlotRef
from disputatio.errors import BusyError, StructuralError
from disputatio.models import GenerationClient, GenerationSettings
from disputatio.store import TranscriptStore
from disputatio.structure import CLASSIC, EXTENDED, Side
from disputatio.transcript import TopicConfig, create_empty


@pytest.mark.anyio
async def test_first_pending_is_round_one_opening(transcript, recording_client):
    engine = DebateEngine(transcript, recording_client)
    assert engine.next_pending() == SlotRef(0, 0, Side.A)
    assert engine.history(0, 0) == []

    result = await engine.generate_next_pending()

    assert result == GenerationResult(0, 0, Side.A, "Pro turn 1")
    prompt, context = recording_client.calls[0]
    assert context.topic == "R1"
    assert context.stance == "support"
    assert context.subround_type == "opening"
    assert "Recent discussion" not in prompt
    assert "Responding to" not in prompt
    assert transcript.rounds[0].subrounds[0].sides[Side.A].text == "Pro turn 1"
    assert transcript.rounds[0].subrounds[0].sides[Side.B].text == ""


@pytest.mark.anyio
async def test_next_pending_advances_and_builds_history(transcript, recording_client):
    engine = DebateEngine(transcript, recording_client)
    await engine.generate_next_pending()
    second = await engine.generate_next_pending()

    assert (second.round_index, second.subround_index, second.side) == (0, 1, Side.B)
    prompt, context = recording_client.calls[1]
    assert context.speaker_name == "Con"
    assert "Pro: Pro turn 1..." in prompt
    assert 'Responding to oppose the question and argument: "Pro turn 1..."' in prompt


@pytest.mark.anyio
async def test_generate_all_then_complete(transcript, recording_client):
    engine = DebateEngine(transcript, recording_client)
    seen = []
    results = await engine.generate_all(seen.append)

    assert len(results) == sum(CLASSIC.shape())
    assert seen == results
    assert engine.is_complete
    assert engine.progress() == (30, 30)

    snapshot = transcript.to_dict()
    assert await engine.generate_next_pending() is None
    assert transcript.to_dict() == snapshot
    assert len(recording_client.calls) == 30


@pytest.mark.anyio
async def test_pending_skips_manually_filled_slots(transcript, recording_client):
    engine = DebateEngine(transcript, recording_client)
    engine.edit_slot(0, 0, Side.A, "hand-written opening")
    result = await engine.generate_next_pending()
    assert (result.round_index, result.subround_index) == (0, 1)


@pytest.mark.anyio
async def test_busy_while_generation_in_flight(transcript):
    client = GatedClient()
    engine = DebateEngine(transcript, client)

    task = asyncio.create_task(engine.generate_slot(0, 0, Side.A))
    await client.started.wait()
    assert engine.is_generating

    with pytest.raises(BusyError):
        await engine.generate_slot(0, 0, Side.A)
    with pytest.raises(BusyError):
        await engine.generate_next_pending()

    # Edits to other slots are still allowed mid-generation
    engine.edit_slot(0, 1, "B", "manual counter")
    assert transcript.rounds[0].subrounds[0].sides[Side.A].text == ""

    client.gate.set()
    result = await task

    assert result.text == "Pro turn 1"
    assert len(client.calls) == 1
    assert transcript.rounds[0].subrounds[0].sides[Side.A].text == "Pro turn 1"
    assert transcript.rounds[0].subrounds[1].sides[Side.B].text == "manual counter"
    assert not engine.is_generating


@pytest.mark.anyio
@pytest.mark.parametrize("failure", [
    lambda request: httpx.Response(429),
    lambda request: httpx.Response(401),
    lambda request: httpx.Response(400),
    lambda request: (_ for _ in ()).throw(httpx.ReadError("reset", request=request)),
    lambda request: httpx.Response(200, json=[]),
    lambda request: httpx.Response(200, json={"choices": ["oops"]}),
    lambda request: httpx.Response(200, json={"choices": [{"message": {"content": ["a"]}}]}),
])
async def test_slot_filled_even_when_remote_fails(transcript, failure):
    http = httpx.AsyncClient(transport=httpx.MockTransport(failure))
    client = GenerationClient(GenerationSettings(api_key="k", stream=False), http_client=http)
    engine = DebateEngine(transcript, client)

    result = await engine.generate_slot(0, 1, "B")

    assert result.text
    assert result.text.startswith("I oppose this position on R1.")
    assert transcript.rounds[0].subrounds[1].sides[Side.B].text == result.text


@pytest.mark.anyio
async def test_no_credentials_fallback(transcript):
    engine = DebateEngine(transcript, GenerationClient(GenerationSettings(api_key=None)))
    result = await engine.generate_next_pending()
    assert result.text == "I support this position on R1. This is an important issue that needs careful thought and respectful discussion between all people involved."


@pytest.mark.anyio
@pytest.mark.parametrize("coords", [(3, 0), (-1, 0), (0, 10), (0, -1), ("0", 0)])
async def test_generate_out_of_range(transcript, recording_client, coords):
    engine = DebateEngine(transcript, recording_client)
    with pytest.raises(StructuralError):
        await engine.generate_slot(*coords, Side.A)
    with pytest.raises(StructuralError):
        engine.edit_slot(*coords, Side.A, "text")
    assert recording_client.calls == []


@pytest.mark.anyio
async def test_generate_rejects_unknown_or_unassigned_side(transcript, recording_client):
    engine = DebateEngine(transcript, recording_client)
    with pytest.raises(StructuralError):
        await engine.generate_slot(0, 0, "C")
    with pytest.raises(StructuralError, match="not assigned"):
        await engine.generate_slot(0, 0, Side.B)
    with pytest.raises(StructuralError):
        engine.edit_slot(0, 0, "Z", "text")
    assert recording_client.calls == []


def test_edit_unassigned_side(transcript, recording_client):
    engine = DebateEngine(transcript, recording_client)
    engine.edit_slot(0, 0, "b", "interjection")
    assert transcript.rounds[0].subrounds[0].sides[Side.B].text == "interjection"
    assert engine.next_pending() == SlotRef(0, 0, Side.A)


@pytest.mark.anyio
async def test_every_mutation_is_persisted(tmp_path, transcript, recording_client):
    store = TranscriptStore(CLASSIC, sessions_dir=tmp_path)
    engine = DebateEngine(transcript, recording_client, store)

    await engine.generate_next_pending()
    assert store.load().rounds[0].subrounds[0].sides[Side.A].text == "Pro turn 1"

    engine.edit_slot(0, 0, Side.A, "edited")
    assert store.load().rounds[0].subrounds[0].sides[Side.A].text == "edited"


@pytest.mark.anyio
async def test_reflection_round_uses_reflection_prompt(recording_client):
    transcript = create_empty(TopicConfig(topic="X", side_a_name="Pro", side_b_name="Con"), EXTENDED)
    engine = DebateEngine(transcript, recording_client)
    for _ in range(11):
        await engine.generate_next_pending()

    prompt, context = recording_client.calls[-1]
    assert context.subround_type == "reflection"
    assert context.topic == "X"
    assert prompt.endswith("Your reflection:")


def test_import_script(transcript, recording_client):
    engine = DebateEngine(transcript, recording_client)
    raw = """**Topic:** X
**Pro Perspective - Round 1:**
Opening for pro.
**Con Perspective - Round 1:**
Con answers.
**Pro Perspective - Round 2:**
Second round pro.
**Con Perspective - Round 9:**
Nowhere to go.
**Summary:**
Both sides spoke.
"""
    assert engine.import_script(raw) == 3
    r1, r2 = transcript.rounds[0], transcript.rounds[1]
    assert r1.subrounds[0].sides[Side.A].text == "Opening for pro."
    assert r1.subrounds[1].sides[Side.B].text == "Con answers."
    assert r2.subrounds[0].sides[Side.A].text == "Second round pro."
    assert engine.next_pending() == SlotRef(0, 2, Side.A)


def test_import_script_skips_fixed_topic_rounds(recording_client):
    transcript = create_empty(TopicConfig(topic="X", side_a_name="Pro", side_b_name="Con"), EXTENDED)
    engine = DebateEngine(transcript, recording_client)
    raw = """**Pro Perspective - Round 2:**
Second round pro.
**Con Perspective - Round 3:**
Third round con.
**Pro Perspective - Round 4:**
No such round.
"""
    assert engine.import_script(raw) == 2
    intermission, round_2, round_3 = transcript.rounds[1:4]
    assert all(not slot.text for sub in intermission.subrounds for slot in sub.sides.values())
    assert round_2.subrounds[0].sides[Side.A].text == "Second round pro."
    assert round_3.subrounds[1].sides[Side.B].text == "Third round con."
