"""Tests for the transcript factory, validation and argument history."""

import pytest

from disputatio.errors import ConfigurationError
from disputatio.structure import CLASSIC, EXTENDED, Side
from disputatio.transcript import (
    ArgumentItem,
    TopicConfig,
    Transcript,
    argument_history,
    create_empty,
    create_validated,
    last_opponent_argument,
    validate,
)


@pytest.mark.parametrize("catalog", [CLASSIC, EXTENDED])
def test_shape_matches_catalog(catalog):
    transcript = create_empty(TopicConfig(topic="X"), catalog)
    assert transcript.shape() == catalog.shape()
    assert transcript.structure == catalog.name
    for rnd, spec in zip(transcript.rounds, catalog.rounds):
        for sub, sub_spec in zip(rnd.subrounds, spec.subrounds):
            assert sub.assigned_side is sub_spec.side
            assert set(sub.sides) == {Side.A, Side.B}
            assigned = [side for side, slot in sub.sides.items() if slot.is_assigned]
            assert assigned == [sub.assigned_side]
            assert all(slot.text == "" for slot in sub.sides.values())


def test_round_topics_and_titles(transcript):
    r1, r2, r3 = transcript.rounds
    assert (r1.title, r1.topic) == ("R1", "R1")
    assert (r2.title, r2.topic) == ("Round 2", "X - Round 2")
    assert (r3.title, r3.topic) == ("Round 3", "X - Round 3")
    assert [r.round_number for r in transcript.rounds] == [1, 2, 3]
    assert [s.subround_number for s in r1.subrounds] == list(range(1, 11))


def test_fixed_topic_rounds_ignore_overrides():
    config = TopicConfig(topic="X", round_topics=("R1", "  ", "R3"))
    transcript = create_empty(config, EXTENDED)
    summary = [(r.title, r.topic) for r in transcript.rounds]
    assert summary == [
        ("R1", "R1"),
        ("Intermission", "X"),
        ("Round 2", "X - Round 2"),
        ("R3", "R3"),
        ("Post-Debate", "X"),
    ]


def test_speaker_labels():
    transcript = create_empty(TopicConfig(topic="X", side_a_name="Pro", side_b_name="Con"))
    slots = transcript.rounds[0].subrounds[0].sides
    assert slots[Side.A].speaker_label == "Pro"
    assert slots[Side.A].position == "Pro (FOR)"
    assert slots[Side.B].position == "Con (AGAINST)"

    defaults = create_empty(TopicConfig(topic="X", side_a_name="", side_b_name=None))
    assert (defaults.side_a_name, defaults.side_b_name) == ("Supporting", "Opposing")


def test_ids_are_unique():
    ids = {create_empty(TopicConfig(topic="X")).id for _ in range(20)}
    assert len(ids) == 20
    assert all(i.startswith("debate_") for i in ids)


@pytest.mark.parametrize("config", [
    TopicConfig(topic=""),
    TopicConfig(topic="   "),
    TopicConfig(topic=None),
    TopicConfig(topic="X", side_a_name=42),
    TopicConfig(topic="X", side_b_name=["Con"]),
    TopicConfig(topic="X", round_topics=("R1", 2)),
])
def test_validate_rejects(config):
    with pytest.raises(ConfigurationError):
        validate(config)
    with pytest.raises(ConfigurationError):
        create_validated(config)


def test_create_empty_does_not_validate():
    transcript = create_empty(TopicConfig(topic=""))
    assert transcript.shape() == CLASSIC.shape()


def test_argument_history_is_strictly_before(transcript):
    subs = transcript.rounds[0].subrounds
    subs[0].sides[Side.A].text = "a1"
    subs[1].sides[Side.B].text = "b1"
    subs[1].sides[Side.A].text = "manual a"
    subs[2].sides[Side.A].text = "a2"
    transcript.rounds[1].subrounds[0].sides[Side.A].text = "later"

    assert argument_history(transcript, 0, 0) == []
    assert argument_history(transcript, 0, 2) == [
        ArgumentItem(Side.A, "a1"),
        ArgumentItem(Side.A, "manual a"),
        ArgumentItem(Side.B, "b1"),
    ]
    assert [i.content for i in argument_history(transcript, 1, 0)] == ["a1", "manual a", "b1", "a2"]
    assert [i.content for i in argument_history(transcript, 1, 1)][-1] == "later"


def test_last_opponent_argument():
    items = [ArgumentItem(Side.A, "x"), ArgumentItem(Side.B, "y"), ArgumentItem(Side.A, "z")]
    assert last_opponent_argument(items, Side.A) == "y"
    assert last_opponent_argument(items, Side.B) == "z"
    assert last_opponent_argument(items[:1], Side.A) is None
    assert last_opponent_argument([], Side.B) is None


def test_dict_round_trip(transcript):
    transcript.rounds[0].subrounds[0].sides[Side.A].text = "opening"
    restored = Transcript.from_dict(transcript.to_dict())
    assert restored == transcript
