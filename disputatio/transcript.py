"""Transcript data model and the factory that builds empty transcripts."""

import uuid
from dataclasses import dataclass

from .errors import ConfigurationError
from .structure import CLASSIC, ResponseType, Side, StructureCatalog

DEFAULT_SIDE_A_NAME = "Supporting"
DEFAULT_SIDE_B_NAME = "Opposing"


@dataclass(frozen=True)
class TopicConfig:
    """User input for a new debate. Immutable once a transcript exists."""
    topic: str
    round_topics: tuple[str, ...] = ()
    side_a_name: str | None = None
    side_b_name: str | None = None


@dataclass
class SideSlot:
    speaker_label: str
    position: str
    is_assigned: bool
    text: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.text)


@dataclass
class Subround:
    subround_number: int
    type: ResponseType
    description: str
    assigned_side: Side
    sides: dict[Side, SideSlot]

    @property
    def assigned_slot(self) -> SideSlot:
        return self.sides[self.assigned_side]


@dataclass
class Round:
    round_number: int
    title: str
    topic: str
    subrounds: list[Subround]


@dataclass
class Transcript:
    id: str
    topic: str
    side_a_name: str
    side_b_name: str
    rounds: list[Round]
    round_topics: tuple[str, ...] = ()
    structure: str = CLASSIC.name

    def side_name(self, side: Side) -> str:
        return self.side_a_name if side is Side.A else self.side_b_name

    def shape(self) -> tuple[int, ...]:
        return tuple(len(r.subrounds) for r in self.rounds)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "topic": self.topic,
            "round_topics": list(self.round_topics),
            "side_a_name": self.side_a_name,
            "side_b_name": self.side_b_name,
            "structure": self.structure,
            "rounds": [
                {
                    "round_number": r.round_number,
                    "title": r.title,
                    "topic": r.topic,
                    "subrounds": [
                        {
                            "subround_number": s.subround_number,
                            "type": s.type.value,
                            "description": s.description,
                            "assigned_side": s.assigned_side.value,
                            "sides": {
                                side.value: {
                                    "speaker_label": slot.speaker_label,
                                    "position": slot.position,
                                    "text": slot.text,
                                    "is_assigned": slot.is_assigned,
                                }
                                for side, slot in s.sides.items()
                            },
                        }
                        for s in r.subrounds
                    ],
                }
                for r in self.rounds
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Transcript":
        """Inverse of to_dict. Raises KeyError/ValueError/TypeError on malformed data."""
        rounds = []
        for r in data["rounds"]:
            subrounds = []
            for s in r["subrounds"]:
                sides = {
                    Side(code): SideSlot(
                        speaker_label=slot["speaker_label"],
                        position=slot["position"],
                        is_assigned=bool(slot["is_assigned"]),
                        text=slot.get("text") or "",
                    )
                    for code, slot in s["sides"].items()
                }
                if set(sides) != {Side.A, Side.B}:
                    raise ValueError(f"Sub-round {s['subround_number']} must have exactly sides A and B")
                subrounds.append(Subround(
                    subround_number=int(s["subround_number"]),
                    type=ResponseType(s["type"]),
                    description=s["description"],
                    assigned_side=Side(s["assigned_side"]),
                    sides=sides,
                ))
            rounds.append(Round(
                round_number=int(r["round_number"]),
                title=r["title"],
                topic=r["topic"],
                subrounds=subrounds,
            ))
        return cls(
            id=data["id"],
            topic=data["topic"],
            side_a_name=data["side_a_name"],
            side_b_name=data["side_b_name"],
            rounds=rounds,
            round_topics=tuple(data.get("round_topics") or ()),
            structure=data.get("structure") or CLASSIC.name,
        )


@dataclass(frozen=True)
class ArgumentItem:
    side: Side
    content: str


def _blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate(config: TopicConfig) -> None:
    """Raise ConfigurationError if the config cannot produce a transcript."""
    if _blank(config.topic):
        raise ConfigurationError("Topic is required and must be a non-empty string")
    if config.side_a_name is not None and not isinstance(config.side_a_name, str):
        raise ConfigurationError("side_a_name must be a string")
    if config.side_b_name is not None and not isinstance(config.side_b_name, str):
        raise ConfigurationError("side_b_name must be a string")
    if any(not isinstance(t, str) for t in config.round_topics):
        raise ConfigurationError("round_topics must contain only strings")


def new_transcript_id() -> str:
    return f"debate_{uuid.uuid4().hex[:12]}"


def create_empty(config: TopicConfig, catalog: StructureCatalog = CLASSIC) -> Transcript:
    """Build an empty transcript shaped by the catalog. Does not validate."""
    side_a_name = config.side_a_name if not _blank(config.side_a_name) else DEFAULT_SIDE_A_NAME
    side_b_name = config.side_b_name if not _blank(config.side_b_name) else DEFAULT_SIDE_B_NAME
    overrides = list(config.round_topics)

    rounds = []
    override_idx = 0
    for spec in catalog.get_structure():
        if spec.topic_driven:
            override = overrides[override_idx] if override_idx < len(overrides) else None
            override_idx += 1
            if _blank(override):
                specific_topic = f"{config.topic} - {spec.title}"
                title = spec.title
            else:
                specific_topic = override
                title = override
        else:
            specific_topic = config.topic
            title = spec.title

        subrounds = [
            Subround(
                subround_number=sub_idx,
                type=sub.type,
                description=sub.description,
                assigned_side=sub.side,
                sides={
                    Side.A: SideSlot(
                        speaker_label=side_a_name,
                        position=f"{side_a_name} ({Side.A.label})",
                        is_assigned=sub.side is Side.A,
                    ),
                    Side.B: SideSlot(
                        speaker_label=side_b_name,
                        position=f"{side_b_name} ({Side.B.label})",
                        is_assigned=sub.side is Side.B,
                    ),
                },
            )
            for sub_idx, sub in enumerate(spec.subrounds, start=1)
        ]
        rounds.append(Round(spec.round_number, title, specific_topic, subrounds))

    return Transcript(
        id=new_transcript_id(),
        topic=config.topic,
        side_a_name=side_a_name,
        side_b_name=side_b_name,
        rounds=rounds,
        round_topics=tuple(overrides),
        structure=catalog.name,
    )


def create_validated(config: TopicConfig, catalog: StructureCatalog = CLASSIC) -> Transcript:
    validate(config)
    return create_empty(config, catalog)


def argument_history(transcript: Transcript, round_index: int, subround_index: int) -> list[ArgumentItem]:
    """Every non-empty slot strictly before (round_index, subround_index), in debate order."""
    items = []
    for r_idx, rnd in enumerate(transcript.rounds[:round_index + 1]):
        stop = subround_index if r_idx == round_index else len(rnd.subrounds)
        for sub in rnd.subrounds[:stop]:
            for side in (Side.A, Side.B):
                text = sub.sides[side].text
                if text:
                    items.append(ArgumentItem(side, text))
    return items


def last_opponent_argument(items: list[ArgumentItem], side: Side) -> str | None:
    """Content of the most recent argument made by the other side."""
    for item in reversed(items):
        if item.side is not side:
            return item.content
    return None
