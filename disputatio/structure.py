"""Debate structure catalogs: rounds, sub-rounds, sides and response types.

A catalog is pure data. The per-round sub-round counts double as a
compatibility fingerprint for persisted transcripts (see store.py).
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import yaml

from .errors import ConfigurationError, StructuralError


class Side(str, Enum):
    A = "A"
    B = "B"

    @classmethod
    def parse(cls, value: "Side | str") -> "Side":
        """Accept a Side or its code ("A"/"B", case-insensitive)."""
        if isinstance(value, Side):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise StructuralError(f"Unknown side: {value!r} (expected 'A' or 'B')")

    @property
    def opponent(self) -> "Side":
        return Side.B if self is Side.A else Side.A

    @property
    def stance(self) -> str:
        return "support" if self is Side.A else "oppose"

    @property
    def position(self) -> str:
        return "in favor of" if self is Side.A else "against"

    @property
    def label(self) -> str:
        return "FOR" if self is Side.A else "AGAINST"


class ResponseType(str, Enum):
    OPENING = "opening"
    COUNTER = "counter"
    CLOSING = "closing"
    REFLECTION = "reflection"
    POST_DEBATE = "post-debate"


# Rounds identified by title that always debate the main topic verbatim
FIXED_TOPIC_TITLES = frozenset({"Intermission", "Post-Debate"})


@dataclass(frozen=True)
class SubroundSpec:
    side: Side
    type: ResponseType
    description: str


@dataclass(frozen=True)
class RoundSpec:
    round_number: int
    title: str
    subrounds: tuple[SubroundSpec, ...]

    @property
    def topic_driven(self) -> bool:
        return self.title not in FIXED_TOPIC_TITLES


@dataclass(frozen=True)
class StructureCatalog:
    name: str
    rounds: tuple[RoundSpec, ...]

    def get_structure(self) -> tuple[RoundSpec, ...]:
        return self.rounds

    def shape(self) -> tuple[int, ...]:
        """Sub-round count per round."""
        return tuple(len(r.subrounds) for r in self.rounds)

    def topic_driven_rounds(self) -> list[RoundSpec]:
        return [r for r in self.rounds if r.topic_driven]

    def __len__(self) -> int:
        return len(self.rounds)


TASK_INSTRUCTIONS = {
    ResponseType.OPENING: "This is your opening statement in the debate. Present your main arguments and set the foundation for your position.",
    ResponseType.COUNTER: "Respond to your opponent's perspective. Challenge their arguments, present evidence that contradicts their position, or offer alternative viewpoints.",
    ResponseType.CLOSING: "This is a concluding moment in the debate. Summarize your key points and make your final appeal.",
    ResponseType.REFLECTION: "This is the intermission. Look back on the exchanges so far and consider which of your opponent's arguments were hardest for you to answer.",
    ResponseType.POST_DEBATE: "The formal debate is over. This is your chance to add the points you wish you had made while it was running.",
}

DEFAULT_TASK_INSTRUCTIONS = "Continue the debate naturally"


def get_task_instructions(subround_type: "ResponseType | str") -> str:
    """Guidance text for a response type. Unknown types get a generic instruction."""
    try:
        return TASK_INSTRUCTIONS[ResponseType(subround_type)]
    except ValueError:
        return DEFAULT_TASK_INSTRUCTIONS


def _sub(side: str, type_: str, description: str) -> SubroundSpec:
    return SubroundSpec(Side(side), ResponseType(type_), description)


def _exchange(closing_a: str, closing_b: str) -> tuple[SubroundSpec, ...]:
    """Ten-turn exchange: A opens, three counter pairs, both close."""
    return (
        _sub("A", "opening", "Side A Opening Statement"),
        _sub("B", "counter", "Side B Counter Response"),
        _sub("A", "counter", "Side A Counter Response"),
        _sub("B", "counter", "Side B Counter Response"),
        _sub("A", "counter", "Side A Counter Response"),
        _sub("B", "counter", "Side B Counter Response"),
        _sub("A", "counter", "Side A Counter Response"),
        _sub("B", "counter", "Side B Counter Response"),
        _sub("A", "closing", closing_a),
        _sub("B", "closing", closing_b),
    )


CLASSIC = StructureCatalog(
    name="classic",
    rounds=(
        RoundSpec(1, "Round 1", _exchange("Side A Round 1 Closing", "Side B Round 1 Closing")),
        RoundSpec(2, "Round 2", _exchange("Side A Round 2 Closing", "Side B Round 2 Closing")),
        RoundSpec(3, "Round 3", _exchange("Side A Final Closing", "Side B Final Closing")),
    ),
)

EXTENDED = StructureCatalog(
    name="extended",
    rounds=(
        RoundSpec(1, "Round 1", _exchange("Side A Round 1 Closing", "Side B Round 1 Closing")),
        RoundSpec(2, "Intermission", (
            _sub("A", "reflection", "Side A Reflection"),
            _sub("B", "reflection", "Side B Reflection"),
        )),
        RoundSpec(3, "Round 2", _exchange("Side A Round 2 Closing", "Side B Round 2 Closing")),
        RoundSpec(4, "Round 3", _exchange("Side A Final Closing", "Side B Final Closing")),
        RoundSpec(5, "Post-Debate", (
            _sub("A", "post-debate", "Side A Post-Debate Remarks"),
            _sub("B", "post-debate", "Side B Post-Debate Remarks"),
        )),
    ),
)

BUILTIN_CATALOGS = {c.name: c for c in (CLASSIC, EXTENDED)}


def get_catalog(name: str) -> StructureCatalog:
    try:
        return BUILTIN_CATALOGS[name.lower()]
    except KeyError:
        valid = ", ".join(BUILTIN_CATALOGS)
        raise ConfigurationError(f"Unknown structure '{name}'. Valid structures: {valid}") from None


def catalog_from_dict(data: dict, default_name: str = "custom") -> StructureCatalog:
    """Build a catalog from plain data (the YAML file layout).

    name: my-format
    rounds:
      - title: Round 1
        subrounds:
          - {side: A, type: opening, description: Side A Opening Statement}
    """
    if not isinstance(data, dict) or not isinstance(data.get("rounds"), list) or not data["rounds"]:
        raise ConfigurationError("Structure catalog needs a non-empty 'rounds' list")

    rounds = []
    for idx, raw_round in enumerate(data["rounds"], start=1):
        if not isinstance(raw_round, dict):
            raise ConfigurationError(f"Round {idx}: expected a mapping")
        raw_subs = raw_round.get("subrounds")
        if not isinstance(raw_subs, list) or not raw_subs:
            raise ConfigurationError(f"Round {idx}: needs a non-empty 'subrounds' list")
        subs = []
        for sub_idx, raw_sub in enumerate(raw_subs, start=1):
            try:
                side = Side(str(raw_sub["side"]).upper())
                type_ = ResponseType(raw_sub["type"])
            except (KeyError, TypeError, ValueError) as e:
                raise ConfigurationError(f"Round {idx}, sub-round {sub_idx}: invalid entry ({e})") from None
            description = raw_sub.get("description") or f"Side {side.value} {type_.value.title()}"
            subs.append(SubroundSpec(side, type_, str(description)))
        title = str(raw_round.get("title") or f"Round {idx}")
        rounds.append(RoundSpec(idx, title, tuple(subs)))

    return StructureCatalog(name=str(data.get("name") or default_name), rounds=tuple(rounds))


def load_catalog(path: Path) -> StructureCatalog:
    """Read a catalog from a YAML file."""
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not read structure catalog {path}: {e}") from e
    return catalog_from_dict(data, default_name=path.stem)


def resolve_catalog(name_or_path: str) -> StructureCatalog:
    """Built-in name first, then a YAML path."""
    if name_or_path.lower() in BUILTIN_CATALOGS:
        return BUILTIN_CATALOGS[name_or_path.lower()]
    path = Path(name_or_path)
    if path.suffix.lower() in (".yaml", ".yml") or path.exists():
        return load_catalog(path)
    return get_catalog(name_or_path)
