"""Per-side JSON export of a transcript."""

import json
import re
from dataclasses import dataclass
from pathlib import Path

from .structure import Side
from .transcript import Transcript

EXPORT_FILENAMES = {Side.A: "supporting.json", Side.B: "opposing.json"}


@dataclass(frozen=True)
class ExportBundle:
    side_a: dict
    side_b: dict

    def for_side(self, side: Side) -> dict:
        return self.side_a if side is Side.A else self.side_b


def export_side(transcript: Transcript, side: Side) -> dict:
    """One side's document: only rounds and sub-rounds where that side spoke."""
    rounds = []
    for rnd in transcript.rounds:
        subrounds = [
            {
                "subround_number": sub.subround_number,
                "description": sub.description,
                "type": sub.type.value,
                "response": sub.sides[side].text,
                "speaker_label": sub.sides[side].speaker_label,
            }
            for sub in rnd.subrounds
            if sub.sides[side].text
        ]
        if subrounds:
            rounds.append({
                "round_number": rnd.round_number,
                "round_topic": rnd.topic,
                "subrounds": subrounds,
            })
    return {
        "debate_id": transcript.id,
        "topic": transcript.topic,
        "side_name": transcript.side_name(side),
        "position": side.label,
        "rounds": rounds,
    }


def export(transcript: Transcript) -> ExportBundle:
    return ExportBundle(export_side(transcript, Side.A), export_side(transcript, Side.B))


def dumps(document: dict) -> str:
    """Canonical encoding; identical documents always give identical bytes."""
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def export_filename(topic: str, max_len: int = 50) -> str:
    """Filename stem for an export archive, e.g. 'should_ai_be_regulated_debate'."""
    clean = re.sub(r"[^a-zA-Z0-9\s]", "", topic)
    clean = re.sub(r"\s+", "_", clean).lower()[:max_len]
    return f"{clean}_debate"


def write_export(transcript: Transcript, directory: Path) -> list[Path]:
    """Write supporting.json and opposing.json into directory."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    bundle = export(transcript)
    paths = []
    for side in (Side.A, Side.B):
        path = directory / EXPORT_FILENAMES[side]
        path.write_text(dumps(bundle.for_side(side)), encoding="utf-8")
        paths.append(path)
    return paths
