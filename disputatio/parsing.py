"""Turn raw model output back into transcript text."""

import re
from dataclasses import dataclass, field

from .structure import Side

_THINK_RE = re.compile(r"<think>.*?</think>", re.DOTALL)
_ECHO_RE = re.compile(r"^\s*Your (?:response|reflection|final remarks):\s*", re.IGNORECASE)
_ROUND_RE = re.compile(r"Round (\d+)")


def clean_response(text: str) -> str:
    """Strip reasoning blocks and an echoed answer label."""
    if "<think>" in text:
        text = _THINK_RE.sub("", text)
        # Unterminated block: the model ran out of tokens mid-thought
        if "<think>" in text:
            text = text.split("<think>", 1)[0]
    text = _ECHO_RE.sub("", text)
    return text.strip()


@dataclass(frozen=True)
class ScriptArgument:
    round_number: int
    side: Side
    content: str


@dataclass
class DebateScript:
    arguments: list[ScriptArgument] = field(default_factory=list)
    summary: str = ""


def _round_number(header: str) -> int:
    match = _ROUND_RE.search(header)
    return int(match.group(1)) if match else 1


def parse_debate_script(raw: str, side_a_name: str, side_b_name: str) -> DebateScript:
    """Parse a whole-debate completion into per-round arguments.

    Expected layout (anything else is tolerated):

        **Topic:** ...
        **Pro Perspective - Round 1:**
        argument text...
        **Con Perspective - Round 1:**
        counter-argument...
        **Summary:**
        summary text...

    Content lines are joined with single spaces. Headers without a round
    number count as round 1. Sections with no content are dropped.
    """
    script = DebateScript()
    markers = {
        Side.A: f"**{side_a_name} Perspective - Round",
        Side.B: f"**{side_b_name} Perspective - Round",
    }

    section: Side | str | None = None
    round_number = 0
    content: list[str] = []

    def _flush() -> None:
        text = " ".join(content).strip()
        if not text:
            return
        if section == "summary":
            script.summary = text
        elif isinstance(section, Side):
            script.arguments.append(ScriptArgument(round_number, section, text))

    for line in raw.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("**Topic:**"):
            continue
        matched_side = next((s for s, m in markers.items() if m in stripped), None)
        if matched_side is not None:
            _flush()
            section = matched_side
            round_number = _round_number(stripped)
            content = []
        elif stripped.startswith("**Summary:**"):
            _flush()
            section = "summary"
            content = []
            rest = stripped[len("**Summary:**"):].strip()
            if rest:
                content.append(rest)
        elif not stripped.startswith("**"):
            content.append(stripped)

    _flush()
    return script
