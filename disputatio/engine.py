"""Debate engine: drives generation and edits over a transcript."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from .errors import BusyError, StructuralError
from .models import GenerationClient
from .parsing import parse_debate_script
from .prompts import build_prompt
from .store import TranscriptStore
from .structure import FIXED_TOPIC_TITLES, Side
from .transcript import ArgumentItem, Subround, Transcript, argument_history

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotRef:
    round_index: int
    subround_index: int
    side: Side


@dataclass(frozen=True)
class GenerationResult:
    round_index: int
    subround_index: int
    side: Side
    text: str


class DebateEngine:
    """Holds one transcript and mutates it through generate_slot and edit_slot.

    Only one generation may be in flight at a time; a second request is
    rejected with BusyError instead of being queued. Edits are always
    allowed. Each slot is written with a single assignment once its text is
    ready, so callers never see a half-written slot.
    """

    def __init__(
        self,
        transcript: Transcript,
        client: GenerationClient,
        store: TranscriptStore | None = None,
    ):
        self.transcript = transcript
        self.client = client
        self.store = store
        self._lock = asyncio.Lock()

    @property
    def is_generating(self) -> bool:
        return self._lock.locked()

    def _subround(self, round_index: int, subround_index: int) -> Subround:
        rounds = self.transcript.rounds
        if not isinstance(round_index, int) or not 0 <= round_index < len(rounds):
            raise StructuralError(f"Round index {round_index!r} out of range (0-{len(rounds) - 1})")
        subrounds = rounds[round_index].subrounds
        if not isinstance(subround_index, int) or not 0 <= subround_index < len(subrounds):
            raise StructuralError(
                f"Sub-round index {subround_index!r} out of range for round {round_index} (0-{len(subrounds) - 1})"
            )
        return subrounds[subround_index]

    def _persist(self) -> None:
        if self.store is not None:
            self.store.save(self.transcript)

    def history(self, round_index: int, subround_index: int) -> list[ArgumentItem]:
        self._subround(round_index, subround_index)
        return argument_history(self.transcript, round_index, subround_index)

    def next_pending(self) -> SlotRef | None:
        """First sub-round, in debate order, whose assigned side has no text."""
        for r_idx, rnd in enumerate(self.transcript.rounds):
            for s_idx, sub in enumerate(rnd.subrounds):
                if not sub.assigned_slot.text:
                    return SlotRef(r_idx, s_idx, sub.assigned_side)
        return None

    def progress(self) -> tuple[int, int]:
        """(completed, total) assigned slots."""
        subs = [s for r in self.transcript.rounds for s in r.subrounds]
        return sum(1 for s in subs if s.assigned_slot.text), len(subs)

    @property
    def is_complete(self) -> bool:
        return self.next_pending() is None

    async def generate_slot(self, round_index: int, subround_index: int, side: Side | str) -> GenerationResult:
        """Generate text for one slot and write it into the transcript.

        Raises StructuralError for bad coordinates or the unassigned side and
        BusyError if another generation is running. Remote failures never
        surface here: the client substitutes fallback text.
        """
        subround = self._subround(round_index, subround_index)
        side = Side.parse(side)
        if side is not subround.assigned_side:
            raise StructuralError(
                f"Side {side.value} is not assigned in round {round_index}, sub-round {subround_index} "
                f"(assigned: {subround.assigned_side.value})"
            )
        if self._lock.locked():
            raise BusyError("A generation is already in progress for this debate")

        async with self._lock:
            rnd = self.transcript.rounds[round_index]
            history = argument_history(self.transcript, round_index, subround_index)
            context = build_prompt(
                topic=rnd.topic,
                side=side,
                subround_type=subround.type,
                prior_arguments=history,
                side_a_name=self.transcript.side_a_name,
                side_b_name=self.transcript.side_b_name,
            )
            logger.info(
                "Generating %s for %s (%s)",
                subround.description, self.transcript.side_name(side), rnd.title,
            )
            text = await self.client.generate(context.prompt, context)

            subround.sides[side].text = text
            self._persist()

        return GenerationResult(round_index, subround_index, side, text)

    async def generate_next_pending(self) -> GenerationResult | None:
        """Generate the earliest pending slot. Returns None when every slot is complete."""
        ref = self.next_pending()
        if ref is None:
            return None
        return await self.generate_slot(ref.round_index, ref.subround_index, ref.side)

    async def generate_all(
        self, on_result: Callable[[GenerationResult], None] | None = None
    ) -> list[GenerationResult]:
        """Generate every pending slot in order, calling on_result after each one."""
        results = []
        while True:
            result = await self.generate_next_pending()
            if result is None:
                return results
            results.append(result)
            if on_result is not None:
                on_result(result)

    def edit_slot(self, round_index: int, subround_index: int, side: Side | str, text: str) -> None:
        """Overwrite any slot, assigned or not. Allowed during a generation."""
        subround = self._subround(round_index, subround_index)
        side = Side.parse(side)
        subround.sides[side].text = text
        self._persist()

    def import_script(self, raw: str) -> int:
        """Fill pending slots from a whole-debate completion.

        Each parsed argument goes to the first empty slot assigned to its side
        in the matching round. "Round N" is the Nth topic-driven round, so
        Intermission and Post-Debate rounds are never filled from a script.
        Returns how many arguments were placed.
        """
        if self._lock.locked():
            raise BusyError("A generation is already in progress for this debate")

        script = parse_debate_script(raw, self.transcript.side_a_name, self.transcript.side_b_name)
        debate_rounds = [r for r in self.transcript.rounds if r.title not in FIXED_TOPIC_TITLES]
        placed = skipped = 0
        for arg in script.arguments:
            if not 1 <= arg.round_number <= len(debate_rounds):
                skipped += 1
                continue
            target = next(
                (
                    sub for sub in debate_rounds[arg.round_number - 1].subrounds
                    if sub.assigned_side is arg.side and not sub.assigned_slot.text
                ),
                None,
            )
            if target is None:
                skipped += 1
                continue
            target.sides[arg.side].text = arg.content
            placed += 1

        if skipped:
            logger.warning("Skipped %d script argument(s) with no free slot", skipped)
        if placed:
            self._persist()
        return placed
