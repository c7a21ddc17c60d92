"""Prompt templates and the per-sub-round prompt builder."""

from dataclasses import dataclass

from .structure import ResponseType, Side, get_task_instructions
from .transcript import (
    DEFAULT_SIDE_A_NAME,
    DEFAULT_SIDE_B_NAME,
    ArgumentItem,
    last_opponent_argument,
)

HISTORY_WINDOW = 2
HISTORY_EXCERPT_CHARS = 150
OPPONENT_EXCERPT_CHARS = 200

SYSTEM_PROMPT = """
You are a skilled political commentator engaging in thoughtful debate.
Present well-reasoned arguments while maintaining a respectful tone.
Respond naturally to what your opponent says, and make each response unique and authentic.
Use clear, everyday language that educated adults can easily understand. Avoid jargon, overly complex words, or academic terminology.
Use analogies, compelling arguments, and references to make your points relatable and understandable to a general audience.
Focus on simple but powerful words and phrases that convey your message effectively.
Ensure each response relates to the previous speaker's points, creating a natural flow of conversation.

IMPORTANT RESPONSE GUIDELINES:
- NEVER use em dashes in your responses.
- NEVER blatantly agree with your opponent. Instead of direct agreement, use nuanced acknowledgments like:
  "Your argument about [specific point] was compelling, however..."
  "I understand how you could think [specific viewpoint], but there's more to consider..."
  "There's merit to what you said about [specific aspect], though I believe..."
  "That's an interesting perspective on [specific topic], yet..."
  "I see why [specific reasoning] might seem logical, but..."
- You can acknowledge strong points while maintaining your position
- Always transition smoothly from acknowledgment to your counter-argument
- Sometimes jump straight into your counter-argument without acknowledgment if it flows better

At the end of each dialogue, pose a question challenging the other side's validity.
"""

USER_PROMPT_TEMPLATE = """
You will be debating the following question: {topic}.
You will be assigned a side, either for or against the position implied by the question.
"""

REFLECTION_TEMPLATE = """{preamble}
You have just completed a debate on: {topic}, where you argued {position} the position implied by this question (your stance: {stance}).

Context: {task_instructions}

{history}{opponent_quote}

Now, step back and reflect on the arguments you found most difficult to debate against. Generate a thoughtful reflection that:
1. Identifies specific arguments your opponent made that you found challenging to counter
2. Explains why these particular arguments were difficult for you to address effectively
3. References actual quotes or specific points from your opponent's statements during the debate
4. Analyzes what made these opposing arguments compelling or hard to refute
5. Discusses any weaknesses in your own position that became apparent through these challenges
6. Maintains intellectual honesty about the difficulty you faced with certain counterpoints
7. Uses clear, accessible language and maintains a respectful tone
8. Stays true to your overall position while acknowledging the strength of specific opposing arguments
9. Is concise and no more than 200 words
10. Does not change your overall position, but shows you understand the merit in some opposing points
11. Never uses em dashes.
Focus on being specific about which opponent arguments gave you the most trouble and why they were effective against your position.

Your reflection:"""

POST_DEBATE_TEMPLATE = """{preamble}
You have just completed an entire debate on: {topic}, where you argued {position} the position implied by this question (your stance: {stance}).

Context: {task_instructions}

{history}{opponent_quote}

Now that the formal debate has concluded, this is your opportunity to share any additional information or arguments you wish you had included during the debate. Generate your final remarks that:

1. Begin by explicitly stating what you wish you had mentioned or forgot to include during the debate (e.g., "I wish I had emphasized..." or "I forgot to mention..." or "I should have brought up...")
2. Elaborate on those additional points with specific details, evidence, or examples
3. Explain why these points would have strengthened your position
4. Present any compelling arguments or data that you didn't have time to fully develop during the formal rounds
5. Address any missed opportunities to counter your opponent's strongest points
6. Maintain the same respectful tone you've used throughout the debate
7. Stay true to your overall position while adding substantive new information
8. Use clear, accessible language that educated adults can easily understand
9. Is approximately 200 words
10. Does not simply repeat what you've already said, but adds genuinely new content
11. Never uses em dashes.

Focus on presenting the most compelling additional arguments or information that you believe would have made your case even stronger.

Your final remarks:"""

ARGUMENT_TEMPLATE = """{preamble}
You are {stance} the position implied by: {topic}. You are {position} this position.

Context: {task_instructions}

{history}{opponent_quote}

Generate a thoughtful, well-reasoned response that:
1. Stays true to your assigned position ({stance})
2. Addresses the specific task for this subround type
3. Responds appropriately to previous arguments without blatant agreement
4. Uses nuanced acknowledgments if referencing opponent points (e.g., "Your argument about X was compelling, however..." or "I understand how you could think Y, but...")
5. Never uses em dashes.
6. Maintains a respectful but firm debate tone
7. Uses clear, accessible language that avoids complex jargon or overly academic terms
8. Includes specific examples or analogies when helpful
9. {closing_rule}
10. Is concise and under 150 words
11. Speaks in a way that educated adults can easily follow and understand

Your response:"""

CHALLENGE_QUESTION_RULE = "Ends with a challenging question for your opponent"
CLOSING_STATEMENT_RULE = "Ends with a strong final appeal rather than a question, since this is a closing statement"

TEMPLATES = {
    ResponseType.REFLECTION: REFLECTION_TEMPLATE,
    ResponseType.POST_DEBATE: POST_DEBATE_TEMPLATE,
}


@dataclass(frozen=True)
class PromptContext:
    """A built prompt plus the metadata the generation client needs for fallbacks."""
    prompt: str
    topic: str
    stance: str
    position: str
    speaker_name: str
    opponent_name: str
    subround_type: str


def format_history(
    prior_arguments: list[ArgumentItem],
    side_a_name: str = DEFAULT_SIDE_A_NAME,
    side_b_name: str = DEFAULT_SIDE_B_NAME,
) -> str:
    """Render the last two arguments, each cut to 150 characters."""
    if not prior_arguments:
        return ""
    lines = []
    for item in prior_arguments[-HISTORY_WINDOW:]:
        speaker = side_a_name if item.side is Side.A else side_b_name
        lines.append(f"{speaker}: {item.content[:HISTORY_EXCERPT_CHARS]}...")
    return "\n\nRecent discussion:\n" + "\n".join(lines) + "\n"


def format_opponent_quote(prior_arguments: list[ArgumentItem], side: Side) -> str:
    quote = last_opponent_argument(prior_arguments, side)
    if quote is None:
        return ""
    return f'\n\nResponding to {side.stance} the question and argument: "{quote[:OPPONENT_EXCERPT_CHARS]}..."'


def build_prompt(
    topic: str,
    side: Side,
    subround_type: "ResponseType | str",
    prior_arguments: list[ArgumentItem],
    side_a_name: str = DEFAULT_SIDE_A_NAME,
    side_b_name: str = DEFAULT_SIDE_B_NAME,
) -> PromptContext:
    """Build the user prompt for one sub-round.

    Pure string construction: identical inputs always give identical output.
    Reflection and post-debate turns get their own templates; every other
    type (including unknown ones) uses the argument template.
    """
    side = Side.parse(side)
    try:
        response_type = ResponseType(subround_type)
    except ValueError:
        response_type = None

    fields = {
        "preamble": USER_PROMPT_TEMPLATE.format(topic=topic),
        "topic": topic,
        "stance": side.stance,
        "position": side.position,
        "task_instructions": get_task_instructions(subround_type),
        "history": format_history(prior_arguments, side_a_name, side_b_name),
        "opponent_quote": format_opponent_quote(prior_arguments, side),
        "closing_rule": (
            CLOSING_STATEMENT_RULE if response_type is ResponseType.CLOSING
            else CHALLENGE_QUESTION_RULE
        ),
    }
    template = TEMPLATES.get(response_type, ARGUMENT_TEMPLATE)

    speaker, opponent = (side_a_name, side_b_name) if side is Side.A else (side_b_name, side_a_name)
    return PromptContext(
        prompt=template.format(**fields),
        topic=topic,
        stance=side.stance,
        position=side.position,
        speaker_name=speaker,
        opponent_name=opponent,
        subround_type=response_type.value if response_type else str(subround_type),
    )
