"""Generation settings and the client that talks to the completion API."""

import json
import logging
import os
from dataclasses import dataclass, replace

import httpx

from .errors import ConfigurationError, FailureKind, GenerationFailure
from .parsing import clean_response
from .prompts import SYSTEM_PROMPT, PromptContext

logger = logging.getLogger(__name__)

CEREBRAS_URL = "https://api.cerebras.ai/v1/chat/completions"
DEFAULT_MODEL = "qwen-3-235b-a22b-instruct-2507"

# One-line hints logged next to each failure class
FAILURE_HINTS = {
    FailureKind.RATE_LIMIT: "Rate limited; wait before generating again or reduce request frequency",
    FailureKind.AUTHORIZATION: "Check the CEREBRAS_API_KEY environment variable",
    FailureKind.MALFORMED_REQUEST: "The request was rejected; check the model name and sampling settings",
    FailureKind.UNKNOWN: "Network or upstream failure; check connectivity and try again",
}

FALLBACK_TEMPLATE = (
    "I {stance} this position on {topic}. This is an important issue that needs "
    "careful thought and respectful discussion between all people involved."
)


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


@dataclass(frozen=True)
class GenerationSettings:
    api_key: str | None = None
    model: str = DEFAULT_MODEL
    max_tokens: int = 300  # ~150 words
    temperature: float = 0.6
    top_p: float = 0.8
    stream: bool = True
    base_url: str = CEREBRAS_URL
    system_prompt: str = SYSTEM_PROMPT

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "GenerationSettings":
        env = os.environ if environ is None else environ
        defaults = cls()
        try:
            return cls(
                api_key=env.get("CEREBRAS_API_KEY") or None,
                model=env.get("DISPUTATIO_MODEL") or defaults.model,
                max_tokens=int(env.get("DISPUTATIO_MAX_TOKENS") or defaults.max_tokens),
                temperature=float(env.get("DISPUTATIO_TEMPERATURE") or defaults.temperature),
                top_p=float(env.get("DISPUTATIO_TOP_P") or defaults.top_p),
                stream=_env_bool(env.get("DISPUTATIO_STREAM"), defaults.stream),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid generation setting in environment: {e}") from e

    def with_overrides(self, **changes) -> "GenerationSettings":
        """Copy with every non-None keyword applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def fallback_text(context: PromptContext | None) -> str:
    stance = context.stance if context else "support"
    topic = context.topic if context else "this issue"
    return FALLBACK_TEMPLATE.format(stance=stance, topic=topic)


class GenerationClient:
    """Prompt in, text out. Never raises for remote failures.

    Constructed once and handed to the engine. Pass ``http_client`` to reuse a
    connection pool (or a mock transport in tests); otherwise one
    ``httpx.AsyncClient`` is opened per call.
    """

    def __init__(self, settings: GenerationSettings, http_client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._http = http_client

    @property
    def has_credentials(self) -> bool:
        return bool(self.settings.api_key)

    def _messages(self, prompt: str) -> list[dict]:
        return [
            {"role": "system", "content": self.settings.system_prompt},
            {"role": "user", "content": prompt},
        ]

    def _body(self, prompt: str) -> dict:
        s = self.settings
        return {
            "model": s.model,
            "messages": self._messages(prompt),
            "max_completion_tokens": s.max_tokens,
            "temperature": s.temperature,
            "top_p": s.top_p,
            "stream": s.stream,
        }

    async def generate(self, prompt: str, context: PromptContext | None = None) -> str:
        """Generate text for a prompt, falling back to a fixed sentence on any failure."""
        if not self.has_credentials:
            logger.warning("No Cerebras API key configured, using fallback response")
            return fallback_text(context)

        try:
            text = await self.complete(prompt)
        except GenerationFailure as e:
            logger.error("Generation failed (%s): %s", e.kind.value, e)
            logger.warning(FAILURE_HINTS[e.kind])
            return fallback_text(context)

        return text

    async def complete(self, prompt: str) -> str:
        """Run one completion. Raises GenerationFailure, classified by cause."""
        headers = {"Authorization": f"Bearer {self.settings.api_key}"}
        try:
            if self._http is not None:
                text = await self._send(self._http, prompt, headers)
            else:
                async with httpx.AsyncClient(timeout=None) as client:
                    text = await self._send(client, prompt, headers)
        except httpx.HTTPError as e:
            raise GenerationFailure(FailureKind.UNKNOWN, f"Request to {self.settings.model} failed: {e}") from e

        text = clean_response(text)
        if not text:
            raise GenerationFailure(FailureKind.UNKNOWN, f"No response from {self.settings.model}")
        return text

    async def _send(self, client: httpx.AsyncClient, prompt: str, headers: dict) -> str:
        if self.settings.stream:
            return await self._send_streaming(client, prompt, headers)

        response = await client.post(self.settings.base_url, headers=headers, json=self._body(prompt))
        if response.status_code != 200:
            raise GenerationFailure.from_status(
                response.status_code, f"HTTP {response.status_code} from {self.settings.model}: {response.text[:200]}"
            )
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError):
            raise GenerationFailure(FailureKind.UNKNOWN, f"Invalid JSON response from {self.settings.model}") from None
        _raise_for_error_payload(data, self.settings.model)

        choice = _first_choice(data, self.settings.model)
        if choice is None:
            return ""
        return _content(choice.get("message"), self.settings.model)

    async def _send_streaming(self, client: httpx.AsyncClient, prompt: str, headers: dict) -> str:
        parts: list[str] = []
        async with client.stream("POST", self.settings.base_url, headers=headers, json=self._body(prompt)) as response:
            if response.status_code != 200:
                body = (await response.aread()).decode("utf-8", errors="replace")
                raise GenerationFailure.from_status(
                    response.status_code, f"HTTP {response.status_code} from {self.settings.model}: {body[:200]}"
                )

            async for line in response.aiter_lines():
                if not line or line.startswith(":") or not line.startswith("data: "):
                    continue
                data_str = line[6:]
                if data_str.strip() == "[DONE]":
                    break
                try:
                    data = json.loads(data_str)
                except json.JSONDecodeError:
                    continue
                _raise_for_error_payload(data, self.settings.model)

                choice = _first_choice(data, self.settings.model)
                if choice is None:
                    continue
                content = _content(choice.get("delta"), self.settings.model)
                if content:
                    parts.append(content)

        return "".join(parts)


def _malformed(model: str, what: str) -> GenerationFailure:
    return GenerationFailure(FailureKind.UNKNOWN, f"Malformed response from {model}: {what}")


def _first_choice(data: dict, model: str) -> dict | None:
    choices = data.get("choices") or []
    if not isinstance(choices, list):
        raise _malformed(model, "'choices' is not a list")
    if not choices:
        return None
    if not isinstance(choices[0], dict):
        raise _malformed(model, "choice is not an object")
    return choices[0]


def _content(message, model: str) -> str:
    if message is None:
        return ""
    if not isinstance(message, dict):
        raise _malformed(model, "message is not an object")
    content = message.get("content")
    if content is None:
        return ""
    if not isinstance(content, str):
        raise _malformed(model, "content is not a string")
    return content


def _raise_for_error_payload(data, model: str) -> None:
    if not isinstance(data, dict):
        raise _malformed(model, f"expected an object, got {type(data).__name__}")
    if "error" not in data:
        return
    error = data["error"]
    message = error.get("message", error) if isinstance(error, dict) else error
    status = None
    if isinstance(error, dict):
        code = error.get("status_code") or error.get("code")
        if isinstance(code, int) or (isinstance(code, str) and code.isdigit()):
            status = int(code)
    if status is not None:
        raise GenerationFailure.from_status(status, f"Error from {model}: {message}")
    raise GenerationFailure(FailureKind.UNKNOWN, f"Error from {model}: {message}")
