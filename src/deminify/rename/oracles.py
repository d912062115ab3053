"""Naming oracles.

A Renamer proposes a descriptive name for one identifier given a window of
surrounding code. Variants are chosen explicitly from configuration:

- OpenAIRenamer: OpenAI chat completions with a strict JSON schema
- GeminiRenamer: Google Generative Language ``generateContent``
- LocalRenamer: an OpenAI-compatible local inference server

Failures are never retried here. Every transport or protocol problem
surfaces as an OracleError so the orchestrator can checkpoint and halt.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, ClassVar

import httpx
import structlog

from deminify.config.constants import (
    FILENAME_PROBE_CHARS,
    GEMINI_DEFAULT_BASE_URL,
    GEMINI_DEFAULT_MODEL,
    LOCAL_DEFAULT_BASE_URL,
    LOCAL_DEFAULT_MODEL,
    LOCAL_SAVE_INTERVAL,
    OPENAI_DEFAULT_BASE_URL,
    OPENAI_DEFAULT_MODEL,
    REMOTE_SAVE_INTERVAL,
)
from deminify.config.models import OracleConfig
from deminify.core.errors import ConfigError, OracleError

log = structlog.get_logger(__name__)


def rename_instruction(name: str) -> str:
    return (
        f"Rename Javascript variables/function `{name}` to have descriptive name "
        "based on their usage in the code."
    )


def _new_name_schema(name: str) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "newName": {
                "type": "string",
                "description": f"The new name for the variable/function called `{name}`",
            }
        },
        "required": ["newName"],
        "additionalProperties": False,
    }


class Renamer(ABC):
    """Base class for naming oracles.

    Subclasses implement ``suggest``. Instances are awaitable callables with
    the oracle signature ``(name, context) -> proposed name``.
    """

    provider: ClassVar[str]
    default_model: ClassVar[str]
    default_base_url: ClassVar[str]
    save_interval: ClassVar[int] = REMOTE_SAVE_INTERVAL
    """Checkpoint every N processed identifiers."""

    def __init__(self, config: OracleConfig, *, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self.model = config.model or self.default_model
        self.base_url = (config.base_url or self.default_base_url).rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=config.timeout_sec)
        self._owns_client = client is None

    async def __call__(self, name: str, context: str) -> str:
        return await self.suggest(name, context)

    async def prepare(self, source: str) -> None:  # noqa: ARG002
        """Per-file hook, called once before the file's identifiers are visited."""
        return None

    @abstractmethod
    async def suggest(self, name: str, context: str) -> str:
        """Return the proposed new name for ``name``.

        Raises:
            OracleError: The request failed, timed out, or the reply was unusable.
        """

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Renamer:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def _post(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> Any:
        """POST ``payload`` and return the decoded JSON body."""
        try:
            response = await self._client.post(url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise OracleError.timeout(self.provider, self.config.timeout_sec) from e
        except httpx.HTTPStatusError as e:
            raise OracleError.request_failed(
                self.provider, f"HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            raise OracleError.request_failed(self.provider, str(e) or type(e).__name__) from e
        try:
            return response.json()
        except ValueError as e:
            raise OracleError.malformed_response(self.provider, "response is not JSON") from e

    def _extract_new_name(self, content: Any) -> str:
        """Pull ``newName`` out of the model's JSON text reply."""
        if not isinstance(content, str) or not content:
            raise OracleError.malformed_response(self.provider, "empty completion")
        try:
            parsed = json.loads(content)
        except ValueError as e:
            raise OracleError.malformed_response(self.provider, "completion is not JSON") from e
        new_name = parsed.get("newName") if isinstance(parsed, dict) else None
        if not isinstance(new_name, str) or not new_name.strip():
            raise OracleError.malformed_response(self.provider, "missing newName")
        return new_name.strip()


class _ChatCompletionsRenamer(Renamer):
    """Shared request shape for OpenAI-compatible chat completion servers."""

    def _headers(self) -> dict[str, str]:
        if self.config.api_key:
            return {"Authorization": f"Bearer {self.config.api_key}"}
        return {}

    def _messages(self, name: str, context: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": rename_instruction(name)},
            {"role": "user", "content": context},
        ]

    async def _complete(self, payload: dict[str, Any]) -> Any:
        body = await self._post(f"{self.base_url}/chat/completions", payload, self._headers())
        try:
            return body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise OracleError.malformed_response(self.provider, "no choices in response") from e

    async def suggest(self, name: str, context: str) -> str:
        log.debug("oracle_request", provider=self.provider, name=name, context=context)
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": self._messages(name, context),
            "response_format": {
                "type": "json_schema",
                "json_schema": {"strict": True, "name": "rename", "schema": _new_name_schema(name)},
            },
        }
        if self.config.seed is not None:
            payload["seed"] = self.config.seed
        new_name = self._extract_new_name(await self._complete(payload))
        log.debug("oracle_response", provider=self.provider, name=name, new_name=new_name)
        return new_name


class OpenAIRenamer(_ChatCompletionsRenamer):
    """OpenAI (or any compatible hosted API) chat completions."""

    provider = "openai"
    default_model = OPENAI_DEFAULT_MODEL
    default_base_url = OPENAI_DEFAULT_BASE_URL

    def __init__(self, config: OracleConfig, *, client: httpx.AsyncClient | None = None) -> None:
        if not config.api_key:
            raise ConfigError.missing_required("oracle.api_key")
        super().__init__(config, client=client)


class GeminiRenamer(Renamer):
    """Google Gemini via the Generative Language REST API."""

    provider = "gemini"
    default_model = GEMINI_DEFAULT_MODEL
    default_base_url = GEMINI_DEFAULT_BASE_URL

    def __init__(self, config: OracleConfig, *, client: httpx.AsyncClient | None = None) -> None:
        if not config.api_key:
            raise ConfigError.missing_required("oracle.api_key")
        super().__init__(config, client=client)

    async def suggest(self, name: str, context: str) -> str:
        log.debug("oracle_request", provider=self.provider, name=name, context=context)
        payload = {
            "systemInstruction": {"parts": [{"text": rename_instruction(name)}]},
            "contents": [{"role": "user", "parts": [{"text": context}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": {
                    "type": "OBJECT",
                    "nullable": False,
                    "description": "The new name for the variable/function",
                    "properties": {
                        "newName": {
                            "type": "STRING",
                            "nullable": False,
                            "description": f"The new name for the variable/function called `{name}`",
                        }
                    },
                    "required": ["newName"],
                },
            },
        }
        body = await self._post(
            f"{self.base_url}/models/{self.model}:generateContent",
            payload,
            {"x-goog-api-key": self.config.api_key or ""},
        )
        try:
            text = body["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise OracleError.malformed_response(self.provider, "no candidates in response") from e
        new_name = self._extract_new_name(text)
        log.debug("oracle_response", provider=self.provider, name=name, new_name=new_name)
        return new_name


class LocalRenamer(_ChatCompletionsRenamer):
    """Local inference server speaking the OpenAI chat completions protocol.

    Before each file it asks the model for a plausible file name, which is
    then included in every rename prompt for that file.
    """

    provider = "local"
    default_model = LOCAL_DEFAULT_MODEL
    default_base_url = LOCAL_DEFAULT_BASE_URL
    save_interval = LOCAL_SAVE_INTERVAL

    def __init__(self, config: OracleConfig, *, client: httpx.AsyncClient | None = None) -> None:
        super().__init__(config, client=client)
        self.filename: str | None = None

    async def prepare(self, source: str) -> None:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {
                    "role": "system",
                    "content": "Name the file that the following Javascript code came from. "
                    "Reply with a single file name.",
                },
                {"role": "user", "content": source[:FILENAME_PROBE_CHARS]},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "strict": True,
                    "name": "filename",
                    "schema": {
                        "type": "object",
                        "properties": {"filename": {"type": "string"}},
                        "required": ["filename"],
                        "additionalProperties": False,
                    },
                },
            },
        }
        if self.config.seed is not None:
            payload["seed"] = self.config.seed
        content = await self._complete(payload)
        try:
            parsed = json.loads(content) if isinstance(content, str) else None
        except ValueError:
            parsed = None
        filename = parsed.get("filename") if isinstance(parsed, dict) else None
        self.filename = filename.strip() if isinstance(filename, str) and filename.strip() else None
        log.debug("filename_guessed", filename=self.filename)

    def _messages(self, name: str, context: str) -> list[dict[str, str]]:
        messages = super()._messages(name, context)
        if self.filename:
            messages[1] = {"role": "user", "content": f"// {self.filename}\n{context}"}
        return messages


_RENAMERS: dict[str, type[Renamer]] = {
    OpenAIRenamer.provider: OpenAIRenamer,
    GeminiRenamer.provider: GeminiRenamer,
    LocalRenamer.provider: LocalRenamer,
}


def build_renamer(config: OracleConfig, *, client: httpx.AsyncClient | None = None) -> Renamer:
    """Instantiate the Renamer selected by ``config.provider``.

    Raises:
        ConfigError: Unknown provider or missing API key.
    """
    renamer_cls = _RENAMERS.get(config.provider)
    if renamer_cls is None:
        raise ConfigError.invalid_value("oracle.provider", config.provider, "unknown provider")
    return renamer_cls(config, client=client)
