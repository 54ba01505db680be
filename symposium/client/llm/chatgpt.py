import logging
from dataclasses import dataclass
from typing import Optional

from openai import AuthenticationError, OpenAI, OpenAIError

from symposium.config.config import (
    AI_MODELS,
    DEFAULT_AI_MODEL,
    DEFAULT_MAX_OUTPUT_TOKENS,
    MODEL_MAX_OUTPUT_TOKENS,
    TEMPERATURE,
)

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    pass


class CompletionCredentialsError(CompletionError):
    pass


@dataclass
class Completion:
    text: str
    input_tokens: int
    output_tokens: int
    model: str

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


def resolve_model(model_id: Optional[str]) -> str:
    return model_id if model_id in AI_MODELS else DEFAULT_AI_MODEL


def _accepts_temperature(model: str) -> bool:
    # Reasoning models (o-series) only run at their default temperature.
    return not model.startswith("o")


class CompletionInvoker:
    def __init__(self, api_key: str, client: Optional[OpenAI] = None, temperature: float = TEMPERATURE):
        self._api_key = api_key
        self._client = client
        self._temperature = temperature

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not self._api_key:
                raise CompletionCredentialsError("OpenAI API key not configured")
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def invoke(
        self,
        system_prompt: str,
        history: list[dict[str, str]],
        new_user_message: str,
        model_id: Optional[str],
    ) -> Completion:
        client = self._get_client()
        model = resolve_model(model_id)
        messages = [
            {"role": "system", "content": system_prompt},
            *history,
            {"role": "user", "content": new_user_message},
        ]
        kwargs = {"max_completion_tokens": MODEL_MAX_OUTPUT_TOKENS.get(model, DEFAULT_MAX_OUTPUT_TOKENS)}
        if _accepts_temperature(model):
            kwargs["temperature"] = self._temperature

        try:
            response = client.chat.completions.create(model=model, messages=messages, **kwargs)
        except AuthenticationError as exc:
            raise CompletionCredentialsError("OpenAI API key rejected") from exc
        except OpenAIError as exc:
            raise CompletionError(f"Completion request failed: {exc}") from exc

        text = response.choices[0].message.content if response.choices else None
        if not text:
            raise CompletionError("No response from AI")

        usage = response.usage
        completion = Completion(
            text=text,
            input_tokens=(usage.prompt_tokens or 0) if usage else 0,
            output_tokens=(usage.completion_tokens or 0) if usage else 0,
            model=model,
        )
        logger.info(
            "completion model=%s input_tokens=%d output_tokens=%d",
            model,
            completion.input_tokens,
            completion.output_tokens,
        )
        return completion
