"""Generation client: one bounded call to the text-generation model.

The provider client owns the transient retry policy (at most two retries);
this layer adds a hard wall-clock deadline on top, since a hung provider call
must not hold the HTTP response open.
"""

from __future__ import annotations

import asyncio

from loguru import logger
from openai import APITimeoutError, AsyncOpenAI
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from fitplan.config.settings import Settings
from fitplan.planning.errors import GenerationProviderError, GenerationTimeoutError
from fitplan.planning.prompts import PromptPair


def build_model(settings: Settings) -> Model:
    """Build the pydantic-ai model for the configured provider credentials."""
    client = AsyncOpenAI(
        api_key=settings.openai_api_key,
        max_retries=settings.generation_max_retries,
        timeout=settings.generation_timeout_s,
    )
    return OpenAIChatModel(settings.generation_model, provider=OpenAIProvider(openai_client=client))


class GenerationClient:
    def __init__(
        self,
        model: Model,
        *,
        max_tokens: int = 4000,
        temperature: float = 0.2,
        timeout_s: float = 20.0,
    ):
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout_s = timeout_s

    @classmethod
    def from_settings(cls, settings: Settings, model: Model | None = None) -> GenerationClient:
        return cls(
            model or build_model(settings),
            max_tokens=settings.generation_max_tokens,
            temperature=settings.generation_temperature,
            timeout_s=settings.generation_timeout_s,
        )

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    async def generate(self, prompts: PromptPair) -> str:
        """Run the model on a prompt pair and return its raw text.

        Args:
            prompts: System and user prompts

        Returns:
            Raw generated text, untouched

        Raises:
            GenerationTimeoutError: If the call exceeds the deadline
            GenerationProviderError: If the provider fails or returns no text
        """
        agent = Agent(
            model=self._model,
            system_prompt=prompts.system,
            output_type=str,
        )
        model_settings = ModelSettings(max_tokens=self._max_tokens, temperature=self._temperature)

        logger.debug(
            "Calling generation model",
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            timeout_s=self._timeout_s,
            user_prompt_length=len(prompts.user),
        )

        try:
            result = await asyncio.wait_for(
                agent.run(prompts.user, model_settings=model_settings),
                timeout=self._timeout_s,
            )
        except (TimeoutError, APITimeoutError) as e:
            logger.warning("Generation call timed out", timeout_s=self._timeout_s)
            raise GenerationTimeoutError(f"Plan generation timed out after {self._timeout_s:g}s") from e
        except Exception as e:
            logger.error(
                "Generation call failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise GenerationProviderError(f"Plan generation failed: {type(e).__name__}") from e

        text = result.output
        if not text or not text.strip():
            raise GenerationProviderError("No plan generated")

        logger.debug("Generation call completed", output_length=len(text))
        return text
