import json
import re
from typing import Any, Dict, Literal, Optional

import google.generativeai as genai
import openai

from lms.infrastructure.config import settings
from lms_utils.logger_utils import logger
from lms_utils.ai_safety import create_safety_guard_prompt
from lms_utils.retry_utils import ai_retry
from lms.domain.errors import AIClientError, ParsingError


TaskType = Literal[
    "grading",
    "recommendation",
    "standard",
]

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_json_payload(text: Optional[str]) -> Any:
    """
    Parse a model reply as JSON. Models sometimes wrap the object in a
    ```json fence even in JSON mode, so that is stripped first.
    """
    if not text or not text.strip():
        raise ParsingError("AI returned an empty response.")
    cleaned = _CODE_FENCE.sub("", text.strip())
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ParsingError(f"AI returned an invalid JSON format: {e}") from e


class HybridAIClient:
    def __init__(self, provider: str = None, timeout: float = None):
        self.provider = provider or settings.LMS_DEFAULT_PROVIDER
        self.timeout = timeout or settings.AI_TIMEOUT_SECONDS
        self._openai_initialized = False
        self._gemini_initialized = False

    # -------------------------------------------------------------------------
    # Provider init
    # -------------------------------------------------------------------------
    def _ensure_openai_initialized(self) -> None:
        if self._openai_initialized:
            return
        if not settings.OPENAI_API_KEY or "your_openai" in settings.OPENAI_API_KEY:
            raise AIClientError("OpenAI API key is not configured.")
        self._openai_initialized = True

    def _ensure_gemini_initialized(self) -> None:
        if self._gemini_initialized:
            return
        if not settings.GEMINI_API_KEY or "your_google" in settings.GEMINI_API_KEY:
            raise AIClientError("Gemini API key is not configured.")
        genai.configure(api_key=settings.GEMINI_API_KEY)
        self._gemini_initialized = True

    def is_configured(self) -> bool:
        if self.provider == "gemini":
            return bool(settings.GEMINI_API_KEY)
        return bool(settings.OPENAI_API_KEY)

    # -------------------------------------------------------------------------
    # OpenAI path
    # -------------------------------------------------------------------------
    @ai_retry(exception_types=(openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError))
    def _create_completion(self, client: "openai.OpenAI", kwargs: Dict[str, Any]):
        return client.chat.completions.create(**kwargs)

    def _call_openai(self, prompt: str, temperature: float, max_tokens: int) -> str:
        self._ensure_openai_initialized()

        client_args: Dict[str, Any] = {
            "api_key": settings.OPENAI_API_KEY,
            "timeout": self.timeout,
            "max_retries": 0,
        }
        if settings.LMS_BASE_URL:
            client_args["base_url"] = settings.LMS_BASE_URL

        try:
            client = openai.OpenAI(**client_args)
            kwargs: Dict[str, Any] = {
                "model": settings.LMS_OPENAI_MODEL,
                "messages": [{"role": "user", "content": prompt}],
                "max_tokens": max_tokens,
                "temperature": temperature,
                "response_format": {"type": "json_object"},
            }
            logger.debug(f"Using {settings.LMS_OPENAI_MODEL} (timeout={self.timeout}s)")
            response = self._create_completion(client, kwargs)
            return (response.choices[0].message.content or "").strip()

        except openai.OpenAIError as e:
            logger.error(f"{settings.LMS_OPENAI_MODEL} call failed: {e}", exc_info=True)
            raise AIClientError(
                f"The AI service failed to process the request: {e}"
            ) from e

    # -------------------------------------------------------------------------
    # Gemini path
    # -------------------------------------------------------------------------
    @ai_retry()
    def _generate_content(self, model, prompt: str, generation_config: Dict[str, Any]):
        return model.generate_content(
            prompt,
            generation_config=generation_config,
            request_options={"timeout": self.timeout},
        )

    def _call_gemini(self, prompt: str, temperature: float, max_tokens: int) -> str:
        self._ensure_gemini_initialized()

        try:
            model = genai.GenerativeModel(settings.LMS_GEMINI_MODEL)
            logger.debug(f"Using {settings.LMS_GEMINI_MODEL} (timeout={self.timeout}s)")
            response = self._generate_content(
                model,
                prompt,
                {
                    "temperature": temperature,
                    "max_output_tokens": max_tokens,
                    "response_mime_type": "application/json",
                },
            )
            return (response.text or "").strip()

        except Exception as e:
            logger.error(f"Gemini call failed: {e}", exc_info=True)
            raise AIClientError(
                f"The AI service failed to process the request: {e}"
            ) from e

    # -------------------------------------------------------------------------
    # Main public entrypoint
    # -------------------------------------------------------------------------
    def generate_json(
        self,
        prompt: str,
        context: str = "",
        task_type: TaskType = "standard",
        *,
        temperature: float = 0.3,
        max_tokens: int = 400,
    ) -> Any:
        """
        Ask the configured provider for a JSON reply and return it parsed.

        Raises AIClientError when the provider fails or times out and
        ParsingError when the reply is not JSON. Callers are expected to fall
        back to a local computation on either.
        """
        safe_full_prompt = create_safety_guard_prompt(prompt=prompt, context=context or "")

        if self.provider == "gemini":
            logger.info(f"→ Routing to {settings.LMS_GEMINI_MODEL} (task_type={task_type})")
            raw = self._call_gemini(safe_full_prompt, temperature, max_tokens)
        else:
            logger.info(f"→ Routing to {settings.LMS_OPENAI_MODEL} (task_type={task_type})")
            raw = self._call_openai(safe_full_prompt, temperature, max_tokens)

        return parse_json_payload(raw)


class AIClient(HybridAIClient):
    """Concrete client used by the rest of the app."""
    pass


ai_client = AIClient(provider=settings.LMS_DEFAULT_PROVIDER)
