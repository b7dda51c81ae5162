"""
LLM client for quote analysis using the OpenAI chat completions API.
"""
import logging
import threading
import time
from typing import Mapping, Optional
import openai
from openai import OpenAI
from tenacity import Retrying, stop_after_attempt, wait_exponential, retry_if_exception_type

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gpt-4o-mini'

# Substrings the provider uses in rate limit messages
RATE_LIMIT_MARKERS = ('Rate limit', 'tokens per min')


def is_rate_limit_error(error: BaseException) -> bool:
    """Check whether a provider error means the rate limit was hit."""
    if isinstance(error, openai.RateLimitError):
        return True
    message = str(error)
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


class QuoteLLMClient:
    """
    Thin wrapper around the OpenAI client with fixed call parameters.

    The SDK client is built on first use so the app can start without an
    API key; a missing key surfaces as ValueError on the first call.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.3,
        max_output_tokens: int = 4000,
        timeout: float = 60.0,
        max_attempts: int = 1,
        client: Optional[OpenAI] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self._client = client
        self._client_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Mapping) -> 'QuoteLLMClient':
        """Build a client from a Flask config mapping."""
        return cls(
            api_key=config.get('OPENAI_API_KEY'),
            model=config.get('OPENAI_MODEL', DEFAULT_MODEL),
            temperature=config.get('OPENAI_TEMPERATURE', 0.3),
            max_output_tokens=config.get('OPENAI_MAX_OUTPUT_TOKENS', 4000),
            timeout=config.get('OPENAI_TIMEOUT_SECONDS', 60.0),
            max_attempts=config.get('OPENAI_MAX_ATTEMPTS', 1),
        )

    def _get_client(self) -> OpenAI:
        """Get or initialize the OpenAI client."""
        if self._client is not None:
            return self._client

        # Server threads may race on the first request
        with self._client_lock:
            if self._client is None:
                if not self.api_key:
                    raise ValueError("OPENAI_API_KEY environment variable not set")

                # Retries are owned by _retrying(), not the SDK
                self._client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
                logger.info(f"OpenAI client initialized for model {self.model}")
        return self._client

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type((openai.RateLimitError, openai.APIConnectionError)),
            reraise=True,
        )

    def _create(self, request: dict):
        return self._get_client().chat.completions.create(**request)

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool = False,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Send one system + user message pair and return the assistant text.

        Args:
            system_prompt: The system message.
            user_prompt: The user message.
            json_mode: Request a JSON object response.
            max_tokens: Output token ceiling; defaults to max_output_tokens.

        Returns:
            Raw assistant message content.

        Raises:
            ValueError: If no API key is configured.
            RuntimeError: If the model returns no content.
            openai.OpenAIError: On provider errors.
        """
        request = {
            'model': self.model,
            'messages': [
                {'role': 'system', 'content': system_prompt},
                {'role': 'user', 'content': user_prompt},
            ],
            'temperature': self.temperature,
            'max_tokens': max_tokens or self.max_output_tokens,
        }
        if json_mode:
            request['response_format'] = {'type': 'json_object'}

        start_time = time.time()
        logger.debug(f"Calling {self.model}: prompt={len(user_prompt)} chars, json_mode={json_mode}")

        response = self._retrying()(self._create, request)

        duration = time.time() - start_time
        usage = getattr(response, 'usage', None)
        if usage is not None:
            logger.info(
                f"Model call complete: model={self.model}, duration={duration:.2f}s, "
                f"prompt_tokens={usage.prompt_tokens}, completion_tokens={usage.completion_tokens}"
            )
        else:
            logger.info(f"Model call complete: model={self.model}, duration={duration:.2f}s")

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise RuntimeError('No analysis returned from the model')

        return content
