"""Text generation providers and the retrying, falling-back generation client"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from langchain_core.callbacks.manager import (
    AsyncCallbackManagerForLLMRun,
    CallbackManagerForLLMRun,
)
from langchain_core.language_models.llms import LLM

from .config import ShowrunnerConfig, AZURE_REQUEST_TIMEOUT
from .errors import GenerationError, ProviderError
from ..schemas import get_schema

logger = logging.getLogger(__name__)


class GeminiLLM(LLM):
    """Gemini text generation through the google-genai SDK"""

    model_name: str = "gemini-2.5-pro"
    gemini_configs: Dict = {
        'max_output_tokens': 2048,
        'temperature': 1,
    }
    system_instruction: Optional[str] = None
    client: Any = None  # genai.Client shared through the GenerationClient

    def __init__(self, **kwargs):
        """Initialize with custom parameters"""
        super().__init__()
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def _build_config(self, **kwargs) -> types.GenerateContentConfig:
        config_params = {
            "temperature": kwargs.get("temperature", self.gemini_configs['temperature']),
            "max_output_tokens": kwargs.get("max_tokens", self.gemini_configs['max_output_tokens']),
            "safety_settings": [
                types.SafetySetting(
                    category="HARM_CATEGORY_HATE_SPEECH",
                    threshold="BLOCK_NONE"
                ),
                types.SafetySetting(
                    category="HARM_CATEGORY_DANGEROUS_CONTENT",
                    threshold="BLOCK_NONE"
                ),
                types.SafetySetting(
                    category="HARM_CATEGORY_SEXUALLY_EXPLICIT",
                    threshold="BLOCK_NONE"
                ),
                types.SafetySetting(
                    category="HARM_CATEGORY_HARASSMENT",
                    threshold="BLOCK_NONE"
                )
            ],
        }
        system_instruction = kwargs.get("system_instruction") or self.system_instruction
        if system_instruction:
            config_params["system_instruction"] = system_instruction

        response_schema = kwargs.get("response_schema")
        if response_schema:
            config_params["response_mime_type"] = "application/json"
            config_params["response_schema"] = get_schema(response_schema, "gemini")

        return types.GenerateContentConfig(**config_params)

    def _provider_error(self, e: Exception) -> ProviderError:
        if isinstance(e, genai_errors.APIError):
            return ProviderError(e.message or str(e), status=e.code, provider="gemini", model=self.model_name)
        return ProviderError(str(e), provider="gemini", model=self.model_name)

    @staticmethod
    def _extract_text(response) -> str:
        # Fix: candidates can come back with content=None
        if response.candidates and response.candidates[0].content and response.candidates[0].content.parts:
            return "".join(
                part.text for part in response.candidates[0].content.parts
                if getattr(part, "text", None) and not getattr(part, "thought", False)
            )
        return response.text or ""

    def _call(self, prompt: str, stop: Optional[List[str]] = None,
              run_manager: Optional[CallbackManagerForLLMRun] = None, **kwargs: Any) -> str:
        if self.client is None:
            raise ProviderError("Gemini client is not configured", provider="gemini",
                                model=self.model_name, transient=False)
        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=self._build_config(**kwargs)
            )
        except genai_errors.APIError as e:
            raise self._provider_error(e) from e
        return self._extract_text(response)

    async def _acall(self, prompt: str, stop: Optional[List[str]] = None,
                     run_manager: Optional[AsyncCallbackManagerForLLMRun] = None, **kwargs: Any) -> str:
        if self.client is None:
            raise ProviderError("Gemini client is not configured", provider="gemini",
                                model=self.model_name, transient=False)
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=self._build_config(**kwargs)
            )
        except genai_errors.APIError as e:
            raise self._provider_error(e) from e
        return self._extract_text(response)

    @property
    def _llm_type(self):
        return "gemini"


class AzureOpenAILLM(LLM):
    """Azure OpenAI chat completions over direct HTTP"""

    model_name: str = "gpt-4.1"
    deployment: str = "gpt-4.1"
    endpoint: str = ""
    api_key: str = ""
    api_version: str = "2024-12-01-preview"
    temperature: float = 0.85
    max_tokens: int = 2000
    system_instruction: Optional[str] = None
    request_timeout: float = AZURE_REQUEST_TIMEOUT
    http_client: Any = None  # httpx.AsyncClient owned by the GenerationClient

    def __init__(self, **kwargs):
        """Initialize with custom parameters"""
        super().__init__()
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

    @property
    def url(self) -> str:
        endpoint = self.endpoint if self.endpoint.endswith('/') else self.endpoint + '/'
        return f"{endpoint}openai/deployments/{self.deployment}/chat/completions?api-version={self.api_version}"

    def _request_body(self, prompt: str, **kwargs) -> Dict[str, Any]:
        system_prompt = kwargs.get("system_instruction") or self.system_instruction or \
            "You are a helpful AI assistant specialized in film and TV pre-production planning."
        body = {
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt}
            ],
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }
        response_schema = kwargs.get("response_schema")
        if response_schema:
            body["response_format"] = {
                "type": "json_schema",
                "json_schema": {
                    "name": response_schema,
                    "schema": get_schema(response_schema, "gpt"),
                    "strict": True
                }
            }
        return body

    def _check_configured(self):
        if not self.api_key or not self.endpoint or not self.endpoint.startswith('http'):
            raise ProviderError("Azure OpenAI endpoint or API key is not configured",
                                provider="azure", model=self.model_name, transient=False)

    def _handle_response(self, response: httpx.Response) -> str:
        if response.status_code >= 400:
            try:
                detail = response.json().get("error", {})
                message = detail.get("message") if isinstance(detail, dict) else str(detail)
            except ValueError:
                message = None
            message = message or f"HTTP {response.status_code} {response.reason_phrase}"
            if response.status_code == 404:
                logger.error(f"[Azure OpenAI] Deployment not found: {self.deployment}")
            raise ProviderError(message, status=response.status_code, provider="azure", model=self.model_name)
        data = response.json()
        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

    def _call(self, prompt: str, stop: Optional[List[str]] = None,
              run_manager: Optional[CallbackManagerForLLMRun] = None, **kwargs: Any) -> str:
        self._check_configured()
        try:
            with httpx.Client(timeout=self.request_timeout) as client:
                response = client.post(self.url, json=self._request_body(prompt, **kwargs),
                                       headers={"api-key": self.api_key})
        except httpx.TimeoutException as e:
            raise ProviderError(f"AI service timeout after {self.request_timeout}s", provider="azure",
                                model=self.model_name, transient=True) from e
        except httpx.TransportError as e:
            raise ProviderError(f"Network error: {e}", provider="azure", model=self.model_name,
                                transient=True) from e
        return self._handle_response(response)

    async def _acall(self, prompt: str, stop: Optional[List[str]] = None,
                     run_manager: Optional[AsyncCallbackManagerForLLMRun] = None, **kwargs: Any) -> str:
        self._check_configured()
        client = self.http_client
        owns_client = client is None
        if owns_client:
            client = httpx.AsyncClient(timeout=self.request_timeout)
        try:
            response = await client.post(self.url, json=self._request_body(prompt, **kwargs),
                                         headers={"api-key": self.api_key})
        except httpx.TimeoutException as e:
            raise ProviderError(f"AI service timeout after {self.request_timeout}s", provider="azure",
                                model=self.model_name, transient=True) from e
        except httpx.TransportError as e:
            raise ProviderError(f"Network error: {e}", provider="azure", model=self.model_name,
                                transient=True) from e
        finally:
            if owns_client:
                await client.aclose()
        return self._handle_response(response)

    @property
    def _llm_type(self):
        return "azure_openai"


class GenerationOptions(NamedTuple):
    model: str = "prose"  # model role or "provider:model"
    temperature: float = 0.7
    max_tokens: int = 2000
    timeout: Optional[float] = None  # per attempt, seconds
    response_schema: Optional[str] = None  # schema name, see showrunner.schemas
    fallback: bool = True


class GenerationOutput(NamedTuple):
    text: str
    model: str
    provider: str
    attempts: int


LLMFactory = Callable[[str, str], Any]


class GenerationClient:
    """Calls a provider chain with bounded retries on transient errors

    For each "provider:model" in the chain the call is attempted up to
    config.max_attempts times, waiting config.retry_delay seconds between
    attempts. Non-transient errors move straight to the next model. When the
    chain is exhausted a GenerationError carries every attempt's error.
    """

    def __init__(self, config: ShowrunnerConfig, llm_factory: Optional[LLMFactory] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.config = config
        self._sleep = sleep
        self._llm_factory = llm_factory or self._build_llm
        self._http_client = None
        self._genai_client = None
        if llm_factory is None:
            self._http_client = httpx.AsyncClient(timeout=AZURE_REQUEST_TIMEOUT)
            self._genai_client = self._build_genai_client()

    def _build_genai_client(self):
        if self.config.use_vertex:
            if not self.config.gcp_project_id:
                logger.warning("[Generation Client] Vertex AI requested but GCP_PROJECT_ID is not set")
                return None
            return genai.Client(
                vertexai=True,
                project=self.config.gcp_project_id,
                location=self.config.gcp_location,
                credentials=self.config.credentials
            )
        if self.config.gemini_api_key:
            return genai.Client(api_key=self.config.gemini_api_key)
        logger.warning("[Generation Client] No Gemini credentials configured, Gemini models will be skipped")
        return None

    def _build_llm(self, provider: str, model: str):
        if provider == "gemini":
            return GeminiLLM(model_name=model, client=self._genai_client)
        if provider == "azure":
            return AzureOpenAILLM(
                model_name=model,
                deployment=self.config.azure_deployments.get(model, model),
                endpoint=self.config.azure_endpoint or "",
                api_key=self.config.azure_api_key or "",
                api_version=self.config.azure_api_version,
                http_client=self._http_client,
            )
        raise ProviderError(f"Unknown provider: {provider}", provider=provider, model=model, transient=False)

    async def _attempt(self, llm, prompt: str, system_prompt: str, options: GenerationOptions) -> str:
        call = llm.ainvoke(
            prompt,
            system_instruction=system_prompt,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            response_schema=options.response_schema,
        )
        if options.timeout:
            return await asyncio.wait_for(call, timeout=options.timeout)
        return await call

    async def generate(self, prompt: str, system_prompt: str = "",
                       options: Optional[GenerationOptions] = None) -> GenerationOutput:
        options = options or GenerationOptions()
        chain = self.config.fallback_chain(options.model)
        if not options.fallback:
            chain = chain[:1]

        errors: List[ProviderError] = []
        total_attempts = 0
        for index, entry in enumerate(chain):
            provider, _, model = entry.partition(":")
            if index > 0:
                logger.warning(f"[Generation Client] Falling back to {provider}:{model}")
            try:
                llm = self._llm_factory(provider, model)
            except ProviderError as e:
                errors.append(e)
                continue

            for attempt in range(1, self.config.max_attempts + 1):
                total_attempts += 1
                try:
                    text = await self._attempt(llm, prompt, system_prompt, options)
                    logger.info(f"[Generation Client] {provider}:{model} succeeded "
                                f"(attempt {attempt}, {len(text or '')} chars)")
                    return GenerationOutput(text=text or "", model=model, provider=provider,
                                            attempts=total_attempts)
                except asyncio.TimeoutError:
                    error = ProviderError(f"Request timed out after {options.timeout}s",
                                          provider=provider, model=model, transient=True)
                except ProviderError as e:
                    error = e
                except httpx.TransportError as e:
                    error = ProviderError(f"Network error: {e}", provider=provider, model=model, transient=True)

                errors.append(error)
                logger.warning(f"[Generation Client] Attempt {attempt}/{self.config.max_attempts} "
                               f"failed: {error}")
                if not error.is_transient:
                    break
                if attempt < self.config.max_attempts:
                    await self._sleep(self.config.retry_delay)

        summary = "; ".join(str(e) for e in errors[-3:]) or "no models configured"
        raise GenerationError(f"All models failed for this request: {summary}", attempts=errors)

    async def aclose(self):
        if self._http_client is not None:
            await self._http_client.aclose()
