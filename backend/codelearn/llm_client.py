from __future__ import annotations
import logging
import httpx
from typing import Any, Callable, Dict, List, Optional, TypeVar
from .settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LLMUnavailableError(RuntimeError):
	pass


class GenerationError(RuntimeError):
	"""The LLM answered, but the reply was unusable."""


class LLMClient:
	"""Chat-completions client: OpenRouter first, Groq as fallback when configured.

	When ``parse`` is given it runs on each provider's reply, and a reply it
	rejects with GenerationError counts as a failed call, so Groq gets a turn.
	"""

	def __init__(self, settings: Settings, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
		self.api_key = settings.openrouter_api_key
		self.model = settings.openrouter_model
		self.base_url = settings.openrouter_base_url
		self._headers = {
			"Authorization": f"Bearer {self.api_key}" if self.api_key else "",
			"Content-Type": "application/json",
			"HTTP-Referer": settings.openrouter_referer,
			"X-Title": settings.openrouter_title,
		}
		self._client = httpx.AsyncClient(timeout=settings.llm_timeout_seconds, transport=transport)
		self._fallback_client: Optional[httpx.AsyncClient] = None
		self._fallback_enabled = bool(settings.groq_api_key)
		self._groq_model = settings.groq_model
		self._groq_base_url = settings.groq_base_url
		self._groq_headers = {
			"Authorization": f"Bearer {settings.groq_api_key}" if settings.groq_api_key else "",
			"Content-Type": "application/json",
		}
		if self._fallback_enabled:
			self._fallback_client = httpx.AsyncClient(timeout=settings.llm_timeout_seconds, transport=transport)

	@property
	def configured(self) -> bool:
		return bool(self.api_key) or self._fallback_enabled

	async def chat(
		self,
		messages: List[Dict[str, str]],
		*,
		temperature: float = 0.7,
		max_tokens: int = 1000,
		parse: Optional[Callable[[str], T]] = None,
	) -> Any:
		payload: Dict[str, Any] = {
			"model": self.model,
			"messages": messages,
			"temperature": temperature,
			"max_tokens": max_tokens,
		}
		last_error: Optional[Exception] = None
		if not self.api_key:
			last_error = LLMUnavailableError("OPENROUTER_API_KEY is not configured")
		else:
			try:
				text = await self._post(self._client, self.base_url, self._headers, payload)
				return parse(text) if parse else text
			except (httpx.HTTPError, LLMUnavailableError, GenerationError) as err:
				last_error = err
				logger.warning("OpenRouter call failed (%s); %s", err, "trying Groq" if self._fallback_enabled else "no fallback configured")
		if not self._fallback_enabled:
			if isinstance(last_error, GenerationError):
				raise last_error
			raise LLMUnavailableError(f"LLM call failed and no fallback configured: {last_error}") from last_error
		text = await self._fallback_chat(payload, last_error)
		return parse(text) if parse else text

	async def _post(
		self,
		client: httpx.AsyncClient,
		url: str,
		headers: Dict[str, str],
		payload: Dict[str, Any],
	) -> str:
		r = await client.post(url, headers={k: v for k, v in headers.items() if v}, json=payload)
		r.raise_for_status()
		try:
			data = r.json()
			content = data["choices"][0]["message"]["content"]
		except (ValueError, KeyError, IndexError, TypeError):
			raise LLMUnavailableError(f"Unexpected chat completion response: {r.text[:200]}")
		if not content:
			raise LLMUnavailableError("Empty response from LLM")
		return content

	async def _fallback_chat(self, payload: Dict[str, Any], primary_error: Optional[Exception]) -> str:
		fallback_payload = {**payload, "model": self._groq_model}
		try:
			text = await self._post(self._fallback_client, self._groq_base_url, self._groq_headers, fallback_payload)
		except (httpx.HTTPError, LLMUnavailableError) as fallback_err:
			logger.error("Groq fallback also failed: %s (primary error: %s)", fallback_err, primary_error)
			raise LLMUnavailableError(
				f"Both LLM providers are unavailable (primary: {primary_error}; fallback: {fallback_err})"
			) from fallback_err
		logger.info("Groq fallback succeeded")
		return text

	async def aclose(self) -> None:
		await self._client.aclose()
		if self._fallback_client is not None:
			await self._fallback_client.aclose()
