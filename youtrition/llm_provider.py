"""
Chat model access for Youtrition.

Two kinds of calls are made: text prompts (recipe generation) and prompts
with fridge photos attached (fridge scanning). ``LLMProvider`` builds the
Messages API request for both and leaves the transport to a subclass:

- AnthropicProvider: Claude over the Anthropic SDK
- NullLLMProvider: key-less stand-in; callers check ``is_null`` and fall
  back to mock recipes or refuse to scan
"""

import base64
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "image/jpeg"

# Raw bytes, or (bytes, media type) for non-JPEG uploads
ImageInput = Union[bytes, Tuple[bytes, str]]

# Reply text of the key-less provider: no content, so parsers treat it as
# an unusable reply
NULL_REPLY = ""


def image_block(image: ImageInput) -> Dict[str, Any]:
    """Base64 image content block for a photo upload."""
    if isinstance(image, tuple):
        data, media_type = image
    else:
        data, media_type = image, DEFAULT_MEDIA_TYPE
    return {
        "type": "image",
        "source": {
            "type": "base64",
            "media_type": media_type or DEFAULT_MEDIA_TYPE,
            "data": base64.b64encode(data).decode("ascii"),
        },
    }


def response_text(response: Any) -> str:
    """Text of the first text block in a Messages API response."""
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text":
            return block.text
    return ""


class LLMProvider(ABC):
    """Chat model used for recipe text and fridge photos."""

    @property
    @abstractmethod
    def is_null(self) -> bool:
        """True when no real model is behind this provider."""

    @abstractmethod
    def send(self, request: Dict[str, Any]) -> str:
        """Send one Messages API request and return the reply text."""

    def ask(
        self,
        prompt: str,
        model: str,
        max_tokens: int,
        system: Optional[str] = None,
        **sampling,
    ) -> str:
        """Single-turn text prompt. ``sampling`` holds temperature, top_k, etc."""
        return self.send(self._request(model, max_tokens, prompt, system, sampling))

    def ask_about_images(
        self,
        prompt: str,
        images: Sequence[ImageInput],
        model: str,
        max_tokens: int,
        **sampling,
    ) -> str:
        """Single-turn prompt with photos attached after the text."""
        content: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
        content.extend(image_block(image) for image in images)
        logger.debug(f"[LLM] Sending {len(images)} images to {model}")
        return self.send(self._request(model, max_tokens, content, None, sampling))

    @staticmethod
    def _request(model, max_tokens, content, system, sampling) -> Dict[str, Any]:
        request = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": content}],
        }
        if system:
            request["system"] = system
        request.update(sampling)
        return request


class AnthropicProvider(LLMProvider):
    """Claude via the Anthropic SDK."""

    def __init__(self, api_key: str):
        from anthropic import Anthropic
        self.client = Anthropic(api_key=api_key)

    @property
    def is_null(self) -> bool:
        return False

    def send(self, request: Dict[str, Any]) -> str:
        response = self.client.messages.create(**request)
        if response.stop_reason == "max_tokens":
            logger.warning(f"[LLM] Reply from {request['model']} hit max_tokens={request['max_tokens']}")
        return response_text(response)


class NullLLMProvider(LLMProvider):
    """
    Provider used when no API key is configured.

    Every request is kept in ``requests`` and answered with NULL_REPLY.
    Recipe generation serves mock recipes instead of calling it, single
    recipe requests fail to parse its empty reply, and fridge scanning
    refuses to run.
    """

    def __init__(self):
        self.requests: List[Dict[str, Any]] = []

    @property
    def is_null(self) -> bool:
        return True

    def send(self, request: Dict[str, Any]) -> str:
        self.requests.append(request)
        return NULL_REPLY


def get_llm_provider(api_key: Optional[str] = None, use_null: bool = False) -> LLMProvider:
    """
    Choose the provider for this process.

    The null provider is used when ``use_null`` is set, when USE_NULL_LLM
    is "true", or when no Anthropic key is available.
    """
    if use_null or os.environ.get("USE_NULL_LLM", "").lower() == "true":
        logger.info("[LLM] USE_NULL_LLM set, recipes will be mock data")
        return NullLLMProvider()

    api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        logger.warning("[LLM] No ANTHROPIC_API_KEY found, recipes will be mock data")
        return NullLLMProvider()

    return AnthropicProvider(api_key=api_key)
