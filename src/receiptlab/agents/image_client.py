"""Image-generation providers and the gateway that hides which one is used."""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Any, Dict, List, Optional, Protocol, Union

import httpx
from openai import OpenAI, OpenAIError

from receiptlab.agents.prompt_builder import GenerationRequest, PromptStyle, build_generation_request
from receiptlab.agents.reference_images import ReferenceImage, load_reference_images
from receiptlab.config import Settings, get_google_api_key, get_openai_api_key, get_settings
from receiptlab.errors import (
    ConfigurationError,
    EmptyResponseError,
    NoImageError,
    ProviderTransportError,
)
from receiptlab.tickets.types import Ticket

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_MODELS = {
    "gemini-pro": "gemini-3-pro-image-preview",
    "gemini-flash": "gemini-2.5-flash-image",
}
DALLE_MODEL = "dall-e-3"
VISION_MODEL = "gpt-4o"


@dataclass(frozen=True)
class ImagePayload:
    mime_type: str
    data: bytes


@dataclass(frozen=True)
class TextPayload:
    text: str


ResponsePart = Union[ImagePayload, TextPayload]


@dataclass(frozen=True)
class GeneratedImage:
    """Displayable image: a ``data:`` URI or a hosted URL."""

    url: str

    @classmethod
    def from_payload(cls, payload: ImagePayload) -> "GeneratedImage":
        encoded = base64.b64encode(payload.data).decode("ascii")
        return cls(url=f"data:{payload.mime_type};base64,{encoded}")

    def download(self, client: Optional[httpx.Client] = None) -> ImagePayload:
        """Return the image bytes, decoding a ``data:`` URI or fetching a hosted URL."""

        if self.url.startswith("data:"):
            header, _, encoded = self.url.partition(",")
            mime_type = header[len("data:"):].split(";")[0] or "image/png"
            return ImagePayload(mime_type=mime_type, data=base64.b64decode(encoded))

        owns_client = client is None
        client = client or httpx.Client(timeout=60.0)
        try:
            response = client.get(self.url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProviderTransportError(f"Failed to download image: {exc}", detail=str(exc)) from exc
        finally:
            if owns_client:
                client.close()
        mime_type = response.headers.get("content-type", "image/png").split(";")[0]
        return ImagePayload(mime_type=mime_type, data=response.content)


class ImageProvider(Protocol):
    name: str
    uses_references: bool

    def generate(self, request: GenerationRequest) -> GeneratedImage:
        ...


def parse_gemini_parts(parts: Sequence[Dict[str, Any]]) -> List[ResponsePart]:
    """Turn raw REST content parts into tagged payloads, skipping unknown kinds."""

    parsed: List[ResponsePart] = []
    for part in parts:
        if "inlineData" in part:
            inline = part["inlineData"]
            try:
                data = base64.b64decode(inline.get("data", ""), validate=True)
            except (binascii.Error, ValueError) as exc:
                raise NoImageError("Gemini returned an unreadable image payload", text=str(exc)) from exc
            parsed.append(ImagePayload(mime_type=inline.get("mimeType", "image/png"), data=data))
        elif "text" in part:
            parsed.append(TextPayload(text=part["text"]))
    return parsed


def pick_image(parts: Sequence[ResponsePart], provider: str) -> GeneratedImage:
    texts: List[str] = []
    for part in parts:
        if isinstance(part, ImagePayload):
            return GeneratedImage.from_payload(part)
        if isinstance(part, TextPayload):
            texts.append(part.text)
    text = "\n".join(texts)
    if text:
        logger.info("%s text response: %s", provider, text)
    raise NoImageError(f"No image generated by {provider}", text=text)


class GeminiImageProvider:
    """Multimodal Gemini model returning inline image data."""

    uses_references = True

    def __init__(
        self,
        model: str = GEMINI_MODELS["gemini-pro"],
        api_key: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        base_url: str = GEMINI_BASE_URL,
        timeout: float = 120.0,
    ) -> None:
        self.name = "Gemini"
        self.model = model
        self.api_key = api_key or get_google_api_key()
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def build_parts(request: GenerationRequest) -> List[Dict[str, Any]]:
        parts: List[Dict[str, Any]] = []
        if request.references:
            parts.append({"text": request.reference_instructions})
            for image in request.references:
                parts.append({"inline_data": {"mime_type": image.mime_type, "data": image.b64}})
        parts.append({"text": request.prompt})
        return parts

    def _request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            response = self._client.post(url, json=payload, headers={"x-goog-api-key": self.api_key})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderTransportError(
                f"Gemini request failed with status {exc.response.status_code}",
                detail=exc.response.text,
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderTransportError(f"Gemini request failed: {exc}", detail=str(exc)) from exc
        try:
            body = response.json()
        except ValueError as exc:
            raise ProviderTransportError(
                "Gemini returned a non-JSON response", detail=response.text[:500]
            ) from exc
        if not isinstance(body, dict):
            raise ProviderTransportError("Gemini returned an unexpected response", detail=response.text[:500])
        return body

    def generate(self, request: GenerationRequest) -> GeneratedImage:
        payload = {
            "contents": [{"role": "user", "parts": self.build_parts(request)}],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }
        body = self._request(payload)
        candidates = body.get("candidates") or []
        if not candidates:
            block_reason = (body.get("promptFeedback") or {}).get("blockReason")
            raise EmptyResponseError(
                "No response from Gemini",
                detail=f"blockReason={block_reason}" if block_reason else None,
            )
        content = candidates[0].get("content") or {}
        parts = content.get("parts")
        if not parts:
            finish_reason = candidates[0].get("finishReason")
            raise EmptyResponseError(
                "No content in Gemini response",
                detail=f"finishReason={finish_reason}" if finish_reason else None,
            )
        return pick_image(parse_gemini_parts(parts), self.name)


class OpenAIImageProvider:
    """DALL-E text-to-image returning a hosted URL."""

    uses_references = False

    def __init__(self, api_key: Optional[str] = None, client: Optional[OpenAI] = None, timeout: float = 120.0) -> None:
        self.name = "OpenAI"
        self._client = client or OpenAI(api_key=api_key or get_openai_api_key(), timeout=timeout)

    def _images(self, prompt: str) -> GeneratedImage:
        try:
            response = self._client.images.generate(
                model=DALLE_MODEL,
                prompt=prompt,
                n=1,
                size="1024x1792",
                quality="hd",
                style="natural",
            )
        except OpenAIError as exc:
            raise ProviderTransportError(f"OpenAI request failed: {exc}", detail=str(exc)) from exc
        if not response.data:
            raise EmptyResponseError("No response from OpenAI")
        image = response.data[0]
        if image.url:
            return GeneratedImage(url=image.url)
        if getattr(image, "b64_json", None):
            return GeneratedImage.from_payload(
                ImagePayload(mime_type="image/png", data=base64.b64decode(image.b64_json))
            )
        raise NoImageError("No image generated by OpenAI", text=getattr(image, "revised_prompt", "") or "")

    def generate(self, request: GenerationRequest) -> GeneratedImage:
        return self._images(request.prompt)


class OpenAIVisionImageProvider(OpenAIImageProvider):
    """Let a vision model rewrite the prompt from reference photos, then render with DALL-E."""

    uses_references = True

    def optimize_prompt(self, request: GenerationRequest) -> str:
        content: List[Dict[str, Any]] = [
            {
                "type": "text",
                "text": (
                    "Analyze these real Winner betting receipts and create a detailed prompt for DALL-E 3 "
                    "to generate a new receipt. Keep every quoted string from the brief below exactly as "
                    "written. Focus on the exact layout, fonts, spacing, paper texture, and all visual "
                    f"details.\n\n{request.prompt}"
                ),
            }
        ]
        content.extend(
            {"type": "image_url", "image_url": {"url": image.data_url}} for image in request.references[:2]
        )
        try:
            response = self._client.chat.completions.create(
                model=VISION_MODEL,
                messages=[{"role": "user", "content": content}],
                max_tokens=1000,
            )
        except OpenAIError as exc:
            raise ProviderTransportError(f"OpenAI request failed: {exc}", detail=str(exc)) from exc
        if not response.choices:
            raise EmptyResponseError("No response from OpenAI")
        return response.choices[0].message.content or ""

    def generate(self, request: GenerationRequest) -> GeneratedImage:
        if not request.references:
            return self._images(request.prompt)
        return self._images(self.optimize_prompt(request) or request.prompt)


def build_provider(name: str, settings: Settings | None = None) -> ImageProvider:
    """Construct the configured provider; raises ``ConfigurationError`` if its key is missing."""

    settings = settings or get_settings()
    if name in GEMINI_MODELS:
        return GeminiImageProvider(
            model=GEMINI_MODELS[name],
            api_key=settings.google_api_key or None,
            timeout=settings.request_timeout,
        )
    if name == "openai-dalle":
        return OpenAIImageProvider(api_key=settings.openai_api_key or None, timeout=settings.request_timeout)
    if name == "openai-vision":
        return OpenAIVisionImageProvider(api_key=settings.openai_api_key or None, timeout=settings.request_timeout)
    raise ConfigurationError(f"Unknown image provider: {name}")


class GenerationGateway:
    """Single entry point for rendering a ticket, whatever the provider."""

    def __init__(
        self,
        provider: ImageProvider,
        reference_loader: Callable[[], List[ReferenceImage]] | None = None,
        style: PromptStyle | str = PromptStyle.PHOTOREALISTIC,
    ) -> None:
        self.provider = provider
        self.reference_loader = reference_loader or (lambda: [])
        self.style = PromptStyle(style)

    def generate(self, request: GenerationRequest) -> GeneratedImage:
        logger.info(
            "Generating receipt image with %s (%d reference images)",
            self.provider.name,
            len(request.references),
        )
        return self.provider.generate(request)

    def generate_receipt(self, ticket: Ticket) -> GeneratedImage:
        references = self.reference_loader() if self.provider.uses_references else []
        request = build_generation_request(ticket, references, self.style)
        return self.generate(request)


def build_gateway(settings: Settings | None = None) -> GenerationGateway:
    settings = settings or get_settings()
    loader = partial(
        load_reference_images,
        base_url=settings.reference_base_url,
        directory=settings.reference_image_dir,
    )
    return GenerationGateway(
        provider=build_provider(settings.image_provider, settings),
        reference_loader=loader,
        style=settings.prompt_style,
    )
