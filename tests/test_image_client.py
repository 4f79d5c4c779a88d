"""Image provider and gateway tests."""

from __future__ import annotations

import base64
import json
from types import SimpleNamespace

import httpx
import pytest
from openai import OpenAIError

from receiptlab import config
from receiptlab.agents import image_client as ic
from receiptlab.agents.prompt_builder import GenerationRequest
from receiptlab.agents.reference_images import ReferenceImage
from receiptlab.data.catalog import get_game
from receiptlab.errors import (
    ConfigurationError,
    EmptyResponseError,
    NoImageError,
    ProviderTransportError,
)
from receiptlab.tickets.engine import build_ticket
from receiptlab.tickets.types import Selection

PNG = b"\x89PNG fake"


def _request(references: tuple[ReferenceImage, ...] = ()) -> GenerationRequest:
    return GenerationRequest(prompt="draw the receipt", references=references)


def _gemini(handler) -> ic.GeminiImageProvider:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ic.GeminiImageProvider(api_key="test-key", client=client)


def _candidates(*parts: dict) -> dict:
    return {"candidates": [{"content": {"parts": list(parts)}}]}


def test_gemini_returns_data_url_and_sends_references() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json=_candidates(
                {"text": "Here is your receipt"},
                {"inlineData": {"mimeType": "image/png", "data": base64.b64encode(PNG).decode()}},
            ),
        )

    refs = (ReferenceImage("image/jpeg", b"ref"),)
    image = _gemini(handler).generate(_request(refs))

    assert image.url == "data:image/png;base64," + base64.b64encode(PNG).decode()
    assert seen["url"].endswith("/models/gemini-3-pro-image-preview:generateContent")
    assert seen["key"] == "test-key"
    parts = seen["body"]["contents"][0]["parts"]
    assert parts[0]["text"].startswith("REFERENCE PHOTOS")
    assert parts[1]["inline_data"] == {"mime_type": "image/jpeg", "data": base64.b64encode(b"ref").decode()}
    assert parts[-1] == {"text": "draw the receipt"}
    assert seen["body"]["generationConfig"]["responseModalities"] == ["TEXT", "IMAGE"]


def test_gemini_without_references_sends_only_prompt() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        parts = json.loads(request.content)["contents"][0]["parts"]
        assert parts == [{"text": "draw the receipt"}]
        return httpx.Response(200, json=_candidates({"inlineData": {"mimeType": "image/jpeg", "data": ""}}))

    assert _gemini(handler).generate(_request()).url.startswith("data:image/jpeg;base64,")


def test_gemini_text_only_is_no_image_error() -> None:
    provider = _gemini(lambda request: httpx.Response(200, json=_candidates({"text": "I cannot draw that"})))
    with pytest.raises(NoImageError) as excinfo:
        provider.generate(_request())
    assert str(excinfo.value) == "No image generated by Gemini"
    assert excinfo.value.text == "I cannot draw that"


def test_gemini_empty_candidates_is_empty_response() -> None:
    provider = _gemini(lambda request: httpx.Response(200, json={"candidates": []}))
    with pytest.raises(EmptyResponseError, match="No response from Gemini"):
        provider.generate(_request())


def test_empty_and_no_image_errors_are_distinct() -> None:
    assert not issubclass(NoImageError, EmptyResponseError)
    assert not issubclass(EmptyResponseError, NoImageError)


def test_gemini_http_status_is_transport_error() -> None:
    provider = _gemini(lambda request: httpx.Response(503, text="overloaded"))
    with pytest.raises(ProviderTransportError) as excinfo:
        provider.generate(_request())
    assert excinfo.value.detail == "overloaded"


def test_gemini_network_failure_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderTransportError, match="connection refused"):
        _gemini(handler).generate(_request())


def test_gemini_missing_key_fails_before_network(monkeypatch) -> None:
    monkeypatch.delenv("GOOGLE_GENERATIVE_AI_API_KEY", raising=False)
    monkeypatch.setattr(config, "get_settings", lambda: SimpleNamespace(google_api_key="", openai_api_key=""))

    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be reached
        raise AssertionError("network call attempted")

    with pytest.raises(ConfigurationError, match="GOOGLE_GENERATIVE_AI_API_KEY"):
        ic.GeminiImageProvider(client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_build_provider_missing_openai_key(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(config, "get_settings", lambda: SimpleNamespace(google_api_key="", openai_api_key=""))
    settings = SimpleNamespace(google_api_key="", openai_api_key="", request_timeout=5.0)
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        ic.build_provider("openai-dalle", settings)


def test_build_provider_selects_variant() -> None:
    settings = SimpleNamespace(google_api_key="g", openai_api_key="o", request_timeout=5.0)
    flash = ic.build_provider("gemini-flash", settings)
    assert isinstance(flash, ic.GeminiImageProvider)
    assert flash.model == "gemini-2.5-flash-image"
    assert isinstance(ic.build_provider("openai-vision", settings), ic.OpenAIVisionImageProvider)
    with pytest.raises(ConfigurationError):
        ic.build_provider("midjourney", settings)


class FakeImages:
    def __init__(self, data: list) -> None:
        self.data = data
        self.calls: list[dict] = []

    def generate(self, **kwargs) -> SimpleNamespace:
        self.calls.append(kwargs)
        return SimpleNamespace(data=self.data)


class FakeCompletions:
    def __init__(self, content: str) -> None:
        self.content = content
        self.calls: list[dict] = []

    def create(self, **kwargs) -> SimpleNamespace:
        self.calls.append(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


def _openai_client(data: list, content: str = "optimized prompt") -> SimpleNamespace:
    return SimpleNamespace(
        images=FakeImages(data),
        chat=SimpleNamespace(completions=FakeCompletions(content)),
    )


def test_openai_returns_hosted_url() -> None:
    client = _openai_client([SimpleNamespace(url="https://img.test/receipt.png", b64_json=None)])
    image = ic.OpenAIImageProvider(client=client).generate(_request())
    assert image.url == "https://img.test/receipt.png"
    call = client.images.calls[0]
    assert call["model"] == "dall-e-3"
    assert call["size"] == "1024x1792"
    assert call["prompt"] == "draw the receipt"


def test_openai_empty_data_is_empty_response() -> None:
    with pytest.raises(EmptyResponseError, match="No response from OpenAI"):
        ic.OpenAIImageProvider(client=_openai_client([])).generate(_request())


def test_openai_without_url_is_no_image_error() -> None:
    client = _openai_client([SimpleNamespace(url=None, b64_json=None, revised_prompt="a receipt")])
    with pytest.raises(NoImageError, match="No image generated by OpenAI"):
        ic.OpenAIImageProvider(client=client).generate(_request())


def test_openai_error_is_transport_error() -> None:
    class FailingImages:
        def generate(self, **kwargs):
            raise OpenAIError("rate limited")

    client = SimpleNamespace(images=FailingImages())
    with pytest.raises(ProviderTransportError, match="rate limited"):
        ic.OpenAIImageProvider(client=client).generate(_request())


def test_vision_provider_uses_optimized_prompt() -> None:
    client = _openai_client([SimpleNamespace(url="https://img.test/v.png", b64_json=None)])
    refs = tuple(ReferenceImage("image/jpeg", bytes([i])) for i in range(3))
    image = ic.OpenAIVisionImageProvider(client=client).generate(_request(refs))
    assert image.url == "https://img.test/v.png"
    content = client.chat.completions.calls[0]["messages"][0]["content"]
    assert sum(1 for item in content if item["type"] == "image_url") == 2
    assert client.images.calls[0]["prompt"] == "optimized prompt"


def test_vision_provider_falls_back_without_references() -> None:
    client = _openai_client([SimpleNamespace(url="https://img.test/v.png", b64_json=None)])
    ic.OpenAIVisionImageProvider(client=client).generate(_request())
    assert client.chat.completions.calls == []
    assert client.images.calls[0]["prompt"] == "draw the receipt"


class RecordingProvider:
    name = "Fake"

    def __init__(self, uses_references: bool) -> None:
        self.uses_references = uses_references
        self.requests: list[GenerationRequest] = []

    def generate(self, request: GenerationRequest) -> ic.GeneratedImage:
        self.requests.append(request)
        return ic.GeneratedImage(url="https://img.test/fake.png")


def _ticket():
    return build_ticket([Selection(game=get_game("5"))], 20)


def test_gateway_attaches_loaded_references() -> None:
    provider = RecordingProvider(uses_references=True)
    refs = [ReferenceImage("image/jpeg", bytes([i])) for i in range(4)]
    gateway = ic.GenerationGateway(provider, reference_loader=lambda: refs, style="typography")
    image = gateway.generate_receipt(_ticket())
    assert image.url == "https://img.test/fake.png"
    request = provider.requests[0]
    assert len(request.references) == 3
    assert '"₪55.00"' in request.prompt


def test_gateway_skips_references_for_text_only_provider() -> None:
    provider = RecordingProvider(uses_references=False)

    def loader():  # pragma: no cover - must not be called
        raise AssertionError("references loaded")

    ic.GenerationGateway(provider, reference_loader=loader).generate_receipt(_ticket())
    assert provider.requests[0].references == ()


def test_gateway_does_not_cache() -> None:
    provider = RecordingProvider(uses_references=False)
    gateway = ic.GenerationGateway(provider)
    gateway.generate(_request())
    gateway.generate(_request())
    assert len(provider.requests) == 2


def test_gemini_html_body_is_transport_error() -> None:
    provider = _gemini(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
    with pytest.raises(ProviderTransportError, match="non-JSON") as excinfo:
        provider.generate(_request())
    assert "<html>" in excinfo.value.detail


def test_gemini_bad_base64_is_no_image_error() -> None:
    provider = _gemini(
        lambda request: httpx.Response(
            200, json=_candidates({"inlineData": {"mimeType": "image/png", "data": "@@not-base64@@"}})
        )
    )
    with pytest.raises(NoImageError, match="unreadable image payload"):
        provider.generate(_request())


def test_gemini_blocked_prompt_names_reason() -> None:
    provider = _gemini(
        lambda request: httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})
    )
    with pytest.raises(EmptyResponseError, match="No response from Gemini") as excinfo:
        provider.generate(_request())
    assert excinfo.value.detail == "blockReason=SAFETY"


def test_gemini_empty_content_names_finish_reason() -> None:
    provider = _gemini(
        lambda request: httpx.Response(200, json={"candidates": [{"finishReason": "IMAGE_SAFETY"}]})
    )
    with pytest.raises(EmptyResponseError, match="No content in Gemini response") as excinfo:
        provider.generate(_request())
    assert excinfo.value.detail == "finishReason=IMAGE_SAFETY"


def test_vision_provider_empty_choices_is_empty_response() -> None:
    client = _openai_client([SimpleNamespace(url="https://img.test/v.png", b64_json=None)])
    client.chat.completions.create = lambda **kwargs: SimpleNamespace(choices=[])
    refs = (ReferenceImage("image/jpeg", b"ref"),)
    with pytest.raises(EmptyResponseError, match="No response from OpenAI"):
        ic.OpenAIVisionImageProvider(client=client).generate(_request(refs))
    assert client.images.calls == []


def test_download_decodes_data_url() -> None:
    image = ic.GeneratedImage.from_payload(ic.ImagePayload(mime_type="image/jpeg", data=PNG))
    payload = image.download()
    assert payload == ic.ImagePayload(mime_type="image/jpeg", data=PNG)


def test_download_fetches_hosted_url() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "https://img.test/receipt.png"
        return httpx.Response(200, content=PNG, headers={"content-type": "image/png"})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    payload = ic.GeneratedImage(url="https://img.test/receipt.png").download(client)
    assert payload.data == PNG
    assert payload.mime_type == "image/png"


def test_download_failure_is_transport_error() -> None:
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(403)))
    with pytest.raises(ProviderTransportError, match="Failed to download image"):
        ic.GeneratedImage(url="https://img.test/expired.png").download(client)
