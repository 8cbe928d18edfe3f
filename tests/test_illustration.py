"""Tests for coloring-page prompting and the Replicate illustration adapter."""

from __future__ import annotations

from dataclasses import fields
from io import BytesIO

import pytest
import requests

from colorbook.ai_generation import (
    VARIATION_STYLES,
    IllustrationRequest,
    ReplicateIllustrationService,
    build_photo_prompt,
    build_scene_prompt,
    complexity_for_age,
    variation_style,
)


class _FakeReplicateClient:
    def __init__(self, output=None) -> None:
        self.output = ["https://replicate.delivery/page.png"] if output is None else output
        self.calls: list[tuple[str, dict]] = []

    def run(self, model, input):
        self.calls.append((model, input))
        return self.output


class _FakeResponse:
    def __init__(self, content: bytes = b"png-bytes", status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class _FakeSession:
    def __init__(self, response: _FakeResponse | None = None) -> None:
        self.response = response or _FakeResponse()
        self.urls: list[str] = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        return self.response


@pytest.mark.parametrize(
    ("age", "keyword"),
    [(1, "toddlers"), (4, "toddlers"), (5, "young children"), (7, "young children"), (8, "older")],
)
def test_complexity_tiers(age, keyword):
    assert keyword in complexity_for_age(age)


def test_variation_style_cycles():
    assert variation_style(0) == VARIATION_STYLES[0]
    assert variation_style(len(VARIATION_STYLES) + 1) == VARIATION_STYLES[1]


def test_scene_prompt_mentions_scene_and_line_art():
    prompt = build_scene_prompt("a dragon reading a book", age_band=3)
    assert "a dragon reading a book" in prompt.positive
    assert "black outlines on a white background" in prompt.positive
    assert "Artistic approach" not in prompt.positive


def test_prompt_carries_only_the_positive_text():
    prompt = build_scene_prompt("a castle", age_band=8)
    assert [field.name for field in fields(prompt)] == ["positive"]


def test_scene_prompt_rejects_blank_description():
    with pytest.raises(ValueError):
        build_scene_prompt("  ", age_band=3)


def test_photo_prompt_includes_context_and_style():
    prompt = build_photo_prompt(age_band=9, description="Kids at a lake.", variant_index=2)
    assert "Scene context: Kids at a lake." in prompt.positive
    assert VARIATION_STYLES[2] in prompt.positive


def test_request_requires_some_input():
    with pytest.raises(ValueError):
        IllustrationRequest(age_band=3)


def test_scene_request_uses_scene_model_and_downloads_output():
    client = _FakeReplicateClient()
    session = _FakeSession()
    service = ReplicateIllustrationService(client=client, session=session)

    result = service.generate(IllustrationRequest(age_band=4, description="a friendly robot"))

    assert result.ok
    assert result.image == b"png-bytes"
    model, payload = client.calls[0]
    assert model == "black-forest-labs/flux-schnell"
    assert "a friendly robot" in payload["prompt"]
    assert "negative_prompt" not in payload
    assert session.urls == ["https://replicate.delivery/page.png"]


def test_photo_request_uploads_source_image():
    client = _FakeReplicateClient(output=BytesIO(b"file-output"))
    service = ReplicateIllustrationService(client=client, session=_FakeSession())

    result = service.generate(
        IllustrationRequest(age_band=6, source_image=b"jpeg-bytes", variant_index=1)
    )

    assert result.image == b"file-output"
    model, payload = client.calls[0]
    assert model == "black-forest-labs/flux-kontext-pro"
    assert payload["aspect_ratio"] == "match_input_image"
    assert VARIATION_STYLES[1] in payload["prompt"]


def test_empty_output_is_a_failure_result():
    service = ReplicateIllustrationService(client=_FakeReplicateClient(output=[]), session=_FakeSession())
    result = service.generate(IllustrationRequest(age_band=4, description="a cat"))
    assert not result.ok
    assert result.error == "Failed to generate coloring page image"


def test_download_error_is_a_failure_result():
    service = ReplicateIllustrationService(
        client=_FakeReplicateClient(),
        session=_FakeSession(_FakeResponse(status_code=500)),
    )
    result = service.generate(IllustrationRequest(age_band=4, description="a cat"))
    assert not result.ok
    assert "HTTP 500" in result.error


def test_unsupported_model_raises():
    service = ReplicateIllustrationService(
        client=_FakeReplicateClient(), scene_model="someone/unknown-model"
    )
    with pytest.raises(ValueError, match="not configured"):
        service.generate(IllustrationRequest(age_band=4, description="a cat"))


def test_missing_token_without_client_raises(monkeypatch):
    monkeypatch.delenv("REPLICATE_API_TOKEN", raising=False)
    with pytest.raises(ValueError, match="REPLICATE_API_TOKEN"):
        ReplicateIllustrationService()
