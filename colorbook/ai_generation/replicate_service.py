"""
Integration with Replicate for coloring-page image generation.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable as IterableABC
from contextlib import ExitStack
from io import BytesIO
from pathlib import Path
from typing import Any, BinaryIO, Callable

import replicate
import requests

from colorbook.common import coerce_raster

from .prompting import ColoringPagePrompt, build_photo_prompt, build_scene_prompt
from .service import IllustrationRequest, IllustrationResult

logger = logging.getLogger(__name__)

DEFAULT_SCENE_MODEL = "black-forest-labs/flux-schnell"
DEFAULT_PHOTO_MODEL = "black-forest-labs/flux-kontext-pro"


def _build_flux_schnell_input(
    *,
    prompt: ColoringPagePrompt,
    image_input: str | BinaryIO | None,
) -> dict[str, Any]:
    return {
        "prompt": prompt.positive,
        "aspect_ratio": "2:3",
        "output_format": "png",
        "num_outputs": 1,
    }


def _build_flux_pro_input(
    *,
    prompt: ColoringPagePrompt,
    image_input: str | BinaryIO | None,
) -> dict[str, Any]:
    return {
        "prompt": prompt.positive,
        "aspect_ratio": "2:3",
        "output_format": "png",
        "safety_tolerance": 2,
    }


def _build_flux_kontext_input(
    *,
    prompt: ColoringPagePrompt,
    image_input: str | BinaryIO | None,
) -> dict[str, Any]:
    if image_input is None:
        raise ValueError("flux-kontext models require a source image.")
    return {
        "prompt": prompt.positive,
        "input_image": image_input,
        "output_format": "png",
        "safety_tolerance": 2,
        "aspect_ratio": "match_input_image",
    }


_MODEL_INPUT_BUILDERS: dict[str, Callable[..., dict[str, Any]]] = {
    "black-forest-labs/flux-schnell": _build_flux_schnell_input,
    "black-forest-labs/flux-1.1-pro": _build_flux_pro_input,
    "black-forest-labs/flux-kontext-pro": _build_flux_kontext_input,
}


def _build_replicate_input_payload(
    *,
    model_identifier: str,
    prompt: ColoringPagePrompt,
    image_input: str | BinaryIO | None,
) -> dict[str, Any]:
    normalized_identifier = model_identifier.strip().lower()
    builder = _MODEL_INPUT_BUILDERS.get(normalized_identifier)
    if builder is None and ":" in normalized_identifier:
        base_identifier = normalized_identifier.split(":", maxsplit=1)[0]
        builder = _MODEL_INPUT_BUILDERS.get(base_identifier)
    if builder is None:
        supported_models = ", ".join(sorted(_MODEL_INPUT_BUILDERS))
        raise ValueError(
            "Model identifier "
            f"'{model_identifier}' is not configured with a default input payload. "
            f"Supported models: {supported_models}."
        )

    return builder(prompt=prompt, image_input=image_input)


class ReplicateIllustrationService:
    """
    Illustration collaborator backed by Replicate image models.

    Parameters
    ----------
    api_token:
        Replicate API token. Falls back to ``REPLICATE_API_TOKEN`` environment variable.
    scene_model:
        Model used for text-described scenes. Falls back to ``COLORBOOK_SCENE_MODEL``, then
        ``black-forest-labs/flux-schnell``.
    photo_model:
        Image-to-image model used for photo conversions. Falls back to ``COLORBOOK_PHOTO_MODEL``,
        then ``black-forest-labs/flux-kontext-pro``.
    client:
        Optional pre-configured :class:`replicate.Client`. Mainly useful for testing.
    session:
        Optional :class:`requests.Session` used to download rendered outputs.
    request_timeout:
        Timeout in seconds for each output download.
    """

    def __init__(
        self,
        *,
        api_token: str | None = None,
        scene_model: str | None = None,
        photo_model: str | None = None,
        client: replicate.Client | None = None,
        session: requests.Session | None = None,
        request_timeout: float = 60.0,
    ) -> None:
        self._api_token = api_token or os.getenv("REPLICATE_API_TOKEN")
        if not self._api_token and not client:
            raise ValueError(
                "Replicate API token is required. Set REPLICATE_API_TOKEN or pass api_token."
            )

        self._scene_model = scene_model or os.getenv("COLORBOOK_SCENE_MODEL") or DEFAULT_SCENE_MODEL
        self._photo_model = photo_model or os.getenv("COLORBOOK_PHOTO_MODEL") or DEFAULT_PHOTO_MODEL
        self._client = client or replicate.Client(api_token=self._api_token)
        self._session = session or requests.Session()
        self._request_timeout = request_timeout

    @property
    def scene_model(self) -> str:
        return self._scene_model

    @property
    def photo_model(self) -> str:
        return self._photo_model

    def generate(self, request: IllustrationRequest) -> IllustrationResult:
        """
        Render one coloring page.

        An empty model output or a failed download is reported as an error result.
        Replicate client errors propagate to the caller.
        """
        if request.is_photo:
            model = self._photo_model
            prompt = build_photo_prompt(
                age_band=request.age_band,
                description=request.description,
                variant_index=request.variant_index,
            )
        else:
            model = self._scene_model
            prompt = build_scene_prompt(
                request.description or "",
                age_band=request.age_band,
                variant_index=request.variant_index,
            )

        with ExitStack() as stack:
            image_input = (
                _prepare_image_input(request.source_image, stack=stack)
                if request.source_image is not None
                else None
            )
            payload = _build_replicate_input_payload(
                model_identifier=model,
                prompt=prompt,
                image_input=image_input,
            )
            outputs = self._client.run(model, input=payload)

        first = _first_output(outputs)
        if first is None:
            return IllustrationResult.failure("Failed to generate coloring page image")

        try:
            return IllustrationResult.success(self._read_output(first))
        except requests.RequestException as exc:
            logger.warning("Downloading %s output failed: %s", model, exc)
            return IllustrationResult.failure(f"Failed to download generated image: {exc}")

    def _read_output(self, output: Any) -> bytes:
        if isinstance(output, str):
            response = self._session.get(output, timeout=self._request_timeout)
            response.raise_for_status()
            return response.content
        # replicate.helpers.FileOutput and similar file-like objects
        return output.read()


def _first_output(raw: Any) -> Any | None:
    """
    Pick the first usable output from a Replicate run: a URL string or a readable object.
    """
    if raw is None:
        return None

    if isinstance(raw, str) or hasattr(raw, "read"):
        return raw

    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="ignore")

    if isinstance(raw, IterableABC):
        collected = list(raw)
        if not collected:
            return None
        if all(isinstance(item, str) and len(item) == 1 for item in collected):
            return "".join(collected)
        for item in collected:
            found = _first_output(item)
            if found is not None:
                return found
        return None

    return str(raw)


def _prepare_image_input(
    input_image: bytes | str | Path | BinaryIO,
    *,
    stack: ExitStack,
) -> str | BinaryIO:
    """
    Normalize the source photo so Replicate can consume it, keeping resources open via ExitStack.
    """
    if hasattr(input_image, "read"):
        return input_image  # type: ignore[return-value]

    if isinstance(input_image, (bytes, bytearray)):
        return stack.enter_context(BytesIO(bytes(input_image)))

    if isinstance(input_image, Path):
        input_path = input_image.expanduser()
    else:
        input_candidate = str(input_image)
        if input_candidate.lower().startswith(("http://", "https://")):
            return input_candidate
        if input_candidate.startswith("data:"):
            return stack.enter_context(BytesIO(coerce_raster(input_candidate)))
        input_path = Path(input_candidate).expanduser()

    if not input_path.exists():
        raise FileNotFoundError(f"Input image not found at '{input_path}'.")

    return stack.enter_context(input_path.open("rb"))
