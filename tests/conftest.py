"""Shared pytest fixtures for the colorbook test suite."""

from __future__ import annotations

from typing import Callable

import pytest

from tests.fakes import FakeEmailService, FakeIllustrationService, png_bytes


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    """Factory producing PNG bytes of a given pixel size."""

    return png_bytes


@pytest.fixture
def illustration_service() -> FakeIllustrationService:
    return FakeIllustrationService()


@pytest.fixture
def email_service() -> FakeEmailService:
    return FakeEmailService()
