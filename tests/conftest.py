"""Shared pytest fixtures for diminish tests."""

import pytest

from diminish.container import Container
from diminish.dependencies import ProducerSignatureExtractor
from diminish.registry import Registry


@pytest.fixture()
def container() -> Container:
    """Empty container with default configuration."""
    return Container()


@pytest.fixture()
def registry() -> Registry:
    """Empty registry for driving resolvers directly."""
    return Registry()


@pytest.fixture()
def signature_extractor() -> ProducerSignatureExtractor:
    """ProducerSignatureExtractor instance."""
    return ProducerSignatureExtractor()
