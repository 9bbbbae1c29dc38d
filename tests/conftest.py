from __future__ import annotations

import pytest

from fakes import FakeConverter, FakeReader, FakeUploader


@pytest.fixture
def reader() -> FakeReader:
    return FakeReader()


@pytest.fixture
def converter() -> FakeConverter:
    return FakeConverter()


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()
