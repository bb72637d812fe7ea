"""Shared pytest fixtures."""

import pytest

from shared.clients.dms.documentmanager.DMSClientDocumentmanager import DMSClientDocumentmanager
from shared.helper.HelperConfig import HelperConfig
from services.document_coordinator.DocumentCoordinator import DocumentCoordinator
from services.document_coordinator.TokenStore import TokenStore
from tests.helpers import BASE_URL, FakeDocumentBackend, make_helper_config


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("ROOT_DIR", str(tmp_path))
    monkeypatch.setenv("DMS_ENGINE", "documentmanager")
    monkeypatch.setenv("DMS_DOCUMENTMANAGER_BASE_URL", BASE_URL)
    monkeypatch.setenv("SESSION_TOKEN_FILE", str(tmp_path / "data" / "session.json"))
    monkeypatch.setenv("DOWNLOAD_DIR", str(tmp_path / "downloads"))
    monkeypatch.delenv("DMS_TIMEOUT", raising=False)
    return tmp_path


@pytest.fixture
def helper_config(env) -> HelperConfig:
    return make_helper_config()


@pytest.fixture
def backend() -> FakeDocumentBackend:
    return FakeDocumentBackend()


@pytest.fixture
def token_store(helper_config) -> TokenStore:
    return TokenStore(helper_config)


@pytest.fixture
def dms_client(helper_config) -> DMSClientDocumentmanager:
    return DMSClientDocumentmanager(helper_config=helper_config)


@pytest.fixture
def confirmations() -> list[str]:
    """Questions asked through the confirmation callback. Answer is always yes."""
    return []


@pytest.fixture
def coordinator(helper_config, dms_client, token_store, confirmations) -> DocumentCoordinator:
    def confirm(question: str) -> bool:
        confirmations.append(question)
        return True

    return DocumentCoordinator(helper_config=helper_config, dms_client=dms_client, token_store=token_store, confirm=confirm)
