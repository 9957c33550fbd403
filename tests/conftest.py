"""Shared fixtures: a fake daemon and services connected to it."""
import pytest

from mock_daemon import FakeSecretDaemon
from secret_service import ClientConfig, CryptoAlgorithm, SecretService


@pytest.fixture
def daemon():
    """A fresh in-memory daemon with a default ``Login`` collection."""
    return FakeSecretDaemon()


@pytest.fixture
async def service(daemon):
    """A service negotiated with a DH session."""
    ss = await SecretService.connect(
        CryptoAlgorithm.DH, config=ClientConfig(), transport=daemon,
    )
    yield ss
    if not ss.session.closed:
        await ss.close()


@pytest.fixture
async def plain_service(daemon):
    """A service negotiated with a plain session."""
    ss = await SecretService.connect(
        CryptoAlgorithm.PLAIN, config=ClientConfig(), transport=daemon,
    )
    yield ss
    if not ss.session.closed:
        await ss.close()


@pytest.fixture
async def default_collection(service):
    return await service.get_default_collection()
