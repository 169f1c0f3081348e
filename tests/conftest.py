from unittest.mock import Mock

import pytest


@pytest.fixture
def clients():
    return {}


@pytest.fixture
def session(clients):
    """A boto3 session double handing out one Mock client per service."""
    session = Mock(name="session")
    session.client.side_effect = lambda service_name, **kwargs: clients.setdefault(
        service_name, Mock(name=service_name)
    )
    return session
