# Shared fixtures for the MrCAS test suite

import pytest

from mrcas import SymbolContext, default_context


@pytest.fixture(autouse=True)
def fresh_default_context():
    """Each test starts with an empty process-wide symbol registry."""
    default_context().clear()
    yield
    default_context().clear()


@pytest.fixture
def ctx():
    """A caller-owned symbol context, isolated from the default one."""
    return SymbolContext()
