"""
Shared pytest fixtures and configuration for pagemachine tests.

This module provides scripted data providers, a state recorder and
machine factories used across the unit tests.
"""

import pytest
import pytest_asyncio

from pagemachine import PaginationMachine
from tests.helpers.providers import GatedProvider, ScriptedProvider, StateRecorder, make_page


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests without an event loop")
    config.addinivalue_line("markers", "threaded: Tests sending actions from other threads")


@pytest.fixture
def first_page():
    """A first page of 20 elements with a next page."""
    return make_page(1, 20)


@pytest.fixture
def scripted_provider(first_page):
    """
    A provider answering page 1 with 20 elements and page 2 with 20 more.

    Tests overwrite `responses` for other scripts.
    """
    return ScriptedProvider({1: first_page, 2: make_page(21, 20)})


@pytest.fixture
def gated_provider():
    """A provider whose fetches wait until the test answers them."""
    return GatedProvider()


@pytest_asyncio.fixture
async def machine_factory():
    """
    Builds machines on the test's event loop and closes them afterwards.

    Usage:
        machine, recorder = machine_factory(provider)
    """
    machines = []

    def _build(provider, **kwargs):
        machine = PaginationMachine(provider, name=kwargs.pop("name", "test-machine"), **kwargs)
        states = StateRecorder()
        machine.subscribe(states)
        machines.append(machine)
        return machine, states

    yield _build

    for machine in machines:
        await machine.aclose()
