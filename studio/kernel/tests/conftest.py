"""
Kernel test configuration.

Shared site documents. Every fixture returns a fresh dict so tests can
compare against an untouched copy.
"""

import itertools

import pytest

from studio.kernel.tests.sites import make_site


@pytest.fixture
def site():
    return make_site()


@pytest.fixture
def counter_ids():
    """Deterministic id factory: item-1, gen-2, ..."""
    counter = itertools.count(1)
    return lambda prefix: f"{prefix}-{next(counter)}"
