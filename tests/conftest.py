"""Shared fixtures for the test suite."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from diagrams.division import DividendDivisor
from diagrams.problem_generator import build_trace


class InMemoryRedis:
    """The handful of Redis commands DiagramStore uses, kept in dicts."""

    def __init__(self):
        self.hashes = {}
        self.strings = {}

    def hset(self, key, field=None, value=None, mapping=None):
        target = self.hashes.setdefault(key, {})
        if mapping:
            target.update({k: str(v) for k, v in mapping.items()})
        if field is not None:
            target[field] = str(value)

    def hget(self, key, field):
        return self.hashes.get(key, {}).get(field)

    def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    def exists(self, *keys):
        return sum(1 for k in keys if k in self.hashes or k in self.strings)

    def delete(self, *keys):
        removed = 0
        for k in keys:
            if self.hashes.pop(k, None) is not None or self.strings.pop(k, None) is not None:
                removed += 1
        return removed

    def set(self, key, value):
        self.strings[key] = value

    def get(self, key):
        return self.strings.get(key)


@pytest.fixture
def fake_redis():
    return InMemoryRedis()


@pytest.fixture
def problem_156_7():
    return DividendDivisor(156, 7)


@pytest.fixture
def trace_156_7(problem_156_7):
    return build_trace(problem_156_7)
