"""
Shared fixtures for the entprep test suite.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from entprep.common.storage.memory import MemoryKeyValueStore
from entprep.domain.catalog.model import Question, TestDefinition
from entprep.domain.profiles.model import Attempt
from entprep.gateway.gateway import DataGateway
from entprep.gateway.remote import RemoteCallClient

FIXED_DATE = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def make_test(test_id, title, correct_answers):
    """Build a test whose i-th question has ``correct_answers[i]`` as answer."""
    questions = tuple(
        Question(
            id=index + 1,
            text=f"{title} question {index + 1}",
            options=("A", "B", "C", "D"),
            correct_answer=correct,
        )
        for index, correct in enumerate(correct_answers)
    )
    return TestDefinition(id=test_id, title=title, description=f"{title} practice", questions=questions)


def make_attempt(test_id, score, total, date=FIXED_DATE):
    return Attempt(test_id=test_id, date=date, score=score, total_questions=total)


@pytest.fixture
def catalog():
    return [
        make_test(1, "Mathematics", [0, 1, 2]),
        make_test(2, "History", [1, 0]),
        make_test(3, "Physics", [3, 3]),
    ]


@pytest.fixture
def users():
    return [
        {
            "id": 1,
            "username": "aruzhan",
            "password": "secret",
            "fullName": "Aruzhan Sadykova",
            "email": "aruzhan@example.com",
            "testHistory": [],
        },
        {
            "id": 2,
            "username": "timur",
            "password": "hunter2",
            "fullName": "Timur Bekov",
            "email": "timur@example.com",
            "testHistory": [
                {"testId": 1, "date": "2024-04-01T10:00:00Z", "score": 2, "totalQuestions": 3},
            ],
        },
    ]


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def remote():
    client = AsyncMock(spec=RemoteCallClient)
    client.timeout = 10.0
    return client


@pytest.fixture
def gateway(store, remote):
    return DataGateway(store=store, remote=remote)
