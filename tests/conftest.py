"""Pytest fixtures for testing"""

import asyncio
from typing import Any, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from issuing_console.api.main import create_app
from issuing_console.domain.models import CursorResult, Merchant, PagedResult


class ScriptedFetch:
    """
    Fetch collaborator whose responses the test releases by hand.

    Each call parks on its own future so tests can resolve requests out of
    order and observe what the pager does with late answers.
    """

    def __init__(self):
        self.calls: List[Tuple[Any, Any]] = []
        self._futures: List[asyncio.Future] = []

    async def __call__(self, query: Any, position: Any) -> Any:
        future = asyncio.get_running_loop().create_future()
        self.calls.append((query, position))
        self._futures.append(future)
        return await future

    def resolve(self, index: int, result: Any) -> None:
        self._futures[index].set_result(result)

    def fail(self, index: int, error: Exception) -> None:
        self._futures[index].set_exception(error)


async def settle() -> None:
    """Let freshly created tasks run up to their next await"""
    for _ in range(3):
        await asyncio.sleep(0)


def chunk(items: List[Any], next_cursor: Optional[str] = None) -> CursorResult:
    return CursorResult(items=list(items), next_cursor=next_cursor)


def page(content: List[Any], page_index: int, total_pages: int) -> PagedResult:
    return PagedResult(
        content=list(content),
        total_pages=total_pages,
        total_elements=total_pages * max(len(content), 1),
        page=page_index,
    )


@pytest.fixture
def scripted_fetch() -> ScriptedFetch:
    return ScriptedFetch()


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client"""
    return TestClient(create_app())


@pytest.fixture
def sample_merchants() -> List[Merchant]:
    return [
        Merchant(id="m_1", name="Acme"),
        Merchant(id="m_2", name="Globex"),
        Merchant(id="m_3", name=None),
    ]
