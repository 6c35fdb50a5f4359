"""
Test Service

Typed facade over the gateway's tests operations: the catalog, stored
results and performance analysis. It also persists the outcome of an exam
session.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from entprep.analytics.performance import PerformanceSummary
from entprep.assessments.exam.session import ExamResult
from entprep.common.exceptions import NotFoundError, ValidationError
from entprep.common.logger import app_logger
from entprep.common.serialization import parse_records
from entprep.domain.catalog.model import TestDefinition
from entprep.domain.profiles.model import Attempt
from entprep.gateway.gateway import DataGateway, GatewayRequest

logger = app_logger.getChild("services.tests")

SERVICE = "tests"


def _succeeded(payload: Any) -> bool:
    return payload if isinstance(payload, bool) else True


@dataclass
class SaveReport:
    """Outcome of persisting an exam result."""
    results_saved: int = 0
    history_updated: int = 0
    warnings: List[str] = field(default_factory=list)


class TestService:
    """Catalog access and result persistence."""

    __test__ = False  # not a pytest test class

    def __init__(self, gateway: DataGateway):
        self.gateway = gateway

    async def list_tests(self) -> List[TestDefinition]:
        """The test catalog; malformed entries are dropped."""
        payload = await self.gateway.fetch_entity(SERVICE, "list")
        return parse_records(payload, TestDefinition.from_dict, "tests.list")

    async def get_test(self, test_id: int) -> TestDefinition:
        """
        Get one test by id.

        Raises:
            NotFoundError: If no such test exists (or it is malformed)
        """
        payload = await self.gateway.fetch_entity(SERVICE, "getById", {"id": test_id})
        if payload is None:
            raise NotFoundError("Test", test_id)
        try:
            return TestDefinition.from_dict(payload)
        except ValidationError as e:
            logger.warning(f"Test {test_id} is malformed: {e.message}")
            raise NotFoundError("Test", test_id) from e

    async def save_result(self, attempt: Attempt) -> bool:
        response = await self.gateway.execute(
            SERVICE, GatewayRequest("saveResult", {"attempt": attempt.to_dict()})
        )
        if response.warning:
            logger.warning(response.warning)
        return _succeeded(response.data)

    async def list_results(self) -> List[Attempt]:
        payload = await self.gateway.fetch_entity(SERVICE, "listResults")
        return parse_records(payload, Attempt.from_dict, "tests.listResults")

    async def list_results_for_test(self, test_id: int) -> List[Attempt]:
        payload = await self.gateway.fetch_entity(SERVICE, "listResultsForTest", {"testId": test_id})
        return parse_records(payload, Attempt.from_dict, "tests.listResultsForTest")

    async def analyze_performance(self, test_ids: Optional[Iterable[int]] = None) -> PerformanceSummary:
        """Summarize stored results, optionally restricted to some tests."""
        params = {"testIds": list(test_ids)} if test_ids is not None else {}
        payload = await self.gateway.fetch_entity(SERVICE, "analyze", params)
        try:
            return PerformanceSummary.from_dict(payload)
        except ValidationError as e:
            logger.warning(f"Discarding malformed performance summary: {e.message}")
            return PerformanceSummary()

    async def save_exam_result(self, result: ExamResult) -> SaveReport:
        """
        Persist every per-test attempt of a finished exam.

        Each attempt goes to the results list and to the current user's
        history.
        """
        report = SaveReport()
        for attempt in result.attempts:
            for service, operation in ((SERVICE, "saveResult"), ("auth", "appendHistory")):
                response = await self.gateway.execute(
                    service, GatewayRequest(operation, {"attempt": attempt.to_dict()})
                )
                if response.warning:
                    report.warnings.append(response.warning)
                if not _succeeded(response.data):
                    continue
                if operation == "saveResult":
                    report.results_saved += 1
                else:
                    report.history_updated += 1

        logger.info(f"Saved {report.results_saved} result(s), "
                    f"updated history with {report.history_updated} attempt(s)")
        return report
