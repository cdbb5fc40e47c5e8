"""Tests for MovementReportsUseCase."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from src.application.use_cases.movement_reports import MovementReportsUseCase
from src.core.entities.movement import MovementType
from src.core.exceptions import DepartmentNotFoundError, MovementNotFoundError
from src.core.interfaces import IDepartmentStore, IMovementStore, MovementFilter, MovementPage
from src.core.services import ReportPeriod


@pytest.fixture
def movement_store():
    return AsyncMock(spec=IMovementStore)


@pytest.fixture
def department_store(pastry):
    store = AsyncMock(spec=IDepartmentStore)
    store.get_department.return_value = pastry
    return store


@pytest.fixture
def use_case(movement_store, department_store, fixed_now):
    return MovementReportsUseCase(
        movement_store=movement_store,
        department_store=department_store,
        timezone="UTC",
        clock=lambda: fixed_now,
    )


class TestMovementReportsUseCase:
    async def test_get(self, use_case, movement_store, flour, stock_in_factory):
        movement_store.get_movement.return_value = stock_in_factory("MOV000001", flour, 5.0, 0.0)
        assert (await use_case.get("MOV000001")).id == "MOV000001"

    async def test_get_missing(self, use_case, movement_store):
        movement_store.get_movement.return_value = None
        with pytest.raises(MovementNotFoundError):
            await use_case.get("MOV000404")

    async def test_history_applies_period_start(
        self, use_case, movement_store, flour, stock_in_factory, distribution_factory
    ):
        movements = [
            distribution_factory("MOV000002", flour, 2.0, 5.0),
            stock_in_factory("MOV000001", flour, 5.0, 0.0, timestamp=datetime(2025, 10, 16, 9, tzinfo=UTC)),
        ]
        movement_store.list_movements.return_value = MovementPage(
            items=movements, page=1, limit=50, total=2
        )

        history = await use_case.history(MovementFilter(), ReportPeriod.WEEK)

        used_filter = movement_store.list_movements.await_args.args[0]
        assert used_filter.start == datetime(2025, 10, 10, 15, 30, tzinfo=UTC)
        assert [g.date.day for g in history.groups] == [17, 16]

        response = use_case.to_history_response(history).model_dump(by_alias=True)
        assert response["data"][0]["label"] == "Friday, October 17, 2025"
        assert response["pagination"] == {"page": 1, "limit": 50, "total": 2, "pages": 1}

    async def test_history_keeps_explicit_start(self, use_case, movement_store):
        movement_store.list_movements.return_value = MovementPage(items=[], page=1, limit=50, total=0)
        start = datetime(2025, 1, 1, tzinfo=UTC)

        await use_case.history(MovementFilter(start=start), ReportPeriod.TODAY)

        assert movement_store.list_movements.await_args.args[0].start == start

    async def test_statistics(self, use_case, movement_store, flour, stock_in_factory, distribution_factory):
        movement_store.list_between.return_value = [
            stock_in_factory("MOV000001", flour, 10.0, 0.0),
            distribution_factory("MOV000002", flour, 4.0, 10.0),
        ]

        stats = await use_case.statistics(ReportPeriod.TODAY)

        movement_store.list_between.assert_awaited_once_with(
            datetime(2025, 10, 17, tzinfo=UTC), datetime(2025, 10, 17, 15, 30, tzinfo=UTC)
        )
        assert stats.total_movements == 2
        assert stats.total_value_in == 12.0
        assert stats.items_by_department == {"pastry": 4.0}

    async def test_statistics_all_time(self, use_case, movement_store):
        movement_store.list_between.return_value = []
        stats = await use_case.statistics(ReportPeriod.ALL)
        assert stats.start is None
        assert movement_store.list_between.await_args.args[0] is None

    async def test_department_report_pages_through(
        self, use_case, movement_store, flour, croissant, distribution_factory
    ):
        first = [distribution_factory(f"MOV00000{i}", flour, 1.0, 50.0 - i) for i in range(1, 3)]
        second = [distribution_factory("MOV000009", croissant, 3.0, 40.0)]
        movement_store.list_movements.side_effect = [
            MovementPage(items=first, page=1, limit=2, total=3),
            MovementPage(items=second, page=2, limit=2, total=3),
        ]

        report = await use_case.department_report("pastry")

        filters = [call.args[0] for call in movement_store.list_movements.await_args_list]
        assert [f.page for f in filters] == [1, 2]
        assert all(f.type is MovementType.DISTRIBUTION and f.department == "pastry" for f in filters)
        assert report.total_items == 5.0
        assert [(t.product_name, t.total_quantity) for t in report.totals] == [
            ("Croissant", 3.0),
            ("Flour", 2.0),
        ]

        body = use_case.to_department_response(report).model_dump(by_alias=True)
        assert body["department"]["id"] == "pastry"
        assert body["totalItems"] == 5.0
        assert len(body["movements"]) == 3

    async def test_department_report_unknown(self, use_case, department_store):
        department_store.get_department.return_value = None
        with pytest.raises(DepartmentNotFoundError):
            await use_case.department_report("nowhere")

    async def test_list_response(self, use_case, movement_store, flour, stock_in_factory):
        page = MovementPage(items=[stock_in_factory("MOV000001", flour, 5.0, 0.0)], page=1, limit=20, total=1)
        movement_store.list_movements.return_value = page

        result = await use_case.list_movements(MovementFilter(limit=20))
        body = use_case.to_list_response(result).model_dump(by_alias=True)

        assert body["success"] is True
        assert body["data"][0]["supplier"] == "Mill Co"
        assert body["pagination"]["pages"] == 1
