"""End-to-end sync tests against an in-memory store."""

from __future__ import annotations

import pytest

from leave_sync.config import Settings
from leave_sync.exceptions import NotionAuthenticationError, NotionRateLimitError, SchemaDetectionError
from leave_sync.reconciler import PlanOutcome
from leave_sync.service import LeaveSyncService

from factories import (
    EMPLOYEES_DB,
    REQUESTS_DB,
    build_store,
    employee,
    leave_request,
    requests_schema_payload,
)


def _service(settings: Settings, store, sleeps=None, **kwargs) -> LeaveSyncService:
    sleep = sleeps.append if sleeps is not None else (lambda _: None)
    return LeaveSyncService(settings=settings, store=store, sleep=sleep, **kwargs)


def _request_properties(store, page_id: str) -> dict:
    return next(item for item in store.pages[REQUESTS_DB] if item["id"] == page_id)["properties"]


def test_eastern_arabic_employee_is_linked(settings: Settings) -> None:
    store = build_store(
        [employee("emp-1", "سارة", "١٢٣٤٥٦٧٨٩"), employee("emp-2", "علي", "987")],
        [leave_request("req-1", "123456789", status_name="موافقة")],
    )

    summary = _service(settings, store).run()

    assert store.updates == [("req-1", {"اسم الموظف": {"relation": [{"id": "emp-1"}]}})]
    assert summary.updated == 1
    assert summary.indexed_employees == 2


def test_empty_status_is_backfilled(settings: Settings) -> None:
    store = build_store(
        [employee("emp-1", "سارة", "111")],
        [leave_request("req-1", 111, linked=("emp-1",))],
    )

    _service(settings, store).run()

    assert store.updates == [("req-1", {"حالة الطلب": {"status": {"name": "قيد الانتظار"}}})]


def test_request_without_identifier_is_skipped(settings: Settings) -> None:
    store = build_store([employee("emp-1", "سارة", "111")], [leave_request("req-1")])

    summary = _service(settings, store).run()

    assert store.updates == []
    assert summary.skipped == 1
    assert summary.skipped_no_id == 1
    assert summary.errors == 0


def test_requests_sharing_an_employee_get_the_same_link(settings: Settings) -> None:
    store = build_store(
        [employee("emp-1", "سارة", "111"), employee("emp-2", "علي", "222")],
        [
            leave_request("req-1", "١١١", status_name="موافقة"),
            leave_request("req-2", 111, status_name="موافقة"),
            leave_request("req-3", 222, status_name="موافقة"),
        ],
    )

    _service(settings, store).run()

    links = {page_id: changes["اسم الموظف"]["relation"] for page_id, changes in store.updates}
    assert links == {
        "req-1": [{"id": "emp-1"}],
        "req-2": [{"id": "emp-1"}],
        "req-3": [{"id": "emp-2"}],
    }


def test_second_run_has_nothing_to_do(settings: Settings) -> None:
    store = build_store(
        [employee("emp-1", "سارة", "111"), employee("emp-2", "علي", "222")],
        [
            leave_request("req-1", 111),
            leave_request("req-2", 222, linked=("emp-2",)),
            leave_request("req-3", 333),
            leave_request("req-4"),
        ],
    )
    service = _service(settings, store)

    first = service.run()
    updates_after_first = len(store.updates)
    second = service.run()

    assert first.updated == 2
    assert len(store.updates) == updates_after_first
    assert second.updated == 0
    assert all(plan.is_empty for plan in second.plans)
    assert second.already_reconciled == 2


def test_rate_limited_update_counts_as_error_and_run_continues(settings: Settings) -> None:
    store = build_store(
        [employee("emp-1", "سارة", "111")],
        [leave_request("req-1", 111), leave_request("req-2", 111)],
    )
    store.update_errors["req-1"] = [
        NotionRateLimitError("slow down") for _ in range(settings.max_retry_attempts)
    ]

    summary = _service(settings, store).run()

    assert summary.errors == 1
    assert summary.updated == 1
    assert summary.failures[0].record_id == "req-1"
    assert [page_id for page_id, _ in store.updates] == ["req-2"]


def test_other_update_errors_abort_the_run(settings: Settings) -> None:
    store = build_store([employee("emp-1", "سارة", "111")], [leave_request("req-1", 111)])
    store.update_errors["req-1"] = [NotionAuthenticationError("denied", status_code=401)]

    with pytest.raises(NotionAuthenticationError):
        _service(settings, store).run()


def test_missing_relation_field_is_fatal(settings: Settings) -> None:
    schema = requests_schema_payload()
    del schema["properties"]["اسم الموظف"]
    store = build_store([employee("emp-1", "سارة", "111")], [], requests_schema=schema)

    with pytest.raises(SchemaDetectionError) as excinfo:
        _service(settings, store).run()

    assert excinfo.value.table_id == REQUESTS_DB
    assert store.queries == []


def test_rate_limit_while_indexing_is_fatal(settings: Settings) -> None:
    store = build_store([employee("emp-1", "سارة", "111")], [leave_request("req-1", 111)])
    store.query_errors = [
        NotionRateLimitError("slow down") for _ in range(settings.max_retry_attempts)
    ]
    sleeps = []

    with pytest.raises(NotionRateLimitError):
        _service(settings, store, sleeps=sleeps).run()

    assert store.updates == []
    assert sleeps == sorted(sleeps)


def test_rate_limited_schema_read_is_retried(settings: Settings) -> None:
    store = build_store([employee("emp-1", "سارة", "111")], [leave_request("req-1", 111)])
    store.schema_errors = [NotionRateLimitError("slow down", retry_after=2.0)]
    sleeps = []

    summary = _service(settings, store, sleeps=sleeps).run()

    assert summary.updated == 1
    assert sleeps[0] == 2.0


def test_schema_read_gives_up_after_max_attempts(settings: Settings) -> None:
    store = build_store([employee("emp-1", "سارة", "111")], [leave_request("req-1", 111)])
    store.schema_errors = [
        NotionRateLimitError("slow down") for _ in range(settings.max_retry_attempts)
    ]

    with pytest.raises(NotionRateLimitError):
        _service(settings, store).run()

    assert store.updates == []


def test_dry_run_reports_without_writing(settings: Settings) -> None:
    store = build_store([employee("emp-1", "سارة", "111")], [leave_request("req-1", 111)])

    summary = _service(settings, store, dry_run=True).run()

    assert store.updates == []
    assert summary.updated == 1
    assert summary.dry_run


def test_only_pending_queries_with_filter(settings: Settings) -> None:
    store = build_store(
        [employee("emp-1", "سارة", "111")],
        [
            leave_request("req-1", 111, linked=("emp-1",), status_name="موافقة"),
            leave_request("req-2", 111),
        ],
    )
    settings = settings.model_copy(update={"only_pending": True})

    summary = _service(settings, store).run()

    request_queries = [q for q in store.queries if q["database_id"] == REQUESTS_DB]
    assert request_queries[0]["filter"] == {
        "or": [
            {"property": "اسم الموظف", "relation": {"is_empty": True}},
            {"property": "حالة الطلب", "status": {"is_empty": True}},
        ]
    }
    assert [plan.record_id for plan in summary.plans] == ["req-2"]
    assert _request_properties(store, "req-2")["اسم الموظف"]["relation"] == [{"id": "emp-1"}]


def test_colliding_employees_are_reported(settings: Settings) -> None:
    store = build_store(
        [employee("emp-1", "سارة", "111"), employee("emp-2", "سارة", "١١١")],
        [leave_request("req-1", 111)],
    )

    summary = _service(settings, store).run()

    assert [collision.key for collision in summary.collisions] == ["111"]
    assert summary.skipped_ambiguous == 1
    assert summary.plans[0].outcome is PlanOutcome.SKIPPED_AMBIGUOUS
    assert store.updates == []


def test_detect_roles_reads_both_schemas(settings: Settings) -> None:
    store = build_store([], [])

    roles = _service(settings, store).detect_roles()

    assert roles.employees.table_id == EMPLOYEES_DB
    assert roles.leave_requests.relation.name == "اسم الموظف"
