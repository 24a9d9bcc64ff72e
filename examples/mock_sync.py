"""Demonstrate the reconciliation pipeline on in-memory sample data."""

from __future__ import annotations

import logging

from leave_sync.index_builder import EmployeeIndex
from leave_sync.logging_config import configure_logging
from leave_sync.models import DatabaseSchema, Page
from leave_sync.reconciler import Reconciler
from leave_sync.schema_detector import SchemaDetector

EMPLOYEES_DB = "emp-demo"

SAMPLE_REQUESTS_SCHEMA = {
    "id": "req-demo",
    "title": [{"plain_text": "طلبات الإجازة"}],
    "properties": {
        "الطلب": {"name": "الطلب", "type": "title"},
        "رقم الهوية": {"name": "رقم الهوية", "type": "rich_text"},
        "اسم الموظف": {
            "name": "اسم الموظف",
            "type": "relation",
            "relation": {"database_id": EMPLOYEES_DB},
        },
        "حالة الطلب": {
            "name": "حالة الطلب",
            "type": "status",
            "status": {
                "options": [
                    {"id": "s1", "name": "قيد الانتظار"},
                    {"id": "s2", "name": "موافقة"},
                    {"id": "s3", "name": "مرفوضة"},
                ],
                "groups": [
                    {"name": "To-do", "option_ids": ["s1"]},
                    {"name": "Complete", "option_ids": ["s2", "s3"]},
                ],
            },
        },
    },
}

SAMPLE_REQUESTS = [
    {
        "id": "req-1",
        "properties": {
            "رقم الهوية": {"type": "rich_text", "rich_text": [{"plain_text": "١٢٣٤٥٦٧٨٩"}]},
            "اسم الموظف": {"type": "relation", "relation": []},
            "حالة الطلب": {"type": "status", "status": None},
        },
    },
    {
        "id": "req-2",
        "properties": {
            "رقم الهوية": {"type": "rich_text", "rich_text": []},
            "اسم الموظف": {"type": "relation", "relation": []},
            "حالة الطلب": {"type": "status", "status": None},
        },
    },
    {
        "id": "req-3",
        "properties": {
            "رقم الهوية": {"type": "rich_text", "rich_text": [{"plain_text": "555"}]},
            "اسم الموظف": {"type": "relation", "relation": [{"id": "emp-2"}]},
            "حالة الطلب": {"type": "status", "status": {"name": "موافقة"}},
        },
    },
]


def main() -> None:
    configure_logging(logging.INFO)
    schema = DatabaseSchema.model_validate(SAMPLE_REQUESTS_SCHEMA)
    roles = SchemaDetector().detect(schema, counterpart_table_id=EMPLOYEES_DB)
    index = EmployeeIndex(
        table_id=EMPLOYEES_DB, entries={"123456789": "emp-1", "555": "emp-2"}
    )
    reconciler = Reconciler(roles)

    for raw in SAMPLE_REQUESTS:
        plan = reconciler.reconcile(Page.model_validate(raw), index)
        print(f"{plan.record_id}: {plan.outcome.value} - {plan.describe()}")
        if plan.changes:
            print(f"    {plan.changes}")


if __name__ == "__main__":
    main()
