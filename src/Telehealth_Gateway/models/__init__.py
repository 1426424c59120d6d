"""Data models exposed to the page layer."""

from typing import Any

from .intent import ALL_STATUSES, FilterIntent
from .views import (
    Attachment,
    AuditLog,
    CoverageSummary,
    Discount,
    DocumentSummary,
    Form,
    FormResponse,
    InvoiceSummary,
    MedicationOrder,
    Message,
    Order,
    PatientSummary,
    Pharmacy,
    Product,
    Provider,
    ServiceOrder,
    Session,
    TagSystem,
    TaskItem,
    ViewModel,
)

RawResource = dict[str, Any]
Bundle = dict[str, Any]

__all__ = [
    "ALL_STATUSES",
    "Attachment",
    "AuditLog",
    "Bundle",
    "CoverageSummary",
    "Discount",
    "DocumentSummary",
    "FilterIntent",
    "Form",
    "FormResponse",
    "InvoiceSummary",
    "MedicationOrder",
    "Message",
    "Order",
    "PatientSummary",
    "Pharmacy",
    "Product",
    "Provider",
    "RawResource",
    "ServiceOrder",
    "Session",
    "TagSystem",
    "TaskItem",
    "ViewModel",
]
