"""Flat, always-populated view-models rendered by the back-office pages.

Every field has a default so a view-model can never surface ``None`` for a
displayed value. ``raw`` keeps the originating resource so edits can be
merged back without losing fields the view does not own.
"""

from __future__ import annotations

from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field

DiscountType = Literal["percentage", "fixed_amount", "free_service"]


class ViewModel(BaseModel):
    """Base model shared by every resource projection."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    resource_type: ClassVar[str] = ""
    status_field: ClassVar[str] = "status"

    id: str = ""
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)


class Discount(ViewModel):
    """A discount stored as a ChargeItem."""

    resource_type: ClassVar[str] = "ChargeItem"
    status_field: ClassVar[str] = "is_active"

    code: str = ""
    name: str = ""
    description: str = ""
    type: DiscountType = "percentage"
    value: float = 0.0
    is_active: bool = False
    created_at: str = ""


class CoverageSummary(ViewModel):
    """Insurance coverage summary."""

    resource_type: ClassVar[str] = "Coverage"

    payor_name: str = ""
    beneficiary_name: str = ""
    beneficiary_id: str = ""
    type: str = ""
    status: str = ""
    subscriber_id: str = ""
    period_start: str = ""
    period_end: str = ""
    copay: float = 0.0
    deductible: float = 0.0


class Product(ViewModel):
    """A catalogue product stored as a Medication."""

    resource_type: ClassVar[str] = "Medication"

    name: str = ""
    code: str = ""
    manufacturer: str = ""
    form: str = ""
    ingredients: tuple[str, ...] = ()
    batch_number: str = ""
    expiration_date: str = ""
    status: str = ""


class TaskItem(ViewModel):
    """A work item stored as a Task."""

    resource_type: ClassVar[str] = "Task"

    title: str = ""
    patient_name: str = ""
    patient_id: str = ""
    owner_name: str = ""
    owner_id: str = ""
    status: str = ""
    priority: str = ""
    note: str = ""
    authored_on: str = ""
    due_date: str = ""
    progress: int = 0


class Provider(ViewModel):
    """A clinician stored as a Practitioner."""

    resource_type: ClassVar[str] = "Practitioner"
    status_field: ClassVar[str] = "active"

    name: str = ""
    specialty: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    gender: str = ""
    npi: str = ""
    active: bool = True


class PatientSummary(ViewModel):
    """Patient demographics."""

    resource_type: ClassVar[str] = "Patient"
    status_field: ClassVar[str] = "active"

    name: str = ""
    email: str = ""
    phone: str = ""
    birth_date: str = ""
    gender: str = ""
    address: str = ""
    identifier: str = ""
    active: bool = True
    updated_at: str = ""


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    content_type: str = ""
    title: str = ""


class DocumentSummary(ViewModel):
    """A clinical document stored as a DocumentReference."""

    resource_type: ClassVar[str] = "DocumentReference"

    title: str = ""
    type: str = ""
    patient_name: str = ""
    author: str = ""
    date: str = ""
    status: str = ""
    attachments: tuple[Attachment, ...] = ()


class TagSystem(ViewModel):
    """A tag vocabulary stored as a CodeSystem."""

    resource_type: ClassVar[str] = "CodeSystem"

    name: str = ""
    title: str = ""
    description: str = ""
    url: str = ""
    version: str = ""
    status: str = ""
    category: str = "general"
    concept_count: int = 0


class AuditLog(ViewModel):
    """An audit trail entry stored as an AuditEvent."""

    resource_type: ClassVar[str] = "AuditEvent"
    status_field: ClassVar[str] = "outcome"

    user_name: str = ""
    user_id: str = ""
    action: str = ""
    resource: str = ""
    resource_id: str = ""
    outcome: str = ""
    succeeded: bool = False
    details: str = ""
    timestamp: str = ""


class Session(ViewModel):
    """A telehealth session stored as an Appointment."""

    resource_type: ClassVar[str] = "Appointment"

    title: str = ""
    patient_name: str = ""
    patient_id: str = ""
    provider_name: str = ""
    provider_id: str = ""
    start: str = ""
    end: str = ""
    duration: int = 0
    type: str = ""
    session_type: str = ""
    status: str = ""
    notes: str = ""
    meeting_link: str = ""
    symptoms: tuple[str, ...] = ()


class InvoiceSummary(ViewModel):
    """A patient invoice."""

    resource_type: ClassVar[str] = "Invoice"

    number: str = ""
    patient_name: str = ""
    patient_id: str = ""
    type: str = ""
    date: str = ""
    total: float = 0.0
    currency: str = ""
    status: str = ""


class Pharmacy(ViewModel):
    """A dispensing pharmacy stored as an Organization."""

    resource_type: ClassVar[str] = "Organization"
    status_field: ClassVar[str] = "active"

    name: str = ""
    type: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    identifier: str = ""
    active: bool = True


class Message(ViewModel):
    """A secure message stored as a Communication."""

    resource_type: ClassVar[str] = "Communication"

    subject: str = ""
    content: str = ""
    sender_name: str = ""
    sender_id: str = ""
    recipient_name: str = ""
    recipient_id: str = ""
    category: str = ""
    priority: str = ""
    status: str = ""
    sent: str = ""


class Order(ViewModel):
    """Fields shared by service and medication orders."""

    description: str = ""
    patient_name: str = ""
    patient_id: str = ""
    requester: str = ""
    status: str = ""
    intent: str = ""
    priority: str = ""
    authored_on: str = ""
    note: str = ""


class ServiceOrder(Order):
    """A lab or imaging order stored as a ServiceRequest."""

    resource_type: ClassVar[str] = "ServiceRequest"

    code: str = ""
    occurrence: str = ""


class MedicationOrder(Order):
    """A prescription stored as a MedicationRequest."""

    resource_type: ClassVar[str] = "MedicationRequest"

    dosage: str = ""


class Form(ViewModel):
    """An intake form stored as a Questionnaire."""

    resource_type: ClassVar[str] = "Questionnaire"

    title: str = ""
    name: str = ""
    url: str = ""
    description: str = ""
    version: str = ""
    status: str = ""
    category: str = ""
    subject_type: str = ""
    questions: tuple[str, ...] = ()


class FormResponse(ViewModel):
    """A completed form stored as a QuestionnaireResponse."""

    resource_type: ClassVar[str] = "QuestionnaireResponse"

    questionnaire: str = ""
    patient_name: str = ""
    patient_id: str = ""
    author: str = ""
    authored: str = ""
    status: str = ""
    answer_count: int = 0


__all__ = [
    "Attachment",
    "AuditLog",
    "CoverageSummary",
    "Discount",
    "DiscountType",
    "DocumentSummary",
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
    "ServiceOrder",
    "Session",
    "TagSystem",
    "TaskItem",
    "ViewModel",
]
