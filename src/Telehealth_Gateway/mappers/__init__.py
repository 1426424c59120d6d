"""Per-resource-type domain mappers."""

from .appointment import AppointmentMapper
from .audit import AuditEventMapper
from .base import ReferenceIndex, ResourceMapper
from .billing import ChargeItemMapper
from .communication import CommunicationMapper
from .coverage import CoverageMapper
from .documents import DocumentReferenceMapper
from .forms import QuestionnaireMapper, QuestionnaireResponseMapper
from .invoice import InvoiceMapper
from .medication import MedicationMapper
from .orders import MedicationRequestMapper, ServiceRequestMapper
from .organization import OrganizationMapper
from .patient import PatientMapper
from .practitioner import PractitionerMapper
from .registry import MAPPER_TYPES, MapperRegistry, default_registry
from .task import TaskMapper
from .terminology import CodeSystemMapper

__all__ = [
    "MAPPER_TYPES",
    "AppointmentMapper",
    "AuditEventMapper",
    "ChargeItemMapper",
    "CodeSystemMapper",
    "CommunicationMapper",
    "CoverageMapper",
    "DocumentReferenceMapper",
    "InvoiceMapper",
    "MapperRegistry",
    "MedicationMapper",
    "MedicationRequestMapper",
    "OrganizationMapper",
    "PatientMapper",
    "PractitionerMapper",
    "QuestionnaireMapper",
    "QuestionnaireResponseMapper",
    "ReferenceIndex",
    "ResourceMapper",
    "ServiceRequestMapper",
    "TaskMapper",
    "default_registry",
]
