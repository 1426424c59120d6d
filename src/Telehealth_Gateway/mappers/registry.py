"""Mapper lookup keyed by resource type."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from Telehealth_Gateway.codec.extensions import ExtensionCodec
from Telehealth_Gateway.config.resources import ResourceTable
from Telehealth_Gateway.mappers.appointment import AppointmentMapper
from Telehealth_Gateway.mappers.audit import AuditEventMapper
from Telehealth_Gateway.mappers.base import ResourceMapper
from Telehealth_Gateway.mappers.billing import ChargeItemMapper
from Telehealth_Gateway.mappers.communication import CommunicationMapper
from Telehealth_Gateway.mappers.coverage import CoverageMapper
from Telehealth_Gateway.mappers.documents import DocumentReferenceMapper
from Telehealth_Gateway.mappers.forms import QuestionnaireMapper, QuestionnaireResponseMapper
from Telehealth_Gateway.mappers.invoice import InvoiceMapper
from Telehealth_Gateway.mappers.medication import MedicationMapper
from Telehealth_Gateway.mappers.orders import MedicationRequestMapper, ServiceRequestMapper
from Telehealth_Gateway.mappers.organization import OrganizationMapper
from Telehealth_Gateway.mappers.patient import PatientMapper
from Telehealth_Gateway.mappers.practitioner import PractitionerMapper
from Telehealth_Gateway.mappers.task import TaskMapper
from Telehealth_Gateway.mappers.terminology import CodeSystemMapper
from Telehealth_Gateway.utils.errors import UnknownResourceTypeError

MAPPER_TYPES: tuple[type[ResourceMapper], ...] = (
    ChargeItemMapper,
    CoverageMapper,
    MedicationMapper,
    TaskMapper,
    PractitionerMapper,
    PatientMapper,
    DocumentReferenceMapper,
    CodeSystemMapper,
    AuditEventMapper,
    AppointmentMapper,
    InvoiceMapper,
    OrganizationMapper,
    CommunicationMapper,
    ServiceRequestMapper,
    MedicationRequestMapper,
    QuestionnaireMapper,
    QuestionnaireResponseMapper,
)


class MapperRegistry:
    """Holds one :class:`ResourceMapper` per resource type."""

    def __init__(self, mappers: Iterable[ResourceMapper] = ()) -> None:
        self._mappers: dict[str, ResourceMapper] = {}
        for mapper in mappers:
            self.register(mapper)

    def register(self, mapper: ResourceMapper) -> None:
        if mapper.resource_type in self._mappers:
            raise ValueError(f"Mapper for '{mapper.resource_type}' already registered")
        self._mappers[mapper.resource_type] = mapper

    def get(self, resource_type: str) -> ResourceMapper:
        try:
            return self._mappers[resource_type]
        except KeyError as exc:
            raise UnknownResourceTypeError(
                f"No mapper registered for '{resource_type}'",
                resource_type=resource_type,
            ) from exc

    def __contains__(self, resource_type: object) -> bool:
        return resource_type in self._mappers

    def __iter__(self) -> Iterator[ResourceMapper]:
        return iter(self._mappers.values())

    @property
    def resource_types(self) -> tuple[str, ...]:
        return tuple(self._mappers)


def default_registry(table: ResourceTable, codec: ExtensionCodec | None = None) -> MapperRegistry:
    """Build a registry with every built-in mapper whose type is in ``table``."""
    codec = codec or ExtensionCodec()
    return MapperRegistry(
        mapper_type(table.get(mapper_type.resource_type), codec)
        for mapper_type in MAPPER_TYPES
        if mapper_type.resource_type in table
    )


__all__ = ["MAPPER_TYPES", "MapperRegistry", "default_registry"]
