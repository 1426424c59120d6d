"""Live versus fixture routing per dataset key."""

from __future__ import annotations

from Telehealth_Gateway.config.settings import DataMode, GatewaySettings, ModeSettings


class ModeSelector:
    """Pure, synchronous ``dataset_key -> DataMode`` decision.

    Resolution order: a per-dataset override, then the configured default,
    then ``LIVE`` when a store base URL is configured and ``FIXTURE``
    otherwise.
    """

    def __init__(self, settings: ModeSettings | None = None, *, live_available: bool = False) -> None:
        self.settings = settings or ModeSettings()
        self.live_available = live_available

    @classmethod
    def from_settings(cls, settings: GatewaySettings) -> ModeSelector:
        return cls(settings.mode, live_available=settings.store.base_url is not None)

    def resolve(self, dataset_key: str) -> DataMode:
        override = self.settings.overrides.get(dataset_key)
        if override is not None:
            return override
        if self.settings.default is not None:
            return self.settings.default
        return DataMode.LIVE if self.live_available else DataMode.FIXTURE


__all__ = ["ModeSelector"]
