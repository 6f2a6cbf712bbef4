from __future__ import annotations

import logging
from typing import Any, Optional

from ..core.enums import WriteStatus
from .channel import ChangeListener, ChannelHandle, DropListener, ModeChannel
from .model import CompanyWorkConfig, WriteResult
from .repository import WorkConfigRepository

logger = logging.getLogger(__name__)


class ConfigStore:
    """Company config rows plus their change feed.

    Every applied write is published to the mode channel, including writes made
    by the subscriber itself.
    """

    def __init__(self, repository: WorkConfigRepository, channel: ModeChannel):
        self._repository = repository
        self._channel = channel

    @property
    def channel(self) -> ModeChannel:
        return self._channel

    def read(self, company_id: str) -> Optional[CompanyWorkConfig]:
        return self._repository.get(str(company_id))

    def create_default(self, company_id: str) -> CompanyWorkConfig:
        return self._repository.create_default(str(company_id))

    def update(
        self,
        company_id: str,
        changes: dict[str, Any],
        *,
        expected_version: Optional[int] = None,
    ) -> WriteResult:
        result = self._repository.update(str(company_id), changes, expected_version=expected_version)
        if result.status is WriteStatus.APPLIED and result.config is not None:
            delivered = self._channel.publish(result.config)
            logger.debug(
                "Published company=%s v%s to %d subscriber(s)",
                result.config.company_id,
                result.config.version,
                delivered,
            )
        return result

    def subscribe(
        self,
        company_id: str,
        on_change: ChangeListener,
        *,
        on_drop: Optional[DropListener] = None,
    ) -> ChannelHandle:
        return self._channel.subscribe(str(company_id), on_change, on_drop=on_drop)
