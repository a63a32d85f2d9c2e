from __future__ import annotations

import logging

from cuemaster.application.dto.requests import RatesRequest
from cuemaster.application.dto.responses import RatesResponse
from cuemaster.application.mappers.menu_mapper import to_rates_response
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.sync.state import RATES
from cuemaster.domain.rates.entities import RateTable, TableType

logger = logging.getLogger(__name__)


class GetRates:
    def __init__(self, sync: SyncCoordinator) -> None:
        self._sync = sync

    def execute(self) -> RatesResponse:
        return to_rates_response(self._sync.state.rates, self._sync.settings.currency)


class UpdateRates:
    """Replaces the rate table. Running sessions are re-priced on the next read."""

    def __init__(self, sync: SyncCoordinator) -> None:
        self._sync = sync

    def execute(self, request_dto: RatesRequest) -> RatesResponse:
        rates = RateTable(
            hourly_rates={
                TableType.POOL: request_dto.Pool,
                TableType.CAROM: request_dto.Carom,
                TableType.SNOOKER: request_dto.Snooker,
                TableType.VIP: request_dto.VIP,
            },
            billing_block=request_dto.billingBlock,
        )
        self._sync.state.set_rates(rates)
        gateway = self._sync.gateway
        self._sync.writer.submit(
            operation="save_rates",
            resources=[RATES],
            write=lambda: gateway.save_rates(rates),
        )
        logger.info("rates_updated", extra={"billing_block": rates.billing_block})
        return to_rates_response(rates, self._sync.settings.currency)
