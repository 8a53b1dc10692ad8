"""
Management command to fetch custody positions and print the enriched book.
"""

import json

from django.conf import settings

from services.api.serializers import PositionSerializer, convert_for_serialization
from services.core.constants import ENRICHMENT_MAX_CONCURRENCY
from services.instruments.expiration import format_option_display
from services.management.utils import (
    AsyncCommand,
    add_enrichment_arguments,
    configure_command_logging,
    resolve_deadline,
)
from services.market_data.factory import get_option_chain_service
from services.positions.custody import get_custody_provider
from services.positions.enrichment import PositionEnrichmentService


class Command(AsyncCommand):
    help = "Fetch positions from the custodian, enrich them with quotes and Greeks, and print"

    def add_arguments(self, parser):
        add_enrichment_arguments(parser)

    async def async_handle(self, *args, **options):
        configure_command_logging(options)
        deadline = resolve_deadline(options)

        raw_positions = await get_custody_provider().fetch_raw_positions()

        service = PositionEnrichmentService(
            chain_service=get_option_chain_service(),
            max_concurrency=getattr(
                settings, "ENRICHMENT_MAX_CONCURRENCY", ENRICHMENT_MAX_CONCURRENCY
            ),
            deadline_seconds=deadline,
            include_unmatched=options["include_unmatched"],
        )
        result = await service.enrich(raw_positions)

        if options["json"]:
            data = convert_for_serialization(PositionSerializer.serialize(result))
            self.stdout.write(json.dumps(data, indent=2))
            return

        self.stdout.write("=" * 80)
        self.stdout.write(f"Enriched positions ({len(result.positions)} of {len(raw_positions)})")
        self.stdout.write("=" * 80)

        for position in result.positions:
            label = (
                format_option_display(position.identity) if position.is_option else position.symbol
            )
            self.stdout.write(
                f"  {label:<32} qty {position.quantity:>8}  "
                f"value {position.market_value:>12.2f}  "
                f"P&L {position.unrealized_pnl:>10.2f}  "
                f"delta {position.delta_exposure:>9.2f}  [{position.status.value}]"
            )

        summary = result.summary
        self.stdout.write("\nSummary:")
        self.stdout.write(
            f"  Positions: {summary.total_positions} "
            f"({summary.options_count} options, {summary.equities_count} equities, "
            f"{summary.unmatched_count} unmatched)"
        )
        self.stdout.write(f"  Market value:   {summary.total_market_value:.2f}")
        self.stdout.write(f"  Cost basis:     {summary.total_cost_basis:.2f}")
        self.stdout.write(f"  Unrealized P&L: {summary.total_unrealized_pnl:.2f}")
        self.stdout.write(
            f"  Greeks: delta {summary.total_delta:.2f}  gamma {summary.total_gamma:.4f}  "
            f"theta {summary.total_theta:.2f}  vega {summary.total_vega:.2f}"
        )

        if result.errors:
            self.stdout.write(self.style.WARNING(f"\n{len(result.errors)} errors:"))
            for error in result.errors:
                self.stdout.write(
                    self.style.WARNING(f"  [{error.kind.value}] {error.symbol}: {error.message}")
                )
        else:
            self.stdout.write(self.style.SUCCESS("\nAll positions enriched"))
