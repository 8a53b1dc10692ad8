"""
Management command to show how symbols are classified by the OCC codec.
"""

from django.core.management.base import BaseCommand

from services.instruments.expiration import days_to_expiration, format_option_display
from services.instruments.occ import parse_symbol
from services.strategies.core.primitives import OptionIdentity


class Command(BaseCommand):
    help = "Parse option/equity symbols and print their classification"

    def add_arguments(self, parser):
        parser.add_argument("symbols", nargs="+", help="Symbols to parse (quote OCC symbols)")

    def handle(self, *args, **options):
        for raw in options["symbols"]:
            identity = parse_symbol(raw)
            if isinstance(identity, OptionIdentity):
                self.stdout.write(
                    self.style.SUCCESS(f"{raw!r}: option ")
                    + f"{format_option_display(identity)} "
                    f"(underlying={identity.underlying} "
                    f"expiration={identity.expiration.isoformat()} "
                    f"type={identity.option_type.value} strike={identity.strike} "
                    f"dte={days_to_expiration(identity.expiration)} "
                    f"occ={identity.occ_symbol!r})"
                )
            else:
                self.stdout.write(f"{raw!r}: equity {identity.symbol}")
