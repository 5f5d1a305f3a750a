import time

from django.core.management.base import BaseCommand, CommandError

from apps.accounts.tenants import tenant_path
from apps.common.cnpj import normalize_cnpj
from apps.common.realtime import get_store


class Command(BaseCommand):
    help = "Acompanha em tempo real a assinatura de um restaurante (Ctrl+C para sair)."

    def add_arguments(self, parser):
        parser.add_argument("cnpj", help="CNPJ do restaurante")

    def handle(self, *args, **options):
        try:
            cnpj = normalize_cnpj(options["cnpj"])
        except ValueError as e:
            raise CommandError(str(e))
        path = f"{tenant_path(cnpj)}/subscription"

        def on_change(event):
            where = path if event.path in ("", "/") else f"{path}{event.path}"
            self.stdout.write(f"[{event.event_type}] {where}: {event.data}")

        registration = get_store().listen(path, on_change)
        self.stdout.write(self.style.SUCCESS(f"Escutando {path}"))
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            pass
        finally:
            registration.close()
