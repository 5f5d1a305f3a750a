from django.core.management.base import BaseCommand

from apps.billing.services import sync_subscription
from apps.common.errors import ApiError
from apps.common.realtime import get_store


class Command(BaseCommand):
    help = "Sincroniza com o Stripe a assinatura de um restaurante (--cnpj) ou de todos."

    def add_arguments(self, parser):
        parser.add_argument("--cnpj", dest="cnpj", help="CNPJ (somente dígitos); default: todos", default=None)

    def handle(self, *args, **options):
        cnpj = options.get("cnpj")
        targets = [cnpj] if cnpj else sorted((get_store().get("users") or {}).keys())
        failed = 0
        for target in targets:
            try:
                res = sync_subscription(target)
            except ApiError as e:
                failed += 1
                self.stdout.write(self.style.ERROR(f"{target}: {e.message}"))
                continue
            if res["synced"]:
                self.stdout.write(self.style.SUCCESS(f"{target}: {res['status']}"))
            else:
                self.stdout.write(self.style.WARNING(f"{target}: sem cliente no Stripe"))
        self.stdout.write(f"{len(targets)} restaurante(s), {failed} falha(s)")
