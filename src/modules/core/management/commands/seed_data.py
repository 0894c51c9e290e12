from __future__ import annotations

import random

from django.core.management.base import BaseCommand
from django.db import transaction

from modules.products.models import Product
from modules.transactions.constants import TransactionStatusName
from modules.transactions.models import TransactionStatus

# (name, description, price in minor units)
CATALOG = [
    ("Street Deck 8.0", "Maple deck with medium concave.", 299999),
    ("Cruiser Deck 8.5", "Wide deck for cruising and transitions.", 319900),
    ("Pro Trucks 139", "Forged baseplate, hollow kingpin.", 259900),
    ("Urethane Wheels 53mm", "99A street wheels, set of four.", 149900),
    ("ABEC-7 Bearings", "Pre-lubricated bearings, set of eight.", 89900),
    ("Grip Tape Sheet", "Coarse grit, 9 x 33 inches.", 39900),
    ("Riser Pads 1/8", "Shock-absorbing riser pads, pair.", 24900),
    ("Skate Tool", "All-in-one T-tool.", 45900),
    ("Complete Board 7.75", "Ready-to-ride complete setup.", 549900),
    ("Helmet Certified", "Dual-certified skate helmet.", 219900),
]


class Command(BaseCommand):
    help = "Seed transaction statuses and a demo product catalog."

    def add_arguments(self, parser):
        parser.add_argument(
            "--statuses-only",
            action="store_true",
            help="Only seed the transaction status registry.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding checkout data...")

        statuses_created = self._seed_statuses()
        products_created = 0
        if not options["statuses_only"]:
            products_created = self._seed_products()

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"statuses={statuses_created}, "
                f"products={products_created}"
            )
        )

    def _seed_statuses(self) -> int:
        created = 0
        for name in TransactionStatusName.values:
            _, was_created = TransactionStatus.objects.get_or_create(name=name)
            created += int(was_created)
        return created

    def _seed_products(self) -> int:
        self.stdout.write("Creating products...")
        created = 0
        for index, (name, description, price) in enumerate(CATALOG, start=1):
            _, was_created = Product.objects.get_or_create(
                name=name,
                defaults={
                    "description": description,
                    "price": price,
                    "stock_quantity": random.randint(1, 100),
                    "image": f"https://picsum.photos/seed/product-{index}/200/200",
                },
            )
            created += int(was_created)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return created
