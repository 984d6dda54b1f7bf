from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.freshness.repositories import FreshnessBatchDjangoRepository
from modules.freshness.services import FreshnessService
from modules.inventory.constants import FlowerColor, FlowerType, MaterialType
from modules.inventory.dtos import CreateFlowerDTO, CreateMaterialDTO
from modules.inventory.models import Flower, Material
from modules.inventory.repositories import StockItemDjangoRepository
from modules.inventory.services import InventoryService
from modules.orders.constants import OrderStatus, ProductType
from modules.orders.dtos import CreateOrderDTO, OrderItemDTO
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService

FLOWERS = [
    ("ROSE-RED-60", "Red rose 60 cm", FlowerType.ROSE, FlowerColor.RED, "180.00", 7),
    ("ROSE-WHT-50", "White rose 50 cm", FlowerType.ROSE, FlowerColor.WHITE, "160.00", 7),
    ("TULIP-YEL", "Yellow tulip", FlowerType.TULIP, FlowerColor.YELLOW, "90.00", 5),
    ("PEONY-PNK", "Pink peony", FlowerType.PEONY, FlowerColor.PINK, "350.00", 4),
    ("CHRYS-WHT", "White chrysanthemum", FlowerType.CHRYSANTHEMUM, FlowerColor.WHITE, "120.00", 14),
    ("LILY-WHT", "White lily", FlowerType.LILY, FlowerColor.WHITE, "250.00", 8),
    ("GERB-ORG", "Orange gerbera", FlowerType.GERBERA, FlowerColor.ORANGE, "110.00", 6),
    ("ALST-LAV", "Lavender alstroemeria", FlowerType.ALSTROEMERIA, FlowerColor.LAVENDER, "95.00", 10),
]

MATERIALS = [
    ("RIB-SAT-RED", "Red satin ribbon 25 mm", MaterialType.RIBBON, "35.00", "120.000"),
    ("PAP-KRAFT", "Kraft wrapping paper", MaterialType.WRAPPING_PAPER, "60.00", "80.000"),
    ("CELL-CLR", "Clear cellophane", MaterialType.CELLOPHANE, "25.00", "150.000"),
    ("ORG-WHT", "White organza", MaterialType.ORGANZA, "90.00", "40.000"),
    ("TWINE-JUTE", "Jute twine", MaterialType.TWINE, "15.00", "200.000"),
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        inventory = InventoryService(repository=StockItemDjangoRepository())
        users_created = self._seed_users()
        flowers = self._seed_flowers(inventory)
        materials = self._seed_materials(inventory)
        batches_created = self._seed_batches(flowers)
        orders_created = self._seed_orders(inventory, flowers, materials)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"flowers={len(flowers)}, "
                f"materials={len(materials)}, "
                f"batches={batches_created}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="florist").exists():
            User.objects.create_user("florist", password="florist123")
            created += 1
        return created

    def _seed_flowers(self, inventory: InventoryService) -> list[Flower]:
        self.stdout.write("Creating flowers...")
        today = timezone.localdate()
        flowers: list[Flower] = []
        for sku, name, flower_type, color, price, freshness_days in FLOWERS:
            existing = Flower.objects.alive().filter(sku=sku).first()
            if existing:
                flowers.append(existing)
                continue
            flowers.append(
                inventory.create_flower(
                    CreateFlowerDTO(
                        sku=sku,
                        name=name,
                        type=flower_type,
                        color=color,
                        unit_price=Decimal(price),
                        purchase_price=(Decimal(price) * Decimal("0.45")).quantize(
                            Decimal("0.01")
                        ),
                        current_stock=random.randint(40, 200),
                        min_stock_level=20,
                        freshness_days=freshness_days,
                        delivery_date=today - timedelta(days=random.randint(0, 5)),
                        supplier="Omsk Flower Wholesale",
                    )
                )
            )
        self.stdout.write(self.style.SUCCESS("Creating flowers... Done!"))
        return flowers

    def _seed_materials(self, inventory: InventoryService) -> list[Material]:
        self.stdout.write("Creating materials...")
        materials: list[Material] = []
        for sku, name, material_type, price, stock in MATERIALS:
            existing = Material.objects.alive().filter(sku=sku).first()
            if existing:
                materials.append(existing)
                continue
            materials.append(
                inventory.create_material(
                    CreateMaterialDTO(
                        sku=sku,
                        name=name,
                        type=material_type,
                        unit_price=Decimal(price),
                        current_stock=Decimal(stock),
                        min_stock_level=Decimal("10.000"),
                    )
                )
            )
        self.stdout.write(self.style.SUCCESS("Creating materials... Done!"))
        return materials

    def _seed_batches(self, flowers: list[Flower]) -> int:
        self.stdout.write("Receiving freshness batches...")
        freshness = FreshnessService(
            batch_repository=FreshnessBatchDjangoRepository(),
            stock_repository=StockItemDjangoRepository(),
        )
        created = 0
        for flower in flowers:
            if flower.freshness_batches.exists():
                continue
            freshness.receive_batch(flower.id, quantity=flower.current_stock)
            created += 1
        freshness.recompute_all()
        self.stdout.write(self.style.SUCCESS("Receiving freshness batches... Done!"))
        return created

    def _seed_orders(
        self,
        inventory: InventoryService,
        flowers: list[Flower],
        materials: list[Material],
    ) -> int:
        self.stdout.write("Creating orders...")
        if not flowers or not materials:
            self.stdout.write(self.style.WARNING("Skipping orders (empty catalog)."))
            return 0

        service = OrderService(
            order_repository=OrderDjangoRepository(),
            inventory_service=inventory,
        )
        customers = [
            ("Anna Ivanova", "+7 913 555-01-01"),
            ("Boris Petrov", "+7 913 555-01-02"),
            ("Elena Smirnova", "+7 913 555-01-03"),
            ("Dmitry Kuznetsov", "+7 913 555-01-04"),
        ]
        paths = [
            [],
            [OrderStatus.CONFIRMED],
            [OrderStatus.CONFIRMED, OrderStatus.IN_PROGRESS, OrderStatus.READY],
            [
                OrderStatus.CONFIRMED,
                OrderStatus.IN_PROGRESS,
                OrderStatus.READY,
                OrderStatus.OUT_FOR_DELIVERY,
                OrderStatus.DELIVERED,
            ],
            [OrderStatus.CANCELLED],
        ]

        created = 0
        for i in range(12):
            name, phone = random.choice(customers)
            flower = random.choice(flowers)
            material = random.choice(materials)
            order = service.create_order(
                CreateOrderDTO(
                    customer_name=name,
                    customer_phone=phone,
                    delivery_address=f"Lenina St. {10 + i}, Omsk",
                    delivery_date=timezone.now() + timedelta(days=random.randint(-1, 3)),
                    notes=f"Seed order {i + 1}",
                    items=[
                        OrderItemDTO(
                            product_type=ProductType.BOUQUET,
                            product_name="Signature bouquet",
                            unit_price=Decimal("500.00"),
                            quantity=Decimal("1"),
                        ),
                        OrderItemDTO(
                            stock_item_id=flower.id,
                            quantity=Decimal(random.randint(3, 11)),
                            parent_index=0,
                        ),
                        OrderItemDTO(
                            stock_item_id=material.id,
                            quantity=Decimal("0.750"),
                            parent_index=0,
                        ),
                    ],
                )
            )
            for step in random.choice(paths):
                service.transition_order(order.id, step, notes="Seed data")
            created += 1
        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
