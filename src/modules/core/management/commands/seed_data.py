from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.activity.repositories.django_repository import ActivityDjangoRepository
from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import OrderDomainError
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.users.models import User, UserRole
from modules.users.repositories.django_repository import UserDjangoRepository

# Status path walked from ``pending`` to reach each seeded target.
_PATHS = {
    OrderStatus.PENDING: [],
    OrderStatus.CONFIRMED: [OrderStatus.CONFIRMED],
    OrderStatus.PREPARING: [OrderStatus.CONFIRMED, OrderStatus.PREPARING],
    OrderStatus.READY: [
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
    ],
    OrderStatus.COMPLETED: [
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.COMPLETED,
    ],
    OrderStatus.CANCELLED: [OrderStatus.CANCELLED],
}


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser) -> None:
        parser.add_argument("--orders", type=int, default=20)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        farmers, buyers = self._seed_users()
        products = self._seed_products(farmers)
        orders_created = self._seed_orders(buyers, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"farmers={len(farmers)}, "
                f"buyers={len(buyers)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> tuple[list[User], list[User]]:
        self.stdout.write("Creating users...")
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")

        def ensure(username: str, role: str, first_name: str) -> User:
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(
                    username,
                    password=f"{username}123",
                    role=role,
                    first_name=first_name,
                    phone="3001234567",
                )
            return user

        farmers = [
            ensure("don_jose", UserRole.FARMER, "José"),
            ensure("dona_maria", UserRole.FARMER, "María"),
            ensure("finca_el_roble", UserRole.FARMER, "Arturo"),
        ]
        buyers = [
            ensure("laura", UserRole.BUYER, "Laura"),
            ensure("restaurante_sazon", UserRole.BUYER, "Camilo"),
            ensure("tienda_verde", UserRole.BUYER, "Paola"),
        ]
        self.stdout.write(self.style.SUCCESS("Creating users... Done!"))
        return farmers, buyers

    def _seed_products(self, farmers: list[User]) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("Papa pastusa", "kg", Decimal("2500.00"), ProductStatus.AVAILABLE),
            ("Tomate chonto", "kg", Decimal("3200.00"), ProductStatus.AVAILABLE),
            ("Cebolla cabezona", "kg", Decimal("2800.00"), ProductStatus.AVAILABLE),
            ("Aguacate hass", "kg", Decimal("7500.00"), ProductStatus.SEASONAL),
            ("Mango tommy", "kg", Decimal("4200.00"), ProductStatus.SEASONAL),
            ("Café pergamino", "kg", Decimal("16000.00"), ProductStatus.AVAILABLE),
            ("Panela", "unidad", Decimal("3500.00"), ProductStatus.AVAILABLE),
            ("Huevos campesinos", "docena", Decimal("9000.00"), ProductStatus.AVAILABLE),
            ("Queso campesino", "kg", Decimal("18000.00"), ProductStatus.AVAILABLE),
        ]
        for index, (name, unit, price, status) in enumerate(catalog):
            farmer = farmers[index % len(farmers)]
            product, _ = Product.objects.get_or_create(
                farmer=farmer,
                name=name,
                defaults={
                    "unit": unit,
                    "price": price,
                    "stock_quantity": Decimal(random.randint(40, 300)),
                    "min_sale_quantity": Decimal("1.00"),
                    "max_sale_quantity": Decimal("50.00"),
                    "status": status,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(
        self, buyers: list[User], products: list[Product], count: int
    ) -> int:
        self.stdout.write("Creating orders...")
        if not buyers or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no buyers/products)."))
            return 0

        service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            user_repository=UserDjangoRepository(),
            activity_repository=ActivityDjangoRepository(),
        )
        by_farmer: dict[int, list[Product]] = {}
        for product in products:
            by_farmer.setdefault(product.farmer_id, []).append(product)

        status_weights = [
            (OrderStatus.PENDING, 0.25),
            (OrderStatus.CONFIRMED, 0.15),
            (OrderStatus.PREPARING, 0.10),
            (OrderStatus.READY, 0.10),
            (OrderStatus.COMPLETED, 0.30),
            (OrderStatus.CANCELLED, 0.10),
        ]
        statuses = [s for s, _ in status_weights]
        weights = [w for _, w in status_weights]

        created = 0
        for _ in range(count):
            buyer = random.choice(buyers)
            seller_id = random.choice(list(by_farmer))
            catalog = by_farmer[seller_id]
            chosen = random.sample(catalog, k=random.randint(1, len(catalog)))
            target = random.choices(statuses, weights=weights, k=1)[0]

            dto = CreateOrderDTO(
                buyer_id=buyer.pk,
                seller_id=seller_id,
                items=[
                    CreateOrderItemDTO(
                        product_id=product.id,
                        quantity=Decimal(random.randint(1, 5)),
                    )
                    for product in chosen
                ],
                delivery_address="Carrera 7 # 12-34, Bogotá",
                contact_phone="3001234567",
                scheduled_delivery_date=timezone.localdate()
                + timedelta(days=random.randint(1, 7)),
                payment_method=random.choice(PaymentMethod.values),
            )
            try:
                order = service.create_order(dto)
                for step in _PATHS[target]:
                    # Buyers cancel; every other step is taken by the farmer.
                    if step == OrderStatus.CANCELLED:
                        service.cancel_order(order.id, buyer.pk, UserRole.BUYER)
                    else:
                        service.update_status(order.id, step, seller_id, UserRole.FARMER)
                if target == OrderStatus.COMPLETED:
                    service.rate_order(
                        order.id, buyer.pk, UserRole.BUYER, random.randint(3, 5)
                    )
            except OrderDomainError as exc:
                self.stdout.write(self.style.WARNING(f"Skipped order: {exc}"))
                continue

            placed_at = timezone.now() - timedelta(days=random.randint(0, 30))
            Order.objects.filter(id=order.id).update(created_at=placed_at)
            created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
