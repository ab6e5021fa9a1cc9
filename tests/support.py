"""Test helpers: deterministic clock, request builder, seed helpers."""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from core.application.dtos import CreateOrderRequest, ShippingAddressDTO
from core.domain.entities import Order, OrderItem
from core.domain.enums import PaymentMethod
from core.domain.value_objects import Actor, Money, OrderNumber, ShippingAddress
from core.infrastructure.database.models import ProductModel, ProductSizeVariantModel, UserModel
from core.infrastructure.database.unit_of_work import UnitOfWork


START = datetime(2025, 6, 14, 9, 0, 0)

BUYER = Actor(id="buyer-1", display_name="Asha")
SELLER = Actor(id="seller-1", display_name="Ravi")


class FakeClock:
    """Deterministic clock; every read advances by `tick` so rows keep a stable order."""

    def __init__(self, start: datetime = START, tick: timedelta = timedelta(milliseconds=10)):
        self.now = start
        self.tick = tick

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.tick
        return current

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_request(
    product_id: str,
    quantity: int = 1,
    payment_method: PaymentMethod = PaymentMethod.COD,
    selected_size: Optional[str] = None,
    **extra,
) -> CreateOrderRequest:
    return CreateOrderRequest(
        product_id=product_id,
        quantity=quantity,
        payment_method=payment_method,
        selected_size=selected_size,
        shipping_address=ShippingAddressDTO(
            full_name="Asha Menon",
            phone="9876543210",
            address_line1="12 MG Road",
            city="Kochi",
            state="Kerala",
            postal_code="682001",
        ),
        **extra,
    )


class Seeder:
    """Writes collaborator-owned rows (users, products) and reads back state."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def user(
        self,
        user_id: str,
        cod: bool = True,
        threshold: Optional[int] = None,
        push_tokens: Sequence[str] = (),
        name: Optional[str] = None,
    ) -> None:
        async with self.session_factory() as session:
            session.add(
                UserModel(
                    id=user_id,
                    username=user_id,
                    name=name,
                    cash_on_delivery_available=cod,
                    inventory_alert_threshold=threshold,
                    push_tokens=list(push_tokens),
                )
            )
            await session.commit()

    async def product(
        self,
        product_id: str,
        seller_id: str = SELLER.id,
        price: str = "100",
        quantity: Optional[int] = None,
        variants: Sequence[Tuple[str, int, str]] = (),
        title: str = "Cotton Kurta",
        out_of_stock: bool = False,
    ) -> None:
        async with self.session_factory() as session:
            model = ProductModel(
                id=product_id,
                seller_id=seller_id,
                title=title,
                price=Decimal(price),
                image="https://img.example/kurta.jpg",
                quantity_available=(sum(q for _, q, _ in variants) if variants else quantity),
                is_out_of_stock=out_of_stock,
            )
            model.size_variants = [
                ProductSizeVariantModel(position=i, size=size, quantity=qty, price=Decimal(p))
                for i, (size, qty, p) in enumerate(variants)
            ]
            session.add(model)
            await session.commit()

    async def stock(self, product_id: str) -> Dict[str, object]:
        async with self.session_factory() as session:
            model = (
                await session.execute(
                    select(ProductModel)
                    .options(selectinload(ProductModel.size_variants))
                    .where(ProductModel.id == product_id)
                )
            ).scalar_one()
            return {
                "quantity_available": model.quantity_available,
                "is_out_of_stock": model.is_out_of_stock,
                "sizes": {v.size: v.quantity for v in model.size_variants},
            }

    async def notifications(self, user_id: str) -> List:
        async with UnitOfWork(self.session_factory) as uow:
            return await uow.notifications.list_for_recipient(user_id)

    async def messages(self, user_a: str, user_b: str) -> List:
        async with UnitOfWork(self.session_factory) as uow:
            conversation = await uow.conversations.find_or_create(user_a, user_b, START)
            messages = await uow.conversations.list_messages(conversation.id)
            await uow.commit()
            return messages

    async def order(self, order_id: str):
        async with UnitOfWork(self.session_factory) as uow:
            return await uow.orders.get(order_id)


def build_order(
    payment_method: PaymentMethod = PaymentMethod.COD,
    unit_price: str = "100",
    quantity: int = 2,
    shipping: str = "50",
    now: datetime = START,
    sequence: int = 1,
) -> Order:
    """Pending order built in memory, no database."""
    return Order.place(
        order_number=OrderNumber.build("ORD", now.strftime("%Y%m%d"), sequence),
        buyer=BUYER,
        seller_id=SELLER.id,
        items=[
            OrderItem(
                product_id="prod-1",
                title="Cotton Kurta",
                unit_price=Money(Decimal(unit_price)),
                quantity=quantity,
            )
        ],
        shipping_charge=Money(Decimal(shipping)),
        payment_method=payment_method,
        shipping_address=ShippingAddress(
            full_name="Asha Menon",
            phone="9876543210",
            address_line1="12 MG Road",
            city="Kochi",
            state="Kerala",
            postal_code="682001",
        ),
        now=now,
    )


def headers_for(actor: Actor) -> Dict[str, str]:
    """Identity headers set by the auth gateway."""
    return {"X-User-Id": actor.id, "X-User-Name": actor.display_name or actor.id}
