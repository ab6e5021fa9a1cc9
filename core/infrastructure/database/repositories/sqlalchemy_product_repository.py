"""
SQLAlchemy Product Repository Implementation.

Stock is decremented with conditional UPDATEs (`quantity >= n`) so two
buyers racing for the last unit cannot both succeed.
"""
from dataclasses import replace
from typing import Optional
import logging
from sqlalchemy import select, update, func, case, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.domain.entities import Product, StockMode
from core.domain.exceptions import InsufficientStockError, ProductOutOfStockError
from core.domain.repositories import ProductRepository
from core.domain.services import StockReservation
from core.infrastructure.database.mappers import ProductMapper
from core.infrastructure.database.models import ProductModel, ProductSizeVariantModel


logger = logging.getLogger(__name__)


class SQLAlchemyProductRepository(ProductRepository):
    """SQLAlchemy implementation of ProductRepository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, product_id: str) -> Optional[Product]:
        result = await self.session.execute(
            select(ProductModel)
            .options(selectinload(ProductModel.size_variants))
            .where(ProductModel.id == product_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        if model is None:
            logger.info(f"Product not found: {product_id}")
            return None
        return ProductMapper.to_domain(model)

    async def apply_reservation(self, reservation: StockReservation) -> StockReservation:
        """
        Apply the decrement and return the actual post-decrement state.
        """
        if reservation.mode == StockMode.VARIANTS:
            return await self._apply_variant(reservation)
        if reservation.mode == StockMode.FLAT:
            return await self._apply_flat(reservation)
        return reservation

    async def _apply_variant(self, reservation: StockReservation) -> StockReservation:
        variant = ProductSizeVariantModel
        result = await self.session.execute(
            update(variant)
            .where(
                and_(
                    variant.product_id == reservation.product_id,
                    variant.size == reservation.size,
                    variant.quantity >= reservation.quantity,
                )
            )
            .values(quantity=variant.quantity - reservation.quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            available = await self.session.scalar(
                select(variant.quantity).where(
                    and_(variant.product_id == reservation.product_id, variant.size == reservation.size)
                )
            )
            logger.warning(
                f"Stock reservation lost race: product={reservation.product_id} "
                f"size={reservation.size} available={available}"
            )
            raise InsufficientStockError(available or 0, size=reservation.size)

        # Aggregate is always the sum over variants
        total = (
            select(func.coalesce(func.sum(variant.quantity), 0))
            .where(variant.product_id == reservation.product_id)
            .scalar_subquery()
        )
        await self.session.execute(
            update(ProductModel)
            .where(ProductModel.id == reservation.product_id)
            .values(quantity_available=total, is_out_of_stock=(total == 0))
            .execution_options(synchronize_session=False)
        )

        remaining = await self.session.scalar(
            select(variant.quantity).where(
                and_(variant.product_id == reservation.product_id, variant.size == reservation.size)
            )
        )
        aggregate = await self.session.scalar(
            select(ProductModel.quantity_available).where(ProductModel.id == reservation.product_id)
        )
        logger.info(
            f"✅ Reserved {reservation.quantity} x {reservation.product_id} ({reservation.size}): "
            f"{remaining} left in size, {aggregate} total"
        )
        return replace(reservation, remaining=remaining, aggregate_remaining=aggregate)

    async def _apply_flat(self, reservation: StockReservation) -> StockReservation:
        product = ProductModel
        result = await self.session.execute(
            update(product)
            .where(
                and_(
                    product.id == reservation.product_id,
                    product.quantity_available >= reservation.quantity,
                    product.is_out_of_stock.is_(False),
                )
            )
            .values(
                quantity_available=product.quantity_available - reservation.quantity,
                is_out_of_stock=case(
                    (product.quantity_available - reservation.quantity == 0, True),
                    else_=False,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            available = await self.session.scalar(
                select(product.quantity_available).where(product.id == reservation.product_id)
            )
            logger.warning(
                f"Stock reservation lost race: product={reservation.product_id} available={available}"
            )
            if not available:
                raise ProductOutOfStockError()
            raise InsufficientStockError(available)

        remaining = await self.session.scalar(
            select(product.quantity_available).where(product.id == reservation.product_id)
        )
        logger.info(f"✅ Reserved {reservation.quantity} x {reservation.product_id}: {remaining} left")
        return replace(reservation, remaining=remaining, aggregate_remaining=remaining)
