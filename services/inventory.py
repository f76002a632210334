import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from enums.inventory_action import InventoryAction
from exceptions.order import InsufficientStockException
from exceptions.product import ProductNotFoundException, InvalidStockAdjustmentException
from models.inventoryLog import InventoryLogDTO
from models.product import ProductDTO
from repositories.inventoryLog import InventoryLogRepository
from repositories.product import ProductRepository

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Stock changes on products.

    Product.stock_quantity is only read-checked-written while the row is
    locked in the current transaction. Locks are always taken in ascending
    product id order, so two checkouts sharing products cannot deadlock.
    Every change is recorded in inventory_logs within the same transaction.
    """

    @staticmethod
    async def lock_products(product_ids: list[int], session: AsyncSession | Session) -> dict[int, ProductDTO]:
        """
        Lock every distinct product row, lowest id first.

        Returns:
            Dict mapping product_id -> ProductDTO as read under the lock

        Raises:
            ProductNotFoundException: If a product row does not exist
        """
        locked = {}
        for product_id in sorted(set(product_ids)):
            product = await ProductRepository.lock_for_update(product_id, session)
            if product is None:
                raise ProductNotFoundException(product_id)
            locked[product_id] = product
        logger.debug(f"Locked products {list(locked)}")
        return locked

    @staticmethod
    async def deduct_stock(product: ProductDTO, quantity: int, session: AsyncSession | Session,
                           order_id: int | None = None, notes: str | None = None) -> ProductDTO:
        """
        Decrement stock of a product locked by lock_products and log a sale.

        Raises:
            InsufficientStockException: If the locked stock is below quantity
        """
        if not product.has_sufficient_stock(quantity):
            raise InsufficientStockException(product.id, product.name, quantity, product.stock_quantity)
        await ProductRepository.decrement_stock(product.id, quantity, session)
        await InventoryService._log_change(product, product.stock_quantity - quantity, InventoryAction.SALE,
                                           session, order_id, notes)
        logger.info(f"Deducted {quantity} units of product {product.id} ({product.name})")
        return product.model_copy(update={'stock_quantity': product.stock_quantity - quantity})

    @staticmethod
    async def restore_stock(product: ProductDTO, quantity: int, session: AsyncSession | Session,
                            order_id: int | None = None, notes: str | None = None) -> ProductDTO:
        """Add quantity back to a product locked by lock_products and log a return."""
        await ProductRepository.increment_stock(product.id, quantity, session)
        await InventoryService._log_change(product, product.stock_quantity + quantity, InventoryAction.RETURN,
                                           session, order_id, notes)
        logger.info(f"Restored {quantity} units of product {product.id} ({product.name})")
        return product.model_copy(update={'stock_quantity': product.stock_quantity + quantity})

    @staticmethod
    async def adjust_stock(product_id: int, quantity_change: int, session: AsyncSession | Session,
                           action_type: InventoryAction = InventoryAction.ADJUSTMENT,
                           notes: str | None = None) -> ProductDTO:
        """
        Manual stock change (restock, correction) by a signed amount.

        Locks the product row first, so it serializes with checkouts and
        cancellations touching the same product.

        Raises:
            ProductNotFoundException
            InvalidStockAdjustmentException: the result would be negative
        """
        product = await InventoryService._lock_product(product_id, session)
        new_quantity = product.stock_quantity + quantity_change
        if new_quantity < 0:
            raise InvalidStockAdjustmentException(product_id, product.stock_quantity, quantity_change)
        return await InventoryService._write_stock(product, new_quantity, action_type, session, notes)

    @staticmethod
    async def set_stock(product_id: int, quantity: int, session: AsyncSession | Session,
                        notes: str | None = None) -> ProductDTO:
        """Overwrite the stock of a product (stock count), logged as an adjustment."""
        product = await InventoryService._lock_product(product_id, session)
        if quantity < 0:
            raise InvalidStockAdjustmentException(product_id, product.stock_quantity, quantity)
        return await InventoryService._write_stock(product, quantity, InventoryAction.ADJUSTMENT, session,
                                                   notes or f"Stock set to {quantity}")

    @staticmethod
    async def get_history(product_id: int, session: AsyncSession | Session,
                          action_type: InventoryAction | None = None, limit: int = 50) -> list[InventoryLogDTO]:
        return await InventoryLogRepository.get_by_product_id(product_id, session, action_type, limit)

    @staticmethod
    async def _lock_product(product_id: int, session: AsyncSession | Session) -> ProductDTO:
        locked = await InventoryService.lock_products([product_id], session)
        return locked[product_id]

    @staticmethod
    async def _write_stock(product: ProductDTO, new_quantity: int, action_type: InventoryAction,
                           session: AsyncSession | Session, notes: str | None) -> ProductDTO:
        await ProductRepository.set_stock(product.id, new_quantity, session)
        await InventoryService._log_change(product, new_quantity, action_type, session, None, notes)
        logger.info(f"Stock of product {product.id} ({product.name}) "
                    f"{product.stock_quantity} -> {new_quantity} ({action_type.value})")
        return product.model_copy(update={'stock_quantity': new_quantity})

    @staticmethod
    async def _log_change(product: ProductDTO, quantity_after: int, action_type: InventoryAction,
                          session: AsyncSession | Session, order_id: int | None, notes: str | None) -> None:
        await InventoryLogRepository.create(InventoryLogDTO(
            product_id=product.id,
            order_id=order_id,
            quantity_before=product.stock_quantity,
            quantity_after=quantity_after,
            action_type=action_type,
            notes=notes
        ), session)
