"""
Unit Tests: services/inventory.py

- lock_products(): distinct ids, ascending order
- deduct_stock() / restore_stock(): stock change plus a sale/return log entry
- adjust_stock() / set_stock(): locked manual changes, never below zero
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from enums.inventory_action import InventoryAction
from exceptions.order import InsufficientStockException
from exceptions.product import ProductNotFoundException, InvalidStockAdjustmentException
from models.product import ProductDTO
from services.inventory import InventoryService


@pytest.fixture
def mock_session():
    return AsyncMock()


@pytest.fixture
def log_create():
    with patch('repositories.inventoryLog.InventoryLogRepository.create', new_callable=AsyncMock,
               return_value=1) as create:
        yield create


def product(product_id: int, stock: int = 10) -> ProductDTO:
    return ProductDTO(id=product_id, name=f"Product {product_id}", price=Decimal("1.00"),
                      stock_quantity=stock, is_active=True, is_suspended=False)


def logged(log_create):
    """The InventoryLogDTO passed to the last create() call."""
    return log_create.await_args.args[0]


class TestLockProducts:

    @pytest.mark.asyncio
    async def test_locks_distinct_ids_in_ascending_order(self, mock_session):
        with patch('repositories.product.ProductRepository.lock_for_update', new_callable=AsyncMock,
                   side_effect=lambda product_id, session: product(product_id)) as lock:
            locked = await InventoryService.lock_products([9, 2, 5, 2], mock_session)

        assert [call.args[0] for call in lock.await_args_list] == [2, 5, 9]
        assert list(locked) == [2, 5, 9]

    @pytest.mark.asyncio
    async def test_missing_product(self, mock_session):
        with patch('repositories.product.ProductRepository.lock_for_update', new_callable=AsyncMock,
                   return_value=None):
            with pytest.raises(ProductNotFoundException):
                await InventoryService.lock_products([3], mock_session)


class TestStockChanges:

    @pytest.mark.asyncio
    async def test_deduct(self, mock_session, log_create):
        with patch('repositories.product.ProductRepository.decrement_stock', new_callable=AsyncMock) as decrement:
            updated = await InventoryService.deduct_stock(product(1, stock=5), 5, mock_session,
                                                          order_id=7, notes="Order ORD-20250101-00000A")

        decrement.assert_awaited_once_with(1, 5, mock_session)
        assert updated.stock_quantity == 0
        entry = logged(log_create)
        assert entry.action_type == InventoryAction.SALE
        assert (entry.product_id, entry.order_id) == (1, 7)
        assert (entry.quantity_before, entry.quantity_after) == (5, 0)
        assert entry.quantity_change == -5

    @pytest.mark.asyncio
    async def test_deduct_more_than_locked_stock(self, mock_session, log_create):
        with patch('repositories.product.ProductRepository.decrement_stock', new_callable=AsyncMock) as decrement:
            with pytest.raises(InsufficientStockException) as exc_info:
                await InventoryService.deduct_stock(product(1, stock=2), 3, mock_session)

        decrement.assert_not_awaited()
        log_create.assert_not_awaited()
        assert exc_info.value.available == 2

    @pytest.mark.asyncio
    async def test_restore(self, mock_session, log_create):
        with patch('repositories.product.ProductRepository.increment_stock', new_callable=AsyncMock) as increment:
            updated = await InventoryService.restore_stock(product(1, stock=2), 3, mock_session, order_id=7)

        increment.assert_awaited_once_with(1, 3, mock_session)
        assert updated.stock_quantity == 5
        entry = logged(log_create)
        assert entry.action_type == InventoryAction.RETURN
        assert (entry.quantity_before, entry.quantity_after) == (2, 5)


class TestManualAdjustments:

    @pytest.fixture
    def locked_product(self):
        with patch('repositories.product.ProductRepository.lock_for_update', new_callable=AsyncMock,
                   side_effect=lambda product_id, session: product(product_id, stock=4)) as lock:
            yield lock

    @pytest.mark.asyncio
    async def test_restock(self, mock_session, locked_product, log_create):
        with patch('repositories.product.ProductRepository.set_stock', new_callable=AsyncMock) as set_stock:
            updated = await InventoryService.adjust_stock(3, 6, mock_session, InventoryAction.RESTOCK, "delivery")

        locked_product.assert_awaited_once_with(3, mock_session)
        set_stock.assert_awaited_once_with(3, 10, mock_session)
        assert updated.stock_quantity == 10
        entry = logged(log_create)
        assert entry.action_type == InventoryAction.RESTOCK
        assert (entry.quantity_before, entry.quantity_after, entry.notes) == (4, 10, "delivery")
        assert entry.order_id is None

    @pytest.mark.asyncio
    async def test_adjust_down_to_zero(self, mock_session, locked_product, log_create):
        with patch('repositories.product.ProductRepository.set_stock', new_callable=AsyncMock) as set_stock:
            updated = await InventoryService.adjust_stock(3, -4, mock_session)

        set_stock.assert_awaited_once_with(3, 0, mock_session)
        assert updated.stock_quantity == 0
        assert logged(log_create).action_type == InventoryAction.ADJUSTMENT

    @pytest.mark.asyncio
    async def test_adjust_below_zero_is_rejected(self, mock_session, locked_product, log_create):
        with patch('repositories.product.ProductRepository.set_stock', new_callable=AsyncMock) as set_stock:
            with pytest.raises(InvalidStockAdjustmentException) as exc_info:
                await InventoryService.adjust_stock(3, -5, mock_session)

        set_stock.assert_not_awaited()
        log_create.assert_not_awaited()
        assert exc_info.value.details == {'product_id': 3, 'current_quantity': 4, 'requested_quantity': -5}
        assert exc_info.value.error_code == "invalid_stock_adjustment"

    @pytest.mark.asyncio
    async def test_set_stock(self, mock_session, locked_product, log_create):
        with patch('repositories.product.ProductRepository.set_stock', new_callable=AsyncMock) as set_stock:
            updated = await InventoryService.set_stock(3, 12, mock_session)

        set_stock.assert_awaited_once_with(3, 12, mock_session)
        assert updated.stock_quantity == 12
        entry = logged(log_create)
        assert entry.action_type == InventoryAction.ADJUSTMENT
        assert entry.notes == "Stock set to 12"

    @pytest.mark.asyncio
    async def test_set_negative_stock_is_rejected(self, mock_session, locked_product, log_create):
        with pytest.raises(InvalidStockAdjustmentException):
            await InventoryService.set_stock(3, -1, mock_session)

        log_create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_product(self, mock_session, log_create):
        with patch('repositories.product.ProductRepository.lock_for_update', new_callable=AsyncMock,
                   return_value=None):
            with pytest.raises(ProductNotFoundException):
                await InventoryService.adjust_stock(99, 1, mock_session)
