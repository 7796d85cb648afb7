from flashmarket.models.cart import CartLine
from flashmarket.models.inventory import InventoryRecord
from flashmarket.models.product import Product
from flashmarket.repositories.inventory_repo import InventoryLedger
from flashmarket.schemas.cart import CartError


def _line(product_id, quantity):
    return CartLine(
        cart_item_id=f"{product_id}-line",
        base_id=product_id,
        quantity=quantity,
        base_price=10,
        price=10,
        group_key=str(product_id),
    )


class TestInventoryLedger:
    def test_initialize_uses_reported_stock_or_default(self):
        ledger = InventoryLedger(default_stock=100)
        ledger.initialize(
            [
                Product(id=1, name="A", price=1, stock=5),
                Product(id=2, name="B", price=1),
            ]
        )

        assert ledger.get(1).stock == 5
        assert ledger.get(2).stock == 100
        assert ledger.get(1).reserved == 0

    def test_initialize_resets_previous_state(self, ledger):
        ledger.reserve(1, 2)
        ledger.initialize([Product(id=9, name="Other", price=1, stock=3)])

        assert ledger.get(1) is None
        assert ledger.get(9).stock == 3

    def test_seed_keeps_existing_reservations(self, ledger, widget):
        ledger.reserve(1, 2)

        added = ledger.seed([widget, Product(id=7, name="New", price=1, stock=4)])

        assert added == 1
        assert ledger.get(1).reserved == 2
        assert ledger.get(7).stock == 4

    def test_check_availability_unknown_product(self, ledger):
        result = ledger.check_availability(999, 1)

        assert result.available is False
        assert result.reason == CartError.NOT_FOUND
        assert result.message == "Product not found"

    def test_check_availability_unavailable_product(self, ledger):
        ledger.set_available(1, False)

        result = ledger.check_availability(1, 1)

        assert result.available is False
        assert result.reason == CartError.UNAVAILABLE

    def test_check_availability_counts_reserved_units(self, ledger):
        ledger.reserve(1, 2)

        result = ledger.check_availability(1, 4)

        assert result.available is False
        assert result.reason == CartError.INSUFFICIENT_STOCK
        assert result.units_left == 3
        assert result.message == "Only 3 units available"

    def test_reserve_and_release(self, ledger):
        assert ledger.reserve(1, 3) is True
        assert ledger.free_units(1) == 2

        assert ledger.release(1, 1) is True
        assert ledger.get(1).reserved == 2

    def test_reserve_never_exceeds_stock(self, ledger):
        assert ledger.reserve(1, 6) is False
        assert ledger.get(1).reserved == 0

    def test_reserve_unknown_product(self, ledger):
        assert ledger.reserve(42, 1) is False

    def test_release_is_clamped_at_zero(self, ledger):
        ledger.reserve(1, 1)
        ledger.release(1, 5)

        assert ledger.get(1).reserved == 0

    def test_confirm_purchase_moves_reservation_to_sold(self, ledger):
        ledger.reserve(1, 2)
        ledger.reserve(2, 1)

        ledger.confirm_purchase([_line(1, 2), _line(2, 1)])

        assert ledger.get(1).stock == 3
        assert ledger.get(1).reserved == 0
        assert ledger.get(2).stock == 9
        assert ledger.get(2).reserved == 0

    def test_confirm_purchase_ignores_untracked_products(self, ledger):
        ledger.confirm_purchase([_line(404, 1)])

        assert ledger.get(404) is None

    def test_get_returns_a_copy(self, ledger):
        record = ledger.get(1)
        record.reserved = 5

        assert ledger.get(1).reserved == 0

    def test_restore_reservations_rolls_back_reserved_only(self, ledger):
        ledger.reserve(1, 2)
        state = ledger.export_state()

        ledger.reserve(1, 3)
        ledger.reserve(2, 4)
        ledger.restore_reservations(state)

        assert ledger.get(1).reserved == 2
        assert ledger.get(2).reserved == 0

    def test_restore_reservations_keeps_seller_changes(self, ledger):
        state = ledger.export_state()

        ledger.seed([Product(id=7, name="Lamp", price=20, stock=3)])
        ledger.remove(2)
        ledger.set_available(1, False)
        ledger.restore_reservations(state)

        assert ledger.get(7).reserved == 0
        assert ledger.get(7).stock == 3
        assert ledger.get(2) is None
        assert ledger.get(1).available is False

    def test_restore_reservations_never_exceeds_stock(self, ledger):
        ledger.reserve(1, 5)
        state = ledger.export_state()
        ledger.release(1, 5)
        ledger.confirm_purchase([_line(1, 4)])

        ledger.restore_reservations(state)

        record = ledger.get(1)
        assert record.stock == 1
        assert record.reserved == 1

    def test_remove(self, ledger):
        assert ledger.remove(1) is True
        assert ledger.remove(1) is False
        assert ledger.check_availability(1, 1).reason == CartError.NOT_FOUND

    def test_string_and_int_ids_address_the_same_record(self, ledger):
        assert ledger.reserve("1", 2) is True

        assert ledger.get(1).reserved == 2
        assert ledger.check_availability("1", 4).units_left == 3
        assert ledger.release(1, 2) is True
        assert ledger.seed([Product(id="2", name="Dup", price=1, stock=1)]) == 0
        assert ledger.remove("1") is True
        assert ledger.get(1) is None

    def test_confirm_purchase_matches_string_base_id(self, ledger):
        ledger.reserve(1, 2)

        ledger.confirm_purchase([_line("1", 2)])

        assert ledger.get(1).stock == 3
        assert ledger.get(1).reserved == 0


class TestInventoryRecord:
    def test_free_units(self):
        record = InventoryRecord(product_id=1, stock=5, reserved=2, available=True)

        assert record.free_units == 3

    def test_is_available_follows_the_flag(self):
        record = InventoryRecord(product_id=1, stock=5, reserved=0, available=False)

        assert record.is_available is False

    def test_exhausted_stock_is_still_available_but_has_no_free_units(self):
        record = InventoryRecord(product_id=1, stock=5, reserved=5, available=True)

        assert record.free_units == 0
        assert record.is_available is True

    def test_sold_out_product_reports_insufficient_stock(self, ledger):
        ledger.reserve(1, 5)

        availability = ledger.check_availability(1, 1)

        assert ledger.get(1).is_available is True
        assert availability.reason == CartError.INSUFFICIENT_STOCK
        assert availability.units_left == 0
