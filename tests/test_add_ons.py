import pytest

from flashmarket.models.cart import AddOn, AddOnType, CartLine
from flashmarket.services.add_ons import (
    apply_expedited,
    apply_extended_warranty,
    apply_gift_wrap,
    clear_add_ons,
    default_add_on,
    rebuild_add_ons,
)


@pytest.fixture
def line() -> CartLine:
    return CartLine(
        cart_item_id="1-abc",
        base_id=1,
        quantity=1,
        base_price=10,
        price=10,
        group_key="1",
    )


EXPEDITED = AddOn(type=AddOnType.EXPEDITED, value=5)
WARRANTY = AddOn(type=AddOnType.WARRANTY, value=10)
GIFT_WRAP = AddOn(type=AddOnType.GIFT_WRAP, value=2)


class TestSingleAddOns:
    def test_expedited_adds_flat_fee(self, line):
        assert apply_expedited(line).price == pytest.approx(15)

    def test_warranty_is_percentage_of_current_price(self, line):
        assert apply_extended_warranty(line).price == pytest.approx(11)

    def test_gift_wrap_adds_flat_fee(self, line):
        assert apply_gift_wrap(line).price == pytest.approx(12)

    def test_input_line_is_not_mutated(self, line):
        decorated = apply_expedited(line)

        assert line.price == 10
        assert line.add_ons == []
        assert [a.type for a in decorated.add_ons] == [AddOnType.EXPEDITED]

    def test_clear_add_ons_restores_base_price(self, line):
        decorated = apply_gift_wrap(apply_expedited(line))

        cleared = clear_add_ons(decorated)

        assert cleared.price == 10
        assert cleared.add_ons == []


class TestRebuild:
    def test_fixed_application_order(self, line):
        rebuilt = rebuild_add_ons(line, [GIFT_WRAP, WARRANTY, EXPEDITED])

        # (10 + 5) * 1.10 + 2
        assert rebuilt.price == pytest.approx(18.5)
        assert [a.type for a in rebuilt.add_ons] == [
            AddOnType.EXPEDITED,
            AddOnType.WARRANTY,
            AddOnType.GIFT_WRAP,
        ]

    def test_rebuilding_twice_does_not_compound(self, line):
        once = rebuild_add_ons(line, [EXPEDITED])
        twice = rebuild_add_ons(once, [EXPEDITED, WARRANTY])

        assert once.price == pytest.approx(15)
        assert twice.price == pytest.approx(16.5)

    def test_same_set_is_idempotent(self, line):
        once = rebuild_add_ons(line, [EXPEDITED, WARRANTY])
        again = rebuild_add_ons(once, once.add_ons)

        assert again.price == pytest.approx(once.price)
        assert [a.model_dump() for a in again.add_ons] == [a.model_dump() for a in once.add_ons]

    def test_duplicates_count_once(self, line):
        rebuilt = rebuild_add_ons(line, [EXPEDITED, EXPEDITED])

        assert rebuilt.price == pytest.approx(15)
        assert len(rebuilt.add_ons) == 1

    def test_empty_set_returns_to_base(self, line):
        decorated = rebuild_add_ons(line, [EXPEDITED, GIFT_WRAP])

        assert rebuild_add_ons(decorated, []).price == pytest.approx(10)

    def test_missing_base_price_is_anchored_to_price(self):
        legacy = CartLine(cart_item_id="x", base_id=5, quantity=1, price=20, group_key="5")

        rebuilt = rebuild_add_ons(legacy, [GIFT_WRAP])

        assert rebuilt.base_price == 20
        assert rebuilt.price == pytest.approx(22)


def test_default_add_on_reads_settings(settings):
    custom = settings.model_copy(update={"EXPEDITED_COST": 7.5})

    assert default_add_on(AddOnType.EXPEDITED, custom).value == 7.5
    assert default_add_on(AddOnType.WARRANTY, settings).value == 10
