"""
Tests for AdjustmentService

Adjustment amounts include their tax: 110.00 at 10% GST carries 10.00.
"""
import pytest
from decimal import Decimal

from hubadmin.core.exceptions import HubAdminError, NotFoundError
from hubadmin.domain.order import Adjustment, TaxRate
from hubadmin.services.adjustment_service import REMOVE_TAX_LABEL, closest_tax_rate

from conftest import EXISTING_ORDER, GST, VAT


@pytest.fixture
def taxed_adjustment(adjustment_service, admin_user):
    return adjustment_service.create_adjustment(
        admin_user, EXISTING_ORDER, label="Delivery", amount="110", tax_rate_id=GST
    )


@pytest.fixture
def untaxed_adjustment(adjustment_service, admin_user):
    return adjustment_service.create_adjustment(
        admin_user, EXISTING_ORDER, label="Discount", amount="-5", tax_rate_id=None
    )


class TestCreateAdjustment:

    def test_tax_is_included_in_the_amount(self, taxed_adjustment, order_repository):
        assert taxed_adjustment.included_tax == Decimal('10.00')
        assert taxed_adjustment.amount == Decimal('110.00')

        stored = order_repository.find_by_number(EXISTING_ORDER)
        assert stored.adjustment_total == Decimal('110.00')
        assert stored.total == Decimal('119.00')
        assert stored.payment_state == 'balance_due'

    def test_without_tax_rate(self, untaxed_adjustment, order_repository):
        assert untaxed_adjustment.included_tax == Decimal('0.00')
        assert order_repository.find_by_number(EXISTING_ORDER).total == Decimal('4.00')

    def test_blank_label(self, adjustment_service, admin_user):
        with pytest.raises(HubAdminError, match="blank"):
            adjustment_service.create_adjustment(admin_user, EXISTING_ORDER, label="  ", amount="1")

    def test_invalid_amount(self, adjustment_service, admin_user):
        with pytest.raises(HubAdminError, match="Invalid adjustment amount"):
            adjustment_service.create_adjustment(admin_user, EXISTING_ORDER, label="Fee", amount="lots")

    def test_unknown_tax_rate(self, adjustment_service, admin_user):
        with pytest.raises(NotFoundError):
            adjustment_service.create_adjustment(admin_user, EXISTING_ORDER, label="Fee", amount="1", tax_rate_id=99)

    def test_listed_on_the_order(self, adjustment_service, taxed_adjustment, admin_user):
        labels = [a.label for a in adjustment_service.list_adjustments(admin_user, EXISTING_ORDER)]
        assert labels == ["Delivery"]


class TestEditAdjustment:

    def test_form_for_taxed_adjustment(self, adjustment_service, taxed_adjustment, admin_user):
        form = adjustment_service.adjustment_form(admin_user, EXISTING_ORDER, taxed_adjustment.id)

        assert form['included_tax'] == "10.00"
        assert form['included_tax_editable'] is False
        assert form['selected_tax_rate_id'] == GST
        assert form['tax_rate_options'][0] == {'id': None, 'name': REMOVE_TAX_LABEL}
        assert [option['id'] for option in form['tax_rate_options'][1:]] == [GST, VAT]

    def test_removing_tax(self, adjustment_service, taxed_adjustment, order_repository, admin_user):
        adjustment = adjustment_service.update_adjustment(
            admin_user, EXISTING_ORDER, taxed_adjustment.id, tax_rate_id=None
        )

        assert adjustment.included_tax == Decimal('0.00')
        stored = order_repository.find_by_number(EXISTING_ORDER)
        assert stored.adjustments[0].included_tax == Decimal('0.00')

        form = adjustment_service.adjustment_form(admin_user, EXISTING_ORDER, taxed_adjustment.id)
        assert form['included_tax'] == "0.00"
        assert form['selected_tax_rate_id'] is None

    def test_form_for_untaxed_adjustment(self, adjustment_service, order_repository, admin_user):
        adjustment = adjustment_service.create_adjustment(
            admin_user, EXISTING_ORDER, label="Packing", amount="110"
        )

        form = adjustment_service.adjustment_form(admin_user, EXISTING_ORDER, adjustment.id)
        assert form['included_tax'] == "0.00"
        assert form['selected_tax_rate_id'] is None

        adjustment_service.update_adjustment(admin_user, EXISTING_ORDER, adjustment.id, tax_rate_id=GST)

        stored = order_repository.find_by_number(EXISTING_ORDER)
        assert stored.adjustments[0].included_tax == Decimal('10.00')

    def test_changing_amount_recomputes_tax(self, adjustment_service, taxed_adjustment, admin_user):
        adjustment = adjustment_service.update_adjustment(
            admin_user, EXISTING_ORDER, taxed_adjustment.id, tax_rate_id=VAT, amount="60", label="Courier"
        )

        assert adjustment.label == "Courier"
        assert adjustment.included_tax == Decimal('10.00')

    def test_renaming_keeps_the_tax(self, adjustment_service, taxed_adjustment, order_repository, admin_user):
        adjustment = adjustment_service.update_adjustment(
            admin_user, EXISTING_ORDER, taxed_adjustment.id, label="Renamed fee"
        )

        assert adjustment.label == "Renamed fee"
        assert adjustment.included_tax == Decimal('10.00')
        assert order_repository.find_by_number(EXISTING_ORDER).adjustments[0].included_tax == Decimal('10.00')

    def test_new_amount_keeps_the_current_rate(self, adjustment_service, taxed_adjustment, admin_user):
        adjustment = adjustment_service.update_adjustment(
            admin_user, EXISTING_ORDER, taxed_adjustment.id, amount="220"
        )

        assert adjustment.included_tax == Decimal('20.00')

    def test_new_amount_on_untaxed_adjustment_stays_untaxed(self, adjustment_service, untaxed_adjustment, admin_user):
        adjustment = adjustment_service.update_adjustment(
            admin_user, EXISTING_ORDER, untaxed_adjustment.id, amount="-8"
        )

        assert adjustment.included_tax == Decimal('0.00')
        assert adjustment.amount == Decimal('-8.00')

    def test_unknown_adjustment(self, adjustment_service, admin_user):
        with pytest.raises(NotFoundError):
            adjustment_service.adjustment_form(admin_user, EXISTING_ORDER, 12345)


class TestClosestTaxRate:

    rates = [
        TaxRate(id=GST, name="GST", amount=Decimal('0.10')),
        TaxRate(id=VAT, name="VAT", amount=Decimal('0.20')),
    ]

    def test_picks_the_nearest_rate(self):
        adjustment = Adjustment(order_id=1, label="Fee", amount=Decimal('120.00'), included_tax=Decimal('20.00'))
        assert closest_tax_rate(adjustment, self.rates).id == VAT

        adjustment = Adjustment(order_id=1, label="Fee", amount=Decimal('111.00'), included_tax=Decimal('11.00'))
        assert closest_tax_rate(adjustment, self.rates).id == GST

    def test_no_tax_means_no_rate(self):
        adjustment = Adjustment(order_id=1, label="Fee", amount=Decimal('50.00'), included_tax=Decimal('0.00'))
        assert closest_tax_rate(adjustment, self.rates) is None

    def test_no_rates_configured(self):
        adjustment = Adjustment(order_id=1, label="Fee", amount=Decimal('110.00'), included_tax=Decimal('10.00'))
        assert closest_tax_rate(adjustment, []) is None
