import pytest

from invoicing.core.errors import InvalidStateError, ValidationError
from invoicing.models.customer import Customer

from conftest import NOW, make_customer

ADDRESS = {
    "street": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "postal_code": "62701",
    "country": "USA",
}


def test_create_normalizes_fields():
    customer = Customer.create("  Acme Corp ", " Billing@Acme-Corp.com ", ADDRESS, "+1 555-010-2000", NOW)

    assert customer.name == "Acme Corp"
    assert customer.email == "billing@acme-corp.com"
    assert customer.address.city == "Springfield"
    assert customer.created_at == NOW
    assert not customer.is_deleted


@pytest.mark.parametrize(
    "name, email, address, phone, code",
    [
        ("", "a@b.co", ADDRESS, "5550102000", "NAME_REQUIRED"),
        ("n" * 256, "a@b.co", ADDRESS, "5550102000", "NAME_TOO_LONG"),
        ("Acme", "", ADDRESS, "5550102000", "EMAIL_REQUIRED"),
        ("Acme", "not-an-email", ADDRESS, "5550102000", "INVALID_EMAIL_FORMAT"),
        ("Acme", "a@b.co", {**ADDRESS, "city": " "}, "5550102000", "INVALID_ADDRESS_MISSING_FIELDS"),
        ("Acme", "a@b.co", {**ADDRESS, "postal_code": "9" * 21}, "5550102000", "INVALID_ADDRESS_POSTAL_CODE_TOO_LONG"),
        ("Acme", "a@b.co", ADDRESS, "call me", "INVALID_PHONE_NUMBER"),
    ],
)
def test_create_rejects_invalid_input(name, email, address, phone, code):
    with pytest.raises(ValidationError) as exc:
        Customer.create(name, email, address, phone, NOW)
    assert exc.value.code == code


def test_update_and_delete():
    customer = make_customer()

    updated = customer.update("Acme Inc", "ap@acme-corp.com", ADDRESS, "5550102001", NOW)
    deleted = updated.soft_delete(NOW)

    assert updated.id == customer.id
    assert updated.name == "Acme Inc"
    assert deleted.is_deleted

    with pytest.raises(InvalidStateError) as exc:
        deleted.update("Acme", "ap@acme-corp.com", ADDRESS, "5550102001", NOW)
    assert exc.value.code == "CANNOT_UPDATE_DELETED_CUSTOMER"
    with pytest.raises(InvalidStateError):
        deleted.soft_delete(NOW)
