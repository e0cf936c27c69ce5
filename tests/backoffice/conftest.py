import pytest
from backoffice.access.capabilities import reset_capability_check
from backoffice.access.permissions import ACCESS_SHOP_ORDERS
from backoffice.access.policy import reset_access_policy
from backoffice.address import reset_address_codec
from backoffice.audit.store import reset_audit_store
from backoffice.catalog import get_catalog, reset_catalog
from backoffice.directory import get_directory, reset_directory
from backoffice.order.store import reset_order_store
from backoffice.regions import reset_region_resolver
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def backoffice_bed():
    from backoffice.domain import backoffice

    bed = DomainFixture(backoffice)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(backoffice_bed):
    with backoffice_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _fresh_adapters():
    """Every test starts with empty fakes and default adapters."""
    yield
    reset_directory()
    reset_catalog()
    reset_region_resolver()
    reset_address_codec()
    reset_capability_check()
    reset_access_policy()
    reset_order_store()
    reset_audit_store()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
@pytest.fixture()
def directory():
    return get_directory()


@pytest.fixture()
def catalog():
    return get_catalog()


# ---------------------------------------------------------------------------
# Callers
# ---------------------------------------------------------------------------
@pytest.fixture()
def admin(directory):
    return directory.register("1", display_name="Grace Admin", email="grace@example.com", roles={"admin"})


@pytest.fixture()
def fulfiller_eu(directory):
    return directory.register(
        "2", display_name="Ellen Fulfiller", email="ellen@example.com", roles={"fulfillment"}, region="EU"
    )


@pytest.fixture()
def fulfiller_us(directory):
    return directory.register(
        "3", display_name="Sam Fulfiller", email="sam@example.com", roles={"fulfillment"}, region="us"
    )


@pytest.fixture()
def fraud_reviewer(directory):
    return directory.register(
        "4",
        display_name="Frank Fraud",
        email="frank@example.com",
        roles={"fraud"},
        capabilities={ACCESS_SHOP_ORDERS},
    )


@pytest.fixture()
def staff(directory):
    return directory.register(
        "5", display_name="Stella Staff", email="stella@example.com", capabilities={ACCESS_SHOP_ORDERS}
    )


@pytest.fixture()
def outsider(directory):
    return directory.register("6", display_name="Otto Outsider", email="otto@example.com")


@pytest.fixture()
def customer(directory):
    return directory.register("100", display_name="Ada Lovelace", email="ada@example.com")


@pytest.fixture()
def other_customer(directory):
    return directory.register("101", display_name="Charles Babbage", email="charles@example.com")


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
BERLIN = {
    "name": "Ada Lovelace",
    "line1": "Unter den Linden 1",
    "city": "Berlin",
    "postal_code": "10117",
    "country": "DE",
}

AUSTIN = {
    "name": "Ada Lovelace",
    "line1": "100 Congress Ave",
    "city": "Austin",
    "state": "TX",
    "postal_code": "78701",
    "country": "US",
}


@pytest.fixture()
def place(customer):
    """Place an order through the PlaceOrder command and return its id."""
    from backoffice.order.placement import place_order

    def _place(user_id=None, shop_item_id="item-stickers", quantity=1, item_price=10.0, address=BERLIN, **kwargs):
        return place_order(
            user_id=user_id or customer.id,
            shop_item_id=shop_item_id,
            quantity=quantity,
            item_price=item_price,
            address=address,
            **kwargs,
        )

    return _place
