"""Address codec reading the plain frozen snapshot stored on the order."""

from backoffice.address.port import AddressCodec, AddressView
from backoffice.errors import Forbidden
from backoffice.order.order import OrderStatus

# Fulfillment staff only see addresses once an order is theirs to ship
_FULFILLMENT_VISIBLE = {OrderStatus.AWAITING_FULFILLMENT.value, OrderStatus.FULFILLED.value}


class SnapshotAddressCodec(AddressCodec):
    def can_view(self, order, caller):
        if caller is None:
            return False
        if caller.is_admin:
            return True
        if caller.is_fulfillment_staff:
            return order.status in _FULFILLMENT_VISIBLE
        return False

    def decrypt(self, order, caller):
        if not self.can_view(order, caller):
            raise Forbidden()

        address = order.frozen_address
        if address is None:
            return None
        return AddressView(
            name=address.name,
            line1=address.line1,
            line2=address.line2,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
        )
