from __future__ import annotations
import logging
from typing import Optional
from urllib.parse import quote

from cart import Cart
from errors import StoreError
from schemas import CustomerInfo, DeliveryMethod, OrderSummary, PaymentMethod, StoreInfo
from customers import whatsapp_link

logger = logging.getLogger(__name__)

DELIVERY_LABELS = {
    DeliveryMethod.pickup: "Retirada na loja",
    DeliveryMethod.delivery: "Entrega",
}

PAYMENT_LABELS = {
    PaymentMethod.money: "Dinheiro",
    PaymentMethod.pix: "PIX",
    PaymentMethod.credit: "Cartão de crédito",
    PaymentMethod.debit: "Cartão de débito",
    PaymentMethod.other: "Outro",
}


def money(value: float) -> str:
    return f"R$ {value:.2f}".replace(".", ",")


def validate_checkout(cart: Cart, info: CustomerInfo, delivery: DeliveryMethod) -> None:
    if not cart.items:
        raise StoreError("Cart is empty")
    if not info.name.strip() or not info.phone.strip():
        raise StoreError("Customer name and phone are required")
    if delivery == DeliveryMethod.delivery:
        address = info.address
        if not (address.street.strip() and address.number.strip() and address.city.strip()):
            raise StoreError("Street, number and city are required for delivery")


def order_message(cart: Cart, info: CustomerInfo, delivery: DeliveryMethod, payment: PaymentMethod) -> str:
    lines = [f"Pedido de {info.name} ({info.phone})", ""]
    for item in cart.items:
        lines.append(f"{item.quantity}x {item.name} - {money(item.price * item.quantity)}")
    lines.append("")
    lines.append(f"Subtotal: {money(cart.subtotal())}")
    if cart.applied_coupon:
        lines.append(f"Cupom: {cart.applied_coupon} ({cart.discount:g}%)")
    lines.append(f"Total: {money(cart.total())}")
    lines.append(f"Entrega: {DELIVERY_LABELS[delivery]}")
    if delivery == DeliveryMethod.delivery:
        a = info.address
        street = f"{a.street}, {a.number}"
        if a.complement:
            street += f" - {a.complement}"
        lines.append(f"Endereço: {street}, {a.city} {a.zip_code}".rstrip())
    lines.append(f"Pagamento: {PAYMENT_LABELS[payment]}")
    return "\n".join(lines)


def build_summary(
    cart: Cart,
    info: CustomerInfo,
    delivery: DeliveryMethod,
    payment: PaymentMethod,
    store: StoreInfo,
) -> OrderSummary:
    validate_checkout(cart, info, delivery)
    message = order_message(cart, info, delivery, payment)
    whatsapp_url: Optional[str] = None
    if store.whatsapp_number:
        whatsapp_url = f"{whatsapp_link(store.whatsapp_number)}?text={quote(message)}"
    logger.info("Order summary for %s: %s", info.name, money(cart.total()))
    return OrderSummary(
        items=list(cart.items),
        subtotal=cart.subtotal(),
        applied_coupon=cart.applied_coupon,
        discount=cart.discount,
        total=cart.total(),
        delivery_method=delivery,
        payment_method=payment,
        customer=info,
        message=message,
        whatsapp_url=whatsapp_url,
    )
