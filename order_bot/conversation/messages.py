"""
Customer-facing message templates - single source of truth.

All text the bot sends lives here as pure functions of menu, cart and order
data. Handlers import from here instead of hardcoding strings. Totals are
recomputed from the cart lines on every render.
"""

from typing import Dict, List, Sequence

from ..cart import cart_total
from ..models import CartLine, DeliveryType, Order, OrderStatus, PaymentMethod, Product


def format_price(amount: float) -> str:
    return f"${amount:.2f}"


# =============================================================================
# Menu and Cart
# =============================================================================

def format_menu(menu: Sequence[Product]) -> str:
    """Render the catalog grouped by category, in first-appearance order."""
    if not menu:
        return "😔 No hay productos disponibles en este momento. Intenta más tarde."

    categories: List[str] = []
    for product in menu:
        if product.category not in categories:
            categories.append(product.category)

    message = "🍽️ *MENÚ DISPONIBLE*\n\n"
    for category in categories:
        message += f"📋 *{category or 'Otros'}*\n"
        for product in menu:
            if product.category != category:
                continue
            message += f"{product.id}. {product.name} - {format_price(product.price)}\n"
            if product.description:
                message += f"   _{product.description}_\n"
        message += "\n"

    message += "Para ordenar, envía el número del producto (o varios separados por coma, ej: *1,3*).\n"
    message += "Para ver tu carrito: *carrito*\n"
    message += "Para finalizar pedido: *finalizar*"
    return message


def format_cart(cart: Sequence[CartLine]) -> str:
    if not cart:
        return (
            "🛒 Tu carrito está vacío.\n\n"
            f"*TOTAL: {format_price(0)}*\n\n"
            "Envía *menu* para ver nuestros productos."
        )

    message = "🛒 *TU CARRITO*\n\n"
    for line in cart:
        message += f"{line.product.name}\n"
        message += (
            f"Cantidad: {line.quantity} x {format_price(line.product.price)}"
            f" = {format_price(line.subtotal)}\n\n"
        )

    message += f"*TOTAL: {format_price(cart_total(cart))}*\n\n"
    message += "Opciones:\n"
    message += "• *menu* - Ver menú\n"
    message += "• *limpiar* - Vaciar carrito\n"
    message += "• *cancelar* - Cancelar pedido\n"
    message += "• *finalizar* - Completar pedido"
    return message


def format_selection_result(added_names: Sequence[str], not_found: Sequence[str]) -> str:
    """Report which selected products were added and which ids do not exist."""
    parts = []
    if added_names:
        parts.append("✅ Agregado al carrito:\n" + "\n".join(f"• {name}" for name in added_names))
    if not_found:
        parts.append("❌ Productos no encontrados: " + ", ".join(not_found))
    if not parts:
        parts.append("❌ No se reconoció ningún producto. Envía *menu* para ver las opciones.")
    return "\n\n".join(parts)


# =============================================================================
# Checkout
# =============================================================================

def format_order_summary(cart: Sequence[CartLine]) -> str:
    message = "📝 *RESUMEN DE TU PEDIDO*\n\n"
    for line in cart:
        message += f"• {line.product.name} x{line.quantity} - {format_price(line.subtotal)}\n"
    message += f"\n💰 *Total: {format_price(cart_total(cart))}*\n\n"
    return message + format_delivery_prompt()


def format_delivery_prompt() -> str:
    return (
        "🏠 *TIPO DE ENTREGA*\n\n"
        "1. 🚚 Delivery\n"
        "2. 🏪 Retiro en local\n\n"
        "Responde con el número de tu elección."
    )


def format_invalid_delivery_option() -> str:
    return "Por favor selecciona una opción válida:\n1. Delivery\n2. Retiro en local"


def format_address_prompt() -> str:
    return "📍 Por favor envía tu dirección completa para el delivery:"


def format_payment_prompt(delivery_type: DeliveryType, address: str = "") -> str:
    if delivery_type == DeliveryType.DELIVERY:
        header = f"📍 Dirección registrada: {address}\n\n"
    else:
        header = "🏪 Retiro en local\n\n"
    return header + (
        "💳 *MÉTODO DE PAGO*\n\n"
        "1. 💵 Efectivo\n"
        "2. 📲 Pago online / transferencia\n\n"
        "Responde con el número de tu elección."
    )


def format_invalid_payment_option() -> str:
    return "Por favor selecciona una opción válida:\n1. Efectivo\n2. Pago online / transferencia"


def format_order_confirmation(order: Order, transfer_alias: str = "", transfer_holder: str = "") -> str:
    message = "✅ *PEDIDO CONFIRMADO*\n\n"
    message += f"🧾 *Pedido #{order.order_id}*\n\n"
    message += "📝 *Resumen:*\n"
    for item in order.items:
        message += f"• {item.name} x{item.quantity} - {format_price(item.price * item.quantity)}\n"
    message += f"\n💰 *Total: {format_price(order.total)}*\n\n"

    if order.delivery_type == DeliveryType.DELIVERY:
        message += f"🚚 *Delivery a:* {order.address}\n"
        message += "⏱️ *Tiempo estimado:* 30-45 minutos\n\n"
    else:
        message += "🏪 *Retiro en local*\n"
        message += "⏱️ *Estará listo en:* 20-30 minutos\n\n"

    if order.payment_method == PaymentMethod.ONLINE:
        message += "💳 *Pago online pendiente*\n"
        message += f"Transferí {format_price(order.total)} al alias *{transfer_alias}*"
        if transfer_holder:
            message += f" (titular: {transfer_holder})"
        message += "\no usá el link de pago que te enviamos a continuación.\n\n"
    else:
        message += "💵 *Pago en efectivo* al recibir tu pedido.\n\n"

    message += "¡Gracias por tu pedido! 😊"
    return message


def format_payment_link(order_id: str, link: str) -> str:
    return (
        f"🔗 *Link de pago del pedido #{order_id}:*\n{link}\n\n"
        "📸 Cuando completes el pago, envíanos una foto o captura del comprobante por aquí."
    )


def format_payment_received() -> str:
    return (
        "✅ ¡Recibimos tu comprobante de pago!\n\n"
        "Lo verificaremos y comenzaremos a preparar tu pedido. Te avisaremos cualquier novedad."
    )


# =============================================================================
# Session Commands
# =============================================================================

def format_welcome(customer_name: str) -> str:
    return (
        f"¡Hola {customer_name}! 👋\n\n"
        "Bienvenido a nuestro sistema de pedidos.\n\n"
        "Envía *menu* para ver nuestros productos disponibles."
    )


def format_cleared() -> str:
    return "🗑️ Carrito vaciado. Envía *menu* para comenzar."


def format_cancelled() -> str:
    return "❌ Pedido cancelado. Tu carrito fue vaciado.\nEnvía *menu* cuando quieras hacer un nuevo pedido."


def format_nothing_to_cancel() -> str:
    return "No tienes ningún pedido en curso para cancelar. Envía *menu* para ver nuestros productos."


def format_empty_cart_checkout() -> str:
    return "Tu carrito está vacío. Envía *menu* para agregar productos."


def format_error() -> str:
    return "❌ Hubo un error. Por favor intenta nuevamente."


# =============================================================================
# Status Notifications (sent from the dashboard)
# =============================================================================

STATUS_NOTIFICATIONS: Dict[str, str] = {
    OrderStatus.PREPARING.value: "👨‍🍳 ¡Tu pedido está siendo preparado!",
    OrderStatus.READY.value: "✅ ¡Tu pedido está listo! Ya puedes pasar a retirarlo.",
    OrderStatus.OUT_FOR_DELIVERY.value: "🚚 ¡Tu pedido está en camino!",
    OrderStatus.DELIVERED.value: "📦 Tu pedido fue entregado. ¡Que lo disfrutes!",
    OrderStatus.FINISHED.value: "🙌 Tu pedido fue finalizado. ¡Gracias por elegirnos!",
    OrderStatus.CANCELLED.value: "❌ Tu pedido fue cancelado. Si tienes dudas, responde a este mensaje.",
}


def format_status_notification(status: str):
    """Return the customer text for ``status``, or None for statuses without a template."""
    return STATUS_NOTIFICATIONS.get((status or "").strip().upper())
