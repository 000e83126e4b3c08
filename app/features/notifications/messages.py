"""Message formatters for Telegram notifications.

Every formatter is a pure function returning HTML text for ``parse_mode=HTML``.
Values that come from users (names, notes, titles) are escaped. Boss-group
variants are detailed; employee-group variants are short.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from decimal import Decimal
from html import escape
from typing import Any, Literal

FrequencyAlertType = Literal["too_frequent", "too_rare"]
InventoryAlertType = Literal["low_stock", "out_of_stock"]


def _money(value: Decimal | float | int) -> str:
    return f"${Decimal(str(value)):,.0f}"


def _when(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def _text(value: Any, fallback: str = "-") -> str:
    if value is None or value == "":
        return fallback
    return escape(str(value))


# =============================================================================
# Flight reports
# =============================================================================


def format_flight_report(
    title: str,
    lines: Iterable[str],
    status: Literal["success", "warning", "failure"] = "success",
    finished_at: datetime | None = None,
) -> str:
    """Format a generic task status block ("flight report").

    Args:
        title: Task name.
        lines: Result lines, one bullet each.
        status: Overall outcome; picks the header icon.
        finished_at: Completion time shown in the footer.

    Returns:
        HTML message text.
    """
    icon = {"success": "✈️", "warning": "⚠️", "failure": "❌"}[status]
    body = "\n".join(f"• {escape(line)}" for line in lines)
    parts = [f"{icon} <b>Flight report: {escape(title)}</b>", body]
    if finished_at is not None:
        parts.append(f"🕐 {_when(finished_at)}")
    return "\n".join(part for part in parts if part)


# =============================================================================
# Auth / attendance
# =============================================================================


def format_login(
    name: str,
    username: str,
    role: str,
    at: datetime,
    store_name: str | None = None,
    ip_address: str | None = None,
) -> str:
    """Boss-group message for a successful login."""
    return (
        "🔐 <b>Employee login</b>\n"
        f"👤 {_text(name)} ({_text(username)})\n"
        f"🎭 Role: {_text(role)}\n"
        f"🏪 Store: {_text(store_name)}\n"
        f"🌐 IP: {_text(ip_address)}\n"
        f"🕐 {_when(at)}"
    )


def format_attendance(
    name: str,
    store_name: str,
    action: Literal["check_in", "check_out"],
    at: datetime,
    status: str | None = None,
    distance_m: float | None = None,
    work_hours: float | None = None,
) -> tuple[str, str]:
    """Boss and employee messages for a clock-in or clock-out.

    Returns:
        Tuple of (boss message, employee message).
    """
    label = "Check-in" if action == "check_in" else "Check-out"
    lines = [
        f"🕐 <b>{label}</b>",
        f"👤 {_text(name)}",
        f"🏪 {_text(store_name)}",
        f"⏰ {_when(at)}",
    ]
    if status is not None:
        lines.append(f"📋 Status: {_text(status)}")
    if distance_m is not None:
        lines.append(f"📍 Distance: {distance_m:.0f} m")
    if work_hours is not None:
        lines.append(f"⌛ Hours worked: {work_hours:.2f}")

    greeting = "is at work" if action == "check_in" else "has left for the day"
    employee = f"👋 {_text(name)} {greeting} ({_text(store_name)})"
    return "\n".join(lines), employee


# =============================================================================
# Revenue
# =============================================================================


def format_revenue(
    store_name: str,
    record_date: str,
    recorded_by: str,
    bonus_type: str,
    income: Mapping[str, Decimal],
    expenses: Mapping[str, Decimal],
    total_income: Decimal,
    total_expense: Decimal,
    bonus_amount: Decimal,
    order_count: int | None = None,
    notes: str | None = None,
) -> tuple[str, str]:
    """Boss (detailed) and employee (brief) messages for a revenue record.

    Returns:
        Tuple of (boss message, employee message).
    """
    lines = [
        "💰 <b>Revenue submitted</b>",
        f"🏪 {_text(store_name)}  📅 {_text(record_date)}",
        f"👤 {_text(recorded_by)}",
        f"🎁 Bonus type: {_text(bonus_type)}",
    ]
    if order_count is not None:
        lines.append(f"🧾 Orders: {order_count}")
    lines.append("<b>Income</b>")
    lines.extend(f"  • {escape(k)}: {_money(v)}" for k, v in income.items() if v)
    lines.append("<b>Expenses</b>")
    lines.extend(f"  • {escape(k)}: {_money(v)}" for k, v in expenses.items() if v)
    lines.append(f"📈 Total income: {_money(total_income)}")
    lines.append(f"📉 Total expenses: {_money(total_expense)}")
    lines.append(f"💵 Net: {_money(total_income - total_expense)}")
    lines.append(f"🎉 Bonus: {_money(bonus_amount)}")
    if notes:
        lines.append(f"📝 {_text(notes)}")

    if bonus_amount > 0:
        outcome = f"🎉 Bonus today: {_money(bonus_amount)}"
    else:
        outcome = "No bonus today, keep going!"
    employee = f"💰 {_text(store_name)} revenue for {_text(record_date)} recorded\n{outcome}"
    return "\n".join(lines), employee


# =============================================================================
# Orders / inventory
# =============================================================================


def format_order(
    order_number: str,
    store_name: str,
    requested_by: str,
    items_by_supplier: Mapping[str, Sequence[Mapping[str, Any]]],
    total_cost: Decimal,
    delivery_date: str | None = None,
) -> tuple[str, str]:
    """Boss and employee messages for an order, grouped by supplier.

    Frequency anomalies found after the order are reported separately by
    ``format_order_frequency_alert``.

    Args:
        order_number: Order reference.
        store_name: Ordering store.
        requested_by: Employee name.
        items_by_supplier: Supplier name -> items with name, quantity, unit.
        total_cost: Order value.
        delivery_date: Requested delivery date.

    Returns:
        Tuple of (boss message, employee message).
    """
    lines = [
        "🛒 <b>Order placed</b>",
        f"🔖 {_text(order_number)}",
        f"🏪 {_text(store_name)}  👤 {_text(requested_by)}",
    ]
    if delivery_date:
        lines.append(f"🚚 Delivery: {_text(delivery_date)}")
    item_count = 0
    for supplier, items in items_by_supplier.items():
        lines.append(f"🏭 {_text(supplier)}")
        for item in items:
            item_count += 1
            lines.append(
                f"  • {_text(item['name'])} × {item['quantity']} {_text(item.get('unit'), '')}".rstrip()
            )
    lines.append(f"💵 Total: {_money(total_cost)}")

    employee = (
        f"🛒 {_text(store_name)} order {_text(order_number)} placed "
        f"({item_count} item(s), {len(items_by_supplier)} supplier(s))"
    )
    return "\n".join(lines), employee


def format_inventory_alert(
    alert_type: InventoryAlertType,
    product_name: str,
    current_stock: int,
    min_stock: int,
    unit: str | None = None,
    supplier: str | None = None,
    supplier_contact: str | None = None,
) -> tuple[str, str]:
    """Boss and employee messages for a low-stock or out-of-stock product.

    Returns:
        Tuple of (boss message, employee message).
    """
    icon, label = ("🚫", "Out of stock") if alert_type == "out_of_stock" else ("📉", "Low stock")
    boss = (
        f"{icon} <b>{label}</b>\n"
        f"📦 {_text(product_name)}\n"
        f"📊 Stock: {current_stock} {_text(unit, '')}\n"
        f"⚠️ Minimum: {min_stock}\n"
        f"🏭 Supplier: {_text(supplier)} {_text(supplier_contact, '')}\n"
        "💡 Contact the supplier to restock"
    )
    employee = (
        f"{icon} {_text(product_name)}: {label.lower()} ({current_stock} left)\n"
        "🏪 Request orders early"
    )
    return boss, employee


def format_order_frequency_alert(
    alert_type: FrequencyAlertType,
    product_name: str,
    message: str,
    threshold_days: int,
    store_name: str | None = None,
    supplier: str | None = None,
    current_stock: int | None = None,
    last_order_date: datetime | None = None,
) -> tuple[str, str]:
    """Boss and employee messages for an order-frequency anomaly.

    Returns:
        Tuple of (boss message, employee message).
    """
    if alert_type == "too_frequent":
        icon, label = "⚡", "Ordered too frequently"
        hint = "Orders for this product are unusually frequent; stock should be ample"
    else:
        icon, label = "⏰", "Not ordered for too long"
        hint = "This product may need restocking; request orders early"

    lines = [
        f"{icon} <b>{label}</b>",
        f"📦 {_text(product_name)}",
        f"🏪 {_text(store_name)}",
        f"📋 {_text(message)}",
        f"⚙️ Threshold: {threshold_days} day(s)",
    ]
    if last_order_date is not None:
        lines.append(f"📅 Last order: {_when(last_order_date)}")
    if current_stock is not None:
        lines.append(f"📊 Stock: {current_stock}")
    lines.append(f"🏭 Supplier: {_text(supplier)}")

    employee = f"{icon} {_text(product_name)}\n{hint}"
    return "\n".join(lines), employee


# =============================================================================
# Maintenance
# =============================================================================


def format_maintenance_request(
    request_number: str,
    title: str,
    location: str,
    urgency: str,
    requested_by: str,
    store_name: str | None = None,
    description: str | None = None,
) -> tuple[str, str]:
    """Boss and employee messages for a new maintenance request.

    Returns:
        Tuple of (boss message, employee message).
    """
    urgent = urgency in ("high", "urgent")
    icon = "🚨" if urgent else "🔧"
    boss = (
        f"{icon} <b>Maintenance request</b>\n"
        f"🔖 {_text(request_number)}\n"
        f"🏪 {_text(store_name)}  📍 {_text(location)}\n"
        f"🛠️ {_text(title)}\n"
        f"📝 {_text(description)}\n"
        f"⚡ Urgency: {_text(urgency)}\n"
        f"👤 {_text(requested_by)}"
    )
    employee = f"{icon} {_text(store_name)} maintenance request: {_text(title)}"
    return boss, employee


def format_maintenance_status(
    request_number: str,
    title: str,
    old_status: str,
    new_status: str,
    updated_by: str,
    note: str | None = None,
) -> str:
    """Boss-group message for a maintenance status change."""
    icon = {"in_progress": "🔨", "completed": "✅", "cancelled": "❌"}.get(new_status, "🔧")
    lines = [
        f"{icon} <b>Maintenance update</b>",
        f"🔖 {_text(request_number)}  🛠️ {_text(title)}",
        f"📋 {_text(old_status)} → {_text(new_status)}",
        f"👤 {_text(updated_by)}",
    ]
    if note:
        lines.append(f"📝 {_text(note)}")
    return "\n".join(lines)
