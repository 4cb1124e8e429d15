"""
Message rendering for notifications.

Pure functions that turn alerts, reports and billing events into
notification documents, Telegram Markdown and email bodies.
No IO. Time zone conversion only.
"""

from datetime import datetime
from html import escape
from typing import Any, Optional
from zoneinfo import ZoneInfo

from app.domain.alerts.entities import Alert, AlertAction
from app.domain.notifications.entities import (
    Notification,
    NotificationPriority,
    NotificationType,
    TargetUsers,
    target_group_for_service,
)

DISPLAY_TIMEZONE = ZoneInfo("America/Argentina/Buenos_Aires")
ANALYSIS_PREVIEW_LENGTH = 200

ACTION_URLS = {
    "TraderCall": "/alertas/trader-call",
    "SmartMoney": "/alertas/smart-money",
}


def alert_action_url(tipo: str, tab: str = "seguimiento") -> str:
    base = ACTION_URLS.get(tipo)
    if base is None:
        return "/alertas"
    return f"{base}?tab={tab}"


def _money(value: float) -> str:
    return f"${value:.2f}"


def format_local_datetime(value: datetime) -> str:
    """dd/mm/yyyy, HH:MM in Buenos Aires time."""
    return value.astimezone(DISPLAY_TIMEZONE).strftime("%d/%m/%Y, %H:%M")


def alert_price_display(alert: Alert, price_range: Optional[dict[str, float]] = None) -> str:
    if price_range:
        return f"{_money(price_range['min'])} - {_money(price_range['max'])}"
    if alert.entry_price_range is not None:
        return f"{_money(alert.entry_price_range.min)} - {_money(alert.entry_price_range.max)}"
    if alert.entry_price:
        return _money(alert.entry_price)
    if alert.current_price:
        return _money(alert.current_price)
    return "N/A"


def format_telegram_alert(alert: Alert, options: Optional[dict[str, Any]] = None) -> str:
    """Markdown message posted to the alert's Telegram channel."""
    options = options or {}
    action = AlertAction(options["action"]) if options.get("action") else alert.action
    emoji = "🟢" if action is AlertAction.BUY else "🔴"
    action_text = "COMPRA" if action is AlertAction.BUY else "VENTA"

    lines = [
        f"{emoji} *{action_text} {alert.symbol}*",
        "",
        f"💰 Precio: {alert_price_display(alert, options.get('price_range'))}",
        f"🎯 Take Profit: {_money(alert.take_profit)}",
        f"🛑 Stop Loss: {_money(alert.stop_loss)}",
    ]
    if options.get("liquidity_percentage"):
        lines.append(f"💧 Liquidez: {options['liquidity_percentage']}%")

    if alert.analysis:
        preview = alert.analysis
        if len(preview) > ANALYSIS_PREVIEW_LENGTH:
            preview = preview[:ANALYSIS_PREVIEW_LENGTH] + "..."
        lines.extend(["", "📊 Análisis:", preview])

    if options.get("message"):
        lines.extend(["", f"💬 {options['message']}"])

    lines.extend(["", f"📅 {format_local_datetime(alert.date)}"])
    return "\n".join(lines)


def build_alert_notification(
    alert: Alert, overrides: Optional[dict[str, Any]] = None
) -> Notification:
    """Global notification announcing an alert event to its service group."""
    overrides = overrides or {}
    price_range = overrides.get("price_range")
    if price_range:
        price_text = f"${price_range['min']} - ${price_range['max']}"
    elif alert.entry_price_range is not None:
        price_text = f"${alert.entry_price_range.min} - ${alert.entry_price_range.max}"
    elif overrides.get("price") is not None:
        price_text = f"${overrides['price']}"
    elif alert.entry_price:
        price_text = f"${alert.entry_price}"
    else:
        price_text = "N/A"

    action = overrides.get("action") or alert.action.value
    default_message = (
        f"{action} {alert.symbol} en {price_text}. "
        f"TP: ${alert.take_profit}, SL: ${alert.stop_loss}"
    )
    executed = any(
        overrides.get(key) is not None
        for key in ("sold_percentage", "profit_percentage", "profit_loss")
    )
    tab = "operaciones" if executed else "seguimiento"

    return Notification(
        title=overrides.get("title") or f"🚨 Nueva Alerta {alert.tipo.value} 🚨",
        message=overrides.get("message") or default_message,
        type=NotificationType.ALERTA,
        priority=NotificationPriority.ALTA,
        target_users=target_group_for_service(alert.tipo.value),
        icon="🚨",
        action_url=alert_action_url(alert.tipo.value, tab),
        action_text="Ver Alertas",
        is_automatic=True,
        related_alert_id=str(alert.id),
        metadata={
            "alert_symbol": alert.symbol,
            "alert_action": action,
            "alert_service": alert.tipo.value,
            "image_url": overrides.get("image_url"),
            "price_range": price_range,
            "participation_percentage": alert.participation_percentage,
            "liquidity_percentage": overrides.get("liquidity_percentage"),
            "sold_percentage": overrides.get("sold_percentage"),
            "profit_percentage": overrides.get("profit_percentage"),
            "profit_loss": overrides.get("profit_loss"),
            "automatic": True,
        },
    )


REPORT_CATEGORY_SERVICES = {
    "trader-call": "TraderCall",
    "smart-money": "SmartMoney",
    "cash-flow": "CashFlow",
}


def report_target_group(category: str) -> TargetUsers:
    service = REPORT_CATEGORY_SERVICES.get(category, "TraderCall")
    return target_group_for_service(service)


def build_report_notification(
    report_id: str, title: str, category: str, plain_content: str
) -> Notification:
    service = REPORT_CATEGORY_SERVICES.get(category, "TraderCall")
    full_title = f"📰 Nuevo Informe {service}: {title}"
    return Notification(
        title=full_title[:100],
        message=(
            f"Se ha publicado un nuevo informe de análisis para {service}. "
            f"{plain_content[:100]}..."
        ),
        type=NotificationType.ACTUALIZACION,
        priority=NotificationPriority.MEDIA,
        target_users=report_target_group(category),
        icon="📰",
        action_url=f"/reports/{report_id}",
        action_text="Leer Informe",
        is_automatic=True,
        metadata={"report_id": report_id, "report_title": title, "automatic": True},
    )


# ══════════════════════════════════════════════════════════════════════
# Email bodies
# ══════════════════════════════════════════════════════════════════════


def _email_shell(heading: str, body_html: str) -> str:
    return (
        "<!DOCTYPE html><html><body style=\"font-family:Arial,sans-serif;"
        "background:#f4f4f4;padding:24px\">"
        "<div style=\"max-width:600px;margin:0 auto;background:#ffffff;"
        "border-radius:8px;padding:24px\">"
        f"<h2 style=\"color:#111827\">{heading}</h2>"
        f"{body_html}"
        "</div></body></html>"
    )


def render_notification_email(
    notification: Notification, recipient_name: str, base_url: str
) -> tuple[str, str, str]:
    """Return (subject, html, text) for a notification email."""
    link = ""
    if notification.action_url:
        url = f"{base_url.rstrip('/')}{notification.action_url}"
        link = (
            f"<p><a href=\"{escape(url)}\" style=\"background:#3b82f6;color:#fff;"
            f"padding:10px 18px;border-radius:6px;text-decoration:none\">"
            f"{escape(notification.action_text or 'Ver más')}</a></p>"
        )
    image = notification.metadata.get("image_url")
    image_html = f"<p><img src=\"{escape(image)}\" style=\"max-width:100%\"></p>" if image else ""
    html = _email_shell(
        escape(notification.title),
        f"<p>Hola {escape(recipient_name)},</p>"
        f"<p>{escape(notification.message)}</p>{image_html}{link}",
    )
    text = f"Hola {recipient_name},\n\n{notification.message}\n"
    if notification.action_url:
        text += f"\n{base_url.rstrip('/')}{notification.action_url}\n"
    return notification.title, html, text


def render_subscription_confirmation(
    user_name: str,
    service: str,
    start_date: Optional[datetime],
    expiry_date: Optional[datetime],
    is_renewal: bool,
    is_trial: bool,
) -> tuple[str, str, str]:
    if is_trial:
        subject = f"Tu prueba de {service} está activa"
        intro = f"Tu prueba de 30 días de {service} ya está activa."
    elif is_renewal:
        subject = f"Renovación de {service} confirmada"
        intro = f"Renovaste tu suscripción a {service}. El nuevo período se suma al actual."
    else:
        subject = f"Suscripción a {service} confirmada"
        intro = f"Tu suscripción a {service} ya está activa."

    dates = ""
    if start_date and expiry_date:
        dates = (
            f"Período: {format_local_datetime(start_date)} → "
            f"{format_local_datetime(expiry_date)}"
        )
    html = _email_shell(
        escape(subject),
        f"<p>Hola {escape(user_name)},</p><p>{escape(intro)}</p><p>{escape(dates)}</p>",
    )
    text = f"Hola {user_name},\n\n{intro}\n{dates}\n"
    return subject, html, text


def render_admin_new_subscriber(
    user_email: str,
    user_name: str,
    service: str,
    amount: float,
    currency: str,
    payment_id: str,
    expiry_date: Optional[datetime],
) -> tuple[str, str, str]:
    subject = f"Nuevo suscriptor {service}: {user_email}"
    expiry = format_local_datetime(expiry_date) if expiry_date else "-"
    rows = [
        ("Usuario", f"{user_name} <{user_email}>"),
        ("Servicio", service),
        ("Monto", f"{amount:.2f} {currency}"),
        ("Pago", payment_id),
        ("Vence", expiry),
    ]
    html_rows = "".join(
        f"<tr><td><b>{escape(k)}</b></td><td>{escape(v)}</td></tr>" for k, v in rows
    )
    html = _email_shell(escape(subject), f"<table>{html_rows}</table>")
    text = "\n".join(f"{k}: {v}" for k, v in rows)
    return subject, html, text


# ══════════════════════════════════════════════════════════════════════
# Subscription reminders
# ══════════════════════════════════════════════════════════════════════

SERVICE_DISPLAY_NAMES = {
    "TraderCall": "Trader Call",
    "SmartMoney": "Smart Money",
    "CashFlow": "Cash Flow",
}


def service_display_name(service: str) -> str:
    return SERVICE_DISPLAY_NAMES.get(service, service)


def _renew_link(base_url: str, service: str) -> tuple[str, str]:
    url = f"{base_url.rstrip('/')}{ACTION_URLS.get(service, '/alertas')}"
    html = (
        f"<p><a href=\"{escape(url)}\" style=\"background:#3b82f6;color:#fff;"
        f"padding:10px 18px;border-radius:6px;text-decoration:none\">Renovar ahora</a></p>"
    )
    return url, html


def render_subscription_expiring(
    user_name: str, service: str, days_left: int, expiry_date: datetime, base_url: str
) -> tuple[str, str, str]:
    """Warning sent a few days before a subscription lapses."""
    name = service_display_name(service)
    days = f"{days_left} día" if days_left == 1 else f"{days_left} días"
    subject = f"⚠️ Tu suscripción de {name} vence en {days}"
    intro = (
        f"Tu suscripción a {name} vence el {format_local_datetime(expiry_date)}. "
        "Renovala para no perder el acceso a las alertas."
    )
    url, link = _renew_link(base_url, service)
    html = _email_shell(
        escape(subject), f"<p>Hola {escape(user_name)},</p><p>{escape(intro)}</p>{link}"
    )
    text = f"Hola {user_name},\n\n{intro}\n\n{url}\n"
    return subject, html, text


def render_subscription_expired(
    user_name: str, service: str, base_url: str
) -> tuple[str, str, str]:
    name = service_display_name(service)
    subject = f"❌ Tu suscripción de {name} ha expirado"
    intro = (
        f"Tu suscripción a {name} expiró y ya no recibirás sus alertas. "
        "Podés renovarla en cualquier momento."
    )
    url, link = _renew_link(base_url, service)
    html = _email_shell(
        escape(subject), f"<p>Hola {escape(user_name)},</p><p>{escape(intro)}</p>{link}"
    )
    text = f"Hola {user_name},\n\n{intro}\n\n{url}\n"
    return subject, html, text


# ══════════════════════════════════════════════════════════════════════
# Market close
# ══════════════════════════════════════════════════════════════════════

NO_MARKET_ACTIVITY_MESSAGE = (
    "👋🏻 ¡Buenas a todos! ¿Cómo están? Hoy no tenemos activos para comprar ni para "
    "vender. Por lo que mantenemos la cartera tal cual como la tenemos hasta ahora."
)


def format_telegram_market_close(symbol: str, price: float, profit: Optional[float]) -> str:
    """One-line channel post; the result is omitted for dismissed alerts."""
    message = f"📊 Cierre de mercado: {symbol} cerró a {_money(price)}."
    if profit is not None:
        sign = "+" if profit >= 0 else ""
        message += f" Resultado: {sign}{profit:.2f}%"
    return message


def render_market_close_email(
    alert: Alert, close_price: float, profit: Optional[float], dismissed: bool
) -> tuple[str, str, str]:
    """Summary mailed to the admin who published the alert."""
    subject = f"🔔 Cierre de Mercado - {alert.symbol} - {alert.tipo.value}"
    outcome = "Desestimada (precio fuera de rango)" if dismissed else "Precio final fijado"
    rows = [
        ("Símbolo", alert.symbol),
        ("Acción", alert.action.value),
        ("Precio de cierre", _money(close_price)),
        ("Entrada", alert_price_display(alert)),
        ("Resultado", "-" if profit is None else f"{profit:.2f}%"),
        ("Estado", outcome),
    ]
    html_rows = "".join(
        f"<tr><td><b>{escape(k)}</b></td><td>{escape(v)}</td></tr>" for k, v in rows
    )
    html = _email_shell(escape(subject), f"<table>{html_rows}</table>")
    text = "\n".join(f"{k}: {v}" for k, v in rows)
    return subject, html, text


# ══════════════════════════════════════════════════════════════════════
# Training reminders
# ══════════════════════════════════════════════════════════════════════


def render_training_reminder(
    student_name: str,
    training_title: str,
    month_name: str,
    year: int,
    class_title: str,
    class_date: datetime,
    start_time: str,
    meeting_link: Optional[str],
) -> tuple[str, str, str]:
    """Reminder for one upcoming class.

    Args:
        student_name: Greeting name.
        training_title: Title of the monthly training.
        month_name: Spanish month name of the training.
        year: Year of the training.
        class_title: Title of the upcoming class.
        class_date: Start of the class; shown in the display timezone.
        start_time: Start time as entered by the admin.
        meeting_link: Video call link, when there is one.

    Returns:
        Tuple of subject, HTML body and plain-text body.
    """
    subject = f"📚 Recordatorio: Clases de {training_title} - {month_name} {year}"
    when = f"{class_date.astimezone(DISPLAY_TIMEZONE).strftime('%d/%m/%Y')} {start_time}".strip()
    intro = f"Te recordamos la próxima clase \"{class_title}\" el {when}."
    link_html = ""
    link_text = ""
    if meeting_link:
        link_html = (
            f"<p><a href=\"{escape(meeting_link)}\" style=\"background:#3b82f6;color:#fff;"
            f"padding:10px 18px;border-radius:6px;text-decoration:none\">Unirse a la clase</a></p>"
        )
        link_text = f"\n\nLink de la clase: {meeting_link}"
    html = _email_shell(
        escape(subject),
        f"<p>Hola {escape(student_name)},</p><p>{escape(intro)}</p>{link_html}",
    )
    text = f"Hola {student_name},\n\n{intro}{link_text}\n"
    return subject, html, text
