"""
Supplier order notifications.

The order engine only needs ``Notifier.send(order, recipients)``; the
production implementation posts to the SendGrid v3 ``mail/send`` API.
Provider error messages are surfaced verbatim through ``NotificationFailed``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from html import escape
from typing import Iterable, List, Mapping, Optional

import httpx

from foodyflow.core.config import settings
from foodyflow.core.errors import NotificationFailed
from foodyflow.models.order import Order

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    """Outcome for a single recipient."""
    email: str
    success: bool
    error: Optional[str] = None
    sent_at: Optional[datetime] = None


@dataclass
class NotificationResult:
    """Result of notifying the suppliers of one order."""
    message: str
    success: bool = True
    results: List[DeliveryResult] = field(default_factory=list)


class Notifier(ABC):
    """Sends an order summary to supplier addresses."""

    @abstractmethod
    def send(
        self,
        order: Order,
        recipients: Iterable[str],
        product_names: Optional[Mapping[int, str]] = None,
    ) -> NotificationResult:
        """Deliver the order; raise ``NotificationFailed`` if nothing was sent."""


def render_order_text(order: Order, product_names: Optional[Mapping[int, str]] = None) -> str:
    names = product_names or {}
    lines = [
        f"New order #{order.id}",
        f"Order date: {order.order_date.isoformat()}",
        f"Supplier: {order.supplier}",
        f"Status: {order.status.value}",
    ]
    if order.operator_name:
        lines.append(f"Operator: {order.operator_name}")
    lines.append("")
    for item in order.items:
        name = names.get(item.product_id, f"Product {item.product_id}")
        lines.append(
            f"- {name}: {item.quantity} x {item.unit_price:.2f} = {item.total_price:.2f}"
        )
    lines.append("")
    lines.append(f"Order total: {order.total_amount:.2f}")
    if order.notes:
        lines.append(f"Notes: {order.notes}")
    return "\n".join(lines)


def render_order_html(order: Order, product_names: Optional[Mapping[int, str]] = None) -> str:
    names = product_names or {}
    total_items = sum((item.quantity for item in order.items), 0)
    rows = "".join(
        f"""
        <tr>
            <td>{escape(names.get(item.product_id, f"Product {item.product_id}"))}</td>
            <td style="text-align: center;">{item.quantity}</td>
            <td style="text-align: right;">{item.unit_price:.2f}</td>
            <td style="text-align: right; font-weight: bold;">{item.total_price:.2f}</td>
        </tr>"""
        for item in order.items
    )
    operator = (
        f"<p><strong>Operator:</strong> {escape(order.operator_name)}</p>"
        if order.operator_name else ""
    )
    notes = (
        f'<div class="notes"><strong>Notes:</strong> {escape(order.notes)}</div>'
        if order.notes else ""
    )
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: Arial, sans-serif; padding: 20px; }}
            table {{ width: 100%; border-collapse: collapse; }}
            th, td {{ padding: 10px; border-bottom: 1px solid #e0e0e0; }}
            .notes {{ margin-top: 20px; padding: 15px; background-color: #fff3cd; }}
            .timestamp {{ color: #666; font-size: 12px; }}
        </style>
    </head>
    <body>
        <h2>New order #{order.id}</h2>
        <p><strong>Order date:</strong> {order.order_date.isoformat()}</p>
        <p><strong>Supplier:</strong> {escape(order.supplier)}</p>
        <p><strong>Status:</strong> {order.status.value.capitalize()}</p>
        {operator}
        <table>
            <thead>
                <tr><th>Product</th><th>Quantity</th><th>Unit price</th><th>Total</th></tr>
            </thead>
            <tbody>{rows}
            </tbody>
        </table>
        <p>Total items: {total_items}</p>
        <h3>Order total: {order.total_amount:.2f}</h3>
        {notes}
        <p class="timestamp">Sent at: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')}</p>
    </body>
    </html>
    """


def _provider_error(response: httpx.Response) -> Optional[str]:
    """Extract ``errors[].message`` from a SendGrid error body."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    messages = [
        e.get("message") for e in body.get("errors") or []
        if isinstance(e, dict) and e.get("message")
    ]
    return "; ".join(messages) or None


class SendGridNotifier(Notifier):
    """Notifier backed by the SendGrid v3 HTTP API."""

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = "https://api.sendgrid.com/v3/mail/send",
        from_email: str = "ordini@foodyflow.app",
        reply_to: Optional[str] = None,
        timeout: float = 15.0,
        client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.from_email = from_email
        self.reply_to = reply_to
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def send(
        self,
        order: Order,
        recipients: Iterable[str],
        product_names: Optional[Mapping[int, str]] = None,
    ) -> NotificationResult:
        recipients = list(dict.fromkeys(recipients))
        if not self.api_key:
            raise NotificationFailed("SendGrid API key not configured")
        if not recipients:
            raise NotificationFailed("No supplier email found for this order")

        subject = f"New order #{order.id} - {order.supplier}"
        text_body = render_order_text(order, product_names)
        html_body = render_order_html(order, product_names)

        results = [
            self._send_one(address, subject, text_body, html_body) for address in recipients
        ]
        sent = [r for r in results if r.success]
        if not sent:
            raise NotificationFailed(results[0].error)

        if len(sent) == len(results):
            message = f"Order email sent to {len(sent)} supplier{'s' if len(sent) > 1 else ''}"
        else:
            message = f"{len(sent)}/{len(results)} order emails sent"
        logger.info(f"Order {order.id} notification: {message}")
        return NotificationResult(message=message, success=len(sent) == len(results), results=results)

    def _send_one(self, to: str, subject: str, body: str, html_body: str) -> DeliveryResult:
        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.from_email},
            "subject": subject,
            "content": [
                {"type": "text/plain", "value": body},
                {"type": "text/html", "value": html_body},
            ],
        }
        if self.reply_to:
            payload["reply_to"] = {"email": self.reply_to}

        try:
            response = self._get_client().post(
                self.api_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
        except httpx.RequestError as e:
            logger.error(f"SendGrid request to {to} failed: {e}")
            return DeliveryResult(email=to, success=False, error=None)

        if response.status_code in (200, 202):
            logger.info(f"Order email sent to {to}")
            return DeliveryResult(email=to, success=True, sent_at=datetime.now(timezone.utc))

        error = _provider_error(response)
        logger.warning(f"SendGrid rejected email to {to}: {response.status_code} {error or ''}")
        return DeliveryResult(email=to, success=False, error=error)


def get_notifier() -> Notifier:
    """FastAPI dependency returning the configured notifier."""
    return SendGridNotifier(
        api_key=settings.sendgrid_api_key,
        api_url=settings.sendgrid_api_url,
        from_email=settings.order_email_from,
        reply_to=settings.order_email_reply_to,
        timeout=settings.sendgrid_timeout_seconds,
    )
