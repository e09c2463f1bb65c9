"""
LINE flex message bubbles for tenant notifications.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

Number = Union[Decimal, int, float]

PRIMARY_COLOR = "#1DB446"
DANGER_COLOR = "#FF6B6B"
WARNING_COLOR = "#F5A623"
MUTED_COLOR = "#666666"
TEXT_COLOR = "#333333"


def format_money(amount: Optional[Number], currency: str = "THB") -> str:
    return f"{Decimal(str(amount or 0)):,.2f} {currency}"


def format_day(value: Union[date, str]) -> str:
    if isinstance(value, date):
        return value.strftime("%d %b %Y")
    return value


def _text(text: str, **style: Any) -> Dict[str, Any]:
    return {"type": "text", "text": text, **style}


def _row(label: str, value: str, bold: bool = False, color: str = TEXT_COLOR) -> Dict[str, Any]:
    size = "md" if bold else "sm"
    value_style: Dict[str, Any] = {"size": size, "color": color, "align": "end"}
    if bold:
        value_style["weight"] = "bold"
    return {
        "type": "box",
        "layout": "horizontal",
        "contents": [
            _text(label, size=size, color=TEXT_COLOR if bold else MUTED_COLOR, flex=1,
                  **({"weight": "bold"} if bold else {})),
            _text(value, **value_style),
        ],
    }


def _header(title: str, subtitle: str, background: str) -> Dict[str, Any]:
    return {
        "type": "box",
        "layout": "vertical",
        "contents": [
            _text(title, weight="bold", size="xl", color="#FFFFFF"),
            _text(subtitle, color="#FFFFFFCC", size="sm", margin="md"),
        ],
        "backgroundColor": background,
        "paddingAll": "20px",
    }


def _postback_button(label: str, data: str, primary: bool = True, color: Optional[str] = None) -> Dict[str, Any]:
    button: Dict[str, Any] = {
        "type": "button",
        "style": "primary" if primary else "secondary",
        "height": "sm",
        "action": {"type": "postback", "label": label, "data": data},
    }
    if color:
        button["color"] = color
    return button


def _body(contents: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "type": "box",
        "layout": "vertical",
        "contents": [
            {"type": "box", "layout": "vertical", "margin": "md", "spacing": "sm", "contents": contents},
        ],
    }


def bill_notification(
    bill_id: str,
    billing_month: Union[date, str],
    room_number: str,
    rent_amount: Number,
    water_amount: Number,
    electricity_amount: Number,
    total_amount: Number,
    due_date: Union[date, str],
    currency: str = "THB",
) -> Dict[str, Any]:
    """Monthly bill summary with a rent/water/electricity breakdown."""
    month_label = billing_month.strftime("%B %Y") if isinstance(billing_month, date) else billing_month
    return {
        "type": "bubble",
        "header": _header("Monthly bill", month_label, PRIMARY_COLOR),
        "body": _body([
            _row("Room", room_number, color=TEXT_COLOR),
            {"type": "separator", "margin": "md"},
            _row("Rent", format_money(rent_amount, currency)),
            _row("Water", format_money(water_amount, currency)),
            _row("Electricity", format_money(electricity_amount, currency)),
            {"type": "separator", "margin": "md"},
            _row("Total", format_money(total_amount, currency), bold=True, color=PRIMARY_COLOR),
            _row("Due date", format_day(due_date), color=DANGER_COLOR),
        ]),
        "footer": {
            "type": "box",
            "layout": "vertical",
            "spacing": "sm",
            "contents": [
                _postback_button("View details", f"action=view_bill&bill_id={bill_id}", color=PRIMARY_COLOR),
                _postback_button("All bills", "action=list_bills", primary=False),
            ],
            "flex": 0,
        },
    }


def bill_overdue(
    bill_id: str,
    bill_number: str,
    remaining_amount: Number,
    days_overdue: int,
    due_date: Union[date, str],
    currency: str = "THB",
) -> Dict[str, Any]:
    """Overdue reminder showing the outstanding balance."""
    return {
        "type": "bubble",
        "header": _header("Payment overdue", bill_number, DANGER_COLOR),
        "body": _body([
            _row("Due date", format_day(due_date)),
            _row("Days overdue", str(days_overdue), color=DANGER_COLOR),
            {"type": "separator", "margin": "md"},
            _row("Outstanding", format_money(remaining_amount, currency), bold=True, color=DANGER_COLOR),
            _text("Please settle this bill as soon as possible.", size="xs", color=MUTED_COLOR,
                  wrap=True, margin="lg"),
        ]),
        "footer": {
            "type": "box",
            "layout": "vertical",
            "contents": [
                _postback_button("Pay now", f"action=pay_bill&bill_id={bill_id}", color=DANGER_COLOR),
            ],
        },
    }


def maintenance_update(request_id: Optional[str], title: Optional[str], status: Optional[str]) -> Dict[str, Any]:
    return {
        "type": "bubble",
        "header": _header("Maintenance update", title or "Maintenance request", WARNING_COLOR),
        "body": _body([
            _row("Request", request_id or "-"),
            _row("Status", (status or "updated").replace("_", " ").capitalize(), bold=True, color=WARNING_COLOR),
        ]),
    }


def text_bubble(title: str, message: str) -> Dict[str, Any]:
    return {
        "type": "bubble",
        "body": {
            "type": "box",
            "layout": "vertical",
            "contents": [
                _text(title, weight="bold", size="xl"),
                _text(message, wrap=True, margin="md"),
            ],
        },
    }
