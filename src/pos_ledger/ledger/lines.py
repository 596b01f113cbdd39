"""Ledger tables and the flat line records stored in them.

Three physically separate tables hold the lines of an import: sale lines,
return lines and gift-card lines. Every line is a denormalized copy of its
ticket's header fields plus either one item or one gift-card amount, tagged
with the tenant it belongs to.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pos_ledger.types import ParsedTicket, TenantContext

SALE_TABLE = "ticket_history"
RETURN_TABLE = "return_tickets"
GIFT_CARD_TABLE = "gift_card_tickets"

LEDGER_TABLES: tuple[str, ...] = (SALE_TABLE, RETURN_TABLE, GIFT_CARD_TABLE)

# line_type discriminant used once the tables are read back into one frame
LINE_TYPES: dict[str, str] = {
    SALE_TABLE: "sale",
    RETURN_TABLE: "return",
    GIFT_CARD_TABLE: "gift_card",
}

TENANT_COLUMNS = ["org_id", "franchise_id"]
TICKET_COLUMNS = [
    "ticket_number",
    "store_id",
    "sale_date",
    "sales_rep",
    "transaction_total",
    "gross_profit_percent",
]
ITEM_COLUMNS = ["item_number", "product_name", "qty_sold", "selling_unit"]
GIFT_CARD_COLUMNS = ["giftcard_amount", "product_name"]

TABLE_COLUMNS: dict[str, list[str]] = {
    SALE_TABLE: ["line_id", *TENANT_COLUMNS, *TICKET_COLUMNS, *ITEM_COLUMNS],
    RETURN_TABLE: ["line_id", *TENANT_COLUMNS, *TICKET_COLUMNS, *ITEM_COLUMNS],
    GIFT_CARD_TABLE: ["line_id", *TENANT_COLUMNS, *TICKET_COLUMNS, *GIFT_CARD_COLUMNS],
}

NUMERIC_COLUMNS = ["transaction_total", "gross_profit_percent", "qty_sold", "giftcard_amount"]

SALE_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

GIFT_CARD_PURCHASE = "Gift Card Purchase"


@dataclass(frozen=True)
class LedgerLine:
    """One line bound for a ledger table.

    Sale and return lines carry the item fields; gift-card lines carry
    ``giftcard_amount``. Header fields are copied from the ticket.
    """

    table: str
    ticket_number: str
    store_id: str
    sale_date: datetime
    sales_rep: str | None
    transaction_total: float | None
    gross_profit_percent: float | None
    product_name: str
    item_number: str | None = None
    qty_sold: int | None = None
    selling_unit: str | None = None
    giftcard_amount: float | None = None

    @classmethod
    def for_item(cls, table: str, ticket: ParsedTicket, **fields: Any) -> LedgerLine:
        return cls(
            table=table,
            ticket_number=ticket.ticket_number,
            store_id=ticket.store_id,
            sale_date=ticket.sale_date,
            sales_rep=ticket.sales_rep,
            transaction_total=ticket.transaction_total,
            gross_profit_percent=ticket.gross_profit_percent,
            **fields,
        )

    def to_record(self, tenant: TenantContext) -> dict[str, Any]:
        """Flat record with exactly the columns of this line's table (minus ``line_id``)."""
        values = {
            "org_id": tenant.org_id,
            "franchise_id": tenant.franchise_id,
            "ticket_number": self.ticket_number,
            "store_id": self.store_id,
            "sale_date": self.sale_date.strftime(SALE_DATE_FORMAT),
            "sales_rep": self.sales_rep,
            "transaction_total": self.transaction_total,
            "gross_profit_percent": self.gross_profit_percent,
            "item_number": self.item_number,
            "product_name": self.product_name,
            "qty_sold": self.qty_sold,
            "selling_unit": self.selling_unit,
            "giftcard_amount": self.giftcard_amount,
        }
        return {c: values[c] for c in TABLE_COLUMNS[self.table] if c != "line_id"}
