"""
Order Export Manager with Concurrency Control

Process-safe file output for the staff console's bulk actions:
- CSV export of selected orders (pandas, appended under a file lock)
- Plain-text kitchen tickets written to a print spool directory

Used inline by the console or from the Celery worker.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from filelock import FileLock, Timeout

logger = logging.getLogger(__name__)


class OrderExportManager:
    """Process-safe CSV / ticket writer."""

    ORDER_COLUMNS = [
        "order_id",
        "order_number",
        "table_number",
        "customer_name",
        "source",
        "status",
        "priority",
        "payment_status",
        "items",
        "special_instructions",
        "total_amount",
        "order_time",
        "assigned_staff",
        "is_overdue",
        "exported_at",
    ]

    def __init__(self, data_directory: str = "data", lock_timeout: int = 30):
        self.data_dir = Path(data_directory)
        self.lock_timeout = lock_timeout
        self.csv_file = self.data_dir / "orders_export.csv"
        self.csv_lock = self.data_dir / "orders_export.csv.lock"
        self.spool_dir = self.data_dir / "tickets"

    def _ensure_dirs(self) -> None:
        """Create output directories if needed."""
        if not self.spool_dir.exists():
            self.spool_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created export directory: {self.spool_dir}")

    def _load_or_create_df(self) -> pd.DataFrame:
        """Load the existing export or start an empty one."""
        if self.csv_file.exists() and self.csv_file.stat().st_size > 0:
            return pd.read_csv(self.csv_file, dtype={"order_number": str, "table_number": str})
        return pd.DataFrame(columns=self.ORDER_COLUMNS)

    @staticmethod
    def format_items(items: list[dict[str, Any]]) -> str:
        return "; ".join(f"{i.get('quantity', 1)}x {i.get('name')}" for i in items or [])

    def export_order(self, order_data: dict[str, Any]) -> dict[str, Any]:
        """Append one order (as produced by ``Order.model_dump(mode="json")``) to the CSV."""
        order_id = order_data.get("order_id", "unknown")
        result = {
            "success": False,
            "message": "",
            "order_id": order_id,
            "exported_at": None,
        }

        try:
            self._ensure_dirs()
            with FileLock(str(self.csv_lock), timeout=self.lock_timeout):
                logger.debug(f"Lock acquired for order {order_id}")

                df = self._load_or_create_df()

                export_time = datetime.now().isoformat()
                new_row = {
                    "order_id": order_id,
                    "order_number": order_data.get("order_number"),
                    "table_number": order_data.get("table_number"),
                    "customer_name": order_data.get("customer_name"),
                    "source": order_data.get("source"),
                    "status": order_data.get("status"),
                    "priority": order_data.get("priority"),
                    "payment_status": order_data.get("payment_status"),
                    "items": self.format_items(order_data.get("items", [])),
                    "special_instructions": order_data.get("special_instructions"),
                    "total_amount": order_data.get("total_amount"),
                    "order_time": order_data.get("order_time"),
                    "assigned_staff": order_data.get("assigned_staff"),
                    "is_overdue": order_data.get("is_overdue", False),
                    "exported_at": export_time,
                }

                if df.empty:
                    df = pd.DataFrame([new_row], columns=self.ORDER_COLUMNS)
                else:
                    df = pd.concat([df, pd.DataFrame([new_row])], ignore_index=True)
                df.to_csv(self.csv_file, index=False)

                logger.info(f"Order {order_id} exported to CSV")

                result["success"] = True
                result["message"] = f"Order {order_id} exported"
                result["exported_at"] = export_time

        except Timeout:
            result["message"] = f"Lock timeout ({self.lock_timeout}s)"
            logger.error(f"Lock timeout for order {order_id}")

        except Exception as e:
            result["message"] = str(e)
            logger.exception(f"Error exporting order {order_id}")

        return result

    def render_ticket(self, order_data: dict[str, Any]) -> str:
        lines = [
            f"ORDER #{order_data.get('order_number')}",
            f"Table: {order_data.get('table_number') or '-'}    Source: {order_data.get('source')}",
            f"Priority: {order_data.get('priority')}    Status: {order_data.get('status')}",
            "-" * 32,
        ]
        for item in order_data.get("items", []):
            lines.append(f"{item.get('quantity', 1):>2} x {item.get('name')}")
            if item.get("special_requests"):
                lines.append(f"     * {item['special_requests']}")
        if order_data.get("special_instructions"):
            lines.append("-" * 32)
            lines.append(f"NOTE: {order_data['special_instructions']}")
        lines.append("-" * 32)
        lines.append(f"Printed {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        return "\n".join(lines) + "\n"

    def print_ticket(self, order_data: dict[str, Any]) -> dict[str, Any]:
        """Write a kitchen ticket into the spool directory."""
        order_id = order_data.get("order_id", "unknown")
        result = {
            "success": False,
            "message": "",
            "order_id": order_id,
            "ticket_path": None,
        }

        try:
            self._ensure_dirs()
            stamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
            ticket_path = self.spool_dir / f"order_{order_data.get('order_number', order_id)}_{stamp}.txt"
            ticket_path.write_text(self.render_ticket(order_data), encoding="utf-8")

            logger.info(f"Ticket for order {order_id} spooled: {ticket_path.name}")
            result["success"] = True
            result["message"] = f"Order {order_id} sent to printer"
            result["ticket_path"] = str(ticket_path)

        except OSError as e:
            result["message"] = str(e)
            logger.exception(f"Error printing order {order_id}")

        return result

    def clear_exports(self) -> bool:
        """Remove the CSV export (for testing/reset purposes)."""
        try:
            with FileLock(str(self.csv_lock), timeout=self.lock_timeout):
                if self.csv_file.exists():
                    self.csv_file.unlink()
            logger.info("CSV export cleared")
            return True
        except (Timeout, OSError) as e:
            logger.error(f"Error clearing CSV export: {e}")
            return False
