"""
Supabase handlers - Domain modules backed by hosted PostgREST tables.
Uses the Supabase REST API directly over httpx.
"""
import httpx
from typing import Optional, Dict, Any, List, Tuple
from command_center.exceptions import HandlerError
from command_center.handlers.base import BaseHandler, HandlerResult
import structlog

logger = structlog.get_logger()

DEFAULT_LIST_LIMIT = 20
# Columns that identify who ran the command, never used as row filters
AUDIT_COLUMNS = {"created_by"}


def to_row(parameters: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten resolved command parameters into table columns.

    Money slots become '<slot>' and 'currency', person slots become
    '<slot>_name', and the acting user is stored as 'created_by'.
    """
    row: Dict[str, Any] = {}
    for key, value in parameters.items():
        if key == "acting_user":
            row["created_by"] = value
        elif isinstance(value, dict) and "amount" in value:
            row[key] = value["amount"]
            row["currency"] = value.get("currency")
        elif isinstance(value, dict) and "full_name" in value:
            column = "full_name" if key == "name" else f"{key}_name"
            row[column] = value["full_name"]
        else:
            row[key] = value
    return row


class SupabaseTableHandler(BaseHandler):
    """Create/list/update/delete rows of one Supabase table"""

    def __init__(
        self,
        module: str,
        table: str,
        url: str,
        api_key: str,
        description: str = "",
        timeout: float = 10.0,
    ):
        super().__init__(module=module, name=f"Supabase {table}", description=description)
        self.table = table
        self.rest_url = f"{url.rstrip('/')}/rest/v1/{table}"
        self.api_key = api_key
        self.timeout = timeout

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    async def handle(self, action: str, parameters: Dict[str, Any]) -> HandlerResult:
        row = to_row(parameters)
        if action in ("create", "send"):
            return await self.create(row)
        if action == "list":
            return await self.list_rows()
        if action == "update":
            return await self.update(row, {"status": "completed"})
        if action == "delete":
            return await self.delete(row)
        raise HandlerError(f"Action '{action}' is not supported by {self.table}")

    async def create(self, row: Dict[str, Any]) -> HandlerResult:
        rows = await self._request("POST", json=row)
        logger.info("Row created", table=self.table)
        return HandlerResult(message=f"{self.table} kaydı oluşturuldu", data=rows[0] if rows else row)

    async def list_rows(self, limit: int = DEFAULT_LIST_LIMIT) -> HandlerResult:
        rows = await self._request(
            "GET",
            params={"select": "*", "order": "created_at.desc", "limit": str(limit)},
        )
        return HandlerResult(message=f"{len(rows)} {self.table} kaydı bulundu", data=rows)

    async def update(self, row: Dict[str, Any], changes: Dict[str, Any]) -> HandlerResult:
        filters = self._filters(row)
        if not filters:
            raise HandlerError(f"Refusing to update {self.table} without a filter")
        rows = await self._request("PATCH", params=filters, json=changes)
        logger.info("Rows updated", table=self.table, count=len(rows))
        return HandlerResult(message=f"{len(rows)} {self.table} kaydı güncellendi", data=rows)

    async def delete(self, row: Dict[str, Any]) -> HandlerResult:
        filters = self._filters(row)
        if not filters:
            raise HandlerError(f"Refusing to delete from {self.table} without a filter")
        rows = await self._request("DELETE", params=filters)
        logger.info("Rows deleted", table=self.table, count=len(rows))
        return HandlerResult(message=f"{len(rows)} {self.table} kaydı silindi", data=rows)

    def _filters(self, row: Dict[str, Any]) -> Dict[str, str]:
        """PostgREST equality filters for the identifying columns of a row"""
        return {
            column: f"eq.{value}"
            for column, value in row.items()
            if column not in AUDIT_COLUMNS and value is not None
        }

    async def _request(
        self,
        method: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        async with httpx.AsyncClient() as client:
            response = await client.request(
                method,
                self.rest_url,
                params=params,
                json=json,
                headers=self.headers,
                timeout=self.timeout,
            )

            if response.status_code >= 400:
                error_msg = _error_message(response)
                logger.error("Supabase request failed", table=self.table, method=method, status=response.status_code)
                raise HandlerError(f"{self.table} request failed: {error_msg}", status_code=response.status_code)

            if not response.text:
                return []
            data = response.json()
            return data if isinstance(data, list) else [data]


class SupabaseReportHandler(SupabaseTableHandler):
    """Aggregates donation rows into a summary report"""

    def __init__(self, url: str, api_key: str, source_table: str = "donations", timeout: float = 10.0):
        super().__init__(
            module="reports",
            table=source_table,
            url=url,
            api_key=api_key,
            description="Donation summary reports",
            timeout=timeout,
        )
        self.name = "Supabase reports"

    async def handle(self, action: str, parameters: Dict[str, Any]) -> HandlerResult:
        if action != "report":
            raise HandlerError(f"Action '{action}' is not supported by reports")
        rows = await self._request("GET", params={"select": "amount,currency,created_at"})
        totals, count = summarize_amounts(rows)
        return HandlerResult(
            message=f"{count} bağış raporlandı",
            data={"count": count, "totals": totals},
        )


def summarize_amounts(rows: List[Dict[str, Any]]) -> Tuple[Dict[str, float], int]:
    """Sum amounts per currency, skipping rows without an amount"""
    totals: Dict[str, float] = {}
    count = 0
    for row in rows:
        amount = row.get("amount")
        if amount is None:
            continue
        currency = row.get("currency") or "TL"
        totals[currency] = totals.get(currency, 0.0) + float(amount)
        count += 1
    return totals, count


def _error_message(response: httpx.Response) -> str:
    """PostgREST error message, falling back to the raw body (e.g. a gateway HTML page)"""
    try:
        error_data = response.json() if response.text else {}
    except ValueError:
        error_data = {}
    if not isinstance(error_data, dict):
        error_data = {}
    return error_data.get("message") or error_data.get("hint") or response.text or response.reason_phrase
