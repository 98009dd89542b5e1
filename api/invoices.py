"""HTTP routes for guest invoices.

POST   /invoices                    create (returns the edit token once)
GET    /invoices/{public_id}        public read
PATCH  /invoices/{public_id}        sparse update, X-Edit-Token required
DELETE /invoices/{public_id}        hard delete, X-Edit-Token required
GET    /invoices/{public_id}/pdf    PDF view, ?download=1 for attachment
"""

import ipaddress

from fastapi import APIRouter, Header, Query, Request
from fastapi.responses import JSONResponse, Response

from api.base import success_response
from api.middleware import get_request_id
from core.config import InvoiceConfig
from core.services.invoice_service import ANONYMOUS_CALLER, InvoiceService

EDIT_TOKEN_HEADER = "X-Edit-Token"


def _valid_ip(value: str | None) -> str | None:
    if not value:
        return None
    try:
        ipaddress.ip_address(value)
        return value
    except ValueError:
        return None


def get_client_identifier(request: Request, trust_forwarded_for: bool = False) -> str:
    """Caller identity for admission control.

    The first X-Forwarded-For hop is used only when the app sits behind a
    trusted proxy; otherwise the socket peer address.
    """
    if trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = _valid_ip(forwarded.split(",")[0].strip())
        if first_hop:
            return first_hop

    host = request.client.host if request.client else None
    return _valid_ip(host) or ANONYMOUS_CALLER


async def _read_json(request: Request):
    """Request body as JSON, or None when it isn't valid JSON.

    None is rejected later by payload validation, after admission control.
    """
    try:
        return await request.json()
    except ValueError:
        return None


def create_invoices_router(invoice_service: InvoiceService, config: InvoiceConfig) -> APIRouter:
    """Create invoices router with injected service."""
    router = APIRouter(tags=["invoices"])

    def _caller(request: Request) -> str:
        return get_client_identifier(request, config.trust_forwarded_for)

    @router.post("/invoices", status_code=201)
    async def create_invoice(request: Request):
        """Create an invoice. The edit token in the response is never shown again."""
        payload = await _read_json(request)
        created = invoice_service.create(payload, caller=_caller(request))

        data = created.model_dump(mode="json", by_alias=True)
        data["message"] = (
            "Invoice created successfully. Please save your edit token to make changes later."
        )
        return JSONResponse(
            status_code=201,
            content=success_response(data, request_id=get_request_id(request)).model_dump(mode="json"),
        )

    @router.get("/invoices/{public_id}")
    async def get_invoice(request: Request, public_id: str):
        """Public read. Everything except the edit token hash."""
        invoice = invoice_service.get(public_id)
        return success_response(
            invoice.to_public(), request_id=get_request_id(request)
        ).model_dump(mode="json")

    @router.patch("/invoices/{public_id}")
    async def update_invoice(
        request: Request,
        public_id: str,
        edit_token: str | None = Header(None, alias=EDIT_TOKEN_HEADER),
    ):
        """Sparse update. Totals are recomputed when items change."""
        payload = await _read_json(request)
        result = invoice_service.update(public_id, edit_token, payload, caller=_caller(request))

        data = {"message": "Invoice updated successfully", **result.model_dump(mode="json", by_alias=True)}
        return success_response(data, request_id=get_request_id(request)).model_dump(mode="json")

    @router.delete("/invoices/{public_id}")
    async def delete_invoice(
        request: Request,
        public_id: str,
        edit_token: str | None = Header(None, alias=EDIT_TOKEN_HEADER),
    ):
        """Permanently delete the invoice."""
        invoice_service.delete(public_id, edit_token, caller=_caller(request))
        return success_response(
            {"message": "Invoice deleted successfully"}, request_id=get_request_id(request)
        ).model_dump(mode="json")

    @router.get("/invoices/{public_id}/pdf")
    async def get_invoice_pdf(public_id: str, download: str | None = Query(None)):
        """PDF rendering, inline by default."""
        pdf_bytes = invoice_service.render_pdf(public_id)

        disposition = "attachment" if download in ("1", "true") else "inline"
        filename = f"invoice-{public_id}.pdf"
        return Response(
            content=pdf_bytes,
            media_type="application/pdf",
            headers={"Content-Disposition": f'{disposition}; filename="{filename}"'},
        )

    return router
