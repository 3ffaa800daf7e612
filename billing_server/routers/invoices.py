import logging
import re
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status
from pydantic import ValidationError

from ..auth import require_authenticated_user
from ..errors import InvoiceNotFoundError, QueryTimeoutError, StorageError
from ..models import APIResponse, CreateInvoiceRequest, Invoice
from ..services import InvoiceService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/invoices",
    tags=["invoices"],
    dependencies=[Depends(require_authenticated_user)],
)

_INT_PATTERN = re.compile(r"[+-]?\d+")


def get_invoice_service(request: Request) -> InvoiceService:
    return request.app.state.invoice_service


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None or not _INT_PATTERN.fullmatch(value):
        return None
    return int(value)


@router.get(
    "/",
    response_model=APIResponse[List[Invoice]],
    response_model_exclude_none=True,
    include_in_schema=False,
)
@router.get("", response_model=APIResponse[List[Invoice]], response_model_exclude_none=True)
async def get_invoices(
    request: Request,
    user_id: Optional[str] = Query(None, description="Owning user ID"),
    service: InvoiceService = Depends(get_invoice_service),
):
    parsed_user_id = _parse_int(user_id)
    if parsed_user_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid user ID")

    try:
        invoices = await service.get_invoices_by_user_id(parsed_user_id)
    except QueryTimeoutError as e:
        logger.warning(f"Listing invoices for user {parsed_user_id} timed out: {e.message}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)

    logger.info(
        f"Listed {len(invoices)} invoices for user {parsed_user_id}",
        extra={"user": getattr(request.state, "user", None)},
    )
    return APIResponse[List[Invoice]].ok(invoices)


@router.get("/{invoice_id}", response_model=APIResponse[Invoice], response_model_exclude_none=True)
async def get_invoice(
    invoice_id: str = Path(..., description="Invoice ID"),
    service: InvoiceService = Depends(get_invoice_service),
):
    parsed_id = _parse_int(invoice_id)
    if parsed_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid invoice ID")

    try:
        invoice = await service.get_invoice_by_id(parsed_id)
    except QueryTimeoutError as e:
        logger.warning(
            f"Fetching invoice {parsed_id} timed out, reported as not found: {e.message}",
            extra={"invoice_id": parsed_id},
        )
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    except InvoiceNotFoundError:
        logger.info(f"Invoice {parsed_id} does not exist", extra={"invoice_id": parsed_id})
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    except StorageError as e:
        # Storage failures keep the 404 contract; only the log tells them apart.
        logger.error(
            f"Storage failure fetching invoice {parsed_id}, reported as not found: {e.message}",
            extra={"invoice_id": parsed_id},
        )
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")

    return APIResponse[Invoice].ok(invoice)


@router.post(
    "/",
    response_model=APIResponse[Invoice],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
@router.post(
    "",
    response_model=APIResponse[Invoice],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_invoice(
    request: Request,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        body = await request.json()
        if not isinstance(body, dict):
            raise ValueError("request body must be a JSON object")
        invoice_request = CreateInvoiceRequest.model_validate(body)
    except (ValueError, ValidationError) as e:
        logger.warning(f"Invalid create invoice body: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request body")

    missing = invoice_request.missing_fields()
    if missing:
        logger.warning(f"Create invoice rejected, missing: {', '.join(missing)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    try:
        invoice = await service.create_invoice(invoice_request)
    except QueryTimeoutError as e:
        logger.warning(f"Creating invoice timed out: {e.message}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)

    logger.info(
        f"Created invoice {invoice.id} for user {invoice.user_id}",
        extra={"invoice_id": invoice.id, "user": getattr(request.state, "user", None)},
    )
    return APIResponse[Invoice].ok(invoice)
