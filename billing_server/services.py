from typing import List

from .database import InvoiceRepository
from .models import CreateInvoiceRequest, Invoice


class InvoiceService:
    """Business layer between the routers and the repository."""

    def __init__(self, repository: InvoiceRepository):
        self.repository = repository

    async def get_invoice_by_id(self, invoice_id: int) -> Invoice:
        return await self.repository.get_by_id(invoice_id)

    async def get_invoices_by_user_id(self, user_id: int) -> List[Invoice]:
        return await self.repository.get_by_user_id(user_id)

    async def create_invoice(self, request: CreateInvoiceRequest) -> Invoice:
        return await self.repository.create(request)
