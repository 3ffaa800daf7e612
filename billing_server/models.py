from pydantic import BaseModel, ConfigDict
from typing import Generic, List, Optional, TypeVar
from datetime import datetime
from enum import Enum

DataT = TypeVar("DataT")


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class Invoice(BaseModel):
    id: int
    user_id: int
    amount: float
    description: str
    status: InvoiceStatus
    payment_method: str
    created_at: datetime
    updated_at: datetime


class CreateInvoiceRequest(BaseModel):
    """Body of POST /api/invoices.

    Absent fields decode to zero values so presence is checked by
    ``missing_fields`` rather than by the body parse. Values of the wrong
    JSON type, and non-finite amounts, fail the parse.
    """

    model_config = ConfigDict(extra="ignore", strict=True, allow_inf_nan=False)

    user_id: int = 0
    amount: float = 0.0
    description: str = ""
    payment_method: str = ""

    def missing_fields(self) -> List[str]:
        missing = []
        if self.user_id == 0:
            missing.append("user_id")
        if self.amount <= 0:
            missing.append("amount")
        if self.description == "":
            missing.append("description")
        if self.payment_method == "":
            missing.append("payment_method")
        return missing


class APIResponse(BaseModel, Generic[DataT]):
    success: bool
    message: Optional[str] = None
    data: Optional[DataT] = None

    @classmethod
    def ok(cls, data: DataT) -> "APIResponse[DataT]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, message: str) -> "APIResponse[DataT]":
        return cls(success=False, message=message)
