"""
API Schemas Module

This module defines Pydantic models for request/response validation.
"""

from typing import Optional

from pydantic import BaseModel

from payments.models import Payment, PaymentStatus, PayPalOrder


class PaymentIn(BaseModel):
    id: Optional[str] = None
    currency: str = "USD"
    amount: Optional[str | int | float] = None
    order_service: Optional[str] = None
    order_id: Optional[str] = None


class CreatePaymentRequest(BaseModel):
    payment: PaymentIn
    intent: str = "CAPTURE"


class UpdateAmountRequest(BaseModel):
    currency: str
    amount: Optional[str | int | float] = None


class PaymentOut(BaseModel):
    id: str
    currency: str
    amount: Optional[str] = None
    order_service: Optional[str] = None
    order_id: Optional[str] = None
    service: Optional[str] = None
    service_id: Optional[str] = None
    status: PaymentStatus
    error: Optional[str] = None


class CreatedPaymentOut(BaseModel):
    order: PayPalOrder
    payment: Payment
    approve_link: Optional[str] = None  # where the payer approves the order
