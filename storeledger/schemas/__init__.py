"""Pydantic schemas for API requests and responses."""

from .accounting import (
    AccountCreate,
    AccountUpdate,
    AccountResponse,
    JournalLineIn,
    JournalEntryCreate,
    JournalEntryUpdate,
    JournalEntryResponse,
)
from .debts import (
    DebtCreate,
    PayableCreate,
    ReceivableResponse,
    PayableResponse,
    PaymentCreate,
    PaymentResponse,
    PaymentNotificationIn,
    AgingResponse,
)
from .periods import (
    PeriodCreate,
    PeriodResponse,
    ClosePeriodRequest,
    ClosePeriodResponse,
)
