"""Accounting domain enums."""

from enum import Enum as PyEnum


class AccountType(str, PyEnum):
    """Chart of Accounts account types."""
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class AccountStatus(str, PyEnum):
    """Chart of Accounts account status."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class EntryType(str, PyEnum):
    """Business event a journal entry was posted for."""
    SALE = "sale"
    COGS = "cogs"
    DEPRECIATION = "depreciation"
    MANUAL = "manual"
    TRANSFER = "transfer"
    ADJUSTING = "adjusting"
    CLOSING = "closing"
    RECEIPT = "receipt"  # Customer payment against a receivable
    PAYMENT = "payment"  # Supplier payment against a payable
    PURCHASE = "purchase"  # Fixed asset acquisition


class SourceType(str, PyEnum):
    """Kind of business object a journal entry points back to."""
    ORDER = "order"
    FIXED_ASSET = "fixed_asset"
    PERIOD = "period"
    RECEIVABLE = "receivable"
    PAYABLE = "payable"
    GENERAL = "general"


class JournalStatus(str, PyEnum):
    """Journal entry status. Posting is terminal; corrections are new entries."""
    POSTED = "posted"


class PaymentStatus(str, PyEnum):
    """Receivable/Payable payment status, derived from remaining amount."""
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class PeriodStatus(str, PyEnum):
    """Accounting period status."""
    OPEN = "open"
    CLOSED = "closed"


class PartnerKind(str, PyEnum):
    """Counterparty role."""
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


class DebtKind(str, PyEnum):
    """Side of the debt ledger."""
    RECEIVABLE = "receivable"
    PAYABLE = "payable"


class EntryKind(str, PyEnum):
    """Direction of a rule-driven general entry."""
    INCOME = "income"
    EXPENSE = "expense"


class Category(str, PyEnum):
    """Closed set of general entry categories."""
    # Income
    SALES = "sales"
    SERVICES = "services"
    INVESTMENT = "investment"
    OTHER_INCOME = "other_income"
    # Expense
    MATERIALS = "materials"
    PAYROLL = "payroll"
    MARKETING = "marketing"
    SHIPPING = "shipping"
    UTILITIES = "utilities"
    RENT = "rent"
    MAINTENANCE = "maintenance"
    OTHER_EXPENSE = "other_expense"


class PaymentMethod(str, PyEnum):
    """Order payment methods."""
    COD = "cod"
    BANK_TRANSFER = "bank_transfer"
    SEPAY = "sepay"
    MOMO = "momo"
    CREDIT = "credit"  # Sale on account, settled later


class OrderStatus(str, PyEnum):
    """Order fulfilment status as reported by the order workflow."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class AssetStatus(str, PyEnum):
    """Fixed asset status."""
    ACTIVE = "active"
    FULLY_DEPRECIATED = "fully_depreciated"
    DISPOSED = "disposed"


class BillType(str, PyEnum):
    """Payable bill type."""
    PURCHASE = "purchase"
    EXPENSE = "expense"
    SERVICE = "service"
