"""Initial ledger tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from storeledger.domain.accounting.enums import (
    AccountStatus,
    AccountType,
    AssetStatus,
    BillType,
    EntryType,
    JournalStatus,
    PartnerKind,
    PaymentStatus,
    PeriodStatus,
    SourceType,
)

revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUMS = [
    (AccountType, 'accounttype'),
    (AccountStatus, 'accountstatus'),
    (EntryType, 'entrytype'),
    (SourceType, 'sourcetype'),
    (JournalStatus, 'journalstatus'),
    (PartnerKind, 'partnerkind'),
    (PaymentStatus, 'paymentstatus'),
    (BillType, 'billtype'),
    (AssetStatus, 'assetstatus'),
    (PeriodStatus, 'periodstatus'),
]


def _enum(enum_class, name):
    return postgresql.ENUM(enum_class, name=name, create_type=False)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum_class, name in ENUMS:
        postgresql.ENUM(enum_class, name=name).create(bind, checkfirst=True)

    # Chart of Accounts
    op.create_table(
        'accounts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('account_type', _enum(AccountType, 'accounttype'), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('parent_code', sa.String(20), nullable=True),
        sa.Column('status', _enum(AccountStatus, 'accountstatus'), nullable=False),
        sa.Column('notes', sa.String(500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code')
    )
    op.create_index('idx_accounts_type', 'accounts', ['account_type'])

    # Journal entries
    op.create_table(
        'journal_entries',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('reference_no', sa.String(64), nullable=False),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('memo', sa.String(500), nullable=True),
        sa.Column('entry_type', _enum(EntryType, 'entrytype'), nullable=False),
        sa.Column('source_type', _enum(SourceType, 'sourcetype'), nullable=True),
        sa.Column('source_id', sa.String(64), nullable=True),
        sa.Column('adjusted_date', sa.Date(), nullable=True),
        sa.Column('status', _enum(JournalStatus, 'journalstatus'), nullable=False),
        sa.Column('posted_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('created_by', sa.String(100), nullable=True),
        sa.Column('notes', sa.String(1000), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reference_no')
    )
    op.create_index('idx_journal_entries_date', 'journal_entries', ['entry_date'])
    op.create_index('idx_journal_entries_source', 'journal_entries', ['source_type', 'source_id'])

    # Journal lines
    op.create_table(
        'journal_lines',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('journal_entry_id', sa.Uuid(), nullable=False),
        sa.Column('line_no', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('account_code', sa.String(20), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('debit', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('credit', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('partner_id', sa.Uuid(), nullable=True),
        sa.Column('partner_kind', _enum(PartnerKind, 'partnerkind'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['journal_entry_id'], ['journal_entries.id'], ondelete='CASCADE'),
        sa.CheckConstraint('debit >= 0', name='check_debit_non_negative'),
        sa.CheckConstraint('credit >= 0', name='check_credit_non_negative')
    )
    op.create_index('idx_journal_lines_account', 'journal_lines', ['account_code'])
    op.create_index('idx_journal_lines_entry', 'journal_lines', ['journal_entry_id'])

    # Partners
    op.create_table(
        'partners',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('kind', _enum(PartnerKind, 'partnerkind'), nullable=False),
        sa.Column('external_ref', sa.String(100), nullable=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('kind', 'external_ref', name='uq_partners_kind_external_ref')
    )
    op.create_index('idx_partners_kind_name', 'partners', ['kind', 'name'])

    # Receivables
    op.create_table(
        'receivables',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('journal_entry_id', sa.Uuid(), nullable=False),
        sa.Column('partner_id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.String(64), nullable=True),
        sa.Column('original_amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('remaining_amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('payment_status', _enum(PaymentStatus, 'paymentstatus'), nullable=False),
        sa.Column('invoice_date', sa.Date(), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('description', sa.String(500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['partner_id'], ['partners.id']),
        sa.CheckConstraint('remaining_amount >= 0', name='check_receivable_remaining_non_negative'),
        sa.CheckConstraint(
            'remaining_amount <= original_amount',
            name='check_receivable_remaining_within_original'
        )
    )
    op.create_index('idx_receivables_journal_entry', 'receivables', ['journal_entry_id'])
    op.create_index('idx_receivables_status', 'receivables', ['payment_status'])

    # Payables
    op.create_table(
        'payables',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('journal_entry_id', sa.Uuid(), nullable=False),
        sa.Column('partner_id', sa.Uuid(), nullable=False),
        sa.Column('bill_type', _enum(BillType, 'billtype'), nullable=False),
        sa.Column('original_amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('remaining_amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('payment_status', _enum(PaymentStatus, 'paymentstatus'), nullable=False),
        sa.Column('invoice_date', sa.Date(), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('description', sa.String(500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['partner_id'], ['partners.id']),
        sa.CheckConstraint('remaining_amount >= 0', name='check_payable_remaining_non_negative'),
        sa.CheckConstraint(
            'remaining_amount <= original_amount',
            name='check_payable_remaining_within_original'
        )
    )
    op.create_index('idx_payables_journal_entry', 'payables', ['journal_entry_id'])
    op.create_index('idx_payables_status', 'payables', ['payment_status'])

    # Fixed assets
    op.create_table(
        'fixed_assets',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('asset_code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('original_cost', sa.Numeric(18, 2), nullable=False),
        sa.Column('purchase_date', sa.Date(), nullable=False),
        sa.Column('useful_life', sa.Integer(), nullable=False),
        sa.Column('accumulated_depreciation', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('book_value', sa.Numeric(18, 2), nullable=False),
        sa.Column('status', _enum(AssetStatus, 'assetstatus'), nullable=False),
        sa.Column('journal_entry_id', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('asset_code'),
        sa.CheckConstraint('useful_life > 0', name='check_useful_life_positive'),
        sa.CheckConstraint('accumulated_depreciation <= original_cost', name='check_accumulated_within_cost')
    )

    op.create_table(
        'depreciation_records',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('asset_id', sa.Uuid(), nullable=False),
        sa.Column('month', sa.String(7), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('journal_entry_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['asset_id'], ['fixed_assets.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('asset_id', 'month', name='uq_depreciation_asset_month')
    )

    # Accounting periods
    op.create_table(
        'accounting_periods',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('lock_date', sa.Date(), nullable=True),
        sa.Column('status', _enum(PeriodStatus, 'periodstatus'), nullable=False),
        sa.Column('closed_by', sa.String(100), nullable=True),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.String(500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('end_date >= start_date', name='check_period_range')
    )

    # Inventory slice read by COGS posting
    op.create_table(
        'products',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('price', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('average_cost', sa.Numeric(18, 2), nullable=True),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('stock >= 0', name='check_stock_non_negative')
    )


def downgrade() -> None:
    op.drop_table('products')
    op.drop_table('accounting_periods')
    op.drop_table('depreciation_records')
    op.drop_table('fixed_assets')
    op.drop_index('idx_payables_status', table_name='payables')
    op.drop_index('idx_payables_journal_entry', table_name='payables')
    op.drop_table('payables')
    op.drop_index('idx_receivables_status', table_name='receivables')
    op.drop_index('idx_receivables_journal_entry', table_name='receivables')
    op.drop_table('receivables')
    op.drop_index('idx_partners_kind_name', table_name='partners')
    op.drop_table('partners')
    op.drop_index('idx_journal_lines_entry', table_name='journal_lines')
    op.drop_index('idx_journal_lines_account', table_name='journal_lines')
    op.drop_table('journal_lines')
    op.drop_index('idx_journal_entries_source', table_name='journal_entries')
    op.drop_index('idx_journal_entries_date', table_name='journal_entries')
    op.drop_table('journal_entries')
    op.drop_index('idx_accounts_type', table_name='accounts')
    op.drop_table('accounts')

    bind = op.get_bind()
    for enum_class, name in reversed(ENUMS):
        postgresql.ENUM(enum_class, name=name).drop(bind, checkfirst=True)
