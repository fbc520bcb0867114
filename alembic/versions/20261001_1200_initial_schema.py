"""Initial LogiCRM schema

Revision ID: initial_schema
Revises:
Create Date: 2026-10-01 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create reference data, clients, requests, counterparties, invoices and schedule"""

    # 参考数据
    op.create_table('cities',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('short_name', sa.String(length=100), nullable=False, comment='简称（唯一键）'),
        sa.Column('full_name', sa.String(length=255), nullable=False, comment='完整显示名称'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('short_name')
    )

    op.create_table('price_rates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('city_id', sa.Integer(), nullable=False, comment='城市ID'),
        sa.Column('unit', sa.String(length=10), nullable=False, comment='计价单位 pallet/kg/m3'),
        sa.Column('min_weight_kg', sa.Numeric(12, 3), nullable=True, comment='最小重量（含）'),
        sa.Column('max_weight_kg', sa.Numeric(12, 3), nullable=True, comment='最大重量（含）'),
        sa.Column('min_volume_m3', sa.Numeric(12, 3), nullable=True, comment='最小体积（含）'),
        sa.Column('max_volume_m3', sa.Numeric(12, 3), nullable=True, comment='最大体积（含）'),
        sa.Column('price', sa.Numeric(12, 2), nullable=False, comment='价格（RUB）'),
        sa.Column('comment', sa.Text(), nullable=True, comment='备注'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='更新时间'),
        sa.CheckConstraint("unit IN ('pallet', 'kg', 'm3')", name='ck_price_rates_unit'),
        sa.CheckConstraint('price > 0', name='ck_price_rates_price_positive'),
        sa.CheckConstraint(
            "unit != 'pallet' OR (min_volume_m3 IS NULL AND max_volume_m3 IS NULL)",
            name='ck_price_rates_pallet_bounds'
        ),
        sa.CheckConstraint(
            "unit != 'm3' OR (min_weight_kg IS NULL AND max_weight_kg IS NULL)",
            name='ck_price_rates_m3_bounds'
        ),
        sa.CheckConstraint(
            "unit != 'kg' OR (min_weight_kg IS NULL AND max_weight_kg IS NULL "
            "AND min_volume_m3 IS NULL AND max_volume_m3 IS NULL)",
            name='ck_price_rates_kg_bounds'
        ),
        sa.ForeignKeyConstraint(['city_id'], ['cities.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_price_rates_city_unit', 'price_rates', ['city_id', 'unit'], unique=False)

    # 客户与经理
    op.create_table('clients',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('telegram_id', sa.BigInteger(), nullable=False, comment='Telegram 用户ID'),
        sa.Column('username', sa.String(length=100), nullable=True, comment='Telegram 用户名'),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('consent_given_at', sa.DateTime(timezone=True), nullable=True, comment='同意个人数据处理的时间'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('telegram_id')
    )

    op.create_table('managers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False, comment='登录邮箱'),
        sa.Column('name', sa.String(length=100), nullable=False, comment='显示名称'),
        sa.Column('password_hash', sa.String(length=255), nullable=False, comment='bcrypt 哈希'),
        sa.Column('is_active', sa.Boolean(), nullable=False, comment='是否启用'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )

    # 申请及其历史
    op.create_table('shipment_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False, comment='客户ID'),
        sa.Column('city_id', sa.Integer(), nullable=True, comment='城市ID（可能未匹配）'),
        sa.Column('city', sa.String(length=255), nullable=False, comment='客户填写的城市'),
        sa.Column('delivery_date', sa.Date(), nullable=False, comment='交付日期'),
        sa.Column('packaging_type', sa.String(length=20), nullable=False, comment='包装类型 pallets/boxes'),
        sa.Column('box_count', sa.Integer(), nullable=False, comment='件数'),
        sa.Column('volume', sa.Numeric(12, 3), nullable=True, comment='体积（m³）'),
        sa.Column('weight', sa.Numeric(12, 3), nullable=True, comment='重量（kg）'),
        sa.Column('comment', sa.Text(), nullable=True, comment='备注'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='状态'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='更新时间'),
        sa.CheckConstraint("status IN ('new', 'warehouse', 'shipped', 'done')", name='ck_shipment_requests_status'),
        sa.CheckConstraint("packaging_type IN ('pallets', 'boxes')", name='ck_shipment_requests_packaging'),
        sa.CheckConstraint('box_count > 0', name='ck_shipment_requests_box_count'),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['city_id'], ['cities.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_shipment_requests_client_id', 'shipment_requests', ['client_id'], unique=False)
    op.create_index('ix_shipment_requests_city_id', 'shipment_requests', ['city_id'], unique=False)
    op.create_index('idx_shipment_requests_status_created', 'shipment_requests', ['status', 'created_at'], unique=False)

    op.create_table('request_status_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('request_id', sa.Integer(), nullable=False),
        sa.Column('old_status', sa.String(length=20), nullable=True, comment='原状态（创建时为空）'),
        sa.Column('new_status', sa.String(length=20), nullable=False, comment='新状态'),
        sa.Column('manager_id', sa.Integer(), nullable=True, comment='操作经理'),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False, comment='变更时间'),
        sa.ForeignKeyConstraint(['request_id'], ['shipment_requests.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['manager_id'], ['managers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_request_status_history_request_id', 'request_status_history', ['request_id'], unique=False)

    op.create_table('request_field_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('request_id', sa.Integer(), nullable=False),
        sa.Column('field', sa.String(length=30), nullable=False, comment='字段名'),
        sa.Column('old_value', sa.Text(), nullable=True, comment='旧值（字符串化）'),
        sa.Column('new_value', sa.Text(), nullable=True, comment='新值（字符串化）'),
        sa.Column('manager_id', sa.Integer(), nullable=True, comment='操作经理'),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False, comment='变更时间'),
        sa.ForeignKeyConstraint(['request_id'], ['shipment_requests.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['manager_id'], ['managers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_request_field_history_request_id', 'request_field_history', ['request_id'], unique=False)

    op.create_table('request_services',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('request_id', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, comment='服务描述'),
        sa.Column('unit', sa.String(length=20), nullable=False, comment='单位标签'),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False, comment='数量'),
        sa.Column('price', sa.Numeric(12, 2), nullable=False, comment='单价'),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False, comment='金额'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.ForeignKeyConstraint(['request_id'], ['shipment_requests.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_request_services_request_id', 'request_services', ['request_id'], unique=False)

    # 交易对手与发票
    op.create_table('counterparties',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False, comment='名称'),
        sa.Column('inn', sa.String(length=12), nullable=True, comment='ИНН'),
        sa.Column('kpp', sa.String(length=9), nullable=True, comment='КПП'),
        sa.Column('ogrn', sa.String(length=15), nullable=True, comment='ОГРН'),
        sa.Column('address', sa.Text(), nullable=True, comment='地址'),
        sa.Column('account', sa.String(length=20), nullable=True, comment='结算账户'),
        sa.Column('bik', sa.String(length=9), nullable=True, comment='БИК'),
        sa.Column('correspondent_account', sa.String(length=20), nullable=True, comment='代理账户'),
        sa.Column('bank', sa.String(length=255), nullable=True, comment='银行'),
        sa.Column('director', sa.String(length=255), nullable=True, comment='负责人'),
        sa.Column('contract', sa.String(length=255), nullable=True, comment='合同'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='更新时间'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('inn')
    )

    op.create_table('counterparty_contacts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('counterparty_id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['counterparty_id'], ['counterparties.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('counterparty_id', 'client_id', name='uq_counterparty_contact')
    )

    op.create_table('invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('number', sa.String(length=30), nullable=False, comment='发票编号 <序号>/<年>'),
        sa.Column('invoice_date', sa.Date(), nullable=False, comment='开票日期'),
        sa.Column('counterparty_id', sa.Integer(), nullable=False),
        sa.Column('request_id', sa.Integer(), nullable=True),
        sa.Column('total', sa.Numeric(14, 2), nullable=False, comment='合计'),
        sa.Column('created_by_manager_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.ForeignKeyConstraint(['counterparty_id'], ['counterparties.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['request_id'], ['shipment_requests.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by_manager_id'], ['managers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('number')
    )
    op.create_index('ix_invoices_counterparty_id', 'invoices', ['counterparty_id'], unique=False)
    op.create_index('ix_invoices_request_id', 'invoices', ['request_id'], unique=False)

    op.create_table('invoice_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, comment='行号（从1开始）'),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('unit', sa.String(length=20), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_invoice_items_invoice_id', 'invoice_items', ['invoice_id'], unique=False)

    # 时刻表
    op.create_table('delivery_schedule',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('city_id', sa.Integer(), nullable=False),
        sa.Column('delivery_date', sa.Date(), nullable=False, comment='交付日期'),
        sa.Column('accept_days', sa.String(length=255), nullable=False, comment='收货日（自由文本）'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['city_id'], ['cities.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_delivery_schedule_city_id', 'delivery_schedule', ['city_id'], unique=False)


def downgrade() -> None:
    """Drop all tables in reverse dependency order"""
    op.drop_index('ix_delivery_schedule_city_id', table_name='delivery_schedule')
    op.drop_table('delivery_schedule')
    op.drop_index('ix_invoice_items_invoice_id', table_name='invoice_items')
    op.drop_table('invoice_items')
    op.drop_index('ix_invoices_request_id', table_name='invoices')
    op.drop_index('ix_invoices_counterparty_id', table_name='invoices')
    op.drop_table('invoices')
    op.drop_table('counterparty_contacts')
    op.drop_table('counterparties')
    op.drop_index('ix_request_services_request_id', table_name='request_services')
    op.drop_table('request_services')
    op.drop_index('ix_request_field_history_request_id', table_name='request_field_history')
    op.drop_table('request_field_history')
    op.drop_index('ix_request_status_history_request_id', table_name='request_status_history')
    op.drop_table('request_status_history')
    op.drop_index('idx_shipment_requests_status_created', table_name='shipment_requests')
    op.drop_index('ix_shipment_requests_city_id', table_name='shipment_requests')
    op.drop_index('ix_shipment_requests_client_id', table_name='shipment_requests')
    op.drop_table('shipment_requests')
    op.drop_table('managers')
    op.drop_table('clients')
    op.drop_index('idx_price_rates_city_unit', table_name='price_rates')
    op.drop_table('price_rates')
    op.drop_table('cities')
