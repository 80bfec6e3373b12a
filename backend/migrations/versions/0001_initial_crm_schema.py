"""Initial CRM schema: auth, catalogue, inventory ledger, directory, sales, recruitment

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

This migration creates:
1. Users, roles and server-side session tokens
2. Products, categories, price tiers
3. Batches (partial unique index on active lot) and the inventory ledger
4. Clients, suppliers, salespersons
5. Sales
6. Jobs and job applications
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    ]


def upgrade():
    # ==========================================================================
    # 1. AUTH
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index('ix_users_email', ['email'], unique=False)

    op.create_table('roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_roles'),
        sa.UniqueConstraint('name', name='uq_roles_name'),
        sqlite_autoincrement=True
    )

    op.create_table('user_roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('assigned_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_user_roles_user_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], name='fk_user_roles_role_id_roles'),
        sa.PrimaryKeyConstraint('id', name='pk_user_roles'),
        sa.UniqueConstraint('user_id', 'role_id', name='uq_user_roles'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('user_roles', schema=None) as batch_op:
        batch_op.create_index('ix_user_roles_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_user_roles_role_id', ['role_id'], unique=False)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_used_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_session_tokens_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_session_tokens'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index('ix_session_tokens_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_session_tokens_token_hash', ['token_hash'], unique=True)
        batch_op.create_index('ix_session_tokens_expires_at', ['expires_at'], unique=False)
        batch_op.create_index('ix_session_tokens_is_revoked', ['is_revoked'], unique=False)
        batch_op.create_index('ix_session_tokens_user_active', ['user_id', 'is_revoked'], unique=False)

    # ==========================================================================
    # 2. CATALOGUE
    # ==========================================================================
    op.create_table('product_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_product_categories'),
        sa.UniqueConstraint('name', name='uq_product_categories_name'),
        sqlite_autoincrement=True
    )

    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('official_name', sa.String(length=255), nullable=False),
        sa.Column('market_name', sa.String(length=255), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('default_sell_price', sa.Numeric(12, 3), nullable=False, server_default='0'),
        sa.Column('avg_purchase_price', sa.Numeric(12, 3), nullable=True),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['category_id'], ['product_categories.id'], name='fk_products_category_id_product_categories'),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sa.UniqueConstraint('code', name='uq_products_code'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index('ix_products_category_id', ['category_id'], unique=False)
        batch_op.create_index('ix_products_archived_name', ['is_archived', 'official_name'], unique=False)

    op.create_table('product_price_tiers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('min_qty', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 3), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_product_price_tiers_product_id_products', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_product_price_tiers'),
        sa.UniqueConstraint('product_id', 'min_qty', name='uq_price_tiers_product_min_qty'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('product_price_tiers', schema=None) as batch_op:
        batch_op.create_index('ix_product_price_tiers_product_id', ['product_id'], unique=False)

    # ==========================================================================
    # 3. DIRECTORY
    # ==========================================================================
    op.create_table('clients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_type', sa.String(length=32), nullable=False, server_default='pharmacy'),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_clients'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('clients', schema=None) as batch_op:
        batch_op.create_index('ix_clients_name', ['name'], unique=False)

    op.create_table('suppliers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('business_name', sa.String(length=255), nullable=False),
        sa.Column('contact_name', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('supplier_country', sa.String(length=120), nullable=True),
        sa.Column('supplier_city', sa.String(length=120), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_suppliers'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('suppliers', schema=None) as batch_op:
        batch_op.create_index('ix_suppliers_business_name', ['business_name'], unique=False)

    op.create_table('supplier_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], name='fk_supplier_categories_supplier_id_suppliers', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_supplier_categories'),
        sa.UniqueConstraint('supplier_id', 'name', name='uq_supplier_categories_supplier_name'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('supplier_categories', schema=None) as batch_op:
        batch_op.create_index('ix_supplier_categories_supplier_id', ['supplier_id'], unique=False)

    op.create_table('salespersons',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('salesperson_type', sa.String(length=32), nullable=False, server_default='external'),
        sa.Column('employee_id', sa.String(length=64), nullable=True),
        sa.Column('first_name', sa.String(length=120), nullable=True),
        sa.Column('last_name', sa.String(length=120), nullable=True),
        sa.Column('display_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_salespersons'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # 4. BATCHES + LEDGER
    # ==========================================================================
    op.create_table('batches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('lot_number', sa.String(length=64), nullable=False),
        sa.Column('purchase_date', sa.Date(), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('purchase_price', sa.Numeric(12, 3), nullable=False),
        sa.Column('qty_received', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=True),
        sa.Column('supplier_name', sa.String(length=255), nullable=True),
        sa.Column('supplier_invoice_no', sa.String(length=64), nullable=True),
        sa.Column('is_void', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('voided_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('voided_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_batches_product_id_products'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], name='fk_batches_supplier_id_suppliers'),
        sa.ForeignKeyConstraint(['voided_by_user_id'], ['users.id'], name='fk_batches_voided_by_user_id_users'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], name='fk_batches_created_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_batches'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('batches', schema=None) as batch_op:
        batch_op.create_index('ix_batches_product_id', ['product_id'], unique=False)
        batch_op.create_index('ix_batches_supplier_id', ['supplier_id'], unique=False)
        batch_op.create_index('ix_batches_product_purchase', ['product_id', 'purchase_date'], unique=False)

    # At most one active batch per (product, lot); voided rows are exempt
    op.create_index(
        'uq_batches_active_lot',
        'batches',
        ['product_id', 'lot_number'],
        unique=True,
        sqlite_where=sa.text('voided_at IS NULL'),
        postgresql_where=sa.text('voided_at IS NULL'),
    )

    op.create_table('inventory_movements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('movement_type', sa.String(length=16), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('movement_date', sa.Date(), nullable=False),
        sa.Column('note', sa.String(length=255), nullable=True),
        sa.Column('batch_id', sa.Integer(), nullable=True),
        sa.Column('sale_id', sa.Integer(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint("movement_type IN ('IN', 'OUT', 'ADJ', 'RETURN')", name='ck_inventory_movements_movement_type'),
        sa.CheckConstraint("movement_type <> 'OUT' OR quantity > 0", name='ck_inventory_movements_out_positive'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_inventory_movements_product_id_products'),
        sa.ForeignKeyConstraint(['batch_id'], ['batches.id'], name='fk_inventory_movements_batch_id_batches'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], name='fk_inventory_movements_created_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_inventory_movements'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('inventory_movements', schema=None) as batch_op:
        batch_op.create_index('ix_inventory_movements_product_id', ['product_id'], unique=False)
        batch_op.create_index('ix_inventory_movements_movement_type', ['movement_type'], unique=False)
        batch_op.create_index('ix_inventory_movements_batch_id', ['batch_id'], unique=False)
        batch_op.create_index('ix_inventory_movements_sale_id', ['sale_id'], unique=False)
        batch_op.create_index('ix_movements_product_date', ['product_id', 'movement_date'], unique=False)

    # ==========================================================================
    # 5. SALES
    # ==========================================================================
    op.create_table('sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('salesperson_id', sa.Integer(), nullable=True),
        sa.Column('qty', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 3), nullable=False),
        sa.Column('total', sa.Numeric(14, 3), nullable=False),
        sa.Column('sale_date', sa.Date(), nullable=False),
        sa.Column('note', sa.String(length=255), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], name='fk_sales_client_id_clients'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_sales_product_id_products'),
        sa.ForeignKeyConstraint(['salesperson_id'], ['salespersons.id'], name='fk_sales_salesperson_id_salespersons'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], name='fk_sales_created_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_sales'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.create_index('ix_sales_client_id', ['client_id'], unique=False)
        batch_op.create_index('ix_sales_product_id', ['product_id'], unique=False)
        batch_op.create_index('ix_sales_salesperson_id', ['salesperson_id'], unique=False)
        batch_op.create_index('ix_sales_client_date', ['client_id', 'sale_date'], unique=False)

    # ==========================================================================
    # 6. RECRUITMENT
    # ==========================================================================
    op.create_table('jobs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('department', sa.String(length=120), nullable=True),
        sa.Column('location_country', sa.String(length=120), nullable=True),
        sa.Column('location_city', sa.String(length=120), nullable=True),
        sa.Column('employment_type', sa.String(length=64), nullable=True),
        sa.Column('job_description_html', sa.Text(), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], name='fk_jobs_created_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_jobs'),
        sa.UniqueConstraint('slug', name='uq_jobs_slug'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('jobs', schema=None) as batch_op:
        batch_op.create_index('ix_jobs_published', ['is_published', 'published_at'], unique=False)

    op.create_table('job_applications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('job_id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=120), nullable=False),
        sa.Column('last_name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('education_level', sa.String(length=120), nullable=False),
        sa.Column('country', sa.String(length=120), nullable=False),
        sa.Column('city', sa.String(length=120), nullable=False),
        sa.Column('cv_drive_file_id', sa.String(length=255), nullable=False),
        sa.Column('cv_drive_link', sa.String(length=512), nullable=True),
        sa.Column('cover_drive_file_id', sa.String(length=255), nullable=True),
        sa.Column('cover_drive_link', sa.String(length=512), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='new'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], name='fk_job_applications_job_id_jobs'),
        sa.PrimaryKeyConstraint('id', name='pk_job_applications'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('job_applications', schema=None) as batch_op:
        batch_op.create_index('ix_job_applications_job_id', ['job_id'], unique=False)
        batch_op.create_index('ix_job_applications_job_created', ['job_id', 'created_at'], unique=False)


def downgrade():
    op.drop_table('job_applications')
    op.drop_table('jobs')
    op.drop_table('sales')
    op.drop_table('inventory_movements')
    op.drop_index('uq_batches_active_lot', table_name='batches')
    op.drop_table('batches')
    op.drop_table('salespersons')
    op.drop_table('supplier_categories')
    op.drop_table('suppliers')
    op.drop_table('clients')
    op.drop_table('product_price_tiers')
    op.drop_table('products')
    op.drop_table('product_categories')
    op.drop_table('session_tokens')
    op.drop_table('user_roles')
    op.drop_table('roles')
    op.drop_table('users')
