"""Create maintenance workflow tables

Revision ID: 20261018_000001
Revises: None
Create Date: 2026-10-18

Creates users, properties, ownership and tenancy links, units, inspections,
reports, service requests, recommendations, maintenance plans, jobs,
notifications and audit logs.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


PRIORITIES = ('LOW', 'MEDIUM', 'HIGH', 'URGENT')

ENUMS = {
    'user_role': ('PROPERTY_MANAGER', 'OWNER', 'TENANT', 'TECHNICIAN', 'ADMIN'),
    'subscription_status': ('TRIAL', 'ACTIVE', 'PENDING', 'SUSPENDED', 'CANCELLED'),
    'service_request_status': (
        'SUBMITTED', 'UNDER_REVIEW', 'PENDING_MANAGER_REVIEW', 'PENDING_OWNER_APPROVAL',
        'APPROVED', 'APPROVED_BY_OWNER', 'REJECTED', 'REJECTED_BY_OWNER',
        'CONVERTED_TO_JOB', 'COMPLETED', 'ARCHIVED',
    ),
    'service_request_category': (
        'PLUMBING', 'ELECTRICAL', 'HVAC', 'APPLIANCE', 'STRUCTURAL',
        'PEST_CONTROL', 'LANDSCAPING', 'GENERAL', 'OTHER',
    ),
    'service_request_priority': PRIORITIES,
    'recommendation_status': (
        'DRAFT', 'SUBMITTED', 'UNDER_REVIEW', 'APPROVED', 'REJECTED', 'IMPLEMENTED', 'ARCHIVED',
    ),
    'recommendation_priority': PRIORITIES,
    'job_status': ('OPEN', 'ASSIGNED', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED'),
    'job_priority': PRIORITIES,
    'notification_type': (
        'INSPECTION_SCHEDULED', 'INSPECTION_REMINDER', 'JOB_ASSIGNED', 'JOB_COMPLETED',
        'SERVICE_REQUEST_UPDATE', 'SUBSCRIPTION_EXPIRING', 'PAYMENT_DUE', 'SYSTEM',
    ),
}


def _enum(name: str) -> sa.Enum:
    return sa.Enum(*ENUMS[name], name=name)


def _id() -> sa.Column:
    return sa.Column('id', sa.String(36), nullable=False)


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    """Create all workflow tables."""
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('role', _enum('user_role'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('subscription_status', _enum('subscription_status'), nullable=False, server_default='TRIAL'),
        sa.Column('trial_end_date', sa.DateTime(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'properties',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('manager_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, server_default='ACTIVE'),
        sa.Column('address', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state', sa.String(100), nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_properties_manager_id', 'properties', ['manager_id'])

    op.create_table(
        'property_owners',
        _id(),
        sa.Column('property_id', sa.String(36), sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('owner_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('ownership_percentage', sa.Numeric(5, 2), nullable=False, server_default='100'),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('property_id', 'owner_id', name='uq_property_owner'),
    )
    op.create_index('ix_property_owners_property_id', 'property_owners', ['property_id'])
    op.create_index('ix_property_owners_owner_id', 'property_owners', ['owner_id'])

    op.create_table(
        'units',
        _id(),
        sa.Column('property_id', sa.String(36), sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('unit_number', sa.String(50), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, server_default='VACANT'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_units_property_id', 'units', ['property_id'])

    op.create_table(
        'unit_tenants',
        _id(),
        sa.Column('unit_id', sa.String(36), sa.ForeignKey('units.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tenant_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('lease_start', sa.DateTime(), nullable=True),
        sa.Column('lease_end', sa.DateTime(), nullable=True),
        sa.Column('rent_amount', sa.Numeric(12, 2), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_unit_tenants_unit_id', 'unit_tenants', ['unit_id'])
    op.create_index('ix_unit_tenants_tenant_id', 'unit_tenants', ['tenant_id'])

    op.create_table(
        'property_tenants',
        _id(),
        sa.Column('property_id', sa.String(36), sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tenant_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('lease_start', sa.DateTime(), nullable=True),
        sa.Column('lease_end', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_property_tenants_property_id', 'property_tenants', ['property_id'])
    op.create_index('ix_property_tenants_tenant_id', 'property_tenants', ['tenant_id'])

    op.create_table(
        'inspections',
        _id(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('type', sa.String(50), nullable=False, server_default='ROUTINE'),
        sa.Column('status', sa.String(50), nullable=False, server_default='SCHEDULED'),
        sa.Column('scheduled_date', sa.DateTime(), nullable=True),
        sa.Column('property_id', sa.String(36), sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('unit_id', sa.String(36), sa.ForeignKey('units.id', ondelete='SET NULL'), nullable=True),
        sa.Column('assigned_to_id', sa.String(36), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_inspections_property_id', 'inspections', ['property_id'])
    op.create_index('ix_inspections_assigned_to_id', 'inspections', ['assigned_to_id'])

    op.create_table(
        'reports',
        _id(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('inspection_id', sa.String(36), sa.ForeignKey('inspections.id', ondelete='CASCADE'), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_reports_inspection_id', 'reports', ['inspection_id'])

    op.create_table(
        'service_requests',
        _id(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', _enum('service_request_category'), nullable=False),
        sa.Column('priority', _enum('service_request_priority'), nullable=False, server_default='MEDIUM'),
        sa.Column('status', _enum('service_request_status'), nullable=False, server_default='SUBMITTED'),
        sa.Column('photos', sa.JSON(), nullable=False),
        sa.Column('property_id', sa.String(36), sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('unit_id', sa.String(36), sa.ForeignKey('units.id', ondelete='SET NULL'), nullable=True),
        sa.Column('requested_by_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('approved_by_id', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('rejected_by_id', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('last_reviewed_by_id', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('owner_estimated_budget', sa.Numeric(12, 2), nullable=True),
        sa.Column('manager_estimated_cost', sa.Numeric(12, 2), nullable=True),
        sa.Column('approved_budget', sa.Numeric(12, 2), nullable=True),
        sa.Column('cost_breakdown_notes', sa.Text(), nullable=True),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('last_reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(), nullable=True),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_service_requests_status', 'service_requests', ['status'])
    op.create_index('ix_service_requests_property_id', 'service_requests', ['property_id'])
    op.create_index('ix_service_requests_requested_by_id', 'service_requests', ['requested_by_id'])

    op.create_table(
        'recommendations',
        _id(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('priority', _enum('recommendation_priority'), nullable=False, server_default='MEDIUM'),
        sa.Column('status', _enum('recommendation_status'), nullable=False, server_default='SUBMITTED'),
        sa.Column('estimated_cost', sa.Numeric(12, 2), nullable=True),
        sa.Column('property_id', sa.String(36), sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('report_id', sa.String(36), sa.ForeignKey('reports.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('approved_by_id', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('manager_response', sa.Text(), nullable=True),
        sa.Column('manager_response_at', sa.DateTime(), nullable=True),
        sa.Column('implemented_at', sa.DateTime(), nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_recommendations_status', 'recommendations', ['status'])
    op.create_index('ix_recommendations_property_id', 'recommendations', ['property_id'])
    op.create_index('ix_recommendations_report_id', 'recommendations', ['report_id'])

    op.create_table(
        'maintenance_plans',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('property_id', sa.String(36), sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('frequency', sa.String(30), nullable=False),
        sa.Column('next_due_date', sa.DateTime(), nullable=True),
        sa.Column('last_completed_date', sa.DateTime(), nullable=True),
        sa.Column('auto_create_jobs', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_maintenance_plans_property_id', 'maintenance_plans', ['property_id'])
    op.create_index('ix_maintenance_plans_next_due_date', 'maintenance_plans', ['next_due_date'])

    op.create_table(
        'jobs',
        _id(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('priority', _enum('job_priority'), nullable=False, server_default='MEDIUM'),
        sa.Column('status', _enum('job_status'), nullable=False, server_default='OPEN'),
        sa.Column('property_id', sa.String(36), sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('unit_id', sa.String(36), sa.ForeignKey('units.id', ondelete='SET NULL'), nullable=True),
        sa.Column('assigned_to_id', sa.String(36), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by_id', sa.String(36), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column(
            'service_request_id',
            sa.String(36),
            sa.ForeignKey('service_requests.id', ondelete='SET NULL'),
            nullable=True
        ),
        sa.Column(
            'maintenance_plan_id',
            sa.String(36),
            sa.ForeignKey('maintenance_plans.id', ondelete='SET NULL'),
            nullable=True
        ),
        sa.Column('scheduled_date', sa.DateTime(), nullable=True),
        sa.Column('completed_date', sa.DateTime(), nullable=True),
        sa.Column('estimated_cost', sa.Numeric(12, 2), nullable=True),
        sa.Column('actual_cost', sa.Numeric(12, 2), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_jobs_status', 'jobs', ['status'])
    op.create_index('ix_jobs_property_id', 'jobs', ['property_id'])
    op.create_index('ix_jobs_assigned_to_id', 'jobs', ['assigned_to_id'])
    op.create_index('ix_jobs_service_request_id', 'jobs', ['service_request_id'])
    op.create_index('ix_jobs_maintenance_plan_id', 'jobs', ['maintenance_plan_id'])
    # Lookup used by the generator's existence re-check
    op.create_index('ix_jobs_plan_scheduled', 'jobs', ['maintenance_plan_id', 'scheduled_date'])

    op.create_table(
        'notifications',
        _id(),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', _enum('notification_type'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=True),
        sa.Column('entity_id', sa.String(36), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])

    op.create_table(
        'audit_logs',
        _id(),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(36), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])


def downgrade() -> None:
    """Drop all workflow tables and their enum types."""
    for table in (
        'audit_logs',
        'notifications',
        'jobs',
        'maintenance_plans',
        'recommendations',
        'service_requests',
        'reports',
        'inspections',
        'property_tenants',
        'unit_tenants',
        'units',
        'property_owners',
        'properties',
        'users',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in ENUMS:
        _enum(name).drop(bind, checkfirst=True)
