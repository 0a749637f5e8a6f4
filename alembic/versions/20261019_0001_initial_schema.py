"""Initial schema - knowledge management platform

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('username', sa.String(100), unique=True, nullable=False, index=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False, index=True),
        sa.Column('skills', sa.JSON(), nullable=False),
        sa.Column('region', sa.String(100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('promotion_status', sa.String(20), nullable=False),
        sa.Column('promotion_notes', sa.Text(), nullable=True),
        sa.Column('last_evaluation_date', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # Refresh tokens table
    op.create_table(
        'refresh_tokens',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('token_hash', sa.String(255), unique=True, nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    # Knowledge items and approvals
    op.create_table(
        'knowledge_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(100), nullable=False, index=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('region', sa.String(100), nullable=True),
        sa.Column('content_url', sa.String(1000), nullable=True),
        sa.Column('author_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('attachments', sa.JSON(), nullable=False),
        sa.Column('keywords', sa.JSON(), nullable=False),
        sa.Column('duplicate_score', sa.Float(), nullable=False),
        sa.Column('quality_flag', sa.Boolean(), nullable=False),
        sa.Column('quality_score', sa.Integer(), nullable=False),
        sa.Column('quality_issues', sa.JSON(), nullable=False),
        sa.Column('views', sa.Integer(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_knowledge_items_status_created', 'knowledge_items', ['status', 'created_at'])

    op.create_table(
        'knowledge_approvals',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('knowledge_item_id', sa.Uuid(), sa.ForeignKey('knowledge_items.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('approver_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    # Validation workflow: at most one per knowledge item
    op.create_table(
        'validation_workflows',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('knowledge_item_id', sa.Uuid(), sa.ForeignKey('knowledge_items.id'), nullable=False),
        sa.Column('assigned_reviewer_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True, index=True),
        sa.Column('status', sa.String(30), nullable=False, index=True),
        sa.Column('priority', sa.String(20), nullable=False),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('revision_comments', sa.Text(), nullable=True),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('knowledge_item_id', name='uq_validation_workflows_item'),
    )

    op.create_table(
        'validation_history',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('workflow_id', sa.Uuid(), sa.ForeignKey('validation_workflows.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('reviewer_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action', sa.String(30), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
    )

    # Audit logs (append-only)
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('action', sa.String(100), nullable=False, index=True),
        sa.Column('actor_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('target_id', sa.Uuid(), nullable=True, index=True),
        sa.Column('target_model', sa.String(50), nullable=True),
        sa.Column('details', sa.JSON(), nullable=False),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, index=True),
    )
    op.create_index('ix_audit_logs_target', 'audit_logs', ['target_model', 'target_id'])
    op.create_index('ix_audit_logs_action_time', 'audit_logs', ['action', 'timestamp'])

    # Leaderboard: one entry per user
    op.create_table(
        'leaderboard_entries',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False),
        sa.Column('uploads', sa.Integer(), nullable=False),
        sa.Column('approvals', sa.Integer(), nullable=False),
        sa.Column('views', sa.Integer(), nullable=False),
        sa.Column('downloads', sa.Integer(), nullable=False),
        sa.Column('validations', sa.Integer(), nullable=False),
        sa.Column('total_score', sa.Integer(), nullable=False, index=True),
        sa.Column('rank', sa.Integer(), nullable=False),
        sa.Column('current_streak', sa.Integer(), nullable=False),
        sa.Column('longest_streak', sa.Integer(), nullable=False),
        sa.Column('last_activity_date', sa.Date(), nullable=True),
        sa.Column('weekly', sa.Integer(), nullable=False),
        sa.Column('monthly', sa.Integer(), nullable=False),
        sa.Column('yearly', sa.Integer(), nullable=False),
        sa.Column('last_calculated', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )

    # Runtime configuration
    op.create_table(
        'configurations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('key', sa.String(200), unique=True, nullable=False, index=True),
        sa.Column('value', sa.JSON(), nullable=True),
        sa.Column('category', sa.String(30), nullable=False, index=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_editable', sa.Boolean(), nullable=False),
        sa.Column('last_modified_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )

    # Mentorship
    op.create_table(
        'mentorships',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('mentor_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('mentee_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('focus_areas', sa.JSON(), nullable=False),
        sa.Column('goals', sa.JSON(), nullable=False),
        sa.Column('sessions', sa.JSON(), nullable=False),
        sa.Column('feedback', sa.JSON(), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_mentorships_mentor_status', 'mentorships', ['mentor_id', 'status'])
    op.create_index('ix_mentorships_mentee_status', 'mentorships', ['mentee_id', 'status'])

    # Training
    op.create_table(
        'training_modules',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(300), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(30), nullable=False, index=True),
        sa.Column('difficulty', sa.String(20), nullable=False),
        sa.Column('estimated_duration', sa.Integer(), nullable=False),
        sa.Column('content', sa.JSON(), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('target_roles', sa.JSON(), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('completions', sa.Integer(), nullable=False),
        sa.Column('average_rating', sa.Float(), nullable=False),
        sa.Column('total_ratings', sa.Integer(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'training_progress',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('module_id', sa.Uuid(), sa.ForeignKey('training_modules.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('progress', sa.Integer(), nullable=False),
        sa.Column('completed_content', sa.JSON(), nullable=False),
        sa.Column('quiz_scores', sa.JSON(), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('feedback', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'module_id', name='uq_training_progress_user_module'),
    )

    op.create_table(
        'training_sessions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(300), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('instructor_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('scheduled_date', sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('meeting_link', sa.String(1000), nullable=True),
        sa.Column('max_participants', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('related_module_id', sa.Uuid(), sa.ForeignKey('training_modules.id', ondelete='SET NULL'), nullable=True),
        sa.Column('attendees', sa.JSON(), nullable=False),
        *_timestamps(),
    )

    # Legacy content migrations
    op.create_table(
        'migrations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(300), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('source_system', sa.String(100), nullable=False),
        sa.Column('target_system', sa.String(100), nullable=False),
        sa.Column('connection_details', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, index=True),
        sa.Column('batch_size', sa.Integer(), nullable=False),
        sa.Column('dry_run', sa.Boolean(), nullable=False),
        sa.Column('skip_duplicates', sa.Boolean(), nullable=False),
        sa.Column('total', sa.Integer(), nullable=False),
        sa.Column('processed', sa.Integer(), nullable=False),
        sa.Column('failed', sa.Integer(), nullable=False),
        sa.Column('percentage', sa.Float(), nullable=False),
        sa.Column('logs', sa.JSON(), nullable=False),
        sa.Column('initiated_by', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table('migrations')
    op.drop_table('training_sessions')
    op.drop_table('training_progress')
    op.drop_table('training_modules')
    op.drop_index('ix_mentorships_mentee_status', table_name='mentorships')
    op.drop_index('ix_mentorships_mentor_status', table_name='mentorships')
    op.drop_table('mentorships')
    op.drop_table('configurations')
    op.drop_table('leaderboard_entries')
    op.drop_index('ix_audit_logs_action_time', table_name='audit_logs')
    op.drop_index('ix_audit_logs_target', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_table('validation_history')
    op.drop_table('validation_workflows')
    op.drop_table('knowledge_approvals')
    op.drop_index('ix_knowledge_items_status_created', table_name='knowledge_items')
    op.drop_table('knowledge_items')
    op.drop_table('refresh_tokens')
    op.drop_table('users')
