"""initial coachfit schema

Revision ID: 20250301_000100
Revises:
Create Date: 2025-03-01 00:01:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20250301_000100'
down_revision = None
branch_labels = None
depends_on = None


def timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='client'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('phone', sa.String(length=50)),
        sa.Column('avatar_url', sa.String(length=500)),
        sa.Column('coach_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        *timestamps(),
        sa.CheckConstraint("role IN ('client', 'coach', 'admin')", name='valid_user_role'),
        sa.CheckConstraint("status IN ('active', 'inactive')", name='valid_user_status'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_coach_id', 'users', ['coach_id'])

    op.create_table(
        'user_profiles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('date_of_birth', sa.Date()),
        sa.Column('gender', sa.String(length=20)),
        sa.Column('height_cm', sa.Float()),
        sa.Column('weight_kg', sa.Float()),
        sa.Column('fitness_goals', sa.Text()),
        sa.Column('medical_conditions', sa.Text()),
        sa.Column('emergency_contact', sa.String(length=255)),
        sa.Column('bio', sa.Text()),
        sa.Column('specializations', sa.Text()),
        sa.Column('certifications', sa.Text()),
        *timestamps(),
    )
    op.create_index('ix_user_profiles_id', 'user_profiles', ['id'])

    op.create_table(
        'programs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('coach_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='mixed'),
        sa.Column('difficulty', sa.String(length=20), nullable=False, server_default='beginner'),
        sa.Column('duration_weeks', sa.Integer()),
        sa.Column('sessions_per_week', sa.Integer()),
        sa.Column('start_date', sa.Date()),
        sa.Column('end_date', sa.Date()),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        *timestamps(),
        sa.CheckConstraint("type IN ('strength', 'cardio', 'flexibility', 'mixed')", name='valid_program_type'),
        sa.CheckConstraint("difficulty IN ('beginner', 'intermediate', 'advanced')", name='valid_program_difficulty'),
        sa.CheckConstraint("status IN ('draft', 'active', 'completed', 'paused')", name='valid_program_status'),
    )
    op.create_index('ix_programs_id', 'programs', ['id'])
    op.create_index('ix_programs_coach_id', 'programs', ['coach_id'])
    op.create_index('ix_programs_client_id', 'programs', ['client_id'])

    op.create_table(
        'exercises',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('muscle_groups', sa.String(length=255)),
        sa.Column('equipment', sa.String(length=255)),
        sa.Column('instructions', sa.Text()),
        sa.Column('difficulty', sa.String(length=20), nullable=False, server_default='beginner'),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.text('TRUE')),
        *timestamps(),
        sa.CheckConstraint(
            "category IN ('strength', 'cardio', 'flexibility', 'balance')", name='valid_exercise_category'
        ),
    )
    op.create_index('ix_exercises_id', 'exercises', ['id'])
    op.create_index('ix_exercises_name', 'exercises', ['name'])

    op.create_table(
        'workouts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('program_id', sa.Integer(), sa.ForeignKey('programs.id', ondelete='CASCADE')),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('scheduled_date', sa.Date()),
        sa.Column('duration_minutes', sa.Integer()),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='scheduled'),
        sa.Column('notes', sa.Text()),
        sa.Column('completion_rating', sa.Integer()),
        sa.Column('calories_burned', sa.Integer()),
        sa.Column('completed_at', sa.DateTime(timezone=True)),
        *timestamps(),
        sa.CheckConstraint(
            "status IN ('scheduled', 'in_progress', 'completed', 'skipped', 'cancelled')",
            name='valid_workout_status',
        ),
        sa.CheckConstraint(
            'completion_rating IS NULL OR (completion_rating BETWEEN 1 AND 5)', name='valid_completion_rating'
        ),
    )
    op.create_index('ix_workouts_id', 'workouts', ['id'])
    op.create_index('ix_workouts_program_id', 'workouts', ['program_id'])
    op.create_index('ix_workouts_client_id', 'workouts', ['client_id'])
    op.create_index('ix_workouts_scheduled_date', 'workouts', ['scheduled_date'])

    op.create_table(
        'workout_exercises',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('workout_id', sa.Integer(), sa.ForeignKey('workouts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('exercise_id', sa.Integer(), sa.ForeignKey('exercises.id', ondelete='SET NULL')),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('sets', sa.Integer()),
        sa.Column('reps', sa.Integer()),
        sa.Column('weight_kg', sa.Float()),
        sa.Column('duration_seconds', sa.Integer()),
        sa.Column('rest_seconds', sa.Integer()),
        sa.Column('notes', sa.Text()),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.text('FALSE')),
        *timestamps(),
    )
    op.create_index('ix_workout_exercises_id', 'workout_exercises', ['id'])
    op.create_index('ix_workout_exercises_workout_id', 'workout_exercises', ['workout_id'])

    op.create_table(
        'meals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('meal_type', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('calories', sa.Float(), nullable=False, server_default='0'),
        sa.Column('proteins', sa.Float(), nullable=False, server_default='0'),
        sa.Column('carbs', sa.Float(), nullable=False, server_default='0'),
        sa.Column('fats', sa.Float(), nullable=False, server_default='0'),
        sa.Column('fiber', sa.Float()),
        sa.Column('sugar', sa.Float()),
        sa.Column('sodium', sa.Float()),
        sa.Column('image_url', sa.String(length=500)),
        *timestamps(),
        sa.CheckConstraint("meal_type IN ('breakfast', 'lunch', 'dinner', 'snack')", name='valid_meal_type'),
        sa.CheckConstraint('calories >= 0', name='non_negative_calories'),
    )
    op.create_index('ix_meals_id', 'meals', ['id'])
    op.create_index('ix_meals_client_date', 'meals', ['client_id', 'date'])

    op.create_table(
        'nutrition_goals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('daily_calories', sa.Integer()),
        sa.Column('daily_proteins', sa.Integer()),
        sa.Column('daily_carbs', sa.Integer()),
        sa.Column('daily_fats', sa.Integer()),
        sa.Column('daily_fiber', sa.Integer()),
        sa.Column('daily_water_ml', sa.Integer()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('TRUE')),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        *timestamps(),
    )
    op.create_index('ix_nutrition_goals_id', 'nutrition_goals', ['id'])
    op.create_index('ix_nutrition_goals_client_id', 'nutrition_goals', ['client_id'])
    # One active goal per client
    op.create_index(
        'uq_nutrition_goals_active_client',
        'nutrition_goals',
        ['client_id'],
        unique=True,
        postgresql_where=sa.text('is_active'),
    )

    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('coach_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('ends_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='consultation'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='scheduled'),
        sa.Column('notes', sa.Text()),
        *timestamps(),
        sa.CheckConstraint('duration_minutes > 0', name='positive_duration'),
        sa.CheckConstraint(
            "type IN ('consultation', 'training', 'nutrition', 'assessment')", name='valid_appointment_type'
        ),
        sa.CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'completed', 'cancelled', 'no_show')",
            name='valid_appointment_status',
        ),
    )
    op.create_index('ix_appointments_id', 'appointments', ['id'])
    op.create_index('ix_appointments_client_id', 'appointments', ['client_id'])
    op.create_index('ix_appointments_coach_window', 'appointments', ['coach_id', 'scheduled_at', 'ends_at'])

    # No two live appointments of one coach may overlap; touching [start, end) ranges are allowed
    op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
    op.execute(
        """
        ALTER TABLE appointments
        ADD CONSTRAINT appointments_no_overlap
        EXCLUDE USING gist (
            coach_id WITH =,
            tstzrange(scheduled_at, ends_at, '[)') WITH &&
        )
        WHERE (status <> 'cancelled')
        """
    )

    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sender_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recipient_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('message_type', sa.String(length=20), nullable=False, server_default='text'),
        sa.Column('read_at', sa.DateTime(timezone=True)),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.text('FALSE')),
        *timestamps(),
        sa.CheckConstraint("message_type IN ('text', 'system')", name='valid_message_type'),
        sa.CheckConstraint('sender_id <> recipient_id', name='no_self_message'),
    )
    op.create_index('ix_messages_id', 'messages', ['id'])
    op.create_index('ix_messages_sender_recipient', 'messages', ['sender_id', 'recipient_id'])
    op.create_index('ix_messages_recipient_unread', 'messages', ['recipient_id', 'read_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='system'),
        sa.Column('reference_type', sa.String(length=50)),
        sa.Column('reference_id', sa.Integer()),
        sa.Column('action_url', sa.String(length=500)),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('FALSE')),
        sa.Column('read_at', sa.DateTime(timezone=True)),
        *timestamps(),
        sa.CheckConstraint(
            "type IN ('appointment', 'workout', 'message', 'program', 'system')", name='valid_notification_type'
        ),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('messages')
    op.execute('ALTER TABLE appointments DROP CONSTRAINT IF EXISTS appointments_no_overlap')
    op.drop_table('appointments')
    op.drop_index('uq_nutrition_goals_active_client', table_name='nutrition_goals')
    op.drop_table('nutrition_goals')
    op.drop_table('meals')
    op.drop_table('workout_exercises')
    op.drop_table('workouts')
    op.drop_table('exercises')
    op.drop_table('programs')
    op.drop_table('user_profiles')
    op.drop_table('users')
