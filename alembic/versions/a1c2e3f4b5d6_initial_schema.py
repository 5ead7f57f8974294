"""initial_schema

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = 'a1c2e3f4b5d6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('workout',
        sa.Column('external_id', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('modality', sa.Enum('RUN', 'BIKE', 'SWIM', 'STRENGTH', 'OTHER', name='modality'), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('avg_heart_rate', sa.Integer(), nullable=True),
        sa.Column('calories', sa.Integer(), nullable=True),
        sa.Column('distance_meters', sa.Float(), nullable=True),
        sa.Column('avg_speed_kmh', sa.Float(), nullable=True),
        sa.Column('avg_power_watts', sa.Integer(), nullable=True),
        sa.Column('steps', sa.Integer(), nullable=True),
        sa.Column('stress_score', sa.Float(), nullable=True),
        sa.Column('hr_zone_distribution', sa.JSON(), nullable=True),
        sa.Column('power_zone_distribution', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('external_id'),
    )
    op.create_index(op.f('ix_workout_date'), 'workout', ['date'])

    op.create_table('rawcapture',
        sa.Column('external_id', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('raw_modality_code', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('hr_samples', sa.JSON(), nullable=True),
        sa.Column('power_samples', sa.JSON(), nullable=True),
        sa.Column('raw_calories', sa.Integer(), nullable=True),
        sa.Column('raw_distance_meters', sa.Float(), nullable=True),
        sa.Column('raw_steps', sa.Integer(), nullable=True),
        sa.Column('route', sa.JSON(), nullable=True),
        sa.Column('imported_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('external_id'),
    )
    op.create_index(op.f('ix_rawcapture_start_time'), 'rawcapture', ['start_time'])

    op.create_table('plannedactivity',
        sa.Column('id', sqlmodel.sql.sqltypes.GUID(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('modality', sa.String(), nullable=False),
        sa.Column('sub_type', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('planned_duration_minutes', sa.Integer(), nullable=False),
        sa.Column('planned_stress', sa.Float(), nullable=False),
        sa.Column('strength_focus', sa.String(), nullable=True),
        sa.Column('intensity', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_plannedactivity_date'), 'plannedactivity', ['date'])

    op.create_table('athleteprofile',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ftp_watts', sa.Integer(), nullable=True),
        sa.Column('max_heart_rate', sa.Integer(), nullable=True),
        sa.Column('lthr', sa.Integer(), nullable=True),
        sa.Column('css_seconds_per_100m', sa.Integer(), nullable=True),
        sa.Column('default_swim_stress_per_hour', sa.Float(), nullable=True),
        sa.Column('default_strength_heavy_stress_per_hour', sa.Float(), nullable=True),
        sa.Column('default_strength_light_stress_per_hour', sa.Float(), nullable=True),
        sa.Column('default_other_stress_per_hour', sa.Float(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('athleteprofile')
    op.drop_index(op.f('ix_plannedactivity_date'), table_name='plannedactivity')
    op.drop_table('plannedactivity')
    op.drop_index(op.f('ix_rawcapture_start_time'), table_name='rawcapture')
    op.drop_table('rawcapture')
    op.drop_index(op.f('ix_workout_date'), table_name='workout')
    op.drop_table('workout')
