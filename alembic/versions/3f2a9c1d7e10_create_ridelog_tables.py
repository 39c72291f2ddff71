"""create_ridelog_tables

Revision ID: 3f2a9c1d7e10
Revises:
Create Date: 2025-11-03 09:12:40

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create riders, motors, trips (with route points, expenses, notes),
    fuel_logs and maintenance_records.
    """
    print("[MIGRATION] Creating RideLog tables...")

    op.create_table(
        'riders',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=200), nullable=True),
        sa.Column('total_trips', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_distance', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.CheckConstraint('total_trips >= 0', name='check_rider_total_trips'),
        sa.CheckConstraint('total_distance >= 0', name='check_rider_total_distance'),
    )

    op.create_table(
        'motors',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('riders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('nickname', sa.String(length=100), nullable=True),
        sa.Column('brand', sa.String(length=100), nullable=True),
        sa.Column('model', sa.String(length=100), nullable=True),
        sa.Column('fuel_tank', sa.Float(), nullable=True),
        sa.Column('current_fuel_level', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('analytics_last_updated', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_trips', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_distance', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('last_trip_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.CheckConstraint('current_fuel_level >= 0 AND current_fuel_level <= 100', name='check_motor_fuel_level'),
        sa.CheckConstraint('fuel_tank IS NULL OR fuel_tank > 0', name='check_motor_fuel_tank'),
    )
    op.create_index('idx_motors_user', 'motors', ['user_id'])

    op.create_table(
        'trips',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('riders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('motor_id', sa.Integer(), sa.ForeignKey('motors.id', ondelete='SET NULL'), nullable=True),
        sa.Column('destination', sa.String(length=200), nullable=False),
        sa.Column('distance', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('fuel_used_min', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('fuel_used_max', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('eta', sa.String(length=50), nullable=True),
        sa.Column('planned_polyline', sa.Text(), nullable=True),
        sa.Column('trip_start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('trip_end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('actual_distance', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('actual_fuel_used_min', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('actual_fuel_used_max', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('actual_polyline', sa.Text(), nullable=True),
        sa.Column('duration', sa.Integer(), server_default='0', nullable=False),
        sa.Column('avg_speed', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('max_speed', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('was_rerouted', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('reroute_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('start_address', sa.String(length=300), nullable=True),
        sa.Column('start_lat', sa.Float(), nullable=True),
        sa.Column('start_lng', sa.Float(), nullable=True),
        sa.Column('end_address', sa.String(length=300), nullable=True),
        sa.Column('end_lat', sa.Float(), nullable=True),
        sa.Column('end_lng', sa.Float(), nullable=True),
        sa.Column('status', sa.String(length=20), server_default='planned', nullable=False),
        sa.Column('analytics_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('planned', 'in_progress', 'completed', 'cancelled', 'failed')",
            name='check_trip_status'
        ),
        sa.CheckConstraint(
            'trip_end_time IS NULL OR trip_start_time IS NULL OR trip_end_time >= trip_start_time',
            name='check_trip_time_order'
        ),
        sa.CheckConstraint('actual_distance >= 0', name='check_trip_actual_distance'),
        sa.CheckConstraint('duration >= 0', name='check_trip_duration'),
        sa.CheckConstraint('reroute_count >= 0', name='check_trip_reroute_count'),
    )
    op.create_index('idx_trips_user_status', 'trips', ['user_id', 'status'])
    op.create_index('idx_trips_user_start_time', 'trips', ['user_id', 'trip_start_time'])
    op.create_index('idx_trips_motor', 'trips', ['motor_id'])

    op.create_table(
        'trip_route_points',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('trip_id', sa.Integer(), sa.ForeignKey('trips.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('lng', sa.Float(), nullable=False),
        sa.Column('speed', sa.Float(), nullable=True),
        sa.Column('altitude', sa.Float(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('lat >= -90 AND lat <= 90', name='check_route_point_lat'),
        sa.CheckConstraint('lng >= -180 AND lng <= 180', name='check_route_point_lng'),
    )
    op.create_index('ix_trip_route_points_trip_id', 'trip_route_points', ['trip_id'])

    op.create_table(
        'trip_expenses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('trip_id', sa.Integer(), sa.ForeignKey('trips.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('location', sa.String(length=300), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "type IN ('fuel', 'toll', 'parking', 'maintenance', 'other')",
            name='check_expense_type'
        ),
        sa.CheckConstraint('amount >= 0', name='check_expense_amount'),
    )
    op.create_index('ix_trip_expenses_trip_id', 'trip_expenses', ['trip_id'])

    op.create_table(
        'trip_notes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('trip_id', sa.Integer(), sa.ForeignKey('trips.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.String(length=500), nullable=False),
        sa.Column('lat', sa.Float(), nullable=True),
        sa.Column('lng', sa.Float(), nullable=True),
        sa.Column('address', sa.String(length=300), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_trip_notes_trip_id', 'trip_notes', ['trip_id'])

    op.create_table(
        'fuel_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('riders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('motor_id', sa.Integer(), sa.ForeignKey('motors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('liters', sa.Float(), nullable=False),
        sa.Column('price_per_liter', sa.Float(), nullable=False),
        sa.Column('total_cost', sa.Float(), nullable=False),
        sa.Column('fuel_type', sa.String(length=20), server_default='gasoline', nullable=False),
        sa.Column('odometer', sa.Float(), nullable=True),
        sa.Column('lat', sa.Float(), nullable=True),
        sa.Column('lng', sa.Float(), nullable=True),
        sa.Column('address', sa.String(length=300), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('liters > 0', name='check_fuel_log_liters'),
        sa.CheckConstraint('price_per_liter >= 0', name='check_fuel_log_price'),
        sa.CheckConstraint('total_cost >= 0', name='check_fuel_log_total'),
        sa.CheckConstraint(
            "fuel_type IN ('gasoline', 'diesel', 'premium', 'unleaded')",
            name='check_fuel_log_type'
        ),
    )
    op.create_index('idx_fuel_logs_user_date', 'fuel_logs', ['user_id', 'date'])
    op.create_index('idx_fuel_logs_motor', 'fuel_logs', ['motor_id'])

    op.create_table(
        'maintenance_records',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('riders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('motor_id', sa.Integer(), sa.ForeignKey('motors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('cost', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('quantity', sa.Float(), nullable=True),
        sa.Column('service_provider', sa.String(length=200), nullable=True),
        sa.Column('odometer_reading', sa.Float(), nullable=True),
        sa.Column('notes', sa.String(length=500), nullable=True),
        sa.Column('lat', sa.Float(), nullable=True),
        sa.Column('lng', sa.Float(), nullable=True),
        sa.Column('address', sa.String(length=300), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "type IN ('refuel', 'oil_change', 'tune_up', 'repair', 'inspection', 'other')",
            name='check_maintenance_type'
        ),
        sa.CheckConstraint('cost >= 0', name='check_maintenance_cost'),
        sa.CheckConstraint('quantity IS NULL OR quantity >= 0', name='check_maintenance_quantity'),
    )
    op.create_index('idx_maintenance_user_type_time', 'maintenance_records', ['user_id', 'type', 'timestamp'])
    op.create_index('idx_maintenance_motor', 'maintenance_records', ['motor_id'])

    print("[MIGRATION] RideLog tables created")


def downgrade() -> None:
    print("[MIGRATION] Dropping RideLog tables...")

    op.drop_index('idx_maintenance_motor', table_name='maintenance_records')
    op.drop_index('idx_maintenance_user_type_time', table_name='maintenance_records')
    op.drop_table('maintenance_records')

    op.drop_index('idx_fuel_logs_motor', table_name='fuel_logs')
    op.drop_index('idx_fuel_logs_user_date', table_name='fuel_logs')
    op.drop_table('fuel_logs')

    op.drop_index('ix_trip_notes_trip_id', table_name='trip_notes')
    op.drop_table('trip_notes')
    op.drop_index('ix_trip_expenses_trip_id', table_name='trip_expenses')
    op.drop_table('trip_expenses')
    op.drop_index('ix_trip_route_points_trip_id', table_name='trip_route_points')
    op.drop_table('trip_route_points')

    op.drop_index('idx_trips_motor', table_name='trips')
    op.drop_index('idx_trips_user_start_time', table_name='trips')
    op.drop_index('idx_trips_user_status', table_name='trips')
    op.drop_table('trips')

    op.drop_index('idx_motors_user', table_name='motors')
    op.drop_table('motors')
    op.drop_table('riders')
