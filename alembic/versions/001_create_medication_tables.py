"""Create medication order, intake record and generation run tables

Revision ID: 001_create_medication_tables
Revises:
Create Date: 2024-01-08 09:00:00.000000

"""

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_create_medication_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create medication_orders, intake_records and intake_generation_runs"""

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS medication_orders (
            id TEXT PRIMARY KEY,
            resident_id TEXT NOT NULL,
            name TEXT NOT NULL DEFAULT '',
            schedule_type TEXT NOT NULL
                CHECK (schedule_type IN ('Scheduled', 'PRN (As Needed)')),
            frequency TEXT NOT NULL
                CHECK (frequency IN (
                    'Once daily (OD)', 'Twice daily (BD)', 'Three times daily (TD)',
                    'Four times daily (QDS)', 'Four times daily (QIS)',
                    'As Needed (PRN)', 'One time (STAT)', 'Weekly', 'Monthly'
                )),
            times TEXT[] NOT NULL DEFAULT '{}',
            time_quantities JSONB NOT NULL DEFAULT '{}'::jsonb,
            start_date TIMESTAMPTZ NOT NULL,
            end_date TIMESTAMPTZ,
            status TEXT NOT NULL DEFAULT 'active'
                CHECK (status IN ('active', 'completed', 'cancelled')),
            organization_id TEXT,
            team_id TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT chk_medication_orders_window
                CHECK (end_date IS NULL OR end_date >= start_date)
        )
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_medication_orders_status_start
            ON medication_orders (status, start_date)
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_medication_orders_resident
            ON medication_orders (resident_id)
        """
    )

    # Records outlive their order's status changes and are never cascaded away
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS intake_records (
            id TEXT PRIMARY KEY,
            order_id TEXT NOT NULL REFERENCES medication_orders (id) ON DELETE RESTRICT,
            resident_id TEXT NOT NULL,
            scheduled_date DATE NOT NULL,
            scheduled_time TEXT NOT NULL
                CHECK (scheduled_time ~ '^([01][0-9]|2[0-3]):[0-5][0-9]$'),
            scheduled_at TIMESTAMPTZ NOT NULL,
            shift TEXT NOT NULL CHECK (shift IN ('day', 'night')),
            shift_date DATE NOT NULL,
            quantity INTEGER NOT NULL DEFAULT 1 CHECK (quantity >= 1),
            administration_status TEXT NOT NULL DEFAULT 'pending'
                CHECK (administration_status IN (
                    'pending', 'administered', 'missed', 'skipped'
                )),
            organization_id TEXT,
            team_id TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ,
            CONSTRAINT uq_intake_records_order_date_time
                UNIQUE (order_id, scheduled_date, scheduled_time)
        )
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_intake_records_resident_date
            ON intake_records (resident_id, scheduled_date)
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_intake_records_shift
            ON intake_records (shift_date, shift)
        """
    )

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS intake_generation_runs (
            run_id TEXT PRIMARY KEY,
            target_date DATE NOT NULL,
            trigger TEXT NOT NULL,
            status TEXT NOT NULL
                CHECK (status IN ('completed', 'completed_with_failures', 'aborted')),
            orders_considered INTEGER NOT NULL DEFAULT 0,
            orders_processed INTEGER NOT NULL DEFAULT 0,
            records_inserted INTEGER NOT NULL DEFAULT 0,
            records_existing INTEGER NOT NULL DEFAULT 0,
            failures JSONB NOT NULL DEFAULT '[]'::jsonb,
            abort_reason TEXT,
            started_at TIMESTAMPTZ NOT NULL,
            completed_at TIMESTAMPTZ
        )
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_generation_runs_target_date
            ON intake_generation_runs (target_date DESC)
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_generation_runs_started_at
            ON intake_generation_runs (started_at DESC)
        """
    )


def downgrade() -> None:
    """Drop the medication tables"""

    op.execute("DROP TABLE IF EXISTS intake_generation_runs")
    op.execute("DROP TABLE IF EXISTS intake_records")
    op.execute("DROP TABLE IF EXISTS medication_orders")
