from django.db import migrations

CONSTRAINT_NAME = "booking_no_overlap_per_environment"


def add_overlap_exclusion(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return

    table = schema_editor.quote_name(apps.get_model("bookings", "Booking")._meta.db_table)
    schema_editor.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    schema_editor.execute(
        f"""
        ALTER TABLE {table}
          ADD CONSTRAINT {CONSTRAINT_NAME}
          EXCLUDE USING gist (
            environment_id WITH =,
            tsrange(booking_date + start_time, booking_date + end_time, '[)') WITH &&
          )
          WHERE (status = 'active')
        """
    )


def drop_overlap_exclusion(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return

    table = schema_editor.quote_name(apps.get_model("bookings", "Booking")._meta.db_table)
    schema_editor.execute(f"ALTER TABLE {table} DROP CONSTRAINT IF EXISTS {CONSTRAINT_NAME}")


class Migration(migrations.Migration):

    dependencies = [
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(add_overlap_exclusion, drop_overlap_exclusion),
    ]
