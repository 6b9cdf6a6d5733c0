import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("audiences", "0001_initial"),
        ("calendars", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_date", models.DateField()),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField()),
                (
                    "booking_type",
                    models.CharField(
                        choices=[("audience", "Audience"), ("individual", "Individual")],
                        max_length=12,
                    ),
                ),
                ("description", models.CharField(max_length=300)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("cancelled", "Cancelled")],
                        default="active",
                        max_length=10,
                    ),
                ),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "cancelled_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="cancelled_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="created_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "environment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="calendars.environment",
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["booking_date", "start_time"],
            },
        ),
        migrations.CreateModel(
            name="BookingAudience",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "audience",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="booking_links",
                        to="audiences.audience",
                    ),
                ),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="booking_audiences",
                        to="bookings.booking",
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking audience",
                "verbose_name_plural": "Booking audiences",
                "constraints": [
                    models.UniqueConstraint(fields=("booking", "audience"), name="booking_audience_unique"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BookingUser",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="booking_users",
                        to="bookings.booking",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="booking_links",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking user",
                "verbose_name_plural": "Booking users",
                "constraints": [
                    models.UniqueConstraint(fields=("booking", "user"), name="booking_user_unique"),
                ],
            },
        ),
        migrations.AddField(
            model_name="booking",
            name="audiences",
            field=models.ManyToManyField(
                blank=True,
                related_name="bookings",
                through="bookings.BookingAudience",
                to="audiences.audience",
            ),
        ),
        migrations.AddField(
            model_name="booking",
            name="users",
            field=models.ManyToManyField(
                blank=True,
                related_name="participating_bookings",
                through="bookings.BookingUser",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
        migrations.AddIndex(
            model_name="booking",
            index=models.Index(fields=["environment", "booking_date", "status"], name="booking_env_date_status_idx"),
        ),
        migrations.AddIndex(
            model_name="booking",
            index=models.Index(fields=["booking_date", "status"], name="booking_date_status_idx"),
        ),
        migrations.AddConstraint(
            model_name="booking",
            constraint=models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="booking_valid_time_range",
            ),
        ),
        migrations.AddConstraint(
            model_name="booking",
            constraint=models.CheckConstraint(
                condition=models.Q(
                    ("status", "active"),
                    models.Q(
                        ("status", "cancelled"),
                        ("cancelled_at__isnull", False),
                        ("cancelled_by__isnull", False),
                        models.Q(("cancellation_reason", ""), _negated=True),
                    ),
                    _connector="OR",
                ),
                name="booking_cancellation_complete",
            ),
        ),
    ]
