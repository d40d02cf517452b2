import django.contrib.auth.models
import django.contrib.auth.validators
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="CustomUser",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(
                    default=False,
                    help_text="Designates that this user has all permissions without explicitly assigning them.",
                    verbose_name="superuser status",
                )),
                ("username", models.CharField(
                    error_messages={"unique": "A user with that username already exists."},
                    help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.",
                    max_length=150,
                    unique=True,
                    validators=[django.contrib.auth.validators.UnicodeUsernameValidator()],
                    verbose_name="username",
                )),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("is_staff", models.BooleanField(
                    default=False,
                    help_text="Designates whether the user can log into this admin site.",
                    verbose_name="staff status",
                )),
                ("is_active", models.BooleanField(
                    default=True,
                    help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.",
                    verbose_name="active",
                )),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("telephone", models.CharField(
                    blank=True,
                    max_length=20,
                    validators=[django.core.validators.RegexValidator(
                        message="Use digits, spaces or dashes, optionally prefixed with +.",
                        regex="^\\+?[\\d\\- ]{6,20}$",
                    )],
                )),
                ("role", models.CharField(
                    choices=[("user", "User"), ("admin", "Admin")], default="user", max_length=10
                )),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("groups", models.ManyToManyField(
                    blank=True,
                    help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.",
                    related_name="user_set",
                    related_query_name="user",
                    to="auth.group",
                    verbose_name="groups",
                )),
                ("user_permissions", models.ManyToManyField(
                    blank=True,
                    help_text="Specific permissions for this user.",
                    related_name="user_set",
                    related_query_name="user",
                    to="auth.permission",
                    verbose_name="user permissions",
                )),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "abstract": False,
            },
            managers=[
                ("objects", django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name="Restaurant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=150)),
                ("address", models.CharField(max_length=255)),
                ("telephone", models.CharField(
                    max_length=20,
                    validators=[django.core.validators.RegexValidator(
                        message="Use digits, spaces or dashes, optionally prefixed with +.",
                        regex="^\\+?[\\d\\- ]{6,20}$",
                    )],
                )),
                ("open_time", models.CharField(
                    max_length=5,
                    validators=[django.core.validators.RegexValidator(
                        message="Use 24-hour HH:MM format, e.g. 18:00.",
                        regex="^([01]\\d|2[0-3]):[0-5]\\d$",
                    )],
                )),
                ("close_time", models.CharField(
                    max_length=5,
                    validators=[django.core.validators.RegexValidator(
                        message="Use 24-hour HH:MM format, e.g. 18:00.",
                        regex="^([01]\\d|2[0-3]):[0-5]\\d$",
                    )],
                )),
                ("total_tables", models.PositiveIntegerField(
                    validators=[django.core.validators.MinValueValidator(1)]
                )),
                ("latitude", models.FloatField()),
                ("longitude", models.FloatField()),
                ("created_by", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+", to=settings.AUTH_USER_MODEL,
                )),
                ("updated_by", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+", to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("total_tables__gte", 1)),
                        name="restaurant_total_tables_gte_1",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Holiday",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("date", models.DateField()),
                ("description", models.CharField(max_length=255)),
                ("created_by", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+", to=settings.AUTH_USER_MODEL,
                )),
                ("restaurant", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="holidays", to="reservations.restaurant",
                )),
                ("updated_by", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+", to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "ordering": ["date"],
                "unique_together": {("restaurant", "date")},
            },
        ),
        migrations.CreateModel(
            name="Reservation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("date", models.DateField()),
                ("time", models.CharField(
                    max_length=5,
                    validators=[django.core.validators.RegexValidator(
                        message="Use 24-hour HH:MM format, e.g. 18:00.",
                        regex="^([01]\\d|2[0-3]):[0-5]\\d$",
                    )],
                )),
                ("num_of_guests", models.PositiveIntegerField(
                    validators=[django.core.validators.MinValueValidator(1)]
                )),
                ("status", models.CharField(
                    choices=[
                        ("confirmed", "Confirmed"),
                        ("canceled", "Canceled"),
                        ("completed", "Completed"),
                        ("deleted", "Deleted"),
                    ],
                    default="confirmed",
                    max_length=10,
                )),
                ("created_by", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+", to=settings.AUTH_USER_MODEL,
                )),
                ("restaurant", models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="reservations", to="reservations.restaurant",
                )),
                ("updated_by", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+", to=settings.AUTH_USER_MODEL,
                )),
                ("user", models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="reservations", to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "ordering": ["date", "time", "id"],
                "indexes": [
                    models.Index(fields=["restaurant", "date", "time"], name="reservation_slot_idx"),
                    models.Index(fields=["user", "date"], name="reservation_user_day_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReservationHistory",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("action", models.CharField(
                    choices=[
                        ("created", "Created"),
                        ("updated", "Updated"),
                        ("canceled", "Canceled"),
                        ("completed", "Completed"),
                        ("deleted", "Deleted"),
                    ],
                    max_length=10,
                )),
                ("snapshot", models.JSONField(help_text="Serialized reservation state after the action.")),
                ("timestamp", models.DateTimeField(
                    db_index=True, default=django.utils.timezone.now, editable=False
                )),
                ("reservation", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="history", to="reservations.reservation",
                )),
                ("user", models.ForeignKey(
                    blank=True,
                    help_text="User who performed the action (retained even if user is deleted).",
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="reservation_actions",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "verbose_name": "Reservation History",
                "verbose_name_plural": "Reservation History",
                "ordering": ["timestamp", "id"],
                "indexes": [
                    models.Index(fields=["reservation", "timestamp"], name="history_reservation_ts_idx"),
                ],
            },
        ),
    ]
