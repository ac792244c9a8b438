# billing/management/commands/ensure_test_users.py
from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password
from billing.models import User

TEST_SET = [
    ("superadmin1", "super_admin"),
    ("admin1", "admin"),
    ("doctor1", "doctor"),
    ("nurse1", "nurse"),
    ("cashier1", "cashier"),
    ("reception1", "receptionist"),
]


class Command(BaseCommand):
    help = "Ensure one test user per staff role exists (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="P@ssw0rd123", help="password set on every test user")

    def handle(self, *args, **opts):
        password = opts["password"]
        for username, role in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"role": role, "password": make_password(password), "is_active": True},
            )
            if not created:
                # reset password, role and active flag
                u.password = make_password(password)
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
