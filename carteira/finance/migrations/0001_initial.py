from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def money(**kwargs):
    return models.DecimalField(decimal_places=2, max_digits=12, **kwargs)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Bank",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("code", models.CharField(max_length=10, unique=True)),
                ("name", models.CharField(max_length=100)),
                ("full_name", models.CharField(max_length=200)),
                ("website", models.URLField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Category",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100)),
                ("type", models.CharField(choices=[("receita", "Income"), ("despesa", "Expense"), ("transferencia", "Transfer")], max_length=20)),
                ("color", models.CharField(max_length=20)),
                ("icon", models.CharField(max_length=50)),
                ("description", models.TextField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("sort_order", models.IntegerField(default=0)),
                ("tax_deductible", models.BooleanField(default=False)),
                ("parent", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="subcategories", to="finance.category")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="categories", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-created_at"], "unique_together": {("user", "name")}},
        ),
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("bank_name", models.CharField(default="Banco não informado", max_length=100)),
                ("name", models.CharField(max_length=100)),
                ("type", models.CharField(choices=[("corrente", "Checking"), ("poupanca", "Savings"), ("investimento", "Investment"), ("cartao_credito", "Credit card"), ("cartao_debito", "Debit card"), ("outro", "Other")], max_length=20)),
                ("color", models.CharField(default="#3b82f6", max_length=20)),
                ("balance", money(default=Decimal("0.00"))),
                ("initial_balance", money(default=Decimal("0.00"))),
                ("is_favorite", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("agency", models.CharField(blank=True, max_length=20, null=True)),
                ("account_number", models.CharField(blank=True, max_length=30, null=True)),
                ("description", models.TextField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("bank", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="accounts", to="finance.bank")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="finance_accounts", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-is_favorite", "-created_at"]},
        ),
        migrations.CreateModel(
            name="CreditCard",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100)),
                ("brand", models.CharField(choices=[("visa", "Visa"), ("mastercard", "Mastercard"), ("elo", "Elo"), ("hipercard", "Hipercard"), ("american_express", "American Express"), ("outro", "Other")], max_length=20)),
                ("type", models.CharField(choices=[("credito", "Credit"), ("debito", "Debit"), ("credito_debito", "Credit and debit")], max_length=20)),
                ("last_four_digits", models.CharField(max_length=4, validators=[django.core.validators.RegexValidator("^\\d{4}$", "Last four digits must be exactly 4 numbers")])),
                ("credit_limit", money(default=Decimal("0.00"))),
                ("current_balance", money(default=Decimal("0.00"))),
                ("available_limit", money(default=Decimal("0.00"))),
                ("closing_day", models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(31)])),
                ("due_day", models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(31)])),
                ("color", models.CharField(default="#3b82f6", max_length=20)),
                ("is_favorite", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="credit_cards", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-is_favorite", "-created_at"]},
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("card_name", models.CharField(max_length=100)),
                ("amount", money(default=Decimal("0.00"))),
                ("minimum_amount", money(default=Decimal("0.00"))),
                ("previous_balance", money(default=Decimal("0.00"))),
                ("new_balance", money(default=Decimal("0.00"))),
                ("credit_limit", money(default=Decimal("0.00"))),
                ("available_credit", money(default=Decimal("0.00"))),
                ("due_date", models.DateField()),
                ("closing_date", models.DateField()),
                ("period_start", models.DateField(blank=True, null=True)),
                ("period_end", models.DateField(blank=True, null=True)),
                ("status", models.CharField(choices=[("aberta", "Open"), ("paga", "Paid"), ("vencida", "Overdue"), ("cancelada", "Cancelled")], default="aberta", max_length=20)),
                ("is_paid", models.BooleanField(default=False)),
                ("paid_on", models.DateField(blank=True, null=True)),
                ("paid_amount", money(default=Decimal("0.00"))),
                ("notes", models.TextField(blank=True, null=True)),
                ("credit_card", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="invoices", to="finance.creditcard")),
                ("paid_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="paid_invoices", to="finance.account")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="invoices", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-due_date"]},
        ),
        migrations.CreateModel(
            name="ImportBatch",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("file_name", models.CharField(blank=True, max_length=255, null=True)),
                ("file_hash", models.CharField(max_length=64)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("processing", "Processing"), ("completed", "Completed"), ("failed", "Failed")], default="pending", max_length=20)),
                ("total_records", models.IntegerField(default=0)),
                ("processed_records", models.IntegerField(default=0)),
                ("error_records", models.IntegerField(default=0)),
                ("duplicate_records", models.IntegerField(default=0)),
                ("errors", models.JSONField(blank=True, default=list)),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="import_batches", to="finance.account")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="import_batches", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-created_at"], "unique_together": {("user", "file_hash")}},
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("type", models.CharField(choices=[("receita", "Income"), ("despesa", "Expense"), ("transferencia", "Transfer"), ("bill_payment", "Bill payment")], max_length=20)),
                ("description", models.CharField(max_length=255)),
                ("amount", money(validators=[django.core.validators.MinValueValidator(Decimal("0.01"))])),
                ("date", models.DateField()),
                ("installment_number", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("installment_count", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("status", models.CharField(choices=[("pendente", "Pending"), ("confirmada", "Confirmed"), ("cancelada", "Cancelled"), ("estornada", "Reversed")], default="confirmada", max_length=20)),
                ("is_paid", models.BooleanField(default=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("hash", models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ("account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.RESTRICT, related_name="transactions", to="finance.account")),
                ("category", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="transactions", to="finance.category")),
                ("credit_card", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="transactions", to="finance.creditcard")),
                ("destination_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.RESTRICT, related_name="incoming_transactions", to="finance.account")),
                ("import_batch", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="transactions", to="finance.importbatch")),
                ("invoice", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="transactions", to="finance.invoice")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="finance_transactions", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-date", "-id"]},
        ),
        migrations.CreateModel(
            name="Budget",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True, null=True)),
                ("amount", money(validators=[django.core.validators.MinValueValidator(Decimal("0.01"))])),
                ("spent", money(default=Decimal("0.00"))),
                ("remaining", money(default=Decimal("0.00"))),
                ("period", models.CharField(choices=[("mensal", "Monthly"), ("trimestral", "Quarterly"), ("semestral", "Half-yearly"), ("anual", "Yearly")], default="mensal", max_length=20)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("alert_percentage", models.DecimalField(decimal_places=2, default=Decimal("80"), max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal("1")), django.core.validators.MaxValueValidator(Decimal("100"))])),
                ("is_active", models.BooleanField(default=True)),
                ("auto_renew", models.BooleanField(default=False)),
                ("category", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="budgets", to="finance.category")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="budgets", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-start_date", "name"]},
        ),
        migrations.CreateModel(
            name="BudgetAlert",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("level", models.CharField(choices=[("warning", "Warning"), ("exceeded", "Exceeded")], max_length=20)),
                ("message", models.TextField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("is_read", models.BooleanField(default=False)),
                ("budget", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="alerts", to="finance.budget")),
            ],
            options={"ordering": ["-created_at", "-id"]},
        ),
    ]
