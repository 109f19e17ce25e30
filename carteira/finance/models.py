from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models

ZERO = Decimal("0.00")
DEFAULT_COLOR = "#3b82f6"


def _money(**kwargs):
    kwargs.setdefault("max_digits", 12)
    kwargs.setdefault("decimal_places", 2)
    return models.DecimalField(**kwargs)


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Bank(TimeStampedModel):
    code = models.CharField(max_length=10, unique=True)  # FEBRABAN code
    name = models.CharField(max_length=100)
    full_name = models.CharField(max_length=200)
    website = models.URLField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.code} - {self.name}"


class Category(TimeStampedModel):
    TYPE_CHOICES = [
        ("receita", "Income"),
        ("despesa", "Expense"),
        ("transferencia", "Transfer"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="categories")
    name = models.CharField(max_length=100)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    color = models.CharField(max_length=20)
    icon = models.CharField(max_length=50)
    description = models.TextField(blank=True, null=True)
    parent = models.ForeignKey("self", null=True, blank=True, on_delete=models.SET_NULL, related_name="subcategories")
    is_active = models.BooleanField(default=True)
    sort_order = models.IntegerField(default=0)
    tax_deductible = models.BooleanField(default=False)

    class Meta:
        ordering = ["-created_at"]
        unique_together = ["user", "name"]

    def __str__(self):
        return f"{self.name} ({self.get_type_display()})"


class Account(TimeStampedModel):
    TYPE_CHOICES = [
        ("corrente", "Checking"),
        ("poupanca", "Savings"),
        ("investimento", "Investment"),
        ("cartao_credito", "Credit card"),
        ("cartao_debito", "Debit card"),
        ("outro", "Other"),
    ]
    NO_BANK = "Banco não informado"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="finance_accounts")
    bank = models.ForeignKey(Bank, null=True, blank=True, on_delete=models.SET_NULL, related_name="accounts")
    bank_name = models.CharField(max_length=100, default=NO_BANK)
    name = models.CharField(max_length=100)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    color = models.CharField(max_length=20, default=DEFAULT_COLOR)
    balance = _money(default=ZERO)
    initial_balance = _money(default=ZERO)
    is_favorite = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    agency = models.CharField(max_length=20, blank=True, null=True)
    account_number = models.CharField(max_length=30, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)

    class Meta:
        ordering = ["-is_favorite", "-created_at"]

    def __str__(self):
        return f"{self.name} ({self.bank_name})"


class CreditCard(TimeStampedModel):
    BRAND_CHOICES = [
        ("visa", "Visa"),
        ("mastercard", "Mastercard"),
        ("elo", "Elo"),
        ("hipercard", "Hipercard"),
        ("american_express", "American Express"),
        ("outro", "Other"),
    ]
    TYPE_CHOICES = [
        ("credito", "Credit"),
        ("debito", "Debit"),
        ("credito_debito", "Credit and debit"),
    ]
    DAY_VALIDATORS = [MinValueValidator(1), MaxValueValidator(31)]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="credit_cards")
    name = models.CharField(max_length=100)
    brand = models.CharField(max_length=20, choices=BRAND_CHOICES)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    last_four_digits = models.CharField(
        max_length=4,
        validators=[RegexValidator(r"^\d{4}$", "Last four digits must be exactly 4 numbers")],
    )
    credit_limit = _money(default=ZERO)
    current_balance = _money(default=ZERO)
    available_limit = _money(default=ZERO)
    closing_day = models.PositiveSmallIntegerField(validators=DAY_VALIDATORS)
    due_day = models.PositiveSmallIntegerField(validators=DAY_VALIDATORS)
    color = models.CharField(max_length=20, default=DEFAULT_COLOR)
    is_favorite = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True, null=True)

    class Meta:
        ordering = ["-is_favorite", "-created_at"]

    def __str__(self):
        return f"{self.name} **** {self.last_four_digits}"

    def recompute_available_limit(self):
        self.available_limit = self.credit_limit - self.current_balance


class Invoice(TimeStampedModel):
    STATUS_OPEN = "aberta"
    STATUS_PAID = "paga"
    STATUS_OVERDUE = "vencida"
    STATUS_CANCELLED = "cancelada"
    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_PAID, "Paid"),
        (STATUS_OVERDUE, "Overdue"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="invoices")
    credit_card = models.ForeignKey(CreditCard, on_delete=models.CASCADE, related_name="invoices")
    card_name = models.CharField(max_length=100)
    amount = _money(default=ZERO)
    minimum_amount = _money(default=ZERO)
    previous_balance = _money(default=ZERO)
    new_balance = _money(default=ZERO)
    credit_limit = _money(default=ZERO)
    available_credit = _money(default=ZERO)
    due_date = models.DateField()
    closing_date = models.DateField()
    period_start = models.DateField(null=True, blank=True)
    period_end = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_OPEN)
    is_paid = models.BooleanField(default=False)
    paid_on = models.DateField(null=True, blank=True)
    paid_amount = _money(default=ZERO)
    paid_account = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="paid_invoices")
    notes = models.TextField(blank=True, null=True)

    class Meta:
        ordering = ["-due_date"]

    def __str__(self):
        return f"{self.card_name} - {self.due_date.isoformat()} ({self.status})"

    @property
    def remaining_amount(self):
        remaining = self.amount - self.paid_amount
        return remaining if remaining > ZERO else ZERO


class ImportBatch(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("processing", "Processing"),
        ("completed", "Completed"),
        ("failed", "Failed"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="import_batches")
    account = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="import_batches")
    file_name = models.CharField(max_length=255, blank=True, null=True)
    file_hash = models.CharField(max_length=64)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    total_records = models.IntegerField(default=0)
    processed_records = models.IntegerField(default=0)
    error_records = models.IntegerField(default=0)
    duplicate_records = models.IntegerField(default=0)
    errors = models.JSONField(default=list, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ["user", "file_hash"]
        ordering = ["-created_at"]

    def __str__(self):
        return f"Import {self.file_name or self.file_hash[:8]} ({self.status})"


class Transaction(TimeStampedModel):
    TYPE_INCOME = "receita"
    TYPE_EXPENSE = "despesa"
    TYPE_TRANSFER = "transferencia"
    TYPE_BILL_PAYMENT = "bill_payment"
    TYPE_CHOICES = [
        (TYPE_INCOME, "Income"),
        (TYPE_EXPENSE, "Expense"),
        (TYPE_TRANSFER, "Transfer"),
        (TYPE_BILL_PAYMENT, "Bill payment"),
    ]
    STATUS_CHOICES = [
        ("pendente", "Pending"),
        ("confirmada", "Confirmed"),
        ("cancelada", "Cancelled"),
        ("estornada", "Reversed"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="finance_transactions")
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    description = models.CharField(max_length=255)
    amount = _money(validators=[MinValueValidator(Decimal("0.01"))])
    date = models.DateField()
    category = models.ForeignKey(Category, null=True, blank=True, on_delete=models.SET_NULL, related_name="transactions")
    account = models.ForeignKey(Account, null=True, blank=True, on_delete=models.RESTRICT, related_name="transactions")
    destination_account = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.RESTRICT, related_name="incoming_transactions"
    )
    credit_card = models.ForeignKey(CreditCard, null=True, blank=True, on_delete=models.CASCADE, related_name="transactions")
    invoice = models.ForeignKey(Invoice, null=True, blank=True, on_delete=models.SET_NULL, related_name="transactions")
    installment_number = models.PositiveSmallIntegerField(null=True, blank=True)
    installment_count = models.PositiveSmallIntegerField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="confirmada")
    is_paid = models.BooleanField(default=True)
    notes = models.TextField(blank=True, null=True)
    tags = models.JSONField(default=list, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    import_batch = models.ForeignKey(ImportBatch, null=True, blank=True, on_delete=models.SET_NULL, related_name="transactions")
    hash = models.CharField(max_length=64, blank=True, null=True, db_index=True)

    class Meta:
        ordering = ["-date", "-id"]

    def __str__(self):
        return f"{self.date} - {self.description} - {self.amount}"

    @property
    def is_card_purchase(self):
        return self.type == self.TYPE_EXPENSE and self.credit_card_id is not None


class Budget(TimeStampedModel):
    PERIOD_CHOICES = [
        ("mensal", "Monthly"),
        ("trimestral", "Quarterly"),
        ("semestral", "Half-yearly"),
        ("anual", "Yearly"),
    ]
    PERIOD_MONTHS = {"mensal": 1, "trimestral": 3, "semestral": 6, "anual": 12}

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="budgets")
    category = models.ForeignKey(Category, null=True, blank=True, on_delete=models.SET_NULL, related_name="budgets")
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, null=True)
    amount = _money(validators=[MinValueValidator(Decimal("0.01"))])
    spent = _money(default=ZERO)
    remaining = _money(default=ZERO)
    period = models.CharField(max_length=20, choices=PERIOD_CHOICES, default="mensal")
    start_date = models.DateField()
    end_date = models.DateField()
    alert_percentage = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("80"),
        validators=[MinValueValidator(Decimal("1")), MaxValueValidator(Decimal("100"))],
    )
    is_active = models.BooleanField(default=True)
    auto_renew = models.BooleanField(default=False)

    class Meta:
        ordering = ["-start_date", "name"]

    def __str__(self):
        return f"{self.name}: {self.spent}/{self.amount}"


class BudgetAlert(models.Model):
    LEVEL_CHOICES = [
        ("warning", "Warning"),
        ("exceeded", "Exceeded"),
    ]

    budget = models.ForeignKey(Budget, on_delete=models.CASCADE, related_name="alerts")
    level = models.CharField(max_length=20, choices=LEVEL_CHOICES)
    message = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    is_read = models.BooleanField(default=False)

    class Meta:
        ordering = ["-created_at", "-id"]
