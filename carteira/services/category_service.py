import logging

from django.db import transaction

from carteira.finance.models import Budget, Category, Transaction
from carteira.finance.repos import ValidationError, get_owned
from carteira.services.budget_service import refresh_budget

logger = logging.getLogger(__name__)

CATEGORY_TYPES = [choice for choice, _ in Category.TYPE_CHOICES]
REQUIRED_FIELDS = ("name", "type", "color", "icon")
UPDATABLE_FIELDS = ("name", "type", "color", "icon", "description", "parent_id", "is_active", "sort_order", "tax_deductible")

DEFAULT_CATEGORIES = [
    # name, type, color, icon, description, tax_deductible
    ("Salário", "receita", "green", "DollarSign", "Salário mensal e benefícios trabalhistas", False),
    ("Freelance", "receita", "blue", "Briefcase", "Trabalhos freelance e consultoria", False),
    ("Investimentos", "receita", "purple", "TrendingUp", "Rendimentos de investimentos", False),
    ("Alimentação", "despesa", "orange", "UtensilsCrossed", "Supermercado, restaurantes e delivery", False),
    ("Transporte", "despesa", "red", "Car", "Combustível, transporte público e manutenção", False),
    ("Moradia", "despesa", "purple", "Home", "Aluguel, financiamento e contas da casa", False),
    ("Saúde", "despesa", "red", "Heart", "Plano de saúde, medicamentos e consultas", True),
    ("Educação", "despesa", "blue", "GraduationCap", "Cursos, livros e material escolar", True),
    ("Lazer", "despesa", "pink", "Gamepad2", "Cinema, jogos e entretenimento", False),
    ("Transferência", "transferencia", "gray", "ArrowRightLeft", "Transferências entre contas", False),
]


class CategoryService():
    def __init__(self, user):
        self.user = user

    def _check_name(self, name, exclude_pk=None):
        qs = Category.objects.filter(user=self.user, name=name)
        if exclude_pk is not None:
            qs = qs.exclude(pk=exclude_pk)
        if qs.exists():
            raise ValidationError("A category with this name already exists")

    def list_categories(self, type=None):
        qs = Category.objects.filter(user=self.user)
        if type:
            qs = qs.filter(type=type)
        return qs.order_by("-created_at", "-id")

    def get_category(self, category_id):
        return get_owned(Category, self.user, category_id, "Category")

    def create_category(self, **data):
        missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if data["type"] not in CATEGORY_TYPES:
            raise ValidationError(f"Invalid category type: {data['type']}")
        self._check_name(data["name"])
        fields = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS and k != "parent_id"}
        if data.get("parent_id"):
            fields["parent"] = self.get_category(data["parent_id"])
        category = Category.objects.create(user=self.user, **fields)
        logger.info("Category %s created for %s", category.name, self.user)
        return category

    def update_category(self, category_id, **changes):
        category = self.get_category(category_id)
        fields = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        if "name" in fields:
            if not fields["name"]:
                raise ValidationError("Category name is required")
            self._check_name(fields["name"], exclude_pk=category.pk)
        if "type" in fields and fields["type"] not in CATEGORY_TYPES:
            raise ValidationError(f"Invalid category type: {fields['type']}")
        if fields.get("parent_id"):
            parent = self.get_category(fields["parent_id"])
            if parent.pk == category.pk:
                raise ValidationError("A category cannot be its own parent")
        for name, value in fields.items():
            setattr(category, name, value)
        category.save()
        return category

    def delete_category(self, category_id):
        """Delete a category; its transactions and budgets fall back to no category."""
        category = self.get_category(category_id)
        with transaction.atomic():
            budget_ids = list(Budget.objects.filter(category=category).values_list("pk", flat=True))
            category.delete()
            # SET_NULL is a bulk update and sends no signals
            for budget in Budget.objects.filter(pk__in=budget_ids):
                refresh_budget(budget)
        logger.info("Category %s deleted", category_id)

    def count_transactions(self, category_id):
        category = self.get_category(category_id)
        return Transaction.objects.filter(user=self.user, category=category).count()


def create_default_categories(user):
    """Create the default categories for ``user``; returns how many were new."""
    created = 0
    for sort_order, (name, type, color, icon, description, tax_deductible) in enumerate(DEFAULT_CATEGORIES):
        _, was_created = Category.objects.get_or_create(
            user=user, name=name,
            defaults={
                "type": type, "color": color, "icon": icon, "description": description,
                "tax_deductible": tax_deductible, "sort_order": sort_order,
            },
        )
        created += int(was_created)
    return created
