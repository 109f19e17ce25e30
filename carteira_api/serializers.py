from rest_framework import serializers

from carteira.finance.models import Account, Bank, Budget, BudgetAlert, Category, CreditCard, Invoice, Transaction
from carteira.services.budget_service import budget_percentage, budget_status
from carteira.services.invoice_service import derive_invoice_status


class BankSerializer(serializers.ModelSerializer):
    class Meta:
        model = Bank
        fields = ['id', 'code', 'name', 'full_name', 'website', 'is_active']


class AccountSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_type_display', read_only=True)

    class Meta:
        model = Account
        fields = [
            'id', 'name', 'type', 'type_display', 'bank', 'bank_name', 'agency', 'account_number',
            'color', 'balance', 'initial_balance', 'is_favorite', 'is_active', 'description', 'notes',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = [
            'id', 'name', 'type', 'color', 'icon', 'description', 'parent', 'is_active',
            'sort_order', 'tax_deductible', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    category_name = serializers.SerializerMethodField()
    account_name = serializers.CharField(source='account.name', read_only=True, default=None)
    destination_account_name = serializers.CharField(source='destination_account.name', read_only=True, default=None)
    credit_card_name = serializers.CharField(source='credit_card.name', read_only=True, default=None)

    class Meta:
        model = Transaction
        fields = [
            'id', 'type', 'description', 'amount', 'date', 'category', 'category_name',
            'account', 'account_name', 'destination_account', 'destination_account_name',
            'credit_card', 'credit_card_name', 'invoice', 'installment_number', 'installment_count',
            'status', 'is_paid', 'notes', 'tags', 'metadata', 'import_batch', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_category_name(self, obj):
        return obj.category.name if obj.category_id else "Sem Categoria"


class CreditCardSerializer(serializers.ModelSerializer):
    class Meta:
        model = CreditCard
        fields = [
            'id', 'name', 'brand', 'type', 'last_four_digits', 'credit_limit', 'current_balance',
            'available_limit', 'closing_day', 'due_day', 'color', 'is_favorite', 'is_active', 'notes',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    status = serializers.SerializerMethodField()
    remaining_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            'id', 'credit_card', 'card_name', 'amount', 'minimum_amount', 'previous_balance',
            'new_balance', 'credit_limit', 'available_credit', 'due_date', 'closing_date',
            'period_start', 'period_end', 'status', 'is_paid', 'paid_on', 'paid_amount',
            'remaining_amount', 'paid_account', 'notes', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_status(self, obj):
        return derive_invoice_status(obj, self.context.get('today'))


class InvoiceCategoryGroupSerializer(serializers.Serializer):
    category = serializers.CharField()
    color = serializers.CharField()
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    transactions = TransactionSerializer(many=True)


class BudgetSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    percentage = serializers.SerializerMethodField()
    status = serializers.SerializerMethodField()

    class Meta:
        model = Budget
        fields = [
            'id', 'name', 'description', 'category', 'category_name', 'amount', 'spent', 'remaining',
            'percentage', 'status', 'period', 'start_date', 'end_date', 'alert_percentage',
            'is_active', 'auto_renew', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_percentage(self, obj):
        return budget_percentage(obj.spent, obj.amount)

    def get_status(self, obj):
        return budget_status(obj)


class BudgetAlertSerializer(serializers.ModelSerializer):
    budget_name = serializers.CharField(source='budget.name', read_only=True)

    class Meta:
        model = BudgetAlert
        fields = ['id', 'budget', 'budget_name', 'level', 'message', 'is_read', 'created_at']
        read_only_fields = fields


class InvoicePaymentSerializer(serializers.Serializer):
    account_id = serializers.IntegerField(required=False, allow_null=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    payment_date = serializers.DateField(required=False, allow_null=True)
