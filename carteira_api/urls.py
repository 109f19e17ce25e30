from django.urls import path

from . import views
from .accounts import account_detail, account_list_create
from .auth_views import login_view, logout_view, register_view
from .budget_views import budget_alerts, budget_detail, budget_list_create, mark_alert_read
from .categories import category_detail, category_list_create, category_transaction_count
from .credit_cards import credit_card_detail, credit_card_expense, credit_card_list_create
from .invoices import invoice_detail, invoice_list_create, pay_invoice
from .transactions import export_transactions, import_transactions, transaction_detail, transaction_list_create

urlpatterns = [
    # API Root
    path('', views.api_root, name='api-root'),

    # Authentication endpoints
    path('auth/register/', register_view, name='auth-register'),
    path('auth/login/', login_view, name='auth-login'),
    path('auth/logout/', logout_view, name='auth-logout'),

    path('banks/', views.bank_list, name='bank-list'),
    path('dashboard/', views.dashboard_data, name='dashboard-data'),

    # Account endpoints
    path('accounts/', account_list_create, name='account-list-create'),
    path('accounts/<int:pk>/', account_detail, name='account-detail'),

    # Category endpoints
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),
    path('categories/<int:pk>/transactions/count/', category_transaction_count, name='category-transaction-count'),

    # Transaction endpoints
    path('transactions/', transaction_list_create, name='transaction-list-create'),
    path('transactions/<int:pk>/', transaction_detail, name='transaction-detail'),
    path('transactions/export/<str:export_format>/', export_transactions, name='transaction-export'),
    path('transactions/import/', import_transactions, name='transaction-import'),

    # Credit cards and invoices
    path('credit-cards/', credit_card_list_create, name='credit-card-list-create'),
    path('credit-cards/<int:pk>/', credit_card_detail, name='credit-card-detail'),
    path('credit-cards/<int:pk>/expenses/', credit_card_expense, name='credit-card-expense'),
    path('invoices/', invoice_list_create, name='invoice-list-create'),
    path('invoices/<int:pk>/', invoice_detail, name='invoice-detail'),
    path('invoices/<int:pk>/pay/', pay_invoice, name='invoice-pay'),

    # Budget endpoints
    path('budgets/', budget_list_create, name='budget-list-create'),
    path('budgets/alerts/', budget_alerts, name='budget-alerts'),
    path('budgets/alerts/<int:pk>/read/', mark_alert_read, name='budget-alert-read'),
    path('budgets/<int:pk>/', budget_detail, name='budget-detail'),

    # Reports
    path('reports/categories/', views.category_report, name='report-categories'),
    path('reports/cashflow/', views.cashflow, name='report-cashflow'),
]
