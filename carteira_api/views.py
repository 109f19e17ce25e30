from django.utils import timezone
from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from carteira.finance.models import Bank, Transaction
from carteira.services.invoice_service import parse_date
from carteira.services.periods import add_months, month_bounds
from carteira.services.reporting_service import ReportingService

from .errors import error_response
from .serializers import BankSerializer, TransactionSerializer


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def api_root(request):
    """API Root endpoint"""
    return Response({
        'message': 'Carteira API v1.0',
        'endpoints': {
            'auth': '/api/auth/{register,login,logout}/',
            'banks': '/api/banks/',
            'accounts': '/api/accounts/',
            'categories': '/api/categories/',
            'transactions': '/api/transactions/',
            'credit_cards': '/api/credit-cards/',
            'invoices': '/api/invoices/',
            'budgets': '/api/budgets/',
            'dashboard': '/api/dashboard/',
            'reports': '/api/reports/{categories,cashflow}/',
        }
    })

@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def bank_list(request):
    banks = Bank.objects.filter(is_active=True).order_by('name')
    return Response({'banks': BankSerializer(banks, many=True).data, 'total': banks.count()})

@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def dashboard_data(request):
    """
    Return dashboard summary data for authenticated user
    """
    try:
        data = ReportingService(request.user).dashboard()
    except Exception as e:
        return error_response(e)
    data['recent_transactions'] = TransactionSerializer(data['recent_transactions'], many=True).data
    return Response(data)

def _date_range(request, default_months=1):
    today = timezone.localdate()
    start = parse_date(request.query_params.get('start_date'), 'start_date')
    end = parse_date(request.query_params.get('end_date'), 'end_date')
    if not start:
        start = add_months(month_bounds(today)[0], 1 - default_months)
    if not end:
        end = month_bounds(today)[1]
    return start, end

@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def category_report(request):
    """GET /api/reports/categories/?start_date&end_date&type - Totals per category"""
    try:
        start, end = _date_range(request)
        tx_type = request.query_params.get('type') or Transaction.TYPE_EXPENSE
        if tx_type not in (Transaction.TYPE_INCOME, Transaction.TYPE_EXPENSE):
            return Response({'error': f'Invalid type: {tx_type}'}, status=status.HTTP_400_BAD_REQUEST)
        rows = ReportingService(request.user).category_totals(start, end, type=tx_type)
    except Exception as e:
        return error_response(e)
    return Response({'start_date': start, 'end_date': end, 'type': tx_type, 'categories': rows})

@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def cashflow(request):
    """GET /api/reports/cashflow/?start_date&end_date - Income/expenses/net per month"""
    try:
        start, end = _date_range(request, default_months=6)
        months = ReportingService(request.user).cashflow(start, end)
    except Exception as e:
        return error_response(e)
    return Response({'start_date': start, 'end_date': end, 'months': months})
