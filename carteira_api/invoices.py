from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from carteira.finance.models import Transaction
from carteira.services.invoice_service import InvoiceService

from .errors import error_response, payload
from .serializers import InvoiceCategoryGroupSerializer, InvoicePaymentSerializer, InvoiceSerializer


@api_view(['GET', 'POST'])
@permission_classes([permissions.IsAuthenticated])
def invoice_list_create(request):
    """
    GET /api/invoices/?credit_card_id= - List invoices, latest due date first
    POST /api/invoices/ - Create an invoice for one of the user's cards
    """
    service = InvoiceService(request.user)
    try:
        if request.method == 'POST':
            invoice = service.create_invoice(**payload(request))
            return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)

        invoices = list(service.list_invoices(credit_card_id=request.query_params.get('credit_card_id')))
        return Response({
            'invoices': InvoiceSerializer(invoices, many=True).data,
            'total': len(invoices),
        })
    except Exception as e:
        return error_response(e)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def invoice_detail(request, pk):
    """GET /api/invoices/{id}/ - Invoice with its purchases grouped by category"""
    service = InvoiceService(request.user)
    try:
        invoice = service.get_invoice(pk)
        data = InvoiceSerializer(invoice).data
        data['items_by_category'] = InvoiceCategoryGroupSerializer(service.items_by_category(invoice), many=True).data
        return Response(data)
    except Exception as e:
        return error_response(e)


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def pay_invoice(request, pk):
    """
    POST /api/invoices/{id}/pay/
    Debit ``account_id`` by ``amount``, record a bill_payment and mark the invoice paid (or partially paid).
    """
    serializer = InvoicePaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        invoice, _ = InvoiceService(request.user).pay_invoice(
            pk,
            account_id=data.get('account_id'),
            amount=data.get('amount'),
            description=data.get('description'),
            payment_date=data.get('payment_date'),
        )
    except Exception as e:
        return error_response(e)
    return Response({
        'message': 'Payment processed successfully',
        'invoice': InvoiceSerializer(invoice).data,
        'transaction_type': Transaction.TYPE_BILL_PAYMENT,
    })
