from django.http import StreamingHttpResponse
from rest_framework import permissions, status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response

from carteira.finance.repos import DjangoAccountsRepo, DjangoTransactionsRepo, ValidationError, normalize_amount
from carteira.services.export_service import ReportExporter
from carteira.services.import_service import ImportService
from carteira.services.invoice_service import parse_date
from carteira.services.transaction_service import TransactionService

from .errors import error_response, payload
from .pagination import TransactionPagination
from .serializers import TransactionSerializer

TRUE_VALUES = ('1', 'true', 'True', 'yes')


def _service(request):
    return TransactionService(DjangoTransactionsRepo(request.user), DjangoAccountsRepo(request.user))


def _filters(request):
    """Turn query params into repository filters."""
    params = request.query_params
    filters = {
        'start_date': parse_date(params.get('start_date'), 'start_date'),
        'end_date': parse_date(params.get('end_date'), 'end_date'),
        'type': params.get('type') or None,
        'category_id': params.get('category_id') or None,
        'account_id': params.get('account_id') or None,
        'credit_card_id': params.get('credit_card_id') or None,
        'search': params.get('search') or None,
        'ordering': params.get('ordering') or None,
    }
    for name in ('min_value', 'max_value'):
        if params.get(name) not in (None, ''):
            filters[name] = normalize_amount(params[name], name)
    return filters


@api_view(['GET', 'POST'])
@permission_classes([permissions.IsAuthenticated])
def transaction_list_create(request):
    """
    GET /api/transactions/ - Paginated, filtered list
    POST /api/transactions/ - Create a transaction and apply its balance effect
    """
    service = _service(request)
    try:
        if request.method == 'POST':
            tx = service.create_transaction(**payload(request))
            return Response(TransactionSerializer(tx).data, status=status.HTTP_201_CREATED)

        queryset = service.list_transactions(**_filters(request))
        paginator = TransactionPagination()
        page = paginator.paginate_queryset(queryset, request)
        return paginator.get_paginated_response(TransactionSerializer(page, many=True).data)
    except Exception as e:
        return error_response(e)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([permissions.IsAuthenticated])
def transaction_detail(request, pk):
    service = _service(request)
    try:
        if request.method == 'GET':
            return Response(TransactionSerializer(service.get_transaction(pk)).data)
        if request.method == 'DELETE':
            service.delete_transaction(pk)
            return Response({'success': True})
        service.update_transaction(pk, **payload(request))
        return Response(TransactionSerializer(service.get_transaction(pk)).data)
    except Exception as e:
        return error_response(e)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def export_transactions(request, export_format):
    """GET /api/transactions/export/{csv|markdown}/ - Stream the filtered list"""
    try:
        if export_format not in ('csv', 'markdown'):
            raise ValidationError(f"Unsupported export format: {export_format}")
        transactions = _service(request).list_transactions(**_filters(request)).iterator()
    except Exception as e:
        return error_response(e)

    exporter = ReportExporter()
    if export_format == 'csv':
        response = StreamingHttpResponse(exporter.generate_csv(transactions), content_type='text/csv')
        response['Content-Disposition'] = 'attachment; filename="transactions.csv"'
    else:
        response = StreamingHttpResponse(exporter.generate_markdown(transactions), content_type='text/markdown')
        response['Content-Disposition'] = 'attachment; filename="transactions.md"'
    return response


@api_view(['POST'])
@parser_classes([MultiPartParser, FormParser])
@permission_classes([permissions.IsAuthenticated])
def import_transactions(request):
    """
    POST /api/transactions/import/ - multipart ``csv`` (+ optional ``rules`` YAML) into ``account_id``
    """
    csv_file = request.FILES.get('csv')
    if not csv_file:
        return Response({'error': 'CSV file is required'}, status=status.HTTP_400_BAD_REQUEST)
    account_id = request.data.get('account_id')
    if not account_id:
        return Response({'error': 'account_id is required'}, status=status.HTTP_400_BAD_REQUEST)

    force = request.data.get('force') in TRUE_VALUES or request.query_params.get('force') in TRUE_VALUES
    service = ImportService(DjangoAccountsRepo(request.user), DjangoTransactionsRepo(request.user))
    try:
        result = service.import_csv(csv_file, request.FILES.get('rules'), account_id=account_id, force=force)
    except Exception as e:
        return error_response(e)

    return Response({
        'created_count': result.created_count,
        'duplicate_count': result.duplicate_count,
        'skipped': result.skipped,
        'errors': result.errors,
        'import_batch_id': result.batch.pk if result.batch else None,
        'transactions': TransactionSerializer(result.transactions, many=True).data,
    }, status=status.HTTP_200_OK)
