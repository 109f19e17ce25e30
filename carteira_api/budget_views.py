from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from carteira.services.budget_service import BudgetService

from .errors import error_response, payload
from .pagination import StandardResultsSetPagination
from .serializers import BudgetAlertSerializer, BudgetSerializer

TRUE_VALUES = ('1', 'true', 'True', 'yes')


@api_view(['GET', 'POST'])
@permission_classes([permissions.IsAuthenticated])
def budget_list_create(request):
    """
    GET /api/budgets/ - List budgets with spent, remaining, percentage and status
    POST /api/budgets/ - Create a budget for the authenticated user
    """
    service = BudgetService(request.user)
    try:
        if request.method == 'POST':
            budget = service.create_budget(**payload(request))
            return Response(BudgetSerializer(budget).data, status=status.HTTP_201_CREATED)

        active = request.query_params.get('is_active')
        budgets = list(service.list_budgets(is_active=None if active is None else active in TRUE_VALUES))
        return Response({
            'budgets': BudgetSerializer(budgets, many=True).data,
            'total': len(budgets),
        })
    except Exception as e:
        return error_response(e)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([permissions.IsAuthenticated])
def budget_detail(request, pk):
    service = BudgetService(request.user)
    try:
        if request.method == 'GET':
            return Response(BudgetSerializer(service.get_budget(pk)).data)
        if request.method == 'DELETE':
            service.delete_budget(pk)
            return Response({'message': 'Budget deleted successfully'})
        budget = service.update_budget(pk, **payload(request))
        return Response(BudgetSerializer(budget).data)
    except Exception as e:
        return error_response(e)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def budget_alerts(request):
    """GET /api/budgets/alerts/?unread=1 - Paginated alerts, newest first"""
    alerts = BudgetService(request.user).list_alerts(
        unread_only=request.query_params.get('unread') in TRUE_VALUES
    )
    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(alerts, request)
    return paginator.get_paginated_response(BudgetAlertSerializer(page, many=True).data)


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def mark_alert_read(request, pk):
    try:
        alert = BudgetService(request.user).mark_alert_read(pk)
    except Exception as e:
        return error_response(e)
    return Response(BudgetAlertSerializer(alert).data)
