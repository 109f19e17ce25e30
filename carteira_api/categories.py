from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from carteira.services.category_service import CategoryService

from .errors import error_response, payload
from .serializers import CategorySerializer


@api_view(['GET', 'POST'])
@permission_classes([permissions.IsAuthenticated])
def category_list_create(request):
    """
    GET /api/categories/?type= - List categories, newest first
    POST /api/categories/ - Create a category
    """
    service = CategoryService(request.user)
    try:
        if request.method == 'POST':
            category = service.create_category(**payload(request))
            return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)

        categories = list(service.list_categories(type=request.query_params.get('type')))
        return Response({
            'categories': CategorySerializer(categories, many=True).data,
            'total': len(categories),
        })
    except Exception as e:
        return error_response(e)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([permissions.IsAuthenticated])
def category_detail(request, pk):
    service = CategoryService(request.user)
    try:
        if request.method == 'GET':
            return Response(CategorySerializer(service.get_category(pk)).data)
        if request.method == 'DELETE':
            service.delete_category(pk)
            return Response({'success': True})
        category = service.update_category(pk, **payload(request))
        return Response(CategorySerializer(category).data)
    except Exception as e:
        return error_response(e)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def category_transaction_count(request, pk):
    """GET /api/categories/{id}/transactions/count/"""
    try:
        return Response({'count': CategoryService(request.user).count_transactions(pk)})
    except Exception as e:
        return error_response(e)
