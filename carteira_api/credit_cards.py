from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from carteira.services.credit_card_service import CreditCardService

from .errors import error_response, payload
from .serializers import CreditCardSerializer, TransactionSerializer


@api_view(['GET', 'POST'])
@permission_classes([permissions.IsAuthenticated])
def credit_card_list_create(request):
    """
    GET /api/credit-cards/ - List cards, favourite first
    POST /api/credit-cards/ - Create a card
    """
    service = CreditCardService(request.user)
    try:
        if request.method == 'POST':
            card = service.create_card(**payload(request))
            return Response(CreditCardSerializer(card).data, status=status.HTTP_201_CREATED)

        cards = list(service.list_cards())
        return Response({
            'cards': CreditCardSerializer(cards, many=True).data,
            'total': len(cards),
        })
    except Exception as e:
        return error_response(e)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([permissions.IsAuthenticated])
def credit_card_detail(request, pk):
    service = CreditCardService(request.user)
    try:
        if request.method == 'GET':
            return Response(CreditCardSerializer(service.get_card(pk)).data)
        if request.method == 'DELETE':
            name = service.delete_card(pk)
            return Response({'message': f'Credit card {name} deleted'})
        card = service.update_card(pk, **payload(request))
        return Response(CreditCardSerializer(card).data)
    except Exception as e:
        return error_response(e)


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def credit_card_expense(request, pk):
    """POST /api/credit-cards/{id}/expenses/ - Purchase split into installments"""
    data = payload(request)
    try:
        rows = CreditCardService(request.user).record_purchase(
            pk,
            description=data.get('description'),
            amount=data.get('amount'),
            date=data.get('date'),
            category_id=data.get('category_id'),
            installments=data.get('installments') or 1,
            notes=data.get('notes'),
            tags=data.get('tags'),
        )
        card = CreditCardService(request.user).get_card(pk)
    except Exception as e:
        return error_response(e)
    return Response({
        'transactions': TransactionSerializer(rows, many=True).data,
        'card': CreditCardSerializer(card).data,
    }, status=status.HTTP_201_CREATED)
