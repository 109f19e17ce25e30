from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from carteira.finance.repos import DjangoAccountsRepo
from carteira.services.account_service import AccountService

from .errors import error_response, payload
from .serializers import AccountSerializer


def _service(request):
    return AccountService(DjangoAccountsRepo(request.user))


@api_view(['GET', 'POST'])
@permission_classes([permissions.IsAuthenticated])
def account_list_create(request):
    """
    GET /api/accounts/ - List the user's accounts (favourites first)
    POST /api/accounts/ - Create new account
    """
    service = _service(request)
    try:
        if request.method == 'POST':
            data = payload(request)
            account = service.create_account(
                name=data.get('name'),
                type=data.get('type'),
                bank_id=data.get('bank_id'),
                agency=data.get('agency'),
                account_number=data.get('account_number'),
                initial_balance=data.get('initial_balance'),
                color=data.get('color'),
                description=data.get('description'),
                is_favorite=bool(data.get('is_favorite', False)),
            )
            return Response(AccountSerializer(account).data, status=status.HTTP_201_CREATED)

        accounts = service.get_all_accounts()
        return Response({
            'accounts': AccountSerializer(accounts, many=True).data,
            'total': len(accounts),
        })
    except Exception as e:
        return error_response(e)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([permissions.IsAuthenticated])
def account_detail(request, pk):
    """
    GET /api/accounts/{id}/ - Get account details
    PUT/PATCH /api/accounts/{id}/ - Update account
    DELETE /api/accounts/{id}/ - Delete an account without transactions
    """
    service = _service(request)
    try:
        if request.method == 'GET':
            return Response(AccountSerializer(service.get_account(pk)).data)
        if request.method == 'DELETE':
            service.delete_account(pk)
            return Response({'success': True})
        account = service.update_account(pk, **payload(request))
        return Response(AccountSerializer(account).data)
    except Exception as e:
        return error_response(e)
