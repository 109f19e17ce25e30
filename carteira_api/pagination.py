from django.conf import settings
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardResultsSetPagination(PageNumberPagination):
    """Page-number pagination for budget and alert lists."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100

    def get_paginated_response(self, data):
        paginator = self.page.paginator
        return Response({
            'count': paginator.count,
            'next': self.get_next_link(),
            'previous': self.get_previous_link(),
            'page': self.page.number,
            'page_size': paginator.per_page,
            'total_pages': paginator.num_pages,
            'results': data,
        })


class TransactionPagination(PageNumberPagination):
    """Transaction list pages; rows go under ``transactions`` with a ``page_info`` block."""
    page_size = settings.CARTEIRA.get('TRANSACTION_PAGE_SIZE', 15)
    page_size_query_param = 'page_size'
    max_page_size = 50

    def get_paginated_response(self, data):
        page_info = {
            'current_page': self.page.number,
            'page_size': self.page.paginator.per_page,
            'total_pages': self.page.paginator.num_pages,
            'has_next': self.page.has_next(),
            'has_previous': self.page.has_previous(),
        }
        return Response({
            'count': self.page.paginator.count,
            'next': self.get_next_link(),
            'previous': self.get_previous_link(),
            'page_info': page_info,
            'transactions': data,
        })
