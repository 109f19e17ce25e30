import logging

from rest_framework import status
from rest_framework.response import Response

from carteira.finance.repos import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def error_response(exc):
    """Translate a service exception into the JSON error body clients expect."""
    if isinstance(exc, NotFoundError):
        return Response({'error': str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, ValidationError):
        return Response({'error': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, ConflictError):
        return Response({'error': str(exc)}, status=status.HTTP_409_CONFLICT)
    logger.exception("Unhandled error: %s", exc)
    return Response({'error': 'Internal server error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def payload(request):
    """Request body as a plain dict (JSON bodies or form data)."""
    data = request.data
    if hasattr(data, 'dict'):
        return data.dict()
    return dict(data)
