"""Customer API views.

Exposes the ``CustomerService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.customers.dtos import CreateCustomerDTO
from modules.customers.exceptions import CustomerAlreadyExists
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.serializers import CustomerInputSerializer, CustomerSerializer
from modules.customers.services import CustomerService


class CustomerViewSet(ViewSet):
    """Customer registration endpoint.

    Uses ``CustomerService`` with ``CustomerDjangoRepository`` (DIP).
    """

    permission_classes = [AllowAny]
    serializer_class = CustomerInputSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CustomerService(repository=CustomerDjangoRepository())

    def create(self, request: Request) -> Response:
        """POST /api/v1/customers/"""
        serializer = CustomerInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateCustomerDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            customer = self._service.create_customer(dto)
        except CustomerAlreadyExists as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_409_CONFLICT,
            )

        out = CustomerSerializer(customer)
        return Response(out.data, status=status.HTTP_201_CREATED)
