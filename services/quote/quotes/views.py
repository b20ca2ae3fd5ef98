"""API views for customer quotes and the public submission flow."""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import mixins, status, viewsets
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import HasAccount
from quoteforms.models import QuoteForm

from .models import CustomerQuote
from .serializers import CustomerQuoteSerializer, SubmissionSerializer
from .submission import MissingRequiredFields, QuoteSubmission, SubmissionError


class CustomerQuoteViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = CustomerQuote.objects.select_related("form").prefetch_related("responses")
    serializer_class = CustomerQuoteSerializer
    permission_classes = [HasAccount]
    filter_backends = [SearchFilter, OrderingFilter]
    search_fields = ["company_name", "customer_email", "status"]
    ordering_fields = ["created_at", "total_price", "status"]
    ordering = ["-created_at"]


class SubmissionView(APIView):
    """Render a form for a customer and accept their quote request."""

    def get_form(self, **kwargs) -> QuoteForm:
        raise NotImplementedError

    def _submission(self, **kwargs) -> QuoteSubmission:
        form = self.get_form(**kwargs)
        return QuoteSubmission(form, form.fields.order_by("order", "id"))

    def get(self, request: Request, **kwargs) -> Response:
        return Response(self._submission(**kwargs).render())

    def post(self, request: Request, **kwargs) -> Response:
        submission = self._submission(**kwargs)
        payload = SubmissionSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data

        submission.company_name = data["company_name"]
        submission.customer_email = data["customer_email"]
        try:
            submission.answer_all(data["responses"])
            quote = submission.submit()
        except MissingRequiredFields as exc:
            return Response(
                {"detail": str(exc), "missing": exc.labels},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except SubmissionError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(CustomerQuoteSerializer(quote).data, status=status.HTTP_201_CREATED)


class PublicFormView(SubmissionView):
    authentication_classes: list = []
    permission_classes = [AllowAny]

    def get_form(self, **kwargs) -> QuoteForm:
        return get_object_or_404(QuoteForm, slug=kwargs["slug"], published=True)

    def handle_exception(self, exc):  # type: ignore[override]
        response = super().handle_exception(exc)
        if response.status_code == status.HTTP_404_NOT_FOUND:
            response.data = {"detail": "Form not found"}
        return response


class FormQuoteView(SubmissionView):
    """Fill in any form by id, published or not."""

    permission_classes = [HasAccount]

    def get_form(self, **kwargs) -> QuoteForm:
        return get_object_or_404(QuoteForm, pk=kwargs["form_id"])
