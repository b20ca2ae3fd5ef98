"""API views for the form builder."""
from __future__ import annotations

from django.db.models import Count
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.response import Response

from accounts.permissions import IsAdminRole

from .autosave import scheduler
from .builder import FormBuilderSession
from .exceptions import (
    BuilderValidationError,
    FieldPositionError,
    FormNotFound,
    FormPersistenceError,
    PreviewUnavailable,
)
from .models import QuoteForm
from .persistence import FormStore
from .publishing import publish_form
from .serializers import (
    AddFieldSerializer,
    AutosaveSerializer,
    FormFieldSerializer,
    MoveFieldSerializer,
    PublishSerializer,
    QuoteFormSerializer,
    UpdateFieldSerializer,
)


class QuoteFormViewSet(viewsets.ModelViewSet):
    queryset = (
        QuoteForm.objects.select_related("client")
        .prefetch_related("fields")
        .annotate(quote_count=Count("quotes"))
    )
    serializer_class = QuoteFormSerializer
    permission_classes = [IsAdminRole]
    filter_backends = [SearchFilter, OrderingFilter]
    search_fields = ["title", "description", "slug"]
    ordering_fields = ["title", "created_at", "updated_at"]
    ordering = ["-created_at"]

    def handle_exception(self, exc):  # type: ignore[override]
        if isinstance(exc, (FormNotFound, FieldPositionError)):
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        if isinstance(exc, (BuilderValidationError, FormPersistenceError)):
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        if isinstance(exc, PreviewUnavailable):
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return super().handle_exception(exc)

    def _open_session(self, *, discard_autosave: bool = False) -> FormBuilderSession:
        form = self.get_object()
        if discard_autosave:
            # A queued snapshot predates this write and would undo it.
            scheduler.cancel(form.pk)
        return FormBuilderSession.open(form.pk, autosave=False)

    def _field_response(self, session: FormBuilderSession, position: int, status_code=status.HTTP_200_OK):
        session.sync()
        session.close()
        data = FormFieldSerializer(session.fields[position].as_payload()).data
        return Response(data, status=status_code)

    def perform_update(self, serializer):  # type: ignore[override]
        scheduler.cancel(serializer.instance.pk)
        serializer.save()

    def destroy(self, request, *args, **kwargs):  # type: ignore[override]
        scheduler.cancel(kwargs["pk"])
        return super().destroy(request, *args, **kwargs)

    @action(detail=True, methods=["post"], url_path="publish")
    def publish(self, request, *args, **kwargs):  # type: ignore[override]
        """Publish the form, giving it a normalized slug if it has none."""

        form = self.get_object()
        payload = PublishSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        publish_form(form, payload.validated_data["slug"])
        return Response(self.get_serializer(form).data)

    @action(detail=True, methods=["post"], url_path="duplicate")
    def duplicate(self, request, *args, **kwargs):  # type: ignore[override]
        form = self.get_object()
        copy_id = FormStore().duplicate_form(form.pk)
        return Response({"id": copy_id}, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"], url_path="preview")
    def preview(self, request, *args, **kwargs):  # type: ignore[override]
        """Public address of the form; refused until the form is published."""

        session = self._open_session()
        path = session.preview_path()
        session.close()
        return Response({"path": path})

    @action(detail=True, methods=["post", "delete"], url_path="autosave")
    def autosave(self, request, *args, **kwargs):  # type: ignore[override]
        """Queue a debounced save of the submitted draft, or drop the pending one."""

        form = self.get_object()
        if request.method == "DELETE":
            return Response({"cancelled": scheduler.cancel(form.pk)})

        payload = AutosaveSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        snapshot = payload.to_snapshot()
        if not snapshot["metadata"]["title"]:
            return Response({"scheduled": False}, status=status.HTTP_202_ACCEPTED)
        scheduler.schedule(form.pk, snapshot)
        return Response(
            {"scheduled": True, "quiet_period": scheduler.wait},
            status=status.HTTP_202_ACCEPTED,
        )

    @action(detail=True, methods=["post"], url_path="fields")
    def add_field(self, request, *args, **kwargs):  # type: ignore[override]
        payload = AddFieldSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        session = self._open_session(discard_autosave=True)
        descriptor = session.add_field(payload.validated_data["field_type"])
        return self._field_response(session, descriptor.order, status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="fields/move")
    def move_field(self, request, *args, **kwargs):  # type: ignore[override]
        payload = MoveFieldSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        session = self._open_session(discard_autosave=True)
        session.move_field(
            payload.validated_data["from_position"],
            payload.validated_data["to_position"],
        )
        session.sync()
        session.close()
        return Response([descriptor.as_payload() for descriptor in session.fields])

    @action(detail=True, methods=["patch", "delete"], url_path=r"fields/(?P<position>\d+)")
    def field_detail(self, request, position, *args, **kwargs):  # type: ignore[override]
        position = int(position)
        session = self._open_session(discard_autosave=True)
        if request.method == "DELETE":
            session.remove_field(position)
            session.sync()
            session.close()
            return Response(status=status.HTTP_204_NO_CONTENT)

        payload = UpdateFieldSerializer(data=request.data, partial=True)
        payload.is_valid(raise_exception=True)
        session.update_field(position, **payload.validated_data)
        return self._field_response(session, position)
