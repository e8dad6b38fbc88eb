"""How the JSON API reports bad requests."""

import uuid

import pytest
from django.urls import reverse

from gangbook.core.models import Gang


@pytest.mark.django_db
def test_anonymous_requests_are_unauthorized(client, gang):
    response = client.get(reverse("api:gangs"))

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}

    response = client.post(
        reverse("api:gang-credits", args=[gang.pk]),
        {"amount": 10},
        content_type="application/json",
    )
    assert response.status_code == 401


@pytest.mark.django_db
def test_unsupported_method(api):
    response = api.put(reverse("api:gangs"), {})

    assert response.status_code == 405
    assert response.json() == {"error": "Method not allowed"}


@pytest.mark.django_db
def test_missing_object(api):
    response = api.get(reverse("api:gang", args=[uuid.uuid4()]))

    assert response.status_code == 404
    assert "error" in response.json()


@pytest.mark.django_db
def test_body_must_be_json_object(api, gang):
    url = reverse("api:gang-credits", args=[gang.pk])

    response = api.client.post(url, "not json", content_type="application/json")
    assert response.status_code == 400
    assert response.json() == {"error": "Request body must be valid JSON"}

    response = api.post(url, [1, 2])
    assert response.status_code == 400
    assert response.json() == {"error": "Request body must be a JSON object"}


@pytest.mark.django_db
def test_schema_errors_name_the_field(api, gang_type):
    response = api.post(reverse("api:gangs"), {"name": "Gang", "gang_type_id": "nope"})

    assert response.status_code == 400
    assert response.json()["error"].startswith("gang_type_id: ")


@pytest.mark.django_db
def test_handler_validation_errors_are_400(api, gang):
    response = api.post(
        reverse("api:gang-credits", args=[gang.pk]),
        {"amount": 5000, "operation": "spend"},
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": "Gang has insufficient credits. Required: 5000, Available: 1000"
    }


@pytest.mark.django_db
def test_other_users_gang_is_forbidden(client, other_user, gang):
    client.force_login(other_user)

    response = client.post(
        reverse("api:gang-credits", args=[gang.pk]),
        {"amount": 10},
        content_type="application/json",
    )

    assert response.status_code == 403
    assert response.json() == {"error": "Not authorized to access this gang"}
    assert Gang.objects.get(pk=gang.pk).credits == 1000


@pytest.mark.django_db
def test_unexpected_errors_are_500(api, gang, monkeypatch):
    def explode(**kwargs):
        raise RuntimeError("database on fire")

    monkeypatch.setattr("gangbook.api.views.gangs.handle_gang_credits", explode)

    response = api.post(reverse("api:gang-credits", args=[gang.pk]), {"amount": 10})

    assert response.status_code == 500
    assert response.json() == {"error": "An unexpected error occurred"}
