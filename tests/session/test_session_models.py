import pytest
from pydantic import ValidationError

from attribution_console.session.models import Session, User


def test_user_keeps_unknown_fields():
    user = User.model_validate({"id": 7, "tenant_id": 3, "org_name": "Acme"})
    assert user.model_dump()["org_name"] == "Acme"


@pytest.mark.parametrize("payload", [{}, {"id": ""}, {"id": "   "}])
def test_user_requires_identifier(payload):
    with pytest.raises(ValidationError):
        User.model_validate(payload)


def test_display_name_prefers_full_name():
    assert User(id=1, first_name="Ada", last_name="Lovelace").display_name == "Ada Lovelace"
    assert User(id=1, email="ada@example.com").display_name == "ada@example.com"
    assert User(id=1).display_name == "1"


def test_empty_session_is_unauthenticated():
    session = Session.empty()
    assert not session.is_authenticated
    assert session.tenant_id is None
    assert session.token is None


def test_token_without_user_is_rejected():
    with pytest.raises(ValidationError):
        Session(token="abc")


def test_user_without_token_is_allowed():
    session = Session(user=User(id=7, tenant_id=3))
    assert session.is_authenticated
    assert session.tenant_id == 3
    assert session.to_storage() == {"user": {"id": 7, "tenant_id": 3}}


def test_storage_payload_restores_equal_session():
    session = Session(user=User(id=7, tenant_id=3, email="a@b.com"), token="tok")
    assert Session.from_storage(session.to_storage()) == session


def test_from_storage_accepts_bare_user_object():
    session = Session.from_storage({"id": 9, "tenant_id": "t-1"})
    assert session.user is not None and session.user.id == 9
    assert session.tenant_id == "t-1"
    assert session.token is None


@pytest.mark.parametrize("payload", [[1, 2], "user", {"user": {"email": "a@b.com"}}])
def test_from_storage_rejects_malformed_payloads(payload):
    with pytest.raises(ValueError):
        Session.from_storage(payload)
