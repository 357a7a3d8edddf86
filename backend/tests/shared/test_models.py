"""
Tests for shared models.
"""

from shared.models import DEFAULT_PAGE_SIZE, ApiModel, MessageResponse, Pagination, UserInput


class Profile(ApiModel):
    first_name: str
    send_digest: bool = True


class TestApiModel:
    """Tests for the camelCase JSON surface."""

    def test_accepts_camel_case(self):
        assert Profile.model_validate({"firstName": "Ann"}).first_name == "Ann"

    def test_accepts_snake_case(self):
        """Services build models with Python names."""
        assert Profile(first_name="Ann").first_name == "Ann"

    def test_dumps_camel_case(self):
        assert Profile(first_name="Ann").model_dump(by_alias=True) == {"firstName": "Ann", "sendDigest": True}


class TestPagination:
    def test_defaults(self):
        page = Pagination()
        assert page.limit == DEFAULT_PAGE_SIZE
        assert page.offset == 0

    def test_offset(self):
        assert Pagination(page=3, size=20).offset == 60

    def test_no_limit(self):
        """A negative size turns the page into a plain offset."""
        page = Pagination(page=7, size=-1)
        assert page.limit == -1
        assert page.offset == 7


class TestUserInput:
    def test_by_id_or_email(self):
        assert UserInput.model_validate({"id": "abc"}).email is None
        assert UserInput.model_validate({"email": "a@x.com"}).id is None


class TestMessageResponse:
    def test_body(self):
        assert MessageResponse(message="pass").model_dump() == {"message": "pass"}
