import re

import pytest

from app.core.errors import DuplicateUserError, NotFoundError, PersistenceError, ValidationError
from app.services.conversation_store import ConversationStore
from app.services.database import Database
from app.services.user_directory import UserDirectory, generate_user_id

USER_ID_PATTERN = re.compile(r"^[0-9a-z]+-[0-9a-z]{6}$")


class TestGenerateUserId:
    def test_format(self):
        assert USER_ID_PATTERN.match(generate_user_id())

    def test_unique(self):
        ids = {generate_user_id() for _ in range(1000)}
        assert len(ids) == 1000


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_trims_name(self, user_directory):
        user = await user_directory.register("  Ada  ")

        assert user.name == "Ada"
        assert USER_ID_PATTERN.match(user.user_id)

    @pytest.mark.asyncio
    async def test_duplicate_trimmed_name_rejected(self, user_directory):
        await user_directory.register("Ada")

        with pytest.raises(DuplicateUserError) as exc:
            await user_directory.register(" Ada ")

        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_names_are_case_sensitive(self, user_directory):
        first = await user_directory.register("Ada")
        second = await user_directory.register("ada")

        assert first.user_id != second.user_id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", [None, "", "   ", 42, ["Ada"]])
    async def test_invalid_names_rejected(self, user_directory, name):
        with pytest.raises(ValidationError):
            await user_directory.register(name)

    @pytest.mark.asyncio
    async def test_overlong_name_rejected(self, user_directory):
        with pytest.raises(ValidationError):
            await user_directory.register("x" * 256)

    @pytest.mark.asyncio
    async def test_register_without_database(self):
        db = Database()
        directory = UserDirectory(db, ConversationStore(db))

        with pytest.raises(PersistenceError):
            await directory.register("Ada")


class TestLogin:
    @pytest.mark.asyncio
    async def test_register_then_login_has_no_conversations(self, user_directory):
        registered = await user_directory.register("Ada")

        user, conversations = await user_directory.login("Ada", registered.user_id)

        assert user.user_id == registered.user_id
        assert user.name == "Ada"
        assert conversations == []

    @pytest.mark.asyncio
    async def test_login_returns_conversation_after_exchange(self, user_directory, conversation_service):
        registered = await user_directory.register("Ada")
        await conversation_service.exchange(registered.user_id, "hello")

        _, conversations = await user_directory.login("Ada", registered.user_id)

        assert len(conversations) == 1
        assert len(conversations[0].messages) == 2

    @pytest.mark.asyncio
    async def test_login_with_wrong_id_not_found(self, user_directory):
        await user_directory.register("Ada")

        with pytest.raises(NotFoundError):
            await user_directory.login("Ada", "wrong-id")

    @pytest.mark.asyncio
    async def test_login_with_other_name_not_found(self, user_directory):
        registered = await user_directory.register("Ada")

        with pytest.raises(NotFoundError):
            await user_directory.login("Grace", registered.user_id)

    @pytest.mark.asyncio
    async def test_login_with_missing_fields_not_found(self, user_directory):
        await user_directory.register("Ada")

        with pytest.raises(NotFoundError):
            await user_directory.login(None, None)
