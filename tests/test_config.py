"""Settings and startup tests."""

import pytest
from pydantic import ValidationError

from storefront.core.config import Settings
from storefront.main import create_app
from storefront.repositories.document_store import DocumentRecordStore
from storefront.repositories.factory import build_record_store
from storefront.repositories.sql_store import SqlRecordStore


class TestSigningSecret:
    def test_missing_secret_refuses_to_start(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("JWT_SECRET", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    @pytest.mark.parametrize("secret", ["", "   "])
    def test_empty_secret_refused(self, secret: str) -> None:
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET=secret, _env_file=None)

    def test_secret_not_in_repr(self) -> None:
        settings = Settings(JWT_SECRET="super-secret-value", _env_file=None)
        assert "super-secret-value" not in repr(settings)
        assert "super-secret-value" not in str(settings.model_dump())

    def test_read_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JWT_SECRET", "from-env")
        monkeypatch.setenv("ACCESS_TOKEN_TTL_MINUTES", "15")
        settings = Settings(_env_file=None)
        assert settings.JWT_SECRET.get_secret_value() == "from-env"
        assert settings.ACCESS_TOKEN_TTL_MINUTES == 15


class TestDefaults:
    def test_defaults(self) -> None:
        settings = Settings(JWT_SECRET="x", _env_file=None)
        assert settings.JWT_ALG == "HS256"
        assert settings.BCRYPT_ROUNDS == 10
        assert settings.RECORD_STORE == "sql"

    def test_bcrypt_rounds_range(self) -> None:
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET="x", BCRYPT_ROUNDS=3, _env_file=None)


class TestStoreSelection:
    def test_sql(self, tmp_path) -> None:
        settings = Settings(JWT_SECRET="x", DATABASE_URL=f"sqlite:///{tmp_path / 'a.db'}", _env_file=None)
        store = build_record_store(settings)
        assert isinstance(store, SqlRecordStore)
        assert store.supports_transactions is True
        store.close()

    def test_document(self) -> None:
        settings = Settings(JWT_SECRET="x", RECORD_STORE="document", MONGODB_DB="shop", _env_file=None)
        store = build_record_store(settings)
        assert isinstance(store, DocumentRecordStore)
        assert store.db.name == "shop"
        store.close()

    def test_app_uses_selected_store(self, settings, document_store) -> None:
        app = create_app(settings, store=document_store)
        assert app.state.store is document_store
        assert app.state.order_service.coordinator.store is document_store
