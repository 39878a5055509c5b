"""
Configuration classes.

Tests cover:
  - ProductionConfig refuses to start without explicit CORS origins
  - the app factory allows no cross-origin callers when origins are empty
"""

import pytest

from projecthub.config import ProductionConfig, TestingConfig


@pytest.fixture()
def prod_env(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "prod-secret")
    monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", "postgresql://db/projecthub")
    return monkeypatch


class TestProductionConfig:
    @pytest.mark.parametrize("origins", ["", "   ", "*", None])
    def test_rejects_open_cors(self, prod_env, origins):
        prod_env.setattr(ProductionConfig, "CORS_ORIGINS", origins)
        with pytest.raises(RuntimeError, match="CORS_ORIGINS"):
            ProductionConfig()

    def test_accepts_explicit_origins(self, prod_env):
        prod_env.setattr(ProductionConfig, "CORS_ORIGINS", "https://app.example.com")
        assert ProductionConfig().CORS_ORIGINS == "https://app.example.com"

    def test_requires_database_url(self, prod_env):
        prod_env.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", None)
        prod_env.setattr(ProductionConfig, "CORS_ORIGINS", "https://app.example.com")
        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            ProductionConfig()


class TestCorsWiring:
    def test_empty_origins_send_no_allow_origin_header(self, monkeypatch):
        from projecthub import create_app

        monkeypatch.setattr(TestingConfig, "CORS_ORIGINS", "")
        app = create_app("testing")
        res = app.test_client().get("/api/v1/health", headers={"Origin": "https://evil.example"})
        assert "Access-Control-Allow-Origin" not in res.headers

    def test_listed_origin_is_echoed(self, monkeypatch):
        from projecthub import create_app

        monkeypatch.setattr(TestingConfig, "CORS_ORIGINS", "https://app.example.com")
        app = create_app("testing")
        res = app.test_client().get("/api/v1/health", headers={"Origin": "https://app.example.com"})
        assert res.headers.get("Access-Control-Allow-Origin") == "https://app.example.com"
