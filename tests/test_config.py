import pytest

from chromasplit.config import Settings, build_analyzer, build_pipeline, load_settings
from chromasplit.services.analysis_service import DEFAULT_API_BASE, DEFAULT_MODEL


def test_defaults_from_empty_environment():
    settings = load_settings({})
    assert settings == Settings()
    assert settings.api_key is None
    assert settings.model == DEFAULT_MODEL
    assert settings.api_base == DEFAULT_API_BASE


def test_values_are_parsed():
    settings = load_settings(
        {
            "GEMINI_API_KEY": "k1",
            "CHROMASPLIT_MODEL": "other-model",
            "CHROMASPLIT_API_BASE": "http://localhost:9000",
            "CHROMASPLIT_ANALYSIS_TIMEOUT": "2.5",
            "CHROMASPLIT_WORKERS": "8",
            "CHROMASPLIT_LOG_LEVEL": "debug",
        }
    )
    assert settings == Settings(
        api_key="k1",
        model="other-model",
        api_base="http://localhost:9000",
        analysis_timeout=2.5,
        max_workers=8,
        log_level="DEBUG",
    )


def test_api_key_fallback():
    assert load_settings({"API_KEY": "legacy"}).api_key == "legacy"
    assert load_settings({"API_KEY": "legacy", "GEMINI_API_KEY": "new"}).api_key == "new"
    assert load_settings({"GEMINI_API_KEY": ""}).api_key is None


@pytest.mark.parametrize(
    "env",
    [
        {"CHROMASPLIT_ANALYSIS_TIMEOUT": "soon"},
        {"CHROMASPLIT_ANALYSIS_TIMEOUT": "0"},
        {"CHROMASPLIT_WORKERS": "many"},
        {"CHROMASPLIT_WORKERS": "0"},
        {"CHROMASPLIT_LOG_LEVEL": "LOUD"},
    ],
)
def test_invalid_values(env):
    with pytest.raises(ValueError) as info:
        load_settings(env)
    assert next(iter(env)) in str(info.value)


def test_factories_use_settings():
    settings = Settings(api_key="k", model="m", api_base="http://x/v1", max_workers=2)
    assert build_analyzer(settings).endpoint == "http://x/v1/models/m:generateContent"
    assert build_pipeline(settings) is not None
