import os
import sys
from pathlib import Path

import pytest

# Ensure the repository's src/ is importable
sys.path.insert(0, os.path.abspath("src"))

from auction_appraisal.config import VertexConfig, load_vertex_config
from auction_appraisal.vertex import resolve_generate_content_url

ENV_KEYS = (
    "PROJECT_ID",
    "VERTEX_LOCATION",
    "VERTEX_ENDPOINT_ID",
    "VERTEX_MODEL",
    "GEMINI_MODEL",
    "GCP_SERVICE_ACCOUNT_KEY",
    "VERTEX_TIMEOUT",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_endpoint_id_takes_precedence():
    cfg = VertexConfig(
        project_id="proj",
        location="us-central1",
        endpoint_id="1234",
        vertex_model="projects/other/locations/europe-west4/models/m",
        gemini_model="gemini-2.0-flash",
    )
    assert resolve_generate_content_url(cfg) == (
        "https://us-central1-aiplatform.googleapis.com/v1/projects/proj/locations/us-central1"
        "/endpoints/1234:generateContent"
    )


def test_endpoint_id_without_project_falls_through():
    cfg = VertexConfig(location="us-central1", endpoint_id="1234")
    assert resolve_generate_content_url(cfg) is None


def test_full_model_resource_path():
    cfg = VertexConfig(
        project_id="ignored",
        location="us-central1",
        vertex_model="projects/tuned/locations/europe-west4/models/987654",
        gemini_model="gemini-2.0-flash",
    )
    assert resolve_generate_content_url(cfg) == (
        "https://europe-west4-aiplatform.googleapis.com/v1/projects/tuned/locations/europe-west4"
        "/models/987654:generateContent"
    )


def test_malformed_vertex_model_falls_back_to_publisher_model():
    cfg = VertexConfig(
        project_id="proj",
        location="us-east4",
        vertex_model="gemini-2.0-flash",
        gemini_model="gemini-1.5-pro",
    )
    assert resolve_generate_content_url(cfg) == (
        "https://us-east4-aiplatform.googleapis.com/v1/projects/proj/locations/us-east4"
        "/publishers/google/models/gemini-1.5-pro:generateContent"
    )


def test_missing_configuration_returns_none():
    assert resolve_generate_content_url(VertexConfig()) is None
    assert resolve_generate_content_url(VertexConfig(project_id="p", location="l")) is None


def test_load_reads_env_over_dotenv(tmp_path: Path, clean_env):
    (tmp_path / ".env").write_text(
        "PROJECT_ID=from-file\nVERTEX_LOCATION='us-central1'\nGEMINI_MODEL=gemini-2.0-flash\n",
        encoding="utf-8",
    )
    clean_env.setenv("PROJECT_ID", "from-env")
    cfg = load_vertex_config(str(tmp_path))
    assert cfg.project_id == "from-env"
    assert cfg.location == "us-central1"
    assert cfg.gemini_model == "gemini-2.0-flash"
    assert cfg.endpoint_id is None


def test_load_finds_dotenv_in_parent_directory(tmp_path: Path, clean_env):
    (tmp_path / ".env").write_text("VERTEX_ENDPOINT_ID=42\n", encoding="utf-8")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert load_vertex_config(str(nested)).endpoint_id == "42"


def test_blank_values_are_treated_as_unset(tmp_path: Path, clean_env):
    clean_env.setenv("VERTEX_MODEL", "   ")
    assert load_vertex_config(str(tmp_path)).vertex_model is None


def test_invalid_timeout_uses_default(tmp_path: Path, clean_env):
    clean_env.setenv("VERTEX_TIMEOUT", "soon")
    assert load_vertex_config(str(tmp_path)).timeout == 120.0
    clean_env.setenv("VERTEX_TIMEOUT", "30")
    assert load_vertex_config(str(tmp_path)).timeout == 30.0
