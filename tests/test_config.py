"""Tests for ProRAGConfig."""

import pytest

from prorag.config import ProRAGConfig

ENV_VARS = (
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "PRORAG_LLM_PROVIDER",
    "PRORAG_LLM_MODEL",
    "PRORAG_EMBEDDING_PROVIDER",
    "PRORAG_EMBEDDING_MODEL",
    "PRORAG_TOP_K",
    "PRORAG_TAXONOMY_DIR",
    "PRORAG_SEMANTIC_THRESHOLD",
    "PRORAG_UNROUTED_FIELDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    """Test built-in defaults."""

    def test_defaults(self):
        config = ProRAGConfig()

        assert config.llm_model == "gpt-4o-mini"
        assert config.embedding_model == "text-embedding-3-small"
        assert config.retrieval_top_k == 10
        assert config.chat_top_k == 4
        assert config.unrouted_field_policy == "log"
        assert config.graph_match_strategy == "keyword"
        assert config.graph_semantic_threshold == 0.78
        assert config.openai_api_key is None


class TestEnvironment:
    """Test environment variable loading."""

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("PRORAG_LLM_MODEL", "gpt-4o")
        monkeypatch.setenv("PRORAG_TOP_K", "5")
        monkeypatch.setenv("PRORAG_SEMANTIC_THRESHOLD", "0.9")
        monkeypatch.setenv("PRORAG_UNROUTED_FIELDS", "reject")

        config = ProRAGConfig.from_env()

        assert config.openai_api_key == "sk-test"
        assert config.llm_model == "gpt-4o"
        assert config.retrieval_top_k == 5
        assert config.graph_semantic_threshold == 0.9
        assert config.unrouted_field_policy == "reject"

    def test_openai_model_fallback(self, monkeypatch):
        monkeypatch.setenv("OPENAI_MODEL", "gpt-4.1")
        assert ProRAGConfig().llm_model == "gpt-4.1"

    def test_explicit_beats_env(self, monkeypatch):
        monkeypatch.setenv("PRORAG_LLM_MODEL", "gpt-4o")
        assert ProRAGConfig(llm_model="gpt-4o-mini").llm_model == "gpt-4o-mini"


class TestValidation:
    """Test option validation."""

    def test_unknown_option(self):
        with pytest.raises(ValueError, match="Unknown configuration option: nope"):
            ProRAGConfig(nope=1)

    def test_private_option_rejected(self):
        with pytest.raises(ValueError):
            ProRAGConfig(_validate=None)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"unrouted_field_policy": "ignore"},
            {"graph_match_strategy": "fuzzy"},
            {"graph_semantic_threshold": 1.5},
            {"retrieval_top_k": 0},
            {"embedding_batch_size": -1},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            ProRAGConfig(**kwargs)

    def test_with_overrides(self):
        base = ProRAGConfig()
        derived = base.with_overrides(retrieval_top_k=3, graph_match_strategy="semantic")

        assert derived.retrieval_top_k == 3
        assert derived.graph_match_strategy == "semantic"
        assert base.retrieval_top_k == 10

    def test_with_overrides_validates(self):
        with pytest.raises(ValueError):
            ProRAGConfig().with_overrides(unrouted_field_policy="drop")
        with pytest.raises(ValueError):
            ProRAGConfig().with_overrides(bogus=True)


class TestFiles:
    """Test TOML round trips."""

    def test_from_file(self, tmp_path):
        path = tmp_path / "prorag.toml"
        path.write_text(
            "[llm]\n"
            'model = "gpt-4o"\n'
            "\n"
            "[retrieval]\n"
            "top_k = 8\n"
            'unrouted_field_policy = "reject"\n'
            "\n"
            "[graph]\n"
            'match_strategy = "semantic"\n'
            "semantic_threshold = 0.8\n"
            'taxonomy_dir = "./taxonomies"\n'
            "\n"
            "[api_keys]\n"
            'openai = "sk-file"\n'
        )

        config = ProRAGConfig.from_file(path)

        assert config.llm_model == "gpt-4o"
        assert config.retrieval_top_k == 8
        assert config.unrouted_field_policy == "reject"
        assert config.graph_match_strategy == "semantic"
        assert config.graph_semantic_threshold == 0.8
        assert config.taxonomy_dir == "./taxonomies"
        assert config.openai_api_key == "sk-file"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ProRAGConfig.from_file(tmp_path / "missing.toml")

    def test_to_file_round_trip(self, tmp_path):
        original = ProRAGConfig(
            llm_model="gpt-4o",
            chat_top_k=6,
            graph_label_length=40,
            document_min_chunk_chars=20,
            openai_api_key="sk-secret",
        )
        path = tmp_path / "out" / "prorag.toml"

        original.to_file(path)
        loaded = ProRAGConfig.from_file(path)

        assert "sk-secret" not in path.read_text()
        assert loaded.llm_model == "gpt-4o"
        assert loaded.chat_top_k == 6
        assert loaded.graph_label_length == 40
        assert loaded.document_min_chunk_chars == 20
        assert loaded.llm_timeout_seconds == 120.0
        assert loaded.document_max_chunk_chars == 500
        assert loaded.taxonomy_dir is None

    def test_disabled_deadlines_survive_round_trip(self, tmp_path):
        original = ProRAGConfig(
            embedding_timeout_seconds=None,
            llm_timeout_seconds=None,
            document_max_chunk_chars=None,
        )
        path = tmp_path / "prorag.toml"

        original.to_file(path)
        loaded = ProRAGConfig.from_file(path)

        assert "llm_timeout_seconds = 0" in path.read_text()
        assert loaded.embedding_timeout_seconds is None
        assert loaded.llm_timeout_seconds is None
        assert loaded.document_max_chunk_chars is None

    def test_zero_timeout_means_disabled(self):
        assert ProRAGConfig(llm_timeout_seconds=0).llm_timeout_seconds is None
