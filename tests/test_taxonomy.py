"""Tests for taxonomy loading."""

import json
import logging

from prorag.graph import TaxonomyLoader
from prorag.graph.taxonomy import AIA_DIMENSIONS


class TestBuiltinTaxonomy:
    """Test the built-in AIA taxonomy."""

    def test_load_aia(self):
        taxonomy = TaxonomyLoader().load("AIA")

        assert taxonomy is not None
        assert taxonomy.name == "AIA"
        assert [d.id for d in taxonomy.dimensions] == [
            "designForIntegration",
            "designForWater",
            "designForEconomy",
        ]

    def test_embedding_text(self):
        water = AIA_DIMENSIONS[1]
        assert water.embedding_text().startswith("Design for Water. Good design conserves")

    def test_unknown_name_returns_none(self, caplog):
        with caplog.at_level(logging.WARNING, logger="prorag.graph.taxonomy"):
            assert TaxonomyLoader().load("LEED") is None
        assert "Taxonomy 'LEED' not found" in caplog.text

    def test_empty_name_returns_none(self):
        assert TaxonomyLoader().load("") is None
        assert TaxonomyLoader().load(None) is None

    def test_loaded_dimensions_are_a_copy(self):
        taxonomy = TaxonomyLoader().load("AIA")
        taxonomy.dimensions.clear()

        assert len(TaxonomyLoader().load("AIA").dimensions) == 3


class TestTaxonomyDirectory:
    """Test file-based taxonomies."""

    def test_load_from_directory(self, tmp_path):
        (tmp_path / "LEED.json").write_text(
            json.dumps(
                {
                    "dimensions": [
                        {"id": "energy", "name": "Energy", "keywords": ["solar", "insulation"]},
                    ]
                }
            )
        )

        taxonomy = TaxonomyLoader(tmp_path).load("LEED")

        assert taxonomy.name == "LEED"
        assert taxonomy.dimensions[0].keywords == ("solar", "insulation")
        assert taxonomy.dimensions[0].description == ""

    def test_bare_list_accepted(self, tmp_path):
        (tmp_path / "tiny.json").write_text(json.dumps([{"id": "a", "name": "A"}]))

        taxonomy = TaxonomyLoader(tmp_path).load("tiny")

        assert [d.id for d in taxonomy.dimensions] == ["a"]

    def test_file_overrides_builtin(self, tmp_path):
        (tmp_path / "AIA.json").write_text(
            json.dumps({"dimensions": [{"id": "custom", "name": "Custom"}]})
        )

        taxonomy = TaxonomyLoader(tmp_path).load("AIA")

        assert [d.id for d in taxonomy.dimensions] == ["custom"]

    def test_malformed_file_returns_none(self, tmp_path, caplog):
        (tmp_path / "broken.json").write_text("{not json")

        with caplog.at_level(logging.WARNING, logger="prorag.graph.taxonomy"):
            assert TaxonomyLoader(tmp_path).load("broken") is None
        assert "Ignoring malformed taxonomy file" in caplog.text

    def test_invalid_dimension_returns_none(self, tmp_path):
        (tmp_path / "bad.json").write_text(json.dumps({"dimensions": [{"name": "No id"}]}))

        assert TaxonomyLoader(tmp_path).load("bad") is None

    def test_missing_file_falls_back_to_builtin(self, tmp_path):
        assert TaxonomyLoader(tmp_path).load("AIA") is not None

    def test_available(self, tmp_path):
        (tmp_path / "LEED.json").write_text("[]")
        (tmp_path / "notes.txt").write_text("ignored")

        assert TaxonomyLoader(tmp_path).available() == ["AIA", "LEED"]
        assert TaxonomyLoader().available() == ["AIA"]
        assert TaxonomyLoader(tmp_path / "missing").available() == ["AIA"]
