from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from api_doc_catalog.options import DocumentatorOptions, TieBreak, load_options

FIXTURES = Path(__file__).parent / "fixtures"


class TestLoadOptions:
    def test_defaults(self):
        options = load_options()
        assert options == DocumentatorOptions()
        assert options.max_example_depth == 4
        assert options.excluded_route_prefixes == ["/get-metadata", "/openapi"]
        assert options.tie_break_order == [
            TieBreak.PARAMETER_COUNT,
            TieBreak.KNOWN_RETURN_TYPE,
            TieBreak.PLAIN_SUMMARY,
        ]

    def test_from_file(self):
        options = load_options(FIXTURES / "options.yaml")
        assert options.api_name == "Shop API"
        assert options.max_example_depth == 3
        assert options.always_keep_routes == ["/ping"]
        assert options.tie_break_order == [TieBreak.KNOWN_RETURN_TYPE, TieBreak.PARAMETER_COUNT]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_options(path) == DocumentatorOptions()

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="expected a mapping"):
            load_options(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("api_name: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_options(path)

    def test_invalid_depth(self, tmp_path):
        path = tmp_path / "depth.yaml"
        path.write_text("max_example_depth: 0\n")
        with pytest.raises(ValidationError):
            load_options(path)
