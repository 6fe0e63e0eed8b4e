"""
tests/conftest.py
Shared fixtures for the zodgen test suite.

All fixtures are session-scoped or function-scoped as appropriate.
No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import pathlib
from typing import Any, Dict

import pytest
import yaml

from zodgen.generator import parse_raw_document
from zodgen.models import GenerationContext, GeneratorConfig, MetadataDocument


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
METADATA_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "metadata_example.yaml"


# ---------------------------------------------------------------------------
# Raw metadata fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_metadata_dict() -> Dict[str, Any]:
    """Load the reference metadata_example.yaml once per session."""
    assert METADATA_EXAMPLE_PATH.exists(), (
        f"Reference metadata not found at {METADATA_EXAMPLE_PATH}. "
        "Make sure metadata_example.yaml is in the project root."
    )
    with open(METADATA_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def metadata_dict(raw_metadata_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_metadata_dict)


@pytest.fixture()
def metadata_yaml_path(
    metadata_dict: Dict[str, Any], tmp_path: pathlib.Path
) -> pathlib.Path:
    """Write the example document to a temporary YAML file, output under tmp_path."""
    metadata_dict["config"]["output"] = str(tmp_path / "generated")
    path = tmp_path / "metadata.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(metadata_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


# ---------------------------------------------------------------------------
# Parsed fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def example_metadata(metadata_dict: Dict[str, Any]) -> MetadataDocument:
    metadata, _ = parse_raw_document(metadata_dict)
    return metadata


@pytest.fixture()
def example_config(metadata_dict: Dict[str, Any], tmp_path: pathlib.Path) -> GeneratorConfig:
    _, config = parse_raw_document(metadata_dict)
    return config.model_copy(update={"output": str(tmp_path / "generated")})


@pytest.fixture()
def example_context(
    example_metadata: MetadataDocument, example_config: GeneratorConfig
) -> GenerationContext:
    return GenerationContext.build(example_config, example_metadata)


@pytest.fixture()
def plain_context() -> GenerationContext:
    """postgresql, no select / include, default client."""
    return GenerationContext()


# ---------------------------------------------------------------------------
# Minimal / edge-case metadata fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def minimal_metadata_dict() -> Dict[str, Any]:
    """One model without relations, one composite, one operation."""
    return {
        "metadata": {
            "provider": "sqlite",
            "models": [
                {
                    "name": "Tag",
                    "fields": [
                        {"name": "id", "kind": "scalar", "type": "Int"},
                        {"name": "label", "kind": "scalar", "type": "String"},
                    ],
                }
            ],
            "enums": [{"name": "TagScalarFieldEnum", "values": ["id", "label"]}],
            "inputObjectTypes": [
                {
                    "name": "TagWhereUniqueInput",
                    "fields": [
                        {"name": "id", "inputTypes": [{"type": "Int", "location": "scalar"}]}
                    ],
                }
            ],
            "modelOperations": [{"model": "Tag", "operations": ["findUnique"]}],
        },
        "config": {},
    }


@pytest.fixture()
def minimal_metadata_yaml_path(
    minimal_metadata_dict: Dict[str, Any], tmp_path: pathlib.Path
) -> pathlib.Path:
    minimal_metadata_dict["config"]["output"] = str(tmp_path / "generated")
    path = tmp_path / "minimal_metadata.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(minimal_metadata_dict, fh, default_flow_style=False)
    return path


@pytest.fixture()
def metadata_unknown_model(minimal_metadata_dict: Dict[str, Any]) -> Dict[str, Any]:
    """An operation mapping naming a model that is not declared."""
    data = copy.deepcopy(minimal_metadata_dict)
    data["metadata"]["modelOperations"].append({"model": "Ghost", "operations": ["findMany"]})
    return data


# ---------------------------------------------------------------------------
# Output directory fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Provide a clean output directory inside tmp_path."""
    out = tmp_path / "generated_output"
    out.mkdir(parents=True, exist_ok=True)
    return out
