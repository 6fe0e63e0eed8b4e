"""
tests/test_validators.py
Unit tests for zodgen.validators.

Tests cover:
- The ValidationResult container
- Model, relation, enum, input-type and operation-mapping checks
- Generator configuration checks
- Dry-run reference resolution
- Full validation pipeline (validate_full)
"""

from __future__ import annotations

import copy
from typing import Any, Dict

from zodgen.generator import parse_raw_document
from zodgen.models import (
    ClientGeneratorConfig,
    GeneratorConfig,
    MetadataDocument,
)
from zodgen.validators import (
    ValidationResult,
    validate_enum_definitions,
    validate_full,
    validate_generator_config,
    validate_input_types,
    validate_model_names,
    validate_operation_mappings,
    validate_references,
    validate_relations,
)


def _metadata(raw: Dict[str, Any]) -> MetadataDocument:
    metadata, _ = parse_raw_document(raw)
    return metadata


# ===========================================================================
# ValidationResult
# ===========================================================================


class TestValidationResult:

    def test_empty_result_is_valid(self) -> None:
        result = ValidationResult()
        assert result.is_valid
        assert bool(result)
        assert len(result) == 0

    def test_levels(self) -> None:
        result = ValidationResult()
        result.add_error("E", "error")
        result.add_warning("W", "warning")
        result.add_info("I", "info")
        assert not result.is_valid
        assert result.error_count == 1
        assert result.warning_count == 1
        assert result.codes() == ["E", "W", "I"]
        assert "[I]" not in result.format_report()
        assert "[I]" in result.format_report(include_info=True)

    def test_merge(self) -> None:
        first, second = ValidationResult(), ValidationResult()
        second.add_warning("W", "warning")
        first.merge(second)
        assert first.has_warnings


# ===========================================================================
# Metadata checks
# ===========================================================================


class TestMetadataChecks:

    def test_example_is_clean(self, example_metadata: MetadataDocument) -> None:
        assert validate_model_names(example_metadata).is_valid
        assert validate_relations(example_metadata).is_valid
        assert len(validate_enum_definitions(example_metadata)) == 0
        assert validate_operation_mappings(example_metadata).is_valid

    def test_invalid_model_name(self, minimal_metadata_dict: Dict[str, Any]) -> None:
        minimal_metadata_dict["metadata"]["models"][0]["name"] = "Bad-Name"
        result = validate_model_names(_metadata(minimal_metadata_dict))
        assert "MODEL_NAME_INVALID" in result.codes()

    def test_duplicate_field_name(self, minimal_metadata_dict: Dict[str, Any]) -> None:
        fields = minimal_metadata_dict["metadata"]["models"][0]["fields"]
        fields.append(copy.deepcopy(fields[0]))
        result = validate_model_names(_metadata(minimal_metadata_dict))
        assert "FIELD_NAME_DUPLICATE" in result.codes()

    def test_relation_to_unknown_model(self, minimal_metadata_dict: Dict[str, Any]) -> None:
        minimal_metadata_dict["metadata"]["models"][0]["fields"].append(
            {"name": "owner", "kind": "object", "type": "Owner"}
        )
        result = validate_relations(_metadata(minimal_metadata_dict))
        assert not result.is_valid
        assert result.errors[0].context["target"] == "Owner"

    def test_enum_checks(self, minimal_metadata_dict: Dict[str, Any]) -> None:
        data = minimal_metadata_dict["metadata"]
        data["enums"].append({"name": "Tag", "values": ["A"]})
        data["models"][0]["fields"].append({"name": "kind", "kind": "enum", "type": "Kind"})
        result = validate_enum_definitions(_metadata(minimal_metadata_dict))
        assert result.is_valid
        assert set(result.codes()) == {"ENUM_MODEL_NAME_CLASH", "ENUM_UNKNOWN"}

    def test_duplicate_enum_is_an_error(self) -> None:
        metadata = MetadataDocument.model_validate(
            {"enums": [{"name": "Role", "values": ["A"]}, {"name": "Role", "values": ["B"]}]}
        )
        assert "ENUM_NAME_DUPLICATE" in validate_enum_definitions(metadata).codes()

    def test_input_type_checks(self) -> None:
        metadata = MetadataDocument.model_validate(
            {
                "inputObjectTypes": [
                    {"name": "A", "fields": [{"name": "x", "inputTypes": []}]},
                    {"name": "A", "fields": []},
                    {
                        "name": "B",
                        "fields": [
                            {
                                "name": "y",
                                "inputTypes": [{"type": "IntFieldRef", "location": "fieldRefTypes"}],
                            }
                        ],
                    },
                ]
            }
        )
        result = validate_input_types(metadata)
        assert result.codes() == ["INPUT_TYPE_DUPLICATE", "FIELD_WITHOUT_ALTERNATIVES", "FIELD_REF_ONLY"]
        assert result.error_count == 1

    def test_unknown_model_in_mapping(self, metadata_unknown_model: Dict[str, Any]) -> None:
        result = validate_operation_mappings(_metadata(metadata_unknown_model))
        assert "MODEL_NOT_FOUND" in result.codes()

    def test_duplicate_mapping_warns(self, minimal_metadata_dict: Dict[str, Any]) -> None:
        minimal_metadata_dict["metadata"]["modelOperations"].append(
            {"model": "Tag", "operations": ["findMany"]}
        )
        result = validate_operation_mappings(_metadata(minimal_metadata_dict))
        assert result.is_valid
        assert result.codes() == ["OPERATION_MAPPING_DUPLICATE"]

    def test_raw_operations_outside_mongodb(self, minimal_metadata_dict: Dict[str, Any]) -> None:
        minimal_metadata_dict["metadata"]["modelOperations"][0]["operations"].append("findRaw")
        metadata = _metadata(minimal_metadata_dict)
        assert metadata.model_operations[0].raw_operations == ["findRaw"]
        assert validate_operation_mappings(metadata).codes() == ["RAW_OPERATIONS_IGNORED"]


# ===========================================================================
# Configuration checks
# ===========================================================================


class TestGeneratorConfigChecks:

    def test_default_config_is_clean(self, example_metadata: MetadataDocument) -> None:
        assert len(validate_generator_config(example_metadata, GeneratorConfig())) == 0

    def test_invalid_module_format(self, example_metadata: MetadataDocument) -> None:
        config = GeneratorConfig(client=ClientGeneratorConfig(module_format="umd"))
        result = validate_generator_config(example_metadata, config)
        assert "MODULE_FORMAT_INVALID" in result.codes()
        assert not result.is_valid

    def test_unused_import_extension(self, example_metadata: MetadataDocument) -> None:
        config = GeneratorConfig(client=ClientGeneratorConfig(import_file_extension="js"))
        assert validate_generator_config(example_metadata, config).codes() == [
            "IMPORT_EXTENSION_UNUSED"
        ]

    def test_include_without_relations(self, minimal_metadata_dict: Dict[str, Any]) -> None:
        metadata = _metadata(minimal_metadata_dict)
        config = GeneratorConfig(is_generate_include=True)
        assert "INCLUDE_WITHOUT_RELATIONS" in validate_generator_config(metadata, config).codes()

    def test_full_text_search_unused(self, minimal_metadata_dict: Dict[str, Any]) -> None:
        minimal_metadata_dict["metadata"]["previewFeatures"] = ["fullTextSearch"]
        metadata = _metadata(minimal_metadata_dict)
        result = validate_generator_config(metadata, GeneratorConfig())
        assert result.codes() == ["FULL_TEXT_SEARCH_UNUSED"]


# ===========================================================================
# Reference checks
# ===========================================================================


class TestReferenceChecks:

    def test_example_resolves_completely(
        self, example_metadata: MetadataDocument, example_config: GeneratorConfig
    ) -> None:
        result = validate_references(example_metadata, example_config)
        assert len(result) == 0, result.format_report()

    def test_missing_composite_reported_once(
        self, example_metadata: MetadataDocument, example_config: GeneratorConfig
    ) -> None:
        input_types = [
            t for t in example_metadata.input_object_types if t.name != "IntFilter"
        ]
        metadata = example_metadata.model_copy(update={"input_object_types": input_types})
        result = validate_references(metadata, example_config)
        assert result.codes() == ["UNRESOLVED_REFERENCE"]
        assert result.warnings[0].context["reference"] == "IntFilterObjectSchema"

    def test_missing_operation_reported(
        self, example_metadata: MetadataDocument, example_config: GeneratorConfig
    ) -> None:
        mappings = [m for m in example_metadata.model_operations if m.model != "Post"]
        metadata = example_metadata.model_copy(update={"model_operations": mappings})
        result = validate_references(metadata, example_config)
        references = {w.context["reference"] for w in result.warnings}
        assert "PostFindManySchema" in references


# ===========================================================================
# Full pipeline
# ===========================================================================


class TestValidateFull:

    def test_example_passes(
        self, example_metadata: MetadataDocument, example_config: GeneratorConfig
    ) -> None:
        result = validate_full(example_metadata, example_config)
        assert result.is_valid
        assert not result.has_warnings, result.format_report()

    def test_errors_skip_reference_checks(self, metadata_unknown_model: Dict[str, Any]) -> None:
        metadata, config = parse_raw_document(metadata_unknown_model)
        result = validate_full(metadata, config)
        assert not result.is_valid
        assert "UNRESOLVED_REFERENCE" not in result.codes()
