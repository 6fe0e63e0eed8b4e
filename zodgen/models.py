"""
zodgen - Core Data Models
=========================
Pydantic V2 models describing the ORM introspection metadata consumed by the
transformation engine, the user-facing generator configuration, and the
immutable ``GenerationContext`` shared by every assembler during a run.

Pipeline position::

    Metadata (JSON/YAML) → MetadataDocument → GenerationContext
                         → Assemblers → Renderer → Exporter

Metadata models accept both snake_case and the camelCase keys produced by the
ORM's introspection layer (``isRequired``, ``inputTypes``, ...).  All metadata
models are frozen: they are built once per run and never mutated.
"""

from __future__ import annotations

import logging
import os
import re
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from zodgen.utils import count_lines

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.models")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

HOST_NAMESPACE: str = "prisma"
DEFAULT_CLIENT_OUTPUT: str = "@prisma/client"
DEFAULT_CLIENT_PROVIDER: str = "prisma-client-js"
NEW_CLIENT_PROVIDER: str = "prisma-client"
SCHEMAS_DIRNAME: str = "schemas"
FULL_TEXT_SEARCH_FEATURE: str = "fullTextSearch"

_RAW_OPERATION_RE: re.Pattern[str] = re.compile(r"(?:find|aggregate).*Raw")

_AGGREGATE_INPUT_SUFFIXES: Dict[str, str] = {
    "CountAggregateInput": "count",
    "MinAggregateInput": "min",
    "MaxAggregateInput": "max",
    "AvgAggregateInput": "avg",
    "SumAggregateInput": "sum",
}

# ---------------------------------------------------------------------------
# Enums — fixed sets used across the entire project
# ---------------------------------------------------------------------------


class TypeLocation(str, Enum):
    """Where an input-type alternative is declared in the metadata."""

    SCALAR = "scalar"
    ENUM_TYPES = "enumTypes"
    INPUT_OBJECT_TYPES = "inputObjectTypes"
    FIELD_REF_TYPES = "fieldRefTypes"


class FieldKind(str, Enum):
    """Kind of a model field."""

    SCALAR = "scalar"
    OBJECT = "object"
    ENUM = "enum"
    UNSUPPORTED = "unsupported"


class DatabaseProvider(str, Enum):
    """Database dialects known to the metadata layer."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    SQLSERVER = "sqlserver"
    MONGODB = "mongodb"
    COCKROACHDB = "cockroachdb"


class OperationKind(str, Enum):
    """The twelve model operations a schema may be emitted for."""

    FIND_UNIQUE = "findUnique"
    FIND_FIRST = "findFirst"
    FIND_MANY = "findMany"
    CREATE_ONE = "createOne"
    CREATE_MANY = "createMany"
    DELETE_ONE = "deleteOne"
    DELETE_MANY = "deleteMany"
    UPDATE_ONE = "updateOne"
    UPDATE_MANY = "updateMany"
    UPSERT_ONE = "upsertOne"
    AGGREGATE = "aggregate"
    GROUP_BY = "groupBy"

    @property
    def verb(self) -> str:
        """Capitalised verb used in unit names (``UserFindMany``)."""
        return _OPERATION_VERBS[self]


_OPERATION_VERBS: Dict[OperationKind, str] = {
    OperationKind.FIND_UNIQUE: "FindUnique",
    OperationKind.FIND_FIRST: "FindFirst",
    OperationKind.FIND_MANY: "FindMany",
    OperationKind.CREATE_ONE: "CreateOne",
    OperationKind.CREATE_MANY: "CreateMany",
    OperationKind.DELETE_ONE: "DeleteOne",
    OperationKind.DELETE_MANY: "DeleteMany",
    OperationKind.UPDATE_ONE: "UpdateOne",
    OperationKind.UPDATE_MANY: "UpdateMany",
    OperationKind.UPSERT_ONE: "Upsert",
    OperationKind.AGGREGATE: "Aggregate",
    OperationKind.GROUP_BY: "GroupBy",
}

# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_METADATA_CONFIG: ConfigDict = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    protected_namespaces=(),
    use_enum_values=False,
    frozen=True,
    extra="ignore",
)

_SETTINGS_CONFIG: ConfigDict = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    protected_namespaces=(),
    use_enum_values=False,
    validate_assignment=True,
    extra="forbid",
)


class ModelNotFoundError(LookupError):
    """Raised when an operation mapping names a model absent from the metadata."""

    def __init__(self, model_name: str) -> None:
        super().__init__(f"Model '{model_name}' is not defined in the metadata.")
        self.model_name: str = model_name


# ---------------------------------------------------------------------------
# Input types (fields of composite types)
# ---------------------------------------------------------------------------


class InputTypeAlternative(BaseModel):
    """One of the value types a composite field may accept."""

    model_config = _METADATA_CONFIG

    type: str = Field(..., min_length=1, description="Underlying type name.")
    is_list: bool = Field(default=False, description="Value is a list of ``type``.")
    location: TypeLocation = Field(
        default=TypeLocation.SCALAR, description="Declaration site of ``type``."
    )
    namespace: Optional[str] = Field(
        default=None, description="Origin namespace ('prisma', 'model', ...)."
    )

    @property
    def is_scalar(self) -> bool:
        return self.location == TypeLocation.SCALAR

    def __repr__(self) -> str:
        suffix: str = "[]" if self.is_list else ""
        return f"<Alternative {self.type}{suffix} @{self.location.value}>"


class SchemaArg(BaseModel):
    """A field of a composite (input object) type."""

    model_config = _METADATA_CONFIG

    name: str = Field(..., min_length=1, description="Field name.")
    is_required: bool = Field(default=False, description="Field must be present.")
    is_nullable: bool = Field(default=False, description="Field accepts null.")
    input_types: List[InputTypeAlternative] = Field(
        default_factory=list, description="Accepted alternatives, in metadata order."
    )

    def __repr__(self) -> str:
        return f"<SchemaArg {self.name} ({len(self.input_types)} alternative(s))>"


class InputObjectType(BaseModel):
    """A composite type such as ``UserWhereInput`` or ``PostCreateManyInput``."""

    model_config = _METADATA_CONFIG

    name: str = Field(..., min_length=1, description="Composite type name.")
    fields: List[SchemaArg] = Field(default_factory=list, description="Ordered fields.")

    def __repr__(self) -> str:
        return f"<InputObjectType {self.name} ({len(self.fields)} fields)>"


# ---------------------------------------------------------------------------
# Models & enums
# ---------------------------------------------------------------------------


class ModelField(BaseModel):
    """A field of a data model; ``kind == object`` marks a relation edge."""

    model_config = _METADATA_CONFIG

    name: str = Field(..., min_length=1)
    kind: FieldKind = Field(default=FieldKind.SCALAR)
    type: str = Field(..., min_length=1, description="Scalar, enum or model name.")
    is_list: bool = Field(default=False)
    is_required: bool = Field(default=True)

    @property
    def is_relation(self) -> bool:
        return self.kind == FieldKind.OBJECT


class Model(BaseModel):
    """A data model and its relation edges."""

    model_config = _METADATA_CONFIG

    name: str = Field(..., min_length=1, description="Model name.")
    fields: List[ModelField] = Field(default_factory=list)

    @property
    def relation_fields(self) -> List[ModelField]:
        return [f for f in self.fields if f.is_relation]

    @property
    def has_relation(self) -> bool:
        return any(f.is_relation for f in self.fields)

    @property
    def has_many_relation(self) -> bool:
        return any(f.is_relation and f.is_list for f in self.fields)

    def __repr__(self) -> str:
        return f"<Model {self.name} ({len(self.fields)} fields)>"


class EnumType(BaseModel):
    """An enumeration and its ordered literal values."""

    model_config = _METADATA_CONFIG

    name: str = Field(..., min_length=1, description="Enum name.")
    values: List[str] = Field(..., min_length=1, description="Literal values.")

    @field_validator("values", mode="before")
    @classmethod
    def _flatten_value_objects(cls, v: Any) -> Any:
        # datamodel enums list values as {"name": ...} objects
        if isinstance(v, list):
            return [item["name"] if isinstance(item, dict) else item for item in v]
        return v

    @field_validator("values")
    @classmethod
    def _unique_values(cls, v: List[str]) -> List[str]:
        if len(v) != len(set(v)):
            dupes: List[str] = sorted({x for x in v if v.count(x) > 1})
            raise ValueError(f"Duplicate enum values detected: {dupes}")
        return v


# ---------------------------------------------------------------------------
# Operations & aggregates
# ---------------------------------------------------------------------------


class ModelOperationMapping(BaseModel):
    """Operations supported by one model, as canonical ``OperationKind`` tags."""

    model_config = _METADATA_CONFIG

    model: str = Field(..., min_length=1, description="Model name.")
    operations: List[OperationKind] = Field(default_factory=list)
    raw_operations: List[str] = Field(
        default_factory=list, description="Raw operations, e.g. 'findRaw'."
    )

    @field_validator("operations")
    @classmethod
    def _dedupe_operations(cls, v: List[OperationKind]) -> List[OperationKind]:
        return list(dict.fromkeys(v))

    def supports(self, operation: OperationKind) -> bool:
        return operation in self.operations


class AggregateSupport(BaseModel):
    """Which aggregate sub-schemas exist for a model."""

    model_config = _METADATA_CONFIG

    count: bool = False
    min: bool = False
    max: bool = False
    avg: bool = False
    sum: bool = False


def is_aggregate_input_type(name: str) -> bool:
    """True for ``<Model>{Count,Min,Max,Avg,Sum}AggregateInput``."""
    return name.endswith(tuple(_AGGREGATE_INPUT_SUFFIXES))


def is_raw_operation_type(name: str) -> bool:
    """True for raw-operation argument shapes such as ``findUserRaw``."""
    return _RAW_OPERATION_RE.search(name) is not None


def build_raw_operation_map(
    mappings: List[ModelOperationMapping],
) -> Dict[str, str]:
    """
    Map raw-operation input type names to their argument type names.

    ``findUserRaw`` → ``UserFindRawArgs``,
    ``aggregateUserRaw`` → ``UserAggregateRawArgs``.
    """
    raw_names: List[str] = list(
        dict.fromkeys(op for m in mappings for op in m.raw_operations)
    )
    result: Dict[str, str] = {}
    for op_name in raw_names:
        is_find: bool = op_name == "findRaw"
        for mapping in mappings:
            key: str = f"{op_name.replace('Raw', '')}{mapping.model}Raw"
            suffix: str = "FindRawArgs" if is_find else "AggregateRawArgs"
            result[key] = f"{mapping.model}{suffix}"
    return result


# ---------------------------------------------------------------------------
# Metadata document — top-level container
# ---------------------------------------------------------------------------


class MetadataDocument(BaseModel):
    """Everything the extraction layer hands to the engine for one run."""

    model_config = _METADATA_CONFIG

    provider: DatabaseProvider = Field(default=DatabaseProvider.POSTGRESQL)
    preview_features: List[str] = Field(default_factory=list)
    models: List[Model] = Field(default_factory=list)
    enums: List[EnumType] = Field(default_factory=list)
    input_object_types: List[InputObjectType] = Field(default_factory=list)
    model_operations: List[ModelOperationMapping] = Field(default_factory=list)
    aggregate_support: Optional[Dict[str, AggregateSupport]] = Field(
        default=None,
        description="Per-model aggregate flags; derived from input types when omitted.",
    )

    @model_validator(mode="after")
    def _validate_unique_model_names(self) -> "MetadataDocument":
        names: List[str] = [m.name for m in self.models]
        if len(names) != len(set(names)):
            dupes: List[str] = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate model names: {dupes}")
        return self

    def get_model(self, name: str) -> Optional[Model]:
        return next((m for m in self.models if m.name == name), None)

    def require_model(self, name: str) -> Model:
        model: Optional[Model] = self.get_model(name)
        if model is None:
            raise ModelNotFoundError(name)
        return model

    def get_input_type(self, name: str) -> Optional[InputObjectType]:
        return next((t for t in self.input_object_types if t.name == name), None)

    def get_operations(self, model_name: str) -> Optional[ModelOperationMapping]:
        return next((m for m in self.model_operations if m.model == model_name), None)

    @computed_field  # type: ignore[misc]
    @property
    def enum_names(self) -> List[str]:
        return [e.name for e in self.enums]

    def resolved_aggregate_support(self) -> Dict[str, AggregateSupport]:
        """
        Aggregate flags per model.

        Uses the explicit ``aggregate_support`` section when present, otherwise
        derives flags from the ``<Model><Kind>AggregateInput`` composite types.
        """
        if self.aggregate_support is not None:
            return dict(self.aggregate_support)

        flags: Dict[str, Dict[str, bool]] = {}
        for input_type in self.input_object_types:
            for suffix, flag in _AGGREGATE_INPUT_SUFFIXES.items():
                if input_type.name.endswith(suffix):
                    model_name: str = input_type.name[: -len(suffix)]
                    flags.setdefault(model_name, {})[flag] = True
                    break
        return {name: AggregateSupport(**values) for name, values in flags.items()}

    def __repr__(self) -> str:
        return (
            f"<MetadataDocument {self.provider.value}: {len(self.models)} models, "
            f"{len(self.enums)} enums, {len(self.input_object_types)} input types>"
        )


# ---------------------------------------------------------------------------
# Generator configuration
# ---------------------------------------------------------------------------


class ClientGeneratorConfig(BaseModel):
    """Settings of the client generator whose host types annotate schemas."""

    model_config = ConfigDict(**_SETTINGS_CONFIG, frozen=True)

    provider: str = Field(
        default=DEFAULT_CLIENT_PROVIDER, description="Client generator provider."
    )
    output: Optional[str] = Field(
        default=None, description="Custom client output location (None = default)."
    )
    module_format: Optional[str] = Field(
        default=None, description="'esm' or 'cjs' (new client generator only)."
    )
    runtime: Optional[str] = Field(default=None)
    import_file_extension: Optional[str] = Field(
        default=None, description="Extension appended to ESM imports, e.g. 'js'."
    )

    @field_validator("import_file_extension")
    @classmethod
    def _strip_leading_dot(cls, v: Optional[str]) -> Optional[str]:
        return v.lstrip(".") if v else v

    @property
    def is_custom_output(self) -> bool:
        return self.output is not None and self.output != DEFAULT_CLIENT_OUTPUT

    @property
    def is_new_generator(self) -> bool:
        return (
            self.provider == NEW_CLIENT_PROVIDER
            or self.module_format is not None
            or self.runtime is not None
        )


class GeneratorConfig(BaseModel):
    """User-facing settings for one generation run."""

    model_config = _SETTINGS_CONFIG

    output: str = Field(default="./generated", description="Output root directory.")
    is_generate_select: bool = Field(default=False, description="Emit select schemas.")
    is_generate_include: bool = Field(
        default=False, description="Emit include schemas."
    )
    client: ClientGeneratorConfig = Field(default_factory=ClientGeneratorConfig)
    workers: int = Field(
        default=1, ge=1, le=64, description="Threads used to assemble units."
    )
    clean_output: bool = Field(
        default=False, description="Wipe the schemas directory before writing."
    )
    write_manifest: bool = Field(
        default=False, description="Write a JSON export manifest next to index.ts."
    )


# ---------------------------------------------------------------------------
# Generation context — write-once, read-only during assembly
# ---------------------------------------------------------------------------


class GenerationContext(BaseModel):
    """
    Process-wide settings for one run.

    Built exactly once by :meth:`build` before any unit is assembled and
    passed explicitly to every component.  Frozen, so concurrent assembly
    needs no locking.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    output_path: str = "./generated"
    provider: DatabaseProvider = DatabaseProvider.POSTGRESQL
    client: ClientGeneratorConfig = Field(default_factory=ClientGeneratorConfig)
    is_generate_select: bool = False
    is_generate_include: bool = False
    preview_features: FrozenSet[str] = frozenset()
    enum_names: FrozenSet[str] = frozenset()
    raw_ops_map: Mapping[str, str] = Field(default_factory=dict)

    @field_validator("raw_ops_map")
    @classmethod
    def _read_only_map(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(v))

    @classmethod
    def build(
        cls, config: GeneratorConfig, metadata: MetadataDocument
    ) -> "GenerationContext":
        raw_ops_map: Dict[str, str] = {}
        if metadata.provider == DatabaseProvider.MONGODB:
            raw_ops_map = build_raw_operation_map(metadata.model_operations)

        context: GenerationContext = cls(
            output_path=config.output,
            provider=metadata.provider,
            client=config.client,
            is_generate_select=config.is_generate_select,
            is_generate_include=config.is_generate_include,
            preview_features=frozenset(metadata.preview_features),
            enum_names=frozenset(metadata.enum_names),
            raw_ops_map=raw_ops_map,
        )
        logger.debug("Generation context built: %r", context)
        return context

    @property
    def schemas_path(self) -> str:
        """Output root, with a trailing ``schemas`` segment added unless present."""
        normalised: str = os.path.normpath(self.output_path)
        if os.path.basename(normalised) == SCHEMAS_DIRNAME:
            return self.output_path
        return os.path.join(self.output_path, SCHEMAS_DIRNAME)

    @property
    def is_custom_client_output(self) -> bool:
        return self.client.is_custom_output

    @property
    def is_new_client_generator(self) -> bool:
        return self.client.is_new_generator

    @property
    def import_file_extension(self) -> str:
        """``.js``-style suffix for schema imports, or an empty string."""
        if (
            self.is_new_client_generator
            and self.client.module_format == "esm"
            and self.client.import_file_extension
        ):
            return f".{self.client.import_file_extension}"
        return ""

    @property
    def supports_skip_duplicates(self) -> bool:
        return self.provider in (DatabaseProvider.POSTGRESQL, DatabaseProvider.COCKROACHDB)

    @property
    def uses_relevance_ordering(self) -> bool:
        return (
            self.provider in (DatabaseProvider.POSTGRESQL, DatabaseProvider.MYSQL)
            and FULL_TEXT_SEARCH_FEATURE in self.preview_features
        )

    def is_enum(self, name: str) -> bool:
        return name in self.enum_names

    def resolve_raw_operation(self, name: str) -> Optional[str]:
        """Argument type name for a raw-operation shape, if ``name`` is one."""
        if not is_raw_operation_type(name):
            return None
        return self.raw_ops_map.get(name)

    def __repr__(self) -> str:
        return (
            f"<GenerationContext {self.provider.value} "
            f"select={self.is_generate_select} include={self.is_generate_include} "
            f"schemas={self.schemas_path}>"
        )


# ---------------------------------------------------------------------------
# Rendered output
# ---------------------------------------------------------------------------


class GeneratedFile(BaseModel):
    """A single rendered module, relative to the schemas directory."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(..., min_length=1, description="Relative file path.")
    content: str = Field(..., description="Full file content.")

    @computed_field  # type: ignore[misc]
    @property
    def line_count(self) -> int:
        return count_lines(self.content)

    @computed_field  # type: ignore[misc]
    @property
    def size_bytes(self) -> int:
        return len(self.content.encode("utf-8"))

    def __repr__(self) -> str:
        return f"<GeneratedFile {self.path} ({self.line_count} lines)>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "HOST_NAMESPACE",
    "DEFAULT_CLIENT_OUTPUT",
    "TypeLocation",
    "FieldKind",
    "DatabaseProvider",
    "OperationKind",
    "ModelNotFoundError",
    "InputTypeAlternative",
    "SchemaArg",
    "InputObjectType",
    "ModelField",
    "Model",
    "EnumType",
    "ModelOperationMapping",
    "AggregateSupport",
    "MetadataDocument",
    "ClientGeneratorConfig",
    "GeneratorConfig",
    "GenerationContext",
    "GeneratedFile",
    "is_aggregate_input_type",
    "is_raw_operation_type",
    "build_raw_operation_map",
]

logger.debug("zodgen.models loaded — %d public symbols.", len(__all__))
