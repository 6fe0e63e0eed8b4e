"""
zodgen - Master Generation Pipeline (Orchestrator)
==================================================

Connects every phase together::

    Metadata file → Validation → Context → Plan → Assemble (fan-out)
                  → Index (join) → Render → Export

The ``SchemaGenerator`` class provides both a programmatic API and the
backend for the CLI; ``compile_schemas`` is the I/O-free entry point used
when the rendered text is all that is needed.

Workflow::

    1. Load the metadata document from JSON/YAML (or accept models).
    2. Normalise operation aliases and DMMF layouts, parse into
       ``MetadataDocument`` + ``GeneratorConfig`` (models.py).
    3. Run the validation pipeline (validators.py).
    4. Build the immutable ``GenerationContext`` once.
    5. Plan one task per enum, composite type and (model, operation).
    6. Assemble units, sequentially or on a thread pool.
    7. Build the index unit after every other unit is known.
    8. Render (templates.py) and hand off to ``SchemaExporter``.
    9. Return a ``GenerationReport`` with metrics and status.

Error handling strategy:
    - Validation errors are collected and surfaced, not swallowed.
    - A unit that fails to assemble is recorded and skipped; its siblings
      are unaffected.
    - A missing model is fatal: the run stops before anything is exported.
    - Export errors are recorded per file.
"""

from __future__ import annotations

import json
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from zodgen.exporters import ExportManifest, ExportResult, SchemaExporter
from zodgen.include_select import IncludeSelectGenerator, merge_input_types
from zodgen.ir import GeneratedUnit, UnitKind
from zodgen.models import (
    GeneratedFile,
    GenerationContext,
    GeneratorConfig,
    InputObjectType,
    MetadataDocument,
    ModelNotFoundError,
    ModelOperationMapping,
    OperationKind,
)
from zodgen.objects import ObjectSchemaAssembler, assemble_enum
from zodgen.operations import OperationSchemaAssembler
from zodgen.templates import SchemaRenderer
from zodgen.utils import Timer
from zodgen.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.generator")


class GenerationError(RuntimeError):
    """Raised by ``compile_schemas`` when any unit could not be produced."""


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``SchemaGenerator.generate()``.

    Contains timing information, file counts, validation results and any
    errors encountered.
    """

    success: bool = False
    output_directory: str = ""
    dry_run: bool = False

    # Metrics
    total_units: int = 0
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)
    failed_units: List[str] = field(default_factory=list)

    rendered_files: List[GeneratedFile] = field(default_factory=list)
    manifest: Optional[ExportManifest] = None

    def summary(self) -> str:
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  zodgen — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}{' (dry run)' if self.dry_run else ''}")
        lines.append(f"  Output:           {self.output_directory}")
        lines.append(f"  Units assembled:  {self.total_units}")
        lines.append(f"  Files written:    {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        sections: List[Tuple[str, str, List[str]]] = [
            ("Validation Errors", "✗", self.validation_errors),
            ("Validation Warnings", "⚠", self.validation_warnings),
            ("Generation Errors", "✗", self.generation_errors),
            ("Export Errors", "✗", self.export_errors),
            ("Failed Units", "⊘", self.failed_units),
        ]
        for title, icon, items in sections:
            if not items:
                continue
            lines.append(f"{'─'*60}")
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Metadata loader helpers
# ---------------------------------------------------------------------------

# Non-canonical operation keys → canonical kind
_OPERATION_ALIASES: Dict[str, OperationKind] = {
    "create": OperationKind.CREATE_ONE,
    "update": OperationKind.UPDATE_ONE,
    "delete": OperationKind.DELETE_ONE,
    "upsert": OperationKind.UPSERT_ONE,
    "findUniqueOrThrow": OperationKind.FIND_UNIQUE,
    "findFirstOrThrow": OperationKind.FIND_FIRST,
}

_RAW_OPERATIONS: Tuple[str, ...] = ("findRaw", "aggregateRaw")

_MAPPING_RESERVED_KEYS: Set[str] = {"model", "operations", "rawOperations", "raw_operations", "plural"}


def canonical_operation(name: str) -> Optional[OperationKind]:
    """``"create"`` → ``createOne``; unknown names → ``None``."""
    if name in _OPERATION_ALIASES:
        return _OPERATION_ALIASES[name]
    try:
        return OperationKind(name)
    except ValueError:
        return None


def _normalise_operation_mapping(entry: Dict[str, Any]) -> Dict[str, Any]:
    """
    Accept both the list form and the DMMF form of an operation mapping::

        {"model": "User", "operations": ["findMany", "create"]}
        {"model": "User", "findMany": "findManyUser", "create": "createOneUser"}
    """
    operations: List[str] = []
    raw_operations: List[str] = list(entry.get("rawOperations") or entry.get("raw_operations") or [])

    candidates: List[str] = list(entry.get("operations") or [])
    candidates.extend(
        key for key, value in entry.items() if key not in _MAPPING_RESERVED_KEYS and value
    )

    for name in candidates:
        if name in _RAW_OPERATIONS:
            raw_operations.append(name)
            continue
        kind: Optional[OperationKind] = canonical_operation(name)
        if kind is None:
            logger.debug("Ignoring unknown operation '%s' for model '%s'.", name, entry.get("model"))
            continue
        operations.append(kind.value)

    return {
        "model": entry.get("model"),
        "operations": operations,
        "rawOperations": list(dict.fromkeys(raw_operations)),
    }


def _dedupe_by_name(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    seen: Set[str] = set()
    result: List[Dict[str, Any]] = []
    for item in items:
        name: Any = item.get("name")
        if name in seen:
            continue
        seen.add(name)
        result.append(item)
    return result


def _normalise_metadata(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten a DMMF-shaped document into the ``MetadataDocument`` layout.

    ``datamodel.models`` / ``datamodel.enums``, ``schema.inputObjectTypes``,
    ``schema.enumTypes`` and ``mappings.modelOperations`` are lifted to the
    top level; ``datasource.provider`` becomes ``provider``.
    """
    result: Dict[str, Any] = {
        k: v for k, v in data.items() if k not in ("datamodel", "schema", "mappings", "datasource")
    }

    datasource: Any = data.get("datasource")
    if "provider" not in result and isinstance(datasource, dict) and "provider" in datasource:
        result["provider"] = datasource["provider"]

    datamodel: Any = data.get("datamodel")
    if isinstance(datamodel, dict):
        result.setdefault("models", datamodel.get("models", []))
        result["enums"] = list(result.get("enums", [])) + list(datamodel.get("enums", []))

    schema: Any = data.get("schema")
    if isinstance(schema, dict):
        input_types: Any = schema.get("inputObjectTypes", {})
        if isinstance(input_types, dict):
            input_types = list(input_types.get("prisma", [])) + list(input_types.get("model", []))
        result.setdefault("inputObjectTypes", input_types)

        enum_types: Any = schema.get("enumTypes", {})
        if isinstance(enum_types, dict):
            enum_types = list(enum_types.get("prisma", [])) + list(enum_types.get("model", []))
        result["enums"] = list(result.get("enums", [])) + list(enum_types)

    mappings: Any = data.get("mappings")
    if "modelOperations" not in result and isinstance(mappings, dict):
        result["modelOperations"] = mappings.get("modelOperations", [])

    if "enums" in result:
        result["enums"] = _dedupe_by_name(result["enums"])

    operations: Any = result.pop("modelOperations", result.pop("model_operations", None))
    if operations is not None:
        result["modelOperations"] = [_normalise_operation_mapping(e) for e in operations]
    return result


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object at top level, got {type(data).__name__}.")
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping at top level, got {type(data).__name__}.")
    return data


def load_metadata_file(path: Path) -> Dict[str, Any]:
    """
    Load a metadata document (JSON or YAML), dispatching on the extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Metadata file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Metadata path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ValueError:
        return _load_yaml_file(path)


def merge_config_overrides(
    base: Optional[Dict[str, Any]], overrides: Optional[Dict[str, Any]]
) -> Dict[str, Any]:
    """
    Merge ``overrides`` over a document's ``config`` section.

    Keys of both sides are brought to their camelCase alias first so a
    snake_case override replaces the camelCase key it shadows instead of
    sitting next to it.
    """

    def _aliased(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return {(to_camel(k) if "_" in k else k): v for k, v in (data or {}).items()}

    return {**_aliased(base), **_aliased(overrides)}


def parse_raw_document(
    raw: Dict[str, Any],
) -> Tuple[MetadataDocument, GeneratorConfig]:
    """
    Parse a raw dictionary into validated models.

    Expected top-level keys: ``metadata`` (or ``dmmf``) and ``config``
    (optional).  A document without either key is treated as bare metadata.

    Raises:
        ValueError: If the metadata section is missing or fails validation.
    """
    metadata_data: Optional[Dict[str, Any]] = None
    for key in ("metadata", "dmmf"):
        if isinstance(raw.get(key), dict):
            metadata_data = raw[key]
            break
    if metadata_data is None:
        if any(k in raw for k in ("models", "datamodel")):
            metadata_data = raw
        else:
            raise ValueError(
                "Cannot find metadata in input. Expected top-level key 'metadata' or 'dmmf'."
            )

    config_data: Any = raw.get("config")
    if config_data is None:
        logger.info("No generator config found in input — using defaults.")
        config_data = {}

    try:
        metadata: MetadataDocument = MetadataDocument.model_validate(
            _normalise_metadata(metadata_data)
        )
    except PydanticValidationError as exc:
        raise ValueError(f"Metadata validation failed: {exc}") from exc

    try:
        config: GeneratorConfig = GeneratorConfig.model_validate(config_data)
    except PydanticValidationError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc

    return metadata, config


# ---------------------------------------------------------------------------
# Engine stages (pure, no I/O)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PlannedUnit:
    """One independent assembly task."""

    label: str
    build: Callable[[], GeneratedUnit]


def build_context(config: GeneratorConfig, metadata: MetadataDocument) -> GenerationContext:
    return GenerationContext.build(config, metadata)


def plan_units(metadata: MetadataDocument, context: GenerationContext) -> List[PlannedUnit]:
    """Enums, then composite types, then operations; deterministic order."""
    objects: ObjectSchemaAssembler = ObjectSchemaAssembler(context)
    operations: OperationSchemaAssembler = OperationSchemaAssembler(context, metadata)

    plan: List[PlannedUnit] = []
    for enum_type in metadata.enums:
        plan.append(PlannedUnit(f"enum:{enum_type.name}", lambda e=enum_type: assemble_enum(e)))

    composites: List[InputObjectType] = merge_input_types(
        metadata.input_object_types,
        IncludeSelectGenerator(context).generate(metadata.models),
    )
    for composite in composites:
        plan.append(
            PlannedUnit(f"object:{composite.name}", lambda c=composite: objects.assemble(c))
        )

    seen_models: Set[str] = set()
    mapping: ModelOperationMapping
    for mapping in metadata.model_operations:
        if mapping.model in seen_models:
            continue
        seen_models.add(mapping.model)
        for operation in OperationKind:
            if mapping.supports(operation):
                plan.append(
                    PlannedUnit(
                        f"operation:{mapping.model}.{operation.value}",
                        lambda m=mapping.model, op=operation: operations.assemble(m, op),
                    )
                )

    logger.debug("Planned %d unit(s).", len(plan))
    return plan


def _run_task(task: PlannedUnit) -> Tuple[Optional[GeneratedUnit], Optional[str]]:
    try:
        return task.build(), None
    except ModelNotFoundError:
        raise
    except Exception as exc:
        logger.error("Unit %s failed: %s: %s", task.label, type(exc).__name__, exc, exc_info=True)
        return None, f"{task.label}: {type(exc).__name__}: {exc}"


def assemble_units(
    plan: List[PlannedUnit], workers: int = 1
) -> Tuple[List[GeneratedUnit], List[str]]:
    """
    Run every task, returning ``(units, failures)`` in plan order.

    Raises:
        ModelNotFoundError: If any operation names a model that is missing.
    """
    outcomes: List[Tuple[Optional[GeneratedUnit], Optional[str]]]
    if workers <= 1 or len(plan) <= 1:
        outcomes = [_run_task(task) for task in plan]
    else:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="zodgen") as pool:
            futures: List[Future] = [pool.submit(_run_task, task) for task in plan]
            try:
                outcomes = [f.result() for f in futures]
            except ModelNotFoundError:
                for pending in futures:
                    pending.cancel()
                raise

    units: List[GeneratedUnit] = [u for u, _ in outcomes if u is not None]
    failures: List[str] = [err for _, err in outcomes if err is not None]
    return units, failures


def build_index_unit(units: List[GeneratedUnit]) -> GeneratedUnit:
    return GeneratedUnit(
        kind=UnitKind.INDEX,
        name="index",
        members=tuple(u.module_stem for u in units if u.kind != UnitKind.INDEX),
    )


def render_units(units: List[GeneratedUnit], context: GenerationContext) -> List[GeneratedFile]:
    renderer: SchemaRenderer = SchemaRenderer(context)
    return [renderer.render(unit) for unit in units]


def compile_schemas(
    metadata: MetadataDocument,
    config: Optional[GeneratorConfig] = None,
) -> Dict[str, str]:
    """
    Run the engine in memory and return ``{relative_path: source}``.

    Raises:
        ModelNotFoundError: If an operation mapping names an unknown model.
        GenerationError: If any unit failed to assemble.
    """
    config = config or GeneratorConfig()
    context: GenerationContext = build_context(config, metadata)
    units, failures = assemble_units(plan_units(metadata, context), config.workers)
    if failures:
        raise GenerationError(f"{len(failures)} unit(s) failed: {'; '.join(failures)}")
    units.append(build_index_unit(units))
    return {f.path: f.content for f in render_units(units, context)}


# ---------------------------------------------------------------------------
# SchemaGenerator — Master orchestrator
# ---------------------------------------------------------------------------


class SchemaGenerator:
    """
    Master pipeline orchestrator.

    Usage::

        generator = SchemaGenerator()

        # From a file
        report = generator.generate_from_file(Path("metadata.yaml"))

        # From in-memory objects
        report = generator.generate(metadata, config)

        print(report.summary())

    The generator is reusable — create once, call generate() many times.
    """

    def __init__(
        self,
        *,
        strict_validation: bool = True,
        fail_on_warnings: bool = False,
        dry_run: bool = False,
    ) -> None:
        """
        Args:
            strict_validation: If True, abort on any validation error.
            fail_on_warnings: If True, treat validation warnings as errors.
            dry_run: If True, render everything but write nothing.
        """
        self._strict_validation: bool = strict_validation
        self._fail_on_warnings: bool = fail_on_warnings
        self._dry_run: bool = dry_run

        logger.debug(
            "SchemaGenerator initialised: strict=%s, fail_on_warnings=%s, dry_run=%s.",
            strict_validation,
            fail_on_warnings,
            dry_run,
        )

    # -----------------------------------------------------------------
    # Public: generate from file
    # -----------------------------------------------------------------

    def generate_from_file(
        self,
        metadata_path: Path,
        *,
        config_overrides: Optional[Dict[str, Any]] = None,
        metadata_overrides: Optional[Dict[str, Any]] = None,
    ) -> GenerationReport:
        """
        Full pipeline: load file → validate → generate → export.

        ``config_overrides`` are merged over the document's ``config``
        section; ``metadata_overrides`` over its metadata section.
        """
        report: GenerationReport = GenerationReport(dry_run=self._dry_run)

        with Timer("load_metadata") as t_load:
            try:
                raw_data: Dict[str, Any] = load_metadata_file(metadata_path)
                if config_overrides:
                    raw_data["config"] = merge_config_overrides(
                        raw_data.get("config"), config_overrides
                    )
                if metadata_overrides:
                    section: str = "dmmf" if "dmmf" in raw_data else "metadata"
                    if isinstance(raw_data.get(section), dict):
                        raw_data[section] = {**raw_data[section], **metadata_overrides}
                    else:
                        raw_data.update(metadata_overrides)
                metadata, config = parse_raw_document(raw_data)
            except (FileNotFoundError, ValueError) as exc:
                report.generation_errors.append(str(exc))
                report.step_metrics.append(
                    GenerationStepMetric(
                        step_name="Load Metadata",
                        success=False,
                        elapsed_seconds=t_load.elapsed,
                        detail=str(exc),
                    )
                )
                return self._finalise_report(report, t_load.elapsed)

        report.step_metrics.append(
            GenerationStepMetric(
                step_name="Load Metadata",
                success=True,
                elapsed_seconds=t_load.elapsed,
                detail=f"{len(metadata.models)} models from {metadata_path.name}",
            )
        )
        logger.info("Loaded %r from %s.", metadata, metadata_path)
        return self._run_pipeline(metadata, config, report)

    # -----------------------------------------------------------------
    # Public: generate from in-memory objects
    # -----------------------------------------------------------------

    def generate(self, metadata: MetadataDocument, config: GeneratorConfig) -> GenerationReport:
        report: GenerationReport = GenerationReport(dry_run=self._dry_run)
        return self._run_pipeline(metadata, config, report)

    # -----------------------------------------------------------------
    # Internal: master pipeline
    # -----------------------------------------------------------------

    def _run_pipeline(
        self,
        metadata: MetadataDocument,
        config: GeneratorConfig,
        report: GenerationReport,
    ) -> GenerationReport:
        pipeline_start: float = time.perf_counter()

        validation_ok: bool = self._step_validate(metadata, config, report)
        if not validation_ok and self._strict_validation:
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        context: GenerationContext = build_context(config, metadata)
        report.output_directory = str(Path(context.schemas_path).resolve())

        units: Optional[List[GeneratedUnit]] = self._step_assemble(metadata, context, config, report)
        if units is None:
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        files: List[GeneratedFile] = self._step_render(units, context, report)
        if not self._dry_run:
            self._step_export(files, context, config, report)

        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    # -----------------------------------------------------------------
    # Pipeline step: Validation
    # -----------------------------------------------------------------

    def _step_validate(
        self,
        metadata: MetadataDocument,
        config: GeneratorConfig,
        report: GenerationReport,
    ) -> bool:
        """True if validation passed (or only warnings and not ``fail_on_warnings``)."""
        with Timer("validation") as t:
            result: ValidationResult = validate_full(metadata, config)

        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        if result.has_errors:
            detail: str = f"{result.error_count} error(s)"
        elif result.has_warnings:
            detail = f"{result.warning_count} warning(s)"
        else:
            detail = "all checks passed"

        report.step_metrics.append(
            GenerationStepMetric(
                step_name="Validate Metadata",
                success=result.is_valid,
                elapsed_seconds=t.elapsed,
                detail=detail,
            )
        )

        if result.has_errors:
            for err in result.errors:
                logger.error("  ✗ %s", err)
            return False
        if result.has_warnings:
            for warn in result.warnings:
                logger.warning("  ⚠ %s", warn)
            return not self._fail_on_warnings
        return True

    # -----------------------------------------------------------------
    # Pipeline step: Plan + assemble + index
    # -----------------------------------------------------------------

    def _step_assemble(
        self,
        metadata: MetadataDocument,
        context: GenerationContext,
        config: GeneratorConfig,
        report: GenerationReport,
    ) -> Optional[List[GeneratedUnit]]:
        """Assembled units plus the index, or ``None`` after a fatal error."""
        with Timer("assemble") as t:
            plan: List[PlannedUnit] = plan_units(metadata, context)
            try:
                units, failures = assemble_units(plan, config.workers)
            except ModelNotFoundError as exc:
                report.generation_errors.append(f"Fatal: {exc}")
                logger.error("Assembly aborted: %s", exc)
                units, failures = [], []
                fatal: bool = True
            else:
                fatal = False
                units.append(build_index_unit(units))

        report.failed_units.extend(failures)
        if failures:
            report.generation_errors.append(f"{len(failures)} unit(s) failed to assemble.")
        report.total_units = len(units)
        report.step_metrics.append(
            GenerationStepMetric(
                step_name="Assemble Units",
                success=not fatal and not failures,
                elapsed_seconds=t.elapsed,
                detail=f"{len(units)} of {len(plan) + 1} units, workers={config.workers}",
            )
        )
        logger.info("Assembled %d unit(s) in %.3fs.", len(units), t.elapsed)
        return None if fatal else units

    # -----------------------------------------------------------------
    # Pipeline step: Render
    # -----------------------------------------------------------------

    def _step_render(
        self,
        units: List[GeneratedUnit],
        context: GenerationContext,
        report: GenerationReport,
    ) -> List[GeneratedFile]:
        with Timer("render") as t:
            files: List[GeneratedFile] = render_units(units, context)

        report.rendered_files = files
        report.total_lines = sum(f.line_count for f in files)
        report.total_bytes = sum(f.size_bytes for f in files)
        report.step_metrics.append(
            GenerationStepMetric(
                step_name="Render Modules",
                success=True,
                elapsed_seconds=t.elapsed,
                detail=f"{len(files)} modules, ~{report.total_lines:,} lines",
            )
        )
        return files

    # -----------------------------------------------------------------
    # Pipeline step: Export
    # -----------------------------------------------------------------

    def _step_export(
        self,
        files: List[GeneratedFile],
        context: GenerationContext,
        config: GeneratorConfig,
        report: GenerationReport,
    ) -> None:
        with Timer("export") as t:
            exporter: SchemaExporter = SchemaExporter(
                Path(context.schemas_path),
                clean_before_export=config.clean_output,
                atomic_writes=True,
                write_manifest=config.write_manifest,
            )
            export_result: ExportResult = exporter.export(files)

        report.total_files = export_result.manifest.total_files
        report.total_bytes = export_result.manifest.total_bytes
        report.total_lines = export_result.manifest.total_lines
        report.export_errors.extend(export_result.errors)
        report.manifest = export_result.manifest
        report.step_metrics.append(
            GenerationStepMetric(
                step_name="Export to Filesystem",
                success=export_result.success,
                elapsed_seconds=t.elapsed,
                detail=(
                    f"{export_result.manifest.total_files} files, "
                    f"{export_result.manifest.total_bytes:,} bytes"
                ),
            )
        )

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    def _finalise_report(self, report: GenerationReport, total_elapsed: float) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = not (
            report.validation_errors or report.generation_errors or report.export_errors
        )
        if self._fail_on_warnings and report.validation_warnings:
            report.success = False
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "GenerationError",
    "GenerationReport",
    "GenerationStepMetric",
    "PlannedUnit",
    "SchemaGenerator",
    "canonical_operation",
    "load_metadata_file",
    "merge_config_overrides",
    "parse_raw_document",
    "build_context",
    "plan_units",
    "assemble_units",
    "build_index_unit",
    "render_units",
    "compile_schemas",
]

logger.debug("zodgen.generator loaded.")
