"""
zodgen - Include / Select Synthesis
===================================
Derives the projection composites from the relation graph of the models:

- ``<M>Include``                     models with at least one relation
- ``<M>Select``                      every model (select emission on)
- ``<M>DefaultArgs``                 every model (either emission on)
- ``<M>CountOutputTypeSelect``       models with a to-many relation (select on)
- ``<M>CountOutputTypeDefaultArgs``  models with a to-many relation (select on)

The synthesised types are ordinary ``InputObjectType`` values and go through
``ObjectSchemaAssembler`` like any composite from the metadata.
"""

from __future__ import annotations

import logging
from typing import List

from zodgen.models import (
    HOST_NAMESPACE,
    GenerationContext,
    InputObjectType,
    InputTypeAlternative,
    Model,
    ModelField,
    SchemaArg,
    TypeLocation,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.include_select")

COUNT_FIELD: str = "_count"

_BOOLEAN_ALT: InputTypeAlternative = InputTypeAlternative(type="Boolean")


def _host_ref(type_name: str) -> InputTypeAlternative:
    return InputTypeAlternative(
        type=type_name,
        location=TypeLocation.INPUT_OBJECT_TYPES,
        namespace=HOST_NAMESPACE,
    )


def _optional(name: str, alternatives: List[InputTypeAlternative]) -> SchemaArg:
    return SchemaArg(name=name, is_required=False, input_types=alternatives)


class IncludeSelectGenerator:
    """Synthesises projection composites for a list of models."""

    def __init__(self, context: GenerationContext) -> None:
        self._context: GenerationContext = context

    def generate(self, models: List[Model]) -> List[InputObjectType]:
        select_on: bool = self._context.is_generate_select
        include_on: bool = self._context.is_generate_include
        if not (select_on or include_on):
            return []

        result: List[InputObjectType] = []
        for model in models:
            if include_on and model.has_relation:
                result.append(self.include_type(model))
            if select_on:
                result.append(self.select_type(model))
            result.append(self.default_args_type(model))
            if select_on and model.has_many_relation:
                result.append(self.count_output_select_type(model))
                result.append(self.count_output_default_args_type(model))

        logger.debug("Synthesised %d projection type(s) for %d model(s).", len(result), len(models))
        return result

    # ------------------------------------------------------------------ #
    # Fields
    # ------------------------------------------------------------------ #

    def relation_arg(self, field: ModelField) -> SchemaArg:
        """``boolean | <T>FindManyArgs`` (list) or ``boolean | <T>DefaultArgs``."""
        nested: str = f"{field.type}FindManyArgs" if field.is_list else f"{field.type}DefaultArgs"
        return _optional(field.name, [_BOOLEAN_ALT, _host_ref(nested)])

    def count_arg(self, model: Model) -> SchemaArg:
        alternatives: List[InputTypeAlternative] = [_BOOLEAN_ALT]
        if self._context.is_generate_select:
            alternatives.append(_host_ref(f"{model.name}CountOutputTypeDefaultArgs"))
        return _optional(COUNT_FIELD, alternatives)

    # ------------------------------------------------------------------ #
    # Types
    # ------------------------------------------------------------------ #

    def include_type(self, model: Model) -> InputObjectType:
        fields: List[SchemaArg] = [self.relation_arg(f) for f in model.relation_fields]
        if model.has_many_relation:
            fields.append(self.count_arg(model))
        return InputObjectType(name=f"{model.name}Include", fields=fields)

    def select_type(self, model: Model) -> InputObjectType:
        fields: List[SchemaArg] = [
            self.relation_arg(f) if f.is_relation else _optional(f.name, [_BOOLEAN_ALT])
            for f in model.fields
        ]
        if model.has_many_relation:
            fields.append(self.count_arg(model))
        return InputObjectType(name=f"{model.name}Select", fields=fields)

    def default_args_type(self, model: Model) -> InputObjectType:
        fields: List[SchemaArg] = []
        if self._context.is_generate_select:
            fields.append(_optional("select", [_host_ref(f"{model.name}Select")]))
        if self._context.is_generate_include and model.has_relation:
            fields.append(_optional("include", [_host_ref(f"{model.name}Include")]))
        return InputObjectType(name=f"{model.name}DefaultArgs", fields=fields)

    def count_output_select_type(self, model: Model) -> InputObjectType:
        fields: List[SchemaArg] = [
            _optional(f.name, [_BOOLEAN_ALT])
            for f in model.relation_fields
            if f.is_list
        ]
        return InputObjectType(name=f"{model.name}CountOutputTypeSelect", fields=fields)

    def count_output_default_args_type(self, model: Model) -> InputObjectType:
        select_ref: InputTypeAlternative = _host_ref(f"{model.name}CountOutputTypeSelect")
        return InputObjectType(
            name=f"{model.name}CountOutputTypeDefaultArgs",
            fields=[_optional("select", [select_ref])],
        )


def merge_input_types(
    declared: List[InputObjectType], synthesised: List[InputObjectType]
) -> List[InputObjectType]:
    """Declared types first; a synthesised type never replaces a declared one."""
    names = {t.name for t in declared}
    merged: List[InputObjectType] = list(declared)
    for input_type in synthesised:
        if input_type.name in names:
            logger.debug("Keeping declared %s over the synthesised one.", input_type.name)
            continue
        names.add(input_type.name)
        merged.append(input_type)
    return merged


__all__: List[str] = [
    "COUNT_FIELD",
    "IncludeSelectGenerator",
    "merge_input_types",
]

logger.debug("zodgen.include_select loaded — %d public symbols.", len(__all__))
