"""DynamoDB field indexing pattern rule.

- SST-VAL-061: fields declared in ``fields`` but not used by any index

Every attribute listed in ``fields`` must appear as a hash or range key
of the primary, a global or a local index (or be the TTL attribute).
Other attributes can still be stored without being declared.
"""

from ..base import (
    FixConfidence,
    PatternCategory,
    PatternDetectionContext,
    PatternRule,
    PatternViolation,
)
from ..matching import ResourceKind, find_property, iter_resources, static_string, unwrap
from ..syntax.nodes import (
    ArrayLiteral,
    Node,
    ObjectLiteral,
    PropertyAssignment,
    property_key_name,
)

INDEX_KEYS = ("hashKey", "rangeKey")
INDEX_COLLECTIONS = ("globalIndexes", "localIndexes")


class DynamoIndexingRule(PatternRule):
    """Detect DynamoDB fields that are defined but never indexed."""

    @property
    def rule_id(self) -> str:
        return "dynamo-indexing"

    @property
    def name(self) -> str:
        return "DynamoDB Field Indexing Pattern Detection"

    @property
    def category(self) -> PatternCategory:
        return PatternCategory.DYNAMODB_SCHEMA

    @property
    def codes(self) -> tuple[str, ...]:
        return ("SST-VAL-061",)

    @property
    def description(self) -> str:
        return "Detects fields defined but not indexed in DynamoDB tables"

    def detect(self, context: PatternDetectionContext) -> list[PatternViolation]:
        violations = []
        for resource in iter_resources(context.tree, "Dynamo"):
            violation = self._check_table(context, resource)
            if violation is not None:
                violations.append(violation)
        return violations

    def _check_table(
        self, context: PatternDetectionContext, resource: ResourceKind
    ) -> PatternViolation | None:
        fields_prop = find_property(resource.config, "fields")
        if fields_prop is None:
            return None
        fields_obj = unwrap(fields_prop.value)
        if not isinstance(fields_obj, ObjectLiteral):
            return None

        declared = self._declared_fields(fields_obj)
        if not declared:
            return None

        indexed = self._indexed_fields(resource.config)
        unused = [name for name, _ in declared if name not in indexed]
        if not unused:
            return None

        unused_list = ", ".join(f'"{name}"' for name in unused)
        kept = [context.source.text_of(prop) for name, prop in declared if name in indexed]

        # No field is indexed: emptying fields is never proposed, so no fix
        fix = None
        if kept:
            fix = self._replace_node(
                context,
                fields_prop,
                self._render_fields(
                    context.source.text_of(fields_prop),
                    kept,
                    context.source.line_indent(fields_prop.start),
                ),
                FixConfidence.HIGH,
                f"Remove unused fields: {unused_list}",
            )

        return self._create_violation(
            context,
            code="SST-VAL-061",
            node=fields_prop,
            resource=f'Dynamo("{resource.name}")',
            property="fields",
            message=(
                f"Fields defined but not indexed: [{unused_list}]. "
                'All fields in "fields" property must be used in an index. '
                "Remove unused fields or add indexes for them."
            ),
            fix=fix,
        )

    def _declared_fields(self, fields_obj: ObjectLiteral) -> list[tuple[str, PropertyAssignment]]:
        declared = []
        for prop in fields_obj.properties:
            if not isinstance(prop, PropertyAssignment):
                continue
            name = property_key_name(prop.key)
            if name is not None:
                declared.append((name, prop))
        return declared

    def _indexed_fields(self, config: ObjectLiteral | None) -> set[str]:
        indexed: set[str] = set()

        primary = find_property(config, "primaryIndex")
        if primary is not None:
            self._collect_index_keys(primary.value, indexed)

        for collection in INDEX_COLLECTIONS:
            prop = find_property(config, collection)
            if prop is None:
                continue
            value = unwrap(prop.value)
            if isinstance(value, ObjectLiteral):
                for index in value.properties:
                    if isinstance(index, PropertyAssignment):
                        self._collect_index_keys(index.value, indexed)
            elif isinstance(value, ArrayLiteral):
                for index in value.elements:
                    self._collect_index_keys(index, indexed)

        ttl = find_property(config, "ttl")
        if ttl is not None:
            attribute = static_string(ttl.value)
            if attribute is None:
                attribute_prop = find_property(ttl.value, "attribute")
                attribute = static_string(attribute_prop.value) if attribute_prop else None
            if attribute is not None:
                indexed.add(attribute)

        return indexed

    def _collect_index_keys(self, index: Node | None, indexed: set[str]) -> None:
        for key in INDEX_KEYS:
            prop = find_property(index, key)
            if prop is None:
                continue
            value = static_string(prop.value)
            if value is not None:
                indexed.add(value)

    def _render_fields(self, original: str, kept: list[str], indent: str) -> str:
        if "\n" not in original:
            return "fields: { " + ", ".join(kept) + " }"
        member_indent = indent + "  "
        members = (",\n" + member_indent).join(kept)
        return f"fields: {{\n{member_indent}{members}\n{indent}}}"
