"""Registry of declared models."""

from collections.abc import Iterable, Iterator

from graph_ogm.core.base import SchemaErrorDetails
from graph_ogm.core.errors import ModelNotFoundError, SchemaError
from graph_ogm.core.logging import get_logger
from graph_ogm.schema.model import Model, SchemaDeclaration
from graph_ogm.schema.relationship_type import RelationshipType

logger = get_logger(__name__)


class ModelMap:
    """Name-keyed registry of models with label-set lookup."""

    def __init__(self) -> None:
        self._models: dict[str, Model] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)

    def keys(self) -> list[str]:
        return list(self._models)

    def values(self) -> list[Model]:
        return list(self._models.values())

    def items(self) -> list[tuple[str, Model]]:
        return list(self._models.items())

    def set(self, name: str, model: Model) -> Model:
        self._models[name] = model
        logger.debug("Registered model", extra={"model": name, "labels": list(model.labels)})
        return model

    def define(self, name: str, schema: SchemaDeclaration) -> Model:
        """Build a model from a declaration and register it."""
        return self.set(name, Model(name, schema))

    def get(self, name: str) -> Model:
        """Get a model by name.

        Raises:
            ModelNotFoundError: If no model is registered under the name
        """
        model = self._models.get(name)
        if model is None:
            defined = list(self._models)
            message = f'Couldn\'t find a definition for "{name}".'
            if not defined:
                message += " It looks like no models have been defined."
            else:
                message += f" The models currently defined are [{', '.join(defined)}]"

            raise ModelNotFoundError(
                message,
                SchemaErrorDetails(source="schema.model_map", operation="get", target=name, defined=defined),
            )
        return model

    def resolve(self, model: Model | str) -> Model:
        """Accept either a model or a model name."""
        return model if isinstance(model, Model) else self.get(model)

    def get_by_labels(self, labels: str | Iterable[str]) -> Model | None:
        """Find the model whose label set is exactly ``labels``."""
        wanted = sorted([labels] if isinstance(labels, str) else labels)
        for model in self._models.values():
            if sorted(model.labels) == wanted:
                return model
        return None

    def target_of(self, relationship: RelationshipType, owner: Model | None = None) -> Model | None:
        """Resolve the target model of a relationship.

        Args:
            relationship: Relationship declaration
            owner: Model the relationship is declared on, used in the error

        Returns:
            The target model, or None when the relationship points at any node

        Raises:
            SchemaError: If the target is named but not registered
        """
        target = relationship.target
        if target is None or isinstance(target, Model):
            return target

        if target not in self._models:
            owner_name = owner.name if owner else None
            raise SchemaError(
                f"Couldn't find a target model for {target} in {relationship.name}"
                + (f" on model {owner_name}" if owner_name else ""),
                SchemaErrorDetails(
                    source="schema.model_map",
                    operation="resolve_target",
                    model=owner_name,
                    relationship=relationship.name,
                    target=target,
                    defined=list(self._models),
                ),
            )
        return self._models[target]

    def extend(self, name: str, as_name: str, using: SchemaDeclaration) -> Model:
        """Derive a new model from an existing one.

        The new model carries the original labels plus ``as_name`` and the
        original declarations merged with ``using``. The original model is left
        untouched.

        Args:
            name: Name of the model to extend
            as_name: Name (and extra label) of the new model
            using: Declarations to add or override

        Returns:
            The newly registered model
        """
        original = self.get(name)
        labels = sorted({*original.labels, as_name})
        schema = {**original.schema, **using}
        schema.pop("labels", None)

        return self.set(as_name, Model(as_name, schema, labels=labels))
