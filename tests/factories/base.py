"""Base factory for frozen engine dataclasses."""

from typing import Any, TypeVar, Generic

import factory


T = TypeVar("T")


class DataclassFactory(factory.Factory, Generic[T]):
    """Base factory for immutable domain dataclasses."""

    class Meta:
        abstract = True

    @classmethod
    def _create(cls, model_class: type[T], *args: Any, **kwargs: Any) -> T:
        """Dataclasses have nothing to persist; build and return."""
        return model_class(**kwargs)
