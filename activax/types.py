"""Namespace types for configuration trees.

:copyright: Copyright 2024 by MLL <mll@mll.bio>.
:license: Apache 2.0. See LICENSE for details.
"""

from __future__ import annotations

from copy import deepcopy
from types import SimpleNamespace
from typing import Any, TypeVar

import jax.tree_util as jtu

__all__ = [
    "TreeNamespace",
    "dict_to_namespace",
    "namespace_to_dict",
]


TNS_REPR_INDENT_STR = "  "


NT = TypeVar("NT", bound=SimpleNamespace)
DT = TypeVar("DT", bound=dict)


def _convert_value(value: Any, to_type: type, from_type: type) -> Any:
    if isinstance(value, from_type):
        if isinstance(value, SimpleNamespace):
            value = vars(value)
        if not isinstance(value, dict):
            raise ValueError(f"Expected a dict or namespace, got {type(value)}")
        return to_type(**{str(k): _convert_value(v, to_type, from_type) for k, v in value.items()})

    elif isinstance(value, (list, tuple)):
        return type(value)(_convert_value(v, to_type, from_type) for v in value)

    return value


def dict_to_namespace(d: dict, to_type: type[NT] = SimpleNamespace) -> NT:
    """Convert a nested dictionary to a nested SimpleNamespace.

    This is the inverse operation of namespace_to_dict.
    """
    return _convert_value(d, to_type=to_type, from_type=dict)


def namespace_to_dict(ns: SimpleNamespace, to_type: type[DT] = dict) -> DT:
    """Convert a nested SimpleNamespace to a nested dictionary.

    This is the inverse operation of dict_to_namespace.
    """
    return _convert_value(ns, to_type=to_type, from_type=SimpleNamespace)


@jtu.register_pytree_with_keys_class
class TreeNamespace(SimpleNamespace):
    """A simple namespace that's a PyTree.

    This is useful when we want to attribute-like access to the data in
    a nested dict. For example, `config['logging']['console_level']`
    becomes `TreeNamespace(**config).logging.console_level`.
    """

    def tree_flatten_with_keys(self):
        children_with_keys = [(jtu.GetAttrKey(k), v) for k, v in self.__dict__.items()]
        aux_data = self.__dict__.keys()
        return children_with_keys, aux_data

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        return cls(**dict(zip(aux_data, children)))

    def __repr__(self):
        return self._repr_with_indent(0)

    def _repr_with_indent(self, level):
        cls_name = self.__class__.__name__
        if not any(self.__dict__):
            return f"{cls_name}()"

        attr_strs = []
        for name, attr in self.__dict__.items():
            if isinstance(attr, TreeNamespace):
                attr_repr = attr._repr_with_indent(level + 1)
            else:
                attr_repr = repr(attr)
            attr_strs.append(f"{name}={attr_repr},")

        current_indent = TNS_REPR_INDENT_STR * level
        inner_str = "\n".join(current_indent + TNS_REPR_INDENT_STR + s for s in attr_strs)

        return f"{cls_name}(\n" + inner_str + f"\n{current_indent})"

    def __or__(self, other: TreeNamespace | dict) -> TreeNamespace:
        """Merge two TreeNamespaces, or a TreeNamespace and a dict, with values from `other` taking precedence.

        Handles nested inputs recursively.
        """
        result = deepcopy(self)

        if isinstance(other, dict):
            other = dict_to_namespace(other, to_type=type(self))

        for attr_name, other_value in vars(other).items():
            self_value = getattr(result, attr_name, None)

            if isinstance(self_value, TreeNamespace):
                if isinstance(other_value, dict):
                    other_value = dict_to_namespace(other_value, to_type=type(self_value))
                if isinstance(other_value, TreeNamespace):
                    setattr(result, attr_name, self_value | other_value)
                    continue
            setattr(result, attr_name, other_value)

        return result
