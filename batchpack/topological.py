from __future__ import annotations
from typing import (
    Any,
    Iterator,
    Mapping,
    Sequence,
)

from collections import defaultdict, OrderedDict

from batchpack import errors


class UnresolvedReferenceError(errors.ConfigurationError):
    pass


class CycleError(errors.ConfigurationError):
    pass


def sort(
    graph: Mapping[str, Mapping[str, Any]],
    roots: Sequence[str] | None = None,
) -> Iterator[Any]:
    """Yield graph items so that every item follows its dependencies.

    *graph* maps a name to ``{"item": <anything>, "deps": [<names>]}``.
    When *roots* is given only the items reachable from them are yielded.
    """
    adj: defaultdict[str, OrderedDict[str, bool]] = defaultdict(OrderedDict)

    for item_name, item in graph.items():
        for dep in item["deps"]:
            if dep in graph:
                adj[item_name][dep] = True
            else:
                raise UnresolvedReferenceError(
                    "reference to an undefined item {} in {}".format(
                        dep, item_name
                    )
                )

    visiting = set()
    visited = set()
    sorted = []

    def visit(item: str) -> None:
        if item in visiting:
            raise CycleError("detected cycle on vertex {!r}".format(item))
        if item not in visited:
            visiting.add(item)
            for n in adj[item]:
                visit(n)
            sorted.append(item)
            visiting.remove(item)
            visited.add(item)

    for item in graph if roots is None else roots:
        if item not in graph:
            raise UnresolvedReferenceError(
                "reference to an undefined item {}".format(item)
            )
        visit(item)

    return (graph[item]["item"] for item in sorted)
