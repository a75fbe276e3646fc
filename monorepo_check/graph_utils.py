#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Graph utilities for project dependency analysis using NetworkX."""

import logging
from typing import Any, Callable, Dict, Hashable, Iterable, Iterator, List, Set, Tuple, TypeVar

import networkx as nx

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)


def find_strongly_connected_components(graph: "nx.DiGraph[Any]") -> Tuple[List[Set[str]], List[str]]:
    """Find strongly connected components (cycles) and self-loops in a directed graph.

    Args:
        graph: NetworkX DiGraph

    Returns:
        Tuple of (cycles, self_loops) where:
        - cycles: List of sets containing projects in multi-project cycles
        - self_loops: List of projects that depend on themselves
    """
    sccs = list(nx.strongly_connected_components(graph))

    # Separate multi-node cycles from single-node self-loops
    cycles = []
    self_loops = []
    for scc in sccs:
        if len(scc) > 1:
            cycles.append(scc)
        elif len(scc) == 1:
            node = next(iter(scc))
            if graph.has_edge(node, node):
                self_loops.append(node)

    return cycles, self_loops


def build_reverse_dependencies(graph: "nx.DiGraph[Any]") -> Dict[str, Set[str]]:
    """Build reverse dependency mapping (who depends on whom).

    Uses NetworkX graph reversal, so every node is present in the result,
    including nodes nothing depends on (empty set).

    Args:
        graph: Forward dependency graph (dependent -> dependency)

    Returns:
        Reverse dependencies (project -> projects that declare a dependency on it)
    """
    graph_reversed = graph.reverse(copy=False)

    reverse_deps: Dict[str, Set[str]] = {}
    for node in graph_reversed.nodes():
        reverse_deps[node] = set(graph_reversed.successors(node))

    return reverse_deps


def compute_reverse_transitive_closure(graph: "nx.DiGraph[Any]", node: str) -> Set[str]:
    """Compute reverse transitive closure (all nodes that can reach this node).

    Args:
        graph: NetworkX DiGraph
        node: Target node

    Returns:
        Set of all nodes that can reach the target node, empty if the node is unknown
    """
    try:
        return nx.ancestors(graph, node)
    except nx.NetworkXError:
        return set()


def iter_reachable(start: T, successors: Callable[[T], Iterable[T]]) -> Iterator[T]:
    """Yield every node reachable from start through at least one edge.

    Iterative depth-first walk with a visited set, so each node is yielded at
    most once and cycles terminate. The start node itself is only yielded when a
    cycle leads back to it.

    Args:
        start: Node to walk from
        successors: Function returning the direct successors of a node

    Yields:
        Reachable nodes in discovery order
    """
    visited: Set[T] = set()
    stack: List[T] = list(reversed(list(successors(start))))

    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        yield current
        stack.extend(reversed(list(successors(current))))
