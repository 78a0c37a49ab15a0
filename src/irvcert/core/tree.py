"""Search tree of reverse elimination orders, annotated with pruning assertions.

The root hypothesizes a candidate as the final survivor; each child prepends
one more candidate (the one eliminated just before). A node stops growing when
an assertion contradicts it or when no carried assertion is still undetermined.

Nodes live in an arena (``PruningTree.nodes``) with parent-index back
references and are built with an explicit stack, so depth never turns into
Python recursion and the work budget is checked once per node.

**Validity:** a node is valid if it is not pruned and either no assertion is
left undetermined or some child is valid. A valid root means the assertions do
not rule out that candidate winning.

**Continuation:** by default a pruned node gets no children. Other policies
keep searching below pruned nodes to find deeper assertions that could replace
the pruning one; if such a search finds a valid descendant the node's children
are discarded, as only a direct assertion can eliminate it.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from irvcert.core.assertions import Assertion, EliminationOrderSuffix, evaluate, is_neb
from irvcert.core.budget import WorkBudget
from irvcert.core.constants import (
    CONTINUE_ONCE,
    CONTINUE_STOP_IMMEDIATELY,
    CONTINUE_STOP_ON_NEB,
    EFFECT_CONTRADICTION,
    EFFECT_UNDETERMINED,
)

ContinuationPolicy = Literal["stop_immediately", "continue_once", "forever", "stop_on_neb"]


def should_continue_past_pruning(policy: ContinuationPolicy, pruned_by_neb: bool) -> bool:
    if policy == CONTINUE_STOP_IMMEDIATELY:
        return False
    if policy == CONTINUE_STOP_ON_NEB:
        return not pruned_by_neb
    return True


def next_level_policy(policy: ContinuationPolicy) -> ContinuationPolicy:
    """Policy for the children of a pruned node that is being searched anyway."""
    if policy == CONTINUE_ONCE:
        return CONTINUE_STOP_IMMEDIATELY
    return policy


@dataclass(slots=True)
class TreeNode:
    candidate: int
    parent: int | None
    depth: int
    suffix: EliminationOrderSuffix
    pruning_assertions: list[int] = field(default_factory=list)
    children: list[int] = field(default_factory=list)
    valid: bool = False

    @property
    def pruned(self) -> bool:
        return bool(self.pruning_assertions)


@dataclass(slots=True)
class PruningTree:
    root_candidate: int
    nodes: list[TreeNode] = field(default_factory=list)

    @property
    def root(self) -> TreeNode:
        return self.nodes[0]

    @property
    def valid(self) -> bool:
        return self.root.valid

    @property
    def nodes_explored(self) -> int:
        return len(self.nodes)

    @property
    def max_depth(self) -> int:
        return max((node.depth for node in self.nodes), default=0)

    def children_of(self, node: TreeNode) -> list[TreeNode]:
        return [self.nodes[index] for index in node.children]

    def walk(self) -> Iterator[TreeNode]:
        """Pre-order over the nodes reachable from the root."""
        if not self.nodes:
            return
        stack = [0]
        while stack:
            node = self.nodes[stack.pop()]
            yield node
            stack.extend(reversed(node.children))

    def pruned_nodes(self) -> list[TreeNode]:
        return [node for node in self.walk() if node.pruned]

    def leaves(self) -> list[TreeNode]:
        return [node for node in self.walk() if not node.children]

    def first_valid_leaf(self) -> TreeNode | None:
        for node in self.walk():
            if node.valid and not node.children and not node.pruned:
                return node
        return None

    def node_to_dict(self, node: TreeNode) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "candidate": node.candidate,
            "valid": node.valid,
        }
        if node.pruning_assertions:
            payload["pruning_assertions"] = list(node.pruning_assertions)
        if node.children:
            payload["children"] = [self.node_to_dict(child) for child in self.children_of(node)]
        return payload

    def to_dict(self) -> dict[str, Any]:
        return self.node_to_dict(self.root)


@dataclass(slots=True)
class _Frame:
    node_index: int
    relevant: list[int]
    policy: ContinuationPolicy
    untried: list[int]
    position: int = 0

    def exhausted(self) -> bool:
        return self.position >= len(self.untried)


class _TreeBuilder:
    def __init__(
        self,
        *,
        assertions: Sequence[Assertion],
        num_candidates: int,
        record_all_pruning: bool,
        budget: WorkBudget,
    ) -> None:
        self.assertions = assertions
        self.num_candidates = num_candidates
        self.record_all_pruning = record_all_pruning
        self.budget = budget

    def _make_node(
        self,
        tree: PruningTree,
        parent_index: int | None,
        candidate: int,
        relevant: list[int],
        policy: ContinuationPolicy,
    ) -> _Frame | None:
        """Append a node to the arena; return a frame if it needs children."""
        self.budget.tick()
        parent = tree.nodes[parent_index] if parent_index is not None else None
        suffix = (candidate, *parent.suffix) if parent is not None else (candidate,)
        stop_at_first = not self.record_all_pruning and policy == CONTINUE_STOP_IMMEDIATELY

        pruning: list[int] = []
        still_relevant: list[int] = []
        for assertion_index in relevant:
            effect = evaluate(self.assertions[assertion_index], suffix)
            if effect == EFFECT_CONTRADICTION:
                pruning.append(assertion_index)
                if stop_at_first:
                    break
            elif effect == EFFECT_UNDETERMINED:
                still_relevant.append(assertion_index)

        node = TreeNode(
            candidate=candidate,
            parent=parent_index,
            depth=len(suffix),
            suffix=suffix,
            pruning_assertions=pruning,
            valid=not pruning and not still_relevant,
        )
        tree.nodes.append(node)
        node_index = len(tree.nodes) - 1

        if not still_relevant:
            return None
        if pruning:
            pruned_by_neb = any(is_neb(self.assertions[index]) for index in pruning)
            if not should_continue_past_pruning(policy, pruned_by_neb):
                return None
            policy = next_level_policy(policy)
        untried = [c for c in range(self.num_candidates) if c not in suffix]
        return _Frame(node_index=node_index, relevant=still_relevant, policy=policy, untried=untried)

    @staticmethod
    def _child_finished(tree: PruningTree, frame: _Frame, child_index: int) -> None:
        parent = tree.nodes[frame.node_index]
        child = tree.nodes[child_index]
        if child.valid:
            if not parent.pruned:
                parent.valid = True
            else:
                # Descendants cannot stand in for the pruning assertion here.
                parent.children.clear()
                frame.position = len(frame.untried)
                return
        parent.children.append(child_index)

    def build(self, candidate: int, relevant: list[int], policy: ContinuationPolicy) -> PruningTree:
        tree = PruningTree(root_candidate=candidate)
        root_frame = self._make_node(tree, None, candidate, relevant, policy)
        if root_frame is None:
            return tree
        stack = [root_frame]
        while stack:
            frame = stack[-1]
            if frame.exhausted():
                stack.pop()
                if stack:
                    self._child_finished(tree, stack[-1], frame.node_index)
                continue
            child_candidate = frame.untried[frame.position]
            frame.position += 1
            child_frame = self._make_node(tree, frame.node_index, child_candidate, frame.relevant, frame.policy)
            if child_frame is None:
                self._child_finished(tree, frame, len(tree.nodes) - 1)
            else:
                stack.append(child_frame)
        return tree


def build_pruning_tree(
    candidate: int,
    assertions: Sequence[Assertion],
    num_candidates: int,
    *,
    relevant: Sequence[int] | None = None,
    policy: ContinuationPolicy = CONTINUE_STOP_IMMEDIATELY,
    record_all_pruning: bool = True,
    budget: WorkBudget | None = None,
) -> PruningTree:
    """Build the pruning tree hypothesizing ``candidate`` as the final survivor.

    ``relevant`` restricts the search to a subset of assertion indices (all by
    default). With ``record_all_pruning`` false, and the default policy, a node
    records only the first contradicting assertion.
    """
    builder = _TreeBuilder(
        assertions=assertions,
        num_candidates=num_candidates,
        record_all_pruning=record_all_pruning,
        budget=budget if budget is not None else WorkBudget.unlimited(),
    )
    indices = list(relevant) if relevant is not None else list(range(len(assertions)))
    return builder.build(candidate, indices, policy)


__all__ = [
    "ContinuationPolicy",
    "PruningTree",
    "TreeNode",
    "build_pruning_tree",
    "next_level_policy",
    "should_continue_past_pruning",
]
