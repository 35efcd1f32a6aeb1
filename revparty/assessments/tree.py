# revparty/assessments/tree.py

"""
Decision-tree analysis for the assessment admin: which questions are reachable
from the entry point, which routing edges close a cycle, which questions are
orphaned.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

from ..utils.schemas import AssessmentAnswer, AssessmentConfig, AssessmentQuestion
from .visibility import parse_condition, parse_routing

LABEL_LIMIT = 30


@dataclass
class TreeNode:
    id: str
    question_text: str
    order: int
    has_conditional_logic: bool
    is_entry: bool = False
    is_reachable: bool = False
    is_orphaned: bool = False


@dataclass
class TreeEdge:
    id: str
    from_question_id: str
    to_question_id: str
    type: str  # "answer" | "conditional"
    label: str
    answer_id: Optional[str] = None
    is_cycle: bool = False


@dataclass
class DecisionTree:
    nodes: Dict[str, TreeNode]
    edges: List[TreeEdge]
    reachable: Set[str] = field(default_factory=set)
    cycles: List[TreeEdge] = field(default_factory=list)
    orphaned: List[TreeNode] = field(default_factory=list)


def _truncate(text: str) -> str:
    return text[:LABEL_LIMIT] + ("..." if len(text) > LABEL_LIMIT else "")


def compute_decision_tree(
    config: AssessmentConfig,
    questions: Sequence[AssessmentQuestion],
    answers: Sequence[AssessmentAnswer],
) -> DecisionTree:
    nodes = {
        q.id: TreeNode(
            id=q.id,
            question_text=q.question_text,
            order=q.order,
            has_conditional_logic=bool(q.conditional_logic),
        )
        for q in questions
    }

    ordered = sorted(questions, key=lambda q: q.order)
    entry_id = config.entry_question_id or (ordered[0].id if ordered else None)
    if entry_id in nodes:
        nodes[entry_id].is_entry = True

    edges: List[TreeEdge] = []

    for answer in answers:
        routing = parse_routing(answer.answer_value)
        if routing.next_question_id and routing.next_question_id in nodes:
            edges.append(TreeEdge(
                id=f"answer-{answer.id}",
                from_question_id=answer.question_id,
                to_question_id=routing.next_question_id,
                type="answer",
                label=_truncate(answer.answer_text),
                answer_id=answer.id,
            ))

    answers_by_id = {a.id: a for a in answers}
    for q in questions:
        condition = parse_condition(q)
        if condition is None or condition.question_id not in nodes:
            continue
        answer = answers_by_id.get(condition.answer_id)
        label = _truncate(answer.answer_text) if answer else "condition"
        edges.append(TreeEdge(
            id=f"conditional-{q.id}",
            from_question_id=condition.question_id,
            to_question_id=q.id,
            type="conditional",
            label=f"if: {label}",
            answer_id=condition.answer_id,
        ))

    adjacency: Dict[str, List[str]] = {q.id: [] for q in questions}
    for edge in edges:
        adjacency.setdefault(edge.from_question_id, []).append(edge.to_question_id)

    # reachability from the entry
    reachable: Set[str] = set()
    if entry_id in nodes:
        stack = [entry_id]
        while stack:
            node_id = stack.pop()
            if node_id in reachable:
                continue
            reachable.add(node_id)
            stack.extend(adjacency.get(node_id, []))

    for node_id in reachable:
        nodes[node_id].is_reachable = True

    # cycle detection, white/gray/black
    white, gray, black = 0, 1, 2
    color = {q.id: white for q in questions}
    cycle_ids: Set[str] = set()

    def visit(node_id: str) -> None:
        color[node_id] = gray
        for neighbor in adjacency.get(node_id, []):
            if color.get(neighbor) == gray:
                for e in edges:
                    if e.from_question_id == node_id and e.to_question_id == neighbor:
                        cycle_ids.add(e.id)
                        break
            elif color.get(neighbor) == white:
                visit(neighbor)
        color[node_id] = black

    for q in questions:
        if color[q.id] == white:
            visit(q.id)

    cycles = []
    for edge in edges:
        if edge.id in cycle_ids:
            edge.is_cycle = True
            cycles.append(edge)

    orphaned = []
    for node in nodes.values():
        if not node.is_reachable and not node.is_entry:
            node.is_orphaned = True
            orphaned.append(node)

    return DecisionTree(nodes=nodes, edges=edges, reachable=reachable, cycles=cycles, orphaned=orphaned)
