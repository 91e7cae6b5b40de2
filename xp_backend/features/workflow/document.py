"""Top-level ComfyUI workflow document assembly and invariant checks."""
from __future__ import annotations

import uuid
from typing import Any, Mapping, Sequence

from .graph_builder import GraphLink, GraphNode

WORKFLOW_SCHEMA_VERSION = 0.4


def generate_workflow_id() -> str:
    return str(uuid.uuid4())


def assemble_workflow_document(nodes: Sequence[GraphNode], links: Sequence[GraphLink]) -> dict[str, Any]:
    """
    Wrap built nodes/links into a JSON-serialisable workflow document.

    `last_node_id` / `last_link_id` are the maxima actually present
    (0 when there are no links), not the builder's counters.
    """
    return {
        "id": generate_workflow_id(),
        "revision": 0,
        "last_node_id": max((n.id for n in nodes), default=0),
        "last_link_id": max((link.id for link in links), default=0),
        "nodes": [n.to_dict() for n in nodes],
        "links": [link.to_list() for link in links],
        "groups": [],
        "config": {},
        "extra": {},
        "version": WORKFLOW_SCHEMA_VERSION,
    }


def validate_workflow_document(doc: Mapping[str, Any]) -> list[str]:
    """Return every invariant violation found in `doc` (empty when valid)."""
    problems: list[str] = []
    nodes = doc.get("nodes")
    links = doc.get("links")
    if not isinstance(nodes, list) or not isinstance(links, list):
        return ["document must contain 'nodes' and 'links' lists"]

    by_id: dict[int, Mapping[str, Any]] = {}
    for node in nodes:
        node_id = node.get("id") if isinstance(node, Mapping) else None
        if not isinstance(node_id, int):
            problems.append(f"node without integer id: {node!r}")
            continue
        if node_id in by_id:
            problems.append(f"duplicate node id {node_id}")
        by_id[node_id] = node

    link_ids: set[int] = set()
    for link in links:
        if not isinstance(link, (list, tuple)) or len(link) != 6:
            problems.append(f"malformed link entry: {link!r}")
            continue
        link_id, src_id, src_slot, dst_id, dst_slot, _data_type = link
        if link_id in link_ids:
            problems.append(f"duplicate link id {link_id}")
        link_ids.add(link_id)

        src = by_id.get(src_id)
        dst = by_id.get(dst_id)
        if src is None:
            problems.append(f"link {link_id}: source node {src_id} missing")
        else:
            outputs = src.get("outputs") or []
            if not 0 <= src_slot < len(outputs):
                problems.append(f"link {link_id}: node {src_id} has no output slot {src_slot}")
            elif link_id not in (outputs[src_slot].get("links") or []):
                problems.append(f"link {link_id}: not recorded on node {src_id} output {src_slot}")
        if dst is None:
            problems.append(f"link {link_id}: target node {dst_id} missing")
        else:
            inputs = dst.get("inputs") or []
            if not 0 <= dst_slot < len(inputs):
                problems.append(f"link {link_id}: node {dst_id} has no input slot {dst_slot}")
            elif inputs[dst_slot].get("link") != link_id:
                problems.append(f"link {link_id}: not recorded on node {dst_id} input {dst_slot}")

    expected_node = max(by_id, default=0)
    expected_link = max(link_ids, default=0)
    if doc.get("last_node_id") != expected_node:
        problems.append(f"last_node_id={doc.get('last_node_id')} but max node id is {expected_node}")
    if doc.get("last_link_id") != expected_link:
        problems.append(f"last_link_id={doc.get('last_link_id')} but max link id is {expected_link}")
    return problems
